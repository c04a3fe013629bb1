"""An iterator that paces sampling at a random, exponentially distributed rate."""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from dataclasses import dataclass


@dataclass(frozen=True)
class TimerTick:
    """One step of a Timer.

    ``duration`` is seconds slept when ``late`` is false, or seconds behind
    schedule when ``late`` is true.
    """

    duration: float
    late: bool


class Timer:
    """Sleeps between iterations so that about ``rate`` iterations happen per second.

    Intervals are drawn from an exponential distribution to avoid aliasing with
    periodic work in the sampled program. The schedule is kept as an absolute
    target so time spent between iterations is accounted for.
    """

    def __init__(
        self,
        rate: float,
        *,
        clock: Callable[[], int] = time.monotonic_ns,
        sleep: Callable[[float], None] = time.sleep,
        rng: random.Random | None = None,
    ) -> None:
        if not rate > 0:
            raise ValueError(f"rate must be positive, got {rate}")
        self.rate = rate
        self._clock = clock
        self._sleep = sleep
        self._rng = rng if rng is not None else random.Random()
        self._start = clock()
        self._desired = 0

    def __iter__(self) -> Timer:
        return self

    def __next__(self) -> TimerTick:
        elapsed = self._clock() - self._start
        self._desired += int(1_000_000_000.0 * self._rng.expovariate(self.rate))
        if self._desired > elapsed:
            wait = (self._desired - elapsed) / 1e9
            self._sleep(wait)
            return TimerTick(duration=wait, late=False)
        return TimerTick(duration=(elapsed - self._desired) / 1e9, late=True)