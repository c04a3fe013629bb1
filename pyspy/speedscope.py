"""Exporting recorded stack traces in the speedscope "sampled" file format."""

from __future__ import annotations

import json
from typing import Any, TextIO

from .stack_trace import Frame, StackTrace

SCHEMA_URL = "https://www.speedscope.app/file-format-schema.json"
PROFILE_NAME = "pyspy"
FILE_NAME = "pyspy profile"
EXPORTER = "pyspy"


def _frame_entry(frame: Frame) -> dict[str, Any]:
    return {"name": frame.name, "file": frame.filename, "line": frame.line, "col": None}


class Stats:
    """Collects stack samples per thread and writes them as a speedscope file."""

    def __init__(self) -> None:
        self._samples: dict[int, list[list[int]]] = {}
        self._frames: list[dict[str, Any]] = []
        self._frame_to_index: dict[Frame, int] = {}

    def _index_of(self, frame: Frame) -> int:
        index = self._frame_to_index.get(frame)
        if index is None:
            index = len(self._frames)
            self._frames.append(_frame_entry(frame))
            self._frame_to_index[frame] = index
        return index

    def record(self, stack: StackTrace) -> None:
        """Add one sample; frames are stored outermost first."""
        indices = [self._index_of(frame) for frame in stack.frames]
        indices.reverse()
        self._samples.setdefault(stack.thread_id, []).append(indices)

    def to_dict(self) -> dict[str, Any]:
        """Return the speedscope document as plain JSON-compatible data."""
        end_value = float(len(self._samples))
        profiles = [
            {
                "type": "sampled",
                "name": PROFILE_NAME,
                "unit": "none",
                "startValue": 0.0,
                "endValue": end_value,
                "samples": [list(sample) for sample in samples],
                "weights": [1.0 for _ in samples],
            }
            for samples in self._samples.values()
        ]
        return {
            "$schema": SCHEMA_URL,
            "profiles": profiles,
            "shared": {"frames": [dict(frame) for frame in self._frames]},
            "activeProfileIndex": None,
            "exporter": EXPORTER,
            "name": FILE_NAME,
        }

    def write(self, stream: TextIO) -> None:
        """Write the document to ``stream`` as a single line of JSON."""
        stream.write(json.dumps(self.to_dict()))
        stream.write("\n")