"""What is known about a target process: its memory maps and interpreter binaries."""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace

from .libraries import is_python_lib

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class BinaryInfo:
    """A parsed executable or shared library, with symbols at their loaded addresses."""

    filename: str
    symbols: Mapping[str, int] = field(default_factory=dict)
    bss_addr: int = 0
    bss_size: int = 0


@dataclass(frozen=True)
class MapRange:
    """One region of a process's virtual memory."""

    start: int
    size: int
    filename: str | None = None
    readable: bool = True
    writable: bool = False
    executable: bool = False

    @property
    def end(self) -> int:
        return self.start + self.size

    def __contains__(self, addr: int) -> bool:
        return self.start <= addr < self.end


def maps_contain_addr(addr: int, maps: Iterable[MapRange]) -> bool:
    """Whether ``addr`` falls inside any of ``maps``."""
    return any(addr in region for region in maps)


BinaryParser = Callable[[str, int, int], BinaryInfo]


@dataclass(frozen=True)
class PythonProcessInfo:
    """Memory layout and parsed binaries of an interpreter process.

    When the interpreter was built as a shared library its symbols live in
    ``libpython_binary`` rather than in the executable.
    """

    python_binary: BinaryInfo
    maps: Sequence[MapRange]
    python_filename: str
    libpython_binary: BinaryInfo | None = None

    @classmethod
    def from_maps(
        cls,
        exe: str,
        maps: Sequence[MapRange],
        parse_binary: BinaryParser,
        platform: str | None = None,
    ) -> PythonProcessInfo:
        """Locate and parse the interpreter binaries among ``maps``.

        ``parse_binary(filename, start, size)`` parses one mapped file.
        """
        platform = platform if platform is not None else sys.platform
        maps = list(maps)
        if not maps:
            raise ValueError("process has no memory maps")

        if platform == "win32":
            exe = exe.lower()

            def is_python_bin(pathname: str) -> bool:
                return pathname.lower() == exe
        else:

            def is_python_bin(pathname: str) -> bool:
                return pathname == exe

        exe_map = next(
            (m for m in maps if m.filename and is_python_bin(m.filename) and m.executable),
            None,
        )
        if exe_map is None:
            log.warning(
                "Failed to find '%s' in virtual memory maps, falling back to first map region",
                exe,
            )
            exe_map = maps[0]

        python_binary = parse_binary(exe, exe_map.start, exe_map.size)
        if platform == "darwin":
            python_binary = _rebase_mach_binary(python_binary, exe_map.start)

        libpython_binary = None
        lib_map = next(
            (
                m
                for m in maps
                if m.filename and is_python_lib(m.filename, platform) and m.executable
            ),
            None,
        )
        if lib_map is not None and lib_map.filename:
            log.info("Found libpython binary @ %s", lib_map.filename)
            libpython_binary = parse_binary(lib_map.filename, lib_map.start, lib_map.size)

        return cls(
            python_binary=python_binary,
            maps=tuple(maps),
            python_filename=exe,
            libpython_binary=libpython_binary,
        )

    def get_symbol(self, symbol: str) -> int | None:
        """Address of ``symbol`` in the executable, else in libpython, else None."""
        addr = self.python_binary.symbols.get(symbol)
        if addr is not None:
            log.info("got symbol %s (0x%016x) from python binary", symbol, addr)
            return addr
        if self.libpython_binary is not None:
            addr = self.libpython_binary.symbols.get(symbol)
            if addr is not None:
                log.info("got symbol %s (0x%016x) from libpython binary", symbol, addr)
                return addr
        return None


def _rebase_mach_binary(binary: BinaryInfo, start: int) -> BinaryInfo:
    """Shift symbols so that ``_mh_execute_header`` sits at the map start."""
    try:
        header = binary.symbols["_mh_execute_header"]
    except KeyError:
        raise ValueError(f"{binary.filename} has no _mh_execute_header symbol") from None
    offset = header - start
    symbols = {name: addr - offset for name, addr in binary.symbols.items()}
    bss_addr = binary.bss_addr - offset if binary.bss_addr != 0 else 0
    return replace(binary, symbols=symbols, bss_addr=bss_addr)