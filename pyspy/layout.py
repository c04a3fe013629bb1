"""Reading CPython interpreter objects out of another process's memory.

Addresses handled here belong to the target process, so every object is
fetched through a ``ProcessMemory`` and decoded according to a
``PythonLayout`` that describes the struct layout of one interpreter version.
"""

from __future__ import annotations

import abc
import sys
from collections.abc import Mapping
from dataclasses import dataclass

POINTER_SIZE = 8
_WORD_MASK = (1 << 64) - 1


class MemoryReadError(OSError):
    """Raised when memory of the target process cannot be read."""


class ProcessMemory(abc.ABC):
    """Something whose memory can be read at absolute addresses."""

    @abc.abstractmethod
    def read(self, address: int, size: int) -> bytes:
        """Return ``size`` bytes starting at ``address``."""


class BytesMemory(ProcessMemory):
    """A contiguous block of memory held locally, starting at ``base``."""

    def __init__(self, base: int = 0, data: bytes = b"") -> None:
        self.base = base
        self._data = bytearray(data)

    def __len__(self) -> int:
        return len(self._data)

    def read(self, address: int, size: int) -> bytes:
        if size < 0:
            raise ValueError(f"negative read size {size}")
        start = address - self.base
        if start < 0 or start + size > len(self._data):
            raise MemoryReadError(f"cannot read {size} bytes at 0x{address:x}")
        return bytes(self._data[start:start + size])

    def write(self, address: int, data: bytes) -> None:
        """Store ``data`` at ``address``, growing the block as needed."""
        start = address - self.base
        if start < 0:
            raise MemoryReadError(f"address 0x{address:x} is below base 0x{self.base:x}")
        end = start + len(data)
        if end > len(self._data):
            self._data.extend(bytes(end - len(self._data)))
        self._data[start:end] = data


def read_int(memory: ProcessMemory, address: int, size: int, signed: bool = False) -> int:
    """Read a native-endian integer of ``size`` bytes."""
    return int.from_bytes(memory.read(address, size), sys.byteorder, signed=signed)


def read_pointer(memory: ProcessMemory, address: int) -> int:
    """Read a pointer-sized unsigned value."""
    return read_int(memory, address, POINTER_SIZE, False)


@dataclass(frozen=True)
class Struct:
    """Layout of a C struct: total size and ``name -> (offset, size, signed)``."""

    name: str
    size: int
    fields: Mapping[str, tuple[int, int, bool]]

    def __post_init__(self) -> None:
        for member, (offset, width, _signed) in self.fields.items():
            if offset < 0 or width <= 0 or offset + width > self.size:
                raise ValueError(f"field {member!r} does not fit in {self.name}")

    def _spec(self, member: str) -> tuple[int, int, bool]:
        try:
            return self.fields[member]
        except KeyError:
            raise KeyError(f"{self.name} has no field {member!r}") from None

    def offset(self, field: str) -> int:
        """Byte offset of ``field`` from the start of the struct."""
        return self._spec(field)[0]

    def _load(self, memory: ProcessMemory, address: int) -> bytes:
        return memory.read(address, self.size)

    def _unpack(self, raw: bytes, member: str) -> int:
        offset, width, signed = self._spec(member)
        return int.from_bytes(raw[offset:offset + width], sys.byteorder, signed=signed)


@dataclass(frozen=True)
class PythonLayout:
    """The struct layouts of one interpreter version.

    With ``pep393_strings`` the string object is a PyUnicodeObject with
    ``length``, ``state`` and ``data`` fields; otherwise it is a byte string
    with ``ob_size`` and ``ob_sval``, like the bytes object.
    """

    interpreter: Struct
    thread_state: Struct
    frame_object: Struct
    code_object: Struct
    bytes_object: Struct
    string_object: Struct
    pep393_strings: bool = True
    ascii_object_size: int = 0
    compact_object_size: int = 0


@dataclass(frozen=True)
class InterpreterState:
    address: int
    head: int

    @classmethod
    def read(cls, memory: ProcessMemory, address: int, layout: PythonLayout) -> InterpreterState:
        struct = layout.interpreter
        raw = struct._load(memory, address)
        return cls(address=address, head=struct._unpack(raw, "tstate_head"))


@dataclass(frozen=True)
class ThreadState:
    address: int
    next: int
    interp: int
    frame: int
    thread_id: int

    @classmethod
    def read(cls, memory: ProcessMemory, address: int, layout: PythonLayout) -> ThreadState:
        struct = layout.thread_state
        raw = struct._load(memory, address)
        return cls(
            address=address,
            next=struct._unpack(raw, "next"),
            interp=struct._unpack(raw, "interp"),
            frame=struct._unpack(raw, "frame"),
            thread_id=struct._unpack(raw, "thread_id") & _WORD_MASK,
        )


@dataclass(frozen=True)
class FrameObject:
    address: int
    code: int
    lasti: int
    back: int

    @classmethod
    def read(cls, memory: ProcessMemory, address: int, layout: PythonLayout) -> FrameObject:
        struct = layout.frame_object
        raw = struct._load(memory, address)
        return cls(
            address=address,
            code=struct._unpack(raw, "f_code"),
            lasti=struct._unpack(raw, "f_lasti"),
            back=struct._unpack(raw, "f_back"),
        )


@dataclass(frozen=True)
class CodeObject:
    address: int
    name: int
    filename: int
    lnotab: int
    first_lineno: int

    @classmethod
    def read(cls, memory: ProcessMemory, address: int, layout: PythonLayout) -> CodeObject:
        struct = layout.code_object
        raw = struct._load(memory, address)
        return cls(
            address=address,
            name=struct._unpack(raw, "co_name"),
            filename=struct._unpack(raw, "co_filename"),
            lnotab=struct._unpack(raw, "co_lnotab"),
            first_lineno=struct._unpack(raw, "co_firstlineno"),
        )


@dataclass(frozen=True)
class BytesObject:
    address: int
    size: int
    data_address: int

    @classmethod
    def read(cls, memory: ProcessMemory, address: int, layout: PythonLayout) -> BytesObject:
        struct = layout.bytes_object
        raw = struct._load(memory, address)
        return cls(
            address=address,
            size=struct._unpack(raw, "ob_size") & _WORD_MASK,
            data_address=address + struct.offset("ob_sval"),
        )


@dataclass(frozen=True)
class StringObject:
    address: int
    size: int
    kind: int
    ascii: bool
    data_address: int

    @classmethod
    def read(cls, memory: ProcessMemory, address: int, layout: PythonLayout) -> StringObject:
        struct = layout.string_object
        raw = struct._load(memory, address)
        if not layout.pep393_strings:
            return cls(
                address=address,
                size=struct._unpack(raw, "ob_size") & _WORD_MASK,
                kind=1,
                ascii=True,
                data_address=address + struct.offset("ob_sval"),
            )

        state = struct._unpack(raw, "state")
        kind = (state >> 2) & 0b111
        compact = (state >> 5) & 1
        is_ascii = bool((state >> 6) & 1)
        if not compact:
            data_address = struct._unpack(raw, "data")
        elif is_ascii:
            data_address = address + layout.ascii_object_size
        else:
            data_address = address + layout.compact_object_size
        return cls(
            address=address,
            size=struct._unpack(raw, "length") & _WORD_MASK,
            kind=kind,
            ascii=is_ascii,
            data_address=data_address,
        )