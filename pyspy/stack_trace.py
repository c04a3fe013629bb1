"""Walking the threads and frames of a target interpreter."""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from .layout import (
    BytesObject,
    CodeObject,
    FrameObject,
    InterpreterState,
    MemoryReadError,
    ProcessMemory,
    PythonLayout,
    StringObject,
    ThreadState,
)

MAX_THREADS = 4096
MAX_FRAMES = 4096
MAX_STRING_CHARS = 4096
MAX_BYTES = 8192


class StackTraceError(RuntimeError):
    """Raised when a stack trace cannot be read from the target."""


@contextmanager
def _context(message: str) -> Iterator[None]:
    try:
        yield
    except (MemoryReadError, StackTraceError) as err:
        raise StackTraceError(f"{message}: {err}") from err


@dataclass(frozen=True, order=True)
class Frame:
    """A single function call in a stack trace."""

    name: str
    filename: str
    module: str | None = None
    short_filename: str | None = None
    line: int = 0


@dataclass
class StackTrace:
    """Call stack of one interpreter thread, innermost frame first."""

    thread_id: int
    frames: list[Frame] = field(default_factory=list)
    os_thread_id: int | None = None
    active: bool = True
    owns_gil: bool = False

    def status_str(self) -> str:
        if not self.active:
            return "idle"
        return "active+gil" if self.owns_gil else "active"


def get_stack_traces(
    interpreter: InterpreterState, memory: ProcessMemory, layout: PythonLayout
) -> list[StackTrace]:
    """Return a stack trace for every thread of ``interpreter``."""
    traces = []
    address = interpreter.head
    while address:
        with _context("Failed to copy PyThreadState"):
            thread = ThreadState.read(memory, address, layout)
        traces.append(get_stack_trace(thread, memory, layout))
        if len(traces) > MAX_THREADS:
            raise StackTraceError("Max thread recursion depth reached")
        address = thread.next
    return traces


def get_stack_trace(thread: ThreadState, memory: ProcessMemory, layout: PythonLayout) -> StackTrace:
    """Return the stack trace of a single thread."""
    frames = []
    address = thread.frame
    while address:
        with _context("Failed to copy PyFrameObject"):
            frame = FrameObject.read(memory, address, layout)
        with _context("Failed to copy PyCodeObject"):
            code = CodeObject.read(memory, frame.code, layout)
        with _context("Failed to copy filename"):
            filename = copy_string(code.filename, memory, layout)
        with _context("Failed to copy function name"):
            name = copy_string(code.name, memory, layout)
        with _context("Failed to get line number"):
            line = get_line_number(code, frame.lasti, memory, layout)

        frames.append(Frame(name=name, filename=filename, line=line))
        if len(frames) > MAX_FRAMES:
            raise StackTraceError("Max frame recursion depth reached")
        address = frame.back
    return StackTrace(thread_id=thread.thread_id, frames=frames)


def get_line_number(code: CodeObject, lasti: int, memory: ProcessMemory, layout: PythonLayout) -> int:
    """Map the bytecode offset ``lasti`` to a source line using the line table."""
    with _context("Failed to copy line number table"):
        table = copy_bytes(code.lnotab, memory, layout)
    line = code.first_lineno
    bytecode_address = 0
    for address_step, line_step in zip(table[0::2], table[1::2]):
        bytecode_address += address_step
        if bytecode_address > lasti:
            break
        line += line_step
    return line


def copy_string(address: int, memory: ProcessMemory, layout: PythonLayout) -> str:
    """Copy a string object out of the target."""
    obj = StringObject.read(memory, address, layout)
    if obj.size >= MAX_STRING_CHARS:
        raise StackTraceError(f"Refusing to copy {obj.size} chars of a string")
    data = memory.read(obj.data_address, obj.size * obj.kind)
    try:
        if obj.kind == 4:
            codec = "utf-32-le" if sys.byteorder == "little" else "utf-32-be"
            return data.decode(codec)
        if obj.kind == 2:
            raise StackTraceError("ucs2 strings aren't supported yet!")
        if obj.kind == 1:
            return data.decode("utf-8") if obj.ascii else data.decode("latin-1")
    except UnicodeDecodeError as err:
        raise StackTraceError(f"Invalid string data: {err}") from err
    raise StackTraceError(f"Unknown string kind {obj.kind}")


def copy_bytes(address: int, memory: ProcessMemory, layout: PythonLayout) -> bytes:
    """Copy the contents of a bytes object out of the target."""
    obj = BytesObject.read(memory, address, layout)
    if obj.size >= MAX_BYTES:
        raise StackTraceError(f"Refusing to copy {obj.size} bytes")
    return memory.read(obj.data_address, obj.size)