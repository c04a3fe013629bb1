# pyspy

Building blocks for a sampling profiler that reads the stacks of a CPython
interpreter from outside it. The package describes the memory layouts of
CPython 3.6 and 3.7 on 64-bit builds. It walks interpreter, thread, frame and
code objects through a memory abstraction, turns them into stack traces, and
writes collected samples in the speedscope JSON format.

There are no third-party dependencies.

## Modules

- `pyspy.layout`: the memory abstraction and the object readers.
  - `ProcessMemory` is the abstract base. Subclasses implement
    `read(address, size)`.
  - `BytesMemory(base, data)` is an in-memory block with `read` and `write`.
    `write` grows the block as needed, and reads outside it raise `MemoryReadError`.
  - `read_int(memory, address, size, signed)` and `read_pointer(memory, address)`
    read single values.
  - `Struct` holds a struct layout. `Struct.offset(field)` gives a field's offset.
  - `PythonLayout` groups the structs of one interpreter version.
  - The readers are `InterpreterState.read`, `ThreadState.read`,
    `FrameObject.read`, `CodeObject.read`, `BytesObject.read` and
    `StringObject.read`. Each takes `(memory, address, layout)`.
    `StringObject.read` handles both compact and non-compact PEP 393 strings,
    and also plain byte strings when `pep393_strings` is false.
- `pyspy.bindings_objects`, `pyspy.bindings_types`, `pyspy.bindings_interpreter`
  and `pyspy.bindings_frames`: each has a `structs(version_key)` function that
  returns struct layouts for `"v3_6_6"` or `"v3_7_0"`. An unknown key raises
  `KeyError`. The groups of structs are:
  - `bindings_objects`: object headers, bytes and unicode objects.
  - `bindings_types`: the type object and its method tables.
  - `bindings_interpreter`: interpreter and thread state.
  - `bindings_frames`: code, try block and frame objects.

  `bindings_objects.UnicodeState` packs and unpacks the unicode `state` bit field.
- `pyspy.stack_trace`: `Frame`, `StackTrace` (with `status_str()`),
  `get_stack_traces`, `get_stack_trace`, `get_line_number`, `copy_string` and
  `copy_bytes`.
  - Reads that fail raise `StackTraceError`.
  - There are limits of 4096 threads, 4096 frames, strings under 4096
    characters and byte objects under 8192 bytes.
- `pyspy.speedscope`: `Stats` records stack traces per thread.
  - `to_dict()` returns the speedscope document.
  - `write(stream)` writes it to a text stream as one line of JSON.
- `pyspy.timer`: `Timer(rate)` is an iterator that sleeps between steps so that
  about `rate` steps happen per second. The intervals are exponentially
  distributed. Each step yields a `TimerTick(duration, late)`.
- `pyspy.libraries`: `is_python_lib(pathname, platform)` recognises libpython
  shared libraries. `platform` takes the values of `sys.platform`.
  `is_python_framework(pathname)` recognises macOS Python.framework libraries.
- `pyspy.process_info`: `MapRange`, `BinaryInfo`, `maps_contain_addr` and
  `PythonProcessInfo`.
  - `PythonProcessInfo.from_maps(exe, maps, parse_binary, platform)` picks out
    the interpreter executable and libpython among memory maps.
  - `get_symbol(symbol)` looks a symbol up in the executable first, then in libpython.

## Examples

Build a layout for CPython 3.7 and walk the stacks in a memory image:

```python
from pyspy import bindings_frames, bindings_interpreter, bindings_objects
from pyspy.layout import BytesMemory, InterpreterState, PythonLayout
from pyspy.stack_trace import get_stack_traces

objects = bindings_objects.structs("v3_7_0")
interp = bindings_interpreter.structs("v3_7_0")
frames = bindings_frames.structs("v3_7_0")

layout = PythonLayout(
    interpreter=interp["PyInterpreterState"],
    thread_state=interp["PyThreadState"],
    frame_object=frames["PyFrameObject"],
    code_object=frames["PyCodeObject"],
    bytes_object=objects["PyBytesObject"],
    string_object=objects["PyUnicodeObject"],
    ascii_object_size=objects["PyASCIIObject"].size,
    compact_object_size=objects["PyCompactUnicodeObject"].size,
)

memory = BytesMemory(base=0x1000, data=image)   # image: bytes copied from a process
interpreter = InterpreterState.read(memory, interpreter_address, layout)
for trace in get_stack_traces(interpreter, memory, layout):
    print(trace.thread_id, trace.status_str(), [f.name for f in trace.frames])
```

Recognise a shared interpreter library:

```python
from pyspy.libraries import is_python_lib

is_python_lib("/usr/local/lib/libpython3.8m.so", "linux")      # True
is_python_lib("/usr/lib/libboost_python-py35.so", "linux")     # False
```

Export samples for speedscope:

```python
from pyspy.speedscope import Stats

stats = Stats()
for trace in traces:
    stats.record(trace)

with open("profile.json", "w") as stream:
    stats.write(stream)
```

The file holds one sampled profile per thread. Frames are shared between the
profiles, and each sample lists its frames outermost first.

## What the package does not do

- It does not attach to or read a live process. You supply a `ProcessMemory`
  implementation, or a `BytesMemory` image.
- It does not parse executables. `PythonProcessInfo.from_maps` needs a
  `parse_binary` callable from you.
- It does not detect the interpreter version of a process, and it does not
  find the interpreter state address.
- It has no profiler driver that ties the pieces together, and it has no
  command-line tool.