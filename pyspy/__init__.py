"""CPython struct layouts, stack walking over process memory, and speedscope export."""

__version__ = "0.1.0"

__all__ = [
    "layout",
    "bindings_objects",
    "bindings_types",
    "bindings_interpreter",
    "bindings_frames",
    "stack_trace",
    "speedscope",
    "timer",
    "libraries",
    "process_info",
]