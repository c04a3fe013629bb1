"""Layouts of the code object, try block and frame object structs.

The layouts are those of a 64-bit build.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .bindings_objects import structs as _object_structs
from .layout import POINTER_SIZE, Struct

# (size, alignment, signed)
_Spec = tuple[int, int, bool]
_PTR: _Spec = (POINTER_SIZE, POINTER_SIZE, False)
_INT: _Spec = (4, 4, True)
_CHAR: _Spec = (1, 1, True)

_TRY_BLOCKS = 20


def _build(name: str, members: list[tuple[str, _Spec]]) -> Struct:
    """Lay out ``members`` in order with C alignment rules."""
    fields: dict[str, tuple[int, int, bool]] = {}
    offset = 0
    max_align = 1
    for member, (size, align, signed) in members:
        offset = -(-offset // align) * align
        fields[member] = (offset, size, signed)
        offset += size
        max_align = max(max_align, align)
    total = -(-offset // max_align) * max_align
    return Struct(name, total, fields)


def _pointers(names: str) -> list[tuple[str, _Spec]]:
    return [(member, _PTR) for member in names.split()]


def _ints(names: str) -> list[tuple[str, _Spec]]:
    return [(member, _INT) for member in names.split()]


def _object_base(version_key: str, name: str) -> tuple[str, _Spec]:
    base = _object_structs(version_key)[name]
    return ("ob_base", (base.size, POINTER_SIZE, False))


def _code_object(version_key: str) -> Struct:
    return _build(
        "PyCodeObject",
        [
            _object_base(version_key, "PyObject"),
            *_ints("co_argcount co_kwonlyargcount co_nlocals co_stacksize co_flags co_firstlineno"),
            *_pointers(
                "co_code co_consts co_names co_varnames co_freevars co_cellvars "
                "co_cell2arg co_filename co_name co_lnotab co_zombieframe "
                "co_weakreflist co_extra"
            ),
        ],
    )


def _try_block() -> Struct:
    return _build("PyTryBlock", _ints("b_type b_handler b_level"))


def _frame_tail(try_block: Struct) -> list[tuple[str, _Spec]]:
    return [
        *_ints("f_lasti f_lineno f_iblock"),
        ("f_executing", _CHAR),
        ("f_blockstack", (try_block.size * _TRY_BLOCKS, 4, False)),
        ("f_localsplus", _PTR),
    ]


def _v3_6_6() -> Mapping[str, Struct]:
    try_block = _try_block()
    frame = _build(
        "_frame",
        [
            _object_base("v3_6_6", "PyVarObject"),
            *_pointers(
                "f_back f_code f_builtins f_globals f_locals f_valuestack "
                "f_stacktop f_trace f_exc_type f_exc_value f_exc_traceback f_gen"
            ),
            *_frame_tail(try_block),
        ],
    )
    return _with_aliases([_code_object("v3_6_6"), try_block, frame])


def _v3_7_0() -> Mapping[str, Struct]:
    try_block = _try_block()
    frame = _build(
        "_frame",
        [
            _object_base("v3_7_0", "PyVarObject"),
            *_pointers(
                "f_back f_code f_builtins f_globals f_locals f_valuestack f_stacktop f_trace"
            ),
            ("f_trace_lines", _CHAR),
            ("f_trace_opcodes", _CHAR),
            ("f_gen", _PTR),
            *_frame_tail(try_block),
        ],
    )
    return _with_aliases([_code_object("v3_7_0"), try_block, frame])


def _with_aliases(items: list[Struct]) -> Mapping[str, Struct]:
    table = {struct.name: struct for struct in items}
    table["PyFrameObject"] = table["_frame"]
    return MappingProxyType(table)


_BY_VERSION: Mapping[str, Mapping[str, Struct]] = {
    "v3_6_6": _v3_6_6(),
    "v3_7_0": _v3_7_0(),
}


def structs(version_key: str) -> dict[str, Struct]:
    """Return the code and frame object layouts for ``version_key``."""
    try:
        return dict(_BY_VERSION[version_key])
    except KeyError:
        raise KeyError(f"no frame layouts for {version_key!r}") from None