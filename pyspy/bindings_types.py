"""Layouts of the type object and its method tables.

The layouts are those of a 64-bit build; the versions covered share them.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .bindings_objects import structs as _object_structs
from .layout import Struct

# (size, alignment, signed)
_PTR = (8, 8, False)
_SSIZE = (8, 8, True)
_INT = (4, 4, True)
_UINT = (4, 4, False)
_ULONG = (8, 8, False)


def _build(name: str, members: list[tuple[str, tuple[int, int, bool]]]) -> Struct:
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


def _pointers(names: str) -> list[tuple[str, tuple[int, int, bool]]]:
    return [(member, _PTR) for member in names.split()]


def _make_structs() -> Mapping[str, Struct]:
    var_object = _object_structs("v3_7_0")["PyVarObject"]
    ob_base = ("ob_base", (var_object.size, 8, False))

    type_object = _build(
        "_typeobject",
        [
            ob_base,
            ("tp_name", _PTR),
            ("tp_basicsize", _SSIZE),
            ("tp_itemsize", _SSIZE),
            *_pointers(
                "tp_dealloc tp_print tp_getattr tp_setattr tp_as_async tp_repr "
                "tp_as_number tp_as_sequence tp_as_mapping tp_hash tp_call tp_str "
                "tp_getattro tp_setattro tp_as_buffer"
            ),
            ("tp_flags", _ULONG),
            *_pointers("tp_doc tp_traverse tp_clear tp_richcompare"),
            ("tp_weaklistoffset", _SSIZE),
            *_pointers(
                "tp_iter tp_iternext tp_methods tp_members tp_getset tp_base "
                "tp_dict tp_descr_get tp_descr_set"
            ),
            ("tp_dictoffset", _SSIZE),
            *_pointers(
                "tp_init tp_alloc tp_new tp_free tp_is_gc tp_bases tp_mro "
                "tp_cache tp_subclasses tp_weaklist tp_del"
            ),
            ("tp_version_tag", _UINT),
            ("tp_finalize", _PTR),
        ],
    )

    number_methods = _build(
        "PyNumberMethods",
        _pointers(
            "nb_add nb_subtract nb_multiply nb_remainder nb_divmod nb_power "
            "nb_negative nb_positive nb_absolute nb_bool nb_invert nb_lshift "
            "nb_rshift nb_and nb_xor nb_or nb_int nb_reserved nb_float "
            "nb_inplace_add nb_inplace_subtract nb_inplace_multiply "
            "nb_inplace_remainder nb_inplace_power nb_inplace_lshift "
            "nb_inplace_rshift nb_inplace_and nb_inplace_xor nb_inplace_or "
            "nb_floor_divide nb_true_divide nb_inplace_floor_divide "
            "nb_inplace_true_divide nb_index nb_matrix_multiply "
            "nb_inplace_matrix_multiply"
        ),
    )
    sequence_methods = _build(
        "PySequenceMethods",
        _pointers(
            "sq_length sq_concat sq_repeat sq_item was_sq_slice sq_ass_item "
            "was_sq_ass_slice sq_contains sq_inplace_concat sq_inplace_repeat"
        ),
    )
    mapping_methods = _build(
        "PyMappingMethods", _pointers("mp_length mp_subscript mp_ass_subscript")
    )
    async_methods = _build("PyAsyncMethods", _pointers("am_await am_aiter am_anext"))
    buffer_procs = _build("PyBufferProcs", _pointers("bf_getbuffer bf_releasebuffer"))
    method_def = _build(
        "PyMethodDef",
        [("ml_name", _PTR), ("ml_meth", _PTR), ("ml_flags", _INT), ("ml_doc", _PTR)],
    )
    getset_def = _build("PyGetSetDef", _pointers("name get set doc closure"))
    buffer_info = _build(
        "bufferinfo",
        [
            *_pointers("buf obj"),
            ("len", _SSIZE),
            ("itemsize", _SSIZE),
            ("readonly", _INT),
            ("ndim", _INT),
            *_pointers("format shape strides suboffsets internal"),
        ],
    )

    return MappingProxyType(
        {
            struct.name: struct
            for struct in (
                type_object,
                number_methods,
                sequence_methods,
                mapping_methods,
                async_methods,
                buffer_procs,
                method_def,
                getset_def,
                buffer_info,
            )
        }
    )


_COMMON = _make_structs()

_BY_VERSION: Mapping[str, Mapping[str, Struct]] = {
    "v3_6_6": _COMMON,
    "v3_7_0": _COMMON,
}


def structs(version_key: str) -> dict[str, Struct]:
    """Return the type struct layouts for ``version_key`` (e.g. ``"v3_6_6"``)."""
    try:
        return dict(_BY_VERSION[version_key])
    except KeyError:
        raise KeyError(f"no type layouts for {version_key!r}") from None