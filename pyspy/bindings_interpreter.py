"""Layouts of the interpreter and thread state structs.

The layouts are those of a 64-bit build.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType

from .layout import POINTER_SIZE, Struct

# (size, alignment, signed)
_Spec = tuple[int, int, bool]
_PTR: _Spec = (POINTER_SIZE, POINTER_SIZE, False)
_SSIZE: _Spec = (8, 8, True)
_INT: _Spec = (4, 4, True)
_CHAR: _Spec = (1, 1, True)
_LONG: _Spec = (8, 8, True)
_ULONG: _Spec = (8, 8, False)
_I64: _Spec = (8, 8, True)
_U64: _Spec = (8, 8, False)


def _array(count: int, spec: _Spec) -> _Spec:
    size, align, signed = spec
    return (size * count, align, signed)


def _nested(struct: Struct) -> _Spec:
    return (struct.size, POINTER_SIZE, False)


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


def _v3_6_6() -> Mapping[str, Struct]:
    interpreter = _build(
        "_is",
        [
            *_pointers(
                "next tstate_head modules modules_by_index sysdict builtins "
                "importlib codec_search_path codec_search_cache codec_error_registry"
            ),
            ("codecs_initialized", _INT),
            ("fscodec_initialized", _INT),
            ("dlopenflags", _INT),
            *_pointers("builtins_copy import_func eval_frame"),
        ],
    )
    thread_state = _build(
        "_ts",
        [
            *_pointers("prev next interp frame"),
            ("recursion_depth", _INT),
            ("overflowed", _CHAR),
            ("recursion_critical", _CHAR),
            ("tracing", _INT),
            ("use_tracing", _INT),
            *_pointers(
                "c_profilefunc c_tracefunc c_profileobj c_traceobj curexc_type "
                "curexc_value curexc_traceback exc_type exc_value exc_traceback dict"
            ),
            ("gilstate_counter", _INT),
            ("async_exc", _PTR),
            ("thread_id", _LONG),
            ("trash_delete_nesting", _INT),
            *_pointers("trash_delete_later on_delete on_delete_data coroutine_wrapper"),
            ("in_coroutine_wrapper", _INT),
            ("_preserve_36_ABI_1", _SSIZE),
            ("_preserve_36_ABI_2", _array(255, _PTR)),
            *_pointers("async_gen_firstiter async_gen_finalizer"),
        ],
    )
    return _with_aliases([interpreter, thread_state])


def _v3_7_0() -> Mapping[str, Struct]:
    core_config = _build(
        "_PyCoreConfig",
        [
            ("install_signal_handlers", _INT),
            ("ignore_environment", _INT),
            ("use_hash_seed", _INT),
            ("hash_seed", _ULONG),
            ("allocator", _PTR),
            *[
                (member, _INT)
                for member in (
                    "dev_mode faulthandler tracemalloc import_time show_ref_count "
                    "show_alloc_count dump_refs malloc_stats coerce_c_locale "
                    "coerce_c_locale_warn utf8_mode"
                ).split()
            ],
            ("program_name", _PTR),
            ("argc", _INT),
            *_pointers("argv program"),
            ("nxoption", _INT),
            ("xoptions", _PTR),
            ("nwarnoption", _INT),
            *_pointers("warnoptions module_search_path_env home"),
            ("nmodule_search_path", _INT),
            *_pointers(
                "module_search_paths executable prefix base_prefix exec_prefix "
                "base_exec_prefix"
            ),
            ("_disable_importlib", _INT),
        ],
    )
    main_config = _build(
        "_PyMainInterpreterConfig",
        [
            ("install_signal_handlers", _INT),
            *_pointers(
                "argv executable prefix base_prefix exec_prefix base_exec_prefix "
                "warnoptions xoptions module_search_path"
            ),
        ],
    )
    err_stackitem = _build(
        "_err_stackitem", _pointers("exc_type exc_value exc_traceback previous_item")
    )
    interpreter = _build(
        "_is",
        [
            *_pointers("next tstate_head"),
            ("id", _I64),
            ("id_refcount", _I64),
            *_pointers("id_mutex modules modules_by_index sysdict builtins importlib"),
            ("check_interval", _INT),
            ("num_threads", _LONG),
            ("pythread_stacksize", _U64),
            *_pointers("codec_search_path codec_search_cache codec_error_registry"),
            ("codecs_initialized", _INT),
            ("fscodec_initialized", _INT),
            ("core_config", _nested(core_config)),
            ("config", _nested(main_config)),
            ("dlopenflags", _INT),
            *_pointers("builtins_copy import_func eval_frame"),
            ("co_extra_user_count", _SSIZE),
            ("co_extra_freefuncs", _array(255, _PTR)),
            *_pointers(
                "before_forkers after_forkers_parent after_forkers_child "
                "pyexitfunc pyexitmodule"
            ),
            ("tstate_next_unique_id", _U64),
        ],
    )
    thread_state = _build(
        "_ts",
        [
            *_pointers("prev next interp frame"),
            ("recursion_depth", _INT),
            ("overflowed", _CHAR),
            ("recursion_critical", _CHAR),
            ("stackcheck_counter", _INT),
            ("tracing", _INT),
            ("use_tracing", _INT),
            *_pointers(
                "c_profilefunc c_tracefunc c_profileobj c_traceobj curexc_type "
                "curexc_value curexc_traceback"
            ),
            ("exc_state", _nested(err_stackitem)),
            *_pointers("exc_info dict"),
            ("gilstate_counter", _INT),
            ("async_exc", _PTR),
            ("thread_id", _ULONG),
            ("trash_delete_nesting", _INT),
            *_pointers("trash_delete_later on_delete on_delete_data"),
            ("coroutine_origin_tracking_depth", _INT),
            ("coroutine_wrapper", _PTR),
            ("in_coroutine_wrapper", _INT),
            *_pointers("async_gen_firstiter async_gen_finalizer context"),
            ("context_ver", _U64),
            ("id", _U64),
        ],
    )
    return _with_aliases([core_config, main_config, err_stackitem, interpreter, thread_state])


def _with_aliases(items: list[Struct]) -> Mapping[str, Struct]:
    table = {struct.name: struct for struct in items}
    table["PyInterpreterState"] = table["_is"]
    table["PyThreadState"] = table["_ts"]
    if "_err_stackitem" in table:
        table["_PyErr_StackItem"] = table["_err_stackitem"]
    return MappingProxyType(table)


_BY_VERSION: Mapping[str, Mapping[str, Struct]] = {
    "v3_6_6": _v3_6_6(),
    "v3_7_0": _v3_7_0(),
}


def structs(version_key: str) -> dict[str, Struct]:
    """Return the interpreter and thread state layouts for ``version_key``."""
    try:
        return dict(_BY_VERSION[version_key])
    except KeyError:
        raise KeyError(f"no interpreter layouts for {version_key!r}") from None