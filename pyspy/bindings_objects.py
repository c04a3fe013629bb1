"""Layouts of the basic object structs (object header, bytes, unicode).

The layouts are those of a 64-bit build; the versions covered share them.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from .layout import Struct

_INTERNED_BITS = 2
_KIND_BITS = 3


@dataclass(frozen=True)
class UnicodeState:
    """The ``state`` bit field of a PyASCIIObject."""

    interned: int = 0
    kind: int = 1
    compact: bool = False
    ascii: bool = False
    ready: bool = False

    def __post_init__(self) -> None:
        if not 0 <= self.interned < (1 << _INTERNED_BITS):
            raise ValueError(f"interned out of range: {self.interned}")
        if not 0 <= self.kind < (1 << _KIND_BITS):
            raise ValueError(f"kind out of range: {self.kind}")

    def pack(self) -> int:
        """Encode as the 32-bit integer stored in memory."""
        return (
            self.interned
            | self.kind << 2
            | int(self.compact) << 5
            | int(self.ascii) << 6
            | int(self.ready) << 7
        )

    @classmethod
    def unpack(cls, value: int) -> UnicodeState:
        """Decode the integer stored in memory."""
        if not 0 <= value < (1 << 32):
            raise ValueError(f"state does not fit in 32 bits: {value}")
        return cls(
            interned=value & 0b11,
            kind=(value >> 2) & 0b111,
            compact=bool((value >> 5) & 1),
            ascii=bool((value >> 6) & 1),
            ready=bool((value >> 7) & 1),
        )


_OBJECT_FIELDS = {"ob_refcnt": (0, 8, True), "ob_type": (8, 8, False)}
_VAR_FIELDS = {**_OBJECT_FIELDS, "ob_size": (16, 8, True)}
_ASCII_FIELDS = {
    **_OBJECT_FIELDS,
    "length": (16, 8, True),
    "hash": (24, 8, True),
    "state": (32, 4, False),
    "wstr": (40, 8, False),
}
_COMPACT_FIELDS = {
    **_ASCII_FIELDS,
    "utf8_length": (48, 8, True),
    "utf8": (56, 8, False),
    "wstr_length": (64, 8, True),
}

_COMMON = MappingProxyType(
    {
        "PyObject": Struct("PyObject", 16, _OBJECT_FIELDS),
        "PyVarObject": Struct("PyVarObject", 24, _VAR_FIELDS),
        "PyBytesObject": Struct(
            "PyBytesObject",
            40,
            {**_VAR_FIELDS, "ob_shash": (24, 8, True), "ob_sval": (32, 1, True)},
        ),
        "PyASCIIObject": Struct("PyASCIIObject", 48, _ASCII_FIELDS),
        "PyCompactUnicodeObject": Struct("PyCompactUnicodeObject", 72, _COMPACT_FIELDS),
        "PyUnicodeObject": Struct(
            "PyUnicodeObject", 80, {**_COMPACT_FIELDS, "data": (72, 8, False)}
        ),
    }
)

_BY_VERSION: Mapping[str, Mapping[str, Struct]] = {
    "v3_6_6": _COMMON,
    "v3_7_0": _COMMON,
}


def structs(version_key: str) -> dict[str, Struct]:
    """Return the object struct layouts for ``version_key`` (e.g. ``"v3_7_0"``)."""
    try:
        return dict(_BY_VERSION[version_key])
    except KeyError:
        raise KeyError(f"no object layouts for {version_key!r}") from None