import sys

import pytest

from pyspy.bindings_objects import UnicodeState, structs
from pyspy.layout import BytesMemory, PythonLayout, StringObject, Struct
from pyspy.stack_trace import StackTraceError, copy_bytes, copy_string

BASE = 0x10000
DUMMY = Struct("dummy", 8, {})


def _layout(key="v3_7_0"):
    s = structs(key)
    return PythonLayout(
        interpreter=DUMMY,
        thread_state=DUMMY,
        frame_object=DUMMY,
        code_object=DUMMY,
        bytes_object=s["PyBytesObject"],
        string_object=s["PyUnicodeObject"],
        pep393_strings=True,
        ascii_object_size=s["PyASCIIObject"].size,
        compact_object_size=s["PyCompactUnicodeObject"].size,
    )


def _put_int(memory, address, struct, field, value):
    offset, width, signed = struct.fields[field]
    memory.write(address + offset, value.to_bytes(width, sys.byteorder, signed=signed))


def _ascii_string(memory, address, text, key="v3_7_0"):
    s = structs(key)["PyUnicodeObject"]
    memory.write(address, bytes(s.size))
    _put_int(memory, address, s, "length", len(text))
    state = UnicodeState(kind=1, compact=True, ascii=True, ready=True)
    _put_int(memory, address, s, "state", state.pack())
    memory.write(address + structs(key)["PyASCIIObject"].size, text.encode("ascii"))


def _bytes_object(memory, address, data, key="v3_7_0"):
    s = structs(key)["PyBytesObject"]
    memory.write(address, bytes(s.size))
    _put_int(memory, address, s, "ob_size", len(data))
    memory.write(address + s.offset("ob_sval"), data)


@pytest.mark.parametrize("key", ["v3_6_6", "v3_7_0"])
def test_copy_string_round_trip(key):
    memory = BytesMemory(BASE)
    _ascii_string(memory, BASE, "function_name", key)
    assert copy_string(BASE, memory, _layout(key)) == "function_name"


@pytest.mark.parametrize("key", ["v3_6_6", "v3_7_0"])
def test_copy_bytes_round_trip(key):
    original = bytes([10, 20, 30, 40, 50, 70, 80])
    memory = BytesMemory(BASE)
    _bytes_object(memory, BASE, original, key)
    assert copy_bytes(BASE, memory, _layout(key)) == original


def test_packed_state_is_read_back_by_layout():
    memory = BytesMemory(BASE)
    s = structs("v3_7_0")["PyUnicodeObject"]
    memory.write(BASE, bytes(s.size))
    _put_int(memory, BASE, s, "length", 3)
    _put_int(memory, BASE, s, "state", UnicodeState(kind=4, compact=True).pack())
    obj = StringObject.read(memory, BASE, _layout())
    assert obj.kind == 4
    assert obj.ascii is False
    assert obj.data_address == BASE + structs("v3_7_0")["PyCompactUnicodeObject"].size


def test_non_compact_string_uses_data_pointer():
    memory = BytesMemory(BASE)
    s = structs("v3_7_0")["PyUnicodeObject"]
    memory.write(BASE, bytes(s.size))
    _put_int(memory, BASE, s, "length", 2)
    _put_int(memory, BASE, s, "state", UnicodeState(kind=1, ascii=True).pack())
    _put_int(memory, BASE, s, "data", BASE + 0x200)
    memory.write(BASE + 0x200, b"hi")
    assert copy_string(BASE, memory, _layout()) == "hi"


def test_ucs2_string_is_rejected():
    memory = BytesMemory(BASE)
    s = structs("v3_7_0")["PyUnicodeObject"]
    memory.write(BASE, bytes(s.size + 16))
    _put_int(memory, BASE, s, "length", 2)
    _put_int(memory, BASE, s, "state", UnicodeState(kind=2, compact=True).pack())
    with pytest.raises(StackTraceError):
        copy_string(BASE, memory, _layout())


@pytest.mark.parametrize(
    "state",
    [
        UnicodeState(),
        UnicodeState(interned=3, kind=7, compact=True, ascii=True, ready=True),
        UnicodeState(interned=1, kind=2, ready=True),
    ],
)
def test_state_round_trip(state):
    assert UnicodeState.unpack(state.pack()) == state


def test_state_pack_fits_in_a_byte():
    full = UnicodeState(interned=3, kind=7, compact=True, ascii=True, ready=True)
    assert full.pack() == 0xFF


@pytest.mark.parametrize("kwargs", [{"interned": 4}, {"kind": 8}, {"kind": -1}])
def test_state_rejects_out_of_range(kwargs):
    with pytest.raises(ValueError):
        UnicodeState(**kwargs)


def test_unpack_rejects_large_values():
    with pytest.raises(ValueError):
        UnicodeState.unpack(1 << 32)


def test_nested_structs_share_prefix_offsets():
    s = structs("v3_7_0")
    for outer, inner in [
        ("PyVarObject", "PyObject"),
        ("PyBytesObject", "PyVarObject"),
        ("PyASCIIObject", "PyObject"),
        ("PyCompactUnicodeObject", "PyASCIIObject"),
        ("PyUnicodeObject", "PyCompactUnicodeObject"),
    ]:
        assert s[outer].size >= s[inner].size
        for field, spec in s[inner].fields.items():
            assert s[outer].fields[field] == spec


def test_versions_agree_on_object_layouts():
    assert structs("v3_6_6") == structs("v3_7_0")


def test_unknown_version_key():
    with pytest.raises(KeyError):
        structs("v9_9_9")