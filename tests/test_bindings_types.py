import pytest

from pyspy.bindings_objects import structs as object_structs
from pyspy.bindings_types import structs

VERSIONS = ["v3_6_6", "v3_7_0"]


def test_unknown_version_raises():
    with pytest.raises(KeyError):
        structs("v9_9_9")


def test_versions_share_layouts():
    assert structs("v3_6_6") == structs("v3_7_0")


@pytest.mark.parametrize("version", VERSIONS)
def test_fields_do_not_overlap_and_are_aligned(version):
    for struct in structs(version).values():
        spans = sorted(struct.fields.values())
        for (offset, width, _), (next_offset, _, _) in zip(spans, spans[1:]):
            assert offset + width <= next_offset
        for offset, width, _ in spans:
            assert offset % min(width, 8) == 0
        assert struct.size % 8 == 0


@pytest.mark.parametrize("version", VERSIONS)
def test_method_tables_are_arrays_of_pointers(version):
    tables = structs(version)
    for name in (
        "PyNumberMethods",
        "PySequenceMethods",
        "PyMappingMethods",
        "PyAsyncMethods",
        "PyBufferProcs",
        "PyGetSetDef",
    ):
        table = tables[name]
        assert table.size == 8 * len(table.fields)
        assert all(width == 8 for _, width, _ in table.fields.values())


def test_type_object_header():
    type_object = structs("v3_7_0")["_typeobject"]
    var_object = object_structs("v3_7_0")["PyVarObject"]
    assert type_object.offset("ob_base") == 0
    assert type_object.offset("tp_name") == var_object.size


def test_type_object_size():
    type_object = structs("v3_6_6")["_typeobject"]
    assert type_object.size == 400
    offset, width, _ = type_object.fields["tp_finalize"]
    assert offset + width == type_object.size


def test_method_def_flags_follow_pointers():
    method_def = structs("v3_7_0")["PyMethodDef"]
    assert method_def.offset("ml_flags") == 16
    assert method_def.offset("ml_doc") > method_def.offset("ml_flags")


def test_unknown_field_raises():
    with pytest.raises(KeyError):
        structs("v3_7_0")["PyMethodDef"].offset("ml_missing")


def test_returned_dict_is_a_copy():
    first = structs("v3_7_0")
    first.pop("PyMethodDef")
    assert "PyMethodDef" in structs("v3_7_0")