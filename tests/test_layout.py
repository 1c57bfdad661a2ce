import pytest
from hypothesis import given
from hypothesis import strategies as st

from solkit.layout import (
    FieldPlacement,
    StorageField,
    StorageLayoutError,
    assign_slots,
    check_field_type,
    required_slots,
)


def byte_field(name, size):
    return StorageField(name, f"StorageUint<{size * 8}, 1>", size)


def test_check_field_type_returns_last_segment():
    assert check_field_type("stylus_sdk::storage::StorageMap<Address, StorageU256>") == "StorageMap"
    assert check_field_type("StorageAddress") == "StorageAddress"


@pytest.mark.parametrize("name", ["u8", "i128", "U64"])
def test_integers_rejected_with_hint(name):
    with pytest.raises(StorageLayoutError, match=f"Instead try `Storage{name.upper()}`"):
        check_field_type(name)


def test_bool_rejected_with_hint():
    with pytest.raises(StorageLayoutError, match="StorageBool"):
        check_field_type("bool")


def test_floats_rejected():
    with pytest.raises(StorageLayoutError, match="fixed-point"):
        check_field_type("core::primitive::f64")


@pytest.mark.parametrize("name", ["usize", "isize"])
def test_pointer_sized_rejected(name):
    with pytest.raises(StorageLayoutError, match=f"Type `{name}` not supported"):
        check_field_type(name)


@pytest.mark.parametrize("name", ["&StorageU256", "[u8; 4]", "(StorageBool, StorageBool)"])
def test_complex_types_rejected(name):
    with pytest.raises(StorageLayoutError, match="Type not supported for EVM state storage"):
        check_field_type(name)


def test_empty_struct_takes_one_slot():
    assert required_slots([]) == 1
    assert assign_slots([]) == []


def test_small_fields_pack_into_one_word():
    fields = [byte_field(f"f{i}", 1) for i in range(32)]
    assert required_slots(fields) == 1
    assert {p.slot for p in assign_slots(fields)} == {0}


def test_overflowing_word_starts_new_slot():
    fields = [byte_field(f"f{i}", 1) for i in range(33)]
    placements = assign_slots(fields)
    assert placements[-1].slot == placements[0].slot + 1
    assert required_slots(fields) == placements[-1].slot + 1


def test_first_field_packs_at_high_end():
    placement = assign_slots([byte_field("owner", 20)])[0]
    assert placement == FieldPlacement("owner", "StorageUint<160, 1>", 0, 32 - 20)


def test_word_field_advances_slots():
    fields = [
        StorageField("sub", "SubStruct", 32, 3),
        byte_field("flag", 1),
    ]
    placements = assign_slots(fields)
    assert placements[1].slot == placements[0].slot + 3
    assert required_slots(fields) == 4


def test_unnamed_fields_skipped():
    fields = [StorageField(None, "StorageU256", 32), byte_field("a", 1)]
    assert [p.name for p in assign_slots(fields)] == ["a"]
    assert required_slots(fields) == required_slots(fields[1:])


def test_invalid_field_type_raises_in_layout():
    with pytest.raises(StorageLayoutError):
        required_slots([StorageField("x", "u32", 4)])
    with pytest.raises(StorageLayoutError):
        assign_slots([StorageField("x", "f32", 4)])


def test_field_bounds():
    with pytest.raises(StorageLayoutError):
        StorageField("x", "StorageU256", 33)
    with pytest.raises(StorageLayoutError):
        StorageField("x", "StorageU256", 32, -1)


def test_root_out_of_range():
    with pytest.raises(StorageLayoutError):
        assign_slots([byte_field("a", 1)], root=1 << 256)


field_sizes = st.lists(st.integers(min_value=1, max_value=32), min_size=1, max_size=40)


@given(field_sizes)
def test_value_fields_slots_match_required(sizes):
    fields = [byte_field(f"f{i}", size) for i, size in enumerate(sizes)]
    placements = assign_slots(fields)
    assert required_slots(fields) == max(p.slot for p in placements) + 1
    for placement, size in zip(placements, sizes):
        assert 0 <= placement.offset <= 32 - size
    slots = [p.slot for p in placements]
    assert slots == sorted(slots)


@given(field_sizes, st.integers(min_value=0, max_value=(1 << 256) - 1))
def test_root_shifts_slots(sizes, root):
    fields = [byte_field(f"f{i}", size) for i, size in enumerate(sizes)]
    base = assign_slots(fields)
    shifted = assign_slots(fields, root=root)
    assert [p.slot for p in shifted] == [(p.slot + root) % (1 << 256) for p in base]
    assert [p.offset for p in shifted] == [p.offset for p in base]