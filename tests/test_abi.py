import pytest
from hypothesis import given, strategies as st

from solkit.abi import (
    ADDRESS,
    BOOL,
    BYTES,
    I8,
    I16,
    I32,
    I64,
    I128,
    I256,
    MAX_CONST_STRING_LENGTH,
    STRING,
    U8,
    U16,
    U32,
    U64,
    U128,
    U256,
    UNIT,
    AbiType,
    array,
    digest_to_selector,
    fixed_bytes,
    from_decimal_number,
    function_selector,
    int_type,
    solidity_returns,
    tuple_of,
    uint,
    vec,
)
from solkit.soltypes import keccak, parse_sol_type

CASES = [
    (BYTES, "bytes calldata"),
    (U256, "uint256"),
    (I256, "int256"),
    (U8, "uint8"),
    (I8, "int8"),
    (U16, "uint16"),
    (I16, "int16"),
    (U32, "uint32"),
    (I32, "int32"),
    (U64, "uint64"),
    (I64, "int64"),
    (U128, "uint128"),
    (I128, "int128"),
    (BOOL, "bool"),
    (ADDRESS, "address"),
    (vec(U8), "uint8[] memory"),
    (vec(U256), "uint256[] memory"),
    (vec(BYTES), "bytes[] memory"),
    (vec(fixed_bytes(18)), "bytes18[] memory"),
    (array(BOOL, 5), "bool[5] calldata"),
    (array(array(U32, 2), 4), "uint32[2][4] calldata"),
    (vec(fixed_bytes(32)), "bytes32[] memory"),
    (UNIT, "()"),
    (tuple_of(U8), "(uint8)"),
    (tuple_of(U256), "(uint256)"),
    (tuple_of(U8, U8), "(uint8, uint8)"),
    (tuple_of(U8, U256), "(uint8, uint256)"),
    (
        tuple_of(U8, vec(U256), BYTES, fixed_bytes(2), array(vec(BOOL), 8)),
        "(uint8, uint256[] memory, bytes calldata, bytes2, bool[][8] memory)",
    ),
]


@pytest.mark.parametrize("ty,as_arg", CASES)
def test_export_abi_arg(ty, as_arg):
    assert ty.export_abi_arg == as_arg
    assert tuple_of(ty).export_abi_arg == f"({as_arg})"


@pytest.mark.parametrize("ty,as_arg", CASES)
def test_abi_is_a_solidity_type_name(ty, as_arg):
    assert str(parse_sol_type(ty.abi)) == ty.abi


def test_from_decimal():
    for i in list(range(0, 101)) + [1000, 1001]:
        assert from_decimal_number(i) == str(i)


@given(st.integers(min_value=0, max_value=10**300))
def test_from_decimal_property(n):
    assert int(from_decimal_number(n)) == n


def test_from_decimal_negative():
    with pytest.raises(ValueError):
        from_decimal_number(-1)


def test_function_selector():
    assert int.from_bytes(function_selector("foo"), "big") == 0xC2985578
    assert function_selector("foo", ADDRESS) == bytes([0xFD, 0xF8, 0x0B, 0xDA])
    assert function_selector("foo", ADDRESS, U256) == (0xBD0D639F).to_bytes(4, "big")


def test_digest_to_selector():
    digest = keccak(b"foo()")
    assert digest_to_selector(digest) == digest[:4]
    with pytest.raises(ValueError):
        digest_to_selector(b"\x00" * 31)


def test_string_locations():
    assert tuple_of(STRING).export_abi_arg == "(string calldata)"
    assert tuple_of(STRING).export_abi_ret == "(string memory)"
    assert solidity_returns(STRING) == " returns (string memory)"


def test_array_of_non_calldata_is_memory():
    ty = array(vec(BOOL), 3)
    assert ty.export_abi_arg == "bool[][3] memory"
    assert ty.can_be_calldata is False


def test_defaults_follow_abi():
    ty = AbiType("uint8")
    assert ty.export_abi_arg == ty.export_abi_ret == "uint8"
    assert ty.can_be_calldata is True


def test_tuple_is_never_calldata():
    assert tuple_of(U8, BOOL).can_be_calldata is False
    assert tuple_of(U8, BOOL).abi == "(uint8,bool)"


def test_empty_tuple_is_unit():
    assert tuple_of() == UNIT


def test_tuple_limit():
    assert tuple_of(*[U8] * 24).abi.count("uint8") == 24
    with pytest.raises(ValueError):
        tuple_of(*[U8] * 25)


@pytest.mark.parametrize("bits", [0, 7, 264, 300])
def test_bad_int_widths(bits):
    with pytest.raises(ValueError):
        uint(bits)
    with pytest.raises(ValueError):
        int_type(bits)


@pytest.mark.parametrize("size", [0, 33])
def test_bad_fixed_bytes(size):
    with pytest.raises(ValueError):
        fixed_bytes(size)


def test_abi_string_bound():
    ty = U8
    with pytest.raises(ValueError):
        for _ in range(MAX_CONST_STRING_LENGTH):
            ty = vec(ty)


def test_solidity_returns():
    assert solidity_returns(UNIT) == ""
    assert solidity_returns(U256) == " returns (uint256)"
    assert solidity_returns(STRING) == " returns (string memory)"
    assert solidity_returns(tuple_of(STRING, U256)) == " returns (string memory, uint256)"