import pytest
from hypothesis import given, strategies as st

from solkit.soltypes import (
    Purity,
    SolType,
    keccak,
    parse_sol_type,
    solidity_type_info,
)


@pytest.mark.parametrize("member", list(Purity))
def test_purity_parse_round_trip(member):
    assert Purity.parse(str(member)) is member


def test_purity_parse_unknown():
    with pytest.raises(ValueError):
        Purity.parse("mutable")


def test_purity_ordering():
    pure = Purity.parse("pure")
    view = Purity.parse("view")
    write = Purity.parse("write")
    payable = Purity.parse("payable")
    assert pure < view < write < payable
    assert sorted([payable, pure, write]) == [
        Purity.PURE,
        Purity.WRITE,
        Purity.PAYABLE,
    ]


def test_purity_from_mutability():
    assert Purity.from_mutability(True) is Purity.WRITE
    assert Purity.from_mutability(False) is Purity.VIEW


def test_purity_formats_as_name():
    assert f"{Purity.from_mutability(False)}" == "view"
    assert str(Purity.parse("payable")) == "payable"


@pytest.mark.parametrize(
    "text",
    ["bool", "address", "address payable", "string", "bytes", "bytes32",
     "uint8", "int256", "uint", "uint256[]", "bool[4][]", "(uint8,address)", "()"],
)
def test_parse_round_trip(text):
    assert str(parse_sol_type(text)) == text


def test_parse_tolerates_whitespace():
    assert parse_sol_type(" ( uint8 , bool [ 2 ] ) ") == parse_sol_type("(uint8,bool[2])")


@pytest.mark.parametrize(
    "text",
    ["bool", "address", "string", "bytes", "uint8", "int64", "uint256[]",
     "address[3]", "(bool,uint16[])", "(uint8,(bool,string))"],
)
def test_abi_matches_canonical_text(text):
    _, abi = solidity_type_info(parse_sol_type(text))
    assert abi == text


def test_default_integer_width():
    assert solidity_type_info(parse_sol_type("uint"))[1] == "uint256"
    assert solidity_type_info(parse_sol_type("int"))[1] == "int256"


def test_address_payable_abi_is_address():
    assert solidity_type_info(parse_sol_type("address payable")) == solidity_type_info(
        parse_sol_type("address")
    )


def test_empty_tuple():
    assert solidity_type_info(parse_sol_type("()")) == ("()", "()")


def test_single_tuple_is_inner():
    assert solidity_type_info(parse_sol_type("(uint8[])")) == solidity_type_info(
        parse_sol_type("uint8[]")
    )


def test_tuple_path_joins_parts():
    path, abi = solidity_type_info(parse_sol_type("(bool,uint8)"))
    bool_path, _ = solidity_type_info(parse_sol_type("bool"))
    assert path.startswith("(" + bool_path + ", ")
    assert path.endswith(")")
    assert abi == "(bool,uint8)"


def test_array_path_wraps_inner():
    inner_path, _ = solidity_type_info(parse_sol_type("bool"))
    path, _ = solidity_type_info(parse_sol_type("bool[7]"))
    assert inner_path in path and path.endswith(", 7>")


def test_custom_type_unsupported():
    ty = parse_sol_type("MyStruct")
    assert ty.kind is SolType.Kind.CUSTOM
    with pytest.raises(ValueError):
        solidity_type_info(ty)


@pytest.mark.parametrize("text", ["uint7", "int264", "bytes33", "bytes0", "uint256[", "(bool", "bool)", ""])
def test_parse_errors(text):
    with pytest.raises(ValueError):
        parse_sol_type(text)


@given(st.sampled_from(["bool", "uint8", "address", "bytes", "int128"]),
       st.lists(st.one_of(st.none(), st.integers(0, 50)), max_size=5))
def test_nested_arrays_round_trip(base, dims):
    text = base + "".join(f"[{'' if d is None else d}]" for d in dims)
    assert solidity_type_info(parse_sol_type(text))[1] == text


def test_keccak_empty():
    assert keccak(b"").hex() == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"


def test_keccak_selector_of_foo():
    assert keccak("foo()")[:4].hex() == "c2985578"


def test_keccak_text_equals_bytes():
    assert keccak("transfer(address,uint256)") == keccak(b"transfer(address,uint256)")
    assert len(keccak(bytearray(b"abc"))) == 32