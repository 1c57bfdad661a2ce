"""Solidity ABI names for value types, and method selectors."""

from __future__ import annotations

from dataclasses import dataclass

from solkit.soltypes import keccak

MAX_CONST_STRING_LENGTH = 1024
MAX_TUPLE_LENGTH = 24


def _bounded(text: str) -> str:
    if len(text.encode("utf-8")) > MAX_CONST_STRING_LENGTH:
        raise ValueError(f"ABI string longer than {MAX_CONST_STRING_LENGTH} bytes")
    return text


def from_decimal_number(number: int) -> str:
    """Render a non-negative integer in decimal, within the ABI string bound."""
    if number < 0:
        raise ValueError("number must be non-negative")
    text = str(number)
    if len(text) > MAX_CONST_STRING_LENGTH:
        raise ValueError("from_decimal_number: too many digits")
    return text


@dataclass(frozen=True)
class AbiType:
    """The Solidity names a value type takes in signatures and exported interfaces."""

    abi: str
    export_abi_arg: str = ""
    export_abi_ret: str = ""
    can_be_calldata: bool = True

    def __post_init__(self) -> None:
        _bounded(self.abi)
        if not self.export_abi_arg:
            object.__setattr__(self, "export_abi_arg", self.abi)
        if not self.export_abi_ret:
            object.__setattr__(self, "export_abi_ret", self.abi)
        _bounded(self.export_abi_arg)
        _bounded(self.export_abi_ret)


def _check_int_bits(bits: int) -> None:
    if bits < 8 or bits > 256 or bits % 8:
        raise ValueError(f"unsupported integer width: {bits}")


def uint(bits: int) -> AbiType:
    """Unsigned integer of ``bits`` bits (8 to 256, a multiple of 8)."""
    _check_int_bits(bits)
    return AbiType("uint" + from_decimal_number(bits))


def int_type(bits: int) -> AbiType:
    """Signed integer of ``bits`` bits (8 to 256, a multiple of 8)."""
    _check_int_bits(bits)
    return AbiType("int" + from_decimal_number(bits))


def fixed_bytes(size: int) -> AbiType:
    """Fixed-size byte array ``bytesN`` with 1 <= N <= 32."""
    if not 1 <= size <= 32:
        raise ValueError(f"unsupported fixed bytes size: {size}")
    return AbiType("bytes" + from_decimal_number(size))


def vec(inner: AbiType) -> AbiType:
    """Dynamic array of ``inner``; never passed as calldata."""
    memory = inner.abi + "[] memory"
    return AbiType(inner.abi + "[]", memory, memory, can_be_calldata=False)


def array(inner: AbiType, size: int) -> AbiType:
    """Fixed-length array of ``size`` elements of ``inner``."""
    abi = f"{inner.abi}[{from_decimal_number(size)}]"
    location = " calldata" if inner.can_be_calldata else " memory"
    return AbiType(abi, abi + location, abi + " memory", inner.can_be_calldata)


def tuple_of(*args: AbiType) -> AbiType:
    """Tuple of the given types; the empty tuple is ``()``."""
    if not args:
        return UNIT
    if len(args) > MAX_TUPLE_LENGTH:
        raise ValueError(f"tuples hold at most {MAX_TUPLE_LENGTH} elements")
    return AbiType(
        "(" + ",".join(a.abi for a in args) + ")",
        "(" + ", ".join(a.export_abi_arg for a in args) + ")",
        "(" + ", ".join(a.export_abi_ret for a in args) + ")",
        can_be_calldata=False,
    )


BOOL = AbiType("bool")
ADDRESS = AbiType("address")
STRING = AbiType("string", "string calldata", "string memory")
BYTES = AbiType("bytes", "bytes calldata", "bytes memory")
UNIT = AbiType("()")

U8, U16, U32, U64, U128, U256 = (uint(b) for b in (8, 16, 32, 64, 128, 256))
I8, I16, I32, I64, I128, I256 = (int_type(b) for b in (8, 16, 32, 64, 128, 256))


def digest_to_selector(digest: bytes) -> bytes:
    """The first four bytes of a 32-byte digest."""
    if len(digest) != 32:
        raise ValueError("digest must be 32 bytes")
    return bytes(digest[:4])


def function_selector(name: str, *args: AbiType) -> bytes:
    """The 4-byte selector of method ``name`` taking ``args``."""
    signature = f"{name}(" + ",".join(a.abi for a in args) + ")"
    return digest_to_selector(keccak(signature))


def solidity_returns(ty: AbiType) -> str:
    """The ``returns`` clause of an exported method returning ``ty``."""
    abi = ty.export_abi_ret
    if abi == "()":
        return ""
    if abi.startswith("("):
        return f" returns {abi}"
    return f" returns ({abi})"