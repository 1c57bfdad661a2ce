"""Solidity type syntax, method purity, and Keccak-256 hashing."""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Optional, Union

from Crypto.Hash import keccak as _keccak


class Purity(enum.IntEnum):
    """How much state a Solidity method may touch, ordered from least to most."""

    PURE = 0
    VIEW = 1
    WRITE = 2
    PAYABLE = 3

    def __str__(self) -> str:
        return self.name.lower()

    def __format__(self, spec: str) -> str:
        return format(str(self), spec)

    @classmethod
    def parse(cls, text: str) -> "Purity":
        """Return the purity named by ``text`` (``pure``, ``view``, ``write`` or ``payable``)."""
        for member in cls:
            if str(member) == text:
                return member
        raise ValueError(f"unknown purity: {text!r}")

    @classmethod
    def from_mutability(cls, mutable: bool) -> "Purity":
        """Purity required by a storage receiver: mutable access writes, shared access views."""
        return cls.WRITE if mutable else cls.VIEW


@dataclass(frozen=True)
class SolType:
    """A parsed Solidity type."""

    class Kind(enum.Enum):
        BOOL = "bool"
        ADDRESS = "address"
        STRING = "string"
        BYTES = "bytes"
        FIXED_BYTES = "fixed_bytes"
        UINT = "uint"
        INT = "int"
        ARRAY = "array"
        TUPLE = "tuple"
        CUSTOM = "custom"

    kind: "SolType.Kind"
    size: Optional[int] = None
    inner: Optional["SolType"] = None
    items: tuple["SolType", ...] = ()
    name: str = ""
    payable: bool = False

    def __str__(self) -> str:
        kind = self.kind
        k = SolType.Kind
        if kind is k.ADDRESS:
            return "address payable" if self.payable else "address"
        if kind in (k.BOOL, k.STRING, k.BYTES):
            return kind.value
        if kind is k.FIXED_BYTES:
            return f"bytes{self.size}"
        if kind in (k.UINT, k.INT):
            return f"{kind.value}{'' if self.size is None else self.size}"
        if kind is k.ARRAY:
            return f"{self.inner}[{'' if self.size is None else self.size}]"
        if kind is k.TUPLE:
            return "(" + ",".join(str(item) for item in self.items) + ")"
        return self.name


_TOKEN_RE = re.compile(r"[A-Za-z_$][A-Za-z0-9_$]*|\d+|\S")
_INT_RE = re.compile(r"^(u?int)(\d*)$")
_BYTES_RE = re.compile(r"^bytes(\d+)$")
_SIMPLE = {
    "bool": SolType.Kind.BOOL,
    "address": SolType.Kind.ADDRESS,
    "string": SolType.Kind.STRING,
    "bytes": SolType.Kind.BYTES,
}


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.tokens = _TOKEN_RE.findall(text)
        self.pos = 0

    def peek(self) -> Optional[str]:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def take(self) -> str:
        token = self.peek()
        if token is None:
            raise ValueError(f"unexpected end of Solidity type: {self.text!r}")
        self.pos += 1
        return token

    def expect(self, token: str) -> None:
        found = self.take()
        if found != token:
            raise ValueError(f"expected {token!r} but found {found!r} in {self.text!r}")

    def parse_type(self) -> SolType:
        if self.peek() == "(":
            self.take()
            items = []
            if self.peek() != ")":
                while True:
                    items.append(self.parse_type())
                    if self.peek() != ",":
                        break
                    self.take()
            self.expect(")")
            result = SolType(SolType.Kind.TUPLE, items=tuple(items))
        else:
            result = _base_type(self.take())
            if result.kind is SolType.Kind.ADDRESS and self.peek() == "payable":
                self.take()
                result = SolType(SolType.Kind.ADDRESS, payable=True)
        while self.peek() == "[":
            self.take()
            size = None
            token = self.peek()
            if token is not None and token.isdigit():
                size = int(self.take())
            self.expect("]")
            result = SolType(SolType.Kind.ARRAY, inner=result, size=size)
        return result


def _base_type(token: str) -> SolType:
    if token in _SIMPLE:
        return SolType(_SIMPLE[token])
    match = _INT_RE.match(token)
    if match:
        kind = SolType.Kind.UINT if match.group(1) == "uint" else SolType.Kind.INT
        if not match.group(2):
            return SolType(kind)
        bits = int(match.group(2))
        if bits == 0 or bits > 256 or bits % 8:
            raise ValueError(f"invalid integer size in {token!r}")
        return SolType(kind, size=bits)
    match = _BYTES_RE.match(token)
    if match:
        size = int(match.group(1))
        if not 1 <= size <= 32:
            raise ValueError(f"invalid fixed bytes size in {token!r}")
        return SolType(SolType.Kind.FIXED_BYTES, size=size)
    if token[0].isalpha() or token[0] in "_$":
        return SolType(SolType.Kind.CUSTOM, name=token)
    raise ValueError(f"unexpected token {token!r} in Solidity type")


def parse_sol_type(text: str) -> SolType:
    """Parse Solidity type syntax such as ``uint256[]`` or ``(address,bool)``."""
    parser = _Parser(text)
    result = parser.parse_type()
    if parser.peek() is not None:
        raise ValueError(f"trailing input {parser.peek()!r} in Solidity type {text!r}")
    return result


_SOL_DATA = "sol_data."


def solidity_type_info(ty: SolType) -> tuple[str, str]:
    """Return the codec path and the ABI name for a Solidity type."""
    k = SolType.Kind
    kind = ty.kind
    if kind in (k.BOOL, k.ADDRESS, k.STRING, k.BYTES):
        return f"{_SOL_DATA}{kind.value.capitalize()}", kind.value
    if kind is k.FIXED_BYTES:
        return f"FixedBytesSolType<{ty.size}>", f"bytes[{ty.size}]"
    if kind in (k.UINT, k.INT):
        size = 256 if ty.size is None else ty.size
        return f"{_SOL_DATA}{kind.value.capitalize()}<{size}>", f"{kind.value}{size}"
    if kind is k.ARRAY:
        path, abi = solidity_type_info(ty.inner)
        if ty.size is not None:
            return f"{_SOL_DATA}FixedArray<{path}, {ty.size}>", f"{abi}[{ty.size}]"
        return f"{_SOL_DATA}Array<{path}>", f"{abi}[]"
    if kind is k.TUPLE:
        if not ty.items:
            return "()", "()"
        if len(ty.items) == 1:
            return solidity_type_info(ty.items[0])
        infos = [solidity_type_info(item) for item in ty.items]
        path = "(" + ", ".join(p for p, _ in infos) + ")"
        abi = "(" + ",".join(a for _, a in infos) + ")"
        return path, abi
    raise ValueError(f"Solidity type {ty} is not supported in interfaces")


def keccak(preimage: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """Return the 32-byte Keccak-256 digest of ``preimage``; text is UTF-8 encoded."""
    if isinstance(preimage, str):
        preimage = preimage.encode("utf-8")
    hasher = _keccak.new(digest_bits=256)
    hasher.update(bytes(preimage))
    return hasher.digest()