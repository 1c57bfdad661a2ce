"""Parsing of Solidity-style storage struct declarations into storage type names."""

from __future__ import annotations

import re
from dataclasses import dataclass

_UINT_RE = re.compile(r"^uint(\d+)$")
_INT_RE = re.compile(r"^int(\d+)$")
_BYTES_RE = re.compile(r"^bytes(\d+)$")
_LOWER_RE = re.compile(r"^[0-9a-z]+$")
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SIZE_RE = re.compile(r"^[0-9]+$")

_TOKEN_RE = re.compile(
    r"""
      (?P<ws>\s+)
    | (?P<doc>///[^\n]*)
    | (?P<comment>//[^\n]*|/\*.*?\*/)
    | (?P<tok>"(?:\\.|[^"\\])*"|::|=>|[A-Za-z_][A-Za-z0-9_]*|\d[A-Za-z0-9_]*|\S)
    """,
    re.VERBOSE | re.DOTALL,
)


class StorageSyntaxError(ValueError):
    """Raised when a storage declaration cannot be parsed or uses an unsupported type."""


@dataclass(frozen=True)
class SolidityField:
    """A field: its attributes, its name, and its storage type."""

    attrs: tuple[str, ...]
    name: str
    ty: str


@dataclass(frozen=True)
class SolidityStruct:
    """A storage struct declaration."""

    attrs: tuple[str, ...]
    vis: str
    name: str
    generics: str
    fields: tuple[SolidityField, ...]


def _limbs(bits: int) -> int:
    return (63 + bits) // 64


def primitive_type(name: str) -> str:
    """The storage type for a Solidity value type name; other paths pass through."""
    if not _IDENT_RE.match(name):
        return name
    match = _UINT_RE.match(name)
    if match:
        bits = int(match.group(1))
        if bits > 256:
            raise StorageSyntaxError("Type not supported: too many bits")
        return f"StorageUint<{bits}, {_limbs(bits)}>"
    match = _INT_RE.match(name)
    if match:
        bits = int(match.group(1))
        if bits > 256:
            raise StorageSyntaxError("Type not supported: too many bits")
        return f"StorageSigned<{bits}, {_limbs(bits)}>"
    match = _BYTES_RE.match(name)
    if match:
        size = int(match.group(1))
        if size > 32:
            raise StorageSyntaxError("Type not supported: too many bytes")
        return f"StorageFixedBytes<{size}>"
    simple = {
        "address": "StorageAddress",
        "bool": "StorageBool",
        "bytes": "StorageBytes",
        "int": "StorageI256",
        "string": "StorageString",
        "uint": "StorageU256",
    }
    if name in simple:
        return simple[name]
    if _LOWER_RE.match(name):
        raise StorageSyntaxError("Type not supported")
    return name


def primitive_key(name: str) -> str:
    """The value type used as a mapping key for a Solidity type name; other paths pass through."""
    if not _IDENT_RE.match(name):
        return name
    match = _UINT_RE.match(name)
    if match:
        bits = int(match.group(1))
        if bits > 256:
            raise StorageSyntaxError("Type not supported: too many bits")
        return f"Uint<{bits}, {_limbs(bits)}>"
    match = _INT_RE.match(name)
    if match:
        bits = int(match.group(1))
        if bits > 256:
            raise StorageSyntaxError("Type not supported: too many bits")
        return f"Signed<{bits}, {_limbs(bits)}>"
    match = _BYTES_RE.match(name)
    if match:
        size = int(match.group(1))
        if size > 32:
            raise StorageSyntaxError("Type not supported: too many bytes")
        return f"FixedBytes<{size}>"
    simple = {
        "address": "Address",
        "bool": "U8",
        "int": "I256",
        "uint": "U256",
        "bytes": "Vec<u8>",
        "string": "String",
    }
    if name in simple:
        return simple[name]
    if _LOWER_RE.match(name):
        raise StorageSyntaxError("Type not supported")
    return name


def _tokenize(text: str) -> list[str]:
    tokens = []
    for match in _TOKEN_RE.finditer(text):
        if match.lastgroup == "doc":
            tokens.append(match.group().rstrip())
        elif match.lastgroup == "tok":
            tokens.append(match.group())
    return tokens


def _wordish(token: str) -> bool:
    return bool(token) and (token[0].isalnum() or token[0] in '_"')


def _render(tokens: list[str]) -> str:
    out = ""
    prev = ""
    for token in tokens:
        if token == ",":
            out += ", "
        elif token in ("=", "=>"):
            out += f" {token} "
        else:
            if out and _wordish(prev) and _wordish(token):
                out += " "
            out += token
        prev = token
    return out.replace(", >", ">").replace(", ]", "]").strip()


class _Stream:
    def __init__(self, text: str) -> None:
        self.tokens = _tokenize(text)
        self.pos = 0

    def peek(self, ahead: int = 0):
        index = self.pos + ahead
        return self.tokens[index] if index < len(self.tokens) else None

    def take(self) -> str:
        token = self.peek()
        if token is None:
            raise StorageSyntaxError("unexpected end of input")
        self.pos += 1
        return token

    def expect(self, token: str) -> None:
        found = self.take()
        if found != token:
            raise StorageSyntaxError(f"expected `{token}`, found `{found}`")

    def at_end(self) -> bool:
        return self.pos >= len(self.tokens)

    def ident(self) -> str:
        token = self.take()
        if not _IDENT_RE.match(token):
            raise StorageSyntaxError(f"expected identifier, found `{token}`")
        return token

    def balanced(self, open_: str, close: str) -> list[str]:
        """Take a delimited group, returning the tokens between the delimiters."""
        self.expect(open_)
        depth = 1
        inner = []
        while True:
            token = self.take()
            if token == open_:
                depth += 1
            elif token == close:
                depth -= 1
                if depth == 0:
                    return inner
            inner.append(token)

    def angle(self) -> str:
        return "<" + _render(self.balanced("<", ">")) + ">"

    def path(self) -> str:
        parts = []
        if self.peek() == "::":
            parts.append(self.take())
        while True:
            parts.append(self.ident())
            if self.peek() == "<":
                parts.append(self.angle())
            if self.peek() != "::":
                return "".join(parts)
            parts.append(self.take())

    def attrs(self) -> list[str]:
        found = []
        while True:
            token = self.peek()
            if token is not None and token.startswith("///"):
                found.append(self.take())
            elif token == "#" and self.peek(1) == "[":
                self.take()
                found.append("#[" + _render(self.balanced("[", "]")) + "]")
            else:
                return found

    def storage_type(self) -> str:
        start = self.path()
        if start == "mapping":
            self.expect("(")
            key = primitive_key(self.path())
            self.expect("=>")
            value = self.storage_type()
            self.expect(")")
            path = f"StorageMap<{key}, {value}>"
        else:
            path = primitive_type(start)

        while self.peek() == "[":
            self.take()
            if self.peek() == "]":
                self.take()
                path = f"StorageVec<{path}>"
                continue
            size = self.take()
            if not _SIZE_RE.match(size):
                raise StorageSyntaxError("Array size must be a positive integer")
            self.expect("]")
            path = f"StorageArray<{path}, {int(size)}>"
        return path

    def field(self) -> SolidityField:
        attrs = self.attrs()
        ty = self.storage_type()
        name = self.ident()
        return SolidityField(tuple(attrs), name, ty)

    def visibility(self) -> str:
        if self.peek() != "pub":
            return ""
        self.take()
        if self.peek() == "(":
            return "pub(" + _render(self.balanced("(", ")")) + ")"
        return "pub"

    def struct(self) -> SolidityStruct:
        attrs = self.attrs()
        vis = self.visibility()
        self.expect("struct")
        name = self.ident()
        generics = self.angle() if self.peek() == "<" else ""
        self.expect("{")
        fields = []
        while self.peek() != "}":
            fields.append(self.field())
            if self.peek() == "}":
                break
            self.expect(";")
        self.expect("}")
        return SolidityStruct(tuple(attrs), vis, name, generics, tuple(fields))


def parse_storage_type(text: str) -> str:
    """Translate Solidity type syntax, such as ``mapping(address => uint256)``, to a storage type."""
    stream = _Stream(text)
    result = stream.storage_type()
    if not stream.at_end():
        raise StorageSyntaxError(f"unexpected token `{stream.peek()}`")
    return result


def parse_structs(source: str) -> list[SolidityStruct]:
    """Parse a sequence of storage struct declarations."""
    stream = _Stream(source)
    structs = []
    while not stream.at_end():
        structs.append(stream.struct())
    return structs