"""Helpers for exporting a contract's Solidity interface."""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Hashable, Iterable, Optional, TextIO

_UINT_RE = re.compile(r"^uint(\d+)$")
_INT_RE = re.compile(r"^int(\d+)$")
_BYTES_RE = re.compile(r"^bytes(\d+)$")

_RESERVED = frozenset(
    {
        # other types
        "address", "bool", "int", "uint",
        # other words
        "is", "contract", "interface",
        # reserved keywords
        "after", "alias", "apply", "auto", "byte", "case", "copyof", "default",
        "define", "final", "implements", "in", "inline", "let", "macro", "match",
        "mutable", "null", "of", "partial", "promise", "reference", "relocatable",
        "sealed", "sizeof", "static", "supports", "switch", "typedef", "typeof", "var",
    }
)


@dataclass(frozen=True)
class InnerType:
    """A struct or error declaration nested in an interface, with an identity for de-duplication."""

    name: str
    id: Hashable


def unique_inner_types(items: Iterable[InnerType]) -> list[InnerType]:
    """Keep the first declaration of each identity, in order."""
    seen: set[Hashable] = set()
    unique = []
    for item in items:
        if item.id not in seen:
            seen.add(item.id)
            unique.append(item)
    return unique


def underscore_if_sol(name: str) -> str:
    """Prefix ``name`` with a space, and an underscore too if it is a Solidity keyword."""
    if not name:
        return ""
    underscored = f" _{name}"

    for pattern in (_UINT_RE, _INT_RE):
        match = pattern.match(name)
        if match and int(match.group(1)) % 8 == 0:
            return underscored

    match = _BYTES_RE.match(name)
    if match and int(match.group(1)) <= 32:
        return underscored

    if name in _RESERVED:
        return underscored
    return f" {name}"


def abi_header() -> str:
    """The comment block written before an exported interface."""
    return (
        "/**\n"
        " * This file was automatically generated by Stylus and represents a contract program.\n"
        " */\n"
        "\n"
    )


def print_abi(abi_text: str, file: Optional[TextIO] = None) -> None:
    """Write the header followed by the interface text."""
    out = sys.stdout if file is None else file
    out.write(abi_header())
    out.write(abi_text)