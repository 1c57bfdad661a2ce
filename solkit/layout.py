"""Storage slot layout for storage structs, packing small fields into 32-byte words."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

SLOT_SIZE = 32
_U256_MODULUS = 1 << 256
_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

_INTEGERS = frozenset(
    {
        "u8", "u16", "u32", "u64", "u128", "i8", "i16", "i32", "i64", "i128",
        "U8", "U16", "U32", "U64", "U128", "I8", "I16", "I32", "I64", "I128",
    }
)


class StorageLayoutError(ValueError):
    """Raised for a field that cannot be laid out in storage."""


@dataclass(frozen=True)
class StorageField:
    """A struct field with its type's slot needs.

    ``slot_bytes`` is the width packed into a word; ``words`` is the number of
    whole slots the type takes (0 for types packed within a word).
    """

    name: Optional[str]
    type_name: str
    slot_bytes: int
    words: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.slot_bytes <= SLOT_SIZE:
            raise StorageLayoutError(f"slot_bytes must be between 0 and {SLOT_SIZE}")
        if self.words < 0:
            raise StorageLayoutError("words must not be negative")


@dataclass(frozen=True)
class FieldPlacement:
    """Where a field lives: its slot and its byte offset within that slot."""

    name: str
    type_name: str
    slot: int
    offset: int


def _last_segment(type_name: str) -> str:
    depth = 0
    start = 0
    text = type_name.strip()
    index = 0
    while index < len(text):
        char = text[index]
        if char == "<":
            depth += 1
        elif char == ">":
            depth -= 1
        elif depth == 0 and text.startswith("::", index):
            start = index + 2
            index += 1
        index += 1
    segment = text[start:]
    return segment.split("<", 1)[0].strip()


def check_field_type(type_name: str) -> str:
    """Validate a field type for storage and return its last path segment."""
    segment = _last_segment(type_name)
    if not _IDENT_RE.match(segment):
        raise StorageLayoutError("Type not supported for EVM state storage")
    not_supported = f"Type `{segment}` not supported for EVM state storage"
    if segment in _INTEGERS:
        raise StorageLayoutError(f"{not_supported}. Instead try `Storage{segment.upper()}`.")
    if segment in ("usize", "isize"):
        raise StorageLayoutError(f"{not_supported}.")
    if segment == "bool":
        raise StorageLayoutError(f"{not_supported}. Instead try `StorageBool`.")
    if segment in ("f32", "f64"):
        raise StorageLayoutError(f"{not_supported}. Consider fixed-point arithmetic.")
    return segment


def _named(fields: Iterable[StorageField]) -> list[StorageField]:
    fields = list(fields)
    for field in fields:
        check_field_type(field.type_name)
    return [field for field in fields if field.name is not None]


def required_slots(fields: Iterable[StorageField]) -> int:
    """The number of slots a struct with these fields reserves; at least one."""
    total = 0
    space = SLOT_SIZE
    for field in _named(fields):
        if field.words > 0:
            total += field.words
            space = SLOT_SIZE
        else:
            if space < field.slot_bytes:
                space = SLOT_SIZE
                total += 1
            space -= field.slot_bytes
    if space != SLOT_SIZE or total == 0:
        total += 1
    return total


def assign_slots(fields: Iterable[StorageField], root: int = 0) -> list[FieldPlacement]:
    """Place each named field, packing from the high end of each word downward."""
    if not 0 <= root < _U256_MODULUS:
        raise StorageLayoutError("root must be a 256-bit unsigned integer")
    placements = []
    space = SLOT_SIZE
    slot = 0
    for field in _named(fields):
        if space < field.slot_bytes:
            space = SLOT_SIZE
            slot += 1
        space -= field.slot_bytes
        placements.append(
            FieldPlacement(field.name, field.type_name, (root + slot) % _U256_MODULUS, space)
        )
        if field.words > 0:
            slot += field.words
            space = SLOT_SIZE
    return placements