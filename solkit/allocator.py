"""A bump allocator over a page-granular linear memory."""

from __future__ import annotations

from typing import Optional

PAGE_SIZE = 1 << 16
"""Size of one memory page: 2^16 bytes."""

MAX_PAGES = 1 << 16
"""Pages in a full 32-bit address space."""

DEFAULT_HEAP_BASE = 1024
"""Address where the heap begins unless another is given."""

_USIZE = 1 << 32
_MASK = _USIZE - 1


class LinearMemory:
    """A memory that only grows, in whole pages, up to ``max_pages``."""

    def __init__(self, pages: int = 1, max_pages: int = MAX_PAGES) -> None:
        if not 0 <= max_pages <= MAX_PAGES:
            raise ValueError(f"max_pages must be between 0 and {MAX_PAGES}")
        if not 0 <= pages <= max_pages:
            raise ValueError("pages must be between 0 and max_pages")
        self.pages = pages
        self.max_pages = max_pages

    @property
    def size_bytes(self) -> int:
        return self.pages * PAGE_SIZE

    def grow(self, pages: int) -> int:
        """Add ``pages`` pages and return the previous page count.

        Raises ``MemoryError`` if the memory would exceed its maximum.
        """
        if pages < 0:
            raise ValueError("cannot grow by a negative number of pages")
        if self.pages + pages > self.max_pages:
            raise MemoryError(
                f"cannot grow memory by {pages} pages beyond {self.max_pages} pages"
            )
        previous = self.pages
        self.pages += pages
        return previous


class BumpAllocator:
    """Hands out memory upward from ``heap_base`` and never frees it.

    The offset and the boundary are kept negated in a 32-bit address space,
    so that rounding to an alignment is a single mask. The boundary is taken
    from the memory's size at the first allocation.
    """

    def __init__(
        self,
        memory: Optional[LinearMemory] = None,
        heap_base: int = DEFAULT_HEAP_BASE,
    ) -> None:
        if not 0 < heap_base < _USIZE:
            raise ValueError("heap_base must be a non-zero 32-bit address")
        self.memory = memory if memory is not None else LinearMemory()
        self.heap_base = heap_base
        self._neg_offset: Optional[int] = None
        self._neg_bound = 0

    def _ensure_state(self) -> None:
        if self._neg_offset is None:
            bound = (self.memory.size_bytes - 1) & _MASK
            self._neg_offset = (-self.heap_base) & _MASK
            self._neg_bound = (-bound) & _MASK

    def alloc(self, size: int, align: int = 1) -> int:
        """Reserve ``size`` bytes aligned to ``align`` and return their address.

        Raises ``MemoryError`` when the address space or the memory runs out.
        """
        if size < 0:
            raise ValueError("size must not be negative")
        if align <= 0 or align & (align - 1) or align >= _USIZE:
            raise ValueError("align must be a power of two")
        self._ensure_state()
        assert self._neg_offset is not None

        neg_aligned = self._neg_offset & ((-align) & _MASK)
        next_neg_offset = neg_aligned - size
        if next_neg_offset < 0:
            raise MemoryError(f"cannot allocate {size} bytes")
        bytes_needed = max(self._neg_bound - (next_neg_offset + 1), 0)
        if bytes_needed:
            pages_needed = 1 + (bytes_needed - 1) // PAGE_SIZE
            self.memory.grow(pages_needed)
            self._neg_bound -= PAGE_SIZE * pages_needed
        self._neg_offset = next_neg_offset
        return (-neg_aligned) & _MASK