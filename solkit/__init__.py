"""Solidity ABI types, selectors, storage layout, method routing, bump allocation and an ERC-20 example."""

__version__ = "0.1.0"
__all__ = [
    "abi",
    "allocator",
    "erc20",
    "export",
    "layout",
    "router",
    "soltypes",
    "storage_syntax",
]