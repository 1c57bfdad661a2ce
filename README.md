# solkit

A library for describing Solidity-compatible contracts from Python: ABI type
names and method selectors, storage declarations and slot layout, selector
routing with interface export, a bump allocator model, and an example token.

## Modules

- **`solkit.soltypes`**: `Purity` (`PURE < VIEW < WRITE < PAYABLE`, with
  `Purity.parse` and `Purity.from_mutability`), `parse_sol_type` for Solidity
  type text such as `uint256[]` or `(address,bool)`, `solidity_type_info` for a
  type's codec path and ABI name, and `keccak` (Keccak-256; text is UTF-8
  encoded).
- **`solkit.abi`**: `AbiType` values and builders (`uint`, `int_type`,
  `fixed_bytes`, `vec`, `array`, `tuple_of`, plus constants such as `BOOL`,
  `ADDRESS`, `STRING`, `BYTES`, `U256`). Each carries its canonical name and
  the strings used for interface arguments and return values
  (`bytes calldata`, `uint256[] memory`, ...). `function_selector` computes a
  4-byte selector, `digest_to_selector` takes the first four bytes of a
  digest, and `solidity_returns` renders a `returns` clause.
- **`solkit.export`**: `underscore_if_sol` prefixes argument names that are
  Solidity keywords or type names with an underscore; `InnerType` and
  `unique_inner_types` de-duplicate nested declarations; `abi_header` and
  `print_abi` write an interface with its comment header.
- **`solkit.storage_syntax`**: `parse_structs` reads Solidity-style storage
  struct declarations (`mapping(address => uint256) balances;`,
  `uint256[] hashes;`, `#[borrow]` attributes, doc comments) into
  `SolidityStruct` and `SolidityField` values; `parse_storage_type`,
  `primitive_type` and `primitive_key` map single types. Errors raise
  `StorageSyntaxError`.
- **`solkit.layout`**: `StorageField` describes a field's slot needs;
  `required_slots` and `assign_slots` pack fields into 32-byte slots and
  return `FieldPlacement`s. `check_field_type` rejects plain integers,
  `bool` and floats, raising `StorageLayoutError`.
- **`solkit.router`**: `ExternalMethod` (purity inferred from its receiver,
  selector from its camel-cased name or a `SelectorArgs` override parsed by
  `parse_selector_args`), `Router` with `add`, `inherit`, `route` and
  `generate_abi`, `SolidityErrorEnum` for encoding revert data and error
  declarations, and `entrypoint` for a complete call returning
  `(status, output)`. Errors raise `RouterError`.
- **`solkit.allocator`**: `BumpAllocator` hands out aligned addresses from a
  `LinearMemory` that grows 64 KiB pages at a time and never frees; running
  out raises `MemoryError`.
- **`solkit.erc20`**: an in-memory `Erc20` token (balances, allowances,
  `Transfer`/`Approval` event log, `InsufficientBalance` and
  `InsufficientAllowance` errors) and `Weth`, which mints on `deposit` and
  burns and pays out on `withdraw`.

## Installation

```
pip install solkit
```

## Examples

Selectors and keyword escaping:

```python
from solkit.abi import ADDRESS, U256, function_selector
from solkit.export import underscore_if_sol

print(function_selector("foo", ADDRESS, U256).hex())  # bd0d639f
print(repr(underscore_if_sol("address")))             # ' _address'
```

Routing a call and exporting an interface:

```python
from solkit.abi import function_selector
from solkit.router import ExternalMethod, Router, entrypoint

router = Router("Counter")
router.add(ExternalMethod("ping", handler=lambda: bytes(32)))

status, output = entrypoint(router, function_selector("ping"))
print(status, len(output))      # 0 32
print(router.generate_abi())
# interface ICounter {
#     function ping() external pure;
# }
```

Storage types:

```python
from solkit.storage_syntax import parse_storage_type

print(parse_storage_type("mapping(address => uint256)"))
# StorageMap<Address, StorageUint<256, 4>>
```

Bump allocation:

```python
from solkit.allocator import BumpAllocator, LinearMemory

heap = BumpAllocator(LinearMemory(pages=1), heap_base=1024)
print(heap.alloc(16, 8))  # 1024
print(heap.alloc(4, 4))   # 1040
```

## What it does not do

- There is no general ABI encoder or decoder. A `Router` method that takes
  arguments needs a `decoder` for its calldata, and a method returning
  anything other than bytes or `None` needs an `encoder`.
- Nothing runs on a chain: the token and router work on in-memory state, and
  `Weth` pays out ether through a callback (recorded in `eth_transfers` by
  default).
- There is no command-line tool; everything is used as a library.

## Running the tests

```
pip install solkit[test]
pytest
```