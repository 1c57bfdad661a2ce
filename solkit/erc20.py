"""An ERC-20 token and a wrapped-ether contract built on it, kept in memory."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Callable, ClassVar, Iterable, Iterator, Optional, Union

from solkit.router import SolidityErrorEnum

ZERO_ADDRESS = bytes(20)
U256_MAX = (1 << 256) - 1


def _address(value: Union[bytes, bytearray]) -> bytes:
    if not isinstance(value, (bytes, bytearray)) or len(value) != 20:
        raise ValueError("an address must be 20 bytes")
    return bytes(value)


def _u256(value: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= U256_MAX:
        raise ValueError("value must be a 256-bit unsigned integer")
    return value


def _add(a: int, b: int) -> int:
    result = a + b
    if result > U256_MAX:
        raise OverflowError("256-bit addition overflowed")
    return result


def _address_word(address: bytes) -> bytes:
    return bytes(12) + address


def _uint_word(value: int) -> bytes:
    return value.to_bytes(32, "big")


@dataclass(frozen=True)
class Erc20Params:
    """The fixed name, symbol and decimals of a token."""

    name: str
    symbol: str
    decimals: int

    def __post_init__(self) -> None:
        if not 0 <= self.decimals <= 255:
            raise ValueError("decimals must fit in 8 bits")


@dataclass(frozen=True)
class Transfer:
    """Event: ``value`` tokens moved from ``from_`` to ``to``."""

    SIGNATURE: ClassVar[str] = "Transfer(address,address,uint256)"

    from_: bytes
    to: bytes
    value: int


@dataclass(frozen=True)
class Approval:
    """Event: ``owner`` let ``spender`` spend up to ``value`` tokens."""

    SIGNATURE: ClassVar[str] = "Approval(address,address,uint256)"

    owner: bytes
    spender: bytes
    value: int


class Erc20Error(Exception):
    """A token operation that reverts."""


class InsufficientBalance(Erc20Error):
    """An account holds fewer tokens than an operation needs."""

    SIGNATURE = "InsufficientBalance(address,uint256,uint256)"

    def __init__(self, from_: bytes, have: int, want: int) -> None:
        super().__init__(f"insufficient balance: 0x{from_.hex()} has {have}, needs {want}")
        self.from_ = from_
        self.have = have
        self.want = want

    def encode_params(self) -> bytes:
        return _address_word(self.from_) + _uint_word(self.have) + _uint_word(self.want)


class InsufficientAllowance(Erc20Error):
    """A spender was allowed fewer tokens than it tried to move."""

    SIGNATURE = "InsufficientAllowance(address,address,uint256,uint256)"

    def __init__(self, owner: bytes, spender: bytes, have: int, want: int) -> None:
        super().__init__(
            f"insufficient allowance: 0x{spender.hex()} may spend {have} "
            f"of 0x{owner.hex()}, needs {want}"
        )
        self.owner = owner
        self.spender = spender
        self.have = have
        self.want = want

    def encode_params(self) -> bytes:
        return (
            _address_word(self.owner)
            + _address_word(self.spender)
            + _uint_word(self.have)
            + _uint_word(self.want)
        )


ERC20_ERRORS = SolidityErrorEnum(
    "Erc20Error",
    {
        "InsufficientBalance": InsufficientBalance,
        "InsufficientAllowance": InsufficientAllowance,
    },
)


class Erc20:
    """Token balances, allowances and supply, with an event log.

    An operation that raises leaves the state as it was.
    """

    def __init__(self, params: Erc20Params) -> None:
        self.params = params
        self.balances: dict[bytes, int] = {}
        self.allowances: dict[bytes, dict[bytes, int]] = {}
        self.total_supply = 0
        self.logs: list[Union[Transfer, Approval]] = []

    @contextmanager
    def _atomic(self) -> Iterator[None]:
        balances = dict(self.balances)
        allowances = {owner: dict(spenders) for owner, spenders in self.allowances.items()}
        total_supply = self.total_supply
        log_length = len(self.logs)
        try:
            yield
        except BaseException:
            self.balances = balances
            self.allowances = allowances
            self.total_supply = total_supply
            del self.logs[log_length:]
            raise

    def name(self) -> str:
        return self.params.name

    def symbol(self) -> str:
        return self.params.symbol

    def decimals(self) -> int:
        return self.params.decimals

    def balance_of(self, address: bytes) -> int:
        return self.balances.get(_address(address), 0)

    def allowance(self, owner: bytes, spender: bytes) -> int:
        return self.allowances.get(_address(owner), {}).get(_address(spender), 0)

    def transfer_impl(self, from_: bytes, to: bytes, value: int) -> None:
        """Move ``value`` tokens between accounts, raising ``InsufficientBalance`` if short."""
        from_, to, value = _address(from_), _address(to), _u256(value)
        with self._atomic():
            old_sender_balance = self.balances.get(from_, 0)
            if old_sender_balance < value:
                raise InsufficientBalance(from_, old_sender_balance, value)
            self.balances[from_] = old_sender_balance - value
            self.balances[to] = _add(self.balances.get(to, 0), value)
            self.logs.append(Transfer(from_, to, value))

    def mint(self, address: bytes, value: int) -> None:
        """Create ``value`` tokens for ``address``."""
        address, value = _address(address), _u256(value)
        new_balance = _add(self.balances.get(address, 0), value)
        new_supply = _add(self.total_supply, value)
        self.balances[address] = new_balance
        self.total_supply = new_supply
        self.logs.append(Transfer(ZERO_ADDRESS, address, value))

    def burn(self, address: bytes, value: int) -> None:
        """Destroy ``value`` of the tokens of ``address``."""
        address, value = _address(address), _u256(value)
        old_balance = self.balances.get(address, 0)
        if old_balance < value:
            raise InsufficientBalance(address, old_balance, value)
        self.balances[address] = old_balance - value
        self.total_supply -= value
        self.logs.append(Transfer(address, ZERO_ADDRESS, value))

    def transfer(self, sender: bytes, to: bytes, value: int) -> bool:
        self.transfer_impl(sender, to, value)
        return True

    def approve(self, sender: bytes, spender: bytes, value: int) -> bool:
        sender, spender, value = _address(sender), _address(spender), _u256(value)
        self.allowances.setdefault(sender, {})[spender] = value
        self.logs.append(Approval(sender, spender, value))
        return True

    def transfer_from(self, sender: bytes, from_: bytes, to: bytes, value: int) -> bool:
        sender, from_, value = _address(sender), _address(from_), _u256(value)
        with self._atomic():
            spenders = self.allowances.setdefault(from_, {})
            old_allowance = spenders.get(sender, 0)
            if old_allowance < value:
                raise InsufficientAllowance(from_, sender, old_allowance, value)
            spenders[sender] = old_allowance - value
            self.transfer_impl(from_, to, value)
        return True


WETH_PARAMS = Erc20Params("Wrapped Ether Example", "WETH", 18)


class Weth(Erc20):
    """Wrapped ether: deposits mint tokens and withdrawals burn them and pay out ether.

    ``send_eth(to, amount)`` pays ether out; by default payouts are recorded
    in ``eth_transfers``.
    """

    def __init__(self, send_eth: Optional[Callable[[bytes, int], None]] = None) -> None:
        super().__init__(WETH_PARAMS)
        self.eth_transfers: list[tuple[bytes, int]] = []
        self._send_eth = send_eth if send_eth is not None else self._record_payout

    def _record_payout(self, to: bytes, amount: int) -> None:
        self.eth_transfers.append((to, amount))

    def deposit(self, sender: bytes, value: int) -> None:
        self.mint(sender, value)

    def withdraw(self, sender: bytes, amount: int) -> None:
        with self._atomic():
            self.burn(sender, amount)
            self._send_eth(_address(sender), amount)

    def sum(self, values: Iterable[int]) -> tuple[str, int]:
        total = 0
        for value in values:
            total = _add(total, _u256(value))
        return "sum", total