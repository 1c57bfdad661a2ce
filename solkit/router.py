"""Selector-based method routing, interface export and error enums for contracts."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, Sequence

from solkit.abi import AbiType, function_selector, solidity_returns
from solkit.export import InnerType, underscore_if_sol, unique_inner_types
from solkit.soltypes import Purity, keccak

logger = logging.getLogger(__name__)

_U32_MAX = 0xFFFFFFFF

_SEL_TOKEN_RE = re.compile(
    r"""\s*(?:
        (?P<str>"(?:\\.|[^"\\])*")
      | (?P<num>\d[0-9A-Za-z_]*)
      | (?P<ident>[A-Za-z_][A-Za-z0-9_]*)
      | (?P<punct>\S)
    )""",
    re.VERBOSE,
)
_INT_LIT_RE = re.compile(
    r"^(0x[0-9a-fA-F]+|0o[0-7]+|0b[01]+|[0-9]+)"
    r"(u8|u16|u32|u64|u128|usize|i8|i16|i32|i64|i128|isize)?$"
)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "'": "'"}
_WORD_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")
_SELF_RE = re.compile(r"^(?:&\s*(?:'\w+\s+)?)?(mut\s+)?self$")
_TYPED_RE = re.compile(r"^(?:mut\s+)?[A-Za-z_]\w*\s*:(?!:)\s*(.*)$", re.DOTALL)


class RouterError(ValueError):
    """Raised when a method, selector or error enum is declared incorrectly."""


@dataclass(frozen=True)
class SelectorArgs:
    """A selector override: either an explicit id or a Solidity method name."""

    id: Optional[int] = None
    name: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.id is None) == (self.name is None):
            raise RouterError('only one of "id" or "name" expected')
        if self.id is not None and not 0 <= self.id <= _U32_MAX:
            raise RouterError("selector id must fit in 32 bits")


def _lex_selector(text: str) -> list[tuple[str, str]]:
    tokens = []
    pos = 0
    while pos < len(text):
        if text[pos:].strip() == "":
            break
        match = _SEL_TOKEN_RE.match(text, pos)
        if match is None:
            raise RouterError(f"cannot read selector arguments: {text!r}")
        tokens.append((match.lastgroup, match.group(match.lastgroup)))
        pos = match.end()
    return tokens


def _unquote(literal: str) -> str:
    def replace(match: re.Match) -> str:
        char = match.group(1)
        if char not in _ESCAPES:
            raise RouterError(f"unknown escape sequence \\{char}")
        return _ESCAPES[char]

    return re.sub(r"\\(.)", replace, literal[1:-1])


def _parse_u32(literal: str) -> int:
    match = _INT_LIT_RE.match(literal.replace("_", ""))
    if match is None:
        raise RouterError(f"invalid integer literal {literal!r}")
    value = int(match.group(1), 0)
    if value > _U32_MAX:
        raise RouterError("number too large to fit in target type")
    return value


def parse_selector_args(text: str) -> SelectorArgs:
    """Parse the arguments of a selector attribute, e.g. ``(id = 5)`` or ``(name = "foo")``."""
    tokens = _lex_selector(text)
    if len(tokens) < 2 or tokens[0] != ("punct", "(") or tokens[-1] != ("punct", ")"):
        raise RouterError("expected parenthesized selector arguments")
    inner = tokens[1:-1]
    if not inner:
        raise RouterError("missing id or text argument")

    selector_id: Optional[int] = None
    name: Optional[str] = None
    stream = iter(inner)

    def take(what: str) -> tuple[str, str]:
        token = next(stream, None)
        if token is None:
            raise RouterError(f"expected {what}")
        return token

    token = next(stream, None)
    while token is not None:
        kind, ident = token
        if kind != "ident":
            raise RouterError(f"expected identifier, found `{ident}`")
        if take("`=`") != ("punct", "="):
            raise RouterError("expected `=`")
        kind, literal = take("a literal")
        if ident == "id":
            if selector_id is not None:
                raise RouterError('only one "id" is allowed')
            if kind == "num":
                selector_id = _parse_u32(literal)
            elif kind == "str":
                signature = _unquote(literal)
                if "(" not in signature:
                    raise RouterError(
                        f'missing parens. Perhaps you meant name = "{signature}"?'
                    )
                selector_id = int.from_bytes(keccak(signature)[:4], "big")
            else:
                raise RouterError("expected u32 or string")
        elif ident == "name":
            if kind != "str":
                raise RouterError("expected string literal")
            if name is not None:
                raise RouterError('only one "name" is allowed')
            name = _unquote(literal)
        else:
            raise RouterError("Unknown selector attribute")
        token = next(stream, None)
        if token == ("punct", ","):
            token = next(stream, None)

    return SelectorArgs(selector_id, name)


def infer_purity(receiver: Optional[str]) -> Purity:
    """The least purity a method needs, from its first parameter.

    ``&self`` or a shared reference views state, ``&mut self`` or a mutable
    reference writes it, and anything else leaves state untouched.
    """
    text = " ".join((receiver or "").split())
    if not text:
        return Purity.PURE
    match = _SELF_RE.match(text)
    if match:
        return Purity.from_mutability(match.group(1) is not None)
    typed = _TYPED_RE.match(text)
    ty = typed.group(1).strip() if typed else text
    if ty.startswith("&"):
        rest = ty[1:].lstrip()
        rest = re.sub(r"^'\w+\s*", "", rest)
        return Purity.from_mutability(re.match(r"^mut\b", rest) is not None)
    return Purity.PURE


def _camel_case(name: str) -> str:
    words = _WORD_RE.findall(name)
    if not words:
        return ""
    head, *tail = words
    return head.lower() + "".join(word[:1].upper() + word[1:].lower() for word in tail)


class SolidityErrorEnum:
    """A set of Solidity errors a method may revert with.

    Each variant holds exactly one error type. An error type carries a
    ``SIGNATURE`` class attribute such as ``"Err(address,uint256)"`` and an
    ``encode_params()`` method returning its ABI-encoded fields.
    """

    def __init__(self, name: str, variants: Mapping[str, Any]) -> None:
        self.name = name
        self._variants: dict[str, type] = {}
        for variant, spec in variants.items():
            if isinstance(spec, tuple):
                if len(spec) != 1:
                    raise RouterError("Variant not a 1-tuple")
                (spec,) = spec
            if not isinstance(spec, type):
                raise RouterError("Variant not a 1-tuple")
            if not isinstance(getattr(spec, "SIGNATURE", None), str):
                raise RouterError(f"error type {spec.__name__} has no SIGNATURE")
            self._variants[variant] = spec

    @property
    def variants(self) -> dict[str, type]:
        return dict(self._variants)

    def _variant_type(self, error: object) -> Optional[type]:
        for ty in self._variants.values():
            if isinstance(error, ty):
                return ty
        return None

    def encode(self, error: object) -> bytes:
        """Revert data for ``error``: its 4-byte selector followed by its encoded fields."""
        ty = self._variant_type(error)
        if ty is None:
            raise TypeError(f"{type(error).__name__} is not a variant of {self.name}")
        return keccak(ty.SIGNATURE)[:4] + bytes(error.encode_params())

    def declarations(self) -> list[InnerType]:
        """Solidity ``error`` declarations for every variant, in order."""
        return [
            InnerType(f"error {ty.SIGNATURE.replace(',', ', ')};", ty)
            for ty in self._variants.values()
        ]


@dataclass(frozen=True)
class ExternalMethod:
    """A method callable by selector.

    ``handler`` takes the decoded arguments; ``decoder`` turns calldata into
    them and ``encoder`` turns the result into return data. ``purity`` is the
    explicitly requested purity; after construction it holds the resolved one.
    """

    name: str
    handler: Callable[..., Any]
    args: tuple[tuple[Optional[str], AbiType], ...] = ()
    returns: Optional[AbiType] = None
    receiver: Optional[str] = None
    purity: Optional[Purity] = None
    selector_args: Optional[SelectorArgs] = None
    decoder: Optional[Callable[[bytes], Sequence[Any]]] = None
    encoder: Optional[Callable[[Any], bytes]] = None
    errors: Optional[SolidityErrorEnum] = None
    needed_purity: Purity = field(init=False)
    selector: int = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "args", tuple(self.args))
        needed = infer_purity(self.receiver)
        purity = needed if self.purity is None else self.purity
        if purity == Purity.PURE and purity < needed:
            raise RouterError("pure method must not access storage")
        if purity == Purity.VIEW and purity < needed:
            raise RouterError(f"storage is &mut, but the method is {purity}")
        if self.args and self.decoder is None:
            raise RouterError(f"method {self.name} takes arguments and needs a decoder")
        object.__setattr__(self, "purity", purity)
        object.__setattr__(self, "needed_purity", needed)
        if self.selector_args is not None and self.selector_args.id is not None:
            selector = self.selector_args.id
        else:
            digest = function_selector(self.sol_name, *(ty for _, ty in self.args))
            selector = int.from_bytes(digest, "big")
        object.__setattr__(self, "selector", selector)

    @property
    def sol_name(self) -> str:
        if self.selector_args is not None and self.selector_args.name is not None:
            return self.selector_args.name
        return _camel_case(self.name)

    def _decode(self, calldata: bytes) -> Sequence[Any]:
        if self.decoder is None:
            return ()
        return self.decoder(calldata)

    def _encode(self, result: Any) -> bytes:
        if self.encoder is not None:
            return bytes(self.encoder(result))
        if result is None:
            return b""
        if isinstance(result, (bytes, bytearray, memoryview)):
            return bytes(result)
        raise TypeError(f"method {self.name} returned {type(result).__name__} with no encoder")

    def _abi_entry(self) -> str:
        out = ""
        if self.selector_args is not None and self.selector_args.id is not None:
            out += f"\n    // note: selector was overridden to be 0x{self.selector_args.id:x}."
        args = ", ".join(
            f"{ty.export_abi_arg}{underscore_if_sol(name or '')}" for name, ty in self.args
        )
        purity = "" if self.purity == Purity.WRITE else f" {self.purity}"
        returns = "" if self.returns is None else solidity_returns(self.returns)
        return out + f"\n    function {self.sol_name}({args}) external{purity}{returns};\n"


class Router:
    """Dispatches calls by selector to its own methods, then to inherited routers."""

    def __init__(self, name: str, methods: Sequence[ExternalMethod] = ()) -> None:
        self.name = name
        self._methods: list[ExternalMethod] = []
        self._inherits: list[Router] = []
        for method in methods:
            self.add(method)

    @property
    def methods(self) -> tuple[ExternalMethod, ...]:
        return tuple(self._methods)

    @property
    def inherits(self) -> tuple["Router", ...]:
        return tuple(self._inherits)

    def add(self, method: ExternalMethod) -> ExternalMethod:
        """Register a method; names must be unique within a router."""
        if any(existing.name == method.name for existing in self._methods):
            raise RouterError(f"duplicate method {method.name}")
        self._methods.append(method)
        return method

    def inherit(self, *args: "Router") -> None:
        """Fall back to these routers, in order, for selectors this one lacks."""
        if not args:
            raise RouterError("expected at least one router to inherit")
        if any(parent is self for parent in args):
            raise RouterError("a router cannot inherit itself")
        self._inherits.extend(args)

    def route(
        self, selector: int, calldata: bytes, value: int = 0
    ) -> Optional[tuple[bool, bytes]]:
        """Run the method for ``selector``; ``None`` if no router in the chain has it.

        Returns ``(True, return_data)`` on success and ``(False, revert_data)``
        on a revert.
        """
        for method in self._methods:
            if method.selector == selector:
                return self._call(method, bytes(calldata), value)
        for parent in self._inherits:
            result = parent.route(selector, calldata, value)
            if result is not None:
                return result
        return None

    @staticmethod
    def _call(method: ExternalMethod, calldata: bytes, value: int) -> tuple[bool, bytes]:
        if method.purity != Purity.PAYABLE and value != 0:
            logger.debug("method %s not payable", method.name)
            return False, b""
        try:
            args = tuple(method._decode(calldata))
        except ValueError as err:
            logger.debug("failed to decode arguments: %s", err)
            return False, b""
        try:
            result = method.handler(*args)
        except Exception as exc:
            if method.errors is not None and method.errors._variant_type(exc) is not None:
                return False, method.errors.encode(exc)
            raise
        return True, method._encode(result)

    def generate_abi(self) -> str:
        """The Solidity interface text for this router and everything it inherits."""
        parts = []
        for parent in self._inherits:
            parts.append(parent.generate_abi())
            parts.append("\n")
        parts.append(f"interface I{self.name}")
        if self._inherits:
            parts.append(" is " + ", ".join(f"I{parent.name}" for parent in self._inherits))
        parts.append(" {")
        parts.extend(method._abi_entry() for method in self._methods)
        declarations = (
            item
            for method in self._methods
            if method.errors is not None
            for item in method.errors.declarations()
        )
        for item in unique_inner_types(declarations):
            parts.append(f"\n    {item.name}\n")
        parts.append("}\n")
        return "".join(parts)


def entrypoint(
    router: Router, calldata: bytes, value: int = 0, reentrant: bool = False
) -> tuple[int, bytes]:
    """Run a call against ``router``; returns ``(status, output)`` with status 0 or 1.

    Reentrant calls, calldata shorter than a selector and unknown selectors
    all revert with empty output.
    """
    if reentrant:
        return 1, b""
    calldata = bytes(calldata)
    if len(calldata) < 4:
        logger.debug("calldata too short: %s", calldata.hex())
        return 1, b""
    selector = int.from_bytes(calldata[:4], "big")
    result = router.route(selector, calldata[4:], value)
    if result is None:
        logger.debug("unknown method selector: %08x", selector)
        return 1, b""
    ok, data = result
    return (0 if ok else 1), data