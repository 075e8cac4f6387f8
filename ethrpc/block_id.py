"""Block identifiers: numbers, tags, hashes and their EIP-1898 forms."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from .primitives import (
    HexError,
    RlpError,
    parse_data,
    rlp_decode,
    rlp_encode,
    to_data,
)

_U64_MAX = 2**64 - 1
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]+")
_DECIMAL = re.compile(r"\+?[0-9]+")


def _check_u64(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer block number, got {value!r}")
    if not 0 <= value <= _U64_MAX:
        raise ValueError(f"block number {value} does not fit in 64 bits")


def _check_hash(value: Any) -> None:
    if not isinstance(value, bytes) or len(value) != 32:
        raise ValueError("block hash must be 32 bytes")


class BlockTag(Enum):
    """Named block positions."""

    LATEST = "latest"
    FINALIZED = "finalized"
    SAFE = "safe"
    EARLIEST = "earliest"
    PENDING = "pending"


class ParseBlockNumberError(ValueError):
    """Raised when a block number or tag cannot be parsed."""


class HexStringMissingPrefixError(ParseBlockNumberError):
    """Raised when a 0x-prefixed hex string was expected."""

    def __init__(self) -> None:
        super().__init__("hex string without 0x prefix")


@dataclass(frozen=True)
class BlockNumberOrTag:
    """A block number or one of the tags; defaults to ``latest``."""

    value: Union[BlockTag, int] = BlockTag.LATEST

    def __post_init__(self) -> None:
        if not isinstance(self.value, BlockTag):
            _check_u64(self.value)

    @classmethod
    def parse(cls, text: str) -> BlockNumberOrTag:
        for tag in BlockTag:
            if text == tag.value:
                return cls(tag)
        if not text.startswith("0x"):
            raise HexStringMissingPrefixError()
        digits = text[2:]
        if not _HEX_DIGITS.fullmatch(digits):
            raise ParseBlockNumberError(f"invalid digit found in {text!r}")
        number = int(digits, 16)
        if number > _U64_MAX:
            raise ParseBlockNumberError("number too large to fit in 64 bits")
        return cls(number)

    @classmethod
    def from_json(cls, value: Any) -> BlockNumberOrTag:
        if not isinstance(value, str):
            raise ParseBlockNumberError(f"expected a string, got {value!r}")
        return cls.parse(value.lower())

    def to_json(self) -> str:
        return str(self)

    def __str__(self) -> str:
        if isinstance(self.value, BlockTag):
            return self.value.value
        return f"0x{self.value:x}"

    def as_number(self) -> int | None:
        return None if isinstance(self.value, BlockTag) else self.value

    def is_number(self) -> bool:
        return not isinstance(self.value, BlockTag)

    def is_latest(self) -> bool:
        return self.value is BlockTag.LATEST

    def is_finalized(self) -> bool:
        return self.value is BlockTag.FINALIZED

    def is_safe(self) -> bool:
        return self.value is BlockTag.SAFE

    def is_pending(self) -> bool:
        return self.value is BlockTag.PENDING

    def is_earliest(self) -> bool:
        return self.value is BlockTag.EARLIEST


@dataclass(frozen=True)
class RpcBlockHash:
    """A block hash with an optional ``requireCanonical`` flag (EIP-1898)."""

    block_hash: bytes
    require_canonical: bool | None = None

    def __post_init__(self) -> None:
        _check_hash(self.block_hash)

    @classmethod
    def from_hash(cls, block_hash: bytes, require_canonical: bool | None = None) -> RpcBlockHash:
        return cls(block_hash, require_canonical)

    def __bytes__(self) -> bytes:
        return self.block_hash


@dataclass(frozen=True)
class BlockId:
    """A block identifier: either a hash or a number/tag."""

    value: Union[RpcBlockHash, BlockNumberOrTag] = field(default_factory=BlockNumberOrTag)

    def __post_init__(self) -> None:
        if not isinstance(self.value, (RpcBlockHash, BlockNumberOrTag)):
            raise TypeError(f"invalid block identifier {self.value!r}")

    @classmethod
    def from_number(cls, number: BlockNumberOrTag | BlockTag | int) -> BlockId:
        if isinstance(number, BlockNumberOrTag):
            return cls(number)
        return cls(BlockNumberOrTag(number))

    @classmethod
    def from_hash(cls, block_hash: bytes, require_canonical: bool | None = None) -> BlockId:
        return cls(RpcBlockHash(block_hash, require_canonical))

    def as_block_hash(self) -> bytes | None:
        if isinstance(self.value, RpcBlockHash):
            return self.value.block_hash
        return None

    def is_latest(self) -> bool:
        return isinstance(self.value, BlockNumberOrTag) and self.value.is_latest()

    def is_pending(self) -> bool:
        return isinstance(self.value, BlockNumberOrTag) and self.value.is_pending()

    def to_json(self) -> Any:
        if isinstance(self.value, BlockNumberOrTag):
            return self.value.to_json()
        encoded: dict[str, Any] = {"blockHash": to_data(self.value.block_hash)}
        if self.value.require_canonical is not None:
            encoded["requireCanonical"] = self.value.require_canonical
        return encoded

    @classmethod
    def from_json(cls, value: Any) -> BlockId:
        if isinstance(value, str):
            # A 66-character string can only be a hash; anything else is a quantity or tag.
            if len(value) == 66:
                return cls(RpcBlockHash(parse_data(value, 32)))
            return cls(BlockNumberOrTag.parse(value))
        if not isinstance(value, dict):
            raise ValueError("expected a block identifier following EIP-1898")

        number: BlockNumberOrTag | None = None
        block_hash: bytes | None = None
        require_canonical: bool | None = None
        for key, item in value.items():
            if key == "blockNumber":
                if number is not None or block_hash is not None:
                    raise ValueError("duplicate field `blockNumber`")
                if require_canonical is not None:
                    raise ValueError("Non-valid require_canonical field")
                number = BlockNumberOrTag.from_json(item)
            elif key == "blockHash":
                if number is not None or block_hash is not None:
                    raise ValueError("duplicate field `blockHash`")
                if not isinstance(item, str):
                    raise HexError(f"expected a hex string, got {item!r}")
                block_hash = parse_data(item, 32)
            elif key == "requireCanonical":
                if number is not None or require_canonical is not None:
                    raise ValueError("duplicate field `requireCanonical`")
                if not isinstance(item, bool):
                    raise ValueError("`requireCanonical` must be a boolean")
                require_canonical = item
            else:
                raise ValueError(
                    f"unknown field `{key}`, expected one of "
                    "`blockNumber`, `blockHash`, `requireCanonical`"
                )

        if number is not None:
            return cls(number)
        if block_hash is not None:
            return cls(RpcBlockHash(block_hash, require_canonical))
        raise ValueError("Expected `blockNumber` or `blockHash` with `requireCanonical` optionally")


@dataclass(frozen=True)
class BlockHashOrNumber:
    """Either a 32-byte block hash or a 64-bit block number."""

    value: Union[bytes, int]

    def __post_init__(self) -> None:
        if isinstance(self.value, bytes):
            _check_hash(self.value)
        else:
            _check_u64(self.value)

    @classmethod
    def parse(cls, text: str) -> BlockHashOrNumber:
        if _DECIMAL.fullmatch(text):
            number = int(text)
            if number <= _U64_MAX:
                return cls(number)
            int_error = "number too large to fit in target type"
        elif not text:
            int_error = "cannot parse integer from empty string"
        else:
            int_error = "invalid digit found in string"
        try:
            return cls(parse_data(text, 32))
        except HexError as exc:
            raise ParseBlockHashOrNumberError(text, int_error, str(exc)) from None

    def as_number(self) -> int | None:
        return None if isinstance(self.value, bytes) else self.value

    def rlp_encode(self) -> bytes:
        return rlp_encode(self.value)

    @classmethod
    def rlp_decode(cls, data: bytes) -> BlockHashOrNumber:
        raw = bytes(data)
        if not raw:
            raise RlpError("input too short")
        item = rlp_decode(raw)
        if isinstance(item, list):
            raise RlpError("unexpected list")
        if raw[0] == 0xA0:
            return cls(item)
        if len(item) > 8:
            raise RlpError("overflow")
        if item and item[0] == 0:
            raise RlpError("leading zero")
        return cls(int.from_bytes(item, "big"))


class ParseBlockHashOrNumberError(ValueError):
    """Raised when a string is neither a decimal block number nor a block hash."""

    def __init__(self, input: str, parse_int_error: str, hex_error: str) -> None:
        self.input = input
        self.parse_int_error = parse_int_error
        self.hex_error = hex_error
        super().__init__(
            f"failed to parse {input!r} as a number: {parse_int_error} or hash: {hex_error}"
        )


@dataclass(frozen=True)
class BlockNumHash:
    """A block number together with its hash."""

    number: int = 0
    hash: bytes = bytes(32)

    def __post_init__(self) -> None:
        _check_u64(self.number)
        _check_hash(self.hash)

    def into_components(self) -> tuple[int, bytes]:
        return self.number, self.hash

    def matches_block_or_num(self, block: BlockHashOrNumber) -> bool:
        if isinstance(block.value, bytes):
            return self.hash == block.value
        return self.number == block.value