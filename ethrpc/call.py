"""Call requests, call bundles and related types for ``eth_call`` and ``eth_callMany``."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Callable, NamedTuple

from .block import BlockOverrides
from .block_id import BlockId
from .primitives import parse_data, parse_quantity, to_data, to_quantity

_ISIZE_MAX = 2**63 - 1


def _uint(bits: int) -> Callable[[Any], int]:
    limit = 1 << bits

    def decode(value: Any) -> int:
        number = parse_quantity(value)
        if number >= limit:
            raise ValueError(f"number too large to fit in {bits} bits")
        return number

    return decode


def _fixed(size: int) -> Callable[[Any], bytes]:
    return lambda value: parse_data(value, size)


def _access_list(value: Any) -> list[Any]:
    if not isinstance(value, list):
        raise ValueError("`accessList` must be an array")
    return list(value)


def _hash_list(value: Any) -> list[bytes]:
    if not isinstance(value, list):
        raise ValueError("`blobVersionedHashes` must be an array")
    return [parse_data(item, 32) for item in value]


def _opt(encode: Callable[[Any], Any], value: Any) -> Any:
    return None if value is None else encode(value)


def _require_object(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected {what} object, got {data!r}")
    return data


class CallInputError(ValueError):
    """Raised when both ``data`` and ``input`` are set and differ."""

    def __init__(self) -> None:
        super().__init__(
            'both "data" and "input" are set and not equal. '
            'Please use "input" to pass transaction call data'
        )


@dataclass(frozen=True)
class TransactionIndex:
    """A transaction index; no position (``-1`` on the wire) means all transactions."""

    position: int | None = None

    def __post_init__(self) -> None:
        if self.position is None:
            return
        if isinstance(self.position, bool) or not isinstance(self.position, int):
            raise TypeError(f"expected an integer index, got {self.position!r}")
        if self.position < 0:
            raise ValueError("transaction index must be non-negative")

    def is_all(self) -> bool:
        return self.position is None

    def index(self) -> int | None:
        return self.position

    def to_json(self) -> int:
        return -1 if self.position is None else self.position

    @classmethod
    def from_json(cls, value: Any) -> TransactionIndex:
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError(f"invalid type: expected an integer, got {value!r}")
        if value > _ISIZE_MAX:
            raise ValueError(f"transaction index {value} out of range")
        if value == -1:
            return cls()
        if value < -1:
            raise ValueError(
                "Invalid transaction index, expected -1 or positive integer, "
                f"got {value}"
            )
        return cls(value)


@dataclass
class CallInput:
    """Call data given as ``input``, or as the older ``data`` field."""

    input: bytes | None = None
    data: bytes | None = None

    def unique_input(self) -> bytes | None:
        """Return the call data; raise if ``input`` and ``data`` are both set and differ."""
        if self.input is not None and self.data is not None:
            if self.input == self.data:
                return self.input
            raise CallInputError()
        return self.input if self.input is not None else self.data


class _Field(NamedTuple):
    attr: str
    key: str
    decode: Callable[[Any], Any]
    encode: Callable[[Any], Any]


_U256 = _uint(256)
_U64 = _uint(64)
_U8 = _uint(8)

_LEADING_FIELDS = (
    _Field("from_", "from", _fixed(20), to_data),
    _Field("to", "to", _fixed(20), to_data),
    _Field("gas_price", "gasPrice", _U256, to_quantity),
    _Field("max_fee_per_gas", "maxFeePerGas", _U256, to_quantity),
    _Field("max_priority_fee_per_gas", "maxPriorityFeePerGas", _U256, to_quantity),
    _Field("gas", "gas", _U256, to_quantity),
    _Field("value", "value", _U256, to_quantity),
)
_TRAILING_FIELDS = (
    _Field("nonce", "nonce", _U64, to_quantity),
    _Field("chain_id", "chainId", _U64, to_quantity),
    _Field("access_list", "accessList", _access_list, list),
    _Field("max_fee_per_blob_gas", "maxFeePerBlobGas", _U256, to_quantity),
)
_BLOB_HASHES = _Field(
    "blob_versioned_hashes",
    "blobVersionedHashes",
    _hash_list,
    lambda hashes: [to_data(h) for h in hashes],
)
_TYPE = _Field("transaction_type", "type", _U8, to_quantity)
_INPUT_FIELDS = (
    _Field("input", "input", parse_data, to_data),
    _Field("data", "data", parse_data, to_data),
)


def _decode(fields: tuple[_Field, ...], data: Mapping[str, Any]) -> dict[str, Any]:
    values = {}
    for spec in fields:
        raw = data.get(spec.key)
        values[spec.attr] = None if raw is None else spec.decode(raw)
    return values


@dataclass
class CallRequest:
    """A call request for ``eth_call`` and related methods."""

    from_: bytes | None = None
    to: bytes | None = None
    gas_price: int | None = None
    max_fee_per_gas: int | None = None
    max_priority_fee_per_gas: int | None = None
    gas: int | None = None
    value: int | None = None
    input: CallInput = field(default_factory=CallInput)
    nonce: int | None = None
    chain_id: int | None = None
    access_list: list[Any] | None = None
    max_fee_per_blob_gas: int | None = None
    blob_versioned_hashes: list[bytes] | None = None
    transaction_type: int | None = None

    def fee_cap(self) -> int | None:
        """The legacy gas price if set, else the EIP-1559 max fee."""
        return self.gas_price if self.gas_price is not None else self.max_fee_per_gas

    def has_empty_blob_hashes(self) -> bool:
        return self.blob_versioned_hashes is not None and not self.blob_versioned_hashes

    def to_json(self) -> dict[str, Any]:
        encoded: dict[str, Any] = {}
        for spec in _LEADING_FIELDS:
            encoded[spec.key] = _opt(spec.encode, getattr(self, spec.attr))
        for spec in _INPUT_FIELDS:
            encoded[spec.key] = _opt(spec.encode, getattr(self.input, spec.attr))
        for spec in _TRAILING_FIELDS:
            encoded[spec.key] = _opt(spec.encode, getattr(self, spec.attr))
        if self.blob_versioned_hashes is not None:
            encoded[_BLOB_HASHES.key] = _BLOB_HASHES.encode(self.blob_versioned_hashes)
        encoded[_TYPE.key] = _opt(_TYPE.encode, self.transaction_type)
        return encoded

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> CallRequest:
        data = _require_object(data, "a call request")
        values = _decode(_LEADING_FIELDS + _TRAILING_FIELDS + (_BLOB_HASHES, _TYPE), data)
        values["input"] = CallInput(**_decode(_INPUT_FIELDS, data))
        return cls(**values)


@dataclass
class Bundle:
    """A bundle of call requests with optional block overrides."""

    transactions: list[CallRequest] = field(default_factory=list)
    block_override: BlockOverrides | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "transactions": [tx.to_json() for tx in self.transactions],
            "blockOverride": _opt(BlockOverrides.to_json, self.block_override),
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Bundle:
        data = _require_object(data, "a bundle")
        transactions = data.get("transactions", [])
        if not isinstance(transactions, list):
            raise ValueError("`transactions` must be an array")
        override = data.get("blockOverride")
        return cls(
            transactions=[CallRequest.from_json(tx) for tx in transactions],
            block_override=_opt(BlockOverrides.from_json, override),
        )


@dataclass
class StateContext:
    """The block and transaction position at which ``eth_callMany`` runs."""

    block_number: BlockId | None = None
    transaction_index: TransactionIndex | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "blockNumber": _opt(BlockId.to_json, self.block_number),
            "transactionIndex": _opt(TransactionIndex.to_json, self.transaction_index),
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> StateContext:
        data = _require_object(data, "a state context")
        return cls(
            block_number=_opt(BlockId.from_json, data.get("blockNumber")),
            transaction_index=_opt(TransactionIndex.from_json, data.get("transactionIndex")),
        )


@dataclass
class EthCallResponse:
    """Result of one call in ``eth_callMany``: output or an error message."""

    output: bytes | None = None
    error: str | None = None

    def to_json(self) -> dict[str, Any]:
        encoded: dict[str, Any] = {}
        if self.output is not None:
            encoded["output"] = to_data(self.output)
        if self.error is not None:
            encoded["error"] = self.error
        return encoded

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> EthCallResponse:
        data = _require_object(data, "a call response")
        error = data.get("error")
        if error is not None and not isinstance(error, str):
            raise ValueError("`error` must be a string")
        return cls(output=_opt(parse_data, data.get("output")), error=error)