"""Blocks, headers and block overrides as exchanged over JSON-RPC."""

from __future__ import annotations

import dataclasses
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, ClassVar, Generic, Iterable, Iterator, NamedTuple, TypeVar

from .primitives import Bloom, HexError, parse_data, parse_quantity, to_data, to_quantity

T = TypeVar("T")

_DECIMAL = re.compile(r"[0-9]+")
_U64_MAX = 2**64 - 1


class _Codec(NamedTuple):
    decode: Callable[[Any], Any]
    encode: Callable[[Any], Any]


class _Field(NamedTuple):
    attr: str
    key: str
    codec: _Codec
    required: bool = True
    skip_none: bool = False


def _fixed(size: int) -> _Codec:
    return _Codec(lambda value: parse_data(value, size), to_data)


def _uint(bits: int) -> _Codec:
    limit = 1 << bits

    def decode(value: Any) -> int:
        number = parse_quantity(value)
        if number >= limit:
            raise ValueError(f"number too large to fit in {bits} bits")
        return number

    return _Codec(decode, to_quantity)


_HASH = _fixed(32)
_ADDRESS = _fixed(20)
_B64 = _fixed(8)
_BYTES = _Codec(parse_data, to_data)
_BLOOM = _Codec(Bloom.from_json, Bloom.to_json)
_U256 = _uint(256)
_U64 = _uint(64)


def _require_object(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected {what} object, got {data!r}")
    return data


def _decode_fields(fields: Iterable[_Field], data: Mapping[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for spec in fields:
        raw = data.get(spec.key)
        if raw is None:
            if spec.required:
                if spec.key in data:
                    raise ValueError(f"invalid type: null for field `{spec.key}`")
                raise ValueError(f"missing field `{spec.key}`")
            values[spec.attr] = None
        else:
            values[spec.attr] = spec.codec.decode(raw)
    return values


def _encode_fields(fields: Iterable[_Field], obj: Any) -> dict[str, Any]:
    encoded: dict[str, Any] = {}
    for spec in fields:
        value = getattr(obj, spec.attr)
        if value is None:
            if not spec.skip_none:
                encoded[spec.key] = None
        else:
            encoded[spec.key] = spec.codec.encode(value)
    return encoded


def _plain_json(item: Any) -> Any:
    to_json = getattr(item, "to_json", None)
    if callable(to_json):
        return to_json()
    return dict(item)


def _tx_hash(tx: Any) -> bytes:
    if isinstance(tx, Mapping):
        return parse_data(tx["hash"], 32)
    return tx.hash


class BlockError(Exception):
    """Error raised when converting other types into blocks."""

    @classmethod
    def invalid_signature(cls) -> BlockError:
        return cls("transaction failed sender recovery")

    @classmethod
    def rlp_decode_raw_block(cls, error: Exception | str) -> BlockError:
        return cls(f"failed to decode raw block {error}")


class BlockTransactionsKind(Enum):
    """Whether a block response carries transaction hashes or full transactions."""

    HASHES = "hashes"
    FULL = "full"

    @classmethod
    def from_full(cls, is_full: bool) -> BlockTransactionsKind:
        return cls.FULL if is_full else cls.HASHES


@dataclass
class BlockTransactions:
    """Transactions of a block: hashes, full objects, or nothing for an uncle.

    ``kind`` is ``None`` for an uncle response. Full transactions are kept as
    their JSON objects (or any object with a ``hash`` attribute).
    """

    items: list[Any] = field(default_factory=list)
    kind: BlockTransactionsKind | None = BlockTransactionsKind.HASHES

    @classmethod
    def hashes(cls, hashes: Iterable[bytes]) -> BlockTransactions:
        return cls([bytes(h) for h in hashes], BlockTransactionsKind.HASHES)

    @classmethod
    def full(cls, txs: Iterable[Any]) -> BlockTransactions:
        return cls(list(txs), BlockTransactionsKind.FULL)

    @classmethod
    def uncle(cls) -> BlockTransactions:
        return cls([], None)

    def is_uncle(self) -> bool:
        return self.kind is None

    def __iter__(self) -> Iterator[bytes]:
        """Yield the transaction hashes."""
        if self.kind is BlockTransactionsKind.HASHES:
            yield from self.items
        elif self.kind is BlockTransactionsKind.FULL:
            for tx in self.items:
                yield _tx_hash(tx)

    def to_json(self) -> list[Any] | None:
        if self.kind is BlockTransactionsKind.HASHES:
            return [to_data(h) for h in self.items]
        if self.kind is BlockTransactionsKind.FULL:
            return [_plain_json(tx) for tx in self.items]
        return None

    @classmethod
    def from_json(cls, value: Any) -> BlockTransactions:
        if value is None:
            return cls.uncle()
        if isinstance(value, list):
            if all(isinstance(item, str) for item in value):
                try:
                    return cls.hashes(parse_data(item, 32) for item in value)
                except HexError:
                    pass
            if all(isinstance(item, Mapping) for item in value):
                return cls.full(dict(item) for item in value)
        raise ValueError("data did not match any variant of untagged enum BlockTransactions")


_HEADER_FIELDS = (
    _Field("hash", "hash", _HASH, required=False),
    _Field("parent_hash", "parentHash", _HASH),
    _Field("uncles_hash", "sha3Uncles", _HASH),
    _Field("miner", "miner", _ADDRESS),
    _Field("state_root", "stateRoot", _HASH),
    _Field("transactions_root", "transactionsRoot", _HASH),
    _Field("receipts_root", "receiptsRoot", _HASH),
    _Field("logs_bloom", "logsBloom", _BLOOM),
    _Field("difficulty", "difficulty", _U256),
    _Field("number", "number", _U256, required=False),
    _Field("gas_limit", "gasLimit", _U256),
    _Field("gas_used", "gasUsed", _U256),
    _Field("timestamp", "timestamp", _U256),
    _Field("extra_data", "extraData", _BYTES),
    _Field("mix_hash", "mixHash", _HASH),
    _Field("nonce", "nonce", _B64, required=False),
    _Field("base_fee_per_gas", "baseFeePerGas", _U256, required=False, skip_none=True),
    _Field("withdrawals_root", "withdrawalsRoot", _HASH, required=False, skip_none=True),
    _Field("blob_gas_used", "blobGasUsed", _U64, required=False, skip_none=True),
    _Field("excess_blob_gas", "excessBlobGas", _U64, required=False, skip_none=True),
    _Field(
        "parent_beacon_block_root",
        "parentBeaconBlockRoot",
        _HASH,
        required=False,
        skip_none=True,
    ),
)


@dataclass
class Header:
    """A block header."""

    JSON_FIELDS: ClassVar[frozenset[str]] = frozenset(spec.key for spec in _HEADER_FIELDS)

    hash: bytes | None = None
    parent_hash: bytes = bytes(32)
    uncles_hash: bytes = bytes(32)
    miner: bytes = bytes(20)
    state_root: bytes = bytes(32)
    transactions_root: bytes = bytes(32)
    receipts_root: bytes = bytes(32)
    logs_bloom: Bloom = field(default_factory=Bloom)
    difficulty: int = 0
    number: int | None = None
    gas_limit: int = 0
    gas_used: int = 0
    timestamp: int = 0
    extra_data: bytes = b""
    mix_hash: bytes = bytes(32)
    nonce: bytes | None = None
    base_fee_per_gas: int | None = None
    withdrawals_root: bytes | None = None
    blob_gas_used: int | None = None
    excess_blob_gas: int | None = None
    parent_beacon_block_root: bytes | None = None

    def to_json(self) -> dict[str, Any]:
        return _encode_fields(_HEADER_FIELDS, self)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Header:
        return cls(**_decode_fields(_HEADER_FIELDS, _require_object(data, "a header")))


@dataclass
class Block:
    """A block: its header, uncles, transactions and withdrawals."""

    JSON_FIELDS: ClassVar[frozenset[str]] = Header.JSON_FIELDS | frozenset(
        {"totalDifficulty", "uncles", "transactions", "size", "withdrawals"}
    )

    header: Header = field(default_factory=Header)
    total_difficulty: int | None = None
    uncles: list[bytes] = field(default_factory=list)
    transactions: BlockTransactions = field(default_factory=BlockTransactions)
    size: int | None = None
    withdrawals: list[Any] | None = None

    def into_full_block(self, txs: Iterable[Any]) -> Block:
        """Return a copy of this block holding the given full transactions."""
        return dataclasses.replace(self, transactions=BlockTransactions.full(txs))

    def to_json(self) -> dict[str, Any]:
        encoded = self.header.to_json()
        if self.total_difficulty is not None:
            encoded["totalDifficulty"] = to_quantity(self.total_difficulty)
        encoded["uncles"] = [to_data(uncle) for uncle in self.uncles]
        if not self.transactions.is_uncle():
            encoded["transactions"] = self.transactions.to_json()
        encoded["size"] = None if self.size is None else to_quantity(self.size)
        if self.withdrawals is not None:
            encoded["withdrawals"] = [_plain_json(w) for w in self.withdrawals]
        return encoded

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Block:
        data = _require_object(data, "a block")
        header = Header.from_json(data)
        if "uncles" not in data:
            raise ValueError("missing field `uncles`")
        uncles = data["uncles"]
        if not isinstance(uncles, list):
            raise ValueError("`uncles` must be an array")
        total_difficulty = data.get("totalDifficulty")
        size = data.get("size")
        withdrawals = data.get("withdrawals")
        if withdrawals is not None:
            if not isinstance(withdrawals, list) or not all(
                isinstance(w, Mapping) for w in withdrawals
            ):
                raise ValueError("`withdrawals` must be an array of objects")
            withdrawals = [dict(w) for w in withdrawals]
        return cls(
            header=header,
            total_difficulty=None if total_difficulty is None else _U256.decode(total_difficulty),
            uncles=[_HASH.decode(uncle) for uncle in uncles],
            transactions=BlockTransactions.from_json(data.get("transactions")),
            size=None if size is None else _U256.decode(size),
            withdrawals=withdrawals,
        )


@dataclass
class Rich(Generic[T]):
    """A value together with extra JSON fields serialized alongside it."""

    inner: T
    extra_info: dict[str, Any] = field(default_factory=dict)

    def __getattr__(self, name: str) -> Any:
        if name in ("inner", "extra_info") or name.startswith("__"):
            raise AttributeError(name)
        return getattr(self.inner, name)

    def to_json(self) -> Any:
        inner_json = self.inner.to_json()
        if not self.extra_info:
            return inner_json
        if not isinstance(inner_json, dict):
            raise ValueError("Unserializable structures: expected objects")
        merged = dict(inner_json)
        merged.update(sorted(self.extra_info.items()))
        return merged

    @classmethod
    def from_json(cls, data: Mapping[str, Any], inner_type: Any) -> Rich:
        data = _require_object(data, "a rich value")
        inner = inner_type.from_json(data)
        known = getattr(inner_type, "JSON_FIELDS", None)
        if known is None:
            inner_json = inner.to_json()
            known = inner_json.keys() if isinstance(inner_json, dict) else ()
        extra = {key: data[key] for key in sorted(data) if key not in known}
        return cls(inner, extra)


def _decode_block_hashes(raw: Any) -> dict[int, bytes]:
    if not isinstance(raw, Mapping):
        raise ValueError("`blockHash` must be an object")
    result: dict[int, bytes] = {}
    for key, value in raw.items():
        if not isinstance(key, str) or not _DECIMAL.fullmatch(key):
            raise ValueError(f"invalid block number key {key!r}")
        number = int(key)
        if number > _U64_MAX:
            raise ValueError(f"block number {key} does not fit in 64 bits")
        result[number] = parse_data(value, 32)
    return dict(sorted(result.items()))


def _encode_block_hashes(hashes: Mapping[int, bytes]) -> dict[str, str]:
    return {str(number): to_data(h) for number, h in sorted(hashes.items())}


_OVERRIDE_FIELDS = (
    _Field("number", "number", _U256, required=False, skip_none=True),
    _Field("difficulty", "difficulty", _U256, required=False, skip_none=True),
    _Field("time", "time", _U64, required=False, skip_none=True),
    _Field("gas_limit", "gasLimit", _U64, required=False, skip_none=True),
    _Field("coinbase", "coinbase", _ADDRESS, required=False, skip_none=True),
    _Field("random", "random", _HASH, required=False, skip_none=True),
    _Field("base_fee", "baseFee", _U256, required=False, skip_none=True),
    _Field(
        "block_hash",
        "blockHash",
        _Codec(_decode_block_hashes, _encode_block_hashes),
        required=False,
        skip_none=True,
    ),
)
_OVERRIDE_BY_KEY = {spec.key: spec for spec in _OVERRIDE_FIELDS}
_OVERRIDE_ALIASES = {"blockNumber": "number", "timestamp": "time"}


@dataclass
class BlockOverrides:
    """Header fields to override when simulating calls."""

    number: int | None = None
    difficulty: int | None = None
    time: int | None = None
    gas_limit: int | None = None
    coinbase: bytes | None = None
    random: bytes | None = None
    base_fee: int | None = None
    block_hash: dict[int, bytes] | None = None

    def to_json(self) -> dict[str, Any]:
        return _encode_fields(_OVERRIDE_FIELDS, self)

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> BlockOverrides:
        data = _require_object(data, "a block overrides")
        values: dict[str, Any] = {}
        for key, raw in data.items():
            spec = _OVERRIDE_BY_KEY.get(_OVERRIDE_ALIASES.get(key, key))
            if spec is None:
                expected = ", ".join(f"`{name}`" for name in _OVERRIDE_BY_KEY)
                raise ValueError(f"unknown field `{key}`, expected one of {expected}")
            if spec.attr in values:
                raise ValueError(f"duplicate field `{spec.key}`")
            values[spec.attr] = None if raw is None else spec.codec.decode(raw)
        return cls(**values)