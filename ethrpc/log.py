"""Ethereum log as returned over JSON-RPC."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .primitives import parse_data, parse_quantity, to_data, to_quantity

T = TypeVar("T")


def _required(data: dict, key: str) -> Any:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    return data[key]


def _optional(data: dict, key: str, parser: Callable[[Any], T]) -> T | None:
    value = data.get(key)
    return None if value is None else parser(value)


def _hash(value: Any) -> bytes:
    return parse_data(value, 32)


def _opt_hex(value: bytes | None) -> str | None:
    return None if value is None else to_data(value)


def _opt_quantity(value: int | None) -> str | None:
    return None if value is None else to_quantity(value)


@dataclass
class Log:
    """A log emitted by a transaction, with its position in the chain."""

    address: bytes
    topics: list[bytes] = field(default_factory=list)
    data: bytes = b""
    block_hash: bytes | None = None
    block_number: int | None = None
    transaction_hash: bytes | None = None
    transaction_index: int | None = None
    log_index: int | None = None
    removed: bool = False

    def to_json(self) -> dict[str, Any]:
        return {
            "address": to_data(self.address),
            "topics": [to_data(topic) for topic in self.topics],
            "data": to_data(self.data),
            "blockHash": _opt_hex(self.block_hash),
            "blockNumber": _opt_quantity(self.block_number),
            "transactionHash": _opt_hex(self.transaction_hash),
            "transactionIndex": _opt_quantity(self.transaction_index),
            "logIndex": _opt_quantity(self.log_index),
            "removed": self.removed,
        }

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Log:
        if not isinstance(data, dict):
            raise ValueError("expected a log object")
        topics = _required(data, "topics")
        if not isinstance(topics, list):
            raise ValueError("`topics` must be an array")
        removed = data.get("removed", False)
        if not isinstance(removed, bool):
            raise ValueError("`removed` must be a boolean")
        return cls(
            address=parse_data(_required(data, "address"), 20),
            topics=[_hash(topic) for topic in topics],
            data=parse_data(_required(data, "data")),
            block_hash=_optional(data, "blockHash", _hash),
            block_number=_optional(data, "blockNumber", parse_quantity),
            transaction_hash=_optional(data, "transactionHash", _hash),
            transaction_index=_optional(data, "transactionIndex", parse_quantity),
            log_index=_optional(data, "logIndex", parse_quantity),
            removed=removed,
        )