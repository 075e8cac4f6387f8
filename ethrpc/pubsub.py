"""Types for ``eth_subscribe``: subscription kinds, parameters and results."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from .block import Header, Rich
from .filter import Filter
from .log import Log
from .primitives import parse_data, to_data

_U64_MAX = 2**64 - 1


def _u64(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= _U64_MAX:
        raise ValueError(f"`{key}` must be an unsigned 64-bit integer")
    return value


@dataclass
class SyncStatusMetadata:
    """Detailed sync progress reported by a syncing subscription."""

    syncing: bool
    starting_block: int
    current_block: int
    highest_block: int | None = None

    def to_json(self) -> dict[str, Any]:
        encoded: dict[str, Any] = {
            "syncing": self.syncing,
            "startingBlock": self.starting_block,
            "currentBlock": self.current_block,
        }
        if self.highest_block is not None:
            encoded["highestBlock"] = self.highest_block
        return encoded

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> SyncStatusMetadata:
        if not isinstance(data, Mapping):
            raise ValueError("expected a sync status object")
        for key in ("syncing", "startingBlock", "currentBlock"):
            if key not in data:
                raise ValueError(f"missing field `{key}`")
        if not isinstance(data["syncing"], bool):
            raise ValueError("`syncing` must be a boolean")
        highest = data.get("highestBlock")
        return cls(
            syncing=data["syncing"],
            starting_block=_u64(data["startingBlock"], "startingBlock"),
            current_block=_u64(data["currentBlock"], "currentBlock"),
            highest_block=None if highest is None else _u64(highest, "highestBlock"),
        )


PubSubSyncStatus = Union[bool, SyncStatusMetadata]


def pubsub_sync_status_from_json(value: Any) -> PubSubSyncStatus:
    """Decode a sync status: a plain boolean or detailed metadata."""
    if isinstance(value, bool):
        return value
    if isinstance(value, Mapping):
        return SyncStatusMetadata.from_json(value)
    raise ValueError(f"data did not match any variant of untagged enum PubSubSyncStatus: {value!r}")


def pubsub_sync_status_to_json(status: PubSubSyncStatus) -> Any:
    if isinstance(status, bool):
        return status
    return status.to_json()


class SubscriptionResultKind(Enum):
    """What a subscription notification carries."""

    HEADER = "header"
    LOG = "log"
    TRANSACTION_HASH = "transaction_hash"
    FULL_TRANSACTION = "full_transaction"
    SYNC_STATE = "sync_state"


@dataclass
class SubscriptionResult:
    """A subscription notification payload.

    ``value`` is a ``Rich`` header, a ``Log``, a 32-byte hash, a transaction
    (kept as its JSON object) or a sync status.
    """

    kind: SubscriptionResultKind
    value: Any

    def to_json(self) -> Any:
        if self.kind is SubscriptionResultKind.TRANSACTION_HASH:
            return to_data(self.value)
        if self.kind is SubscriptionResultKind.SYNC_STATE:
            return pubsub_sync_status_to_json(self.value)
        if self.kind is SubscriptionResultKind.FULL_TRANSACTION:
            to_json = getattr(self.value, "to_json", None)
            return to_json() if callable(to_json) else dict(self.value)
        return self.value.to_json()

    @classmethod
    def from_json(cls, value: Any) -> SubscriptionResult:
        if isinstance(value, Mapping):
            try:
                return cls(SubscriptionResultKind.HEADER, Rich.from_json(value, Header))
            except (ValueError, TypeError):
                pass
            try:
                return cls(SubscriptionResultKind.LOG, Log.from_json(dict(value)))
            except (ValueError, TypeError):
                pass
            try:
                return cls(SubscriptionResultKind.SYNC_STATE, SyncStatusMetadata.from_json(value))
            except (ValueError, TypeError):
                pass
            return cls(SubscriptionResultKind.FULL_TRANSACTION, dict(value))
        if isinstance(value, str):
            return cls(SubscriptionResultKind.TRANSACTION_HASH, parse_data(value, 32))
        if isinstance(value, bool):
            return cls(SubscriptionResultKind.SYNC_STATE, value)
        raise ValueError(
            f"data did not match any variant of untagged enum SubscriptionResult: {value!r}"
        )


class SubscriptionKind(Enum):
    """The kinds of subscription a client can open."""

    NEW_HEADS = "newHeads"
    LOGS = "logs"
    NEW_PENDING_TRANSACTIONS = "newPendingTransactions"
    SYNCING = "syncing"

    def to_json(self) -> str:
        return self.value

    @classmethod
    def from_json(cls, value: Any) -> SubscriptionKind:
        for kind in cls:
            if kind.value == value:
                return kind
        expected = ", ".join(f"`{kind.value}`" for kind in cls)
        raise ValueError(f"unknown variant {value!r}, expected one of {expected}")


@dataclass
class Params:
    """Subscription parameters: nothing, a log filter, or a boolean."""

    value: Union[None, bool, Filter] = None

    def is_bool(self) -> bool:
        return isinstance(self.value, bool)

    def is_logs(self) -> bool:
        return isinstance(self.value, Filter)

    def to_json(self) -> Any:
        if self.value is None:
            return []
        if isinstance(self.value, bool):
            return self.value
        return self.value.to_json()

    @classmethod
    def from_json(cls, value: Any) -> Params:
        if value is None:
            return cls()
        if isinstance(value, bool):
            return cls(value)
        try:
            return cls(Filter.from_json(value))
        except (ValueError, TypeError) as exc:
            raise ValueError(f"Invalid Pub-Sub parameters: {exc}") from exc