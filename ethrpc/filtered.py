"""Matching logs against filters, and filter-related RPC responses."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from itertools import zip_longest
from typing import Any

from .block_id import BlockTag
from .filter import BloomFilter, Filter, FilterSet
from .log import Log
from .primitives import Bloom, parse_data, to_data

_U64_MAX = 2**64 - 1
_EXHAUSTED = object()


def filter_id_from_json(value: Any) -> int | str:
    """Decode a filter id, which is either a 64-bit number or a string."""
    if isinstance(value, bool):
        raise ValueError(f"data did not match any variant of untagged enum FilterId: {value!r}")
    if isinstance(value, int):
        if not 0 <= value <= _U64_MAX:
            raise ValueError(
                f"data did not match any variant of untagged enum FilterId: {value!r}"
            )
        return value
    if isinstance(value, str):
        return value
    raise ValueError(f"data did not match any variant of untagged enum FilterId: {value!r}")


@dataclass
class FilteredParams:
    """Matches blocks and logs against an optional filter; no filter matches everything."""

    filter: Filter | None = None

    @staticmethod
    def address_filter(address: FilterSet) -> BloomFilter:
        return address.to_bloom_filter()

    @staticmethod
    def topics_filter(topics: Sequence[FilterSet]) -> list[BloomFilter]:
        return [topic.to_bloom_filter() for topic in topics]

    @staticmethod
    def matches_topics(bloom: Bloom, topic_filters: Sequence[BloomFilter]) -> bool:
        """Whether ``bloom`` matches every topic filter; an empty list matches."""
        return all(topic_filter.matches(bloom) for topic_filter in topic_filters)

    @staticmethod
    def matches_address(bloom: Bloom, address_filter: BloomFilter) -> bool:
        return address_filter.matches(bloom)

    def filter_block_range(self, block_number: int) -> bool:
        """Whether ``block_number`` lies in the filter's numeric block range."""
        if self.filter is None:
            return True
        option = self.filter.block_option
        matches = True
        from_block = option.get_from_block()
        if from_block is not None and from_block.is_number():
            if from_block.as_number() > block_number:
                matches = False
        to_block = option.get_to_block()
        if to_block is not None:
            if to_block.is_number():
                if to_block.as_number() < block_number:
                    matches = False
            elif to_block.value is BlockTag.EARLIEST:
                matches = False
        return matches

    def filter_block_hash(self, block_hash: bytes) -> bool:
        if self.filter is None:
            return True
        pinned = self.filter.get_block_hash()
        return pinned is None or pinned == block_hash

    def filter_address(self, log: Log) -> bool:
        if self.filter is None:
            return True
        return self.filter.address.matches(log.address)

    def filter_topics(self, log: Log) -> bool:
        """Whether the log's topics match the filter's topics position by position."""
        if self.filter is None:
            return True
        for filter_topic, log_topic in zip_longest(
            self.filter.topics, log.topics, fillvalue=_EXHAUSTED
        ):
            if filter_topic is _EXHAUSTED:
                return True
            if log_topic is _EXHAUSTED:
                if not filter_topic.is_empty():
                    return False
            elif not filter_topic.matches(log_topic):
                return False
        return True


class FilterChangesKind(Enum):
    """What a ``eth_getFilterChanges`` response holds."""

    LOGS = "logs"
    HASHES = "hashes"
    TRANSACTIONS = "transactions"
    EMPTY = "empty"


def _plain_json(item: Any) -> Any:
    to_json = getattr(item, "to_json", None)
    if callable(to_json):
        return to_json()
    return dict(item)


@dataclass
class FilterChanges:
    """Response of ``eth_getFilterChanges``: logs, hashes, transactions or nothing."""

    kind: FilterChangesKind = FilterChangesKind.EMPTY
    items: list[Any] = field(default_factory=list)

    @classmethod
    def logs(cls, logs: Sequence[Log]) -> FilterChanges:
        return cls(FilterChangesKind.LOGS, list(logs))

    @classmethod
    def hashes(cls, hashes: Sequence[bytes]) -> FilterChanges:
        return cls(FilterChangesKind.HASHES, [bytes(h) for h in hashes])

    @classmethod
    def transactions(cls, transactions: Sequence[Any]) -> FilterChanges:
        return cls(FilterChangesKind.TRANSACTIONS, list(transactions))

    @classmethod
    def empty(cls) -> FilterChanges:
        return cls()

    def to_json(self) -> list[Any]:
        if self.kind is FilterChangesKind.LOGS:
            return [log.to_json() for log in self.items]
        if self.kind is FilterChangesKind.HASHES:
            return [to_data(h) for h in self.items]
        if self.kind is FilterChangesKind.TRANSACTIONS:
            return [_plain_json(tx) for tx in self.items]
        return []

    @classmethod
    def from_json(cls, value: Any) -> FilterChanges:
        if isinstance(value, list):
            try:
                logs = [Log.from_json(item) for item in value]
            except (ValueError, TypeError):
                pass
            else:
                return cls.logs(logs) if logs else cls.empty()
            try:
                hashes = [parse_data(item, 32) for item in value]
            except (ValueError, TypeError):
                pass
            else:
                return cls.hashes(hashes) if hashes else cls.empty()
        raise ValueError("data did not match any variant of untagged enum Changes")


class PendingTransactionFilterKind(Enum):
    """Whether pending-transaction filters report hashes or full transactions."""

    HASHES = "hashes"
    FULL = "full"

    def to_json(self) -> bool:
        return self is PendingTransactionFilterKind.FULL

    @classmethod
    def from_json(cls, value: Any) -> PendingTransactionFilterKind:
        if value is not None and not isinstance(value, bool):
            raise ValueError(f"invalid type: expected a boolean, got {value!r}")
        return cls.FULL if value is True else cls.HASHES