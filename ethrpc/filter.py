"""Log filters: block ranges, address sets and topic sets."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Union

from .block_id import BlockNumberOrTag, BlockTag
from .primitives import Bloom, keccak256, parse_data, to_data

_MISSING = object()
_TOPIC_COUNT = 4

BlockLike = Union[BlockNumberOrTag, BlockTag, int]


@dataclass
class BloomFilter:
    """A list of blooms; a bloom matches if it contains any of them."""

    blooms: list[Bloom] = field(default_factory=list)

    def matches(self, bloom: Bloom) -> bool:
        """An empty filter matches every bloom; otherwise one entry must be contained."""
        return not self.blooms or any(bloom.contains(entry) for entry in self.blooms)


@dataclass(frozen=True)
class FilterSet:
    """A set of accepted values; the empty set accepts anything."""

    values: frozenset = frozenset()

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", frozenset(self.values))

    @classmethod
    def from_raw(cls, value: Any) -> FilterSet:
        """Build a set from ``None``, a single value, or a list that may hold ``None``.

        A ``None`` anywhere is a wildcard, which makes the whole set empty.
        """
        if value is None:
            return cls()
        if isinstance(value, FilterSet):
            return value
        if isinstance(value, (list, tuple, set, frozenset)):
            items = list(value)
            if any(item is None for item in items):
                return cls()
            return cls(frozenset(items))
        return cls(frozenset([value]))

    def is_empty(self) -> bool:
        return not self.values

    def matches(self, value: Any) -> bool:
        return self.is_empty() or value in self.values

    def to_bloom_filter(self) -> BloomFilter:
        return BloomFilter([Bloom.from_input(value) for value in sorted(self.values)])

    def to_value_or_array(self) -> Any:
        """``None`` when empty, the single value when one, else a sorted list."""
        values = sorted(self.values)
        if not values:
            return None
        if len(values) == 1:
            return values[0]
        return values


def _to_block_number(block: BlockLike) -> BlockNumberOrTag:
    if isinstance(block, BlockNumberOrTag):
        return block
    if isinstance(block, BlockTag) or (isinstance(block, int) and not isinstance(block, bool)):
        return BlockNumberOrTag(block)
    raise TypeError(f"cannot use {block!r} as a block number or tag")


def _check_hash(value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray)) or len(value) != 32:
        raise ValueError("block hash must be 32 bytes")
    return bytes(value)


@dataclass(frozen=True)
class FilterBlockOption:
    """Either an inclusive block range or a single block hash."""

    from_block: BlockNumberOrTag | None = None
    to_block: BlockNumberOrTag | None = None
    block_hash: bytes | None = None

    def __post_init__(self) -> None:
        if self.block_hash is not None:
            object.__setattr__(self, "block_hash", _check_hash(self.block_hash))
            if self.from_block is not None or self.to_block is not None:
                raise ValueError("a block hash filter cannot carry a block range")

    @classmethod
    def coerce(cls, value: Any) -> FilterBlockOption:
        """Turn a block, hash, ``range`` or ``(start, end)`` pair into a block option.

        In a pair, a missing start means ``earliest`` and a missing end ``latest``.
        """
        if isinstance(value, FilterBlockOption):
            return value
        if isinstance(value, (bytes, bytearray)):
            return cls(block_hash=bytes(value))
        if isinstance(value, range):
            return cls(_to_block_number(value.start), _to_block_number(value.stop))
        if isinstance(value, tuple) and len(value) == 2:
            start, end = value
            return cls(
                BlockNumberOrTag(BlockTag.EARLIEST) if start is None else _to_block_number(start),
                BlockNumberOrTag(BlockTag.LATEST) if end is None else _to_block_number(end),
            )
        block = _to_block_number(value)
        return cls(block, block)

    def is_block_hash(self) -> bool:
        return self.block_hash is not None

    def get_from_block(self) -> BlockNumberOrTag | None:
        return self.from_block

    def get_to_block(self) -> BlockNumberOrTag | None:
        return self.to_block

    def as_range(self) -> tuple[BlockNumberOrTag | None, BlockNumberOrTag | None]:
        return self.from_block, self.to_block

    def set_from_block(self, block: BlockLike) -> FilterBlockOption:
        return FilterBlockOption(_to_block_number(block), self.to_block)

    def set_to_block(self, block: BlockLike) -> FilterBlockOption:
        return FilterBlockOption(self.from_block, _to_block_number(block))

    def set_hash(self, block_hash: bytes) -> FilterBlockOption:
        return FilterBlockOption(block_hash=block_hash)


def _to_topic_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        if not 0 <= value < 1 << 256:
            raise ValueError("topic integer must fit in 256 bits")
        return value.to_bytes(32, "big")
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise ValueError("topic must be 32 bytes")
        return bytes(value)
    raise TypeError(f"cannot use {value!r} as a topic")


def _to_topic(topic: Any) -> FilterSet:
    if isinstance(topic, FilterSet):
        return topic
    if isinstance(topic, (list, tuple, set, frozenset)):
        return FilterSet.from_raw([_to_topic_value(item) for item in topic])
    return FilterSet.from_raw(_to_topic_value(topic))


def _to_address_value(value: Any) -> bytes:
    if not isinstance(value, (bytes, bytearray)) or len(value) != 20:
        raise ValueError("address must be 20 bytes")
    return bytes(value)


def _decode_variadic(value: Any, size: int) -> FilterSet:
    if value is None:
        return FilterSet()
    if isinstance(value, str):
        return FilterSet.from_raw(parse_data(value, size))
    if isinstance(value, list):
        items = []
        for item in value:
            if item is None:
                items.append(None)
            elif isinstance(item, str):
                items.append(parse_data(item, size))
            else:
                raise ValueError(f"Invalid variadic value or array type: {item!r}")
        return FilterSet.from_raw(items)
    raise ValueError(f"Invalid variadic value or array type: {value!r}")


def _encode_variadic(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, list):
        return [to_data(item) for item in value]
    return to_data(value)


def _empty_topics() -> tuple[FilterSet, ...]:
    return tuple(FilterSet() for _ in range(_TOPIC_COUNT))


@dataclass(frozen=True)
class Filter:
    """A log filter; the builder methods return new filters."""

    block_option: FilterBlockOption = field(default_factory=FilterBlockOption)
    address: FilterSet = field(default_factory=FilterSet)
    topics: tuple[FilterSet, ...] = field(default_factory=_empty_topics)

    def __post_init__(self) -> None:
        topics = tuple(self.topics)
        if len(topics) != _TOPIC_COUNT:
            raise ValueError(f"a filter holds exactly {_TOPIC_COUNT} topics")
        object.__setattr__(self, "topics", topics)

    def _with_topic(self, position: int, topic: Any) -> Filter:
        topics = list(self.topics)
        topics[position] = _to_topic(topic)
        return dataclasses.replace(self, topics=tuple(topics))

    def select(self, block: Any) -> Filter:
        """Target a block, a hash, a range or an open-ended ``(start, end)`` pair."""
        return dataclasses.replace(self, block_option=FilterBlockOption.coerce(block))

    def from_block(self, block: BlockLike) -> Filter:
        return dataclasses.replace(self, block_option=self.block_option.set_from_block(block))

    def to_block(self, block: BlockLike) -> Filter:
        return dataclasses.replace(self, block_option=self.block_option.set_to_block(block))

    def at_block_hash(self, block_hash: bytes) -> Filter:
        return dataclasses.replace(self, block_option=self.block_option.set_hash(block_hash))

    def with_address(self, address: Any) -> Filter:
        """Match one address or any of a list of addresses."""
        if isinstance(address, FilterSet):
            addresses = address
        elif isinstance(address, (bytes, bytearray)):
            addresses = FilterSet([_to_address_value(address)])
        else:
            addresses = FilterSet(_to_address_value(item) for item in address)
        return dataclasses.replace(self, address=addresses)

    def event(self, event_name: str) -> Filter:
        """Hash an event signature and match it as topic 0."""
        return self.event_signature(keccak256(event_name.encode()))

    def events(self, events: Iterable[str | bytes]) -> Filter:
        """Hash several event signatures and match any of them as topic 0."""
        hashes = [
            keccak256(event.encode() if isinstance(event, str) else bytes(event))
            for event in events
        ]
        return self.event_signature(hashes)

    def event_signature(self, topic: Any) -> Filter:
        return self._with_topic(0, topic)

    def topic1(self, topic: Any) -> Filter:
        return self._with_topic(1, topic)

    def topic2(self, topic: Any) -> Filter:
        return self._with_topic(2, topic)

    def topic3(self, topic: Any) -> Filter:
        return self._with_topic(3, topic)

    def is_paginatable(self) -> bool:
        return self.get_from_block() is not None

    def get_from_block(self) -> int | None:
        block = self.block_option.get_from_block()
        return None if block is None else block.as_number()

    def get_to_block(self) -> int | None:
        block = self.block_option.get_to_block()
        return None if block is None else block.as_number()

    def get_block_hash(self) -> bytes | None:
        return self.block_option.block_hash

    def has_topics(self) -> bool:
        return any(not topic.is_empty() for topic in self.topics)

    def to_json(self) -> dict[str, Any]:
        encoded: dict[str, Any] = {}
        option = self.block_option
        if option.block_hash is not None:
            encoded["blockHash"] = to_data(option.block_hash)
        else:
            if option.from_block is not None:
                encoded["fromBlock"] = option.from_block.to_json()
            if option.to_block is not None:
                encoded["toBlock"] = option.to_block.to_json()
        address = self.address.to_value_or_array()
        if address is not None:
            encoded["address"] = _encode_variadic(address)
        used = max(
            (index + 1 for index, topic in enumerate(self.topics) if not topic.is_empty()),
            default=0,
        )
        encoded["topics"] = [
            _encode_variadic(topic.to_value_or_array()) for topic in self.topics[:used]
        ]
        return encoded

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> Filter:
        if not isinstance(data, Mapping):
            raise ValueError("expected a Filter object")
        from_block: Any = _MISSING
        to_block: Any = _MISSING
        block_hash: Any = _MISSING
        address: Any = None
        topics: Any = None
        for key, value in data.items():
            if key == "fromBlock":
                if block_hash is not _MISSING:
                    raise ValueError("fromBlock not allowed with blockHash")
                from_block = None if value is None else BlockNumberOrTag.from_json(value)
            elif key == "toBlock":
                if block_hash is not _MISSING:
                    raise ValueError("toBlock not allowed with blockHash")
                to_block = None if value is None else BlockNumberOrTag.from_json(value)
            elif key == "blockHash":
                if from_block is not _MISSING or to_block is not _MISSING:
                    raise ValueError("fromBlock,toBlock not allowed with blockHash")
                block_hash = None if value is None else parse_data(value, 32)
            elif key == "address":
                address = value
            elif key == "topics":
                topics = value
            else:
                raise ValueError(
                    f"unknown field `{key}`, expected one of "
                    "`fromBlock`, `toBlock`, `address`, `topics`, `blockHash`"
                )

        raw_topics = [] if topics is None else topics
        if not isinstance(raw_topics, list):
            raise ValueError("`topics` must be an array")
        if len(raw_topics) > _TOPIC_COUNT:
            raise ValueError("exceeded maximum topics len")
        decoded = [_decode_variadic(topic, 32) for topic in raw_topics]
        decoded.extend(FilterSet() for _ in range(_TOPIC_COUNT - len(decoded)))

        if block_hash is not _MISSING and block_hash is not None:
            option = FilterBlockOption(block_hash=block_hash)
        else:
            option = FilterBlockOption(
                None if from_block is _MISSING else from_block,
                None if to_block is _MISSING else to_block,
            )
        return cls(option, _decode_variadic(address, 20), tuple(decoded))