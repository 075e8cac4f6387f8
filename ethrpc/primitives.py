"""Hex encoding, Keccak hashing, RLP and log bloom primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Iterable, Union

from Crypto.Hash import keccak

_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")

RlpItem = Union[bytes, list]


class HexError(ValueError):
    """Raised when a hex string cannot be decoded."""


class RlpError(ValueError):
    """Raised when RLP data is malformed."""


def keccak256(data: bytes) -> bytes:
    """Return the 32-byte Keccak-256 digest of ``data``."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def to_quantity(value: int) -> str:
    """Encode a non-negative integer as a 0x-prefixed hex quantity."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"expected an integer, got {value!r}")
    if value < 0:
        raise ValueError("quantity must be non-negative")
    return f"0x{value:x}"


def parse_quantity(text: str | int) -> int:
    """Decode a 0x-prefixed hex quantity; plain non-negative integers pass through."""
    if isinstance(text, bool):
        raise HexError(f"expected a hex quantity, got {text!r}")
    if isinstance(text, int):
        if text < 0:
            raise HexError("quantity must be non-negative")
        return text
    if not isinstance(text, str):
        raise HexError(f"expected a hex quantity, got {text!r}")
    if not text.startswith("0x"):
        raise HexError("hex string without 0x prefix")
    digits = text[2:]
    if not digits or not _HEX_DIGITS.fullmatch(digits):
        raise HexError(f"invalid hex quantity {text!r}")
    return int(digits, 16)


def to_data(value: bytes) -> str:
    """Encode bytes as a 0x-prefixed hex string."""
    return "0x" + bytes(value).hex()


def parse_data(text: str, size: int | None = None) -> bytes:
    """Decode a hex string (0x prefix optional), optionally requiring ``size`` bytes."""
    if not isinstance(text, str):
        raise HexError(f"expected a hex string, got {text!r}")
    digits = text[2:] if text.startswith("0x") else text
    if len(digits) % 2:
        raise HexError("odd number of digits")
    if not _HEX_DIGITS.fullmatch(digits):
        raise HexError(f"invalid character in hex string {text!r}")
    raw = bytes.fromhex(digits)
    if size is not None and len(raw) != size:
        raise HexError(f"invalid string length: expected {size} bytes, got {len(raw)}")
    return raw


def _encode_length(length: int, offset: int) -> bytes:
    if length < 56:
        return bytes([offset + length])
    length_bytes = length.to_bytes((length.bit_length() + 7) // 8, "big")
    return bytes([offset + 55 + len(length_bytes)]) + length_bytes


def rlp_encode(item) -> bytes:
    """RLP-encode bytes, non-negative integers and (nested) lists of them."""
    if isinstance(item, bool):
        raise TypeError("booleans cannot be RLP encoded")
    if isinstance(item, int):
        if item < 0:
            raise ValueError("negative integers cannot be RLP encoded")
        item = item.to_bytes((item.bit_length() + 7) // 8, "big")
    if isinstance(item, (bytes, bytearray, memoryview)):
        raw = bytes(item)
        if len(raw) == 1 and raw[0] < 0x80:
            return raw
        return _encode_length(len(raw), 0x80) + raw
    if isinstance(item, (list, tuple)):
        payload = b"".join(rlp_encode(element) for element in item)
        return _encode_length(len(payload), 0xC0) + payload
    raise TypeError(f"cannot RLP encode {type(item).__name__}")


def _long_length(data: bytes, pos: int, size: int) -> tuple[int, int]:
    start = pos + 1
    end = start + size
    if end > len(data):
        raise RlpError("input too short")
    length_bytes = data[start:end]
    if length_bytes[0] == 0:
        raise RlpError("leading zero in length")
    length = int.from_bytes(length_bytes, "big")
    if length < 56:
        raise RlpError("non-canonical size information")
    return length, end


def _header(data: bytes, pos: int) -> tuple[bool, int, int]:
    if pos >= len(data):
        raise RlpError("input too short")
    prefix = data[pos]
    if prefix < 0x80:
        return False, pos, pos + 1
    if prefix <= 0xB7:
        is_list, length, start = False, prefix - 0x80, pos + 1
    elif prefix <= 0xBF:
        is_list = False
        length, start = _long_length(data, pos, prefix - 0xB7)
    elif prefix <= 0xF7:
        is_list, length, start = True, prefix - 0xC0, pos + 1
    else:
        is_list = True
        length, start = _long_length(data, pos, prefix - 0xF7)
    end = start + length
    if end > len(data):
        raise RlpError("input too short")
    if not is_list and length == 1 and data[start] < 0x80:
        raise RlpError("non-canonical single byte")
    return is_list, start, end


def _decode_at(data: bytes, pos: int) -> tuple[RlpItem, int]:
    is_list, start, end = _header(data, pos)
    if not is_list:
        return data[start:end], end
    items: list = []
    cursor = start
    while cursor < end:
        item, cursor = _decode_at(data, cursor)
        if cursor > end:
            raise RlpError("list length mismatch")
        items.append(item)
    return items, end


def rlp_decode(data: bytes) -> RlpItem:
    """Decode a single RLP item that spans all of ``data``."""
    raw = bytes(data)
    item, end = _decode_at(raw, 0)
    if end != len(raw):
        raise RlpError("trailing bytes after RLP item")
    return item


class Bloom:
    """A 2048-bit Ethereum log bloom."""

    SIZE = 256

    __slots__ = ("_data",)

    def __init__(self, data: bytes | None = None) -> None:
        if data is None:
            self._data = bytearray(self.SIZE)
            return
        raw = bytes(data)
        if len(raw) != self.SIZE:
            raise ValueError(f"bloom must be {self.SIZE} bytes, got {len(raw)}")
        self._data = bytearray(raw)

    @classmethod
    def from_input(cls, data: bytes) -> Bloom:
        """Build a bloom holding the single raw input ``data``."""
        bloom = cls()
        bloom.accrue(data)
        return bloom

    def accrue(self, data: bytes) -> None:
        """Set the three bits that ``data`` hashes to."""
        digest = keccak256(data)
        for i in (0, 2, 4):
            bit = ((digest[i] << 8) | digest[i + 1]) & 0x7FF
            self._data[self.SIZE - 1 - bit // 8] |= 1 << (bit % 8)

    def contains(self, other: Bloom) -> bool:
        """Whether every bit set in ``other`` is set here too."""
        return all(mine & theirs == theirs for mine, theirs in zip(self._data, other._data))

    def to_json(self) -> str:
        return to_data(self._data)

    @classmethod
    def from_json(cls, value: str) -> Bloom:
        return cls(parse_data(value, cls.SIZE))

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Bloom):
            return NotImplemented
        return self._data == other._data

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Bloom({self.to_json()})"


@dataclass
class RawLog:
    """A consensus log: emitting address, topics and data."""

    address: bytes = bytes(20)
    topics: list[bytes] = field(default_factory=list)
    data: bytes = b""

    def __post_init__(self) -> None:
        self.address = bytes(self.address)
        if len(self.address) != 20:
            raise ValueError("address must be 20 bytes")
        self.topics = [bytes(topic) for topic in self.topics]
        if any(len(topic) != 32 for topic in self.topics):
            raise ValueError("topics must be 32 bytes each")
        self.data = bytes(self.data)

    def rlp_encode(self) -> bytes:
        return rlp_encode([self.address, self.topics, self.data])

    @classmethod
    def rlp_decode(cls, data: bytes) -> RawLog:
        item = rlp_decode(data)
        if not isinstance(item, list) or len(item) != 3:
            raise RlpError("expected a list of three items")
        address, topics, payload = item
        if not isinstance(address, bytes) or len(address) != 20:
            raise RlpError("invalid address")
        if not isinstance(topics, list) or any(
            not isinstance(topic, bytes) or len(topic) != 32 for topic in topics
        ):
            raise RlpError("invalid topics")
        if not isinstance(payload, bytes):
            raise RlpError("invalid data")
        return cls(address, topics, payload)


def logs_bloom(logs: Iterable[RawLog]) -> Bloom:
    """Compute the receipt bloom over the addresses and topics of ``logs``."""
    bloom = Bloom()
    for log in logs:
        bloom.accrue(log.address)
        for topic in log.topics:
            bloom.accrue(topic)
    return bloom