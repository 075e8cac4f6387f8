"""Sync status, peer and chain status types."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .primitives import parse_data, parse_quantity, to_data, to_quantity

_U256_LIMIT = 1 << 256
_U64_LIMIT = 1 << 64
_U32_LIMIT = 1 << 32


def _uint(value: Any, limit: int) -> int:
    number = parse_quantity(value)
    if number >= limit:
        raise ValueError("number too large")
    return number


def _u256(value: Any) -> int:
    return _uint(value, _U256_LIMIT)


def _opt_u256(value: Any) -> int | None:
    return None if value is None else _u256(value)


def _opt_quantity(value: int | None) -> str | None:
    return None if value is None else to_quantity(value)


def _object(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValueError(f"expected {what} object, got {data!r}")
    return data


def _required(data: Mapping[str, Any], key: str) -> Any:
    if key not in data:
        raise ValueError(f"missing field `{key}`")
    return data[key]


def _string(value: Any, key: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"`{key}` must be a string")
    return value


def _u32(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value < _U32_LIMIT:
        raise ValueError(f"`{key}` must be an unsigned 32-bit integer")
    return value


@dataclass
class SyncInfo:
    """Progress of a syncing node."""

    starting_block: int = 0
    current_block: int = 0
    highest_block: int = 0
    warp_chunks_amount: int | None = None
    warp_chunks_processed: int | None = None

    def to_json(self) -> dict[str, Any]:
        return {
            "startingBlock": to_quantity(self.starting_block),
            "currentBlock": to_quantity(self.current_block),
            "highestBlock": to_quantity(self.highest_block),
            "warpChunksAmount": _opt_quantity(self.warp_chunks_amount),
            "warpChunksProcessed": _opt_quantity(self.warp_chunks_processed),
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> SyncInfo:
        data = _object(data, "a sync info")
        return cls(
            starting_block=_u256(_required(data, "startingBlock")),
            current_block=_u256(_required(data, "currentBlock")),
            highest_block=_u256(_required(data, "highestBlock")),
            warp_chunks_amount=_opt_u256(data.get("warpChunksAmount")),
            warp_chunks_processed=_opt_u256(data.get("warpChunksProcessed")),
        )


@dataclass
class PeerNetworkInfo:
    """Remote and local endpoint addresses of a peer connection."""

    remote_address: str = ""
    local_address: str = ""


@dataclass
class PeerEthProtocolInfo:
    """Negotiated eth protocol details of a peer."""

    version: int = 0
    difficulty: int | None = None
    head: str = ""


@dataclass
class PipProtocolInfo:
    """Negotiated PIP protocol details of a peer."""

    version: int = 0
    difficulty: int = 0
    head: str = ""


@dataclass
class PeerProtocolsInfo:
    """Protocols spoken with a peer."""

    eth: PeerEthProtocolInfo | None = None
    pip: PipProtocolInfo | None = None


def _network_to_json(info: PeerNetworkInfo) -> dict[str, Any]:
    return {"remoteAddress": info.remote_address, "localAddress": info.local_address}


def _network_from_json(data: Any) -> PeerNetworkInfo:
    data = _object(data, "a peer network info")
    return PeerNetworkInfo(
        remote_address=_string(_required(data, "remoteAddress"), "remoteAddress"),
        local_address=_string(_required(data, "localAddress"), "localAddress"),
    )


def _eth_to_json(info: PeerEthProtocolInfo) -> dict[str, Any]:
    return {
        "version": info.version,
        "difficulty": _opt_quantity(info.difficulty),
        "head": info.head,
    }


def _eth_from_json(data: Any) -> PeerEthProtocolInfo:
    data = _object(data, "an eth protocol info")
    return PeerEthProtocolInfo(
        version=_u32(_required(data, "version"), "version"),
        difficulty=_opt_u256(data.get("difficulty")),
        head=_string(_required(data, "head"), "head"),
    )


def _pip_to_json(info: PipProtocolInfo) -> dict[str, Any]:
    return {"version": info.version, "difficulty": to_quantity(info.difficulty), "head": info.head}


def _pip_from_json(data: Any) -> PipProtocolInfo:
    data = _object(data, "a pip protocol info")
    return PipProtocolInfo(
        version=_u32(_required(data, "version"), "version"),
        difficulty=_u256(_required(data, "difficulty")),
        head=_string(_required(data, "head"), "head"),
    )


def _protocols_to_json(info: PeerProtocolsInfo) -> dict[str, Any]:
    encoded: dict[str, Any] = {"eth": None if info.eth is None else _eth_to_json(info.eth)}
    if info.pip is not None:
        encoded["pip"] = _pip_to_json(info.pip)
    return encoded


def _protocols_from_json(data: Any) -> PeerProtocolsInfo:
    data = _object(data, "a peer protocols info")
    eth = data.get("eth")
    pip = data.get("pip")
    return PeerProtocolsInfo(
        eth=None if eth is None else _eth_from_json(eth),
        pip=None if pip is None else _pip_from_json(pip),
    )


@dataclass
class PeerInfo:
    """Connection information about one peer."""

    id: str | None = None
    name: str = ""
    caps: list[str] = field(default_factory=list)
    network: PeerNetworkInfo = field(default_factory=PeerNetworkInfo)
    protocols: PeerProtocolsInfo = field(default_factory=PeerProtocolsInfo)

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "caps": list(self.caps),
            "network": _network_to_json(self.network),
            "protocols": _protocols_to_json(self.protocols),
        }

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> PeerInfo:
        data = _object(data, "a peer info")
        peer_id = data.get("id")
        caps = _required(data, "caps")
        if not isinstance(caps, list):
            raise ValueError("`caps` must be an array")
        return cls(
            id=None if peer_id is None else _string(peer_id, "id"),
            name=_string(_required(data, "name"), "name"),
            caps=[_string(cap, "caps") for cap in caps],
            network=_network_from_json(_required(data, "network")),
            protocols=_protocols_from_json(_required(data, "protocols")),
        )


@dataclass
class Peers:
    """Peer counts and details."""

    active: int = 0
    connected: int = 0
    max: int = 0
    peers: list[PeerInfo] = field(default_factory=list)

    def to_json(self) -> dict[str, Any]:
        return {
            "active": self.active,
            "connected": self.connected,
            "max": self.max,
            "peers": [peer.to_json() for peer in self.peers],
        }


@dataclass
class TransactionStats:
    """Propagation statistics for a pending transaction."""

    first_seen: int = 0
    propagated_to: dict[bytes, int] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {
            "firstSeen": self.first_seen,
            "propagatedTo": {
                to_data(peer): count for peer, count in sorted(self.propagated_to.items())
            },
        }


@dataclass
class ChainStatus:
    """Chain status: the gap in the chain as ``(first, last)``, if any."""

    block_gap: tuple[int, int] | None = None

    def to_json(self) -> dict[str, Any]:
        if self.block_gap is None:
            return {"blockGap": None}
        first, last = self.block_gap
        return {"blockGap": [to_quantity(first), to_quantity(last)]}


def peer_count_from_json(value: Any) -> int:
    """Decode a peer count given as a 32-bit integer or a hex quantity."""
    if isinstance(value, int) and not isinstance(value, bool) and 0 <= value < _U32_LIMIT:
        return value
    if isinstance(value, str):
        return _uint(value, _U64_LIMIT)
    raise ValueError(f"data did not match any variant of untagged enum PeerCount: {value!r}")


def sync_status_from_json(value: Any) -> SyncInfo | None:
    """Decode an ``eth_syncing`` result; ``None`` means the node is not syncing."""
    if value is False:
        return None
    if value is True:
        raise ValueError("eth_syncing returned `true` that is undefined value.")
    if isinstance(value, Mapping):
        return SyncInfo.from_json(value)
    raise ValueError(f"data did not match any variant of untagged enum Syncing: {value!r}")


def sync_status_to_json(status: SyncInfo | None) -> Any:
    """Encode an ``eth_syncing`` result; ``None`` encodes as ``false``."""
    return False if status is None else status.to_json()


def _b512(value: Any) -> bytes:
    return parse_data(value, 64)