"""Ethereum JSON-RPC data types with JSON encoding and decoding."""

__version__ = "0.1.0"
__all__ = [
    "block",
    "block_id",
    "call",
    "fee",
    "filter",
    "filtered",
    "log",
    "primitives",
    "pubsub",
    "state",
    "syncing",
]