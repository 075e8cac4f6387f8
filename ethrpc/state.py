"""Account state overrides for ``eth_call``."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .primitives import parse_data, parse_quantity, to_data, to_quantity

_U256_LIMIT = 1 << 256
_U64_LIMIT = 1 << 64


def _uint(value: Any, limit: int) -> int:
    number = parse_quantity(value)
    if number >= limit:
        raise ValueError("number too large")
    return number


def _slots(value: Any, key: str) -> dict[bytes, int]:
    if not isinstance(value, Mapping):
        raise ValueError(f"`{key}` must be an object")
    return {parse_data(slot, 32): _uint(item, _U256_LIMIT) for slot, item in value.items()}


def _encode_slots(slots: Mapping[bytes, int]) -> dict[str, str]:
    return {to_data(slot): to_quantity(value) for slot, value in slots.items()}


_KNOWN_KEYS = ("balance", "nonce", "code", "state", "stateDiff")


@dataclass
class AccountOverride:
    """Fake balance, nonce, code or storage for an account during a call."""

    balance: int | None = None
    nonce: int | None = None
    code: bytes | None = None
    state: dict[bytes, int] | None = None
    state_diff: dict[bytes, int] | None = None

    def to_json(self) -> dict[str, Any]:
        encoded: dict[str, Any] = {}
        if self.balance is not None:
            encoded["balance"] = to_quantity(self.balance)
        if self.nonce is not None:
            encoded["nonce"] = to_quantity(self.nonce)
        if self.code is not None:
            encoded["code"] = to_data(self.code)
        if self.state is not None:
            encoded["state"] = _encode_slots(self.state)
        if self.state_diff is not None:
            encoded["stateDiff"] = _encode_slots(self.state_diff)
        return encoded

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> AccountOverride:
        if not isinstance(data, Mapping):
            raise ValueError("expected an account override object")
        for key in data:
            if key not in _KNOWN_KEYS:
                expected = ", ".join(f"`{name}`" for name in _KNOWN_KEYS)
                raise ValueError(f"unknown field `{key}`, expected one of {expected}")
        balance = data.get("balance")
        nonce = data.get("nonce")
        code = data.get("code")
        state = data.get("state")
        state_diff = data.get("stateDiff")
        return cls(
            balance=None if balance is None else _uint(balance, _U256_LIMIT),
            nonce=None if nonce is None else _uint(nonce, _U64_LIMIT),
            code=None if code is None else parse_data(code),
            state=None if state is None else _slots(state, "state"),
            state_diff=None if state_diff is None else _slots(state_diff, "stateDiff"),
        )


def state_override_from_json(data: Mapping[str, Any]) -> dict[bytes, AccountOverride]:
    """Decode a map of account address to override."""
    if not isinstance(data, Mapping):
        raise ValueError("expected a state override object")
    return {
        parse_data(address, 20): AccountOverride.from_json(override)
        for address, override in data.items()
    }


def state_override_to_json(overrides: Mapping[bytes, AccountOverride]) -> dict[str, Any]:
    """Encode a map of account address to override."""
    return {to_data(address): override.to_json() for address, override in overrides.items()}