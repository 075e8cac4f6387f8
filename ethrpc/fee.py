"""Fee history types for ``eth_feeHistory``."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .primitives import parse_quantity, to_quantity

_U256_LIMIT = 1 << 256


def _u256(value: Any) -> int:
    number = parse_quantity(value)
    if number >= _U256_LIMIT:
        raise ValueError("number too large to fit in 256 bits")
    return number


def _u256_list(value: Any, key: str) -> list[int]:
    if not isinstance(value, list):
        raise ValueError(f"`{key}` must be an array")
    return [_u256(item) for item in value]


def _ratio(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"expected a number, got {value!r}")
    return float(value)


@dataclass
class TxGasAndReward:
    """Gas used and effective tip of a transaction; ordered by reward alone."""

    gas_used: int
    reward: int

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, TxGasAndReward):
            return NotImplemented
        return self.reward < other.reward

    def __le__(self, other: object) -> bool:
        if not isinstance(other, TxGasAndReward):
            return NotImplemented
        return self.reward <= other.reward

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, TxGasAndReward):
            return NotImplemented
        return self.reward > other.reward

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, TxGasAndReward):
            return NotImplemented
        return self.reward >= other.reward


@dataclass
class FeeHistory:
    """Response of ``eth_feeHistory``."""

    base_fee_per_gas: list[int] = field(default_factory=list)
    gas_used_ratio: list[float] = field(default_factory=list)
    oldest_block: int = 0
    reward: list[list[int]] | None = None

    def to_json(self) -> dict[str, Any]:
        encoded: dict[str, Any] = {}
        if self.base_fee_per_gas:
            encoded["baseFeePerGas"] = [to_quantity(fee) for fee in self.base_fee_per_gas]
        if self.gas_used_ratio:
            encoded["gasUsedRatio"] = list(self.gas_used_ratio)
        encoded["oldestBlock"] = to_quantity(self.oldest_block)
        encoded["reward"] = (
            None
            if self.reward is None
            else [[to_quantity(value) for value in block] for block in self.reward]
        )
        return encoded

    @classmethod
    def from_json(cls, data: Mapping[str, Any]) -> FeeHistory:
        if not isinstance(data, Mapping):
            raise ValueError("expected a fee history object")
        if "oldestBlock" not in data:
            raise ValueError("missing field `oldestBlock`")
        ratios = data.get("gasUsedRatio", [])
        if not isinstance(ratios, list):
            raise ValueError("`gasUsedRatio` must be an array")
        reward = data.get("reward")
        if reward is not None:
            if not isinstance(reward, list):
                raise ValueError("`reward` must be an array")
            reward = [_u256_list(block, "reward") for block in reward]
        return cls(
            base_fee_per_gas=_u256_list(data.get("baseFeePerGas", []), "baseFeePerGas"),
            gas_used_ratio=[_ratio(ratio) for ratio in ratios],
            oldest_block=_u256(data["oldestBlock"]),
            reward=reward,
        )