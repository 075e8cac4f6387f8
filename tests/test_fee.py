import pytest

from ethrpc.fee import FeeHistory, TxGasAndReward


def test_sorting_uses_reward_only():
    items = [
        TxGasAndReward(gas_used=1, reward=30),
        TxGasAndReward(gas_used=100, reward=10),
        TxGasAndReward(gas_used=50, reward=20),
    ]
    assert [item.reward for item in sorted(items)] == [10, 20, 30]
    assert max(items).gas_used == 1


def test_equal_rewards_compare_as_ordered_but_not_equal():
    a = TxGasAndReward(gas_used=1, reward=5)
    b = TxGasAndReward(gas_used=2, reward=5)
    assert a <= b and b <= a
    assert not a < b and not b < a
    assert a != b
    assert a == TxGasAndReward(gas_used=1, reward=5)


def test_comparison_with_other_type_fails():
    with pytest.raises(TypeError):
        TxGasAndReward(1, 1) < 3


def test_round_trip_full_history():
    history = FeeHistory(
        base_fee_per_gas=[7, 8, 9],
        gas_used_ratio=[0.5, 0.25],
        oldest_block=123,
        reward=[[1, 2], [3, 4]],
    )
    assert FeeHistory.from_json(history.to_json()) == history


def test_empty_lists_are_skipped():
    encoded = FeeHistory(oldest_block=255).to_json()
    assert encoded == {"oldestBlock": "0xff", "reward": None}
    assert FeeHistory.from_json(encoded) == FeeHistory(oldest_block=255)


def test_missing_oldest_block_is_an_error():
    with pytest.raises(ValueError, match="oldestBlock"):
        FeeHistory.from_json({"baseFeePerGas": []})


def test_integer_ratios_become_floats():
    history = FeeHistory.from_json({"oldestBlock": "0x1", "gasUsedRatio": [1, 0]})
    assert history.gas_used_ratio == [1.0, 0.0]
    assert all(isinstance(ratio, float) for ratio in history.gas_used_ratio)


def test_boolean_ratio_rejected():
    with pytest.raises(ValueError):
        FeeHistory.from_json({"oldestBlock": "0x1", "gasUsedRatio": [True]})


def test_oversized_quantity_rejected():
    with pytest.raises(ValueError):
        FeeHistory.from_json({"oldestBlock": "0x1" + "0" * 64})


def test_null_reward_is_none():
    history = FeeHistory.from_json({"oldestBlock": "0x2", "reward": None})
    assert history.reward is None
    assert history.oldest_block == 2