import pytest

from ethrpc.block_id import BlockNumberOrTag, BlockTag
from ethrpc.filter import Filter, FilterSet
from ethrpc.filtered import (
    FilterChanges,
    FilterChangesKind,
    FilteredParams,
    PendingTransactionFilterKind,
    filter_id_from_json,
)
from ethrpc.log import Log
from ethrpc.primitives import Bloom, RawLog, keccak256, logs_bloom, to_data

ADDRESS = bytes(19) + b"\x69"
OTHER_ADDRESS = bytes(19) + b"\x70"
TOPIC_A = bytes(31) + b"\x01"
TOPIC_B = bytes(31) + b"\x02"
TOPIC_C = bytes(31) + b"\x03"


def make_log(address=ADDRESS, topics=()):
    return Log(address=address, topics=list(topics), data=b"\x69")


def test_matches_topics_with_no_filters():
    assert FilteredParams.matches_topics(Bloom(), []) is True


def test_address_bloom_matching():
    bloom = logs_bloom([RawLog(ADDRESS, [TOPIC_A], b"")])
    address_filter = FilteredParams.address_filter(FilterSet([ADDRESS]))
    assert FilteredParams.matches_address(bloom, address_filter) is True
    assert FilteredParams.matches_address(Bloom(), address_filter) is False


def test_empty_address_filter_matches_any_bloom():
    address_filter = FilteredParams.address_filter(FilterSet())
    assert FilteredParams.matches_address(Bloom(), address_filter) is True


def test_topics_bloom_matching():
    event = "ValueChanged(address,string,string)"
    filt = Filter().event(event)
    topic_filters = FilteredParams.topics_filter(filt.topics)
    assert len(topic_filters) == 4
    bloom = logs_bloom([RawLog(ADDRESS, [keccak256(event.encode())], b"")])
    assert FilteredParams.matches_topics(bloom, topic_filters) is True
    assert FilteredParams.matches_topics(Bloom(), topic_filters) is False


@pytest.mark.parametrize(
    "number, expected", [(5, False), (10, True), (15, True), (20, True), (21, False)]
)
def test_filter_block_range(number, expected):
    params = FilteredParams(Filter().from_block(10).to_block(20))
    assert params.filter_block_range(number) is expected


def test_filter_block_range_without_filter():
    assert FilteredParams().filter_block_range(123) is True


def test_filter_block_range_to_earliest_never_matches():
    params = FilteredParams(Filter().to_block(BlockTag.EARLIEST))
    assert params.filter_block_range(0) is False


def test_filter_block_range_tags_are_open():
    params = FilteredParams(
        Filter().from_block(BlockTag.PENDING).to_block(BlockNumberOrTag(BlockTag.LATEST))
    )
    assert params.filter_block_range(10**6) is True


def test_filter_block_hash():
    params = FilteredParams(Filter().at_block_hash(TOPIC_A))
    assert params.filter_block_hash(TOPIC_A) is True
    assert params.filter_block_hash(TOPIC_B) is False
    assert FilteredParams(Filter()).filter_block_hash(TOPIC_B) is True


def test_filter_address():
    params = FilteredParams(Filter().with_address(ADDRESS))
    assert params.filter_address(make_log()) is True
    assert params.filter_address(make_log(address=OTHER_ADDRESS)) is False
    assert FilteredParams().filter_address(make_log(address=OTHER_ADDRESS)) is True


def test_filter_topics_exact_match():
    params = FilteredParams(Filter().event_signature(TOPIC_A).topic1(TOPIC_B))
    assert params.filter_topics(make_log(topics=[TOPIC_A, TOPIC_B])) is True
    assert params.filter_topics(make_log(topics=[TOPIC_A, TOPIC_C])) is False


def test_filter_topics_log_too_short():
    params = FilteredParams(Filter().event_signature(TOPIC_A).topic2(TOPIC_C))
    assert params.filter_topics(make_log(topics=[TOPIC_A])) is False


def test_filter_topics_wildcard_positions():
    params = FilteredParams(Filter().event_signature(TOPIC_A).topic2(TOPIC_C))
    assert params.filter_topics(make_log(topics=[TOPIC_A, TOPIC_B, TOPIC_C])) is True


def test_filter_topics_any_of_several():
    params = FilteredParams(Filter().event_signature([TOPIC_A, TOPIC_B]))
    assert params.filter_topics(make_log(topics=[TOPIC_B])) is True
    assert params.filter_topics(make_log(topics=[TOPIC_C])) is False


def test_filter_topics_extra_log_topics_match():
    params = FilteredParams(Filter().event_signature(TOPIC_A))
    topics = [TOPIC_A, TOPIC_B, TOPIC_C, TOPIC_B, TOPIC_C]
    assert params.filter_topics(make_log(topics=topics)) is True
    assert FilteredParams().filter_topics(make_log(topics=[TOPIC_C])) is True


def test_filter_changes_empty_list():
    changes = FilterChanges.from_json([])
    assert changes.kind is FilterChangesKind.EMPTY
    assert changes.to_json() == []


def test_filter_changes_hashes_round_trip():
    raw = [to_data(TOPIC_A), to_data(TOPIC_B)]
    changes = FilterChanges.from_json(raw)
    assert changes.kind is FilterChangesKind.HASHES
    assert changes.items == [TOPIC_A, TOPIC_B]
    assert changes.to_json() == raw


def test_filter_changes_logs_round_trip():
    log = make_log(topics=[TOPIC_A])
    changes = FilterChanges.from_json([log.to_json()])
    assert changes.kind is FilterChangesKind.LOGS
    assert changes.items == [log]
    assert FilterChanges.from_json(changes.to_json()) == changes


def test_filter_changes_transactions_serialize_as_given():
    tx = {"hash": to_data(TOPIC_A)}
    assert FilterChanges.transactions([tx]).to_json() == [tx]


@pytest.mark.parametrize("value", [["0x01"], [1, 2], {"a": 1}, "0x00"])
def test_filter_changes_rejects_invalid(value):
    with pytest.raises(ValueError):
        FilterChanges.from_json(value)


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, PendingTransactionFilterKind.FULL),
        (False, PendingTransactionFilterKind.HASHES),
        (None, PendingTransactionFilterKind.HASHES),
    ],
)
def test_pending_kind_from_json(value, expected):
    assert PendingTransactionFilterKind.from_json(value) is expected


def test_pending_kind_round_trip():
    for kind in PendingTransactionFilterKind:
        assert PendingTransactionFilterKind.from_json(kind.to_json()) is kind
    assert PendingTransactionFilterKind.FULL.to_json() is True


def test_pending_kind_rejects_non_bool():
    with pytest.raises(ValueError):
        PendingTransactionFilterKind.from_json("yes")


def test_filter_id_from_json():
    assert filter_id_from_json(5) == 5
    assert filter_id_from_json("0x7eef37ff35d471f8825b1c8f67a5d3c0") == (
        "0x7eef37ff35d471f8825b1c8f67a5d3c0"
    )


@pytest.mark.parametrize("value", [-1, 2**64, True, None, 1.5])
def test_filter_id_rejects_invalid(value):
    with pytest.raises(ValueError):
        filter_id_from_json(value)