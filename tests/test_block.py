import json

import pytest

from ethrpc.block import (
    Block,
    BlockError,
    BlockOverrides,
    BlockTransactions,
    BlockTransactionsKind,
    Header,
    Rich,
)
from ethrpc.primitives import Bloom

ZERO_BLOOM = "0x" + "00" * 256


def last_byte(n, size=32):
    return bytes(size - 1) + bytes([n])


def hex_last_byte(n, size=32):
    return "0x" + "00" * (size - 1) + f"{n:02x}"


def compact(value):
    return json.dumps(value, separators=(",", ":"))


def make_block(withdrawals_root, withdrawals):
    return Block(
        header=Header(
            hash=last_byte(1),
            parent_hash=last_byte(2),
            uncles_hash=last_byte(3),
            miner=last_byte(4, 20),
            state_root=last_byte(5),
            transactions_root=last_byte(6),
            receipts_root=last_byte(7),
            withdrawals_root=withdrawals_root,
            number=9,
            gas_used=10,
            gas_limit=11,
            extra_data=bytes([1, 2, 3]),
            logs_bloom=Bloom(),
            timestamp=12,
            difficulty=13,
            mix_hash=last_byte(14),
            nonce=last_byte(15, 8),
            base_fee_per_gas=20,
        ),
        total_difficulty=100000,
        uncles=[last_byte(17)],
        transactions=BlockTransactions.hashes([last_byte(18)]),
        size=19,
        withdrawals=withdrawals,
    )


HEAD = (
    '{"hash":"' + hex_last_byte(1) + '","parentHash":"' + hex_last_byte(2)
    + '","sha3Uncles":"' + hex_last_byte(3) + '","miner":"' + hex_last_byte(4, 20)
    + '","stateRoot":"' + hex_last_byte(5) + '","transactionsRoot":"' + hex_last_byte(6)
    + '","receiptsRoot":"' + hex_last_byte(7) + '","logsBloom":"' + ZERO_BLOOM
    + '","difficulty":"0xd","number":"0x9","gasLimit":"0xb","gasUsed":"0xa",'
    '"timestamp":"0xc","extraData":"0x010203","mixHash":"' + hex_last_byte(14)
    + '","nonce":"' + hex_last_byte(15, 8) + '","baseFeePerGas":"0x14",'
)
TAIL = (
    '"totalDifficulty":"0x186a0","uncles":["' + hex_last_byte(17)
    + '"],"transactions":["' + hex_last_byte(18) + '"],"size":"0x13"'
)


def test_full_conversion():
    assert BlockTransactionsKind.from_full(True) is BlockTransactionsKind.FULL
    assert BlockTransactionsKind.from_full(False) is BlockTransactionsKind.HASHES


def test_serde_block():
    block = make_block(last_byte(8), [])
    serialized = compact(block.to_json())
    expected = HEAD + '"withdrawalsRoot":"' + hex_last_byte(8) + '",' + TAIL + ',"withdrawals":[]}'
    assert serialized == expected
    assert Block.from_json(json.loads(serialized)) == block


def test_serde_block_with_withdrawals_set_as_none():
    block = make_block(None, None)
    serialized = compact(block.to_json())
    assert serialized == HEAD + TAIL + "}"
    assert Block.from_json(json.loads(serialized)) == block


def test_block_overrides():
    overrides = BlockOverrides.from_json(json.loads('{"blockNumber": "0xe39dd0"}'))
    assert overrides.number == 0xE39DD0
    assert overrides.to_json() == {"number": "0xe39dd0"}


def test_block_overrides_timestamp_alias():
    overrides = BlockOverrides.from_json({"timestamp": "0x10"})
    assert overrides.time == 0x10


def test_block_overrides_rejects_unknown_field():
    with pytest.raises(ValueError, match="unknown field"):
        BlockOverrides.from_json({"gasPrice": "0x1"})


def test_block_overrides_rejects_duplicate_alias():
    with pytest.raises(ValueError, match="duplicate field"):
        BlockOverrides.from_json({"number": "0x1", "blockNumber": "0x2"})


def test_block_overrides_round_trip():
    overrides = BlockOverrides(
        number=5,
        time=7,
        coinbase=last_byte(4, 20),
        block_hash={3: last_byte(3), 1: last_byte(1)},
    )
    encoded = overrides.to_json()
    assert list(encoded["blockHash"]) == ["1", "3"]
    assert BlockOverrides.from_json(encoded) == overrides


RICH_BLOCK = """{
    "hash": "0xb25d0e54ca0104e3ebfb5a1dcdf9528140854d609886a300946fd6750dcb19f4",
    "parentHash": "0x9400ec9ef59689c157ac89eeed906f15ddd768f94e1575e0e27d37c241439a5d",
    "sha3Uncles": "0x1dcc4de8dec75d7aab85b567b6ccd41ad312451b948a7413f0a142fd40d49347",
    "miner": "0x829bd824b016326a401d083b33d092293333a830",
    "stateRoot": "0x546e330050c66d02923e7f1f3e925efaf64e4384eeecf2288f40088714a77a84",
    "transactionsRoot": "0xd5eb3ad6d7c7a4798cc5fb14a6820073f44a941107c5d79dac60bd16325631fe",
    "receiptsRoot": "0xb21c41cbb3439c5af25304e1405524c885e733b16203221900cb7f4b387b62f0",
    "logsBloom": "0x1f304e641097eafae088627298685d20202004a4a59e4d8900914724e2402b028c9d596660581f361240816e82d00fa14250c9ca89840887a381efa600288283d170010ab0b2a0694c81842c2482457e0eb77c2c02554614007f42aaf3b4dc15d006a83522c86a240c06d241013258d90540c3008888d576a02c10120808520a2221110f4805200302624d22092b2c0e94e849b1e1aa80bc4cc3206f00b249d0a603ee4310216850e47c8997a20aa81fe95040a49ca5a420464600e008351d161dc00d620970b6a801535c218d0b4116099292000c08001943a225d6485528828110645b8244625a182c1a88a41087e6d039b000a180d04300d0680700a15794",
    "difficulty": "0xc40faff9c737d",
    "number": "0xa9a230",
    "gasLimit": "0xbe5a66",
    "gasUsed": "0xbe0fcc",
    "timestamp": "0x5f93b749",
    "extraData": "0x7070796520e4b883e5bda9e7a59ee4bb99e9b1bc0103",
    "mixHash": "0xd5e2b7b71fbe4ddfe552fb2377bf7cddb16bbb7e185806036cee86994c6e97fc",
    "nonce": "0x4722f2acd35abe0f",
    "totalDifficulty": "0x3dc957fd8167fb2684a",
    "uncles": [],
    "transactions": [
        "0xf435a26acc2a9ef73ac0b73632e32e29bd0e28d5c4f46a7e18ed545c93315916"
    ],
    "size": "0xaeb6"
}"""


def test_serde_rich_block():
    block = Rich.from_json(json.loads(RICH_BLOCK), Block)
    serialized = json.dumps(block.to_json())
    block2 = Rich.from_json(json.loads(serialized), Block)
    assert block == block2
    assert block.header.number == 0xA9A230


def test_rich_keeps_extra_fields():
    data = json.loads(RICH_BLOCK)
    data["author"] = "0x829bd824b016326a401d083b33d092293333a830"
    rich = Rich.from_json(data, Block)
    assert rich.extra_info == {"author": "0x829bd824b016326a401d083b33d092293333a830"}
    assert rich.to_json()["author"] == "0x829bd824b016326a401d083b33d092293333a830"


def test_rich_requires_object_inner_when_extras_present():
    rich = Rich(BlockTransactions.hashes([last_byte(1)]), {"extra": 1})
    with pytest.raises(ValueError, match="expected objects"):
        rich.to_json()


def test_rich_without_extras_serializes_inner():
    header = Header(number=8)
    assert Rich(header).to_json() == header.to_json()


def test_header_from_subscription_results():
    first = {
        "hash": "0x7a7ada12e140961a32395059597764416499f4178daf1917193fad7bd2cc6386",
        "parentHash": "0xdedbd831f496e705e7f2ec3c8dcb79051040a360bf1455dbd7eb8ea6ad03b751",
        "sha3Uncles": "0x1dcc4de8dec75d7aab85b567b6ccd41ad312451b948a7413f0a142fd40d49347",
        "miner": "0x0000000000000000000000000000000000000000",
        "stateRoot": "0x" + "00" * 32,
        "transactionsRoot": "0x56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421",
        "receiptsRoot": "0x56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421",
        "number": "0x8",
        "gasUsed": "0x0",
        "gasLimit": "0x1c9c380",
        "extraData": "0x",
        "logsBloom": ZERO_BLOOM,
        "timestamp": "0x642aa48f",
        "difficulty": "0x0",
        "mixHash": "0x" + "00" * 32,
        "nonce": "0x0000000000000000",
    }
    header = Header.from_json(first)
    assert header.number == 8
    assert header.gas_limit == 0x1C9C380
    assert header.extra_data == b""

    second = {
        "author": "0x000000568b9b5a365eaa767d42e74ed88915c204",
        "difficulty": "0x1",
        "extraData": "0x4e65746865726d696e6420312e392e32322d302d6463373666616366612d32308639ad8ff3d850a261f3b26bc2a55e0f3a718de0dd040a19a4ce37e7b473f2d7481448a1e1fd8fb69260825377c0478393e6055f471a5cf839467ce919a6ad2700",
        "gasLimit": "0x7a1200",
        "gasUsed": "0x0",
        "hash": "0xa4856602944fdfd18c528ef93cc52a681b38d766a7e39c27a47488c8461adcb0",
        "logsBloom": ZERO_BLOOM,
        "miner": "0x0000000000000000000000000000000000000000",
        "mixHash": "0x" + "00" * 32,
        "nonce": "0x0000000000000000",
        "number": "0x434822",
        "parentHash": "0x1a9bdc31fc785f8a95efeeb7ae58f40f6366b8e805f47447a52335c95f4ceb49",
        "receiptsRoot": "0x56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421",
        "sha3Uncles": "0x1dcc4de8dec75d7aab85b567b6ccd41ad312451b948a7413f0a142fd40d49347",
        "size": "0x261",
        "stateRoot": "0xf38c4bf2958e541ec6df148e54ce073dc6b610f8613147ede568cb7b5c2d81ee",
        "totalDifficulty": "0x633ebd",
        "timestamp": "0x604726b0",
        "transactions": [],
        "transactionsRoot": "0x56e81f171bcc55a6ff8345e692c0f86e5b48e01b996cadc001622fb5e363b421",
        "uncles": [],
    }
    header = Header.from_json(second)
    assert header.number == 0x434822
    assert header.hash == bytes.fromhex(
        "a4856602944fdfd18c528ef93cc52a681b38d766a7e39c27a47488c8461adcb0"
    )


def test_header_missing_required_field():
    data = Header().to_json()
    del data["mixHash"]
    with pytest.raises(ValueError, match="mixHash"):
        Header.from_json(data)


def test_uncle_block_round_trip():
    block = dataclass_block = make_block(None, None)
    block = Block(header=dataclass_block.header, uncles=[], transactions=BlockTransactions.uncle())
    encoded = block.to_json()
    assert "transactions" not in encoded
    decoded = Block.from_json(encoded)
    assert decoded.transactions.is_uncle()
    assert decoded == block


def test_transaction_hash_iteration():
    hashes = BlockTransactions.hashes([last_byte(1), last_byte(2)])
    assert list(hashes) == [last_byte(1), last_byte(2)]
    full = BlockTransactions.full([{"hash": hex_last_byte(3)}, {"hash": hex_last_byte(4)}])
    assert list(full) == [last_byte(3), last_byte(4)]
    assert list(BlockTransactions.uncle()) == []


def test_transactions_from_json_variants():
    assert BlockTransactions.from_json([]).kind is BlockTransactionsKind.HASHES
    assert BlockTransactions.from_json(None).is_uncle()
    full = BlockTransactions.from_json([{"hash": hex_last_byte(5)}])
    assert full.kind is BlockTransactionsKind.FULL
    with pytest.raises(ValueError, match="untagged enum"):
        BlockTransactions.from_json([1, 2])


def test_into_full_block():
    block = make_block(None, None)
    full = block.into_full_block([{"hash": hex_last_byte(18)}])
    assert full.transactions.kind is BlockTransactionsKind.FULL
    assert list(full.transactions) == list(block.transactions)
    assert full.header == block.header
    assert block.transactions.kind is BlockTransactionsKind.HASHES


def test_block_error_messages():
    assert str(BlockError.invalid_signature()) == "transaction failed sender recovery"
    assert str(BlockError.rlp_decode_raw_block("input too short")) == (
        "failed to decode raw block input too short"
    )