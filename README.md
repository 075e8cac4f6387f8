# ethrpc

Python values for the Ethereum JSON-RPC interface, with JSON encoding and
decoding. Hex quantities become `int`, hashes, addresses and call data become
`bytes`, and 2048-bit log blooms become `Bloom` objects. Each type has a
`to_json()` method that produces plain JSON-ready values and a `from_json()`
class method that checks and decodes them.

The package needs Python 3.10 or later and `pycryptodome` (for Keccak-256).
The `test` extra adds `pytest` for running the test suite.

## Modules

- `ethrpc.primitives`: `keccak256`; hex helpers `to_quantity`,
  `parse_quantity`, `to_data` and `parse_data`; an RLP codec (`rlp_encode`,
  `rlp_decode`); `Bloom` (`from_input`, `accrue`, `contains`); `RawLog` with
  RLP encoding; `logs_bloom` for computing a receipt bloom.
- `ethrpc.log`: `Log`, a log object as returned by a node.
- `ethrpc.block_id`: `BlockTag`, `BlockNumberOrTag`, `RpcBlockHash`,
  `BlockId` (EIP-1898 string and object forms), `BlockNumHash` and
  `BlockHashOrNumber` (parsing from decimal or hex, and RLP).
- `ethrpc.block`: `Header`, `Block`, `BlockTransactions` (hashes, full
  transactions or an uncle response), `BlockTransactionsKind`, `Rich` (a value
  plus extra JSON fields), `BlockOverrides` and `BlockError`.
- `ethrpc.fee`: `FeeHistory` and `TxGasAndReward` (ordered by reward alone).
- `ethrpc.filter`: the immutable log `Filter` builder, `FilterSet`,
  `FilterBlockOption` and `BloomFilter`.
- `ethrpc.filtered`: `FilteredParams` for matching block numbers, block
  hashes, addresses, topics and blooms against a filter; `FilterChanges`
  with `FilterChangesKind`; `PendingTransactionFilterKind`;
  `filter_id_from_json`.
- `ethrpc.call`: `CallRequest`, `CallInput`, `CallInputError`, `Bundle`,
  `StateContext`, `TransactionIndex` and `EthCallResponse`.
- `ethrpc.state`: `AccountOverride` with `state_override_from_json` and
  `state_override_to_json`.
- `ethrpc.syncing`: `SyncInfo`, peer information (`PeerInfo`, `Peers` and
  related classes), `TransactionStats`, `ChainStatus`,
  `peer_count_from_json`, `sync_status_from_json` and `sync_status_to_json`.
- `ethrpc.pubsub`: `SubscriptionKind`, `SubscriptionResult` with
  `SubscriptionResultKind`, `Params`, `SyncStatusMetadata`,
  `pubsub_sync_status_from_json` and `pubsub_sync_status_to_json`.

## Examples

Block identifiers:

```python
from ethrpc.block_id import BlockId, BlockNumberOrTag

BlockNumberOrTag.parse("0x10").as_number()                 # 16
BlockId.from_json({"blockNumber": "latest"}).is_latest()   # True
```

Building a log filter and turning it into request JSON:

```python
from ethrpc.filter import Filter

log_filter = (
    Filter()
    .from_block(100)
    .to_block(200)
    .event("Transfer(address,address,uint256)")
)
log_filter.to_json()
# {"fromBlock": "0x64", "toBlock": "0xc8", "topics": ["0xddf252ad..."]}
```

Reading a filter from JSON and testing block numbers against it:

```python
from ethrpc.filter import Filter
from ethrpc.filtered import FilteredParams

params = FilteredParams(Filter.from_json({"fromBlock": "0x1", "toBlock": "0xa"}))
params.filter_block_range(5)    # True
params.filter_block_range(11)   # False
```

Call input given both as `input` and `data`:

```python
from ethrpc.call import CallInput, TransactionIndex

CallInput(input=b"\x01", data=b"\x01").unique_input()   # b"\x01"
CallInput(input=b"\x01", data=b"\x02").unique_input()   # raises CallInputError
TransactionIndex.from_json(-1).is_all()                 # True
```

Block overrides accept `blockNumber` and `timestamp` as aliases:

```python
from ethrpc.block import BlockOverrides

BlockOverrides.from_json({"blockNumber": "0xe39dd0"}).number   # 14917072
```

A receipt bloom:

```python
from ethrpc.primitives import RawLog, logs_bloom

bloom = logs_bloom([RawLog(address=bytes(20), topics=[bytes(32)], data=b"")])
bloom.to_json()
```

## Errors

Malformed input raises `ValueError` or one of its subclasses: `HexError` for
bad hex, `RlpError` for bad RLP, `ParseBlockNumberError` and
`HexStringMissingPrefixError` for block numbers and tags,
`ParseBlockHashOrNumberError`, and `CallInputError`. Values of the wrong
Python type passed to constructors raise `TypeError`.

## What this package does not do

It holds data types and their JSON forms only. It has no client, no network
transport and no request or response envelopes. Full transactions and
withdrawals inside blocks, filter changes and subscription results have no
dedicated types here; they are kept as their plain JSON objects.