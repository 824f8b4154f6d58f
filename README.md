# evmos

A pure-Python library for the bookkeeping side of an EVM-compatible
application chain: time-based epochs and their genesis state, the hooks
that run when an epoch ends or starts, transaction-rate counting, address
prefix and denomination configuration, and helpers for laying out the
genesis files of a local multi-node testnet.

It needs nothing beyond the standard library.

## Modules

- `evmos.epochs.types`: `EpochInfo` (a frozen record with `to_dict` /
  `from_dict`), `GenesisState` with `validate()`, `GenesisValidationError`,
  `default_genesis()`, `new_genesis_state()`, the abstract `EpochHooks`,
  `MultiEpochHooks`, `validate_epoch_identifier_string()`,
  `validate_epoch_identifier_interface()` and `key_prefix()`.
- `evmos.epochs.context`: an in-memory, key-ordered `KVStore`, `Event`,
  `Attribute`, `EventManager` and `Context`, which holds the block height
  and time and shares its stores and events with the contexts derived from
  it by `with_block_height` and `with_block_time`.
- `evmos.epochs.keeper`: `Keeper`, which stores epochs, starts and advances
  them in `begin_blocker`, emits `epoch_start` / `epoch_end` events, calls
  its hooks, and answers the paginated `epoch_infos` query and the
  `current_epoch` query (failures raise `QueryError` with a `code`).
- `evmos.epochs.genesis`: `init_genesis`, `export_genesis`, `new_handler`
  (every message raises `UnknownRequestError`) and `randomized_gen_state`.
- `evmos.epochs.module`: `AppModuleBasic` and `AppModule`, which read and
  write the genesis state as JSON bytes.
- `evmos.tps_counter`: `TPSCounter`, thread-safe success and failure
  counters whose `tick()` records the transactions of one period and logs
  transactions per second, and whose `start(stop_event)` ticks once every
  period until the event is set; `observability_views()` returns the
  in-memory counting view.
- `evmos.config`: the `evmos` Bech32 prefixes, BIP-44 coin type 60,
  `AddressConfig` (which refuses changes once `seal()`ed),
  `DenomRegistry` and `register_denoms()` for `photon` and `aphoton`.
- `evmos.testnet`: `InitArgs`, `StartArgs`, `calculate_ip`, `get_ip`,
  `new_chain_id`, `node_dir_name` and `persistent_peer_memo`.
- `evmos.genesis_files`: `NetworkConfig`, `default_network_config`,
  `apply_coin_denom`, `build_genesis_doc`, `write_genesis_files` and
  `read_genesis_file`.
- `evmos.version`: `version()`, a two-line build description.

## Examples

Running epochs block by block:

```python
from datetime import datetime, timedelta, timezone

from evmos.epochs.context import Context
from evmos.epochs.genesis import init_genesis
from evmos.epochs.keeper import Keeper, QueryCurrentEpochRequest
from evmos.epochs.types import default_genesis

keeper = Keeper()
start = datetime(2022, 1, 1, tzinfo=timezone.utc)
ctx = Context(block_height=1, block_time=start)
init_genesis(ctx, keeper, default_genesis())

keeper.begin_blocker(ctx.with_block_height(2))           # both epochs start at 1
later = ctx.with_block_height(3).with_block_time(start + timedelta(days=1, seconds=1))
keeper.begin_blocker(later)                               # "day" moves on to 2

keeper.current_epoch(later, QueryCurrentEpochRequest("day")).current_epoch   # 2
[event.type for event in later.event_manager.events()]
```

Validating a genesis state:

```python
from evmos.epochs.types import default_genesis

default_genesis().validate()  # raises GenesisValidationError when invalid
```

The default genesis holds a `week` and a `day` epoch. Identifiers must be
non-empty and unique, and every duration must be non-zero.

Testnet addresses and names:

```python
from evmos.testnet import calculate_ip, node_dir_name, persistent_peer_memo

calculate_ip("192.168.0.1", 3)             # "192.168.0.4"
node_dir_name("node", 2)                   # "node2"
persistent_peer_memo("abc", "192.168.0.4") # "abc@192.168.0.4:26656"
```

`calculate_ip` raises `ValueError` for anything that is not an IPv4
address.

## What it does not do

This is a library, not a node. It has no command-line program, does not
produce blocks or reach consensus, and runs no RPC, API or metrics server.
Stores live in memory only and are lost when the process ends. It does not
generate keys or sign validator transactions; the testnet helpers compute
addresses, chain ids and genesis documents, and `write_genesis_files` /
`read_genesis_file` save and load them, but starting the nodes is left to
other tools.

## Running the tests

Install the `test` extra and run `pytest` from the project root.