"""Genesis documents for a local testnet and the default in-process network settings."""

from __future__ import annotations

import copy
import json
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from evmos.config import BASE_DENOM
from evmos.epochs.types import MODULE_NAME as EPOCHS_MODULE_NAME
from evmos.epochs.types import default_genesis
from evmos.testnet import (
    DEFAULT_API_ADDRESS,
    DEFAULT_GRPC_ADDRESS,
    DEFAULT_JSONRPC_ADDRESS,
    DEFAULT_KEY_ALGORITHM,
    DEFAULT_MIN_GAS_PRICES,
    DEFAULT_NUM_VALIDATORS,
    DEFAULT_RPC_ADDRESS,
    new_chain_id,
)

MAX_CHAIN_ID_LEN = 50
ZERO_GENESIS_TIME = "0001-01-01T00:00:00Z"
GENESIS_FILE_PERM = 0o644


@dataclass
class NetworkConfig:
    """Settings of an in-process test network."""

    chain_id: str = field(default_factory=new_chain_id)
    num_validators: int = DEFAULT_NUM_VALIDATORS
    bond_denom: str = BASE_DENOM
    min_gas_prices: str = DEFAULT_MIN_GAS_PRICES
    signing_algo: str = DEFAULT_KEY_ALGORITHM
    enable_tm_logging: bool = False
    rpc_address: str = DEFAULT_RPC_ADDRESS
    api_address: str = DEFAULT_API_ADDRESS
    grpc_address: str = DEFAULT_GRPC_ADDRESS
    jsonrpc_address: str = DEFAULT_JSONRPC_ADDRESS
    print_mnemonic: bool = False
    genesis_state: dict[str, Any] = field(default_factory=dict)


def _default_app_genesis() -> dict[str, Any]:
    return {EPOCHS_MODULE_NAME: default_genesis().to_dict()}


def default_network_config() -> NetworkConfig:
    """Return a configuration with a random chain identifier and the default genesis."""
    return NetworkConfig(genesis_state=_default_app_genesis())


def _module(app_state: Mapping[str, Any], name: str) -> dict[str, Any]:
    module = app_state.get(name)
    if not isinstance(module, dict):
        raise ValueError(f"genesis state of module {name} is missing")
    return module


def _section(module: Mapping[str, Any], module_name: str, key: str) -> dict[str, Any]:
    section = module.get(key)
    if not isinstance(section, dict):
        raise ValueError(f"genesis state of module {module_name} has no {key}")
    return section


def apply_coin_denom(app_state: Mapping[str, Any], coin_denom: str) -> dict[str, Any]:
    """Return a copy of app_state with the staking, gov, mint, crisis and EVM denoms set."""
    state = copy.deepcopy(dict(app_state))

    _section(_module(state, "staking"), "staking", "params")["bond_denom"] = coin_denom

    deposit_params = _section(_module(state, "gov"), "gov", "deposit_params")
    min_deposit = deposit_params.get("min_deposit")
    if not min_deposit:
        raise ValueError("genesis state of module gov has no minimum deposit")
    min_deposit[0]["denom"] = coin_denom

    _section(_module(state, "mint"), "mint", "params")["mint_denom"] = coin_denom
    _section(_module(state, "crisis"), "crisis", "constant_fee")["denom"] = coin_denom
    _section(_module(state, "evm"), "evm", "params")["evm_denom"] = coin_denom
    return state


def build_genesis_doc(chain_id: str, app_state: Mapping[str, Any]) -> dict[str, Any]:
    """Return a genesis document with no validators holding the given app state."""
    return {
        "genesis_time": ZERO_GENESIS_TIME,
        "chain_id": chain_id,
        "initial_height": "0",
        "consensus_params": None,
        "app_hash": "",
        "app_state": copy.deepcopy(dict(app_state)),
    }


def write_genesis_files(genesis_doc: Mapping[str, Any], paths: Iterable[str | os.PathLike]) -> None:
    """Save the same genesis document to every path."""
    text = json.dumps(genesis_doc, indent=2)
    for path in paths:
        tmp = f"{os.fspath(path)}.tmp"
        with open(tmp, "w", encoding="utf-8") as handle:
            handle.write(text)
        os.chmod(tmp, GENESIS_FILE_PERM)
        os.replace(tmp, path)


def _now() -> str:
    moment = datetime.now(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def read_genesis_file(path: str | os.PathLike) -> dict[str, Any]:
    """Load a genesis document, check it and fill in its unset height and time."""
    with open(path, encoding="utf-8") as handle:
        try:
            doc = json.load(handle)
        except json.JSONDecodeError as exc:
            raise ValueError(f"error reading GenesisDoc at {os.fspath(path)}: {exc}") from exc
    if not isinstance(doc, dict):
        raise ValueError(f"error reading GenesisDoc at {os.fspath(path)}: not an object")

    chain_id = doc.get("chain_id") or ""
    if chain_id == "":
        raise ValueError("genesis doc must include non-empty chain_id")
    if len(chain_id) > MAX_CHAIN_ID_LEN:
        raise ValueError(f"chain_id in genesis doc is too long (max: {MAX_CHAIN_ID_LEN})")

    initial_height = int(doc.get("initial_height") or 0)
    if initial_height < 0:
        raise ValueError(f"initial_height cannot be negative (got {initial_height})")
    if initial_height == 0:
        initial_height = 1
    doc["initial_height"] = str(initial_height)

    if not doc.get("genesis_time") or doc["genesis_time"] == ZERO_GENESIS_TIME:
        doc["genesis_time"] = _now()
    return doc