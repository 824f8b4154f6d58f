"""Address prefixes, HD wallet path and denominations of the chain."""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

PREFIX_PUBLIC = "pub"
PREFIX_VALIDATOR = "val"
PREFIX_OPERATOR = "oper"
PREFIX_CONSENSUS = "cons"

BECH32_PREFIX = "evmos"
BECH32_PREFIX_ACC_ADDR = BECH32_PREFIX
BECH32_PREFIX_ACC_PUB = BECH32_PREFIX + PREFIX_PUBLIC
BECH32_PREFIX_VAL_ADDR = BECH32_PREFIX + PREFIX_VALIDATOR + PREFIX_OPERATOR
BECH32_PREFIX_VAL_PUB = BECH32_PREFIX + PREFIX_VALIDATOR + PREFIX_OPERATOR + PREFIX_PUBLIC
BECH32_PREFIX_CONS_ADDR = BECH32_PREFIX + PREFIX_VALIDATOR + PREFIX_CONSENSUS
BECH32_PREFIX_CONS_PUB = BECH32_PREFIX + PREFIX_VALIDATOR + PREFIX_CONSENSUS + PREFIX_PUBLIC

DISPLAY_DENOM = "photon"
BASE_DENOM = "aphoton"
BASE_DENOM_UNIT = 18

PURPOSE = 44
BIP44_COIN_TYPE = 60
BIP44_HD_PATH = "m/44'/60'/0'/0/0"

_DENOM = re.compile(r"^[a-zA-Z][a-zA-Z0-9/:._-]{2,127}$")


class ConfigSealedError(RuntimeError):
    """Raised when a sealed configuration is changed."""


@dataclass
class AddressConfig:
    """Process-wide address and key derivation settings; frozen once sealed."""

    bech32_account_addr: str = "cosmos"
    bech32_account_pub: str = "cosmospub"
    bech32_validator_addr: str = "cosmosvaloper"
    bech32_validator_pub: str = "cosmosvaloperpub"
    bech32_consensus_addr: str = "cosmosvalcons"
    bech32_consensus_pub: str = "cosmosvalconspub"
    coin_type: int = 118
    purpose: int = PURPOSE
    full_fundraiser_path: str = "m/44'/118'/0'/0/0"
    sealed: bool = False

    def __setattr__(self, name: str, value: Any) -> None:
        if getattr(self, "sealed", False):
            raise ConfigSealedError("Config is sealed")
        super().__setattr__(name, value)

    def seal(self) -> AddressConfig:
        """Forbid any later change."""
        if not self.sealed:
            self.sealed = True
        return self


class DenomRegistry(Mapping[str, Decimal]):
    """Denominations and their value in units of the display denomination."""

    def __init__(self) -> None:
        self._units: dict[str, Decimal] = {}

    def register(self, denom: str, unit: Decimal) -> None:
        """Register a denomination once; raise ValueError if invalid or taken."""
        if not _DENOM.match(denom):
            raise ValueError(f"invalid denom: {denom}")
        if denom in self._units:
            raise ValueError(f"denom {denom} already registered")
        self._units[denom] = Decimal(unit)

    def __getitem__(self, denom: str) -> Decimal:
        return self._units[denom]

    def __iter__(self) -> Iterator[str]:
        return iter(self._units)

    def __len__(self) -> int:
        return len(self._units)


def set_bech32_prefixes(config: AddressConfig) -> None:
    """Set the prefixes used when writing addresses and public keys in Bech32."""
    config.bech32_account_addr = BECH32_PREFIX_ACC_ADDR
    config.bech32_account_pub = BECH32_PREFIX_ACC_PUB
    config.bech32_validator_addr = BECH32_PREFIX_VAL_ADDR
    config.bech32_validator_pub = BECH32_PREFIX_VAL_PUB
    config.bech32_consensus_addr = BECH32_PREFIX_CONS_ADDR
    config.bech32_consensus_pub = BECH32_PREFIX_CONS_PUB


def set_bip44_coin_type(config: AddressConfig) -> None:
    """Set the coin type and derivation path of hierarchical deterministic wallets."""
    config.coin_type = BIP44_COIN_TYPE
    config.purpose = PURPOSE
    config.full_fundraiser_path = BIP44_HD_PATH


def register_denoms(registry: DenomRegistry) -> None:
    """Register the display and base denominations."""
    registry.register(DISPLAY_DENOM, Decimal(1))
    registry.register(BASE_DENOM, Decimal(1).scaleb(-BASE_DENOM_UNIT))