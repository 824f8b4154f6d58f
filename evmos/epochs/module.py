"""Application module wiring for the epochs module."""

from __future__ import annotations

import json
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from typing import Any

from evmos.epochs.context import Context
from evmos.epochs.genesis import (
    export_genesis,
    init_genesis,
    new_handler,
    randomized_gen_state,
)
from evmos.epochs.keeper import Keeper
from evmos.epochs.types import (
    MODULE_NAME,
    QUERIER_ROUTE,
    ROUTER_KEY,
    GenesisState,
    GenesisValidationError,
    default_genesis,
)

CONSENSUS_VERSION = 1


@dataclass(frozen=True)
class Route:
    path: str
    handler: Callable[[Context, Any], Any]


def _parse_genesis(data: bytes | str) -> GenesisState:
    try:
        return GenesisState.from_dict(json.loads(data))
    except (ValueError, TypeError, AttributeError) as exc:
        raise GenesisValidationError(
            f"failed to unmarshal {MODULE_NAME} genesis state: {exc}"
        ) from exc


class AppModuleBasic:
    """Parts of the module that need no keeper."""

    def name(self) -> str:
        return MODULE_NAME

    def default_genesis(self) -> bytes:
        """Return the default genesis state as JSON."""
        return json.dumps(default_genesis().to_dict()).encode()

    def validate_genesis(self, data: bytes | str) -> None:
        """Decode a JSON genesis state and check it."""
        _parse_genesis(data).validate()


class AppModule(AppModuleBasic):
    """The epochs module bound to its keeper."""

    def __init__(self, keeper: Keeper) -> None:
        self.keeper = keeper

    def route(self) -> Route:
        return Route(ROUTER_KEY, new_handler(self.keeper))

    def querier_route(self) -> str:
        return QUERIER_ROUTE

    def init_genesis(self, ctx: Context, data: bytes | str) -> list:
        """Load a JSON genesis state; returns no validator updates."""
        init_genesis(ctx, self.keeper, _parse_genesis(data))
        return []

    def export_genesis(self, ctx: Context) -> bytes:
        return json.dumps(export_genesis(ctx, self.keeper).to_dict()).encode()

    def begin_block(self, ctx: Context) -> None:
        self.keeper.begin_blocker(ctx)

    def end_block(self, ctx: Context) -> list:
        return []

    def generate_genesis_state(self, gen_state: MutableMapping[str, bytes]) -> GenesisState:
        return randomized_gen_state(gen_state)

    def consensus_version(self) -> int:
        return CONSENSUS_VERSION