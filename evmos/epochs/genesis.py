"""Genesis import and export, message handling and simulated genesis of the epochs module."""

from __future__ import annotations

import json
from collections.abc import Callable, MutableMapping
from dataclasses import replace
from datetime import timedelta
from typing import Any

from evmos.epochs.context import Context
from evmos.epochs.keeper import Keeper
from evmos.epochs.types import (
    MODULE_NAME,
    ZERO_TIME,
    EpochInfo,
    GenesisState,
    new_genesis_state,
)


class UnknownRequestError(Exception):
    """Raised when a message is sent that the module does not handle."""


def init_genesis(ctx: Context, keeper: Keeper, gen_state: GenesisState) -> None:
    """Store every genesis epoch, filling in the start time and height from the block."""
    for epoch in gen_state.epochs:
        if epoch.start_time == ZERO_TIME:
            epoch = replace(epoch, start_time=ctx.block_time)
        epoch = replace(epoch, current_epoch_start_height=ctx.block_height)
        keeper.set_epoch_info(ctx, epoch)


def export_genesis(ctx: Context, keeper: Keeper) -> GenesisState:
    """Return the genesis state holding every stored epoch."""
    return GenesisState(epochs=keeper.all_epoch_infos(ctx))


def new_handler(keeper: Keeper) -> Callable[[Context, Any], Any]:
    """Return the message handler; the module accepts no messages."""

    def handle(ctx: Context, msg: Any) -> Any:
        raise UnknownRequestError(
            f"unrecognized {MODULE_NAME} message type: {type(msg).__name__}: unknown request"
        )

    return handle


def randomized_gen_state(gen_state: MutableMapping[str, bytes]) -> GenesisState:
    """Put a fixed daily and hourly epoch genesis into a simulation's genesis map."""
    genesis = new_genesis_state(
        [
            EpochInfo(identifier="day", duration=timedelta(hours=24)),
            EpochInfo(identifier="hour", duration=timedelta(hours=1)),
        ]
    )
    text = json.dumps(genesis.to_dict(), indent=1)
    print(f"Selected deterministically generated epoch parameters:\n{text}")
    gen_state[MODULE_NAME] = json.dumps(genesis.to_dict()).encode()
    return genesis