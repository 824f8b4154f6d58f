from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from evmos.epochs.context import Context
from evmos.epochs.keeper import (
    Keeper,
    PageRequest,
    QueryCurrentEpochRequest,
    QueryEpochsInfoRequest,
    QueryError,
)
from evmos.epochs.types import (
    ZERO_TIME,
    EpochHooks,
    EpochInfo,
    MultiEpochHooks,
    default_genesis,
)

NOW = datetime(2022, 1, 10, 12, 30, 0, tzinfo=timezone.utc)
MONTH31 = timedelta(days=31)


class RecordingHooks(EpochHooks):
    def __init__(self):
        self.calls = []

    def after_epoch_end(self, ctx, epoch_identifier, epoch_number):
        self.calls.append(("end", epoch_identifier, epoch_number))

    def before_epoch_start(self, ctx, epoch_identifier, epoch_number):
        self.calls.append(("start", epoch_identifier, epoch_number))


def _store_genesis(ctx, keeper, epochs):
    for epoch in epochs:
        if epoch.start_time == ZERO_TIME:
            epoch = replace(epoch, start_time=ctx.block_time)
        keeper.set_epoch_info(ctx, replace(epoch, current_epoch_start_height=ctx.block_height))


@pytest.fixture
def setup():
    ctx = Context()
    keeper = Keeper().set_hooks(MultiEpochHooks())
    _store_genesis(ctx, keeper, default_genesis().epochs)
    return ctx, keeper


def _fresh_monthly(ctx, keeper, start_time=ZERO_TIME, duration=MONTH31):
    for info in keeper.all_epoch_infos(ctx):
        keeper.delete_epoch_info(ctx, info.identifier)
    ctx = ctx.with_block_height(1).with_block_time(NOW)
    _store_genesis(
        ctx,
        keeper,
        [EpochInfo(identifier="monthly", start_time=start_time, duration=duration)],
    )
    return ctx


def _case_one(ctx, keeper):
    ctx = ctx.with_block_height(2).with_block_time(NOW + timedelta(seconds=1))
    keeper.begin_blocker(ctx)
    return ctx


def _case_three(ctx, keeper):
    ctx = _case_one(ctx, keeper)
    ctx = ctx.with_block_height(3).with_block_time(NOW + timedelta(days=31))
    keeper.begin_blocker(ctx)
    return ctx


def _case_four(ctx, keeper):
    ctx = _case_one(ctx, keeper)
    ctx = ctx.with_block_height(3).with_block_time(NOW + timedelta(days=32))
    keeper.begin_blocker(ctx)
    return ctx


def _case_five(ctx, keeper):
    ctx = _case_four(ctx, keeper)
    ctx.with_block_height(4).with_block_time(NOW + timedelta(days=33))
    keeper.begin_blocker(ctx)
    return ctx


@pytest.mark.parametrize(
    "steps, exp_height, exp_start, exp_epoch",
    [
        (_case_one, 2, NOW, 1),
        (_case_one, 2, NOW, 1),
        (_case_three, 2, NOW, 1),
        (_case_four, 3, NOW + MONTH31, 2),
        (_case_five, 3, NOW + MONTH31, 2),
        (_case_five, 3, NOW + MONTH31, 2),
    ],
)
def test_epoch_info_changes_begin_blocker_and_init_genesis(
    setup, steps, exp_height, exp_start, exp_epoch
):
    ctx, keeper = setup
    ctx = _fresh_monthly(ctx, keeper)
    ctx = steps(ctx, keeper)
    info = keeper.get_epoch_info(ctx, "monthly")
    assert info is not None
    assert info.identifier == "monthly"
    assert info.start_time == NOW
    assert info.duration == MONTH31
    assert info.current_epoch == exp_epoch
    assert info.current_epoch_start_height == exp_height
    assert info.current_epoch_start_time == exp_start
    assert info.epoch_counting_started is True


def test_epoch_starting_one_month_after_init_genesis(setup):
    ctx, keeper = setup
    week = timedelta(days=7)
    month = timedelta(days=30)
    ctx = _fresh_monthly(ctx, keeper, start_time=NOW + month, duration=month)

    info = keeper.get_epoch_info(ctx, "monthly")
    assert info.current_epoch == 0
    assert info.current_epoch_start_height == 1
    assert info.current_epoch_start_time == ZERO_TIME
    assert info.epoch_counting_started is False

    ctx = ctx.with_block_height(2).with_block_time(NOW + week)
    keeper.begin_blocker(ctx)
    info = keeper.get_epoch_info(ctx, "monthly")
    assert info.current_epoch == 0
    assert info.current_epoch_start_height == 1
    assert info.current_epoch_start_time == ZERO_TIME
    assert info.epoch_counting_started is False

    ctx = ctx.with_block_height(3).with_block_time(NOW + month)
    keeper.begin_blocker(ctx)
    info = keeper.get_epoch_info(ctx, "monthly")
    assert info.current_epoch == 1
    assert info.current_epoch_start_height == 3
    assert info.current_epoch_start_time == NOW + month
    assert info.epoch_counting_started is True


def test_begin_blocker_calls_hooks_and_emits_events():
    ctx = Context()
    hooks = RecordingHooks()
    keeper = Keeper().set_hooks(hooks)
    ctx = _fresh_monthly(ctx, keeper)
    ctx = _case_four(ctx, keeper)
    assert hooks.calls == [
        ("start", "monthly", 1),
        ("end", "monthly", 2),
        ("start", "monthly", 2),
    ]
    types = [event.type for event in ctx.event_manager.events()]
    assert types == ["epoch_start", "epoch_end", "epoch_start"]
    last = ctx.event_manager.events()[-1]
    attrs = {a.key: a.value for a in last.attributes}
    assert attrs["epoch_number"] == "2"
    assert attrs["start_time"] == str(int((NOW + MONTH31).timestamp()))


def test_epoch_life_cycle(setup):
    ctx, keeper = setup
    info = EpochInfo(identifier="monthly", duration=timedelta(days=30))
    keeper.set_epoch_info(ctx, info)
    assert keeper.get_epoch_info(ctx, "monthly") == info

    all_epochs = keeper.all_epoch_infos(ctx)
    assert [e.identifier for e in all_epochs] == ["day", "monthly", "week"]


def test_delete_and_missing_epoch(setup):
    ctx, keeper = setup
    keeper.delete_epoch_info(ctx, "day")
    assert keeper.get_epoch_info(ctx, "day") is None
    assert [e.identifier for e in keeper.iterate_epoch_info(ctx)] == ["week"]


def test_query_epoch_infos(setup):
    ctx, keeper = setup
    chain_start = ctx.block_time
    response = keeper.epoch_infos(ctx, QueryEpochsInfoRequest())
    assert len(response.epochs) == 2
    day, week = response.epochs
    assert day.identifier == "day"
    assert day.start_time == chain_start
    assert day.duration == timedelta(days=1)
    assert day.current_epoch == 0
    assert day.current_epoch_start_time == chain_start
    assert day.epoch_counting_started is False
    assert week.identifier == "week"
    assert week.start_time == chain_start
    assert week.duration == timedelta(days=7)
    assert week.current_epoch == 0
    assert week.current_epoch_start_time == chain_start
    assert week.epoch_counting_started is False
    assert response.pagination.total == 2


def test_query_epoch_infos_pagination(setup):
    ctx, keeper = setup
    first = keeper.epoch_infos(ctx, QueryEpochsInfoRequest(PageRequest(limit=1)))
    assert [e.identifier for e in first.epochs] == ["day"]
    assert first.pagination.next_key == b"week"
    second = keeper.epoch_infos(
        ctx, QueryEpochsInfoRequest(PageRequest(key=first.pagination.next_key, limit=1))
    )
    assert [e.identifier for e in second.epochs] == ["week"]
    assert second.pagination.next_key is None


def test_query_epoch_infos_offset_and_key_rejected(setup):
    ctx, keeper = setup
    with pytest.raises(QueryError) as info:
        keeper.epoch_infos(ctx, QueryEpochsInfoRequest(PageRequest(key=b"day", offset=1)))
    assert info.value.code == QueryError.INTERNAL


def test_query_empty_requests(setup):
    ctx, keeper = setup
    with pytest.raises(QueryError) as info:
        keeper.epoch_infos(ctx, None)
    assert info.value.code == QueryError.INVALID_ARGUMENT
    with pytest.raises(QueryError) as info:
        keeper.current_epoch(ctx, None)
    assert info.value.message == "empty request"


def test_query_current_epoch(setup):
    ctx, keeper = setup
    assert keeper.current_epoch(ctx, QueryCurrentEpochRequest("week")).current_epoch == 0
    with pytest.raises(QueryError) as info:
        keeper.current_epoch(ctx, QueryCurrentEpochRequest("unavailable"))
    assert info.value.code == QueryError.NOT_FOUND
    assert info.value.message == "epoch info not found: unavailable"


def test_set_hooks_twice_fails():
    keeper = Keeper().set_hooks(MultiEpochHooks())
    with pytest.raises(RuntimeError, match="cannot set epochs hooks twice"):
        keeper.set_hooks(MultiEpochHooks())


def test_logger_carries_module():
    assert Keeper().logger(Context()).extra == {"module": "x/epochs"}