"""Keeper of the epochs module: epoch storage, block processing and queries."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone

from evmos.epochs.context import Attribute, Context, Event, KVStore
from evmos.epochs.types import (
    ATTRIBUTE_EPOCH_NUMBER,
    ATTRIBUTE_EPOCH_START_TIME,
    EVENT_TYPE_EPOCH_END,
    EVENT_TYPE_EPOCH_START,
    KEY_PREFIX_EPOCH,
    MODULE_NAME,
    STORE_KEY,
    EpochHooks,
    EpochInfo,
)

DEFAULT_PAGE_LIMIT = 100

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def _unix_seconds(moment: datetime) -> int:
    return (_utc(moment) - _UNIX_EPOCH) // timedelta(seconds=1)


def _encode(epoch: EpochInfo) -> bytes:
    return json.dumps(epoch.to_dict(), sort_keys=True).encode()


def _decode(raw: bytes) -> EpochInfo:
    return EpochInfo.from_dict(json.loads(raw.decode()))


@dataclass(frozen=True)
class PageRequest:
    """Pagination of a query: either a start key or an offset."""

    key: bytes | None = None
    offset: int = 0
    limit: int = 0
    count_total: bool = False
    reverse: bool = False


@dataclass(frozen=True)
class PageResponse:
    next_key: bytes | None = None
    total: int = 0


@dataclass(frozen=True)
class QueryEpochsInfoRequest:
    pagination: PageRequest | None = None


@dataclass(frozen=True)
class QueryEpochsInfoResponse:
    epochs: list[EpochInfo] = field(default_factory=list)
    pagination: PageResponse = field(default_factory=PageResponse)


@dataclass(frozen=True)
class QueryCurrentEpochRequest:
    identifier: str = ""


@dataclass(frozen=True)
class QueryCurrentEpochResponse:
    current_epoch: int = 0


class QueryError(Exception):
    """A failed query, carrying a status code such as "NotFound"."""

    INVALID_ARGUMENT = "InvalidArgument"
    NOT_FOUND = "NotFound"
    INTERNAL = "Internal"

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def _paginate(
    entries: Sequence[tuple[bytes, bytes]], page: PageRequest | None
) -> tuple[list[tuple[bytes, bytes]], PageResponse]:
    page = page or PageRequest()
    if page.offset > 0 and page.key:
        raise ValueError("invalid request, either offset or key is expected, got both")
    limit = page.limit
    count_total = page.count_total
    if limit == 0:
        limit = DEFAULT_PAGE_LIMIT
        count_total = True

    ordered = list(reversed(entries)) if page.reverse else list(entries)

    if page.key:
        if page.reverse:
            ordered = [item for item in ordered if item[0] <= page.key]
        else:
            ordered = [item for item in ordered if item[0] >= page.key]
        selected = ordered[:limit]
        next_key = ordered[limit][0] if len(ordered) > limit else None
        return selected, PageResponse(next_key=next_key)

    end = page.offset + limit
    selected = ordered[page.offset:end]
    next_key = ordered[end][0] if len(ordered) > end else None
    total = len(ordered) if count_total else 0
    return selected, PageResponse(next_key=next_key, total=total)


class Keeper:
    """Keeps the epoch records in a store and runs the epoch hooks."""

    def __init__(self, store_key: str = STORE_KEY) -> None:
        self.store_key = store_key
        self.hooks: EpochHooks | None = None

    def set_hooks(self, hooks: EpochHooks) -> Keeper:
        if self.hooks is not None:
            raise RuntimeError("cannot set epochs hooks twice")
        self.hooks = hooks
        return self

    def logger(self, ctx: Context) -> logging.LoggerAdapter:
        return logging.LoggerAdapter(ctx.logger, {"module": f"x/{MODULE_NAME}"})

    def _store(self, ctx: Context) -> KVStore:
        return ctx.kv_store(self.store_key)

    def _entries(self, ctx: Context) -> list[tuple[bytes, bytes]]:
        prefix = KEY_PREFIX_EPOCH
        return [(key[len(prefix):], value) for key, value in self._store(ctx).items(prefix)]

    def get_epoch_info(self, ctx: Context, identifier: str) -> EpochInfo | None:
        """Return the epoch with this identifier, or None if there is none."""
        raw = self._store(ctx).get(KEY_PREFIX_EPOCH + identifier.encode())
        if not raw:
            return None
        return _decode(raw)

    def set_epoch_info(self, ctx: Context, epoch: EpochInfo) -> None:
        self._store(ctx).set(KEY_PREFIX_EPOCH + epoch.identifier.encode(), _encode(epoch))

    def delete_epoch_info(self, ctx: Context, identifier: str) -> None:
        self._store(ctx).delete(KEY_PREFIX_EPOCH + identifier.encode())

    def iterate_epoch_info(self, ctx: Context) -> Iterator[EpochInfo]:
        """Yield every stored epoch in identifier order."""
        for _, value in self._entries(ctx):
            yield _decode(value)

    def all_epoch_infos(self, ctx: Context) -> list[EpochInfo]:
        return list(self.iterate_epoch_info(ctx))

    def begin_blocker(self, ctx: Context) -> None:
        """Start or advance every epoch whose time has come."""
        log = self.logger(ctx)
        block_time = _utc(ctx.block_time)
        for epoch in self.iterate_epoch_info(ctx):
            not_yet = epoch.start_time > block_time
            should_initial_start = not epoch.epoch_counting_started and not not_yet
            epoch_end = epoch.current_epoch_start_time + epoch.duration
            should_start = block_time > epoch_end and not should_initial_start and not not_yet

            epoch = replace(epoch, current_epoch_start_height=ctx.block_height)

            if should_initial_start:
                epoch = replace(
                    epoch,
                    epoch_counting_started=True,
                    current_epoch=1,
                    current_epoch_start_time=epoch.start_time,
                )
                log.info("starting epoch identifier=%s", epoch.identifier)
            elif should_start:
                epoch = replace(
                    epoch,
                    current_epoch=epoch.current_epoch + 1,
                    current_epoch_start_time=epoch.current_epoch_start_time + epoch.duration,
                )
                log.info("ending epoch identifier=%s", epoch.identifier)
                ctx.event_manager.emit_event(
                    Event(
                        EVENT_TYPE_EPOCH_END,
                        (Attribute(ATTRIBUTE_EPOCH_NUMBER, str(epoch.current_epoch)),),
                    )
                )
                self.after_epoch_end(ctx, epoch.identifier, epoch.current_epoch)
            else:
                continue

            self.set_epoch_info(ctx, epoch)
            ctx.event_manager.emit_event(
                Event(
                    EVENT_TYPE_EPOCH_START,
                    (
                        Attribute(ATTRIBUTE_EPOCH_NUMBER, str(epoch.current_epoch)),
                        Attribute(
                            ATTRIBUTE_EPOCH_START_TIME,
                            str(_unix_seconds(epoch.current_epoch_start_time)),
                        ),
                    ),
                )
            )
            self.before_epoch_start(ctx, epoch.identifier, epoch.current_epoch)

    def after_epoch_end(self, ctx: Context, identifier: str, epoch_number: int) -> None:
        if self.hooks is not None:
            self.hooks.after_epoch_end(ctx, identifier, epoch_number)

    def before_epoch_start(self, ctx: Context, identifier: str, epoch_number: int) -> None:
        if self.hooks is not None:
            self.hooks.before_epoch_start(ctx, identifier, epoch_number)

    def epoch_infos(
        self, ctx: Context, request: QueryEpochsInfoRequest | None
    ) -> QueryEpochsInfoResponse:
        """Return the stored epochs, one page at a time."""
        if request is None:
            raise QueryError(QueryError.INVALID_ARGUMENT, "empty request")
        try:
            selected, page = _paginate(self._entries(ctx), request.pagination)
            epochs = [_decode(value) for _, value in selected]
        except ValueError as exc:
            raise QueryError(QueryError.INTERNAL, str(exc)) from exc
        return QueryEpochsInfoResponse(epochs=epochs, pagination=page)

    def current_epoch(
        self, ctx: Context, request: QueryCurrentEpochRequest | None
    ) -> QueryCurrentEpochResponse:
        """Return the current epoch number of the named epoch."""
        if request is None:
            raise QueryError(QueryError.INVALID_ARGUMENT, "empty request")
        info = self.get_epoch_info(ctx, request.identifier)
        if info is None:
            raise QueryError(QueryError.NOT_FOUND, f"epoch info not found: {request.identifier}")
        return QueryCurrentEpochResponse(current_epoch=info.current_epoch)