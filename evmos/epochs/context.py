"""In-memory block context: key-value stores, events and block header data."""

from __future__ import annotations

import logging
from bisect import bisect_left, insort
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime

from evmos.epochs.types import ZERO_TIME


class KVStore:
    """A byte-keyed store iterated in ascending key order."""

    def __init__(self) -> None:
        self._data: dict[bytes, bytes] = {}
        self._keys: list[bytes] = []

    @staticmethod
    def _check_key(key: bytes) -> None:
        if not isinstance(key, (bytes, bytearray)):
            raise TypeError("key must be bytes")
        if not key:
            raise ValueError("key is empty")

    def get(self, key: bytes) -> bytes | None:
        self._check_key(key)
        return self._data.get(bytes(key))

    def set(self, key: bytes, value: bytes) -> None:
        self._check_key(key)
        if not isinstance(value, (bytes, bytearray)):
            raise TypeError("value must be bytes")
        key = bytes(key)
        if key not in self._data:
            insort(self._keys, key)
        self._data[key] = bytes(value)

    def delete(self, key: bytes) -> None:
        self._check_key(key)
        key = bytes(key)
        if self._data.pop(key, None) is not None:
            del self._keys[bisect_left(self._keys, key)]

    def items(self, prefix: bytes = b"") -> Iterator[tuple[bytes, bytes]]:
        """Yield (key, value) pairs whose key starts with prefix, in key order."""
        prefix = bytes(prefix)
        keys = self._keys[bisect_left(self._keys, prefix):]
        for key in keys:
            if not key.startswith(prefix):
                break
            yield key, self._data[key]

    def __len__(self) -> int:
        return len(self._data)


@dataclass(frozen=True)
class Attribute:
    key: str
    value: str


@dataclass(frozen=True)
class Event:
    type: str
    attributes: tuple[Attribute, ...] = ()


class EventManager:
    """Collects the events emitted while processing a block."""

    def __init__(self) -> None:
        self._events: list[Event] = []

    def emit_event(self, event: Event) -> None:
        self._events.append(event)

    def events(self) -> list[Event]:
        return list(self._events)


@dataclass(frozen=True)
class Context:
    """Block header data plus stores and events shared by all derived contexts."""

    block_height: int = 0
    block_time: datetime = ZERO_TIME
    stores: dict[str, KVStore] = field(default_factory=dict, compare=False, repr=False)
    event_manager: EventManager = field(default_factory=EventManager, compare=False, repr=False)
    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("evmos"), compare=False, repr=False
    )

    def with_block_height(self, height: int) -> Context:
        return replace(self, block_height=height)

    def with_block_time(self, block_time: datetime) -> Context:
        return replace(self, block_time=block_time)

    def kv_store(self, store_key: str) -> KVStore:
        """Return the store for store_key, creating it on first use."""
        return self.stores.setdefault(store_key, KVStore())