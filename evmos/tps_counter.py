"""Counts delivered transactions and reports transactions per second."""

from __future__ import annotations

import enum
import logging
import threading
from collections import Counter
from dataclasses import dataclass, field
from datetime import timedelta

DEFAULT_TPS_REPORT_PERIOD = timedelta(seconds=10)

TAG_KEY_STATUS = "status"

_UINT64_WRAP = 1 << 63


class Status(enum.Enum):
    """Outcome of a delivered transaction."""

    SUCCESS = "success"
    FAILURE = "failure"

    @property
    def tag_value(self) -> str:
        return "ERR" if self is Status.FAILURE else "OK"


@dataclass
class View:
    """A counting view over recorded measurements, split by tag value."""

    name: str
    measure: str
    description: str
    tag_keys: tuple[str, ...]
    aggregation: str = "count"
    _rows: Counter = field(default_factory=Counter, repr=False, compare=False)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, tag_value: str, value: int) -> None:
        """Count one measurement under the given tag value."""
        with self._lock:
            self._rows[tag_value] += 1

    def rows(self) -> dict[str, int]:
        with self._lock:
            return dict(self._rows)


VIEW_TRANSACTIONS = View(
    name="transactions_processed",
    measure="transactions",
    description="The transactions processed",
    tag_keys=(TAG_KEY_STATUS,),
)


def observability_views() -> list[View]:
    """Return the views that the node exports."""
    return [VIEW_TRANSACTIONS]


class TPSCounter:
    """Thread-safe success and failure counters with periodic reporting."""

    def __init__(
        self,
        logger: logging.Logger | None = None,
        report_period: timedelta | None = None,
        view: View | None = None,
    ) -> None:
        self.logger = logger or logging.getLogger("evmos")
        self.report_period = report_period
        self.view = view or VIEW_TRANSACTIONS
        self.n_successful = 0
        self.n_failed = 0
        self.done = threading.Event()
        self._lock = threading.Lock()
        self._last_successful = 0
        self._last_failed = 0

    @property
    def period(self) -> timedelta:
        if self.report_period is not None and self.report_period > timedelta(0):
            return self.report_period
        return DEFAULT_TPS_REPORT_PERIOD

    def increment_success(self) -> None:
        with self._lock:
            self.n_successful += 1

    def increment_failure(self) -> None:
        with self._lock:
            self.n_failed += 1

    def record_value(self, latest: int, previous: int, status: Status) -> int:
        """Record the transactions seen since the previous report and return their number."""
        if latest < previous:
            return 0
        n = latest - previous
        if n >= _UINT64_WRAP:
            return 0
        self.view.record(Status(status).tag_value, n)
        return n

    def tick(self) -> int:
        """Report the transactions of one period; return how many there were."""
        with self._lock:
            latest_successful = self.n_successful
            latest_failed = self.n_failed

        n_txn = self.record_value(latest_successful, self._last_successful, Status.SUCCESS)
        n_txn += self.record_value(latest_failed, self._last_failed, Status.FAILURE)

        if n_txn:
            secs = self.period.total_seconds()
            tps = n_txn / secs
            self.logger.info("Transactions per second tps=%.2f", tps, extra={"tps": tps})

        self._last_failed = latest_failed
        self._last_successful = latest_successful
        return n_txn

    def start(self, stop_event: threading.Event) -> None:
        """Report once every period until stop_event is set."""
        try:
            seconds = self.period.total_seconds()
            while not stop_event.wait(seconds):
                self.tick()
        finally:
            self.done.set()