import logging
import threading
from datetime import timedelta

import pytest

from evmos.tps_counter import (
    DEFAULT_TPS_REPORT_PERIOD,
    Status,
    TPSCounter,
    View,
    observability_views,
)


class _CollectingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.tps_values = []
        self.logged = threading.Event()

    def emit(self, record):
        self.tps_values.append(record.tps)
        self.logged.set()


def _make_counter(name, period=timedelta(milliseconds=5)):
    logger = logging.getLogger(f"tests.tps.{name}")
    logger.setLevel(logging.INFO)
    logger.propagate = False
    handler = _CollectingHandler()
    logger.handlers = [handler]
    view = View("transactions_processed", "transactions", "The transactions processed", ("status",))
    return TPSCounter(logger=logger, report_period=period, view=view), handler


def test_total_tps_over_five_periods():
    counter, handler = _make_counter("periods")
    n, repeat = 50, 5
    for _ in range(repeat):
        for j in range(n):
            if j & 1 == 0:
                counter.increment_success()
            else:
                counter.increment_failure()
        assert counter.tick() == n
    assert len(handler.tps_values) == 5
    want_total = float(repeat) * float(n) / 0.005
    assert sum(handler.tps_values) == pytest.approx(want_total)


def test_tick_without_transactions_logs_nothing():
    counter, handler = _make_counter("quiet")
    assert counter.tick() == 0
    assert handler.tps_values == []


def test_record_value_counts_by_status():
    counter, _ = _make_counter("record")
    assert counter.record_value(10, 4, Status.SUCCESS) == 6
    assert counter.record_value(3, 1, Status.FAILURE) == 2
    assert counter.record_value(5, 1, Status.FAILURE) == 4
    assert counter.view.rows() == {"OK": 1, "ERR": 2}


def test_record_value_ignores_decrease():
    counter, _ = _make_counter("decrease")
    assert counter.record_value(1, 5, Status.SUCCESS) == 0
    assert counter.view.rows() == {}


def test_tick_reports_only_new_transactions():
    counter, _ = _make_counter("delta")
    counter.increment_success()
    counter.increment_success()
    assert counter.tick() == 2
    counter.increment_failure()
    assert counter.tick() == 1
    assert counter.tick() == 0


def test_default_period_used_when_unset():
    counter = TPSCounter(report_period=None)
    assert counter.period == DEFAULT_TPS_REPORT_PERIOD
    assert counter.period == timedelta(seconds=10)


def test_start_returns_when_stopped_and_signals_done():
    counter, _ = _make_counter("stopped")
    stop = threading.Event()
    stop.set()
    counter.start(stop)
    assert counter.done.is_set()


def test_start_reports_in_background():
    counter, handler = _make_counter("thread", period=timedelta(milliseconds=5))
    stop = threading.Event()
    worker = threading.Thread(target=counter.start, args=(stop,))
    worker.start()
    for _ in range(20):
        counter.increment_success()
    assert handler.logged.wait(5)
    stop.set()
    worker.join(5)
    assert counter.done.is_set()
    assert sum(handler.tps_values) * 0.005 == pytest.approx(20)


def test_observability_views():
    views = observability_views()
    assert [view.name for view in views] == ["transactions_processed"]
    assert views[0].tag_keys == ("status",)