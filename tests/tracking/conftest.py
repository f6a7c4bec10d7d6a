"""Shared fixtures for the basket tracking tests."""

import threading
from datetime import UTC, datetime, timedelta

import pytest
from tracking.audit.sink import RepositoryAuditSink
from tracking.basket.lifecycle import BasketLifecycleManager
from tracking.basket.service import set_lifecycle
from tracking.basket.store import RepositoryBasketStore
from tracking.basket.sweeper import ExpirySweeper
from tracking.catalog import InMemoryCatalog, set_catalog

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock; thread-safe so concurrent tests can share it."""

    def __init__(self, start=T0):
        self._now = start
        self._lock = threading.Lock()

    def __call__(self):
        with self._lock:
            return self._now

    def advance(self, **kwargs):
        with self._lock:
            self._now = self._now + timedelta(**kwargs)
            return self._now

    def set(self, value):
        with self._lock:
            self._now = value


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def catalog():
    catalog = InMemoryCatalog.from_mapping(
        {
            "E200-MILK": {"name": "Milk 1L", "price": "1.29"},
            "E200-BREAD": {"name": "Sourdough", "price": "3.50"},
            "E200-EGGS": {"name": "Eggs x12", "price": "4.10"},
        }
    )
    set_catalog(catalog)
    return catalog


@pytest.fixture()
def lifecycle(catalog, clock):
    manager = BasketLifecycleManager(
        store=RepositoryBasketStore(),
        audit=RepositoryAuditSink(),
        catalog=catalog,
        clock=clock,
    )
    set_lifecycle(manager)
    return manager


@pytest.fixture()
def sweeper(lifecycle):
    return ExpirySweeper(lifecycle, idle_threshold=timedelta(minutes=30), interval=0.05)
