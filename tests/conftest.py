"""
Shared fixtures for the MES test suite.

Logging is configured once per session at DEBUG; ``captured_logs`` taps
the ``mes_kernel`` tree for a single test.  Services are wired to an
in-memory store and a clock fixed at 2024-12-23 09:00 UTC unless a test
asks for ``sql_store``.
"""

import json
import logging
from datetime import datetime, timezone
from io import StringIO

import pytest

from mes_kernel.db.engine import (
    create_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from mes_kernel.domain.clock import DeterministicClock
from mes_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from mes_kernel.storage.blob_store import InMemoryBlobStore, SqlBlobStore
from mes_kernel.storage.collection import CollectionStore
from mes_services.master_data import BOMCollection, MaterialCollection, ProductCollection
from mes_services.stock_ledger import StockLedger

PLANT_TZ = "Asia/Ho_Chi_Minh"
STOCK_KEY = "vietnam_mes_stocks"


# -- logging ------------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def _session_logging():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _isolated_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Records logged under ``mes_kernel`` during the test, as dicts.

        def test_scan(captured_logs, ledger):
            ledger.register_process_stock(...)
            assert captured_logs()[-1]["message"] == "process_stock_registered"
    """
    buffer = StringIO()
    tap = logging.StreamHandler(buffer)
    tap.setFormatter(StructuredFormatter())
    tree = logging.getLogger("mes_kernel")
    saved_level = tree.level
    tree.setLevel(logging.DEBUG)
    tree.addHandler(tap)

    yield lambda: [json.loads(line) for line in buffer.getvalue().splitlines() if line]

    tree.removeHandler(tap)
    tree.setLevel(saved_level)


# -- time and storage ---------------------------------------------------------


@pytest.fixture
def clock() -> DeterministicClock:
    """16:00 in the plant timezone."""
    return DeterministicClock(datetime(2024, 12, 23, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def memory_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def sql_store():
    """SqlBlobStore over a fresh in-memory SQLite database."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield SqlBlobStore(get_session_factory())
    reset_engine()


@pytest.fixture
def stock_store(memory_store) -> CollectionStore:
    return CollectionStore(memory_store, STOCK_KEY)


# -- services -----------------------------------------------------------------


@pytest.fixture
def ledger(stock_store, clock) -> StockLedger:
    ledger = StockLedger(stock_store, clock, PLANT_TZ)
    yield ledger
    ledger.close()


@pytest.fixture
def materials(memory_store, clock) -> MaterialCollection:
    return MaterialCollection(
        CollectionStore(memory_store, "vietnam_mes_materials"), clock, PLANT_TZ
    )


@pytest.fixture
def products(memory_store, clock) -> ProductCollection:
    return ProductCollection(
        CollectionStore(memory_store, "vietnam_mes_products"), clock, PLANT_TZ
    )


@pytest.fixture
def bom(memory_store, clock) -> BOMCollection:
    return BOMCollection(CollectionStore(memory_store, "vietnam_mes_bom"), clock, PLANT_TZ)
