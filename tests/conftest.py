"""
Pytest fixtures for the ledger test suite.

Provides:
- Structured logging setup and a JSON log capture fixture
- A small PUC chart and an in-memory posting store
- SQLite database sessions with per-test rollback

Environment Variables:
- LEDGER_TEST_DATABASE_URL: database for the SQL tests.  Defaults to an
  in-memory SQLite database, created fresh for every test.
"""

import json
import logging
import os
from datetime import date
from io import StringIO
from typing import Generator
from uuid import UUID

import pytest
from sqlalchemy.orm import Session

from ledger_kernel.db.engine import (
    create_tables,
    drop_tables,
    init_engine_from_url,
    reset_engine,
)
from ledger_kernel.db.immutability import unregister_immutability_listeners
from ledger_kernel.domain.chart import Account, ChartOfAccounts
from ledger_kernel.domain.clock import DeterministicClock
from ledger_kernel.domain.entries import ProposedEntry, ProposedLine
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.services import (
    AccountCatalog,
    InMemoryPostingPersistence,
    PostingStore,
    SqlPostingPersistence,
)

# Test actor ID for all test operations
TEST_ACTOR_ID = UUID("00000000-0000-4000-8000-000000000001")


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, store):
            store.admit(...)
            logs = captured_logs()
            assert any(r["message"] == "entry_admitted" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Chart of accounts
# =============================================================================


def make_accounts() -> list[Account]:
    """A building's chart: one account per class plus parents and a retired one."""
    return [
        Account("1", "Activo", "Activo"),
        Account("11", "Disponible", "Activo"),
        Account("1105", "Caja", "Activo"),
        Account("1110", "Bancos", "Activo"),
        Account("1305", "Cuotas por cobrar", "Activo", tracks_counterparty=True),
        Account("2205", "Proveedores", "Pasivo", tracks_counterparty=True),
        Account("3105", "Fondo social", "Patrimonio"),
        Account("4170", "Cuotas de administracion", "Ingreso"),
        Account("5135", "Servicios", "Gasto"),
        Account("5195", "Diversos (retirada)", "Gasto", active=False),
    ]


@pytest.fixture
def accounts() -> list[Account]:
    return make_accounts()


@pytest.fixture
def chart(accounts) -> ChartOfAccounts:
    return ChartOfAccounts.from_accounts(accounts)


# =============================================================================
# Entry builders
# =============================================================================


def line(account_code, debit="0", credit="0", party_id=None, memo=None) -> ProposedLine:
    return ProposedLine(
        account_code=account_code,
        debit=debit,
        credit=credit,
        party_id=party_id,
        memo=memo,
    )


def entry(entry_date, *lines, description="", source_document="", entry_number=None):
    if isinstance(entry_date, str):
        entry_date = date.fromisoformat(entry_date)
    return ProposedEntry(
        entry_date=entry_date,
        lines=lines,
        description=description,
        source_document=source_document,
        entry_number=entry_number,
    )


def cash_sale(entry_date="2024-01-15", amount="100"):
    """Debit Caja, credit Cuotas de administracion."""
    return entry(
        entry_date,
        line("1105", debit=amount),
        line("4170", credit=amount),
        description="Cuota de administracion",
    )


@pytest.fixture
def make_entry():
    return entry


@pytest.fixture
def make_line():
    return line


# =============================================================================
# In-memory store
# =============================================================================


@pytest.fixture
def store(chart) -> PostingStore:
    return PostingStore(InMemoryPostingPersistence(), chart)


# =============================================================================
# Database fixtures
# =============================================================================


def get_database_url() -> str:
    return os.environ.get("LEDGER_TEST_DATABASE_URL", "sqlite://")


@pytest.fixture
def db_engine():
    """Fresh engine and schema per test; immutability listeners active."""
    eng = init_engine_from_url(get_database_url(), echo=False)
    create_tables()
    yield eng
    unregister_immutability_listeners()
    drop_tables()
    reset_engine()


@pytest.fixture
def session(db_engine) -> Generator[Session, None, None]:
    """Provide a database session for testing.

    Uses the SQLAlchemy 2.0 ``join_transaction_mode`` pattern: the session
    joins an outer transaction that is rolled back at teardown, undoing all
    data changes made during the test.
    """
    conn = db_engine.connect()
    trans = conn.begin()
    sess = Session(bind=conn, join_transaction_mode="create_savepoint", expire_on_commit=False)
    yield sess
    try:
        sess.close()
    finally:
        try:
            trans.rollback()
        finally:
            conn.close()


@pytest.fixture
def catalog(session, accounts) -> AccountCatalog:
    """SQL catalog seeded with the test chart."""
    cat = AccountCatalog(session, actor_id=TEST_ACTOR_ID)
    cat.seed(accounts)
    return cat


@pytest.fixture
def sql_store(session, catalog) -> PostingStore:
    return PostingStore(SqlPostingPersistence(session, actor_id=TEST_ACTOR_ID), catalog)


@pytest.fixture
def deterministic_clock() -> DeterministicClock:
    return DeterministicClock()

