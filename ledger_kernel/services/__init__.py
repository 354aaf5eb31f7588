"""Kernel services: admission, persistence, catalog, periods, sequences."""

from ledger_kernel.services.account_catalog import AccountCatalog
from ledger_kernel.services.period_service import PeriodService
from ledger_kernel.services.persistence import (
    InMemoryPostingPersistence,
    PostingPersistence,
)
from ledger_kernel.services.posting_store import PostingStore, load_chart
from ledger_kernel.services.sequence_service import SequenceService
from ledger_kernel.services.sql_persistence import SqlPostingPersistence

__all__ = [
    "AccountCatalog",
    "InMemoryPostingPersistence",
    "PeriodService",
    "PostingPersistence",
    "PostingStore",
    "SequenceService",
    "SqlPostingPersistence",
    "load_chart",
]
