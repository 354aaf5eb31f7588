"""ORM models for the ledger kernel."""

from ledger_kernel.models.account import AccountModel
from ledger_kernel.models.journal import JournalEntryModel, JournalLineModel
from ledger_kernel.models.period import AccountingPeriodModel, PeriodStatus
from ledger_kernel.models.sequence import SequenceCounter

__all__ = [
    "AccountModel",
    "AccountingPeriodModel",
    "JournalEntryModel",
    "JournalLineModel",
    "PeriodStatus",
    "SequenceCounter",
]
