"""Pure domain core: chart of accounts, entries, filters, validation, periods."""

from ledger_kernel.domain.chart import (
    Account,
    AccountClass,
    ChartOfAccounts,
    classify_label,
    level_for_code,
)
from ledger_kernel.domain.entries import (
    EntryFilter,
    EntryId,
    PostedEntry,
    PostingLine,
    ProposedEntry,
    ProposedLine,
    ValidatedEntry,
)
from ledger_kernel.domain.periods import AccountingPeriod, PeriodCalendar, PeriodState
from ledger_kernel.domain.validation import validate_entry

__all__ = [
    "Account",
    "AccountClass",
    "AccountingPeriod",
    "ChartOfAccounts",
    "EntryFilter",
    "EntryId",
    "PeriodCalendar",
    "PeriodState",
    "PostedEntry",
    "PostingLine",
    "ProposedEntry",
    "ProposedLine",
    "ValidatedEntry",
    "classify_label",
    "level_for_code",
    "validate_entry",
]
