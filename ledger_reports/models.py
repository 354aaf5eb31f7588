"""
Report Models (``ledger_reports.models``).

Responsibility
--------------
Frozen dataclass value objects for the four reports: trial balance, balance
sheet, income statement and journal listing.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by
``ledger_reports.statements`` and returned by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields are ``Decimal`` -- NEVER ``float``.
* No generation timestamp is recorded: identical inputs give equal reports.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from ledger_kernel.domain.chart import AccountClass
from ledger_reports.config import SignConvention


class ReportType(str, Enum):
    """Types of ledger reports."""

    TRIAL_BALANCE = "trial_balance"
    BALANCE_SHEET = "balance_sheet"
    INCOME_STATEMENT = "income_statement"
    JOURNAL = "journal"


@dataclass(frozen=True)
class ReportMetadata:
    """Parameters a report was computed with."""

    report_type: ReportType
    entity_name: str
    currency: str
    date_from: date | None = None
    date_to: date | None = None
    account_code: str | None = None
    party_id: str | None = None


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLine:
    """Per-account totals.  ``balance`` is always debit minus credit."""

    account_code: str
    account_name: str
    account_class: AccountClass
    level: int
    debit: Decimal
    credit: Decimal
    balance: Decimal


@dataclass(frozen=True)
class TrialBalanceReport:
    """Trial balance in chart order; zero-activity accounts included."""

    metadata: ReportMetadata
    lines: tuple[TrialBalanceLine, ...]
    total_debit: Decimal
    total_credit: Decimal
    is_balanced: bool

    def by_code(self) -> dict[str, TrialBalanceLine]:
        return {line.account_code: line for line in self.lines}


# =========================================================================
# Balance Sheet
# =========================================================================


BALANCE_SHEET_CLASSES = (AccountClass.ASSET, AccountClass.LIABILITY, AccountClass.EQUITY)


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Balance sheet summary plus per-account detail.

    ``detail`` holds every reported account (same lines as the trial
    balance).  Accounts outside Asset / Liability / Equity do not enter the
    summary; those classified OTHER are listed in ``unclassified`` so they
    are visible rather than dropped.
    """

    metadata: ReportMetadata
    detail: tuple[TrialBalanceLine, ...]
    total_assets: Decimal
    total_liabilities: Decimal
    total_equity: Decimal
    unclassified: tuple[TrialBalanceLine, ...] = ()

    def summary(self) -> dict[str, Decimal]:
        return {
            AccountClass.ASSET.value: self.total_assets,
            AccountClass.LIABILITY.value: self.total_liabilities,
            AccountClass.EQUITY.value: self.total_equity,
        }


# =========================================================================
# Income Statement
# =========================================================================


@dataclass(frozen=True)
class IncomeStatementReport:
    """Income and expense totals with their per-account lines."""

    metadata: ReportMetadata
    sign_convention: SignConvention
    income_lines: tuple[TrialBalanceLine, ...]
    expense_lines: tuple[TrialBalanceLine, ...]
    total_income: Decimal
    total_expense: Decimal
    net_income: Decimal


# =========================================================================
# Journal Listing
# =========================================================================


@dataclass(frozen=True)
class JournalListingLine:
    account_code: str
    account_name: str
    party_id: str | None
    debit: Decimal
    credit: Decimal
    memo: str | None = None


@dataclass(frozen=True)
class JournalListingEntry:
    entry_id: int
    entry_number: str
    entry_date: date
    description: str
    source_document: str
    total_debit: Decimal
    total_credit: Decimal
    lines: tuple[JournalListingLine, ...]
    reversal_of: int | None = None


@dataclass(frozen=True)
class JournalListing:
    """Filtered entries in admission order, each with all of its lines."""

    metadata: ReportMetadata
    entries: tuple[JournalListingEntry, ...]

    @property
    def total_debit(self) -> Decimal:
        return sum((e.total_debit for e in self.entries), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((e.total_credit for e in self.entries), Decimal("0"))
