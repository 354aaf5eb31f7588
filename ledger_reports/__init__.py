"""
Ledger Reporting Module (``ledger_reports``).

Responsibility
--------------
Read-only module that turns the posted journal into the building's
reports: trial balance, balance sheet, income statement and journal
listing, plus the plain mappings handed to the external renderer.

Architecture position
---------------------
**Modules layer** -- reads through ``PostingStore.query`` and the account
catalog; never admits entries.  All report computation is implemented as
pure functions in ``statements.py``.

Invariants enforced
-------------------
* No journal entries are created by this module.
* Reports derive entirely from the append-only journal (no stored
  balances), so they are reproducible.

Failure modes
-------------
* Unknown class label  -> account classified OTHER and listed as
  unclassified on the balance sheet.
* Empty journal  -> reports with every account at zero.
"""

from ledger_reports.config import INCOME_SIGN_CONVENTION, ReportingConfig, SignConvention
from ledger_reports.models import (
    BalanceSheetReport,
    IncomeStatementReport,
    JournalListing,
    JournalListingEntry,
    JournalListingLine,
    ReportMetadata,
    ReportType,
    TrialBalanceLine,
    TrialBalanceReport,
)
from ledger_reports.render import (
    render_balance_sheet,
    render_income_statement,
    render_journal_listing,
    render_trial_balance,
)
from ledger_reports.service import ReportingService
from ledger_reports.statements import (
    compute_balance_sheet,
    compute_income_statement,
    compute_journal_listing,
    compute_trial_balance,
)

__all__ = [
    "INCOME_SIGN_CONVENTION",
    "ReportingConfig",
    "SignConvention",
    "BalanceSheetReport",
    "IncomeStatementReport",
    "JournalListing",
    "JournalListingEntry",
    "JournalListingLine",
    "ReportMetadata",
    "ReportType",
    "TrialBalanceLine",
    "TrialBalanceReport",
    "render_balance_sheet",
    "render_income_statement",
    "render_journal_listing",
    "render_trial_balance",
    "ReportingService",
    "compute_balance_sheet",
    "compute_income_statement",
    "compute_journal_listing",
    "compute_trial_balance",
]
