"""
Reporting Service (``ledger_reports.service``).

Responsibility
--------------
Produces the trial balance, balance sheet, income statement and journal
listing by loading the chart and the filtered postings, then delegating to
the pure functions in ``statements.py``.  This is a **read-only** service:
nothing is admitted, reversed or written.

Architecture position
---------------------
**Modules layer** -- thin glue over the kernel.  Constructor: ``store`` +
optional ``catalog`` + ``config``.  The store supplies postings (its
``query`` pushes the filter down to persistence); the catalog, or the
store's own catalog when none is given, supplies the chart.

Invariants enforced
-------------------
* Read-only -- no mutation of the store or the catalog.
* All monetary amounts use ``Decimal`` -- NEVER ``float``.
* Idempotent -- the same store contents and filter give equal reports.

Failure modes
-------------
* Malformed filter values  -> ``ReportFilterError`` from ``EntryFilter``
  before any query runs.
* Persistence failure  -> exception propagates (nothing to roll back).

Audit relevance
---------------
``report_generated`` is logged for every report with its type, filter and
size, under the ``report_type`` log context.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from ledger_kernel.domain.chart import AccountCatalogProvider, AccountClass, ChartOfAccounts
from ledger_kernel.domain.entries import NO_FILTER, EntryFilter
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.services.posting_store import PostingStore
from ledger_reports.config import ReportingConfig
from ledger_reports.models import (
    BalanceSheetReport,
    IncomeStatementReport,
    JournalListing,
    ReportType,
    TrialBalanceReport,
)
from ledger_reports.statements import (
    compute_balance_sheet,
    compute_income_statement,
    compute_journal_listing,
    compute_trial_balance,
)

logger = get_logger("reports.service")

R = TypeVar("R")


class ReportingService:
    """
    Ledger report generation service.

    Contract
    --------
    * Every public method takes an optional ``EntryFilter`` and returns a
      frozen report DTO.
    * The chart is re-read on every call, so accounts added or retired
      since the last report are reflected.

    Guarantees
    ----------
    * No financial logic lives in this class; it only loads and delegates.

    Non-goals
    ---------
    * Does NOT format amounts or lay out pages (see ``render.py`` and the
      external renderer).
    * Does NOT cache reports.
    """

    def __init__(
        self,
        store: PostingStore,
        catalog: AccountCatalogProvider | None = None,
        config: ReportingConfig | None = None,
    ):
        self._store = store
        self._catalog = catalog
        self._config = config or ReportingConfig.with_defaults()

    @property
    def config(self) -> ReportingConfig:
        return self._config

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _load_chart(self) -> ChartOfAccounts:
        """Chart classified with the configured label table."""
        accounts = (
            self._catalog.list_accounts()
            if self._catalog is not None
            else self._store.chart().list_accounts()
        )
        return ChartOfAccounts.from_accounts(accounts, labels=self._config.class_labels)

    def _generate(
        self,
        report_type: ReportType,
        entry_filter: EntryFilter | None,
        compute: Callable[..., R],
    ) -> tuple[ChartOfAccounts, R]:
        entry_filter = entry_filter or NO_FILTER
        with LogContext.bind(report_type=report_type.value):
            chart = self._load_chart()
            report = compute(
                chart,
                self._store.query(entry_filter),
                entry_filter,
                self._config,
            )
            logger.info(
                "report_generated",
                extra={
                    "date_from": entry_filter.date_from,
                    "date_to": entry_filter.date_to,
                    "account_code": entry_filter.account_code,
                    "party_id": entry_filter.party_id,
                    "account_count": len(chart),
                },
            )
        return chart, report

    # =========================================================================
    # Public API
    # =========================================================================

    def trial_balance(self, entry_filter: EntryFilter | None = None) -> TrialBalanceReport:
        _, report = self._generate(
            ReportType.TRIAL_BALANCE, entry_filter, compute_trial_balance,
        )
        if not report.is_balanced:
            # only possible with an account filter or inactive accounts hidden
            logger.debug(
                "trial_balance_not_balanced",
                extra={
                    "total_debit": report.total_debit,
                    "total_credit": report.total_credit,
                },
            )
        return report

    def balance_sheet(self, entry_filter: EntryFilter | None = None) -> BalanceSheetReport:
        """
        Balance sheet summary and detail.

        Accounts whose class label does not resolve to a known class are
        logged at WARNING, as they fall outside every statement.
        """
        chart, report = self._generate(
            ReportType.BALANCE_SHEET, entry_filter, compute_balance_sheet,
        )
        if report.unclassified:
            logger.warning(
                "balance_sheet_unclassified_accounts",
                extra={
                    "account_codes": [line.account_code for line in report.unclassified],
                    "class_labels": sorted(
                        {
                            chart.get(line.account_code).class_name
                            for line in report.unclassified
                        }
                    ),
                    "fallback_class": AccountClass.OTHER.value,
                },
            )
        return report

    def income_statement(
        self, entry_filter: EntryFilter | None = None,
    ) -> IncomeStatementReport:
        _, report = self._generate(
            ReportType.INCOME_STATEMENT, entry_filter, compute_income_statement,
        )
        return report

    def journal_listing(self, entry_filter: EntryFilter | None = None) -> JournalListing:
        _, report = self._generate(
            ReportType.JOURNAL, entry_filter, compute_journal_listing,
        )
        return report
