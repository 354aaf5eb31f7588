"""
Pure report computation functions.

Every report is a function of ``(chart, postings, entry_filter, config)``.
ZERO I/O. ZERO side effects.

- No database access
- No clock access
- Deterministic: same inputs always produce equal outputs

Filtering is shared by all four reports: an entry is kept when it matches
every set predicate of the EntryFilter (inclusive dates, account on any
line, party on any line).  Aggregating reports that are restricted to one
``account_code`` only count that account's lines.  Lines whose account is
missing from the chart contribute to no account.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from ledger_kernel.domain.chart import Account, AccountClass, ChartOfAccounts
from ledger_kernel.domain.entries import NO_FILTER, EntryFilter, PostedEntry
from ledger_reports.config import ReportingConfig, SignConvention
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

ZERO = Decimal("0")


# =========================================================================
# Helpers
# =========================================================================


def make_metadata(
    report_type: ReportType,
    entry_filter: EntryFilter,
    config: ReportingConfig,
) -> ReportMetadata:
    return ReportMetadata(
        report_type=report_type,
        entity_name=config.entity_name,
        currency=config.currency,
        date_from=entry_filter.date_from,
        date_to=entry_filter.date_to,
        account_code=entry_filter.account_code,
        party_id=entry_filter.party_id,
    )


def filter_postings(
    postings: Iterable[PostedEntry],
    entry_filter: EntryFilter,
) -> list[PostedEntry]:
    """Entries matching the filter, in the order given."""
    return [entry for entry in postings if entry_filter.matches(entry)]


def reported_accounts(
    chart: ChartOfAccounts,
    entry_filter: EntryFilter,
    config: ReportingConfig,
) -> list[Account]:
    """
    Accounts a per-account report lists, in chart order.

    Active accounts only unless ``config.include_inactive``; a single
    account when the filter names one.
    """
    accounts = chart.accounts if config.include_inactive else chart.active_accounts()
    if entry_filter.account_code is not None:
        accounts = [a for a in accounts if a.code == entry_filter.account_code]
    return list(accounts)


def account_totals(
    postings: Iterable[PostedEntry],
    entry_filter: EntryFilter,
) -> dict[str, tuple[Decimal, Decimal]]:
    """
    Sum debit and credit per account code over the filtered postings.

    Postconditions: Only codes with at least one counted line appear.
    """
    totals: dict[str, tuple[Decimal, Decimal]] = {}
    for entry in postings:
        if not entry_filter.matches(entry):
            continue
        for line in entry.lines:
            if (
                entry_filter.account_code is not None
                and line.account_code != entry_filter.account_code
            ):
                continue
            debit, credit = totals.get(line.account_code, (ZERO, ZERO))
            totals[line.account_code] = (debit + line.debit, credit + line.credit)
    return totals


def _trial_balance_lines(
    chart: ChartOfAccounts,
    postings: Iterable[PostedEntry],
    entry_filter: EntryFilter,
    config: ReportingConfig,
) -> tuple[TrialBalanceLine, ...]:
    totals = account_totals(postings, entry_filter)
    lines: list[TrialBalanceLine] = []
    for account in reported_accounts(chart, entry_filter, config):
        debit, credit = totals.get(account.code, (ZERO, ZERO))
        lines.append(
            TrialBalanceLine(
                account_code=account.code,
                account_name=account.name,
                account_class=chart.class_of(account.code),
                level=account.level,
                debit=debit,
                credit=credit,
                balance=debit - credit,
            )
        )
    return tuple(lines)


def _sum_balances(lines: Iterable[TrialBalanceLine]) -> Decimal:
    return sum((line.balance for line in lines), ZERO)


# =========================================================================
# 1. TRIAL BALANCE
# =========================================================================


def compute_trial_balance(
    chart: ChartOfAccounts,
    postings: Iterable[PostedEntry],
    entry_filter: EntryFilter = NO_FILTER,
    config: ReportingConfig | None = None,
) -> TrialBalanceReport:
    """
    One line per reported account: debit, credit, balance = debit - credit.

    Accounts with no activity appear with zero totals, so without an
    account filter ``len(report.lines) == len(chart.active_accounts())``.
    """
    config = config or ReportingConfig()
    lines = _trial_balance_lines(chart, postings, entry_filter, config)
    total_debit = sum((line.debit for line in lines), ZERO)
    total_credit = sum((line.credit for line in lines), ZERO)
    return TrialBalanceReport(
        metadata=make_metadata(ReportType.TRIAL_BALANCE, entry_filter, config),
        lines=lines,
        total_debit=total_debit,
        total_credit=total_credit,
        is_balanced=total_debit == total_credit,
    )


# =========================================================================
# 2. BALANCE SHEET
# =========================================================================


def compute_balance_sheet(
    chart: ChartOfAccounts,
    postings: Iterable[PostedEntry],
    entry_filter: EntryFilter = NO_FILTER,
    config: ReportingConfig | None = None,
) -> BalanceSheetReport:
    """
    Per-account detail grouped into Asset, Liability and Equity totals.

    Each total is the sum of ``debit - credit`` of the class's accounts, so
    liabilities and equity normally come out negative.  OTHER-class
    accounts are returned in ``unclassified``.
    """
    config = config or ReportingConfig()
    lines = _trial_balance_lines(chart, postings, entry_filter, config)

    def of_class(account_class: AccountClass) -> list[TrialBalanceLine]:
        return [line for line in lines if line.account_class == account_class]

    return BalanceSheetReport(
        metadata=make_metadata(ReportType.BALANCE_SHEET, entry_filter, config),
        detail=lines,
        total_assets=_sum_balances(of_class(AccountClass.ASSET)),
        total_liabilities=_sum_balances(of_class(AccountClass.LIABILITY)),
        total_equity=_sum_balances(of_class(AccountClass.EQUITY)),
        unclassified=tuple(of_class(AccountClass.OTHER)),
    )


# =========================================================================
# 3. INCOME STATEMENT
# =========================================================================


def signed_total(
    lines: Iterable[TrialBalanceLine],
    account_class: AccountClass,
    convention: SignConvention,
) -> Decimal:
    """
    Sum a class's lines under the given sign convention.

    DEBIT_MINUS_CREDIT: ``debit - credit`` for every class.
    NATURAL: ``credit - debit`` for income, ``debit - credit`` otherwise.
    """
    total = _sum_balances(lines)
    if convention == SignConvention.NATURAL and account_class == AccountClass.INCOME:
        return -total
    return total


def compute_income_statement(
    chart: ChartOfAccounts,
    postings: Iterable[PostedEntry],
    entry_filter: EntryFilter = NO_FILTER,
    config: ReportingConfig | None = None,
) -> IncomeStatementReport:
    """
    Income and expense totals; ``net_income = total_income - total_expense``.

    The sign of each total follows ``config.income_sign_convention``.
    """
    config = config or ReportingConfig()
    lines = _trial_balance_lines(chart, postings, entry_filter, config)
    income_lines = tuple(l for l in lines if l.account_class == AccountClass.INCOME)
    expense_lines = tuple(l for l in lines if l.account_class == AccountClass.EXPENSE)
    convention = config.income_sign_convention

    total_income = signed_total(income_lines, AccountClass.INCOME, convention)
    total_expense = signed_total(expense_lines, AccountClass.EXPENSE, convention)
    return IncomeStatementReport(
        metadata=make_metadata(ReportType.INCOME_STATEMENT, entry_filter, config),
        sign_convention=convention,
        income_lines=income_lines,
        expense_lines=expense_lines,
        total_income=total_income,
        total_expense=total_expense,
        net_income=total_income - total_expense,
    )


# =========================================================================
# 4. JOURNAL LISTING
# =========================================================================


def compute_journal_listing(
    chart: ChartOfAccounts,
    postings: Iterable[PostedEntry],
    entry_filter: EntryFilter = NO_FILTER,
    config: ReportingConfig | None = None,
) -> JournalListing:
    """
    Filtered entries in admission order, each expanded into all its lines.

    No aggregation; an account filter selects entries, it does not hide the
    other lines of a selected entry.
    """
    config = config or ReportingConfig()
    entries: list[JournalListingEntry] = []
    for entry in filter_postings(postings, entry_filter):
        lines = tuple(
            JournalListingLine(
                account_code=line.account_code,
                account_name=_account_name(chart, line.account_code),
                party_id=line.party_id,
                debit=line.debit,
                credit=line.credit,
                memo=line.memo,
            )
            for line in entry.lines
        )
        entries.append(
            JournalListingEntry(
                entry_id=entry.entry_id,
                entry_number=entry.entry_number,
                entry_date=entry.entry_date,
                description=entry.description,
                source_document=entry.source_document,
                total_debit=entry.total_debit,
                total_credit=entry.total_credit,
                lines=lines,
                reversal_of=entry.reversal_of,
            )
        )
    return JournalListing(
        metadata=make_metadata(ReportType.JOURNAL, entry_filter, config),
        entries=tuple(entries),
    )


def _account_name(chart: ChartOfAccounts, code: str) -> str:
    account = chart.get(code)
    return account.name if account is not None else ""
