"""
Plain-mapping rendering of the report models.

The web layer serializes these mappings to JSON and the spreadsheet / PDF
exporters lay them out; neither sees the dataclasses.  Amounts stay Decimal
so the consumer decides the display format.
"""

from __future__ import annotations

from typing import Any

from ledger_reports.models import (
    BalanceSheetReport,
    IncomeStatementReport,
    JournalListing,
    TrialBalanceLine,
    TrialBalanceReport,
)


def _line(line: TrialBalanceLine) -> dict[str, Any]:
    return {
        "name": line.account_name,
        "debit": line.debit,
        "credit": line.credit,
        "balance": line.balance,
    }


def _accounts(lines) -> dict[str, dict[str, Any]]:
    # dicts keep insertion order, which is chart order
    return {line.account_code: _line(line) for line in lines}


def render_trial_balance(report: TrialBalanceReport) -> dict[str, dict[str, Any]]:
    """``{code: {name, debit, credit, balance}}`` in chart order."""
    return _accounts(report.lines)


def render_balance_sheet(report: BalanceSheetReport) -> dict[str, Any]:
    return {
        "summary": report.summary(),
        "detail": _accounts(report.detail),
        "unclassified": [line.account_code for line in report.unclassified],
    }


def render_income_statement(report: IncomeStatementReport) -> dict[str, Any]:
    return {
        "income": report.total_income,
        "expense": report.total_expense,
        "net_income": report.net_income,
        "sign_convention": report.sign_convention.value,
        "income_detail": _accounts(report.income_lines),
        "expense_detail": _accounts(report.expense_lines),
    }


def render_journal_listing(listing: JournalListing) -> list[dict[str, Any]]:
    """One row per line; entry fields repeat on each of its rows."""
    rows: list[dict[str, Any]] = []
    for entry in listing.entries:
        for line in entry.lines:
            rows.append(
                {
                    "entry_id": entry.entry_id,
                    "entry_number": entry.entry_number,
                    "date": entry.entry_date.isoformat(),
                    "description": entry.description,
                    "source_document": entry.source_document,
                    "account_code": line.account_code,
                    "account_name": line.account_name,
                    "party_id": line.party_id,
                    "debit": line.debit,
                    "credit": line.credit,
                    "memo": line.memo,
                }
            )
    return rows
