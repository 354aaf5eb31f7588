#!/usr/bin/env python3
"""
View ledger reports from persisted database data.

Connects to the database (the URL comes from --database-url, then
LEDGER_DATABASE_URL, then the settings file) and prints one report.
A database without ledger tables prints an empty report.

Usage:
    python3 scripts/view_reports.py --report trial-balance
    python3 scripts/view_reports.py --report journal --date-from 2024-01-01 \
        --date-to 2024-01-31 --party APT-101
"""

from __future__ import annotations

import argparse
import logging
import sys
from decimal import Decimal
from pathlib import Path
from typing import Sequence

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from sqlalchemy import inspect  # noqa: E402

from ledger_config import load_settings  # noqa: E402
from ledger_kernel.db.engine import get_engine, get_session, init_engine_from_url, reset_engine  # noqa: E402
from ledger_kernel.domain.chart import ChartOfAccounts  # noqa: E402
from ledger_kernel.domain.entries import EntryFilter  # noqa: E402
from ledger_kernel.exceptions import ReportFilterError  # noqa: E402
from ledger_kernel.logging_config import configure_logging  # noqa: E402
from ledger_kernel.services import (  # noqa: E402
    AccountCatalog,
    InMemoryPostingPersistence,
    PeriodService,
    PostingStore,
    SqlPostingPersistence,
)
from ledger_reports import ReportingConfig, ReportingService  # noqa: E402

REPORTS = ("trial-balance", "balance-sheet", "income-statement", "journal")

W = 88
AMT_W = 18


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _fmt(v: Decimal | None) -> str:
    """Format a Decimal as 1,234.56, negatives in parentheses."""
    if v is None:
        return ""
    formatted = f"{abs(v):,.2f}"
    return f"({formatted})" if v < 0 else f" {formatted} "


def _hdr(title: str, subtitle: str) -> str:
    return "\n".join(["=" * W, title.center(W), subtitle.center(W), "=" * W])


def _subtitle(metadata) -> str:
    parts = [metadata.entity_name, metadata.currency]
    if metadata.date_from or metadata.date_to:
        parts.append(f"{metadata.date_from or '...'} to {metadata.date_to or '...'}")
    if metadata.account_code:
        parts.append(f"account {metadata.account_code}")
    if metadata.party_id:
        parts.append(f"party {metadata.party_id}")
    return "  |  ".join(parts)


def _row(label: str, *amounts: Decimal | None) -> str:
    width = W - 2 - AMT_W * len(amounts)
    return f"  {label[:width]:<{width}}" + "".join(f"{_fmt(a):>{AMT_W}}" for a in amounts)


def _sep(columns: int) -> str:
    width = W - 2 - AMT_W * columns
    return f"  {'-' * width}" + f"{'-' * (AMT_W - 2):>{AMT_W}}" * columns


# ---------------------------------------------------------------------------
# Report printers
# ---------------------------------------------------------------------------


def print_trial_balance(tb) -> None:
    print(_hdr("TRIAL BALANCE", _subtitle(tb.metadata)))
    print(f"  {'Account':<{W - 2 - 3 * AMT_W}}{'Debit':>{AMT_W}}{'Credit':>{AMT_W}}{'Balance':>{AMT_W}}")
    print(_sep(3))
    for line in tb.lines:
        print(_row(f"{line.account_code}  {line.account_name}", line.debit, line.credit, line.balance))
    print(_sep(3))
    print(_row("TOTALS", tb.total_debit, tb.total_credit, tb.total_debit - tb.total_credit))
    print(f"  [{'OK' if tb.is_balanced else 'FAIL'}] Debits = Credits")
    print()


def print_balance_sheet(bs) -> None:
    print(_hdr("BALANCE SHEET", _subtitle(bs.metadata)))
    for label, total in bs.summary().items():
        print(_row(label, total))
    print(_sep(1))
    for line in bs.detail:
        print(_row(f"{line.account_code}  {line.account_name}", line.balance))
    if bs.unclassified:
        print()
        print("  Unclassified accounts:")
        for line in bs.unclassified:
            print(_row(f"{line.account_code}  {line.account_name}", line.balance))
    print()


def print_income_statement(rpt) -> None:
    print(_hdr("INCOME STATEMENT", _subtitle(rpt.metadata)))
    for line in rpt.income_lines:
        print(_row(f"{line.account_code}  {line.account_name}", line.balance))
    print(_row("Total income", rpt.total_income))
    print()
    for line in rpt.expense_lines:
        print(_row(f"{line.account_code}  {line.account_name}", line.balance))
    print(_row("Total expense", rpt.total_expense))
    print(_sep(1))
    print(_row("NET INCOME", rpt.net_income))
    print(f"  (sign convention: {rpt.sign_convention.value})")
    print()


def print_journal(listing) -> None:
    print(_hdr("JOURNAL", _subtitle(listing.metadata)))
    for entry in listing.entries:
        head = f"{entry.entry_date}  {entry.entry_number}  {entry.description}"
        if entry.source_document:
            head += f"  [{entry.source_document}]"
        print(f"  {head}")
        for line in entry.lines:
            label = f"    {line.account_code}  {line.account_name}"
            if line.party_id:
                label += f"  ({line.party_id})"
            print(_row(label, line.debit or None, line.credit or None))
    print(_sep(2))
    print(_row("TOTALS", listing.total_debit, listing.total_credit))
    print(f"  {len(listing.entries)} entries")
    print()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Print a ledger report.")
    parser.add_argument("--database-url", help="SQLAlchemy database URL")
    parser.add_argument("--report", choices=REPORTS, default="trial-balance")
    parser.add_argument("--date-from", help="first date included (YYYY-MM-DD)")
    parser.add_argument("--date-to", help="last date included (YYYY-MM-DD)")
    parser.add_argument("--account", help="exact account code")
    parser.add_argument("--party", help="counterparty id")
    parser.add_argument("--config", help="settings YAML (default: $LEDGER_CONFIG or bundled)")
    parser.add_argument("--verbose", action="store_true", help="log to stderr")
    return parser


def open_store(session, settings, catalog: AccountCatalog) -> PostingStore:
    """PostingStore over the journal tables, configured from the settings file."""
    return PostingStore(
        SqlPostingPersistence(session),
        catalog,
        periods=PeriodService(session) if settings.enforce_open_periods else None,
        minor_unit=settings.minor_unit,
        entry_number_prefix=settings.entry_number_prefix,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        entry_filter = EntryFilter(
            date_from=args.date_from,
            date_to=args.date_to,
            account_code=args.account,
            party_id=args.party,
        )
    except ReportFilterError as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 2

    settings = load_settings(args.config)
    if args.verbose:
        configure_logging(level=settings.log_level, stream=sys.stderr)
    else:
        logging.disable(logging.CRITICAL)

    config = ReportingConfig.from_dict(
        {
            "entity_name": settings.entity_name,
            "currency": settings.currency,
            **settings.reporting,
        }
    )

    try:
        init_engine_from_url(args.database_url or settings.database_url)
        session = get_session()
        try:
            if inspect(get_engine()).has_table("journal_entries"):
                catalog = AccountCatalog(session)
                service = ReportingService(open_store(session, settings, catalog), catalog, config)
            else:
                empty = ChartOfAccounts(accounts=())
                service = ReportingService(
                    PostingStore(InMemoryPostingPersistence(), empty), empty, config,
                )

            if args.report == "trial-balance":
                print_trial_balance(service.trial_balance(entry_filter))
            elif args.report == "balance-sheet":
                print_balance_sheet(service.balance_sheet(entry_filter))
            elif args.report == "income-statement":
                print_income_statement(service.income_statement(entry_filter))
            else:
                print_journal(service.journal_listing(entry_filter))
        finally:
            session.rollback()
            session.close()
    finally:
        reset_engine()
        if not args.verbose:
            logging.disable(logging.NOTSET)

    return 0


if __name__ == "__main__":
    sys.exit(main())
