"""
Entries -- Journal entry DTOs across the admission pipeline.

Responsibility:
    Defines the immutable data that flows through admission and reporting:
    ProposedLine/ProposedEntry (caller input), ValidatedEntry (validator
    output), PostedEntry/PostingLine (what the store returns and reports
    read) and EntryFilter (the shared report filter).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Data flow:
    ProposedEntry -> validate_entry() -> ValidatedEntry
        -> PostingPersistence.append() -> PostedEntry

Failure modes:
    - ReportFilterError from EntryFilter on malformed dates or an inverted
      date range.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping

from ledger_kernel.exceptions import ReportFilterError

EntryId = int

ZERO = Decimal("0")


@dataclass(frozen=True)
class ProposedLine:
    """
    One line of a caller-proposed entry.

    Amounts are taken as given (int, str, Decimal, ...); the validator decides
    whether they are acceptable.
    """

    account_code: str
    debit: Any = ZERO
    credit: Any = ZERO
    party_id: str | None = None
    memo: str | None = None


@dataclass(frozen=True)
class ProposedEntry:
    """A journal entry as submitted by a caller, before validation."""

    entry_date: date
    lines: tuple[ProposedLine, ...]
    description: str = ""
    source_document: str = ""
    entry_number: str | None = None
    period_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "lines", tuple(self.lines))


@dataclass(frozen=True)
class PostingLine:
    """A line with amounts normalised to Decimal."""

    account_code: str
    debit: Decimal
    credit: Decimal
    party_id: str | None = None
    memo: str | None = None

    @property
    def balance(self) -> Decimal:
        """Signed contribution, debit minus credit."""
        return self.debit - self.credit


@dataclass(frozen=True)
class ValidatedEntry:
    """
    An entry that passed every admission check.

    Guarantees:
        - At least one line; every account existed and was active at
          validation time.
        - total_debit == total_credit.
    """

    entry_date: date
    lines: tuple[PostingLine, ...]
    total_debit: Decimal
    total_credit: Decimal
    description: str = ""
    source_document: str = ""
    entry_number: str | None = None
    period_id: str | None = None
    reversal_of: EntryId | None = None


@dataclass(frozen=True)
class PostedEntry:
    """
    An entry in the posting store.

    Guarantees:
        - Immutable; entry_id is unique and sequential in admission order.
    """

    entry_id: EntryId
    entry_number: str
    entry_date: date
    lines: tuple[PostingLine, ...]
    total_debit: Decimal
    total_credit: Decimal
    description: str = ""
    source_document: str = ""
    period_id: str | None = None
    reversal_of: EntryId | None = None

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit

    @property
    def is_reversal(self) -> bool:
        return self.reversal_of is not None

    def touches_account(self, account_code: str) -> bool:
        return any(line.account_code == account_code for line in self.lines)

    def touches_party(self, party_id: str) -> bool:
        return any(line.party_id == party_id for line in self.lines)


def _parse_date(name: str, value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError:
            raise ReportFilterError(
                name, value, "expected an ISO date (YYYY-MM-DD)"
            ) from None
    raise ReportFilterError(name, value, "expected a date or an ISO date string")


@dataclass(frozen=True)
class EntryFilter:
    """
    Report filter shared by every report.

    Contract:
        All fields optional; a set field narrows the result (conjunction).
        Dates are inclusive.  ``account_code`` and ``party_id`` keep an entry
        when any of its lines carries the value.

    Guarantees:
        - date_from <= date_to whenever both are set.
    """

    date_from: date | None = None
    date_to: date | None = None
    account_code: str | None = None
    party_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "date_from", _parse_date("date_from", self.date_from))
        object.__setattr__(self, "date_to", _parse_date("date_to", self.date_to))
        if self.account_code == "":
            object.__setattr__(self, "account_code", None)
        if self.party_id == "":
            object.__setattr__(self, "party_id", None)
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ReportFilterError(
                "date_from",
                self.date_from.isoformat(),
                f"date_from is after date_to ({self.date_to.isoformat()})",
            )

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> EntryFilter:
        """
        Build a filter from request query parameters.

        Accepts both the camelCase names used by the web client
        (dateFrom, dateTo, accountCode, partyId) and snake_case.
        """

        def pick(*names: str) -> Any:
            for name in names:
                if params.get(name) not in (None, ""):
                    return params[name]
            return None

        return cls(
            date_from=pick("dateFrom", "date_from"),
            date_to=pick("dateTo", "date_to"),
            account_code=pick("accountCode", "account_code"),
            party_id=pick("partyId", "party_id"),
        )

    @property
    def is_empty(self) -> bool:
        return (
            self.date_from is None
            and self.date_to is None
            and self.account_code is None
            and self.party_id is None
        )

    def matches(self, entry: PostedEntry) -> bool:
        if self.date_from is not None and entry.entry_date < self.date_from:
            return False
        if self.date_to is not None and entry.entry_date > self.date_to:
            return False
        if self.account_code is not None and not entry.touches_account(self.account_code):
            return False
        if self.party_id is not None and not entry.touches_party(self.party_id):
            return False
        return True


NO_FILTER = EntryFilter()
