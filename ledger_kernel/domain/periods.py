"""
Periods -- monthly accounting periods and the in-memory calendar.

Responsibility:
    AccountingPeriod (value object, range [start, close)) and PeriodCalendar,
    the in-memory PeriodLookup used by tests and by callers that manage
    periods outside the database.  The SQL-backed lookup is
    ledger_kernel.services.period_service.PeriodService.

Architecture position:
    Kernel > Domain -- pure, no I/O.

Failure modes:
    - PeriodOverlapError when opening a month that already exists.
    - PeriodAlreadyClosedError on a second close.
    - PeriodRecordNotFoundError for an unknown period id.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import Protocol

from ledger_kernel.exceptions import (
    PeriodAlreadyClosedError,
    PeriodOverlapError,
    PeriodRecordNotFoundError,
)


class PeriodState(str, Enum):
    OPEN = "open"
    CLOSED = "closed"


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First day of the month and first day of the following month."""
    if not 1 <= month <= 12:
        raise ValueError(f"month must be 1..12, got {month}")
    start = date(year, month, 1)
    days = calendar.monthrange(year, month)[1]
    close = date.fromordinal(start.toordinal() + days)
    return start, close


def period_name(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


@dataclass(frozen=True)
class AccountingPeriod:
    """An accounting period; ``close`` is exclusive."""

    period_id: str
    year: int
    month: int
    name: str
    start: date
    close: date
    state: PeriodState = PeriodState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state == PeriodState.OPEN

    def contains(self, day: date) -> bool:
        return self.start <= day < self.close


class PeriodLookup(Protocol):
    """What the posting store needs to enforce open periods."""

    def period_for(self, day: date) -> AccountingPeriod | None: ...


class PeriodCalendar:
    """
    In-memory period calendar.

    Contract:
        Periods are monthly and never overlap.  Closing is one-way.
    """

    def __init__(self, periods: list[AccountingPeriod] | None = None):
        self._periods: dict[str, AccountingPeriod] = {}
        for period in periods or []:
            self._add(period)

    def _add(self, period: AccountingPeriod) -> None:
        for existing in self._periods.values():
            if period.start < existing.close and existing.start < period.close:
                raise PeriodOverlapError(period.name, existing.name)
        self._periods[period.period_id] = period

    def open_period(self, year: int, month: int) -> AccountingPeriod:
        start, close = month_bounds(year, month)
        name = period_name(year, month)
        period = AccountingPeriod(
            period_id=name,
            year=year,
            month=month,
            name=name,
            start=start,
            close=close,
        )
        self._add(period)
        return period

    def close_period(self, period_id: str) -> AccountingPeriod:
        period = self.get(period_id)
        if not period.is_open:
            raise PeriodAlreadyClosedError(period.name)
        closed = replace(period, state=PeriodState.CLOSED)
        self._periods[period_id] = closed
        return closed

    def get(self, period_id: str) -> AccountingPeriod:
        try:
            return self._periods[period_id]
        except KeyError:
            raise PeriodRecordNotFoundError(period_id) from None

    def period_for(self, day: date) -> AccountingPeriod | None:
        for period in self._periods.values():
            if period.contains(day):
                return period
        return None

    def list_periods(self) -> list[AccountingPeriod]:
        return sorted(self._periods.values(), key=lambda p: p.start)
