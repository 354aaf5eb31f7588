"""
Module: ledger_kernel.models.period
Responsibility: ORM persistence for monthly accounting periods, which decide
    whether an entry date still accepts postings.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - One period per (year, month) (uq_period_year_month).
    - Range is [start_date, close_date): close_date is the first day of the
      following month.
    - Transitions are one-way: OPEN -> CLOSED.  The immutability listener
      rejects any update to a closed period.
"""

from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class PeriodStatus(str, Enum):
    """Lifecycle status of an accounting period."""

    OPEN = "open"
    CLOSED = "closed"


class AccountingPeriodModel(TrackedBase):
    """Accounting period row ("periodo contable")."""

    __tablename__ = "accounting_periods"

    __table_args__ = (
        UniqueConstraint("year", "month", name="uq_period_year_month"),
        Index("idx_period_dates", "start_date", "close_date"),
    )

    year: Mapped[int] = mapped_column(Integer, nullable=False)

    month: Mapped[int] = mapped_column(Integer, nullable=False)

    # Display name, e.g. "2024-03"
    name: Mapped[str] = mapped_column(String(50), nullable=False)

    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    # Exclusive upper bound
    close_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[PeriodStatus] = mapped_column(
        String(10),
        default=PeriodStatus.OPEN,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<AccountingPeriodModel {self.name} {self.status}>"

    @property
    def is_closed(self) -> bool:
        return self.status == PeriodStatus.CLOSED
