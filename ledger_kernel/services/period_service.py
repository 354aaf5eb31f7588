"""
PeriodService -- accounting period lifecycle on the database.

Responsibility:
    Opens monthly periods, closes them, and answers ``period_for(date)`` for
    the posting store (it satisfies the PeriodLookup protocol).

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - Periods never overlap; one per (year, month).
    - OPEN -> CLOSED only.  The immutability listener blocks any change to a
      closed row, including reopening.

Failure modes:
    - PeriodOverlapError when the month already exists.
    - PeriodRecordNotFoundError for an unknown period id.
    - PeriodAlreadyClosedError on a second close.

Audit relevance:
    ``period_opened`` and ``period_closed`` are logged with the period name.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.periods import (
    AccountingPeriod,
    PeriodState,
    month_bounds,
    period_name,
)
from ledger_kernel.exceptions import (
    PeriodAlreadyClosedError,
    PeriodOverlapError,
    PeriodRecordNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.period import AccountingPeriodModel, PeriodStatus
from ledger_kernel.services.base import BaseService

logger = get_logger("services.period")


class PeriodService(BaseService):
    """
    Service for the accounting period lifecycle.

    Non-goals:
        - Does NOT call ``session.commit()``.
        - Does NOT produce closing entries (income summary to equity); the
          administrator posts those as ordinary entries before closing.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()

    def _to_dto(self, period: AccountingPeriodModel) -> AccountingPeriod:
        status = period.status.value if isinstance(period.status, PeriodStatus) else period.status
        return AccountingPeriod(
            period_id=str(period.id),
            year=period.year,
            month=period.month,
            name=period.name,
            start=period.start_date,
            close=period.close_date,
            state=PeriodState(status),
        )

    def _get_model(self, period_id: str, for_update: bool = False) -> AccountingPeriodModel:
        try:
            key = UUID(str(period_id))
        except ValueError:
            raise PeriodRecordNotFoundError(period_id) from None
        stmt = select(AccountingPeriodModel).where(AccountingPeriodModel.id == key)
        if for_update:
            stmt = stmt.with_for_update()
        period = self.session.execute(stmt).scalar_one_or_none()
        if period is None:
            raise PeriodRecordNotFoundError(period_id)
        return period

    def open_period(self, year: int, month: int, actor_id: UUID | None = None) -> AccountingPeriod:
        """
        Create the monthly period ``year-month`` in OPEN state.

        Postconditions: The period covers [first day, first day of next month).

        Raises:
            ValueError: month outside 1..12.
            PeriodOverlapError: the range overlaps an existing period.
        """
        start, close = month_bounds(year, month)
        name = period_name(year, month)

        overlapping = self.session.execute(
            select(AccountingPeriodModel).where(
                AccountingPeriodModel.start_date < close,
                AccountingPeriodModel.close_date > start,
            )
        ).scalars().first()
        if overlapping is not None:
            raise PeriodOverlapError(name, overlapping.name)

        period = AccountingPeriodModel(
            year=year,
            month=month,
            name=name,
            start_date=start,
            close_date=close,
            status=PeriodStatus.OPEN,
            created_by_id=actor_id,
        )
        self.session.add(period)
        self.session.flush()

        logger.info(
            "period_opened",
            extra={"period_name": name, "start": start, "close": close},
        )
        return self._to_dto(period)

    def close_period(self, period_id: str, actor_id: UUID | None = None) -> AccountingPeriod:
        """
        Close a period; entries dated inside it are rejected from then on.

        Raises:
            PeriodRecordNotFoundError, PeriodAlreadyClosedError.
        """
        period = self._get_model(period_id, for_update=True)
        if period.is_closed:
            raise PeriodAlreadyClosedError(period.name)

        period.status = PeriodStatus.CLOSED
        period.closed_at = self._clock.now()
        period.updated_by_id = actor_id
        self.session.flush()

        logger.info(
            "period_closed",
            extra={"period_name": period.name, "closed_at": period.closed_at},
        )
        return self._to_dto(period)

    def get(self, period_id: str) -> AccountingPeriod:
        return self._to_dto(self._get_model(period_id))

    def period_for(self, day: date) -> AccountingPeriod | None:
        """The period containing ``day``, or None."""
        period = self.session.execute(
            select(AccountingPeriodModel).where(
                AccountingPeriodModel.start_date <= day,
                AccountingPeriodModel.close_date > day,
            )
        ).scalar_one_or_none()
        return None if period is None else self._to_dto(period)

    def list_periods(self) -> list[AccountingPeriod]:
        periods = self.session.execute(
            select(AccountingPeriodModel).order_by(AccountingPeriodModel.start_date)
        ).scalars()
        return [self._to_dto(p) for p in periods]
