"""
PostingStore -- the single admission chokepoint of the ledger.

Responsibility:
    Admits proposed entries (validator first, then period check, then
    append), exposes the append-only collection to the report engine, and
    models corrections as offsetting entries (reverse / amend).

Architecture position:
    Kernel > Services.  Depends on the PostingPersistence interface, an
    account catalog provider (anything with ``list_accounts()``) and an
    optional PeriodLookup.  Callers never touch persistence directly.

Invariants enforced:
    - Balance: nothing reaches persistence without passing validate_entry.
    - Fail-all-together: every check runs before the first write, so a
      rejected entry leaves the store unchanged.
    - Single writer: admission, reversal and amendment run under one lock.
    - Append-only: there is no update or delete; an entry is reversed at
      most once.
    - Open periods: with a period lookup, entries must fall in an open
      period.

Failure modes:
    - EntryValidationError subclasses from the validator.
    - DuplicateEntryNumberError for a caller-supplied number already in use.
    - ReservedEntryNumberError for a caller-supplied number shaped like a
      generated one (the prefix followed by digits).
    - PeriodNotFoundError / ClosedPeriodError when periods are enforced.
    - EntryNotFoundError / EntryAlreadyReversedError from reverse and amend.

Audit relevance:
    Every admission and rejection is logged (``entry_admitted`` /
    ``entry_rejected``) with the entry totals or the error payload.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date
from typing import Iterator

from ledger_kernel.domain.chart import AccountCatalogProvider, ChartOfAccounts
from ledger_kernel.domain.entries import (
    NO_FILTER,
    EntryFilter,
    EntryId,
    PostedEntry,
    ProposedEntry,
    ProposedLine,
    ValidatedEntry,
)
from ledger_kernel.domain.periods import PeriodLookup
from ledger_kernel.domain.validation import DEFAULT_MINOR_UNIT, validate_entry
from ledger_kernel.exceptions import (
    ClosedPeriodError,
    DuplicateEntryNumberError,
    EntryAlreadyReversedError,
    EntryNotFoundError,
    LedgerKernelError,
    PeriodNotFoundError,
    ReservedEntryNumberError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.services.persistence import PostingPersistence, is_generated_entry_number

logger = get_logger("services.posting_store")

DEFAULT_ENTRY_NUMBER_PREFIX = "CC-"


def load_chart(catalog: AccountCatalogProvider) -> ChartOfAccounts:
    """Current chart from any catalog provider."""
    if isinstance(catalog, ChartOfAccounts):
        return catalog
    return ChartOfAccounts.from_accounts(catalog.list_accounts())


class PostingStore:
    """
    Append-only store of posted journal entries.

    Contract:
        ``admit`` is the only way in for caller data.  ``query`` returns a
        lazy, restartable iterator in admission order.

    Guarantees:
        - EntryIds are sequential and unique.
        - A rejected admission leaves ``len(store)`` unchanged.

    Non-goals:
        - No in-place update or delete.
        - Does NOT commit; SQL persistence flushes inside the caller's
          transaction.
    """

    def __init__(
        self,
        persistence: PostingPersistence,
        catalog: AccountCatalogProvider,
        *,
        periods: PeriodLookup | None = None,
        minor_unit: int = DEFAULT_MINOR_UNIT,
        entry_number_prefix: str = DEFAULT_ENTRY_NUMBER_PREFIX,
    ):
        limit = persistence.max_minor_unit
        if limit is not None and minor_unit > limit:
            raise ValueError(
                f"minor_unit {minor_unit} exceeds the {limit} decimals "
                f"{type(persistence).__name__} stores"
            )
        self._persistence = persistence
        self._catalog = catalog
        self._periods = periods
        self._minor_unit = minor_unit
        self._prefix = entry_number_prefix
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def admit(self, proposed: ProposedEntry) -> PostedEntry:
        """
        Validate and append a caller-proposed entry.

        Preconditions: none; any input is either admitted or rejected.
        Postconditions: On success the entry is stored under the next
            EntryId.  On failure the store is unchanged and the typed
            error is raised.
        """
        with self._lock:
            validated = self._prepare(proposed)
            return self._append(validated)

    def append(self, entry: ValidatedEntry) -> EntryId:
        """
        Append an already-validated entry and return its EntryId.

        Preconditions: ``entry`` was produced by validate_entry.
        """
        with self._lock:
            return self._append(entry).entry_id

    def _prepare(self, proposed: ProposedEntry) -> ValidatedEntry:
        chart = load_chart(self._catalog)
        try:
            validated = validate_entry(
                proposed,
                chart,
                minor_unit=self._minor_unit,
                max_amount=self._persistence.max_amount,
            )
            validated = self._assign_period(validated)
            self._check_entry_number(validated.entry_number)
        except LedgerKernelError as exc:
            logger.warning(
                "entry_rejected",
                extra={
                    "entry_date": proposed.entry_date,
                    "line_count": len(proposed.lines),
                    "error_code": exc.code,
                },
                exc_info=exc,
            )
            raise
        return validated

    def _check_entry_number(self, entry_number: str | None) -> None:
        if not entry_number:
            return
        if is_generated_entry_number(self._prefix, entry_number):
            raise ReservedEntryNumberError(entry_number, self._prefix)
        if self._persistence.has_entry_number(entry_number):
            raise DuplicateEntryNumberError(entry_number)

    def _assign_period(self, entry: ValidatedEntry) -> ValidatedEntry:
        if self._periods is None:
            return entry
        period = self._periods.period_for(entry.entry_date)
        if period is None:
            raise PeriodNotFoundError(entry.entry_date.isoformat())
        if not period.is_open:
            raise ClosedPeriodError(period.name, entry.entry_date.isoformat())
        return replace(entry, period_id=period.period_id)

    def _append(self, entry: ValidatedEntry) -> PostedEntry:
        posted = self._persistence.append(entry, self._prefix)
        with LogContext.bind(entry_id=posted.entry_id, period_id=posted.period_id):
            logger.info(
                "entry_admitted",
                extra={
                    "entry_number": posted.entry_number,
                    "entry_date": posted.entry_date,
                    "line_count": len(posted.lines),
                    "total_debit": posted.total_debit,
                    "total_credit": posted.total_credit,
                    "reversal_of": posted.reversal_of,
                },
            )
        return posted

    # ------------------------------------------------------------------
    # Corrections
    # ------------------------------------------------------------------

    def _prepare_reversal(
        self,
        entry_id: EntryId,
        entry_date: date | None = None,
        description: str | None = None,
    ) -> ValidatedEntry:
        original = self._get(entry_id)
        existing = self._persistence.find_reversal(entry_id)
        if existing is not None:
            raise EntryAlreadyReversedError(entry_id, existing.entry_id)

        proposed = ProposedEntry(
            entry_date=entry_date or original.entry_date,
            lines=tuple(
                ProposedLine(
                    account_code=line.account_code,
                    debit=line.credit,
                    credit=line.debit,
                    party_id=line.party_id,
                    memo=line.memo,
                )
                for line in original.lines
            ),
            description=description or f"Reversal of {original.entry_number}",
            source_document=original.entry_number,
        )
        return replace(self._prepare(proposed), reversal_of=entry_id)

    def reverse(
        self,
        entry_id: EntryId,
        *,
        entry_date: date | None = None,
        description: str | None = None,
    ) -> PostedEntry:
        """
        Append an entry that offsets ``entry_id`` (debits and credits swapped).

        Postconditions: The original is untouched; the new entry's
            ``reversal_of`` points at it.  The reversal is dated like the
            original unless ``entry_date`` is given (e.g. when the original
            period is closed).

        Raises:
            EntryNotFoundError, EntryAlreadyReversedError, and any admission
            error the reversal itself triggers.
        """
        with self._lock:
            validated = self._prepare_reversal(entry_id, entry_date, description)
            return self._append(validated)

    def amend(
        self,
        entry_id: EntryId,
        proposed: ProposedEntry,
        *,
        reversal_date: date | None = None,
    ) -> tuple[PostedEntry, PostedEntry]:
        """
        Replace an entry by reversing it and admitting ``proposed``.

        Postconditions: Both the reversal and the replacement are validated
            before either is written; on any failure nothing is appended.

        Returns:
            (reversal, replacement)
        """
        with self._lock:
            reversal = self._prepare_reversal(entry_id, reversal_date, None)
            replacement = self._prepare(proposed)
            return self._append(reversal), self._append(replacement)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _get(self, entry_id: EntryId) -> PostedEntry:
        entry = self._persistence.get(entry_id)
        if entry is None:
            raise EntryNotFoundError(entry_id)
        return entry

    def get(self, entry_id: EntryId) -> PostedEntry:
        """Entry by id; raises EntryNotFoundError when absent."""
        return self._get(entry_id)

    def query(self, entry_filter: EntryFilter | None = None) -> Iterator[PostedEntry]:
        """
        Entries matching every set predicate, in admission order.

        Each call returns a new lazy iterator, so a filter can be run again
        or several filters run side by side.
        """
        return self._persistence.query(entry_filter or NO_FILTER)

    def chart(self) -> ChartOfAccounts:
        return load_chart(self._catalog)

    def __len__(self) -> int:
        return self._persistence.count()
