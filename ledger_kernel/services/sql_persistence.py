"""
SqlPostingPersistence -- durable PostingPersistence on SQLAlchemy.

Responsibility:
    Writes validated entries to ``journal_entries`` / ``journal_lines`` and
    reads them back through JournalSelector.

Architecture position:
    Kernel > Services.  Flushes within the caller's transaction; never
    commits (see BaseService).

Invariants enforced:
    - EntryIds come from SequenceService (locked counter row).
    - Rows are append-only; db/immutability.py rejects UPDATE/DELETE.

Failure modes:
    - DuplicateEntryNumberError when the display number is taken; checked
      before the sequence counter moves.
    - IntegrityError when another connection wins the same number or
      reverses the same entry between the check and the flush (unique
      constraints).
"""

from __future__ import annotations

from typing import Iterator
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.db.base import MONEY_LIMIT, MONEY_SCALE
from ledger_kernel.domain.entries import (
    NO_FILTER,
    EntryFilter,
    EntryId,
    PostedEntry,
    ValidatedEntry,
)
from ledger_kernel.exceptions import DuplicateEntryNumberError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.journal import JournalEntryModel, JournalLineModel
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.persistence import PostingPersistence, format_entry_number
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.sql_persistence")


class SqlPostingPersistence(BaseService, PostingPersistence):
    """
    PostingPersistence backed by the journal tables.

    Usage:
        with session_scope() as session:
            store = PostingStore(
                SqlPostingPersistence(session),
                AccountCatalog(session),
                periods=PeriodService(session),
            )
            store.admit(proposed)
    """

    max_minor_unit = MONEY_SCALE
    max_amount = MONEY_LIMIT

    def __init__(self, session: Session, actor_id: UUID | None = None):
        super().__init__(session)
        self._actor_id = actor_id
        self._sequences = SequenceService(session)
        self._selector = JournalSelector(session)

    def append(self, entry: ValidatedEntry, entry_number_prefix: str) -> PostedEntry:
        upcoming = (self._sequences.current_value(SequenceService.JOURNAL_ENTRY) or 0) + 1
        entry_number = entry.entry_number or format_entry_number(entry_number_prefix, upcoming)
        if self.has_entry_number(entry_number):
            raise DuplicateEntryNumberError(entry_number)

        entry_seq = self._sequences.next_value(SequenceService.JOURNAL_ENTRY)
        if not entry.entry_number and entry_seq != upcoming:
            entry_number = format_entry_number(entry_number_prefix, entry_seq)
        model = JournalEntryModel(
            entry_seq=entry_seq,
            entry_number=entry_number,
            entry_date=entry.entry_date,
            description=entry.description,
            source_document=entry.source_document,
            period_id=entry.period_id,
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            reversal_of_seq=entry.reversal_of,
            created_by_id=self._actor_id,
        )
        model.lines = [
            JournalLineModel(
                line_seq=position,
                account_code=line.account_code,
                party_id=line.party_id,
                debit=line.debit,
                credit=line.credit,
                memo=line.memo,
                created_by_id=self._actor_id,
            )
            for position, line in enumerate(entry.lines)
        ]
        self.session.add(model)
        self.session.flush()
        logger.debug(
            "journal_rows_written",
            extra={"entry_seq": entry_seq, "line_count": len(model.lines)},
        )
        return self._selector.to_dto(model)

    def get(self, entry_id: EntryId) -> PostedEntry | None:
        return self._selector.get_entry(entry_id)

    def iter_entries(self) -> Iterator[PostedEntry]:
        return self._selector.iter_entries()

    def query(self, entry_filter: EntryFilter = NO_FILTER) -> Iterator[PostedEntry]:
        return self._selector.iter_entries(entry_filter)

    def count(self) -> int:
        return self._selector.count_entries()

    def find_reversal(self, entry_id: EntryId) -> PostedEntry | None:
        return self._selector.get_reversal_of(entry_id)

    def has_entry_number(self, entry_number: str) -> bool:
        return self._selector.entry_number_exists(entry_number)
