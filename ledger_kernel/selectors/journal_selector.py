"""
Module: ledger_kernel.selectors.journal_selector
Responsibility: Read-only query access to posted journal entries and their
    lines.  Converts ORM rows to the PostedEntry DTO that the posting store
    and the report engine consume.
Architecture position: Kernel > Selectors.

Invariants enforced:
    - Read-only.
    - Entries come back in EntryId (append) order; lines in line_seq order.
    - Filters are pushed down to SQL with the same semantics as
      EntryFilter.matches: inclusive dates, account/party on any line.

Failure modes:
    - Returns None / empty iterators on absence of data (never raises).
"""

from typing import Iterator

from sqlalchemy import func, select

from ledger_kernel.domain.entries import (
    NO_FILTER,
    EntryFilter,
    EntryId,
    PostedEntry,
    PostingLine,
)
from ledger_kernel.models.journal import JournalEntryModel, JournalLineModel
from ledger_kernel.selectors.base import BaseSelector


class JournalSelector(BaseSelector):
    """Selector for posted journal entries."""

    def to_dto(self, entry: JournalEntryModel) -> PostedEntry:
        """Convert ORM model to DTO."""
        lines = tuple(
            PostingLine(
                account_code=line.account_code,
                debit=line.debit,
                credit=line.credit,
                party_id=line.party_id,
                memo=line.memo,
            )
            for line in sorted(entry.lines, key=lambda x: x.line_seq)
        )
        return PostedEntry(
            entry_id=entry.entry_seq,
            entry_number=entry.entry_number,
            entry_date=entry.entry_date,
            lines=lines,
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            description=entry.description,
            source_document=entry.source_document,
            period_id=entry.period_id,
            reversal_of=entry.reversal_of_seq,
        )

    def get_entry(self, entry_id: EntryId) -> PostedEntry | None:
        entry = self.session.execute(
            select(JournalEntryModel).where(JournalEntryModel.entry_seq == entry_id)
        ).scalar_one_or_none()
        return None if entry is None else self.to_dto(entry)

    def get_reversal_of(self, entry_id: EntryId) -> PostedEntry | None:
        entry = self.session.execute(
            select(JournalEntryModel).where(
                JournalEntryModel.reversal_of_seq == entry_id
            )
        ).scalar_one_or_none()
        return None if entry is None else self.to_dto(entry)

    def entry_number_exists(self, entry_number: str) -> bool:
        found = self.session.execute(
            select(JournalEntryModel.id).where(
                JournalEntryModel.entry_number == entry_number
            )
        ).first()
        return found is not None

    def count_entries(self) -> int:
        return self.session.execute(
            select(func.count()).select_from(JournalEntryModel)
        ).scalar_one()

    def iter_entries(self, entry_filter: EntryFilter = NO_FILTER) -> Iterator[PostedEntry]:
        """
        Entries matching the filter, in EntryId order.

        Postconditions: Returns a generator; the query runs when iteration
            starts, so each call observes the store at that moment.
        """
        stmt = select(JournalEntryModel).order_by(JournalEntryModel.entry_seq)

        if entry_filter.date_from is not None:
            stmt = stmt.where(JournalEntryModel.entry_date >= entry_filter.date_from)
        if entry_filter.date_to is not None:
            stmt = stmt.where(JournalEntryModel.entry_date <= entry_filter.date_to)
        if entry_filter.account_code is not None:
            stmt = stmt.where(
                JournalEntryModel.id.in_(
                    select(JournalLineModel.journal_entry_id).where(
                        JournalLineModel.account_code == entry_filter.account_code
                    )
                )
            )
        if entry_filter.party_id is not None:
            stmt = stmt.where(
                JournalEntryModel.id.in_(
                    select(JournalLineModel.journal_entry_id).where(
                        JournalLineModel.party_id == entry_filter.party_id
                    )
                )
            )

        for entry in self.session.scalars(stmt):
            yield self.to_dto(entry)
