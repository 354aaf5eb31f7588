"""
Module: ledger_kernel.models.journal
Responsibility: ORM persistence for posted journal entries ("comprobantes
    contables") and their lines ("movimientos") -- the single source of
    financial truth for every report.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Sequential EntryId: ``entry_seq`` is unique and allocated from the
      locked counter row in SequenceService (never max()+1).
    - Append-only: ORM listeners in db/immutability.py reject UPDATE and
      DELETE on both tables once a row is flushed.
    - Reversed at most once: ``reversal_of_seq`` is unique.
    - Debits == credits per entry is checked by the validator before the row
      is created; ``is_balanced`` is a read-side convenience.

Failure modes:
    - IntegrityError on duplicate entry_seq / entry_number / reversal_of_seq.
    - ImmutabilityViolationError on UPDATE/DELETE of any journal row.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Date,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString


class JournalEntryModel(TrackedBase):
    """
    Journal entry header.

    Contract:
        Written once by SqlPostingPersistence.append and never modified.

    Non-goals:
        - Does NOT validate lines; admission happens in PostingStore.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("entry_seq", name="uq_journal_entry_seq"),
        UniqueConstraint("entry_number", name="uq_journal_entry_number"),
        UniqueConstraint("reversal_of_seq", name="uq_journal_reversal_of"),
        Index("idx_journal_entry_date", "entry_date"),
    )

    # EntryId exposed to callers
    entry_seq: Mapped[int] = mapped_column(BigInteger, nullable=False)

    # Display number ("CC-000001")
    entry_number: Mapped[str] = mapped_column(String(20), nullable=False)

    entry_date: Mapped[date] = mapped_column(Date, nullable=False)

    description: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # Invoice, receipt or bank statement the entry comes from
    source_document: Mapped[str] = mapped_column(
        String(100), nullable=False, default=""
    )

    period_id: Mapped[str | None] = mapped_column(String(36), nullable=True)

    total_debit: Mapped[Decimal] = mapped_column(nullable=False)

    total_credit: Mapped[Decimal] = mapped_column(nullable=False)

    # EntryId of the entry this one offsets
    reversal_of_seq: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    lines: Mapped[list["JournalLineModel"]] = relationship(
        back_populates="entry",
        order_by="JournalLineModel.line_seq",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<JournalEntryModel {self.entry_seq} {self.entry_number}>"

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class JournalLineModel(TrackedBase):
    """
    Individual line within a journal entry.

    Contract:
        Exactly one of debit/credit is normally non-zero, but both are stored
        as non-negative amounts so a zero line is representable.  The account
        is stored by code: reports resolve it against the chart, and a
        retired account keeps its history.
    """

    __tablename__ = "journal_lines"

    __table_args__ = (
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_code"),
        Index("idx_line_party", "party_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    # Position within the entry
    line_seq: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    account_code: Mapped[str] = mapped_column(String(10), nullable=False)

    # Tercero (owner, tenant, supplier)
    party_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    debit: Mapped[Decimal] = mapped_column(nullable=False)

    credit: Mapped[Decimal] = mapped_column(nullable=False)

    memo: Mapped[str | None] = mapped_column(String(500), nullable=True)

    entry: Mapped["JournalEntryModel"] = relationship(back_populates="lines")

    def __repr__(self) -> str:
        return f"<JournalLineModel {self.account_code} D={self.debit} C={self.credit}>"
