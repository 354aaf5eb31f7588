"""
PostingPersistence -- the storage capability behind PostingStore.

Responsibility:
    Defines the append-only storage interface for posted entries and the
    in-memory implementation used by tests and by short-lived tools.  The
    durable implementation is SqlPostingPersistence (sql_persistence.py).

Architecture position:
    Kernel > Services.  PostingStore depends on the interface only, so the
    admission and reporting code never knows which backing is in use.

Invariants enforced:
    - Append-only: there is no update or delete operation.
    - EntryIds are assigned here, sequentially from 1, in append order.
    - Iteration preserves append order.
    - Generated display numbers never collide with a stored number; the
      append is refused before anything is written.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterator

from ledger_kernel.domain.entries import (
    NO_FILTER,
    EntryFilter,
    EntryId,
    PostedEntry,
    ValidatedEntry,
)
from ledger_kernel.exceptions import DuplicateEntryNumberError


def format_entry_number(prefix: str, entry_id: EntryId) -> str:
    """Default display number, e.g. ``CC-000042``."""
    return f"{prefix}{entry_id:06d}"


def is_generated_entry_number(prefix: str, entry_number: str) -> bool:
    """Whether ``entry_number`` has the shape format_entry_number produces."""
    suffix = entry_number[len(prefix):]
    return entry_number.startswith(prefix) and suffix.isascii() and suffix.isdigit()


class PostingPersistence(ABC):
    """
    Append-only storage for posted entries.

    Contract:
        ``append`` receives only entries produced by the validator (the
        store guarantees this) and returns the stored PostedEntry.
        ``query`` returns a fresh lazy iterator on every call.
        ``max_minor_unit`` and ``max_amount`` describe what the backing can
        store exactly; None means unbounded.
    """

    max_minor_unit: int | None = None
    max_amount: Decimal | None = None

    @abstractmethod
    def append(self, entry: ValidatedEntry, entry_number_prefix: str) -> PostedEntry:
        """
        Store ``entry`` under the next EntryId.

        Raises DuplicateEntryNumberError, with nothing written, when the
        resulting display number is already taken.
        """

    @abstractmethod
    def get(self, entry_id: EntryId) -> PostedEntry | None:
        """Entry by id, or None."""

    @abstractmethod
    def iter_entries(self) -> Iterator[PostedEntry]:
        """All entries in append order."""

    @abstractmethod
    def count(self) -> int:
        """Number of stored entries."""

    @abstractmethod
    def find_reversal(self, entry_id: EntryId) -> PostedEntry | None:
        """The entry that reverses ``entry_id``, if any."""

    @abstractmethod
    def has_entry_number(self, entry_number: str) -> bool:
        """Whether a display number is already taken."""

    def query(self, entry_filter: EntryFilter = NO_FILTER) -> Iterator[PostedEntry]:
        """Entries matching every set predicate, in append order."""
        for entry in self.iter_entries():
            if entry_filter.matches(entry):
                yield entry


class InMemoryPostingPersistence(PostingPersistence):
    """
    List-backed persistence.

    Guarantees:
        - ``iter_entries`` walks a snapshot, so appends made while a report
          iterates are not observed by that iteration.
    """

    def __init__(self) -> None:
        self._entries: list[PostedEntry] = []
        self._by_id: dict[EntryId, PostedEntry] = {}
        self._reversed_by: dict[EntryId, EntryId] = {}
        self._numbers: set[str] = set()

    def append(self, entry: ValidatedEntry, entry_number_prefix: str) -> PostedEntry:
        entry_id = len(self._entries) + 1
        entry_number = entry.entry_number or format_entry_number(entry_number_prefix, entry_id)
        if entry_number in self._numbers:
            raise DuplicateEntryNumberError(entry_number)
        posted = PostedEntry(
            entry_id=entry_id,
            entry_number=entry_number,
            entry_date=entry.entry_date,
            lines=entry.lines,
            total_debit=entry.total_debit,
            total_credit=entry.total_credit,
            description=entry.description,
            source_document=entry.source_document,
            period_id=entry.period_id,
            reversal_of=entry.reversal_of,
        )
        self._entries.append(posted)
        self._by_id[entry_id] = posted
        self._numbers.add(posted.entry_number)
        if posted.reversal_of is not None:
            self._reversed_by[posted.reversal_of] = entry_id
        return posted

    def get(self, entry_id: EntryId) -> PostedEntry | None:
        return self._by_id.get(entry_id)

    def iter_entries(self) -> Iterator[PostedEntry]:
        return iter(tuple(self._entries))

    def count(self) -> int:
        return len(self._entries)

    def find_reversal(self, entry_id: EntryId) -> PostedEntry | None:
        reversal_id = self._reversed_by.get(entry_id)
        return None if reversal_id is None else self._by_id[reversal_id]

    def has_entry_number(self, entry_number: str) -> bool:
        return entry_number in self._numbers
