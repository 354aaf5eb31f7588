"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Hands out the sequential EntryId of each journal entry.  Uses the
    ``sequence_counters`` table with ``SELECT ... FOR UPDATE`` so two
    writers can never receive the same value.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by SqlPostingPersistence.append.

Invariants enforced:
    - Monotonic: the locked counter row is the sole source of truth for the
      next value.  Computing max(entry_seq)+1 is FORBIDDEN.
    - Transactional: an increment is only visible after the caller commits;
      a rollback returns the value.

Failure modes:
    - IntegrityError if two transactions create the same counter row at
      once.  ``initialize_sequences()`` at setup avoids the race, and
      PostingStore serializes admission within a process.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.sequence import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()``.

    Usage:
        with session_scope() as session:
            entry_seq = SequenceService(session).next_value(
                SequenceService.JOURNAL_ENTRY
            )
    """

    JOURNAL_ENTRY = "journal_entry"

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str) -> int:
        """
        Get the next value for a named sequence.

        Preconditions:
            - The caller is within an active database transaction.
        Postconditions:
            - Returns an integer > 0, strictly greater than any value
              previously returned for this name.
        """
        counter = self._locked_counter(sequence_name)
        if counter is None:
            counter = SequenceCounter(name=sequence_name, current_value=0)
            self._session.add(counter)

        counter.current_value += 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value without incrementing, or None if never allocated."""
        counter = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()
        return counter.current_value if counter else None

    def initialize_sequences(self) -> None:
        """Create the well-known counters at setup time."""
        existing = self._session.execute(
            select(SequenceCounter).where(SequenceCounter.name == self.JOURNAL_ENTRY)
        ).scalar_one_or_none()
        if existing is None:
            self._session.add(SequenceCounter(name=self.JOURNAL_ENTRY, current_value=0))
        self._session.flush()
