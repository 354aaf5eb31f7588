"""
ORM-level immutability enforcement for the journal.

===============================================================================
WHY THIS EXISTS
===============================================================================

Posted entries are the building's legal books.  A mistaken entry is corrected
by appending a reversal (PostingStore.reverse / amend), never by editing or
deleting the original.  The store offers no mutation API; these listeners
make the rule hold for any other code that reaches the ORM session too.

    session.flush()
         |
         v
    [before_update] --> _check_*_update() --> ImmutabilityViolationError
    [before_delete] --> _check_*_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity                  | When Immutable           | Why
------------------------|--------------------------|------------------------------
JournalEntryModel       | Always, once flushed     | Posted = the legal record
JournalLineModel        | Always, once flushed     | Lines are part of the entry
AccountingPeriodModel   | After status = CLOSED    | Closed books stay closed

updated_at / updated_by_id are audit metadata and may still change.
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = ("updated_at", "updated_by_id")


def _changed_fields(target) -> list[str]:
    insp = inspect(target)
    return [
        attr.key
        for attr in insp.attrs
        if attr.key not in _AUDIT_FIELDS and attr.history.has_changes()
    ]


def _block(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_journal_entry_update(mapper, connection, target):
    """Journal entries cannot change after they are written."""
    fields = _changed_fields(target)
    # Relationship-only churn (e.g. lines collection load) is not a change
    fields = [f for f in fields if f != "lines"]
    if fields:
        _block(
            "JournalEntry",
            target,
            "UPDATE",
            f"Cannot modify field(s) {fields} on a posted journal entry",
        )


def _check_journal_entry_delete(mapper, connection, target):
    _block("JournalEntry", target, "DELETE", "Posted journal entries cannot be deleted")


def _check_journal_line_update(mapper, connection, target):
    fields = [f for f in _changed_fields(target) if f != "entry"]
    if fields:
        _block(
            "JournalLine",
            target,
            "UPDATE",
            f"Cannot modify field(s) {fields} on a posted journal line",
        )


def _check_journal_line_delete(mapper, connection, target):
    _block("JournalLine", target, "DELETE", "Posted journal lines cannot be deleted")


def _check_period_update(mapper, connection, target):
    """
    Closed periods cannot be modified or reopened.

    The OPEN -> CLOSED transition itself is allowed: the history of the
    status attribute tells us the row was open before this flush.
    """
    from ledger_kernel.models.period import PeriodStatus

    status_history = get_history(target, "status")
    if status_history.deleted:
        was_closed = status_history.deleted[0] in (PeriodStatus.CLOSED, "closed")
    else:
        was_closed = target.status in (PeriodStatus.CLOSED, "closed")

    if was_closed and _changed_fields(target):
        _block(
            "AccountingPeriod",
            target,
            "UPDATE",
            "Closed accounting periods cannot be modified",
        )


def _check_period_delete(mapper, connection, target):
    if target.is_closed:
        _block(
            "AccountingPeriod",
            target,
            "DELETE",
            "Closed accounting periods cannot be deleted",
        )


def _listeners():
    from ledger_kernel.models.journal import JournalEntryModel, JournalLineModel
    from ledger_kernel.models.period import AccountingPeriodModel

    return [
        (JournalEntryModel, "before_update", _check_journal_entry_update),
        (JournalEntryModel, "before_delete", _check_journal_entry_delete),
        (JournalLineModel, "before_update", _check_journal_line_update),
        (JournalLineModel, "before_delete", _check_journal_line_delete),
        (AccountingPeriodModel, "before_update", _check_period_update),
        (AccountingPeriodModel, "before_delete", _check_period_delete),
    ]


def register_immutability_listeners() -> None:
    """
    Register the immutability listeners (idempotent).

    Call once at application start, after the models are importable.
    """
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def unregister_immutability_listeners() -> None:
    """
    Remove the immutability listeners.

    WARNING: Only for tests that must bypass the rules on purpose.
    """
    for target, event_name, listener_fn in _listeners():
        if event.contains(target, event_name, listener_fn):
            event.remove(target, event_name, listener_fn)
