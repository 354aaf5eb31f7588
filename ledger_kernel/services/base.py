"""
BaseService -- abstract base for SQL-backed kernel services.

Responsibility:
    Common constructor for services that write through a SQLAlchemy
    ``Session``.  Services flush within the caller's transaction and never
    commit or roll back; ``session_scope()`` (db/engine.py) or the caller
    owns the boundary.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for SQL-backed kernel services.

    Guarantees:
        - The service never calls ``session.commit()`` or
          ``session.rollback()``.

    Non-goals:
        - Read-only report queries belong in ``ledger_kernel/selectors/``.
    """

    def __init__(self, session: Session):
        self.session = session
