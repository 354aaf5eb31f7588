"""
Module: ledger_kernel.models.account
Responsibility: ORM persistence for the chart of accounts (Plan Único de
    Cuentas subset used by the building's books).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - code is unique (uq_account_code) and never changes after creation.
    - Accounts are never physically deleted; ``is_active=False`` retires them
      while keeping historical postings reportable.

Failure modes:
    - IntegrityError on duplicate code (AccountCatalog checks first and raises
      DuplicateAccountError).
"""

from sqlalchemy import Boolean, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class AccountModel(TrackedBase):
    """
    Chart of Accounts row.

    Contract:
        Mirrors ledger_kernel.domain.chart.Account; AccountCatalog converts
        rows to the domain type so report code never sees ORM objects.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("code", name="uq_account_code"),
        Index("idx_account_active", "is_active"),
    )

    # PUC code: 1, 2, 4, 6, 8 or 10 digits
    code: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Class label as entered ("Activo", "Pasivo", "Asset", ...)
    class_name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    level: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    is_debit_normal: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
    )

    # Lines on this account must name a tercero
    tracks_counterparty: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<AccountModel {self.code}: {self.name}>"

