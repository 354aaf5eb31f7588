"""
AccountCatalog -- chart of accounts administration on the database.

Responsibility:
    Creates, edits and retires accounts, and serves the current chart to the
    posting store and the report engine (it is an Account Catalog Provider:
    ``list_accounts()``).

Architecture position:
    Kernel > Services -- imperative shell.  Flush-only.

Invariants enforced:
    - Codes follow the PUC segment layout and are unique.
    - The code of an existing account never changes.
    - Accounts are never physically deleted; ``deactivate`` retires them and
      their postings stay reportable.

Failure modes:
    - InvalidAccountCodeError, DuplicateAccountError on create.
    - AccountNotFoundError on update / deactivate / get of an unknown code.

Audit relevance:
    ``account_created``, ``account_updated`` and ``account_deactivated`` are
    logged with the code.
"""

from typing import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.chart import Account, AccountClass, ChartOfAccounts, classify_label
from ledger_kernel.exceptions import AccountNotFoundError, DuplicateAccountError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import AccountModel
from ledger_kernel.services.base import BaseService

logger = get_logger("services.account_catalog")


def _to_domain(model: AccountModel) -> Account:
    return Account(
        code=model.code,
        name=model.name,
        class_name=model.class_name,
        level=model.level,
        is_debit_normal=model.is_debit_normal,
        tracks_counterparty=model.tracks_counterparty,
        active=model.is_active,
    )


class AccountCatalog(BaseService):
    """
    SQL-backed chart of accounts.

    Contract:
        ``list_accounts`` returns every account (active or not) ordered by
        code, which is the PUC presentation order.
    """

    def __init__(self, session: Session, actor_id: UUID | None = None):
        super().__init__(session)
        self._actor_id = actor_id

    def _find(self, code: str) -> AccountModel | None:
        return self.session.execute(
            select(AccountModel).where(AccountModel.code == code)
        ).scalar_one_or_none()

    def _require(self, code: str) -> AccountModel:
        model = self._find(code)
        if model is None:
            raise AccountNotFoundError(code)
        return model

    def list_accounts(self) -> list[Account]:
        models = self.session.execute(
            select(AccountModel).order_by(AccountModel.code)
        ).scalars()
        return [_to_domain(m) for m in models]

    def load_chart(self, labels: dict[str, AccountClass] | None = None) -> ChartOfAccounts:
        return ChartOfAccounts.from_accounts(self.list_accounts(), labels=labels)

    def get(self, code: str) -> Account:
        return _to_domain(self._require(code))

    def create_account(self, account: Account) -> Account:
        """
        Add an account to the chart.

        Preconditions: ``account`` is a constructed domain Account, so its
            code shape and level were already checked.

        Raises:
            DuplicateAccountError: the code already exists (active or not).
        """
        if self._find(account.code) is not None:
            raise DuplicateAccountError(account.code)

        model = AccountModel(
            code=account.code,
            name=account.name,
            class_name=account.class_name,
            level=account.level,
            is_debit_normal=account.is_debit_normal,
            tracks_counterparty=account.tracks_counterparty,
            is_active=account.active,
            created_by_id=self._actor_id,
        )
        self.session.add(model)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "account_code": account.code,
                "account_class": classify_label(account.class_name).value,
            },
        )
        return _to_domain(model)

    def update_account(
        self,
        code: str,
        *,
        name: str | None = None,
        class_name: str | None = None,
        is_debit_normal: bool | None = None,
        tracks_counterparty: bool | None = None,
    ) -> Account:
        """
        Edit the descriptive fields of an account.  The code is immutable.

        A new ``class_name`` re-derives ``is_debit_normal`` from the class
        unless ``is_debit_normal`` is passed too.

        Raises:
            AccountNotFoundError: unknown code.
        """
        model = self._require(code)
        changed: list[str] = []
        if name is not None and name != model.name:
            model.name = name
            changed.append("name")
        if class_name is not None and class_name != model.class_name:
            model.class_name = class_name
            changed.append("class_name")
            if is_debit_normal is None:
                is_debit_normal = classify_label(class_name).is_debit_normal
        if is_debit_normal is not None and is_debit_normal != model.is_debit_normal:
            model.is_debit_normal = is_debit_normal
            changed.append("is_debit_normal")
        if tracks_counterparty is not None and tracks_counterparty != model.tracks_counterparty:
            model.tracks_counterparty = tracks_counterparty
            changed.append("tracks_counterparty")
        if changed:
            model.updated_by_id = self._actor_id
            self.session.flush()
            logger.info(
                "account_updated",
                extra={"account_code": code, "fields": changed},
            )
        return _to_domain(model)

    def deactivate(self, code: str) -> Account:
        """Retire an account: no new postings, history kept."""
        model = self._require(code)
        if model.is_active:
            model.is_active = False
            model.updated_by_id = self._actor_id
            self.session.flush()
            logger.info("account_deactivated", extra={"account_code": code})
        return _to_domain(model)

    def reactivate(self, code: str) -> Account:
        model = self._require(code)
        if not model.is_active:
            model.is_active = True
            model.updated_by_id = self._actor_id
            self.session.flush()
            logger.info("account_reactivated", extra={"account_code": code})
        return _to_domain(model)

    def seed(self, accounts: Iterable[Account]) -> int:
        """
        Insert the accounts whose codes are not present yet.

        Returns:
            Number of accounts created.
        """
        created = 0
        for account in accounts:
            if self._find(account.code) is None:
                self.create_account(account)
                created += 1
        logger.info("chart_seeded", extra={"accounts_created": created})
        return created
