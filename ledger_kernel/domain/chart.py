"""
Chart -- Chart of accounts value objects.

Responsibility:
    Defines Account (one node of the Plan Único de Cuentas), the closed
    AccountClass classification, and ChartOfAccounts: the ordered, immutable
    collection the validator and the report engine read.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Codes are digits with a segment length of 1, 2, 4, 6, 8 or 10; the
      level (1..6) is derived from that length.
    - Codes are unique within a chart.
    - Every account resolves to exactly one AccountClass.  Labels outside the
      known table become OTHER; they are reported, never silently dropped.

Failure modes:
    - InvalidAccountCodeError on a malformed code or a level that disagrees
      with the code length.
    - DuplicateAccountError on repeated codes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Iterator, Protocol

from ledger_kernel.exceptions import DuplicateAccountError, InvalidAccountCodeError

# Segment length -> level.  1 class, 2 group, 4 account, 6 subaccount,
# 8 auxiliary, 10 sub-auxiliary.
CODE_LENGTH_LEVELS: dict[int, int] = {1: 1, 2: 2, 4: 3, 6: 4, 8: 5, 10: 6}
_LEVEL_CODE_LENGTHS: dict[int, int] = {v: k for k, v in CODE_LENGTH_LEVELS.items()}


class AccountClass(str, Enum):
    """
    Closed classification used by the balance sheet and income statement.

    Contract:
        Exactly the five reporting classes plus OTHER for labels the label
        table does not recognise (orden/control accounts, typos, ...).
    """

    ASSET = "Asset"
    LIABILITY = "Liability"
    EQUITY = "Equity"
    INCOME = "Income"
    EXPENSE = "Expense"
    OTHER = "Other"

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountClass.ASSET, AccountClass.EXPENSE)


# Free-text class labels accepted from the catalog, compared case-insensitively.
CLASS_LABELS: dict[str, AccountClass] = {
    "asset": AccountClass.ASSET,
    "assets": AccountClass.ASSET,
    "activo": AccountClass.ASSET,
    "activos": AccountClass.ASSET,
    "liability": AccountClass.LIABILITY,
    "liabilities": AccountClass.LIABILITY,
    "pasivo": AccountClass.LIABILITY,
    "pasivos": AccountClass.LIABILITY,
    "equity": AccountClass.EQUITY,
    "patrimonio": AccountClass.EQUITY,
    "income": AccountClass.INCOME,
    "revenue": AccountClass.INCOME,
    "ingreso": AccountClass.INCOME,
    "ingresos": AccountClass.INCOME,
    "expense": AccountClass.EXPENSE,
    "expenses": AccountClass.EXPENSE,
    "gasto": AccountClass.EXPENSE,
    "gastos": AccountClass.EXPENSE,
    "costo": AccountClass.EXPENSE,
    "costos": AccountClass.EXPENSE,
}


def classify_label(label: str | None, labels: dict[str, AccountClass] | None = None) -> AccountClass:
    """Map a free-text class label to its AccountClass (OTHER when unknown)."""
    if not label:
        return AccountClass.OTHER
    table = CLASS_LABELS if labels is None else labels
    return table.get(label.strip().lower(), AccountClass.OTHER)


def level_for_code(code: str) -> int:
    """
    Derive the hierarchy level from a PUC code.

    Preconditions: code is a str.
    Postconditions: Returns 1..6.

    Raises:
        InvalidAccountCodeError: non-digit code or unsupported length.
    """
    if not isinstance(code, str) or not code.isdigit():
        raise InvalidAccountCodeError(str(code), "code must contain digits only")
    level = CODE_LENGTH_LEVELS.get(len(code))
    if level is None:
        raise InvalidAccountCodeError(
            code, "code length must be one of 1, 2, 4, 6, 8 or 10"
        )
    return level


def parent_code(code: str) -> str | None:
    """Code of the enclosing segment, or None for a class (level 1)."""
    level = level_for_code(code)
    if level == 1:
        return None
    return code[: _LEVEL_CODE_LENGTHS[level - 1]]


@dataclass(frozen=True)
class Account:
    """
    One chart-of-accounts node.

    Contract:
        ``level`` is derived from ``code`` when omitted and must agree with it
        when given.  ``is_debit_normal`` defaults from the class label.

    Non-goals:
        - Parents need not exist: a chart may list auxiliary accounts only.
    """

    code: str
    name: str
    class_name: str
    level: int | None = None
    is_debit_normal: bool | None = None
    tracks_counterparty: bool = False
    active: bool = True

    def __post_init__(self) -> None:
        derived = level_for_code(self.code)
        if self.level is None:
            object.__setattr__(self, "level", derived)
        elif self.level != derived:
            raise InvalidAccountCodeError(
                self.code,
                f"level {self.level} does not match code length (expected {derived})",
            )
        if self.is_debit_normal is None:
            object.__setattr__(
                self, "is_debit_normal", classify_label(self.class_name).is_debit_normal
            )

    @property
    def parent_code(self) -> str | None:
        return parent_code(self.code)


class AccountCatalogProvider(Protocol):
    """Anything that can list the current chart (in-memory chart, SQL catalog)."""

    def list_accounts(self) -> list[Account]: ...


@dataclass(frozen=True)
class ChartOfAccounts:
    """
    Ordered, immutable chart of accounts.

    Contract:
        Order is the order accounts were supplied in; reports list accounts in
        that order.  Each account's class is resolved once, at construction.

    Guarantees:
        - Codes are unique.
        - ``class_of`` never fails for a known code.
    """

    accounts: tuple[Account, ...]
    labels: dict[str, AccountClass] | None = None
    _by_code: dict[str, Account] = field(init=False, repr=False, compare=False)
    _classes: dict[str, AccountClass] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        accounts = tuple(self.accounts)
        by_code: dict[str, Account] = {}
        classes: dict[str, AccountClass] = {}
        for account in accounts:
            if account.code in by_code:
                raise DuplicateAccountError(account.code)
            by_code[account.code] = account
            classes[account.code] = classify_label(account.class_name, self.labels)
        object.__setattr__(self, "accounts", accounts)
        object.__setattr__(self, "_by_code", by_code)
        object.__setattr__(self, "_classes", classes)

    @classmethod
    def from_accounts(
        cls,
        accounts: Iterable[Account],
        labels: dict[str, AccountClass] | None = None,
    ) -> ChartOfAccounts:
        return cls(accounts=tuple(accounts), labels=labels)

    def __iter__(self) -> Iterator[Account]:
        return iter(self.accounts)

    def __len__(self) -> int:
        return len(self.accounts)

    def __contains__(self, code: object) -> bool:
        return code in self._by_code

    def get(self, code: str) -> Account | None:
        return self._by_code.get(code)

    def is_active(self, code: str) -> bool:
        account = self._by_code.get(code)
        return account is not None and account.active

    def class_of(self, code: str) -> AccountClass:
        return self._classes[code]

    def active_accounts(self) -> list[Account]:
        return [a for a in self.accounts if a.active]

    def accounts_of_class(self, account_class: AccountClass) -> list[Account]:
        return [a for a in self.accounts if self._classes[a.code] == account_class]

    def list_accounts(self) -> list[Account]:
        """Catalog-provider interface: a chart is its own catalog."""
        return list(self.accounts)
