"""
Typed exception hierarchy for the ledger kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers (the HTTP layer, the admin forms, the console scripts) must be able
to tell an unbalanced entry from an unknown account without parsing message
strings. Every error therefore:
  1. Has its own class (catch by type, not by message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (codes, totals, ids)

Example:
    try:
        store.admit(proposed)
    except UnknownAccountError as e:
        return {"error": e.code, "codes": e.codes}
    except UnbalancedEntryError as e:
        return {"error": e.code, "debit": e.total_debit, "credit": e.total_credit}

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- EntryValidationError
    |   +-- EmptyEntryError
    |   +-- UnknownAccountError
    |   +-- InvalidAmountError
    |   +-- MissingCounterpartyError
    |   +-- UnbalancedEntryError
    |   +-- DuplicateEntryNumberError
    |
    +-- NotFoundError
    |   +-- EntryNotFoundError
    |   +-- AccountNotFoundError
    |   +-- PeriodRecordNotFoundError
    |
    +-- AccountError
    |   +-- DuplicateAccountError
    |   +-- InvalidAccountCodeError
    |
    +-- PeriodError
    |   +-- PeriodNotFoundError
    |   +-- ClosedPeriodError
    |   +-- PeriodAlreadyClosedError
    |   +-- PeriodOverlapError
    |
    +-- ReversalError
    |   +-- EntryAlreadyReversedError
    |
    +-- ImmutabilityViolationError
    |
    +-- ReportFilterError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | EMPTY_ENTRY                 | Entry has no lines
                | UNKNOWN_ACCOUNT             | Line references missing/inactive account
                | INVALID_AMOUNT              | Negative, non-numeric or over-precise
                | MISSING_COUNTERPARTY        | Account requires a tercero on the line
                | UNBALANCED_ENTRY            | Debits != Credits
                | DUPLICATE_ENTRY_NUMBER      | Display number already used
                | RESERVED_ENTRY_NUMBER       | Caller number shaped like a generated one
----------------|-----------------------------|-----------------------------------------
Lookup          | ENTRY_NOT_FOUND             | EntryId not in the store
                | ACCOUNT_NOT_FOUND           | Account code not in the catalog
                | PERIOD_RECORD_NOT_FOUND     | Period id not in the calendar
----------------|-----------------------------|-----------------------------------------
Account         | DUPLICATE_ACCOUNT           | Code already in the chart
                | INVALID_ACCOUNT_CODE        | Code is not a PUC segment code
----------------|-----------------------------|-----------------------------------------
Period          | PERIOD_NOT_FOUND            | No period covers the entry date
                | CLOSED_PERIOD               | Admitting into a closed period
                | PERIOD_ALREADY_CLOSED       | Closing twice
                | PERIOD_OVERLAP              | Opening a period that overlaps another
----------------|-----------------------------|-----------------------------------------
Reversal        | ENTRY_ALREADY_REVERSED      | Second reversal of the same entry
----------------|-----------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION      | UPDATE/DELETE on a posted journal row
----------------|-----------------------------|-----------------------------------------
Reporting       | INVALID_REPORT_FILTER       | Malformed date or date_from > date_to

===============================================================================
"""

from typing import Any


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Structured payload: the code, the message and public attributes."""
        payload: dict[str, Any] = {"code": self.code, "message": str(self)}
        for key, value in vars(self).items():
            if not key.startswith("_"):
                payload[key] = value
        return payload


# Entry validation exceptions


class EntryValidationError(LedgerKernelError):
    """Base exception for proposed entries rejected at admission."""

    code: str = "ENTRY_VALIDATION_ERROR"


class EmptyEntryError(EntryValidationError):
    """Proposed entry has no lines."""

    code: str = "EMPTY_ENTRY"

    def __init__(self) -> None:
        super().__init__("Journal entry must contain at least one line")


class UnknownAccountError(EntryValidationError):
    """
    One or more lines reference an account that does not exist or is
    inactive. All offending codes are reported together.
    """

    code: str = "UNKNOWN_ACCOUNT"

    def __init__(self, codes: list[str]):
        self.codes = list(codes)
        super().__init__(
            f"Unknown or inactive accounts: {', '.join(self.codes)}"
        )


class InvalidAmountError(EntryValidationError):
    """One or more lines carry a negative, non-numeric or over-precise amount."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, codes: list[str]):
        self.codes = list(codes)
        super().__init__(
            f"Invalid amounts on lines for accounts: {', '.join(self.codes)}"
        )


class MissingCounterpartyError(EntryValidationError):
    """Lines on accounts that track a tercero were submitted without one."""

    code: str = "MISSING_COUNTERPARTY"

    def __init__(self, codes: list[str]):
        self.codes = list(codes)
        super().__init__(
            f"Accounts require a counterparty: {', '.join(self.codes)}"
        )


class UnbalancedEntryError(EntryValidationError):
    """Journal entry debits and credits do not balance."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, total_debit: Any, total_credit: Any):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Entry is unbalanced: debits={total_debit}, credits={total_credit}"
        )


class DuplicateEntryNumberError(EntryValidationError):
    """Caller-supplied entry number is already taken."""

    code: str = "DUPLICATE_ENTRY_NUMBER"

    def __init__(self, entry_number: str, message: str | None = None):
        self.entry_number = entry_number
        super().__init__(message or f"Entry number already in use: {entry_number}")


class ReservedEntryNumberError(DuplicateEntryNumberError):
    """Caller-supplied entry number has the shape of a generated one."""

    code: str = "RESERVED_ENTRY_NUMBER"

    def __init__(self, entry_number: str, prefix: str):
        self.prefix = prefix
        super().__init__(
            entry_number,
            f"Entry number {entry_number} is reserved for generated numbers "
            f"(prefix {prefix!r} followed by digits)",
        )


# Lookup exceptions


class NotFoundError(LedgerKernelError):
    """Base exception for lookups of unknown identifiers."""

    code: str = "NOT_FOUND"


class EntryNotFoundError(NotFoundError):
    """No posted entry has the given EntryId."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: int):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class AccountNotFoundError(NotFoundError):
    """No account has the given code."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account not found: {account_code}")


class PeriodRecordNotFoundError(NotFoundError):
    """No accounting period has the given id."""

    code: str = "PERIOD_RECORD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Accounting period not found: {period_id}")


# Account exceptions


class AccountError(LedgerKernelError):
    """Base exception for chart-of-accounts errors."""

    code: str = "ACCOUNT_ERROR"


class DuplicateAccountError(AccountError):
    """Account code already present in the chart."""

    code: str = "DUPLICATE_ACCOUNT"

    def __init__(self, account_code: str):
        self.account_code = account_code
        super().__init__(f"Account code already exists: {account_code}")


class InvalidAccountCodeError(AccountError):
    """Account code does not follow the 1/2/4/6/8/10 digit segment layout."""

    code: str = "INVALID_ACCOUNT_CODE"

    def __init__(self, account_code: str, reason: str):
        self.account_code = account_code
        self.reason = reason
        super().__init__(f"Invalid account code {account_code!r}: {reason}")


# Period exceptions


class PeriodError(LedgerKernelError):
    """Base exception for accounting period errors."""

    code: str = "PERIOD_ERROR"


class PeriodNotFoundError(PeriodError):
    """No period covers the given date."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, effective_date: str):
        self.effective_date = effective_date
        super().__init__(f"No accounting period found for date: {effective_date}")


class ClosedPeriodError(PeriodError):
    """Attempted to admit an entry into a closed period."""

    code: str = "CLOSED_PERIOD"

    def __init__(self, period_name: str, effective_date: str):
        self.period_name = period_name
        self.effective_date = effective_date
        super().__init__(
            f"Cannot post to closed period {period_name} "
            f"(entry_date: {effective_date})"
        )


class PeriodAlreadyClosedError(PeriodError):
    """Period is already closed."""

    code: str = "PERIOD_ALREADY_CLOSED"

    def __init__(self, period_name: str):
        self.period_name = period_name
        super().__init__(f"Period is already closed: {period_name}")


class PeriodOverlapError(PeriodError):
    """New period overlaps an existing one."""

    code: str = "PERIOD_OVERLAP"

    def __init__(self, new_period: str, existing_period: str):
        self.new_period = new_period
        self.existing_period = existing_period
        super().__init__(
            f"Period {new_period} overlaps existing period {existing_period}"
        )


# Reversal exceptions


class ReversalError(LedgerKernelError):
    """Base exception for corrections by reversal."""

    code: str = "REVERSAL_ERROR"


class EntryAlreadyReversedError(ReversalError):
    """Entry has already been reversed."""

    code: str = "ENTRY_ALREADY_REVERSED"

    def __init__(self, entry_id: int, reversal_entry_id: int):
        self.entry_id = entry_id
        self.reversal_entry_id = reversal_entry_id
        super().__init__(
            f"Entry {entry_id} already reversed by entry {reversal_entry_id}"
        )


# Immutability


class ImmutabilityViolationError(LedgerKernelError):
    """
    Attempted to modify or delete an immutable record.

    Journal entries and their lines are append-only once flushed.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Reporting


class ReportFilterError(LedgerKernelError):
    """Report filter is malformed (distinct from an empty result)."""

    code: str = "INVALID_REPORT_FILTER"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid report filter {field}={value!r}: {reason}")
