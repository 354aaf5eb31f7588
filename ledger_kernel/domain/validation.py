"""
Validation -- the journal entry admission checks.

Responsibility:
    ``validate_entry`` turns a ProposedEntry into a ValidatedEntry or raises
    the typed error describing every problem of the first failing check.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Called only by
    PostingStore, which is the single admission chokepoint.

Invariants enforced:
    - Balance: sum(debit) == sum(credit), exact Decimal equality.
    - Account existence: every line references an active account.
    - Amounts are non-negative, finite and expressible in the minor unit.
      Over-precise amounts are rejected, never rounded.
    - With a ``max_amount``, every line amount and both entry totals stay
      strictly below it.

Failure modes (checked in this order):
    1. EmptyEntryError
    2. UnknownAccountError(codes)       -- all offending codes
    3. InvalidAmountError(codes)        -- all offending codes
    4. MissingCounterpartyError(codes)  -- all offending codes
    5. UnbalancedEntryError(total_debit, total_credit)
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from ledger_kernel.domain.chart import ChartOfAccounts
from ledger_kernel.domain.entries import (
    ZERO,
    PostingLine,
    ProposedEntry,
    ValidatedEntry,
)
from ledger_kernel.exceptions import (
    EmptyEntryError,
    InvalidAmountError,
    MissingCounterpartyError,
    UnbalancedEntryError,
    UnknownAccountError,
)

DEFAULT_MINOR_UNIT = 2


def parse_amount(
    value: Any,
    minor_unit: int = DEFAULT_MINOR_UNIT,
    max_amount: Decimal | None = None,
) -> Decimal | None:
    """
    Convert a submitted amount to Decimal.

    Preconditions: minor_unit >= 0.
    Postconditions: Returns a finite, non-negative Decimal with no more than
        ``minor_unit`` significant decimals (and below ``max_amount`` when
        given), or None when the value is not an acceptable amount.  None
        and "" count as zero (an omitted side).
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, int):
        amount = Decimal(value)
    elif isinstance(value, float):
        amount = Decimal(repr(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return ZERO
        try:
            amount = Decimal(text)
        except InvalidOperation:
            return None
    else:
        return None

    if not amount.is_finite() or amount < 0:
        return None

    quantum = Decimal(1).scaleb(-minor_unit)
    try:
        if amount != amount.quantize(quantum):
            return None
    except InvalidOperation:
        return None
    if max_amount is not None and amount >= max_amount:
        return None
    return amount


def _unique(codes: list[str]) -> list[str]:
    return list(dict.fromkeys(codes))


def validate_entry(
    entry: ProposedEntry,
    chart: ChartOfAccounts,
    *,
    minor_unit: int = DEFAULT_MINOR_UNIT,
    max_amount: Decimal | None = None,
) -> ValidatedEntry:
    """
    Validate a proposed entry against the chart of accounts.

    Preconditions: ``chart`` is the current chart (inactive accounts included,
        so they can be told apart from absent ones in logs).
    Postconditions: Returns a ValidatedEntry whose totals are equal.  Pure:
        no side effects on failure or success.

    Raises:
        EntryValidationError subclass, see module docstring.
    """
    if not entry.lines:
        raise EmptyEntryError()

    unknown = [
        line.account_code
        for line in entry.lines
        if not chart.is_active(line.account_code)
    ]
    if unknown:
        raise UnknownAccountError(_unique(unknown))

    parsed: list[tuple[Decimal, Decimal]] = []
    invalid: list[str] = []
    for line in entry.lines:
        debit = parse_amount(line.debit, minor_unit, max_amount)
        credit = parse_amount(line.credit, minor_unit, max_amount)
        if debit is None or credit is None:
            invalid.append(line.account_code)
            continue
        parsed.append((debit, credit))
    if invalid:
        raise InvalidAmountError(_unique(invalid))

    total_debit = sum((d for d, _ in parsed), ZERO)
    total_credit = sum((c for _, c in parsed), ZERO)
    if max_amount is not None and max(total_debit, total_credit) >= max_amount:
        raise InvalidAmountError(
            _unique(
                [
                    line.account_code
                    for line, (debit, credit) in zip(entry.lines, parsed)
                    if (debit and total_debit >= max_amount)
                    or (credit and total_credit >= max_amount)
                ]
            )
        )

    missing_party = [
        line.account_code
        for line in entry.lines
        if chart.get(line.account_code).tracks_counterparty and not line.party_id
    ]
    if missing_party:
        raise MissingCounterpartyError(_unique(missing_party))

    if total_debit != total_credit:
        raise UnbalancedEntryError(total_debit, total_credit)

    lines = tuple(
        PostingLine(
            account_code=line.account_code,
            debit=debit,
            credit=credit,
            party_id=line.party_id or None,
            memo=line.memo,
        )
        for line, (debit, credit) in zip(entry.lines, parsed)
    )
    return ValidatedEntry(
        entry_date=entry.entry_date,
        lines=lines,
        total_debit=total_debit,
        total_credit=total_credit,
        description=entry.description,
        source_document=entry.source_document,
        entry_number=entry.entry_number,
        period_id=entry.period_id,
    )
