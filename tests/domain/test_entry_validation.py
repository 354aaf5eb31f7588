"""
Admission checks (ledger_kernel/domain/validation.py).

Balance, account existence, amount shape and counterparty rules, plus the
order in which a multiply-invalid entry is reported.
"""

from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from ledger_kernel.domain.chart import ChartOfAccounts
from ledger_kernel.domain.entries import ProposedEntry, ProposedLine
from ledger_kernel.domain.validation import parse_amount, validate_entry
from ledger_kernel.exceptions import (
    EmptyEntryError,
    EntryValidationError,
    InvalidAmountError,
    MissingCounterpartyError,
    UnbalancedEntryError,
    UnknownAccountError,
)
from tests.conftest import cash_sale, entry, line, make_accounts

CHART = ChartOfAccounts.from_accounts(make_accounts())


class TestParseAmount:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (Decimal("12.50"), Decimal("12.50")),
            ("12.5", Decimal("12.5")),
            (" 7 ", Decimal("7")),
            (100, Decimal("100")),
            (0.1, Decimal("0.1")),
            (None, Decimal("0")),
            ("", Decimal("0")),
            ("1.000", Decimal("1.000")),
        ],
    )
    def test_accepted(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize(
        "value",
        ["-1", -5, "abc", "1.005", True, float("nan"), float("inf"), Decimal("Infinity"), [1]],
    )
    def test_rejected(self, value):
        assert parse_amount(value) is None

    def test_minor_unit_zero(self):
        assert parse_amount("15", minor_unit=0) == Decimal("15")
        assert parse_amount("1.5", minor_unit=0) is None

    def test_max_amount_is_exclusive(self):
        limit = Decimal("1000")
        assert parse_amount("999.99", max_amount=limit) == Decimal("999.99")
        assert parse_amount("1000", max_amount=limit) is None
        assert parse_amount("1E+20", max_amount=limit) is None


class TestValidEntries:
    def test_balanced_entry_admitted(self):
        validated = validate_entry(cash_sale(amount="100"), CHART)
        assert validated.total_debit == Decimal("100")
        assert validated.total_credit == Decimal("100")
        assert [l.account_code for l in validated.lines] == ["1105", "4170"]

    def test_amounts_normalised_to_decimal(self):
        proposed = entry("2024-01-15", line("1105", debit=50), line("4170", credit="50.00"))
        validated = validate_entry(proposed, CHART)
        assert all(isinstance(l.debit, Decimal) for l in validated.lines)
        assert all(isinstance(l.credit, Decimal) for l in validated.lines)

    def test_omitted_side_counts_as_zero(self):
        proposed = entry(
            "2024-01-15",
            ProposedLine("1105", debit="10", credit=None),
            ProposedLine("4170", debit="", credit="10"),
        )
        validated = validate_entry(proposed, CHART)
        assert validated.lines[0].credit == Decimal("0")
        assert validated.lines[1].debit == Decimal("0")

    def test_counterparty_kept_on_line(self):
        proposed = entry(
            "2024-01-31",
            line("1305", debit="250000", party_id="APT-101"),
            line("4170", credit="250000"),
        )
        validated = validate_entry(proposed, CHART)
        assert validated.lines[0].party_id == "APT-101"
        assert validated.lines[1].party_id is None

    def test_metadata_carried_through(self):
        proposed = entry(
            "2024-01-15",
            line("1105", debit="1"),
            line("4170", credit="1"),
            description="Recibo de caja",
            source_document="RC-0042",
            entry_number="CC-9000",
        )
        validated = validate_entry(proposed, CHART)
        assert validated.entry_date == date(2024, 1, 15)
        assert validated.description == "Recibo de caja"
        assert validated.source_document == "RC-0042"
        assert validated.entry_number == "CC-9000"
        assert validated.reversal_of is None

    def test_zero_amount_entry_is_balanced(self):
        proposed = entry("2024-01-15", line("1105"), line("4170"))
        assert validate_entry(proposed, CHART).total_debit == Decimal("0")


class TestRejectedEntries:
    def test_empty_entry(self):
        with pytest.raises(EmptyEntryError) as exc_info:
            validate_entry(ProposedEntry(entry_date=date(2024, 1, 1), lines=()), CHART)
        assert exc_info.value.code == "EMPTY_ENTRY"

    def test_unbalanced_entry_reports_totals(self):
        proposed = entry("2024-01-15", line("1105", debit="100"), line("4170", credit="90"))
        with pytest.raises(UnbalancedEntryError) as exc_info:
            validate_entry(proposed, CHART)
        assert exc_info.value.total_debit == Decimal("100")
        assert exc_info.value.total_credit == Decimal("90")

    def test_unknown_accounts_all_reported_once(self):
        proposed = entry(
            "2024-01-15",
            line("9999", debit="10"),
            line("8888", credit="5"),
            line("9999", credit="5"),
        )
        with pytest.raises(UnknownAccountError) as exc_info:
            validate_entry(proposed, CHART)
        assert exc_info.value.codes == ["9999", "8888"]

    def test_inactive_account_rejected(self):
        proposed = entry("2024-01-15", line("5195", debit="10"), line("1105", credit="10"))
        with pytest.raises(UnknownAccountError) as exc_info:
            validate_entry(proposed, CHART)
        assert exc_info.value.codes == ["5195"]

    @pytest.mark.parametrize("bad", ["-10", "diez", "10.001", float("nan")])
    def test_invalid_amount(self, bad):
        proposed = entry("2024-01-15", line("1105", debit=bad), line("4170", credit="10"))
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_entry(proposed, CHART)
        assert exc_info.value.codes == ["1105"]

    def test_over_precise_amount_not_rounded(self):
        proposed = entry("2024-01-15", line("1105", debit="0.005"), line("4170", credit="0.01"))
        with pytest.raises(InvalidAmountError):
            validate_entry(proposed, CHART)

    def test_minor_unit_configurable(self):
        proposed = entry("2024-01-15", line("1105", debit="0.5"), line("4170", credit="0.5"))
        with pytest.raises(InvalidAmountError):
            validate_entry(proposed, CHART, minor_unit=0)

    def test_line_at_storage_limit_rejected(self):
        proposed = entry("2024-01-15", line("1105", debit="1000"), line("4170", credit="1000"))
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_entry(proposed, CHART, max_amount=Decimal("1000"))
        assert exc_info.value.codes == ["1105", "4170"]

    def test_total_at_storage_limit_rejected(self):
        proposed = entry(
            "2024-01-15",
            line("1105", debit="600"),
            line("1110", debit="400"),
            line("4170", credit="999.99"),
            line("3105", credit="0.01"),
        )
        with pytest.raises(InvalidAmountError) as exc_info:
            validate_entry(proposed, CHART, max_amount=Decimal("1000"))
        assert exc_info.value.codes == ["1105", "1110", "4170", "3105"]
        validated = validate_entry(proposed, CHART, max_amount=Decimal("1000.01"))
        assert validated.total_debit == Decimal("1000")

    def test_missing_counterparty(self):
        proposed = entry(
            "2024-01-31",
            line("1305", debit="250000"),
            line("4170", credit="250000"),
        )
        with pytest.raises(MissingCounterpartyError) as exc_info:
            validate_entry(proposed, CHART)
        assert exc_info.value.codes == ["1305"]

    def test_blank_counterparty_is_missing(self):
        proposed = entry(
            "2024-01-31",
            line("2205", credit="80", party_id=""),
            line("5135", debit="80"),
        )
        with pytest.raises(MissingCounterpartyError):
            validate_entry(proposed, CHART)

    def test_all_validation_errors_share_a_base(self):
        proposed = entry("2024-01-15", line("1105", debit="1"))
        with pytest.raises(EntryValidationError):
            validate_entry(proposed, CHART)


class TestCheckOrder:
    """The first failing check decides the error; later checks do not run."""

    def test_unknown_account_before_unbalanced(self):
        proposed = entry("2024-01-15", line("9999", debit="100"), line("4170", credit="1"))
        with pytest.raises(UnknownAccountError):
            validate_entry(proposed, CHART)

    def test_unknown_account_before_invalid_amount(self):
        proposed = entry("2024-01-15", line("9999", debit="-1"), line("4170", credit="1"))
        with pytest.raises(UnknownAccountError):
            validate_entry(proposed, CHART)

    def test_invalid_amount_before_missing_counterparty(self):
        proposed = entry("2024-01-15", line("1305", debit="x"), line("4170", credit="1"))
        with pytest.raises(InvalidAmountError):
            validate_entry(proposed, CHART)

    def test_missing_counterparty_before_unbalanced(self):
        proposed = entry("2024-01-15", line("1305", debit="5"), line("4170", credit="1"))
        with pytest.raises(MissingCounterpartyError):
            validate_entry(proposed, CHART)


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

PLAIN_CODES = ["1105", "1110", "3105", "4170", "5135"]

amounts = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("1000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)

proposed_lines = st.lists(
    st.builds(
        ProposedLine,
        account_code=st.sampled_from(PLAIN_CODES),
        debit=amounts,
        credit=amounts,
    ),
    min_size=1,
    max_size=8,
)


class TestValidationProperties:
    @given(lines=proposed_lines)
    @settings(max_examples=200)
    def test_admitted_iff_balanced(self, lines):
        proposed = ProposedEntry(entry_date=date(2024, 1, 15), lines=lines)
        debit = sum((l.debit for l in lines), Decimal("0"))
        credit = sum((l.credit for l in lines), Decimal("0"))
        if debit == credit:
            validated = validate_entry(proposed, CHART)
            assert validated.total_debit == validated.total_credit == debit
        else:
            with pytest.raises(UnbalancedEntryError):
                validate_entry(proposed, CHART)

    @given(
        lines=proposed_lines,
        strays=st.lists(
            st.one_of(
                st.just("5195"),
                st.text(alphabet="0123456789", min_size=1, max_size=6).filter(
                    lambda c: c not in CHART
                ),
            ),
            min_size=1,
            max_size=6,
        ),
        data=st.data(),
    )
    @settings(max_examples=100)
    def test_unknown_codes_reported_once_in_line_order(self, lines, strays, data):
        mixed = [*lines, *(ProposedLine(code, debit="1") for code in strays)]
        ordered = data.draw(st.permutations(mixed))
        proposed = ProposedEntry(entry_date=date(2024, 1, 15), lines=ordered)
        expected = list(
            dict.fromkeys(l.account_code for l in ordered if l.account_code not in PLAIN_CODES)
        )
        with pytest.raises(UnknownAccountError) as exc_info:
            validate_entry(proposed, CHART)
        assert exc_info.value.codes == expected
        assert sorted(exc_info.value.codes) == sorted(set(strays))
