"""
PostingStore admission, corrections and queries (in-memory persistence).

The SQL-backed store is exercised in test_sql_posting_store.py.
"""

import threading
from datetime import date
from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from ledger_kernel.domain.chart import Account, ChartOfAccounts
from ledger_kernel.domain.entries import EntryFilter, ProposedEntry, ProposedLine
from ledger_kernel.domain.periods import PeriodCalendar
from ledger_kernel.domain.validation import validate_entry
from ledger_kernel.exceptions import (
    ClosedPeriodError,
    DuplicateEntryNumberError,
    EntryAlreadyReversedError,
    EntryNotFoundError,
    MissingCounterpartyError,
    PeriodNotFoundError,
    ReservedEntryNumberError,
    UnbalancedEntryError,
    UnknownAccountError,
)
from ledger_kernel.services import InMemoryPostingPersistence, PostingStore
from tests.conftest import cash_sale, entry, line, make_accounts


class TestAdmit:
    def test_admitted_entry_gets_sequential_ids(self, store):
        first = store.admit(cash_sale())
        second = store.admit(cash_sale())
        assert (first.entry_id, second.entry_id) == (1, 2)
        assert first.entry_number == "CC-000001"
        assert len(store) == 2

    def test_posted_entry_round_trips(self, store):
        posted = store.admit(
            entry(
                "2024-01-31",
                line("1305", debit="250000", party_id="APT-101", memo="Enero"),
                line("4170", credit="250000"),
                description="Cuota enero",
                source_document="FAC-001",
            )
        )
        fetched = store.get(posted.entry_id)
        assert fetched == posted
        assert fetched.lines[0].party_id == "APT-101"
        assert fetched.lines[0].memo == "Enero"
        assert fetched.total_debit == fetched.total_credit == Decimal("250000")

    def test_caller_entry_number_kept(self, store):
        posted = store.admit(
            entry("2024-01-15", line("1105", debit="1"), line("4170", credit="1"), entry_number="RC-17")
        )
        assert posted.entry_number == "RC-17"

    def test_duplicate_entry_number_rejected(self, store):
        store.admit(entry("2024-01-15", line("1105", debit="1"), line("4170", credit="1"), entry_number="RC-17"))
        with pytest.raises(DuplicateEntryNumberError):
            store.admit(
                entry("2024-01-16", line("1105", debit="2"), line("4170", credit="2"), entry_number="RC-17")
            )
        assert len(store) == 1

    def test_generated_number_shape_is_reserved(self, store):
        store.admit(cash_sale())
        with pytest.raises(ReservedEntryNumberError) as exc_info:
            store.admit(
                entry("2024-01-16", line("1105", debit="2"), line("4170", credit="2"), entry_number="CC-000002")
            )
        assert exc_info.value.code == "RESERVED_ENTRY_NUMBER"
        assert len(store) == 1
        assert store.admit(cash_sale()).entry_number == "CC-000002"

    def test_prefix_alone_is_not_reserved(self, store):
        posted = store.admit(
            entry("2024-01-16", line("1105", debit="2"), line("4170", credit="2"), entry_number="CC-A7")
        )
        assert posted.entry_number == "CC-A7"

    def test_generated_number_never_reuses_a_stored_one(self, chart):
        persistence = InMemoryPostingPersistence()
        adjustments = PostingStore(persistence, chart, entry_number_prefix="AJ-")
        adjustments.admit(
            entry("2024-01-16", line("1105", debit="2"), line("4170", credit="2"), entry_number="CC-000002")
        )
        store = PostingStore(persistence, chart)
        with pytest.raises(DuplicateEntryNumberError) as exc_info:
            store.admit(cash_sale())
        assert exc_info.value.entry_number == "CC-000002"
        assert len(store) == 1
        assert [e.entry_number for e in store.query()] == ["CC-000002"]

    def test_custom_prefix(self, chart):
        store = PostingStore(InMemoryPostingPersistence(), chart, entry_number_prefix="AJ-")
        assert store.admit(cash_sale()).entry_number == "AJ-000001"

    def test_rejection_leaves_store_unchanged(self, store):
        store.admit(cash_sale())
        with pytest.raises(UnbalancedEntryError):
            store.admit(entry("2024-01-15", line("1105", debit="100"), line("4170", credit="99")))
        assert len(store) == 1
        assert [e.entry_id for e in store.query()] == [1]

    def test_rejection_logged_with_error_code(self, store, captured_logs):
        with pytest.raises(UnknownAccountError):
            store.admit(entry("2024-01-15", line("9999", debit="1"), line("4170", credit="1")))
        assert len(store) == 0
        rejected = [r for r in captured_logs() if r["message"] == "entry_rejected"]
        assert len(rejected) == 1
        assert rejected[0]["level"] == "WARNING"
        assert rejected[0]["error_code"] == "UNKNOWN_ACCOUNT"
        assert rejected[0]["exc_codes"] == ["9999"]

    def test_admission_logged_with_entry_context(self, store, captured_logs):
        store.admit(cash_sale(amount="42"))
        admitted = [r for r in captured_logs() if r["message"] == "entry_admitted"]
        assert len(admitted) == 1
        assert admitted[0]["entry_id"] == "1"
        assert admitted[0]["total_debit"] == "42"

    def test_chart_changes_are_seen(self):
        accounts = make_accounts()
        catalog = _MutableCatalog(accounts)
        store = PostingStore(InMemoryPostingPersistence(), catalog)
        proposed = entry("2024-01-15", line("1120", debit="5"), line("4170", credit="5"))
        with pytest.raises(UnknownAccountError):
            store.admit(proposed)
        assert len(store) == 0
        catalog.accounts.append(Account("1120", "Cuentas de ahorro", "Activo"))
        assert store.admit(proposed).entry_id == 1

    def test_append_validated_entry(self, store, chart):
        validated = validate_entry(cash_sale(), chart)
        assert store.append(validated) == 1
        assert store.get(1).lines == validated.lines


class _MutableCatalog:
    def __init__(self, accounts):
        self.accounts = list(accounts)

    def list_accounts(self):
        return list(self.accounts)


class TestQuery:
    def test_admission_order(self, store):
        for day in (20, 5, 12):
            store.admit(cash_sale(entry_date=f"2024-01-{day:02d}"))
        assert [e.entry_id for e in store.query()] == [1, 2, 3]

    def test_filter_applied(self, store):
        store.admit(cash_sale(entry_date="2024-01-10"))
        store.admit(cash_sale(entry_date="2024-02-10"))
        store.admit(
            entry(
                "2024-02-15",
                line("1305", debit="80", party_id="APT-202"),
                line("4170", credit="80"),
            )
        )
        feb = EntryFilter(date_from="2024-02-01", date_to="2024-02-29")
        assert [e.entry_id for e in store.query(feb)] == [2, 3]
        assert [e.entry_id for e in store.query(EntryFilter(party_id="APT-202"))] == [3]
        assert [e.entry_id for e in store.query(EntryFilter(account_code="1105"))] == [1, 2]

    def test_query_is_restartable(self, store):
        store.admit(cash_sale())
        results = store.query()
        assert len(list(results)) == 1
        store.admit(cash_sale())
        assert len(list(store.query())) == 2

    def test_unknown_entry(self, store):
        with pytest.raises(EntryNotFoundError):
            store.get(99)


class TestReverse:
    def test_reversal_offsets_original(self, store):
        original = store.admit(
            entry(
                "2024-01-31",
                line("1305", debit="250000", party_id="APT-101"),
                line("4170", credit="250000"),
            )
        )
        reversal = store.reverse(original.entry_id)

        assert reversal.entry_id == 2
        assert reversal.reversal_of == original.entry_id
        assert reversal.is_reversal
        assert reversal.entry_date == original.entry_date
        assert reversal.source_document == original.entry_number
        assert reversal.description == f"Reversal of {original.entry_number}"
        assert [(l.account_code, l.debit, l.credit, l.party_id) for l in reversal.lines] == [
            ("1305", Decimal("0"), Decimal("250000"), "APT-101"),
            ("4170", Decimal("250000"), Decimal("0"), None),
        ]
        # original untouched
        assert store.get(original.entry_id) == original

    def test_reversal_with_own_date(self, store):
        original = store.admit(cash_sale(entry_date="2024-01-15"))
        reversal = store.reverse(original.entry_id, entry_date=date(2024, 2, 1), description="Anulacion")
        assert reversal.entry_date == date(2024, 2, 1)
        assert reversal.description == "Anulacion"

    def test_reverse_only_once(self, store):
        original = store.admit(cash_sale())
        store.reverse(original.entry_id)
        with pytest.raises(EntryAlreadyReversedError) as exc_info:
            store.reverse(original.entry_id)
        assert exc_info.value.reversal_entry_id == 2
        assert len(store) == 2

    def test_reverse_unknown_entry(self, store):
        with pytest.raises(EntryNotFoundError):
            store.reverse(42)

    def test_reversal_of_retired_account_rejected(self):
        accounts = make_accounts()
        catalog = _MutableCatalog(accounts)
        store = PostingStore(InMemoryPostingPersistence(), catalog)
        original = store.admit(cash_sale())
        catalog.accounts = [
            Account(a.code, a.name, a.class_name, active=a.code != "4170",
                    tracks_counterparty=a.tracks_counterparty)
            for a in accounts
        ]
        with pytest.raises(UnknownAccountError):
            store.reverse(original.entry_id)
        assert len(store) == 1


class TestAmend:
    def test_amend_reverses_then_admits(self, store):
        original = store.admit(cash_sale(amount="100"))
        reversal, replacement = store.amend(original.entry_id, cash_sale(amount="120"))
        assert reversal.reversal_of == original.entry_id
        assert replacement.entry_id == reversal.entry_id + 1
        assert replacement.total_debit == Decimal("120")
        assert len(store) == 3

    def test_invalid_replacement_writes_nothing(self, store):
        original = store.admit(cash_sale())
        bad = entry("2024-01-15", line("1305", debit="10"), line("4170", credit="10"))
        with pytest.raises(MissingCounterpartyError):
            store.amend(original.entry_id, bad)
        assert len(store) == 1
        assert store.reverse(original.entry_id).entry_id == 2

    def test_amend_already_reversed(self, store):
        original = store.admit(cash_sale())
        store.reverse(original.entry_id)
        with pytest.raises(EntryAlreadyReversedError):
            store.amend(original.entry_id, cash_sale())
        assert len(store) == 2


class TestPeriods:
    def _store(self, chart, calendar):
        return PostingStore(InMemoryPostingPersistence(), chart, periods=calendar)

    def test_period_stamped_on_entry(self, chart):
        calendar = PeriodCalendar()
        jan = calendar.open_period(2024, 1)
        posted = self._store(chart, calendar).admit(cash_sale(entry_date="2024-01-15"))
        assert posted.period_id == jan.period_id

    def test_no_period_for_date(self, chart):
        calendar = PeriodCalendar()
        calendar.open_period(2024, 1)
        store = self._store(chart, calendar)
        with pytest.raises(PeriodNotFoundError):
            store.admit(cash_sale(entry_date="2024-02-01"))
        assert len(store) == 0

    def test_closed_period_rejects(self, chart):
        calendar = PeriodCalendar()
        jan = calendar.open_period(2024, 1)
        store = self._store(chart, calendar)
        original = store.admit(cash_sale(entry_date="2024-01-15"))
        calendar.close_period(jan.period_id)

        with pytest.raises(ClosedPeriodError):
            store.admit(cash_sale(entry_date="2024-01-20"))
        with pytest.raises(ClosedPeriodError):
            store.reverse(original.entry_id)

        calendar.open_period(2024, 2)
        reversal = store.reverse(original.entry_id, entry_date=date(2024, 2, 1))
        assert reversal.period_id == "2024-02"

    def test_without_lookup_caller_period_kept(self, store):
        posted = store.admit(
            ProposedEntry(
                entry_date=date(2024, 1, 15),
                lines=(ProposedLine("1105", debit="1"), ProposedLine("4170", credit="1")),
                period_id="2024-01",
            )
        )
        assert posted.period_id == "2024-01"


class TestConcurrency:
    @pytest.mark.slow
    def test_parallel_admissions_get_distinct_sequential_ids(self, store):
        n_threads, per_thread = 8, 25
        errors: list[Exception] = []

        def worker():
            try:
                for _ in range(per_thread):
                    store.admit(cash_sale(amount="1"))
            except Exception as exc:  # collected for the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=worker) for _ in range(n_threads)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        ids = [e.entry_id for e in store.query()]
        assert ids == list(range(1, n_threads * per_thread + 1))

    def test_parallel_reversals_of_same_entry(self, store):
        original = store.admit(cash_sale())
        outcomes: list[str] = []
        lock = threading.Lock()

        def worker():
            try:
                store.reverse(original.entry_id)
                result = "ok"
            except EntryAlreadyReversedError:
                result = "rejected"
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(6)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["ok"] + ["rejected"] * 5
        assert len(store) == 2


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------

amounts = st.decimals(min_value=Decimal("0"), max_value=Decimal("99999"), places=2)


class TestStoreProperties:
    @given(
        batch=st.lists(
            st.tuples(amounts, amounts),
            min_size=1,
            max_size=15,
        )
    )
    @settings(max_examples=50)
    def test_every_posted_entry_balances(self, batch):
        store = PostingStore(
            InMemoryPostingPersistence(), ChartOfAccounts.from_accounts(make_accounts())
        )
        admitted = 0
        for debit, credit in batch:
            proposed = entry("2024-01-15", line("5135", debit=debit), line("1110", credit=credit))
            try:
                store.admit(proposed)
                admitted += 1
            except UnbalancedEntryError:
                assert debit != credit
        assert len(store) == admitted
        assert all(e.total_debit == e.total_credit for e in store.query())
        assert [e.entry_id for e in store.query()] == list(range(1, admitted + 1))
