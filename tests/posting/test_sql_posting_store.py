"""
SQL-backed posting: sequence allocation, row immutability and the store
running over SqlPostingPersistence.
"""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import event, select

from ledger_kernel.db import immutability
from ledger_kernel.db.engine import init_engine_from_url, reset_engine
from ledger_kernel.db.immutability import unregister_immutability_listeners
from ledger_kernel.domain.entries import EntryFilter
from ledger_kernel.exceptions import (
    DuplicateEntryNumberError,
    EntryAlreadyReversedError,
    ImmutabilityViolationError,
    InvalidAmountError,
    ReservedEntryNumberError,
    UnbalancedEntryError,
)
from ledger_kernel.models import JournalEntryModel, JournalLineModel
from ledger_kernel.services import PeriodService, PostingStore, SequenceService, SqlPostingPersistence
from tests.conftest import TEST_ACTOR_ID, cash_sale, entry, line


class TestSequenceService:
    def test_values_strictly_increase(self, session):
        seq = SequenceService(session)
        assert seq.current_value(SequenceService.JOURNAL_ENTRY) is None
        values = [seq.next_value(SequenceService.JOURNAL_ENTRY) for _ in range(5)]
        assert values == [1, 2, 3, 4, 5]
        assert seq.current_value(SequenceService.JOURNAL_ENTRY) == 5

    def test_independent_names(self, session):
        seq = SequenceService(session)
        seq.next_value("a")
        seq.next_value("a")
        assert seq.next_value("b") == 1

    def test_initialize_is_idempotent(self, session):
        seq = SequenceService(session)
        seq.initialize_sequences()
        seq.initialize_sequences()
        assert seq.current_value(SequenceService.JOURNAL_ENTRY) == 0


class TestSqlStore:
    def test_admit_writes_rows(self, sql_store, session):
        posted = sql_store.admit(
            entry(
                "2024-01-31",
                line("1305", debit="250000.50", party_id="APT-101"),
                line("4170", credit="250000.50"),
                description="Cuota enero",
            )
        )
        assert posted.entry_id == 1
        assert posted.entry_number == "CC-000001"

        model = session.execute(select(JournalEntryModel)).scalar_one()
        assert model.entry_seq == 1
        assert model.created_by_id == TEST_ACTOR_ID
        assert [l.account_code for l in model.lines] == ["1305", "4170"]
        assert model.total_debit == Decimal("250000.50")

    def test_get_and_query_read_back(self, sql_store):
        sql_store.admit(cash_sale(entry_date="2024-01-10", amount="10"))
        sql_store.admit(
            entry("2024-02-10", line("1305", debit="20", party_id="APT-7"), line("4170", credit="20"))
        )
        fetched = sql_store.get(2)
        assert fetched.entry_date == date(2024, 2, 10)
        assert fetched.lines[0].party_id == "APT-7"
        assert fetched.lines[0].debit == Decimal("20")

        assert [e.entry_id for e in sql_store.query()] == [1, 2]
        assert [e.entry_id for e in sql_store.query(EntryFilter(date_from="2024-02-01"))] == [2]
        assert [e.entry_id for e in sql_store.query(EntryFilter(account_code="1105"))] == [1]
        assert [e.entry_id for e in sql_store.query(EntryFilter(party_id="APT-7"))] == [2]
        assert len(sql_store) == 2

    def test_rejected_entry_writes_nothing(self, sql_store, session):
        with pytest.raises(UnbalancedEntryError):
            sql_store.admit(entry("2024-01-15", line("1105", debit="5"), line("4170", credit="4")))
        assert session.execute(select(JournalEntryModel)).first() is None
        assert SequenceService(session).current_value(SequenceService.JOURNAL_ENTRY) is None

    def test_taken_numbers_leave_counter_alone(self, sql_store, session):
        sql_store.admit(
            entry("2024-01-15", line("1105", debit="1"), line("4170", credit="1"), entry_number="RC-17")
        )
        with pytest.raises(DuplicateEntryNumberError):
            sql_store.admit(
                entry("2024-01-16", line("1105", debit="2"), line("4170", credit="2"), entry_number="RC-17")
            )
        with pytest.raises(ReservedEntryNumberError):
            sql_store.admit(
                entry("2024-01-16", line("1105", debit="2"), line("4170", credit="2"), entry_number="CC-000002")
            )
        assert len(sql_store) == 1
        assert SequenceService(session).current_value(SequenceService.JOURNAL_ENTRY) == 1
        assert sql_store.admit(cash_sale()).entry_number == "CC-000002"

    def test_generated_number_collision_refused_before_write(self, session, catalog):
        adjustments = PostingStore(
            SqlPostingPersistence(session, actor_id=TEST_ACTOR_ID), catalog, entry_number_prefix="AJ-"
        )
        adjustments.admit(
            entry("2024-01-15", line("1105", debit="1"), line("4170", credit="1"), entry_number="CC-000002")
        )
        store = PostingStore(SqlPostingPersistence(session, actor_id=TEST_ACTOR_ID), catalog)
        with pytest.raises(DuplicateEntryNumberError) as exc_info:
            store.admit(cash_sale())
        assert exc_info.value.entry_number == "CC-000002"
        assert len(store) == 1
        assert SequenceService(session).current_value(SequenceService.JOURNAL_ENTRY) == 1

    def test_minor_unit_beyond_column_scale_refused(self, session, catalog):
        with pytest.raises(ValueError):
            PostingStore(SqlPostingPersistence(session), catalog, minor_unit=3)

    def test_amount_beyond_column_precision_rejected(self, sql_store, session):
        too_big = "10000000000000"
        with pytest.raises(InvalidAmountError) as exc_info:
            sql_store.admit(entry("2024-01-15", line("1105", debit=too_big), line("4170", credit=too_big)))
        assert exc_info.value.codes == ["1105", "4170"]
        assert len(sql_store) == 0
        assert session.execute(select(JournalEntryModel)).first() is None

    def test_reverse_once(self, sql_store):
        original = sql_store.admit(cash_sale())
        reversal = sql_store.reverse(original.entry_id)
        assert reversal.reversal_of == original.entry_id
        assert reversal.lines[0].credit == original.lines[0].debit
        with pytest.raises(EntryAlreadyReversedError):
            sql_store.reverse(original.entry_id)

    def test_amend(self, sql_store):
        original = sql_store.admit(cash_sale(amount="100"))
        reversal, replacement = sql_store.amend(original.entry_id, cash_sale(amount="110"))
        assert [e.entry_id for e in sql_store.query()] == [1, 2, 3]
        assert replacement.total_credit == Decimal("110")
        assert reversal.reversal_of == 1

    def test_periods_from_database(self, session, catalog):
        periods = PeriodService(session)
        jan = periods.open_period(2024, 1)
        store = PostingStore(SqlPostingPersistence(session), catalog, periods=periods)
        posted = store.admit(cash_sale(entry_date="2024-01-20"))
        assert posted.period_id == jan.period_id
        assert store.get(posted.entry_id).period_id == jan.period_id


class TestImmutability:
    def test_entry_update_blocked(self, sql_store, session):
        sql_store.admit(cash_sale())
        model = session.execute(select(JournalEntryModel)).scalar_one()
        model.description = "edited"
        with pytest.raises(ImmutabilityViolationError) as exc_info:
            session.flush()
        assert exc_info.value.entity_type == "JournalEntry"

    def test_line_update_blocked(self, sql_store, session):
        sql_store.admit(cash_sale())
        line_model = session.execute(select(JournalLineModel)).scalars().first()
        line_model.debit = Decimal("999")
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_entry_delete_blocked(self, sql_store, session):
        sql_store.admit(cash_sale())
        model = session.execute(select(JournalEntryModel)).scalar_one()
        session.delete(model)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_engine_init_registers_listeners(self):
        unregister_immutability_listeners()
        init_engine_from_url("sqlite://")
        try:
            assert event.contains(
                JournalEntryModel, "before_update", immutability._check_journal_entry_update
            )
            assert event.contains(
                JournalLineModel, "before_delete", immutability._check_journal_line_delete
            )
        finally:
            unregister_immutability_listeners()
            reset_engine()
