"""
Tests for the ReconciliationService.

Tests cover:
- Full and partial reconciliation and the status transitions
- Over-allocation is rejected and leaves everything unchanged
- Idempotent replay and key conflicts
- Error precedence between the checks
- A database failure while allocating writes nothing
"""

import uuid
from datetime import date, datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from ledger_engine.errors import (
    IdempotencyConflict,
    IdempotencyRequired,
    InternalError,
    MissingAccount,
    OverAllocated,
    TransactionNotFound,
    UnbalancedEntry,
    ValidationFailed,
)
from ledger_engine.models.enums import AccountType, EntryType, ReconciliationStatus
from ledger_engine.models.journal_entry import JournalEntry
from ledger_engine.models.raw_transaction import RawTransaction
from ledger_engine.models.reconciliation import (
    IdempotencyRecord,
    ReconciliationAllocation,
)
from ledger_engine.money import Money
from ledger_engine.schemas.account import AccountCreate
from ledger_engine.schemas.journal import JournalLineCreate
from ledger_engine.schemas.raw_transaction import ImportRequest, RawTransactionInput
from ledger_engine.schemas.reconciliation import AllocationInput, ReconcileRequest
from ledger_engine.services.account_directory import AccountDirectory
from ledger_engine.services.import_service import ImportService
from ledger_engine.services.reconciliation_service import (
    ReconciliationService,
    request_fingerprint,
)


@pytest.fixture
def ledger(db_session):
    """A bank account, an expense account and two imported rows."""
    directory = AccountDirectory(db_session)
    directory.create_account(AccountCreate(
        code="1100", name="Bank", account_type=AccountType.ASSET,
    ))
    directory.create_account(AccountCreate(
        code="6000", name="Rent", account_type=AccountType.EXPENSE,
    ))
    ImportService(db_session).import_transactions(ImportRequest(
        source="bank-feed",
        account_code="1100",
        transactions=[
            RawTransactionInput(
                external_id="rent-feb",
                occurred_at=datetime(2026, 2, 1),
                amount="-100.00",
                currency_code="USD",
            ),
            RawTransactionInput(
                external_id="fee-feb",
                occurred_at=datetime(2026, 2, 2),
                amount="-50.00",
                currency_code="USD",
            ),
        ],
    ))
    db_session.commit()

    raws = db_session.execute(select(RawTransaction)).scalars().all()
    return {raw.external_id: raw.id for raw in raws}


def reconcile_request(allocations, amount=None, debit="6000", credit="1100"):
    """One expense debit and one bank credit covering the allocations."""
    if amount is None:
        amount = str(sum(
            (Money.parse(a) for _, a in allocations), Money.zero()
        ))
    return ReconcileRequest(
        entry_date=date(2026, 2, 3),
        memo="Bank reconciliation",
        allocations=[
            AllocationInput(raw_transaction_id=raw_id, amount_applied=applied)
            for raw_id, applied in allocations
        ],
        journal_lines=[
            JournalLineCreate(account_code=debit, type=EntryType.DEBIT, amount=amount),
            JournalLineCreate(account_code=credit, type=EntryType.CREDIT, amount=amount),
        ],
    )


def load_raw(db_session, raw_id):
    db_session.expire_all()
    return db_session.get(RawTransaction, raw_id)


def count(db_session, model):
    return db_session.scalar(select(func.count()).select_from(model))


class TestReconcile:

    def test_full_reconciliation_round_trip(self, db_session, ledger):
        rent = ledger["rent-feb"]
        service = ReconciliationService(db_session)

        result = service.reconcile("key-1", reconcile_request([(rent, "100.00")]))
        db_session.commit()

        assert result.allocation_count == 1
        assert result.reconciled_transaction_ids == [rent]
        assert result.replayed is False

        raw = load_raw(db_session, rent)
        assert str(raw.allocated_amount) == "100.0000"
        assert raw.reconciliation_status == ReconciliationStatus.FULLY_RECONCILED

        entry = db_session.get(JournalEntry, result.journal_entry_id)
        assert entry.journal_number == result.journal_number
        assert entry.source_type == "reconciliation"
        assert entry.source_ref == "key-1"
        assert len(entry.lines) == 2

        allocation = db_session.execute(select(ReconciliationAllocation)).scalar_one()
        assert allocation.raw_transaction_id == rent
        assert allocation.journal_entry_id == result.journal_entry_id
        assert allocation.amount_applied == Money.parse("100")

    def test_partial_then_full(self, db_session, ledger):
        rent = ledger["rent-feb"]
        service = ReconciliationService(db_session)

        service.reconcile("key-1", reconcile_request([(rent, "70")]))
        db_session.commit()
        raw = load_raw(db_session, rent)
        assert str(raw.allocated_amount) == "70.0000"
        assert raw.reconciliation_status == ReconciliationStatus.PARTIALLY_RECONCILED

        service.reconcile("key-2", reconcile_request([(rent, "30")]))
        db_session.commit()
        raw = load_raw(db_session, rent)
        assert str(raw.allocated_amount) == "100.0000"
        assert raw.reconciliation_status == ReconciliationStatus.FULLY_RECONCILED

    def test_over_allocation_leaves_state_unchanged(self, db_session, ledger):
        fee = ledger["fee-feb"]
        service = ReconciliationService(db_session)

        with pytest.raises(OverAllocated) as exc_info:
            service.reconcile("key-1", reconcile_request([(fee, "51.00")]))
        db_session.rollback()

        assert exc_info.value.details == {
            "rawTransactionId": str(fee),
            "remaining": "50.0000",
            "requested": "51.0000",
        }
        raw = load_raw(db_session, fee)
        assert raw.allocated_amount == Money.zero()
        assert raw.reconciliation_status == ReconciliationStatus.UNRECONCILED
        assert count(db_session, JournalEntry) == 0
        assert count(db_session, ReconciliationAllocation) == 0
        assert count(db_session, IdempotencyRecord) == 0

    def test_fully_reconciled_accepts_nothing_more(self, db_session, ledger):
        fee = ledger["fee-feb"]
        service = ReconciliationService(db_session)
        service.reconcile("key-1", reconcile_request([(fee, "50")]))
        db_session.commit()

        with pytest.raises(OverAllocated):
            service.reconcile("key-2", reconcile_request([(fee, "0.0001")]))

    def test_several_transactions_in_one_entry(self, db_session, ledger):
        rent, fee = ledger["rent-feb"], ledger["fee-feb"]
        service = ReconciliationService(db_session)

        result = service.reconcile(
            "key-1", reconcile_request([(rent, "100"), (fee, "25")])
        )
        db_session.commit()

        assert result.reconciled_transaction_ids == [rent, fee]
        assert load_raw(db_session, fee).reconciliation_status == (
            ReconciliationStatus.PARTIALLY_RECONCILED
        )
        assert count(db_session, ReconciliationAllocation) == 2

    def test_repeated_raw_transaction_is_summed(self, db_session, ledger):
        fee = ledger["fee-feb"]
        service = ReconciliationService(db_session)

        with pytest.raises(OverAllocated):
            service.reconcile("key-1", reconcile_request([(fee, "30"), (fee, "30")]))
        db_session.rollback()

        result = service.reconcile(
            "key-2", reconcile_request([(fee, "20"), (fee, "30")])
        )
        db_session.commit()

        assert result.allocation_count == 2
        assert result.reconciled_transaction_ids == [fee]
        assert str(load_raw(db_session, fee).allocated_amount) == "50.0000"


class TestIdempotency:

    def test_missing_key_rejected(self, db_session, ledger):
        service = ReconciliationService(db_session)
        request = reconcile_request([(ledger["rent-feb"], "100")])

        for key in (None, "", "   "):
            with pytest.raises(IdempotencyRequired):
                service.reconcile(key, request)

    def test_same_request_replayed(self, db_session, ledger):
        rent = ledger["rent-feb"]
        service = ReconciliationService(db_session)
        request = reconcile_request([(rent, "40")])

        first = service.reconcile("key-1", request)
        db_session.commit()
        second = service.reconcile("key-1", reconcile_request([(rent, "40")]))
        db_session.commit()

        assert second.replayed is True
        assert second.journal_entry_id == first.journal_entry_id
        assert second.journal_number == first.journal_number
        assert second.reconciled_transaction_ids == [rent]
        assert count(db_session, JournalEntry) == 1
        assert str(load_raw(db_session, rent).allocated_amount) == "40.0000"

    def test_replay_is_served_even_when_no_longer_valid(self, db_session, ledger):
        fee = ledger["fee-feb"]
        service = ReconciliationService(db_session)
        service.reconcile("key-1", reconcile_request([(fee, "50")]))
        db_session.commit()

        # The row is now fully reconciled, but the retry has no new effect
        replay = service.reconcile("key-1", reconcile_request([(fee, "50")]))
        assert replay.replayed is True

    def test_same_key_different_request_conflicts(self, db_session, ledger):
        rent = ledger["rent-feb"]
        service = ReconciliationService(db_session)
        service.reconcile("key-1", reconcile_request([(rent, "40")]))
        db_session.commit()

        with pytest.raises(IdempotencyConflict) as exc_info:
            service.reconcile("key-1", reconcile_request([(rent, "41")]))

        assert exc_info.value.details == {"idempotencyKey": "key-1"}

    def test_failed_request_does_not_consume_key(self, db_session, ledger):
        fee = ledger["fee-feb"]
        service = ReconciliationService(db_session)

        with pytest.raises(OverAllocated):
            service.reconcile("key-1", reconcile_request([(fee, "60")]))
        db_session.rollback()

        result = service.reconcile("key-1", reconcile_request([(fee, "50")]))
        assert result.replayed is False

    def test_fingerprint_ignores_construction_order(self, ledger):
        rent = ledger["rent-feb"]
        a = reconcile_request([(rent, "40")])
        b = ReconcileRequest.model_validate(a.model_dump(by_alias=True))
        assert request_fingerprint(a) == request_fingerprint(b)
        assert request_fingerprint(a) != request_fingerprint(
            reconcile_request([(rent, "40.01")])
        )


class TestErrorPrecedence:

    def test_missing_key_before_validation(self, db_session, ledger):
        request = ReconcileRequest.model_construct(
            entry_date=date(2026, 2, 3), memo=None, source_type=None,
            source_ref=None, created_by=None, allocations=[], journal_lines=[],
        )
        with pytest.raises(IdempotencyRequired):
            ReconciliationService(db_session).reconcile(None, request)

    def test_empty_allocations_rejected(self, db_session, ledger):
        request = reconcile_request([(ledger["rent-feb"], "100")])
        request = request.model_copy(update={"allocations": []})
        with pytest.raises(ValidationFailed, match="allocation"):
            ReconciliationService(db_session).reconcile("key-1", request)

    def test_zero_allocation_rejected(self, db_session, ledger):
        request = reconcile_request([(ledger["rent-feb"], "0")], amount="10")
        with pytest.raises(ValidationFailed, match="positive"):
            ReconciliationService(db_session).reconcile("key-1", request)

    def test_unbalanced_before_missing_account(self, db_session, ledger):
        request = reconcile_request(
            [(uuid.uuid4(), "100")], amount="100", debit="9999",
        )
        request.journal_lines[1].amount = "99"
        with pytest.raises(UnbalancedEntry):
            ReconciliationService(db_session).reconcile("key-1", request)

    def test_missing_account_before_transaction_not_found(self, db_session, ledger):
        request = reconcile_request([(uuid.uuid4(), "100")], debit="9999")
        with pytest.raises(MissingAccount) as exc_info:
            ReconciliationService(db_session).reconcile("key-1", request)
        assert exc_info.value.codes == ["9999"]

    def test_not_found_before_over_allocation(self, db_session, ledger):
        missing = uuid.uuid4()
        request = reconcile_request([
            (ledger["fee-feb"], "500"),
            (missing, "1"),
        ])
        with pytest.raises(TransactionNotFound) as exc_info:
            ReconciliationService(db_session).reconcile("key-1", request)
        assert exc_info.value.details == {"rawTransactionId": str(missing)}
        assert count(db_session, JournalEntry) == 0


class TestWriteFailures:

    def test_allocation_write_failure_is_internal_error(self, db_session, ledger, monkeypatch):
        rent = ledger["rent-feb"]
        real_flush = db_session.flush

        def failing_flush(*args, **kwargs):
            if any(isinstance(obj, ReconciliationAllocation) for obj in db_session.new):
                raise OperationalError(
                    "INSERT INTO reconciliation_allocations", {},
                    Exception("disk I/O error"),
                )
            return real_flush(*args, **kwargs)

        monkeypatch.setattr(db_session, "flush", failing_flush)

        with pytest.raises(InternalError, match="Failed to apply allocations"):
            ReconciliationService(db_session).reconcile(
                "key-1", reconcile_request([(rent, "100.00")])
            )
        db_session.rollback()
        monkeypatch.undo()

        raw = load_raw(db_session, rent)
        assert raw.allocated_amount == Money.zero()
        assert raw.reconciliation_status == ReconciliationStatus.UNRECONCILED
        assert count(db_session, JournalEntry) == 0
        assert count(db_session, IdempotencyRecord) == 0

    def test_key_is_free_after_write_failure(self, db_session, ledger, monkeypatch):
        rent = ledger["rent-feb"]
        real_flush = db_session.flush

        def failing_flush(*args, **kwargs):
            if any(isinstance(obj, ReconciliationAllocation) for obj in db_session.new):
                raise OperationalError("INSERT", {}, Exception("database is locked"))
            return real_flush(*args, **kwargs)

        monkeypatch.setattr(db_session, "flush", failing_flush)
        service = ReconciliationService(db_session)
        with pytest.raises(InternalError):
            service.reconcile("key-1", reconcile_request([(rent, "100.00")]))
        db_session.rollback()
        monkeypatch.undo()

        result = service.reconcile("key-1", reconcile_request([(rent, "100.00")]))
        db_session.commit()

        assert result.replayed is False
        assert str(load_raw(db_session, rent).allocated_amount) == "100.0000"
