"""
Concurrent reconciliation against the same raw transaction.

Two sessions on two threads each try to allocate 30.00 against
a raw transaction with 50.00 remaining. Exactly one may win.
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime

from sqlalchemy import func, select

from ledger_engine.errors import OverAllocated
from ledger_engine.models.enums import AccountType, EntryType, ReconciliationStatus
from ledger_engine.models.journal_entry import JournalEntry
from ledger_engine.models.raw_transaction import RawTransaction
from ledger_engine.schemas.account import AccountCreate
from ledger_engine.schemas.journal import JournalLineCreate
from ledger_engine.schemas.raw_transaction import ImportRequest, RawTransactionInput
from ledger_engine.schemas.reconciliation import AllocationInput, ReconcileRequest
from ledger_engine.services.account_directory import AccountDirectory
from ledger_engine.services.import_service import ImportService
from ledger_engine.services.reconciliation_service import ReconciliationService


def seed(session_factory):
    with session_factory() as session:
        directory = AccountDirectory(session)
        directory.create_account(AccountCreate(
            code="1100", name="Bank", account_type=AccountType.ASSET,
        ))
        directory.create_account(AccountCreate(
            code="6100", name="Fees", account_type=AccountType.EXPENSE,
        ))
        ImportService(session).import_transactions(ImportRequest(
            source="bank-feed",
            account_code="1100",
            transactions=[RawTransactionInput(
                external_id="fee-1",
                occurred_at=datetime(2026, 2, 1),
                amount="-50.00",
                currency_code="USD",
            )],
        ))
        session.commit()
        return session.execute(select(RawTransaction.id)).scalar_one()


def thirty_against(raw_id):
    return ReconcileRequest(
        entry_date=date(2026, 2, 3),
        allocations=[AllocationInput(raw_transaction_id=raw_id, amount_applied="30.00")],
        journal_lines=[
            JournalLineCreate(account_code="6100", type=EntryType.DEBIT, amount="30.00"),
            JournalLineCreate(account_code="1100", type=EntryType.CREDIT, amount="30.00"),
        ],
    )


class TestConcurrentAllocation:

    def test_only_one_of_two_racing_allocations_succeeds(self, session_factory):
        raw_id = seed(session_factory)
        barrier = threading.Barrier(2)

        def attempt(key):
            session = session_factory()
            try:
                barrier.wait(timeout=5)
                ReconciliationService(session).reconcile(key, thirty_against(raw_id))
                session.commit()
                return "ok"
            except OverAllocated:
                session.rollback()
                return "over_allocated"
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=2) as pool:
            outcomes = sorted(pool.map(attempt, ["race-a", "race-b"]))

        assert outcomes == ["ok", "over_allocated"]

        with session_factory() as session:
            raw = session.get(RawTransaction, raw_id)
            assert str(raw.allocated_amount) == "30.0000"
            assert raw.reconciliation_status == ReconciliationStatus.PARTIALLY_RECONCILED
            assert session.scalar(
                select(func.count()).select_from(JournalEntry)
            ) == 1
