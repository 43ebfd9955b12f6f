"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from ledger_engine.models.base import Base, MoneyType
from ledger_engine.models.enums import (
    AccountType,
    EntryType,
    JournalStatus,
    ReconciliationStatus,
)
from ledger_engine.models.account import Account, EXPECTED_NORMAL_SIDE
from ledger_engine.models.journal_entry import JournalEntry, JournalLine
from ledger_engine.models.raw_transaction import (
    ImportBatch,
    RawTransaction,
    reconciliation_status_for,
)
from ledger_engine.models.reconciliation import (
    IdempotencyRecord,
    ReconciliationAllocation,
)

__all__ = [
    "Base",
    "MoneyType",
    "AccountType",
    "EntryType",
    "JournalStatus",
    "ReconciliationStatus",
    "Account",
    "EXPECTED_NORMAL_SIDE",
    "JournalEntry",
    "JournalLine",
    "ImportBatch",
    "RawTransaction",
    "reconciliation_status_for",
    "IdempotencyRecord",
    "ReconciliationAllocation",
]
