"""Business logic services."""

from ledger_engine.services.account_directory import AccountDirectory
from ledger_engine.services.journal_service import JournalService
from ledger_engine.services.import_service import ImportService
from ledger_engine.services.reconciliation_service import ReconciliationService

__all__ = [
    "AccountDirectory",
    "JournalService",
    "ImportService",
    "ReconciliationService",
]
