"""
Pydantic schemas for reconciliation.
"""

import uuid
from datetime import date

from pydantic import Field

from ledger_engine.money import UNSIGNED_AMOUNT_PATTERN
from ledger_engine.schemas.common import CamelModel
from ledger_engine.schemas.journal import JournalLineCreate


class AllocationInput(CamelModel):
    """Apply amount_applied of a new entry toward one raw transaction."""
    raw_transaction_id: uuid.UUID
    amount_applied: str = Field(pattern=UNSIGNED_AMOUNT_PATTERN)


class ReconcileRequest(CamelModel):
    entry_date: date
    memo: str | None = Field(default=None, max_length=1000)
    source_type: str | None = Field(default=None, max_length=100)
    source_ref: str | None = Field(default=None, max_length=200)
    created_by: str | None = Field(default=None, max_length=100)
    allocations: list[AllocationInput] = Field(min_length=1)
    journal_lines: list[JournalLineCreate] = Field(min_length=2)


class ReconciliationResult(CamelModel):
    """
    Outcome of a reconciliation.

    replayed is True when the result was served from the
    idempotency record of an earlier identical request.
    """
    journal_entry_id: uuid.UUID
    journal_number: str
    allocation_count: int
    reconciled_transaction_ids: list[uuid.UUID]
    replayed: bool = False
