"""
Reconciliation models.

An allocation row links one raw transaction to the journal
entry that reconciled (part of) it. An idempotency record
remembers the outcome of a reconciliation request so that a
retried request with the same key has no second effect.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, String, DateTime, Integer, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_engine.models.base import Base, MoneyType
from ledger_engine.money import Money


class ReconciliationAllocation(Base):
    """Amount applied from one journal entry to one raw transaction."""

    __tablename__ = "reconciliation_allocations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    journal_entry_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    raw_transaction_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("raw_transactions.id"), nullable=False, index=True
    )
    amount_applied: Mapped[Money] = mapped_column(MoneyType, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    journal_entry: Mapped["JournalEntry"] = relationship()
    raw_transaction: Mapped["RawTransaction"] = relationship()

    def __repr__(self) -> str:
        return f"<ReconciliationAllocation {self.amount_applied}>"


class IdempotencyRecord(Base):
    """
    Outcome of a completed reconciliation, keyed by the client's key.

    The primary key on idempotency_key is what stops two requests
    with the same key from both committing.
    """

    __tablename__ = "idempotency_records"

    idempotency_key: Mapped[str] = mapped_column(
        String(200), primary_key=True
    )
    request_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    journal_entry_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False
    )
    journal_number: Mapped[str] = mapped_column(String(32), nullable=False)
    allocation_count: Mapped[int] = mapped_column(Integer, nullable=False)
    reconciled_transaction_ids: Mapped[list[str]] = mapped_column(
        JSON, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<IdempotencyRecord {self.idempotency_key}>"
