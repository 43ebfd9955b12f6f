"""
Raw transaction and import batch models.

Raw transactions come from outside the ledger (bank feeds,
card exports) and wait to be reconciled against journal
entries. Each import call groups its rows under one batch.

The reconciliation status is never chosen freely: it is a
function of how much of the transaction has been allocated.
"""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON, String, DateTime, Integer, ForeignKey, UniqueConstraint,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_engine.models.base import Base, MoneyType
from ledger_engine.models.enums import ReconciliationStatus
from ledger_engine.money import Money


def reconciliation_status_for(
    allocated_amount: Money, amount: Money
) -> ReconciliationStatus:
    """Derive the status from the allocated total and the signed amount."""
    if allocated_amount.is_zero():
        return ReconciliationStatus.UNRECONCILED
    if allocated_amount < abs(amount):
        return ReconciliationStatus.PARTIALLY_RECONCILED
    return ReconciliationStatus.FULLY_RECONCILED


class ImportBatch(Base):
    """Traceability record for one import call. Never updated."""

    __tablename__ = "import_batches"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    source: Mapped[str] = mapped_column(String(100), nullable=False)
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("chart_of_accounts.id"), nullable=False, index=True
    )
    file_name: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    row_count: Mapped[int] = mapped_column(Integer, nullable=False)
    created_by: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<ImportBatch {self.source} rows={self.row_count}>"


class RawTransaction(Base):
    """
    An externally sourced transaction awaiting reconciliation.

    Invariant: 0 <= allocated_amount <= abs(amount). Only the
    ReconciliationService writes allocated_amount, and only
    upwards.
    """

    __tablename__ = "raw_transactions"
    __table_args__ = (
        UniqueConstraint(
            "source", "external_id",
            name="uq_raw_transactions_source_external_id",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    source: Mapped[str] = mapped_column(String(100), nullable=False)
    external_id: Mapped[str] = mapped_column(String(200), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    description: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    amount: Mapped[Money] = mapped_column(MoneyType, nullable=False)
    currency_code: Mapped[str] = mapped_column(String(3), nullable=False)
    # "metadata" is reserved on declarative classes
    meta: Mapped[dict[str, Any]] = mapped_column(
        "metadata", JSON, nullable=False, default=dict
    )
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("chart_of_accounts.id"), nullable=False, index=True
    )
    import_batch_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("import_batches.id"), nullable=False, index=True
    )
    allocated_amount: Mapped[Money] = mapped_column(
        MoneyType, nullable=False, default=Money(0)
    )
    reconciliation_status: Mapped[ReconciliationStatus] = mapped_column(
        SAEnum(
            ReconciliationStatus,
            name="reconciliation_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=ReconciliationStatus.UNRECONCILED,
    )
    created_by: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    import_batch: Mapped[ImportBatch] = relationship()

    @property
    def remaining_amount(self) -> Money:
        return abs(self.amount) - self.allocated_amount

    def __repr__(self) -> str:
        return (
            f"<RawTransaction {self.source}/{self.external_id} "
            f"{self.amount} ({self.reconciliation_status.value})>"
        )
