"""
Import service: loads raw transactions from external sources.

An import is idempotent by skipping, not atomic by batch: every
row is inserted in its own savepoint, and a row whose
(source, external_id) already exists is counted as a duplicate
instead of failing the import. Re-running the same file is safe
and reports how many rows were new. Any other database failure
aborts the whole import.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_engine.database import is_unique_violation
from ledger_engine.errors import (
    DuplicateExternalId,
    InternalError,
    TransactionNotFound,
    ValidationFailed,
)
from ledger_engine.logging_config import get_logger
from ledger_engine.models.enums import ReconciliationStatus
from ledger_engine.models.raw_transaction import ImportBatch, RawTransaction
from ledger_engine.money import Money
from ledger_engine.schemas.raw_transaction import (
    ImportRequest,
    ImportResult,
    RawTransactionInput,
)
from ledger_engine.services.account_directory import AccountDirectory

logger = get_logger("services.import")


@dataclass(frozen=True)
class _ParsedRow:
    external_id: str
    occurred_at: datetime
    description: str | None
    amount: Money
    currency_code: str
    metadata: dict[str, Any]


def _to_utc_naive(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class ImportService:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountDirectory(db)

    def import_transactions(self, request: ImportRequest) -> ImportResult:
        """
        Import a batch of raw transactions into one account.

        Raises MissingAccount before creating the batch if the
        account code does not resolve.
        """
        if not request.source:
            raise ValidationFailed("source is required")
        if not request.transactions:
            raise ValidationFailed("At least one transaction is required")

        rows = [self._parse_row(item) for item in request.transactions]
        account_id = self.accounts.resolve(request.account_code)

        batch = ImportBatch(
            source=request.source,
            account_id=account_id,
            file_name=request.file_name,
            row_count=len(rows),
            created_by=request.created_by,
        )
        self.db.add(batch)
        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            raise InternalError(f"Failed to create import batch: {exc}") from exc

        inserted_count = 0
        duplicate_count = 0

        for row in rows:
            try:
                self._insert_row(request, row, account_id, batch.id)
            except DuplicateExternalId as dup:
                duplicate_count += 1
                logger.debug(
                    "raw_transaction_duplicate_skipped",
                    extra={"source": dup.source, "external_id": dup.external_id},
                )
                continue
            inserted_count += 1

        logger.info(
            "import_finished",
            extra={
                "import_batch_id": batch.id,
                "source": request.source,
                "account_code": request.account_code,
                "attempted_count": len(rows),
                "inserted_count": inserted_count,
                "duplicate_count": duplicate_count,
            },
        )

        return ImportResult(
            import_batch_id=batch.id,
            account_id=account_id,
            attempted_count=len(rows),
            inserted_count=inserted_count,
            duplicate_count=duplicate_count,
        )

    def get_raw_transaction(self, raw_transaction_id: uuid.UUID) -> RawTransaction:
        raw = self.db.get(RawTransaction, raw_transaction_id)
        if raw is None:
            raise TransactionNotFound(raw_transaction_id)
        return raw

    def list_raw_transactions(
        self,
        account_code: str | None = None,
        status: ReconciliationStatus | None = None,
    ) -> list[RawTransaction]:
        """Return raw transactions, oldest first, optionally filtered."""
        query = select(RawTransaction).order_by(
            RawTransaction.occurred_at, RawTransaction.external_id
        )
        if account_code is not None:
            query = query.where(
                RawTransaction.account_id == self.accounts.resolve(account_code)
            )
        if status is not None:
            query = query.where(RawTransaction.reconciliation_status == status)
        return list(self.db.execute(query).scalars().all())

    def _parse_row(self, item: RawTransactionInput) -> _ParsedRow:
        if not item.external_id or not item.external_id.strip():
            raise ValidationFailed("externalId must not be empty")

        currency = (item.currency_code or "").strip()
        if len(currency) != 3:
            raise ValidationFailed(
                f"currencyCode must be three characters: {item.currency_code!r}"
            )

        return _ParsedRow(
            external_id=item.external_id,
            occurred_at=_to_utc_naive(item.occurred_at),
            description=item.description,
            amount=Money.parse(item.amount, signed=True),
            currency_code=currency.upper(),
            metadata=dict(item.metadata or {}),
        )

    def _insert_row(
        self,
        request: ImportRequest,
        row: _ParsedRow,
        account_id: uuid.UUID,
        batch_id: uuid.UUID,
    ) -> None:
        """Insert one row inside a savepoint; a clash rolls back only this row."""
        try:
            with self.db.begin_nested():
                self.db.add(RawTransaction(
                    source=request.source,
                    external_id=row.external_id,
                    occurred_at=row.occurred_at,
                    description=row.description,
                    amount=row.amount,
                    currency_code=row.currency_code,
                    meta=row.metadata,
                    account_id=account_id,
                    import_batch_id=batch_id,
                    allocated_amount=Money.zero(),
                    reconciliation_status=ReconciliationStatus.UNRECONCILED,
                    created_by=request.created_by,
                ))
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateExternalId(request.source, row.external_id) from exc
            raise InternalError(f"Failed to import {row.external_id}: {exc.orig}") from exc
        except SQLAlchemyError as exc:
            raise InternalError(f"Failed to import {row.external_id}: {exc}") from exc
