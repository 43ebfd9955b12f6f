"""
Reconciliation service: matches raw transactions to a new
journal entry.

One reconciliation posts one balanced journal entry and applies
parts of it to one or more raw transactions. The rules:
1. A request carries an idempotency key; the same key is
   processed at most once
2. Every allocation is positive and never pushes a raw
   transaction past abs(amount)
3. All checks finish before the first write
4. The journal entry, the allocation rows, the raw transaction
   updates and the idempotency record share one transaction

Allocated totals are written with a compare-and-swap UPDATE, so
two requests racing on the same raw transaction cannot both
succeed when only one fits. On PostgreSQL the rows are also
locked with SELECT ... FOR UPDATE.
"""

import hashlib
import json
import uuid
from dataclasses import dataclass

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_engine.database import is_unique_violation
from ledger_engine.errors import (
    IdempotencyConflict,
    IdempotencyRequired,
    InternalError,
    OverAllocated,
    TransactionNotFound,
    ValidationFailed,
)
from ledger_engine.logging_config import get_logger
from ledger_engine.models.raw_transaction import (
    RawTransaction,
    reconciliation_status_for,
)
from ledger_engine.models.reconciliation import (
    IdempotencyRecord,
    ReconciliationAllocation,
)
from ledger_engine.money import Money
from ledger_engine.schemas.reconciliation import (
    ReconcileRequest,
    ReconciliationResult,
)
from ledger_engine.services.journal_service import JournalService

logger = get_logger("services.reconciliation")

DEFAULT_SOURCE_TYPE = "reconciliation"


@dataclass
class _Allocation:
    raw_transaction_id: uuid.UUID
    amount: Money


def request_fingerprint(request: ReconcileRequest) -> str:
    """SHA-256 of the request in a canonical JSON form."""
    canonical = json.dumps(
        request.model_dump(mode="json"),
        sort_keys=True,
        separators=(",", ":"),
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class ReconciliationService:

    def __init__(self, db: Session):
        self.db = db
        self.journal_service = JournalService(db)

    def reconcile(
        self, idempotency_key: str | None, request: ReconcileRequest
    ) -> ReconciliationResult:
        """
        Post a journal entry and allocate it to raw transactions.

        A request repeating an earlier key with the same payload
        returns the stored result with replayed=True and writes
        nothing. The same key with a different payload raises
        IdempotencyConflict.

        Raises, in order of precedence: IdempotencyRequired,
        ValidationFailed, UnbalancedEntry, MissingAccount,
        TransactionNotFound, OverAllocated.
        """
        if idempotency_key is None or not idempotency_key.strip():
            raise IdempotencyRequired()

        if not request.allocations:
            raise ValidationFailed("At least one allocation is required")
        if len(request.journal_lines) < 2:
            raise ValidationFailed("A journal entry needs at least two lines")

        allocations = self._parse_allocations(request)
        request_hash = request_fingerprint(request)

        existing = self.db.get(IdempotencyRecord, idempotency_key)
        if existing is not None:
            return self._replay(existing, request_hash)

        account_ids = self.journal_service.check_lines(request.journal_lines)
        raws = self._load_and_check(allocations)

        entry = self.journal_service.write_entry(
            entry_date=request.entry_date,
            memo=request.memo,
            source_type=request.source_type or DEFAULT_SOURCE_TYPE,
            source_ref=request.source_ref or idempotency_key,
            created_by=request.created_by,
            lines=request.journal_lines,
            account_ids=account_ids,
        )

        for item in request.allocations:
            self.db.add(ReconciliationAllocation(
                journal_entry_id=entry.id,
                raw_transaction_id=item.raw_transaction_id,
                amount_applied=Money.parse(item.amount_applied, signed=False),
            ))

        try:
            self.db.flush()
            for allocation in allocations:
                self._apply_allocation(
                    raws[allocation.raw_transaction_id], allocation
                )
        except SQLAlchemyError as exc:
            raise InternalError(
                f"Failed to apply allocations for {entry.journal_number}: {exc}"
            ) from exc

        reconciled_ids = [a.raw_transaction_id for a in allocations]

        self.db.add(IdempotencyRecord(
            idempotency_key=idempotency_key,
            request_hash=request_hash,
            journal_entry_id=entry.id,
            journal_number=entry.journal_number,
            allocation_count=len(request.allocations),
            reconciled_transaction_ids=[str(i) for i in reconciled_ids],
        ))
        try:
            self.db.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise IdempotencyConflict(
                    idempotency_key,
                    "Another request with this idempotency key completed first",
                ) from exc
            raise InternalError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise InternalError(f"Failed to store idempotency record: {exc}") from exc

        logger.info(
            "reconciliation_applied",
            extra={
                "idempotency_key": idempotency_key,
                "journal_entry_id": entry.id,
                "journal_number": entry.journal_number,
                "allocation_count": len(request.allocations),
                "raw_transaction_ids": reconciled_ids,
            },
        )

        return ReconciliationResult(
            journal_entry_id=entry.id,
            journal_number=entry.journal_number,
            allocation_count=len(request.allocations),
            reconciled_transaction_ids=reconciled_ids,
        )

    def _replay(
        self, record: IdempotencyRecord, request_hash: str
    ) -> ReconciliationResult:
        if record.request_hash != request_hash:
            raise IdempotencyConflict(
                record.idempotency_key,
                "Idempotency key was already used with a different request",
            )

        logger.info(
            "reconciliation_replayed",
            extra={
                "idempotency_key": record.idempotency_key,
                "journal_entry_id": record.journal_entry_id,
            },
        )
        return ReconciliationResult(
            journal_entry_id=record.journal_entry_id,
            journal_number=record.journal_number,
            allocation_count=record.allocation_count,
            reconciled_transaction_ids=[
                uuid.UUID(i) for i in record.reconciled_transaction_ids
            ],
            replayed=True,
        )

    def _parse_allocations(self, request: ReconcileRequest) -> list[_Allocation]:
        """
        Parse allocation amounts and fold repeats of the same raw
        transaction into one, keeping first-seen order.
        """
        merged: dict[uuid.UUID, _Allocation] = {}
        for item in request.allocations:
            amount = Money.parse(item.amount_applied, signed=False)
            if not amount.is_positive():
                raise ValidationFailed(
                    f"Allocation amount must be positive: {item.amount_applied}"
                )
            if item.raw_transaction_id in merged:
                merged[item.raw_transaction_id].amount += amount
            else:
                merged[item.raw_transaction_id] = _Allocation(
                    item.raw_transaction_id, amount
                )
        return list(merged.values())

    def _load_and_check(
        self, allocations: list[_Allocation]
    ) -> dict[uuid.UUID, RawTransaction]:
        """
        Lock and load every raw transaction, then check bounds.

        Every id is confirmed to exist before any bound is
        checked, so a missing id outranks an over-allocation.
        """
        ids = [a.raw_transaction_id for a in allocations]

        # Ordered by id so concurrent requests lock rows in the same order
        rows = self.db.execute(
            select(RawTransaction)
            .where(RawTransaction.id.in_(ids))
            .order_by(RawTransaction.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        raws = {raw.id: raw for raw in rows}

        for raw_id in ids:
            if raw_id not in raws:
                raise TransactionNotFound(raw_id)

        for allocation in allocations:
            raw = raws[allocation.raw_transaction_id]
            remaining = raw.remaining_amount
            if allocation.amount > remaining:
                self._reject(raw.id, remaining, allocation.amount)

        return raws

    def _apply_allocation(
        self, raw: RawTransaction, allocation: _Allocation
    ) -> None:
        """
        Add the allocation to the raw transaction's total.

        The UPDATE only matches if allocated_amount still holds
        the value this request observed. On a miss the current
        value is re-read and the bound checked again.
        """
        limit = abs(raw.amount)
        observed = raw.allocated_amount

        while True:
            new_total = observed + allocation.amount
            if new_total > limit:
                self._reject(raw.id, limit - observed, allocation.amount)

            result = self.db.execute(
                update(RawTransaction)
                .where(
                    RawTransaction.id == raw.id,
                    RawTransaction.allocated_amount == observed,
                )
                .values(
                    allocated_amount=new_total,
                    reconciliation_status=reconciliation_status_for(
                        new_total, raw.amount
                    ),
                )
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 1:
                break

            observed = self.db.execute(
                select(RawTransaction.allocated_amount)
                .where(RawTransaction.id == raw.id)
            ).scalar_one()

        self.db.expire(raw)

    def _reject(self, raw_id: uuid.UUID, remaining: Money, requested: Money):
        logger.warning(
            "allocation_rejected",
            extra={
                "raw_transaction_id": raw_id,
                "remaining": str(remaining),
                "requested": str(requested),
            },
        )
        raise OverAllocated(raw_id, str(remaining), str(requested))
