"""
Reconciliation endpoint.

The Idempotency-Key header is required. A retry with the same
key and body answers 200 with the original result; the first
successful call answers 201.
"""

from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.orm import Session

from ledger_engine.api.auth import require_token
from ledger_engine.database import get_db
from ledger_engine.schemas.common import SuccessResponse
from ledger_engine.schemas.reconciliation import (
    ReconcileRequest,
    ReconciliationResult,
)
from ledger_engine.services.reconciliation_service import ReconciliationService

router = APIRouter(
    prefix="/reconciliations",
    tags=["Reconciliation"],
    dependencies=[Depends(require_token)],
)


@router.post(
    "",
    response_model=SuccessResponse[ReconciliationResult],
    status_code=201,
)
def reconcile(
    request: ReconcileRequest,
    response: Response,
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
):
    service = ReconciliationService(db)
    try:
        result = service.reconcile(idempotency_key, request)
        db.commit()
    except Exception:
        db.rollback()
        raise

    if result.replayed:
        response.status_code = 200
    return SuccessResponse(data=result)
