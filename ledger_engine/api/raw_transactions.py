"""
Raw transaction import endpoints.

An import answers 200 even when every row was a duplicate; the
counts in the body say what happened.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledger_engine.api.auth import require_token
from ledger_engine.database import get_db
from ledger_engine.schemas.common import SuccessResponse
from ledger_engine.schemas.raw_transaction import (
    ImportRequest,
    ImportResult,
    RawTransactionResponse,
)
from ledger_engine.services.import_service import ImportService

router = APIRouter(
    prefix="/raw-transactions",
    tags=["Raw Transactions"],
    dependencies=[Depends(require_token)],
)


@router.post("/import", response_model=SuccessResponse[ImportResult])
def import_raw_transactions(
    request: ImportRequest,
    db: Session = Depends(get_db),
):
    service = ImportService(db)
    try:
        result = service.import_transactions(request)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return SuccessResponse(data=result)


@router.get(
    "/{raw_transaction_id}",
    response_model=SuccessResponse[RawTransactionResponse],
)
def get_raw_transaction(
    raw_transaction_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    raw = ImportService(db).get_raw_transaction(raw_transaction_id)
    return SuccessResponse(data=RawTransactionResponse.model_validate(raw))
