"""
Journal entry endpoints.
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ledger_engine.api.auth import require_token
from ledger_engine.database import get_db
from ledger_engine.schemas.common import SuccessResponse
from ledger_engine.schemas.journal import (
    JournalEntryCreate,
    JournalEntryResponse,
    PostedJournal,
)
from ledger_engine.services.journal_service import JournalService

router = APIRouter(
    prefix="/journal-entries",
    tags=["Journal"],
    dependencies=[Depends(require_token)],
)


@router.post("", response_model=SuccessResponse[PostedJournal], status_code=201)
def post_journal_entry(
    request: JournalEntryCreate,
    db: Session = Depends(get_db),
):
    """
    Post a balanced journal entry.

    Nothing is written unless debits equal credits and every
    account code resolves to an active account.
    """
    service = JournalService(db)
    try:
        posted = service.post_entry(request)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return SuccessResponse(data=posted)


@router.get(
    "/{journal_entry_id}",
    response_model=SuccessResponse[JournalEntryResponse],
)
def get_journal_entry(
    journal_entry_id: uuid.UUID,
    db: Session = Depends(get_db),
):
    entry = JournalService(db).get_entry(journal_entry_id)
    return SuccessResponse(data=JournalEntryResponse.model_validate(entry))
