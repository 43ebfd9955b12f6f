"""
Chart of accounts endpoints.

The API layer is thin: it commits or rolls back and wraps the
result in the success envelope. All rules live in
AccountDirectory.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ledger_engine.api.auth import require_token
from ledger_engine.database import get_db
from ledger_engine.schemas.account import (
    AccountCreate,
    AccountResponse,
    AccountsBatchCreate,
)
from ledger_engine.schemas.common import SuccessResponse
from ledger_engine.services.account_directory import AccountDirectory

router = APIRouter(
    prefix="/accounts",
    tags=["Accounts"],
    dependencies=[Depends(require_token)],
)


@router.get("", response_model=SuccessResponse[list[AccountResponse]])
def list_accounts(
    include_inactive: bool = Query(default=True, alias="includeInactive"),
    db: Session = Depends(get_db),
):
    accounts = AccountDirectory(db).list_accounts(include_inactive)
    return SuccessResponse(
        data=[AccountResponse.model_validate(a) for a in accounts]
    )


@router.post(
    "", response_model=SuccessResponse[AccountResponse], status_code=201
)
def create_account(request: AccountCreate, db: Session = Depends(get_db)):
    """
    Create a single account.

    Answers 409 DUPLICATE_ACCOUNT_CODE if an active account
    already uses the code.
    """
    directory = AccountDirectory(db)
    try:
        account = directory.create_account(request)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return SuccessResponse(data=AccountResponse.model_validate(account))


@router.post(
    "/batch",
    response_model=SuccessResponse[list[AccountResponse]],
    status_code=201,
)
def create_accounts(request: AccountsBatchCreate, db: Session = Depends(get_db)):
    """Create several accounts in one transaction."""
    directory = AccountDirectory(db)
    try:
        accounts = directory.create_accounts(request)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return SuccessResponse(
        data=[AccountResponse.model_validate(a) for a in accounts]
    )
