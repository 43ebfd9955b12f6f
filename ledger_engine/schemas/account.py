"""
Pydantic schemas for the chart of accounts.
"""

import uuid

from pydantic import ConfigDict, Field

from ledger_engine.models.enums import AccountType, EntryType
from ledger_engine.schemas.common import CamelModel


class AccountCreate(CamelModel):
    """
    Request to create an account.

    normal_side defaults to the side the account type
    conventionally increases on. A normal side against the type's
    convention makes a contra account and needs allow_contra=True.
    """
    code: str = Field(min_length=1, max_length=20)
    name: str = Field(min_length=1, max_length=200)
    account_type: AccountType
    normal_side: EntryType | None = None
    allow_contra: bool = False
    created_by: str | None = Field(default=None, max_length=100)


class AccountsBatchCreate(CamelModel):
    created_by: str | None = Field(default=None, max_length=100)
    accounts: list[AccountCreate] = Field(min_length=1)


class AccountResponse(CamelModel):
    id: uuid.UUID
    code: str
    name: str
    account_type: AccountType
    normal_side: EntryType
    is_active: bool
    is_contra: bool

    model_config = ConfigDict(from_attributes=True)
