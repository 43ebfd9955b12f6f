"""
Pydantic schemas for raw transaction imports.
"""

import uuid
from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from ledger_engine.models.enums import ReconciliationStatus
from ledger_engine.money import SIGNED_AMOUNT_PATTERN
from ledger_engine.schemas.common import CamelModel


class RawTransactionInput(CamelModel):
    """One row of an imported file. Negative amounts are outflows."""
    external_id: str = Field(min_length=1, max_length=200)
    occurred_at: datetime
    description: str | None = Field(default=None, max_length=500)
    amount: str = Field(pattern=SIGNED_AMOUNT_PATTERN)
    currency_code: str = Field(min_length=3, max_length=3)
    metadata: dict[str, Any] = Field(default_factory=dict)


class ImportRequest(CamelModel):
    source: str = Field(min_length=1, max_length=100)
    account_code: str = Field(min_length=1, max_length=20)
    file_name: str | None = Field(default=None, max_length=255)
    created_by: str | None = Field(default=None, max_length=100)
    transactions: list[RawTransactionInput] = Field(min_length=1)


class ImportResult(CamelModel):
    import_batch_id: uuid.UUID
    account_id: uuid.UUID
    attempted_count: int
    inserted_count: int
    duplicate_count: int


class RawTransactionResponse(CamelModel):
    id: uuid.UUID
    source: str
    external_id: str
    occurred_at: datetime
    description: str | None
    amount: str
    currency_code: str
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="meta")
    account_id: uuid.UUID
    import_batch_id: uuid.UUID
    allocated_amount: str
    reconciliation_status: ReconciliationStatus

    model_config = ConfigDict(from_attributes=True)

    @field_validator("amount", "allocated_amount", mode="before")
    @classmethod
    def format_amount(cls, v) -> str:
        return str(v)
