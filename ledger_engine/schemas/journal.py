"""
Pydantic schemas for journal entries.

Amounts travel as decimal strings with at most four fractional
digits. The schemas reject malformed input at the boundary; the
services parse the same strings again with Money and do not rely
on these checks.
"""

import uuid
from datetime import date

from pydantic import ConfigDict, Field, field_validator

from ledger_engine.models.enums import EntryType, JournalStatus
from ledger_engine.money import UNSIGNED_AMOUNT_PATTERN
from ledger_engine.schemas.common import CamelModel


# --- Request Schemas ---

class JournalLineCreate(CamelModel):
    """A single debit or credit line."""
    account_code: str = Field(min_length=1, max_length=20)
    type: EntryType
    amount: str = Field(pattern=UNSIGNED_AMOUNT_PATTERN)
    description: str | None = Field(default=None, max_length=500)


class JournalEntryCreate(CamelModel):
    """A complete entry: two or more lines that must balance."""
    entry_date: date
    memo: str | None = Field(default=None, max_length=1000)
    source_type: str | None = Field(default=None, max_length=100)
    source_ref: str | None = Field(default=None, max_length=200)
    created_by: str | None = Field(default=None, max_length=100)
    lines: list[JournalLineCreate] = Field(min_length=2)


# --- Response Schemas ---

class PostedJournal(CamelModel):
    journal_entry_id: uuid.UUID
    journal_number: str


class JournalLineResponse(CamelModel):
    line_number: int
    account_id: uuid.UUID
    line_type: EntryType
    amount: str
    currency_code: str
    description: str | None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("amount", mode="before")
    @classmethod
    def format_amount(cls, v) -> str:
        return str(v)


class JournalEntryResponse(CamelModel):
    id: uuid.UUID
    journal_number: str
    entry_date: date
    status: JournalStatus
    memo: str | None
    source_type: str | None
    source_ref: str | None
    created_by: str | None
    lines: list[JournalLineResponse]

    model_config = ConfigDict(from_attributes=True)
