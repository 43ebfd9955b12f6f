"""
Journal service: posts balanced journal entries.

This service enforces the posting rules:
1. An entry has at least two lines with positive amounts
2. Total debits equal total credits, exactly
3. Every referenced account exists and is active
4. Header and lines are written together or not at all

Checks run before anything is written. The service only
flushes; the caller owns the transaction and decides when to
commit or roll back.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ledger_engine.database import is_unique_violation
from ledger_engine.errors import (
    InternalError,
    JournalEntryNotFound,
    JournalNumberCollision,
    ValidationFailed,
)
from ledger_engine.logging_config import get_logger
from ledger_engine.models.enums import EntryType, JournalStatus
from ledger_engine.models.journal_entry import JournalEntry, JournalLine
from ledger_engine.money import Money
from ledger_engine.schemas.journal import (
    JournalEntryCreate,
    JournalLineCreate,
    PostedJournal,
)
from ledger_engine.services.account_directory import AccountDirectory
from ledger_engine.services.balance import validate_balanced

logger = get_logger("services.journal")

# Only one currency is posted in this ledger.
JOURNAL_CURRENCY = "USD"
DEFAULT_SOURCE_TYPE = "api"


def generate_journal_number(now: datetime | None = None) -> str:
    """
    Build a journal number like JRN-20260222-3F9A1C0B.

    The suffix is random, so there is no shared counter. The
    unique constraint on journal_number catches the rare clash.
    """
    now = now or datetime.now(timezone.utc)
    suffix = uuid.uuid4().hex[:8].upper()
    return f"JRN-{now:%Y%m%d}-{suffix}"


class JournalService:

    def __init__(self, db: Session):
        self.db = db
        self.accounts = AccountDirectory(db)

    def post_entry(self, request: JournalEntryCreate) -> PostedJournal:
        """
        Post a balanced journal entry.

        Raises ValidationFailed, InvalidAmountFormat,
        UnbalancedEntry or MissingAccount before any write.
        """
        account_ids = self.check_lines(request.lines)

        entry = self.write_entry(
            entry_date=request.entry_date,
            memo=request.memo,
            source_type=request.source_type or DEFAULT_SOURCE_TYPE,
            source_ref=request.source_ref,
            created_by=request.created_by,
            lines=request.lines,
            account_ids=account_ids,
        )

        return PostedJournal(
            journal_entry_id=entry.id,
            journal_number=entry.journal_number,
        )

    def check_lines(
        self, lines: Sequence[JournalLineCreate]
    ) -> dict[str, uuid.UUID]:
        """
        Validate a line set without writing anything.

        Order matters: shape first, then balance, then the
        account lookup. Returns account ids keyed by code.
        """
        if len(lines) < 2:
            raise ValidationFailed("A journal entry needs at least two lines")

        for line in lines:
            if not line.account_code:
                raise ValidationFailed("Every line needs an account code")
            if not Money.parse(line.amount, signed=False).is_positive():
                raise ValidationFailed(
                    f"Line amount must be positive: {line.amount}"
                )

        validate_balanced(lines)

        return self.accounts.resolve_many(line.account_code for line in lines)

    def write_entry(
        self,
        *,
        entry_date: date,
        memo: str | None,
        source_type: str | None,
        source_ref: str | None,
        created_by: str | None,
        lines: Sequence[JournalLineCreate],
        account_ids: dict[str, uuid.UUID],
    ) -> JournalEntry:
        """
        Insert the header and its lines.

        Expects lines already passed through check_lines().
        Line numbers run 1..N in input order.
        """
        entry = JournalEntry(
            journal_number=generate_journal_number(),
            entry_date=entry_date,
            status=JournalStatus.POSTED,
            memo=memo,
            source_type=source_type,
            source_ref=source_ref,
            created_by=created_by,
            lines=[],
        )
        self.db.add(entry)

        # Header first, on its own, so a clash can only be the number
        try:
            self.db.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise JournalNumberCollision(entry.journal_number) from exc
            raise InternalError(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise InternalError(f"Failed to write journal header: {exc}") from exc

        for line_number, line in enumerate(lines, start=1):
            entry.lines.append(JournalLine(
                line_number=line_number,
                account_id=account_ids[line.account_code],
                line_type=EntryType(line.type),
                amount=Money.parse(line.amount, signed=False),
                currency_code=JOURNAL_CURRENCY,
                description=line.description,
            ))

        try:
            self.db.flush()
        except SQLAlchemyError as exc:
            raise InternalError(
                f"Failed to write lines for {entry.journal_number}: {exc}"
            ) from exc

        logger.info(
            "journal_posted",
            extra={
                "journal_entry_id": entry.id,
                "journal_number": entry.journal_number,
                "line_count": len(entry.lines),
                "source_type": source_type,
            },
        )
        return entry

    def get_entry(self, journal_entry_id: uuid.UUID) -> JournalEntry:
        """Load an entry with its lines."""
        entry = self.db.execute(
            select(JournalEntry)
            .where(JournalEntry.id == journal_entry_id)
            .options(selectinload(JournalEntry.lines))
        ).scalar_one_or_none()

        if entry is None:
            raise JournalEntryNotFound(journal_entry_id)
        return entry
