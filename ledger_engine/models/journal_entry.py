"""
Journal entry and journal line models.

A journal entry is a header plus two or more lines whose debit
total equals its credit total. Entries are immutable: once
posted, they are never modified or deleted.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import (
    String, Date, DateTime, Integer, ForeignKey, UniqueConstraint,
    Enum as SAEnum, Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_engine.models.base import Base, MoneyType
from ledger_engine.models.enums import EntryType, JournalStatus
from ledger_engine.money import Money


class JournalEntry(Base):
    """
    The header of a posted journal entry.

    The balance invariant is enforced by the JournalService
    before anything is written, not by the model.
    """

    __tablename__ = "journal_entries"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    journal_number: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False
    )
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[JournalStatus] = mapped_column(
        SAEnum(JournalStatus, name="journal_status_enum"),
        nullable=False,
        default=JournalStatus.POSTED,
    )
    memo: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    source_type: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    source_ref: Mapped[str | None] = mapped_column(
        String(200), nullable=True
    )
    created_by: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    lines: Mapped[list["JournalLine"]] = relationship(
        back_populates="journal_entry",
        order_by="JournalLine.line_number",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<JournalEntry {self.journal_number} ({self.status.value})>"


class JournalLine(Base):
    """One debit or credit line, owned by exactly one entry."""

    __tablename__ = "journal_entry_lines"
    __table_args__ = (
        UniqueConstraint(
            "journal_entry_id", "line_number",
            name="uq_journal_entry_lines_number",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    journal_entry_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("journal_entries.id"), nullable=False, index=True
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False)
    account_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("chart_of_accounts.id"), nullable=False, index=True
    )
    line_type: Mapped[EntryType] = mapped_column(
        SAEnum(EntryType, name="entry_type_enum"),
        nullable=False,
    )
    amount: Mapped[Money] = mapped_column(MoneyType, nullable=False)
    currency_code: Mapped[str] = mapped_column(
        String(3), nullable=False, default="USD"
    )
    description: Mapped[str | None] = mapped_column(
        String(500), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    journal_entry: Mapped[JournalEntry] = relationship(back_populates="lines")
    account: Mapped["Account"] = relationship()

    def __repr__(self) -> str:
        return (
            f"<JournalLine {self.line_number} {self.line_type.value} "
            f"{self.amount} {self.currency_code}>"
        )
