"""
Chart of accounts.

Journal lines and raw transactions are posted against these
accounts. Accounts are looked up by code, which is the stable
external key callers use.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    String, Boolean, DateTime, Index, Uuid,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from ledger_engine.models.base import Base
from ledger_engine.models.enums import AccountType, EntryType


# The side on which each account type conventionally increases.
# An account configured against its type's side is a contra account.
EXPECTED_NORMAL_SIDE: dict[AccountType, EntryType] = {
    AccountType.ASSET: EntryType.DEBIT,
    AccountType.EXPENSE: EntryType.DEBIT,
    AccountType.LIABILITY: EntryType.CREDIT,
    AccountType.EQUITY: EntryType.CREDIT,
    AccountType.REVENUE: EntryType.CREDIT,
}


class Account(Base):
    """
    A single account in the chart of accounts.

    An account is never deleted, only deactivated via
    is_active=False. Codes are unique among active accounts.
    """

    __tablename__ = "chart_of_accounts"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    code: Mapped[str] = mapped_column(String(20), nullable=False)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    account_type: Mapped[AccountType] = mapped_column(
        SAEnum(AccountType, name="account_type_enum"),
        nullable=False,
    )
    normal_side: Mapped[EntryType] = mapped_column(
        SAEnum(EntryType, name="normal_side_enum"),
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True
    )
    created_by: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    @property
    def is_contra(self) -> bool:
        return EXPECTED_NORMAL_SIDE[self.account_type] != self.normal_side

    def __repr__(self) -> str:
        return f"<Account {self.code} ({self.account_type.value})>"


# Codes stay unique among active accounts only, so a deactivated
# account's code can be reused.
Index(
    "uq_chart_of_accounts_active_code",
    Account.code,
    unique=True,
    postgresql_where=Account.is_active,
    sqlite_where=Account.is_active,
)
