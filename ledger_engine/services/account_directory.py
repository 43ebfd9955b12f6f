"""
Account directory: the chart of accounts as the rest of the
engine sees it.

Lookups are by code, exact and case-sensitive, and only ever
match active accounts. Batch resolution reports every missing
code in one error so callers never have to loop.
"""

import uuid
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_engine.database import is_unique_violation
from ledger_engine.errors import (
    ContraConfirmationRequired,
    DuplicateAccountCode,
    InternalError,
    MissingAccount,
)
from ledger_engine.logging_config import get_logger
from ledger_engine.models.account import Account, EXPECTED_NORMAL_SIDE
from ledger_engine.models.enums import AccountType, EntryType
from ledger_engine.schemas.account import AccountCreate, AccountsBatchCreate

logger = get_logger("services.accounts")


class AccountDirectory:

    def __init__(self, db: Session):
        self.db = db

    @staticmethod
    def expected_normal_side(account_type: AccountType) -> EntryType:
        """The side an account of this type conventionally increases on."""
        return EXPECTED_NORMAL_SIDE[account_type]

    def resolve(self, code: str) -> uuid.UUID:
        """Return the id of the active account with this code."""
        return self.resolve_many([code])[code]

    def resolve_many(self, codes: Iterable[str]) -> dict[str, uuid.UUID]:
        """
        Resolve several codes with one query.

        Raises MissingAccount listing every code that has no
        active account, in the order the codes were given.
        """
        wanted = list(dict.fromkeys(codes))
        if not wanted:
            return {}

        rows = self.db.execute(
            select(Account.code, Account.id).where(
                Account.code.in_(wanted),
                Account.is_active.is_(True),
            )
        ).all()
        found = {code: account_id for code, account_id in rows}

        missing = [code for code in wanted if code not in found]
        if missing:
            raise MissingAccount(missing)

        return found

    def get_by_code(self, code: str) -> Account:
        account = self.db.execute(
            select(Account).where(
                Account.code == code,
                Account.is_active.is_(True),
            )
        ).scalar_one_or_none()

        if account is None:
            raise MissingAccount([code])
        return account

    def create_account(self, request: AccountCreate) -> Account:
        """
        Create a new account.

        Raises DuplicateAccountCode if an active account already
        uses the code, and ContraConfirmationRequired for a normal
        side against the type's convention without allow_contra.
        """
        existing = self.db.execute(
            select(Account.id).where(
                Account.code == request.code,
                Account.is_active.is_(True),
            )
        ).scalar_one_or_none()

        if existing is not None:
            raise DuplicateAccountCode(request.code)

        account = self._build(request, request.created_by)
        self.db.add(account)
        self._flush(request.code)
        self._log_created(account)
        return account

    def create_accounts(self, request: AccountsBatchCreate) -> list[Account]:
        """
        Create several accounts, all or nothing.

        A code repeated inside the batch is rejected the same way
        as a code that already exists.
        """
        codes = [item.code for item in request.accounts]
        seen: set[str] = set()
        for code in codes:
            if code in seen:
                raise DuplicateAccountCode(code)
            seen.add(code)

        taken = self.db.execute(
            select(Account.code).where(
                Account.code.in_(codes),
                Account.is_active.is_(True),
            )
        ).scalars().first()

        if taken is not None:
            raise DuplicateAccountCode(taken)

        accounts = [
            self._build(item, item.created_by or request.created_by)
            for item in request.accounts
        ]
        self.db.add_all(accounts)

        self._flush(", ".join(codes))
        for account in accounts:
            self._log_created(account)
        return accounts

    def list_accounts(self, include_inactive: bool = True) -> list[Account]:
        """Return accounts ordered by code."""
        query = select(Account).order_by(Account.code, Account.created_at)
        if not include_inactive:
            query = query.where(Account.is_active.is_(True))
        return list(self.db.execute(query).scalars().all())

    def deactivate(self, code: str) -> Account:
        """Deactivate an account. Its journal lines stay untouched."""
        account = self.get_by_code(code)
        account.is_active = False
        self.db.flush()
        logger.info("account_deactivated", extra={"account_code": code})
        return account

    def _build(self, request: AccountCreate, created_by: str | None) -> Account:
        expected = self.expected_normal_side(request.account_type)
        normal_side = request.normal_side or expected
        if normal_side != expected and not request.allow_contra:
            raise ContraConfirmationRequired(
                request.code, request.account_type.value, normal_side.value,
            )

        return Account(
            code=request.code,
            name=request.name,
            account_type=request.account_type,
            normal_side=normal_side,
            created_by=created_by,
        )

    def _flush(self, codes: str) -> None:
        # A concurrent insert of the same code loses on the unique index
        try:
            self.db.flush()
        except IntegrityError as exc:
            if is_unique_violation(exc):
                raise DuplicateAccountCode(codes) from exc
            raise InternalError(str(exc.orig)) from exc

    def _log_created(self, account: Account) -> None:
        logger.info(
            "account_created",
            extra={
                "account_code": account.code,
                "account_type": account.account_type.value,
                "normal_side": account.normal_side.value,
                "is_contra": account.is_contra,
            },
        )
