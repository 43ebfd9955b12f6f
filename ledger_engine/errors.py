"""
Typed errors raised by the ledger engine.

Every error carries a machine-readable code, the HTTP status
the API layer should answer with, a human message, and an
optional details dict. Callers catch by type and read fields;
nothing ever parses the message text.

    AccountingError
    +-- ValidationFailed
    +-- InvalidAmountFormat
    +-- UnbalancedEntry
    +-- MissingAccount
    +-- DuplicateAccountCode
    +-- ContraConfirmationRequired
    +-- DuplicateExternalId
    +-- IdempotencyRequired
    +-- IdempotencyConflict
    +-- TransactionNotFound
    +-- JournalEntryNotFound
    +-- OverAllocated
    +-- Unauthorized
    +-- InternalError
        +-- JournalNumberCollision
"""

from typing import Any


class AccountingError(Exception):
    """Base class for every error the engine reports to callers."""

    code: str = "ACCOUNTING_ERROR"
    status_code: int = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


class ValidationFailed(AccountingError):
    """The request shape is wrong (missing lines, empty codes, ...)."""

    code = "VALIDATION_ERROR"
    status_code = 400


class InvalidAmountFormat(AccountingError):
    code = "INVALID_AMOUNT_FORMAT"
    status_code = 400

    def __init__(self, value: str):
        super().__init__(
            f"Invalid amount format: {value}",
            {"value": value},
        )
        self.value = value


class UnbalancedEntry(AccountingError):
    code = "UNBALANCED_ENTRY"
    status_code = 400

    def __init__(self, debit_total: str, credit_total: str):
        super().__init__(
            f"Entry is unbalanced: debits {debit_total} != credits {credit_total}",
            {"debitTotal": debit_total, "creditTotal": credit_total},
        )
        self.debit_total = debit_total
        self.credit_total = credit_total


class MissingAccount(AccountingError):
    code = "MISSING_ACCOUNT"
    status_code = 400

    def __init__(self, codes: list[str]):
        codes = list(codes)
        super().__init__(
            "Account code(s) not found: " + ", ".join(codes),
            {"missingAccountCodes": codes},
        )
        self.codes = codes


class DuplicateAccountCode(AccountingError):
    code = "DUPLICATE_ACCOUNT_CODE"
    status_code = 409

    def __init__(self, account_code: str):
        super().__init__(
            f"Account code already exists: {account_code}",
            {"accountCode": account_code},
        )
        self.account_code = account_code


class ContraConfirmationRequired(AccountingError):
    code = "CONTRA_CONFIRMATION_REQUIRED"
    status_code = 400

    def __init__(self, account_code: str, account_type: str, normal_side: str):
        super().__init__(
            f"Account {account_code} is a contra account ({account_type} "
            f"with normal side {normal_side}); set allowContra to confirm",
            {
                "accountCode": account_code,
                "accountType": account_type,
                "normalSide": normal_side,
            },
        )
        self.account_code = account_code


class DuplicateExternalId(AccountingError):
    """Raised per row during import and counted, never surfaced."""

    code = "DUPLICATE_EXTERNAL_ID"
    status_code = 409

    def __init__(self, source: str, external_id: str):
        super().__init__(
            f"Transaction {external_id} from {source} was already imported",
            {"source": source, "externalId": external_id},
        )
        self.source = source
        self.external_id = external_id


class IdempotencyRequired(AccountingError):
    code = "IDEMPOTENCY_REQUIRED"
    status_code = 400

    def __init__(self):
        super().__init__("Idempotency-Key header is required.")


class IdempotencyConflict(AccountingError):
    code = "IDEMPOTENCY_CONFLICT"
    status_code = 409

    def __init__(self, idempotency_key: str, reason: str):
        super().__init__(reason, {"idempotencyKey": idempotency_key})
        self.idempotency_key = idempotency_key


class TransactionNotFound(AccountingError):
    code = "TRANSACTION_NOT_FOUND"
    status_code = 404

    def __init__(self, transaction_id):
        super().__init__(
            f"Raw transaction not found: {transaction_id}",
            {"rawTransactionId": str(transaction_id)},
        )
        self.transaction_id = transaction_id


class JournalEntryNotFound(AccountingError):
    code = "JOURNAL_ENTRY_NOT_FOUND"
    status_code = 404

    def __init__(self, journal_entry_id):
        super().__init__(
            f"Journal entry not found: {journal_entry_id}",
            {"journalEntryId": str(journal_entry_id)},
        )
        self.journal_entry_id = journal_entry_id


class OverAllocated(AccountingError):
    code = "OVER_ALLOCATED"
    status_code = 409

    def __init__(self, transaction_id, remaining: str, requested: str):
        super().__init__(
            f"Allocation of {requested} exceeds remaining {remaining} "
            f"on raw transaction {transaction_id}",
            {
                "rawTransactionId": str(transaction_id),
                "remaining": remaining,
                "requested": requested,
            },
        )
        self.transaction_id = transaction_id
        self.remaining = remaining
        self.requested = requested


class Unauthorized(AccountingError):
    code = "UNAUTHORIZED"
    status_code = 401

    def __init__(self):
        super().__init__("Missing or invalid bearer token")


class InternalError(AccountingError):
    """Storage or unexpected failure. Safe to retry after inspection."""

    code = "INTERNAL_ERROR"
    status_code = 500


class JournalNumberCollision(InternalError):
    def __init__(self, journal_number: str):
        super().__init__(
            f"Journal number collision: {journal_number}",
            {"journalNumber": journal_number},
        )
        self.journal_number = journal_number
