"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class AccountType(str, enum.Enum):
    """The five fundamental accounting categories."""
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"


class EntryType(str, enum.Enum):
    """Direction of a journal line, also used for an account's normal side."""
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class JournalStatus(str, enum.Enum):
    POSTED = "POSTED"


class ReconciliationStatus(str, enum.Enum):
    UNRECONCILED = "UNRECONCILED"
    PARTIALLY_RECONCILED = "PARTIALLY_RECONCILED"
    FULLY_RECONCILED = "FULLY_RECONCILED"
