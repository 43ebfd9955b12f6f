"""
Balance validation for journal lines.

Debits and credits are summed separately as Money and compared
exactly. Nothing is rounded. This runs before any write so that
an unbalanced entry never reaches the database.
"""

from dataclasses import dataclass
from typing import Iterable, Protocol

from ledger_engine.errors import UnbalancedEntry, ValidationFailed
from ledger_engine.models.enums import EntryType
from ledger_engine.money import Money, sum_money


class BalanceLine(Protocol):
    type: EntryType
    amount: str


@dataclass(frozen=True)
class JournalTotals:
    debit_total: str
    credit_total: str


def validate_balanced(lines: Iterable[BalanceLine]) -> JournalTotals:
    """
    Check that total debits equal total credits.

    Returns both totals formatted to four decimal places.
    Raises UnbalancedEntry carrying both totals when they differ.
    """
    debits: list[Money] = []
    credits: list[Money] = []

    for line in lines:
        amount = Money.parse(line.amount, signed=False)
        if line.type == EntryType.DEBIT:
            debits.append(amount)
        elif line.type == EntryType.CREDIT:
            credits.append(amount)
        else:
            raise ValidationFailed(f"Unknown line type: {line.type}")

    debit_total = sum_money(debits)
    credit_total = sum_money(credits)

    if debit_total != credit_total:
        raise UnbalancedEntry(str(debit_total), str(credit_total))

    return JournalTotals(
        debit_total=str(debit_total),
        credit_total=str(credit_total),
    )
