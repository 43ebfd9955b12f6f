"""
Fixed-point money type.

Amounts are held as an integer count of ten-thousandths
(scale 4). Every amount that enters the ledger is a decimal
string with at most four fractional digits, so parsing pads
the fraction and never rounds. Floats never appear here.
"""

import re
from decimal import Decimal

from ledger_engine.errors import InvalidAmountFormat

SCALE = 4
FACTOR = 10 ** SCALE

# ASCII digits only; \d would also match other scripts' digits
SIGNED_AMOUNT_PATTERN = r"^-?[0-9]+(\.[0-9]{1,4})?$"
UNSIGNED_AMOUNT_PATTERN = r"^[0-9]+(\.[0-9]{1,4})?$"

_SIGNED_RE = re.compile(SIGNED_AMOUNT_PATTERN)
_UNSIGNED_RE = re.compile(UNSIGNED_AMOUNT_PATTERN)


class Money:
    """
    An exact monetary amount.

    Instances are immutable and hashable. Arithmetic between
    Money values stays on the scaled integer.
    """

    __slots__ = ("_units",)

    def __init__(self, units: int = 0):
        if not isinstance(units, int) or isinstance(units, bool):
            raise TypeError("Money units must be an int")
        object.__setattr__(self, "_units", units)

    def __setattr__(self, name, value):
        raise AttributeError("Money is immutable")

    # --- Construction ---

    @classmethod
    def parse(cls, text: str, *, signed: bool = True) -> "Money":
        """
        Parse a decimal string such as "-100.5" or "42".

        With signed=False a leading minus is rejected, which is
        what journal line and allocation amounts require.
        """
        if not isinstance(text, str):
            raise InvalidAmountFormat(repr(text))

        normalized = text.strip()
        pattern = _SIGNED_RE if signed else _UNSIGNED_RE
        if not pattern.fullmatch(normalized):
            raise InvalidAmountFormat(text)

        negative = normalized.startswith("-")
        if negative:
            normalized = normalized[1:]

        whole, _, fraction = normalized.partition(".")
        units = int(whole) * FACTOR + int(fraction.ljust(SCALE, "0"))
        return cls(-units if negative else units)

    @classmethod
    def from_decimal(cls, value: Decimal) -> "Money":
        """Convert a Numeric column value; more than four places is an error."""
        value = Decimal(value)
        scaled = value * FACTOR
        if scaled != scaled.to_integral_value():
            raise InvalidAmountFormat(str(value))
        return cls(int(scaled))

    @classmethod
    def zero(cls) -> "Money":
        return cls(0)

    # --- Conversion ---

    @property
    def units(self) -> int:
        return self._units

    def to_decimal(self) -> Decimal:
        return Decimal(self._units).scaleb(-SCALE)

    def __str__(self) -> str:
        sign = "-" if self._units < 0 else ""
        whole, fraction = divmod(abs(self._units), FACTOR)
        return f"{sign}{whole}.{fraction:0{SCALE}d}"

    def __repr__(self) -> str:
        return f"Money('{self}')"

    # --- Predicates ---

    def is_zero(self) -> bool:
        return self._units == 0

    def is_positive(self) -> bool:
        return self._units > 0

    # --- Arithmetic ---

    def __add__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self._units + other._units)

    def __sub__(self, other: "Money") -> "Money":
        if not isinstance(other, Money):
            return NotImplemented
        return Money(self._units - other._units)

    def __neg__(self) -> "Money":
        return Money(-self._units)

    def __abs__(self) -> "Money":
        return Money(abs(self._units))

    # --- Comparison ---

    def __eq__(self, other) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self._units == other._units

    def __hash__(self) -> int:
        return hash(self._units)

    def __lt__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self._units < other._units

    def __le__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self._units <= other._units

    def __gt__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self._units > other._units

    def __ge__(self, other: "Money") -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        return self._units >= other._units


def sum_money(amounts) -> Money:
    """Add up an iterable of Money values, starting from zero."""
    total = Money.zero()
    for amount in amounts:
        total = total + amount
    return total
