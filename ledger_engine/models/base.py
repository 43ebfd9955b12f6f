"""
Base model and shared column types.

Every model inherits from Base. Money columns use MoneyType so
that rows hand back Money values instead of floats or raw
Decimals.
"""

from decimal import Decimal

from sqlalchemy import Numeric
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from ledger_engine.money import Money


# --- Base Model Class ---
# SQLAlchemy uses it to track all models and generate the
# correct SQL for table creation.
class Base(DeclarativeBase):
    pass


class MoneyType(TypeDecorator):
    """Numeric(19, 4) in the database, Money in Python."""

    impl = Numeric(19, 4)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, Money):
            return value.to_decimal()
        return Decimal(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Money.from_decimal(value)
