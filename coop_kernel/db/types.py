"""
Module: coop_kernel.db.types
Responsibility: Shared column types and the one money rounding helper, so
    every money column has the same precision and every rate the same scale.
Architecture position: Kernel > DB. MUST NOT import models/ or services/.
"""

from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import Numeric, String

# Rupees and paise
MONEY = Numeric(18, 2)

# Percent per annum, e.g. 6.5000
RATE = Numeric(7, 4)

# ISO 4217 code
CURRENCY_CODE = String(3)

# Enum values, payment modes
SHORT_CODE = String(32)

# Human-readable ids such as TX-0000000042
RECORD_ID = String(40)

LONG_TEXT = String(1000)

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def round_money(value: Decimal, decimal_places: int = MONEY_DECIMAL_PLACES) -> Decimal:
    """Quantize a value to the stored money precision."""
    return value.quantize(Decimal(1).scaleb(-decimal_places), rounding=DEFAULT_ROUNDING)
