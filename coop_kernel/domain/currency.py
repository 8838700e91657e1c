"""Currency -- ISO 4217 registry and precision-derived rounding."""

from dataclasses import dataclass
from decimal import Decimal
from typing import ClassVar


@dataclass(frozen=True)
class CurrencyInfo:
    """Information about a single ISO 4217 currency."""

    code: str
    decimal_places: int
    name: str
    symbol: str = ""

    @property
    def rounding_tolerance(self) -> Decimal:
        """Smallest representable amount (one minor unit)."""
        if self.decimal_places == 0:
            return Decimal("1")
        return Decimal("0." + "0" * (self.decimal_places - 1) + "1")

    @property
    def quantize_string(self) -> str:
        """String for Decimal.quantize() to round to this currency's precision."""
        if self.decimal_places == 0:
            return "1"
        return "0." + "0" * self.decimal_places


class CurrencyRegistry:
    """Registry of the ISO 4217 currencies a cooperative may keep books in."""

    _CURRENCIES: ClassVar[dict[str, CurrencyInfo]] = {
        # South Asia
        "INR": CurrencyInfo("INR", 2, "Indian Rupee", "₹"),
        "NPR": CurrencyInfo("NPR", 2, "Nepalese Rupee", "रू"),
        "BDT": CurrencyInfo("BDT", 2, "Bangladeshi Taka", "৳"),
        "LKR": CurrencyInfo("LKR", 2, "Sri Lankan Rupee", "Rs"),
        "PKR": CurrencyInfo("PKR", 2, "Pakistani Rupee", "Rs"),
        "BTN": CurrencyInfo("BTN", 2, "Bhutanese Ngultrum", "Nu."),
        # East Africa (SACCO markets)
        "KES": CurrencyInfo("KES", 2, "Kenyan Shilling", "KSh"),
        "TZS": CurrencyInfo("TZS", 2, "Tanzanian Shilling", "TSh"),
        "UGX": CurrencyInfo("UGX", 0, "Ugandan Shilling", "USh"),
        "RWF": CurrencyInfo("RWF", 0, "Rwandan Franc", "FRw"),
        # Majors
        "USD": CurrencyInfo("USD", 2, "US Dollar", "$"),
        "EUR": CurrencyInfo("EUR", 2, "Euro", "€"),
        "GBP": CurrencyInfo("GBP", 2, "Pound Sterling", "£"),
        "JPY": CurrencyInfo("JPY", 0, "Japanese Yen", "¥"),
        # Three decimal currencies
        "KWD": CurrencyInfo("KWD", 3, "Kuwaiti Dinar", "KD"),
        "OMR": CurrencyInfo("OMR", 3, "Omani Rial", "OMR"),
    }

    # Default decimal places for unknown currencies
    DEFAULT_DECIMAL_PLACES: ClassVar[int] = 2

    @classmethod
    def is_valid(cls, code: str) -> bool:
        """Check if a currency code is registered."""
        if not code or not isinstance(code, str):
            return False
        return code.upper().strip() in cls._CURRENCIES

    @classmethod
    def get_info(cls, code: str) -> CurrencyInfo | None:
        """Get currency information by code."""
        if not code or not isinstance(code, str):
            return None
        return cls._CURRENCIES.get(code.upper().strip())

    @classmethod
    def get_decimal_places(cls, code: str) -> int:
        """Get decimal places for a currency."""
        info = cls.get_info(code)
        return info.decimal_places if info else cls.DEFAULT_DECIMAL_PLACES

    @classmethod
    def get_symbol(cls, code: str) -> str:
        """Display symbol, falling back to the code itself."""
        info = cls.get_info(code)
        return info.symbol if info and info.symbol else code

    @classmethod
    def get_rounding_tolerance(cls, code: str) -> Decimal:
        """Get rounding tolerance derived from currency precision."""
        info = cls.get_info(code)
        if info:
            return info.rounding_tolerance
        return cls._tolerance_from_decimal_places(cls.DEFAULT_DECIMAL_PLACES)

    @classmethod
    def _tolerance_from_decimal_places(cls, decimal_places: int) -> Decimal:
        if decimal_places == 0:
            return Decimal("1")
        return Decimal("0." + "0" * (decimal_places - 1) + "1")

    @classmethod
    def validate(cls, code: str) -> str:
        """Validate and normalize a currency code."""
        if not code or not isinstance(code, str):
            raise ValueError(f"Invalid currency code: {code!r}")

        normalized = code.upper().strip()

        if len(normalized) != 3:
            raise ValueError(f"Currency code must be 3 characters: {code!r}")

        if normalized not in cls._CURRENCIES:
            raise ValueError(f"Unsupported currency code: {code!r}")

        return normalized

    @classmethod
    def all_codes(cls) -> frozenset[str]:
        """Get all registered currency codes."""
        return frozenset(cls._CURRENCIES.keys())
