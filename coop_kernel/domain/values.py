"""
Values -- Immutable, self-validating money types.

Responsibility:
    Provides Currency and Money, the value types every calculator, report and
    ledger operation speaks in. Raw floats never enter money arithmetic.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Depends only on coop_kernel.domain.currency (CurrencyRegistry).

Invariants enforced:
    - Amounts are Decimal; floats are rejected at the factory boundary.
    - Currency codes are validated against the registry on construction.
    - Arithmetic never mixes currencies silently.
    - Rounding is explicit. Money never rounds itself.

Failure modes:
    - ValueError for unparseable amounts, unknown currencies, or mixed-currency
      arithmetic and comparison.
    - TypeError for a currency argument that is neither str nor Currency.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from coop_kernel.domain.currency import CurrencyRegistry

DEFAULT_CURRENCY = "INR"


@dataclass(frozen=True, slots=True)
class Currency:
    """
    ISO 4217 currency code.

    Contract:
        Normalized to upper case on construction; codes missing from the
        registry are rejected immediately.
    """

    code: str

    def __post_init__(self) -> None:
        normalized = self.code.upper().strip() if self.code else ""
        if not CurrencyRegistry.is_valid(normalized):
            raise ValueError(f"Invalid ISO 4217 currency code: {self.code}")
        object.__setattr__(self, "code", normalized)

    @property
    def decimal_places(self) -> int:
        return CurrencyRegistry.get_decimal_places(self.code)

    @property
    def rounding_tolerance(self) -> Decimal:
        """One minor unit of this currency."""
        return CurrencyRegistry.get_rounding_tolerance(self.code)

    @property
    def symbol(self) -> str:
        return CurrencyRegistry.get_symbol(self.code)

    def __str__(self) -> str:
        return self.code

    def __repr__(self) -> str:
        return f"Currency({self.code!r})"


@dataclass(frozen=True, slots=True)
class Money:
    """
    Monetary amount paired with its currency.

    Contract:
        The amount and currency are never separated. Arithmetic between two
        Money values requires the same currency; scaling by a Decimal or int
        is allowed.

    Guarantees:
        - Immutable and hashable.
        - ``amount`` is always a Decimal.
        - No implicit rounding: callers choose ``round()`` (minor units) or
          ``round_whole()`` (whole units, used by the product calculators).

    Non-goals:
        - Does NOT convert between currencies.
    """

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        if isinstance(self.amount, float):
            raise ValueError(f"Money amount must not be a float: {self.amount!r}")
        if not isinstance(self.amount, Decimal):
            try:
                object.__setattr__(self, "amount", Decimal(str(self.amount)))
            except (InvalidOperation, ValueError) as e:
                raise ValueError(f"Invalid amount: {self.amount}") from e

        if isinstance(self.currency, str):
            object.__setattr__(self, "currency", Currency(self.currency))
        elif not isinstance(self.currency, Currency):
            raise TypeError(f"currency must be Currency or str, got {type(self.currency)}")

    @classmethod
    def of(cls, amount: Decimal | str | int, currency: str | Currency = DEFAULT_CURRENCY) -> Money:
        """Build Money from a Decimal, int or decimal string."""
        if isinstance(amount, (str, int)):
            try:
                amount = Decimal(str(amount))
            except InvalidOperation as e:
                raise ValueError(f"Invalid amount: {amount!r}") from e
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=amount, currency=currency)

    @classmethod
    def zero(cls, currency: str | Currency = DEFAULT_CURRENCY) -> Money:
        if isinstance(currency, str):
            currency = Currency(currency)
        return cls(amount=Decimal("0"), currency=currency)

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    @property
    def is_positive(self) -> bool:
        return self.amount > 0

    @property
    def is_negative(self) -> bool:
        return self.amount < 0

    def round(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the currency's minor unit."""
        places = self.currency.decimal_places
        quantum = Decimal(1).scaleb(-places)
        return Money(amount=self.amount.quantize(quantum, rounding=rounding), currency=self.currency)

    def round_whole(self, rounding: str = ROUND_HALF_UP) -> Money:
        """Round to the nearest whole currency unit (half away from zero)."""
        return Money(
            amount=self.amount.quantize(Decimal("1"), rounding=rounding),
            currency=self.currency,
        )

    def within(self, other: Money, tolerance: Decimal) -> bool:
        """True when the two amounts differ by at most ``tolerance`` (inclusive)."""
        self._check_currency(other, "compare")
        return abs(self.amount - other.amount) <= tolerance

    def _check_currency(self, other: Money, verb: str) -> None:
        if self.currency != other.currency:
            raise ValueError(
                f"Cannot {verb} Money with different currencies: "
                f"{self.currency} and {other.currency}"
            )

    def __add__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "add")
        return Money(amount=self.amount + other.amount, currency=self.currency)

    def __sub__(self, other: Money) -> Money:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "subtract")
        return Money(amount=self.amount - other.amount, currency=self.currency)

    def __neg__(self) -> Money:
        return Money(amount=-self.amount, currency=self.currency)

    def __abs__(self) -> Money:
        return Money(amount=abs(self.amount), currency=self.currency)

    def __mul__(self, factor: Decimal | int) -> Money:
        if isinstance(factor, int) and not isinstance(factor, bool):
            factor = Decimal(factor)
        if not isinstance(factor, Decimal):
            return NotImplemented
        return Money(amount=self.amount * factor, currency=self.currency)

    def __rmul__(self, factor: Decimal | int) -> Money:
        return self.__mul__(factor)

    def __truediv__(self, divisor: Decimal | int) -> Money:
        if isinstance(divisor, int) and not isinstance(divisor, bool):
            divisor = Decimal(divisor)
        if not isinstance(divisor, Decimal):
            return NotImplemented
        return Money(amount=self.amount / divisor, currency=self.currency)

    def __lt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        if not isinstance(other, Money):
            return NotImplemented
        self._check_currency(other, "compare")
        return self.amount >= other.amount

    def display(self) -> str:
        """Cashier-facing rendering, e.g. ``₹1,000``."""
        amount = self.amount
        if amount == amount.to_integral_value():
            text = f"{amount:,.0f}"
        else:
            text = f"{amount:,.{self.currency.decimal_places}f}"
        return f"{self.currency.symbol}{text}"

    def __str__(self) -> str:
        return f"{self.amount} {self.currency.code}"

    def __repr__(self) -> str:
        return f"Money({self.amount!r}, {self.currency!r})"
