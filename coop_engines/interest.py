"""
Module: coop_engines.interest
Responsibility:
    Product calculators: interest, maturity value, EMI and projected totals
    for every account product, plus the maturity date rule.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports coop_kernel.domain only.

Invariants enforced:
    - Decimal-only arithmetic. Intermediate values are never rounded.
    - Every money output is rounded once, to a whole currency unit with
      ROUND_HALF_UP, when the Projection is built.
    - Zero principal or zero term yields a principal-only projection with
      ``has_schedule=False`` instead of an error.

Failure modes:
    - InvalidAmountError for a negative principal, installment or rate.
    - InvalidTermError for a negative term.

Formulas:
    OptionalDeposit   interest = balance x rate/100
    FixedDeposit      maturity = P x (1 + rate/100)^(months/12)
    RD monthly        interest = I x n(n+1)/2 x rate/1200
    RD daily          interest = I x d(d+1)/2 x rate/36500
    Loan (reducing)   r = rate/1200; EMI = P r (1+r)^n / ((1+r)^n - 1)
    Loan (Emergency)  interest = P x rate/100 x n/12; EMI = (P + interest)/n
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from coop_engines.tracer import traced_engine
from coop_kernel.domain.calendar import add_days, add_months
from coop_kernel.domain.dtos import LoanSubtype, ProductType, RdFrequency
from coop_kernel.domain.values import Money
from coop_kernel.exceptions import InvalidAmountError, InvalidTermError
from coop_kernel.logging_config import get_logger

logger = get_logger("engines.interest")

_HUNDRED = Decimal("100")
_TWELVE = Decimal("12")


@dataclass(frozen=True)
class Projection:
    """
    Projected figures for one product.

    Contract:
        All Money fields are whole-unit rounded. Deposit products fill
        ``interest_earned``/``maturity_amount``; loans fill ``emi``,
        ``total_interest`` and ``total_payable``.
    """

    product_type: ProductType
    principal: Money
    maturity_amount: Money | None = None
    interest_earned: Money | None = None
    emi: Money | None = None
    total_interest: Money | None = None
    total_payable: Money | None = None
    maturity_date: date | None = None
    installments: int | None = None
    has_schedule: bool = True

    def as_dict(self) -> dict[str, Any]:
        """Flat view with only the populated figures, amounts as Decimal."""
        out: dict[str, Any] = {"principal": self.principal.amount, "has_schedule": self.has_schedule}
        for name in ("maturity_amount", "interest_earned", "emi", "total_interest", "total_payable"):
            value = getattr(self, name)
            if value is not None:
                out[name] = value.amount
        if self.maturity_date is not None:
            out["maturity_date"] = self.maturity_date
        if self.installments is not None:
            out["installments"] = self.installments
        return out


# ---------------------------------------------------------------------------
# Validation helpers
# ---------------------------------------------------------------------------


def _require_non_negative_money(field: str, value: Money) -> None:
    if value.is_negative:
        raise InvalidAmountError(field, value.amount, "must not be negative")


def _require_non_negative_rate(rate: Decimal) -> None:
    if rate < 0:
        raise InvalidAmountError("interest_rate", rate, "must not be negative")


def _require_non_negative_term(months: int | None = None, days: int | None = None) -> None:
    if months is not None and months < 0:
        raise InvalidTermError("term_months must not be negative", term_months=months)
    if days is not None and days < 0:
        raise InvalidTermError("term_days must not be negative", term_days=days)


def _no_schedule(product_type: ProductType, principal: Money) -> Projection:
    return Projection(product_type=product_type, principal=principal.round_whole(), has_schedule=False)


# ---------------------------------------------------------------------------
# Maturity date
# ---------------------------------------------------------------------------


def maturity_date_for(
    product_type: ProductType,
    opening_date: date,
    term_months: int | None = None,
    term_days: int | None = None,
) -> date | None:
    """Opening date plus the term; None for products without a term."""
    if not product_type.has_maturity:
        return None
    if term_days:
        return add_days(opening_date, term_days)
    if term_months:
        return add_months(opening_date, term_months)
    return None


# ---------------------------------------------------------------------------
# Deposits
# ---------------------------------------------------------------------------


@traced_engine("optional_deposit", "1.0", fingerprint_fields=("balance", "rate"))
def project_optional_deposit(*, balance: Money, rate: Decimal) -> Projection:
    """Simple annual interest estimate on the live balance."""
    _require_non_negative_rate(rate)
    interest = balance * rate / _HUNDRED
    return Projection(
        product_type=ProductType.OPTIONAL_DEPOSIT,
        principal=balance.round_whole(),
        interest_earned=interest.round_whole(),
    )


@traced_engine("fixed_deposit", "1.0", fingerprint_fields=("principal", "rate", "term_months"))
def project_fixed_deposit(
    *,
    principal: Money,
    rate: Decimal,
    term_months: int,
    opening_date: date | None = None,
) -> Projection:
    """Annually compounded maturity value, fractional years allowed."""
    _require_non_negative_money("principal", principal)
    _require_non_negative_rate(rate)
    _require_non_negative_term(months=term_months)
    if principal.is_zero or term_months == 0:
        return _no_schedule(ProductType.FIXED_DEPOSIT, principal)

    growth = (1 + rate / _HUNDRED) ** (Decimal(term_months) / _TWELVE)
    maturity = principal * growth
    return Projection(
        product_type=ProductType.FIXED_DEPOSIT,
        principal=principal.round_whole(),
        maturity_amount=maturity.round_whole(),
        interest_earned=(maturity - principal).round_whole(),
        maturity_date=add_months(opening_date, term_months) if opening_date else None,
    )


@traced_engine(
    "recurring_deposit",
    "1.0",
    fingerprint_fields=("installment", "rate", "installments", "frequency"),
)
def project_recurring_deposit(
    *,
    installment: Money,
    rate: Decimal,
    installments: int,
    frequency: RdFrequency = RdFrequency.MONTHLY,
    opening_date: date | None = None,
) -> Projection:
    """
    Arithmetic-series interest on equal periodic installments.

    ``installments`` counts months for a monthly RD and days for a daily RD.
    """
    _require_non_negative_money("installment", installment)
    _require_non_negative_rate(rate)
    if frequency is RdFrequency.DAILY:
        _require_non_negative_term(days=installments)
    else:
        _require_non_negative_term(months=installments)
    if installment.is_zero or installments == 0:
        return _no_schedule(ProductType.RECURRING_DEPOSIT, installment * installments)

    n = Decimal(installments)
    divisor = Decimal("36500") if frequency is RdFrequency.DAILY else Decimal("1200")
    total_principal = installment * n
    interest = installment * (n * (n + 1) / 2) * rate / divisor

    maturity_date = None
    if opening_date is not None:
        if frequency is RdFrequency.DAILY:
            maturity_date = add_days(opening_date, installments)
        else:
            maturity_date = add_months(opening_date, installments)

    return Projection(
        product_type=ProductType.RECURRING_DEPOSIT,
        principal=total_principal.round_whole(),
        maturity_amount=(total_principal + interest).round_whole(),
        interest_earned=interest.round_whole(),
        maturity_date=maturity_date,
        installments=installments,
    )


def project_principal_only(*, product_type: ProductType, principal: Money) -> Projection:
    """Share capital and compulsory deposits carry no interest formula."""
    _require_non_negative_money("principal", principal)
    return Projection(product_type=product_type, principal=principal.round_whole())


# ---------------------------------------------------------------------------
# Loans
# ---------------------------------------------------------------------------


def reducing_balance_emi(principal: Decimal, rate: Decimal, months: int) -> Decimal:
    """Unrounded annuity installment; straight division when the rate is zero."""
    n = Decimal(months)
    if rate == 0:
        return principal / n
    r = rate / _TWELVE / _HUNDRED
    factor = (1 + r) ** months
    return principal * r * factor / (factor - 1)


@traced_engine(
    "loan",
    "1.0",
    fingerprint_fields=("principal", "rate", "term_months", "subtype"),
)
def project_loan(
    *,
    principal: Money,
    rate: Decimal,
    term_months: int,
    subtype: LoanSubtype = LoanSubtype.PERSONAL,
    opening_date: date | None = None,
) -> Projection:
    """
    EMI and totals for a loan.

    Emergency loans use flat-rate interest on the original principal; every
    other subtype amortizes on the reducing balance.
    """
    _require_non_negative_money("principal", principal)
    _require_non_negative_rate(rate)
    _require_non_negative_term(months=term_months)
    if principal.is_zero or term_months == 0:
        return _no_schedule(ProductType.LOAN, principal)

    n = Decimal(term_months)
    if subtype.is_flat_rate:
        total_interest = principal * rate / _HUNDRED * n / _TWELVE
        total_payable = principal + total_interest
        emi = total_payable / n
    else:
        emi = Money(reducing_balance_emi(principal.amount, rate, term_months), principal.currency)
        total_payable = emi * n
        total_interest = total_payable - principal

    return Projection(
        product_type=ProductType.LOAN,
        principal=principal.round_whole(),
        emi=emi.round_whole(),
        total_interest=total_interest.round_whole(),
        total_payable=total_payable.round_whole(),
        maturity_date=add_months(opening_date, term_months) if opening_date else None,
        installments=term_months,
    )
