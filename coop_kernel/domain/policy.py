"""
Policy -- kernel-side parameter objects.

Responsibility:
    Frozen parameter sets the services and engines are constructed with:
    product default rates and terms, the emergency processing fee, payment
    reconciliation rules, ledger behaviour and alert thresholds.

Architecture position:
    Kernel > Domain -- pure data. The kernel never reads configuration files;
    ``coop_config`` parses YAML into these objects and hands them in. Every
    class has working defaults so tests and scripts can run without a file.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from coop_kernel.domain.dtos import LoanSubtype, ProductType


def _default_deposit_rates() -> dict[ProductType, Decimal]:
    return {
        ProductType.SHARE_CAPITAL: Decimal("10.0"),
        ProductType.COMPULSORY_DEPOSIT: Decimal("10.0"),
        ProductType.OPTIONAL_DEPOSIT: Decimal("3.5"),
        ProductType.FIXED_DEPOSIT: Decimal("6.8"),
        ProductType.RECURRING_DEPOSIT: Decimal("6.5"),
    }


def _default_loan_rates() -> dict[LoanSubtype, Decimal]:
    return {
        LoanSubtype.PERSONAL: Decimal("12"),
        LoanSubtype.HOME: Decimal("8.5"),
        LoanSubtype.GOLD: Decimal("9"),
        LoanSubtype.VEHICLE: Decimal("10"),
        LoanSubtype.AGRICULTURE: Decimal("7"),
        LoanSubtype.EMERGENCY: Decimal("14"),
    }


def _default_deposit_terms() -> dict[ProductType, int]:
    return {
        ProductType.FIXED_DEPOSIT: 12,
        ProductType.RECURRING_DEPOSIT: 24,
    }


def _default_loan_terms() -> dict[LoanSubtype, int]:
    return {
        LoanSubtype.PERSONAL: 36,
        LoanSubtype.HOME: 120,
        LoanSubtype.GOLD: 12,
        LoanSubtype.VEHICLE: 36,
        LoanSubtype.AGRICULTURE: 24,
        LoanSubtype.EMERGENCY: 12,
    }


@dataclass(frozen=True)
class ProductDefaults:
    """Rates (percent p.a.) and terms (months) used when a request omits them."""

    deposit_rates: dict[ProductType, Decimal] = field(default_factory=_default_deposit_rates)
    loan_rates: dict[LoanSubtype, Decimal] = field(default_factory=_default_loan_rates)
    deposit_terms: dict[ProductType, int] = field(default_factory=_default_deposit_terms)
    loan_terms: dict[LoanSubtype, int] = field(default_factory=_default_loan_terms)
    default_loan_subtype: LoanSubtype = LoanSubtype.PERSONAL

    def rate_for(self, product_type: ProductType, loan_subtype: LoanSubtype | None = None) -> Decimal:
        if product_type.is_loan:
            return self.loan_rates.get(loan_subtype or self.default_loan_subtype, Decimal("0"))
        return self.deposit_rates.get(product_type, Decimal("0"))

    def term_months_for(
        self, product_type: ProductType, loan_subtype: LoanSubtype | None = None
    ) -> int | None:
        if product_type.is_loan:
            return self.loan_terms.get(loan_subtype or self.default_loan_subtype)
        return self.deposit_terms.get(product_type)


def _default_emergency_fee() -> tuple[tuple[str, Decimal], ...]:
    return (
        ("Verification", Decimal("450")),
        ("File", Decimal("100")),
        ("Affidavit", Decimal("150")),
    )


@dataclass(frozen=True)
class FeeSchedule:
    """Processing fee charged to the society ledger when an Emergency loan opens."""

    emergency_fee_components: tuple[tuple[str, Decimal], ...] = field(
        default_factory=_default_emergency_fee
    )
    emergency_fee_category: str = "Loan Processing Fees"

    @property
    def emergency_fee_total(self) -> Decimal:
        return sum((amount for _, amount in self.emergency_fee_components), Decimal("0"))


@dataclass(frozen=True)
class ReconciliationPolicy:
    """How strictly payment instructions are checked."""

    # cash + online may differ from the amount by at most this much (inclusive)
    split_tolerance: Decimal = Decimal("1")
    utr_required: bool = True


@dataclass(frozen=True)
class LedgerPolicy:
    cache_tolerance: Decimal = Decimal("0.01")
    allow_negative_deposit_balance: bool = False
    maturity_grace_days: int = 3
    currency: str = "INR"


@dataclass(frozen=True)
class AlertPolicy:
    low_balance_threshold: Decimal = Decimal("500")
    loan_maturity_warning_days: int = 30
    deposit_maturity_warning_days: int = 7
    emi_due_after_day: int = 5
    emi_late_after_day: int = 15
