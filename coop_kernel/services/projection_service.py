"""
ProjectionService -- product calculators bound to configured defaults.

Responsibility:
    ``simulate`` answers "what would this product pay or cost" for a form
    that has not opened anything yet; ``project_account`` runs the same
    calculators for an existing account. Neither writes.

Architecture position:
    Kernel > Services. Reads through the store; calls coop_engines.interest.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

from coop_engines.interest import (
    Projection,
    project_fixed_deposit,
    project_loan,
    project_optional_deposit,
    project_principal_only,
    project_recurring_deposit,
)
from coop_kernel.domain.clock import Clock
from coop_kernel.domain.dtos import LoanSubtype, ProductType, RdFrequency
from coop_kernel.domain.policy import ProductDefaults
from coop_kernel.domain.replay import replay_balance
from coop_kernel.domain.values import Money
from coop_kernel.exceptions import InvalidAmountError, InvalidTermError
from coop_kernel.services.account_service import parse_loan_subtype, parse_product_type
from coop_kernel.services.base import BaseService, as_decimal
from coop_kernel.storage.port import LedgerStore


class ProjectionService(BaseService):
    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        products: ProductDefaults | None = None,
        currency: str = "INR",
    ):
        super().__init__(store, clock)
        self.products = products or ProductDefaults()
        self.currency = currency

    def simulate(
        self,
        product_type: ProductType | str,
        principal: Decimal | int | str,
        *,
        interest_rate: Decimal | int | str | None = None,
        term_months: int | None = None,
        term_days: int | None = None,
        loan_subtype: LoanSubtype | str | None = None,
        rd_frequency: RdFrequency | str | None = None,
        opening_date: date | str | None = None,
    ) -> Projection:
        """
        Projection for a prospective account. Missing rate and term come
        from the product defaults; nothing is stored.
        """
        product = parse_product_type(product_type)
        amount = as_decimal("principal", principal)
        if amount is None:
            raise InvalidAmountError("principal", principal, "is required")
        subtype = parse_loan_subtype(loan_subtype)
        if product.is_loan:
            subtype = subtype or self.products.default_loan_subtype
        rate = as_decimal("interest_rate", interest_rate)
        if rate is None:
            rate = self.products.rate_for(product, subtype)
        if term_months is None and term_days is None:
            term_months = self.products.term_months_for(product, subtype)
        when = self._resolve_date("opening_date", opening_date) if opening_date else None

        return self._project(
            product=product,
            principal=Money.of(amount, self.currency),
            rate=rate,
            term_months=term_months,
            term_days=term_days,
            subtype=subtype,
            frequency=RdFrequency(rd_frequency) if rd_frequency else None,
            opening_date=when,
        )

    def project_account(self, account_id: str) -> Projection:
        """
        Projection for an existing account at its current rate.

        Optional Deposits and principal-only products use the replayed
        balance; term products use the original principal (for an RD, the
        installment).
        """
        account = self._require_account(account_id)
        if account.product_type in (
            ProductType.OPTIONAL_DEPOSIT,
            ProductType.SHARE_CAPITAL,
            ProductType.COMPULSORY_DEPOSIT,
        ):
            base = replay_balance(account.product_type, self.store.list_transactions(account_id))
        elif account.product_type is ProductType.RECURRING_DEPOSIT:
            base = account.emi if account.emi is not None else account.original_principal
        else:
            base = account.original_principal

        return self._project(
            product=account.product_type,
            principal=Money.of(base, account.currency),
            rate=account.interest_rate,
            term_months=account.term_months,
            term_days=account.term_days,
            subtype=account.loan_subtype,
            frequency=account.rd_frequency,
            opening_date=account.opening_date,
        )

    def _project(
        self,
        *,
        product: ProductType,
        principal: Money,
        rate: Decimal,
        term_months: int | None,
        term_days: int | None,
        subtype: LoanSubtype | None,
        frequency: RdFrequency | None,
        opening_date: date | None,
    ) -> Projection:
        if product is ProductType.OPTIONAL_DEPOSIT:
            return project_optional_deposit(balance=principal, rate=rate)
        if product is ProductType.FIXED_DEPOSIT:
            return project_fixed_deposit(
                principal=principal,
                rate=rate,
                term_months=term_months or 0,
                opening_date=opening_date,
            )
        if product is ProductType.RECURRING_DEPOSIT:
            if term_days is not None:
                frequency = RdFrequency.DAILY
            frequency = frequency or RdFrequency.MONTHLY
            installments = term_days if frequency is RdFrequency.DAILY else term_months
            if frequency is RdFrequency.DAILY and installments is None:
                raise InvalidTermError("daily recurring deposits need term_days")
            return project_recurring_deposit(
                installment=principal,
                rate=rate,
                installments=installments or 0,
                frequency=frequency,
                opening_date=opening_date,
            )
        if product is ProductType.LOAN:
            return project_loan(
                principal=principal,
                rate=rate,
                term_months=term_months or 0,
                subtype=subtype or self.products.default_loan_subtype,
                opening_date=opening_date,
            )
        return project_principal_only(product_type=product, principal=principal)
