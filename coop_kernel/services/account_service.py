"""
AccountService -- account lifecycle and authoritative balance reads.

Responsibility:
    Opens accounts (numbering, defaults, guarantor rule, seed transaction,
    Emergency processing fee), re-derives balances from the log, computes
    the current-year minimum balance, applies status and rate changes, and
    sweeps matured FD/RD balances into the owner's Optional Deposit.

Architecture position:
    Kernel > Services -- imperative shell.
    Delegates appends to LedgerService and fee entries to
    SocietyLedgerService so every write takes the same path.

Invariants enforced:
    - Opening an account and writing its seed (and any fee) is atomic.
    - ``recompute_balance`` never fails because of drift; it corrects the
      cache and logs ``balance_cache_corrected``.
    - Structural fields are never changed after opening; only the mutable
      fields go through ``save_account``.
    - A maturity transfer locks both accounts in id order and is atomic.

Failure modes:
    - ValidationError subclasses for bad opening parameters.
    - GuarantorRequiredError for a loan without a complete guarantor.
    - AccountNotFoundError / MemberNotFoundError for unknown ids.
    - InvalidStatusTransitionError for a forbidden status change.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date, timedelta
from decimal import Decimal

from coop_engines.interest import maturity_date_for, project_loan
from coop_kernel.domain.clock import Clock
from coop_kernel.domain.dtos import (
    PRODUCT_CODES,
    AccountRecord,
    AccountStatus,
    Direction,
    Guarantor,
    LoanSubtype,
    PaymentMode,
    ProductType,
    RdFrequency,
)
from coop_kernel.domain.policy import (
    FeeSchedule,
    LedgerPolicy,
    ProductDefaults,
    ReconciliationPolicy,
)
from coop_kernel.domain.replay import cache_is_stale, minimum_balance_in_year, replay_balance
from coop_kernel.domain.values import Money
from coop_kernel.exceptions import (
    GuarantorRequiredError,
    InvalidAmountError,
    InvalidProductError,
    InvalidStatusTransitionError,
    InvalidTermError,
)
from coop_kernel.logging_config import LogContext, get_logger
from coop_kernel.services.base import BaseService, as_decimal
from coop_kernel.services.ledger_service import LedgerService
from coop_kernel.services.society_ledger_service import SocietyLedgerService
from coop_kernel.storage.port import SEQ_ACCOUNT, LedgerStore

logger = get_logger("services.account")

ALLOWED_TRANSITIONS: dict[AccountStatus, frozenset[AccountStatus]] = {
    AccountStatus.PENDING: frozenset({AccountStatus.ACTIVE, AccountStatus.CLOSED}),
    AccountStatus.ACTIVE: frozenset(
        {AccountStatus.CLOSED, AccountStatus.MATURED, AccountStatus.DEFAULTED}
    ),
    AccountStatus.DEFAULTED: frozenset({AccountStatus.ACTIVE, AccountStatus.CLOSED}),
    AccountStatus.CLOSED: frozenset(),
    AccountStatus.MATURED: frozenset(),
}

MATURITY_DEBIT_CATEGORY = "Maturity Transfer"
MATURITY_CREDIT_CATEGORY = "Maturity Credit"


def account_id_for(seq: int) -> str:
    return f"ACC-{seq:08d}"


def parse_product_type(value: ProductType | str) -> ProductType:
    if isinstance(value, ProductType):
        return value
    for candidate in ProductType:
        if candidate.value.lower() == str(value).strip().lower():
            return candidate
    raise InvalidProductError(str(value), "unknown product type")


def parse_loan_subtype(value: LoanSubtype | str | None) -> LoanSubtype | None:
    if value is None or isinstance(value, LoanSubtype):
        return value
    for candidate in LoanSubtype:
        if candidate.value.lower() == str(value).strip().lower():
            return candidate
    raise InvalidProductError(ProductType.LOAN.value, f"unknown loan subtype {value!r}")


@dataclass(frozen=True)
class MaturityTransfer:
    """One FD/RD balance moved to the owner's Optional Deposit."""

    source_account_id: str
    target_account_id: str
    amount: Money
    debit_transaction_id: str | None
    credit_transaction_id: str | None


class AccountService(BaseService):
    """
    Account lifecycle operations.

    Contract:
        Every method that writes runs inside ``store.atomic()`` and returns
        the stored AccountRecord (or a summary of what was written).
    """

    def __init__(
        self,
        store: LedgerStore,
        clock: Clock | None = None,
        products: ProductDefaults | None = None,
        fees: FeeSchedule | None = None,
        ledger_policy: LedgerPolicy | None = None,
        reconciliation_policy: ReconciliationPolicy | None = None,
    ):
        super().__init__(store, clock)
        self.products = products or ProductDefaults()
        self.fees = fees or FeeSchedule()
        self.ledger_policy = ledger_policy or LedgerPolicy()
        self.reconciliation_policy = reconciliation_policy or ReconciliationPolicy()
        self.ledger = LedgerService(store, self.clock, self.ledger_policy, self.reconciliation_policy)
        self.society_ledger = SocietyLedgerService(
            store,
            self.clock,
            self.reconciliation_policy,
            self.fees,
            currency=self.ledger_policy.currency,
        )

    # ------------------------------------------------------------------
    # Opening
    # ------------------------------------------------------------------

    def open_account(
        self,
        owner_id: str,
        product_type: ProductType | str,
        principal: Decimal | int | str,
        *,
        interest_rate: Decimal | int | str | None = None,
        loan_subtype: LoanSubtype | str | None = None,
        term_months: int | None = None,
        term_days: int | None = None,
        rd_frequency: RdFrequency | str | None = None,
        opening_date: date | str | None = None,
        guarantors: Iterable[Guarantor] = (),
        status: AccountStatus = AccountStatus.ACTIVE,
        mode: PaymentMode | str | None = None,
        cash_amount: Decimal | int | str | None = None,
        online_amount: Decimal | int | str | None = None,
        utr_reference: str | None = None,
        low_balance_alert_threshold: Decimal | int | str | None = None,
    ) -> AccountRecord:
        """
        Open an account and write its seed transaction.

        ``principal`` is the opening deposit, the loan amount, or for a
        recurring deposit the periodic installment. A zero principal opens
        the account without a seed. Rate and term fall back to the product
        defaults. The payment fields describe how the seed money moved.
        """
        product = parse_product_type(product_type)
        amount = as_decimal("principal", principal)
        if amount is None or amount < 0:
            raise InvalidAmountError("principal", principal, "must not be negative")
        rate = as_decimal("interest_rate", interest_rate)
        subtype = parse_loan_subtype(loan_subtype)
        frequency = RdFrequency(rd_frequency) if rd_frequency else None
        guarantor_list = tuple(guarantors)
        threshold = as_decimal("low_balance_alert_threshold", low_balance_alert_threshold)

        if product.is_loan:
            subtype = subtype or self.products.default_loan_subtype
            if not any(g.is_complete for g in guarantor_list):
                raise GuarantorRequiredError()
        elif subtype is not None:
            raise InvalidProductError(product.value, "loan_subtype applies to loans only")

        if product is ProductType.RECURRING_DEPOSIT:
            frequency = frequency or RdFrequency.MONTHLY
        elif frequency is not None:
            raise InvalidProductError(product.value, "rd_frequency applies to recurring deposits only")

        if rate is None:
            rate = self.products.rate_for(product, subtype)
        if rate < 0:
            raise InvalidAmountError("interest_rate", rate, "must not be negative")

        term_months, term_days = self._resolve_term(product, subtype, frequency, term_months, term_days)
        when = self._resolve_date("opening_date", opening_date)
        maturity = maturity_date_for(product, when, term_months, term_days)
        emi = self._initial_emi(product, subtype, amount, rate, term_months)

        with LogContext.bind(member_id=owner_id), LogContext.correlate(), self.store.atomic("open_account"):
            self._require_member(owner_id)
            seq = self.store.next_sequence(SEQ_ACCOUNT)
            series = len(self.store.list_accounts(owner_id=owner_id)) + 1
            code = subtype.code if product.is_loan else PRODUCT_CODES[product]
            account = self.store.add_account(
                AccountRecord(
                    id=account_id_for(seq),
                    owner_id=owner_id,
                    account_number=f"{owner_id}-{code}-{series}",
                    product_type=product,
                    opening_date=when,
                    original_principal=amount,
                    balance=Decimal("0"),
                    interest_rate=rate,
                    initial_interest_rate=rate,
                    status=status,
                    currency=self.ledger_policy.currency,
                    loan_subtype=subtype,
                    term_months=term_months,
                    term_days=term_days,
                    rd_frequency=frequency,
                    maturity_date=maturity,
                    emi=emi,
                    guarantors=guarantor_list,
                    low_balance_alert_threshold=threshold,
                )
            )

            if amount > 0:
                self.ledger.record_opening(
                    account.id,
                    amount,
                    mode=mode,
                    cash_amount=cash_amount,
                    online_amount=online_amount,
                    utr_reference=utr_reference,
                    date=when,
                )

            if subtype is LoanSubtype.EMERGENCY:
                self.society_ledger.record_emergency_loan_fee(owner_id, date=when)

            account = self._require_account(account.id)
            logger.info(
                "account_opened",
                extra={
                    "account_id": account.id,
                    "account_number": account.account_number,
                    "product_type": product.value,
                    "loan_subtype": subtype.value if subtype else None,
                    "principal": str(amount),
                    "interest_rate": str(rate),
                },
            )
        return account

    def _resolve_term(
        self,
        product: ProductType,
        subtype: LoanSubtype | None,
        frequency: RdFrequency | None,
        term_months: int | None,
        term_days: int | None,
    ) -> tuple[int | None, int | None]:
        if term_months is not None and term_days is not None:
            raise InvalidTermError("give term_months or term_days, not both", term_months, term_days)
        if (term_months is not None and term_months < 0) or (term_days is not None and term_days < 0):
            raise InvalidTermError("term must not be negative", term_months, term_days)
        if not product.has_maturity:
            if term_months is not None or term_days is not None:
                raise InvalidTermError(f"{product.value} has no term", term_months, term_days)
            return None, None
        if term_days is not None:
            if frequency is not RdFrequency.DAILY:
                raise InvalidTermError("term_days applies to daily recurring deposits only", term_days=term_days)
            return None, term_days
        if frequency is RdFrequency.DAILY:
            raise InvalidTermError("daily recurring deposits need term_days")
        if term_months is None:
            term_months = self.products.term_months_for(product, subtype)
        return term_months, None

    def _initial_emi(
        self,
        product: ProductType,
        subtype: LoanSubtype | None,
        principal: Decimal,
        rate: Decimal,
        term_months: int | None,
    ) -> Decimal | None:
        if product is ProductType.RECURRING_DEPOSIT:
            return principal
        if not product.is_loan or not term_months:
            return None
        projection = project_loan(
            principal=Money.of(principal, self.ledger_policy.currency),
            rate=rate,
            term_months=term_months,
            subtype=subtype or self.products.default_loan_subtype,
        )
        return projection.emi.amount if projection.emi is not None else None

    # ------------------------------------------------------------------
    # Balance reads
    # ------------------------------------------------------------------

    def recompute_balance(self, account_id: str) -> Money:
        """
        Replay the log and return the authoritative balance.

        A cached balance further than the ledger tolerance from the replayed
        figure is overwritten. Drift is logged, never raised.
        """
        with LogContext.bind(account_id=account_id):
            with self.store.account_lock(account_id), self.store.atomic("recompute_balance"):
                account = self._require_account(account_id)
                replayed = replay_balance(account.product_type, self.store.list_transactions(account_id))
                if cache_is_stale(account.balance, replayed, self.ledger_policy.cache_tolerance):
                    logger.warning(
                        "balance_cache_corrected",
                        extra={"cached_balance": str(account.balance), "replayed_balance": str(replayed)},
                    )
                    self.store.save_account(replace(account, balance=replayed))
        return Money.of(replayed, account.currency)

    def minimum_balance_this_year(self, account_id: str, as_of: date | str | None = None) -> Money:
        """Lowest balance held since 1 January of ``as_of``'s year (default: today)."""
        year = self._resolve_date("as_of", as_of).year
        account = self._require_account(account_id)
        transactions = self.store.list_transactions(account_id)
        current = replay_balance(account.product_type, transactions)
        lowest = minimum_balance_in_year(account.product_type, current, transactions, year)
        return Money.of(lowest, account.currency)

    # ------------------------------------------------------------------
    # Status and rate
    # ------------------------------------------------------------------

    def update_status(self, account_id: str, status: AccountStatus | str) -> AccountRecord:
        target = AccountStatus(status)
        with LogContext.bind(account_id=account_id):
            with self.store.account_lock(account_id), self.store.atomic("update_status"):
                account = self._require_account(account_id)
                if account.status is target:
                    return account
                if target not in ALLOWED_TRANSITIONS[account.status]:
                    raise InvalidStatusTransitionError(account_id, account.status.value, target.value)
                updated = self.store.save_account(replace(account, status=target))
            logger.info(
                "account_status_changed",
                extra={"from_status": account.status.value, "to_status": target.value},
            )
        return updated

    def approve_loan(self, account_id: str) -> AccountRecord:
        with self.store.account_lock(account_id):
            account = self._require_account(account_id)
            if not account.is_loan:
                raise InvalidProductError(account.product_type.value, "only loans need approval")
            if account.status is not AccountStatus.PENDING:
                raise InvalidStatusTransitionError(account_id, account.status.value, AccountStatus.ACTIVE.value)
            return self.update_status(account_id, AccountStatus.ACTIVE)

    def edit_interest_rate(self, account_id: str, interest_rate: Decimal | int | str) -> AccountRecord:
        """
        Administrator rate change.

        ``initial_interest_rate`` keeps the rate the account opened with. A
        loan's cached EMI is recomputed from its original principal and term.
        """
        rate = as_decimal("interest_rate", interest_rate)
        if rate is None or rate < 0:
            raise InvalidAmountError("interest_rate", interest_rate, "must not be negative")
        with LogContext.bind(account_id=account_id):
            with self.store.account_lock(account_id), self.store.atomic("edit_interest_rate"):
                account = self._require_account(account_id)
                emi = account.emi
                if account.is_loan:
                    emi = self._initial_emi(
                        account.product_type,
                        account.loan_subtype,
                        account.original_principal,
                        rate,
                        account.term_months,
                    )
                updated = self.store.save_account(replace(account, interest_rate=rate, emi=emi))
            logger.info(
                "interest_rate_edited",
                extra={
                    "old_rate": str(account.interest_rate),
                    "new_rate": str(rate),
                    "initial_rate": str(account.initial_interest_rate),
                },
            )
        return updated

    # ------------------------------------------------------------------
    # Maturity sweep
    # ------------------------------------------------------------------

    def process_maturities(self, as_of: date | str | None = None) -> list[MaturityTransfer]:
        """
        Move matured FD/RD balances into the owner's Optional Deposit.

        An account qualifies once ``maturity_date + maturity_grace_days`` is
        on or before ``as_of``. Owners without an active Optional Deposit
        are skipped and retried on the next sweep.
        """
        day = self._resolve_date("as_of", as_of)
        cutoff = day - timedelta(days=self.ledger_policy.maturity_grace_days)
        transfers: list[MaturityTransfer] = []

        with LogContext.correlate():
            for product in (ProductType.FIXED_DEPOSIT, ProductType.RECURRING_DEPOSIT):
                for account in self.store.list_accounts(product_type=product, status=AccountStatus.ACTIVE):
                    if account.maturity_processed or account.maturity_date is None:
                        continue
                    if account.maturity_date > cutoff:
                        continue
                    targets = self.store.list_accounts(
                        owner_id=account.owner_id,
                        product_type=ProductType.OPTIONAL_DEPOSIT,
                        status=AccountStatus.ACTIVE,
                    )
                    if not targets:
                        logger.info(
                            "maturity_transfer_skipped",
                            extra={"account_id": account.id, "reason": "no optional deposit"},
                        )
                        continue
                    transfers.append(self._transfer_matured(account.id, targets[0].id, day))

        return transfers

    def _transfer_matured(self, source_id: str, target_id: str, day: date) -> MaturityTransfer:
        with self.store.account_lock(source_id, target_id), self.store.atomic("maturity_transfer"):
            source = self._require_account(source_id)
            balance = replay_balance(source.product_type, self.store.list_transactions(source_id))
            debit_id = credit_id = None
            if balance > 0:
                debit = self.ledger.append_transaction(
                    source_id,
                    balance,
                    Direction.DEBIT,
                    mode=PaymentMode.CASH,
                    category=MATURITY_DEBIT_CATEGORY,
                    description=f"{MATURITY_DEBIT_CATEGORY} to {target_id}",
                    date=day,
                )
                credit = self.ledger.append_transaction(
                    target_id,
                    balance,
                    Direction.CREDIT,
                    mode=PaymentMode.CASH,
                    category=MATURITY_CREDIT_CATEGORY,
                    description=f"{MATURITY_CREDIT_CATEGORY} from {source.account_number}",
                    date=day,
                )
                debit_id, credit_id = debit.id, credit.id
            source = self._require_account(source_id)
            self.store.save_account(
                replace(source, status=AccountStatus.MATURED, maturity_processed=True)
            )
        logger.info(
            "maturity_transferred",
            extra={"account_id": source_id, "target_account_id": target_id, "amount": str(balance)},
        )
        return MaturityTransfer(
            source_account_id=source_id,
            target_account_id=target_id,
            amount=Money.of(balance, source.currency),
            debit_transaction_id=debit_id,
            credit_transaction_id=credit_id,
        )
