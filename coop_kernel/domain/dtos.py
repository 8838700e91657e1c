"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the enums and immutable records that flow between the storage
    port, the services and the engines: accounts, transactions, society
    ledger entries, members and normalized payment splits.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` class methods convert ORM rows at the storage boundary;
    they are only called from coop_kernel.storage.

Invariants enforced:
    - Records are frozen. Changing an account means storing a new record
      built with ``dataclasses.replace``.
    - Money amounts are Decimal (never float); the account's ``currency``
      tells which Currency they are in.
    - Transaction and ledger entry ids embed a zero-padded sequence so that
      lexical order equals creation order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from coop_kernel.domain.values import Money

if TYPE_CHECKING:
    from coop_kernel.models.account import Account as AccountModel
    from coop_kernel.models.member import Member as MemberModel
    from coop_kernel.models.society_ledger import SocietyLedgerEntry as LedgerEntryModel
    from coop_kernel.models.transaction import Transaction as TransactionModel


class ProductType(str, Enum):
    """The six account products a member can hold."""

    SHARE_CAPITAL = "ShareCapital"
    COMPULSORY_DEPOSIT = "CompulsoryDeposit"
    OPTIONAL_DEPOSIT = "OptionalDeposit"
    FIXED_DEPOSIT = "FixedDeposit"
    RECURRING_DEPOSIT = "RecurringDeposit"
    LOAN = "Loan"

    @property
    def is_loan(self) -> bool:
        return self is ProductType.LOAN

    @property
    def is_deposit(self) -> bool:
        return self is not ProductType.LOAN

    @property
    def has_maturity(self) -> bool:
        return self in (ProductType.FIXED_DEPOSIT, ProductType.RECURRING_DEPOSIT, ProductType.LOAN)


# Account number product codes; loans are coded by subtype instead.
PRODUCT_CODES: dict[ProductType, str] = {
    ProductType.SHARE_CAPITAL: "SHR",
    ProductType.COMPULSORY_DEPOSIT: "CD",
    ProductType.OPTIONAL_DEPOSIT: "ODP",
    ProductType.FIXED_DEPOSIT: "FD",
    ProductType.RECURRING_DEPOSIT: "RD",
}


class LoanSubtype(str, Enum):
    """Loan purposes. Emergency is the only flat-rate subtype."""

    PERSONAL = "Personal"
    HOME = "Home"
    GOLD = "Gold"
    VEHICLE = "Vehicle"
    AGRICULTURE = "Agriculture"
    EMERGENCY = "Emergency"

    @property
    def code(self) -> str:
        return _LOAN_CODES[self]

    @property
    def is_flat_rate(self) -> bool:
        return self is LoanSubtype.EMERGENCY


_LOAN_CODES: dict[LoanSubtype, str] = {
    LoanSubtype.PERSONAL: "PL",
    LoanSubtype.HOME: "HL",
    LoanSubtype.GOLD: "GL",
    LoanSubtype.VEHICLE: "VL",
    LoanSubtype.AGRICULTURE: "AL",
    LoanSubtype.EMERGENCY: "EL",
}


class AccountStatus(str, Enum):
    PENDING = "Pending"
    ACTIVE = "Active"
    CLOSED = "Closed"
    MATURED = "Matured"
    DEFAULTED = "Defaulted"


class RdFrequency(str, Enum):
    MONTHLY = "Monthly"
    DAILY = "Daily"


class Direction(str, Enum):
    """Side of an account transaction."""

    CREDIT = "credit"
    DEBIT = "debit"


class TransactionKind(str, Enum):
    """
    How replay treats a transaction.

    SEED is the opening deposit and DISBURSEMENT the opening loan draw; both
    always add to the balance regardless of direction. REGULAR follows the
    product's polarity.
    """

    SEED = "Seed"
    DISBURSEMENT = "Disbursement"
    REGULAR = "Regular"

    @property
    def always_adds(self) -> bool:
        return self is not TransactionKind.REGULAR


class PaymentMode(str, Enum):
    CASH = "Cash"
    ONLINE = "Online"
    BOTH = "Both"


class LedgerDirection(str, Enum):
    """Side of a society ledger entry."""

    INCOME = "Income"
    EXPENSE = "Expense"


@dataclass(frozen=True)
class Guarantor:
    """A person standing surety for a loan."""

    name: str
    phone: str
    relation: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.name.strip() and self.phone and self.phone.strip())


@dataclass(frozen=True)
class PaymentSplit:
    """
    A reconciled payment instruction.

    Contract:
        ``cash + online == amount`` up to the one-unit split tolerance. For
        Cash and Online modes one side carries the whole amount. Only a Both
        split keeps its explicit parts on the stored record; see
        ``stored_cash_amount``/``stored_online_amount``.
    """

    mode: PaymentMode
    amount: Decimal
    cash: Decimal
    online: Decimal
    utr_reference: str | None = None

    @property
    def stored_cash_amount(self) -> Decimal | None:
        return self.cash if self.mode is PaymentMode.BOTH else None

    @property
    def stored_online_amount(self) -> Decimal | None:
        return self.online if self.mode is PaymentMode.BOTH else None


@dataclass(frozen=True)
class MemberRecord:
    """The slice of a member the ledger needs: a name and the passbook anchor."""

    id: str
    full_name: str
    status: str = "Active"
    last_printed_transaction_id: str | None = None

    @classmethod
    def from_model(cls, model: MemberModel) -> MemberRecord:
        return cls(
            id=model.id,
            full_name=model.full_name,
            status=model.status,
            last_printed_transaction_id=model.last_printed_transaction_id,
        )


@dataclass(frozen=True)
class AccountRecord:
    """
    Pure domain representation of an account.

    Contract:
        Immutable snapshot of an account. ``balance`` is a cache of the
        replayed transaction log and is only trusted after
        ``AccountService.recompute_balance``.

    Guarantees:
        - Exactly one of ``term_months``/``term_days`` is set for products
          with a term; neither for ShareCapital/CompulsoryDeposit/OD.
        - ``initial_interest_rate`` and ``original_principal`` never change.
    """

    id: str
    owner_id: str
    account_number: str
    product_type: ProductType
    opening_date: date
    original_principal: Decimal
    balance: Decimal
    interest_rate: Decimal
    initial_interest_rate: Decimal
    status: AccountStatus = AccountStatus.ACTIVE
    currency: str = "INR"
    loan_subtype: LoanSubtype | None = None
    term_months: int | None = None
    term_days: int | None = None
    rd_frequency: RdFrequency | None = None
    maturity_date: date | None = None
    emi: Decimal | None = None
    guarantors: tuple[Guarantor, ...] = field(default_factory=tuple)
    low_balance_alert_threshold: Decimal | None = None
    maturity_processed: bool = False

    @property
    def is_loan(self) -> bool:
        return self.product_type.is_loan

    @property
    def balance_money(self) -> Money:
        return Money.of(self.balance, self.currency)

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountRecord:
        return cls(
            id=model.id,
            owner_id=model.owner_id,
            account_number=model.account_number,
            product_type=ProductType(model.product_type),
            opening_date=model.opening_date,
            original_principal=model.original_principal,
            balance=model.balance,
            interest_rate=model.interest_rate,
            initial_interest_rate=model.initial_interest_rate,
            status=AccountStatus(model.status),
            currency=model.currency,
            loan_subtype=LoanSubtype(model.loan_subtype) if model.loan_subtype else None,
            term_months=model.term_months,
            term_days=model.term_days,
            rd_frequency=RdFrequency(model.rd_frequency) if model.rd_frequency else None,
            maturity_date=model.maturity_date,
            emi=model.emi,
            guarantors=tuple(
                Guarantor(name=g.name, phone=g.phone, relation=g.relation or "")
                for g in sorted(model.guarantors, key=lambda g: g.position)
            ),
            low_balance_alert_threshold=model.low_balance_alert_threshold,
            maturity_processed=model.maturity_processed,
        )


@dataclass(frozen=True)
class TransactionRecord:
    """
    An appended account transaction.

    Immutable once stored. ``seq`` is the store-wide insertion order and is
    the tie-breaker when two transactions share a date.
    """

    id: str
    account_id: str
    seq: int
    date: date
    amount: Decimal
    direction: Direction
    kind: TransactionKind = TransactionKind.REGULAR
    category: str = ""
    description: str = ""
    payment_mode: PaymentMode = PaymentMode.CASH
    cash_amount: Decimal | None = None
    online_amount: Decimal | None = None
    utr_reference: str | None = None
    due_date: date | None = None

    @classmethod
    def from_model(cls, model: TransactionModel) -> TransactionRecord:
        return cls(
            id=model.id,
            account_id=model.account_id,
            seq=model.seq,
            date=model.date,
            amount=model.amount,
            direction=Direction(model.direction),
            kind=TransactionKind(model.kind),
            category=model.category,
            description=model.description,
            payment_mode=PaymentMode(model.payment_mode) if model.payment_mode else PaymentMode.CASH,
            cash_amount=model.cash_amount,
            online_amount=model.online_amount,
            utr_reference=model.utr_reference,
            due_date=model.due_date,
        )


@dataclass(frozen=True)
class LedgerEntryRecord:
    """A society-level income or expense, independent of any account."""

    id: str
    seq: int
    date: date
    amount: Decimal
    direction: LedgerDirection
    category: str
    description: str = ""
    member_id: str | None = None
    payment_mode: PaymentMode = PaymentMode.CASH
    cash_amount: Decimal | None = None
    online_amount: Decimal | None = None
    utr_reference: str | None = None

    @classmethod
    def from_model(cls, model: LedgerEntryModel) -> LedgerEntryRecord:
        return cls(
            id=model.id,
            seq=model.seq,
            date=model.date,
            amount=model.amount,
            direction=LedgerDirection(model.direction),
            category=model.category,
            description=model.description,
            member_id=model.member_id,
            payment_mode=PaymentMode(model.payment_mode) if model.payment_mode else PaymentMode.CASH,
            cash_amount=model.cash_amount,
            online_amount=model.online_amount,
            utr_reference=model.utr_reference,
        )
