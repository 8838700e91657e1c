"""
Module: coop_kernel.models.account
Responsibility: ORM persistence for member accounts (deposits, share capital
    and loans) and their guarantors.
Architecture position: Kernel > Models. May import from db/ only.

Invariants enforced:
    - account_number is unique.
    - Structural fields (product, principal, opening date, initial rate,
      term) are immutable after opening; see db/immutability.py.
    - ``balance`` is a cache. The transactions table is authoritative.

Failure modes:
    - IntegrityError on a duplicate account_number.
    - ImmutabilityViolationError on UPDATE of a structural field.
"""

import datetime
from decimal import Decimal

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from coop_kernel.db.base import Base, TrackedBase
from coop_kernel.db.types import CURRENCY_CODE, MONEY, RATE, RECORD_ID, SHORT_CODE


class Account(TrackedBase):
    """
    A member's product account.

    Contract:
        Created once with exactly one seed transaction. Afterwards only the
        balance cache, status, current interest rate and the maturity flag
        change.
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("account_number", name="uq_account_number"),
        Index("idx_account_owner", "owner_id"),
        Index("idx_account_product_status", "product_type", "status"),
    )

    id: Mapped[str] = mapped_column(RECORD_ID, primary_key=True)

    # Member reference; members are owned by the administration tool
    owner_id: Mapped[str] = mapped_column(RECORD_ID, nullable=False)

    # {owner}-{product code}-{series}
    account_number: Mapped[str] = mapped_column(String(64), nullable=False)

    product_type: Mapped[str] = mapped_column(SHORT_CODE, nullable=False)

    loan_subtype: Mapped[str | None] = mapped_column(SHORT_CODE, nullable=True)

    interest_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)

    # Rate at opening, kept after administrator edits
    initial_interest_rate: Mapped[Decimal] = mapped_column(RATE, nullable=False)

    term_months: Mapped[int | None] = mapped_column(Integer, nullable=True)

    term_days: Mapped[int | None] = mapped_column(Integer, nullable=True)

    rd_frequency: Mapped[str | None] = mapped_column(SHORT_CODE, nullable=True)

    opening_date: Mapped[datetime.date] = mapped_column(nullable=False)

    maturity_date: Mapped[datetime.date | None] = mapped_column(nullable=True)

    original_principal: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    # Advisory cache of the replayed transaction log
    balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))

    status: Mapped[str] = mapped_column(SHORT_CODE, nullable=False)

    # EMI for loans, installment for RD
    emi: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    low_balance_alert_threshold: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    maturity_processed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    currency: Mapped[str] = mapped_column(CURRENCY_CODE, nullable=False, default="INR")

    guarantors: Mapped[list["AccountGuarantor"]] = relationship(
        back_populates="account",
        cascade="save-update, merge",
        order_by="AccountGuarantor.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Account {self.account_number} ({self.product_type})>"


class AccountGuarantor(Base):
    """Guarantor attached to a loan account, in the order given at opening."""

    __tablename__ = "account_guarantors"

    account_id: Mapped[str] = mapped_column(
        RECORD_ID,
        ForeignKey("accounts.id"),
        primary_key=True,
    )

    position: Mapped[int] = mapped_column(Integer, primary_key=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    phone: Mapped[str] = mapped_column(String(32), nullable=False)

    relation: Mapped[str | None] = mapped_column(String(64), nullable=True)

    account: Mapped[Account] = relationship(back_populates="guarantors")

    @property
    def id(self) -> str:
        return f"{self.account_id}#{self.position}"
