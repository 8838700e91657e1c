"""
Module: coop_kernel.models.transaction
Responsibility: ORM persistence for account transactions -- the log every
    balance is replayed from.
Architecture position: Kernel > Models. May import from db/ only.

Invariants enforced:
    - seq is unique and increases with every append; replay reads in seq order.
    - amount > 0 (CHECK constraint). Direction and kind carry the sign.
    - Rows are never updated or deleted (db/immutability.py).
"""

import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from coop_kernel.db.base import TrackedBase
from coop_kernel.db.types import LONG_TEXT, MONEY, RECORD_ID, SHORT_CODE


class Transaction(TrackedBase):
    """A dated, signed money movement on one account."""

    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transaction_amount_positive"),
        Index("idx_transaction_account_seq", "account_id", "seq"),
        Index("idx_transaction_date", "date"),
    )

    # TX-{seq:010d}
    id: Mapped[str] = mapped_column(RECORD_ID, primary_key=True)

    account_id: Mapped[str] = mapped_column(
        RECORD_ID,
        ForeignKey("accounts.id"),
        nullable=False,
    )

    # Store-wide insertion order
    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    date: Mapped[datetime.date] = mapped_column(nullable=False)

    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    direction: Mapped[str] = mapped_column(SHORT_CODE, nullable=False)

    # Seed / Disbursement / Regular
    kind: Mapped[str] = mapped_column(SHORT_CODE, nullable=False)

    category: Mapped[str] = mapped_column(String(100), nullable=False, default="")

    description: Mapped[str] = mapped_column(LONG_TEXT, nullable=False, default="")

    due_date: Mapped[datetime.date | None] = mapped_column(nullable=True)

    payment_mode: Mapped[str] = mapped_column(SHORT_CODE, nullable=False, default="Cash")

    # Only populated for Both
    cash_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    online_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    utr_reference: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<Transaction {self.id} {self.direction} {self.amount}>"
