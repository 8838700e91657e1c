"""
Module: coop_kernel.models.society_ledger
Responsibility: ORM persistence for the society-level income/expense journal
    (admission fees, loan processing fees, office expenses).
Architecture position: Kernel > Models. May import from db/ only.

Entries are independent of any account balance and, like transactions, are
append-only.
"""

import datetime
from decimal import Decimal

from sqlalchemy import BigInteger, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from coop_kernel.db.base import TrackedBase
from coop_kernel.db.types import LONG_TEXT, MONEY, RECORD_ID, SHORT_CODE


class SocietyLedgerEntry(TrackedBase):
    """One society income or expense line."""

    __tablename__ = "society_ledger_entries"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_ledger_amount_positive"),
        Index("idx_ledger_date", "date"),
        Index("idx_ledger_member", "member_id"),
    )

    # LDG-{seq:010d}
    id: Mapped[str] = mapped_column(RECORD_ID, primary_key=True)

    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    # Null for internal society transactions
    member_id: Mapped[str | None] = mapped_column(RECORD_ID, nullable=True)

    date: Mapped[datetime.date] = mapped_column(nullable=False)

    description: Mapped[str] = mapped_column(LONG_TEXT, nullable=False, default="")

    category: Mapped[str] = mapped_column(String(100), nullable=False)

    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)

    # Income / Expense
    direction: Mapped[str] = mapped_column(SHORT_CODE, nullable=False)

    payment_mode: Mapped[str] = mapped_column(SHORT_CODE, nullable=False, default="Cash")

    cash_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    online_amount: Mapped[Decimal | None] = mapped_column(MONEY, nullable=True)

    utr_reference: Mapped[str | None] = mapped_column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<SocietyLedgerEntry {self.id} {self.direction} {self.amount}>"
