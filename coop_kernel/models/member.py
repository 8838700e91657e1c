"""
Module: coop_kernel.models.member
Responsibility: Minimal member read model -- the name shown on collection
    reports and the passbook print anchor.
Architecture position: Kernel > Models. May import from db/ only.

Member onboarding (KYC, nominees, documents) belongs to the wider
administration tool; only the columns the ledger reads live here.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from coop_kernel.db.base import TrackedBase
from coop_kernel.db.types import RECORD_ID


class Member(TrackedBase):
    """A cooperative member as seen by the ledger."""

    __tablename__ = "members"

    # Member number, e.g. "M-0042"
    id: Mapped[str] = mapped_column(RECORD_ID, primary_key=True)

    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="Active")

    # Last transaction printed in the physical passbook (unset = nothing printed)
    last_printed_transaction_id: Mapped[str | None] = mapped_column(
        RECORD_ID,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Member {self.id}: {self.full_name}>"
