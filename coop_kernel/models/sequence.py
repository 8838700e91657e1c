"""
Module: coop_kernel.models.sequence
Responsibility: Named counter rows behind SequenceService.
Architecture position: Kernel > Models. May import from db/ only.
"""

from sqlalchemy import BigInteger, String
from sqlalchemy.orm import Mapped, mapped_column

from coop_kernel.db.base import Base


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row is a named sequence with its current value. Row-level locking
    keeps allocation monotonic under concurrency.
    """

    __tablename__ = "sequence_counters"

    # "transaction", "ledger_entry", "account"
    name: Mapped[str] = mapped_column(String(50), primary_key=True)

    current_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
