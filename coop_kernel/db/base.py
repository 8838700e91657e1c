"""
Module: coop_kernel.db.base
Responsibility: Declarative base classes for the ORM models. Holds the
    type annotation map that keeps money columns on Numeric(18, 2) and the
    TrackedBase mixin with row timestamps.
Architecture position: Kernel > DB. Lowest import target in the kernel; it
    MUST NOT import from models/, services/, storage/ or domain/.

Invariants enforced:
    - Decimal maps to Numeric(18, 2). Money is never stored as float.
    - Primary keys are human-readable strings (``ACC-...``, ``TX-...``) declared
      by each model, so there is no id column on Base itself.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import BigInteger, Date, DateTime, Numeric, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Declarative base for all coop models.

    Guarantees:
        - Decimal -> Numeric(18, 2) (paise precision).
        - datetime -> DateTime(timezone=True).
        - date -> Date.
        - int -> BigInteger, so sequence numbers cannot overflow.
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(18, 2),
        datetime: DateTime(timezone=True),
        date: Date,
        int: BigInteger,
    }


class TrackedBase(Base):
    """
    Abstract base with row timestamps.

    ``updated_at`` is metadata, not financial data, so it may change even on
    rows the immutability listeners otherwise protect.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
