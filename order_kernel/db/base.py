"""
Module: order_kernel.db.base
Responsibility: Declarative bases for every order kernel ORM model.
Architecture position: Kernel > DB.  Lowest-level import target; must not
    import from models/, services/, selectors/ or domain/.

Conventions:
    - Every row has a uuid4 surrogate ``id`` stored as String(36), so the
      same schema runs on PostgreSQL and SQLite.  Buyers and items are
      referenced across tables by business code (buyer_cd, item_cd), not
      by this id.
    - Prices and costs are Decimal -> Numeric(38, 9); quantities and
      counters are int -> BigInteger.  Nothing monetary is a float.
    - Datetimes are timezone-aware columns.  SQLite hands them back naive;
      readers that compare them treat naive values as UTC.
"""

from datetime import datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID <-> 36-character string."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return None if value is None else str(value)

    def process_result_value(self, value, dialect):
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    """Declarative base: uuid4 ``id`` plus the shared type map."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    """
    Directory and order rows that record who created and last changed them.

    OrderService sets ``created_at`` from its Clock on order headers, since
    order queries and reports sort and filter on it.  The server default
    covers directory rows, which are written without a clock.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False,
    )
    created_by_id: Mapped[UUID] = mapped_column(nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(nullable=True)
