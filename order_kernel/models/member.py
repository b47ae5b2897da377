"""
Module: order_kernel.models.member
Responsibility: ORM persistence for members -- the employees who submit,
    edit and decide orders.  A member is resolved from the verified principal
    (employee id) on every mutating call and recorded as the audit actor.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - employee_id is globally unique (uq_member_employee_id).
    - Inactive members never resolve (MemberService filters them out).
"""

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Index, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from order_kernel.db.base import Base


class MemberRole(str, Enum):
    """Member roles.

    Contract: Which roles may approve or reject orders is configuration
    (``orders.approver_roles``); TEAM_LEADER and ADMIN by default.
    """

    EMPLOYEE = "EMPLOYEE"
    TEAM_LEADER = "TEAM_LEADER"
    ADMIN = "ADMIN"


class Member(Base):
    """An employee known to the order kernel."""

    __tablename__ = "members"

    __table_args__ = (
        UniqueConstraint("employee_id", name="uq_member_employee_id"),
        Index("idx_member_role", "role"),
    )

    # Principal produced by the authentication layer
    employee_id: Mapped[str] = mapped_column(String(50), nullable=False)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    role: Mapped[MemberRole] = mapped_column(
        String(20),
        nullable=False,
        default=MemberRole.EMPLOYEE,
    )

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Member {self.employee_id} role={self.role}>"
