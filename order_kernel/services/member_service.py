"""
Service layer for members -- the identity resolver of the order kernel.

The authentication layer hands the kernel an opaque, already verified
principal (an employee id).  MemberService turns it into a MemberInfo or
fails with MemberNotFoundError.  Password handling and token issuance live
outside the kernel.
"""

from __future__ import annotations

from sqlalchemy import select

from order_kernel.domain.dtos import MemberInfo
from order_kernel.exceptions import MemberNotFoundError
from order_kernel.models.member import Member, MemberRole
from order_kernel.services.base import BaseService


class MemberService(BaseService[Member]):
    """Resolves principals to active members."""

    def _get_by_employee_id(self, employee_id: str) -> Member | None:
        return self.session.execute(
            select(Member).where(Member.employee_id == employee_id)
        ).scalar_one_or_none()

    def find_verified_member(self, employee_id: str) -> MemberInfo:
        """
        Resolve a principal.

        Raises:
            MemberNotFoundError: unknown or inactive employee id.
        """
        member = self._get_by_employee_id(employee_id) if employee_id else None
        if member is None or not member.is_active:
            raise MemberNotFoundError(employee_id)
        return MemberInfo.from_model(member)

    def register_member(
        self,
        employee_id: str,
        name: str,
        role: MemberRole = MemberRole.EMPLOYEE,
    ) -> MemberInfo:
        member = Member(employee_id=employee_id, name=name, role=MemberRole(role))
        self.session.add(member)
        self.session.flush()
        return MemberInfo.from_model(member)

    def deactivate_member(self, employee_id: str) -> MemberInfo:
        member = self._get_by_employee_id(employee_id)
        if member is None:
            raise MemberNotFoundError(employee_id)
        member.is_active = False
        self.session.flush()
        return MemberInfo.from_model(member)
