"""
Service layer for Buyer operations.

Manages the customer accounts that place orders, and their buyer-specific
contract prices.  Buyers are referenced by business code (buyer_cd) from
orders and history, so they are never deleted: deactivation is a soft
delete to INACTIVE.

Duplicate code, name, telephone and email are rejected with ConflictError
subclasses before the insert, in that order: name, tel, email, code.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import or_, select

from order_kernel.domain.dtos import BuyerInfo
from order_kernel.exceptions import (
    BuyerAlreadyExistsError,
    BuyerCodeAlreadyExistsError,
    BuyerNotFoundError,
    ConditionNotFitError,
    EmailAlreadyExistsError,
    InactiveStatusError,
)
from order_kernel.logging_config import get_logger
from order_kernel.models.buyer import Buyer, BuyerItem, BuyerStatus
from order_kernel.services.base import BaseService

logger = get_logger("services.buyer")


class BuyerService(BaseService[Buyer]):
    """
    Service for managing buyers.

    All public methods return BuyerInfo DTOs, not ORM Buyer entities.
    """

    def _find_by_code(self, buyer_cd: str) -> Buyer | None:
        return self.session.execute(
            select(Buyer).where(Buyer.buyer_cd == buyer_cd)
        ).scalar_one_or_none()

    def _exists(self, *criteria) -> bool:
        return self.session.execute(
            select(Buyer.id).where(*criteria).limit(1)
        ).first() is not None

    def _verify_unique(
        self,
        buyer_nm: str | None = None,
        tel: str | None = None,
        email: str | None = None,
        buyer_cd: str | None = None,
    ) -> None:
        if buyer_nm is not None and self._exists(Buyer.buyer_nm == buyer_nm):
            raise BuyerAlreadyExistsError("buyer_nm", buyer_nm)
        if tel is not None and self._exists(Buyer.tel == tel):
            raise BuyerAlreadyExistsError("tel", tel)
        if email is not None and self._exists(Buyer.email == email):
            raise EmailAlreadyExistsError(email)
        if buyer_cd is not None and self._exists(Buyer.buyer_cd == buyer_cd):
            raise BuyerCodeAlreadyExistsError(buyer_cd)

    def find_verified_buyer(self, buyer_cd: str, include_inactive: bool = False) -> BuyerInfo:
        """
        Look up a buyer by business code.

        Args:
            buyer_cd: Buyer business code.
            include_inactive: Also return soft-deleted buyers.

        Raises:
            BuyerNotFoundError: Unknown buyer code.
            InactiveStatusError: Buyer is INACTIVE and include_inactive is False.
        """
        buyer = self._find_by_code(buyer_cd)
        if buyer is None:
            raise BuyerNotFoundError(buyer_cd)
        if not include_inactive and not buyer.is_active:
            raise InactiveStatusError("Buyer", buyer_cd)
        return BuyerInfo.from_model(buyer)

    def find_buyer(
        self,
        buyer_cd: str | None = None,
        buyer_nm: str | None = None,
    ) -> BuyerInfo:
        """
        Find an active buyer by code or name.

        Raises:
            ConditionNotFitError: Neither code nor name supplied.
            BuyerNotFoundError: No active buyer matches.
        """
        if not buyer_cd and not buyer_nm:
            raise ConditionNotFitError("buyer_cd or buyer_nm is required")

        matches = []
        if buyer_cd:
            matches.append(Buyer.buyer_cd == buyer_cd)
        if buyer_nm:
            matches.append(Buyer.buyer_nm == buyer_nm)

        buyer = self.session.execute(
            select(Buyer)
            .where(or_(*matches))
            .where(Buyer.status != BuyerStatus.INACTIVE.value)
            .order_by(Buyer.buyer_cd)
            .limit(1)
        ).scalar_one_or_none()
        if buyer is None:
            raise BuyerNotFoundError(buyer_cd or buyer_nm)
        return BuyerInfo.from_model(buyer)

    def list_active_buyers(self) -> list[BuyerInfo]:
        buyers = self.session.execute(
            select(Buyer)
            .where(Buyer.status != BuyerStatus.INACTIVE.value)
            .order_by(Buyer.buyer_cd)
        ).scalars().all()
        return [BuyerInfo.from_model(b) for b in buyers]

    def register_buyer(
        self,
        buyer_cd: str,
        buyer_nm: str,
        tel: str,
        actor_id: UUID,
        email: str | None = None,
        address: str | None = None,
        business_type: str | None = None,
    ) -> BuyerInfo:
        """
        Register a new buyer.

        Raises:
            BuyerAlreadyExistsError: Name or telephone already registered.
            EmailAlreadyExistsError: Email already registered.
            BuyerCodeAlreadyExistsError: Code already registered.
        """
        self._verify_unique(buyer_nm=buyer_nm, tel=tel, email=email, buyer_cd=buyer_cd)

        buyer = Buyer(
            buyer_cd=buyer_cd,
            buyer_nm=buyer_nm,
            tel=tel,
            email=email,
            address=address,
            business_type=business_type,
            status=BuyerStatus.ACTIVE,
            created_by_id=actor_id,
        )
        self.session.add(buyer)
        self.session.flush()

        logger.info("buyer_registered", extra={"buyer_cd": buyer_cd})
        return BuyerInfo.from_model(buyer)

    def register_buyers(self, buyers: list[dict], actor_id: UUID) -> list[BuyerInfo]:
        """Register several buyers; the first duplicate aborts the batch."""
        return [self.register_buyer(actor_id=actor_id, **fields) for fields in buyers]

    def update_buyer(
        self,
        buyer_cd: str,
        actor_id: UUID,
        buyer_nm: str | None = None,
        tel: str | None = None,
        email: str | None = None,
        address: str | None = None,
        business_type: str | None = None,
    ) -> BuyerInfo:
        """
        Update buyer details.  None leaves a field unchanged; the buyer code
        cannot be changed.
        """
        buyer = self._find_by_code(buyer_cd)
        if buyer is None:
            raise BuyerNotFoundError(buyer_cd)

        changed_nm = buyer_nm if buyer_nm is not None and buyer_nm != buyer.buyer_nm else None
        changed_tel = tel if tel is not None and tel != buyer.tel else None
        changed_email = email if email is not None and email != buyer.email else None
        self._verify_unique(buyer_nm=changed_nm, tel=changed_tel, email=changed_email)

        if buyer_nm is not None:
            buyer.buyer_nm = buyer_nm
        if tel is not None:
            buyer.tel = tel
        if email is not None:
            buyer.email = email
        if address is not None:
            buyer.address = address
        if business_type is not None:
            buyer.business_type = business_type
        buyer.updated_by_id = actor_id

        self.session.flush()
        return BuyerInfo.from_model(buyer)

    def deactivate_buyer(self, buyer_cd: str, actor_id: UUID) -> BuyerInfo:
        """
        Soft-delete a buyer.

        The row stays so historical orders and sale history keep resolving
        the buyer name.
        """
        buyer = self._find_by_code(buyer_cd)
        if buyer is None:
            raise BuyerNotFoundError(buyer_cd)
        buyer.status = BuyerStatus.INACTIVE
        buyer.updated_by_id = actor_id
        self.session.flush()

        logger.info("buyer_deactivated", extra={"buyer_cd": buyer_cd})
        return BuyerInfo.from_model(buyer)

    def set_contract_price(
        self,
        buyer_cd: str,
        item_cd: str,
        unit_price: Decimal,
        actor_id: UUID,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> UUID:
        """
        Record a buyer-specific price for an item.

        Returns:
            The id of the new BuyerItem row.
        """
        if self._find_by_code(buyer_cd) is None:
            raise BuyerNotFoundError(buyer_cd)
        if start_date is not None and end_date is not None and start_date > end_date:
            raise ConditionNotFitError("contract start_date is after end_date")

        contract = BuyerItem(
            buyer_cd=buyer_cd,
            item_cd=item_cd,
            unit_price=Decimal(str(unit_price)),
            start_date=start_date,
            end_date=end_date,
            created_by_id=actor_id,
        )
        self.session.add(contract)
        self.session.flush()
        return contract.id
