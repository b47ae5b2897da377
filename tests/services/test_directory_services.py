"""
Tests for the directory services the order lifecycle resolves against:
MemberService, BuyerService and ItemService.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from order_kernel.exceptions import (
    BuyerAlreadyExistsError,
    BuyerCodeAlreadyExistsError,
    BuyerNotFoundError,
    ConditionNotFitError,
    EmailAlreadyExistsError,
    InactiveStatusError,
    ItemCodeAlreadyExistsError,
    ItemNameAlreadyExistsError,
    ItemNotFoundError,
    MemberNotFoundError,
)
from order_kernel.models.item import StockReceipt
from order_kernel.services.buyer_service import BuyerService
from order_kernel.services.item_service import ItemService
from order_kernel.services.member_service import MemberService


class TestMemberService:

    def test_resolves_principal(self, seeded):
        member = MemberService(seeded).find_verified_member("T2001")
        assert member.name == "Lee Leader"
        assert member.role == "TEAM_LEADER"

    @pytest.mark.parametrize("principal", ["", "NOBODY"])
    def test_unknown_principal(self, seeded, principal):
        with pytest.raises(MemberNotFoundError):
            MemberService(seeded).find_verified_member(principal)

    def test_deactivated_member_does_not_resolve(self, seeded):
        members = MemberService(seeded)
        members.deactivate_member("E1001")

        with pytest.raises(MemberNotFoundError):
            members.find_verified_member("E1001")


class TestBuyerService:

    def test_lookup_by_code(self, seeded):
        buyer = BuyerService(seeded).find_verified_buyer("B001")
        assert buyer.buyer_nm == "Acme Trading"
        assert buyer.status == "ACTIVE"

    def test_unknown_code(self, seeded):
        with pytest.raises(BuyerNotFoundError):
            BuyerService(seeded).find_verified_buyer("B999")

    def test_inactive_buyer_only_on_request(self, seeded, test_actor_id):
        buyers = BuyerService(seeded)
        buyers.deactivate_buyer("B001", test_actor_id)

        with pytest.raises(InactiveStatusError):
            buyers.find_verified_buyer("B001")
        assert buyers.find_verified_buyer("B001", include_inactive=True).status == "INACTIVE"

    def test_find_by_code_or_name(self, seeded):
        buyers = BuyerService(seeded)
        assert buyers.find_buyer(buyer_cd="B001").buyer_nm == "Acme Trading"
        assert buyers.find_buyer(buyer_nm="Acme Trading").buyer_cd == "B001"

    def test_find_needs_a_criterion(self, seeded):
        with pytest.raises(ConditionNotFitError):
            BuyerService(seeded).find_buyer()

    def test_find_skips_inactive(self, seeded, test_actor_id):
        buyers = BuyerService(seeded)
        buyers.deactivate_buyer("B001", test_actor_id)

        with pytest.raises(BuyerNotFoundError):
            buyers.find_buyer(buyer_nm="Acme Trading")
        assert buyers.list_active_buyers() == []

    @pytest.mark.parametrize(
        "fields,error",
        [
            ({"buyer_cd": "B002", "buyer_nm": "Acme Trading", "tel": "1"}, BuyerAlreadyExistsError),
            ({"buyer_cd": "B002", "buyer_nm": "Other", "tel": "02-555-0100"}, BuyerAlreadyExistsError),
            (
                {"buyer_cd": "B002", "buyer_nm": "Other", "tel": "1", "email": "orders@acme.example"},
                EmailAlreadyExistsError,
            ),
            ({"buyer_cd": "B001", "buyer_nm": "Other", "tel": "1"}, BuyerCodeAlreadyExistsError),
        ],
    )
    def test_duplicates(self, seeded, test_actor_id, fields, error):
        with pytest.raises(error):
            BuyerService(seeded).register_buyer(actor_id=test_actor_id, **fields)

    def test_name_conflict_is_reported_first(self, seeded, test_actor_id):
        with pytest.raises(BuyerAlreadyExistsError) as exc_info:
            BuyerService(seeded).register_buyer(
                "B001", "Acme Trading", "02-555-0100", test_actor_id, email="orders@acme.example",
            )
        assert exc_info.value.field == "buyer_nm"

    def test_register_many(self, seeded, test_actor_id):
        registered = BuyerService(seeded).register_buyers(
            [
                {"buyer_cd": "B002", "buyer_nm": "Bolt Supplies", "tel": "02-555-0200"},
                {"buyer_cd": "B003", "buyer_nm": "Crane Office", "tel": "02-555-0300"},
            ],
            test_actor_id,
        )
        assert [b.buyer_cd for b in registered] == ["B002", "B003"]

    def test_update(self, seeded, test_actor_id):
        buyers = BuyerService(seeded)
        updated = buyers.update_buyer("B001", test_actor_id, tel="02-555-0199", address="1 Main St")

        assert updated.tel == "02-555-0199"
        assert updated.address == "1 Main St"
        assert updated.buyer_nm == "Acme Trading"

    def test_update_to_taken_name(self, seeded, test_actor_id):
        buyers = BuyerService(seeded)
        buyers.register_buyer("B002", "Bolt Supplies", "02-555-0200", test_actor_id)

        with pytest.raises(BuyerAlreadyExistsError):
            buyers.update_buyer("B002", test_actor_id, buyer_nm="Acme Trading")

    def test_contract_window_must_be_ordered(self, seeded, test_actor_id):
        with pytest.raises(ConditionNotFitError):
            BuyerService(seeded).set_contract_price(
                "B001", "ITEM-A", Decimal("1"), test_actor_id,
                start_date=datetime(2025, 2, 1, tzinfo=timezone.utc),
                end_date=datetime(2025, 1, 1, tzinfo=timezone.utc),
            )


class TestItemService:

    def test_lookup(self, seeded):
        item = ItemService(seeded).find_verified_item("ITEM-A")
        assert item.item_nm == "Copy Paper A4"
        assert item.unit_cost == Decimal("30")

    def test_unknown_item(self, seeded):
        with pytest.raises(ItemNotFoundError):
            ItemService(seeded).find_verified_item("ITEM-Z")

    def test_duplicate_code(self, seeded, test_actor_id):
        with pytest.raises(ItemCodeAlreadyExistsError):
            ItemService(seeded).register_item("ITEM-A", "Anything", Decimal("1"), test_actor_id)

    def test_duplicate_name(self, seeded, test_actor_id):
        with pytest.raises(ItemNameAlreadyExistsError):
            ItemService(seeded).register_item("ITEM-C", "Copy Paper A4", Decimal("1"), test_actor_id)

    def test_discontinued_item_leaves_sale_list(self, seeded, test_actor_id):
        items = ItemService(seeded)
        items.discontinue_item("ITEM-B", test_actor_id)

        assert [i.item_cd for i in items.list_items_on_sale()] == ["ITEM-A"]
        assert items.find_verified_item("ITEM-B").status == "NOT_FOR_SALE"

    def test_update(self, seeded, test_actor_id):
        updated = ItemService(seeded).update_item(
            "ITEM-A", test_actor_id, unit_price=Decimal("110"), unit_cost=Decimal("35"),
        )
        assert updated.unit_price == Decimal("110")
        assert updated.unit_cost == Decimal("35")

    def test_lock_items(self, seeded):
        locked = ItemService(seeded).lock_items(["ITEM-B", "ITEM-A", "ITEM-B"])
        assert sorted(locked) == ["ITEM-A", "ITEM-B"]

    def test_lock_unknown_item(self, seeded):
        with pytest.raises(ItemNotFoundError):
            ItemService(seeded).lock_items(["ITEM-A", "ITEM-Q"])

    def test_receive_stock(self, seeded, test_actor_id, deterministic_clock):
        receipt_id = ItemService(seeded, deterministic_clock).receive_stock(
            "ITEM-A", 12, test_actor_id, reference="PO-7",
        )
        receipt = seeded.get(StockReceipt, receipt_id)
        assert receipt.quantity == 12
        assert receipt.reference == "PO-7"

    def test_receive_needs_positive_quantity(self, seeded, test_actor_id):
        with pytest.raises(ValueError):
            ItemService(seeded).receive_stock("ITEM-A", 0, test_actor_id)

    def test_receive_unknown_item(self, seeded, test_actor_id):
        with pytest.raises(ItemNotFoundError):
            ItemService(seeded).receive_stock("ITEM-Z", 1, test_actor_id)

    def test_resolve_unit_price(self, seeded, test_actor_id, deterministic_clock):
        BuyerService(seeded).set_contract_price("B001", "ITEM-B", Decimal("220"), test_actor_id)
        items = ItemService(seeded)
        now = deterministic_clock.now_utc()

        assert items.resolve_unit_price("B001", "ITEM-B", now) == Decimal("220")
        assert items.resolve_unit_price("B001", "ITEM-A", now) == Decimal("100")
        assert items.resolve_unit_price("B999", "ITEM-B", now) == Decimal("250")
