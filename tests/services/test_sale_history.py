"""
Tests for the sale history audit trail.

Every successful mutating call appends exactly one self-contained snapshot;
failed calls append nothing; rows read back newest first.
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from order_kernel.domain.dtos import MemberInfo
from order_kernel.domain.patches import OrderLinePatch, OrderPatch
from order_kernel.exceptions import CannotChangeOrderStatusError, ConditionNotFitError, OrderNotFoundError
from order_kernel.models.order import OrderHeader, OrderStatus
from order_kernel.services.buyer_service import BuyerService
from order_kernel.services.sale_history_recorder import SaleHistoryRecorder


class TestHistoryRows:

    def test_creation_writes_one_row(self, order_service, place_order):
        order = place_order(("ITEM-A", 2), ("ITEM-B", 1))

        page = order_service.find_histories(order.order_id)

        assert page.total_elements == 1
        row = page.items[0]
        assert row.employee_id == "E1001"
        assert row.order_code == order.order_code
        assert row.order_status == OrderStatus.PURCHASE_REQUEST
        assert row.buyer_cd == "B001"
        assert row.buyer_nm == "Acme Trading"
        assert [line["item_cd"] for line in row.lines] == ["ITEM-A", "ITEM-B"]
        assert Decimal(row.lines[0]["unit_price"]) == Decimal("100")
        assert row.lines[0]["line_no"] == 1

    def test_each_mutation_appends(self, order_service, place_order, deterministic_clock):
        order = place_order(("ITEM-A", 2))
        order_service.update_order_line(
            order.order_id, order.lines[0].line_id, OrderLinePatch(quantity=3), "E1001",
        )
        deterministic_clock.advance(1)
        order_service.update_order(order.order_id, OrderPatch(status="REQUEST_TEMP"), "E1001")
        deterministic_clock.advance(1)
        order_service.update_order(order.order_id, OrderPatch(status="PURCHASE_REQUEST"), "E1001")
        deterministic_clock.advance(1)
        order_service.approve(order.order_id, "T2001")

        rows = order_service.find_histories(order.order_id).items

        assert [r.order_status for r in rows] == [
            OrderStatus.APPROVED,
            OrderStatus.PURCHASE_REQUEST,
            OrderStatus.REQUEST_TEMP,
            OrderStatus.PURCHASE_REQUEST,
            OrderStatus.PURCHASE_REQUEST,
        ]
        assert rows[0].employee_id == "T2001"
        assert rows[-1].lines[0]["quantity"] == 2
        assert rows[-2].lines[0]["quantity"] == 3

    def test_failed_mutation_appends_nothing(self, order_service, place_order):
        order = place_order()
        order_service.cancel(order.order_id, "E1001")

        with pytest.raises(CannotChangeOrderStatusError):
            order_service.cancel(order.order_id, "E1001")

        assert order_service.find_histories(order.order_id).total_elements == 2

    def test_snapshot_survives_buyer_deactivation(
        self, order_service, place_order, seeded, test_actor_id,
    ):
        order = place_order()
        BuyerService(seeded).deactivate_buyer("B001", test_actor_id)
        seeded.commit()

        order_service.update_order(order.order_id, OrderPatch(status="REQUEST_TEMP"), "E1001")

        latest = order_service.find_histories(order.order_id).items[0]
        assert latest.buyer_nm == "Acme Trading"


class TestHistoryPaging:

    def test_pages_newest_first(self, order_service, place_order, deterministic_clock):
        order = place_order()
        for status in ("REQUEST_TEMP", "PURCHASE_REQUEST") * 2:
            order_service.update_order(order.order_id, OrderPatch(status=status), "E1001")
            deterministic_clock.advance(1)

        first = order_service.find_histories(order.order_id, page=1, size=2)
        last = order_service.find_histories(order.order_id, page=3, size=2)

        assert first.total_elements == 5
        assert first.total_pages == 3
        assert first.has_next
        assert len(last.items) == 1
        assert last.items[0].order_status == OrderStatus.PURCHASE_REQUEST
        assert not last.has_next

    def test_unknown_order(self, order_service):
        with pytest.raises(OrderNotFoundError):
            order_service.find_histories(uuid4())

    @pytest.mark.parametrize("page,size", [(0, 10), (1, 0), (1, -1)])
    def test_invalid_page(self, order_service, place_order, page, size):
        order = place_order()
        with pytest.raises(ConditionNotFitError):
            order_service.find_histories(order.order_id, page=page, size=size)


class TestRecorder:

    def test_record_flushes_one_row(self, seeded, place_order, deterministic_clock, captured_logs):
        order = place_order()
        header = seeded.get(OrderHeader, order.order_id)
        member = MemberInfo(member_id=uuid4(), employee_id="SYSTEM", name="Batch", role="ADMIN")

        history = SaleHistoryRecorder(seeded, deterministic_clock).record(header, member)

        assert history.id is not None
        assert history.employee_id == "SYSTEM"
        assert history.order_status == "PURCHASE_REQUEST"
        recorded = [r for r in captured_logs() if r["message"] == "sale_history_recorded"]
        assert recorded[-1]["employee_id"] == "SYSTEM"
