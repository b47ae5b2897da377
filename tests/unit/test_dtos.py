"""
Tests for read-model DTOs: Page arithmetic, OrderSearch defaults and the
selector window / page helpers.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from order_kernel.domain.dtos import (
    MAX_DATE,
    MIN_DATE,
    OrderInfo,
    OrderLineInfo,
    OrderSearch,
    Page,
)
from order_kernel.exceptions import ConditionNotFitError
from order_kernel.models.order import OrderStatus
from order_kernel.selectors.base import checked_page, day_bounds


class TestPage:

    def test_total_pages_rounds_up(self):
        page = Page(items=[1, 2], page=1, size=2, total_elements=5)
        assert page.total_pages == 3
        assert page.has_next

    def test_last_page(self):
        page = Page(items=[5], page=3, size=2, total_elements=5)
        assert not page.has_next

    def test_empty_result(self):
        page = Page(items=[], page=1, size=10, total_elements=0)
        assert page.total_pages == 0
        assert not page.has_next

    def test_offset_is_zero_based(self):
        assert Page.offset(1, 10) == 0
        assert Page.offset(3, 10) == 20


class TestOrderSearch:

    def test_unbounded_window_by_default(self):
        assert OrderSearch().window == (MIN_DATE, MAX_DATE)

    def test_partial_window(self):
        search = OrderSearch(start_date=date(2024, 12, 1))
        assert search.window == (date(2024, 12, 1), MAX_DATE)

    def test_status_string_is_coerced(self):
        assert OrderSearch(status="APPROVED").status is OrderStatus.APPROVED


class TestOrderInfo:

    def test_total_amount(self):
        order_id = uuid4()
        lines = tuple(
            OrderLineInfo(
                line_id=uuid4(), order_id=order_id, line_no=n, item_cd=cd,
                quantity=qty, unit_price=Decimal(price),
                start_date=None, end_date=None, unit=None,
            )
            for n, (cd, qty, price) in enumerate([("A", 2, "10.50"), ("B", 1, "4")], start=1)
        )
        info = OrderInfo(
            order_id=order_id, order_code="24DEC1100001", status=OrderStatus.PURCHASE_REQUEST,
            request_date=None, created_at=datetime(2024, 12, 11, tzinfo=timezone.utc),
            buyer_cd="B001", member_id=uuid4(), lines=lines,
        )
        assert info.total_amount == Decimal("25.00")


class TestDayBounds:

    def test_whole_days_inclusive(self):
        start, end = day_bounds(date(2024, 12, 1), date(2024, 12, 31))
        assert start == datetime(2024, 12, 1, tzinfo=timezone.utc)
        assert end == datetime.combine(date(2024, 12, 31), time.max, tzinfo=timezone.utc)

    def test_single_day(self):
        start, end = day_bounds(date(2024, 12, 11), date(2024, 12, 11))
        assert start < end

    def test_inverted_window(self):
        with pytest.raises(ConditionNotFitError):
            day_bounds(date(2024, 12, 2), date(2024, 12, 1))


class TestCheckedPage:

    def test_valid_request(self):
        assert checked_page(2, 20) == (2, 20)

    def test_size_is_capped(self):
        assert checked_page(1, 500, max_page_size=100) == (1, 100)

    @pytest.mark.parametrize("page,size", [(0, 10), (-1, 10), (1, 0)])
    def test_out_of_range(self, page, size):
        with pytest.raises(ConditionNotFitError):
            checked_page(page, size)
