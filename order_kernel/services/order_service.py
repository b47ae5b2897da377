"""
OrderService -- order lifecycle entry point.

Responsibility:
    Creates orders, applies generic patches and line patches, records
    approval decisions and serves the order read paths.  Every mutating
    call resolves the acting member from the principal, runs the lifecycle
    guards, persists, and appends exactly one SaleHistory row -- all inside
    one transaction.

Architecture position:
    Kernel > Services -- imperative shell, owns transaction boundaries.
    Delegates pure rules to ``domain.transitions`` and
    ``domain.stock_policy``, and I/O to peer services and selectors.

Create flow:
    create_order(new_order, principal)
      1. Resolve member (MemberService)
      2. Verify buyer is active (BuyerService)
      3. Validate initial status (REQUEST_TEMP or PURCHASE_REQUEST)
      4. Lock referenced Item rows FOR UPDATE, sorted by item_cd
      5. Stock check against SaleReport inventory (configured policy)
      6. Mint order code (OrderCodeGenerator)
      7. Persist header + lines
      8. Append SaleHistory
      9. Commit (retried on order-code collision / deadlock)

Invariants enforced:
    - No partial application: header, lines and history commit together
      or not at all.
    - One history row per successful mutating call, never on failure.
    - APPROVED / REJECTED are only reachable through update_status.
    - CANCELLED is only reachable from REQUEST_TEMP / PURCHASE_REQUEST.

Failure modes:
    - MemberNotFoundError, BuyerNotFoundError, InactiveStatusError,
      ItemNotFoundError, OrderNotFoundError, OrderLineNotFoundError,
      ItemNotFoundInOrderError: lookups.
    - AccessDeniedError, CannotChangeOrderStatusError,
      InvalidOrderStatusError: lifecycle guards.
    - OutOfStockError: stock check.
    - OrderCodeCorruptError: corrupt persisted code or daily overflow.
    - TransactionRetryExhaustedError: a race persisted past max_attempts.

Audit relevance:
    Every call is logged under a fresh correlation_id with the principal
    as actor_id.  SaleHistory carries the durable audit trail.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Callable, TypeVar
from uuid import UUID, uuid4

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from order_kernel.db.engine import run_with_retry
from order_kernel.domain.clock import Clock, SystemClock
from order_kernel.domain.dtos import (
    InventoryInfo,
    MemberInfo,
    OrderInfo,
    OrderLineInfo,
    OrderSearch,
    Page,
    SaleHistoryInfo,
    SaleReportRow,
)
from order_kernel.domain.patches import NewOrder, OrderLinePatch, OrderPatch, is_set
from order_kernel.domain.stock_policy import LineStock, StockCheckPolicy, rejects, shortages
from order_kernel.domain.transitions import (
    DEFAULT_APPROVER_ROLES,
    check_decision,
    check_generic_update,
    check_initial_status,
)
from order_kernel.exceptions import (
    ItemNotFoundInOrderError,
    OrderLineNotFoundError,
    OrderNotFoundError,
    OutOfStockError,
)
from order_kernel.logging_config import LogContext, get_logger
from order_kernel.models.member import MemberRole
from order_kernel.models.order import OrderHeader, OrderLine, OrderStatus
from order_kernel.selectors.base import DEFAULT_MAX_PAGE_SIZE
from order_kernel.selectors.history_selector import HistorySelector
from order_kernel.selectors.order_selector import OrderSelector
from order_kernel.services.buyer_service import BuyerService
from order_kernel.services.item_service import ItemService
from order_kernel.services.member_service import MemberService
from order_kernel.services.order_code_service import OrderCodeGenerator
from order_kernel.services.sale_history_recorder import SaleHistoryRecorder
from order_kernel.services.sale_report import SaleReport
from order_kernel.services.stock_sources import CostBasis, StockBaseline

logger = get_logger("services.order")

T = TypeVar("T")


class OrderService:
    """
    Order lifecycle and read paths.

    Contract:
        Mutating methods take the verified principal (employee id) and
        return DTOs of the post-mutation state.

    Guarantees:
        - With auto_commit=True (default) each mutating call is its own
          transaction: committed on success, rolled back on any error, and
          re-run from scratch on a retryable race.
        - With auto_commit=False the call only flushes and the caller owns
          commit/rollback (no retries).

    Non-goals:
        - Does NOT authenticate.  The principal arrives verified.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        *,
        baseline: StockBaseline | None = None,
        cost_basis: CostBasis | None = None,
        stock_check_policy: StockCheckPolicy | str = StockCheckPolicy.ALL_LINES,
        approver_roles: Iterable[MemberRole | str] = DEFAULT_APPROVER_ROLES,
        default_status: OrderStatus | str = OrderStatus.PURCHASE_REQUEST,
        max_attempts: int = 3,
        default_page_size: int = 10,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
        auto_commit: bool = True,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._stock_check_policy = StockCheckPolicy(stock_check_policy)
        self._approver_roles = frozenset(MemberRole(r) for r in approver_roles)
        self._default_status = check_initial_status(default_status)
        self._max_attempts = max_attempts
        self._auto_commit = auto_commit
        self._default_page_size = default_page_size

        self._members = MemberService(session)
        self._buyers = BuyerService(session)
        self._items = ItemService(session, self._clock)
        self._codes = OrderCodeGenerator(session, self._clock)
        self._recorder = SaleHistoryRecorder(session, self._clock)
        self._report = SaleReport(session, baseline, cost_basis)
        self._orders = OrderSelector(session, max_page_size)
        self._histories = HistorySelector(session, max_page_size)

    # ------------------------------------------------------------------
    # Transaction boundary
    # ------------------------------------------------------------------

    def _run(self, operation: str, principal: str, work: Callable[[Session], T]) -> T:
        with LogContext.bind(correlation_id=str(uuid4()), actor_id=principal):
            try:
                if self._auto_commit:
                    return run_with_retry(
                        self._session,
                        work,
                        max_attempts=self._max_attempts,
                        operation=operation,
                    )
                return work(self._session)
            except Exception:
                logger.warning("order_operation_failed", extra={"operation": operation}, exc_info=True)
                raise

    def _locked_header(self, order_id: UUID) -> OrderHeader:
        header = self._session.execute(
            select(OrderHeader)
            .where(OrderHeader.id == order_id)
            .options(selectinload(OrderHeader.lines))
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if header is None:
            raise OrderNotFoundError(str(order_id))
        return header

    def _touch(self, header: OrderHeader, member: MemberInfo) -> None:
        header.updated_at = self._clock.now_utc()
        header.updated_by_id = member.member_id

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def _check_stock(self, new_order: NewOrder) -> None:
        lines = [
            LineStock(
                item_cd=line.item_cd,
                inventory=self._report.calculate_inventory(line.item_cd),
                quantity=line.quantity,
            )
            for line in new_order.lines
        ]
        if rejects(self._stock_check_policy, lines):
            short = shortages(lines)
            logger.warning(
                "order_rejected_out_of_stock",
                extra={
                    "buyer_cd": new_order.buyer_cd,
                    "policy": self._stock_check_policy.value,
                    "shortages": short,
                },
            )
            raise OutOfStockError(short)

    def _create_one(self, new_order: NewOrder, member: MemberInfo) -> OrderHeader:
        self._buyers.find_verified_buyer(new_order.buyer_cd)
        status = check_initial_status(new_order.status or self._default_status)

        items = self._items.lock_items(line.item_cd for line in new_order.lines)
        self._check_stock(new_order)

        order_code = self._codes.next_code()
        now = self._clock.now_utc()

        header = OrderHeader(
            order_code=order_code,
            status=status,
            request_date=new_order.request_date,
            buyer_cd=new_order.buyer_cd,
            member_id=member.member_id,
            created_at=now,
            updated_at=now,
            created_by_id=member.member_id,
        )
        for line_no, new_line in enumerate(new_order.lines, start=1):
            unit_price = new_line.unit_price
            if unit_price is None:
                unit_price = self._items.resolve_unit_price(
                    new_order.buyer_cd, new_line.item_cd, now
                )
            header.lines.append(
                OrderLine(
                    line_no=line_no,
                    item_cd=new_line.item_cd,
                    quantity=new_line.quantity,
                    unit_price=unit_price,
                    start_date=new_line.start_date,
                    end_date=new_line.end_date,
                    unit=new_line.unit or items[new_line.item_cd].unit,
                    created_at=now,
                    updated_at=now,
                    created_by_id=member.member_id,
                )
            )
        self._session.add(header)
        self._session.flush()

        self._recorder.record(header, member)

        logger.info(
            "order_created",
            extra={
                "order_id": header.id,
                "order_code": order_code,
                "status": status.value,
                "buyer_cd": new_order.buyer_cd,
                "line_count": len(header.lines),
            },
        )
        return header

    def create_order(self, new_order: NewOrder, principal: str) -> OrderInfo:
        """
        Create an order.

        Raises:
            MemberNotFoundError, BuyerNotFoundError, InactiveStatusError,
            ItemNotFoundError, InvalidOrderStatusError, OutOfStockError,
            OrderCodeCorruptError, TransactionRetryExhaustedError.
        """

        def work(session: Session) -> OrderInfo:
            member = self._members.find_verified_member(principal)
            return OrderInfo.from_model(self._create_one(new_order, member))

        return self._run("create_order", principal, work)

    def create_orders(self, new_orders: Iterable[NewOrder], principal: str) -> list[OrderInfo]:
        """
        Create several orders in one transaction.

        All-or-nothing: any failing order rolls back the whole batch.  Stock
        checks of later orders see the lines of earlier ones.
        """
        new_orders = list(new_orders)

        def work(session: Session) -> list[OrderInfo]:
            member = self._members.find_verified_member(principal)
            return [
                OrderInfo.from_model(self._create_one(new_order, member))
                for new_order in new_orders
            ]

        return self._run("create_orders", principal, work)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    def update_order(self, order_id: UUID, patch: OrderPatch, principal: str) -> OrderInfo:
        """
        Apply a generic patch (status and/or request_date).

        Raises:
            OrderNotFoundError: Unknown order.
            AccessDeniedError: Patch targets APPROVED or REJECTED.
            CannotChangeOrderStatusError: Cancellation or terminal-state guard.
        """

        def work(session: Session) -> OrderInfo:
            member = self._members.find_verified_member(principal)
            header = self._locked_header(order_id)
            previous = OrderStatus(header.status)

            check_generic_update(previous, patch.target_status)

            if is_set(patch.status):
                header.status = patch.status
            if is_set(patch.request_date):
                header.request_date = patch.request_date
            self._touch(header, member)
            self._session.flush()

            self._recorder.record(header, member)

            with LogContext.bind(order_id=str(header.id), order_code=header.order_code):
                if patch.target_status is not None and patch.target_status != previous:
                    logger.info(
                        "order_status_changed",
                        extra={"from_status": previous.value, "to_status": patch.target_status.value},
                    )
                logger.info("order_updated", extra={"fields": sorted(patch.present())})
            return OrderInfo.from_model(header)

        return self._run("update_order", principal, work)

    def update_order_line(
        self,
        order_id: UUID,
        line_id: UUID,
        patch: OrderLinePatch,
        principal: str,
    ) -> OrderLineInfo:
        """
        Apply a line patch (quantity, unit_price, start_date, end_date).

        Raises:
            OrderNotFoundError: Unknown order.
            OrderLineNotFoundError: Unknown line.
            ItemNotFoundInOrderError: Line belongs to another order.
        """

        def work(session: Session) -> OrderLineInfo:
            member = self._members.find_verified_member(principal)
            header = self._locked_header(order_id)

            line = self._session.get(OrderLine, line_id)
            if line is None:
                raise OrderLineNotFoundError(str(line_id))
            if line.order_id != header.id:
                raise ItemNotFoundInOrderError(str(order_id), str(line_id))

            for name, value in patch.present().items():
                setattr(line, name, value)
            line.updated_at = self._clock.now_utc()
            line.updated_by_id = member.member_id
            self._touch(header, member)
            self._session.flush()

            self._recorder.record(header, member)

            logger.info(
                "order_line_updated",
                extra={
                    "order_id": header.id,
                    "order_code": header.order_code,
                    "line_no": line.line_no,
                    "fields": sorted(patch.present()),
                },
            )
            return OrderLineInfo.from_model(line)

        return self._run("update_order_line", principal, work)

    def update_status(self, order_id: UUID, status: OrderStatus | str, principal: str) -> OrderInfo:
        """
        Record an approval decision.

        Re-deciding an order is allowed and writes another history row.

        Raises:
            OrderNotFoundError: Unknown order.
            InvalidOrderStatusError: status is not APPROVED or REJECTED.
            CannotChangeOrderStatusError: Order is cancelled.
            AccessDeniedError: Principal's role is not an approver role.
        """

        def work(session: Session) -> OrderInfo:
            member = self._members.find_verified_member(principal)
            header = self._locked_header(order_id)
            previous = OrderStatus(header.status)

            target = check_decision(previous, status, member.role, self._approver_roles)

            header.status = target
            self._touch(header, member)
            self._session.flush()

            self._recorder.record(header, member)

            logger.info(
                "order_status_changed",
                extra={
                    "order_id": header.id,
                    "order_code": header.order_code,
                    "from_status": previous.value,
                    "to_status": target.value,
                    "decided_by": member.employee_id,
                },
            )
            return OrderInfo.from_model(header)

        return self._run("update_status", principal, work)

    def approve(self, order_id: UUID, principal: str) -> OrderInfo:
        return self.update_status(order_id, OrderStatus.APPROVED, principal)

    def reject(self, order_id: UUID, principal: str) -> OrderInfo:
        return self.update_status(order_id, OrderStatus.REJECTED, principal)

    def cancel(self, order_id: UUID, principal: str) -> OrderInfo:
        return self.update_order(order_id, OrderPatch(status=OrderStatus.CANCELLED), principal)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def find_order(self, order_id: UUID) -> OrderInfo:
        order = self._orders.find_order(order_id)
        if order is None:
            raise OrderNotFoundError(str(order_id))
        return order

    def find_orders(
        self,
        search: OrderSearch | None = None,
        page: int = 1,
        size: int | None = None,
    ) -> Page[OrderInfo]:
        if size is None:
            size = self._default_page_size
        return self._orders.find_orders(search, page, size)

    def find_histories(
        self,
        order_id: UUID,
        page: int = 1,
        size: int | None = None,
    ) -> Page[SaleHistoryInfo]:
        self.find_order(order_id)
        if size is None:
            size = self._default_page_size
        return self._histories.find_histories(order_id, page, size)

    def generate_report(
        self,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[SaleReportRow]:
        return self._report.get_sale_report(start_date, end_date)

    def get_stock(self, item_cd: str) -> InventoryInfo:
        self._items.find_verified_item(item_cd)
        return self._report.get_stock(item_cd)
