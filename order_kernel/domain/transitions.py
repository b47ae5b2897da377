"""
Order lifecycle guards (``order_kernel.domain.transitions``).

Responsibility
--------------
Pure decision functions for the order state machine.  OrderService calls
them before mutating anything; each raises the typed error of the first
rule the requested change violates and returns ``None`` otherwise.

Architecture position
---------------------
**Kernel domain layer** -- pure functions.  ZERO I/O.

State machine
-------------
::

    REQUEST_TEMP <-> PURCHASE_REQUEST --(update_status)--> APPROVED | REJECTED
          |                  |
          +------------------+--(update_order)--> CANCELLED

Generic-update rules (``update_order``), first violation wins:

1. Target APPROVED/REJECTED               -> AccessDeniedError
2. Target CANCELLED from a non-open state -> CannotChangeOrderStatusError
3. Current CANCELLED                      -> CannotChangeOrderStatusError
4. Current APPROVED/REJECTED and the
   patch changes the status               -> CannotChangeOrderStatusError

Decide rules (``update_status``), first violation wins:

1. Target not APPROVED/REJECTED           -> InvalidOrderStatusError
2. Current CANCELLED                      -> CannotChangeOrderStatusError
3. Actor role not an approver role        -> AccessDeniedError
"""

from collections.abc import Iterable

from order_kernel.exceptions import (
    AccessDeniedError,
    CannotChangeOrderStatusError,
    InvalidOrderStatusError,
)
from order_kernel.models.member import MemberRole
from order_kernel.models.order import OrderStatus

OPEN_STATUSES = frozenset({OrderStatus.REQUEST_TEMP, OrderStatus.PURCHASE_REQUEST})
DECIDED_STATUSES = frozenset({OrderStatus.APPROVED, OrderStatus.REJECTED})
TERMINAL_STATUSES = DECIDED_STATUSES | {OrderStatus.CANCELLED}

# Lines under these headers no longer hold stock
RELEASED_STATUSES = frozenset({OrderStatus.CANCELLED, OrderStatus.REJECTED})

DEFAULT_APPROVER_ROLES = frozenset({MemberRole.TEAM_LEADER, MemberRole.ADMIN})


def holds_stock(status: OrderStatus | str) -> bool:
    """True if lines under a header in this status count against inventory."""
    return OrderStatus(status) not in RELEASED_STATUSES


def check_initial_status(status: OrderStatus | str) -> OrderStatus:
    """Validate the status a new order is created in.

    Returns:
        The status as an ``OrderStatus``.

    Raises:
        InvalidOrderStatusError: status is not REQUEST_TEMP or PURCHASE_REQUEST.
    """
    try:
        target = OrderStatus(status)
    except ValueError:
        raise InvalidOrderStatusError("NEW", str(status), "unknown order status") from None
    if target not in OPEN_STATUSES:
        raise InvalidOrderStatusError(
            "NEW", target.value, "orders start as REQUEST_TEMP or PURCHASE_REQUEST"
        )
    return target


def check_generic_update(
    current: OrderStatus | str,
    target: OrderStatus | str | None,
) -> None:
    """Guard a generic order patch.

    Args:
        current: The header's persisted status.
        target: The status the patch carries, or None when the patch leaves
            the status alone.

    Raises:
        AccessDeniedError: target is APPROVED or REJECTED.
        CannotChangeOrderStatusError: cancellation or terminal-state rule.
    """
    current = OrderStatus(current)
    target = OrderStatus(target) if target is not None else None

    if target in DECIDED_STATUSES:
        raise AccessDeniedError(
            current.value, target.value, "approval decisions use update_status"
        )

    if target == OrderStatus.CANCELLED and current not in OPEN_STATUSES:
        raise CannotChangeOrderStatusError(
            current.value, target.value, "only open orders can be cancelled"
        )

    if current == OrderStatus.CANCELLED:
        raise CannotChangeOrderStatusError(
            current.value,
            target.value if target else None,
            "cancelled orders cannot be changed",
        )

    if current in DECIDED_STATUSES and target is not None and target != current:
        raise CannotChangeOrderStatusError(
            current.value, target.value, "decided orders keep their status"
        )


def check_decision(
    current: OrderStatus | str,
    target: OrderStatus | str,
    role: MemberRole | str,
    approver_roles: Iterable[MemberRole | str] = DEFAULT_APPROVER_ROLES,
) -> OrderStatus:
    """Guard an approve/reject decision.

    Re-deciding an already decided order is allowed.

    Returns:
        The target as an ``OrderStatus``.

    Raises:
        InvalidOrderStatusError: target is not APPROVED or REJECTED.
        CannotChangeOrderStatusError: the order is cancelled.
        AccessDeniedError: role is not one of approver_roles.
    """
    current = OrderStatus(current)
    try:
        target = OrderStatus(target)
    except ValueError:
        raise InvalidOrderStatusError(
            current.value, str(target), "unknown order status"
        ) from None

    if target not in DECIDED_STATUSES:
        raise InvalidOrderStatusError(
            current.value, target.value, "decision must be APPROVED or REJECTED"
        )

    if current == OrderStatus.CANCELLED:
        raise CannotChangeOrderStatusError(
            current.value, target.value, "cancelled orders cannot be decided"
        )

    allowed = {MemberRole(r) for r in approver_roles}
    if MemberRole(role) not in allowed:
        raise AccessDeniedError(
            current.value, target.value, f"role {MemberRole(role).value} cannot decide orders"
        )

    return target
