"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Two kinds of order records must never disappear or change behind the
audit trail's back:

  - SaleHistory rows are the audit ledger.  They are append-only: written
    once by SaleHistoryRecorder, never updated, never deleted.
  - OrderHeader and OrderLine rows are never physically deleted.
    Cancelling is a status change; cancelled lines stay for audit and are
    excluded from stock by status, not by absence.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  The listeners below intercept them:

    session.flush()
         |
         v
    [before_update] --> _check_sale_history_immutability() --> ImmutabilityViolationError
         |
         v
    [before_delete] --> _check_*_delete() --------------------> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

If a check fails the flush aborts and the caller's transaction rolls back.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity       | Rule                          | Why
-------------|-------------------------------|-----------------------------------
SaleHistory  | No UPDATE, no DELETE          | Audit ledger is append-only
OrderHeader  | No DELETE                     | CANCELLED is a status, not removal
OrderLine    | No DELETE                     | Lines persist for audit

===============================================================================
USAGE
===============================================================================

    from order_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # Called once at startup

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event

from order_kernel.exceptions import ImmutabilityViolationError
from order_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
            "reason": reason,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_sale_history_immutability(mapper, connection, target):
    """Prevent any updates to SaleHistory records."""
    _blocked("SaleHistory", target, "UPDATE", "Sale history is append-only")


def _check_sale_history_delete(mapper, connection, target):
    """Prevent deletion of SaleHistory records."""
    _blocked("SaleHistory", target, "DELETE", "Sale history is append-only")


def _check_order_header_delete(mapper, connection, target):
    """Prevent physical deletion of orders."""
    _blocked(
        "OrderHeader", target, "DELETE",
        "Orders are never deleted; cancel the order instead",
    )


def _check_order_line_delete(mapper, connection, target):
    """Prevent physical deletion of order lines."""
    _blocked("OrderLine", target, "DELETE", "Order lines persist for audit")


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners.

    Call this after all models are imported but before any database
    operations begin.  Safe to call more than once.
    """
    from order_kernel.models.order import OrderHeader, OrderLine
    from order_kernel.models.sale_history import SaleHistory

    for target, name, fn in _listeners(SaleHistory, OrderHeader, OrderLine):
        if not event.contains(target, name, fn):
            event.listen(target, name, fn)

    logger.debug("immutability_listeners_registered")


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests where you need to intentionally
    violate immutability rules to verify detection.
    """
    from order_kernel.models.order import OrderHeader, OrderLine
    from order_kernel.models.sale_history import SaleHistory

    for target, name, fn in _listeners(SaleHistory, OrderHeader, OrderLine):
        if event.contains(target, name, fn):
            event.remove(target, name, fn)

    logger.debug("immutability_listeners_unregistered")


def _listeners(sale_history, order_header, order_line):
    return (
        (sale_history, "before_update", _check_sale_history_immutability),
        (sale_history, "before_delete", _check_sale_history_delete),
        (order_header, "before_delete", _check_order_header_delete),
        (order_line, "before_delete", _check_order_line_delete),
    )
