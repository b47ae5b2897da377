"""
Config -> Kernel Bridges.

Functions that turn an OrderConfig into kernel objects.  They live in
order_config (the producer) because the kernel must NEVER import
order_config.

Usage:
    from order_config import get_active_config
    from order_config.bridges import build_order_service, init_database

    config = get_active_config()
    session_factory = init_database(config)
    service = build_order_service(session_factory, config)
"""

from __future__ import annotations

from sqlalchemy.orm import Session, sessionmaker

from order_config.schema import OrderConfig
from order_kernel.db.engine import get_session_factory, init_engine_from_url
from order_kernel.db.immutability import register_immutability_listeners
from order_kernel.domain.clock import Clock
from order_kernel.logging_config import configure_logging
from order_kernel.services.order_service import OrderService
from order_kernel.services.stock_sources import (
    CostBasis,
    ItemCostBasis,
    ReceiptStockBaseline,
    StaticCostBasis,
    StaticStockBaseline,
    StockBaseline,
)


def init_database(config: OrderConfig) -> sessionmaker[Session]:
    """
    Configure logging and the engine from config, and turn on the
    append-only guards for sale history and order rows.  Returns the
    session factory.
    """
    configure_logging(level=config.logging.level)
    init_engine_from_url(
        config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )
    register_immutability_listeners()
    return get_session_factory()


def build_stock_baseline(session: Session, config: OrderConfig) -> StockBaseline:
    if config.inventory.baseline == "static":
        return StaticStockBaseline(dict(config.inventory.static_stock))
    return ReceiptStockBaseline(session)


def build_cost_basis(session: Session, config: OrderConfig) -> CostBasis:
    if config.cost_basis.source == "static":
        return StaticCostBasis(dict(config.cost_basis.static_costs))
    return ItemCostBasis(session)


def build_order_service(
    session_factory: sessionmaker[Session] | Session,
    config: OrderConfig,
    clock: Clock | None = None,
) -> OrderService:
    """
    Wire an OrderService from config.

    Args:
        session_factory: A sessionmaker (a fresh session is opened) or an
            existing Session to bind to.
        config: Active configuration.
        clock: Optional clock override (tests).
    """
    session = session_factory if isinstance(session_factory, Session) else session_factory()
    return OrderService(
        session,
        clock,
        baseline=build_stock_baseline(session, config),
        cost_basis=build_cost_basis(session, config),
        stock_check_policy=config.orders.stock_check_policy,
        approver_roles=config.orders.approver_roles,
        default_status=config.orders.default_status,
        max_attempts=config.retry.max_attempts,
        default_page_size=config.pagination.default_page_size,
        max_page_size=config.pagination.max_page_size,
    )
