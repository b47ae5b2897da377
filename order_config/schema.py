"""
OrderConfig schema.

Typed, frozen view of a configuration set.  YAML is parsed into these types
by the loader; the bridges turn them into kernel objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

STOCK_CHECK_POLICIES = ("all_lines", "any_line")
BASELINE_SOURCES = ("receipts", "static")
COST_SOURCES = ("item", "static")


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite://"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10


@dataclass(frozen=True)
class OrdersConfig:
    """Lifecycle policy knobs."""

    stock_check_policy: str = "all_lines"
    approver_roles: tuple[str, ...] = ("TEAM_LEADER", "ADMIN")
    default_status: str = "PURCHASE_REQUEST"


@dataclass(frozen=True)
class PaginationConfig:
    default_page_size: int = 10
    max_page_size: int = 100


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3


@dataclass(frozen=True)
class InventoryConfig:
    """Where the stock baseline comes from (receipts table or a fixed map)."""

    baseline: str = "receipts"
    static_stock: tuple[tuple[str, int], ...] = ()


@dataclass(frozen=True)
class CostBasisConfig:
    source: str = "item"
    static_costs: tuple[tuple[str, Decimal], ...] = ()


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


@dataclass(frozen=True)
class OrderConfig:
    """A complete, validated configuration set."""

    config_id: str
    version: int
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    orders: OrdersConfig = field(default_factory=OrdersConfig)
    pagination: PaginationConfig = field(default_factory=PaginationConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    inventory: InventoryConfig = field(default_factory=InventoryConfig)
    cost_basis: CostBasisConfig = field(default_factory=CostBasisConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    checksum: str = ""
