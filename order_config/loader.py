"""
Configuration Loader (``order_config.loader``).

Responsibility
--------------
Loads a YAML configuration set and parses it into the frozen
``order_config.schema`` dataclasses, validating every value on the way.
Runtime callers go through ``order_config.get_active_config()``.

Invariants enforced
-------------------
* Every invalid value raises ``ValueError`` naming the offending key; a
  bad configuration never reaches the kernel.
* ``compute_checksum`` is a deterministic SHA-256 over the parsed YAML, so
  the same file always yields the same checksum.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML     -> ``yaml.YAMLError`` propagates.
* Invalid values     -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from order_config.schema import (
    BASELINE_SOURCES,
    COST_SOURCES,
    STOCK_CHECK_POLICIES,
    CostBasisConfig,
    DatabaseConfig,
    InventoryConfig,
    LoggingConfig,
    OrderConfig,
    OrdersConfig,
    PaginationConfig,
    RetryConfig,
)
from order_kernel.models.member import MemberRole
from order_kernel.models.order import OrderStatus

_INITIAL_STATUSES = (OrderStatus.REQUEST_TEMP.value, OrderStatus.PURCHASE_REQUEST.value)
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _positive_int(section: str, key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ValueError(f"{section}.{key} must be a positive integer, got {value!r}")
    return value


def _one_of(section: str, key: str, value: Any, allowed: tuple[str, ...]) -> str:
    if value not in allowed:
        raise ValueError(f"{section}.{key} must be one of {list(allowed)}, got {value!r}")
    return value


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    url = data.get("url", DatabaseConfig.url)
    if not isinstance(url, str) or not url:
        raise ValueError("database.url must be a non-empty string")
    return DatabaseConfig(
        url=url,
        echo=bool(data.get("echo", False)),
        pool_size=_positive_int("database", "pool_size", data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
    )


def parse_orders(data: dict[str, Any]) -> OrdersConfig:
    policy = _one_of(
        "orders", "stock_check_policy",
        data.get("stock_check_policy", "all_lines"), STOCK_CHECK_POLICIES,
    )

    roles = data.get("approver_roles", ["TEAM_LEADER", "ADMIN"])
    if not roles:
        raise ValueError("orders.approver_roles must name at least one role")
    known_roles = tuple(r.value for r in MemberRole)
    for role in roles:
        _one_of("orders", "approver_roles", role, known_roles)

    default_status = _one_of(
        "orders", "default_status",
        data.get("default_status", OrderStatus.PURCHASE_REQUEST.value), _INITIAL_STATUSES,
    )
    return OrdersConfig(
        stock_check_policy=policy,
        approver_roles=tuple(roles),
        default_status=default_status,
    )


def parse_pagination(data: dict[str, Any]) -> PaginationConfig:
    default_size = _positive_int("pagination", "default_page_size", data.get("default_page_size", 10))
    max_size = _positive_int("pagination", "max_page_size", data.get("max_page_size", 100))
    if default_size > max_size:
        raise ValueError(
            f"pagination.default_page_size ({default_size}) exceeds max_page_size ({max_size})"
        )
    return PaginationConfig(default_page_size=default_size, max_page_size=max_size)


def parse_retry(data: dict[str, Any]) -> RetryConfig:
    return RetryConfig(
        max_attempts=_positive_int("retry", "max_attempts", data.get("max_attempts", 3)),
    )


def parse_inventory(data: dict[str, Any]) -> InventoryConfig:
    baseline = _one_of("inventory", "baseline", data.get("baseline", "receipts"), BASELINE_SOURCES)
    stock = data.get("static_stock") or {}
    for item_cd, qty in stock.items():
        if isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
            raise ValueError(f"inventory.static_stock.{item_cd} must be a non-negative integer")
    return InventoryConfig(
        baseline=baseline,
        static_stock=tuple(sorted((str(cd), qty) for cd, qty in stock.items())),
    )


def parse_cost_basis(data: dict[str, Any]) -> CostBasisConfig:
    source = _one_of("cost_basis", "source", data.get("source", "item"), COST_SOURCES)
    costs = {}
    for item_cd, cost in (data.get("static_costs") or {}).items():
        try:
            value = Decimal(str(cost))
        except InvalidOperation:
            raise ValueError(f"cost_basis.static_costs.{item_cd} is not a number: {cost!r}") from None
        if value < 0:
            raise ValueError(f"cost_basis.static_costs.{item_cd} cannot be negative")
        costs[str(item_cd)] = value
    return CostBasisConfig(source=source, static_costs=tuple(sorted(costs.items())))


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    level = str(data.get("level", "INFO")).upper()
    return LoggingConfig(level=_one_of("logging", "level", level, _LOG_LEVELS))


def parse_config(data: dict[str, Any]) -> OrderConfig:
    """
    Parse a whole configuration set.

    Missing sections take their defaults; present values are validated.
    """
    return OrderConfig(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        database=parse_database(data.get("database") or {}),
        orders=parse_orders(data.get("orders") or {}),
        pagination=parse_pagination(data.get("pagination") or {}),
        retry=parse_retry(data.get("retry") or {}),
        inventory=parse_inventory(data.get("inventory") or {}),
        cost_basis=parse_cost_basis(data.get("cost_basis") or {}),
        logging=parse_logging(data.get("logging") or {}),
        checksum=compute_checksum(data),
    )
