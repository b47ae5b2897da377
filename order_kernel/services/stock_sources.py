"""
Inventory baseline and cost basis collaborators for SaleReport.

SaleReport derives available stock as ``baseline - committed quantities``
and margins from a per-unit cost.  Where the baseline and the costs come
from belongs to the receiving and purchasing systems, so both are
pluggable:

    StockBaseline                       CostBasis
    +-- ReceiptStockBaseline (default)  +-- ItemCostBasis (default)
    +-- StaticStockBaseline             +-- StaticCostBasis

The static variants are fed from configuration (``inventory.static_stock``,
``cost_basis.static_costs``) and are convenient in tests.
"""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from order_kernel.models.item import Item, StockReceipt


class StockBaseline(ABC):
    """Quantity of an item that has entered stock, before any order."""

    @abstractmethod
    def baseline(self, item_cd: str) -> int:
        ...


class ReceiptStockBaseline(StockBaseline):
    """Baseline = sum of StockReceipt.quantity for the item."""

    def __init__(self, session: Session):
        self._session = session

    def baseline(self, item_cd: str) -> int:
        total = self._session.execute(
            select(func.coalesce(func.sum(StockReceipt.quantity), 0)).where(
                StockReceipt.item_cd == item_cd
            )
        ).scalar_one()
        return int(total)


class StaticStockBaseline(StockBaseline):
    """Baseline read from a fixed mapping; unknown items have ``default``."""

    def __init__(self, stock: Mapping[str, int], default: int = 0):
        self._stock = dict(stock)
        self._default = default

    def baseline(self, item_cd: str) -> int:
        return int(self._stock.get(item_cd, self._default))


class CostBasis(ABC):
    """Per-unit cost of an item; None when unknown."""

    @abstractmethod
    def unit_cost(self, item_cd: str) -> Decimal | None:
        ...


class ItemCostBasis(CostBasis):
    """Cost = Item.unit_cost."""

    def __init__(self, session: Session):
        self._session = session

    def unit_cost(self, item_cd: str) -> Decimal | None:
        return self._session.execute(
            select(Item.unit_cost).where(Item.item_cd == item_cd)
        ).scalar_one_or_none()


class StaticCostBasis(CostBasis):
    def __init__(self, costs: Mapping[str, Decimal | str | int]):
        self._costs = {cd: Decimal(str(cost)) for cd, cost in costs.items()}

    def unit_cost(self, item_cd: str) -> Decimal | None:
        return self._costs.get(item_cd)
