"""
Stock check policy for order creation -- pure functions.

A line is *short* when ``inventory - quantity <= 0``.  What a short line
means for the whole order is a policy:

    ALL_LINES  reject only when every line is short (the historical rule;
               an order with at least one satisfiable line goes through)
    ANY_LINE   reject when any line is short
"""

from dataclasses import dataclass
from enum import Enum


class StockCheckPolicy(str, Enum):
    ALL_LINES = "all_lines"
    ANY_LINE = "any_line"


@dataclass(frozen=True)
class LineStock:
    """Inventory seen by one order line before the order is applied."""

    item_cd: str
    inventory: int
    quantity: int

    @property
    def remaining(self) -> int:
        return self.inventory - self.quantity

    @property
    def is_short(self) -> bool:
        return self.remaining <= 0


def shortages(lines: list[LineStock]) -> dict[str, int]:
    """item_cd -> remaining after the line, for every short line."""
    short: dict[str, int] = {}
    for line in lines:
        if line.is_short:
            short[line.item_cd] = min(line.remaining, short.get(line.item_cd, line.remaining))
    return short


def rejects(policy: StockCheckPolicy | str, lines: list[LineStock]) -> bool:
    """True if the policy rejects an order with these lines."""
    policy = StockCheckPolicy(policy)
    if not lines:
        return False
    if policy == StockCheckPolicy.ANY_LINE:
        return any(line.is_short for line in lines)
    return all(line.is_short for line in lines)
