"""Conditional orders (stop-loss, take-profit, trailing stop) and hedge detection."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Sequence, Union

from perpdesk.models import PositionView


@dataclass
class StopLoss:
    trigger_price: int

    def triggered_by(self, price: int) -> bool:
        return price <= self.trigger_price


@dataclass
class TakeProfit:
    target_price: int

    def triggered_by(self, price: int) -> bool:
        return price >= self.target_price


@dataclass
class TrailingStop:
    """Follows new highs; fires once price falls trail_amount below the peak."""

    trail_amount: int
    peak_price: int

    def triggered_by(self, price: int) -> bool:
        if price > self.peak_price:
            self.peak_price = price
        return price <= max(self.peak_price - self.trail_amount, 0)


OrderType = Union[StopLoss, TakeProfit, TrailingStop]


@dataclass
class AdvancedOrder:
    id: str
    owner: str
    symbol: str
    order_type: OrderType
    size: int
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    is_active: bool = True


class OrderManager:
    """Holds conditional orders and fires them as prices move."""

    def __init__(self) -> None:
        self.orders: list[AdvancedOrder] = []

    def add_order(self, order: AdvancedOrder) -> None:
        self.orders.append(order)

    def check_triggers(self, symbol: str, current_price: int) -> list[AdvancedOrder]:
        """Deactivate and return copies of the orders that current_price fires."""
        triggered = []
        for order in self.orders:
            if not order.is_active or order.symbol != symbol:
                continue
            if order.order_type.triggered_by(current_price):
                order.is_active = False
                triggered.append(copy.deepcopy(order))
        return triggered


def _as_signed(size: int) -> int:
    return ((size + 2**63) % 2**64) - 2**63


class HedgeDetector:
    """Finds pairs of positions that offset each other."""

    @staticmethod
    def detect_hedges(positions: Sequence[PositionView]) -> list[tuple[int, int]]:
        """Index pairs with the same owner and symbol but opposite direction.

        Direction is the sign of the size read as a signed 64-bit number.
        """
        return [
            (i, j)
            for i, first in enumerate(positions)
            for j, second in enumerate(positions[i + 1 :], start=i + 1)
            if first.owner == second.owner
            and first.symbol == second.symbol
            and _as_signed(first.size) * _as_signed(second.size) < 0
        ]