"""The trading engine tying risk, orders, analytics and state together."""

from __future__ import annotations

from typing import Awaitable, Callable, Iterable, Sequence

from perpdesk.advanced_orders import AdvancedOrder, OrderManager
from perpdesk.analytics import Analytics, PerformanceMetrics, TradeRecord
from perpdesk.models import PositionView
from perpdesk.performance import BatchProcessor, PositionCache
from perpdesk.risk_manager import RiskManager, UserTier
from perpdesk.state_manager import StateManager

_BATCH_SIZE = 100
_BASE_LEVERAGE = 20.0


class TradingEngine:
    """Reacts to market updates and validates, records and snapshots positions."""

    def __init__(self) -> None:
        self.risk_manager = RiskManager()
        self.position_cache = PositionCache()
        self.batch_processor = BatchProcessor(_BATCH_SIZE)
        self.order_manager = OrderManager()
        self.analytics = Analytics()
        self.state_manager = StateManager()
        self.user_tiers: dict[str, UserTier] = {}
        self.dynamic_leverage: dict[str, float] = {}
        self.executed_orders: list[AdvancedOrder] = []

    async def process_market_update(self, symbol: str, price: int, volatility: float) -> None:
        """Fire conditional orders at price and refresh the symbol's leverage limit."""
        for order in self.order_manager.check_triggers(symbol, price):
            await self._execute_order(order)
        self.dynamic_leverage[symbol] = self.risk_manager.calculate_dynamic_leverage(
            symbol, volatility, _BASE_LEVERAGE
        )

    async def validate_new_position(
        self, position: PositionView, user_id: str, mark_price: int
    ) -> bool:
        """Check the position against the user's tier (Basic if unknown)."""
        tier = self.user_tiers.get(user_id, UserTier.BASIC)
        return self.risk_manager.validate_position(position, tier, mark_price)

    async def add_advanced_order(self, order: AdvancedOrder) -> None:
        self.order_manager.add_order(order)

    async def record_trade(self, trade: TradeRecord) -> None:
        self.analytics.add_trade(trade)

    async def create_snapshot(self, positions: Iterable[PositionView]) -> str:
        return self.state_manager.create_snapshot(positions)

    async def get_performance_metrics(self) -> PerformanceMetrics:
        return self.analytics.calculate_metrics()

    async def batch_process_positions(
        self,
        positions: Sequence[PositionView],
        processor: Callable[[list[PositionView]], Awaitable[None]],
    ) -> None:
        await self.batch_processor.process_positions(positions, processor)

    async def _execute_order(self, order: AdvancedOrder) -> None:
        self.executed_orders.append(order)

    def set_user_tier(self, user_id: str, tier: UserTier) -> None:
        self.user_tiers[user_id] = tier