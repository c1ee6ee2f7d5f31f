"""Per-tier risk limits and position validation."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from perpdesk.models import PositionView


@dataclass(frozen=True)
class RiskLimits:
    max_leverage: float
    max_position_size: int
    max_open_interest: int
    max_margin_utilization: float


class UserTier(Enum):
    BASIC = "basic"
    PREMIUM = "premium"
    PRO = "pro"


_DEFAULT_LIMITS = {
    UserTier.BASIC: RiskLimits(10.0, 1000, 10000, 0.8),
    UserTier.PREMIUM: RiskLimits(25.0, 5000, 50000, 0.9),
    UserTier.PRO: RiskLimits(50.0, 20000, 200000, 0.95),
}


class RiskManager:
    """Checks positions against tier limits and tracks open interest."""

    def __init__(self) -> None:
        self.tier_limits: dict[UserTier, RiskLimits] = dict(_DEFAULT_LIMITS)
        self.symbol_open_interest: dict[str, int] = {}

    def calculate_dynamic_leverage(
        self, symbol: str, volatility: float, base_leverage: float
    ) -> float:
        """Scale base leverage down with volatility, by at most half."""
        return base_leverage * (1.0 - min(volatility * 2.0, 0.5))

    def validate_position(self, position: PositionView, tier: UserTier, mark_price: int) -> bool:
        """Whether the position fits the tier's leverage, size and open-interest caps."""
        limits = self.tier_limits[tier]
        exposure = float(position.size) * float(mark_price)
        if position.collateral:
            leverage = exposure / position.collateral
        else:
            leverage = math.inf if exposure > 0 else math.nan
        return (
            leverage <= limits.max_leverage
            and position.size <= limits.max_position_size
            and self.symbol_open_interest.get(position.symbol, 0) <= limits.max_open_interest
        )

    def update_open_interest(self, symbol: str, delta: int) -> None:
        """Shift open interest for symbol by delta, never below zero."""
        current = self.symbol_open_interest.get(symbol, 0)
        self.symbol_open_interest[symbol] = max(current + delta, 0)