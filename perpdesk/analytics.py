"""Trade performance metrics and portfolio risk measures."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Sequence

from perpdesk.models import PositionView

_VAR_CONFIDENCE = 0.95


@dataclass
class TradeRecord:
    symbol: str
    entry_price: int
    exit_price: int
    size: int
    pnl: int
    entry_time: datetime
    exit_time: datetime


@dataclass(frozen=True)
class PerformanceMetrics:
    total_pnl: int
    win_rate: float
    profit_factor: float
    sharpe_ratio: float
    max_drawdown: float
    total_trades: int


@dataclass(frozen=True)
class PortfolioRisk:
    total_exposure: int
    var_95: float
    concentration_risk: float


class Analytics:
    """Accumulates trades and daily returns and derives metrics from them."""

    def __init__(self) -> None:
        self.trades: list[TradeRecord] = []
        self.daily_returns: list[float] = []

    def add_trade(self, trade: TradeRecord) -> None:
        self.trades.append(trade)

    def add_daily_return(self, return_pct: float) -> None:
        self.daily_returns.append(return_pct)

    def calculate_metrics(self) -> PerformanceMetrics:
        """Summary of all recorded trades; win rate is NaN with no trades."""
        pnls = [t.pnl for t in self.trades]
        wins = [p for p in pnls if p > 0]
        gross_profit = sum(wins)
        gross_loss = sum(-p for p in pnls if p < 0)
        win_rate = len(wins) / len(pnls) if pnls else math.nan
        profit_factor = gross_profit / gross_loss if gross_loss > 0 else 0.0
        return PerformanceMetrics(
            total_pnl=sum(pnls),
            win_rate=win_rate,
            profit_factor=profit_factor,
            sharpe_ratio=self._sharpe_ratio(),
            max_drawdown=self._max_drawdown(),
            total_trades=len(pnls),
        )

    def calculate_portfolio_risk(
        self, positions: Sequence[PositionView], mark_prices: Mapping[str, int]
    ) -> PortfolioRisk:
        """Exposure, 95% value-at-risk and concentration of the positions."""
        exposures = _exposures(positions, mark_prices)
        return PortfolioRisk(
            total_exposure=sum(exposures.values()),
            var_95=self._value_at_risk(_VAR_CONFIDENCE),
            concentration_risk=_concentration(exposures),
        )

    def _sharpe_ratio(self) -> float:
        returns = self.daily_returns
        if not returns:
            return 0.0
        mean = sum(returns) / len(returns)
        variance = sum((r - mean) ** 2 for r in returns) / len(returns)
        std_dev = math.sqrt(variance)
        return mean / std_dev if std_dev > 0.0 else 0.0

    def _max_drawdown(self) -> float:
        peak = 0
        running = 0
        max_dd = 0.0
        for trade in self.trades:
            running += trade.pnl
            peak = max(peak, running)
            max_dd = max(max_dd, (peak - running) / max(peak, 1))
        return max_dd

    def _value_at_risk(self, confidence: float) -> float:
        if not self.daily_returns:
            return 0.0
        ordered = sorted(self.daily_returns)
        index = int((1.0 - confidence) * len(ordered))
        return abs(ordered[index]) if index < len(ordered) else 0.0


def _exposures(positions: Sequence[PositionView], mark_prices: Mapping[str, int]) -> dict[str, int]:
    exposures: dict[str, int] = {}
    for position in positions:
        exposure = position.size * mark_prices.get(position.symbol, 0)
        exposures[position.symbol] = exposures.get(position.symbol, 0) + exposure
    return exposures


def _concentration(exposures: Mapping[str, int]) -> float:
    total = sum(exposures.values())
    if total == 0:
        return 0.0
    return math.sqrt(sum((e / total) ** 2 for e in exposures.values()))