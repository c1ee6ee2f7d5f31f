import math
from datetime import datetime, timezone

import pytest

from perpdesk.analytics import Analytics, TradeRecord
from perpdesk.models import PositionView

_NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def _trade(pnl):
    return TradeRecord("SOL", 100, 100, 1, pnl, _NOW, _NOW)


def _view(symbol, size):
    return PositionView(pda="p", owner="alice", symbol=symbol, size=size, collateral=1, entry_price=1)


def test_empty_metrics():
    metrics = Analytics().calculate_metrics()
    assert metrics.total_trades == 0
    assert metrics.total_pnl == 0
    assert math.isnan(metrics.win_rate)
    assert metrics.sharpe_ratio == 0.0
    assert metrics.max_drawdown == 0.0


def test_metrics_mixed_trades():
    analytics = Analytics()
    pnls = [100, -50, 30]
    for pnl in pnls:
        analytics.add_trade(_trade(pnl))
    metrics = analytics.calculate_metrics()
    assert metrics.total_trades == len(pnls)
    assert metrics.total_pnl == sum(pnls)
    assert metrics.win_rate == pytest.approx(2 / 3)
    assert metrics.profit_factor == pytest.approx(2.6)
    assert 0.0 < metrics.max_drawdown < 1.0


def test_metrics_no_losses():
    analytics = Analytics()
    for pnl in (10, 20, 30):
        analytics.add_trade(_trade(pnl))
    metrics = analytics.calculate_metrics()
    assert metrics.profit_factor == 0.0
    assert metrics.max_drawdown == 0.0
    assert metrics.win_rate == 1.0


def test_sharpe_constant_returns_is_zero():
    analytics = Analytics()
    for _ in range(5):
        analytics.add_daily_return(0.01)
    assert analytics.calculate_metrics().sharpe_ratio == 0.0


def test_sharpe_example():
    analytics = Analytics()
    analytics.add_daily_return(1.0)
    analytics.add_daily_return(3.0)
    assert analytics.calculate_metrics().sharpe_ratio == pytest.approx(2.0)


def test_portfolio_risk_single_symbol():
    risk = Analytics().calculate_portfolio_risk([_view("SOL", 5), _view("SOL", 3)], {"SOL": 10})
    assert risk.total_exposure == 5 * 10 + 3 * 10
    assert risk.concentration_risk == pytest.approx(1.0)
    assert risk.var_95 == 0.0


def test_portfolio_risk_unpriced_symbol():
    risk = Analytics().calculate_portfolio_risk([_view("BTC", 5)], {"SOL": 10})
    assert risk.total_exposure == 0
    assert risk.concentration_risk == 0.0


def test_concentration_falls_with_diversification():
    analytics = Analytics()
    prices = {"SOL": 10, "BTC": 10, "ETH": 10}
    two = analytics.calculate_portfolio_risk([_view("SOL", 1), _view("BTC", 1)], prices)
    three = analytics.calculate_portfolio_risk(
        [_view("SOL", 1), _view("BTC", 1), _view("ETH", 1)], prices
    )
    assert three.concentration_risk < two.concentration_risk < 1.0


def test_var_single_return():
    analytics = Analytics()
    analytics.add_daily_return(-0.3)
    risk = analytics.calculate_portfolio_risk([], {})
    assert risk.var_95 == pytest.approx(0.3)