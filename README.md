# perpdesk

Building blocks for a perpetual futures desk. It covers position accounting in checked
fixed-point integer maths, leverage tiers, risk limits, conditional orders, performance
analytics and versioned position state. It has no dependencies beyond the standard library.

## Install

```
pip install .
pip install ".[test]"   # with pytest and pytest-asyncio
```

## What is inside

- `perpdesk.errors`: `PerpError`, raised for every rejected position operation. It carries an
  `ErrorKind` with a message and a numeric `code`; codes start at 6000 and follow the order
  in which the kinds are declared.
- `perpdesk.fixed_math`: checked arithmetic on unsigned/signed 128- and 64-bit ranges
  (`add_u128`, `sub_u128`, `mul_u128`, `div_u128`, `u128_to_u64`, `i128_to_i64`,
  `i128_to_u64`, …). It also holds `calc_unrealized_pnl`, `calc_realized_pnl_partial`,
  `calc_realized_pnl_full` and `calc_liquidation_price`, whose maintenance rate is scaled by
  1e6. Overflow, underflow and division by zero raise `PerpError`.
- `perpdesk.tiers`: `LEVERAGE_TIERS`, and `get_leverage_tier(leverage, pos_size_quote)`,
  which returns the first `LeverageTier` that allows both the leverage and the notional.
- `perpdesk.accounts`: the `Position`, `UserAccount`, `VaultAuthority` and `TokenAccount`
  records, the `Side` enum, `PositionAccounts` (the accounts an operation works on, plus
  its event list), and the `PositionOpened`, `PositionModified` and `PositionClosed` events.
  It also defines the constants `RATE_SCALE`, `MAX_SYMBOL_LEN`, `MIN_LEVERAGE` and
  `MAX_LEVERAGE`.
- `perpdesk.open_position.open_position(ctx, symbol, side, size, leverage, entry_price, now)`:
  locks notional / leverage as margin in the vault and creates the position.
- `perpdesk.modify_position.modify_position(ctx, action, now)`: applies an `IncreaseSize`,
  `DecreaseSize`, `AddMargin` or `RemoveMargin` action.
- `perpdesk.close_position.close_position(ctx, exit_price, funding_payment)`: pays out margin
  plus net PnL, never less than zero, and clears the position.
  A rejected open, modify or close leaves the accounts unchanged. Each operation returns its
  event and appends it to `ctx.events`.
- `perpdesk.models`: `PositionView`, `ModifyAction`/`ModifyKind`, `LiqOrder`, `FundingUpdate`,
  and the abstract async services `LiquidationEngine`, `SettlementRelayer` and `FundingSystem`.
- `perpdesk.perpetual_mechanics`: mark price, initial and maintenance margin (rates in basis
  points), PnL, liquidation price and funding payment formulas.
- `perpdesk.markets`: `MarketConfig` and `get_btc_eth_markets()`. `market_price(symbol)`
  knows only `SOL-PERP`. The module also has `required_margin(size, price, leverage)` and
  `create_trade_data(...)`, which packs an open-position instruction as little-endian bytes.
- `perpdesk.risk_manager`: `RiskManager` with `RiskLimits` for each `UserTier` (Basic, Premium,
  Pro). It scales leverage down with volatility, validates positions and tracks open
  interest.
- `perpdesk.advanced_orders`: `StopLoss`, `TakeProfit` and `TrailingStop` orders. An
  `OrderManager` fires and deactivates them. `HedgeDetector.detect_hedges` finds opposing
  pairs of positions.
- `perpdesk.analytics`: `Analytics` computes total PnL, win rate, profit factor, Sharpe ratio
  and max drawdown (`calculate_metrics`). Its `calculate_portfolio_risk` gives exposure,
  95% VaR and concentration risk.
- `perpdesk.funding.DefaultFundingSystem`, `perpdesk.liquidation.DefaultLiquidationEngine`,
  `perpdesk.settlement.DefaultSettlementRelayer`: default implementations of the services.
- `perpdesk.performance`: the async `PositionCache` and `BatchProcessor`, which runs a
  coroutine concurrently over chunks. `QueryOptimizer` builds an SQL query and
  index-statement text.
- `perpdesk.state_manager.StateManager`: snapshots, per-position version history,
  point-in-time reconstruction, migrations, cleanup, and a small JSON export/import of the
  current version.
- `perpdesk.trading_engine.TradingEngine`: ties risk, orders, analytics and state together.

## Example

```python
from perpdesk.accounts import Side
from perpdesk.fixed_math import calc_liquidation_price, calc_unrealized_pnl
from perpdesk.tiers import get_leverage_tier

tier = get_leverage_tier(10, 1_000)
pnl = calc_unrealized_pnl(Side.LONG, 10, 100, 110)   # 100
price = calc_liquidation_price(Side.LONG, 10, 100, 100, tier.maintenance_margin_rate)  # 92
```

## Command line

```
perpdesk
```

This prints `Trading system starting...` and exits with status 0.

## What it does not do

- It talks to no network. The default funding, liquidation and settlement services return
  generated transaction signatures such as `close_BTC-PERP_1a2b3c4d`; they submit nothing.
  `markets` encodes trade instructions but does not send them.
- It stores nothing. All state (positions, caches, snapshots, versions) lives in memory, and
  `QueryOptimizer` only builds SQL text.
- The command runs no trading loop.

## Tests

```
pytest
```