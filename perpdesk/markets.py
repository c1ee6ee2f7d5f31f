"""Market configurations and market-trade instruction encoding."""

from __future__ import annotations

import struct
from dataclasses import dataclass

_PRICE_SCALE = 1_000_000
_OPEN_POSITION_INSTRUCTION = 0
_TRADE_LAYOUT = struct.Struct("<BQBBQ")

_MOCK_PRICES = {"SOL-PERP": 180_000000}


@dataclass(frozen=True)
class MarketConfig:
    """A perpetual market; keys are raw 32-byte public keys."""

    symbol: str
    base_mint: bytes
    quote_mint: bytes
    oracle: bytes
    im_rate: int
    mm_rate: int


def _key(fill: int) -> bytes:
    return bytes([fill] * 32)


def get_btc_eth_markets() -> list[MarketConfig]:
    """The BTC and ETH perpetual markets."""
    return [
        MarketConfig(
            symbol="BTC-PERP",
            base_mint=_key(1),
            quote_mint=_key(2),
            oracle=_key(3),
            im_rate=5000,
            mm_rate=2500,
        ),
        MarketConfig(
            symbol="ETH-PERP",
            base_mint=_key(4),
            quote_mint=_key(2),
            oracle=_key(5),
            im_rate=10000,
            mm_rate=5000,
        ),
    ]


def market_price(symbol: str) -> int:
    """Current price of symbol in 6-decimal quote units."""
    try:
        return _MOCK_PRICES[symbol]
    except KeyError:
        raise ValueError("Unsupported symbol") from None


def required_margin(size: int, price: int, leverage: int) -> int:
    """Margin for size (6 decimals) at price and leverage."""
    if leverage <= 0:
        raise ValueError("leverage must be positive")
    return (size * price // _PRICE_SCALE) // leverage


def create_trade_data(size: int, leverage: int, is_long: bool, price: int) -> bytes:
    """Encode an open-position instruction: tag, size, leverage, side, price."""
    try:
        return _TRADE_LAYOUT.pack(
            _OPEN_POSITION_INSTRUCTION, size, leverage, 1 if is_long else 0, price
        )
    except struct.error as exc:
        raise ValueError(f"trade field out of range: {exc}") from exc