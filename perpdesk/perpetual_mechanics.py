"""Off-chain perpetual formulas: mark price, margins, PnL, liquidation, funding."""

from __future__ import annotations

from dataclasses import dataclass

from perpdesk.fixed_math import I64_MAX, I64_MIN, U64_MAX

_RATE_DENOMINATOR = 10_000
_PRICE_SCALE = 1_000_000
_FUNDING_PERIOD_HOURS = 8


@dataclass
class FundingRate:
    rate: int
    timestamp: int


@dataclass
class MarginRequirements:
    initial_margin: int
    maintenance_margin: int
    liquidation_threshold: int


def _u64(value: int) -> int:
    if not 0 <= value <= U64_MAX:
        raise OverflowError(f"value out of unsigned 64-bit range: {value}")
    return value


def _i64(value: int) -> int:
    if not I64_MIN <= value <= I64_MAX:
        raise OverflowError(f"value out of signed 64-bit range: {value}")
    return value


def _div_trunc(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    if b == 0:
        raise ZeroDivisionError("division by zero")
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def calculate_mark_price(oracle_price: int, funding_impact: int) -> int:
    """Oracle price shifted by the funding impact, never below 1.

    The sum is reduced to 64 unsigned bits, so a negative sum wraps around.
    """
    return max((oracle_price + funding_impact) % (U64_MAX + 1), 1)


def calculate_initial_margin(notional: int, im_rate: int) -> int:
    """Initial margin for a notional at a rate in basis points."""
    return _u64(notional * im_rate) // _RATE_DENOMINATOR


def calculate_maintenance_margin(notional: int, mm_rate: int) -> int:
    """Maintenance margin for a notional at a rate in basis points."""
    return _u64(notional * mm_rate) // _RATE_DENOMINATOR


def calculate_unrealized_pnl(entry_price: int, mark_price: int, size: int, is_long: bool) -> int:
    """PnL of a position, scaled by the entry price."""
    price_diff = _i64(mark_price - entry_price)
    pnl = _div_trunc(_i64(price_diff * size), entry_price)
    return pnl if is_long else -pnl


def calculate_liquidation_price(
    entry_price: int, margin: int, size: int, mm_rate: int, is_long: bool
) -> int:
    """Price at which the margin above maintenance is used up."""
    notional = _u64(size * entry_price) // _PRICE_SCALE
    maintenance_margin = calculate_maintenance_margin(notional, mm_rate)
    max_loss = max(margin - maintenance_margin, 0)
    if notional == 0:
        raise ZeroDivisionError("position notional is zero")
    move = _u64(max_loss * entry_price) // notional
    if is_long:
        return max(entry_price - move, 0)
    return _u64(entry_price + move)


def calculate_funding_payment(position_size: int, funding_rate: int, hours: int) -> int:
    """Funding owed over hours, rate in basis points per eight-hour period."""
    amount = _i64(_i64(position_size * funding_rate) * hours)
    return _div_trunc(amount, _RATE_DENOMINATOR * _FUNDING_PERIOD_HOURS)