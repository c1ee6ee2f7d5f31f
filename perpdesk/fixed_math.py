"""Checked integer arithmetic and PnL / liquidation-price formulas."""

from __future__ import annotations

from perpdesk.accounts import RATE_SCALE, Side
from perpdesk.errors import ErrorKind, PerpError

U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1
I64_MIN = -(2**63)
I64_MAX = 2**63 - 1
I128_MIN = -(2**127)
I128_MAX = 2**127 - 1


def _overflow() -> PerpError:
    return PerpError(ErrorKind.OVERFLOW)


def _check_u128(value: int) -> int:
    if not 0 <= value <= U128_MAX:
        raise _overflow()
    return value


def _check_i128(value: int) -> int:
    if not I128_MIN <= value <= I128_MAX:
        raise _overflow()
    return value


def _signed_pnl(side: Side, size: int, entry: int, price: int) -> int:
    diff = price - entry
    if side is Side.SHORT:
        diff = -diff
    return _check_i128(size * diff)


def calc_unrealized_pnl(side: Side, size: int, entry: int, price: int) -> int:
    """PnL of holding size units opened at entry, marked at price."""
    return _signed_pnl(side, size, entry, price)


def calc_realized_pnl_partial(side: Side, reduce_size: int, entry: int, price: int) -> int:
    """PnL realised by closing reduce_size units at price."""
    return _signed_pnl(side, reduce_size, entry, price)


def calc_realized_pnl_full(side: Side, size: int, entry: int, price: int) -> int:
    """PnL realised by closing the whole position at price."""
    return calc_realized_pnl_partial(side, size, entry, price)


def calc_liquidation_price(side: Side, size: int, entry: int, margin: int, mmr_scaled: int) -> int:
    """Price at which equity falls to the maintenance margin.

    Long:  (size*entry - margin) * RATE_SCALE / (size * (RATE_SCALE - mmr))
    Short: (margin + size*entry) * RATE_SCALE / (size * (RATE_SCALE + mmr))
    """
    if size <= 0:
        raise PerpError(ErrorKind.INVALID_SIZE)
    notional = mul_u128(size, entry)
    if side is Side.LONG:
        numer = sub_u128(notional, margin)
        denom = mul_u128(size, sub_u128(RATE_SCALE, mmr_scaled))
    else:
        numer = add_u128(margin, notional)
        denom = mul_u128(size, add_u128(RATE_SCALE, mmr_scaled))
    if denom <= 0:
        raise PerpError(ErrorKind.INVALID_STATE)
    return u128_to_u64(div_u128(mul_u128(numer, RATE_SCALE), denom))


def add_u128(a: int, b: int) -> int:
    return _check_u128(a + b)


def sub_u128(a: int, b: int) -> int:
    return _check_u128(a - b)


def mul_u128(a: int, b: int) -> int:
    return _check_u128(a * b)


def mul_u128_u64(a: int, b: int) -> int:
    return _check_u128(a * b)


def mul_i128_i128(a: int, b: int) -> int:
    return _check_i128(a * b)


def div_u128(a: int, b: int) -> int:
    if b == 0:
        raise PerpError(ErrorKind.DIVISION_BY_ZERO)
    return a // b


def u128_to_u64(v: int) -> int:
    if not 0 <= v <= U64_MAX:
        raise _overflow()
    return v


def i128_to_i64(v: int) -> int:
    if not I64_MIN <= v <= I64_MAX:
        raise _overflow()
    return v


def i128_to_u64(v: int) -> int:
    if v < 0:
        raise PerpError(ErrorKind.UNDERFLOW)
    if v > U64_MAX:
        raise _overflow()
    return v