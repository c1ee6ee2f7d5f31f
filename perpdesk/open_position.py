"""Opening a leveraged position and locking its initial margin."""

from __future__ import annotations

from perpdesk.accounts import (
    MAX_LEVERAGE,
    MAX_SYMBOL_LEN,
    MIN_LEVERAGE,
    Position,
    PositionAccounts,
    PositionOpened,
    Side,
)
from perpdesk.errors import ErrorKind, PerpError
from perpdesk.fixed_math import (
    add_u128,
    calc_liquidation_price,
    div_u128,
    mul_u128,
    u128_to_u64,
)
from perpdesk.tiers import get_leverage_tier

_U32_MAX = 2**32 - 1


def _add_u64(a: int, b: int) -> int:
    return u128_to_u64(add_u128(a, b))


def _add_u32(a: int, b: int) -> int:
    total = a + b
    if total > _U32_MAX:
        raise PerpError(ErrorKind.OVERFLOW)
    return total


def open_position(
    ctx: PositionAccounts,
    symbol: str,
    side: Side,
    size: int,
    leverage: int,
    entry_price: int,
    now: int,
) -> PositionOpened:
    """Open a position, lock notional / leverage as margin and record the event.

    Nothing is changed if the request is rejected.
    """
    if size <= 0:
        raise PerpError(ErrorKind.INVALID_SIZE)
    if not MIN_LEVERAGE <= leverage <= MAX_LEVERAGE:
        raise PerpError(ErrorKind.INVALID_LEVERAGE)
    if len(symbol.encode("utf-8")) > MAX_SYMBOL_LEN:
        raise PerpError(ErrorKind.SYMBOL_TOO_LONG)

    notional = mul_u128(size, entry_price)
    tier = get_leverage_tier(leverage, u128_to_u64(notional))
    initial_margin = u128_to_u64(div_u128(notional, leverage))
    liquidation_price = calc_liquidation_price(
        side, size, entry_price, initial_margin, tier.maintenance_margin_rate
    )

    user = ctx.user
    fresh_user = user.owner is None
    base_total = 0 if fresh_user else user.total_collateral
    base_locked = 0 if fresh_user else user.locked_collateral
    base_count = 0 if fresh_user else user.position_count
    total_collateral = _add_u64(base_total, initial_margin)
    locked_collateral = _add_u64(base_locked, initial_margin)
    position_count = _add_u32(base_count, 1)

    ctx.user_quote_ata.transfer(ctx.vault, initial_margin)

    if fresh_user:
        user.owner = ctx.owner
        user.total_pnl = 0
        user.bump = ctx.user_bump
    user.total_collateral = total_collateral
    user.locked_collateral = locked_collateral
    user.position_count = position_count

    ctx.position = Position(
        owner=ctx.owner,
        symbol=symbol,
        side=side,
        size=size,
        entry_price=entry_price,
        margin=initial_margin,
        leverage=leverage,
        liquidation_price=liquidation_price,
        last_update=now,
        bump=ctx.position_bump,
    )

    event = PositionOpened(
        owner=ctx.owner,
        symbol=symbol,
        side=side,
        size=size,
        leverage=leverage,
        entry_price=entry_price,
        initial_margin=initial_margin,
        liquidation_price=liquidation_price,
    )
    ctx.events.append(event)
    return event