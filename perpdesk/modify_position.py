"""Changing the size or margin of an open position."""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Union

from perpdesk.accounts import RATE_SCALE, PositionAccounts, PositionModified
from perpdesk.errors import ErrorKind, PerpError
from perpdesk.fixed_math import (
    U64_MAX,
    add_u128,
    calc_liquidation_price,
    calc_realized_pnl_partial,
    calc_unrealized_pnl,
    div_u128,
    i128_to_i64,
    mul_i128_i128,
    mul_u128,
    mul_u128_u64,
    sub_u128,
    u128_to_u64,
)
from perpdesk.tiers import get_leverage_tier


class _Amounts:
    """Validates that every field is an unsigned 64-bit amount."""

    def __post_init__(self) -> None:
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if not 0 <= value <= U64_MAX:
                raise ValueError(f"{f.name} out of range: {value}")


@dataclass(frozen=True)
class IncreaseSize(_Amounts):
    add_size: int
    price: int
    add_margin: int = 0


@dataclass(frozen=True)
class DecreaseSize(_Amounts):
    reduce_size: int
    price: int


@dataclass(frozen=True)
class AddMargin(_Amounts):
    amount: int


@dataclass(frozen=True)
class RemoveMargin(_Amounts):
    amount: int
    price: int


Modification = Union[IncreaseSize, DecreaseSize, AddMargin, RemoveMargin]


def _add_u64(a: int, b: int) -> int:
    return u128_to_u64(add_u128(a, b))


def _sub_u64(a: int, b: int) -> int:
    return u128_to_u64(sub_u128(a, b))


def _emit(ctx: PositionAccounts, price: int) -> PositionModified:
    pos = ctx.position
    event = PositionModified(
        owner=pos.owner,
        symbol=pos.symbol,
        size=pos.size,
        margin=pos.margin,
        leverage=pos.leverage,
        price=price,
        unrealized_pnl=pos.unrealized_pnl,
        liquidation_price=pos.liquidation_price,
    )
    ctx.events.append(event)
    return event


def _increase_size(ctx: PositionAccounts, action: IncreaseSize, now: int) -> PositionModified:
    pos = ctx.position
    user = ctx.user
    if action.add_size <= 0:
        raise PerpError(ErrorKind.INVALID_SIZE)

    if action.add_margin > 0:
        total_collateral = _add_u64(user.total_collateral, action.add_margin)
        locked_collateral = _add_u64(user.locked_collateral, action.add_margin)
        margin = _add_u64(pos.margin, action.add_margin)
    else:
        margin = pos.margin

    new_size = _add_u64(pos.size, action.add_size)
    new_notional = mul_u128(new_size, action.price)
    tier = get_leverage_tier(pos.leverage, u128_to_u64(new_notional))

    if div_u128(new_notional, margin) > pos.leverage:
        raise PerpError(ErrorKind.INSUFFICIENT_MARGIN_FOR_INCREASE)
    if pos.leverage > tier.max_leverage:
        raise PerpError(ErrorKind.LEVERAGE_EXCEEDED)

    entry_price = pos.entry_price
    if action.price > 0:
        total = add_u128(
            mul_u128(pos.size, pos.entry_price), mul_u128(action.add_size, action.price)
        )
        entry_price = u128_to_u64(div_u128(total, new_size))

    unrealized = i128_to_i64(calc_unrealized_pnl(pos.side, new_size, entry_price, action.price))
    liquidation_price = calc_liquidation_price(
        pos.side, new_size, entry_price, margin, tier.maintenance_margin_rate
    )

    if action.add_margin > 0:
        ctx.user_quote_ata.transfer(ctx.vault, action.add_margin)
        user.total_collateral = total_collateral
        user.locked_collateral = locked_collateral

    pos.margin = margin
    pos.entry_price = entry_price
    pos.size = new_size
    pos.unrealized_pnl = unrealized
    pos.liquidation_price = liquidation_price
    pos.last_update = now
    return _emit(ctx, action.price)


def _decrease_size(ctx: PositionAccounts, action: DecreaseSize, now: int) -> PositionModified:
    pos = ctx.position
    if not 0 < action.reduce_size <= pos.size:
        raise PerpError(ErrorKind.INVALID_SIZE)

    realized = calc_realized_pnl_partial(pos.side, action.reduce_size, pos.entry_price, action.price)
    realized_total = i128_to_i64(pos.realized_pnl + i128_to_i64(realized))
    new_size = _sub_u64(pos.size, action.reduce_size)

    unrealized = i128_to_i64(calc_unrealized_pnl(pos.side, new_size, pos.entry_price, action.price))
    notional = u128_to_u64(mul_u128(new_size, action.price))
    tier = get_leverage_tier(pos.leverage, notional)
    liquidation_price = calc_liquidation_price(
        pos.side, new_size, pos.entry_price, pos.margin, tier.maintenance_margin_rate
    )

    pos.realized_pnl = realized_total
    pos.size = new_size
    pos.unrealized_pnl = unrealized
    pos.liquidation_price = liquidation_price
    pos.last_update = now
    return _emit(ctx, action.price)


def _add_margin(ctx: PositionAccounts, action: AddMargin, now: int) -> PositionModified:
    pos = ctx.position
    user = ctx.user
    if action.amount <= 0:
        raise PerpError(ErrorKind.INVALID_AMOUNT)

    total_collateral = _add_u64(user.total_collateral, action.amount)
    locked_collateral = _add_u64(user.locked_collateral, action.amount)
    margin = _add_u64(pos.margin, action.amount)

    ctx.user_quote_ata.transfer(ctx.vault, action.amount)
    user.total_collateral = total_collateral
    user.locked_collateral = locked_collateral
    pos.margin = margin
    pos.last_update = now
    return _emit(ctx, pos.entry_price)


def _remove_margin(ctx: PositionAccounts, action: RemoveMargin, now: int) -> PositionModified:
    pos = ctx.position
    user = ctx.user
    if not 0 < action.amount <= pos.margin:
        raise PerpError(ErrorKind.INVALID_AMOUNT)

    notional = mul_u128(pos.size, action.price)
    unrealized = calc_unrealized_pnl(pos.side, pos.size, pos.entry_price, action.price)
    remaining_equity = (pos.margin - action.amount) + unrealized
    if notional <= 0:
        raise PerpError(ErrorKind.INVALID_STATE)

    tier = get_leverage_tier(pos.leverage, u128_to_u64(notional))
    lhs = mul_i128_i128(remaining_equity, RATE_SCALE)
    rhs = mul_u128_u64(notional, tier.maintenance_margin_rate)
    if lhs < rhs:
        raise PerpError(ErrorKind.MAINTENANCE_BREACH)

    locked_collateral = _sub_u64(user.locked_collateral, action.amount)
    total_collateral = _sub_u64(user.total_collateral, action.amount)
    margin = _sub_u64(pos.margin, action.amount)
    unrealized_i64 = i128_to_i64(unrealized)
    liquidation_price = calc_liquidation_price(
        pos.side, pos.size, pos.entry_price, margin, tier.maintenance_margin_rate
    )

    ctx.vault.transfer(ctx.user_quote_ata, action.amount)
    user.locked_collateral = locked_collateral
    user.total_collateral = total_collateral
    pos.margin = margin
    pos.unrealized_pnl = unrealized_i64
    pos.liquidation_price = liquidation_price
    pos.last_update = now
    return _emit(ctx, action.price)


def modify_position(ctx: PositionAccounts, action: Modification, now: int) -> PositionModified:
    """Apply action to ctx.position and record the resulting event.

    Nothing is changed if the action is rejected.
    """
    match action:
        case IncreaseSize():
            return _increase_size(ctx, action, now)
        case DecreaseSize():
            return _decrease_size(ctx, action, now)
        case AddMargin():
            return _add_margin(ctx, action, now)
        case RemoveMargin():
            return _remove_margin(ctx, action, now)
    raise TypeError(f"unsupported modification: {action!r}")