"""Closing a position and paying out its margin plus PnL."""

from __future__ import annotations

from perpdesk.accounts import Position, PositionAccounts, PositionClosed
from perpdesk.fixed_math import (
    add_u128,
    calc_realized_pnl_full,
    i128_to_i64,
    i128_to_u64,
    sub_u128,
    u128_to_u64,
)


def close_position(
    ctx: PositionAccounts, exit_price: int, funding_payment: int
) -> PositionClosed:
    """Close ctx.position at exit_price after paying funding_payment.

    The payout (margin plus net PnL, never below zero) moves from the vault to
    the owner, and the position record is cleared. Nothing is changed if the
    close is rejected.
    """
    pos = ctx.position
    user = ctx.user

    pnl = i128_to_i64(calc_realized_pnl_full(pos.side, pos.size, pos.entry_price, exit_price))
    net_pnl = i128_to_i64(pnl - funding_payment)
    i128_to_i64(pos.funding_accrued + i128_to_i64(-funding_payment))

    payout = i128_to_u64(max(pos.margin + net_pnl, 0))

    locked_collateral = u128_to_u64(sub_u128(user.locked_collateral, pos.margin))
    total_collateral = u128_to_u64(sub_u128(user.total_collateral, pos.margin))
    total_pnl = i128_to_i64(user.total_pnl + net_pnl)
    u128_to_u64(add_u128(ctx.user_quote_ata.amount, 0))

    if payout > 0:
        ctx.vault.transfer(ctx.user_quote_ata, payout)

    user.locked_collateral = locked_collateral
    user.total_collateral = total_collateral
    user.total_pnl = total_pnl
    user.position_count = max(user.position_count - 1, 0)

    event = PositionClosed(
        owner=pos.owner,
        symbol=pos.symbol,
        size_closed=pos.size,
        exit_price=exit_price,
        realized_pnl=net_pnl,
        payout=payout,
    )
    ctx.position = Position()
    ctx.events.append(event)
    return event