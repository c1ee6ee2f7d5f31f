import pytest

from perpdesk.accounts import (
    Position,
    PositionAccounts,
    PositionModified,
    Side,
    TokenAccount,
    UserAccount,
    VaultAuthority,
)
from perpdesk.errors import ErrorKind, PerpError
from perpdesk.fixed_math import calc_realized_pnl_partial, calc_unrealized_pnl
from perpdesk.modify_position import (
    AddMargin,
    DecreaseSize,
    IncreaseSize,
    RemoveMargin,
    modify_position,
)
from perpdesk.open_position import open_position

OWNER = "trader-1"
START_BALANCE = 10_000


def opened_ctx(side=Side.LONG):
    ctx = PositionAccounts(
        owner=OWNER,
        user=UserAccount(),
        position=Position(),
        user_quote_ata=TokenAccount(owner=OWNER, mint="usdc", amount=START_BALANCE),
        vault=TokenAccount(owner="vault-authority", mint="usdc", amount=0),
        vault_authority=VaultAuthority(bump=254),
    )
    open_position(ctx, "SOL-PERP", side, 10, 10, 100, now=0)
    return ctx


def snapshot(ctx):
    pos = ctx.position
    return (
        pos.size, pos.margin, pos.entry_price, pos.realized_pnl, pos.liquidation_price,
        ctx.user.total_collateral, ctx.user.locked_collateral,
        ctx.user_quote_ata.amount, ctx.vault.amount,
    )


def test_add_margin_moves_funds_and_reports_entry_price():
    ctx = opened_ctx()
    before = ctx.position.margin
    event = modify_position(ctx, AddMargin(amount=50), now=7)
    assert ctx.position.margin == before + 50
    assert ctx.vault.amount == ctx.position.margin
    assert ctx.user.locked_collateral == ctx.position.margin
    assert ctx.user_quote_ata.amount + ctx.vault.amount == START_BALANCE
    assert event.price == ctx.position.entry_price
    assert ctx.position.last_update == 7
    assert ctx.events[-1] is event


def test_add_margin_rejects_zero():
    ctx = opened_ctx()
    before = snapshot(ctx)
    with pytest.raises(PerpError) as exc:
        modify_position(ctx, AddMargin(amount=0), now=1)
    assert exc.value.kind is ErrorKind.INVALID_AMOUNT
    assert snapshot(ctx) == before


def test_increase_size_rejects_zero():
    ctx = opened_ctx()
    with pytest.raises(PerpError) as exc:
        modify_position(ctx, IncreaseSize(add_size=0, price=100, add_margin=10), now=1)
    assert exc.value.kind is ErrorKind.INVALID_SIZE


def test_increase_size_at_same_price_keeps_entry():
    ctx = opened_ctx()
    size_before = ctx.position.size
    margin_before = ctx.position.margin
    event = modify_position(ctx, IncreaseSize(add_size=10, price=100, add_margin=100), now=3)
    assert ctx.position.size == size_before + 10
    assert ctx.position.margin == margin_before + 100
    assert ctx.position.entry_price == 100
    assert ctx.position.unrealized_pnl == 0
    assert ctx.user_quote_ata.amount + ctx.vault.amount == START_BALANCE
    assert isinstance(event, PositionModified)
    assert event.size == ctx.position.size


def test_increase_size_at_higher_price_averages_entry():
    ctx = opened_ctx()
    modify_position(ctx, IncreaseSize(add_size=10, price=120, add_margin=120), now=3)
    pos = ctx.position
    assert 100 < pos.entry_price < 120
    assert pos.unrealized_pnl == calc_unrealized_pnl(Side.LONG, pos.size, pos.entry_price, 120)
    assert pos.unrealized_pnl > 0


def test_increase_without_margin_is_rejected_and_state_kept():
    ctx = opened_ctx()
    before = snapshot(ctx)
    with pytest.raises(PerpError) as exc:
        modify_position(ctx, IncreaseSize(add_size=10, price=100), now=3)
    assert exc.value.kind is ErrorKind.INSUFFICIENT_MARGIN_FOR_INCREASE
    assert snapshot(ctx) == before


def test_decrease_size_realises_pnl():
    ctx = opened_ctx()
    size_before = ctx.position.size
    margin_before = ctx.position.margin
    modify_position(ctx, DecreaseSize(reduce_size=5, price=120), now=9)
    assert ctx.position.size == size_before - 5
    assert ctx.position.realized_pnl == calc_realized_pnl_partial(Side.LONG, 5, 100, 120)
    assert ctx.position.unrealized_pnl == calc_unrealized_pnl(Side.LONG, 5, 100, 120)
    assert ctx.position.margin == margin_before
    assert ctx.position.last_update == 9


def test_decrease_short_at_higher_price_loses():
    ctx = opened_ctx(Side.SHORT)
    modify_position(ctx, DecreaseSize(reduce_size=5, price=110), now=9)
    assert ctx.position.realized_pnl < 0
    assert ctx.position.unrealized_pnl < 0


@pytest.mark.parametrize("reduce_size", [0, 11, 10])
def test_decrease_size_rejects_invalid_amounts(reduce_size):
    ctx = opened_ctx()
    before = snapshot(ctx)
    with pytest.raises(PerpError) as exc:
        modify_position(ctx, DecreaseSize(reduce_size=reduce_size, price=100), now=1)
    assert exc.value.kind is ErrorKind.INVALID_SIZE
    assert snapshot(ctx) == before


def test_remove_margin_returns_funds():
    ctx = opened_ctx()
    margin_before = ctx.position.margin
    ata_before = ctx.user_quote_ata.amount
    event = modify_position(ctx, RemoveMargin(amount=50, price=100), now=4)
    assert ctx.position.margin == margin_before - 50
    assert ctx.user_quote_ata.amount == ata_before + 50
    assert ctx.user.locked_collateral == ctx.position.margin
    assert ctx.user.total_collateral == ctx.position.margin
    assert event.margin == ctx.position.margin
    assert event.price == 100


def test_remove_margin_rejects_maintenance_breach():
    ctx = opened_ctx()
    before = snapshot(ctx)
    with pytest.raises(PerpError) as exc:
        modify_position(ctx, RemoveMargin(amount=80, price=100), now=4)
    assert exc.value.kind is ErrorKind.MAINTENANCE_BREACH
    assert snapshot(ctx) == before


@pytest.mark.parametrize("amount", [0, 101])
def test_remove_margin_rejects_bad_amounts(amount):
    ctx = opened_ctx()
    with pytest.raises(PerpError) as exc:
        modify_position(ctx, RemoveMargin(amount=amount, price=100), now=4)
    assert exc.value.kind is ErrorKind.INVALID_AMOUNT


def test_remove_margin_at_zero_price_is_invalid_state():
    ctx = opened_ctx()
    with pytest.raises(PerpError) as exc:
        modify_position(ctx, RemoveMargin(amount=10, price=0), now=4)
    assert exc.value.kind is ErrorKind.INVALID_STATE


def test_actions_reject_negative_amounts():
    with pytest.raises(ValueError):
        AddMargin(amount=-1)
    with pytest.raises(ValueError):
        IncreaseSize(add_size=1, price=-5)


def test_unknown_action_is_rejected():
    ctx = opened_ctx()
    with pytest.raises(TypeError):
        modify_position(ctx, "grow", now=1)