import dataclasses

import pytest

from perpdesk.accounts import (
    MAX_SYMBOL_LEN,
    Position,
    PositionAccounts,
    PositionClosed,
    PositionOpened,
    Side,
    TokenAccount,
    UserAccount,
    VaultAuthority,
)


def _accounts():
    return PositionAccounts(
        owner="alice",
        user=UserAccount(),
        position=Position(),
        user_quote_ata=TokenAccount("alice", amount=1_000),
        vault=TokenAccount("vault"),
        vault_authority=VaultAuthority(),
    )


def test_transfer_moves_tokens_and_conserves_total():
    src = TokenAccount("alice", amount=100)
    dst = TokenAccount("vault")
    src.transfer(dst, 40)
    assert dst.amount == 40
    assert src.amount + dst.amount == 100


def test_transfer_whole_balance_empties_source():
    src = TokenAccount("alice", amount=75)
    dst = TokenAccount("vault", amount=5)
    src.transfer(dst, 75)
    assert src.amount == 0
    assert dst.amount == 80


def test_transfer_insufficient_funds_leaves_balances():
    src = TokenAccount("alice", amount=10)
    dst = TokenAccount("vault", amount=3)
    with pytest.raises(ValueError):
        src.transfer(dst, 11)
    assert (src.amount, dst.amount) == (10, 3)


def test_transfer_negative_amount_rejected():
    src = TokenAccount("alice", amount=10)
    with pytest.raises(ValueError):
        src.transfer(TokenAccount("vault"), -1)
    assert src.amount == 10


def test_position_space_grows_with_symbol_length():
    assert Position.space(MAX_SYMBOL_LEN + 4) - Position.space(MAX_SYMBOL_LEN) == 4


def test_position_space_for_max_symbol():
    assert Position.space(MAX_SYMBOL_LEN) == 160


def test_new_user_account_is_uninitialised():
    user = UserAccount()
    assert user.owner is None
    assert user.position_count == 0


def test_events_list_is_per_instance():
    first = _accounts()
    second = _accounts()
    first.events.append("x")
    assert second.events == []


def test_events_are_immutable():
    event = PositionClosed("alice", "SOL-PERP", 5, 100, -3, 7)
    with pytest.raises(dataclasses.FrozenInstanceError):
        event.payout = 0
    assert event.realized_pnl == -3


def test_opened_event_equality():
    a = PositionOpened("alice", "BTC", Side.SHORT, 1, 10, 50, 5, 52)
    b = PositionOpened("alice", "BTC", Side.SHORT, 1, 10, 50, 5, 52)
    assert a == b