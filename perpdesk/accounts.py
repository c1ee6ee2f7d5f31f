"""Account records, limits and events for leveraged positions."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar

RATE_SCALE = 1_000_000
MAX_SYMBOL_LEN = 16
MAX_LEVERAGE = 1000
MIN_LEVERAGE = 1

_U64_MAX = 2**64 - 1


class Side(Enum):
    LONG = "long"
    SHORT = "short"


@dataclass
class Position:
    """A leveraged position held by one owner in one symbol."""

    owner: str | None = None
    symbol: str = ""
    side: Side = Side.LONG
    size: int = 0
    entry_price: int = 0
    margin: int = 0
    leverage: int = 0
    unrealized_pnl: int = 0
    realized_pnl: int = 0
    funding_accrued: int = 0
    liquidation_price: int = 0
    last_update: int = 0
    bump: int = 0

    @staticmethod
    def space(max_symbol: int) -> int:
        """Bytes needed to store a position whose symbol has up to max_symbol bytes."""
        return (
            8  # discriminator
            + 32  # owner
            + 4 + max_symbol  # symbol
            + 1  # side
            + 8  # size
            + 8  # entry_price
            + 8  # margin
            + 2  # leverage
            + 8  # unrealized_pnl
            + 8  # realized_pnl
            + 8  # funding_accrued
            + 8  # liquidation_price
            + 8  # last_update
            + 1  # bump
            + 32  # padding
        )


@dataclass
class UserAccount:
    """Collateral totals for one owner; owner is None until initialised."""

    SPACE: ClassVar[int] = 8 + 32 + 8 + 8 + 8 + 4 + 1 + 16

    owner: str | None = None
    total_collateral: int = 0
    locked_collateral: int = 0
    total_pnl: int = 0
    position_count: int = 0
    bump: int = 0


@dataclass
class VaultAuthority:
    bump: int = 0


@dataclass
class TokenAccount:
    """A quote-token balance."""

    owner: str
    mint: str = ""
    amount: int = 0

    def transfer(self, destination: TokenAccount, amount: int) -> None:
        """Move amount tokens from this account to destination."""
        if amount < 0:
            raise ValueError("transfer amount must not be negative")
        if amount > self.amount:
            raise ValueError("insufficient funds")
        if destination.amount + amount > _U64_MAX:
            raise ValueError("destination balance would overflow")
        self.amount -= amount
        destination.amount += amount


@dataclass
class PositionAccounts:
    """Everything an instruction on a position reads and writes."""

    owner: str
    user: UserAccount
    position: Position
    user_quote_ata: TokenAccount
    vault: TokenAccount
    vault_authority: VaultAuthority
    user_bump: int = 255
    position_bump: int = 255
    events: list = field(default_factory=list)


@dataclass(frozen=True)
class PositionOpened:
    owner: str
    symbol: str
    side: Side
    size: int
    leverage: int
    entry_price: int
    initial_margin: int
    liquidation_price: int


@dataclass(frozen=True)
class PositionModified:
    owner: str
    symbol: str
    size: int
    margin: int
    leverage: int
    price: int
    unrealized_pnl: int
    liquidation_price: int


@dataclass(frozen=True)
class PositionClosed:
    owner: str
    symbol: str
    size_closed: int
    exit_price: int
    realized_pnl: int
    payout: int