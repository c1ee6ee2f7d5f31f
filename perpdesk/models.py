"""Position views, modification actions and service interfaces."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Sequence

from perpdesk.fixed_math import U64_MAX


@dataclass
class PositionView:
    """Read-only summary of a position as seen off-chain."""

    pda: str
    owner: str
    symbol: str
    size: int
    collateral: int
    entry_price: int


class ModifyKind(Enum):
    INCREASE_SIZE = "increase_size"
    DECREASE_SIZE = "decrease_size"
    ADD_COLLATERAL = "add_collateral"
    REMOVE_COLLATERAL = "remove_collateral"


@dataclass(frozen=True)
class ModifyAction:
    """A requested change to a position: what kind and by how much."""

    kind: ModifyKind
    amount: int

    def __post_init__(self) -> None:
        if not 0 <= self.amount <= U64_MAX:
            raise ValueError(f"amount out of range: {self.amount}")


@dataclass
class LiqOrder:
    pda: str
    owner: str
    symbol: str
    close_base: int


@dataclass
class FundingUpdate:
    symbol: str
    rate_per_hour: float
    cum_funding_per_base: float
    ts: datetime


class LiquidationEngine(ABC):
    """Finds positions to liquidate and submits the liquidations."""

    @abstractmethod
    async def evaluate(
        self, positions: Sequence[PositionView], mark_prices: Iterable[tuple[str, float]]
    ) -> list[LiqOrder]:
        """Return liquidation orders for positions below the threshold."""

    @abstractmethod
    async def execute(self, order: LiqOrder) -> str:
        """Submit a liquidation and return its transaction signature."""


class SettlementRelayer(ABC):
    """Relays position settlements and returns transaction signatures."""

    @abstractmethod
    async def close_position(
        self, owner: str, symbol: str, exit_price: int, funding_payment: int
    ) -> str:
        """Close a position at exit_price after paying funding."""

    @abstractmethod
    async def modify_position(self, owner: str, symbol: str, action: ModifyAction) -> str:
        """Apply a modification to a position."""

    @abstractmethod
    async def liquidate_position(
        self, owner: str, symbol: str, close_base: int, mark_price: int
    ) -> str:
        """Liquidate close_base units of a position at mark_price."""


class FundingSystem(ABC):
    """Computes funding rates and applies them."""

    @abstractmethod
    async def compute_and_publish(self) -> list[FundingUpdate]:
        """Compute the current funding updates."""

    @abstractmethod
    async def apply_on_chain(self, updates: Sequence[FundingUpdate]) -> list[str]:
        """Apply updates and return one signature per update."""