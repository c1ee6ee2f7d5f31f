"""Leverage tiers: margin rates and size caps by leverage."""

from __future__ import annotations

from dataclasses import dataclass

from perpdesk.errors import ErrorKind, PerpError
from perpdesk.fixed_math import U64_MAX


@dataclass(frozen=True)
class LeverageTier:
    """Margin rates are scaled by 1e6; max_position_size is in quote units."""

    max_leverage: int
    initial_margin_rate: int
    maintenance_margin_rate: int
    max_position_size: int


LEVERAGE_TIERS: tuple[LeverageTier, ...] = (
    LeverageTier(20, 50_000, 25_000, U64_MAX),
    LeverageTier(50, 20_000, 10_000, 100_000),
    LeverageTier(100, 10_000, 5_000, 50_000),
    LeverageTier(500, 5_000, 2_500, 20_000),
    LeverageTier(1000, 2_000, 1_000, 5_000),
)


def get_leverage_tier(leverage: int, pos_size_quote: int) -> LeverageTier:
    """Return the first tier that allows this leverage and position size."""
    for tier in LEVERAGE_TIERS:
        if leverage <= tier.max_leverage and pos_size_quote <= tier.max_position_size:
            return tier
    raise PerpError(ErrorKind.LEVERAGE_EXCEEDED)