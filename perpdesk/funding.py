"""Funding-rate computation and application for a set of markets."""

from __future__ import annotations

import random
import uuid
from datetime import datetime, timezone
from typing import Sequence

from perpdesk.models import FundingSystem, FundingUpdate

_JITTER_SPAN = 0.1
_HOURS_PER_DAY = 24.0


def _short_id() -> str:
    return str(uuid.uuid4())[:8]


class DefaultFundingSystem(FundingSystem):
    """Publishes a funding rate near base_rate for every configured symbol."""

    def __init__(
        self, symbols: Sequence[str], base_rate: float, rng: random.Random | None = None
    ) -> None:
        self.symbols = list(symbols)
        self.base_rate = base_rate
        self._rng = rng if rng is not None else random.Random()

    async def compute_and_publish(self) -> list[FundingUpdate]:
        """One update per symbol: the base rate moved by up to 5% either way."""
        now = datetime.now(timezone.utc)
        updates = []
        for symbol in self.symbols:
            jitter = self._rng.random() * _JITTER_SPAN - _JITTER_SPAN / 2
            rate_per_hour = self.base_rate * (1.0 + jitter)
            updates.append(
                FundingUpdate(
                    symbol=symbol,
                    rate_per_hour=rate_per_hour,
                    cum_funding_per_base=rate_per_hour * _HOURS_PER_DAY,
                    ts=now,
                )
            )
        return updates

    async def apply_on_chain(self, updates: Sequence[FundingUpdate]) -> list[str]:
        """Return one transaction signature per update."""
        return [f"funding_{update.symbol}_{_short_id()}" for update in updates]