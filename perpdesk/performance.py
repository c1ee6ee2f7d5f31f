"""Position caching, concurrent batch processing and query building."""

from __future__ import annotations

import asyncio
import copy
from typing import Awaitable, Callable, Iterable, Sequence

from perpdesk.models import PositionView

_INDEX_HINTS = (
    "CREATE INDEX IF NOT EXISTS idx_positions_symbol ON positions(symbol)",
    "CREATE INDEX IF NOT EXISTS idx_positions_owner ON positions(owner)",
    "CREATE INDEX IF NOT EXISTS idx_positions_symbol_owner ON positions(symbol, owner)",
)


class PositionCache:
    """Keyed cache of position views; reads return copies."""

    def __init__(self) -> None:
        self._cache: dict[str, PositionView] = {}

    async def get(self, key: str) -> PositionView | None:
        position = self._cache.get(key)
        return copy.copy(position) if position is not None else None

    async def set(self, key: str, position: PositionView) -> None:
        self._cache[key] = position

    async def batch_update(self, updates: Iterable[tuple[str, PositionView]]) -> None:
        self._cache.update(updates)


class BatchProcessor:
    """Runs a processor concurrently over fixed-size chunks of positions."""

    def __init__(self, batch_size: int) -> None:
        if batch_size <= 0:
            raise ValueError("batch size must be positive")
        self.batch_size = batch_size

    async def process_positions(
        self,
        positions: Sequence[PositionView],
        processor: Callable[[list[PositionView]], Awaitable[None]],
    ) -> None:
        """Start processor on every chunk and wait for all; failures are ignored."""
        chunks = [
            list(positions[start : start + self.batch_size])
            for start in range(0, len(positions), self.batch_size)
        ]
        tasks = [asyncio.ensure_future(processor(chunk)) for chunk in chunks]
        await asyncio.gather(*tasks, return_exceptions=True)


class QueryOptimizer:
    """Builds position queries and index statements."""

    @staticmethod
    def build_position_query(symbols: Sequence[str], owners: Sequence[str]) -> str:
        symbol_marks = ",".join("?" for _ in symbols)
        owner_marks = ",".join("?" for _ in owners)
        return (
            f"SELECT * FROM positions WHERE symbol IN ({symbol_marks}) "
            f"AND owner IN ({owner_marks}) ORDER BY symbol, owner"
        )

    @staticmethod
    def build_index_hints() -> list[str]:
        return list(_INDEX_HINTS)