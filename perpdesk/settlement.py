"""Relaying position settlements to the chain."""

from __future__ import annotations

import uuid

from perpdesk.models import ModifyAction, SettlementRelayer


def _short_id() -> str:
    return str(uuid.uuid4())[:8]


class DefaultSettlementRelayer(SettlementRelayer):
    """Settlement relayer bound to one RPC endpoint."""

    def __init__(self, rpc_url: str) -> None:
        self.rpc_url = rpc_url

    async def close_position(
        self, owner: str, symbol: str, exit_price: int, funding_payment: int
    ) -> str:
        return f"close_{symbol}_{_short_id()}"

    async def modify_position(self, owner: str, symbol: str, action: ModifyAction) -> str:
        return f"modify_{symbol}_{_short_id()}"

    async def liquidate_position(
        self, owner: str, symbol: str, close_base: int, mark_price: int
    ) -> str:
        return f"liquidate_{symbol}_{_short_id()}"