"""
Wallet balances over Solana JSON-RPC.

Native SOL is read with getBalance (lamports); SPL tokens with
getTokenAccountsByOwner (jsonParsed, first matching account). A wallet with
no token account for a mint holds 0. RPC failures raise CollaboratorError so
a broken read is never mistaken for an empty wallet.
"""

from __future__ import annotations

import itertools
from typing import Any, Optional

import httpx

from lpbot.core.errors import CollaboratorError
from lpbot.core.types import WalletBalances
from lpbot.infra.meteora_api import MeteoraApiClient
from lpbot.infra.price_oracle import SOL_MINT


class SolanaWalletBalances:
    def __init__(
        self,
        rpc_url: str,
        api: MeteoraApiClient,
        timeout: float = 10.0,
        commitment: str = "confirmed",
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.rpc_url = rpc_url
        self._api = api
        self._commitment = commitment
        self._ids = itertools.count(1)
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(timeout=timeout)
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def balance_of(self, owner: str, token: str) -> int:
        if token == SOL_MINT:
            result = await self._rpc("getBalance", [owner, {"commitment": self._commitment}])
            return int(result["value"])

        result = await self._rpc(
            "getTokenAccountsByOwner",
            [owner, {"mint": token}, {"encoding": "jsonParsed", "commitment": self._commitment}],
        )
        accounts = result.get("value") or []
        if not accounts:
            return 0
        try:
            amount = accounts[0]["account"]["data"]["parsed"]["info"]["tokenAmount"]["amount"]
        except (KeyError, TypeError) as exc:
            raise CollaboratorError(f"unexpected token account layout for {token}: {exc}") from exc
        return int(amount)

    async def pair_balances(self, owner: str, pool: str) -> WalletBalances:
        info = await self._api.pair_mints(pool)
        balance_x = await self.balance_of(owner, info.mint_x)
        balance_y = await self.balance_of(owner, info.mint_y)
        return WalletBalances(balance_x=balance_x, balance_y=balance_y)

    async def _rpc(self, method: str, params: list) -> Any:
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            resp = await self.client.post(self.rpc_url, json=payload)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CollaboratorError(f"{method} failed: {exc}") from exc
        if "error" in data:
            raise CollaboratorError(f"{method} failed: {data['error']}")
        return data["result"]
