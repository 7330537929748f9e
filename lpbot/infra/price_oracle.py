"""
USD price oracle for fee reporting.

Values the pool's Y token:
- SOL via the reference SOL/USDC pool price (5 significant digits)
- USDC and USDT at 1
- anything else from Jupiter, then CoinGecko
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from lpbot.core.errors import OracleError
from lpbot.infra.logging_cfg import log_event
from lpbot.infra.meteora_api import MeteoraApiClient

log = logging.getLogger("lpbot")

SOL_MINT = "So11111111111111111111111111111111111111112"
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERmJfrF4H2FYD4KCoNkY11McCe8BenwNYB"
SOL_USDC_POOL = "BVRbyLjjfSBcoyiYFuxbgKYnWuiFaF9CSXEa5vdSZ9Hh"

STABLE_MINTS = frozenset({USDC_MINT, USDT_MINT})


def round_significant(value: float, digits: int = 5) -> float:
    return float(f"{value:.{digits}g}")


class HttpPriceOracle:
    def __init__(
        self,
        api: MeteoraApiClient,
        jupiter_price_url: str = "https://lite-api.jup.ag/price/v2",
        coingecko_url: str = "https://api.coingecko.com/api/v3",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._api = api
        self._jupiter_url = jupiter_price_url.rstrip("/")
        self._coingecko_url = coingecko_url.rstrip("/")
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(timeout=timeout)
            self._owns_client = True

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def price_of(self, pool: str) -> float:
        info = await self._api.pair_mints(pool)
        return await self.token_price(info.mint_y)

    async def token_price(self, mint: str) -> float:
        if mint == SOL_MINT:
            return await self.sol_price()
        if mint in STABLE_MINTS:
            return 1.0

        price = await self._jupiter_price(mint)
        if price is None:
            price = await self._coingecko_price(mint)
        if price is None:
            raise OracleError(f"no price data for token {mint}")
        return price

    async def sol_price(self) -> float:
        info = await self._api.pair_info(SOL_USDC_POOL)
        return round_significant(info.current_price, 5)

    async def _jupiter_price(self, mint: str) -> Optional[float]:
        data = await self._get_json(self._jupiter_url, params={"ids": mint})
        entry = (data or {}).get("data", {}) or {}
        entry = entry.get(mint)
        if not entry or entry.get("price") is None:
            return None
        return float(entry["price"])

    async def _coingecko_price(self, mint: str) -> Optional[float]:
        data = await self._get_json(
            f"{self._coingecko_url}/simple/token_price/solana",
            params={"contract_addresses": mint, "vs_currencies": "usd"},
        )
        if not data:
            return None
        # CoinGecko may lowercase the address key
        entry = data.get(mint) or data.get(mint.lower())
        if not entry or entry.get("usd") is None:
            return None
        return float(entry["usd"])

    async def _get_json(self, url: str, params: dict) -> Optional[Any]:
        """GET returning parsed JSON, or None when the source has nothing usable."""
        try:
            resp = await self.client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            log_event(log, "price_source_failed", level=logging.WARNING, url=url, error=str(exc))
            return None
        return data if isinstance(data, dict) else None

