"""
Minimal async HTTP client for the DLMM pool REST API.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from lpbot.core.errors import CollaboratorError


@dataclass(frozen=True)
class PairInfo:
    address: str
    name: str
    mint_x: str
    mint_y: str
    current_price: float


class MeteoraApiClient:
    def __init__(
        self,
        base_url: str = "https://dlmm-api.meteora.ag",
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        # A shared client passed in is not closed by close()
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout)
            self._owns_client = True
        # Mints never change for a pool address
        self._mint_cache: Dict[str, PairInfo] = {}

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def pair_info(self, address: str) -> PairInfo:
        data = await self._get(f"/pair/{address}")
        try:
            info = PairInfo(
                address=str(data.get("address") or address),
                name=str(data.get("name", "")),
                mint_x=str(data["mint_x"]),
                mint_y=str(data["mint_y"]),
                current_price=float(data["current_price"]),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise CollaboratorError(f"malformed pair info for {address}: {exc}") from exc
        self._mint_cache[address] = info
        return info

    async def pair_mints(self, address: str) -> PairInfo:
        """Pair info served from cache when only the mints are needed."""
        cached = self._mint_cache.get(address)
        if cached is not None:
            return cached
        return await self.pair_info(address)

    async def _get(self, path: str) -> Any:
        try:
            resp = await self.client.get(path)
            resp.raise_for_status()
            data = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise CollaboratorError(f"GET {path} failed: {exc}") from exc
        if not isinstance(data, dict):
            raise CollaboratorError(f"GET {path}: unexpected payload type {type(data).__name__}")
        return data
