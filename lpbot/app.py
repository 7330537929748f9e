"""
Bootstrap wiring: credentials, collaborators, pair registration.
"""

from __future__ import annotations

import importlib
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

import httpx

from lpbot.config.config import Settings
from lpbot.config.pair_config import load_pair_configs
from lpbot.core.errors import BootstrapError, InvalidPairConfig
from lpbot.infra.async_pool import ResilientPoolService
from lpbot.infra.collaborators import PoolService
from lpbot.infra.keypair import load_keypair_from_settings
from lpbot.infra.meteora_api import MeteoraApiClient
from lpbot.infra.price_oracle import HttpPriceOracle
from lpbot.infra.submission import SubmissionCoordinator
from lpbot.infra.wallet_balances import SolanaWalletBalances
from lpbot.monitoring.metrics import LPMetrics
from lpbot.orchestrator.scheduler import Scheduler

log = logging.getLogger("lpbot")


def load_pool_service_factory(target: Optional[str]) -> Callable[..., Any]:
    """Resolve "package.module:factory" to the factory callable."""
    if not target:
        raise BootstrapError("LP_POOL_SERVICE is not set (expected 'module:factory')")
    module_name, _, attr = target.partition(":")
    if not module_name or not attr:
        raise BootstrapError(f"LP_POOL_SERVICE={target!r} must look like 'module:factory'")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise BootstrapError(f"cannot import pool service module {module_name}: {exc}") from exc
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise BootstrapError(f"{target} is not a callable factory")
    return factory


def build_pool_service(settings: Settings, keypair: Any) -> PoolService:
    factory = load_pool_service_factory(settings.pool_service)
    service = factory(settings, keypair)
    if not isinstance(service, PoolService):
        raise BootstrapError(f"{settings.pool_service} did not return a PoolService")
    return service


def register_pairs(scheduler: Scheduler, pairs_path: str) -> List[InvalidPairConfig]:
    """
    Register every valid pair from the pairs file.

    Rejections are logged and returned; they never stop the other pairs.
    """
    configs, rejected = load_pair_configs(pairs_path)
    # add_pair counts its own rejections
    scheduler.metrics.pairs_rejected.inc(len(rejected))
    for cfg in configs:
        try:
            scheduler.add_pair(cfg)
        except InvalidPairConfig as exc:
            rejected.append(exc)
    for exc in rejected:
        log.error(json.dumps({"event": "pair_rejected", "pair": exc.pair, "problems": exc.problems}))
    if not scheduler.pairs:
        raise BootstrapError(f"no valid pairs configured in {pairs_path}")
    return rejected


@dataclass
class Runtime:
    """Everything main() needs to run and later tear down."""
    scheduler: Scheduler
    owner: str
    closers: List[Callable[[], Any]] = field(default_factory=list)

    async def aclose(self) -> None:
        for close in reversed(self.closers):
            try:
                await close()
            except Exception as exc:
                log.warning(json.dumps({"event": "close_failed", "err": str(exc)}))


async def bootstrap(settings: Settings, pool_service: Optional[PoolService] = None) -> Runtime:
    """
    Build the scheduler with all collaborators.

    Raises:
        BootstrapError: credentials, pool adapter or pair file unusable.
    """
    keypair = load_keypair_from_settings(settings)
    owner = str(keypair.pubkey())

    inner = pool_service or build_pool_service(settings, keypair)
    resilient = ResilientPoolService(
        inner,
        wallet=owner,
        timeout=settings.call_timeout_sec,
        submit_retries=settings.submit_retries,
        coordinator=SubmissionCoordinator(),
    )

    http = httpx.AsyncClient(timeout=settings.http_timeout)
    api = MeteoraApiClient(settings.meteora_api_url, client=httpx.AsyncClient(
        base_url=settings.meteora_api_url.rstrip("/"), timeout=settings.http_timeout,
    ))
    oracle = HttpPriceOracle(
        api,
        jupiter_price_url=settings.jupiter_price_url,
        coingecko_url=settings.coingecko_url,
        client=http,
    )
    wallet = SolanaWalletBalances(settings.rpc_url, api, client=http)

    scheduler = Scheduler(
        pool_service=resilient,
        wallet_service=wallet,
        price_oracle=oracle,
        owner=owner,
        interval_sec=settings.check_interval_sec,
        call_timeout_sec=settings.call_timeout_sec,
        metrics=LPMetrics(),
    )
    runtime = Runtime(scheduler=scheduler, owner=owner, closers=[http.aclose, api.client.aclose])
    try:
        register_pairs(scheduler, settings.pairs_config)
    except BootstrapError:
        await runtime.aclose()
        raise

    log.info(json.dumps({"event": "bootstrap_done", "owner": owner, "pairs": [p.name for p in scheduler.pairs]}))
    return runtime
