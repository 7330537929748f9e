"""
Tests for bootstrap: keypair loading, pool-service plugin, pair registration.
"""
import base64
import dataclasses
import json

import pytest
from solders.keypair import Keypair

from conftest import FakePoolService
from lpbot.app import bootstrap, build_pool_service, load_pool_service_factory, register_pairs
from lpbot.config.config import Settings
from lpbot.core.errors import BootstrapError
from lpbot.infra.keypair import load_keypair, keypair_from_array

PAIRS_YAML = (
    "SOL-USDC:\n"
    "  pool_address: BVRbyLjjfSBcoyiYFuxbgKYnWuiFaF9CSXEa5vdSZ9Hh\n"
    "  min_reserve_x: 2\n"
    "  min_reserve_y: 200\n"
    "  bin_step: 10\n"
    "  total_range_interval: 6\n"
    "  max_position_size_in_y: 10\n"
    "  strategy_type: BidAskImBalanced\n"
    "  balance_out_position: true\n"
    "TOO-NARROW:\n"
    "  pool_address: abc\n"
    "  min_reserve_x: 0\n"
    "  min_reserve_y: 0\n"
    "  bin_step: 10\n"
    "  total_range_interval: 1\n"
    "  max_position_size_in_y: 10\n"
    "  strategy_type: SpotBalanced\n"
)


def fake_factory(settings, keypair):
    return FakePoolService()


def not_a_pool_service(settings, keypair):
    return object()


@pytest.fixture
def keypair():
    return Keypair()


@pytest.fixture
def settings(tmp_path, keypair):
    pairs = tmp_path / "pairs.yaml"
    pairs.write_text(PAIRS_YAML)
    return dataclasses.replace(
        Settings.load(),
        private_key=json.dumps(list(bytes(keypair))),
        keypair_file=None,
        pairs_config=str(pairs),
        pool_service="test_app:fake_factory",
    )


class TestKeypair:

    def test_from_json_array(self, keypair):
        loaded = load_keypair(json.dumps(list(bytes(keypair))), None)
        assert loaded.pubkey() == keypair.pubkey()

    def test_from_base64_file(self, tmp_path, keypair):
        path = tmp_path / "id.b64"
        path.write_text(base64.b64encode(bytes(keypair)).decode())
        assert load_keypair(None, str(path)).pubkey() == keypair.pubkey()

    def test_invalid_array_falls_back_to_file(self, tmp_path, keypair):
        path = tmp_path / "id.b64"
        path.write_text(base64.b64encode(bytes(keypair)).decode())
        assert load_keypair("[1, 2, 3]", str(path)).pubkey() == keypair.pubkey()

    def test_no_credentials(self):
        with pytest.raises(BootstrapError):
            load_keypair(None, None)

    def test_wrong_length(self):
        with pytest.raises(BootstrapError):
            keypair_from_array([1] * 32)


class TestPoolServicePlugin:

    def test_resolves_factory(self):
        assert load_pool_service_factory("test_app:fake_factory") is fake_factory

    @pytest.mark.parametrize("target", [None, "", "no_colon", "missing_module_xyz:factory", "test_app:nothing"])
    def test_bad_targets(self, target):
        with pytest.raises(BootstrapError):
            load_pool_service_factory(target)

    def test_factory_must_return_pool_service(self, settings, keypair):
        with pytest.raises(BootstrapError):
            build_pool_service(dataclasses.replace(settings, pool_service="test_app:not_a_pool_service"), keypair)


class TestBootstrap:

    @pytest.mark.asyncio
    async def test_registers_valid_pairs_only(self, settings, keypair):
        runtime = await bootstrap(settings)
        try:
            assert runtime.owner == str(keypair.pubkey())
            assert [p.name for p in runtime.scheduler.pairs] == ["SOL-USDC"]
            registry = runtime.scheduler.metrics.get_registry()
            assert registry.get_sample_value("lp_pairs_rejected_total") == 1
        finally:
            await runtime.aclose()

    @pytest.mark.asyncio
    async def test_missing_credentials_is_fatal(self, settings):
        with pytest.raises(BootstrapError):
            await bootstrap(dataclasses.replace(settings, private_key=None))

    @pytest.mark.asyncio
    async def test_no_valid_pairs_is_fatal(self, settings, tmp_path):
        empty = tmp_path / "empty.yaml"
        empty.write_text("{}\n")
        with pytest.raises(BootstrapError):
            await bootstrap(dataclasses.replace(settings, pairs_config=str(empty)), pool_service=FakePoolService())

    @pytest.mark.asyncio
    async def test_register_pairs_returns_rejections(self, settings):
        runtime = await bootstrap(settings, pool_service=FakePoolService())
        try:
            rejected = register_pairs(runtime.scheduler, settings.pairs_config)
            # Already registered pairs are rejected as duplicates on a second pass
            assert {r.pair for r in rejected} == {"SOL-USDC", "TOO-NARROW"}
        finally:
            await runtime.aclose()
