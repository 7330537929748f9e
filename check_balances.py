"""Show wallet balances and the SOL price for every configured pair."""
import asyncio
import os

import httpx
from dotenv import load_dotenv

from lpbot.config.pair_config import load_pair_configs
from lpbot.infra.keypair import load_keypair
from lpbot.infra.meteora_api import MeteoraApiClient
from lpbot.infra.price_oracle import HttpPriceOracle
from lpbot.infra.wallet_balances import SolanaWalletBalances

load_dotenv()


async def main():
    keypair = load_keypair(os.getenv("LP_PRIVATE_KEY"), os.getenv("LP_KEYPAIR_FILE"))
    owner = str(keypair.pubkey())
    rpc = os.getenv("LP_RPC_URL", "https://api.mainnet-beta.solana.com")

    api = MeteoraApiClient(os.getenv("LP_METEORA_API_URL", "https://dlmm-api.meteora.ag"))
    async with httpx.AsyncClient(timeout=10) as http:
        wallet = SolanaWalletBalances(rpc, api, client=http)
        oracle = HttpPriceOracle(api, client=http)

        print(f"Wallet: {owner}")
        print(f"SOL price: {await oracle.sol_price()}")

        configs, rejected = load_pair_configs(os.getenv("LP_PAIRS_CONFIG", "configs/pairs.yaml"))
        for exc in rejected:
            print(f"  {exc.pair}: invalid config ({'; '.join(exc.problems)})")
        for cfg in configs:
            info = await api.pair_info(cfg.pool_address)
            balances = await wallet.pair_balances(owner, cfg.pool_address)
            print(f"  {cfg.name} ({info.name}) price={info.current_price}")
            print(f"    X {info.mint_x}: {balances.balance_x} raw (reserve {cfg.min_reserve_x})")
            print(f"    Y {info.mint_y}: {balances.balance_y} raw (reserve {cfg.min_reserve_y})")

    await api.close()


if __name__ == "__main__":
    asyncio.run(main())
