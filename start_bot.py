#!/usr/bin/env python3
"""
Safe LP Bot Startup Script

This script helps you safely start the bot by:
1. Checking that credentials are configured
2. Validating every pair in the pairs file
3. Preparing the logs directory
4. Starting the bot with proper error handling
"""

import os
import sys
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def check_credentials():
    """Verify a private key or keypair file is configured."""
    if os.getenv("LP_PRIVATE_KEY"):
        print("✅ LP_PRIVATE_KEY set")
        return True
    keypair_file = os.getenv("LP_KEYPAIR_FILE")
    if keypair_file and Path(keypair_file).exists():
        print(f"✅ Keypair file present: {keypair_file}")
        return True
    print("❌ ERROR: Missing credentials")
    print("  Set LP_PRIVATE_KEY (JSON array of 64 numbers) or LP_KEYPAIR_FILE (base64 secret key)")
    return False


def check_pool_service():
    """Verify the chain adapter plugin is named."""
    target = os.getenv("LP_POOL_SERVICE", "")
    if ":" not in target:
        print("❌ ERROR: LP_POOL_SERVICE must be set to 'module:factory'")
        return False
    print(f"✅ Pool service adapter: {target}")
    return True


def check_pairs():
    """Validate the pairs file the same way the scheduler does at registration."""
    from lpbot.config.config_validator import PairConfigValidator
    from lpbot.config.pair_config import load_pair_configs

    path = os.getenv("LP_PAIRS_CONFIG", "configs/pairs.yaml")
    if not Path(path).exists():
        print(f"❌ ERROR: {path} not found")
        return False

    configs, rejected = load_pair_configs(path)
    for exc in rejected:
        print(f"❌ {exc.pair}: {'; '.join(exc.problems)}")

    validator = PairConfigValidator()
    valid = 0
    for cfg in configs:
        result = validator.validate(cfg)
        for issue in result.get_errors():
            print(f"❌ {cfg.name}: {issue.message}")
        for issue in result.get_warnings():
            print(f"⚠️  {cfg.name}: {issue.message}")
        if result.valid:
            valid += 1
            print(
                f"✅ {cfg.name}: range {cfg.total_range_interval} bins, "
                f"cap {cfg.max_position_size_in_y} Y, {cfg.strategy_type.value}"
            )

    if valid == 0:
        print("❌ ERROR: No valid pairs configured")
        return False
    return True


def check_logs_directory():
    """Ensure the log file's directory exists."""
    log_file = os.getenv("LP_LOG_FILE", "lpbot.log")
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    print("✅ Logs directory ready")
    return True


def get_cluster_mode():
    """Report which cluster the RPC endpoint points at."""
    rpc = os.getenv("LP_RPC_URL", "https://api.mainnet-beta.solana.com")
    devnet = "devnet" in rpc.lower() or "testnet" in rpc.lower()
    mode = "DEVNET" if devnet else "MAINNET"
    color = "🟡" if devnet else "🔴"

    print(f"\n{color} Running on: {mode}")
    print(f"   RPC: {rpc}")
    if not devnet:
        print("   ⚠️  MAINNET (real funds are deposited into pools!)")
    return devnet


def confirm_startup(auto_confirm: bool = False):
    """Get user confirmation before starting."""
    print("\n" + "=" * 60)
    print("PRE-FLIGHT CHECKS")
    print("=" * 60)

    checks = [
        ("Credentials", check_credentials),
        ("Pool service", check_pool_service),
        ("Pairs file", check_pairs),
        ("Logs directory", check_logs_directory),
    ]

    all_passed = True
    for name, check_func in checks:
        if not check_func():
            all_passed = False

    if not all_passed:
        print("\n❌ Pre-flight checks FAILED")
        print("Fix errors above and try again")
        return False

    print("\n✅ All pre-flight checks passed!")
    devnet = get_cluster_mode()

    if auto_confirm:
        print("\n✅ Auto-confirm enabled (--no-confirm)")
        return True

    print("\n" + "=" * 60)
    print("STARTUP CONFIRMATION")
    print("=" * 60)
    print("\nBefore starting, confirm:")
    print("  □ Reserves leave enough SOL for transaction fees")
    print("  □ max_position_size_in_y is what you intend to commit per pair")
    if not devnet:
        print("  □ You understand real funds are at risk")

    response = input("\nType 'START' to continue: ").strip().upper()
    if response != "START":
        print("❌ Startup cancelled")
        return False

    print("\n✅ Starting bot...")
    return True


def main():
    """Run pre-flight checks and start bot."""
    import argparse

    parser = argparse.ArgumentParser(description="DLMM Liquidity Bot")
    parser.add_argument("--no-confirm", action="store_true",
                        help="Skip startup confirmation (for systemd/automated use)")
    args = parser.parse_args()

    if not confirm_startup(auto_confirm=args.no_confirm):
        sys.exit(1)

    from lpbot.main import run
    run()


if __name__ == "__main__":
    main()
