#!/usr/bin/env python3
"""
Whale striker CLI.

Subscribes to swap logs on the configured pool and fires liquidity-guarded
flash-loan strikes when the dry-run shows net profit.

Usage:
    python3 run_striker.py
    python3 run_striker.py --config configs/whale_striker.yaml
    python3 run_striker.py --config configs/whale_striker.yaml --dry-run
    python3 run_striker.py --quiet
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace

from eth_account import Account

import logging_config
from whale_striker.chain_client import Web3ChainClient
from whale_striker.config import ConfigError, load_config, load_secrets
from whale_striker.monitor import StrikeMonitor

logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Liquidity-guarded whale striker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Environment:
  WSS_URL               WebSocket RPC endpoint (name set by wss_url_env)
  TREASURY_PRIVATE_KEY  Signing key (name set by private_key_env)
        """,
    )

    parser.add_argument(
        "--config",
        default="configs/whale_striker.yaml",
        help="Path to config YAML file (default: configs/whale_striker.yaml)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Simulate and gate strikes but never submit (overrides config)",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Verbose logging",
    )

    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Only log warnings and errors",
    )

    return parser.parse_args(argv)


def main(argv=None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    args = parse_args(argv)

    if args.debug:
        logging_config.setup_debug()
    elif args.quiet:
        logging_config.setup_minimal()
    else:
        logging_config.setup()

    # Fail fast on config and secrets before touching the network
    try:
        config = load_config(args.config)
        if args.dry_run:
            config = replace(config, dry_run=True)
        wss_url, private_key = load_secrets(config)
    except ConfigError as e:
        print(f"❌ Config error: {e}", file=sys.stderr)
        return 1

    try:
        signer = Account.from_key(private_key)
    except Exception as e:
        print(f"❌ Invalid treasury key: {type(e).__name__}", file=sys.stderr)
        return 1

    logger.info(f"🔱 Whale striker starting for {signer.address}: liquidity guard enabled")
    if config.dry_run:
        logger.info("DRY RUN: strikes will be simulated but not submitted")

    monitor = StrikeMonitor(
        config,
        client_factory=lambda: Web3ChainClient(wss_url, private_key, config.chain_id),
    )

    try:
        asyncio.run(monitor.run_forever())
    except KeyboardInterrupt:
        print("\n\n⏸ Stopped by user")
        return 0
    except ConfigError as e:
        print(f"❌ Config error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
