#!/usr/bin/env python3
"""
gas_watcher.py — Watch the current gas price of an EVM chain.

What it does:
- Fetches eth_gasPrice from an RPC endpoint (see gas_price_client.py)
- Prints it in gwei (or wei with --wei) with a colored tier marker:
    🟢 low (< 10 gwei)   🟡 normal (< 30)   🟠 high (< 100)   🔴 very high
- Prints an alert line when the price exceeds --alert (gwei)
- With --watch N, repeats every N seconds after each poll completes;
  errors are reported on stderr and polling continues

Usage:
  python gas_watcher.py
  python gas_watcher.py --rpc https://eth.drpc.org --watch 15 --alert 40
  RPC_URL=https://arb1.arbitrum.io/rpc python gas_watcher.py --wei
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from typing import Callable, Optional

from gas_price_client import GasPriceClient, GasPriceError

__version__ = "0.1.0"

log = logging.getLogger(__name__)

DEFAULT_RPC = os.getenv("RPC_URL", "https://eth.drpc.org")
DEFAULT_INTERVAL = os.getenv("GAS_WATCHER_INTERVAL")
DEFAULT_ALERT = os.getenv("GAS_WATCHER_ALERT_GWEI")

WEI_PER_GWEI = 1_000_000_000

TIER_LOW = "low"
TIER_NORMAL = "normal"
TIER_HIGH = "high"
TIER_VERY_HIGH = "very_high"

TIER_INDICATORS = {
    TIER_LOW: "🟢",
    TIER_NORMAL: "🟡",
    TIER_HIGH: "🟠",
    TIER_VERY_HIGH: "🔴",
}


def wei_to_gwei(wei: int) -> float:
    return float(wei) / WEI_PER_GWEI


def format_price(wei: int, as_wei: bool = False) -> str:
    if as_wei:
        return f"{wei} wei"
    return f"{wei_to_gwei(wei):.2f} gwei"


def classify(gwei: float) -> str:
    """Map a gwei price to its tier; each band includes its lower bound."""
    if gwei < 10.0:
        return TIER_LOW
    if gwei < 30.0:
        return TIER_NORMAL
    if gwei < 100.0:
        return TIER_HIGH
    return TIER_VERY_HIGH


def check_alert(gwei: float, threshold: Optional[float]) -> Optional[str]:
    if threshold is None or not gwei > threshold:
        return None
    return (
        f"⚠️  ALERT: Gas price ({gwei:.2f} gwei) exceeds threshold "
        f"({threshold:.2f} gwei)!"
    )


def poll_once(
    client: GasPriceClient,
    as_wei: bool = False,
    alert: Optional[float] = None,
) -> bool:
    """Fetch and print one gas price. Returns False if the fetch failed."""
    try:
        wei = client.fetch_price()
    except GasPriceError as e:
        print(f"❌ Error fetching gas price: {e}", file=sys.stderr)
        return False

    gwei = wei_to_gwei(wei)
    tier = classify(gwei)
    log.debug("gas price %d wei (%s)", wei, tier)
    print(f"{TIER_INDICATORS[tier]} Gas Price: {format_price(wei, as_wei)}")

    alert_line = check_alert(gwei, alert)
    if alert_line:
        print(alert_line)
    return True


def watch(
    client: GasPriceClient,
    interval: Optional[int] = None,
    as_wei: bool = False,
    alert: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> None:
    """
    Poll once, or forever every `interval` seconds when one is given.

    The sleep starts after each poll completes and is not corrected for
    request time. Failed polls never stop the loop.
    """
    while True:
        poll_once(client, as_wei=as_wei, alert=alert)
        if interval is None:
            return
        log.debug("sleeping %ss", interval)
        sleep(interval)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        stream=sys.stderr,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid interval: {value!r}")
    if n < 0:
        raise argparse.ArgumentTypeError("interval must be >= 0 seconds")
    return n


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="gas-watcher",
        description="Monitor Ethereum / EVM gas prices via eth_gasPrice.",
    )
    p.add_argument("-r", "--rpc", default=DEFAULT_RPC, help="RPC endpoint URL (default from RPC_URL)")
    p.add_argument(
        "-w",
        "--watch",
        type=non_negative_int,
        default=DEFAULT_INTERVAL,
        metavar="SECONDS",
        help="Watch mode: poll every N seconds (default: check once)",
    )
    p.add_argument(
        "-a",
        "--alert",
        type=float,
        default=DEFAULT_ALERT,
        metavar="GWEI",
        help="Alert when the gas price exceeds this many gwei",
    )
    p.add_argument("--wei", action="store_true", help="Show prices in wei instead of gwei")
    p.add_argument("-v", "--verbose", action="store_true", help="Log debug output to stderr")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def main(argv: Optional[list] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    if not args.rpc.startswith(("http://", "https://")):
        print("❌ Invalid RPC URL format. It must start with 'http' or 'https'.", file=sys.stderr)
        return 1

    print(f"🔮 Gas Watcher v{__version__}")
    print(f"RPC: {args.rpc}\n")

    client = GasPriceClient(args.rpc)
    watch(client, interval=args.watch, as_wei=args.wei, alert=args.alert)
    return 0


def run() -> None:
    try:
        raise SystemExit(main())
    except KeyboardInterrupt:
        print("\nInterrupted by user.", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    run()
