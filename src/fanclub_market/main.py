"""
Main entrypoint for fanclub_market.

What it does:
- Loads runtime settings from `config/config.yaml` and environment variables
  using the network prefix convention (e.g., `SEPOLIA_RPC_URL`).
- Connects an account (configured `{NETWORK}_ACCOUNT`, or whatever the node /
  wallet exposes through `eth_requestAccounts`).
- Loads every fan club from the FanClubFactory contract and runs one command:
  `clubs`, `create`, `buy` or `sell`.

Where it is used:
- Invoked by `python -m fanclub_market.main <command>` or the `fanclub-market`
  console script.
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from .config.loader import Settings, load_settings
from .errors import FanClubMarketError
from .identity.provider import IdentityProvider, StaticIdentityProvider, Web3IdentityProvider
from .ledger.gateway import Web3LedgerGateway
from .market.sync import MarketSyncEngine
from .market.trade import TradeController, success_message
from .market.view import ShareMarketView
from .metrics.market import start_server_safe


def format_clubs(view: ShareMarketView, settings: Settings) -> str:
    if len(view) == 0:
        return "No fan clubs available yet."
    blocks = []
    for club in view:
        blocks.append("\n".join([
            f"[{club.index}] {club.name} ({club.fan_type.name})",
            f"  {club.description}",
            f"  Image: {club.image_url(settings.display.ipfs_gateway)}",
            f"  Total Shares: {club.total_shares}",
            f"  Share Price: {club.share_price} {settings.display.native_unit}",
            f"  Creator: {club.creator}",
        ]))
    return "\n".join(blocks)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="fanclub-market", description="Fan club share market client")
    parser.add_argument("--config", default="config/config.yaml")
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("clubs", help="list all fan clubs")
    create = sub.add_parser("create", help="create a fan club")
    create.add_argument("name")
    create.add_argument("description")
    create.add_argument("fan_type", help="CITY, PSG or ARS")
    create.add_argument("image", help="IPFS image hash")
    for name in ("buy", "sell"):
        p = sub.add_parser(name, help=f"{name} shares of a fan club")
        p.add_argument("index", type=int)
        p.add_argument("quantity")
    return parser


async def run(args: argparse.Namespace, settings: Settings) -> int:
    gateway = Web3LedgerGateway.from_settings(settings)
    identity: IdentityProvider
    if settings.account:
        identity = StaticIdentityProvider(settings.account)
    else:
        identity = Web3IdentityProvider(gateway.w3)
    engine = MarketSyncEngine(gateway, identity, concurrent_reads=settings.sync.concurrent_reads)
    controller = TradeController(engine)

    account = await controller.connect()
    logging.info(f"Connected: {account}")

    if args.command == "clubs":
        print(format_clubs(engine.view, settings))
        return 0
    if args.command == "create":
        receipt = await controller.create_club(args.name, args.description, args.fan_type, args.image)
    elif args.command == "buy":
        receipt = await controller.buy_shares(args.index, args.quantity)
    else:
        receipt = await controller.sell_shares(args.index, args.quantity)
    print(success_message(receipt))
    if not receipt.synced:
        logging.warning("Club list may be out of date; run `clubs` to reload")
    print(format_clubs(engine.view, settings))
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    args = build_parser().parse_args(argv)
    settings = load_settings(args.config)
    logging.info(f"Network: {settings.network}, contract: {settings.ledger.contract_address}")

    prom_port = os.getenv("PROMETHEUS_PORT")
    if prom_port:
        start_server_safe(int(prom_port))

    try:
        return asyncio.run(run(args, settings))
    except FanClubMarketError as e:
        logging.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
