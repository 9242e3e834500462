#!/usr/bin/env python3
"""Initialize the exchange database.

Creates tables, registers the source and target tokens, creates the exchange
configuration from settings, and optionally mints tokens to addresses.

Usage:
    python scripts/init_exchange.py [--mint source 0xabc.. 1000] [--fund-reserve 0xabc.. 500]

Options:
    --mint          ASSET ADDRESS AMOUNT (asset is "source" or "target"), repeatable
    --fund-reserve  ADDRESS AMOUNT, approve the engine for AMOUNT target tokens of
                    ADDRESS on the ledger, then pull them into the reserve
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv

from burnswap.assets.ledger_token import LedgerAssetGateway
from burnswap.config import get_settings
from burnswap.engine.bootstrap import bootstrap_from_settings, build_engine
from burnswap.ledger.database import close_db, get_db, get_session_factory, init_db

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def main(mints: list[tuple[str, str, int]], fund_reserve: tuple[str, int] | None) -> None:
    settings = get_settings()
    await init_db()

    async with get_db() as session:
        config = await bootstrap_from_settings(session)
        logger.info(
            f"Exchange {config.engine_address}: {config.source_asset} -> {config.target_asset}, "
            f"ratio {config.ratio}, deadline {config.withdraw_deadline}, "
            f"administrator {config.administrator}"
        )

        assets = {
            "source": settings.source_asset_address,
            "target": settings.target_asset_address,
        }
        for which, address, amount in mints:
            gateway = LedgerAssetGateway(session, assets[which])
            await gateway.mint(address, amount)
            logger.info(f"Minted {amount} {which} tokens to {address}")

        if fund_reserve:
            funder, amount = fund_reserve
            target = LedgerAssetGateway(session, settings.target_asset_address)
            await target.approve(funder, config.engine_address, amount)

    if fund_reserve:
        funder, amount = fund_reserve
        services = build_engine(get_session_factory())
        reserve = await services.exchange.fund_reserve(funder, amount)
        logger.info(f"Reserve now holds {reserve}")

    await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Initialize the burnswap exchange")
    parser.add_argument(
        "--mint",
        nargs=3,
        action="append",
        default=[],
        metavar=("ASSET", "ADDRESS", "AMOUNT"),
        help="Mint tokens (ASSET is source or target)",
    )
    parser.add_argument(
        "--fund-reserve",
        nargs=2,
        metavar=("ADDRESS", "AMOUNT"),
        help="Approve and pull target tokens from ADDRESS into the reserve",
    )
    args = parser.parse_args()

    mints = []
    for which, address, amount in args.mint:
        if which not in ("source", "target"):
            parser.error(f"--mint asset must be 'source' or 'target', got {which}")
        mints.append((which, address, int(amount)))

    fund = (args.fund_reserve[0], int(args.fund_reserve[1])) if args.fund_reserve else None
    asyncio.run(main(mints, fund))
