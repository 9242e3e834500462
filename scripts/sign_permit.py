#!/usr/bin/env python3
"""Build a signed permit payload for an exchange call.

Signs an EIP-2612 permit granting the engine an allowance of AMOUNT source
tokens and prints the hex payload to pass as ``permit`` to the exchange API.

Usage:
    python scripts/sign_permit.py --key 0x... --amount 100 [--deadline 1700000000] [--nonce 0]

The nonce is read from the database when not given.
"""

import argparse
import asyncio
import logging
import sys
import time
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv
from eth_account import Account

from burnswap.assets.ledger_token import LedgerAssetGateway
from burnswap.config import get_settings
from burnswap.ledger.database import close_db, get_db
from burnswap.permit.client import build_permit_payload

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def read_nonce(owner: str) -> int:
    settings = get_settings()
    async with get_db() as session:
        gateway = LedgerAssetGateway(session, settings.source_asset_address)
        nonce = await gateway.nonces(owner)
    await close_db()
    return nonce


def main(private_key: str, amount: int, deadline: int, nonce: int | None) -> None:
    settings = get_settings()
    owner = Account.from_key(private_key).address

    if nonce is None:
        nonce = asyncio.run(read_nonce(owner))
        logger.info(f"Using nonce {nonce} for {owner}")

    payload = build_permit_payload(
        private_key,
        token_name=settings.source_asset_name,
        chain_id=settings.chain_id,
        token_address=settings.source_asset_address,
        spender=settings.engine_address,
        amount=amount,
        deadline=deadline,
        nonce=nonce,
    )
    print("0x" + payload.hex())


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sign a source-token permit for the engine")
    parser.add_argument("--key", required=True, help="Private key of the token owner")
    parser.add_argument("--amount", required=True, type=int, help="Source amount to exchange")
    parser.add_argument(
        "--deadline",
        type=int,
        default=None,
        help="Permit expiry (unix seconds, default: one hour from now)",
    )
    parser.add_argument("--nonce", type=int, default=None, help="Permit nonce override")
    args = parser.parse_args()

    deadline = args.deadline if args.deadline is not None else int(time.time()) + 3600
    main(args.key, args.amount, deadline, args.nonce)
