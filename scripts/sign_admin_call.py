#!/usr/bin/env python3
"""Sign an administrative call for the admin API.

Prints the JSON request body (nonce, expiry, signature and the operation
arguments) to POST to the matching /admin endpoint.

Usage:
    python scripts/sign_admin_call.py --key 0x... set_ratio --value 5000000000
    python scripts/sign_admin_call.py --key 0x... withdraw --asset 0xabc.. --value 100
    python scripts/sign_admin_call.py --key 0x... set_withdraw_deadline --value 1800000000
    python scripts/sign_admin_call.py --key 0x... transfer_administration --account 0xabc..

The administrator nonce is read from the database when not given.
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from dotenv import load_dotenv

from burnswap.config import get_settings
from burnswap.engine.authorization import ADMIN_OPERATIONS, AdminCall, sign_admin_call
from burnswap.ledger.database import close_db, get_db
from burnswap.ledger.repository import LedgerRepository

load_dotenv()

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)

# Request body field carrying AdminCall.value for each operation
VALUE_FIELDS = {
    "withdraw": "amount",
    "set_ratio": "ratio",
    "set_withdraw_deadline": "deadline",
}


async def read_admin_nonce() -> int:
    async with get_db() as session:
        config = await LedgerRepository(session).require_config()
        nonce = config.admin_nonce
    await close_db()
    return nonce


def main(private_key: str, call: AdminCall) -> None:
    settings = get_settings()
    signature = sign_admin_call(private_key, call, settings.chain_id, settings.engine_address)

    body = {"nonce": call.nonce, "expiry": call.expiry, "signature": "0x" + signature.hex()}
    if call.operation == "withdraw":
        body["asset"] = call.asset
    if call.operation == "transfer_administration":
        body["new_administrator"] = call.account
    else:
        body[VALUE_FIELDS[call.operation]] = call.value
    print(json.dumps(body, indent=2))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Sign an administrative call")
    parser.add_argument("operation", choices=ADMIN_OPERATIONS)
    parser.add_argument("--key", required=True, help="Private key of the administrator")
    parser.add_argument("--asset", default=None, help="Asset to withdraw")
    parser.add_argument("--value", type=int, default=0, help="Amount, ratio or deadline")
    parser.add_argument("--account", default=None, help="New administrator")
    parser.add_argument(
        "--expiry",
        type=int,
        default=None,
        help="Signature expiry (unix seconds, default: ten minutes from now)",
    )
    parser.add_argument("--nonce", type=int, default=None, help="Administrator nonce override")
    args = parser.parse_args()

    if args.operation == "withdraw" and not args.asset:
        parser.error("withdraw requires --asset")
    if args.operation == "transfer_administration" and not args.account:
        parser.error("transfer_administration requires --account")

    nonce = args.nonce
    if nonce is None:
        nonce = asyncio.run(read_admin_nonce())
        logger.info(f"Using administrator nonce {nonce}")

    fields = {}
    if args.asset:
        fields["asset"] = args.asset
    if args.account:
        fields["account"] = args.account

    expiry = args.expiry if args.expiry is not None else int(time.time()) + 600
    main(args.key, AdminCall(args.operation, nonce, expiry, value=args.value, **fields))
