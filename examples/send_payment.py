"""
Minimal script that uses the public API to send a delegated payment.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from delegated_payments import (
    ConfigError,
    PaymentError,
    PaymentRequest,
    SenderParameters,
    create_dispatcher,
)
from delegated_payments.core import PaymentRelay


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send a delegated payment using the SDK API")
    parser.add_argument("amount", help="Amount of USDC, e.g. 10.5")
    parser.add_argument("recipient", help="Recipient address")
    parser.add_argument("payment_id", help="Payment identifier")
    parser.add_argument("--network", default="ethereum", help="Network key (default: ethereum)")
    parser.add_argument("--env-file", default=".env", help="Path to the .env file")
    parser.add_argument(
        "--eventor-address",
        help="Commit/reveal contract address (overrides EVENTOR_ADDRESS)",
    )
    parser.add_argument("--dry-run", action="store_true", help="Do not broadcast")
    parser.add_argument(
        "--relay",
        action="store_true",
        help="Go through the message relay and print the extension-style response",
    )
    return parser.parse_args()


async def _via_relay(dispatcher, args: argparse.Namespace) -> int:
    relay = PaymentRelay(dispatcher)
    response = await relay.request(
        {
            "network": args.network,
            "amount": args.amount,
            "recipient": args.recipient,
            "paymentId": args.payment_id,
            "isDryRun": args.dry_run,
        },
        source="example",
    )
    logging.info("Relay response: %s", response)
    return 0 if response.get("success") else 1


def main() -> int:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")

    try:
        dispatcher = create_dispatcher(
            env_file=args.env_file,
            parameters=SenderParameters(
                network=args.network,
                event_contract_address=args.eventor_address,
            ),
        )
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    if args.relay:
        return asyncio.run(_via_relay(dispatcher, args))

    request = PaymentRequest(
        amount=args.amount,
        recipient=args.recipient,
        payment_id=args.payment_id,
        network=args.network,
        dry_run=args.dry_run,
    )
    try:
        result = asyncio.run(dispatcher.submit(request))
    except PaymentError as exc:
        logging.error("Payment failed: %s", exc)
        return 1

    logging.info("Method: %s, transaction: %s", result.method, result.tx_hash)
    return 0


if __name__ == "__main__":
    sys.exit(main())
