"""
Command-line interface for sending a delegated USDC payment.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Iterable, Sequence, Tuple

from .api import create_dispatcher, load_sender_config
from .core.dispatcher import PaymentRequest
from .core.errors import ConfigError, PaymentError
from .core.networks import Network
from .core.values import checksum_address, format_amount, normalize_amount


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _env_override(value: str) -> Tuple[str, str]:
    if "=" not in value:
        raise argparse.ArgumentTypeError("Overrides must look like KEY=VALUE")
    key, val = value.split("=", 1)
    key = key.strip()
    if not key:
        raise argparse.ArgumentTypeError("Override key must not be empty")
    return key, val


def _collect_overrides(pairs: Iterable[Tuple[str, str]]) -> dict[str, str]:
    overrides: dict[str, str] = {}
    for key, value in pairs:
        overrides[key] = value
    return overrides


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="delegated-payments",
        description="Send USDC with a payment id through an EIP-7702 delegated batch",
    )
    parser.add_argument("amount", help="Amount of USDC to send (up to 6 decimals)")
    parser.add_argument("recipient", help="Recipient wallet address")
    parser.add_argument(
        "-p",
        "--payment-id",
        required=True,
        help="Payment identifier recorded by the commit/reveal contract (1-100 characters)",
    )
    parser.add_argument(
        "-n",
        "--network",
        default=None,
        choices=[network.value for network in Network],
        help="Network to use (default: NETWORK from the environment, else ethereum)",
    )
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Encode the batch and resolve the delegation path without sending",
    )
    parser.add_argument(
        "--wait",
        action="store_true",
        help="Wait for the transaction receipt before exiting",
    )
    parser.add_argument(
        "--env-file",
        default=".env",
        help="Path to the .env file containing PRIVATE_KEY and friends (default: .env)",
    )
    parser.add_argument(
        "--set",
        action="append",
        type=_env_override,
        metavar="KEY=VALUE",
        default=None,
        help="Override an environment variable without editing the .env file",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Python logging level (default: INFO)",
    )
    return parser


def run_cli(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)
    overrides = _collect_overrides(args.set or ())
    if args.network:
        overrides["NETWORK"] = args.network
    if args.wait:
        overrides["WAIT_FOR_RECEIPT"] = "true"

    try:
        units = normalize_amount(args.amount)
        recipient = checksum_address(args.recipient, "recipient")
    except PaymentError as exc:
        logging.error("%s", exc)
        return 1

    try:
        config = load_sender_config(env_file=args.env_file, overrides=overrides)
    except ConfigError as exc:
        logging.error("Invalid configuration: %s", exc)
        return 1

    logging.info("Amount: %s USDC", format_amount(units))
    logging.info("Recipient: %s", recipient)
    logging.info("Network: %s", config.network.value)
    if args.dry_run:
        logging.info("Dry run mode - no transaction will be sent")

    request = PaymentRequest(
        amount=args.amount,
        recipient=recipient,
        payment_id=args.payment_id,
        network=config.network,
        dry_run=args.dry_run,
    )

    try:
        dispatcher = create_dispatcher(config=config)
        result = asyncio.run(dispatcher.submit(request))
    except PaymentError as exc:
        logging.error("Payment failed: %s", exc)
        return 1

    if result.is_dry_run:
        logging.info(
            "Dry run succeeded; %s would be sent via %s from %s",
            "0x" + result.calldata.hex() if result.calldata else "",
            result.method,
            result.sender_address,
        )
        return 0

    logging.info(
        "Payment sent on %s via %s. Transaction hash: %s",
        result.network_name,
        result.method,
        result.tx_hash,
    )
    return 0


def main() -> None:
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
