"""
Public, high-level helpers for sending delegated batch payments.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Mapping, Optional, Union

from .core.config import SenderConfig, SenderParameters, load_sender_config
from .core.dispatcher import (
    PaymentDispatcher,
    PaymentRequest,
    PaymentResult,
    RpcFactory,
)
from .core.errors import ConfigError, PaymentError
from .core.networks import Network, NetworkRegistry

__all__ = [
    "ConfigError",
    "PaymentError",
    "PaymentRequest",
    "PaymentResult",
    "SenderConfig",
    "create_dispatcher",
    "load_sender_config",
    "send_payment",
    "submit_payment",
]


def create_dispatcher(
    *,
    config: Optional[SenderConfig] = None,
    registry: Optional[NetworkRegistry] = None,
    rpc_factory: Optional[RpcFactory] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[SenderParameters] = None,
) -> PaymentDispatcher:
    """
    Construct a :class:`PaymentDispatcher`.

    Callers can either supply a ready-made :class:`SenderConfig` or let the
    helper assemble one from environment data.
    """
    if config is not None:
        if any(item for item in (overrides, base, parameters)):
            raise ValueError(
                "Provide either a pre-built SenderConfig or environment parameters, not both."
            )
        cfg = config
    else:
        cfg = load_sender_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
        )
    return cfg.create_dispatcher(registry=registry, rpc_factory=rpc_factory)


async def submit_payment(
    request: PaymentRequest,
    *,
    dispatcher: Optional[PaymentDispatcher] = None,
    config: Optional[SenderConfig] = None,
    env_file: Optional[str] = ".env",
) -> PaymentResult:
    """
    Validate, encode and submit ``request``.

    Typed :class:`PaymentError` subclasses propagate to the caller; use
    :meth:`PaymentDispatcher.submit_safely` to receive them as failed results.
    """
    if dispatcher is None:
        dispatcher = create_dispatcher(config=config, env_file=env_file)
    return await dispatcher.submit(request)


def send_payment(
    amount: Union[str, int, Decimal],
    recipient: str,
    payment_id: str,
    *,
    network: Union[str, Network] = Network.ETHEREUM,
    dry_run: bool = False,
    dispatcher: Optional[PaymentDispatcher] = None,
    config: Optional[SenderConfig] = None,
    env_file: Optional[str] = ".env",
) -> PaymentResult:
    """
    Blocking convenience wrapper around :func:`submit_payment`.
    """
    request = PaymentRequest(
        amount=amount,
        recipient=recipient,
        payment_id=payment_id,
        network=network,
        dry_run=dry_run,
    )
    return asyncio.run(
        submit_payment(request, dispatcher=dispatcher, config=config, env_file=env_file)
    )
