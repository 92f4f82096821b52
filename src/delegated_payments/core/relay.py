"""
Request/response relay between a front end and the payment dispatcher.

Front ends post ``{"action": ..., "data": ...}`` messages. Payment requests
are processed one at a time so two attempts never read the same sender nonce,
and each pending request is answered through a table keyed by request id.
"""

from __future__ import annotations

import asyncio
import itertools
import logging
from typing import Any, Dict, Optional

from .dispatcher import PaymentDispatcher, PaymentRequest, PaymentResult
from .errors import NetworkError

__all__ = ["DEFAULT_REQUEST_TIMEOUT", "PaymentRelay", "SEND_TRANSACTION"]

SEND_TRANSACTION = "sendTransaction"
DEFAULT_REQUEST_TIMEOUT = 30.0


class PaymentRelay:
    def __init__(self, dispatcher: PaymentDispatcher) -> None:
        self.dispatcher = dispatcher
        self._lock = asyncio.Lock()
        self._pending: Dict[str, asyncio.Future] = {}
        self._ids = itertools.count(1)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def handle_message(self, message: Dict[str, Any]) -> Dict[str, Any]:
        action = message.get("action")
        if action != SEND_TRANSACTION:
            return {"success": False, "error": f"Unsupported action: {action}"}

        source = message.get("source", "popup")
        logging.info("Transaction request from %s", source)
        request = PaymentRequest.from_message(message.get("data") or {})
        async with self._lock:
            try:
                result = await self.dispatcher.submit_safely(request)
            except Exception as exc:  # noqa: BLE001
                logging.exception("Unexpected error handling request from %s", source)
                result = PaymentResult.from_error(exc)
        logging.info(
            "Transaction %s from %s", "successful" if result.success else "failed", source
        )
        return result.as_message()

    async def request(
        self,
        data: Dict[str, Any],
        *,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
        source: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Submit ``data`` as a ``sendTransaction`` message and wait for its
        response. A request that outlives ``timeout`` resolves to an error
        response and its work is cancelled.
        """
        request_id = f"payment-{next(self._ids)}"
        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        self._pending[request_id] = future

        message: Dict[str, Any] = {"action": SEND_TRANSACTION, "data": data}
        if source is not None:
            message["source"] = source
        task = asyncio.ensure_future(self._process(request_id, message))
        try:
            return await asyncio.wait_for(asyncio.shield(future), timeout)
        except asyncio.TimeoutError:
            task.cancel()
            error = NetworkError(f"Payment request {request_id} timed out after {timeout}s")
            logging.error("%s", error)
            return PaymentResult.from_error(error).as_message()
        finally:
            self._pending.pop(request_id, None)

    async def _process(self, request_id: str, message: Dict[str, Any]) -> None:
        future = self._pending.get(request_id)
        try:
            response = await self.handle_message(message)
        except Exception as exc:  # noqa: BLE001
            if future is not None and not future.done():
                future.set_exception(exc)
            return
        if future is not None and not future.done():
            future.set_result(response)
