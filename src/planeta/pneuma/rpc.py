"""
JSON-RPC client for the Plasma child chain.

Lightweight alternative to web3.py: uses httpx for HTTP and a small
envelope helper for the calls this package needs (raw submission,
spending-condition validation, transaction lookup, delegated signing).

Every public call wraps failures into a short, phase-specific error so
callers never see raw transport exceptions.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Optional, Protocol

import httpx

from ..config import DEFAULT_RPC_TIMEOUT, PlasmaSettings, get_rpc_url
from ..plasma.tx import MAX_OUTPUTS, Output

logger = logging.getLogger(__name__)


class PlasmaError(RuntimeError):
    pass


class RpcError(PlasmaError):
    """The node answered with a JSON-RPC ``error`` member."""

    def __init__(self, method: str, error: Any) -> None:
        self.method = method
        self.error = error
        super().__init__(f"RPC error from {method}: {error}")


class TransportError(PlasmaError):
    pass


class ValidationRejected(TransportError):
    """The operator refused a spending condition."""

    def __init__(self, reason: Any) -> None:
        self.reason = reason
        super().__init__(f"Spending condition rejected: {reason}")


class NotIncludedError(PlasmaError):
    """Confirmation polling ran out of attempts."""

    def __init__(self, message: str, tx_hash: str, attempts: int) -> None:
        self.tx_hash = tx_hash
        self.attempts = attempts
        super().__init__(message)


class Transport(Protocol):
    async def send(self, request: dict[str, Any]) -> dict[str, Any]:
        ...


class HttpTransport:
    """
    JSON-RPC over HTTP POST.

    Usage::

        async with HttpTransport("http://localhost:8645") as transport:
            client = PlasmaClient(transport)
            ...
    """

    def __init__(
        self,
        rpc_url: Optional[str] = None,
        timeout: float = DEFAULT_RPC_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.rpc_url = rpc_url or get_rpc_url()
        self.timeout = timeout
        self._client = client

    @classmethod
    def from_settings(cls, settings: PlasmaSettings) -> "HttpTransport":
        return cls(settings.rpc_url, timeout=settings.rpc_timeout)

    async def send(self, request: dict[str, Any]) -> dict[str, Any]:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        response = await self._client.post(self.rpc_url, json=request)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise ValueError(f"Malformed JSON-RPC response: {data!r}")
        return data

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "HttpTransport":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()


class PlasmaClient:
    """Submission, validation and lookup calls over a caller-supplied transport."""

    def __init__(self, transport: Transport) -> None:
        self.transport = transport
        self._ids = itertools.count(1)

    async def request(self, method: str, params: list) -> Any:
        """
        Make a JSON-RPC call.

        Args:
            method: RPC method name (e.g., "eth_sendRawTransaction")
            params: RPC parameters

        Returns:
            Result field from the RPC response

        Raises:
            RpcError: If the response carries an error member
            ValueError: If the response carries no result
        """
        payload = {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }
        logger.debug("rpc request %s id=%s", method, payload["id"])
        data = await self.transport.send(payload)

        if data.get("error") is not None:
            raise RpcError(method, data["error"])
        if "result" not in data:
            raise ValueError(f"JSON-RPC response to {method} has no result")

        return data["result"]

    async def submit_raw(self, raw_tx: str) -> Any:
        """
        Send a signed raw transaction.

        Args:
            raw_tx: 0x-prefixed hex encoded signed transaction

        Returns:
            Node result (usually the transaction hash)

        Raises:
            TransportError: On any failure; the remote effect may still
                have happened
        """
        try:
            result = await self.request("eth_sendRawTransaction", [raw_tx])
        except Exception as exc:
            logger.warning("eth_sendRawTransaction failed: %s", exc)
            raise TransportError("Submission failed.") from exc
        logger.info("submitted raw transaction, node result %s", result)
        return result

    async def validate_spend_condition(self, raw_tx: str) -> list[Output]:
        """
        Ask the operator to check a spending condition.

        Never retried: a failure means the condition was not accepted.

        Args:
            raw_tx: 0x-prefixed hex encoded pre-signed transaction

        Returns:
            Operator-computed outputs that must replace the current ones

        Raises:
            ValidationRejected: If the node refused the condition
            TransportError: On any other failure
        """
        try:
            result = await self.request("checkSpendingCondition", [raw_tx])
        except RpcError as exc:
            logger.warning("checkSpendingCondition rejected: %s", exc.error)
            raise ValidationRejected(exc.error) from exc
        except Exception as exc:
            logger.warning("checkSpendingCondition failed: %s", exc)
            raise TransportError("Spending condition validation failed.") from exc

        if isinstance(result, dict) and result.get("error"):
            logger.warning("checkSpendingCondition rejected: %s", result["error"])
            raise ValidationRejected(result["error"])

        try:
            outputs = [Output.from_dict(item) for item in result["outputs"]]
            if len(outputs) > MAX_OUTPUTS:
                raise ValueError(f"Operator returned {len(outputs)} outputs")
            for output in outputs:
                output.to_raw()
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            logger.warning("checkSpendingCondition returned unusable outputs: %s", exc)
            raise TransportError("Spending condition validation failed.") from exc
        return outputs

    async def get_transaction(self, tx_hash: str) -> Optional[dict[str, Any]]:
        """
        Look up a transaction by hash.

        Returns:
            Transaction dict, or None if the node does not know it yet

        Raises:
            TransportError: On any failure
        """
        try:
            result = await self.request("eth_getTransactionByHash", [tx_hash])
        except Exception as exc:
            raise TransportError("Confirmation query failed.") from exc
        if result is not None and not isinstance(result, dict):
            raise TransportError("Confirmation query failed.")
        return result

    async def sign(self, address: str, data: bytes) -> str:
        """Request an EIP-191 personal_sign signature from a delegated signer."""
        try:
            result = await self.request("personal_sign", ["0x" + data.hex(), address])
        except Exception as exc:
            raise TransportError("Signing request failed.") from exc
        if not isinstance(result, str):
            raise TransportError("Signing request failed.")
        return result
