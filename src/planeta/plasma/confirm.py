"""
Confirmation polling.

``retry_until`` is a bounded retry combinator: a fixed number of attempts
at a fixed interval, no backoff. ``await_inclusion`` uses it to wait for a
transaction to land in a child-chain block.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from ..config import PlasmaSettings
from ..pneuma.rpc import NotIncludedError, PlasmaClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetriesExhausted(Exception):
    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(f"No result after {attempts} attempts")


async def retry_until(
    check: Callable[[], Awaitable[Optional[T]]],
    attempts: int,
    interval: float,
) -> T:
    """
    Call ``check`` until it returns something other than None.

    Sleeps ``interval`` seconds between attempts, never after the last one.
    Exceptions raised by ``check`` propagate immediately.

    Raises:
        RetriesExhausted: If every attempt returned None
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(1, attempts + 1):
        result = await check()
        if result is not None:
            return result
        if attempt < attempts:
            await asyncio.sleep(interval)

    raise RetriesExhausted(attempts)


def polling_budget(
    max_attempts: Optional[int] = None,
    interval: Optional[float] = None,
    settings: Optional[PlasmaSettings] = None,
) -> tuple[int, float]:
    """Explicit values win, then ``settings``, then the module defaults."""
    if settings is None:
        settings = PlasmaSettings()
    if max_attempts is None:
        max_attempts = settings.poll_attempts
    if interval is None:
        interval = settings.poll_interval
    return max_attempts, interval


async def await_inclusion(
    client: PlasmaClient,
    tx_hash: str,
    max_attempts: Optional[int] = None,
    interval: Optional[float] = None,
    settings: Optional[PlasmaSettings] = None,
) -> dict[str, Any]:
    """
    Wait until a transaction is included in a block.

    Args:
        client: Plasma RPC client
        tx_hash: 0x-prefixed transaction hash
        max_attempts: Number of lookups before giving up
        interval: Seconds between lookups
        settings: Supplies whichever of the two above is not given

    Returns:
        The transaction as returned by the node, carrying ``blockHash``

    Raises:
        NotIncludedError: If no lookup found a block reference
        TransportError: If a lookup failed
    """

    max_attempts, interval = polling_budget(max_attempts, interval, settings)

    async def check() -> Optional[dict[str, Any]]:
        found = await client.get_transaction(tx_hash)
        if found and found.get("blockHash"):
            return found
        logger.debug("%s not included yet", tx_hash)
        return None

    try:
        receipt = await retry_until(check, max_attempts, interval)
    except RetriesExhausted as exc:
        raise NotIncludedError(
            f"Transaction {tx_hash} wasn't included into a block.",
            tx_hash=tx_hash,
            attempts=exc.attempts,
        ) from exc

    logger.info("%s included in block %s", tx_hash, receipt["blockHash"])
    return receipt
