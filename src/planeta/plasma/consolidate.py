"""
UTXO consolidation.

Merges several unspent outputs of one address and color into a single
output, submits the merge and waits (bounded) for it to land in a block.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Sequence

from ..config import PlasmaSettings
from ..pneuma.rpc import NotIncludedError, PlasmaClient, TransportError
from ..sigil.eth import Signer
from ..utils import same_address
from .confirm import await_inclusion
from .tx import Input, Output, Transaction, Utxo, build_transfer, sign_matching

logger = logging.getLogger(__name__)


def build_consolidation(utxos: Sequence[Utxo]) -> Transaction:
    """
    Build the unsigned merge transfer: one input per UTXO, one output
    holding the exact sum.

    Raises:
        ValueError: If ``utxos`` is empty or mixes addresses or colors
    """
    if not utxos:
        raise ValueError("Nothing to consolidate")

    address = utxos[0].output.address
    color = utxos[0].output.color
    for utxo in utxos[1:]:
        if not same_address(utxo.output.address, address) or utxo.output.color != color:
            raise ValueError("All UTXOs must share one address and color")

    inputs = [Input(outpoint=utxo.outpoint, address=address) for utxo in utxos]
    amount = sum(utxo.output.value for utxo in utxos)
    return build_transfer(inputs, [Output(value=amount, address=address, color=color)])


async def consolidate_utxos(
    utxos: Sequence[Utxo],
    client: PlasmaClient,
    signer: Signer,
    max_attempts: Optional[int] = None,
    interval: Optional[float] = None,
    settings: Optional[PlasmaSettings] = None,
) -> dict[str, Any]:
    """
    Build, sign, submit and confirm a consolidation.

    Args:
        utxos: UTXOs to merge, all owned by the signer
        client: Plasma RPC client
        signer: Credential of the UTXO owner
        max_attempts: Confirmation lookups before giving up
        interval: Seconds between lookups
        settings: Polling budget used where the two above are omitted

    Returns:
        The included transaction as returned by the node

    Raises:
        ValueError: If the UTXO set is invalid or not owned by the signer
        TransportError: If submission failed (no polling happens)
        NotIncludedError: If the transaction was not seen in a block
    """
    unsigned = build_consolidation(utxos)
    if not same_address(unsigned.outputs[0].address, signer.address):
        raise ValueError("Signer does not own the UTXOs")

    tx = await sign_matching(unsigned, signer)
    tx_hash = tx.hash()
    logger.info(
        "consolidating %d UTXOs into %s (%s)",
        len(utxos), tx.outputs[0].value, tx_hash,
    )

    try:
        await client.submit_raw(tx.to_hex())
    except TransportError as exc:
        raise TransportError("Consolidate failed.") from exc

    try:
        return await await_inclusion(
            client, tx_hash, max_attempts, interval, settings=settings
        )
    except NotIncludedError as exc:
        logger.warning("consolidation %s not included after %d attempts", tx_hash, exc.attempts)
        raise NotIncludedError(
            "Consolidate UTXOs wasn't included into a block.",
            tx_hash=tx_hash,
            attempts=exc.attempts,
        ) from exc
