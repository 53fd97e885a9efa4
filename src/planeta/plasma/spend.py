"""
Spending-condition protocol.

A spend request moves through four immutable states::

    Built -> PreSigned -> Validated -> Submitted

The pre-signature covers the transaction without its final outputs. The
operator answers the validation request with the outputs the condition
allows, and the signature made after that rewrite is the one submitted.
No step is retried; any failure aborts the request.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Sequence

from ..pneuma.rpc import PlasmaClient
from ..sigil.eth import Signer
from .tx import Input, Transaction, build_spend_condition, sign_matching

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Built:
    tx: Transaction
    msg_data: bytes


@dataclass(frozen=True)
class PreSigned:
    tx: Transaction
    msg_data: bytes


@dataclass(frozen=True)
class Validated:
    tx: Transaction
    presigned: Transaction


@dataclass(frozen=True)
class Submitted:
    tx: Transaction
    tx_hash: str


def build(inputs: Sequence[Input], msg_data: bytes) -> Built:
    """Spend-condition transaction with ``msg_data`` on the first input."""
    tx = build_spend_condition(inputs).with_msg_data(msg_data, index=0)
    return Built(tx=tx, msg_data=bytes(msg_data))


async def presign(built: Built, signer: Signer) -> PreSigned:
    tx = await sign_matching(built.tx, signer)
    return PreSigned(tx=tx, msg_data=built.msg_data)


async def validate(presigned: PreSigned, client: PlasmaClient, signer: Signer) -> Validated:
    """
    Have the operator check the condition, then re-sign over its outputs.

    Raises:
        ValidationRejected: If the operator refused the condition
        TransportError: If the validation call failed
    """
    outputs = await client.validate_spend_condition(presigned.tx.to_hex())
    logger.info("spending condition accepted with %d outputs", len(outputs))

    rewritten = presigned.tx.with_outputs(outputs).with_msg_data(presigned.msg_data, index=0)
    final = await sign_matching(rewritten, signer)
    return Validated(tx=final, presigned=presigned.tx)


async def submit(validated: Validated, client: PlasmaClient) -> Submitted:
    """
    Submit the final transaction. Does not wait for inclusion.

    Raises:
        TransportError: If submission failed
    """
    await client.submit_raw(validated.tx.to_hex())
    tx_hash = validated.tx.hash()
    logger.info("spending condition transaction %s submitted", tx_hash)
    return Submitted(tx=validated.tx, tx_hash=tx_hash)


async def run_spend_condition(
    inputs: Sequence[Input],
    msg_data: bytes,
    client: PlasmaClient,
    signer: Signer,
) -> Submitted:
    """Drive one spend request from construction to submission."""
    built = build(inputs, msg_data)
    presigned = await presign(built, signer)
    validated = await validate(presigned, client, signer)
    return await submit(validated, client)
