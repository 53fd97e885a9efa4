"""Tests for the spending-condition protocol."""

from __future__ import annotations

import pytest

from planeta.plasma import spend
from planeta.plasma.tx import Output, Transaction, TxKind
from planeta.pneuma.rpc import PlasmaClient, TransportError, ValidationRejected

from conftest import ALICE, BOB, FakeTransport, make_input

MSG_DATA = bytes.fromhex("a9059cbb") + bytes(64)
VALIDATED_OUTPUTS = [{"value": "100", "address": BOB, "color": 0}]


def _validator(transport: FakeTransport, outputs=VALIDATED_OUTPUTS) -> None:
    transport.on("checkSpendingCondition", lambda params: {"outputs": outputs})
    transport.on("eth_sendRawTransaction", lambda params: Transaction.from_raw(params[0]).hash())


class TestStates:
    def test_build_attaches_msg_data_to_first_input(self) -> None:
        built = spend.build([make_input(1), make_input(2)], MSG_DATA)
        assert built.tx.kind == TxKind.SPEND_COND
        assert built.tx.inputs[0].msg_data == MSG_DATA
        assert built.tx.inputs[1].msg_data == b""
        assert built.tx.outputs == ()

    def test_build_requires_inputs(self) -> None:
        with pytest.raises(ValueError):
            spend.build([], MSG_DATA)

    @pytest.mark.asyncio
    async def test_presign_covers_placeholder_outputs(self, alice) -> None:
        presigned = await spend.presign(spend.build([make_input(1)], MSG_DATA), alice)
        assert presigned.tx.outputs == ()
        assert presigned.tx.verify_signatures() == [0]

    @pytest.mark.asyncio
    async def test_validate_resigns_over_final_outputs(self, transport: FakeTransport, alice) -> None:
        _validator(transport)
        client = PlasmaClient(transport)
        presigned = await spend.presign(spend.build([make_input(1)], MSG_DATA), alice)

        validated = await spend.validate(presigned, client, alice)

        assert validated.tx.outputs == (Output(100, BOB, 0),)
        assert validated.tx.inputs[0].msg_data == MSG_DATA
        assert validated.tx.verify_signatures() == [0]
        assert validated.tx.inputs[0].signature != presigned.tx.inputs[0].signature
        # The pre-signature does not cover the rewritten outputs.
        stale = presigned.tx.with_outputs(validated.tx.outputs)
        assert stale.verify_signatures() == []
        # The earlier state is left untouched.
        assert validated.presigned == presigned.tx
        assert presigned.tx.outputs == ()

    @pytest.mark.asyncio
    async def test_validator_receives_presigned_transaction(self, transport: FakeTransport, alice) -> None:
        _validator(transport)
        presigned = await spend.presign(spend.build([make_input(1)], MSG_DATA), alice)
        await spend.validate(presigned, PlasmaClient(transport), alice)

        (params,) = transport.calls("checkSpendingCondition")
        sent = Transaction.from_raw(params[0])
        assert sent == presigned.tx
        assert sent.inputs[0].msg_data == MSG_DATA


class TestRunSpendCondition:
    @pytest.mark.asyncio
    async def test_end_to_end(self, transport: FakeTransport, alice) -> None:
        _validator(transport)

        submitted = await spend.run_spend_condition(
            [make_input(1), make_input(2, BOB)], MSG_DATA, PlasmaClient(transport), alice
        )

        (params,) = transport.calls("eth_sendRawTransaction")
        final = Transaction.from_raw(params[0])
        assert [o.to_dict() for o in final.outputs] == VALIDATED_OUTPUTS
        assert final.verify_signatures() == [0]
        assert final.inputs[0].signature.address == ALICE
        assert not final.inputs[1].is_signed
        assert submitted.tx_hash == final.hash()
        assert [r["method"] for r in transport.requests] == [
            "checkSpendingCondition",
            "eth_sendRawTransaction",
        ]

    @pytest.mark.asyncio
    async def test_short_output_address(self, transport: FakeTransport, alice) -> None:
        _validator(transport, outputs=[{"value": "100", "address": "0xabc", "color": 0}])

        submitted = await spend.run_spend_condition([make_input(1)], MSG_DATA, PlasmaClient(transport), alice)

        assert submitted.tx.outputs == (Output.from_dict({"value": "100", "address": "0xabc", "color": 0}),)
        assert submitted.tx.verify_signatures() == [0]

    @pytest.mark.asyncio
    async def test_rejection_aborts_before_submission(self, transport: FakeTransport, alice) -> None:
        transport.fail("checkSpendingCondition", {"code": -32000, "message": "condition reverted"})

        with pytest.raises(ValidationRejected):
            await spend.run_spend_condition([make_input(1)], MSG_DATA, PlasmaClient(transport), alice)

        assert transport.calls("checkSpendingCondition") != []
        assert transport.calls("eth_sendRawTransaction") == []
        assert len(transport.calls("checkSpendingCondition")) == 1

    @pytest.mark.asyncio
    async def test_submission_failure(self, transport: FakeTransport, alice) -> None:
        transport.on("checkSpendingCondition", lambda params: {"outputs": VALIDATED_OUTPUTS})
        transport.fail("eth_sendRawTransaction", {"code": -32000, "message": "nonce"})

        with pytest.raises(TransportError, match="Submission failed."):
            await spend.run_spend_condition([make_input(1)], MSG_DATA, PlasmaClient(transport), alice)

        assert len(transport.calls("eth_sendRawTransaction")) == 1
