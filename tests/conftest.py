"""Shared fixtures: fixed keys, UTXOs and an in-memory JSON-RPC transport."""

from __future__ import annotations

from typing import Any, Callable

import pytest

from planeta.plasma.tx import Input, Outpoint, Output, Utxo
from planeta.sigil.eth import LocalSigner, get_address

ALICE_KEY = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
BOB_KEY = "0x" + "22" * 32

ALICE = get_address(ALICE_KEY)
BOB = get_address(BOB_KEY)


def tx_hash(n: int) -> str:
    return "0x" + f"{n:064x}"


class FakeTransport:
    """Scripted JSON-RPC node. Handlers receive params and return a result."""

    def __init__(self) -> None:
        self.handlers: dict[str, Callable[[list], Any]] = {}
        self.errors: dict[str, Any] = {}
        self.requests: list[dict[str, Any]] = []

    def on(self, method: str, handler: Callable[[list], Any]) -> None:
        self.handlers[method] = handler

    def fail(self, method: str, error: Any) -> None:
        self.errors[method] = error

    def calls(self, method: str) -> list[list]:
        return [r["params"] for r in self.requests if r["method"] == method]

    async def send(self, request: dict[str, Any]) -> dict[str, Any]:
        self.requests.append(request)
        method = request["method"]
        if method in self.errors:
            return {"jsonrpc": "2.0", "id": request["id"], "error": self.errors[method]}
        result = self.handlers[method](request["params"])
        return {"jsonrpc": "2.0", "id": request["id"], "result": result}


@pytest.fixture()
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def alice() -> LocalSigner:
    return LocalSigner(ALICE_KEY)


@pytest.fixture()
def bob() -> LocalSigner:
    return LocalSigner(BOB_KEY)


def make_utxo(n: int, value: str, address: str = ALICE, color: int = 0) -> Utxo:
    return Utxo.from_dict(
        {
            "outpoint": {"hash": tx_hash(n), "index": 0},
            "output": {"value": value, "address": address, "color": color},
        }
    )


def make_input(n: int, address: str | None = ALICE, index: int = 0) -> Input:
    return Input(outpoint=Outpoint(tx_hash(n), index), address=address)


def make_output(value: int, address: str = BOB, color: int = 0) -> Output:
    return Output(value=value, address=address, color=color)
