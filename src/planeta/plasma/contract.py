"""
Contract method calls as spending conditions.

``PlasmaContract(client, abi).methods["transfer"](to, amount)`` encodes the
call and returns a ``PlasmaMethodCall``; sending it runs the
spending-condition protocol with the calldata as message data.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Sequence

from ..pneuma.abi import ContractInterface
from ..pneuma.rpc import PlasmaClient
from ..sigil.eth import Signer
from ..utils import normalize_address
from .spend import run_spend_condition
from .tx import Input


@dataclass(frozen=True)
class PlasmaMethodCall:
    client: PlasmaClient
    data: bytes
    address: Optional[str] = None

    async def send(self, inputs: Sequence[Input], signer: Signer) -> str:
        """
        Spend ``inputs`` under this call's condition.

        Returns:
            Hash of the submitted transaction
        """
        submitted = await run_spend_condition(inputs, self.data, self.client, signer)
        return submitted.tx_hash


class PlasmaContract:
    """Dispatch table of call factories for one contract interface. No I/O."""

    def __init__(
        self,
        client: PlasmaClient,
        abi: Sequence[dict[str, Any]],
        address: Optional[str] = None,
    ) -> None:
        self.client = client
        self.interface = ContractInterface(abi)
        self.address = normalize_address(address) if address else None
        self.methods: Mapping[str, Callable[..., PlasmaMethodCall]] = MappingProxyType(
            {name: partial(self.method_call, name) for name in self.interface.functions}
        )

    def method_call(self, method: str, *params: Any) -> PlasmaMethodCall:
        data = self.interface.encode_call(method, params)
        return PlasmaMethodCall(self.client, data, self.address)
