"""
Plasma transaction model, wire codec and signer.

Transactions are immutable values: signing, output rewrites and message
data changes all return a new ``Transaction``.

Wire format (all integers big-endian)::

    kind:1 | n_inputs << 4 | n_outputs:1 | inputs | outputs
    input  = tx_hash:32 | index:1 | r:32 | s:32 | v:1
             [spend condition only: msg_len:2 | msg_data]
    output = value:32 | color:2 | address:20

The signing payload is the same encoding with the 65 signature bytes left
out of every input, hashed as an EIP-191 personal message.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Iterable, Optional, Sequence, Union

from eth_account import Account
from eth_account.messages import encode_defunct

from ..utils import (
    bytes_to_hex,
    hex_to_bytes,
    keccak256,
    normalize_address,
    parse_amount,
    same_address,
    strip_hex_prefix,
)

if TYPE_CHECKING:
    from ..sigil.eth import Signer

logger = logging.getLogger(__name__)

MAX_INPUTS = 15
MAX_OUTPUTS = 15
MAX_MSG_DATA = 0xFFFF
MAX_VALUE = 2**256 - 1

_OUTPOINT_LEN = 33
_SIG_LEN = 65
_OUTPUT_LEN = 54


class TransactionFormatError(ValueError):
    pass


class TxKind(enum.IntEnum):
    TRANSFER = 3
    SPEND_COND = 13


@dataclass(frozen=True)
class Outpoint:
    tx_hash: str
    index: int

    def __post_init__(self) -> None:
        digits = strip_hex_prefix(self.tx_hash).lower()
        if len(digits) != 64:
            raise ValueError(f"Outpoint hash must be 32 bytes: {self.tx_hash}")
        bytes.fromhex(digits)
        if not 0 <= self.index <= 0xFF:
            raise ValueError(f"Outpoint index out of range: {self.index}")
        object.__setattr__(self, "tx_hash", "0x" + digits)

    @classmethod
    def from_value(cls, value: Any) -> "Outpoint":
        """Accept an Outpoint, a ``{hash, index}`` dict or a packed hex string."""
        if isinstance(value, Outpoint):
            return value
        if isinstance(value, str):
            raw = hex_to_bytes(value)
            if len(raw) != _OUTPOINT_LEN:
                raise ValueError(f"Packed outpoint must be 33 bytes: {value}")
            return cls(bytes_to_hex(raw[:32]), raw[32])
        if isinstance(value, dict):
            tx_hash = value.get("hash") or value.get("txHash") or value.get("tx_hash")
            if tx_hash is None:
                raise ValueError(f"Outpoint has no hash: {value}")
            return cls(tx_hash, int(value.get("index", 0)))
        raise TypeError(f"Unsupported outpoint: {value!r}")

    def to_raw(self) -> bytes:
        return hex_to_bytes(self.tx_hash) + bytes([self.index])


@dataclass(frozen=True)
class Output:
    value: int
    address: str
    color: int = 0

    def __post_init__(self) -> None:
        if not 0 <= self.value <= MAX_VALUE:
            raise ValueError(f"Output value out of range: {self.value}")
        if not 0 <= self.color <= 0xFFFF:
            raise ValueError(f"Output color out of range: {self.color}")
        object.__setattr__(self, "address", normalize_address(self.address))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Output":
        return cls(
            value=parse_amount(data["value"]),
            address=data["address"],
            color=int(data.get("color", 0)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {"value": str(self.value), "address": self.address, "color": self.color}

    def to_raw(self) -> bytes:
        return (
            self.value.to_bytes(32, "big")
            + self.color.to_bytes(2, "big")
            + hex_to_bytes(self.address)
        )


@dataclass(frozen=True)
class Utxo:
    outpoint: Outpoint
    output: Output

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Utxo":
        output = data["output"]
        if not isinstance(output, Output):
            output = Output.from_dict(output)
        return cls(Outpoint.from_value(data["outpoint"]), output)


@dataclass(frozen=True)
class Unsigned:
    pass


UNSIGNED = Unsigned()


@dataclass(frozen=True)
class Signed:
    r: int
    s: int
    v: int
    address: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "address", normalize_address(self.address))

    def to_raw(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])


Signature = Union[Unsigned, Signed]


@dataclass(frozen=True)
class Input:
    outpoint: Outpoint
    # Claimed owner. Used only to decide which inputs a signer signs.
    address: Optional[str] = None
    signature: Signature = UNSIGNED
    msg_data: bytes = b""

    def __post_init__(self) -> None:
        if self.address is not None:
            object.__setattr__(self, "address", normalize_address(self.address))
        if len(self.msg_data) > MAX_MSG_DATA:
            raise ValueError("Input message data too long")

    @property
    def is_signed(self) -> bool:
        return isinstance(self.signature, Signed)


@dataclass(frozen=True)
class Transaction:
    kind: TxKind
    inputs: tuple[Input, ...]
    outputs: tuple[Output, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "inputs", tuple(self.inputs))
        object.__setattr__(self, "outputs", tuple(self.outputs))
        if len(self.inputs) > MAX_INPUTS:
            raise ValueError(f"At most {MAX_INPUTS} inputs per transaction")
        if len(self.outputs) > MAX_OUTPUTS:
            raise ValueError(f"At most {MAX_OUTPUTS} outputs per transaction")
        if self.kind == TxKind.TRANSFER and any(i.msg_data for i in self.inputs):
            raise ValueError("Transfer inputs cannot carry message data")

    def _encode(self, with_signatures: bool) -> bytes:
        parts = [
            bytes([self.kind]),
            bytes([(len(self.inputs) << 4) | len(self.outputs)]),
        ]
        for tx_input in self.inputs:
            parts.append(tx_input.outpoint.to_raw())
            if with_signatures:
                if isinstance(tx_input.signature, Signed):
                    parts.append(tx_input.signature.to_raw())
                else:
                    parts.append(bytes(_SIG_LEN))
            if self.kind == TxKind.SPEND_COND:
                parts.append(len(tx_input.msg_data).to_bytes(2, "big"))
                parts.append(tx_input.msg_data)
        for output in self.outputs:
            parts.append(output.to_raw())
        return b"".join(parts)

    def sig_data(self) -> bytes:
        """Bytes covered by input signatures."""
        return self._encode(with_signatures=False)

    def to_raw(self) -> bytes:
        return self._encode(with_signatures=True)

    def to_hex(self) -> str:
        return bytes_to_hex(self.to_raw())

    def hash(self) -> str:
        """Keccak-256 of the raw form, 0x-hex."""
        return bytes_to_hex(keccak256(self.to_raw()))

    def with_outputs(self, outputs: Iterable[Output]) -> "Transaction":
        return replace(self, outputs=tuple(outputs))

    def with_msg_data(self, msg_data: bytes, index: int = 0) -> "Transaction":
        inputs = list(self.inputs)
        inputs[index] = replace(inputs[index], msg_data=bytes(msg_data))
        return replace(self, inputs=tuple(inputs))

    def verify_signatures(self) -> list[int]:
        """Indexes of signed inputs whose signature recovers to their address."""
        payload = encode_defunct(primitive=self.sig_data())
        valid = []
        for index, tx_input in enumerate(self.inputs):
            sig = tx_input.signature
            if not isinstance(sig, Signed):
                continue
            try:
                recovered = Account.recover_message(payload, vrs=(sig.v, sig.r, sig.s))
            except Exception:
                continue
            if same_address(recovered, sig.address):
                valid.append(index)
        return valid

    @classmethod
    def from_raw(cls, raw: Union[bytes, str]) -> "Transaction":
        """
        Decode the wire form.

        Signer addresses are recovered from the signatures. Claimed
        addresses of unsigned inputs are not part of the wire form and come
        back as None.

        Raises:
            TransactionFormatError: If the bytes are not a valid transaction
        """
        try:
            data = hex_to_bytes(raw)
        except ValueError as exc:
            raise TransactionFormatError(f"Invalid hex: {exc}") from exc
        if len(data) < 2:
            raise TransactionFormatError("Transaction too short")

        try:
            kind = TxKind(data[0])
        except ValueError as exc:
            raise TransactionFormatError(f"Unknown transaction kind: {data[0]}") from exc
        n_inputs, n_outputs = data[1] >> 4, data[1] & 0x0F

        pos = 2

        def take(length: int) -> bytes:
            nonlocal pos
            if pos + length > len(data):
                raise TransactionFormatError("Transaction truncated")
            chunk = data[pos:pos + length]
            pos += length
            return chunk

        inputs: list[Input] = []
        raw_sigs: list[bytes] = []
        for _ in range(n_inputs):
            outpoint_raw = take(_OUTPOINT_LEN)
            raw_sigs.append(take(_SIG_LEN))
            msg_data = b""
            if kind == TxKind.SPEND_COND:
                msg_len = int.from_bytes(take(2), "big")
                msg_data = take(msg_len)
            outpoint = Outpoint(bytes_to_hex(outpoint_raw[:32]), outpoint_raw[32])
            inputs.append(Input(outpoint=outpoint, msg_data=msg_data))

        outputs = []
        for _ in range(n_outputs):
            chunk = take(_OUTPUT_LEN)
            outputs.append(
                Output(
                    value=int.from_bytes(chunk[:32], "big"),
                    color=int.from_bytes(chunk[32:34], "big"),
                    address=bytes_to_hex(chunk[34:]),
                )
            )
        if pos != len(data):
            raise TransactionFormatError("Trailing bytes after transaction")

        tx = cls(kind, tuple(inputs), tuple(outputs))
        if not any(any(sig) for sig in raw_sigs):
            return tx

        payload = encode_defunct(primitive=tx.sig_data())
        decoded = []
        for tx_input, sig_raw in zip(inputs, raw_sigs):
            if not any(sig_raw):
                decoded.append(tx_input)
                continue
            r = int.from_bytes(sig_raw[:32], "big")
            s = int.from_bytes(sig_raw[32:64], "big")
            v = sig_raw[64]
            try:
                signer = Account.recover_message(payload, vrs=(v, r, s))
            except Exception as exc:
                raise TransactionFormatError(f"Unrecoverable input signature: {exc}") from exc
            decoded.append(
                replace(tx_input, address=signer, signature=Signed(r, s, v, signer))
            )
        return replace(tx, inputs=tuple(decoded))


def build_transfer(inputs: Sequence[Input], outputs: Sequence[Output]) -> Transaction:
    """Build an unsigned transfer. No I/O."""
    if not inputs:
        raise ValueError("A transfer needs at least one input")
    return Transaction(TxKind.TRANSFER, tuple(inputs), tuple(outputs))


def build_spend_condition(inputs: Sequence[Input]) -> Transaction:
    """Build an unsigned spend-condition transaction with no outputs yet."""
    if not inputs:
        raise ValueError("A spending condition needs at least one input")
    normalized = tuple(Input(outpoint=i.outpoint, address=i.address) for i in inputs)
    return Transaction(TxKind.SPEND_COND, normalized)


async def sign_matching(tx: Transaction, signer: "Signer") -> Transaction:
    """
    Sign every input whose claimed address belongs to ``signer``.

    Other inputs are left as they are, so several parties can sign the same
    transaction in turn. A signer owning no input returns ``tx`` unchanged.
    Re-signing replaces the previous signature of that input.
    """
    matching = [
        index
        for index, tx_input in enumerate(tx.inputs)
        if same_address(tx_input.address, signer.address)
    ]
    if not matching:
        return tx

    signature = await signer.sign(tx.sig_data())
    inputs = list(tx.inputs)
    for index in matching:
        inputs[index] = replace(inputs[index], signature=signature)
    logger.debug("signed inputs %s as %s", matching, signer.address)
    return replace(tx, inputs=tuple(inputs))


def serialize(tx: Transaction) -> str:
    return tx.to_hex()


def deserialize(raw: Union[bytes, str]) -> Transaction:
    return Transaction.from_raw(raw)


def digest(tx: Transaction) -> str:
    return tx.hash()
