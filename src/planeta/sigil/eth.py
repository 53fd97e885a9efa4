"""
ECDSA / secp256k1 signing credentials for Plasma inputs.

Two backends produce the same ``Signed`` value for a signing payload:
- LocalSigner: a raw private key held in process (eth-account)
- DelegatedSigner: a wallet reachable through the RPC transport
  (``personal_sign``), e.g. a browser or hardware wallet bridge

Both sign EIP-191 personal messages, so the transaction signer never
branches on where the key lives.
"""

from __future__ import annotations

import os
import secrets
from typing import TYPE_CHECKING, Optional, Protocol

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_account.messages import encode_defunct

from ..plasma.tx import Signed
from ..utils import hex_to_bytes, normalize_address, same_address

if TYPE_CHECKING:
    from ..config import PlasmaSettings
    from ..pneuma.rpc import PlasmaClient


class SignatureError(ValueError):
    pass


class Signer(Protocol):
    address: str

    async def sign(self, data: bytes) -> Signed:
        ...


def generate_eoa() -> tuple[str, str]:
    """Fresh random key for tests and throwaway wallets, as ``(hex key, checksum address)``."""
    private_key = "0x" + secrets.token_hex(32)
    account = Account.from_key(private_key)
    return private_key, account.address


def load_private_key() -> str:
    """
    Read ``PRIVATE_KEY``, adding the 0x prefix when it is missing.

    Raises:
        ValueError: If the variable is unset or empty
    """
    private_key = os.environ.get("PRIVATE_KEY")
    if not private_key:
        raise ValueError("PRIVATE_KEY not set.")

    if not private_key.startswith("0x"):
        private_key = "0x" + private_key

    return private_key


def get_account(private_key: Optional[str] = None) -> LocalAccount:
    """Wrap a hex key in a LocalAccount; with no key, fall back to ``PRIVATE_KEY``."""
    if private_key is None:
        private_key = load_private_key()
    return Account.from_key(private_key)


def get_address(private_key: Optional[str] = None) -> str:
    """Owner address of a key, normalised the way Plasma outputs store it."""
    return normalize_address(get_account(private_key).address)


class LocalSigner:
    """Signs with an in-process private key."""

    def __init__(self, private_key: str) -> None:
        self._account = get_account(private_key)
        self.address = normalize_address(self._account.address)

    @classmethod
    def from_settings(cls, settings: "PlasmaSettings") -> "LocalSigner":
        if not settings.private_key:
            raise ValueError("PRIVATE_KEY not set.")
        return cls(settings.private_key)

    async def sign(self, data: bytes) -> Signed:
        signed = self._account.sign_message(encode_defunct(primitive=data))
        return Signed(r=signed.r, s=signed.s, v=signed.v, address=self.address)


class DelegatedSigner:
    """Signs through ``personal_sign`` on the transport."""

    def __init__(self, client: "PlasmaClient", address: str) -> None:
        self.client = client
        self.address = normalize_address(address)

    async def sign(self, data: bytes) -> Signed:
        sig_hex = await self.client.sign(self.address, data)
        signed = split_signature(sig_hex, self.address)

        try:
            recovered = Account.recover_message(
                encode_defunct(primitive=data), vrs=(signed.v, signed.r, signed.s)
            )
        except Exception as exc:
            raise SignatureError("Invalid delegated signature.") from exc
        if not same_address(recovered, self.address):
            raise SignatureError("Delegated signature does not match the signer address.")
        return signed


def split_signature(signature: str, address: str) -> Signed:
    """Split a 65-byte r|s|v signature, normalising v to 27/28."""
    raw = hex_to_bytes(signature)
    if len(raw) != 65:
        raise SignatureError(f"Signature must be 65 bytes, got {len(raw)}")
    v = raw[64]
    if v < 27:
        v += 27
    return Signed(
        r=int.from_bytes(raw[:32], "big"),
        s=int.from_bytes(raw[32:64], "big"),
        v=v,
        address=address,
    )


def get_signer(
    private_key: Optional[str] = None,
    client: Optional["PlasmaClient"] = None,
    address: Optional[str] = None,
) -> Signer:
    """
    Pick a signing backend.

    A private key selects local signing. Otherwise ``client`` and
    ``address`` select delegated signing; with neither, the key is loaded
    from the environment.
    """
    if private_key is not None:
        return LocalSigner(private_key)
    if client is not None and address is not None:
        return DelegatedSigner(client, address)
    return LocalSigner(load_private_key())
