__all__ = [
    # Data model
    "Input",
    "Outpoint",
    "Output",
    "Signed",
    "Transaction",
    "TxKind",
    "UNSIGNED",
    "Unsigned",
    "Utxo",
    # Codec & signer
    "TransactionFormatError",
    "build_spend_condition",
    "build_transfer",
    "deserialize",
    "digest",
    "serialize",
    "sign_matching",
    # Credentials
    "DelegatedSigner",
    "LocalSigner",
    "SignatureError",
    "Signer",
    "generate_eoa",
    "get_signer",
    # RPC
    "HttpTransport",
    "PlasmaClient",
    "Transport",
    # Errors
    "NotIncludedError",
    "PlasmaError",
    "RpcError",
    "TransportError",
    "ValidationRejected",
    # Confirmation
    "RetriesExhausted",
    "await_inclusion",
    "retry_until",
    # Spending conditions
    "ContractInterface",
    "PlasmaContract",
    "PlasmaMethodCall",
    "run_spend_condition",
    # Consolidation
    "build_consolidation",
    "consolidate_utxos",
    # Settings
    "PlasmaSettings",
    "load_settings",
]

from .config import PlasmaSettings, load_settings
from .plasma.tx import (
    UNSIGNED,
    Input,
    Outpoint,
    Output,
    Signed,
    Transaction,
    TransactionFormatError,
    TxKind,
    Unsigned,
    Utxo,
    build_spend_condition,
    build_transfer,
    deserialize,
    digest,
    serialize,
    sign_matching,
)
from .pneuma.rpc import (
    HttpTransport,
    NotIncludedError,
    PlasmaClient,
    PlasmaError,
    RpcError,
    Transport,
    TransportError,
    ValidationRejected,
)
from .pneuma.abi import ContractInterface
from .sigil.eth import DelegatedSigner, LocalSigner, SignatureError, Signer, generate_eoa, get_signer
from .plasma.confirm import RetriesExhausted, await_inclusion, retry_until
from .plasma.spend import run_spend_condition
from .plasma.contract import PlasmaContract, PlasmaMethodCall
from .plasma.consolidate import build_consolidation, consolidate_utxos
