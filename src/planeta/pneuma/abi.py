"""
ABI call encoding.

Turns a contract interface description (the standard JSON ABI list) into
an immutable table of callable functions and encodes calls to them as
calldata: 4-byte keccak selector followed by ``eth_abi.encode`` arguments.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Mapping, Sequence

from eth_abi import encode

from ..utils import keccak256


def _canonical_type(param: dict[str, Any]) -> str:
    """Expand ``tuple`` types into their component list."""
    typ = param["type"]
    if typ.startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param.get("components", []))
        return f"({inner}){typ[len('tuple'):]}"
    return typ


def input_types(entry: dict[str, Any]) -> list[str]:
    return [_canonical_type(inp) for inp in entry.get("inputs", [])]


def function_signature(entry: dict[str, Any]) -> str:
    return f"{entry['name']}({','.join(input_types(entry))})"


def function_selector(entry: dict[str, Any]) -> bytes:
    # NOTE: Keccak-256 != SHA3-256 (NIST). Never use hashlib.sha3_256 here.
    return keccak256(function_signature(entry).encode("utf-8"))[:4]


def encode_call(entry: dict[str, Any], args: Sequence[Any]) -> bytes:
    """
    ABI-encode a function call.

    Args:
        entry: ABI entry of type "function"
        args: Function arguments

    Returns:
        Calldata bytes (selector + encoded arguments)
    """
    types = input_types(entry)
    if len(args) != len(types):
        raise ValueError(
            f"{function_signature(entry)} takes {len(types)} arguments, got {len(args)}"
        )
    encoded_args = encode(types, list(args)) if types else b""
    return function_selector(entry) + encoded_args


class ContractInterface:
    """
    Function table built once from a JSON ABI.

    Each function is reachable by its full signature. The bare name maps
    to the first declaration, so overloads need the full signature.
    """

    def __init__(self, abi: Sequence[dict[str, Any]]) -> None:
        functions: dict[str, dict[str, Any]] = {}
        for entry in abi:
            if entry.get("type") != "function":
                continue
            functions.setdefault(entry["name"], entry)
            functions.setdefault(function_signature(entry), entry)
        self.abi = tuple(abi)
        self.functions: Mapping[str, dict[str, Any]] = MappingProxyType(functions)

    def names(self) -> list[str]:
        """Bare function names in declaration order."""
        seen: list[str] = []
        for entry in self.abi:
            if entry.get("type") == "function" and entry["name"] not in seen:
                seen.append(entry["name"])
        return seen

    def encode_call(self, name: str, args: Sequence[Any]) -> bytes:
        entry = self.functions.get(name)
        if entry is None:
            raise ValueError(f"Function {name} not found in ABI")
        return encode_call(entry, args)
