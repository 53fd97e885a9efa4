"""
Pneuma - Child-chain interaction layer for Planeta.

Provides the JSON-RPC client, error taxonomy and ABI call encoding used
to talk to a Plasma node.

Uses httpx + eth-abi instead of the heavyweight web3.py.
"""
