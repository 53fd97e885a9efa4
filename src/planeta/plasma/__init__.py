"""
Plasma - Transaction lifecycle for the child chain.

Transaction codec and signer, confirmation polling, the spending-condition
protocol, the contract method-call builder and UTXO consolidation.
"""
