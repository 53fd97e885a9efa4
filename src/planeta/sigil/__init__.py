"""Sigil - Signing credentials (local keys and delegated signers)."""
