"""
Planeta runtime settings.

Settings come from environment variables, optionally seeded from a
``.env`` file:

  PLASMA_RPC_URL        child-chain JSON-RPC endpoint
  PLASMA_RPC_TIMEOUT    HTTP timeout in seconds
  PLASMA_POLL_ATTEMPTS  confirmation polling budget
  PLASMA_POLL_INTERVAL  seconds between confirmation polls
  PRIVATE_KEY           hex private key for local signing
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


DEFAULT_RPC_URL = "http://localhost:8645"
DEFAULT_RPC_TIMEOUT = 30.0
DEFAULT_POLL_ATTEMPTS = 5
DEFAULT_POLL_INTERVAL = 1.0


def get_rpc_url() -> str:
    """Get the RPC URL from environment or default."""
    return os.environ.get("PLASMA_RPC_URL", DEFAULT_RPC_URL)


@dataclass(frozen=True)
class PlasmaSettings:
    rpc_url: str = DEFAULT_RPC_URL
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    poll_attempts: int = DEFAULT_POLL_ATTEMPTS
    poll_interval: float = DEFAULT_POLL_INTERVAL
    private_key: Optional[str] = None


def load_settings(env_path: Optional[Path] = None) -> PlasmaSettings:
    """
    Build settings from the environment.

    Args:
        env_path: Optional .env file loaded (without overriding the
                  existing environment) before reading variables.

    Returns:
        PlasmaSettings

    Raises:
        ValueError: If a numeric variable cannot be parsed or is out of range
    """
    if env_path is not None and env_path.exists():
        load_dotenv(env_path, override=False)

    try:
        timeout = float(os.environ.get("PLASMA_RPC_TIMEOUT", str(DEFAULT_RPC_TIMEOUT)))
        attempts = int(os.environ.get("PLASMA_POLL_ATTEMPTS", str(DEFAULT_POLL_ATTEMPTS)))
        interval = float(os.environ.get("PLASMA_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL)))
    except ValueError as exc:
        raise ValueError(f"Invalid Plasma setting: {exc}") from exc

    if attempts < 1:
        raise ValueError("PLASMA_POLL_ATTEMPTS must be at least 1")
    if interval < 0 or timeout <= 0:
        raise ValueError("PLASMA_POLL_INTERVAL and PLASMA_RPC_TIMEOUT must be positive")

    private_key = os.environ.get("PRIVATE_KEY") or None
    if private_key and not private_key.startswith("0x"):
        private_key = "0x" + private_key

    return PlasmaSettings(
        rpc_url=get_rpc_url(),
        rpc_timeout=timeout,
        poll_attempts=attempts,
        poll_interval=interval,
        private_key=private_key,
    )
