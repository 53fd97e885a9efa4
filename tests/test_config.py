"""Tests for settings loading."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from planeta.config import DEFAULT_RPC_URL, PlasmaSettings, load_settings

_KEYS = ("PLASMA_RPC_URL", "PLASMA_RPC_TIMEOUT", "PLASMA_POLL_ATTEMPTS", "PLASMA_POLL_INTERVAL", "PRIVATE_KEY")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)


class TestLoadSettings:
    def test_defaults(self) -> None:
        settings = load_settings()
        assert settings == PlasmaSettings()
        assert settings.rpc_url == DEFAULT_RPC_URL
        assert settings.poll_attempts == 5
        assert settings.poll_interval == 1.0

    def test_environment(self) -> None:
        env = {
            "PLASMA_RPC_URL": "http://node:8645",
            "PLASMA_POLL_ATTEMPTS": "10",
            "PLASMA_POLL_INTERVAL": "0.5",
            "PRIVATE_KEY": "ab" * 32,
        }
        with patch.dict(os.environ, env):
            settings = load_settings()
        assert settings.rpc_url == "http://node:8645"
        assert settings.poll_attempts == 10
        assert settings.poll_interval == 0.5
        assert settings.private_key == "0x" + "ab" * 32

    def test_env_file(self, tmp_path: Path) -> None:
        env_path = tmp_path / ".env"
        env_path.write_text("PLASMA_RPC_URL=http://from-file:1\nPLASMA_POLL_ATTEMPTS=2\n", encoding="utf-8")
        try:
            settings = load_settings(env_path)
        finally:
            os.environ.pop("PLASMA_RPC_URL", None)
            os.environ.pop("PLASMA_POLL_ATTEMPTS", None)
        assert settings.rpc_url == "http://from-file:1"
        assert settings.poll_attempts == 2

    def test_environment_wins_over_file(self, tmp_path: Path) -> None:
        env_path = tmp_path / ".env"
        env_path.write_text("PLASMA_RPC_URL=http://from-file:1\n", encoding="utf-8")
        with patch.dict(os.environ, {"PLASMA_RPC_URL": "http://from-env:2"}):
            assert load_settings(env_path).rpc_url == "http://from-env:2"

    @pytest.mark.parametrize(
        "key,value",
        [
            ("PLASMA_POLL_ATTEMPTS", "zero"),
            ("PLASMA_POLL_ATTEMPTS", "0"),
            ("PLASMA_POLL_INTERVAL", "-1"),
            ("PLASMA_RPC_TIMEOUT", "0"),
        ],
    )
    def test_invalid_values(self, key: str, value: str) -> None:
        with patch.dict(os.environ, {key: value}):
            with pytest.raises(ValueError):
                load_settings()
