from __future__ import annotations

from pathlib import Path

import pytest

from wirechat.config import DEFAULT_GATEWAY_URL, build_config, build_ws_url, load_env_files


@pytest.mark.parametrize(
    ("gateway", "token", "expected"),
    [
        ("http://127.0.0.1:3888", None, "ws://127.0.0.1:3888/ws"),
        ("http://127.0.0.1:3888/", "", "ws://127.0.0.1:3888/ws"),
        ("https://chat.example.com", "k 1&2", "wss://chat.example.com/ws?token=k%201%262"),
        ("https://chat.example.com/gateway/", None, "wss://chat.example.com/gateway/ws"),
    ],
)
def test_build_ws_url(gateway: str, token: str | None, expected: str) -> None:
    assert build_ws_url(gateway, token) == expected


def test_build_config_defaults() -> None:
    config = build_config()

    assert config.gateway_url == DEFAULT_GATEWAY_URL
    assert config.token is None
    assert config.provider is None


def test_explicit_arguments_beat_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("WIRECHAT_GATEWAY_URL", "http://env:1")
    monkeypatch.setenv("WIRECHAT_GATEWAY_TOKEN", "env-token")

    config = build_config(gateway_url="http://flag:2/")

    assert config.gateway_url == "http://flag:2/"
    assert config.http_base == "http://flag:2"
    assert config.token == "env-token"


def test_env_file_does_not_override_real_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text("WIRECHAT_PROVIDER=from-file\nWIRECHAT_GATEWAY_TOKEN=file-token\n", encoding="utf-8")
    monkeypatch.setenv("WIRECHAT_GATEWAY_TOKEN", "real-token")
    # Registers cleanup for the value loaded from the file.
    monkeypatch.setenv("WIRECHAT_PROVIDER", "")
    monkeypatch.delenv("WIRECHAT_PROVIDER")

    load_env_files(env_file)
    config = build_config()

    assert config.token == "real-token"
    assert config.provider == "from-file"
