from __future__ import annotations

import pytest

from tether.app_config import DEFAULT_PORT, ClientConfig, ServerConfig, env_host, env_port


def test_port_prefers_tether_port_then_port(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TETHER_PORT", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    assert env_port() == DEFAULT_PORT

    monkeypatch.setenv("PORT", "4100")
    assert env_port() == 4100

    monkeypatch.setenv("TETHER_PORT", "4200")
    assert env_port() == 4200

    monkeypatch.setenv("TETHER_PORT", "not-a-port")
    assert env_port() == 4100


def test_host_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TETHER_HOST", raising=False)
    assert env_host("0.0.0.0") == "0.0.0.0"
    monkeypatch.setenv("TETHER_HOST", " 10.0.0.5 ")
    assert env_host("0.0.0.0") == "10.0.0.5"


def test_configs_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TETHER_HOST", "relay.local")
    monkeypatch.setenv("TETHER_PORT", "5000")

    server = ServerConfig.from_env()
    client = ClientConfig.from_env()

    assert (server.host, server.port, server.max_players) == ("relay.local", 5000, 2)
    assert (client.host, client.port) == ("relay.local", 5000)
    assert client.reconnect_attempts == 5
    assert client.create_timeout_s == 5.0
