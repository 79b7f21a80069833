from __future__ import annotations

import pytest

import tether.__main__ as cli


def test_server_mode_uses_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(cli, "run_server", lambda **kw: calls.append(kw))

    cli.main(["--server", "--host", "127.0.0.1", "--port", "4567", "--max-players", "3", "--quiet"])

    assert len(calls) == 1
    kw = calls[0]
    assert (kw["host"], kw["port"], kw["max_players"], kw["verbose"]) == ("127.0.0.1", 4567, 3, False)
    assert len(kw["spawn_slots"]) == 2


def test_client_mode_builds_config(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[dict] = []
    monkeypatch.setattr(cli, "run_headless", lambda **kw: calls.append(kw))

    cli.main(["--connect", "10.0.0.2", "--port", "3001", "--join", "abc123", "--profile", "floaty", "--smoke"])

    kw = calls[0]
    cfg = kw["config"]
    assert (cfg.host, cfg.port, cfg.tuning_profile) == ("10.0.0.2", 3001, "floaty")
    assert kw["join_code"] == "abc123"
    assert kw["create"] is False
    assert kw["ticks"] == cli.SMOKE_TICKS


def test_create_and_join_are_exclusive() -> None:
    with pytest.raises(SystemExit):
        cli.main(["--connect", "127.0.0.1", "--create", "--join", "ABC123"])


def test_mode_is_required() -> None:
    with pytest.raises(SystemExit):
        cli.main([])
