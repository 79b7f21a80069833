from __future__ import annotations

import pytest

from tether.net import client as client_mod
from tether.net.client import RoomClient
from tether.net.protocol import decode_event_line, split_lines


class _FakeSocket:
    """Nonblocking socket stand-in that accepts at most `budget` bytes until topped up."""

    def __init__(self, budget: int) -> None:
        self.budget = int(budget)
        self.wire = b""
        self.closed = False

    def send(self, data: bytes) -> int:
        if self.budget <= 0:
            raise BlockingIOError()
        n = min(len(data), self.budget)
        self.wire += data[:n]
        self.budget -= n
        return n

    def recv(self, _size: int) -> bytes:
        raise BlockingIOError()

    def close(self) -> None:
        self.closed = True


class _BrokenSocket(_FakeSocket):
    def send(self, data: bytes) -> int:
        raise ConnectionResetError("reset by peer")


def _client_with(sock: _FakeSocket) -> RoomClient:
    client = RoomClient(host="127.0.0.1", port=1)
    client._sock = sock
    return client


def _decoded(wire: bytes) -> list[tuple[str, object]]:
    lines, rest = split_lines(wire)
    assert rest == b""
    return [decode_event_line(line) for line in lines]


def test_partial_send_is_finished_before_next_line() -> None:
    sock = _FakeSocket(budget=10)
    client = _client_with(sock)

    assert client.emit("joinRoom", "ABC123") is True
    assert client.emit("leaveRoom", "ABC123") is True
    assert len(sock.wire) == 10

    sock.budget = 10_000
    client.poll()

    assert _decoded(sock.wire) == [("joinRoom", "ABC123"), ("leaveRoom", "ABC123")]


def test_full_backlog_drops_whole_messages(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(client_mod, "MAX_OUTBOX_BYTES", 64)
    sock = _FakeSocket(budget=0)
    client = _client_with(sock)

    assert client.emit("joinRoom", "ABC123") is True
    assert client.emit("playerMove", {"roomCode": "ABC123", "position": {"x": 1, "y": 2, "z": 3}}) is False

    sock.budget = 10_000
    client.poll()
    assert _decoded(sock.wire) == [("joinRoom", "ABC123")]


def test_send_failure_reports_disconnect() -> None:
    client = _client_with(_BrokenSocket(budget=100))

    assert client.emit("createRoom") is False
    assert client.connected is False
    events = client.poll()
    assert events[-1][0] == "disconnect"
    assert "ConnectionResetError" in events[-1][1]
