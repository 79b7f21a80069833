from __future__ import annotations

import socket
import time
from collections.abc import Callable

from tether.net.protocol import (
    EV_CONNECTED,
    MAX_LINE_BYTES,
    decode_event_line,
    encode_event,
    split_lines,
)

# Outbound backlog cap while the kernel send buffer is full.
MAX_OUTBOX_BYTES = 256 * 1024

# Pseudo-event queued locally when the transport drops; never sent on the wire.
EV_DISCONNECT = "disconnect"


class RoomClient:
    """
    Event transport to the relay server: newline-delimited JSON over one TCP connection.

    `connect()` blocks through a bounded number of attempts with a fixed delay. After a drop,
    `maintain(now)` retries on the same schedule without blocking the frame loop. A reconnect
    gets a new connection id and no room membership.
    """

    def __init__(
        self,
        *,
        host: str,
        port: int,
        reconnect_attempts: int = 5,
        reconnect_delay_s: float = 1.0,
        connect_timeout_s: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.host = str(host)
        self.port = int(port)
        self.reconnect_attempts = max(1, int(reconnect_attempts))
        self.reconnect_delay_s = max(0.0, float(reconnect_delay_s))
        self.connect_timeout_s = max(0.1, float(connect_timeout_s))
        self._sleep = sleep

        self.client_id: str | None = None
        self.last_error: str | None = None
        self._sock: socket.socket | None = None
        self._buf = b""
        # Encoded lines accepted by emit() that the socket has not taken yet.
        self._outbox = b""
        self._pending: list[tuple[str, object]] = []
        self._retries_left = 0
        self._next_retry_at = 0.0

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self) -> bool:
        for attempt in range(self.reconnect_attempts):
            if self._open():
                return True
            if attempt + 1 < self.reconnect_attempts:
                self._sleep(self.reconnect_delay_s)
        return False

    def maintain(self, now: float) -> bool:
        """Non-blocking reconnect step; call once per frame. Returns True when connected."""

        if self._sock is not None:
            return True
        if self._retries_left <= 0 or float(now) < self._next_retry_at:
            return False
        self._retries_left -= 1
        if self._open():
            return True
        self._next_retry_at = float(now) + self.reconnect_delay_s
        return False

    def _open(self) -> bool:
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.settimeout(self.connect_timeout_s)
        try:
            sock.connect((self.host, self.port))
            greeting = self._read_greeting(sock)
        except (OSError, RuntimeError) as exc:
            self.last_error = f"{type(exc).__name__}: {exc}"
            sock.close()
            return False
        sock.setblocking(False)
        self._sock = sock
        self.client_id = greeting
        self.last_error = None
        self._pending.append((EV_CONNECTED, {"id": greeting}))
        return True

    def _read_greeting(self, sock: socket.socket) -> str:
        buf = b""
        while b"\n" not in buf:
            chunk = sock.recv(4096)
            if not chunk:
                raise RuntimeError("Server closed during handshake")
            buf += chunk
            if len(buf) > MAX_LINE_BYTES:
                raise RuntimeError("Handshake payload too large")
        line, self._buf = buf.split(b"\n", 1)
        parsed = decode_event_line(line)
        if parsed is None or parsed[0] != EV_CONNECTED or not isinstance(parsed[1], dict):
            raise RuntimeError("Invalid greeting")
        conn_id = parsed[1].get("id")
        if not isinstance(conn_id, str) or not conn_id:
            raise RuntimeError("Greeting without connection id")
        return conn_id

    def emit(self, event: str, data: object = None) -> bool:
        """Queue one event line and push as much as the socket takes. False if it was dropped."""

        if self._sock is None:
            return False
        line = encode_event(event, data)
        if len(self._outbox) + len(line) > MAX_OUTBOX_BYTES:
            # Whole lines only: dropping a message never splits one on the wire.
            return False
        self._outbox += line
        self._flush()
        return self._sock is not None

    def _flush(self) -> None:
        while self._outbox and self._sock is not None:
            try:
                sent = self._sock.send(self._outbox)
            except BlockingIOError:
                return
            except OSError as exc:
                self._handle_drop(f"{type(exc).__name__}: {exc}")
                return
            self._outbox = self._outbox[sent:]

    def poll(self) -> list[tuple[str, object]]:
        """Drain everything received so far as (event, data) pairs, in arrival order."""

        self._flush()
        if self._sock is not None:
            while True:
                try:
                    data = self._sock.recv(65536)
                except BlockingIOError:
                    break
                except OSError as exc:
                    self._handle_drop(f"{type(exc).__name__}: {exc}")
                    break
                if not data:
                    self._handle_drop("server closed connection")
                    break
                self._buf += data
                self._queue_lines()
        self._queue_lines()
        out = self._pending
        self._pending = []
        return out

    def _queue_lines(self) -> None:
        lines, self._buf = split_lines(self._buf)
        for line in lines:
            parsed = decode_event_line(line)
            if parsed is not None:
                self._pending.append(parsed)

    def _handle_drop(self, reason: str) -> None:
        sock = self._sock
        self._sock = None
        self._outbox = b""
        self.client_id = None
        self.last_error = reason
        if sock is not None:
            try:
                sock.close()
            except OSError:
                pass
        self._retries_left = self.reconnect_attempts
        self._next_retry_at = 0.0
        self._pending.append((EV_DISCONNECT, reason))

    def close(self) -> None:
        sock = self._sock
        self._sock = None
        self._outbox = b""
        self.client_id = None
        self._retries_left = 0
        if sock is not None:
            try:
                sock.close()
            except OSError:
                pass
