from __future__ import annotations

import secrets
import socket
import threading
import time
from dataclasses import dataclass

from tether.common.error_log import ErrorLog
from tether.net.protocol import (
    CLIENT_EVENTS,
    EV_CONNECTED,
    MAX_LINE_BYTES,
    PROTOCOL_VERSION,
    decode_event_line,
    encode_event,
    split_lines,
)
from tether.net.relay import SessionRelay
from tether.net.rooms import DEFAULT_SPAWN_SLOTS, MAX_PLAYERS_PER_ROOM, RoomDirectory, SpawnSlot


@dataclass
class _Connection:
    conn_id: str
    sock: socket.socket
    buf: bytes = b""


class RelayServer:
    """Single-threaded room relay over newline-delimited JSON on TCP."""

    def __init__(
        self,
        *,
        host: str,
        port: int,
        directory: RoomDirectory | None = None,
        error_log: ErrorLog | None = None,
        verbose: bool = True,
    ) -> None:
        self.host = str(host)
        self.verbose = bool(verbose)
        self.directory = directory if directory is not None else RoomDirectory()
        self.error_log = error_log if error_log is not None else ErrorLog()
        self.relay = SessionRelay(
            directory=self.directory,
            send=self._send,
            error_log=self.error_log,
            verbose=self.verbose,
        )

        self._conns: dict[str, _Connection] = {}
        self._dead: set[str] = set()

        self._listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._listener.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._listener.bind((self.host, int(port)))
        self._listener.listen(32)
        self._listener.setblocking(False)
        self.port = int(self._listener.getsockname()[1])
        self._closed = False

    def _log(self, msg: str) -> None:
        if self.verbose:
            print(f"[tether-server] {msg}", flush=True)

    def connection_ids(self) -> list[str]:
        return list(self._conns.keys())

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for conn in list(self._conns.values()):
            self._safe_close_socket(conn.sock)
        self._conns.clear()
        self._safe_close_socket(self._listener)

    @staticmethod
    def _safe_close_socket(sock: socket.socket | None) -> None:
        if sock is None:
            return
        try:
            sock.close()
        except OSError:
            pass

    def _send(self, conn_id: str, event: str, data: object) -> None:
        conn = self._conns.get(conn_id)
        if conn is None or conn_id in self._dead:
            return
        try:
            conn.sock.sendall(encode_event(event, data))
        except OSError:
            # Dropped at the end of the current poll so removal goes through the relay once.
            self._dead.add(conn_id)

    def _accept_tcp(self) -> None:
        while True:
            try:
                cs, addr = self._listener.accept()
            except BlockingIOError:
                return
            cs.setblocking(False)
            conn_id = secrets.token_hex(10)
            self._conns[conn_id] = _Connection(conn_id=conn_id, sock=cs)
            self._log(f"A user connected: {conn_id} from {addr[0]}:{addr[1]}")
            self._send(conn_id, EV_CONNECTED, {"id": conn_id, "v": PROTOCOL_VERSION})

    def _process_tcp(self) -> None:
        for conn in list(self._conns.values()):
            if conn.conn_id in self._dead:
                continue
            try:
                data = conn.sock.recv(8192)
            except BlockingIOError:
                continue
            except OSError:
                self._dead.add(conn.conn_id)
                continue
            if not data:
                self._dead.add(conn.conn_id)
                continue
            lines, conn.buf = split_lines(conn.buf + data)
            if len(conn.buf) > MAX_LINE_BYTES:
                self.error_log.log_message(context=f"server:{conn.conn_id}", message="Line too long; dropping client")
                self._dead.add(conn.conn_id)
                continue
            for line in lines:
                parsed = decode_event_line(line)
                if parsed is None:
                    continue
                event, payload = parsed
                if event not in CLIENT_EVENTS:
                    continue
                self.relay.handle(conn.conn_id, event, payload)

    def _drop_dead(self) -> None:
        while self._dead:
            conn_id = self._dead.pop()
            conn = self._conns.pop(conn_id, None)
            if conn is None:
                continue
            self._safe_close_socket(conn.sock)
            self._log(f"User disconnected: {conn_id}")
            self.relay.on_disconnect(conn_id)

    def poll_once(self) -> None:
        self._accept_tcp()
        self._process_tcp()
        self._drop_dead()

    def run_forever(self, *, stop_event: threading.Event | None = None) -> None:
        self._log(f"Server running on {self.host}:{self.port}")
        try:
            while True:
                if stop_event is not None and stop_event.is_set():
                    break
                self.poll_once()
                time.sleep(0.002)
        finally:
            self.close()


class EmbeddedHostServer:
    """Runs a RelayServer on a daemon thread (local hosting and tests)."""

    def __init__(self, *, host: str = "127.0.0.1", port: int = 0, verbose: bool = False) -> None:
        self._srv = RelayServer(host=host, port=port, verbose=verbose)
        self._stop = threading.Event()
        self._thread = threading.Thread(
            target=self._srv.run_forever,
            kwargs={"stop_event": self._stop},
            daemon=True,
            name="tether-embedded-host",
        )

    @property
    def port(self) -> int:
        return self._srv.port

    @property
    def server(self) -> RelayServer:
        return self._srv

    def start(self) -> None:
        self._thread.start()

    def stop(self, *, timeout_s: float = 2.0) -> None:
        self._stop.set()
        self._thread.join(timeout=max(0.1, float(timeout_s)))
        self._srv.close()


def run_server(
    *,
    host: str,
    port: int,
    max_players: int = MAX_PLAYERS_PER_ROOM,
    spawn_slots: tuple[SpawnSlot, ...] = DEFAULT_SPAWN_SLOTS,
    verbose: bool = True,
) -> None:
    directory = RoomDirectory(max_players=max_players, spawn_slots=spawn_slots)
    srv = RelayServer(host=host, port=port, directory=directory, verbose=verbose)
    try:
        srv.run_forever()
    except KeyboardInterrupt:
        print("\n[tether-server] Shutting down...", flush=True)
