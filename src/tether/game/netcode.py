from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

from panda3d.core import LVector3f

from tether.common.error_log import ErrorLog
from tether.net.client import EV_DISCONNECT, RoomClient
from tether.net.errors import CreationTimeout, InvalidRoomData, NotConnected
from tether.net.protocol import (
    EV_CONNECTED,
    EV_CREATE_ROOM,
    EV_JOIN_ROOM,
    EV_LEAVE_ROOM,
    EV_PLAYER_DISCONNECTED,
    EV_PLAYER_JOINED,
    EV_PLAYER_MOVE,
    EV_PLAYER_MOVED,
    EV_ROOM_CLOSED,
    EV_ROOM_CREATED,
    EV_ROOM_ERROR,
    EV_ROOM_JOINED,
    ROOM_CODE_RE,
    normalize_room_code,
    parse_vec,
    vec_payload,
)

DEFAULT_CREATE_TIMEOUT_S = 5.0


@dataclass
class RemotePlayer:
    player_id: str
    pos: LVector3f = field(default_factory=lambda: LVector3f(0, 0, 0))
    rotation: LVector3f = field(default_factory=lambda: LVector3f(0, 0, 0))
    color: int = 0xFF0000


class _StatusSink:
    def __init__(self) -> None:
        self.last_status = ""

    def set_status(self, text: str) -> None:
        self.last_status = str(text)


class NetSession:
    """
    Client side of the room protocol.

    Outbound: room requests plus one `playerMove` per tick while in a room.
    Inbound: events are applied directly to `remote` (last write wins, no interpolation).
    `ui` is any object with `set_status(text)`.
    """

    def __init__(
        self,
        *,
        client: RoomClient,
        ui=None,
        error_log: ErrorLog | None = None,
        create_timeout_s: float = DEFAULT_CREATE_TIMEOUT_S,
        clock: Callable[[], float] = time.monotonic,
        verbose: bool = False,
    ) -> None:
        self.client = client
        self.ui = ui if ui is not None else _StatusSink()
        self.error_log = error_log if error_log is not None else ErrorLog()
        self.create_timeout_s = max(0.0, float(create_timeout_s))
        self._clock = clock
        self.verbose = bool(verbose)

        self.room_code: str | None = None
        self.remote: RemotePlayer | None = None
        self.last_error: Exception | None = None
        self._create_deadline: float | None = None
        self._handlers: dict[str, Callable[[object], None]] = {
            EV_CONNECTED: self._on_connected,
            EV_DISCONNECT: self._on_disconnect,
            EV_ROOM_CREATED: self._on_room_created,
            EV_ROOM_JOINED: self._on_room_joined,
            EV_PLAYER_JOINED: self._on_player_joined,
            EV_PLAYER_MOVED: self._on_player_moved,
            EV_PLAYER_DISCONNECTED: self._on_player_disconnected,
            EV_ROOM_ERROR: self._on_room_error,
            EV_ROOM_CLOSED: self._on_room_closed,
        }

    def _log(self, msg: str) -> None:
        if self.verbose:
            print(f"[tether-client] {msg}", flush=True)

    def _status(self, text: str) -> None:
        self.ui.set_status(text)

    @property
    def local_id(self) -> str | None:
        return self.client.client_id

    @property
    def in_room(self) -> bool:
        return self.room_code is not None

    @property
    def awaiting_room(self) -> bool:
        return self._create_deadline is not None

    def create_room(self) -> None:
        if not self.client.connected:
            self._status("Not connected to server. Please make sure the server is running.")
            raise NotConnected()
        self._status("Creating room...")
        self._create_deadline = float(self._clock()) + self.create_timeout_s
        self.client.emit(EV_CREATE_ROOM)

    def join_room(self, raw_code: str) -> bool:
        if not self.client.connected:
            self._status("Not connected to server. Please refresh the page.")
            raise NotConnected()
        code = normalize_room_code(raw_code)
        if code is None:
            self._status("Please enter a room code")
            return False
        self._status("Joining room...")
        self.client.emit(EV_JOIN_ROOM, code)
        return True

    def leave_room(self) -> None:
        if self.room_code is not None:
            self.client.emit(EV_LEAVE_ROOM, self.room_code)
        self.room_code = None
        self._create_deadline = None
        self.remote = None

    def send_local_state(self, *, pos: LVector3f, rotation: LVector3f) -> bool:
        if self.room_code is None:
            return False
        return self.client.emit(
            EV_PLAYER_MOVE,
            {"roomCode": self.room_code, "position": vec_payload(pos), "rotation": vec_payload(rotation)},
        )

    def poll(self) -> None:
        self.client.maintain(float(self._clock()))
        for event, data in self.client.poll():
            handler = self._handlers.get(event)
            if handler is None:
                continue
            handler(data)
        self._check_create_watchdog()

    def _check_create_watchdog(self) -> None:
        if self._create_deadline is None or float(self._clock()) < self._create_deadline:
            return
        self._create_deadline = None
        exc = CreationTimeout(self.create_timeout_s)
        self.last_error = exc
        self.error_log.log_message(context="net:createRoom", message=str(exc))
        self._status(str(exc))

    def _spawn_remote(self, payload: dict) -> None:
        pid = payload.get("id")
        if not isinstance(pid, str) or not pid or pid == self.local_id:
            return
        pos = parse_vec(payload.get("position")) or (0.0, 0.0, 0.0)
        rot = parse_vec(payload.get("rotation")) or (0.0, 0.0, 0.0)
        color = payload.get("color")
        self.remote = RemotePlayer(
            player_id=pid,
            pos=LVector3f(*pos),
            rotation=LVector3f(*rot),
            color=int(color) if isinstance(color, int) and not isinstance(color, bool) else 0xFF0000,
        )

    def _on_connected(self, _data: object) -> None:
        self._log(f"Connected to server with ID: {self.local_id}")
        self._status("Connected to server")

    def _on_disconnect(self, data: object) -> None:
        self._log(f"Disconnected from server: {data}")
        self.room_code = None
        self.remote = None
        self._create_deadline = None
        self._status("Disconnected from server")

    def _on_room_created(self, data: object) -> None:
        self._create_deadline = None
        code = normalize_room_code(data.get("roomCode")) if isinstance(data, dict) else None
        if code is None or not ROOM_CODE_RE.match(code):
            exc = InvalidRoomData(data)
            self.last_error = exc
            self.error_log.log_message(context="net:roomCreated", message=f"{exc}: {data!r}")
            self._status(f"Error: {exc}")
            return
        self.room_code = code
        self.remote = None
        self._status("Room created! Share this code with others")

    def _on_room_joined(self, data: object) -> None:
        if not isinstance(data, dict):
            return
        code = normalize_room_code(data.get("roomCode"))
        if code is None:
            return
        self.room_code = code
        self.remote = None
        players = data.get("players")
        if isinstance(players, list):
            for entry in players:
                if isinstance(entry, dict):
                    self._spawn_remote(entry)
        self._status("Successfully joined room!")

    def _on_player_joined(self, data: object) -> None:
        if not isinstance(data, dict):
            return
        self._spawn_remote(data)
        self._status("Another player joined!")

    def _on_player_moved(self, data: object) -> None:
        remote = self.remote
        if remote is None or not isinstance(data, dict) or data.get("id") != remote.player_id:
            return
        pos = parse_vec(data.get("position"))
        rot = parse_vec(data.get("rotation"))
        if pos is not None:
            remote.pos = LVector3f(*pos)
        if rot is not None:
            remote.rotation = LVector3f(*rot)

    def _on_player_disconnected(self, data: object) -> None:
        self._status("A player has left the room")
        if self.remote is not None and data == self.remote.player_id:
            self.remote = None

    def _on_room_error(self, data: object) -> None:
        self._create_deadline = None
        message = str(data) if data is not None else "Unknown error"
        self.error_log.log_message(context="net:roomError", message=message)
        self._status(f"Error: {message}")

    def _on_room_closed(self, _data: object) -> None:
        self.room_code = None
        self.remote = None
        self._status("Room has been closed by the host")
