from __future__ import annotations

from collections.abc import Callable

from tether.common.error_log import ErrorLog
from tether.net.errors import RelayError
from tether.net.protocol import (
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
    normalize_room_code,
    parse_vec,
    vec_payload,
)
from tether.net.rooms import Room, RoomDirectory

# send(conn_id, event, data)
SendFn = Callable[[str, str, object], None]

_FAILURE_REPLIES = {
    EV_CREATE_ROOM: "Failed to create room",
    EV_JOIN_ROOM: "Failed to join room",
}


class SessionRelay:
    """
    Turns inbound per-connection events into directory calls and fans results out via `send`.

    Transport-agnostic: the socket server feeds it decoded events, tests feed it directly.
    """

    def __init__(
        self,
        *,
        directory: RoomDirectory,
        send: SendFn,
        error_log: ErrorLog | None = None,
        verbose: bool = True,
    ) -> None:
        self.directory = directory
        self._send = send
        self.error_log = error_log if error_log is not None else ErrorLog()
        self.verbose = bool(verbose)
        self._handlers: dict[str, Callable[[str, object], None]] = {
            EV_CREATE_ROOM: self.on_create_room,
            EV_JOIN_ROOM: self.on_join_room,
            EV_PLAYER_MOVE: self.on_player_move,
            EV_LEAVE_ROOM: self.on_leave_room,
        }

    def _log(self, msg: str) -> None:
        if self.verbose:
            print(f"[tether-server] {msg}", flush=True)

    def handle(self, conn_id: str, event: str, data: object = None) -> None:
        handler = self._handlers.get(event)
        if handler is None:
            return
        try:
            handler(conn_id, data)
        except Exception as exc:
            # One bad event must not take down other rooms or connections.
            self.error_log.log_exception(context=f"relay:{event}:{conn_id}", exc=exc)
            reply = _FAILURE_REPLIES.get(event)
            if reply is not None:
                self._send(conn_id, EV_ROOM_ERROR, reply)

    def on_create_room(self, conn_id: str, _data: object = None) -> None:
        self._leave_current_room(conn_id)
        room = self.directory.create_room(conn_id)
        self._send(conn_id, EV_ROOM_CREATED, {"roomCode": room.code})
        self._log(f"Room {room.code} created by {conn_id}")

    def on_join_room(self, conn_id: str, data: object) -> None:
        code = normalize_room_code(data)
        current = self.directory.room_of(conn_id)
        if current is not None and current == code:
            room = self.directory.get(code)
            if room is not None:
                self._send(conn_id, EV_ROOM_JOINED, {"roomCode": room.code, "players": room.snapshot()})
            return
        try:
            self.directory.check_joinable(code, conn_id)
        except RelayError as exc:
            # A rejected join leaves the sender where it was.
            self._send(conn_id, EV_ROOM_ERROR, str(exc))
            self._log(f"Join {code!r} by {conn_id} rejected: {exc}")
            return
        if current is not None:
            self._leave_current_room(conn_id)
        room = self.directory.join_room(code, conn_id)
        self._send(conn_id, EV_ROOM_JOINED, {"roomCode": room.code, "players": room.snapshot()})
        joined = room.players[conn_id].to_payload()
        self._broadcast(room, EV_PLAYER_JOINED, joined, exclude=conn_id)
        self._log(f"Player {conn_id} joined room {room.code} (players: {', '.join(room.member_ids())})")

    def on_player_move(self, conn_id: str, data: object) -> None:
        if not isinstance(data, dict):
            return
        position = parse_vec(data.get("position"))
        rotation = parse_vec(data.get("rotation"))
        if position is None or rotation is None:
            return
        room = self.directory.update_player(data.get("roomCode"), conn_id, position=position, rotation=rotation)
        if room is None:
            return
        self._broadcast(
            room,
            EV_PLAYER_MOVED,
            {"id": conn_id, "position": vec_payload(position), "rotation": vec_payload(rotation)},
            exclude=conn_id,
        )

    def on_leave_room(self, conn_id: str, data: object) -> None:
        self._remove(conn_id, data)

    def on_disconnect(self, conn_id: str) -> None:
        code = self.directory.room_of(conn_id)
        if code is not None:
            self._remove(conn_id, code)

    def _leave_current_room(self, conn_id: str) -> None:
        code = self.directory.room_of(conn_id)
        if code is not None:
            self._remove(conn_id, code)

    def _remove(self, conn_id: str, code: object) -> None:
        removal = self.directory.remove_player(code, conn_id)
        if removal is None:
            return
        if removal.closed:
            for member in removal.audience:
                self._send(member, EV_ROOM_CLOSED, None)
            self._log(f"Room {removal.code} closed")
            return
        for member in removal.audience:
            self._send(member, EV_PLAYER_DISCONNECTED, conn_id)
        self._log(f"Player {conn_id} left room {removal.code}")

    def _broadcast(self, room: Room, event: str, data: object, *, exclude: str | None = None) -> None:
        for member in room.member_ids():
            if member == exclude:
                continue
            self._send(member, event, data)
