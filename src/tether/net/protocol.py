from __future__ import annotations

import json
import math
import re

PROTOCOL_VERSION = 1

# Server -> client greeting carrying the connection id; the rest mirror the room event table.
EV_CONNECTED = "connected"
EV_CREATE_ROOM = "createRoom"
EV_ROOM_CREATED = "roomCreated"
EV_JOIN_ROOM = "joinRoom"
EV_ROOM_JOINED = "roomJoined"
EV_PLAYER_JOINED = "playerJoined"
EV_PLAYER_MOVE = "playerMove"
EV_PLAYER_MOVED = "playerMoved"
EV_LEAVE_ROOM = "leaveRoom"
EV_PLAYER_DISCONNECTED = "playerDisconnected"
EV_ROOM_CLOSED = "roomClosed"
EV_ROOM_ERROR = "roomError"

CLIENT_EVENTS = frozenset({EV_CREATE_ROOM, EV_JOIN_ROOM, EV_PLAYER_MOVE, EV_LEAVE_ROOM})

ROOM_CODE_LENGTH = 6
ROOM_CODE_ALPHABET = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"
ROOM_CODE_RE = re.compile(r"^[A-Z0-9]{6}$")

MAX_LINE_BYTES = 64 * 1024

Vec3 = tuple[float, float, float]


def encode_event(event: str, data: object = None) -> bytes:
    obj: dict = {"t": str(event)}
    if data is not None:
        obj["d"] = data
    return (json.dumps(obj, separators=(",", ":"), ensure_ascii=True) + "\n").encode("utf-8")


def decode_event_line(line: bytes) -> tuple[str, object] | None:
    try:
        s = line.decode("utf-8", errors="ignore").strip()
        if not s:
            return None
        v = json.loads(s)
    except ValueError:
        return None
    if not isinstance(v, dict):
        return None
    event = v.get("t")
    if not isinstance(event, str) or not event:
        return None
    return (event, v.get("d"))


def split_lines(buf: bytes) -> tuple[list[bytes], bytes]:
    """Split complete newline-terminated lines off `buf`; returns (lines, remainder)."""

    lines: list[bytes] = []
    while b"\n" in buf:
        line, buf = buf.split(b"\n", 1)
        lines.append(line)
    return lines, buf


def normalize_room_code(raw: object) -> str | None:
    if not isinstance(raw, str):
        return None
    code = raw.strip().upper()
    return code or None


def vec_payload(v) -> dict[str, float]:
    """Accepts an (x, y, z) tuple or any object with x/y/z attributes."""

    if isinstance(v, (tuple, list)):
        x, y, z = v
    else:
        x, y, z = v.x, v.y, v.z
    return {"x": float(x), "y": float(y), "z": float(z)}


def parse_vec(obj: object) -> Vec3 | None:
    if not isinstance(obj, dict):
        return None
    out: list[float] = []
    for key in ("x", "y", "z"):
        value = obj.get(key)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        f = float(value)
        if not math.isfinite(f):
            return None
        out.append(f)
    return (out[0], out[1], out[2])
