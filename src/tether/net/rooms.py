from __future__ import annotations

import secrets
from collections.abc import Callable
from dataclasses import dataclass, field

from tether.net.errors import RoomFull, RoomNotFound
from tether.net.protocol import ROOM_CODE_ALPHABET, ROOM_CODE_LENGTH, Vec3, normalize_room_code, vec_payload

MAX_PLAYERS_PER_ROOM = 2


@dataclass(frozen=True)
class SpawnSlot:
    position: Vec3
    color: int


# Host slot first; joiners take the next free slot so spawns and colors never repeat within a room.
DEFAULT_SPAWN_SLOTS: tuple[SpawnSlot, ...] = (
    SpawnSlot(position=(0.0, 1.0, 0.0), color=0x00FF00),
    SpawnSlot(position=(3.0, 1.0, 0.0), color=0xFF0000),
)


@dataclass
class Player:
    id: str
    position: Vec3
    rotation: Vec3 = (0.0, 0.0, 0.0)
    color: int = 0x00FF00

    def to_payload(self) -> dict:
        return {
            "id": self.id,
            "position": vec_payload(self.position),
            "rotation": vec_payload(self.rotation),
            "color": int(self.color),
        }


@dataclass
class Room:
    code: str
    host: str
    players: dict[str, Player] = field(default_factory=dict)

    def member_ids(self) -> list[str]:
        return list(self.players.keys())

    def snapshot(self) -> list[dict]:
        return [p.to_payload() for p in self.players.values()]


@dataclass(frozen=True)
class Removal:
    """Outcome of taking a connection out of a room."""

    code: str
    player_id: str
    closed: bool
    # Members still connected to the room's audience at the time of removal.
    audience: tuple[str, ...]


def generate_room_code(choice: Callable[[str], str] = secrets.choice) -> str:
    return "".join(choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))


class RoomDirectory:
    """Owns room code -> Room and connection -> room code. Not thread-safe; one event loop mutates it."""

    def __init__(
        self,
        *,
        max_players: int = MAX_PLAYERS_PER_ROOM,
        spawn_slots: tuple[SpawnSlot, ...] = DEFAULT_SPAWN_SLOTS,
        code_factory: Callable[[], str] = generate_room_code,
    ) -> None:
        if not spawn_slots:
            raise ValueError("At least one spawn slot is required")
        self.max_players = max(1, int(max_players))
        self.spawn_slots = tuple(spawn_slots)
        self._code_factory = code_factory
        self._rooms: dict[str, Room] = {}
        self._room_by_conn: dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._rooms)

    def codes(self) -> list[str]:
        return list(self._rooms.keys())

    def get(self, code: object) -> Room | None:
        key = normalize_room_code(code)
        if key is None:
            return None
        return self._rooms.get(key)

    def room_of(self, conn_id: str) -> str | None:
        return self._room_by_conn.get(conn_id)

    def create_room(self, conn_id: str) -> Room:
        code = self._code_factory()
        # Six base-36 characters leave collisions vanishingly rare; still never hand out a live code.
        while code in self._rooms:
            code = self._code_factory()
        slot = self._slot_for(0)
        room = Room(code=code, host=conn_id)
        room.players[conn_id] = Player(id=conn_id, position=slot.position, color=slot.color)
        self._rooms[code] = room
        self._room_by_conn[conn_id] = code
        return room

    def check_joinable(self, code: object, conn_id: str) -> Room:
        """Return the room `conn_id` could join right now, or raise without touching anything."""

        room = self.get(code)
        if room is None:
            raise RoomNotFound(normalize_room_code(code))
        if conn_id not in room.players and len(room.players) >= self.max_players:
            raise RoomFull(room.code)
        return room

    def join_room(self, code: object, conn_id: str) -> Room:
        room = self.check_joinable(code, conn_id)
        if conn_id in room.players:
            return room
        slot = self._free_slot(room)
        room.players[conn_id] = Player(id=conn_id, position=slot.position, color=slot.color)
        self._room_by_conn[conn_id] = room.code
        return room

    def remove_player(self, code: object, conn_id: str) -> Removal | None:
        room = self.get(code)
        if room is None or conn_id not in room.players:
            return None
        del room.players[conn_id]
        self._room_by_conn.pop(conn_id, None)
        audience = tuple(room.players.keys())
        closed = room.host == conn_id
        if closed:
            for member in audience:
                self._room_by_conn.pop(member, None)
            room.players.clear()
            del self._rooms[room.code]
        return Removal(code=room.code, player_id=conn_id, closed=closed, audience=audience)

    def update_player(self, code: object, conn_id: str, *, position: Vec3, rotation: Vec3) -> Room | None:
        room = self.get(code)
        if room is None:
            return None
        player = room.players.get(conn_id)
        if player is None:
            return None
        player.position = position
        player.rotation = rotation
        return room

    def _slot_for(self, index: int) -> SpawnSlot:
        return self.spawn_slots[min(max(0, int(index)), len(self.spawn_slots) - 1)]

    def _free_slot(self, room: Room) -> SpawnSlot:
        taken = {p.color for p in room.players.values()}
        for slot in self.spawn_slots[1:]:
            if slot.color not in taken:
                return slot
        return self._slot_for(len(room.players))
