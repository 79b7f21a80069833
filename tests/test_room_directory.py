from __future__ import annotations

import random

import pytest

from tether.net.errors import RoomFull, RoomNotFound
from tether.net.protocol import ROOM_CODE_RE
from tether.net.rooms import RoomDirectory, generate_room_code


def _codes(*values: str):
    it = iter(values)
    return lambda: next(it)


def test_generated_codes_are_six_uppercase_base36_chars() -> None:
    rng = random.Random(3)
    for _ in range(50):
        assert ROOM_CODE_RE.match(generate_room_code(rng.choice))


def test_create_room_assigns_host_spawn_and_color() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    room = d.create_room("host")

    assert room.code == "ABC123"
    assert room.host == "host"
    assert room.member_ids() == ["host"]
    assert room.players["host"].position == (0.0, 1.0, 0.0)
    assert room.players["host"].color == 0x00FF00
    assert d.room_of("host") == "ABC123"


def test_create_room_skips_codes_already_in_use() -> None:
    d = RoomDirectory(code_factory=_codes("AAAAAA", "AAAAAA", "BBBBBB"))
    d.create_room("a")
    room = d.create_room("b")
    assert room.code == "BBBBBB"
    assert sorted(d.codes()) == ["AAAAAA", "BBBBBB"]


def test_join_is_case_insensitive_and_gives_distinct_spawn_and_color() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")
    room = d.join_room("  abc123 ", "guest")

    host, guest = room.players["host"], room.players["guest"]
    assert guest.position == (3.0, 1.0, 0.0)
    assert guest.color == 0xFF0000
    assert host.position != guest.position
    assert host.color != guest.color
    assert [p["id"] for p in room.snapshot()] == ["host", "guest"]


def test_join_unknown_room_raises_without_mutation() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")

    with pytest.raises(RoomNotFound):
        d.join_room("ZZZZZZ", "guest")
    with pytest.raises(RoomNotFound):
        d.join_room(None, "guest")

    assert len(d) == 1
    assert d.get("ABC123").member_ids() == ["host"]
    assert d.room_of("guest") is None


def test_third_player_is_rejected_when_room_is_full() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")
    d.join_room("ABC123", "guest")

    with pytest.raises(RoomFull) as info:
        d.join_room("ABC123", "third")
    assert str(info.value) == "Room is full"
    assert d.get("ABC123").member_ids() == ["host", "guest"]


def test_rejoining_same_room_is_idempotent() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")
    d.join_room("ABC123", "guest")
    room = d.join_room("abc123", "guest")
    assert room.member_ids() == ["host", "guest"]


def test_removing_guest_keeps_room_and_reports_audience() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")
    d.join_room("ABC123", "guest")

    removal = d.remove_player("ABC123", "guest")

    assert removal is not None
    assert removal.closed is False
    assert removal.audience == ("host",)
    assert d.get("ABC123").member_ids() == ["host"]
    assert d.room_of("guest") is None


def test_removing_host_deletes_room_and_clears_members() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")
    d.join_room("ABC123", "guest")

    removal = d.remove_player("abc123", "host")

    assert removal is not None
    assert removal.closed is True
    assert removal.audience == ("guest",)
    assert len(d) == 0
    assert d.room_of("guest") is None
    with pytest.raises(RoomNotFound):
        d.join_room("ABC123", "late")


def test_remove_unknown_player_is_noop() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")
    assert d.remove_player("ABC123", "stranger") is None
    assert d.remove_player("NOPE00", "host") is None
    assert d.get("ABC123").member_ids() == ["host"]


def test_guest_slot_is_reused_after_leave() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")
    d.join_room("ABC123", "g1")
    d.remove_player("ABC123", "g1")
    room = d.join_room("ABC123", "g2")
    assert room.players["g2"].color == 0xFF0000


def test_update_player_only_for_members() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")

    room = d.update_player("ABC123", "host", position=(1.0, 2.0, 3.0), rotation=(0.0, 0.5, 0.0))
    assert room is not None
    assert room.players["host"].to_payload()["position"] == {"x": 1.0, "y": 2.0, "z": 3.0}
    assert d.update_player("ABC123", "stranger", position=(0.0, 0.0, 0.0), rotation=(0.0, 0.0, 0.0)) is None


def test_membership_matches_random_operation_sequences() -> None:
    rng = random.Random(11)
    counter = iter(range(10_000))
    d = RoomDirectory(max_players=4, code_factory=lambda: f"R{next(counter):05d}")
    expected: dict[str, set[str]] = {}
    hosts: dict[str, str] = {}
    conns = [f"c{i}" for i in range(8)]

    for _ in range(400):
        conn = rng.choice(conns)
        op = rng.choice(("create", "join", "leave"))
        current = d.room_of(conn)
        if op == "create" and current is None:
            room = d.create_room(conn)
            expected[room.code] = {conn}
            hosts[room.code] = conn
        elif op == "join" and current is None and expected:
            code = rng.choice(sorted(expected))
            try:
                d.join_room(code, conn)
            except RoomFull:
                continue
            expected[code].add(conn)
        elif op == "leave" and current is not None:
            d.remove_player(current, conn)
            if hosts[current] == conn:
                del expected[current]
                del hosts[current]
            else:
                expected[current].discard(conn)

        assert sorted(d.codes()) == sorted(expected)
        for code, members in expected.items():
            assert set(d.get(code).member_ids()) == members
            for member in members:
                assert d.room_of(member) == code


def test_check_joinable_never_mutates() -> None:
    d = RoomDirectory(code_factory=_codes("ABC123"))
    d.create_room("host")
    d.join_room("ABC123", "guest")

    assert d.check_joinable("abc123", "guest").code == "ABC123"
    with pytest.raises(RoomFull):
        d.check_joinable("ABC123", "third")
    with pytest.raises(RoomNotFound):
        d.check_joinable("ZZZZZZ", "third")
    assert d.room_of("third") is None
    assert d.get("ABC123").member_ids() == ["host", "guest"]
