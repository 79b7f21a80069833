from __future__ import annotations

import os
from dataclasses import dataclass

from tether.net.rooms import DEFAULT_SPAWN_SLOTS, MAX_PLAYERS_PER_ROOM, SpawnSlot

DEFAULT_PORT = 3000
# Both peers must build the same world; there is no geometry sync on the wire.
DEFAULT_WORLD_SEED = 7


def env_port(default: int = DEFAULT_PORT) -> int:
    """TETHER_PORT, then PORT, then `default`. Non-numeric values are ignored."""

    for key in ("TETHER_PORT", "PORT"):
        raw = os.environ.get(key)
        if raw is None or not raw.strip():
            continue
        try:
            return int(raw)
        except ValueError:
            continue
    return int(default)


def env_host(default: str) -> str:
    raw = os.environ.get("TETHER_HOST")
    return raw.strip() if raw and raw.strip() else str(default)


@dataclass(frozen=True)
class ServerConfig:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    max_players: int = MAX_PLAYERS_PER_ROOM
    # Host slot first, then joiners.
    spawn_slots: tuple[SpawnSlot, ...] = DEFAULT_SPAWN_SLOTS
    verbose: bool = True

    @classmethod
    def from_env(cls) -> ServerConfig:
        return cls(host=env_host("0.0.0.0"), port=env_port())


@dataclass(frozen=True)
class ClientConfig:
    host: str = "127.0.0.1"
    port: int = DEFAULT_PORT
    # Shown in client log lines only; the relay identifies players by connection id.
    name: str = "player"
    tuning_profile: str = "classic"
    world_seed: int = DEFAULT_WORLD_SEED
    reconnect_attempts: int = 5
    reconnect_delay_s: float = 1.0
    create_timeout_s: float = 5.0
    tick_rate: float = 60.0

    @classmethod
    def from_env(cls) -> ClientConfig:
        return cls(host=env_host("127.0.0.1"), port=env_port())
