from __future__ import annotations

import random

from panda3d.core import LVector3f

from tether.world.geometry import Oscillation, Platform, Rock, World

PLATFORM_SPACING = 15.0
EXTRA_PLATFORM_COUNT = 8
ROCK_COUNT = 15
MIN_PLATFORM_HEIGHT = 2.0

# (x, y, z, width, depth); starting platforms are one unit thick.
_START_PLATFORMS = (
    (0.0, 2.0, 0.0, 8.0, 8.0),
    (12.0, 2.0, 0.0, 6.0, 6.0),
    (-12.0, 2.0, 0.0, 6.0, 6.0),
    (0.0, 2.0, 12.0, 6.0, 6.0),
    (0.0, 2.0, -12.0, 6.0, 6.0),
)
_DIRECTIONS = ((1.0, 0.0), (-1.0, 0.0), (0.0, 1.0), (0.0, -1.0))


def _box(x: float, y: float, z: float, width: float, height: float, depth: float) -> Platform:
    return Platform(center=LVector3f(x, y, z), half_extents=LVector3f(width * 0.5, height * 0.5, depth * 0.5))


def build_platforms(rng: random.Random) -> list[Platform]:
    platforms = [_box(x, y, z, w, 1.0, d) for (x, y, z, w, d) in _START_PLATFORMS]
    for _ in range(EXTRA_PLATFORM_COUNT):
        base = rng.choice(platforms)
        dx, dz = rng.choice(_DIRECTIONS)
        y = float(base.center.y) + (rng.random() - 0.5) * 4.0
        size = 5.0 + rng.random() * 3.0
        platforms.append(
            _box(
                float(base.center.x) + dx * PLATFORM_SPACING,
                max(MIN_PLATFORM_HEIGHT, y),
                float(base.center.z) + dz * PLATFORM_SPACING,
                size,
                0.5,
                size,
            )
        )
    return platforms


def build_moving_platforms() -> list[Platform]:
    return [
        Platform(
            center=LVector3f(24.0, 4.0, 12.0),
            half_extents=LVector3f(2.5, 0.25, 2.5),
            oscillation=Oscillation(origin_y=4.0, amplitude=2.0, speed=1.0),
        ),
        Platform(
            center=LVector3f(-24.0, 4.0, -12.0),
            half_extents=LVector3f(2.5, 0.25, 2.5),
            oscillation=Oscillation(origin_y=4.0, amplitude=1.5, speed=1.6),
        ),
    ]


def build_rocks(rng: random.Random) -> list[Rock]:
    rocks: list[Rock] = []
    for _ in range(ROCK_COUNT):
        x = (rng.random() - 0.5) * 70.0
        z = (rng.random() - 0.5) * 70.0
        scale = 0.5 + rng.random() * 1.5
        rocks.append(Rock(center=LVector3f(x, 1.0, z), radius=2.0, scale=scale))
    return rocks


def build_default_world(*, seed: int | None = None, moving_platforms: bool = True) -> World:
    """Starting area plus randomly grown platforms and scattered rocks.

    Both peers should pass the same seed so their collision geometry matches.
    """

    rng = random.Random(seed)
    platforms = build_platforms(rng)
    if moving_platforms:
        platforms.extend(build_moving_platforms())
    return World(platforms=platforms, rocks=build_rocks(rng))
