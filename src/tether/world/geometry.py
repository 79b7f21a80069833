from __future__ import annotations

import math
from dataclasses import dataclass, field

from panda3d.core import LVector3f

from tether.common.aabb import AABB


@dataclass(frozen=True)
class Oscillation:
    origin_y: float
    amplitude: float
    speed: float

    def height_at(self, t: float) -> float:
        return float(self.origin_y) + float(self.amplitude) * math.sin(float(t) * float(self.speed))


@dataclass
class Platform:
    center: LVector3f
    half_extents: LVector3f
    oscillation: Oscillation | None = None
    bounds: AABB = field(init=False)

    def __post_init__(self) -> None:
        self.center = LVector3f(self.center)
        self.half_extents = LVector3f(self.half_extents)
        self.bounds = AABB.from_center(self.center, self.half_extents)

    @property
    def top(self) -> float:
        return float(self.center.y) + float(self.half_extents.y)

    def update(self, now: float) -> None:
        if self.oscillation is None:
            return
        self.center.y = self.oscillation.height_at(now)
        self.bounds.set_from_center(self.center, self.half_extents)


@dataclass
class Rock:
    """Convex rock approximated by the cube enclosing its bounding sphere."""

    center: LVector3f
    radius: float = 2.0
    scale: float = 1.0
    bounds: AABB = field(init=False)

    def __post_init__(self) -> None:
        self.center = LVector3f(self.center)
        e = self.extent
        self.bounds = AABB.from_center(self.center, LVector3f(e, e, e))

    @property
    def extent(self) -> float:
        return float(self.radius) * float(self.scale)

    @property
    def top(self) -> float:
        return float(self.center.y) + self.extent


@dataclass
class World:
    platforms: list[Platform] = field(default_factory=list)
    rocks: list[Rock] = field(default_factory=list)

    def update(self, now: float) -> None:
        """Re-evaluate moving platforms for wall-clock time `now` (seconds)."""

        for platform in self.platforms:
            platform.update(now)
