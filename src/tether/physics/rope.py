from __future__ import annotations

import math

from panda3d.core import LVector3f


def apply_rope_constraint(a: LVector3f, b: LVector3f, *, max_length: float) -> bool:
    """
    Pull `a` and `b` toward each other until they are at most `max_length` apart.

    Each end moves half of the excess along the line between them, so the midpoint is unchanged.
    Both vectors are modified in place. Returns True when a correction was applied.
    """

    delta = b - a
    dist = float(delta.length())
    limit = max(0.0, float(max_length))
    if dist <= limit or dist <= 1e-9:
        return False
    direction = delta / dist
    correction = direction * ((dist - limit) * 0.5)
    a.x = float(a.x) + float(correction.x)
    a.y = float(a.y) + float(correction.y)
    a.z = float(a.z) + float(correction.z)
    b.x = float(b.x) - float(correction.x)
    b.y = float(b.y) - float(correction.y)
    b.z = float(b.z) - float(correction.z)
    return True


class RopeCurve:
    """Visual rope between two players: straight line with an upward bow at the middle."""

    def __init__(self, *, segments: int = 10, bow_height: float = 0.5) -> None:
        self.segments = max(1, int(segments))
        self.bow_height = float(bow_height)
        self.points = [LVector3f(0, 0, 0) for _ in range(self.segments + 1)]

    def update(self, start: LVector3f, end: LVector3f) -> list[LVector3f]:
        for i, p in enumerate(self.points):
            t = float(i) / float(self.segments)
            p.x = float(start.x) + (float(end.x) - float(start.x)) * t
            p.y = float(start.y) + (float(end.y) - float(start.y)) * t + math.sin(t * math.pi) * self.bow_height
            p.z = float(start.z) + (float(end.z) - float(start.z)) * t
        return self.points
