from __future__ import annotations

from dataclasses import dataclass

from panda3d.core import LVector3f


@dataclass
class AABB:
    """Axis-aligned box. Mutated in place so per-tick collision checks do not allocate."""

    minimum: LVector3f
    maximum: LVector3f

    @classmethod
    def from_center(cls, center: LVector3f, half: LVector3f) -> AABB:
        box = cls(minimum=LVector3f(0, 0, 0), maximum=LVector3f(0, 0, 0))
        box.set_from_center(center, half)
        return box

    def set_from_center(self, center: LVector3f, half: LVector3f) -> None:
        self.minimum.x = float(center.x) - float(half.x)
        self.minimum.y = float(center.y) - float(half.y)
        self.minimum.z = float(center.z) - float(half.z)
        self.maximum.x = float(center.x) + float(half.x)
        self.maximum.y = float(center.y) + float(half.y)
        self.maximum.z = float(center.z) + float(half.z)

    def overlap(self, other: AABB) -> tuple[float, float, float]:
        # Positive on an axis means the boxes interpenetrate along it by that much.
        return (
            min(float(self.maximum.x) - float(other.minimum.x), float(other.maximum.x) - float(self.minimum.x)),
            min(float(self.maximum.y) - float(other.minimum.y), float(other.maximum.y) - float(self.minimum.y)),
            min(float(self.maximum.z) - float(other.minimum.z), float(other.maximum.z) - float(self.minimum.z)),
        )

    def intersects(self, other: AABB, *, tolerance: float = 0.0) -> bool:
        ox, oy, oz = self.overlap(other)
        tol = max(0.0, float(tolerance))
        return ox > tol and oy > tol and oz > tol

    def contains_point(self, p: LVector3f) -> bool:
        return (
            float(self.minimum.x) <= float(p.x) <= float(self.maximum.x)
            and float(self.minimum.y) <= float(p.y) <= float(self.maximum.y)
            and float(self.minimum.z) <= float(p.z) <= float(self.maximum.z)
        )
