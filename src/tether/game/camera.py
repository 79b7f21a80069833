from __future__ import annotations

import math

from panda3d.core import LVector3f

from tether.physics.tuning import PhysicsTuning


class FollowCamera:
    """Third-person camera orbiting the local player, or the pair's midpoint when a partner exists."""

    def __init__(self, *, tuning: PhysicsTuning) -> None:
        self.tuning = tuning
        self.yaw = 0.0
        self.pitch = 0.0
        self.pos = LVector3f(0.0, float(tuning.camera_height), float(tuning.camera_distance))

    def apply_look(self, *, dx: float, dy: float) -> None:
        sens = float(self.tuning.mouse_sensitivity)
        limit = abs(float(self.tuning.camera_pitch_limit))
        yaw = self.yaw - float(dx) * sens
        pitch = self.pitch - float(dy) * sens
        if not (math.isfinite(yaw) and math.isfinite(pitch)):
            return
        self.yaw = yaw
        self.pitch = max(-limit, min(limit, pitch))

    def offset(self) -> LVector3f:
        # (0, height, distance) rotated by pitch about x, then yaw about y.
        h = float(self.tuning.camera_height)
        d = float(self.tuning.camera_distance)
        cp = math.cos(self.pitch)
        sp = math.sin(self.pitch)
        y = h * cp - d * sp
        z = h * sp + d * cp
        return LVector3f(z * math.sin(self.yaw), y, z * math.cos(self.yaw))

    @staticmethod
    def target_for(local_pos: LVector3f, remote_pos: LVector3f | None) -> LVector3f:
        if remote_pos is None:
            return LVector3f(local_pos)
        return (LVector3f(local_pos) + LVector3f(remote_pos)) * 0.5

    def follow(self, *, local_pos: LVector3f, remote_pos: LVector3f | None = None) -> LVector3f:
        candidate = self.target_for(local_pos, remote_pos) + self.offset()
        if math.isfinite(float(candidate.x)) and math.isfinite(float(candidate.y)) and math.isfinite(float(candidate.z)):
            self.pos = candidate
        return LVector3f(self.pos)
