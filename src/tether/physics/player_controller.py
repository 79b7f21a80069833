from __future__ import annotations

import math
from dataclasses import dataclass

from panda3d.core import LVector3f

from tether.common.aabb import AABB
from tether.physics.tuning import PhysicsTuning
from tether.world.geometry import Platform, Rock, World


@dataclass
class MoveIntent:
    """Input intent for one simulation tick."""

    # -1, 0 or 1 along the camera's flattened forward/right axes.
    move_forward: int = 0
    move_right: int = 0
    jump_pressed: bool = False


def flat_basis(yaw: float) -> tuple[LVector3f, LVector3f]:
    """Camera forward/right projected onto the horizontal plane (y is up, yaw 0 looks down -z)."""

    forward = LVector3f(-math.sin(yaw), 0.0, -math.cos(yaw))
    right = LVector3f(math.cos(yaw), 0.0, -math.sin(yaw))
    return forward, right


def wish_dir(*, yaw: float, move_forward: int, move_right: int) -> LVector3f:
    forward, right = flat_basis(yaw)
    out = LVector3f(0, 0, 0)
    if move_forward > 0:
        out += forward
    if move_forward < 0:
        out -= forward
    if move_right > 0:
        out += right
    if move_right < 0:
        out -= right
    return out


class PlayerController:
    """Per-frame kinematic controller: gravity, platform snapping, rock pushes, ground clamp."""

    def __init__(self, *, tuning: PhysicsTuning, world: World, spawn_point: LVector3f) -> None:
        self.tuning = tuning
        self.world = world
        self.spawn_point = LVector3f(spawn_point)

        self.pos = LVector3f(self.spawn_point)
        self.vel = LVector3f(0, 0, 0)
        self.rotation = LVector3f(0, 0, 0)
        self.jumping = False
        self.grounded = False

        self._half = LVector3f(0, 0, 0)
        self._probe = LVector3f(0, 0, 0)
        self._pending_momentum = LVector3f(0, 0, 0)
        self.bounds = AABB(minimum=LVector3f(0, 0, 0), maximum=LVector3f(0, 0, 0))
        self.apply_hull_settings()

    @property
    def half_height(self) -> float:
        return float(self.tuning.player_height) * 0.5

    def apply_hull_settings(self) -> None:
        w = float(self.tuning.player_half_width)
        self._half.x = w
        self._half.y = self.half_height
        self._half.z = w
        self.refresh_bounds()

    def respawn(self, pos: LVector3f | None = None) -> None:
        if pos is not None:
            self.spawn_point = LVector3f(pos)
        self.pos = LVector3f(self.spawn_point)
        self.vel = LVector3f(0, 0, 0)
        self._pending_momentum = LVector3f(0, 0, 0)
        self.jumping = False
        self.grounded = False
        self.refresh_bounds()

    def jump(self, *, intent: MoveIntent, yaw: float) -> bool:
        if self.jumping or not self.grounded:
            return False
        self.vel.y = float(self.tuning.jump_force)
        forward, right = flat_basis(yaw)
        push = LVector3f(0, 0, 0)
        if intent.move_forward > 0:
            push += forward
        elif intent.move_forward < 0:
            push -= forward
        if intent.move_right > 0:
            push += right
        elif intent.move_right < 0:
            push -= right
        self._pending_momentum = push * float(self.tuning.jump_momentum)
        self.jumping = True
        self.grounded = False
        return True

    def step(self, *, intent: MoveIntent, yaw: float) -> None:
        self.vel.x = 0.0
        self.vel.z = 0.0
        self.vel += wish_dir(yaw=yaw, move_forward=intent.move_forward, move_right=intent.move_right) * float(
            self.tuning.move_speed
        )
        # Jump momentum survives exactly one horizontal reset.
        if self._pending_momentum.lengthSquared() > 0.0:
            self.vel.x += float(self._pending_momentum.x)
            self.vel.z += float(self._pending_momentum.z)
            self._pending_momentum = LVector3f(0, 0, 0)

        self.vel.y -= float(self.tuning.gravity)
        self.pos += self.vel
        self.refresh_bounds()

        supported = self._resolve_collisions()
        if not supported and float(self.vel.y) < 0.0:
            supported = self._probe_landing()

        ground = float(self.tuning.ground_height) + self.half_height
        if not supported and float(self.pos.y) <= ground:
            self._land_at(ground)
            supported = True
        self.grounded = supported

    def refresh_bounds(self) -> None:
        self.bounds.set_from_center(self.pos, self._half)

    def _land_at(self, y: float) -> None:
        self.pos.y = float(y)
        self.vel.y = 0.0
        self.jumping = False
        self._pending_momentum = LVector3f(0, 0, 0)
        self.refresh_bounds()

    def _resolve_collisions(self) -> bool:
        on_surface = False
        for platform in self.world.platforms:
            if self._resolve_platform(platform):
                on_surface = True
        for rock in self.world.rocks:
            if self._resolve_rock(rock):
                on_surface = True
        return on_surface

    def _resolve_platform(self, platform: Platform) -> bool:
        if not self.bounds.intersects(platform.bounds):
            return False
        if float(self.pos.y) <= platform.top:
            return False
        self._land_at(platform.top + self.half_height)
        return True

    def _resolve_rock(self, rock: Rock) -> bool:
        eps = float(self.tuning.collision_epsilon)
        if not self.bounds.intersects(rock.bounds, tolerance=eps):
            return False
        ox, oy, oz = self.bounds.overlap(rock.bounds)
        if oy <= min(ox, oz) and float(self.pos.y) > float(rock.center.y):
            self._land_at(rock.top + self.half_height)
            return True

        if ox <= oz:
            if float(self.pos.x) < float(rock.center.x):
                new_x = float(rock.bounds.minimum.x) - float(self._half.x)
            else:
                new_x = float(rock.bounds.maximum.x) + float(self._half.x)
            if abs(new_x - float(self.pos.x)) > eps:
                self.pos.x = new_x
                self.vel.x = 0.0
        else:
            if float(self.pos.z) < float(rock.center.z):
                new_z = float(rock.bounds.minimum.z) - float(self._half.z)
            else:
                new_z = float(rock.bounds.maximum.z) + float(self._half.z)
            if abs(new_z - float(self.pos.z)) > eps:
                self.pos.z = new_z
                self.vel.z = 0.0
        self.refresh_bounds()
        return False

    def _probe_landing(self) -> bool:
        # Catch a landing one tick early so fast falls cannot skip through thin platforms.
        self._probe.x = float(self.pos.x)
        self._probe.y = float(self.pos.y) - float(self.tuning.landing_probe_depth)
        self._probe.z = float(self.pos.z)
        for platform in self.world.platforms:
            if platform.bounds.contains_point(self._probe):
                self._land_at(platform.top + self.half_height)
                return True
        return False
