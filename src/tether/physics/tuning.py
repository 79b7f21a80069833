from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class PhysicsTuning:
    # Per-frame units: velocities are distance per rendered frame, not per second.
    gravity: float = 0.05
    jump_force: float = 1.0
    move_speed: float = 0.15
    # One-shot horizontal push added on takeoff along the held movement keys.
    jump_momentum: float = 0.2

    player_height: float = 1.0
    player_half_width: float = 0.5
    ground_height: float = 0.0
    # Landing probe reach below the player center while falling.
    landing_probe_depth: float = 2.0
    # Rock corrections at or below this distance are treated as resting contact.
    collision_epsilon: float = 0.01

    max_rope_length: float = 5.0
    rope_segments: int = 10
    rope_bow_height: float = 0.5

    camera_height: float = 5.0
    camera_distance: float = 10.0
    mouse_sensitivity: float = 0.002
    camera_pitch_limit: float = math.pi / 3.0
