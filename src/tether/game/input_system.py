from __future__ import annotations

from dataclasses import dataclass

from tether.physics.player_controller import MoveIntent

KEY_FORWARD = "w"
KEY_BACK = "s"
KEY_LEFT = "a"
KEY_RIGHT = "d"
KEY_JUMP = "space"


@dataclass(frozen=True)
class InputCommand:
    move_forward: int = 0
    move_right: int = 0
    # Edge-triggered: True only on the frame the jump key went down.
    jump_pressed: bool = False
    look_dx: float = 0.0
    look_dy: float = 0.0

    def intent(self) -> MoveIntent:
        return MoveIntent(
            move_forward=self.move_forward,
            move_right=self.move_right,
            jump_pressed=self.jump_pressed,
        )


class KeyboardState:
    """
    Adapter between a window's key and pointer-lock mouse events and the per-tick `InputCommand`.

    `GameSession.tick()` samples it when no explicit command is given.
    """

    def __init__(self) -> None:
        self._held: set[str] = set()
        self._jump_edge = False
        self._look_dx = 0.0
        self._look_dy = 0.0

    def key_down(self, key: str) -> None:
        k = str(key).lower()
        if k == KEY_JUMP and k not in self._held:
            self._jump_edge = True
        self._held.add(k)

    def key_up(self, key: str) -> None:
        self._held.discard(str(key).lower())

    def mouse_move(self, dx: float, dy: float) -> None:
        self._look_dx += float(dx)
        self._look_dy += float(dy)

    def release_all(self) -> None:
        self._held.clear()
        self._jump_edge = False
        self._look_dx = 0.0
        self._look_dy = 0.0

    def is_held(self, key: str) -> bool:
        return str(key).lower() in self._held

    def sample(self) -> InputCommand:
        """Build this frame's command and consume the jump edge and accumulated mouse motion."""

        forward = int(self.is_held(KEY_FORWARD)) - int(self.is_held(KEY_BACK))
        right = int(self.is_held(KEY_RIGHT)) - int(self.is_held(KEY_LEFT))
        cmd = InputCommand(
            move_forward=forward,
            move_right=right,
            jump_pressed=self._jump_edge,
            look_dx=self._look_dx,
            look_dy=self._look_dy,
        )
        self._jump_edge = False
        self._look_dx = 0.0
        self._look_dy = 0.0
        return cmd
