from __future__ import annotations

from tether.game.session import FrameOutput, GameSession, run_headless

__all__ = ["FrameOutput", "GameSession", "run_headless"]
