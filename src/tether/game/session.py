from __future__ import annotations

import math
import time
from collections.abc import Callable
from dataclasses import dataclass

from panda3d.core import LVector3f

from tether.app_config import ClientConfig
from tether.common.error_log import ErrorLog
from tether.game.camera import FollowCamera
from tether.game.input_system import InputCommand, KeyboardState
from tether.game.netcode import NetSession
from tether.net.client import RoomClient
from tether.net.errors import NotConnected
from tether.physics.player_controller import PlayerController
from tether.physics.rope import RopeCurve, apply_rope_constraint
from tether.physics.tuning import PhysicsTuning
from tether.physics.tuning_profiles import build_tuning
from tether.world.geometry import World
from tether.world.layout import build_default_world

# Local player starts above the start platform and drops onto it.
LOCAL_SPAWN = (0.0, 10.0, 0.0)
# Where "return to menu" puts the local player.
MENU_SPAWN = (0.0, 1.0, 0.0)


@dataclass
class FrameOutput:
    """Everything the renderer needs for one frame."""

    local_pos: LVector3f
    local_rotation: LVector3f
    camera_pos: LVector3f
    camera_target: LVector3f
    remote_pos: LVector3f | None = None
    remote_rotation: LVector3f | None = None
    remote_color: int | None = None
    rope_points: list[LVector3f] | None = None
    rope_tensioned: bool = False


class GameSession:
    """
    One client's frame loop without a window.

    Order per tick: drain network, camera look, moving geometry, jump, physics step,
    rope constraint, outbound state, camera follow, rope visual.
    """

    def __init__(
        self,
        *,
        tuning: PhysicsTuning,
        world: World,
        net: NetSession | None = None,
        world_clock: Callable[[], float] = time.time,
    ) -> None:
        self.tuning = tuning
        self.world = world
        self.net = net
        # Moving platform phase, in wall-clock seconds shared by both peers.
        self._world_clock = world_clock
        self.keyboard = KeyboardState()
        self.player = PlayerController(tuning=tuning, world=world, spawn_point=LVector3f(*LOCAL_SPAWN))
        self.camera = FollowCamera(tuning=tuning)
        self.rope = RopeCurve(segments=int(tuning.rope_segments), bow_height=float(tuning.rope_bow_height))
        self.tick_count = 0

    @property
    def remote(self):
        return self.net.remote if self.net is not None else None

    def create_room(self) -> bool:
        if self.net is None:
            return False
        try:
            self.net.create_room()
        except NotConnected:
            return False
        return True

    def join_room(self, code: str) -> bool:
        if self.net is None:
            return False
        try:
            return self.net.join_room(code)
        except NotConnected:
            return False

    def return_to_menu(self) -> None:
        self.player.respawn(LVector3f(*MENU_SPAWN))
        if self.net is not None:
            self.net.leave_room()

    def tick(self, cmd: InputCommand | None = None) -> FrameOutput:
        """Advance one frame. Without `cmd`, input is sampled from `keyboard`."""

        if cmd is None:
            cmd = self.keyboard.sample()
        now = float(self._world_clock())
        if self.net is not None:
            self.net.poll()

        if cmd.look_dx or cmd.look_dy:
            self.camera.apply_look(dx=cmd.look_dx, dy=cmd.look_dy)
        yaw = float(self.camera.yaw)
        self.world.update(now)

        intent = cmd.intent()
        if intent.jump_pressed:
            self.player.jump(intent=intent, yaw=yaw)
        self.player.step(intent=intent, yaw=yaw)

        remote = self.remote
        tensioned = False
        if remote is not None:
            tensioned = apply_rope_constraint(
                self.player.pos,
                remote.pos,
                max_length=float(self.tuning.max_rope_length),
            )
            if tensioned:
                self.player.refresh_bounds()

        # Local avatar faces where the camera looks.
        self.player.rotation.y = yaw
        if self.net is not None:
            self.net.send_local_state(pos=self.player.pos, rotation=self.player.rotation)

        remote_pos = remote.pos if remote is not None else None
        target = FollowCamera.target_for(self.player.pos, remote_pos)
        camera_pos = self.camera.follow(local_pos=self.player.pos, remote_pos=remote_pos)

        rope_points = None
        if remote is not None:
            rope_points = [LVector3f(p) for p in self.rope.update(self.player.pos, remote.pos)]

        self.tick_count += 1
        return FrameOutput(
            local_pos=LVector3f(self.player.pos),
            local_rotation=LVector3f(self.player.rotation),
            camera_pos=camera_pos,
            camera_target=target,
            remote_pos=LVector3f(remote.pos) if remote is not None else None,
            remote_rotation=LVector3f(remote.rotation) if remote is not None else None,
            remote_color=int(remote.color) if remote is not None else None,
            rope_points=rope_points,
            rope_tensioned=tensioned,
        )


def _finite(v: LVector3f) -> bool:
    return math.isfinite(float(v.x)) and math.isfinite(float(v.y)) and math.isfinite(float(v.z))


def run_headless(
    *,
    config: ClientConfig,
    create: bool = False,
    join_code: str | None = None,
    ticks: int | None = None,
) -> GameSession:
    """
    Windowless client at a fixed tick rate, reading input from `session.keyboard`.

    Nothing feeds the keyboard here, so the player idles; useful for checking a relay end to end.
    """

    error_log = ErrorLog()
    client = RoomClient(
        host=config.host,
        port=config.port,
        reconnect_attempts=config.reconnect_attempts,
        reconnect_delay_s=config.reconnect_delay_s,
    )
    net = NetSession(
        client=client,
        error_log=error_log,
        create_timeout_s=config.create_timeout_s,
        verbose=True,
    )
    session = GameSession(
        tuning=build_tuning(config.tuning_profile),
        world=build_default_world(seed=config.world_seed),
        net=net,
    )
    print(f"[tether-client] {config.name} connecting to {config.host}:{config.port}", flush=True)
    if not client.connect():
        print(f"[tether-client] Connection error: {client.last_error}", flush=True)
        return session

    dt = 1.0 / max(1.0, float(config.tick_rate))
    limit = int(ticks) if ticks is not None else None
    requested = False
    last_status = ""
    try:
        while limit is None or session.tick_count < limit:
            started = time.monotonic()
            if not requested and client.connected:
                if create:
                    session.create_room()
                elif join_code:
                    session.join_room(join_code)
                requested = True
            frame = session.tick()
            status = getattr(net.ui, "last_status", "")
            if status and status != last_status:
                print(f"[tether-client] {status}", flush=True)
                last_status = status
            if net.room_code and session.tick_count % max(1, int(config.tick_rate)) == 0:
                p = frame.local_pos
                print(f"[tether-client] room {net.room_code} pos=({p.x:.2f}, {p.y:.2f}, {p.z:.2f})", flush=True)
            if not _finite(frame.local_pos):
                error_log.log_message(context="session.tick", message="Non-finite local position")
                break
            time.sleep(max(0.0, dt - (time.monotonic() - started)))
    except KeyboardInterrupt:
        pass
    finally:
        session.return_to_menu()
        client.close()
        latest = error_log.latest()
        if latest is not None:
            print(f"[tether-client] last error: {latest.summary_line()}", flush=True)
    return session
