from __future__ import annotations

import argparse

from tether.app_config import ClientConfig, ServerConfig, env_host, env_port
from tether.game import run_headless
from tether.net import run_server
from tether.physics.tuning_profiles import DEFAULT_PROFILE, profile_names

SMOKE_TICKS = 120


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="tether", description="Two-player rope platformer: relay server and headless client")
    parser.add_argument(
        "--server",
        action="store_true",
        help="Run the room relay server.",
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Server bind host (default: $TETHER_HOST or 0.0.0.0).",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=env_port(),
        help="TCP port for the relay (default: $TETHER_PORT, then $PORT, then 3000).",
    )
    parser.add_argument(
        "--max-players",
        type=int,
        default=ServerConfig.max_players,
        help="Players allowed per room (server mode).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Server mode: only log errors.",
    )
    parser.add_argument(
        "--connect",
        default=None,
        help="Run a headless client against this relay host. Example: --connect 127.0.0.1",
    )
    room = parser.add_mutually_exclusive_group()
    room.add_argument(
        "--create",
        action="store_true",
        help="Client mode: create a room once connected.",
    )
    room.add_argument(
        "--join",
        default=None,
        metavar="CODE",
        help="Client mode: join an existing room (code is case-insensitive).",
    )
    parser.add_argument(
        "--name",
        default="player",
        help="Client display name used in log lines.",
    )
    parser.add_argument(
        "--profile",
        default=DEFAULT_PROFILE,
        choices=profile_names(),
        help="Physics tuning profile.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=ClientConfig.world_seed,
        help="World layout seed; both players must use the same value.",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=None,
        help="Client mode: stop after this many ticks.",
    )
    parser.add_argument(
        "--smoke",
        action="store_true",
        help=f"Client mode: run {SMOKE_TICKS} ticks and exit (for quick verification).",
    )
    args = parser.parse_args(argv)

    if args.server:
        cfg = ServerConfig(
            host=args.host or env_host("0.0.0.0"),
            port=int(args.port),
            max_players=int(args.max_players),
            verbose=not args.quiet,
        )
        run_server(
            host=cfg.host,
            port=cfg.port,
            max_players=cfg.max_players,
            spawn_slots=cfg.spawn_slots,
            verbose=cfg.verbose,
        )
        return

    if args.connect is None:
        parser.error("choose --server or --connect HOST")

    cfg = ClientConfig(
        host=str(args.connect),
        port=int(args.port),
        name=str(args.name),
        tuning_profile=str(args.profile),
        world_seed=int(args.seed),
    )
    ticks = args.ticks
    if args.smoke and ticks is None:
        ticks = SMOKE_TICKS
    run_headless(config=cfg, create=bool(args.create), join_code=args.join, ticks=ticks)


if __name__ == "__main__":
    main()
