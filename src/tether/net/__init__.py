from __future__ import annotations

from tether.net.server import EmbeddedHostServer, RelayServer, run_server

__all__ = ["EmbeddedHostServer", "RelayServer", "run_server"]
