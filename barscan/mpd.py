"""Protocol state for an MPD client connection: idle cycling and queued commands."""

from __future__ import annotations

import os
from collections import deque
from collections.abc import Mapping

STATUS_REQUEST = "status\ncurrentsong\n"
IDLE_REQUEST = "idle player options\n"
NOIDLE_REQUEST = "noidle\n"
SYSTEM_SOCKET = "/run/mpd/socket"


def mpd_address(
    path: str | None = None,
    runtime_dir: str | None = None,
    env: Mapping[str, str] | None = None,
) -> str:
    """Choose the address to reach MPD on.

    An explicit ``path`` wins; otherwise the user's runtime socket, then the
    system socket, then ``MPD_HOST:MPD_PORT`` (default ``localhost:6600``).
    """
    if path:
        return path
    if env is None:
        env = os.environ
    if runtime_dir is None:
        runtime_dir = env.get("XDG_RUNTIME_DIR") or "/run"
    address = os.path.join(runtime_dir, "mpd", "socket")
    if not os.path.exists(address):
        address = SYSTEM_SOCKET
    if not os.path.exists(address):
        host = env.get("MPD_HOST") or "localhost"
        port = env.get("MPD_PORT") or "6600"
        address = f"{host}:{port}"
    return address


class MpdSession:
    """What to send to MPD next, given the commands queued so far."""

    def __init__(self, path: str | None = None) -> None:
        self.path = path
        self.idle = False
        self.commands: deque[str] = deque()

    def respond(self) -> str:
        """Text to send after MPD has answered the previous request.

        Queued commands go first; otherwise the session alternates between
        asking for the status and waiting idle for changes.
        """
        if self.commands:
            return self.commands.popleft()
        self.idle = not self.idle
        return STATUS_REQUEST if self.idle else IDLE_REQUEST

    def queue_command(self, command: str) -> str:
        """Queue a command; returns the text that interrupts the idle wait."""
        if not command:
            raise ValueError("empty mpd command")
        self.commands.append(command + "\n")
        self.idle = False
        return NOIDLE_REQUEST