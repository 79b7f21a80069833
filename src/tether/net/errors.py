from __future__ import annotations


class RelayError(Exception):
    """Base class for room/session failures. `str(exc)` is the user-facing reason."""


class RoomNotFound(RelayError):
    def __init__(self, code: str | None) -> None:
        super().__init__("Room not found")
        self.code = code


class RoomFull(RelayError):
    def __init__(self, code: str) -> None:
        super().__init__("Room is full")
        self.code = code


class NotConnected(RelayError):
    def __init__(self, message: str = "Not connected to server") -> None:
        super().__init__(message)


class CreationTimeout(RelayError):
    def __init__(self, timeout_s: float) -> None:
        super().__init__("Room creation timed out. Please try again.")
        self.timeout_s = float(timeout_s)


class InvalidRoomData(RelayError):
    def __init__(self, payload: object) -> None:
        super().__init__("Invalid room data received")
        self.payload = payload
