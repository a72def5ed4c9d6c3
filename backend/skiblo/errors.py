"""
Exception hierarchy for skiblo.
==========================

Only a few player actions are rejected outright; each rejection carries a
short ``code`` string that the REST and Socket.IO layers send back as-is.
"""

from __future__ import annotations


class SkibloError(Exception):
    """Base exception for all skiblo errors."""

    code = "error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.code)


class InvalidNameError(SkibloError):
    """Raised when a participant tries to join without a display name."""

    code = "invalid_name"


class NotEnoughPlayersError(SkibloError):
    """Raised when the host starts a game with too few participants."""

    code = "not_enough_players"

    def __init__(self, have: int, need: int):
        self.have = have
        self.need = need
        super().__init__(f"Need at least {need} players to start, have {have}")


class RoomNotFoundError(SkibloError):
    """Raised when a room code does not name a live session."""

    code = "room_not_found"

    def __init__(self, room_code: str):
        self.room_code = room_code
        super().__init__(f"Room '{room_code}' not found")
