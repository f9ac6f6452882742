"""Exception classes for the Jungle engine."""

from __future__ import annotations


class JungleError(Exception):
    """Base exception for all Jungle engine errors."""

    error_code = "JUNGLE_ERROR"


class IllegalActionError(JungleError):
    """Raised when an action is not legal in the current state."""

    error_code = "ILLEGAL_ACTION"


class GameOverError(IllegalActionError):
    """Raised when acting on a game that has already finished."""

    error_code = "GAME_OVER"

    def __init__(self) -> None:
        super().__init__("Game is over - no actions allowed")


class NothingToUndoError(IllegalActionError):
    """Raised when undo is requested with an empty history."""

    error_code = "NOTHING_TO_UNDO"

    def __init__(self) -> None:
        super().__init__("Nothing to undo")


class OutOfUndoCreditsError(JungleError):
    """Raised when a player has no undo credits left."""

    error_code = "OUT_OF_UNDO_CREDITS"

    def __init__(self, player: str) -> None:
        self.player = player
        super().__init__(f"No undo charges left for {player}")


class ReentrantActionError(JungleError):
    """Raised when an action is submitted while another is being applied."""

    error_code = "ACTION_IN_FLIGHT"

    def __init__(self) -> None:
        super().__init__("Another action is still being applied")


class SessionNotFoundError(JungleError):
    """Raised when a session id is unknown."""

    error_code = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


__all__ = [
    "GameOverError",
    "IllegalActionError",
    "JungleError",
    "NothingToUndoError",
    "OutOfUndoCreditsError",
    "ReentrantActionError",
    "SessionNotFoundError",
]
