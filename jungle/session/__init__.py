"""
Session Module - Manages ephemeral game sessions.

A session represents one human-vs-bot table:
- Created when the player starts playing
- Holds the current game state, reducer and bot
- Schedules bot turns through a single-slot queue

Sessions are EPHEMERAL:
- No persistence of game state
- Only lifetime stats survive (see jungle.storage)
"""

from .manager import SessionManager, Session, SessionState
from .game_loop import GameLoop, LoopState, TurnResult
from .scheduler import BotTurnSlot, PendingBotTurn

__all__ = [
    "SessionManager",
    "Session",
    "SessionState",
    "GameLoop",
    "LoopState",
    "TurnResult",
    "BotTurnSlot",
    "PendingBotTurn",
]
