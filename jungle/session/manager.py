"""
Session Manager - Creates and manages game sessions.

LIFECYCLE:
1. Player starts a session -> ephemeral session (in-memory only)
2. During the game:
   - Human submits flip / move / wait / undo / surrender
   - Engine validates and updates the canonical state
   - Bot turn is scheduled and played through the same reducer
3. Game ends -> session stays readable until deleted
4. Player can start a new game in the same session

PERSISTENCE RULES:
- Game state is never written anywhere
- Only lifetime stats and the tutorial flag persist (StatsStore)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import logging
import random
import time
import uuid

from ..engine_core.state import GameState, Player
from ..engine_core.reducer import Reducer
from ..engine_core.exceptions import SessionNotFoundError
from ..bots import BotPolicy, JungleBot
from ..storage import InMemoryStatsStore, StatsStore

logger = logging.getLogger(__name__)


class SessionState(Enum):
    """State of a game session."""
    ACTIVE = "active"  # Game in progress
    GAME_OVER = "game_over"  # Game finished, still readable
    ABANDONED = "abandoned"  # Deleted by the player


@dataclass
class Session:
    """
    An ephemeral game session.

    Contains:
    - Current canonical game state
    - The reducer (and its random source)
    - The bot for the computer side
    - The stats store outcomes are reported to

    State is NOT persisted.
    """
    session_id: str
    created_at: float

    state: SessionState = SessionState.ACTIVE
    game_state: GameState | None = None

    reducer: Reducer = field(default_factory=Reducer)
    bot: BotPolicy | None = None
    stats_store: StatsStore = field(default_factory=InMemoryStatsStore)

    human_player: Player = Player.RED
    bot_player: Player = Player.BLUE

    def is_active(self) -> bool:
        """Check if session is still active."""
        return self.state is SessionState.ACTIVE

    def is_bot_turn(self) -> bool:
        if self.game_state is None or self.game_state.is_terminal:
            return False
        return self.game_state.turn is self.bot_player


class SessionManager:
    """
    Manages game sessions.

    Responsibilities:
    - Create sessions with a seeded reducer and bot
    - Track active sessions
    - Clean up finished sessions

    No persistence - sessions are in-memory only.
    """

    def __init__(self, stats_store: StatsStore | None = None):
        self._sessions: dict[str, Session] = {}
        self.stats_store = stats_store or InMemoryStatsStore()

    def create_session(
        self,
        seed: int | None = None,
        bot: BotPolicy | None = None,
    ) -> Session:
        """
        Create a new game session.

        Args:
            seed: Seeds both the deal/escape randomness and the bot
            bot: Bot for the blue side (defaults to JungleBot)

        Returns:
            New Session. The game itself is started by GameLoop.start_game.
        """
        session_id = str(uuid.uuid4())
        rng = random.Random(seed)
        bot_rng = random.Random(None if seed is None else seed + 1)

        session = Session(
            session_id=session_id,
            created_at=time.time(),
            game_state=GameState(game_id=session_id),
            reducer=Reducer(rng=rng),
            bot=bot or JungleBot(player=Player.BLUE, rng=bot_rng),
            stats_store=self.stats_store,
        )
        self._sessions[session_id] = session
        logger.debug("Created session %s (seed=%s)", session_id, seed)
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def require_session(self, session_id: str) -> Session:
        """Get a session by ID or raise SessionNotFoundError."""
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def end_session(self, session_id: str, reason: str = "completed") -> bool:
        """
        End a session and forget it.

        Returns False if the session did not exist.
        """
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        if reason == "completed":
            session.state = SessionState.GAME_OVER
        else:
            session.state = SessionState.ABANDONED
        session.game_state = None
        logger.debug("Ended session %s (%s)", session_id, reason)
        return True

    def list_sessions(self) -> list[Session]:
        return list(self._sessions.values())

    def list_active_sessions(self) -> list[str]:
        """List IDs of active sessions."""
        return [
            sid for sid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_age_seconds: int = 3600) -> list[str]:
        """
        Remove finished sessions older than max_age.

        Called periodically to free memory.
        """
        now = time.time()
        stale = [
            sid for sid, session in self._sessions.items()
            if now - session.created_at > max_age_seconds and not session.is_active()
        ]
        for sid in stale:
            self.end_session(sid, reason="stale")
        return stale
