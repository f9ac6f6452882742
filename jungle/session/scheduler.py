"""
Bot Turn Slot - Single-slot queue for the pending bot decision.

The bot "thinks" for a fixed delay before it acts. Instead of a timer
callback, the pending turn sits in this slot until the game loop fires it:
- At most one pending turn exists at any time
- A pending turn is bound to the turn number it was scheduled for
- Cancelling empties the slot (terminal state, new game, undo)
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import time


@dataclass(frozen=True)
class PendingBotTurn:
    """A bot turn waiting to fire."""
    game_id: str
    turn_number: int
    due_at: float


class BotTurnSlot:
    """
    Holds at most one PendingBotTurn.

    Usage:
        slot = BotTurnSlot(delay=1.0)
        slot.schedule(state.game_id, state.turn_number)
        ...
        if slot.is_due():
            pending = slot.take()
    """

    def __init__(
        self,
        delay: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.delay = delay
        self.clock = clock
        self._pending: PendingBotTurn | None = None

    @property
    def pending(self) -> PendingBotTurn | None:
        return self._pending

    def is_empty(self) -> bool:
        return self._pending is None

    def schedule(self, game_id: str, turn_number: int) -> bool:
        """
        Queue a bot turn.

        Returns False (and keeps the existing entry) if the slot is taken.
        """
        if self._pending is not None:
            return False
        self._pending = PendingBotTurn(
            game_id=game_id,
            turn_number=turn_number,
            due_at=self.clock() + self.delay,
        )
        return True

    def cancel(self) -> PendingBotTurn | None:
        """Empty the slot. Returns what was pending, if anything."""
        pending, self._pending = self._pending, None
        return pending

    def is_due(self, now: float | None = None) -> bool:
        if self._pending is None:
            return False
        now = self.clock() if now is None else now
        return now >= self._pending.due_at

    def remaining(self, now: float | None = None) -> float:
        """Seconds until the pending turn is due (0 when due or empty)."""
        if self._pending is None:
            return 0.0
        now = self.clock() if now is None else now
        return max(0.0, self._pending.due_at - now)

    def take(self) -> PendingBotTurn | None:
        """Remove and return the pending turn regardless of its due time."""
        return self.cancel()
