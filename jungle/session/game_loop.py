"""
Game Loop - Drives one session turn by turn.

The loop:
1. Human submits an action
2. Reducer validates and applies it
3. Reducer events are forwarded to the stats store
4. If the bot now holds the turn, its decision is queued in the BotTurnSlot
5. The slot fires (after the thinking delay, or immediately on request)
6. The bot's action goes through the same submit path
7. Repeat until the game is over

Exactly one action is in flight at a time.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, TYPE_CHECKING
import logging
import time

from .scheduler import BotTurnSlot, PendingBotTurn
from ..engine_core.action import Action, ActionResult, EventKind, GameEvent
from ..engine_core.action_generator import legal_actions
from ..engine_core.exceptions import ReentrantActionError
from ..engine_core.state import GamePhase, Player, Position

if TYPE_CHECKING:
    from .manager import Session
    from ..engine_core.state import GameState

logger = logging.getLogger(__name__)


CAPTURE_EVENTS = {EventKind.CAPTURE, EventKind.AMBUSH, EventKind.TRADE}


class LoopState(Enum):
    """State of the game loop."""
    NOT_STARTED = "not_started"
    WAITING_HUMAN = "waiting_human"
    BOT_PENDING = "bot_pending"
    APPLYING = "applying"
    GAME_OVER = "game_over"


@dataclass
class TurnResult:
    """
    Result of processing one submission.

    Contains what changed, which bot actions ran and
    how the game stands afterwards.
    """
    success: bool
    loop_state: LoopState

    changes: list[str] = field(default_factory=list)
    events: list[GameEvent] = field(default_factory=list)

    # Bot actions taken
    bot_actions: list[str] = field(default_factory=list)

    # Errors
    errors: list[str] = field(default_factory=list)
    error_code: str | None = None

    # Game over info
    winner: Player | None = None
    is_draw: bool = False


class GameLoop:
    """
    The main game loop driver.

    Usage:
        loop = GameLoop(session, bot_delay=1.0)
        loop.start_game()

        result = loop.flip(Position(1, 2))
        while loop.slot.pending:
            time.sleep(loop.slot.remaining())
            loop.tick()
    """

    def __init__(
        self,
        session: Session,
        bot_delay: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.session = session
        self.slot = BotTurnSlot(delay=bot_delay, clock=clock)
        self._in_flight = False

    @property
    def game_state(self) -> GameState:
        return self.session.game_state

    @property
    def state(self) -> LoopState:
        game_state = self.session.game_state
        if self._in_flight:
            return LoopState.APPLYING
        if game_state is None or game_state.phase is GamePhase.NOT_STARTED:
            return LoopState.NOT_STARTED
        if game_state.is_terminal:
            return LoopState.GAME_OVER
        if self.session.is_bot_turn():
            return LoopState.BOT_PENDING
        return LoopState.WAITING_HUMAN

    # =========================================================================
    # Human actions
    # =========================================================================

    def start_game(self, first_player: Player | None = None) -> TurnResult:
        """Deal a new game. Any pending bot turn is dropped."""
        self.slot.cancel()
        return self.submit(Action.start(first_player))

    def flip(self, position: Position) -> TurnResult:
        return self.submit(Action.flip(self.session.human_player, position))

    def move(self, from_pos: Position, to_pos: Position) -> TurnResult:
        return self.submit(Action.move(self.session.human_player, from_pos, to_pos))

    def wait(self, position: Position) -> TurnResult:
        return self.submit(Action.wait(self.session.human_player, position))

    def surrender(self) -> TurnResult:
        return self.submit(Action.surrender(self.session.human_player))

    def undo(self) -> TurnResult:
        """
        Take back the human's last action.

        One credit is spent. Bot actions played since then are rewound
        as well, so control comes back to the human.
        """
        self.slot.cancel()
        result = self.submit(Action.undo(self.session.human_player))
        while result.success and self.session.is_bot_turn() and self.game_state.history:
            rewind = self.submit(Action.undo(None))
            if not rewind.success:
                break
            result.changes.extend(rewind.changes)
            result.loop_state = rewind.loop_state
        return result

    # =========================================================================
    # Submission
    # =========================================================================

    def submit(self, action: Action) -> TurnResult:
        """
        Apply one action through the reducer.

        Raises ReentrantActionError if another submission is still being
        applied. Rejected actions come back as an unsuccessful TurnResult.
        """
        if self._in_flight:
            raise ReentrantActionError()

        self._in_flight = True
        try:
            result = self.session.reducer.apply(self.session.game_state, action)
            if result.new_state is not None:
                self.session.game_state = result.new_state
            if result.success:
                self._dispatch_events(result.events)
        finally:
            self._in_flight = False

        self._after_transition()
        return self._to_turn_result(result)

    def _after_transition(self) -> None:
        """Keep the slot in step with whoever holds the turn."""
        from .manager import SessionState

        game_state = self.session.game_state
        if game_state.is_terminal:
            self.session.state = SessionState.GAME_OVER
            self.slot.cancel()
            return

        self.session.state = SessionState.ACTIVE
        if not self.session.is_bot_turn():
            self.slot.cancel()
            return

        pending = self.slot.pending
        if pending is not None and not self._matches(pending):
            self.slot.cancel()
        self.slot.schedule(game_state.game_id, game_state.turn_number)

    def _dispatch_events(self, events: list[GameEvent]) -> None:
        """Forward the human side's captures, evolutions and results."""
        store = self.session.stats_store
        human = self.session.human_player
        for event in events:
            if event.kind in CAPTURE_EVENTS and event.player is human:
                store.record_capture()
            elif event.kind is EventKind.EVOLUTION and event.player is human:
                store.record_evolution()
            elif event.kind is EventKind.GAME_OVER:
                if event.detail.get("draw"):
                    continue
                store.record_outcome("win" if event.player is human else "loss")

    def _to_turn_result(self, result: ActionResult) -> TurnResult:
        game_state = self.session.game_state
        return TurnResult(
            success=result.success,
            loop_state=self.state,
            changes=list(result.state_changes),
            events=list(result.events),
            errors=[result.error] if result.error else [],
            error_code=result.error_code,
            winner=game_state.winner,
            is_draw=game_state.is_draw,
        )

    # =========================================================================
    # Bot turns
    # =========================================================================

    def tick(self, now: float | None = None) -> TurnResult | None:
        """Fire the pending bot turn if its delay has elapsed."""
        if not self.slot.is_due(now):
            return None
        return self._play_bot_turn(self.slot.take())

    def run_bot_turns(self, max_turns: int = 32) -> list[TurnResult]:
        """
        Play bot turns immediately until the human holds the turn.

        The bot can act twice in a row when the human's turn is skipped.
        """
        results: list[TurnResult] = []
        while self.session.is_bot_turn() and len(results) < max_turns:
            result = self._play_bot_turn(self.slot.take())
            results.append(result)
            if not result.success:
                break
        return results

    def _matches(self, pending: PendingBotTurn) -> bool:
        game_state = self.session.game_state
        return (
            pending.game_id == game_state.game_id
            and pending.turn_number == game_state.turn_number
        )

    def _play_bot_turn(self, pending: PendingBotTurn | None) -> TurnResult:
        if pending is not None and not self._matches(pending):
            logger.debug("Dropping stale bot turn %s", pending)
            self._after_transition()
            return TurnResult(
                success=False,
                loop_state=self.state,
                errors=["Stale bot turn"],
                error_code="STALE_BOT_TURN",
            )
        if not self.session.is_bot_turn():
            return TurnResult(
                success=False,
                loop_state=self.state,
                errors=["Not the bot's turn"],
                error_code="ILLEGAL_ACTION",
            )

        # The bot only ever sees a copy
        snapshot = self.session.game_state.clone()
        decision = self.session.bot.select_action(snapshot, legal_actions(snapshot))
        logger.debug(
            "Bot %s chose %s: %s",
            self.session.bot.get_name(),
            decision.action.describe(),
            decision.explanation,
        )

        result = self.submit(decision.action)
        if result.success:
            result.bot_actions.append(decision.action.describe())
        else:
            logger.error(
                "Bot action %s rejected: %s",
                decision.action.describe(),
                "; ".join(result.errors),
            )
        return result
