"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to game loop calls
2. Manages sessions and their game loops
3. Plays the bot's reply before returning
4. Formats responses (hidden cells masked)

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging

from .schemas import (
    # Requests
    CreateGameRequest,
    RestartGameRequest,
    FlipRequest,
    MoveRequest,
    WaitRequest,
    # Responses
    ActionResponse,
    GameStateResponse,
    StatsResponse,
    TutorialResponse,
    ErrorResponse,
    # Shared
    CellInfo,
    FrozenUnitsInfo,
    LogEntryInfo,
    PieceInfo,
    PlayerInfo,
    PlayerStatsInfo,
    PositionModel,
    # Enums
    ErrorCode,
    GameStatus,
    PhaseName,
    PlayerColor,
)
from ..engine_core.exceptions import ReentrantActionError
from ..engine_core.state import GameState, Piece, Player, Position
from ..session import GameLoop, LoopState, Session, SessionManager, TurnResult

logger = logging.getLogger(__name__)


def _position(model: PositionModel) -> Position:
    return Position(model.x, model.y)


def _player(color: PlayerColor | None) -> Player | None:
    return Player(color.value) if color is not None else None


def _error(code: str | None, message: str, details: dict | None = None) -> ErrorResponse:
    try:
        error_code = ErrorCode(code)
    except ValueError:
        error_code = ErrorCode.INTERNAL_ERROR
    return ErrorResponse(error=message, error_code=error_code, details=details)


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Start a game
        response = service.create_game(CreateGameRequest(random_seed=7))

        # Play
        response = service.flip(response.session_id, FlipRequest(position={"x": 1, "y": 2}))
    """
    session_manager: SessionManager = field(default_factory=SessionManager)

    # Game loops per session
    _game_loops: dict[str, GameLoop] = field(default_factory=dict)

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_game(self, request: CreateGameRequest) -> ActionResponse:
        """Create a session, deal, and let the bot open if it moves first."""
        session = self.session_manager.create_session(seed=request.random_seed)
        game_loop = GameLoop(session)
        self._game_loops[session.session_id] = game_loop

        result = game_loop.start_game(_player(request.first_player))
        logger.info("Started game %s", session.session_id)
        return self._respond(session, game_loop, result)

    def restart_game(
        self,
        session_id: str,
        request: RestartGameRequest,
    ) -> ActionResponse | ErrorResponse:
        """Deal a fresh game in an existing session."""
        return self._run(
            session_id,
            lambda loop: loop.start_game(_player(request.first_player)),
        )

    def get_game(self, session_id: str) -> GameStateResponse | ErrorResponse:
        session = self.session_manager.get_session(session_id)
        if not session:
            return _error("SESSION_NOT_FOUND", f"Session {session_id} not found")
        return self._state_to_response(session, self._game_loops[session_id])

    def list_games(self) -> list[str]:
        return [session.session_id for session in self.session_manager.list_sessions()]

    def end_game(self, session_id: str) -> bool:
        """Delete a session."""
        game_loop = self._game_loops.pop(session_id, None)
        if game_loop is not None:
            game_loop.slot.cancel()
        return self.session_manager.end_session(session_id, reason="user_ended")

    # =========================================================================
    # Human actions
    # =========================================================================

    def flip(self, session_id: str, request: FlipRequest) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda loop: loop.flip(_position(request.position)))

    def move(self, session_id: str, request: MoveRequest) -> ActionResponse | ErrorResponse:
        return self._run(
            session_id,
            lambda loop: loop.move(_position(request.source), _position(request.target)),
        )

    def wait(self, session_id: str, request: WaitRequest) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda loop: loop.wait(_position(request.position)))

    def undo(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda loop: loop.undo())

    def surrender(self, session_id: str) -> ActionResponse | ErrorResponse:
        return self._run(session_id, lambda loop: loop.surrender())

    # =========================================================================
    # Stats / tutorial
    # =========================================================================

    def get_stats(self) -> StatsResponse:
        stats = self.session_manager.stats_store.read_aggregate_stats()
        return StatsResponse(
            wins=stats.wins,
            losses=stats.losses,
            total=stats.total,
            captures=stats.captures,
            evolutions=stats.evolutions,
            win_rate=stats.win_rate,
        )

    def get_tutorial(self) -> TutorialResponse:
        return TutorialResponse(seen=self.session_manager.stats_store.read_tutorial_seen())

    def mark_tutorial_seen(self) -> TutorialResponse:
        self.session_manager.stats_store.mark_tutorial_seen()
        return TutorialResponse(seen=True)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _run(
        self,
        session_id: str,
        step: Callable[[GameLoop], TurnResult],
    ) -> ActionResponse | ErrorResponse:
        """Apply one human step, then play the bot until it is the human's turn."""
        session = self.session_manager.get_session(session_id)
        game_loop = self._game_loops.get(session_id)
        if not session or not game_loop:
            return _error("SESSION_NOT_FOUND", f"Session {session_id} not found")

        try:
            result = step(game_loop)
        except ReentrantActionError as e:
            return _error(e.error_code, str(e))

        if not result.success:
            return _error(
                result.error_code,
                "; ".join(result.errors) or "Action rejected",
                details={"turn_number": session.game_state.turn_number},
            )
        return self._respond(session, game_loop, result)

    def _respond(
        self,
        session: Session,
        game_loop: GameLoop,
        result: TurnResult,
    ) -> ActionResponse:
        changes = list(result.changes)
        bot_actions: list[str] = []
        for bot_result in game_loop.run_bot_turns():
            changes.extend(bot_result.changes)
            bot_actions.extend(bot_result.bot_actions)

        return ActionResponse(
            session_id=session.session_id,
            success=result.success,
            changes=changes,
            bot_actions=bot_actions,
            game_state=self._state_to_response(session, game_loop),
        )

    def _state_to_response(self, session: Session, game_loop: GameLoop) -> GameStateResponse:
        """Convert the canonical state to the API view."""
        state: GameState = session.game_state
        loop_state = game_loop.state
        if loop_state is LoopState.GAME_OVER:
            status = GameStatus.GAME_OVER
        elif loop_state is LoopState.NOT_STARTED:
            status = GameStatus.NOT_STARTED
        elif loop_state is LoopState.BOT_PENDING:
            status = GameStatus.BOT_THINKING
        else:
            status = GameStatus.YOUR_TURN

        board = [
            CellInfo(
                x=pos.x,
                y=pos.y,
                revealed=cell.revealed,
                piece=self._piece_info(cell.piece) if cell.revealed and cell.piece else None,
            )
            for pos, cell in state.cells()
        ]

        players = [
            PlayerInfo(
                player=PlayerColor(player.value),
                is_human=player is session.human_player,
                is_current_turn=player is state.turn and not state.is_terminal,
                hand=[self._piece_info(p) for p in state.hands[player]],
                tiger_streak=state.tiger_streak[player],
                evo_available=state.evo_available[player],
                no_move_count=state.no_move_counts[player],
                undo_credits=state.undo_counts[player],
                stats=PlayerStatsInfo.model_validate(state.stats[player]),
            )
            for player in (Player.RED, Player.BLUE)
        ]

        frozen = None
        if state.frozen_units is not None:
            frozen = FrozenUnitsInfo(
                player=PlayerColor(state.frozen_units.player.value),
                animals=sorted(a.value for a in state.frozen_units.animals),
            )

        return GameStateResponse(
            session_id=session.session_id,
            status=status,
            phase=PhaseName(state.phase.value),
            turn=PlayerColor(state.turn.value) if state.turn else None,
            turn_number=state.turn_number,
            board=board,
            players=players,
            frozen_units=frozen,
            no_capture_turns=state.no_capture_turns,
            history_size=len(state.history),
            log=[
                LogEntryInfo(
                    turn_number=entry.turn_number,
                    player=PlayerColor(entry.player.value) if entry.player else None,
                    action=entry.action,
                    detail=entry.detail,
                )
                for entry in state.log
            ],
            winner=PlayerColor(state.winner.value) if state.winner else None,
            is_draw=state.is_draw,
            game_over_reason=state.game_over_reason,
        )

    def _piece_info(self, piece: Piece) -> PieceInfo:
        return PieceInfo(
            piece_id=piece.piece_id,
            animal=piece.animal.value,
            owner=PlayerColor(piece.owner.value),
            original_owner=(
                PlayerColor(piece.original_owner.value) if piece.original_owner else None
            ),
            ability_used=piece.has_used_ability,
            immune=piece.is_immune,
        )
