"""
Reducer - Applies actions to game state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> new_state, the input is never touched
- Validates before applying; rejected actions leave no trace
- Returns ActionResult with success/failure and emitted events
- End-of-turn bookkeeping, win checks and stall handling run after
  every turn action
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging
import random

from .state import (
    AbilityState,
    AnimalType,
    FrozenUnits,
    GamePhase,
    GameState,
    GuardState,
    LogEntry,
    Piece,
    PHASE_TRANSITIONS,
    Player,
    Position,
)
from .action import Action, ActionType, ActionResult, EventKind, GameEvent
from .action_generator import enumerate_targets, has_legal_action
from .exceptions import (
    GameOverError,
    IllegalActionError,
    NothingToUndoError,
    OutOfUndoCreditsError,
)
from .rules import (
    CAT_RAT,
    EVOLUTION_STREAK,
    HISTORY_LIMIT,
    MAX_NO_MOVE_TURNS,
    NEIGHBOR_ORDER,
    PIECES_PER_SIDE,
    SHOWDOWN_NO_CAPTURE_TURNS,
    is_trade,
    new_board,
    rank,
    showdown_result,
)

logger = logging.getLogger(__name__)


# Which action types each phase accepts
ALLOWED_ACTIONS: dict[GamePhase, set[ActionType]] = {
    GamePhase.NOT_STARTED: {ActionType.START_GAME},
    GamePhase.FIRST_TURN_PENDING: {
        ActionType.START_GAME,
        ActionType.FLIP,
        ActionType.SURRENDER,
        ActionType.UNDO,
    },
    GamePhase.IN_PROGRESS: {
        ActionType.START_GAME,
        ActionType.FLIP,
        ActionType.MOVE,
        ActionType.WAIT,
        ActionType.SURRENDER,
        ActionType.UNDO,
    },
    GamePhase.TERMINAL: {ActionType.START_GAME, ActionType.UNDO},
}


@dataclass
class _TurnContext:
    """Accumulates side effects while one action resolves."""
    changes: list[str] = field(default_factory=list)
    events: list[GameEvent] = field(default_factory=list)
    details: list[str] = field(default_factory=list)
    captured: bool = False
    evolution_kill: Player | None = None


@dataclass
class Reducer:
    """
    Reducer applies actions to game state.

    Stateless apart from the random source used for dealing,
    picking the first player and cat escapes.
    """
    rng: random.Random = field(default_factory=random.Random)

    def apply(self, state: GameState, action: Action) -> ActionResult:
        """
        Apply an action to the game state.

        Returns ActionResult with new state or error.
        """
        handler = self._get_handler(action.action_type)
        if not handler:
            return ActionResult.failure(
                f"No handler for action type: {action.action_type}",
                error_code="NO_HANDLER",
            )

        try:
            self._validate_phase(state, action)
            result = handler(state, action)
        except OutOfUndoCreditsError as e:
            return self._deny_undo(state, action, e)
        except IllegalActionError as e:
            logger.debug("Rejected %s: %s", action.describe(), e)
            return ActionResult.failure(str(e), error_code=e.error_code)

        logger.debug(
            "Applied %s for %s",
            action.describe(),
            action.player.value if action.player else "system",
        )
        return result

    def _validate_phase(self, state: GameState, action: Action) -> None:
        if action.action_type in ALLOWED_ACTIONS[state.phase]:
            return
        if state.phase is GamePhase.TERMINAL:
            raise GameOverError()
        if state.phase is GamePhase.NOT_STARTED:
            raise IllegalActionError("Game not started - only start allowed")
        if state.phase is GamePhase.FIRST_TURN_PENDING:
            raise IllegalActionError("First turn: you must flip a card")
        raise IllegalActionError(f"{action.action_type.value} not allowed now")

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.START_GAME: self._handle_start,
            ActionType.FLIP: self._handle_flip,
            ActionType.MOVE: self._handle_move,
            ActionType.WAIT: self._handle_wait,
            ActionType.SURRENDER: self._handle_surrender,
            ActionType.UNDO: self._handle_undo,
        }
        return handlers.get(action_type)

    # =========================================================================
    # Handlers
    # =========================================================================

    def _handle_start(self, state: GameState, action: Action) -> ActionResult:
        """Deal a fresh board. Any previous game is discarded."""
        new_state = GameState(game_id=state.game_id)
        new_state.board = new_board(self.rng)
        new_state.turn = action.player or self.rng.choice([Player.RED, Player.BLUE])
        new_state.turn_number = 1
        self._set_phase(new_state, GamePhase.FIRST_TURN_PENDING)
        new_state.log.append(LogEntry(
            turn_number=new_state.turn_number,
            player=new_state.turn,
            action="Game started",
            detail="First turn: you must flip a card",
        ))
        return ActionResult.success_with_state(
            new_state,
            changes=[f"New game, {new_state.turn.value} moves first"],
        )

    def _handle_flip(self, state: GameState, action: Action) -> ActionResult:
        """Reveal a hidden cell, then trigger dog alert or rat ambush."""
        mover = self._check_turn(state, action)
        pos = self._check_position(action.position)
        if state.cell(pos).revealed:
            raise IllegalActionError(f"Cell {pos} is already revealed")

        new_state = self._begin(state)
        ctx = _TurnContext()

        cell = new_state.cell(pos)
        cell.revealed = True
        piece = cell.piece
        new_state.stats[mover].flips += 1
        summary = f"Flipped {piece.owner.value} {piece.animal.value} at {pos}"

        if piece.animal is AnimalType.DOG and piece.owner is mover:
            for dx, dy in NEIGHBOR_ORDER:
                neighbor = pos.offset(dx, dy)
                if neighbor.in_bounds() and not new_state.cell(neighbor).revealed:
                    new_state.cell(neighbor).revealed = True
                    extra = new_state.cell(neighbor).piece
                    ctx.details.append(
                        f"Dog alert revealed {extra.owner.value} {extra.animal.value} at {neighbor}"
                    )
                    break

        if piece.animal is AnimalType.RAT and piece.ability is AbilityState.UNUSED:
            self._ambush(new_state, piece, ctx)

        new_state.tiger_streak[mover] = 0
        if new_state.phase is GamePhase.FIRST_TURN_PENDING:
            self._set_phase(new_state, GamePhase.IN_PROGRESS)

        ctx.changes.insert(0, summary)
        return self._finish_turn(new_state, mover, summary, ctx)

    def _handle_move(self, state: GameState, action: Action) -> ActionResult:
        """Move, capture or trade."""
        mover = self._check_turn(state, action)
        from_pos = self._check_position(action.position)
        to_pos = self._check_position(action.target)

        source = state.cell(from_pos)
        if not source.revealed or source.piece is None:
            raise IllegalActionError(f"No revealed piece at {from_pos}")
        if source.piece.owner is not mover:
            raise IllegalActionError(f"Piece at {from_pos} does not belong to {mover.value}")
        if from_pos == to_pos:
            raise IllegalActionError("Staying in place is a wait, not a move")
        if to_pos not in enumerate_targets(from_pos, source.piece, state.board, state.frozen_units):
            raise IllegalActionError(f"{to_pos} is not a legal target from {from_pos}")

        new_state = self._begin(state)
        ctx = _TurnContext()

        src = new_state.cell(from_pos)
        dst = new_state.cell(to_pos)
        attacker = src.piece
        defender = dst.piece
        attacker.guard = GuardState.VULNERABLE

        streak_eligible = attacker.animal is AnimalType.TIGER and new_state.evo_available[mover]
        tiger_survives = True
        summary = f"{attacker.animal.value} {from_pos}->{to_pos}"

        if defender is None:
            dst.piece = attacker
            src.piece = None

        elif (
            defender.animal is AnimalType.CAT
            and defender.ability is AbilityState.UNUSED
            and new_state.empty_positions()
        ):
            escape = self.rng.choice(new_state.empty_positions())
            defender.ability = AbilityState.USED
            new_state.cell(escape).piece = defender
            dst.piece = attacker
            src.piece = None
            ctx.details.append(f"Cat used nine lives, escaped to {escape}")
            ctx.events.append(GameEvent(
                kind=EventKind.ESCAPE,
                player=defender.owner,
                detail={"to": (escape.x, escape.y)},
            ))

        elif is_trade(attacker.animal, defender.animal):
            summary = f"Trade! {attacker.animal.value} x {defender.animal.value}"
            src.piece = None
            dst.piece = None
            self._capture_into_hand(new_state, defender, mover)
            self._capture_into_hand(new_state, attacker, mover)
            new_state.stats[mover].trades += 1
            ctx.captured = True
            tiger_survives = False
            ctx.events.append(GameEvent(
                kind=EventKind.TRADE,
                player=mover,
                detail={"animal": defender.animal.value},
            ))

        else:
            former_owner = defender.owner
            captured = self._capture_into_hand(new_state, defender, mover)
            dst.piece = attacker
            src.piece = None
            new_state.stats[mover].captures += 1
            ctx.captured = True
            summary = f"{attacker.animal.value} captured {captured.value} at {to_pos}"
            ctx.events.append(GameEvent(
                kind=EventKind.CAPTURE,
                player=mover,
                detail={"animal": captured.value},
            ))
            if attacker.animal is AnimalType.LION:
                new_state.frozen_units = FrozenUnits(player=former_owner, animals=CAT_RAT)
                ctx.details.append(f"Lion roar: {former_owner.value} cat and rat frozen")
            if captured is AnimalType.BIG_TIGER:
                ctx.evolution_kill = mover

        if streak_eligible and tiger_survives:
            new_state.tiger_streak[mover] += 1
        else:
            new_state.tiger_streak[mover] = 0
        stats = new_state.stats[mover]
        stats.max_tiger_streak = max(stats.max_tiger_streak, new_state.tiger_streak[mover])

        if (
            new_state.tiger_streak[mover] >= EVOLUTION_STREAK
            and dst.piece is attacker
            and new_state.evo_available[mover]
        ):
            attacker.animal = AnimalType.BIG_TIGER
            new_state.tiger_streak[mover] = 0
            new_state.evo_available[mover] = False
            ctx.details.append("Tiger evolution!")
            ctx.events.append(GameEvent(kind=EventKind.EVOLUTION, player=mover))

        ctx.changes.insert(0, summary)
        return self._finish_turn(new_state, mover, summary, ctx)

    def _handle_wait(self, state: GameState, action: Action) -> ActionResult:
        """A wolf stays in place and becomes immune for one turn."""
        mover = self._check_turn(state, action)
        pos = self._check_position(action.position)
        cell = state.cell(pos)
        if not cell.revealed or cell.piece is None or cell.piece.owner is not mover:
            raise IllegalActionError(f"No revealed {mover.value} piece at {pos}")
        if cell.piece.animal is not AnimalType.WOLF:
            raise IllegalActionError("Only a wolf can wait")
        if pos not in enumerate_targets(pos, cell.piece, state.board, state.frozen_units):
            raise IllegalActionError("This wolf cannot act now")

        new_state = self._begin(state)
        ctx = _TurnContext()
        new_state.cell(pos).piece.guard = GuardState.IMMUNE
        new_state.tiger_streak[mover] = 0

        summary = f"Wolf waits at {pos} (immune 1 turn)"
        ctx.changes.append(summary)
        return self._finish_turn(new_state, mover, summary, ctx)

    def _handle_surrender(self, state: GameState, action: Action) -> ActionResult:
        """The current player concedes."""
        mover = self._check_turn(state, action)
        new_state = self._begin(state)
        ctx = _TurnContext()
        new_state.log.append(LogEntry(
            turn_number=new_state.turn_number,
            player=mover,
            action="Surrender",
        ))
        self._declare_winner(new_state, mover.opponent, f"{mover.value} surrendered", ctx)
        ctx.changes.insert(0, f"{mover.value} surrendered")
        return ActionResult.success_with_state(new_state, changes=ctx.changes, events=ctx.events)

    def _handle_undo(self, state: GameState, action: Action) -> ActionResult:
        """Restore the most recent snapshot."""
        requester = action.player
        if not state.is_terminal and requester is not None and requester is not state.turn:
            raise IllegalActionError(f"Not {requester.value}'s turn")
        if not state.history:
            raise NothingToUndoError()

        credits = state.undo_counts.get(requester) if requester is not None else None
        if credits is not None and credits <= 0:
            raise OutOfUndoCreditsError(requester.value)

        new_state = state.clone()
        snapshot = new_state.history.pop()
        if snapshot.phase not in PHASE_TRANSITIONS[new_state.phase]:
            raise ValueError(
                f"Illegal phase transition {new_state.phase.value} -> {snapshot.phase.value}"
            )
        new_state.restore(snapshot)

        detail = None
        if credits is not None:
            new_state.undo_counts[requester] = credits - 1
            detail = f"{credits - 1} left"
        new_state.log.append(LogEntry(
            turn_number=new_state.turn_number,
            player=requester,
            action="Undo",
            detail=detail,
        ))
        return ActionResult.success_with_state(new_state, changes=["Undo successful"])

    def _deny_undo(
        self,
        state: GameState,
        action: Action,
        error: OutOfUndoCreditsError,
    ) -> ActionResult:
        """Undo without credits: nothing changes except a log note."""
        new_state = state.clone()
        new_state.log.append(LogEntry(
            turn_number=new_state.turn_number,
            player=action.player,
            action="Undo denied",
            detail="No undo charges left",
        ))
        return ActionResult(
            success=False,
            new_state=new_state,
            error=str(error),
            error_code=error.error_code,
        )

    # =========================================================================
    # Resolution helpers
    # =========================================================================

    def _check_turn(self, state: GameState, action: Action) -> Player:
        if action.player is None or action.player is not state.turn:
            who = action.player.value if action.player else "nobody"
            raise IllegalActionError(f"Not {who}'s turn")
        return action.player

    def _check_position(self, pos: Position | None) -> Position:
        if pos is None or not pos.in_bounds():
            raise IllegalActionError(f"Position {pos} is not on the board")
        return pos

    def _begin(self, state: GameState) -> GameState:
        """Clone the state and push the pre-action snapshot."""
        new_state = state.clone()
        new_state.history.append(state.snapshot())
        if len(new_state.history) > HISTORY_LIMIT:
            del new_state.history[:-HISTORY_LIMIT]
        return new_state

    def _set_phase(self, state: GameState, phase: GamePhase) -> None:
        if phase not in PHASE_TRANSITIONS[state.phase]:
            raise ValueError(f"Illegal phase transition {state.phase.value} -> {phase.value}")
        state.phase = phase

    def _ambush(self, state: GameState, rat: Piece, ctx: _TurnContext) -> None:
        """Flip-triggered capture of the strongest revealed enemy."""
        rat.ability = AbilityState.USED
        victim_pos: Position | None = None
        best_rank = 0
        for pos, cell in state.cells():
            if cell.revealed and cell.piece is not None and cell.piece.owner is not rat.owner:
                piece_rank = rank(cell.piece.animal)
                if victim_pos is None or piece_rank > best_rank:
                    victim_pos, best_rank = pos, piece_rank

        if victim_pos is None:
            ctx.details.append("Rat ambush found no target")
            return

        victim = state.cell(victim_pos).piece
        state.cell(victim_pos).piece = None
        captured = self._capture_into_hand(state, victim, rat.owner)
        state.stats[rat.owner].captures += 1
        ctx.captured = True
        ctx.details.append(f"Rat ambushed {captured.value} at {victim_pos}")
        ctx.events.append(GameEvent(
            kind=EventKind.AMBUSH,
            player=rat.owner,
            detail={"animal": captured.value},
        ))
        if captured is AnimalType.BIG_TIGER:
            ctx.evolution_kill = rat.owner

    def _capture_into_hand(self, state: GameState, piece: Piece, captor: Player) -> AnimalType:
        """Move `piece` into `captor`'s hand. Returns its pre-capture animal."""
        animal = piece.animal
        former_owner = piece.owner
        piece.original_owner = former_owner
        piece.owner = captor
        if animal is AnimalType.BIG_TIGER:
            piece.animal = AnimalType.TIGER
        piece.guard = GuardState.VULNERABLE
        piece.ability = AbilityState.UNUSED
        if animal in (AnimalType.TIGER, AnimalType.BIG_TIGER):
            state.evo_available[former_owner] = False
            state.tiger_streak[former_owner] = 0
        state.hands[captor].append(piece)
        return animal

    def _finish_turn(
        self,
        state: GameState,
        mover: Player,
        summary: str,
        ctx: _TurnContext,
    ) -> ActionResult:
        """Log, check wins, hand the turn over and resolve stalls."""
        state.log.append(LogEntry(
            turn_number=state.turn_number,
            player=mover,
            action=summary,
            detail="; ".join(ctx.details) or None,
        ))
        ctx.changes.extend(ctx.details)

        if ctx.evolution_kill is not None:
            self._declare_winner(state, ctx.evolution_kill, "Evolved tiger captured", ctx)
        else:
            self._check_hand_win(state, ctx)

        if not state.is_terminal:
            if state.frozen_units is not None and state.frozen_units.player is mover:
                state.frozen_units = None
            state.turn_number += 1
            state.no_capture_turns = 0 if ctx.captured else state.no_capture_turns + 1
            state.no_move_counts[mover] = 0
            self._pass_turn(state, mover.opponent)
            self._check_showdown(state, ctx)

        if not state.is_terminal:
            self._resolve_stalls(state, ctx)

        return ActionResult.success_with_state(state, changes=ctx.changes, events=ctx.events)

    def _pass_turn(self, state: GameState, player: Player) -> None:
        """Give `player` the turn; their wolves lose any immunity."""
        state.turn = player
        for piece in state.board_pieces(player):
            piece.guard = GuardState.VULNERABLE

    def _check_hand_win(self, state: GameState, ctx: _TurnContext) -> None:
        for player in (Player.RED, Player.BLUE):
            if state.originals_captured_by(player) >= PIECES_PER_SIDE:
                self._declare_winner(state, player, "Captured all enemy pieces", ctx)
                return

    def _check_showdown(self, state: GameState, ctx: _TurnContext) -> None:
        """One piece each and no capture for three turns: compare and finish."""
        if state.no_capture_turns < SHOWDOWN_NO_CAPTURE_TURNS:
            return
        red = state.board_pieces(Player.RED)
        blue = state.board_pieces(Player.BLUE)
        if len(red) != 1 or len(blue) != 1:
            return
        winner = showdown_result(red[0].animal, blue[0].animal)
        reason = f"Final showdown: {red[0].animal.value} vs {blue[0].animal.value}"
        if winner is None:
            self._declare_draw(state, reason, ctx)
        else:
            self._declare_winner(state, winner, reason, ctx)

    def _resolve_stalls(self, state: GameState, ctx: _TurnContext) -> None:
        """Skip players with no legal action until someone can act."""
        while not state.is_terminal:
            player = state.turn
            if has_legal_action(state, player):
                return

            if (
                not state.board_pieces(player)
                and state.originals_captured_by(player.opponent) >= PIECES_PER_SIDE
            ):
                self._declare_winner(
                    state, player.opponent, f"{player.value} has no pieces left", ctx
                )
                return

            count = state.no_move_counts[player] + 1
            state.no_move_counts[player] = count
            if count >= MAX_NO_MOVE_TURNS:
                self._declare_winner(
                    state, player.opponent, f"{player.value} stalled {count} turns", ctx
                )
                return

            message = f"{player.value} has no moves, skipped ({count}/{MAX_NO_MOVE_TURNS})"
            state.log.append(LogEntry(
                turn_number=state.turn_number,
                player=player,
                action="Turn skipped",
                detail=message,
            ))
            ctx.changes.append(message)
            ctx.events.append(GameEvent(
                kind=EventKind.TURN_SKIPPED,
                player=player,
                detail={"count": count},
            ))

            if state.frozen_units is not None and state.frozen_units.player is player:
                state.frozen_units = None
            state.turn_number += 1
            state.no_capture_turns += 1
            self._pass_turn(state, player.opponent)
            self._check_showdown(state, ctx)

    def _declare_winner(
        self,
        state: GameState,
        winner: Player,
        reason: str,
        ctx: _TurnContext,
    ) -> None:
        self._set_phase(state, GamePhase.TERMINAL)
        state.winner = winner
        state.is_draw = False
        state.game_over_reason = reason
        state.log.append(LogEntry(
            turn_number=state.turn_number,
            player=winner,
            action="Game over",
            detail=f"{winner.value} wins: {reason}",
        ))
        ctx.changes.append(f"{winner.value.upper()} wins! {reason}")
        ctx.events.append(GameEvent(
            kind=EventKind.GAME_OVER,
            player=winner,
            detail={"reason": reason, "draw": False},
        ))
        logger.info("Game %s over: %s wins (%s)", state.game_id, winner.value, reason)

    def _declare_draw(self, state: GameState, reason: str, ctx: _TurnContext) -> None:
        self._set_phase(state, GamePhase.TERMINAL)
        state.winner = None
        state.is_draw = True
        state.game_over_reason = reason
        state.log.append(LogEntry(
            turn_number=state.turn_number,
            player=None,
            action="Game over",
            detail=f"Draw: {reason}",
        ))
        ctx.changes.append(f"Draw! {reason}")
        ctx.events.append(GameEvent(
            kind=EventKind.GAME_OVER,
            player=None,
            detail={"reason": reason, "draw": True},
        ))
        logger.info("Game %s over: draw (%s)", state.game_id, reason)


def apply_action(
    state: GameState,
    action: Action,
    rng: random.Random | None = None,
) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer(rng=rng or random.Random())
    return reducer.apply(state, action)


def new_game(
    game_id: str = "game",
    first_player: Player | None = None,
    rng: random.Random | None = None,
) -> GameState:
    """Start a game and return its FIRST_TURN_PENDING state."""
    result = apply_action(GameState(game_id=game_id), Action.start(first_player), rng=rng)
    return result.new_state
