"""
Action Generator - Movement geometry and legal action enumeration.

The action generator is used by:
1. Bots to enumerate possible moves
2. The API to show available actions
3. Validation (is this action in legal_actions?)

The reducer and the bot both call enumerate_targets, so there is
one source of truth for legality.
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import (
    AnimalType,
    Cell,
    FrozenUnits,
    GamePhase,
    GameState,
    Piece,
    Player,
    Position,
)
from .action import Action, ActionType
from .rules import can_capture


def _midpoint(a: Position, b: Position) -> Position:
    return Position((a.x + b.x) // 2, (a.y + b.y) // 2)


def enumerate_targets(
    position: Position,
    piece: Piece,
    board: list[list[Cell]],
    frozen_units: FrozenUnits | None = None,
) -> list[Position]:
    """
    Every destination `piece` at `position` may move to, in scan order.

    A wolf also lists its own position (the wait pseudo-move).
    """
    if frozen_units is not None and frozen_units.blocks(piece):
        return []

    targets: list[Position] = []
    for y, row in enumerate(board):
        for x, cell in enumerate(row):
            dest = Position(x, y)
            if dest == position:
                if piece.animal is AnimalType.WOLF:
                    targets.append(dest)
                continue

            if not cell.revealed:
                continue
            if cell.piece is not None and cell.piece.owner is piece.owner:
                continue

            dx = abs(dest.x - position.x)
            dy = abs(dest.y - position.y)
            orthogonal_jump = (dx == 2 and dy == 0) or (dx == 0 and dy == 2)

            if piece.animal is AnimalType.BIG_TIGER:
                if dx == 1 and dy == 1:
                    if can_capture(piece, cell):
                        targets.append(dest)
                elif orthogonal_jump:
                    mid = _cell_at(board, _midpoint(position, dest))
                    mid_is_enemy = (
                        mid.revealed
                        and mid.piece is not None
                        and mid.piece.owner is not piece.owner
                    )
                    if (mid.is_empty or mid_is_enemy) and can_capture(piece, cell):
                        targets.append(dest)
                elif dx + dy == 1 and can_capture(piece, cell):
                    targets.append(dest)
                continue

            if piece.animal is AnimalType.LEOPARD and orthogonal_jump:
                mid = _cell_at(board, _midpoint(position, dest))
                if mid.is_empty and can_capture(piece, cell):
                    targets.append(dest)
                continue

            # Rat, cat, dog, wolf, tiger, lion, elephant (and leopard steps)
            if dx + dy == 1 and can_capture(piece, cell):
                targets.append(dest)

    return targets


def _cell_at(board: list[list[Cell]], pos: Position) -> Cell:
    return board[pos.y][pos.x]


def has_legal_action(state: GameState, player: Player) -> bool:
    """A flip is available, or some revealed piece can move or wait."""
    if state.hidden_positions():
        return True
    for pos, piece in state.revealed_pieces(player):
        if enumerate_targets(pos, piece, state.board, state.frozen_units):
            return True
    return False


@dataclass
class ActionGenerator:
    """
    Generates legal actions for the current game state.

    Flips come first, then moves and waits per piece in scan order.
    """

    def generate(self, state: GameState) -> list[Action]:
        """
        Generate all legal actions for the current player.

        Returns a list of fully-specified Action objects.
        """
        if state.phase in (GamePhase.NOT_STARTED, GamePhase.TERMINAL):
            return []
        if state.turn is None:
            return []
        return self.generate_for_player(state, state.turn)

    def generate_for_player(self, state: GameState, player: Player) -> list[Action]:
        """Legal flips, moves and waits for `player`, ignoring turn order."""
        actions = [Action.flip(player, pos) for pos in state.hidden_positions()]

        # First action of the game must be a flip
        if state.phase is GamePhase.FIRST_TURN_PENDING:
            return actions

        for pos, piece in state.revealed_pieces(player):
            for dest in enumerate_targets(pos, piece, state.board, state.frozen_units):
                if dest == pos:
                    actions.append(Action.wait(player, pos))
                else:
                    actions.append(Action.move(player, pos, dest))
        return actions


def legal_actions(state: GameState) -> list[Action]:
    """
    Convenience function to get legal actions.

    Creates an ActionGenerator and generates actions.
    """
    return ActionGenerator().generate(state)


def is_legal(state: GameState, action: Action) -> bool:
    """Check if a specific action is legal."""
    if action.action_type not in (ActionType.FLIP, ActionType.MOVE, ActionType.WAIT):
        return False
    return action in legal_actions(state)
