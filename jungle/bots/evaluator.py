"""
Move Evaluator - Static scores for candidate moves.

The evaluator assigns a score to each candidate based on:
- Capture value (what is taken, what is traded away)
- Safety of the destination square
- Progress towards tiger evolution

There is no lookahead: every score is read off the current board.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..engine_core.state import AnimalType, Player, Position
from ..engine_core.rules import NEIGHBOR_ORDER, effective_rank, rank

if TYPE_CHECKING:
    from ..engine_core.state import GameState, Piece


@dataclass
class EvaluationWeights:
    """
    Weights for the move evaluator.

    Higher values = more attractive.
    """
    # Stale-state guard
    own_piece_penalty: float = -1000.0

    # Captures
    big_tiger_capture: float = 10000.0
    elephant_capture: float = 50.0
    lion_capture: float = 40.0
    tiger_capture: float = 35.0
    rank_capture_multiplier: float = 10.0

    # Trades
    trade_rank_penalty: float = 5.0
    evolving_tiger_trade_penalty: float = 100.0

    # Plain moves
    empty_move: float = 1.0
    unsafe_penalty: float = 20.0
    evolution_base: float = 15.0
    evolution_per_streak: float = 2.0

    # Wolf wait
    wait_base: float = 0.0
    wait_under_threat: float = 12.0

    # Selection
    decisive_threshold: float = 500.0
    random_flip_chance: float = 0.1


class MoveEvaluator:
    """
    Scores moves and waits for one side.

    Used by JungleBot:
    1. Collect candidate moves from the legal actions
    2. Score each one here
    3. Pick the best, or flip instead
    """

    def __init__(self, weights: EvaluationWeights | None = None):
        self.weights = weights or EvaluationWeights()

    def score_move(
        self,
        state: GameState,
        player: Player,
        from_pos: Position,
        to_pos: Position,
    ) -> float:
        """Score moving the piece at `from_pos` onto `to_pos`."""
        w = self.weights
        piece = state.cell(from_pos).piece
        defender = state.cell(to_pos).piece

        if defender is not None:
            if defender.owner is player:
                return w.own_piece_penalty
            return self._score_capture(state, player, piece, defender.animal)

        score = w.empty_move
        safe = self.is_safe(state, player, piece, to_pos)
        if not safe:
            score -= w.unsafe_penalty

        if piece.animal is AnimalType.TIGER and state.evo_available[player] and safe:
            score += w.evolution_base + state.tiger_streak[player] * w.evolution_per_streak
        return score

    def _score_capture(
        self,
        state: GameState,
        player: Player,
        piece: Piece,
        defender: AnimalType,
    ) -> float:
        w = self.weights
        if defender is AnimalType.BIG_TIGER:
            score = w.big_tiger_capture
        elif defender is AnimalType.ELEPHANT:
            score = w.elephant_capture
        elif defender is AnimalType.LION:
            score = w.lion_capture
        elif defender is AnimalType.TIGER:
            score = w.tiger_capture
        else:
            score = rank(defender) * w.rank_capture_multiplier

        # Equal rank means trade
        if rank(piece.animal) == rank(defender):
            score -= rank(piece.animal) * w.trade_rank_penalty
            if piece.animal is AnimalType.TIGER and state.evo_available[player]:
                score -= w.evolving_tiger_trade_penalty
        return score

    def score_wait(self, state: GameState, player: Player, pos: Position) -> float:
        """A wolf waiting is worth more when something can take it."""
        piece = state.cell(pos).piece
        score = self.weights.wait_base
        if not self.is_safe(state, player, piece, pos):
            score += self.weights.wait_under_threat
        return score

    def is_safe(
        self,
        state: GameState,
        player: Player,
        piece: Piece,
        pos: Position,
    ) -> bool:
        """No adjacent revealed enemy out-ranks `piece` standing on `pos`."""
        for dx, dy in NEIGHBOR_ORDER:
            neighbor = pos.offset(dx, dy)
            if not neighbor.in_bounds():
                continue
            cell = state.cell(neighbor)
            if not cell.revealed or cell.piece is None or cell.piece.owner is player:
                continue
            enemy = cell.piece.animal
            if effective_rank(enemy, piece.animal) >= effective_rank(piece.animal, enemy):
                return False
        return True
