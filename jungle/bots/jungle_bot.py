"""
Jungle Bot - Heuristic opponent for the blue side.

The bot:
- Reads a snapshot of the state, never a live reference
- Scores every legal move with MoveEvaluator (no lookahead)
- Prefers flipping while many cells are hidden
- Surrenders when it has nothing left to play

The bot does NOT:
- Search (minimax, MCTS)
- Peek at hidden cells
- Learn from games
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING
import random

from .policy import BotPolicy, BotDecision
from .evaluator import EvaluationWeights, MoveEvaluator
from ..engine_core.action import Action, ActionType
from ..engine_core.state import Player, Position

if TYPE_CHECKING:
    from ..engine_core.state import GameState


CENTER = (1, 2)


@dataclass
class ScoredAction:
    action: Action
    score: float


@dataclass
class JungleBot(BotPolicy):
    """
    Heuristic bot for Jungle Flip.

    Usage:
        bot = JungleBot(rng=random.Random(7))
        decision = bot.select_action(state.clone(), legal_actions(state))
        result = reducer.apply(state, decision.action)
    """
    player: Player = Player.BLUE
    weights: EvaluationWeights = None  # type: ignore
    rng: random.Random = None  # type: ignore

    def __post_init__(self):
        if self.weights is None:
            self.weights = EvaluationWeights()
        if self.rng is None:
            self.rng = random.Random()
        self.evaluator = MoveEvaluator(self.weights)

    def select_action(
        self,
        state: GameState,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Pick one of flip, move, wait or surrender.

        Process:
        1. Forced flip on the first turn or when nothing is left to move
        2. Score every move/wait candidate
        3. Decisive capture, else flip-or-move by threshold
        4. Last resort flip, then surrender
        """
        hidden = state.hidden_positions()
        own_pieces = state.revealed_pieces(self.player)
        hand = state.hands[self.player]

        # 1. Forced flip
        if hidden and (state.is_first_turn or (not own_pieces and not hand)):
            target = self._pick_forced_flip(hidden)
            return BotDecision(
                action=Action.flip(self.player, target),
                explanation="Forced flip",
                evaluated_actions=0,
            )

        # 2. Candidates
        scored = self._score_candidates(state, legal_actions)
        scored.sort(key=lambda s: s.score, reverse=True)
        best = scored[0] if scored else None
        details = {"candidates": len(scored), "hidden": len(hidden)}

        # 3. Selection
        if best is not None and best.score > self.weights.decisive_threshold:
            return self._decide(best, scored, "Decisive capture", details)

        threshold = self._flip_threshold(len(hidden))
        best_score = best.score if best is not None else -999.0
        if hidden and (
            best_score < threshold or self.rng.random() < self.weights.random_flip_chance
        ):
            target = self.rng.choice(hidden)
            return BotDecision(
                action=Action.flip(self.player, target),
                explanation=f"Flip (best move {best_score:g} vs threshold {threshold:g})",
                evaluated_actions=len(scored),
                best_score=best_score,
                evaluation_details=details,
            )

        if best is not None:
            return self._decide(best, scored, "Best scored move", details)

        # 4. Last resort
        if hidden:
            return BotDecision(
                action=Action.flip(self.player, hidden[0]),
                explanation="No moves, flipping",
                evaluation_details=details,
            )

        reason = self._surrender_reason(state, own_pieces, hand, scored, hidden)
        return BotDecision(
            action=Action.surrender(self.player),
            explanation=f"Surrender: {reason}",
            confidence=1.0,
            evaluation_details=details,
        )

    def _pick_forced_flip(self, hidden: list[Position]) -> Position:
        for pos in hidden:
            if pos.x in CENTER and pos.y in CENTER:
                return pos
        return self.rng.choice(hidden)

    def _score_candidates(
        self,
        state: GameState,
        legal_actions: list[Action],
    ) -> list[ScoredAction]:
        scored = []
        for action in legal_actions:
            if action.player is not self.player:
                continue
            if action.action_type is ActionType.MOVE:
                score = self.evaluator.score_move(
                    state, self.player, action.position, action.target
                )
            elif action.action_type is ActionType.WAIT:
                score = self.evaluator.score_wait(state, self.player, action.position)
            else:
                continue
            scored.append(ScoredAction(action, score))
        return scored

    def _flip_threshold(self, hidden_count: int) -> float:
        # Flip early, move late
        if hidden_count > 10:
            return 20.0
        if hidden_count <= 2:
            return -50.0
        return 5.0

    def _surrender_reason(
        self,
        state: GameState,
        own_pieces: list,
        hand: list,
        scored: list[ScoredAction],
        hidden: list[Position],
    ) -> str:
        enemy = self.player.opponent
        if not own_pieces and not hidden:
            return "no pieces and nothing left to flip"
        if not own_pieces and len(state.hands[enemy]) >= 8:
            return "opponent holds a full hand"
        if not own_pieces and state.revealed_pieces(enemy) and not hand:
            return "no pieces against a live opponent"
        return "no moves and nothing left to flip"

    def _decide(
        self,
        best: ScoredAction,
        scored: list[ScoredAction],
        explanation: str,
        details: dict,
    ) -> BotDecision:
        ties = sum(1 for s in scored if s.score == best.score)
        return BotDecision(
            action=best.action,
            explanation=f"{explanation}: {best.action.describe()} ({best.score:g})",
            confidence=1.0 / ties,
            evaluated_actions=len(scored),
            best_score=best.score,
            evaluation_details=details,
        )
