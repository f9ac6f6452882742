"""
Bot Policy - How the computer side picks its turn.

GameLoop hands a policy a cloned GameState and the legal flips, moves
and waits for the side to move. The policy returns one of those, or a
surrender; the loop submits it through the reducer exactly like a human
action. A rejected pick leaves the game unchanged.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
import random

if TYPE_CHECKING:
    from ..engine_core.state import GameState
    from ..engine_core.action import Action


@dataclass
class BotDecision:
    """
    The chosen action plus why it was chosen.

    `explanation` ends up in the debug log ("Flip (best move 1 vs threshold
    20)"). `confidence` is 1 / number of equally scored candidates.
    """
    action: Action
    explanation: str = ""
    confidence: float = 1.0

    # Scoring trace: candidate count, top score, per-move scores
    evaluated_actions: int = 0
    best_score: float = 0.0
    evaluation_details: dict[str, Any] = field(default_factory=dict)


class BotPolicy(ABC):
    """A side's decision maker: JungleBot in play, RandomPolicy in tests."""

    @abstractmethod
    def select_action(
        self,
        state: GameState,
        legal_actions: list[Action],
    ) -> BotDecision:
        """
        Pick one of `legal_actions` for the side to move.

        Args:
            state: Clone of the game; mutating it has no effect on play
            legal_actions: Output of legal_actions() for that clone

        Returns:
            BotDecision wrapping an element of `legal_actions` or a surrender
        """
        pass

    def get_name(self) -> str:
        """Name used in loop log lines."""
        return self.__class__.__name__


class RandomPolicy(BotPolicy):
    """Uniform choice over legal actions. Seedable, never surrenders."""

    def __init__(self, seed: int | None = None):
        self.rng = random.Random(seed)

    def select_action(
        self,
        state: GameState,
        legal_actions: list[Action],
    ) -> BotDecision:
        if not legal_actions:
            raise ValueError("No legal actions available")

        action = self.rng.choice(legal_actions)
        return BotDecision(
            action=action,
            explanation=f"Random pick of {len(legal_actions)}",
            confidence=1.0 / len(legal_actions),
            evaluated_actions=len(legal_actions),
        )
