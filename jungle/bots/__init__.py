"""
Bots module - Computer opponents.

Provides:
- BotPolicy: Interface for bot decision-making
- MoveEvaluator: Scores candidate moves
- JungleBot: The heuristic blue-side opponent
- RandomPolicy: Uniform random play (self-play tests)
"""

from .policy import BotPolicy, BotDecision, RandomPolicy
from .evaluator import MoveEvaluator, EvaluationWeights
from .jungle_bot import JungleBot

__all__ = [
    "BotPolicy",
    "BotDecision",
    "RandomPolicy",
    "MoveEvaluator",
    "EvaluationWeights",
    "JungleBot",
]
