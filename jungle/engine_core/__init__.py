"""
Engine Core - Deterministic rule engine and turn state machine.

The engine is the runtime that:
1. Deals and owns GameState
2. Enumerates legal targets and actions
3. Applies actions via the reducer
4. Resolves captures, abilities, evolution and game end
"""

from .state import (
    AbilityState,
    AnimalType,
    Cell,
    FrozenUnits,
    GamePhase,
    GameState,
    GuardState,
    HistorySnapshot,
    LogEntry,
    Piece,
    Player,
    PlayerStats,
    Position,
)
from .action import Action, ActionType, ActionResult, EventKind, GameEvent
from .rules import ANIMAL_RANKS, build_shuffled_deck, can_capture, new_board
from .action_generator import (
    ActionGenerator,
    enumerate_targets,
    has_legal_action,
    is_legal,
    legal_actions,
)
from .reducer import Reducer, apply_action, new_game

__all__ = [
    "AbilityState",
    "AnimalType",
    "Cell",
    "FrozenUnits",
    "GamePhase",
    "GameState",
    "GuardState",
    "HistorySnapshot",
    "LogEntry",
    "Piece",
    "Player",
    "PlayerStats",
    "Position",
    "Action",
    "ActionType",
    "ActionResult",
    "EventKind",
    "GameEvent",
    "ANIMAL_RANKS",
    "build_shuffled_deck",
    "can_capture",
    "new_board",
    "ActionGenerator",
    "enumerate_targets",
    "has_legal_action",
    "is_legal",
    "legal_actions",
    "Reducer",
    "apply_action",
    "new_game",
]
