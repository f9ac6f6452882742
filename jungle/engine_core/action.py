"""
Action System - Actions, events and results.

Actions represent:
1. Player actions (flip, move, wait, surrender)
2. System actions (start game, undo)

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import Player, Position


class ActionType(Enum):
    """Types of actions in the system."""
    # Player actions
    FLIP = "flip"
    MOVE = "move"
    WAIT = "wait"
    SURRENDER = "surrender"

    # System actions
    START_GAME = "start_game"
    UNDO = "undo"


@dataclass(frozen=True)
class Action:
    """
    A complete action to be applied to the game state.

    Actions are validated before application and applied
    atomically by the reducer.
    """
    action_type: ActionType
    player: Player | None = None
    position: Position | None = None  # flip / wait / move source
    target: Position | None = None  # move destination

    @classmethod
    def start(cls, first_player: Player | None = None) -> Action:
        return cls(action_type=ActionType.START_GAME, player=first_player)

    @classmethod
    def flip(cls, player: Player, position: Position) -> Action:
        return cls(action_type=ActionType.FLIP, player=player, position=position)

    @classmethod
    def move(cls, player: Player, from_pos: Position, to_pos: Position) -> Action:
        return cls(
            action_type=ActionType.MOVE,
            player=player,
            position=from_pos,
            target=to_pos,
        )

    @classmethod
    def wait(cls, player: Player, position: Position) -> Action:
        return cls(action_type=ActionType.WAIT, player=player, position=position)

    @classmethod
    def surrender(cls, player: Player) -> Action:
        return cls(action_type=ActionType.SURRENDER, player=player)

    @classmethod
    def undo(cls, player: Player | None) -> Action:
        return cls(action_type=ActionType.UNDO, player=player)

    def describe(self) -> str:
        """Short human-readable description."""
        if self.action_type is ActionType.MOVE:
            return f"move {self.position}->{self.target}"
        if self.position is not None:
            return f"{self.action_type.value} {self.position}"
        return self.action_type.value


class EventKind(Enum):
    """Side effects the session forwards to external hooks."""
    CAPTURE = "capture"
    TRADE = "trade"
    AMBUSH = "ambush"
    ESCAPE = "escape"
    EVOLUTION = "evolution"
    TURN_SKIPPED = "turn_skipped"
    GAME_OVER = "game_over"


@dataclass
class GameEvent:
    kind: EventKind
    player: Player | None = None
    detail: dict[str, Any] = field(default_factory=dict)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether action succeeded
    - New state (if succeeded)
    - Errors (if failed)
    - Side effects (for UI updates and stats hooks)
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: str | None = None

    # For UI/presentation
    state_changes: list[str] = field(default_factory=list)

    # For stats hooks
    events: list[GameEvent] = field(default_factory=list)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ActionResult:
        """Create a failure result."""
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        events: list[GameEvent] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            events=events or [],
        )
