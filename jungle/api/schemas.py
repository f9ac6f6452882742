"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between a client and the engine.
Hidden cells never carry their piece: the client only learns what the
human player could see at the table.

Error Codes:
- ILLEGAL_ACTION: Out of turn, bad cell or not a legal target
- GAME_OVER: The game has finished, only undo or a new game are allowed
- NOTHING_TO_UNDO: History is empty
- OUT_OF_UNDO_CREDITS: No undo charges left
- ACTION_IN_FLIGHT: Another action is still being applied
- SESSION_NOT_FOUND: Session does not exist or was deleted
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class PlayerColor(str, Enum):
    """The two sides."""
    RED = "red"
    BLUE = "blue"


class GameStatus(str, Enum):
    """What the client should do next."""
    NOT_STARTED = "not_started"
    YOUR_TURN = "your_turn"
    BOT_THINKING = "bot_thinking"
    GAME_OVER = "game_over"


class PhaseName(str, Enum):
    """Engine phase."""
    NOT_STARTED = "not_started"
    FIRST_TURN_PENDING = "first_turn_pending"
    IN_PROGRESS = "in_progress"
    TERMINAL = "terminal"


class ErrorCode(str, Enum):
    """Structured error codes."""
    ILLEGAL_ACTION = "ILLEGAL_ACTION"
    GAME_OVER = "GAME_OVER"
    NOTHING_TO_UNDO = "NOTHING_TO_UNDO"
    OUT_OF_UNDO_CREDITS = "OUT_OF_UNDO_CREDITS"
    ACTION_IN_FLIGHT = "ACTION_IN_FLIGHT"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class PositionModel(BaseModel):
    """A board coordinate, column x and row y."""
    x: int = Field(..., ge=0, le=3)
    y: int = Field(..., ge=0, le=3)


class PieceInfo(BaseModel):
    """A revealed or captured piece."""
    piece_id: str
    animal: str = Field(description="rat, cat, dog, wolf, leopard, tiger, lion, elephant, big_tiger")
    owner: PlayerColor
    original_owner: Optional[PlayerColor] = None
    ability_used: bool = False
    immune: bool = False

    model_config = {"from_attributes": True}


class CellInfo(BaseModel):
    """One board cell. `piece` is always null while the cell is hidden."""
    x: int
    y: int
    revealed: bool
    piece: Optional[PieceInfo] = None


class FrozenUnitsInfo(BaseModel):
    """Animal types that cannot move this turn."""
    player: PlayerColor
    animals: list[str]


class LogEntryInfo(BaseModel):
    """One line of the game log."""
    turn_number: int
    player: Optional[PlayerColor] = None
    action: str
    detail: Optional[str] = None

    model_config = {"from_attributes": True}


class PlayerStatsInfo(BaseModel):
    """Per-game counters."""
    flips: int = 0
    captures: int = 0
    trades: int = 0
    max_tiger_streak: int = 0

    model_config = {"from_attributes": True}


class PlayerInfo(BaseModel):
    """Everything about one side."""
    player: PlayerColor
    is_human: bool
    is_current_turn: bool = False
    hand: list[PieceInfo] = Field(default_factory=list)
    tiger_streak: int = 0
    evo_available: bool = True
    no_move_count: int = 0
    undo_credits: Optional[int] = Field(None, description="null means unlimited")
    stats: PlayerStatsInfo = Field(default_factory=PlayerStatsInfo)


# =============================================================================
# Request Models
# =============================================================================

class CreateGameRequest(BaseModel):
    """Request to start a new game."""
    first_player: Optional[PlayerColor] = Field(
        None, description="Who flips first (random if omitted)"
    )
    random_seed: Optional[int] = Field(None, description="Seed for reproducible games")


class RestartGameRequest(BaseModel):
    """Request to deal a new game in an existing session."""
    first_player: Optional[PlayerColor] = None


class FlipRequest(BaseModel):
    """Reveal a hidden cell."""
    position: PositionModel


class MoveRequest(BaseModel):
    """Move a revealed piece."""
    source: PositionModel
    target: PositionModel


class WaitRequest(BaseModel):
    """A wolf stays in place and becomes immune."""
    position: PositionModel


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class GameStateResponse(BaseModel):
    """Complete game state for display."""
    session_id: str
    status: GameStatus
    phase: PhaseName
    turn: Optional[PlayerColor] = None
    turn_number: int = 0
    board: list[CellInfo] = Field(default_factory=list, description="Row-major, 16 cells")
    players: list[PlayerInfo] = Field(default_factory=list)
    frozen_units: Optional[FrozenUnitsInfo] = None
    no_capture_turns: int = 0
    history_size: int = 0
    log: list[LogEntryInfo] = Field(default_factory=list)
    winner: Optional[PlayerColor] = None
    is_draw: bool = False
    game_over_reason: Optional[str] = None
    api_version: str = "v1"


class ActionResponse(BaseModel):
    """Response after a human action (and the bot turns it triggered)."""
    session_id: str
    success: bool
    changes: list[str] = Field(default_factory=list)
    bot_actions: list[str] = Field(
        default_factory=list, description="Bot actions played before returning"
    )
    game_state: GameStateResponse
    api_version: str = "v1"


class StatsResponse(BaseModel):
    """Lifetime statistics of the human side."""
    wins: int
    losses: int
    total: int
    captures: int
    evolutions: int
    win_rate: float = Field(..., ge=0.0, le=1.0)


class TutorialResponse(BaseModel):
    """Whether the tutorial has been shown."""
    seen: bool


class SessionListResponse(BaseModel):
    """Response listing sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
