"""
API Module - REST interface for one human against the bot.

Exposes the engine via a REST API:
1. Create a game (session)
2. Submit flips, moves, waits, undo and surrender
3. Receive the bot's reply and the masked state
4. Read lifetime stats and the tutorial flag

All game state is session-scoped. Run the server with
`uvicorn jungle.api.app:app`.
"""

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
    PieceInfo,
    PlayerInfo,
    PositionModel,
)
from .service import APIService

__all__ = [
    # Requests
    "CreateGameRequest",
    "RestartGameRequest",
    "FlipRequest",
    "MoveRequest",
    "WaitRequest",
    # Responses
    "ActionResponse",
    "GameStateResponse",
    "StatsResponse",
    "TutorialResponse",
    "ErrorResponse",
    # Shared
    "CellInfo",
    "PieceInfo",
    "PlayerInfo",
    "PositionModel",
    # Service
    "APIService",
]
