"""
FastAPI Application - REST API for a human-vs-bot table.

Endpoints:
    POST   /api/v1/games                  Create a session and deal
    GET    /api/v1/games                  List sessions
    GET    /api/v1/games/{id}             Get game state
    DELETE /api/v1/games/{id}             End session
    POST   /api/v1/games/{id}/restart     Deal a new game in the session
    POST   /api/v1/games/{id}/flip        Flip a hidden cell
    POST   /api/v1/games/{id}/move        Move a revealed piece
    POST   /api/v1/games/{id}/wait        Wolf waits in place
    POST   /api/v1/games/{id}/undo        Undo the last human action
    POST   /api/v1/games/{id}/surrender   Concede
    GET    /api/v1/stats                  Lifetime statistics
    GET    /api/v1/tutorial               Tutorial flag
    POST   /api/v1/tutorial               Mark the tutorial as seen
    GET    /health                        Health check

Bot Execution Flow:
    1. A human action is validated and applied
    2. The bot's turn(s) are played immediately
    3. The response carries the bot's actions and the resulting state

All responses are JSON with explicit Pydantic schemas.
"""

from typing import Optional, Union

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from ..config import ALLOWED_ORIGINS, JUNGLE_LOG_LEVEL, STATS_FILE, is_production
from ..logging_config import setup_logging
from ..session import SessionManager
from ..storage import JsonFileStatsStore
from .service import APIService
from .schemas import (
    # Request models
    CreateGameRequest,
    RestartGameRequest,
    FlipRequest,
    MoveRequest,
    WaitRequest,
    # Response models
    ActionResponse,
    GameStateResponse,
    StatsResponse,
    TutorialResponse,
    ErrorResponse,
    SessionListResponse,
    EndSessionResponse,
    HealthResponse,
    # Enums
    ErrorCode,
)


# HTTP status per error code
STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.ILLEGAL_ACTION: 409,
    ErrorCode.GAME_OVER: 409,
    ErrorCode.NOTHING_TO_UNDO: 409,
    ErrorCode.OUT_OF_UNDO_CREDITS: 409,
    ErrorCode.ACTION_IN_FLIGHT: 409,
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.INTERNAL_ERROR: 500,
}

ERROR_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Session not found"},
    409: {"model": ErrorResponse, "description": "Action rejected"},
}


def create_app(service: Optional[APIService] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    setup_logging(JUNGLE_LOG_LEVEL, format_json=is_production())

    app = FastAPI(
        title="Jungle Flip API",
        description="""
Face-down 4x4 Jungle Chess against a heuristic bot.

## Bot Execution Flow

Every successful human action is followed by the bot's reply in the same
response (`bot_actions`). Hidden cells never reveal their piece.

## Error Codes

| Code | Description |
|------|-------------|
| `ILLEGAL_ACTION` | Out of turn, bad cell or not a legal target |
| `GAME_OVER` | Game finished: undo or start a new game |
| `NOTHING_TO_UNDO` | Undo history is empty |
| `OUT_OF_UNDO_CREDITS` | No undo charges left |
| `SESSION_NOT_FOUND` | Session does not exist |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    api_service = service or APIService(
        session_manager=SessionManager(stats_store=JsonFileStatsStore(STATS_FILE))
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Wrap an ErrorResponse with its HTTP status."""
        return JSONResponse(
            status_code=STATUS_CODES.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    def respond(response):
        if isinstance(response, ErrorResponse):
            return make_error_response(response)
        return response

    # =========================================================================
    # Game Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games",
        response_model=ActionResponse,
        tags=["Games"],
        summary="Create a session and deal a new game",
    )
    async def create_game(body: Optional[CreateGameRequest] = None) -> ActionResponse:
        """
        Deal a new face-down board.

        If the bot moves first, its opening flip is already applied in the response.
        """
        return api_service.create_game(body or CreateGameRequest())

    @app.get(
        "/api/v1/games",
        response_model=SessionListResponse,
        tags=["Games"],
        summary="List sessions",
    )
    async def list_games() -> SessionListResponse:
        sessions = api_service.list_games()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/games/{session_id}",
        response_model=GameStateResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Get game state",
    )
    async def get_game(session_id: str) -> Union[GameStateResponse, JSONResponse]:
        return respond(api_service.get_game(session_id))

    @app.delete(
        "/api/v1/games/{session_id}",
        response_model=EndSessionResponse,
        tags=["Games"],
        summary="End a session",
    )
    async def end_game(session_id: str) -> EndSessionResponse:
        success = api_service.end_game(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.post(
        "/api/v1/games/{session_id}/restart",
        response_model=ActionResponse,
        responses=ERROR_RESPONSES,
        tags=["Games"],
        summary="Deal a new game in an existing session",
    )
    async def restart_game(
        session_id: str,
        body: Optional[RestartGameRequest] = None,
    ) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.restart_game(session_id, body or RestartGameRequest()))

    # =========================================================================
    # Action Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/games/{session_id}/flip",
        response_model=ActionResponse,
        responses=ERROR_RESPONSES,
        tags=["Actions"],
        summary="Flip a hidden cell",
    )
    async def flip(session_id: str, body: FlipRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.flip(session_id, body))

    @app.post(
        "/api/v1/games/{session_id}/move",
        response_model=ActionResponse,
        responses=ERROR_RESPONSES,
        tags=["Actions"],
        summary="Move, capture or trade",
    )
    async def move(session_id: str, body: MoveRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.move(session_id, body))

    @app.post(
        "/api/v1/games/{session_id}/wait",
        response_model=ActionResponse,
        responses=ERROR_RESPONSES,
        tags=["Actions"],
        summary="Wolf waits and becomes immune for one turn",
    )
    async def wait(session_id: str, body: WaitRequest) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.wait(session_id, body))

    @app.post(
        "/api/v1/games/{session_id}/undo",
        response_model=ActionResponse,
        responses=ERROR_RESPONSES,
        tags=["Actions"],
        summary="Undo the last human action",
    )
    async def undo(session_id: str) -> Union[ActionResponse, JSONResponse]:
        """
        Take back the last human action (and the bot's reply to it).

        Costs one of the three undo charges.
        """
        return respond(api_service.undo(session_id))

    @app.post(
        "/api/v1/games/{session_id}/surrender",
        response_model=ActionResponse,
        responses=ERROR_RESPONSES,
        tags=["Actions"],
        summary="Concede the game",
    )
    async def surrender(session_id: str) -> Union[ActionResponse, JSONResponse]:
        return respond(api_service.surrender(session_id))

    # =========================================================================
    # Stats / Tutorial
    # =========================================================================

    @app.get("/api/v1/stats", response_model=StatsResponse, tags=["Stats"])
    async def get_stats() -> StatsResponse:
        return api_service.get_stats()

    @app.get("/api/v1/tutorial", response_model=TutorialResponse, tags=["Stats"])
    async def get_tutorial() -> TutorialResponse:
        return api_service.get_tutorial()

    @app.post("/api/v1/tutorial", response_model=TutorialResponse, tags=["Stats"])
    async def mark_tutorial() -> TutorialResponse:
        return api_service.mark_tutorial_seen()

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health() -> HealthResponse:
        return HealthResponse(status="ok", service="jungle", version=__version__)

    return app


# For running directly: uvicorn jungle.api.app:app
app = create_app()
