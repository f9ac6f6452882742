"""
Pytest fixtures for Jungle tests.

Most rule tests build a board by hand: every cell not listed is a
revealed empty cell unless it is listed as hidden.
"""

import random

import pytest

from ..engine_core.state import (
    AnimalType,
    Cell,
    GamePhase,
    GameState,
    GRID_SIZE,
    Piece,
    Player,
)
from ..engine_core.reducer import Reducer, new_game
from ..storage import InMemoryStatsStore


RED = Player.RED
BLUE = Player.BLUE


def make_piece(owner: Player, animal: AnimalType, **kwargs) -> Piece:
    """A piece with a readable id."""
    return Piece(piece_id=f"{owner.value}-{animal.value}", animal=animal, owner=owner, **kwargs)


def build_state(
    pieces: dict[tuple[int, int], Piece],
    hidden: dict[tuple[int, int], Piece] | None = None,
    turn: Player = RED,
    phase: GamePhase = GamePhase.IN_PROGRESS,
) -> GameState:
    """
    Hand-built board.

    `pieces` are placed face up, `hidden` face down, all other cells
    are revealed and empty.
    """
    state = GameState(game_id="test", phase=phase, turn=turn, turn_number=1)
    state.board = [[Cell(revealed=True) for _ in range(GRID_SIZE)] for _ in range(GRID_SIZE)]
    for (x, y), piece in pieces.items():
        state.board[y][x] = Cell(piece=piece, revealed=True)
    for (x, y), piece in (hidden or {}).items():
        state.board[y][x] = Cell(piece=piece, revealed=False)
    return state


def give_hand(state: GameState, captor: Player, animals: list[AnimalType]) -> None:
    """Put already-captured enemy originals into `captor`'s hand."""
    for animal in animals:
        piece = make_piece(captor.opponent, animal)
        piece.original_owner = captor.opponent
        piece.owner = captor
        state.hands[captor].append(piece)


@pytest.fixture
def reducer() -> Reducer:
    """Seeded reducer."""
    return Reducer(rng=random.Random(7))


@pytest.fixture
def fresh_game() -> GameState:
    """A dealt game where red flips first."""
    return new_game("test", first_player=RED, rng=random.Random(3))


@pytest.fixture
def stats_store() -> InMemoryStatsStore:
    return InMemoryStatsStore()
