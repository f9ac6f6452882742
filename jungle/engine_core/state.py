"""
Game State - Piece/board model and the authoritative game state container.

Design principles:
- Immutable-friendly: the reducer clones before it mutates
- Snapshot-able: undo restores a HistorySnapshot verbatim
- Observable: every transition appends to the game log
- Ability flags are explicit states, not loose booleans
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterator
from copy import deepcopy
from enum import Enum


GRID_SIZE = 4
HUMAN_UNDO_CREDITS = 3


class Player(Enum):
    """The two sides. Red is the human, blue the bot."""
    RED = "red"
    BLUE = "blue"

    @property
    def opponent(self) -> Player:
        return Player.BLUE if self is Player.RED else Player.RED


class AnimalType(Enum):
    """Piece types. BIG_TIGER only exists on the board, after evolution."""
    RAT = "rat"
    CAT = "cat"
    DOG = "dog"
    WOLF = "wolf"
    LEOPARD = "leopard"
    TIGER = "tiger"
    LION = "lion"
    ELEPHANT = "elephant"
    BIG_TIGER = "big_tiger"


BASE_ANIMALS = [
    AnimalType.RAT,
    AnimalType.CAT,
    AnimalType.DOG,
    AnimalType.WOLF,
    AnimalType.LEOPARD,
    AnimalType.TIGER,
    AnimalType.LION,
    AnimalType.ELEPHANT,
]


class GamePhase(Enum):
    """High-level game phases."""
    NOT_STARTED = "not_started"
    FIRST_TURN_PENDING = "first_turn_pending"
    IN_PROGRESS = "in_progress"
    TERMINAL = "terminal"


# Static phase transition table. Undo may step back out of TERMINAL.
PHASE_TRANSITIONS: dict[GamePhase, set[GamePhase]] = {
    GamePhase.NOT_STARTED: {GamePhase.FIRST_TURN_PENDING},
    GamePhase.FIRST_TURN_PENDING: {
        GamePhase.IN_PROGRESS,
        GamePhase.TERMINAL,
        GamePhase.FIRST_TURN_PENDING,
    },
    GamePhase.IN_PROGRESS: {
        GamePhase.IN_PROGRESS,
        GamePhase.TERMINAL,
        GamePhase.FIRST_TURN_PENDING,
    },
    GamePhase.TERMINAL: {
        GamePhase.FIRST_TURN_PENDING,
        GamePhase.IN_PROGRESS,
    },
}


class AbilityState(Enum):
    """One-shot ability (rat ambush, cat escape)."""
    UNUSED = "unused"
    USED = "used"


class GuardState(Enum):
    """Wolf immunity after waiting."""
    VULNERABLE = "vulnerable"
    IMMUNE = "immune"


@dataclass(frozen=True)
class Position:
    """A board coordinate. The board is indexed board[y][x]."""
    x: int
    y: int

    def in_bounds(self) -> bool:
        return 0 <= self.x < GRID_SIZE and 0 <= self.y < GRID_SIZE

    def offset(self, dx: int, dy: int) -> Position:
        return Position(self.x + dx, self.y + dy)

    def __str__(self) -> str:
        return f"({self.x},{self.y})"


@dataclass
class Piece:
    """
    A single piece.

    `piece_id` never changes. `animal` changes on evolution (and back on
    capture), `owner` changes on capture.
    """
    piece_id: str
    animal: AnimalType
    owner: Player
    original_owner: Player | None = None  # Set once, at capture time
    ability: AbilityState = AbilityState.UNUSED
    guard: GuardState = GuardState.VULNERABLE

    @property
    def has_used_ability(self) -> bool:
        return self.ability is AbilityState.USED

    @property
    def is_immune(self) -> bool:
        return self.guard is GuardState.IMMUNE


@dataclass
class Cell:
    """A board cell. A hidden cell always holds a piece."""
    piece: Piece | None = None
    revealed: bool = False

    @property
    def is_empty(self) -> bool:
        return self.revealed and self.piece is None


@dataclass
class FrozenUnits:
    """Animal types of one player that cannot move this turn (lion ability)."""
    player: Player
    animals: frozenset[AnimalType]

    def blocks(self, piece: Piece) -> bool:
        return piece.owner is self.player and piece.animal in self.animals


@dataclass
class LogEntry:
    """One line of the game log."""
    turn_number: int
    player: Player | None
    action: str
    detail: str | None = None


@dataclass
class PlayerStats:
    """Per-game counters for end-of-game reporting."""
    flips: int = 0
    captures: int = 0
    trades: int = 0
    max_tiger_streak: int = 0


def _per_player(value) -> dict[Player, object]:
    return {Player.RED: value, Player.BLUE: value}


@dataclass
class HistorySnapshot:
    """Everything undo restores."""
    board: list[list[Cell]]
    turn: Player | None
    phase: GamePhase
    hands: dict[Player, list[Piece]]
    tiger_streak: dict[Player, int]
    evo_available: dict[Player, bool]
    frozen_units: FrozenUnits | None
    no_move_counts: dict[Player, int]
    turn_number: int
    no_capture_turns: int
    stats: dict[Player, PlayerStats]


@dataclass
class GameState:
    """
    Complete game state at a point in time.

    This is the canonical state that the engine operates on.
    All state changes go through the reducer.
    """
    game_id: str = "game"

    phase: GamePhase = GamePhase.NOT_STARTED
    turn: Player | None = None
    turn_number: int = 0

    board: list[list[Cell]] = field(
        default_factory=lambda: [[Cell() for _ in range(GRID_SIZE)] for _ in range(GRID_SIZE)]
    )
    hands: dict[Player, list[Piece]] = field(
        default_factory=lambda: {Player.RED: [], Player.BLUE: []}
    )

    tiger_streak: dict[Player, int] = field(default_factory=lambda: _per_player(0))
    evo_available: dict[Player, bool] = field(default_factory=lambda: _per_player(True))
    frozen_units: FrozenUnits | None = None
    no_move_counts: dict[Player, int] = field(default_factory=lambda: _per_player(0))
    no_capture_turns: int = 0

    # None means unlimited
    undo_counts: dict[Player, int | None] = field(
        default_factory=lambda: {Player.RED: HUMAN_UNDO_CREDITS, Player.BLUE: None}
    )
    history: list[HistorySnapshot] = field(default_factory=list)

    log: list[LogEntry] = field(default_factory=list)
    stats: dict[Player, PlayerStats] = field(
        default_factory=lambda: {Player.RED: PlayerStats(), Player.BLUE: PlayerStats()}
    )

    winner: Player | None = None
    is_draw: bool = False
    game_over_reason: str | None = None

    # Board access

    def cell(self, pos: Position) -> Cell:
        return self.board[pos.y][pos.x]

    def cells(self) -> Iterator[tuple[Position, Cell]]:
        """Row-major scan of the board."""
        for y, row in enumerate(self.board):
            for x, cell in enumerate(row):
                yield Position(x, y), cell

    def hidden_positions(self) -> list[Position]:
        return [pos for pos, cell in self.cells() if not cell.revealed]

    def empty_positions(self) -> list[Position]:
        return [pos for pos, cell in self.cells() if cell.is_empty]

    def revealed_pieces(self, player: Player) -> list[tuple[Position, Piece]]:
        """Revealed pieces owned by `player`, in scan order."""
        return [
            (pos, cell.piece)
            for pos, cell in self.cells()
            if cell.revealed and cell.piece is not None and cell.piece.owner is player
        ]

    def board_pieces(self, player: Player) -> list[Piece]:
        """All pieces of `player` on the board, hidden or not."""
        return [
            cell.piece
            for _, cell in self.cells()
            if cell.piece is not None and cell.piece.owner is player
        ]

    def find_piece(self, piece_id: str) -> Position | None:
        for pos, cell in self.cells():
            if cell.piece is not None and cell.piece.piece_id == piece_id:
                return pos
        return None

    def originals_captured_by(self, player: Player) -> int:
        """How many of the opponent's original pieces `player` holds."""
        return sum(
            1 for piece in self.hands[player]
            if piece.original_owner is player.opponent
        )

    def piece_count(self) -> int:
        on_board = sum(1 for _, cell in self.cells() if cell.piece is not None)
        return on_board + len(self.hands[Player.RED]) + len(self.hands[Player.BLUE])

    # Phase helpers

    @property
    def is_terminal(self) -> bool:
        return self.phase is GamePhase.TERMINAL

    @property
    def is_first_turn(self) -> bool:
        return self.phase is GamePhase.FIRST_TURN_PENDING

    # Snapshots

    def snapshot(self) -> HistorySnapshot:
        return HistorySnapshot(
            board=deepcopy(self.board),
            turn=self.turn,
            phase=self.phase,
            hands=deepcopy(self.hands),
            tiger_streak=dict(self.tiger_streak),
            evo_available=dict(self.evo_available),
            frozen_units=deepcopy(self.frozen_units),
            no_move_counts=dict(self.no_move_counts),
            turn_number=self.turn_number,
            no_capture_turns=self.no_capture_turns,
            stats=deepcopy(self.stats),
        )

    def restore(self, snap: HistorySnapshot) -> None:
        """Restore a snapshot in place. Winner and draw are cleared."""
        self.board = deepcopy(snap.board)
        self.turn = snap.turn
        self.phase = snap.phase
        self.hands = deepcopy(snap.hands)
        self.tiger_streak = dict(snap.tiger_streak)
        self.evo_available = dict(snap.evo_available)
        self.frozen_units = deepcopy(snap.frozen_units)
        self.no_move_counts = dict(snap.no_move_counts)
        self.turn_number = snap.turn_number
        self.no_capture_turns = snap.no_capture_turns
        self.stats = deepcopy(snap.stats)
        self.winner = None
        self.is_draw = False
        self.game_over_reason = None

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)
