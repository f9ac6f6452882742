"""
Rules - Rank table, deck construction and capture legality.

Pure functions only. Movement geometry lives in action_generator.
"""

from __future__ import annotations
import random

from .state import (
    GRID_SIZE,
    BASE_ANIMALS,
    AnimalType,
    Cell,
    Piece,
    Player,
)


ANIMAL_RANKS: dict[AnimalType, int] = {
    AnimalType.RAT: 1,
    AnimalType.CAT: 2,
    AnimalType.DOG: 3,
    AnimalType.WOLF: 4,
    AnimalType.LEOPARD: 5,
    AnimalType.TIGER: 6,
    AnimalType.LION: 7,
    AnimalType.ELEPHANT: 8,
    AnimalType.BIG_TIGER: 9,
}

HISTORY_LIMIT = 10
EVOLUTION_STREAK = 10
MAX_NO_MOVE_TURNS = 3
SHOWDOWN_NO_CAPTURE_TURNS = 3
PIECES_PER_SIDE = len(BASE_ANIMALS)
CAT_RAT = frozenset({AnimalType.CAT, AnimalType.RAT})

# (winner, loser) pairs that ignore the rank table
RANK_OVERRIDES = frozenset({
    (AnimalType.RAT, AnimalType.ELEPHANT),
    (AnimalType.ELEPHANT, AnimalType.BIG_TIGER),
})

# Dog alert reveals the first hidden neighbor in this order
NEIGHBOR_ORDER = [(0, 1), (0, -1), (1, 0), (-1, 0)]


def rank(animal: AnimalType) -> int:
    return ANIMAL_RANKS[animal]


def build_shuffled_deck(rng: random.Random | None = None) -> list[Piece]:
    """One red and one blue piece of each base animal, uniformly shuffled."""
    rng = rng or random.Random()
    deck = []
    for animal in BASE_ANIMALS:
        for player in (Player.RED, Player.BLUE):
            deck.append(Piece(
                piece_id=f"{player.value}-{animal.value}",
                animal=animal,
                owner=player,
            ))
    rng.shuffle(deck)
    return deck


def new_board(rng: random.Random | None = None) -> list[list[Cell]]:
    """Deal a shuffled deck row by row, every cell face down."""
    deck = build_shuffled_deck(rng)
    return [
        [Cell(piece=deck[y * GRID_SIZE + x], revealed=False) for x in range(GRID_SIZE)]
        for y in range(GRID_SIZE)
    ]


def beats(attacker: AnimalType, defender: AnimalType) -> bool:
    """
    Animal-vs-animal capture rule, ignoring cell state.

    First match wins:
    1. rat takes elephant
    2. elephant never takes rat
    3. big tiger: never elephant, always lion, anything up to tiger rank
    4. elephant takes big tiger
    5. nothing else takes big tiger
    6. rank >= rank
    """
    if attacker is AnimalType.RAT and defender is AnimalType.ELEPHANT:
        return True
    if attacker is AnimalType.ELEPHANT and defender is AnimalType.RAT:
        return False
    if attacker is AnimalType.BIG_TIGER:
        if defender is AnimalType.ELEPHANT:
            return False
        return defender is AnimalType.LION or rank(defender) <= rank(AnimalType.TIGER)
    if attacker is AnimalType.ELEPHANT and defender is AnimalType.BIG_TIGER:
        return True
    if defender is AnimalType.BIG_TIGER:
        return False
    return rank(attacker) >= rank(defender)


def can_capture(attacker: Piece, target: Cell) -> bool:
    """Whether `attacker` may enter `target` (plain move or attack)."""
    if not target.revealed:
        return False
    if target.piece is None:
        return True
    defender = target.piece
    if defender.owner is attacker.owner:
        return False
    if defender.is_immune:
        return False
    return beats(attacker.animal, defender.animal)


def is_trade(attacker: AnimalType, defender: AnimalType) -> bool:
    """Equal effective rank: both pieces leave the board."""
    if AnimalType.BIG_TIGER in (attacker, defender):
        return False
    return rank(attacker) == rank(defender)


def effective_rank(animal: AnimalType, against: AnimalType | None = None) -> int:
    """
    Rank of `animal` when facing `against`.

    Rat over elephant and elephant over big tiger are the two overrides.
    """
    if (animal, against) in RANK_OVERRIDES:
        return 100
    if (against, animal) in RANK_OVERRIDES:
        return -1
    return rank(animal)


def showdown_result(red: AnimalType, blue: AnimalType) -> Player | None:
    """
    Winner of a one-on-one final showdown, None for a draw.

    Rat beats elephant and elephant beats big tiger whichever side holds
    them; otherwise the strictly higher rank wins.
    """
    if (red, blue) in RANK_OVERRIDES:
        return Player.RED
    if (blue, red) in RANK_OVERRIDES:
        return Player.BLUE
    if rank(red) > rank(blue):
        return Player.RED
    if rank(blue) > rank(red):
        return Player.BLUE
    return None
