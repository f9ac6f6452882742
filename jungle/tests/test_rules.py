"""
Tests for the rule engine.

Tests:
- Rank table and capture precedence
- Deck construction and dealing
- Movement geometry per animal
- Final showdown dominance
"""

import random

import pytest

from ..engine_core.state import AnimalType, Cell, FrozenUnits, GuardState, Position
from ..engine_core.rules import (
    ANIMAL_RANKS,
    CAT_RAT,
    beats,
    build_shuffled_deck,
    can_capture,
    effective_rank,
    is_trade,
    new_board,
    showdown_result,
)
from ..engine_core.action_generator import enumerate_targets
from .conftest import BLUE, RED, build_state, make_piece

A = AnimalType


def revealed(owner, animal, **kwargs) -> Cell:
    return Cell(piece=make_piece(owner, animal, **kwargs), revealed=True)


class TestRanks:
    """Tests for the rank table."""

    def test_rank_order(self):
        order = [A.RAT, A.CAT, A.DOG, A.WOLF, A.LEOPARD, A.TIGER, A.LION, A.ELEPHANT, A.BIG_TIGER]
        assert [ANIMAL_RANKS[a] for a in order] == list(range(1, 10))

    def test_effective_rank_overrides(self):
        assert effective_rank(A.RAT, A.ELEPHANT) == 100
        assert effective_rank(A.ELEPHANT, A.RAT) == -1
        assert effective_rank(A.ELEPHANT, A.BIG_TIGER) == 100
        assert effective_rank(A.BIG_TIGER, A.ELEPHANT) == -1
        assert effective_rank(A.BIG_TIGER, A.LION) == 9
        assert effective_rank(A.RAT, A.CAT) == 1
        assert effective_rank(A.LION) == 7

    def test_trade_is_equal_rank(self):
        assert is_trade(A.DOG, A.DOG)
        assert not is_trade(A.DOG, A.CAT)
        assert not is_trade(A.BIG_TIGER, A.BIG_TIGER)


class TestCanCapture:
    """Tests for capture precedence."""

    def test_rat_takes_elephant(self):
        assert can_capture(make_piece(RED, A.RAT), revealed(BLUE, A.ELEPHANT))

    def test_elephant_never_takes_rat(self):
        assert not can_capture(make_piece(RED, A.ELEPHANT), revealed(BLUE, A.RAT))

    def test_elephant_takes_big_tiger(self):
        assert can_capture(make_piece(RED, A.ELEPHANT), revealed(BLUE, A.BIG_TIGER))

    def test_big_tiger_never_takes_elephant(self):
        assert not can_capture(make_piece(RED, A.BIG_TIGER), revealed(BLUE, A.ELEPHANT))

    @pytest.mark.parametrize("defender", [A.RAT, A.CAT, A.DOG, A.WOLF, A.LEOPARD, A.TIGER, A.LION])
    def test_big_tiger_takes_lion_and_below(self, defender):
        assert can_capture(make_piece(RED, A.BIG_TIGER), revealed(BLUE, defender))

    def test_big_tiger_cannot_take_big_tiger(self):
        assert not can_capture(make_piece(RED, A.BIG_TIGER), revealed(BLUE, A.BIG_TIGER))

    @pytest.mark.parametrize("attacker", [A.RAT, A.TIGER, A.LION])
    def test_only_elephant_takes_big_tiger(self, attacker):
        assert not can_capture(make_piece(RED, attacker), revealed(BLUE, A.BIG_TIGER))

    def test_hidden_cell_is_never_a_target(self):
        cell = Cell(piece=make_piece(BLUE, A.RAT), revealed=False)
        assert not can_capture(make_piece(RED, A.ELEPHANT), cell)

    def test_empty_cell_is_always_a_target(self):
        assert can_capture(make_piece(RED, A.RAT), Cell(revealed=True))

    def test_own_piece_is_never_a_target(self):
        assert not can_capture(make_piece(RED, A.ELEPHANT), revealed(RED, A.RAT))

    def test_immune_piece_is_never_a_target(self):
        cell = revealed(BLUE, A.WOLF, guard=GuardState.IMMUNE)
        assert not can_capture(make_piece(RED, A.ELEPHANT), cell)

    def test_higher_or_equal_rank_wins(self):
        assert can_capture(make_piece(RED, A.LION), revealed(BLUE, A.TIGER))
        assert can_capture(make_piece(RED, A.DOG), revealed(BLUE, A.DOG))
        assert not can_capture(make_piece(RED, A.CAT), revealed(BLUE, A.DOG))

    def test_beats_ignores_cell_state(self):
        assert beats(A.RAT, A.ELEPHANT)
        assert not beats(A.WOLF, A.LEOPARD)


class TestDeck:
    """Tests for deck construction and dealing."""

    def test_deck_has_one_of_each_per_side(self):
        deck = build_shuffled_deck(random.Random(1))
        assert len(deck) == 16
        ids = {p.piece_id for p in deck}
        assert "red-rat" in ids and "blue-elephant" in ids
        assert len(ids) == 16
        for player in (RED, BLUE):
            animals = sorted(p.animal.value for p in deck if p.owner is player)
            assert len(animals) == 8
            assert A.BIG_TIGER.value not in animals

    def test_seeded_deal_is_reproducible(self):
        first = [p.piece_id for p in build_shuffled_deck(random.Random(42))]
        second = [p.piece_id for p in build_shuffled_deck(random.Random(42))]
        assert first == second

    def test_new_board_is_face_down(self):
        board = new_board(random.Random(5))
        assert len(board) == 4 and all(len(row) == 4 for row in board)
        for row in board:
            for cell in row:
                assert not cell.revealed
                assert cell.piece is not None


class TestEnumerateTargets:
    """Tests for movement geometry."""

    def test_orthogonal_step_in_scan_order(self):
        dog = make_piece(RED, A.DOG)
        state = build_state({(1, 1): dog})
        targets = enumerate_targets(Position(1, 1), dog, state.board)
        assert targets == [Position(1, 0), Position(0, 1), Position(2, 1), Position(1, 2)]

    def test_corner_piece_has_two_steps(self):
        cat = make_piece(RED, A.CAT)
        state = build_state({(0, 0): cat})
        assert enumerate_targets(Position(0, 0), cat, state.board) == [Position(1, 0), Position(0, 1)]

    def test_hidden_and_own_cells_are_skipped(self):
        dog = make_piece(RED, A.DOG)
        state = build_state(
            {(1, 1): dog, (2, 1): make_piece(RED, A.CAT)},
            hidden={(1, 0): make_piece(BLUE, A.RAT)},
        )
        targets = enumerate_targets(Position(1, 1), dog, state.board)
        assert Position(1, 0) not in targets
        assert Position(2, 1) not in targets
        assert targets == [Position(0, 1), Position(1, 2)]

    def test_rat_moves_one_step(self):
        rat = make_piece(RED, A.RAT)
        state = build_state({(0, 0): rat})
        targets = enumerate_targets(Position(0, 0), rat, state.board)
        assert Position(3, 3) not in targets
        assert len(targets) == 2

    def test_wolf_lists_its_own_cell(self):
        wolf = make_piece(RED, A.WOLF)
        state = build_state({(2, 2): wolf})
        targets = enumerate_targets(Position(2, 2), wolf, state.board)
        assert Position(2, 2) in targets
        assert len(targets) == 5

    def test_leopard_jumps_over_empty_cell(self):
        leopard = make_piece(RED, A.LEOPARD)
        state = build_state({(0, 0): leopard})
        targets = enumerate_targets(Position(0, 0), leopard, state.board)
        assert Position(2, 0) in targets
        assert Position(0, 2) in targets

    def test_leopard_cannot_jump_over_piece_or_hidden_cell(self):
        leopard = make_piece(RED, A.LEOPARD)
        state = build_state(
            {(0, 0): leopard, (1, 0): make_piece(BLUE, A.RAT)},
            hidden={(0, 1): make_piece(BLUE, A.CAT)},
        )
        targets = enumerate_targets(Position(0, 0), leopard, state.board)
        assert Position(2, 0) not in targets
        assert Position(0, 2) not in targets
        assert Position(1, 0) in targets

    def test_leopard_jump_can_capture(self):
        leopard = make_piece(RED, A.LEOPARD)
        state = build_state({(0, 0): leopard, (2, 0): make_piece(BLUE, A.DOG)})
        assert Position(2, 0) in enumerate_targets(Position(0, 0), leopard, state.board)

    def test_big_tiger_moves_diagonally(self):
        big = make_piece(RED, A.BIG_TIGER)
        state = build_state({(1, 1): big, (2, 2): make_piece(BLUE, A.LION)})
        targets = enumerate_targets(Position(1, 1), big, state.board)
        assert Position(0, 0) in targets
        assert Position(2, 2) in targets

    def test_big_tiger_jumps_over_enemy(self):
        big = make_piece(RED, A.BIG_TIGER)
        state = build_state({(0, 0): big, (1, 0): make_piece(BLUE, A.ELEPHANT)})
        targets = enumerate_targets(Position(0, 0), big, state.board)
        assert Position(2, 0) in targets
        assert Position(1, 0) not in targets

    def test_big_tiger_cannot_jump_over_own_piece(self):
        big = make_piece(RED, A.BIG_TIGER)
        state = build_state({(0, 0): big, (1, 0): make_piece(RED, A.CAT)})
        assert Position(2, 0) not in enumerate_targets(Position(0, 0), big, state.board)

    def test_big_tiger_cannot_jump_over_hidden_cell(self):
        big = make_piece(RED, A.BIG_TIGER)
        state = build_state({(0, 0): big}, hidden={(1, 0): make_piece(BLUE, A.CAT)})
        assert Position(2, 0) not in enumerate_targets(Position(0, 0), big, state.board)

    def test_frozen_cat_and_rat_have_no_targets(self):
        cat = make_piece(BLUE, A.CAT)
        dog = make_piece(BLUE, A.DOG)
        state = build_state({(0, 0): cat, (3, 3): dog})
        frozen = FrozenUnits(player=BLUE, animals=CAT_RAT)
        assert enumerate_targets(Position(0, 0), cat, state.board, frozen) == []
        assert enumerate_targets(Position(3, 3), dog, state.board, frozen) != []

    def test_freeze_only_applies_to_its_player(self):
        cat = make_piece(RED, A.CAT)
        state = build_state({(0, 0): cat})
        frozen = FrozenUnits(player=BLUE, animals=CAT_RAT)
        assert enumerate_targets(Position(0, 0), cat, state.board, frozen) != []


class TestShowdown:
    """Tests for final showdown dominance."""

    def test_rat_beats_elephant_either_seat(self):
        assert showdown_result(A.RAT, A.ELEPHANT) is RED
        assert showdown_result(A.ELEPHANT, A.RAT) is BLUE

    def test_elephant_beats_big_tiger(self):
        assert showdown_result(A.ELEPHANT, A.BIG_TIGER) is RED
        assert showdown_result(A.BIG_TIGER, A.ELEPHANT) is BLUE

    def test_higher_rank_wins(self):
        assert showdown_result(A.LION, A.DOG) is RED
        assert showdown_result(A.CAT, A.WOLF) is BLUE

    def test_equal_rank_is_a_draw(self):
        assert showdown_result(A.TIGER, A.TIGER) is None
