"""
Tests for the terminal front end.
"""

import argparse

import pytest

from ..cli import HELP, cmd_play, cmd_stats, dispatch, main, render
from ..engine_core.state import AnimalType, GamePhase, GuardState
from ..session import GameLoop, SessionManager
from ..storage import JsonFileStatsStore
from .conftest import BLUE, RED, build_state, make_piece

A = AnimalType


def play_args(tmp_path, **overrides):
    values = {
        "seed": 4,
        "first": "red",
        "stats_file": str(tmp_path / "stats.json"),
        "bot_delay": 0.0,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


def scripted(lines):
    remaining = list(lines)

    def read(prompt):
        if not remaining:
            raise EOFError
        return remaining.pop(0)

    return read


class TestDispatch:
    """Typed commands map onto loop calls."""

    @pytest.fixture
    def loop(self):
        loop = GameLoop(SessionManager().create_session(seed=3))
        loop.start_game(RED)
        return loop

    def test_flip(self, loop):
        result = dispatch(loop, "f 2 1")
        assert result.success
        assert loop.game_state.turn_number == 2

    def test_move_rejected_on_first_turn(self, loop):
        result = dispatch(loop, "m 0 0 0 1")
        assert not result.success
        assert result.errors

    def test_unparseable(self, loop):
        assert dispatch(loop, "f one two") is None
        assert dispatch(loop, "f 1") is None
        assert dispatch(loop, "jump 1 1") is None
        assert dispatch(loop, "u 1") is None

    def test_undo_and_surrender(self, loop):
        assert dispatch(loop, "u").error_code == "NOTHING_TO_UNDO"
        assert dispatch(loop, "s").winner is BLUE


class TestRender:
    def test_board_symbols(self):
        state = build_state(
            {
                (0, 0): make_piece(RED, A.LION),
                (1, 0): make_piece(BLUE, A.WOLF, guard=GuardState.IMMUNE),
            },
            hidden={(3, 3): make_piece(BLUE, A.RAT)},
        )
        text = render(state)
        assert "rLi " in text
        assert "bWo*" in text
        assert "??" in text
        assert ".." in text
        assert "undo 3" in text
        assert "Turn 1: red" in text

    def test_game_over_line(self):
        state = build_state({(0, 0): make_piece(RED, A.LION)})
        state.phase = GamePhase.TERMINAL
        state.winner = RED
        state.game_over_reason = "blue surrendered"
        assert render(state).endswith("RED wins (blue surrendered)")


class TestCommands:
    """Whole CLI commands with scripted input."""

    def test_play_shows_tutorial_once(self, tmp_path):
        out = []
        cmd_play(play_args(tmp_path), read=scripted(["q"]), out=out.append, sleep=lambda s: None)
        assert HELP in out

        out.clear()
        cmd_play(play_args(tmp_path), read=scripted(["q"]), out=out.append, sleep=lambda s: None)
        assert HELP not in out

    def test_play_a_turn(self, tmp_path):
        out = []
        cmd_play(
            play_args(tmp_path),
            read=scripted(["f 0 0", "bogus", "s"]),
            out=out.append,
            sleep=lambda s: None,
        )
        text = "\n".join(out)
        assert "Flipped" in text
        assert "Bot: " in text
        assert "Unknown command" in text
        assert "BLUE wins" in text

        stats = JsonFileStatsStore(tmp_path / "stats.json").read_aggregate_stats()
        assert stats.total == 1
        assert stats.wins == 0

    def test_stats(self, tmp_path):
        store = JsonFileStatsStore(tmp_path / "stats.json")
        store.record_outcome("win")
        store.record_evolution()
        out = []
        cmd_stats(argparse.Namespace(stats_file=str(tmp_path / "stats.json")), out=out.append)
        assert "Games played: 1" in out
        assert any(line.startswith("Wins:") and "100%" in line for line in out)
        assert "Evolutions:   1" in out

    def test_no_command_exits(self, capsys):
        with pytest.raises(SystemExit):
            main([])
