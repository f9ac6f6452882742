"""
Tests for sessions, the bot turn slot and the game loop.

Tests:
- Bot turn scheduling with a controllable clock
- Stale and cancelled bot turns
- One action in flight at a time
- Stats hooks
- Undo through the loop
- Session lifecycle
"""

import pytest

from ..engine_core.action import Action
from ..engine_core.exceptions import ReentrantActionError, SessionNotFoundError
from ..engine_core.state import AnimalType, GamePhase, Position
from ..session import BotTurnSlot, GameLoop, LoopState, SessionManager
from ..session.manager import SessionState
from ..storage import InMemoryStatsStore
from .conftest import BLUE, RED, build_state, make_piece

A = AnimalType
P = Position


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def manager(stats_store):
    return SessionManager(stats_store=stats_store)


@pytest.fixture
def loop(manager, clock):
    session = manager.create_session(seed=5)
    return GameLoop(session, bot_delay=1.0, clock=clock)


class TestBotTurnSlot:
    """Tests for the single-slot bot queue."""

    def test_schedule_sets_due_time(self, clock):
        clock.now = 10.0
        slot = BotTurnSlot(delay=2.0, clock=clock)
        assert slot.schedule("g", 3)
        assert slot.pending.turn_number == 3
        assert slot.pending.due_at == 12.0

    def test_slot_holds_one_entry(self, clock):
        slot = BotTurnSlot(delay=1.0, clock=clock)
        assert slot.schedule("g", 1)
        assert not slot.schedule("g", 2)
        assert slot.pending.turn_number == 1

    def test_due_and_remaining(self, clock):
        slot = BotTurnSlot(delay=1.5, clock=clock)
        assert not slot.is_due()
        assert slot.remaining() == 0.0
        slot.schedule("g", 1)
        assert not slot.is_due(now=1.0)
        assert slot.remaining(now=1.0) == pytest.approx(0.5)
        assert slot.is_due(now=1.5)
        assert slot.remaining(now=2.0) == 0.0

    def test_cancel_and_take_empty_the_slot(self, clock):
        slot = BotTurnSlot(clock=clock)
        slot.schedule("g", 1)
        pending = slot.take()
        assert pending.turn_number == 1
        assert slot.is_empty()
        assert slot.cancel() is None


class TestBotScheduling:
    """Tests for when bot turns are queued and fired."""

    def test_not_started(self, loop):
        assert loop.state is LoopState.NOT_STARTED
        assert loop.tick(now=100.0) is None

    def test_human_first_waits_for_human(self, loop):
        result = loop.start_game(RED)
        assert result.success
        assert loop.state is LoopState.WAITING_HUMAN
        assert loop.slot.is_empty()

    def test_bot_first_is_queued(self, loop):
        loop.start_game(BLUE)
        assert loop.state is LoopState.BOT_PENDING
        assert loop.slot.pending.turn_number == 1
        assert loop.slot.pending.due_at == 1.0

    def test_tick_waits_for_the_delay(self, loop):
        loop.start_game(BLUE)
        assert loop.tick(now=0.5) is None
        assert loop.game_state.is_first_turn

        result = loop.tick(now=1.0)
        assert result.success
        assert len(result.bot_actions) == 1
        assert result.bot_actions[0].startswith("flip")
        assert loop.state is LoopState.WAITING_HUMAN
        assert loop.slot.is_empty()

    def test_human_action_queues_the_bot(self, loop):
        loop.start_game(RED)
        result = loop.flip(P(0, 0))
        assert result.success
        assert result.loop_state is LoopState.BOT_PENDING
        assert loop.slot.pending.turn_number == loop.game_state.turn_number

    def test_run_bot_turns_plays_immediately(self, loop):
        loop.start_game(BLUE)
        results = loop.run_bot_turns()
        assert len(results) == 1
        assert results[0].success
        assert loop.game_state.turn is RED
        assert loop.slot.is_empty()

    def test_out_of_turn_action_keeps_the_pending_turn(self, loop):
        loop.start_game(BLUE)
        pending = loop.slot.pending
        result = loop.flip(P(0, 0))
        assert not result.success
        assert result.error_code == "ILLEGAL_ACTION"
        assert loop.slot.pending == pending

    def test_stale_turn_is_dropped(self, loop):
        loop.start_game(BLUE)
        loop.slot.cancel()
        loop.slot.schedule(loop.game_state.game_id, 99)

        result = loop.tick(now=5.0)
        assert not result.success
        assert result.error_code == "STALE_BOT_TURN"
        assert loop.game_state.is_first_turn
        # Re-queued for the real turn
        assert loop.slot.pending.turn_number == 1

    def test_new_game_cancels_pending_turn(self, loop):
        loop.start_game(BLUE)
        assert not loop.slot.is_empty()
        loop.start_game(RED)
        assert loop.slot.is_empty()

    def test_game_over_cancels_pending_turn(self, loop):
        loop.start_game(BLUE)
        result = loop.submit(Action.surrender(BLUE))
        assert result.success
        assert result.loop_state is LoopState.GAME_OVER
        assert result.winner is RED
        assert loop.slot.is_empty()
        assert loop.session.state is SessionState.GAME_OVER

    def test_bot_turn_outside_its_turn(self, loop):
        loop.start_game(RED)
        results = loop.run_bot_turns()
        assert results == []


class TestSingleActionInFlight:
    """Only one submission is applied at a time."""

    def test_nested_submit_is_rejected(self, clock):
        class ReentrantStore(InMemoryStatsStore):
            def __init__(self):
                super().__init__()
                self.loop = None
                self.seen_state = None
                self.errors = []

            def record_capture(self):
                super().record_capture()
                self.seen_state = self.loop.state
                try:
                    self.loop.submit(Action.surrender(RED))
                except ReentrantActionError as e:
                    self.errors.append(e)

        store = ReentrantStore()
        session = SessionManager(stats_store=store).create_session(seed=1)
        session.game_state = build_state({
            (1, 1): make_piece(RED, A.TIGER),
            (1, 0): make_piece(BLUE, A.DOG),
            (3, 3): make_piece(BLUE, A.CAT),
        })
        loop = GameLoop(session, clock=clock)
        store.loop = loop

        result = loop.move(P(1, 1), P(1, 0))
        assert result.success
        assert store.seen_state is LoopState.APPLYING
        assert len(store.errors) == 1
        assert store.errors[0].error_code == "ACTION_IN_FLIGHT"
        assert not loop.game_state.is_terminal
        assert loop.state is LoopState.BOT_PENDING


class TestStatsHooks:
    """Tests for events forwarded to the stats store."""

    def _loop_with(self, manager, clock, state):
        session = manager.create_session(seed=2)
        session.game_state = state
        return GameLoop(session, clock=clock)

    def test_human_capture_is_counted(self, manager, clock, stats_store):
        loop = self._loop_with(manager, clock, build_state({
            (1, 1): make_piece(RED, A.TIGER),
            (1, 0): make_piece(BLUE, A.DOG),
            (3, 3): make_piece(BLUE, A.CAT),
        }))
        loop.move(P(1, 1), P(1, 0))
        assert stats_store.read_aggregate_stats().captures == 1

    def test_bot_capture_is_not_counted(self, manager, clock, stats_store):
        loop = self._loop_with(manager, clock, build_state({
            (1, 1): make_piece(BLUE, A.TIGER),
            (1, 0): make_piece(RED, A.DOG),
            (3, 3): make_piece(RED, A.CAT),
        }, turn=BLUE))
        result = loop.submit(Action.move(BLUE, P(1, 1), P(1, 0)))
        assert result.success
        assert stats_store.read_aggregate_stats().captures == 0

    def test_human_evolution_is_counted(self, manager, clock, stats_store):
        state = build_state({
            (0, 0): make_piece(RED, A.TIGER),
            (0, 3): make_piece(RED, A.DOG),
            (3, 3): make_piece(BLUE, A.WOLF),
            (3, 1): make_piece(BLUE, A.DOG),
        })
        state.tiger_streak[RED] = 9
        loop = self._loop_with(manager, clock, state)
        loop.move(P(0, 0), P(1, 0))
        assert stats_store.read_aggregate_stats().evolutions == 1

    def test_loss_is_recorded(self, loop, stats_store):
        loop.start_game(RED)
        loop.surrender()
        stats = stats_store.read_aggregate_stats()
        assert stats.total == 1
        assert stats.wins == 0

    def test_draw_is_not_recorded(self, manager, clock, stats_store):
        state = build_state({(0, 0): make_piece(RED, A.DOG), (3, 3): make_piece(BLUE, A.DOG)})
        state.no_capture_turns = 2
        loop = self._loop_with(manager, clock, state)
        result = loop.move(P(0, 0), P(1, 0))
        assert result.is_draw
        assert stats_store.read_aggregate_stats().total == 0

    def test_rejected_action_records_nothing(self, loop, stats_store):
        loop.start_game(RED)
        loop.move(P(0, 0), P(0, 1))
        assert stats_store.read_aggregate_stats() == InMemoryStatsStore().read_aggregate_stats()


class TestUndoThroughLoop:
    """Tests for the human undo."""

    def test_undo_rewinds_the_bot_reply(self, loop):
        loop.start_game(RED)
        loop.flip(P(0, 0))
        loop.run_bot_turns()
        assert loop.game_state.turn is RED

        result = loop.undo()
        assert result.success
        state = loop.game_state
        assert state.turn is RED
        assert state.phase is GamePhase.FIRST_TURN_PENDING
        assert len(state.hidden_positions()) == 16
        assert state.undo_counts[RED] == 2
        assert loop.slot.is_empty()

    def test_undo_with_empty_history(self, loop):
        loop.start_game(RED)
        result = loop.undo()
        assert not result.success
        assert result.error_code == "NOTHING_TO_UNDO"

    def test_undo_after_game_over(self, loop):
        loop.start_game(RED)
        loop.flip(P(0, 0))
        loop.run_bot_turns()
        loop.surrender()
        assert loop.state is LoopState.GAME_OVER

        result = loop.undo()
        assert result.success
        assert loop.game_state.winner is None
        assert loop.state is LoopState.WAITING_HUMAN


class TestSessionManager:
    """Tests for session lifecycle."""

    def test_create_and_get(self, manager):
        session = manager.create_session(seed=1)
        assert manager.get_session(session.session_id) is session
        assert session.game_state.phase is GamePhase.NOT_STARTED
        assert session.game_state.game_id == session.session_id
        assert session.bot.get_name() == "JungleBot"

    def test_require_unknown_session(self, manager):
        with pytest.raises(SessionNotFoundError):
            manager.require_session("missing")

    def test_end_session(self, manager):
        session = manager.create_session()
        assert manager.end_session(session.session_id)
        assert manager.get_session(session.session_id) is None
        assert not manager.end_session(session.session_id)

    def test_sessions_share_the_stats_store(self, manager, stats_store):
        first = manager.create_session()
        second = manager.create_session()
        assert first.stats_store is stats_store
        assert second.stats_store is stats_store
        assert len(manager.list_sessions()) == 2

    def test_cleanup_only_removes_finished_sessions(self, manager):
        finished = manager.create_session()
        active = manager.create_session()
        finished.created_at = active.created_at = 0.0
        finished.state = SessionState.GAME_OVER

        assert manager.cleanup_stale_sessions(max_age_seconds=10) == [finished.session_id]
        assert manager.list_active_sessions() == [active.session_id]

    def test_seeded_sessions_deal_the_same_board(self, manager):
        boards = []
        for _ in range(2):
            loop = GameLoop(manager.create_session(seed=11))
            loop.start_game(RED)
            boards.append([
                cell.piece.piece_id for _, cell in loop.game_state.cells()
            ])
        assert boards[0] == boards[1]
