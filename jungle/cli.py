"""
Jungle CLI - Play in the terminal.

Usage:
    jungle play [--seed N] [--first red|blue] [--stats-file PATH]
    jungle stats [--stats-file PATH]

In a game, type:
    f X Y            flip the cell at column X, row Y
    m X1 Y1 X2 Y2    move from (X1,Y1) to (X2,Y2)
    w X Y            wolf at (X,Y) waits
    u                undo
    s                surrender
    n                new game
    q                quit
"""

import argparse
import sys
import time

from .config import BOT_DELAY, JUNGLE_LOG_LEVEL, STATS_FILE
from .logging_config import setup_logging
from .engine_core.state import AnimalType, GameState, Player, Position
from .session import GameLoop, SessionManager, TurnResult
from .storage import JsonFileStatsStore


ANIMAL_SYMBOLS = {
    AnimalType.RAT: "Ra",
    AnimalType.CAT: "Ca",
    AnimalType.DOG: "Do",
    AnimalType.WOLF: "Wo",
    AnimalType.LEOPARD: "Le",
    AnimalType.TIGER: "Ti",
    AnimalType.LION: "Li",
    AnimalType.ELEPHANT: "El",
    AnimalType.BIG_TIGER: "BT",
}

HELP = __doc__.split("In a game, type:")[1]


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Jungle Flip - face-down Jungle Chess against a bot",
        prog="jungle",
    )
    parser.add_argument("--log-level", default=JUNGLE_LOG_LEVEL, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Play command
    play_parser = subparsers.add_parser("play", help="Play a game in the terminal")
    play_parser.add_argument("--seed", type=int, default=None, help="Random seed")
    play_parser.add_argument(
        "--first", choices=["red", "blue"], default=None, help="Who flips first"
    )
    play_parser.add_argument("--stats-file", default=str(STATS_FILE), help="Stats JSON file")
    play_parser.add_argument(
        "--bot-delay", type=float, default=BOT_DELAY, help="Bot thinking time in seconds"
    )

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show lifetime statistics")
    stats_parser.add_argument("--stats-file", default=str(STATS_FILE), help="Stats JSON file")

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "play":
        cmd_play(args)
    elif args.command == "stats":
        cmd_stats(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_stats(args, out=print):
    """Print lifetime statistics."""
    store = JsonFileStatsStore(args.stats_file)
    stats = store.read_aggregate_stats()
    out(f"Games played: {stats.total}")
    out(f"Wins:         {stats.wins} ({stats.win_rate:.0%})")
    out(f"Losses:       {stats.losses}")
    out(f"Captures:     {stats.captures}")
    out(f"Evolutions:   {stats.evolutions}")


def cmd_play(args, read=input, out=print, sleep=time.sleep):
    """Interactive game loop."""
    store = JsonFileStatsStore(args.stats_file)
    manager = SessionManager(stats_store=store)
    session = manager.create_session(seed=args.seed)
    loop = GameLoop(session, bot_delay=args.bot_delay)
    first = Player(args.first) if args.first else None

    if not store.read_tutorial_seen():
        out(HELP)
        store.mark_tutorial_seen()

    report(loop.start_game(first), out)
    while True:
        play_bot(loop, out, sleep)
        out(render(loop.game_state))
        if loop.game_state.is_terminal:
            out("Game over. 'n' for a new game, 'u' to undo, 'q' to quit.")

        try:
            line = read("> ").strip().lower()
        except EOFError:
            return
        if not line:
            continue
        if line in ("q", "quit", "exit"):
            return
        if line in ("h", "help", "?"):
            out(HELP)
            continue
        if line == "n":
            report(loop.start_game(first), out)
            continue

        result = dispatch(loop, line)
        if result is None:
            out("Unknown command. Type 'h' for help.")
        else:
            report(result, out)


def dispatch(loop, line):
    """Turn one typed command into a loop call. Returns None if it does not parse."""
    command, *rest = line.split()
    try:
        numbers = [int(n) for n in rest]
    except ValueError:
        return None

    if command == "f" and len(numbers) == 2:
        return loop.flip(Position(*numbers))
    if command == "m" and len(numbers) == 4:
        return loop.move(Position(numbers[0], numbers[1]), Position(numbers[2], numbers[3]))
    if command == "w" and len(numbers) == 2:
        return loop.wait(Position(*numbers))
    if command == "u" and not numbers:
        return loop.undo()
    if command == "s" and not numbers:
        return loop.surrender()
    return None


def play_bot(loop, out=print, sleep=time.sleep):
    """Let the bot think, then play, until the human holds the turn."""
    while loop.slot.pending is not None:
        out("Bot is thinking...")
        sleep(loop.slot.remaining())
        result = loop.tick()
        if result is not None:
            report(result, out, prefix="Bot: ")


def report(result: TurnResult, out=print, prefix=""):
    for change in result.changes:
        out(f"{prefix}{change}")
    for error in result.errors:
        out(f"! {error}")


def render(state: GameState) -> str:
    """Text board: '??' hidden, '..' empty, r/b prefix for the owner."""
    lines = ["     " + "    ".join(str(x) for x in range(4))]
    for y, row in enumerate(state.board):
        cells = []
        for cell in row:
            if not cell.revealed:
                cells.append(" ?? ")
            elif cell.piece is None:
                cells.append(" .. ")
            else:
                mark = "*" if cell.piece.is_immune else " "
                cells.append(f"{cell.piece.owner.value[0]}{ANIMAL_SYMBOLS[cell.piece.animal]}{mark}")
        lines.append(f"{y}  " + " ".join(cells))

    for player in (Player.RED, Player.BLUE):
        hand = ", ".join(ANIMAL_SYMBOLS[p.animal] for p in state.hands[player]) or "-"
        credits = state.undo_counts[player]
        lines.append(
            f"{player.value:>4}: hand [{hand}]  streak {state.tiger_streak[player]}"
            f"  evo {'yes' if state.evo_available[player] else 'no'}"
            + (f"  undo {credits}" if credits is not None else "")
        )
    if state.frozen_units is not None:
        lines.append(f"Frozen: {state.frozen_units.player.value} cat and rat")
    if state.is_terminal:
        lines.append(
            "Draw" if state.is_draw else f"{state.winner.value.upper()} wins"
        )
        if state.game_over_reason:
            lines[-1] += f" ({state.game_over_reason})"
    elif state.turn is not None:
        lines.append(f"Turn {state.turn_number}: {state.turn.value}")
    return "\n".join(lines)


if __name__ == "__main__":
    main()
