"""CLI entry point: python -m river_escape {play,solve,shortest,agent,chart}."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Callable

from river_escape.board import CANNIBALS, EASY, HARD, MISSIONARIES, WON, GameState
from river_escape.chart import make_progress_chart
from river_escape.game import PuzzleRunner
from river_escape.players import MODELS, find_model
from river_escape.scheduler import AsyncioScheduler, ManualScheduler
from river_escape.session import GameSession, Notice
from river_escape.solver import SOLUTION_STEPS, STEP_DELAY, hint_for, replay_script, shortest_solution

Output = Callable[[str], None]

KIND_KEYS = {"m": MISSIONARIES, "c": CANNIBALS}

HELP = """\
Commands:
  m / c          put a missionary / cannibal in the boat
  -m / -c        take one back out
  go             cross the river
  hint           suggest the next crossing
  hints          toggle hints under the board
  difficulty     switch between easy (15 moves) and hard (11 moves)
  reset          start over
  solve          watch the optimal solution (press Enter for each step)
  stop           stop the demonstration and play on from there
  theme          toggle dark mode
  quit           leave"""


class PrintObserver:
    """Echoes notices (and optionally boards) to the terminal."""

    def __init__(self, out: Output = print, show_states: bool = False):
        self.out = out
        self.show_states = show_states
        self.on_won: Callable[[], None] | None = None

    def on_state(self, state: GameState) -> None:
        if self.show_states and state.move_count:
            self.out(
                f"  [{state.move_count:2d}] left {state.left_bank.missionaries}M {state.left_bank.cannibals}C"
                f" | right {state.right_bank.missionaries}M {state.right_bank.cannibals}C"
                f" | boat {state.boat.position}"
            )
        if state.status == WON and self.on_won is not None:
            self.on_won()

    def on_notice(self, notice: Notice) -> None:
        line = f"* {notice.title}"
        if notice.description:
            line += f" {notice.description}"
        self.out(line)


# ── play ─────────────────────────────────────────────────────────────

def run_command(session: GameSession, line: str, out: Output = print) -> bool:
    """Apply one REPL command. Returns False when the player wants to quit."""
    words = line.strip().lower().split()
    cmd = words[0] if words else ""
    side = session.state.boat.position

    if cmd in ("quit", "q", "exit"):
        return False
    if cmd in ("help", "?"):
        out(HELP)
    elif cmd in KIND_KEYS:
        kind = KIND_KEYS[cmd]
        if not session.select(kind, side):
            reason = session.select_rejection(kind, side)
            if reason and not reason.startswith("The boat can only"):
                out(reason)
    elif cmd.startswith("-") and cmd[1:] in KIND_KEYS:
        kind = KIND_KEYS[cmd[1:]]
        if not session.deselect(kind):
            out(session.deselect_rejection(kind) or "")
    elif cmd in ("go", "move"):
        if session.move_boat():
            out(session.describe())
    elif cmd == "hint":
        out(hint_for(session.state))
    elif cmd == "hints":
        out(f"Hints {'on' if session.toggle_hints() else 'off'}.")
    elif cmd == "difficulty":
        session.toggle_difficulty()
    elif cmd == "reset":
        session.reset()
    elif cmd == "solve":
        session.start_auto_solve()
    elif cmd == "stop":
        if not session.stop_auto_solve():
            out("Auto-solve is not running.")
    elif cmd == "theme":
        out(f"Dark mode {'on' if session.toggle_theme() else 'off'}.")
    elif cmd:
        out(f"Unknown command: {cmd}. Type 'help'.")

    # One REPL line is one tick of the clock.
    scheduler = session.scheduler
    if isinstance(scheduler, ManualScheduler):
        if session.check_pending:
            scheduler.advance(session.check_delay)
        if session.solver.running:
            scheduler.advance(session.solver.delay)
    return True


def cmd_play(args: argparse.Namespace) -> None:
    """Interactive text game."""
    session = GameSession(
        difficulty=HARD if args.hard else EASY,
        scheduler=ManualScheduler(),
        observer=PrintObserver(show_states=False),
        show_hints=args.hints,
    )
    print("River Escape: Missionaries vs Cannibals")
    print(HELP)
    while True:
        print()
        print(session.describe())
        try:
            line = input("> ")
        except EOFError:
            break
        if not run_command(session, line):
            break


# ── solve ────────────────────────────────────────────────────────────

async def _watch_script(difficulty: str, delay: float) -> GameSession:
    finished = asyncio.Event()
    observer = PrintObserver(show_states=True)
    observer.on_won = finished.set
    session = GameSession(
        difficulty=difficulty,
        scheduler=AsyncioScheduler(),
        observer=observer,
        step_delay=delay,
    )
    session.start_auto_solve()
    await finished.wait()
    return session


def cmd_solve(args: argparse.Namespace) -> None:
    """Replay the scripted solution on an asyncio loop."""
    try:
        asyncio.run(_watch_script(HARD if args.hard else EASY, args.delay))
    except KeyboardInterrupt:
        print("\nStopped.")


# ── shortest ─────────────────────────────────────────────────────────

def cmd_shortest(args: argparse.Namespace) -> None:
    """Print the breadth-first shortest solution."""
    path = shortest_solution()
    if path is None:
        print("No solution found.", file=sys.stderr)
        sys.exit(1)
    print(f"Shortest solution: {len(path)} crossings")
    for i, load in enumerate(path):
        direction = "->" if i % 2 == 0 else "<-"
        print(f"  {i + 1:2d}. {direction} {load.describe()}")


# ── agent ────────────────────────────────────────────────────────────

def cmd_agent(args: argparse.Namespace) -> None:
    """Let an LLM player try the puzzle."""
    spec = find_model(args.model)
    if spec is None:
        names = ", ".join(m.display_name for m in MODELS)
        print(f"Unknown model {args.model!r}. Known models: {names}", file=sys.stderr)
        sys.exit(1)

    runner = PuzzleRunner(
        player=spec.make_player(),
        difficulty=HARD if args.hard else EASY,
        max_actions=args.max_actions,
    )
    runner.session.observer = PrintObserver(show_states=True)
    print(f"{spec.display_name} is playing ({'hard' if args.hard else 'easy'}) ... ")
    result = runner.play()
    print(f"{result.status} ({result.reason}) after {result.moves} moves and {result.actions} actions")

    if args.chart:
        make_progress_chart(result.states, output_path=args.chart, title=f"{spec.display_name}: crossing progress")
        print(f"Chart saved to {args.chart}")


# ── chart ────────────────────────────────────────────────────────────

def cmd_chart(args: argparse.Namespace) -> None:
    """Chart the scripted optimal solution."""
    out = args.output or "river_progress.png"
    make_progress_chart(replay_script(), output_path=out, title=f"Optimal solution ({len(SOLUTION_STEPS)} moves)")
    print(f"Chart saved to {out}")


# ── main ─────────────────────────────────────────────────────────────

def main() -> None:
    parser = argparse.ArgumentParser(
        prog="river_escape",
        description="River Escape: Missionaries vs Cannibals",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    p_play = sub.add_parser("play", help="Play in the terminal")
    p_play.add_argument("--hard", action="store_true", help="Hard mode (11 moves)")
    p_play.add_argument("--hints", action="store_true", help="Show hints from the start")

    p_solve = sub.add_parser("solve", help="Watch the scripted optimal solution")
    p_solve.add_argument("--hard", action="store_true", help="Hard mode (11 moves)")
    p_solve.add_argument("--delay", type=float, default=STEP_DELAY, help="Seconds between steps")

    sub.add_parser("shortest", help="Print the breadth-first shortest solution")

    p_agent = sub.add_parser("agent", help="Let an LLM play")
    p_agent.add_argument("--model", required=True, help="Model id or display name")
    p_agent.add_argument("--hard", action="store_true", help="Hard mode (11 moves)")
    p_agent.add_argument("--max-actions", type=int, default=60, help="Tool-call budget")
    p_agent.add_argument("--chart", help="Save a progress chart to this PNG path")

    p_chart = sub.add_parser("chart", help="Chart the scripted solution")
    p_chart.add_argument("--output", "-o", help="Output PNG path")

    args = parser.parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s  %(levelname)s  %(name)s  %(message)s")

    if args.command == "play":
        cmd_play(args)
    elif args.command == "solve":
        cmd_solve(args)
    elif args.command == "shortest":
        cmd_shortest(args)
    elif args.command == "agent":
        cmd_agent(args)
    elif args.command == "chart":
        cmd_chart(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
