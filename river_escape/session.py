"""Interactive game session: the single owner of the current GameState."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Protocol

from river_escape.board import (
    BOAT_CAPACITY,
    EASY,
    HARD,
    KINDS,
    PLAYING,
    SIDES,
    WON,
    GameState,
    Selection,
    apply_move,
    evaluate_outcome,
    initial_state,
    judge,
    max_moves_for,
)
from river_escape.scheduler import ManualScheduler, Scheduler, TimerHandle
from river_escape.solver import (
    OPTIMAL_MOVES,
    STEP_DELAY,
    ScriptedSolver,
    apply_step,
    hint_for,
)

log = logging.getLogger(__name__)

CHECK_DELAY = 1.0  # seconds between committing a move and judging it

INFO = "info"
SUCCESS = "success"
ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A transient message for the player, shown as a toast or printed line."""

    kind: str
    title: str
    description: str = ""


# ── Observer ────────────────────────────────────────────────────────

class SessionObserver(Protocol):
    """Receives every published state and notice."""

    def on_state(self, state: GameState) -> None: ...

    def on_notice(self, notice: Notice) -> None: ...


@dataclass
class ListObserver:
    """Default observer: collects states and notices into lists."""

    states: list[GameState] = field(default_factory=list)
    notices: list[Notice] = field(default_factory=list)

    def on_state(self, state: GameState) -> None:
        self.states.append(state)

    def on_notice(self, notice: Notice) -> None:
        self.notices.append(notice)

    @property
    def titles(self) -> list[str]:
        return [n.title for n in self.notices]


# ── Session ─────────────────────────────────────────────────────────

class GameSession:
    """One player's puzzle, driven by discrete actions and timer callbacks.

    Each action either returns without touching anything or replaces
    ``state`` with a brand-new GameState. Deferred work (judging a move,
    scripted solver steps) is scheduled on *scheduler* and cancelled on
    reset/stop so a stale callback can never touch a newer game.
    """

    def __init__(
        self,
        difficulty: str = EASY,
        scheduler: Scheduler | None = None,
        observer: SessionObserver | None = None,
        check_delay: float = CHECK_DELAY,
        step_delay: float = STEP_DELAY,
        show_hints: bool = False,
    ):
        self.scheduler = scheduler or ManualScheduler()
        self.observer = observer or ListObserver()
        self.check_delay = check_delay
        self.state = initial_state(difficulty)
        self.selection = Selection()
        self.show_hints = show_hints
        self.dark_mode = False
        self.solver = ScriptedSolver(self.scheduler, self._on_solver_step, delay=step_delay)
        self._pending_check: TimerHandle | None = None

    # ── publishing ──

    def _set_state(self, state: GameState) -> None:
        self.state = state
        self.observer.on_state(state)

    def _notify(self, kind: str, title: str, description: str = "") -> None:
        self.observer.on_notice(Notice(kind, title, description))

    @property
    def check_pending(self) -> bool:
        return self._pending_check is not None

    @property
    def current_hint(self) -> str | None:
        if not self.show_hints or self.state.status != PLAYING:
            return None
        return hint_for(self.state)

    # ── selection staging ──

    def select_rejection(self, kind: str, side: str) -> str | None:
        """Why ``select(kind, side)`` would be refused, or None if it is allowed."""
        if kind not in KINDS:
            return f"Unknown passenger kind: {kind!r}."
        if side not in SIDES:
            return f"Unknown bank: {side!r}."
        if self.state.status != PLAYING:
            return "The game is over."
        if self.state.auto_solving:
            return "Auto-solve is running."
        if side != self.state.boat.position:
            return f"The boat is on the {self.state.boat.position} bank."
        if self.selection.total >= BOAT_CAPACITY:
            return f"The boat can only carry up to {BOAT_CAPACITY} people."
        if self.state.bank(side).count(kind) <= self.selection.count(kind):
            return f"No more {kind} on the {side} bank."
        return None

    def select(self, kind: str, side: str) -> bool:
        reason = self.select_rejection(kind, side)
        if reason is not None:
            if (
                self.selection.total >= BOAT_CAPACITY
                and self.state.status == PLAYING
                and not self.state.auto_solving
                and side == self.state.boat.position
            ):
                self._notify(INFO, "Boat is full!", reason)
            return False
        self.selection = self.selection.add(kind)
        return True

    def deselect_rejection(self, kind: str) -> str | None:
        if kind not in KINDS:
            return f"Unknown passenger kind: {kind!r}."
        if self.state.auto_solving:
            return "Auto-solve is running."
        if self.selection.count(kind) <= 0:
            return f"No {kind} in the boat."
        return None

    def deselect(self, kind: str) -> bool:
        if self.deselect_rejection(kind) is not None:
            return False
        self.selection = self.selection.remove(kind)
        return True

    # ── moving ──

    def move_boat(self) -> bool:
        """Commit the staged crossing. The judgement follows after ``check_delay``."""
        if self._pending_check is not None:
            # The previous crossing must be judged before another one starts.
            self.check_consequences()
        if self.state.status != PLAYING or self.state.auto_solving:
            return False
        if self.selection.total == 0:
            self._notify(INFO, "Boat is empty!", "At least one person must pilot the boat.")
            return False

        load = self.selection
        new_state = apply_move(self.state, load)
        self.selection = Selection()
        log.debug(
            "move %d: %s to the %s bank",
            new_state.move_count, load.describe(), new_state.boat.position,
        )
        self._set_state(new_state)
        self._pending_check = self.scheduler.call_later(self.check_delay, self.check_consequences)
        return True

    def check_consequences(self) -> None:
        """Settle the status of the board left by the last crossing."""
        if self._pending_check is not None:
            self._pending_check.cancel()
            self._pending_check = None
        if self.state.status != PLAYING or self.state.auto_solving:
            return

        outcome = evaluate_outcome(self.state)
        if outcome is None:
            return
        self._set_state(judge(self.state))
        self.selection = Selection()
        log.info("game over after %d moves: %s", self.state.move_count, outcome)
        if outcome == "unsafe":
            self._notify(ERROR, "Mission Failed!", "Cannibals outnumbered the missionaries!")
        elif outcome == "move_limit":
            self._notify(ERROR, "Mission Failed!", f"You exceeded the {self.state.max_moves} move limit!")
        else:
            self._notify(SUCCESS, "Victory!", "You safely transported everyone across the river!")

    # ── toggles ──

    def toggle_difficulty(self) -> str:
        difficulty = HARD if self.state.difficulty == EASY else EASY
        max_moves = max_moves_for(difficulty)
        self._set_state(replace(self.state, difficulty=difficulty, max_moves=max_moves))
        self._notify(
            INFO,
            f"Difficulty set to {difficulty.upper()}",
            f"You now have {max_moves} moves to complete the puzzle.",
        )
        return difficulty

    def toggle_hints(self) -> bool:
        self.show_hints = not self.show_hints
        return self.show_hints

    def toggle_theme(self) -> bool:
        self.dark_mode = not self.dark_mode
        return self.dark_mode

    # ── reset / auto-solve ──

    def _cancel_timers(self) -> None:
        if self._pending_check is not None:
            self._pending_check.cancel()
            self._pending_check = None
        self.solver.stop()

    def reset(self) -> None:
        self._cancel_timers()
        self.selection = Selection()
        self._set_state(initial_state(self.state.difficulty))
        log.debug("game reset (%s)", self.state.difficulty)
        self._notify(INFO, "Game Reset", "Good luck on your new journey!")

    def start_auto_solve(self) -> None:
        self.reset()
        self._set_state(replace(self.state, auto_solving=True))
        self._notify(INFO, "Auto-solving puzzle...")
        self.solver.start()

    def stop_auto_solve(self) -> bool:
        if not self.state.auto_solving:
            return False
        self.solver.stop()
        self._set_state(replace(self.state, auto_solving=False))
        self._notify(INFO, "Auto-solve stopped", "Continue from here.")
        return True

    def _on_solver_step(self, index: int) -> None:
        self._set_state(apply_step(self.state, index))
        if self.state.status == WON:
            self._notify(
                SUCCESS, "Puzzle solved!",
                f"The optimal solution takes {OPTIMAL_MOVES} moves.",
            )

    # ── text view ──

    def describe(self) -> str:
        s = self.state
        lb, rb = s.left_bank, s.right_bank
        lines = [
            f"Left bank: {lb.missionaries} missionaries, {lb.cannibals} cannibals.",
            f"Right bank: {rb.missionaries} missionaries, {rb.cannibals} cannibals.",
            f"The boat is on the {s.boat.position} bank carrying {self.selection.describe()}.",
            f"Moves: {s.move_count} / {s.max_moves} ({s.difficulty}). Status: {s.status}.",
        ]
        hint = self.current_hint
        if hint:
            lines.append(f"Hint: {hint}")
        return "\n".join(lines)
