"""Scripted optimal solution, hints, and shortest-path search."""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, replace
from typing import Callable

from river_escape.board import (
    BOAT_CAPACITY,
    LEFT,
    PLAYING,
    POPULATION,
    RIGHT,
    WON,
    BankState,
    BoatState,
    GameState,
    Selection,
    apply_move,
    initial_state,
    is_valid,
    is_won,
)
from river_escape.scheduler import Scheduler, TimerHandle

log = logging.getLogger(__name__)

STEP_DELAY = 1.5  # seconds between scripted steps


@dataclass(frozen=True)
class SolutionStep:
    """The board right after one crossing of the scripted solution."""

    description: str
    left_bank: BankState
    right_bank: BankState
    boat: BoatState


def _step(description: str, left: tuple[int, int], load: tuple[int, int], side: str) -> SolutionStep:
    lm, lc = left
    return SolutionStep(
        description=description,
        left_bank=BankState(lm, lc),
        right_bank=BankState(POPULATION - lm, POPULATION - lc),
        boat=BoatState(load[0], load[1], side),
    )


# fmt: off
SOLUTION_STEPS: tuple[SolutionStep, ...] = (
    _step("Start by sending 2 cannibals across",      (3, 1), (0, 2), RIGHT),
    _step("Return 1 cannibal back",                   (3, 2), (0, 1), LEFT),
    _step("Send 2 cannibals across",                  (3, 0), (0, 2), RIGHT),
    _step("Return 1 cannibal back",                   (3, 1), (0, 1), LEFT),
    _step("Send 2 missionaries across",               (1, 1), (2, 0), RIGHT),
    _step("Return 1 missionary and 1 cannibal back",  (2, 2), (1, 1), LEFT),
    _step("Send 2 missionaries across",               (0, 2), (2, 0), RIGHT),
    _step("Return 1 cannibal back",                   (0, 3), (0, 1), LEFT),
    _step("Send 2 cannibals across",                  (0, 1), (0, 2), RIGHT),
    _step("Return 1 cannibal back",                   (0, 2), (0, 1), LEFT),
    _step("Send 2 cannibals across",                  (0, 0), (0, 2), RIGHT),
)
# fmt: on

HINTS: tuple[str, ...] = tuple(s.description for s in SOLUTION_STEPS)
OPTIMAL_MOVES = len(SOLUTION_STEPS)


def apply_step(state: GameState, index: int) -> GameState:
    """Replace the board wholesale with scripted step *index* (0-based)."""
    step = SOLUTION_STEPS[index]
    new = replace(
        state,
        left_bank=step.left_bank,
        right_bank=step.right_bank,
        boat=step.boat,
        move_count=index + 1,
    )
    if index == OPTIMAL_MOVES - 1:
        new = finish_solution(new)
    return new


def finish_solution(state: GameState) -> GameState:
    # No validator here: every scripted board is safe.
    return replace(state, status=WON, auto_solving=False)


# ── Shortest path ────────────────────────────────────────────────────

BOAT_LOADS: tuple[Selection, ...] = tuple(
    Selection(m, c)
    for m in range(BOAT_CAPACITY + 1)
    for c in range(BOAT_CAPACITY + 1)
    if 1 <= m + c <= BOAT_CAPACITY
)


def _legal_loads(state: GameState):
    bank = state.bank(state.boat.position)
    for load in BOAT_LOADS:
        if load.missionaries <= bank.missionaries and load.cannibals <= bank.cannibals:
            yield load


def shortest_solution(state: GameState | None = None) -> list[Selection] | None:
    """Breadth-first search for the fewest crossings that win from *state*.

    Only safe boards are expanded. Returns [] if *state* is already won and
    None if no safe sequence exists (including when *state* itself is unsafe).
    """
    start = state or initial_state()
    if not is_valid(start):
        return None

    parents: dict[tuple, tuple[tuple, Selection] | None] = {start.key: None}
    frontier = deque([start])
    goal_key = (0, 0, RIGHT)

    while frontier:
        current = frontier.popleft()
        if current.key == goal_key:
            path: list[Selection] = []
            key = current.key
            while parents[key] is not None:
                key, load = parents[key]
                path.append(load)
            path.reverse()
            return path

        for load in _legal_loads(current):
            nxt = apply_move(current, load)
            if nxt.key in parents or not is_valid(nxt):
                continue
            parents[nxt.key] = (current.key, load)
            frontier.append(nxt)

    return None


def _describe_load(load: Selection, side: str) -> str:
    verb = "Send" if side == LEFT else "Return"
    where = "across" if side == LEFT else "back"
    return f"{verb} {load.describe()} {where}"


def hint_for(state: GameState) -> str:
    """Suggest the next crossing.

    Uses the scripted hint while the board still matches the scripted line,
    then falls back to the first load of a fresh shortest path.
    """
    if is_won(state):
        return "Everyone is across. The puzzle is solved."
    n = state.move_count
    on_script = n == 0 and state.key == initial_state().key
    if 0 < n <= OPTIMAL_MOVES:
        step = SOLUTION_STEPS[n - 1]
        on_script = (state.left_bank, state.boat.position) == (step.left_bank, step.boat.position)
    if on_script:
        return HINTS[min(n, OPTIMAL_MOVES - 1)]

    path = shortest_solution(state)
    if path is None:
        return "No safe way forward from here. Reset and try again."
    return _describe_load(path[0], state.boat.position)


# ── Scripted playback ────────────────────────────────────────────────

IDLE = "idle"
RUNNING = "running"
FINISHED = "finished"


class ScriptedSolver:
    """Replays SOLUTION_STEPS one crossing per tick.

    idle -> running(step 0..10) -> finished; ``stop`` returns to idle at any
    point. The solver never owns the GameState: each tick hands the step
    index to *on_step* and the caller swaps its state for ``apply_step``.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        on_step: Callable[[int], None],
        delay: float = STEP_DELAY,
    ):
        self.scheduler = scheduler
        self.on_step = on_step
        self.delay = delay
        self.phase = IDLE
        self.next_step = 0
        self._handle: TimerHandle | None = None

    @property
    def running(self) -> bool:
        return self.phase == RUNNING

    def start(self) -> None:
        self.cancel()
        self.phase = RUNNING
        self.next_step = 0
        log.debug("scripted solver started")
        self._schedule()

    def stop(self) -> None:
        """Cancel playback; the board stays wherever the script got to."""
        self.cancel()
        if self.phase == RUNNING:
            log.debug("scripted solver stopped before step %d", self.next_step)
        self.phase = IDLE

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _schedule(self) -> None:
        self._handle = self.scheduler.call_later(self.delay, self._tick)

    def _tick(self) -> None:
        self._handle = None
        if self.phase != RUNNING:
            return  # stale timer
        index = self.next_step
        self.next_step += 1
        if self.next_step >= OPTIMAL_MOVES:
            self.phase = FINISHED
        log.debug("scripted step %d: %s", index, SOLUTION_STEPS[index].description)
        self.on_step(index)
        if self.phase == RUNNING:
            self._schedule()


def replay_script(state: GameState | None = None) -> list[GameState]:
    """Every snapshot of the scripted solution, starting board included."""
    current = state or initial_state()
    current = replace(current, status=PLAYING)
    snapshots = [current]
    for i in range(OPTIMAL_MOVES):
        current = apply_step(current, i)
        snapshots.append(current)
    return snapshots
