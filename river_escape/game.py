"""Puzzle runner: lets a player (usually an LLM) solve one game through tool calls."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from river_escape.board import EASY, PLAYING, GameState, evaluate_outcome
from river_escape.invocation import LLMInvocation
from river_escape.scheduler import ManualScheduler
from river_escape.session import GameSession
from river_escape.tools import dispatch_action

log = logging.getLogger(__name__)


# ── Player interface ─────────────────────────────────────────────────

@runtime_checkable
class Player(Protocol):
    """Structural interface: any object with these methods works."""

    @property
    def name(self) -> str: ...

    @property
    def last_invocation(self) -> LLMInvocation | None: ...

    def next_action(self, observation: str) -> tuple[str, dict]: ...

    def observe(self, message: str) -> None: ...


# ── Structured types ────────────────────────────────────────────────

@dataclass
class LogEntry:
    """Record of a single tool call made during a game."""

    action_number: int
    tool: str
    args: dict
    state_before: GameState
    state_after: GameState
    result_ok: bool
    result_message: str
    moved: bool = False
    invocation: LLMInvocation | None = None


@dataclass
class PuzzleResult:
    status: str  # "won" | "lost" | "playing" (budget ran out)
    reason: str  # "won" | "unsafe" | "move_limit" | "max_actions"
    moves: int = 0
    actions: int = 0
    log: list[LogEntry] = field(default_factory=list)

    @property
    def won(self) -> bool:
        return self.status == "won"

    @property
    def states(self) -> list[GameState]:
        """Board after each committed crossing of the last attempt, starting board first."""
        if not self.log:
            return []
        out = [self.log[0].state_before]
        for e in self.log:
            if e.tool == "reset_game" and e.result_ok:
                out = [e.state_after]
            elif e.moved:
                out.append(e.state_after)
        return out


# ── Runner ───────────────────────────────────────────────────────────

MAX_ACTIONS = 60  # safety valve against a player that never finishes


class PuzzleRunner:
    """Play one puzzle with a single player.

    The session runs on a manual clock: after each committed crossing the
    runner advances it past the judgement delay, so the player always sees
    the settled board before its next action.
    """

    def __init__(
        self,
        player: Player,
        session: GameSession | None = None,
        max_actions: int = MAX_ACTIONS,
        difficulty: str = EASY,
    ):
        self.player = player
        self.session = session or GameSession(difficulty=difficulty, scheduler=ManualScheduler())
        self.max_actions = max_actions
        self.log: list[LogEntry] = []

    def _settle(self) -> None:
        scheduler = self.session.scheduler
        if isinstance(scheduler, ManualScheduler):
            scheduler.advance(self.session.check_delay)
        elif self.session.check_pending:
            self.session.check_consequences()

    def play(self) -> PuzzleResult:
        observation = self._make_observation(first=True)

        for n in range(1, self.max_actions + 1):
            tool_name, args = self.player.next_action(observation)
            before = self.session.state

            result = dispatch_action(self.session, tool_name, args)
            if result.moved:
                self._settle()

            entry = LogEntry(
                action_number=n,
                tool=tool_name,
                args=args,
                state_before=before,
                state_after=self.session.state,
                result_ok=result.ok,
                result_message=result.message,
                moved=result.moved,
                invocation=self.player.last_invocation,
            )
            self.log.append(entry)
            log.debug("%s #%d %s(%s) -> %s", self.player.name, n, tool_name, args, result.message)

            state = self.session.state
            if state.status != PLAYING:
                reason = evaluate_outcome(state) or state.status
                return PuzzleResult(state.status, reason, state.move_count, n, self.log)

            self.player.observe(result.message)
            observation = self._make_observation()

        state = self.session.state
        return PuzzleResult(state.status, "max_actions", state.move_count, self.max_actions, self.log)

    def _make_observation(self, first: bool = False) -> str:
        text = self.session.describe()
        if first:
            text = "New puzzle. " + text
        return text
