"""Bank/boat state and crossing rules for Missionaries & Cannibals."""

from __future__ import annotations

from dataclasses import dataclass, replace

POPULATION = 3
BOAT_CAPACITY = 2

LEFT = "left"
RIGHT = "right"
SIDES = (LEFT, RIGHT)

MISSIONARIES = "missionaries"
CANNIBALS = "cannibals"
KINDS = (MISSIONARIES, CANNIBALS)

PLAYING = "playing"
WON = "won"
LOST = "lost"

EASY = "easy"
HARD = "hard"
MAX_MOVES: dict[str, int] = {EASY: 15, HARD: 11}


def opposite(side: str) -> str:
    if side == LEFT:
        return RIGHT
    if side == RIGHT:
        return LEFT
    raise ValueError(f"Unknown side: {side!r}")


def max_moves_for(difficulty: str) -> int:
    try:
        return MAX_MOVES[difficulty]
    except KeyError:
        raise ValueError(f"Unknown difficulty: {difficulty!r}") from None


def _check_kind(kind: str) -> None:
    if kind not in KINDS:
        raise ValueError(f"Unknown passenger kind: {kind!r}")


@dataclass(frozen=True)
class BankState:
    """Who is standing on one shore."""

    missionaries: int = 0
    cannibals: int = 0

    def count(self, kind: str) -> int:
        _check_kind(kind)
        return getattr(self, kind)

    @property
    def total(self) -> int:
        return self.missionaries + self.cannibals

    def is_safe(self) -> bool:
        return not (0 < self.missionaries < self.cannibals)


@dataclass(frozen=True)
class Selection:
    """Passengers staged for the next crossing."""

    missionaries: int = 0
    cannibals: int = 0

    def count(self, kind: str) -> int:
        _check_kind(kind)
        return getattr(self, kind)

    @property
    def total(self) -> int:
        return self.missionaries + self.cannibals

    def add(self, kind: str) -> Selection:
        return replace(self, **{kind: self.count(kind) + 1})

    def remove(self, kind: str) -> Selection:
        return replace(self, **{kind: self.count(kind) - 1})

    def describe(self) -> str:
        parts = []
        if self.missionaries:
            parts.append(f"{self.missionaries} missionar{'y' if self.missionaries == 1 else 'ies'}")
        if self.cannibals:
            parts.append(f"{self.cannibals} cannibal{'' if self.cannibals == 1 else 's'}")
        return " and ".join(parts) or "nobody"


@dataclass(frozen=True)
class BoatState:
    missionaries: int = 0
    cannibals: int = 0
    position: str = LEFT


@dataclass(frozen=True)
class GameState:
    """One immutable snapshot of the puzzle.

    Every transition builds a new value; nothing mutates a GameState in place.
    """

    left_bank: BankState = BankState(POPULATION, POPULATION)
    right_bank: BankState = BankState(0, 0)
    boat: BoatState = BoatState()
    move_count: int = 0
    status: str = PLAYING
    difficulty: str = EASY
    max_moves: int = MAX_MOVES[EASY]
    auto_solving: bool = False

    def bank(self, side: str) -> BankState:
        if side == LEFT:
            return self.left_bank
        if side == RIGHT:
            return self.right_bank
        raise ValueError(f"Unknown side: {side!r}")

    @property
    def key(self) -> tuple[int, int, str]:
        """(left missionaries, left cannibals, boat side), enough to identify a board."""
        return (self.left_bank.missionaries, self.left_bank.cannibals, self.boat.position)


def initial_state(difficulty: str = EASY) -> GameState:
    return GameState(difficulty=difficulty, max_moves=max_moves_for(difficulty))


# ── Rules ────────────────────────────────────────────────────────────

def is_valid(state: GameState) -> bool:
    """True unless missionaries are outnumbered on a bank where any are present."""
    return state.left_bank.is_safe() and state.right_bank.is_safe()


def is_won(state: GameState) -> bool:
    return (
        state.right_bank.missionaries == POPULATION
        and state.right_bank.cannibals == POPULATION
    )


def apply_move(state: GameState, selection: Selection) -> GameState:
    """Ferry *selection* from the boat's bank to the other one.

    Does NOT check the safety rule: an unsafe board is committed as-is and
    judged afterwards (see ``judge``).
    """
    if not 1 <= selection.total <= BOAT_CAPACITY:
        raise ValueError(f"Boat must carry 1 to {BOAT_CAPACITY} people, got {selection.total}")
    if selection.missionaries < 0 or selection.cannibals < 0:
        raise ValueError(f"Negative selection: {selection}")

    here = state.boat.position
    there = opposite(here)
    src = state.bank(here)
    if src.missionaries < selection.missionaries or src.cannibals < selection.cannibals:
        raise ValueError(f"Not enough people on the {here} bank for {selection.describe()}")

    dst = state.bank(there)
    new_src = BankState(
        src.missionaries - selection.missionaries,
        src.cannibals - selection.cannibals,
    )
    new_dst = BankState(
        dst.missionaries + selection.missionaries,
        dst.cannibals + selection.cannibals,
    )
    left, right = (new_src, new_dst) if here == LEFT else (new_dst, new_src)

    return replace(
        state,
        left_bank=left,
        right_bank=right,
        boat=BoatState(selection.missionaries, selection.cannibals, there),
        move_count=state.move_count + 1,
    )


def evaluate_outcome(state: GameState) -> str | None:
    """Why the game is over, or None if play continues.

    Returns "unsafe", "won" or "move_limit", checked in that order.
    """
    if not is_valid(state):
        return "unsafe"
    if is_won(state):
        return "won"
    if state.difficulty == HARD and state.move_count >= state.max_moves:
        return "move_limit"
    return None


def judge(state: GameState) -> GameState:
    """Return *state* with its status settled after a committed move."""
    outcome = evaluate_outcome(state)
    if outcome is None:
        return state
    return replace(state, status=WON if outcome == "won" else LOST)
