"""Tests for river_escape.board (state model, validator, move executor)."""

import itertools
from dataclasses import FrozenInstanceError

import pytest

from river_escape.board import (
    CANNIBALS,
    EASY,
    HARD,
    LEFT,
    LOST,
    MAX_MOVES,
    MISSIONARIES,
    PLAYING,
    POPULATION,
    RIGHT,
    WON,
    BankState,
    BoatState,
    GameState,
    Selection,
    apply_move,
    evaluate_outcome,
    initial_state,
    is_valid,
    is_won,
    judge,
    max_moves_for,
    opposite,
)


def _board(lm: int, lc: int, side: str = LEFT, **kw) -> GameState:
    return GameState(
        left_bank=BankState(lm, lc),
        right_bank=BankState(POPULATION - lm, POPULATION - lc),
        boat=BoatState(position=side),
        **kw,
    )


# ── constants ────────────────────────────────────────────────────────

def test_max_moves():
    assert MAX_MOVES == {EASY: 15, HARD: 11}
    assert max_moves_for(HARD) == 11


def test_unknown_difficulty_raises():
    with pytest.raises(ValueError):
        max_moves_for("nightmare")


def test_opposite():
    assert opposite(LEFT) == RIGHT
    assert opposite(RIGHT) == LEFT
    with pytest.raises(ValueError):
        opposite("middle")


# ── initial state ────────────────────────────────────────────────────

def test_initial_state():
    s = initial_state()
    assert s.left_bank == BankState(3, 3)
    assert s.right_bank == BankState(0, 0)
    assert s.boat == BoatState(0, 0, LEFT)
    assert s.move_count == 0
    assert s.status == PLAYING
    assert s.difficulty == EASY
    assert s.max_moves == 15
    assert s.auto_solving is False


def test_initial_state_hard():
    s = initial_state(HARD)
    assert s.difficulty == HARD
    assert s.max_moves == 11


def test_state_is_immutable():
    s = initial_state()
    with pytest.raises(FrozenInstanceError):
        s.move_count = 5


# ── validator ────────────────────────────────────────────────────────

def test_is_valid_every_bank_combination():
    """False iff a bank has 0 < missionaries < cannibals."""
    counts = range(POPULATION + 1)
    for lm, lc, rm, rc in itertools.product(counts, repeat=4):
        state = GameState(left_bank=BankState(lm, lc), right_bank=BankState(rm, rc))
        expected = not (0 < lm < lc) and not (0 < rm < rc)
        assert is_valid(state) is expected, (lm, lc, rm, rc)


def test_no_missionaries_is_safe():
    assert BankState(0, 3).is_safe()


def test_outnumbered_is_unsafe():
    assert not BankState(1, 2).is_safe()
    assert not _board(1, 2).left_bank.is_safe()


def test_checks_are_idempotent():
    s = _board(1, 3)
    assert [is_valid(s) for _ in range(5)] == [is_valid(s)] * 5
    assert [is_won(s) for _ in range(5)] == [is_won(s)] * 5


# ── win detection ────────────────────────────────────────────────────

def test_is_won():
    assert is_won(_board(0, 0, RIGHT))
    assert not is_won(initial_state())
    assert not is_won(_board(0, 1, RIGHT))


# ── move executor ────────────────────────────────────────────────────

def test_two_missionaries_from_start():
    s = apply_move(initial_state(), Selection(2, 0))
    assert s.left_bank == BankState(1, 3)
    assert s.right_bank == BankState(2, 0)
    assert s.boat.position == RIGHT
    assert s.boat.missionaries == 2
    assert s.move_count == 1


def test_move_does_not_judge():
    """An unsafe board is committed as-is; status is left alone."""
    s = apply_move(initial_state(), Selection(2, 0))
    assert not is_valid(s)
    assert s.status == PLAYING


def test_move_back_from_right():
    s = apply_move(_board(3, 1, RIGHT), Selection(0, 1))
    assert s.left_bank == BankState(3, 2)
    assert s.right_bank == BankState(0, 1)
    assert s.boat == BoatState(0, 1, LEFT)


def test_move_keeps_difficulty():
    s = apply_move(initial_state(HARD), Selection(0, 2))
    assert s.difficulty == HARD
    assert s.max_moves == 11


@pytest.mark.parametrize("sel", [Selection(0, 0), Selection(2, 1), Selection(3, 0)])
def test_move_rejects_bad_load(sel):
    with pytest.raises(ValueError):
        apply_move(initial_state(), sel)


def test_move_rejects_missing_people():
    with pytest.raises(ValueError):
        apply_move(_board(0, 3), Selection(1, 0))


def test_population_is_closed():
    """Every move from every board keeps 3 + 3 people in total."""
    loads = [Selection(m, c) for m in range(3) for c in range(3) if 1 <= m + c <= 2]
    for lm, lc in itertools.product(range(POPULATION + 1), repeat=2):
        for side in (LEFT, RIGHT):
            state = _board(lm, lc, side)
            bank = state.bank(side)
            for load in loads:
                if load.missionaries > bank.missionaries or load.cannibals > bank.cannibals:
                    continue
                nxt = apply_move(state, load)
                assert nxt.left_bank.missionaries + nxt.right_bank.missionaries == POPULATION
                assert nxt.left_bank.cannibals + nxt.right_bank.cannibals == POPULATION


# ── selection ────────────────────────────────────────────────────────

def test_selection_add_remove():
    sel = Selection().add(MISSIONARIES).add(CANNIBALS)
    assert sel == Selection(1, 1)
    assert sel.total == 2
    assert sel.remove(CANNIBALS) == Selection(1, 0)


def test_selection_describe():
    assert Selection(1, 0).describe() == "1 missionary"
    assert Selection(0, 2).describe() == "2 cannibals"
    assert Selection(1, 1).describe() == "1 missionary and 1 cannibal"
    assert Selection().describe() == "nobody"


def test_selection_unknown_kind():
    with pytest.raises(ValueError):
        Selection().add("pirates")


# ── outcome ──────────────────────────────────────────────────────────

def test_outcome_unsafe_first():
    assert evaluate_outcome(_board(1, 2, RIGHT, move_count=3)) == "unsafe"


def test_outcome_won():
    assert evaluate_outcome(_board(0, 0, RIGHT, move_count=11)) == "won"


def test_outcome_hard_move_limit():
    s = _board(3, 1, RIGHT, move_count=11, difficulty=HARD, max_moves=11)
    assert evaluate_outcome(s) == "move_limit"
    assert judge(s).status == LOST


def test_outcome_easy_has_no_limit_at_11():
    s = _board(3, 1, RIGHT, move_count=11)
    assert evaluate_outcome(s) is None
    assert judge(s).status == PLAYING


def test_win_on_last_hard_move_is_a_win():
    s = _board(0, 0, RIGHT, move_count=11, difficulty=HARD, max_moves=11)
    assert judge(s).status == WON
