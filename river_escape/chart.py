"""Plot how the right bank fills up over a sequence of crossings."""

from __future__ import annotations

import matplotlib
matplotlib.use("Agg")  # non-interactive backend

import matplotlib.pyplot as plt

from river_escape.board import POPULATION, RIGHT, GameState, is_valid


def make_progress_chart(
    states: list[GameState],
    output_path: str = "river_progress.png",
    title: str = "River Escape: Crossing Progress",
) -> str:
    """Step chart of right-bank missionaries and cannibals per move.

    Boards that break the safety rule are marked with a red X.
    Returns the path to the saved PNG.
    """
    if not states:
        raise ValueError("Need at least one state to chart")

    moves = [s.move_count for s in states]
    missionaries = [s.right_bank.missionaries for s in states]
    cannibals = [s.right_bank.cannibals for s in states]

    fig, ax = plt.subplots(figsize=(10, 4.5))
    ax.step(moves, missionaries, where="post", color="#4A90D9", linewidth=2, label="Missionaries (right bank)")
    ax.step(moves, cannibals, where="post", color="#D9534F", linewidth=2, label="Cannibals (right bank)")

    unsafe = [s for s in states if not is_valid(s)]
    if unsafe:
        ax.scatter(
            [s.move_count for s in unsafe],
            [s.right_bank.missionaries for s in unsafe],
            marker="x", s=120, color="red", zorder=3, label="Unsafe board",
        )

    # Shade moves that end with the boat on the right bank
    for s in states:
        if s.move_count > 0 and s.boat.position == RIGHT:
            ax.axvspan(s.move_count - 0.5, s.move_count + 0.5, color="#EEE", zorder=0)

    ax.set_xlabel("Move")
    ax.set_ylabel("People on the right bank")
    ax.set_yticks(range(POPULATION + 1))
    ax.set_xlim(left=-0.5, right=max(moves) + 0.5)
    ax.set_ylim(-0.2, POPULATION + 0.4)
    ax.set_title(title, fontsize=14, fontweight="bold")
    ax.legend(loc="upper left")

    plt.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    return output_path
