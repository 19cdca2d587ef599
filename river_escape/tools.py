"""Tool schemas (OpenAI function-calling format) and dispatch onto a session."""

from __future__ import annotations

from dataclasses import dataclass

from river_escape.board import KINDS, PLAYING, SIDES
from river_escape.session import GameSession

# ── OpenAI-style tool schemas ────────────────────────────────────────

_KIND_PARAM = {
    "type": "string",
    "enum": list(KINDS),
    "description": "Which kind of person: 'missionaries' or 'cannibals'.",
}

TOOL_SCHEMAS: list[dict] = [
    {
        "type": "function",
        "function": {
            "name": "select_passenger",
            "description": "Put one person from the bank where the boat is into the boat. The boat holds at most 2.",
            "parameters": {
                "type": "object",
                "properties": {
                    "kind": _KIND_PARAM,
                    "side": {
                        "type": "string",
                        "enum": list(SIDES),
                        "description": "The bank to take the person from. Must be the bank the boat is on.",
                    },
                },
                "required": ["kind", "side"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "deselect_passenger",
            "description": "Take one person of the given kind back out of the boat before it leaves.",
            "parameters": {
                "type": "object",
                "properties": {"kind": _KIND_PARAM},
                "required": ["kind"],
            },
        },
    },
    {
        "type": "function",
        "function": {
            "name": "move_boat",
            "description": "Row the boat with its current passengers to the other bank. Counts as one move.",
            "parameters": {"type": "object", "properties": {}, "required": []},
        },
    },
    {
        "type": "function",
        "function": {
            "name": "reset_game",
            "description": "Start over with everyone on the left bank. The move counter goes back to 0.",
            "parameters": {"type": "object", "properties": {}, "required": []},
        },
    },
    {
        "type": "function",
        "function": {
            "name": "toggle_hints",
            "description": "Turn hints on or off. When on, each observation includes a suggested next crossing.",
            "parameters": {"type": "object", "properties": {}, "required": []},
        },
    },
    {
        "type": "function",
        "function": {
            "name": "plan",
            "description": "Think step-by-step about your next crossings. This tool has no side effects.",
            "parameters": {
                "type": "object",
                "properties": {
                    "thought": {
                        "type": "string",
                        "description": "Your reasoning or plan.",
                    }
                },
                "required": ["thought"],
            },
        },
    },
]

TOOL_NAMES = frozenset(t["function"]["name"] for t in TOOL_SCHEMAS)


# ── Action result ────────────────────────────────────────────────────

@dataclass
class ActionResult:
    ok: bool = True
    message: str = ""
    moved: bool = False


# ── Dispatch ─────────────────────────────────────────────────────────

def dispatch_action(session: GameSession, tool_name: str, args: dict) -> ActionResult:
    """Run one tool call against *session*.

    Refused actions come back as ``ok=False`` with the reason; nothing here
    raises for bad input from a player.
    """
    if not isinstance(args, dict):
        return ActionResult(ok=False, message="Arguments must be an object.")

    if tool_name == "plan":
        return ActionResult(ok=True, message="Plan noted.")

    if tool_name == "select_passenger":
        kind, side = args.get("kind"), args.get("side")
        if kind is None or side is None:
            return ActionResult(ok=False, message="Missing 'kind' or 'side' argument.")
        reason = session.select_rejection(kind, side)
        if reason is not None:
            session.select(kind, side)  # emits "Boat is full!" where it applies
            return ActionResult(ok=False, message=reason)
        session.select(kind, side)
        return ActionResult(ok=True, message=f"Boat now carries {session.selection.describe()}.")

    if tool_name == "deselect_passenger":
        kind = args.get("kind")
        if kind is None:
            return ActionResult(ok=False, message="Missing 'kind' argument.")
        reason = session.deselect_rejection(kind)
        if reason is not None:
            return ActionResult(ok=False, message=reason)
        session.deselect(kind)
        return ActionResult(ok=True, message=f"Boat now carries {session.selection.describe()}.")

    if tool_name == "move_boat":
        staged = session.selection
        if not session.move_boat():
            if session.state.status != PLAYING:
                return ActionResult(ok=False, message=f"The boat cannot move: the game is {session.state.status}.")
            return ActionResult(ok=False, message="Boat is empty! At least one person must pilot the boat.")
        s = session.state
        return ActionResult(
            ok=True, moved=True,
            message=f"Crossed to the {s.boat.position} bank with {staged.describe()}. Move {s.move_count} of {s.max_moves}.",
        )

    if tool_name == "reset_game":
        session.reset()
        return ActionResult(ok=True, message="Game reset. Everyone is back on the left bank.")

    if tool_name == "toggle_hints":
        on = session.toggle_hints()
        return ActionResult(ok=True, message=f"Hints {'on' if on else 'off'}.")

    return ActionResult(ok=False, message=f"Unknown tool: {tool_name}")
