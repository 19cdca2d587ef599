"""Tests for LLM player implementations."""

from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from river_escape.game import Player
from river_escape.players import (
    MODELS,
    SYSTEM_PROMPT,
    AnthropicPlayer,
    ModelSpec,
    OpenAIPlayer,
    find_model,
)


def _make_response(*tool_calls, content=None):
    """Build a fake OpenAI ChatCompletion response with given tool calls."""
    tcs = [
        SimpleNamespace(
            id=f"call_{i}",
            function=SimpleNamespace(name=name, arguments=json.dumps(args)),
        )
        for i, (name, args) in enumerate(tool_calls)
    ]
    msg = SimpleNamespace(tool_calls=tcs, content=content, role="assistant")
    msg.model_dump = lambda exclude_none=False: {
        "role": "assistant",
        "tool_calls": [
            {"id": tc.id, "function": {"name": tc.function.name, "arguments": tc.function.arguments}}
            for tc in tcs
        ],
    }
    usage = SimpleNamespace(prompt_tokens=100, completion_tokens=20)
    return SimpleNamespace(choices=[SimpleNamespace(message=msg)], usage=usage)


def _openai_player(*responses) -> tuple[OpenAIPlayer, MagicMock]:
    player = OpenAIPlayer(model="test", display_name="Test")
    client = MagicMock()
    client.chat.completions.create.side_effect = list(responses)
    player._client = client
    return player, client


# ── OpenAI ───────────────────────────────────────────────────────────

def test_players_satisfy_protocol():
    assert isinstance(OpenAIPlayer(model="m", display_name="M"), Player)
    assert isinstance(AnthropicPlayer(model="m", display_name="M"), Player)


def test_openai_returns_first_tool_call():
    player, client = _openai_player(
        _make_response(("select_passenger", {"kind": "cannibals", "side": "left"})),
    )
    tool, args = player.next_action("Your move.")
    assert tool == "select_passenger"
    assert args == {"kind": "cannibals", "side": "left"}

    sent = client.chat.completions.create.call_args.kwargs
    assert sent["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
    assert sent["tool_choice"] == "required"


def test_openai_keeps_only_first_tool_call_in_history():
    player, _ = _openai_player(
        _make_response(("select_passenger", {"kind": "cannibals", "side": "left"}), ("move_boat", {})),
    )
    player.next_action("Your move.")
    assistant_msg = player._messages[-1]
    assert len(assistant_msg["tool_calls"]) == 1
    assert assistant_msg["tool_calls"][0]["id"] == "call_0"


def test_openai_observe_answers_the_tool_call():
    player, _ = _openai_player(
        _make_response(("move_boat", {})),
        _make_response(("plan", {"thought": "x"})),
    )
    player.next_action("Your move.")
    player.observe("Crossed.")
    assert player._messages[-1] == {"role": "tool", "tool_call_id": "call_0", "content": "Crossed."}

    player.next_action("Board now.")
    roles = [m["role"] for m in player._messages]
    assert roles == ["system", "user", "assistant", "tool", "user", "assistant"]


def test_openai_unanswered_call_gets_ok():
    player, _ = _openai_player(
        _make_response(("move_boat", {})),
        _make_response(("plan", {"thought": "x"})),
    )
    player.next_action("Your move.")
    player.next_action("Board now.")
    tool_msgs = [m for m in player._messages if m["role"] == "tool"]
    assert tool_msgs == [{"role": "tool", "tool_call_id": "call_0", "content": "OK"}]


def test_openai_bad_json_gives_empty_args():
    player, _ = _openai_player(_make_response(("move_boat", {})))
    resp = _make_response(("select_passenger", {}))
    resp.choices[0].message.tool_calls[0].function.arguments = "{not json"
    player._client.chat.completions.create.side_effect = [resp]
    tool, args = player.next_action("Your move.")
    assert tool == "select_passenger"
    assert args == {}


def test_openai_no_tool_call_becomes_plan():
    player, _ = _openai_player(_make_response(content="thinking out loud"))
    assert player.next_action("Your move.") == ("plan", {"thought": "thinking out loud"})


def test_openai_captures_invocation():
    player, _ = _openai_player(_make_response(("move_boat", {})))
    player.next_action("Your move.")
    inv = player.last_invocation
    assert inv.provider == "openai"
    assert inv.model_api_id == "test"
    assert inv.input_tokens == 100
    assert inv.output_tokens == 20
    assert inv.request_messages[-1] == {"role": "user", "content": "Your move."}


# ── Anthropic ────────────────────────────────────────────────────────

def _tool_use(idx, name, args):
    return SimpleNamespace(type="tool_use", id=f"toolu_{idx}", name=name, input=args)


def _make_anthropic_response(*blocks):
    usage = SimpleNamespace(input_tokens=50, output_tokens=7)
    return SimpleNamespace(content=list(blocks), usage=usage)


def _anthropic_player(*responses) -> tuple[AnthropicPlayer, MagicMock]:
    player = AnthropicPlayer(model="claude-test", display_name="Claude Test")
    client = MagicMock()
    client.messages.create.side_effect = list(responses)
    player._client = client
    return player, client


def test_anthropic_returns_first_tool_use():
    player, client = _anthropic_player(
        _make_anthropic_response(
            SimpleNamespace(type="text", text="Cannibals first."),
            _tool_use(0, "select_passenger", {"kind": "cannibals", "side": "left"}),
            _tool_use(1, "move_boat", {}),
        ),
    )
    tool, args = player.next_action("Your move.")
    assert tool == "select_passenger"
    assert args == {"kind": "cannibals", "side": "left"}

    kept = player._messages[-1]["content"]
    assert [b.type for b in kept] == ["text", "tool_use"]

    sent = client.messages.create.call_args.kwargs
    assert sent["system"] == SYSTEM_PROMPT
    assert {t["name"] for t in sent["tools"]} >= {"move_boat", "select_passenger"}


def test_anthropic_tool_result_shares_turn_with_observation():
    player, _ = _anthropic_player(
        _make_anthropic_response(_tool_use(0, "move_boat", {})),
        _make_anthropic_response(_tool_use(1, "plan", {"thought": "x"})),
    )
    player.next_action("Your move.")
    player.observe("Crossed.")
    player.next_action("Board now.")

    roles = [m["role"] for m in player._messages]
    assert roles == ["user", "assistant", "user", "assistant"]
    content = player._messages[2]["content"]
    assert content[0] == {"type": "tool_result", "tool_use_id": "toolu_0", "content": "Crossed."}
    assert content[1] == {"type": "text", "text": "Board now."}


def test_anthropic_captures_invocation():
    player, _ = _anthropic_player(_make_anthropic_response(_tool_use(0, "move_boat", {})))
    player.next_action("Your move.")
    assert player.last_invocation.provider == "anthropic"
    assert player.last_invocation.total_tokens == 57


def test_reset_clears_history():
    player, _ = _anthropic_player(_make_anthropic_response(_tool_use(0, "move_boat", {})))
    player.next_action("Your move.")
    player.reset()
    assert player._messages == []
    assert player.last_invocation is None


# ── registry ─────────────────────────────────────────────────────────

def test_find_model_by_name_or_id():
    spec = MODELS[0]
    assert find_model(spec.display_name) is spec
    assert find_model(spec.id) is spec
    assert find_model("nope") is None


def test_make_player_by_provider(monkeypatch):
    monkeypatch.setenv("OPENROUTER_API_KEY", "or-key")
    player = ModelSpec("x/y", "XY", "openrouter").make_player()
    assert isinstance(player, OpenAIPlayer)
    assert player.base_url == "https://openrouter.ai/api/v1"
    assert player.api_key == "or-key"
    assert isinstance(ModelSpec("c", "C", "anthropic").make_player(), AnthropicPlayer)


def test_unknown_provider():
    with pytest.raises(ValueError):
        ModelSpec("x", "X", "carrier-pigeon").make_player()


def test_system_prompt_states_limits():
    assert "15 moves" in SYSTEM_PROMPT
    assert "exactly 11" in SYSTEM_PROMPT
