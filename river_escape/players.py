"""LLM players that solve the puzzle through tool calls: OpenAI, Anthropic, OpenRouter."""

from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass, field
from typing import Any

from river_escape.board import BOAT_CAPACITY, MAX_MOVES, POPULATION
from river_escape.invocation import LLMInvocation
from river_escape.tools import TOOL_SCHEMAS


def _plain(obj: Any) -> Any:
    """Turn SDK objects (anything with model_dump) into plain dicts/lists for logging."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump()
    if isinstance(obj, dict):
        return {k: _plain(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_plain(v) for v in obj]
    return obj


# ── System prompt ────────────────────────────────────────────────────

SYSTEM_PROMPT = f"""\
You are solving the Missionaries and Cannibals river-crossing puzzle.

Rules:
- {POPULATION} missionaries and {POPULATION} cannibals start on the left bank with the boat.
- Move everyone to the right bank.
- The boat carries 1 or {BOAT_CAPACITY} people and cannot cross empty.
- On either bank, if any missionaries are present, cannibals must not outnumber them.
  Breaking this rule loses the game immediately after the crossing.
- Every crossing is one move. Easy mode allows {MAX_MOVES['easy']} moves; hard mode allows
  exactly {MAX_MOVES['hard']}, and running out of moves without finishing loses.

How to play:
1. Call select_passenger once per person you want in the boat (from the bank the boat is on).
   Use deselect_passenger to take someone back out.
2. Call move_boat to cross.
3. Repeat until everyone is on the right bank.

You may call plan at any time to think; it has no side effects.
You may call reset_game to start over, but the move counter restarts too.
"""


# ── OpenAI-compatible player (works for OpenAI + OpenRouter) ─────────

@dataclass
class OpenAIPlayer:
    """Player backed by any OpenAI-compatible chat/completions API."""

    model: str
    display_name: str
    api_key: str | None = None
    base_url: str | None = None
    _messages: list[dict] = field(default_factory=list, repr=False)
    _client: object = field(default=None, repr=False)
    _last_invocation: LLMInvocation | None = field(default=None, repr=False)
    _open_call_id: str | None = field(default=None, repr=False)

    @property
    def name(self) -> str:
        return self.display_name

    @property
    def last_invocation(self) -> LLMInvocation | None:
        return self._last_invocation

    def _get_client(self):
        if self._client is None:
            from openai import OpenAI
            self._client = OpenAI(api_key=self.api_key, base_url=self.base_url)
        return self._client

    def _close_open_call(self, content: str) -> None:
        # Every tool_call_id needs a tool message before the next request.
        if self._open_call_id is not None:
            self._messages.append({
                "role": "tool",
                "tool_call_id": self._open_call_id,
                "content": content,
            })
            self._open_call_id = None

    def next_action(self, observation: str) -> tuple[str, dict]:
        if not self._messages:
            self._messages.append({"role": "system", "content": SYSTEM_PROMPT})
        self._close_open_call("OK")
        self._messages.append({"role": "user", "content": observation})
        request_snapshot = _plain(self._messages)

        client = self._get_client()
        t0 = time.monotonic()
        response = client.chat.completions.create(
            model=self.model,
            messages=self._messages,
            tools=TOOL_SCHEMAS,
            tool_choice="required",
        )
        latency_ms = int((time.monotonic() - t0) * 1000)
        msg = response.choices[0].message

        usage = getattr(response, "usage", None)
        self._last_invocation = LLMInvocation(
            provider="openai",
            model_api_id=self.model,
            request_messages=request_snapshot,
            response_raw=response.model_dump() if hasattr(response, "model_dump") else {},
            input_tokens=getattr(usage, "prompt_tokens", None),
            output_tokens=getattr(usage, "completion_tokens", None),
            latency_ms=latency_ms,
        )

        # Only the first tool call is executed, so only it goes into history.
        msg_dict = msg.model_dump(exclude_none=True)
        if msg_dict.get("tool_calls"):
            msg_dict["tool_calls"] = msg_dict["tool_calls"][:1]
        self._messages.append(msg_dict)

        if not msg.tool_calls:
            return "plan", {"thought": msg.content or ""}

        call = msg.tool_calls[0]
        self._open_call_id = call.id
        try:
            args = json.loads(call.function.arguments) if call.function.arguments else {}
        except json.JSONDecodeError:
            args = {}
        return call.function.name, args

    def observe(self, message: str) -> None:
        if self._open_call_id is not None:
            self._close_open_call(message)
        else:
            self._messages.append({"role": "user", "content": message})

    def reset(self) -> None:
        self._messages = []
        self._last_invocation = None
        self._open_call_id = None


# ── Anthropic player ─────────────────────────────────────────────────

def _anthropic_tools(tools: list[dict]) -> list[dict]:
    """OpenAI function schemas -> Anthropic tool definitions."""
    return [
        {
            "name": t["function"]["name"],
            "description": t["function"]["description"],
            "input_schema": t["function"]["parameters"],
        }
        for t in tools
    ]


@dataclass
class AnthropicPlayer:
    """Player backed by Anthropic's messages API."""

    model: str
    display_name: str
    api_key: str | None = None
    max_tokens: int = 1024
    _messages: list[dict] = field(default_factory=list, repr=False)
    _client: object = field(default=None, repr=False)
    _last_invocation: LLMInvocation | None = field(default=None, repr=False)
    _open_tool_use_id: str | None = field(default=None, repr=False)
    _pending_results: list[dict] = field(default_factory=list, repr=False)

    @property
    def name(self) -> str:
        return self.display_name

    @property
    def last_invocation(self) -> LLMInvocation | None:
        return self._last_invocation

    def _get_client(self):
        if self._client is None:
            from anthropic import Anthropic
            self._client = Anthropic(api_key=self.api_key)
        return self._client

    def next_action(self, observation: str) -> tuple[str, dict]:
        # Tool results and the new observation share one user turn so roles keep alternating.
        content = list(self._pending_results)
        self._pending_results = []
        if self._open_tool_use_id is not None:
            content.append({"type": "tool_result", "tool_use_id": self._open_tool_use_id, "content": "OK"})
            self._open_tool_use_id = None
        content.append({"type": "text", "text": observation})
        self._messages.append({"role": "user", "content": content})
        request_snapshot = _plain(self._messages)

        client = self._get_client()
        t0 = time.monotonic()
        response = client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            system=SYSTEM_PROMPT,
            messages=self._messages,
            tools=_anthropic_tools(TOOL_SCHEMAS),
            tool_choice={"type": "any"},
        )
        latency_ms = int((time.monotonic() - t0) * 1000)

        usage = getattr(response, "usage", None)
        self._last_invocation = LLMInvocation(
            provider="anthropic",
            model_api_id=self.model,
            request_messages=request_snapshot,
            response_raw=response.model_dump() if hasattr(response, "model_dump") else {},
            input_tokens=getattr(usage, "input_tokens", None),
            output_tokens=getattr(usage, "output_tokens", None),
            latency_ms=latency_ms,
        )

        # Keep text blocks but only the first tool_use, which is the one we run.
        first_tool = None
        kept = []
        for block in response.content:
            if block.type == "tool_use":
                if first_tool is not None:
                    continue
                first_tool = block
            kept.append(block)
        self._messages.append({"role": "assistant", "content": kept})

        if first_tool is None:
            return "plan", {"thought": ""}
        self._open_tool_use_id = first_tool.id
        return first_tool.name, dict(first_tool.input or {})

    def observe(self, message: str) -> None:
        if self._open_tool_use_id is None:
            return
        self._pending_results.append(
            {"type": "tool_result", "tool_use_id": self._open_tool_use_id, "content": message}
        )
        self._open_tool_use_id = None

    def reset(self) -> None:
        self._messages = []
        self._last_invocation = None
        self._open_tool_use_id = None
        self._pending_results = []


# ── Model registry ───────────────────────────────────────────────────

@dataclass
class ModelSpec:
    """How to build a player for one model."""

    id: str
    display_name: str
    provider: str  # "openai" | "anthropic" | "openrouter"

    def make_player(self) -> OpenAIPlayer | AnthropicPlayer:
        if self.provider == "anthropic":
            return AnthropicPlayer(
                model=self.id,
                display_name=self.display_name,
                api_key=os.environ.get("ANTHROPIC_API_KEY"),
            )
        if self.provider == "openrouter":
            return OpenAIPlayer(
                model=self.id,
                display_name=self.display_name,
                api_key=os.environ.get("OPENROUTER_API_KEY"),
                base_url="https://openrouter.ai/api/v1",
            )
        if self.provider == "openai":
            return OpenAIPlayer(
                model=self.id,
                display_name=self.display_name,
                api_key=os.environ.get("OPENAI_API_KEY"),
            )
        raise ValueError(f"Unknown provider: {self.provider!r}")


MODELS: list[ModelSpec] = [
    ModelSpec("gpt-4.1-mini", "GPT-4.1 Mini", "openai"),
    ModelSpec("claude-haiku-4-5-20251001", "Claude Haiku 4.5", "anthropic"),
    ModelSpec("google/gemini-3-flash-preview", "Gemini 3 Flash", "openrouter"),
    ModelSpec("x-ai/grok-4.1-fast", "Grok 4.1 Fast", "openrouter"),
]


def find_model(name: str) -> ModelSpec | None:
    for m in MODELS:
        if name in (m.id, m.display_name):
            return m
    return None
