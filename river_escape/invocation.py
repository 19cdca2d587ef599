"""What one LLM call looked like: request, response, token usage, timing."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class LLMInvocation:
    """Captured by a player each time it asks its model for the next tool call."""

    provider: str = ""
    model_api_id: str = ""
    request_messages: list[dict] = field(default_factory=list)
    response_raw: dict = field(default_factory=dict)
    input_tokens: int | None = None
    output_tokens: int | None = None
    latency_ms: int | None = None

    @property
    def total_tokens(self) -> int | None:
        if self.input_tokens is None or self.output_tokens is None:
            return None
        return self.input_tokens + self.output_tokens
