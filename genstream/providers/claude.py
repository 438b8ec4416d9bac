# Anthropic messages dialect
# the system prompt goes in its own field; the stream is typed events and only
# content_block_delta carries text

from typing import Any

from genstream.core import config as settings
from genstream.providers.base import (
    EMPTY_DELTA,
    ProviderAdapter,
    ProviderConfig,
    ProviderKind,
    StreamDelta,
    UpstreamRequest,
    dig,
    text_or_none,
)

CLAUDE_BASE_URL = "https://api.anthropic.com/v1"


class ClaudeAdapter(ProviderAdapter):
    kind = ProviderKind.CLAUDE
    default_base_url = CLAUDE_BASE_URL

    def build_request(
        self,
        config: ProviderConfig,
        system_prompt: str,
        user_prompt: str,
        model: str,
        api_key: str,
        streaming: bool,
    ) -> UpstreamRequest:
        body = {
            "model": model,
            "max_tokens": settings.MAX_TOKENS,
            "messages": [{"role": "user", "content": user_prompt}],
            "stream": streaming,
        }
        if system_prompt:
            body["system"] = system_prompt
        return UpstreamRequest(
            url=f"{self.base_url(config)}/messages",
            headers={
                "Content-Type": "application/json",
                "x-api-key": api_key,
                "anthropic-version": settings.ANTHROPIC_VERSION,
            },
            body=body,
        )

    def extract_content(self, response: Any) -> str:
        blocks = dig(response, "content")
        if not isinstance(blocks, list):
            return ""
        # skip thinking blocks, the answer is the first text block
        for block in blocks:
            if isinstance(block, dict) and block.get("type", "text") == "text":
                text = block.get("text")
                return text if isinstance(text, str) else ""
        return ""

    def parse_stream_payload(self, payload: Any) -> StreamDelta:
        if dig(payload, "type") != "content_block_delta":
            return EMPTY_DELTA
        delta = dig(payload, "delta")
        if not isinstance(delta, dict):
            return EMPTY_DELTA
        if delta.get("type") == "thinking_delta":
            return StreamDelta(reasoning=text_or_none(delta.get("thinking")))
        return StreamDelta(content=text_or_none(delta.get("text")))
