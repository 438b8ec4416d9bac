# OpenAI chat completions dialect
# reused for every OpenAI-wire-compatible endpoint (deepseek, openrouter, self-hosted proxies)

from typing import Any, Dict, List

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

OPENAI_BASE_URL = "https://api.openai.com/v1"


class OpenAICompatibleAdapter(ProviderAdapter):
    kind = ProviderKind.OPENAI_COMPATIBLE

    def __init__(self, default_base_url: str = OPENAI_BASE_URL) -> None:
        self.default_base_url = default_base_url

    def build_request(
        self,
        config: ProviderConfig,
        system_prompt: str,
        user_prompt: str,
        model: str,
        api_key: str,
        streaming: bool,
    ) -> UpstreamRequest:
        messages: List[Dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": user_prompt})
        return UpstreamRequest(
            url=f"{self.base_url(config)}/chat/completions",
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            body={
                "model": model,
                "messages": messages,
                "temperature": settings.TEMPERATURE,
                "stream": streaming,
            },
        )

    def extract_content(self, response: Any) -> str:
        return text_or_none(dig(response, "choices", 0, "message", "content")) or ""

    def parse_stream_payload(self, payload: Any) -> StreamDelta:
        delta = dig(payload, "choices", 0, "delta")
        if not isinstance(delta, dict):
            return EMPTY_DELTA
        # deepseek names it reasoning_content, openrouter reasoning
        reasoning = text_or_none(delta.get("reasoning_content")) or text_or_none(delta.get("reasoning"))
        return StreamDelta(content=text_or_none(delta.get("content")), reasoning=reasoning)
