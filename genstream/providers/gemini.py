# Google Gemini generateContent dialect
# no separate system channel: system and user prompt are sent as one combined prompt

from typing import Any, Optional
from urllib.parse import urlencode

from genstream.core import config as settings
from genstream.providers.base import (
    EMPTY_DELTA,
    ProviderAdapter,
    ProviderConfig,
    ProviderKind,
    StreamDelta,
    UpstreamRequest,
    dig,
)

GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"


def combine_prompts(system_prompt: str, user_prompt: str) -> str:
    return f"{system_prompt}\n\n{user_prompt}" if system_prompt else user_prompt


class GeminiAdapter(ProviderAdapter):
    kind = ProviderKind.GEMINI
    default_base_url = GEMINI_BASE_URL

    def build_request(
        self,
        config: ProviderConfig,
        system_prompt: str,
        user_prompt: str,
        model: str,
        api_key: str,
        streaming: bool,
    ) -> UpstreamRequest:
        model_name = model if model.startswith("models/") else f"models/{model}"
        # streaming is selected by the action name plus alt=sse, not by a body field
        action = "streamGenerateContent" if streaming else "generateContent"
        params = {"key": api_key, "alt": "sse"} if streaming else {"key": api_key}
        query = urlencode(params)
        return UpstreamRequest(
            url=f"{self.base_url(config)}/{model_name}:{action}?{query}",
            headers={"Content-Type": "application/json"},
            body={
                "contents": [{"parts": [{"text": combine_prompts(system_prompt, user_prompt)}]}],
                "generationConfig": {"temperature": settings.TEMPERATURE},
            },
        )

    def extract_content(self, response: Any) -> str:
        text = dig(response, "candidates", 0, "content", "parts", 0, "text")
        return text if isinstance(text, str) else ""

    def parse_stream_payload(self, payload: Any) -> StreamDelta:
        parts = dig(payload, "candidates", 0, "content", "parts")
        if not isinstance(parts, list):
            return EMPTY_DELTA
        content: Optional[str] = None
        reasoning: Optional[str] = None
        for part in parts:
            text = part.get("text") if isinstance(part, dict) else None
            if not isinstance(text, str) or not text:
                continue
            # thinking models flag thought summaries on the part
            if part.get("thought") is True:
                reasoning = (reasoning or "") + text
            else:
                content = (content or "") + text
        return StreamDelta(content=content, reasoning=reasoning)
