# lets us swap/add providers without touching the gateway or the frame decoder
# declares the adapter contract every upstream wire dialect implements

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ProviderKind(str, Enum):
    OPENAI_COMPATIBLE = "openai-compatible"
    GEMINI = "gemini"
    CLAUDE = "claude"


@dataclass(frozen=True)
class ProviderConfig:
    """Read-only per-request snapshot of the selected provider."""

    provider_id: str
    api_key: str
    model: str
    base_url_override: Optional[str] = None


@dataclass(frozen=True)
class PromptPair:
    system_prompt: str
    user_prompt: str


@dataclass(frozen=True)
class UpstreamRequest:
    # headers carry the credential, so a request is built per call and never reused
    url: str
    headers: Dict[str, str]
    body: Dict[str, Any]


@dataclass(frozen=True)
class StreamDelta:
    content: Optional[str] = None
    reasoning: Optional[str] = None

    @property
    def empty(self) -> bool:
        return not self.content and not self.reasoning


EMPTY_DELTA = StreamDelta()


def dig(data: Any, *path: Any) -> Any:
    """Walk nested dicts/lists, returning None as soon as a step is missing."""
    cur = data
    for key in path:
        if isinstance(key, int):
            if not isinstance(cur, list) or not -len(cur) <= key < len(cur):
                return None
        elif not isinstance(cur, dict):
            return None
        cur = cur[key] if isinstance(key, int) else cur.get(key)
        if cur is None:
            return None
    return cur


def text_or_none(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


class ProviderAdapter(ABC):
    """
    Stateless mapping between the provider-neutral prompt pair and one upstream dialect.
    Adapters never do I/O and never raise on unexpected response shapes.
    """

    kind: ProviderKind
    default_base_url: str

    def base_url(self, config: ProviderConfig) -> str:
        return (config.base_url_override or self.default_base_url).rstrip("/")

    @abstractmethod
    def build_request(
        self,
        config: ProviderConfig,
        system_prompt: str,
        user_prompt: str,
        model: str,
        api_key: str,
        streaming: bool,
    ) -> UpstreamRequest:
        raise NotImplementedError

    @abstractmethod
    def extract_content(self, response: Any) -> str:
        """Text of a full (non-streaming) response; "" when the expected path is absent."""
        raise NotImplementedError

    @abstractmethod
    def parse_stream_payload(self, payload: Any) -> StreamDelta:
        """Delta carried by one decoded event; EMPTY_DELTA for control/metadata events."""
        raise NotImplementedError
