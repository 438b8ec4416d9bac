from types import MappingProxyType
from typing import Mapping

from genstream.core.errors import UnsupportedProvider
from genstream.providers.base import ProviderAdapter
from genstream.providers.claude import ClaudeAdapter
from genstream.providers.gemini import GeminiAdapter
from genstream.providers.openai import OpenAICompatibleAdapter

ProviderRegistry = Mapping[str, ProviderAdapter]


def build_registry() -> ProviderRegistry:
    # closed set: one adapter per wire dialect, several ids may share the openai one
    return MappingProxyType({
        "openai": OpenAICompatibleAdapter(),
        "openai-compatible": OpenAICompatibleAdapter(),
        "deepseek": OpenAICompatibleAdapter("https://api.deepseek.com/v1"),
        "openrouter": OpenAICompatibleAdapter("https://openrouter.ai/api/v1"),
        "gemini": GeminiAdapter(),
        "claude": ClaudeAdapter(),
    })


def get_adapter(registry: ProviderRegistry, provider_id: str) -> ProviderAdapter:
    adapter = registry.get(provider_id)
    if adapter is None:
        raise UnsupportedProvider(provider_id)
    return adapter
