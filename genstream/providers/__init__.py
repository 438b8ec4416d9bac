from genstream.providers.base import (
    PromptPair,
    ProviderAdapter,
    ProviderConfig,
    ProviderKind,
    StreamDelta,
    UpstreamRequest,
)
from genstream.providers.factory import ProviderRegistry, build_registry, get_adapter

__all__ = [
    "PromptPair",
    "ProviderAdapter",
    "ProviderConfig",
    "ProviderKind",
    "ProviderRegistry",
    "StreamDelta",
    "UpstreamRequest",
    "build_registry",
    "get_adapter",
]
