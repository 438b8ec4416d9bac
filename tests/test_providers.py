# tests/test_providers.py
import pytest

from genstream.core.errors import UnsupportedProvider
from genstream.providers.base import ProviderConfig, ProviderKind, StreamDelta
from genstream.providers.claude import ClaudeAdapter
from genstream.providers.factory import build_registry, get_adapter
from genstream.providers.gemini import GeminiAdapter
from genstream.providers.openai import OpenAICompatibleAdapter


def cfg(provider: str, base_url=None) -> ProviderConfig:
    return ProviderConfig(provider_id=provider, api_key="sk-1", model="m-1", base_url_override=base_url)


def test_openai_request_shape():
    # Tests the OpenAI-compatible request:
    # - bearer auth, /chat/completions, system message first, stream flag in the body.
    req = OpenAICompatibleAdapter().build_request(cfg("openai"), "S", "U", "gpt-x", "sk-1", True)
    assert req.url == "https://api.openai.com/v1/chat/completions"
    assert req.headers["Authorization"] == "Bearer sk-1"
    assert req.body["stream"] is True
    assert req.body["model"] == "gpt-x"
    assert req.body["messages"] == [{"role": "system", "content": "S"}, {"role": "user", "content": "U"}]


def test_openai_no_system_prompt_and_base_url_override():
    req = OpenAICompatibleAdapter().build_request(cfg("openai", "http://proxy.local/v1"), "", "U", "m", "k", False)
    assert req.url == "http://proxy.local/v1/chat/completions"
    assert req.body["messages"] == [{"role": "user", "content": "U"}]
    assert req.body["stream"] is False


def test_openai_stream_payloads():
    a = OpenAICompatibleAdapter()
    assert a.parse_stream_payload({"choices": [{"delta": {"content": "hi"}}]}) == StreamDelta(content="hi")
    assert a.parse_stream_payload({"choices": [{"delta": {"reasoning_content": "hmm"}}]}) == StreamDelta(reasoning="hmm")
    assert a.parse_stream_payload({"choices": [{"delta": {"reasoning": "r"}}]}) == StreamDelta(reasoning="r")
    # role-only first chunk, usage-only last chunk, junk
    assert a.parse_stream_payload({"choices": [{"delta": {"role": "assistant"}}]}).empty
    assert a.parse_stream_payload({"choices": [], "usage": {"total_tokens": 3}}).empty
    assert a.parse_stream_payload([1, 2]).empty


def test_openai_extract_content():
    a = OpenAICompatibleAdapter()
    assert a.extract_content({"choices": [{"message": {"content": "done"}}]}) == "done"
    assert a.extract_content({"choices": []}) == ""
    assert a.extract_content({}) == ""


def test_gemini_request_shape():
    # Tests the Gemini dialect:
    # - key travels as a query param, streaming uses streamGenerateContent + alt=sse
    # - system and user prompt are combined into a single text part.
    a = GeminiAdapter()
    req = a.build_request(cfg("gemini"), "S", "U", "gemini-pro", "gk", True)
    assert req.url == (
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:streamGenerateContent?key=gk&alt=sse"
    )
    assert "Authorization" not in req.headers
    assert req.body["contents"] == [{"parts": [{"text": "S\n\nU"}]}]

    plain = a.build_request(cfg("gemini"), "", "U", "models/gemini-pro", "gk", False)
    assert plain.url.endswith("/models/gemini-pro:generateContent?key=gk")
    assert plain.body["contents"][0]["parts"][0]["text"] == "U"


def test_gemini_key_is_url_encoded():
    # Tests that reserved characters in the key cannot leak into other query params.
    req = GeminiAdapter().build_request(cfg("gemini"), "S", "U", "gemini-pro", "a&b=c+d", True)
    assert req.url.endswith(":streamGenerateContent?key=a%26b%3Dc%2Bd&alt=sse")


def test_gemini_payloads():
    a = GeminiAdapter()
    chunk = {"candidates": [{"content": {"parts": [{"text": "Hel"}, {"text": "lo"}]}}]}
    assert a.parse_stream_payload(chunk) == StreamDelta(content="Hello")
    thought = {"candidates": [{"content": {"parts": [{"text": "plan", "thought": True}]}}]}
    assert a.parse_stream_payload(thought) == StreamDelta(reasoning="plan")
    assert a.parse_stream_payload({"candidates": [{"finishReason": "STOP"}]}).empty
    assert a.extract_content(chunk) == "Hel"
    assert a.extract_content({"promptFeedback": {"blockReason": "SAFETY"}}) == ""


def test_claude_request_shape():
    # Tests the Claude dialect: system prompt in its own field, x-api-key + version header.
    req = ClaudeAdapter().build_request(cfg("claude"), "S", "U", "claude-x", "ck", True)
    assert req.url == "https://api.anthropic.com/v1/messages"
    assert req.headers["x-api-key"] == "ck"
    assert req.headers["anthropic-version"]
    assert req.body["system"] == "S"
    assert req.body["messages"] == [{"role": "user", "content": "U"}]
    assert req.body["stream"] is True
    assert req.body["max_tokens"] > 0


def test_claude_payloads_ignore_control_events():
    # Tests that message_start / ping / content_block_stop etc. are not errors, just empty deltas.
    a = ClaudeAdapter()
    for event in (
        {"type": "message_start", "message": {"id": "m"}},
        {"type": "ping"},
        {"type": "content_block_start", "index": 0, "content_block": {"type": "text", "text": ""}},
        {"type": "content_block_stop", "index": 0},
        {"type": "message_delta", "delta": {"stop_reason": "end_turn"}},
        {"type": "message_stop"},
    ):
        assert a.parse_stream_payload(event).empty
    text = {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "Hi"}}
    thinking = {"type": "content_block_delta", "delta": {"type": "thinking_delta", "thinking": "t"}}
    assert a.parse_stream_payload(text) == StreamDelta(content="Hi")
    assert a.parse_stream_payload(thinking) == StreamDelta(reasoning="t")


def test_claude_extract_content_skips_thinking_blocks():
    a = ClaudeAdapter()
    resp = {"content": [{"type": "thinking", "thinking": "..."}, {"type": "text", "text": "answer"}]}
    assert a.extract_content(resp) == "answer"
    assert a.extract_content({"content": []}) == ""
    assert a.extract_content({"error": {"type": "overloaded"}}) == ""


def test_registry_is_closed_and_read_only():
    registry = build_registry()
    assert {"openai", "openai-compatible", "gemini", "claude"} <= set(registry)
    assert {a.kind for a in registry.values()} == set(ProviderKind)
    assert registry["openrouter"].default_base_url == "https://openrouter.ai/api/v1"
    with pytest.raises(TypeError):
        registry["ollama"] = OpenAICompatibleAdapter()  # type: ignore[index]
    with pytest.raises(UnsupportedProvider):
        get_adapter(registry, "ollama")
