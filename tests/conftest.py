# tests/conftest.py
import os
import logging
import pytest

# keep a developer's real config file and AI_* env out of the tests
os.environ["AI_CONFIG_PATH"] = os.path.join(os.path.dirname(__file__), "does-not-exist.json")
for var in ("AI_PROVIDER", "AI_API_KEY", "AI_MODEL", "AI_BASE_URL", "AI_REPLY_LANGUAGE"):
    os.environ.pop(var, None)

# IMPORTANT: import the package after envs are set
from genstream.providers.factory import build_registry
from genstream.schemas.config import AIConfig
from genstream.services.gateway import GenerationGateway


@pytest.fixture
def ai_config() -> AIConfig:
    return AIConfig(provider="openai", apiKeys={"openai": "k"}, model="gpt-x")


@pytest.fixture
def make_gateway(ai_config):
    # gateway wired to a fake upstream; the config snapshot can be swapped per test
    def _make(upstream, config=ai_config):
        return GenerationGateway(upstream.client(), build_registry(), lambda: config)
    return _make


@pytest.fixture
def caplog_info(caplog):
    caplog.set_level(logging.INFO)
    return caplog


@pytest.fixture
def caplog_debug(caplog):
    caplog.set_level(logging.DEBUG)
    return caplog
