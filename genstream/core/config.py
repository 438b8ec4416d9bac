# centralized configuration loader
# runs load_dotenv() to read .env
# service knobs are module constants; the provider choice and credentials are read per request
# from AI_CONFIG_PATH (or AI_* env vars) so they can change without a restart

import json
import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from genstream.schemas.config import AIConfig

load_dotenv()

logger = logging.getLogger(__name__)

# Provider configuration source
AI_CONFIG_PATH = os.getenv("AI_CONFIG_PATH", "ai_config.json")

# Upstream HTTP
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "120"))
CONNECT_TIMEOUT = float(os.getenv("CONNECT_TIMEOUT", "10"))
ANTHROPIC_VERSION = os.getenv("ANTHROPIC_VERSION", "2023-06-01")

# Generation caps
TEMPERATURE = float(os.getenv("TEMPERATURE", "0.3"))
MAX_TOKENS = int(os.getenv("MAX_TOKENS", "4096"))
MAX_SUBTITLE_CHARS = int(os.getenv("MAX_SUBTITLE_CHARS", "8000"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _config_from_env() -> Optional[AIConfig]:
    provider = os.getenv("AI_PROVIDER")
    if not provider:
        return None
    api_key = os.getenv("AI_API_KEY", "")
    return AIConfig(
        provider=provider,
        apiKeys={provider: api_key} if api_key else {},
        model=os.getenv("AI_MODEL", ""),
        baseUrl=os.getenv("AI_BASE_URL") or None,
        replyLanguage=os.getenv("AI_REPLY_LANGUAGE") or None,
    )


def load_ai_config(path: Optional[str] = None) -> Optional[AIConfig]:
    """
    Read a fresh configuration snapshot.
    A missing file falls back to the AI_* environment variables; a broken file is logged
    and reported as "not configured" rather than raised.
    """
    p = Path(path or AI_CONFIG_PATH)
    if not p.is_file():
        return _config_from_env()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
        return AIConfig.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.error("failed to load AI config from %s: %s", p, e)
        return None
