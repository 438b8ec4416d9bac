# maps an inbound action to the system/user prompt pair sent upstream
# system prompts live in genstream/prompts/*.txt with a {language} placeholder

from functools import lru_cache
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

from genstream.core.errors import InvalidMessage, UnknownAction
from genstream.providers.base import PromptPair
from genstream.schemas.generate import GenerateMessage
from genstream.services.subtitles import format_subtitles

PROMPTS_DIR = Path(__file__).resolve().parents[1] / "prompts"

LANGUAGES: Dict[str, str] = {
    "zh-CN": "Chinese",
    "en": "English",
    "ja": "Japanese",
    "ko": "Korean",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "pt": "Portuguese",
    "ru": "Russian",
}
DEFAULT_LANGUAGE = "English"


@lru_cache(maxsize=None)
def load_system_prompt(name: str) -> str:
    return (PROMPTS_DIR / f"{name}.txt").read_text(encoding="utf-8").strip()


def reply_language(code: Optional[str]) -> str:
    # "auto" and unknown codes fall back to the default
    return LANGUAGES.get(code or "auto", DEFAULT_LANGUAGE)


def _subtitles_text(msg: GenerateMessage) -> str:
    subs: Any = msg.subtitles
    if isinstance(subs, list):
        try:
            return format_subtitles(subs)
        except ValueError as e:
            raise InvalidMessage(str(e)) from e
    return (subs or "").strip()


def _summary_user(msg: GenerateMessage) -> str:
    return (
        "Please analyse the following content.\n\n"
        f"**Subtitles:**\n{_subtitles_text(msg)}\n\n"
        "Produce the structured result described in the instructions."
    )


def _mindmap_video_user(msg: GenerateMessage) -> str:
    return f"Build a mind map from the following content:\n\n{_subtitles_text(msg)}"


def _mindmap_article_user(msg: GenerateMessage) -> str:
    return (
        "Build a mind map from the following article:\n\n"
        f"Title: {msg.title or ''}\n\n"
        f"Content:\n{msg.content or ''}"
    )


UserTemplate = Callable[[GenerateMessage], str]

# action -> (system prompt file, user prompt template)
ACTIONS: Dict[str, Tuple[str, UserTemplate]] = {
    "summarizeSubtitles": ("summary_system", _summary_user),
    "generateMindmap": ("mindmap_system", _mindmap_video_user),
    "generateArticleMindmap": ("mindmap_system", _mindmap_article_user),
}
STREAM_SUFFIX = "Stream"
MINDMAP_ACTIONS = frozenset({"generateMindmap", "generateArticleMindmap"})
# answered locally, no model call
FORMAT_ACTION = "formatSubtitles"


def base_action(action: str) -> str:
    return action[: -len(STREAM_SUFFIX)] if action.endswith(STREAM_SUFFIX) else action


def formatted_subtitles(msg: GenerateMessage) -> str:
    if not isinstance(msg.subtitles, list):
        raise InvalidMessage(f"{FORMAT_ACTION} needs a list of subtitle cues")
    return _subtitles_text(msg)


def build_prompts(msg: GenerateMessage, language_code: Optional[str] = None) -> PromptPair:
    """
    Both "summarizeSubtitles" and "summarizeSubtitlesStream" resolve to the same templates;
    whether the call streams is decided by the channel, not the action name.
    """
    entry = ACTIONS.get(base_action(msg.action))
    if entry is None:
        raise UnknownAction(msg.action)
    system_name, user_template = entry
    system = load_system_prompt(system_name).replace("{language}", reply_language(language_code))
    return PromptPair(system_prompt=system, user_prompt=user_template(msg))
