# flattens subtitle cues extracted from a video page into one prompt-sized text block

import re
from typing import Any, List, Optional

from genstream.core import config

SHORT_FRAGMENT = 20
SHORT_PREVIOUS = 50


def _cue_text(cue: Any) -> str:
    if isinstance(cue, str):
        return cue.strip()
    if isinstance(cue, dict):
        text = cue.get("text") or cue.get("content") or cue.get("transcript") or ""
        return str(text).strip()
    return ""


def format_subtitles(subtitles: List[Any], max_chars: Optional[int] = None) -> str:
    if not isinstance(subtitles, list) or not subtitles:
        raise ValueError("subtitle list is empty or malformed")
    limit = max_chars or config.MAX_SUBTITLE_CHARS

    texts = [t for t in (_cue_text(c) for c in subtitles) if t]
    # auto captions repeat the same line across consecutive cues
    deduped = [t for i, t in enumerate(texts) if i == 0 or t != texts[i - 1]]

    merged: List[str] = []
    for text in deduped:
        if merged and len(text) < SHORT_FRAGMENT and len(merged[-1]) < SHORT_PREVIOUS:
            merged[-1] = f"{merged[-1]} {text}"
        else:
            merged.append(text)

    formatted = re.sub(r"\s+", " ", " ".join(merged)).strip()
    if len(formatted) <= limit:
        return formatted

    # cut at a sentence end or word boundary near the limit when there is one
    truncated = formatted[:limit]
    floor = int(limit * 0.875)
    last_period = truncated.rfind("。")
    last_space = truncated.rfind(" ")
    if last_period > floor:
        cut = last_period + 1
    elif last_space > floor:
        cut = last_space
    else:
        cut = limit
    return formatted[:cut].strip()
