# models like to wrap the outline in a ```markdown / ```plaintext fence; the client wants bare text

import re

_OPENING_FENCE = re.compile(r"^```\w*\n?", re.MULTILINE)
_CLOSING_FENCE = re.compile(r"```$", re.MULTILINE)


def clean_mindmap_response(content: str) -> str:
    if not content:
        return ""
    return _CLOSING_FENCE.sub("", _OPENING_FENCE.sub("", content)).strip()
