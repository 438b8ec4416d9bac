# turns a raw streaming response body into decoded event payloads
# every adapter speaks the same "data: <json>" line framing, only the json differs

import codecs
import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Optional

logger = logging.getLogger(__name__)

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"


def _payload_text(line: str) -> Optional[str]:
    """Return the event payload of one complete line, or None when the line carries nothing."""
    line = line.strip()
    if not line or not line.startswith(DATA_PREFIX):
        # blank separators, "event:"/"id:" fields and ":" comments
        return None
    data = line[len(DATA_PREFIX):].strip()
    if not data or data == DONE_SENTINEL:
        return None
    return data


async def iter_frames(chunks: AsyncIterable[bytes]) -> AsyncIterator[Any]:
    """
    Yield one decoded JSON payload per complete "data:" line, in arrival order.

    Lines may be split anywhere between chunks, including inside a multi-byte character:
    bytes are decoded incrementally and the unfinished tail of the buffer waits for the
    next chunk. A line that is not valid JSON is logged and skipped. Whatever is left in
    the buffer when the body ends is a dangling partial line and is dropped.
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    buffer = ""
    async for chunk in chunks:
        buffer += decoder.decode(chunk)
        *lines, buffer = buffer.split("\n")
        for line in lines:
            data = _payload_text(line)
            if data is None:
                continue
            try:
                yield json.loads(data)
            except json.JSONDecodeError as e:
                logger.warning("skipping malformed stream line (%s): %.200s", e, data)
    buffer += decoder.decode(b"", final=True)
    if buffer.strip():
        logger.debug("stream closed with %d bytes of unterminated line, dropped", len(buffer))
