# tests/test_frames.py
import json
import pytest
from typing import List

from genstream.services.frames import iter_frames

STREAM = (
    'data: {"choices":[{"delta":{"content":"Hel"}}]}\n\n'
    'data: {"choices":[{"delta":{"content":"lo"}}]}\n\n'
    'data: {"choices":[{"delta":{"content":" wörld 你好"}}]}\n\n'
    "data: [DONE]\n\n"
).encode("utf-8")


async def _agen(chunks: List[bytes]):
    for c in chunks:
        yield c


async def decode(chunks: List[bytes]) -> list:
    return [p async for p in iter_frames(_agen(chunks))]


@pytest.mark.asyncio
async def test_single_chunk():
    # Tests decoding a whole stream delivered in one read:
    # - the [DONE] sentinel and blank separator lines produce nothing.
    payloads = await decode([STREAM])
    assert [p["choices"][0]["delta"]["content"] for p in payloads] == ["Hel", "lo", " wörld 你好"]


@pytest.mark.asyncio
async def test_every_two_way_split_matches_whole():
    # Tests that splitting the body at any byte offset (mid-line, on a newline,
    # inside a multi-byte character) decodes to the same payloads in the same order.
    expected = await decode([STREAM])
    for i in range(1, len(STREAM)):
        assert await decode([STREAM[:i], STREAM[i:]]) == expected, f"split at {i}"


@pytest.mark.asyncio
async def test_byte_by_byte():
    expected = await decode([STREAM])
    assert await decode([bytes([b]) for b in STREAM]) == expected


@pytest.mark.asyncio
async def test_malformed_line_skipped_and_logged(caplog):
    # Tests that one broken event does not abort the stream:
    # - the truncated json line is logged as a warning
    # - the valid lines after it are still decoded.
    body = (
        b'data: {"a": 1}\n'
        b'data: {"a": \n'
        b'data: {"a": 3}\n'
    )
    assert await decode([body]) == [{"a": 1}, {"a": 3}]
    assert any("malformed" in rec.getMessage() for rec in caplog.records)


@pytest.mark.asyncio
async def test_dangling_partial_line_dropped():
    # Tests end-of-stream with an unterminated line: it is discarded, not an error.
    assert await decode([b'data: {"a": 1}\ndata: {"a": 2}']) == [{"a": 1}]


@pytest.mark.asyncio
async def test_non_data_lines_ignored():
    # Tests that SSE fields other than data (event:, id:, comments) are skipped.
    body = (
        b": keep-alive\n"
        b"event: content_block_delta\n"
        b'data: {"type": "content_block_delta"}\n'
        b"id: 7\n"
    )
    assert await decode([body]) == [{"type": "content_block_delta"}]


@pytest.mark.asyncio
async def test_crlf_line_endings():
    body = 'data: {"x": "y"}\r\n\r\ndata: {"x": "z"}\r\n'.encode()
    assert await decode([body]) == [{"x": "y"}, {"x": "z"}]


@pytest.mark.asyncio
async def test_prefix_without_space_and_empty_input():
    assert await decode([b'data:{"k":1}\n']) == [{"k": 1}]
    assert await decode([]) == []


@pytest.mark.asyncio
async def test_payloads_are_emitted_lazily():
    # Tests that payloads are yielded as soon as their line completes,
    # before the rest of the body has arrived.
    seen = []

    async def chunks():
        yield b'data: {"n": 1}\n'
        seen.append("second read")
        yield b'data: {"n": 2}\n'

    it = iter_frames(chunks())
    first = await it.__anext__()
    assert first == {"n": 1}
    assert seen == []
    assert json.dumps(await it.__anext__()) == '{"n": 2}'
