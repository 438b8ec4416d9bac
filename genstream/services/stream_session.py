"""
One upstream generation call, from request to the last delta.

The controller builds the request with the selected adapter, opens a streaming POST
through the shared httpx client, feeds the body through the frame decoder and turns
each payload into provider-neutral events:

    Idle -> Requesting -> Streaming -> Completed | Failed | Aborted

Cancellation goes through a CancelToken. Cancelling the token cancels the asyncio
task that drives the controller, so the pending socket read is interrupted and the
response is closed by the `async with client.stream(...)` block; the token flag is
also checked before every emitted event so payloads already sitting in the decoder
buffer are never delivered.
"""

import asyncio
import logging
from contextlib import aclosing
from enum import Enum
from typing import AsyncIterator, Optional

import httpx

from genstream.core.errors import GatewayError, TransportError, UpstreamHTTPError
from genstream.providers.base import PromptPair, ProviderAdapter, ProviderConfig
from genstream.schemas.events import ChunkEvent, DoneEvent, ErrorEvent, GatewayEvent
from genstream.services.frames import iter_frames

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    IDLE = "idle"
    REQUESTING = "requesting"
    STREAMING = "streaming"
    COMPLETED = "completed"
    FAILED = "failed"
    ABORTED = "aborted"


class CancelToken:
    """Cancellation handle for one generation; owns the task running it once bound."""

    def __init__(self) -> None:
        self._cancelled = False
        self._task: Optional[asyncio.Task] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def bind(self, task: asyncio.Task) -> None:
        self._task = task
        if self._cancelled:
            task.cancel()

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        if self._task is not None and not self._task.done():
            self._task.cancel()


async def read_error_body(response: httpx.Response) -> str:
    try:
        await response.aread()
        return response.text.strip()
    except httpx.HTTPError:
        return ""


class StreamSessionController:
    def __init__(
        self,
        client: httpx.AsyncClient,
        adapter: ProviderAdapter,
        provider_config: ProviderConfig,
        prompts: PromptPair,
        token: CancelToken,
    ) -> None:
        self._client = client
        self._adapter = adapter
        self._config = provider_config
        self._prompts = prompts
        self._token = token
        self.state = StreamState.IDLE

    def _failed(self, error: GatewayError) -> Optional[ErrorEvent]:
        self.state = StreamState.FAILED
        logger.warning("generation failed: %s", error)
        if self._token.cancelled:
            return None
        return ErrorEvent(error=str(error))

    async def events(self) -> AsyncIterator[GatewayEvent]:
        """
        Yield chunk events as they are decoded, then exactly one done or error event.
        Nothing is yielded once the token is cancelled; CancelledError propagates.
        """
        provider = self._config.provider_id
        request = self._adapter.build_request(
            self._config,
            self._prompts.system_prompt,
            self._prompts.user_prompt,
            self._config.model,
            self._config.api_key,
            True,
        )
        self.state = StreamState.REQUESTING
        failure: Optional[ErrorEvent] = None
        try:
            async with self._client.stream("POST", request.url, headers=request.headers, json=request.body) as r:
                if not r.is_success:
                    raise UpstreamHTTPError(provider, r.status_code, r.reason_phrase, await read_error_body(r))
                self.state = StreamState.STREAMING
                async with aclosing(iter_frames(r.aiter_bytes())) as payloads:
                    async for payload in payloads:
                        if self._token.cancelled:
                            self.state = StreamState.ABORTED
                            return
                        delta = self._adapter.parse_stream_payload(payload)
                        if delta.empty:
                            kind = payload.get("type") if isinstance(payload, dict) else None
                            logger.debug("%s payload without delta (type=%s)", provider, kind)
                            continue
                        yield ChunkEvent(content=delta.content, reasoning=delta.reasoning)
        except asyncio.CancelledError:
            self.state = StreamState.ABORTED
            raise
        except GatewayError as e:
            failure = self._failed(e)
        except (httpx.HTTPError, httpx.StreamError, httpx.InvalidURL) as e:
            failure = self._failed(TransportError(f"{provider} transport error: {type(e).__name__}: {e}"))
        else:
            if self._token.cancelled:
                self.state = StreamState.ABORTED
                return
            self.state = StreamState.COMPLETED
            yield DoneEvent()
            return
        if failure is not None:
            yield failure
