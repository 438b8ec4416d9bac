"""
Generation gateway: the one object the transport layer talks to.

Each session owns an outbound event queue and at most one active generation.
start() is synchronous on purpose: the previous generation is cancelled and
configuration errors are queued before it returns, and the upstream call runs
in its own asyncio task. cancel()/close_session() cancel that task right away,
which tears down the pending httpx read.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

import httpx

from genstream.core import config
from genstream.core.errors import (
    ConfigMissing,
    CredentialMissing,
    GatewayError,
    TransportError,
    UpstreamHTTPError,
)
from genstream.providers.base import PromptPair, ProviderAdapter, ProviderConfig
from genstream.providers.factory import ProviderRegistry, build_registry, get_adapter
from genstream.schemas.config import AIConfig
from genstream.schemas.events import ChunkEvent, DoneEvent, ErrorEvent, GatewayEvent
from genstream.schemas.generate import GenerateMessage, GenerateResponse
from genstream.services.mindmap import clean_mindmap_response
from genstream.services.prompt import (
    FORMAT_ACTION,
    MINDMAP_ACTIONS,
    base_action,
    build_prompts,
    formatted_subtitles,
)
from genstream.services.stream_session import CancelToken, StreamSessionController

logger = logging.getLogger(__name__)

ConfigLoader = Callable[[], Optional[AIConfig]]


@dataclass
class Generation:
    action: str
    token: CancelToken = field(default_factory=CancelToken)
    additional_fields: Dict[str, Any] = field(default_factory=dict)
    task: Optional[asyncio.Task] = None


class Session:
    def __init__(self, session_id: str) -> None:
        self.id = session_id
        self.events: "asyncio.Queue[GatewayEvent]" = asyncio.Queue()
        self.active: Optional[Generation] = None

    def emit(self, event: GatewayEvent, token: Optional[CancelToken] = None) -> bool:
        """
        Queue an event for the session. Events tied to a token are dropped unless that
        token still belongs to the active generation and has not been cancelled.
        """
        if token is not None:
            if token.cancelled or self.active is None or self.active.token is not token:
                return False
        self.events.put_nowait(event)
        return True

    def cancel_active(self) -> bool:
        generation, self.active = self.active, None
        if generation is None:
            return False
        generation.token.cancel()
        return True


def resolve_provider(snapshot: Optional[AIConfig], registry: ProviderRegistry) -> Tuple[ProviderAdapter, ProviderConfig]:
    # every check here happens before any network call
    if snapshot is None:
        raise ConfigMissing()
    api_key = snapshot.api_key()
    if not api_key:
        raise CredentialMissing(snapshot.provider)
    adapter = get_adapter(registry, snapshot.provider)
    return adapter, ProviderConfig(
        provider_id=snapshot.provider,
        api_key=api_key,
        model=snapshot.effective_model(),
        base_url_override=snapshot.base_url_override(),
    )


class GenerationGateway:
    def __init__(
        self,
        client: httpx.AsyncClient,
        registry: Optional[ProviderRegistry] = None,
        config_loader: Optional[ConfigLoader] = None,
    ) -> None:
        self._client = client
        self._registry = registry if registry is not None else build_registry()
        self._config_loader = config_loader or config.load_ai_config
        self._sessions: Dict[str, Session] = {}

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    # --- session lifecycle ---

    def open_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            session = Session(session_id)
            self._sessions[session_id] = session
            logger.debug("session %s opened", session_id)
        return session

    def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def session_ids(self) -> List[str]:
        return list(self._sessions)

    def close_session(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None and session.cancel_active():
            logger.info("session %s closed, in-flight generation cancelled", session_id)

    def cancel(self, session_id: str) -> None:
        session = self._sessions.get(session_id)
        if session is not None and session.cancel_active():
            logger.info("session %s generation cancelled", session_id)

    # --- streaming ---

    def start(
        self,
        session_id: str,
        action: str,
        prompts: PromptPair,
        additional_fields: Optional[Mapping[str, Any]] = None,
    ) -> None:
        """Fire-and-forget: results arrive on the session's event queue."""
        session = self.open_session(session_id)
        session.cancel_active()
        self._start(session, action, prompts, additional_fields, self._config_loader())

    def handle_message(self, session_id: str, msg: GenerateMessage) -> None:
        """Build prompts for an inbound session message and start streaming it."""
        session = self.open_session(session_id)
        # a new request always supersedes the running one, even if it turns out invalid
        session.cancel_active()
        if msg.action == FORMAT_ACTION:
            self._answer_locally(session, msg)
            return
        snapshot = self._config_loader()
        try:
            prompts = build_prompts(msg, snapshot.reply_language if snapshot else None)
        except GatewayError as e:
            session.emit(ErrorEvent(error=str(e)))
            return
        self._start(session, msg.action, prompts, msg.additional_fields(), snapshot)

    def _answer_locally(self, session: Session, msg: GenerateMessage) -> None:
        # formatted subtitles go out as one chunk followed by done
        try:
            text = formatted_subtitles(msg)
        except GatewayError as e:
            session.emit(ErrorEvent(error=str(e)))
            return
        session.emit(ChunkEvent(content=text))
        session.emit(DoneEvent())

    def _start(
        self,
        session: Session,
        action: str,
        prompts: PromptPair,
        additional_fields: Optional[Mapping[str, Any]],
        snapshot: Optional[AIConfig],
    ) -> None:
        try:
            adapter, provider_config = resolve_provider(snapshot, self._registry)
        except GatewayError as e:
            logger.warning("session %s: %s", session.id, e)
            session.emit(ErrorEvent(error=str(e)))
            return

        generation = Generation(action=action, additional_fields=dict(additional_fields or {}))
        session.active = generation
        controller = StreamSessionController(self._client, adapter, provider_config, prompts, generation.token)
        task = asyncio.create_task(self._relay(session, generation, controller), name=f"generate:{session.id}")
        generation.task = task
        generation.token.bind(task)
        logger.info(
            "session %s: %s via %s (%s)", session.id, action, provider_config.provider_id, provider_config.model
        )
        if generation.additional_fields:
            logger.debug("session %s: additional fields %s", session.id, sorted(generation.additional_fields))

    async def _relay(self, session: Session, generation: Generation, controller: StreamSessionController) -> None:
        try:
            async for event in controller.events():
                session.emit(event, generation.token)
        except asyncio.CancelledError:
            logger.info("session %s: %s aborted", session.id, generation.action)
            raise
        except Exception as e:
            logger.exception("session %s: unexpected streaming failure: %s", session.id, e)
            session.emit(ErrorEvent(error=str(e) or type(e).__name__), generation.token)
        finally:
            if session.active is generation:
                session.active = None

    # --- non-streaming ---

    async def complete(self, prompts: PromptPair, snapshot: Optional[AIConfig] = None) -> Tuple[str, ProviderConfig]:
        if snapshot is None:
            snapshot = self._config_loader()
        adapter, provider_config = resolve_provider(snapshot, self._registry)
        provider = provider_config.provider_id
        request = adapter.build_request(
            provider_config,
            prompts.system_prompt,
            prompts.user_prompt,
            provider_config.model,
            provider_config.api_key,
            False,
        )
        try:
            r = await self._client.post(request.url, headers=request.headers, json=request.body)
        except httpx.HTTPError as e:
            raise TransportError(f"{provider} transport error: {type(e).__name__}: {e}") from e
        if not r.is_success:
            raise UpstreamHTTPError(provider, r.status_code, r.reason_phrase, r.text.strip())
        try:
            data = r.json()
        except ValueError as e:
            raise TransportError(f"{provider} returned a non-JSON response") from e
        return adapter.extract_content(data), provider_config

    async def generate(self, msg: GenerateMessage) -> GenerateResponse:
        if msg.action == FORMAT_ACTION:
            return GenerateResponse(content=formatted_subtitles(msg))
        snapshot = self._config_loader()
        prompts = build_prompts(msg, snapshot.reply_language if snapshot else None)
        content, provider_config = await self.complete(prompts, snapshot)
        if base_action(msg.action) in MINDMAP_ACTIONS:
            content = clean_mindmap_response(content)
        return GenerateResponse(content=content, provider=provider_config.provider_id, model=provider_config.model)

    async def aclose(self) -> None:
        for session_id in list(self._sessions):
            self.close_session(session_id)
        await self._client.aclose()


def build_gateway() -> GenerationGateway:
    timeout = httpx.Timeout(config.REQUEST_TIMEOUT, connect=config.CONNECT_TIMEOUT)
    return GenerationGateway(httpx.AsyncClient(timeout=timeout), build_registry())
