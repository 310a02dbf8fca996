"""Zulip REST client for the event queue and message sending."""

from __future__ import annotations

import typing as typ

import httpx
import msgspec

from bisectbot.logging import get_logger, log_debug

from .errors import ZulipAPIError, ZulipResponseShapeError
from .models import (
    EventsResponse,
    MessageType,
    PollItem,
    RegisterResponse,
    ResultEnvelope,
)

if typ.TYPE_CHECKING:
    from bisectbot.config import ZulipConfig

logger = get_logger(__name__)

# Zulip holds /events open for up to about a minute before answering with a
# heartbeat, so reads must outlast that.
_CONNECT_TIMEOUT_S = 10.0
_READ_TIMEOUT_S = 120.0
_EVENT_TYPES = '["message"]'


class ChatEventSource(typ.Protocol):
    """Event queue operations consumed by the poller."""

    async def register_queue(self) -> RegisterResponse:
        """Register a new message event queue."""
        ...

    async def get_events(self, queue_id: str, last_event_id: int) -> list[PollItem]:
        """Block until items newer than ``last_event_id`` are available."""
        ...


class ChatMessenger(typ.Protocol):
    """Message sending operations used for replies."""

    async def send_stream_message(
        self, stream_id: int, topic: str, content: str
    ) -> None:
        """Post ``content`` to ``topic`` in stream ``stream_id``."""
        ...

    async def send_private_message(self, user_id: int, content: str) -> None:
        """Send ``content`` privately to ``user_id``."""
        ...


class ZulipClient:
    """httpx-backed chat client implementing both protocols above."""

    def __init__(
        self,
        config: ZulipConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client; an owned ``AsyncClient`` is built if none given."""
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=config.api_url,
            auth=httpx.BasicAuth(config.email, config.api_key),
            timeout=httpx.Timeout(_CONNECT_TIMEOUT_S, read=_READ_TIMEOUT_S),
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def register_queue(self) -> RegisterResponse:
        """Register a queue for message events with raw Markdown content."""
        return await self._call(
            "POST",
            "/register",
            RegisterResponse,
            data={"event_types": _EVENT_TYPES, "apply_markdown": "false"},
        )

    async def get_events(self, queue_id: str, last_event_id: int) -> list[PollItem]:
        """Long-poll ``queue_id`` for items after ``last_event_id``.

        Raises
        ------
        ZulipAPIError
            With ``is_bad_queue`` set when the queue has expired.

        """
        response = await self._call(
            "GET",
            "/events",
            EventsResponse,
            params={
                "queue_id": queue_id,
                "last_event_id": str(last_event_id),
                "dont_block": "false",
            },
        )
        return response.events

    async def send_stream_message(
        self, stream_id: int, topic: str, content: str
    ) -> None:
        """Post ``content`` to ``topic`` in stream ``stream_id``."""
        await self._call(
            "POST",
            "/messages",
            ResultEnvelope,
            data={
                "type": MessageType.STREAM,
                "to": str(stream_id),
                "topic": topic,
                "content": content,
            },
        )

    async def send_private_message(self, user_id: int, content: str) -> None:
        """Send ``content`` privately to ``user_id``."""
        await self._call(
            "POST",
            "/messages",
            ResultEnvelope,
            data={
                "type": MessageType.PRIVATE,
                "to": f"[{user_id}]",
                "content": content,
            },
        )

    async def _call[T](
        self,
        method: str,
        endpoint: str,
        response_type: type[T],
        *,
        params: dict[str, str] | None = None,
        data: dict[str, str] | None = None,
    ) -> T:
        """Issue one request, raise on a Zulip error result, decode the body."""
        log_debug(logger, "Zulip %s %s", method, endpoint)
        try:
            response = await self._client.request(
                method, endpoint, params=params, data=data
            )
        except httpx.HTTPError as exc:
            raise ZulipAPIError.transport(endpoint, exc) from exc

        try:
            envelope = msgspec.json.decode(response.content, type=ResultEnvelope)
        except (msgspec.ValidationError, msgspec.DecodeError) as exc:
            raise ZulipResponseShapeError.invalid(endpoint, exc) from exc
        if response.is_error or envelope.result != "success":
            raise ZulipAPIError.rejected(
                endpoint, response.status_code, envelope.code, envelope.msg
            )

        try:
            return msgspec.json.decode(response.content, type=response_type)
        except (msgspec.ValidationError, msgspec.DecodeError) as exc:
            raise ZulipResponseShapeError.invalid(endpoint, exc) from exc


__all__ = ["ChatEventSource", "ChatMessenger", "ZulipClient"]
