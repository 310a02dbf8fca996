"""The chat feed loop: poll, normalize, dispatch, repeat."""

from __future__ import annotations

import asyncio
import typing as typ

from bisectbot.events import normalize_chat_event
from bisectbot.logging import get_logger, log_exception, log_info
from bisectbot.observability import DispatchEventLogger
from bisectbot.zulip.errors import ZulipAPIError, ZulipResponseShapeError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from bisectbot.dispatcher import Dispatcher
    from bisectbot.zulip.models import PollItem
    from bisectbot.zulip.poller import ZulipEventPoller

logger = get_logger(__name__)


class ChatFeed:
    """Run the single long-poll loop feeding chat messages to the dispatcher.

    A failed poll is logged and retried after ``poll_interval_s``; a failure
    while dispatching one message is logged and does not stop the loop.
    """

    def __init__(
        self,
        poller: ZulipEventPoller,
        dispatcher: Dispatcher,
        *,
        own_email: str | None = None,
        poll_interval_s: float = 1.0,
        sleep: cabc.Callable[[float], cabc.Awaitable[None]] = asyncio.sleep,
        event_logger: DispatchEventLogger | None = None,
    ) -> None:
        """Configure the feed."""
        self._poller = poller
        self._dispatcher = dispatcher
        self._own_email = own_email
        self._poll_interval_s = poll_interval_s
        self._sleep = sleep
        self._event_logger = event_logger or DispatchEventLogger()

    async def _dispatch(self, item: PollItem) -> None:
        try:
            event = normalize_chat_event(item, own_email=self._own_email)
            if event is not None:
                await self._dispatcher.handle(event)
        except Exception as exc:  # noqa: BLE001 - one message must not stop the feed
            log_exception(logger, f"Dispatching chat item {item.id} failed", exc)

    async def run_once(self) -> int:
        """Poll once and dispatch every returned item; return the item count."""
        try:
            items = await self._poller.poll()
        except (ZulipAPIError, ZulipResponseShapeError) as exc:
            self._event_logger.log_poll_failed(error=exc)
            return 0
        for item in items:
            await self._dispatch(item)
        return len(items)

    async def run(self) -> None:
        """Poll until cancelled."""
        log_info(logger, "Chat feed started")
        while True:
            await self.run_once()
            await self._sleep(self._poll_interval_s)


__all__ = ["ChatFeed"]
