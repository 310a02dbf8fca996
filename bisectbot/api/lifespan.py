"""ASGI lifespan middleware running the chat feed beside the webhook app.

Falcon calls ``process_startup`` and ``process_shutdown`` once per server
process. The chat feed runs as one asyncio task for the process lifetime and
owned HTTP clients are closed after it stops.
"""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

from bisectbot.logging import get_logger, log_exception, log_info

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from bisectbot.feed import ChatFeed

__all__ = ["ServiceLifespan"]

logger = get_logger(__name__)


class ServiceLifespan:
    """Start the chat feed on startup; stop it and close clients on shutdown."""

    def __init__(
        self,
        feed: ChatFeed | None = None,
        closers: cabc.Sequence[cabc.Callable[[], cabc.Awaitable[None]]] = (),
    ) -> None:
        """Configure the lifespan hooks.

        Parameters
        ----------
        feed
            Chat feed to run, or ``None`` when chat is disabled.
        closers
            Coroutines releasing owned resources, awaited in order at
            shutdown.

        """
        self._feed = feed
        self._closers = tuple(closers)
        self._task: asyncio.Task[None] | None = None

    def chat_status(self) -> str:
        """Return ``disabled``, ``running`` or ``stopped``."""
        if self._feed is None:
            return "disabled"
        if self._task is not None and not self._task.done():
            return "running"
        return "stopped"

    async def process_startup(self, _scope: object, _event: object) -> None:
        """Start the chat feed task."""
        if self._feed is None:
            log_info(logger, "Chat feed disabled; serving webhooks only")
            return
        self._task = asyncio.create_task(self._feed.run(), name="chat-feed")
        self._task.add_done_callback(_report_crash)

    async def process_shutdown(self, _scope: object, _event: object) -> None:
        """Cancel the chat feed task and close owned clients.

        Clients are closed even when the feed task had already failed; that
        failure is raised afterwards.
        """
        try:
            if self._task is not None:
                task, self._task = self._task, None
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        finally:
            for close in self._closers:
                await close()


def _report_crash(task: asyncio.Task[None]) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        log_exception(logger, "Chat feed stopped unexpectedly", exc)
