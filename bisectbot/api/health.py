"""Liveness and readiness probes.

Usage
-----
Register the probes on the Falcon app::

    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(lifespan.chat_status))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadyResource"]


class HealthResource:
    """Liveness probe returning ``{"status": "ok"}``."""

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /health."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe reporting the chat feed state alongside readiness.

    The webhook path is ready as soon as the app is serving, so the probe
    always answers 200; ``chat`` is informational (``running``, ``stopped``
    or ``disabled``).
    """

    def __init__(self, chat_status: cabc.Callable[[], str] | None = None) -> None:
        """Configure the probe with an optional chat status callback."""
        self._chat_status = chat_status

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /ready."""
        chat = self._chat_status() if self._chat_status is not None else "disabled"
        resp.media = {"status": "ready", "chat": chat}
        resp.status = HTTPStatus.OK
