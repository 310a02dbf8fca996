"""GitHub webhook resource.

``POST /webhooks/github`` receives issue comment and check run deliveries.
The ``X-GitHub-Event`` header selects how the body is read; deliveries from
repositories outside the allow-list are acknowledged and ignored.
"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

from bisectbot.events import normalize_github_event
from bisectbot.github.models import WebhookEventKind

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from bisectbot.dispatcher import Dispatcher
    from bisectbot.events import WebhookContext

__all__ = ["GitHubWebhookResource"]

_EVENT_HEADER = "X-GitHub-Event"


class GitHubWebhookResource:
    """Normalize one webhook delivery and dispatch the resulting event."""

    def __init__(self, context: WebhookContext, dispatcher: Dispatcher) -> None:
        """Configure the resource.

        Parameters
        ----------
        context
            Allow-list and commit lookup used for normalization.
        dispatcher
            Handles the normalized event.

        """
        self._context = context
        self._dispatcher = dispatcher

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /webhooks/github.

        Parameters
        ----------
        req
            Falcon request carrying the JSON delivery.
        resp
            Falcon response describing how the delivery was handled.

        """
        event_kind = req.get_header(_EVENT_HEADER, default="")
        if event_kind == WebhookEventKind.PING:
            resp.media = {"status": "pong"}
            resp.status = HTTPStatus.OK
            return

        payload = await req.get_media()
        event = await normalize_github_event(event_kind, payload, self._context)
        if event is None:
            resp.media = {"status": "ignored"}
            resp.status = HTTPStatus.OK
            return

        outcome = await self._dispatcher.handle(event)
        resp.media = {"status": "processed", "outcome": str(outcome)}
        resp.status = HTTPStatus.OK
