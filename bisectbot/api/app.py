"""Application factory for the bisectbot Falcon ASGI application.

Usage
-----
Create a probe-only app (no credentials)::

    app = create_app()

Create the full app::

    from bisectbot.api.app import AppDependencies, create_app

    deps = AppDependencies(dispatcher=dispatcher, webhook_context=context)
    app = create_app(deps)

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from bisectbot.api.errors import register_error_handlers
from bisectbot.api.health import HealthResource, ReadyResource
from bisectbot.api.lifespan import ServiceLifespan

if typ.TYPE_CHECKING:
    from bisectbot.dispatcher import Dispatcher
    from bisectbot.events import WebhookContext

__all__ = ["WEBHOOK_ROUTE", "AppDependencies", "create_app"]

WEBHOOK_ROUTE = "/webhooks/github"


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Collaborators for the webhook endpoint and the chat feed.

    Attributes
    ----------
    dispatcher
        Handles normalized events from both channels.
    webhook_context
        Allow-list and commit lookup for webhook normalization.
    lifespan
        Startup/shutdown hooks running the chat feed; a no-op lifespan is
        used when omitted.

    """

    dispatcher: Dispatcher
    webhook_context: WebhookContext
    lifespan: ServiceLifespan = dc.field(default_factory=ServiceLifespan)


def create_app(dependencies: AppDependencies | None = None) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    ``/health`` and ``/ready`` are always registered. The GitHub webhook
    route and the lifespan middleware are added only when ``dependencies``
    are given.

    Parameters
    ----------
    dependencies
        Optional application dependencies.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    if dependencies is None:
        app = falcon.asgi.App()
        app.add_route("/health", HealthResource())
        app.add_route("/ready", ReadyResource())
        register_error_handlers(app)
        return app

    from bisectbot.api.webhooks import GitHubWebhookResource

    lifespan = dependencies.lifespan
    app = falcon.asgi.App(middleware=[lifespan])
    app.add_route("/health", HealthResource())
    app.add_route("/ready", ReadyResource(lifespan.chat_status))
    app.add_route(
        WEBHOOK_ROUTE,
        GitHubWebhookResource(dependencies.webhook_context, dependencies.dispatcher),
    )
    register_error_handlers(app)
    return app
