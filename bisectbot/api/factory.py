"""Wire clients, builder, dispatcher and chat feed from a ``BotConfig``.

Usage
-----
Build the full dependency graph for the API layer::

    from bisectbot.api.factory import build_dependencies
    from bisectbot.config import BotConfig

    deps = build_dependencies(BotConfig.from_env())

"""

from __future__ import annotations

import typing as typ

from bisectbot.api.app import AppDependencies
from bisectbot.api.lifespan import ServiceLifespan
from bisectbot.dispatcher import Dispatcher
from bisectbot.events import WebhookContext
from bisectbot.github import GitHubRestClient
from bisectbot.jobs import JobTreeBuilder
from bisectbot.observability import DispatchEventLogger
from bisectbot.replies import ReplySender

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from bisectbot.config import BotConfig
    from bisectbot.feed import ChatFeed
    from bisectbot.zulip import ZulipClient

__all__ = ["build_dependencies"]


def build_dependencies(config: BotConfig) -> AppDependencies:
    """Build every collaborator of the app from ``config``.

    The Zulip client and chat feed are only created when ``config.zulip`` is
    set; otherwise chat destinations cannot be replied to and only the
    webhook channel is served.

    Parameters
    ----------
    config
        Validated process configuration.

    Returns
    -------
    AppDependencies
        Dependencies ready to pass to :func:`bisectbot.api.app.create_app`.

    """
    event_logger = DispatchEventLogger()
    github = GitHubRestClient(config.github)
    closers: list[cabc.Callable[[], cabc.Awaitable[None]]] = [github.aclose]

    zulip: ZulipClient | None = None
    if config.zulip is not None:
        from bisectbot.zulip import ZulipClient

        zulip = ZulipClient(config.zulip)
        closers.append(zulip.aclose)

    dispatcher = Dispatcher(
        builder=JobTreeBuilder(github, repository=config.github.jobs_repository),
        replies=ReplySender(github, zulip),
        command_prefix=config.command_prefix,
        event_logger=event_logger,
    )

    feed: ChatFeed | None = None
    if zulip is not None and config.zulip is not None:
        from bisectbot.feed import ChatFeed
        from bisectbot.zulip import ZulipEventPoller

        feed = ChatFeed(
            ZulipEventPoller(zulip, event_logger=event_logger),
            dispatcher,
            own_email=config.zulip.email,
            poll_interval_s=config.zulip.poll_interval_s,
            event_logger=event_logger,
        )

    return AppDependencies(
        dispatcher=dispatcher,
        webhook_context=WebhookContext(
            allowed_repositories=config.allowed_repositories,
            commits=github,
            event_logger=event_logger,
        ),
        lifespan=ServiceLifespan(feed, closers),
    )
