"""Falcon error handlers mapping processing failures to HTTP responses.

GitHub records the status of every webhook delivery, so failures that make a
reply impossible are surfaced there instead of being hidden behind a 200.

Usage
-----
Register the handlers on the Falcon app::

    from bisectbot.api.errors import register_error_handlers

    register_error_handlers(app)

"""

from __future__ import annotations

import typing as typ

import falcon

from bisectbot.destination import DecodeError
from bisectbot.github.errors import GitHubAPIError, GitHubResponseShapeError
from bisectbot.jobs import TreeError
from bisectbot.replies import ChatDisabledError
from bisectbot.zulip.errors import ZulipAPIError, ZulipResponseShapeError

if typ.TYPE_CHECKING:
    import falcon.asgi
    from falcon.asgi import Request, Response

__all__ = [
    "handle_job_failed",
    "handle_undecodable_destination",
    "handle_upstream_error",
    "register_error_handlers",
]


async def handle_undecodable_destination(
    _req: Request,
    resp: Response,
    ex: DecodeError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``DecodeError`` to HTTP 422: the result cannot be routed anywhere."""
    resp.status = falcon.HTTP_422
    resp.media = {
        "title": "Reply destination not recoverable",
        "description": str(ex),
    }


async def handle_job_failed(
    _req: Request,
    resp: Response,
    ex: TreeError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``TreeError`` to HTTP 502 naming the failed step."""
    resp.status = falcon.HTTP_502
    resp.media = {
        "title": "Bisection job could not be published",
        "description": str(ex),
        "step": ex.step,
    }


async def handle_upstream_error(
    _req: Request,
    resp: Response,
    ex: Exception,
    _params: dict[str, typ.Any],
) -> None:
    """Map failed GitHub or Zulip calls to HTTP 502."""
    resp.status = falcon.HTTP_502
    resp.media = {
        "title": "Upstream call failed",
        "description": str(ex),
    }


def register_error_handlers(app: falcon.asgi.App) -> None:
    """Install every handler defined in this module on ``app``."""
    app.add_error_handler(DecodeError, handle_undecodable_destination)
    app.add_error_handler(TreeError, handle_job_failed)
    app.add_error_handler(
        (
            GitHubAPIError,
            GitHubResponseShapeError,
            ZulipAPIError,
            ZulipResponseShapeError,
            ChatDisabledError,
        ),
        handle_upstream_error,
    )
