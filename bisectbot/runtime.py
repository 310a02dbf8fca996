"""bisectbot runtime entrypoint.

``bisectbot.runtime:create_app`` is the Granian ASGI factory. It builds the
full service from ``BISECTBOT_*`` environment variables; missing credentials
are fatal at startup.

Configuration is driven by environment variables:

- ``BISECTBOT_HOST``: Bind address (default ``0.0.0.0``)
- ``BISECTBOT_PORT``: Listen port (default ``8080``)
- ``BISECTBOT_LOG_LEVEL``: Log level (default ``INFO``)
- every variable read by :meth:`bisectbot.config.BotConfig.from_env`

Run the service directly with ``python -m bisectbot.runtime``.
"""

from __future__ import annotations

import os
import typing as typ

from bisectbot.config import BotConfig, ConfigError
from bisectbot.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)

_MIN_PORT = 1
_MAX_PORT = 65535


def _parse_port(port_str: str) -> int:
    """Parse and validate a port number string.

    Raises
    ------
    SystemExit
        If ``port_str`` is not an integer in range 1-65535.

    """
    try:
        port = int(port_str)
        if not (_MIN_PORT <= port <= _MAX_PORT):
            msg = f"port {port} outside valid range {_MIN_PORT}-{_MAX_PORT}"
            raise ValueError(msg)  # noqa: TRY301 - unify conversion and range errors
    except ValueError as exc:
        log_error(
            logger,
            "Invalid BISECTBOT_PORT value: %r (must be %d-%d): %s",
            port_str,
            _MIN_PORT,
            _MAX_PORT,
            exc,
        )
        raise SystemExit(1) from exc
    return port


def create_app() -> falcon.asgi.App:
    """Build the configured Falcon ASGI application.

    Raises
    ------
    SystemExit
        If the configuration is missing or invalid.

    """
    from bisectbot.api.app import create_app as _create_api_app
    from bisectbot.api.factory import build_dependencies

    try:
        config = BotConfig.from_env()
    except ConfigError as exc:
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc

    log_info(
        logger,
        "Serving %d allowed repositories; jobs go to %s; chat %s",
        len(config.allowed_repositories),
        config.github.jobs_repository,
        "enabled" if config.zulip is not None else "disabled",
    )
    return _create_api_app(build_dependencies(config))


def main() -> None:
    """Start the bisectbot server using Granian."""
    from granian import Granian
    from granian.constants import Interfaces

    host = os.environ.get("BISECTBOT_HOST", "0.0.0.0")  # noqa: S104 - bind all interfaces for container
    port = _parse_port(os.environ.get("BISECTBOT_PORT", "8080"))
    log_level_str = os.environ.get("BISECTBOT_LOG_LEVEL", "INFO")

    normalized_level, invalid_level = configure_logging(log_level_str)
    if invalid_level:
        log_warning(
            logger,
            "Invalid BISECTBOT_LOG_LEVEL %r, falling back to %s",
            log_level_str,
            normalized_level,
        )

    log_info(
        logger,
        "Starting bisectbot on %s:%d (log_level=%s)",
        host,
        port,
        normalized_level,
    )

    server = Granian(
        "bisectbot.runtime:create_app",
        address=host,
        port=port,
        interface=Interfaces.ASGI,
        factory=True,
    )
    server.serve()


if __name__ == "__main__":
    main()
