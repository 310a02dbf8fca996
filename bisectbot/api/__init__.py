"""bisectbot HTTP API layer.

The Falcon ASGI application receives GitHub webhook deliveries, exposes
health probes and hosts the chat feed through its lifespan hooks.

Public API
----------
create_app
    Application factory; probe-only without dependencies, full webhook
    service with them.
"""

from bisectbot.api.app import create_app

__all__ = ["create_app"]
