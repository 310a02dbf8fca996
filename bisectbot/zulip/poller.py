"""Event queue subscription state machine.

Zulip garbage-collects idle event queues and then answers polls with
``BAD_EVENT_QUEUE_ID``. The poller hides that from its consumers::

    Unsubscribed --register--> Subscribed(queue, cursor)
    Subscribed   --poll ok---> Subscribed(queue, max item id)
    Subscribed   --bad queue-> Expired(queue)
    Expired      --register--> Subscribed(new queue, -1)

Only :meth:`ZulipEventPoller.poll` touches the state, and only one poll is in
flight at a time, so the cursor needs no locking.
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

from bisectbot.logging import get_logger, log_info
from bisectbot.observability import DispatchEventLogger

from .errors import ZulipAPIError

if typ.TYPE_CHECKING:
    from .client import ChatEventSource
    from .models import PollItem

logger = get_logger(__name__)


@dc.dataclass(frozen=True, slots=True)
class Unsubscribed:
    """No queue has been registered yet."""


@dc.dataclass(frozen=True, slots=True)
class Subscribed:
    """A live queue and the id of the last item consumed from it."""

    queue_id: str
    last_event_id: int = -1


@dc.dataclass(frozen=True, slots=True)
class Expired:
    """The server dropped ``queue_id``; a new registration is due."""

    queue_id: str


type SubscriptionState = Unsubscribed | Subscribed | Expired


class ZulipEventPoller:
    """Long-poll a Zulip event queue, resubscribing transparently."""

    def __init__(
        self,
        source: ChatEventSource,
        *,
        event_logger: DispatchEventLogger | None = None,
    ) -> None:
        """Start in the ``Unsubscribed`` state."""
        self._source = source
        self._event_logger = event_logger or DispatchEventLogger()
        self._state: SubscriptionState = Unsubscribed()

    @property
    def state(self) -> SubscriptionState:
        """Return the current subscription state."""
        return self._state

    async def _subscribe(self) -> Subscribed:
        registered = await self._source.register_queue()
        log_info(logger, "Registered chat event queue %s", registered.queue_id)
        return Subscribed(
            queue_id=registered.queue_id, last_event_id=registered.last_event_id
        )

    async def poll(self) -> list[PollItem]:
        """Return the next batch of items, blocking until the server answers.

        An expired queue is replaced and polled again within the same call,
        so an empty list only ever means the server returned no items.

        Raises
        ------
        ZulipAPIError
            For any failure other than an expired queue.
        ZulipResponseShapeError
            If a response cannot be decoded.

        """
        while True:
            match self._state:
                case Unsubscribed():
                    self._state = await self._subscribe()
                case Expired(queue_id=expired):
                    self._state = await self._subscribe()
                    self._event_logger.log_queue_resubscribed(
                        expired_queue_id=expired,
                        queue_id=self._state.queue_id,
                    )
                case Subscribed(queue_id=queue_id, last_event_id=last_event_id):
                    try:
                        items = await self._source.get_events(queue_id, last_event_id)
                    except ZulipAPIError as exc:
                        if not exc.is_bad_queue:
                            raise
                        self._state = Expired(queue_id=queue_id)
                        continue
                    if items:
                        self._state = Subscribed(
                            queue_id=queue_id,
                            last_event_id=max(item.id for item in items),
                        )
                    return items
                case _:
                    typ.assert_never(self._state)


__all__ = [
    "Expired",
    "Subscribed",
    "SubscriptionState",
    "Unsubscribed",
    "ZulipEventPoller",
]
