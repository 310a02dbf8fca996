"""Typed Zulip API responses and event queue items."""

from __future__ import annotations

import enum

import msgspec


class PollItemKind(enum.StrEnum):
    """Event queue item types the bot distinguishes."""

    MESSAGE = "message"


class MessageType(enum.StrEnum):
    """Zulip message addressing modes."""

    STREAM = "stream"
    PRIVATE = "private"


class ZulipMessage(msgspec.Struct, frozen=True):
    """A chat message as delivered in a ``message`` event.

    ``stream_id`` is only present for stream messages; ``subject`` holds the
    topic and is empty for private messages.
    """

    id: int
    content: str
    sender_id: int
    type: str
    sender_email: str = ""
    sender_full_name: str = ""
    stream_id: int | None = None
    subject: str = ""


class PollItem(msgspec.Struct, frozen=True):
    """One event queue item.

    Every item carries an ``id`` that advances the poll cursor; only
    ``message`` items carry a ``message``.
    """

    id: int
    type: str
    message: ZulipMessage | None = None


class RegisterResponse(msgspec.Struct, frozen=True):
    """Response of ``POST /register``."""

    queue_id: str
    last_event_id: int = -1


class EventsResponse(msgspec.Struct, frozen=True):
    """Successful response of ``GET /events``."""

    events: list[PollItem] = msgspec.field(default_factory=list)


class ResultEnvelope(msgspec.Struct, frozen=True):
    """Status fields present on every Zulip response."""

    result: str
    msg: str = ""
    code: str | None = None


__all__ = [
    "EventsResponse",
    "MessageType",
    "PollItem",
    "PollItemKind",
    "RegisterResponse",
    "ResultEnvelope",
    "ZulipMessage",
]
