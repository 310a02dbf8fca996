"""Zulip chat client, event models and the event queue poller."""

from __future__ import annotations

from .client import ChatEventSource, ChatMessenger, ZulipClient
from .errors import ZulipAPIError, ZulipResponseShapeError
from .models import PollItem, PollItemKind, ZulipMessage
from .poller import Expired, Subscribed, Unsubscribed, ZulipEventPoller

__all__ = [
    "ChatEventSource",
    "ChatMessenger",
    "Expired",
    "PollItem",
    "PollItemKind",
    "Subscribed",
    "Unsubscribed",
    "ZulipAPIError",
    "ZulipClient",
    "ZulipEventPoller",
    "ZulipMessage",
    "ZulipResponseShapeError",
]
