"""Normalize webhook deliveries and chat poll items into inbound events.

Both inbound channels reduce to the same ``InboundEvent``: where to reply,
what ties the request to its eventual result, and the text to parse. A new
request carries ``raw_text``; a completion event carries ``result_url``
instead, and its destination is recovered from the job commit message.
"""

from __future__ import annotations

import dataclasses as dc
import enum
import typing as typ

import msgspec

from bisectbot.destination import (
    ChannelMessage,
    DecodeError,
    DirectMessage,
    IssueComment,
    decode,
)
from bisectbot.github.models import (
    CheckRunEvent,
    IssueCommentEvent,
    RepositoryOnly,
    WebhookEventKind,
)
from bisectbot.observability import DispatchEventLogger
from bisectbot.zulip.models import PollItemKind

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from bisectbot.destination import Destination
    from bisectbot.github.client import CommitLookup
    from bisectbot.zulip.models import PollItem

_CREATED = "created"
_COMPLETED = "completed"


class EventSource(enum.StrEnum):
    """Where an inbound event came from."""

    GITHUB_COMMENT = "github_comment"
    GITHUB_CHECK_RUN = "github_check_run"
    CHAT_MESSAGE = "chat_message"


@dc.dataclass(frozen=True, slots=True)
class InboundEvent:
    """A normalized request or completion event.

    Attributes
    ----------
    source
        Channel and kind of the delivery.
    destination
        Where any reply to this event goes.
    correlation_id
        Comment id, check run id or ``zulip<message id>``.
    raw_text
        Text to parse for a command; ``None`` for completion events.
    result_url
        Link to the finished check run; only set for completion events.

    """

    source: EventSource
    destination: Destination
    correlation_id: str
    raw_text: str | None = None
    result_url: str | None = None

    @property
    def is_completion(self) -> bool:
        """Return whether this event reports a finished job."""
        return self.raw_text is None


@dc.dataclass(frozen=True, slots=True)
class WebhookContext:
    """Collaborators needed to normalize GitHub webhook deliveries."""

    allowed_repositories: cabc.Set[str]
    commits: CommitLookup
    event_logger: DispatchEventLogger = dc.field(default_factory=DispatchEventLogger)


def _allowed_repository(
    payload: object, context: WebhookContext, source: str
) -> str | None:
    try:
        repo = msgspec.convert(payload, type=RepositoryOnly).repository.full_name
    except msgspec.ValidationError:
        context.event_logger.log_event_discarded(
            source=source, reason="missing repository"
        )
        return None
    if repo not in context.allowed_repositories:
        context.event_logger.log_event_discarded(
            source=source, reason=f"repository {repo} not allowed"
        )
        return None
    return repo


def _normalize_comment(payload: object, context: WebhookContext) -> InboundEvent | None:
    source = WebhookEventKind.ISSUE_COMMENT
    if _allowed_repository(payload, context, source) is None:
        return None
    try:
        event = msgspec.convert(payload, type=IssueCommentEvent)
    except msgspec.ValidationError as exc:
        context.event_logger.log_event_discarded(source=source, reason=str(exc))
        return None
    if event.action != _CREATED:
        context.event_logger.log_event_discarded(
            source=source, reason=f"action {event.action}"
        )
        return None
    return InboundEvent(
        source=EventSource.GITHUB_COMMENT,
        destination=IssueComment(
            repo=event.repository.full_name, issue_number=event.issue.number
        ),
        correlation_id=str(event.comment.id),
        raw_text=event.comment.body,
    )


async def _normalize_check_run(
    payload: object, context: WebhookContext
) -> InboundEvent | None:
    source = WebhookEventKind.CHECK_RUN
    repo = _allowed_repository(payload, context, source)
    if repo is None:
        return None
    try:
        event = msgspec.convert(payload, type=CheckRunEvent)
    except msgspec.ValidationError as exc:
        context.event_logger.log_event_discarded(source=source, reason=str(exc))
        return None
    if event.action != _COMPLETED:
        context.event_logger.log_event_discarded(
            source=source, reason=f"action {event.action}"
        )
        return None

    head_sha = event.check_run.head_sha
    message = await context.commits.get_commit_message(repo, head_sha)
    try:
        destination = decode(message)
    except DecodeError as exc:
        context.event_logger.log_destination_undecodable(
            commit_sha=head_sha, error=exc
        )
        raise
    return InboundEvent(
        source=EventSource.GITHUB_CHECK_RUN,
        destination=destination,
        correlation_id=str(event.check_run.id),
        result_url=event.check_run.html_url,
    )


async def normalize_github_event(
    event_kind: str, payload: object, context: WebhookContext
) -> InboundEvent | None:
    """Normalize one webhook delivery.

    Parameters
    ----------
    event_kind
        Value of the ``X-GitHub-Event`` header.
    payload
        Parsed JSON body of the delivery.
    context
        Allow-list, commit lookup and event logger.

    Returns
    -------
    InboundEvent | None
        The normalized event, or ``None`` when the delivery is discarded.

    Raises
    ------
    DecodeError
        If a completed check run's commit carries no usable destination.

    """
    match event_kind:
        case WebhookEventKind.ISSUE_COMMENT:
            return _normalize_comment(payload, context)
        case WebhookEventKind.CHECK_RUN:
            return await _normalize_check_run(payload, context)
        case _:
            context.event_logger.log_event_discarded(
                source=event_kind or "unknown", reason="unsupported event kind"
            )
            return None


def normalize_chat_event(
    item: PollItem, *, own_email: str | None = None
) -> InboundEvent | None:
    """Normalize one chat poll item.

    Items other than messages (heartbeats and the like) only advance the poll
    cursor and yield ``None``, as do messages sent by ``own_email``.
    """
    if item.type != PollItemKind.MESSAGE or item.message is None:
        return None
    message = item.message
    if own_email is not None and message.sender_email == own_email:
        return None

    destination: Destination
    if message.stream_id is not None:
        destination = ChannelMessage(
            channel_id=message.stream_id, topic=message.subject
        )
    else:
        destination = DirectMessage(user_id=message.sender_id)
    return InboundEvent(
        source=EventSource.CHAT_MESSAGE,
        destination=destination,
        correlation_id=f"zulip{message.id}",
        raw_text=message.content,
    )


__all__ = [
    "EventSource",
    "InboundEvent",
    "WebhookContext",
    "normalize_chat_event",
    "normalize_github_event",
]
