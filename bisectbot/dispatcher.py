"""Route inbound events to job publishing and replies.

New requests are parsed, published as a job branch and acknowledged.
Completion events already carry their decoded destination and only need the
result link posted back. Malformed commands are dropped without a reply.
"""

from __future__ import annotations

import enum
import typing as typ

from bisectbot.commands import DEFAULT_PREFIX, ParseError, parse
from bisectbot.jobs import TreeError
from bisectbot.observability import DispatchEventLogger

if typ.TYPE_CHECKING:
    from bisectbot.events import InboundEvent
    from bisectbot.jobs import JobRef, JobTreeBuilder
    from bisectbot.replies import ReplySender


class DispatchOutcome(enum.StrEnum):
    """What handling an event amounted to."""

    IGNORED = "ignored"
    REJECTED = "rejected"
    JOB_STARTED = "job_started"
    RESULT_REPORTED = "result_reported"


def acknowledgement(job: JobRef, repository: str) -> str:
    """Return the reply confirming that ``job`` was published."""
    return (
        f"Started bisection job `{job.branch}` in {repository}. "
        "The result will be posted here once it finishes."
    )


def result_message(result_url: str | None) -> str:
    """Return the reply announcing a finished job."""
    return f"bisect result: {result_url or '(no link available)'}"


class Dispatcher:
    """Handle normalized inbound events."""

    def __init__(
        self,
        *,
        builder: JobTreeBuilder,
        replies: ReplySender,
        command_prefix: str = DEFAULT_PREFIX,
        event_logger: DispatchEventLogger | None = None,
    ) -> None:
        """Configure the dispatcher with its collaborators."""
        self._builder = builder
        self._replies = replies
        self._command_prefix = command_prefix
        self._event_logger = event_logger or DispatchEventLogger()

    async def handle(self, event: InboundEvent) -> DispatchOutcome:
        """Handle one event.

        Raises
        ------
        TreeError
            If publishing the job failed; no reply is sent.
        GitHubAPIError, ZulipAPIError
            If delivering a reply failed.

        """
        if event.raw_text is None:
            return await self._report_result(event)
        return await self._start_job(event, event.raw_text)

    async def _start_job(self, event: InboundEvent, text: str) -> DispatchOutcome:
        try:
            command = parse(text, prefix=self._command_prefix)
        except ParseError as exc:
            self._event_logger.log_command_rejected(
                correlation_id=event.correlation_id, error=exc
            )
            return DispatchOutcome.REJECTED
        if command is None:
            return DispatchOutcome.IGNORED

        self._event_logger.log_job_started(
            correlation_id=event.correlation_id, destination=event.destination
        )
        try:
            job = await self._builder.build_and_push(
                event.destination, event.correlation_id, command
            )
        except TreeError as exc:
            self._event_logger.log_job_failed(
                correlation_id=event.correlation_id, error=exc
            )
            raise
        self._event_logger.log_job_pushed(
            correlation_id=event.correlation_id,
            branch=job.branch,
            commit_sha=job.commit_sha,
        )

        await self._replies.send(
            event.destination, acknowledgement(job, self._builder.repository)
        )
        self._event_logger.log_reply_sent(
            correlation_id=event.correlation_id, destination=event.destination
        )
        return DispatchOutcome.JOB_STARTED

    async def _report_result(self, event: InboundEvent) -> DispatchOutcome:
        await self._replies.send(event.destination, result_message(event.result_url))
        self._event_logger.log_reply_sent(
            correlation_id=event.correlation_id, destination=event.destination
        )
        return DispatchOutcome.RESULT_REPORTED


__all__ = ["DispatchOutcome", "Dispatcher", "acknowledgement", "result_message"]
