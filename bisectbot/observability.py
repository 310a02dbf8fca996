"""Structured lifecycle events for job dispatch and reply routing.

Each method emits one ``[event.type] key=value ...`` line via femtologging so
log aggregators can follow a request from the inbound event to the reply.

Usage
-----
>>> event_logger = DispatchEventLogger()
>>> event_logger.log_job_pushed(
...     correlation_id="1234", branch="job-1234", commit_sha="abc123"
... )

"""

from __future__ import annotations

import enum
import typing as typ

from bisectbot.logging import get_logger, log_error, log_info, log_warning

if typ.TYPE_CHECKING:
    from bisectbot.destination import Destination

logger = get_logger(__name__)


class DispatchEventType(enum.StrEnum):
    """Structured log event types."""

    EVENT_DISCARDED = "dispatch.event.discarded"
    COMMAND_REJECTED = "dispatch.command.rejected"
    JOB_STARTED = "dispatch.job.started"
    JOB_PUSHED = "dispatch.job.pushed"
    JOB_FAILED = "dispatch.job.failed"
    REPLY_SENT = "dispatch.reply.sent"
    DESTINATION_UNDECODABLE = "dispatch.destination.undecodable"
    QUEUE_RESUBSCRIBED = "chat.queue.resubscribed"
    POLL_FAILED = "chat.poll.failed"


class DispatchEventLogger:
    """Emit dispatch lifecycle events."""

    def log_event_discarded(self, *, source: str, reason: str) -> None:
        """Log an inbound delivery that produced no event."""
        log_info(
            logger,
            "[%s] source=%s reason=%s",
            DispatchEventType.EVENT_DISCARDED,
            source,
            reason,
        )

    def log_command_rejected(self, *, correlation_id: str, error: Exception) -> None:
        """Log a malformed command that is dropped without a reply."""
        log_warning(
            logger,
            "[%s] correlation_id=%s error_type=%s error=%s",
            DispatchEventType.COMMAND_REJECTED,
            correlation_id,
            type(error).__name__,
            error,
        )

    def log_job_started(self, *, correlation_id: str, destination: Destination) -> None:
        """Log the start of a job build for ``correlation_id``."""
        log_info(
            logger,
            "[%s] correlation_id=%s destination=%r",
            DispatchEventType.JOB_STARTED,
            correlation_id,
            destination,
        )

    def log_job_pushed(
        self, *, correlation_id: str, branch: str, commit_sha: str
    ) -> None:
        """Log a job branch that now points at its commit."""
        log_info(
            logger,
            "[%s] correlation_id=%s branch=%s commit_sha=%s",
            DispatchEventType.JOB_PUSHED,
            correlation_id,
            branch,
            commit_sha,
        )

    def log_job_failed(self, *, correlation_id: str, error: Exception) -> None:
        """Log a job build aborted by a failed remote call."""
        log_error(
            logger,
            "[%s] correlation_id=%s error_type=%s error=%s",
            DispatchEventType.JOB_FAILED,
            correlation_id,
            type(error).__name__,
            error,
            exc_info=error,
        )

    def log_reply_sent(self, *, correlation_id: str, destination: Destination) -> None:
        """Log a delivered reply."""
        log_info(
            logger,
            "[%s] correlation_id=%s destination=%r",
            DispatchEventType.REPLY_SENT,
            correlation_id,
            destination,
        )

    def log_destination_undecodable(self, *, commit_sha: str, error: Exception) -> None:
        """Log a completed job whose commit message has no usable destination."""
        log_error(
            logger,
            "[%s] commit_sha=%s error_type=%s error=%s",
            DispatchEventType.DESTINATION_UNDECODABLE,
            commit_sha,
            type(error).__name__,
            error,
        )

    def log_queue_resubscribed(self, *, expired_queue_id: str, queue_id: str) -> None:
        """Log the replacement of an expired chat event queue."""
        log_info(
            logger,
            "[%s] expired_queue_id=%s queue_id=%s",
            DispatchEventType.QUEUE_RESUBSCRIBED,
            expired_queue_id,
            queue_id,
        )

    def log_poll_failed(self, *, error: Exception) -> None:
        """Log a failed chat poll that will be retried."""
        log_warning(
            logger,
            "[%s] error_type=%s error=%s",
            DispatchEventType.POLL_FAILED,
            type(error).__name__,
            error,
        )


__all__ = ["DispatchEventLogger", "DispatchEventType"]
