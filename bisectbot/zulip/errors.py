"""Zulip client errors."""

from __future__ import annotations

BAD_EVENT_QUEUE_ID = "BAD_EVENT_QUEUE_ID"


class ZulipAPIError(RuntimeError):
    """Raised when Zulip rejects a call or the call cannot be made.

    Attributes
    ----------
    code
        Zulip's machine-readable error code (``BAD_EVENT_QUEUE_ID`` and so
        on), when the server supplied one.
    status_code
        HTTP status code, when a response was received.

    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        """Initialise with a message, Zulip error code and HTTP status."""
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    @property
    def is_bad_queue(self) -> bool:
        """Return whether the event queue has been garbage collected."""
        return self.code == BAD_EVENT_QUEUE_ID

    @classmethod
    def rejected(
        cls, endpoint: str, status_code: int, code: str | None, msg: str
    ) -> ZulipAPIError:
        """Return an error for an ``"result": "error"`` response."""
        label = code or "error"
        return cls(
            f"Zulip {endpoint} rejected ({status_code} {label}): {msg}",
            code=code,
            status_code=status_code,
        )

    @classmethod
    def transport(cls, endpoint: str, exc: Exception) -> ZulipAPIError:
        """Return an error for a request that never produced a response."""
        return cls(f"Zulip {endpoint} failed: {exc}")


class ZulipResponseShapeError(RuntimeError):
    """Raised when a Zulip response does not have the expected fields."""

    @classmethod
    def invalid(cls, endpoint: str, detail: object) -> ZulipResponseShapeError:
        """Return an error for an undecodable response body."""
        return cls(f"Zulip {endpoint} response has unexpected shape: {detail}")
