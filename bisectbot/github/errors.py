"""GitHub REST client errors."""

from __future__ import annotations

_BODY_PREVIEW_LIMIT = 200


class GitHubAPIError(RuntimeError):
    """Raised when a GitHub call fails at the HTTP or transport level."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(
        cls, method: str, path: str, status_code: int, body: str = ""
    ) -> GitHubAPIError:
        """Return an error for a non-2xx response."""
        preview = body[:_BODY_PREVIEW_LIMIT]
        return cls(
            f"GitHub {method} {path} failed with HTTP {status_code}: {preview}",
            status_code=status_code,
        )

    @classmethod
    def transport(cls, method: str, path: str, exc: Exception) -> GitHubAPIError:
        """Return an error for a request that never produced a response."""
        return cls(f"GitHub {method} {path} failed: {exc}")


class GitHubResponseShapeError(RuntimeError):
    """Raised when a GitHub response does not have the expected fields."""

    @classmethod
    def invalid(cls, path: str, detail: object) -> GitHubResponseShapeError:
        """Return an error for an undecodable response body."""
        return cls(f"GitHub response from {path} has unexpected shape: {detail}")
