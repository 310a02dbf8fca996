"""GitHub REST client, webhook payload models and errors."""

from __future__ import annotations

from .client import CommitLookup, GitHubRestClient, GitObjectStore, IssueCommenter
from .errors import GitHubAPIError, GitHubResponseShapeError
from .models import (
    CheckRunEvent,
    IssueCommentEvent,
    TreeEntry,
    WebhookEventKind,
)

__all__ = [
    "CheckRunEvent",
    "CommitLookup",
    "GitHubAPIError",
    "GitHubResponseShapeError",
    "GitHubRestClient",
    "GitObjectStore",
    "IssueCommentEvent",
    "IssueCommenter",
    "TreeEntry",
    "WebhookEventKind",
]
