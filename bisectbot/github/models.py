"""Typed GitHub payloads: webhook deliveries and Git Data API responses.

Only the fields the bot reads are declared; msgspec ignores the rest and
raises ``ValidationError`` when a declared field is missing or mistyped.
"""

from __future__ import annotations

import enum
import typing as typ

import msgspec


class WebhookEventKind(enum.StrEnum):
    """Values of the ``X-GitHub-Event`` header the bot understands."""

    PING = "ping"
    ISSUE_COMMENT = "issue_comment"
    CHECK_RUN = "check_run"


class Repository(msgspec.Struct):
    """The ``repository`` object shared by every webhook payload."""

    full_name: str


class Sender(msgspec.Struct):
    """The account that triggered a webhook delivery."""

    login: str


class Issue(msgspec.Struct):
    """Issue (or pull request) a comment was left on."""

    number: typ.Annotated[int, msgspec.Meta(ge=0)]


class Comment(msgspec.Struct):
    """A newly created issue comment."""

    id: int
    body: str


class IssueCommentEvent(msgspec.Struct):
    """``issue_comment`` webhook payload."""

    action: str
    repository: Repository
    issue: Issue
    comment: Comment
    sender: Sender


class CheckRun(msgspec.Struct):
    """A check run that changed state on a job commit."""

    id: int
    head_sha: str
    html_url: str


class CheckRunEvent(msgspec.Struct):
    """``check_run`` webhook payload."""

    action: str
    check_run: CheckRun
    repository: Repository


class RepositoryOnly(msgspec.Struct):
    """Minimal view used to read the repository before full validation."""

    repository: Repository


class TreeEntry(msgspec.Struct, frozen=True):
    """One entry of a Git tree creation request."""

    path: str
    sha: str
    mode: str = "100644"
    type: str = "blob"

    @classmethod
    def blob(cls, path: str, sha: str) -> TreeEntry:
        """Return a regular-file entry."""
        return cls(path=path, sha=sha)

    @classmethod
    def subtree(cls, path: str, sha: str) -> TreeEntry:
        """Return a directory entry."""
        return cls(path=path, sha=sha, mode="040000", type="tree")


class CreatedObject(msgspec.Struct):
    """Response of the blob, tree and commit creation endpoints."""

    sha: str


class GitCommit(msgspec.Struct):
    """Response of the commit lookup endpoint."""

    sha: str
    message: str


class RefTarget(msgspec.Struct):
    """The object a ref points at."""

    sha: str


class GitRef(msgspec.Struct):
    """Response of the ref creation and update endpoints."""

    ref: str
    object: RefTarget


__all__ = [
    "CheckRun",
    "CheckRunEvent",
    "Comment",
    "CreatedObject",
    "GitCommit",
    "GitRef",
    "Issue",
    "IssueCommentEvent",
    "RefTarget",
    "Repository",
    "RepositoryOnly",
    "Sender",
    "TreeEntry",
    "WebhookEventKind",
]
