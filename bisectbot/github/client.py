"""GitHub REST client for the Git Data API and issue comments."""

from __future__ import annotations

import collections.abc as cabc
import typing as typ
from urllib.parse import quote

import httpx
import msgspec

from bisectbot.logging import get_logger, log_debug

from .errors import GitHubAPIError, GitHubResponseShapeError
from .models import CreatedObject, GitCommit, GitRef, TreeEntry

if typ.TYPE_CHECKING:
    from bisectbot.config import GitHubConfig

logger = get_logger(__name__)

_HTTP_ERROR_STATUS_THRESHOLD = 400
_HTTP_UNPROCESSABLE = 422


class GitObjectStore(typ.Protocol):
    """Content-addressed object operations used to publish job trees."""

    async def create_blob(self, repo: str, content: str) -> str:
        """Store ``content`` as a blob and return its SHA."""
        ...

    async def create_tree(self, repo: str, entries: cabc.Sequence[TreeEntry]) -> str:
        """Store a tree of ``entries`` and return its SHA."""
        ...

    async def create_commit(
        self,
        repo: str,
        *,
        message: str,
        tree: str,
        parents: cabc.Sequence[str] = (),
    ) -> str:
        """Create a commit of ``tree`` and return its SHA."""
        ...

    async def update_ref(self, repo: str, branch: str, sha: str) -> str:
        """Point ``branch`` at ``sha`` and return the SHA the ref now targets."""
        ...


class CommitLookup(typ.Protocol):
    """Read access to commit messages."""

    async def get_commit_message(self, repo: str, sha: str) -> str:
        """Return the full message of commit ``sha``."""
        ...


class IssueCommenter(typ.Protocol):
    """Write access to issue comments."""

    async def post_issue_comment(self, repo: str, issue_number: int, body: str) -> None:
        """Post ``body`` as a new comment on the issue."""
        ...


def _repo_path(repo: str) -> str:
    return f"/repos/{quote(repo, safe='/')}"


class GitHubRestClient:
    """httpx-backed implementation of the GitHub protocols above."""

    def __init__(
        self,
        config: GitHubConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client; an owned ``AsyncClient`` is built if none given."""
        self._config = config
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            base_url=config.api_url,
            auth=httpx.BasicAuth(config.username, config.token),
            headers={
                "User-Agent": config.user_agent,
                "Accept": "application/vnd.github+json",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def create_blob(self, repo: str, content: str) -> str:
        """Store ``content`` as a UTF-8 blob and return its SHA."""
        created = await self._call(
            "POST",
            f"{_repo_path(repo)}/git/blobs",
            CreatedObject,
            body={"content": content, "encoding": "utf-8"},
        )
        return created.sha

    async def create_tree(self, repo: str, entries: cabc.Sequence[TreeEntry]) -> str:
        """Store a tree with exactly ``entries`` (no base tree) and return its SHA."""
        created = await self._call(
            "POST",
            f"{_repo_path(repo)}/git/trees",
            CreatedObject,
            body={"tree": list(entries)},
        )
        return created.sha

    async def create_commit(
        self,
        repo: str,
        *,
        message: str,
        tree: str,
        parents: cabc.Sequence[str] = (),
    ) -> str:
        """Create a commit and return its SHA."""
        created = await self._call(
            "POST",
            f"{_repo_path(repo)}/git/commits",
            CreatedObject,
            body={"message": message, "tree": tree, "parents": list(parents)},
        )
        return created.sha

    async def update_ref(self, repo: str, branch: str, sha: str) -> str:
        """Force ``refs/heads/<branch>`` to ``sha``, creating it when absent.

        Returns
        -------
        str
            The SHA the ref points at after the call, as reported by GitHub.

        """
        ref_path = f"{_repo_path(repo)}/git/refs/heads/{quote(branch, safe='/')}"
        try:
            updated = await self._call(
                "PATCH", ref_path, GitRef, body={"sha": sha, "force": True}
            )
        except GitHubAPIError as exc:
            if exc.status_code != _HTTP_UNPROCESSABLE:
                raise
            log_debug(logger, "Ref %s missing in %s; creating it", branch, repo)
            updated = await self._call(
                "POST",
                f"{_repo_path(repo)}/git/refs",
                GitRef,
                body={"ref": f"refs/heads/{branch}", "sha": sha},
            )
        return updated.object.sha

    async def get_commit_message(self, repo: str, sha: str) -> str:
        """Return the message of commit ``sha`` in ``repo``."""
        commit = await self._call(
            "GET", f"{_repo_path(repo)}/git/commits/{quote(sha)}", GitCommit
        )
        return commit.message

    async def post_issue_comment(self, repo: str, issue_number: int, body: str) -> None:
        """Post ``body`` as a comment on ``repo#issue_number``."""
        await self._call(
            "POST",
            f"{_repo_path(repo)}/issues/{issue_number}/comments",
            None,
            body={"body": body},
        )

    @typ.overload
    async def _call[T](
        self,
        method: str,
        path: str,
        response_type: type[T],
        *,
        body: object | None = None,
    ) -> T: ...

    @typ.overload
    async def _call(
        self,
        method: str,
        path: str,
        response_type: None,
        *,
        body: object | None = None,
    ) -> None: ...

    async def _call(
        self,
        method: str,
        path: str,
        response_type: type[typ.Any] | None,
        *,
        body: object | None = None,
    ) -> typ.Any:  # noqa: ANN401 - narrowed by the overloads above
        """Issue one request and decode the response into ``response_type``."""
        content = msgspec.json.encode(body) if body is not None else None
        headers = {"Content-Type": "application/json"} if content is not None else None
        log_debug(logger, "GitHub %s %s", method, path)
        try:
            response = await self._client.request(
                method, path, content=content, headers=headers
            )
        except httpx.HTTPError as exc:
            raise GitHubAPIError.transport(method, path, exc) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise GitHubAPIError.http_error(
                method, path, response.status_code, response.text
            )
        if response_type is None:
            return None
        try:
            return msgspec.json.decode(response.content, type=response_type)
        except (msgspec.ValidationError, msgspec.DecodeError) as exc:
            raise GitHubResponseShapeError.invalid(path, exc) from exc


__all__ = [
    "CommitLookup",
    "GitHubRestClient",
    "GitObjectStore",
    "IssueCommenter",
]
