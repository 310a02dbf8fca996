"""Unit tests for the GitHub REST client."""

from __future__ import annotations

import json
import secrets
import typing as typ

import httpx
import pytest

from bisectbot.config import GitHubConfig
from bisectbot.github import GitHubRestClient, TreeEntry
from bisectbot.github.errors import GitHubAPIError, GitHubResponseShapeError

_TOKEN = secrets.token_hex(8)
_REPO = "octo/bisect-jobs"
_SHA = "a" * 40


class _Recorded(typ.NamedTuple):
    method: str
    path: str
    body: typ.Any


def _make_client(
    responses: list[tuple[int, typ.Any]],
) -> tuple[GitHubRestClient, list[_Recorded]]:
    calls: list[_Recorded] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        calls.append(_Recorded(request.method, request.url.path, body))
        status, payload = responses[len(calls) - 1]
        return httpx.Response(status_code=status, json=payload)

    http_client = httpx.AsyncClient(
        base_url="https://api.example.test", transport=httpx.MockTransport(_handler)
    )
    client = GitHubRestClient(
        GitHubConfig(username="bisect-bot", token=_TOKEN), http_client=http_client
    )
    return client, calls


def _ref(sha: str) -> dict[str, typ.Any]:
    return {"ref": "refs/heads/job-1", "object": {"sha": sha, "type": "commit"}}


class TestGitObjects:
    """Tests for blob, tree and commit creation."""

    @pytest.mark.asyncio
    async def test_create_blob(self) -> None:
        """Blobs are sent as UTF-8 content and return the new SHA."""
        client, calls = _make_client([(201, {"sha": _SHA, "url": "ignored"})])

        sha = await client.create_blob(_REPO, "fn main(){}")

        assert sha == _SHA, "Expected the SHA from the response."
        assert calls == [
            _Recorded(
                "POST",
                f"/repos/{_REPO}/git/blobs",
                {"content": "fn main(){}", "encoding": "utf-8"},
            )
        ], "Expected one blob creation request."

    @pytest.mark.asyncio
    async def test_create_tree_serializes_entries(self) -> None:
        """Tree entries carry path, mode, type and sha."""
        client, calls = _make_client([(201, {"sha": _SHA})])

        await client.create_tree(
            _REPO, [TreeEntry.blob("Cargo.toml", "b1"), TreeEntry.subtree("src", "t1")]
        )

        assert calls[0].body == {
            "tree": [
                {"path": "Cargo.toml", "sha": "b1", "mode": "100644", "type": "blob"},
                {"path": "src", "sha": "t1", "mode": "040000", "type": "tree"},
            ]
        }, "Expected both entries in the request body."

    @pytest.mark.asyncio
    async def test_create_commit_without_parents(self) -> None:
        """Root commits are sent with an empty parents list."""
        client, calls = _make_client([(201, {"sha": _SHA})])

        await client.create_commit(_REPO, message="Bisect job 1", tree="t0")

        assert calls[0].body == {
            "message": "Bisect job 1",
            "tree": "t0",
            "parents": [],
        }, "Expected a parentless commit request."

    @pytest.mark.asyncio
    async def test_http_error_raises(self) -> None:
        """Non-2xx responses raise GitHubAPIError with the status code."""
        client, _ = _make_client([(500, {"message": "Server Error"})])

        with pytest.raises(GitHubAPIError) as excinfo:
            await client.create_blob(_REPO, "x")

        assert excinfo.value.status_code == 500, "Expected the HTTP status."

    @pytest.mark.asyncio
    async def test_unexpected_shape_raises(self) -> None:
        """A response without the declared fields is a shape error."""
        client, _ = _make_client([(201, {"url": "no sha here"})])

        with pytest.raises(GitHubResponseShapeError):
            await client.create_blob(_REPO, "x")

    @pytest.mark.asyncio
    async def test_transport_error_raises(self) -> None:
        """Connection failures are wrapped in GitHubAPIError."""

        def _handler(request: httpx.Request) -> httpx.Response:
            message = "refused"
            raise httpx.ConnectError(message, request=request)

        http_client = httpx.AsyncClient(
            base_url="https://api.example.test",
            transport=httpx.MockTransport(_handler),
        )
        client = GitHubRestClient(
            GitHubConfig(username="bisect-bot", token=_TOKEN), http_client=http_client
        )

        with pytest.raises(GitHubAPIError) as excinfo:
            await client.create_blob(_REPO, "x")

        assert excinfo.value.status_code is None, "Expected no HTTP status."


class TestUpdateRef:
    """Tests for force-updating job branches."""

    @pytest.mark.asyncio
    async def test_existing_branch_is_force_updated(self) -> None:
        """An existing branch is patched with force enabled."""
        client, calls = _make_client([(200, _ref(_SHA))])

        target = await client.update_ref(_REPO, "job-1", _SHA)

        assert target == _SHA, "Expected the ref target from the response."
        assert calls == [
            _Recorded(
                "PATCH",
                f"/repos/{_REPO}/git/refs/heads/job-1",
                {"sha": _SHA, "force": True},
            )
        ], "Expected a single forced PATCH."

    @pytest.mark.asyncio
    async def test_missing_branch_is_created(self) -> None:
        """A 422 on update falls back to creating the ref."""
        client, calls = _make_client(
            [(422, {"message": "Reference does not exist"}), (201, _ref(_SHA))]
        )

        target = await client.update_ref(_REPO, "job-1", _SHA)

        assert target == _SHA, "Expected the created ref target."
        assert calls[1] == _Recorded(
            "POST",
            f"/repos/{_REPO}/git/refs",
            {"ref": "refs/heads/job-1", "sha": _SHA},
        ), "Expected the ref to be created after the failed update."

    @pytest.mark.asyncio
    async def test_other_errors_propagate(self) -> None:
        """Errors other than 422 are not retried."""
        client, calls = _make_client([(403, {"message": "Forbidden"})])

        with pytest.raises(GitHubAPIError):
            await client.update_ref(_REPO, "job-1", _SHA)

        assert len(calls) == 1, "Expected no fallback request."


class TestCommentsAndCommits:
    """Tests for issue comments and commit lookup."""

    @pytest.mark.asyncio
    async def test_post_issue_comment(self) -> None:
        """Comments are posted to the issue comments endpoint."""
        client, calls = _make_client([(201, {"id": 1, "body": "hi"})])

        await client.post_issue_comment("octo/reef", 7, "hi")

        assert calls == [
            _Recorded("POST", "/repos/octo/reef/issues/7/comments", {"body": "hi"})
        ], "Expected one comment request."

    @pytest.mark.asyncio
    async def test_get_commit_message(self) -> None:
        """Commit lookup returns the full message."""
        message = "Bisect job 1\n\nBisect-Reply-To: user 3"
        client, calls = _make_client([(200, {"sha": _SHA, "message": message})])

        assert await client.get_commit_message(_REPO, _SHA) == message, (
            "Expected the commit message."
        )
        assert calls[0].path == f"/repos/{_REPO}/git/commits/{_SHA}", (
            "Expected the Git Data commit endpoint."
        )

    @pytest.mark.asyncio
    async def test_aclose_leaves_injected_client_open(self) -> None:
        """An injected HTTP client is owned by the caller."""
        client, _ = _make_client([])
        await client.aclose()
        assert client._client.is_closed is False, "Expected the client to stay open."
