"""Publish bisection jobs as branches built from Git Data API objects.

The job tree is assembled bottom-up without a working copy::

    blobs:  src/lib.rs, .github/workflows/bisect.yaml, Cargo.toml
    trees:  src/ -> .github/workflows/ -> .github/ -> root
    commit: root tree, no parents, message carries the reply destination
    ref:    refs/heads/job-<correlation id>, force-updated

Every step is one remote call. A failing call aborts the job; objects created
before the failure are left orphaned, which is harmless.
"""

from __future__ import annotations

import dataclasses as dc
import re
import typing as typ

from bisectbot.commands import Bisect
from bisectbot.destination import encode
from bisectbot.github.errors import GitHubAPIError, GitHubResponseShapeError
from bisectbot.github.models import TreeEntry

from .templates import render_job_files

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from bisectbot.commands import Command
    from bisectbot.destination import Destination
    from bisectbot.github.client import GitObjectStore

BRANCH_PREFIX = "job-"

_UNSAFE_REF_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class TreeError(RuntimeError):
    """Raised when publishing a job tree fails.

    Attributes
    ----------
    step
        Name of the step that failed, e.g. ``"create commit"``.
    correlation_id
        Correlation id of the job being published.

    """

    def __init__(self, message: str, *, step: str, correlation_id: str) -> None:
        """Initialise with a message and the failing step."""
        self.step = step
        self.correlation_id = correlation_id
        super().__init__(message)

    @classmethod
    def remote_call_failed(
        cls, step: str, correlation_id: str, exc: Exception
    ) -> TreeError:
        """Return an error for a failed Git Data API call."""
        return cls(
            f"job {correlation_id}: {step} failed: {exc}",
            step=step,
            correlation_id=correlation_id,
        )

    @classmethod
    def ref_mismatch(
        cls, correlation_id: str, branch: str, expected: str, actual: str
    ) -> TreeError:
        """Return an error for a ref that does not point at the new commit."""
        return cls(
            f"job {correlation_id}: {branch} points at {actual}, expected {expected}",
            step="verify ref",
            correlation_id=correlation_id,
        )


@dc.dataclass(frozen=True, slots=True)
class JobRef:
    """A published job: its branch and the commit the branch points at."""

    branch: str
    commit_sha: str


def branch_name(correlation_id: str) -> str:
    """Return the job branch name for ``correlation_id``.

    Examples
    --------
    >>> branch_name("1234")
    'job-1234'
    >>> branch_name("zulip/../x")
    'job-zulip----x'

    """
    return f"{BRANCH_PREFIX}{_UNSAFE_REF_CHARS.sub('-', correlation_id)}"


def commit_message(correlation_id: str, destination: Destination) -> str:
    """Return the job commit message embedding the encoded destination."""
    return f"Bisect job {correlation_id}\n\n{encode(destination)}"


class JobTreeBuilder:
    """Build and publish job trees in the jobs repository."""

    def __init__(self, store: GitObjectStore, *, repository: str) -> None:
        """Configure the builder with an object store and target repository."""
        self._store = store
        self._repository = repository

    @property
    def repository(self) -> str:
        """Return the ``owner/name`` of the jobs repository."""
        return self._repository

    async def _step[T](
        self, step: str, correlation_id: str, call: cabc.Awaitable[T]
    ) -> T:
        try:
            return await call
        except (GitHubAPIError, GitHubResponseShapeError) as exc:
            raise TreeError.remote_call_failed(step, correlation_id, exc) from exc

    async def build_and_push(
        self,
        destination: Destination,
        correlation_id: str,
        command: Command,
    ) -> JobRef:
        """Publish a job for ``command`` and return its branch and commit.

        Parameters
        ----------
        destination
            Where the job result must be reported; embedded in the commit.
        correlation_id
            Identifier of the originating request; names the branch.
        command
            The parsed bot command.

        Raises
        ------
        TreeError
            If any remote call fails or the branch does not end up pointing
            at the new commit.

        """
        match command:
            case Bisect():
                files = render_job_files(command)
            case _:
                typ.assert_never(command)

        repo = self._repository
        store = self._store
        cid = correlation_id

        source = await self._step(
            "create source blob", cid, store.create_blob(repo, files.source)
        )
        workflow = await self._step(
            "create workflow blob", cid, store.create_blob(repo, files.workflow)
        )
        manifest = await self._step(
            "create manifest blob", cid, store.create_blob(repo, files.manifest)
        )

        src_tree = await self._step(
            "create src tree",
            cid,
            store.create_tree(repo, [TreeEntry.blob("lib.rs", source)]),
        )
        workflows_tree = await self._step(
            "create workflows tree",
            cid,
            store.create_tree(repo, [TreeEntry.blob("bisect.yaml", workflow)]),
        )
        github_tree = await self._step(
            "create .github tree",
            cid,
            store.create_tree(repo, [TreeEntry.subtree("workflows", workflows_tree)]),
        )
        root_tree = await self._step(
            "create root tree",
            cid,
            store.create_tree(
                repo,
                [
                    TreeEntry.blob("Cargo.toml", manifest),
                    TreeEntry.subtree("src", src_tree),
                    TreeEntry.subtree(".github", github_tree),
                ],
            ),
        )

        commit = await self._step(
            "create commit",
            cid,
            store.create_commit(
                repo,
                message=commit_message(cid, destination),
                tree=root_tree,
                parents=(),
            ),
        )

        branch = branch_name(cid)
        target = await self._step(
            "update ref", cid, store.update_ref(repo, branch, commit)
        )
        if target != commit:
            raise TreeError.ref_mismatch(cid, branch, commit, target)
        return JobRef(branch=branch, commit_sha=commit)


__all__ = [
    "BRANCH_PREFIX",
    "JobRef",
    "JobTreeBuilder",
    "TreeError",
    "branch_name",
    "commit_message",
]
