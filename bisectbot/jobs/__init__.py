"""Job tree rendering and publishing."""

from __future__ import annotations

from .builder import JobRef, JobTreeBuilder, TreeError, branch_name, commit_message
from .templates import JobFiles, bisect_invocation, render_job_files

__all__ = [
    "JobFiles",
    "JobRef",
    "JobTreeBuilder",
    "TreeError",
    "bisect_invocation",
    "branch_name",
    "commit_message",
    "render_job_files",
]
