"""File contents of a bisection job tree.

A job is a tiny Cargo crate holding the reproduction as ``src/lib.rs`` plus a
GitHub Actions workflow that runs ``cargo bisect-rustc`` on push.
"""

from __future__ import annotations

import dataclasses as dc
import io
import shlex
import typing as typ

from ruamel.yaml import YAML

if typ.TYPE_CHECKING:
    from bisectbot.commands import Bisect

MANIFEST = """\
[package]
name = "regression"
version = "0.1.0"
edition = "2021"

[dependencies]
"""


@dc.dataclass(frozen=True, slots=True)
class JobFiles:
    """Rendered contents of the three job files."""

    source: str
    workflow: str
    manifest: str = MANIFEST


def bisect_invocation(command: Bisect) -> str:
    """Return the shell command line for ``command``.

    Examples
    --------
    >>> from bisectbot.commands import Bisect
    >>> bisect_invocation(Bisect(start="2021-01-01", end="nightly", code=""))
    'cargo bisect-rustc --start=2021-01-01 --end=nightly'
    >>> bisect_invocation(Bisect(end="1.50.0; rm -rf /", code=""))
    "cargo bisect-rustc --end='1.50.0; rm -rf /'"

    """
    args = ["cargo", "bisect-rustc"]
    if command.start is not None:
        args.append(f"--start={shlex.quote(command.start)}")
    args.append(f"--end={shlex.quote(command.end)}")
    return " ".join(args)


def _workflow(command: Bisect) -> dict[str, typ.Any]:
    return {
        "name": "Bisect",
        "on": ["push"],
        "jobs": {
            "build": {
                "runs-on": "ubuntu-latest",
                "steps": [
                    {"uses": "actions/checkout@v4"},
                    {
                        "name": "Cache cargo installed crates",
                        "uses": "actions/cache@v4",
                        "with": {
                            "path": "~/.cargo/bin",
                            "key": "cargo-installed-crates",
                        },
                    },
                    {"run": "cargo install cargo-bisect-rustc || true"},
                    {"name": "Bisect", "run": bisect_invocation(command)},
                ],
            }
        },
    }


def _yaml() -> YAML:
    yaml = YAML()
    yaml.default_flow_style = False
    yaml.indent(mapping=2, sequence=4, offset=2)
    return yaml


def render_workflow(command: Bisect) -> str:
    """Render the GitHub Actions workflow for ``command`` as YAML."""
    stream = io.StringIO()
    _yaml().dump(_workflow(command), stream)
    return stream.getvalue()


def render_job_files(command: Bisect) -> JobFiles:
    """Render every file of the job tree for ``command``."""
    return JobFiles(source=command.code, workflow=render_workflow(command))


__all__ = [
    "MANIFEST",
    "JobFiles",
    "bisect_invocation",
    "render_job_files",
    "render_workflow",
]
