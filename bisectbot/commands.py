"""Bot command parsing.

A command is a single invocation line followed by a fenced reproduction::

    bisect-bot bisect start=2021-01-01 end=2021-02-01
    ```rust
    fn main() {}
    ```

Comments without an invocation line are not commands at all and parse to
``None``; everything else either parses to a ``Command`` or raises a
``ParseError`` subclass naming what went wrong.
"""

from __future__ import annotations

import typing as typ

import msgspec

DEFAULT_PREFIX = "bisect-bot"
BISECT_SUBCOMMAND = "bisect"
FENCE_OPEN = "```rust"
FENCE_CLOSE = "```"

_ARGUMENT_KEYS = ("start", "end")


class Bisect(msgspec.Struct, frozen=True, tag="bisect", tag_field="command"):
    """Request to bisect a regression between two toolchain versions.

    Attributes
    ----------
    start
        Known-good version reference, or ``None`` to let the bisector pick.
    end
        Known-bad version reference.
    code
        Reproduction source, verbatim.

    """

    end: str
    code: str
    start: str | None = None


type Command = Bisect


class ParseError(Exception):
    """Base class for malformed bot invocations."""


class UnknownCommandError(ParseError):
    """Raised when the invocation names an unsupported subcommand."""

    def __init__(self, token: str) -> None:
        """Record the unsupported token (empty when none was given)."""
        self.token = token
        super().__init__(f"unknown command: {token!r}")


class UnknownArgumentError(ParseError):
    """Raised for an argument that is not ``start=<v>`` or ``end=<v>``."""

    def __init__(self, token: str) -> None:
        """Record the unrecognised argument token."""
        self.token = token
        super().__init__(f"unknown argument: {token!r}")


class DuplicateKeyError(ParseError):
    """Raised when ``start`` or ``end`` is given more than once."""

    def __init__(self, key: str) -> None:
        """Record the repeated key."""
        self.key = key
        super().__init__(f"duplicate argument: {key!r}")


class MissingEndError(ParseError):
    """Raised when the invocation omits ``end=``."""

    def __init__(self) -> None:
        """Initialise with a fixed message."""
        super().__init__("missing required argument: 'end'")


class MissingCodeFenceError(ParseError):
    """Raised when no reproduction code block follows the invocation."""

    def __init__(self) -> None:
        """Initialise with a message naming the expected fence."""
        super().__init__(f"no {FENCE_OPEN!r} code block after the command")


class UnterminatedCodeFenceError(ParseError):
    """Raised when the reproduction code block is never closed."""

    def __init__(self) -> None:
        """Initialise with a message naming the closing fence."""
        super().__init__(f"code block is missing its closing {FENCE_CLOSE!r}")


def _parse_arguments(tokens: list[str]) -> tuple[str | None, str]:
    values: dict[str, str] = {}
    for token in tokens:
        key, sep, value = token.partition("=")
        if not sep or key not in _ARGUMENT_KEYS or not value:
            raise UnknownArgumentError(token)
        if key in values:
            raise DuplicateKeyError(key)
        values[key] = value
    if "end" not in values:
        raise MissingEndError
    return values.get("start"), values["end"]


def _read_code_block(lines: typ.Iterator[str]) -> str:
    for line in lines:
        if line.strip() == FENCE_OPEN:
            break
    else:
        raise MissingCodeFenceError

    body: list[str] = []
    for line in lines:
        if line.strip() == FENCE_CLOSE:
            return "\n".join(body)
        body.append(line)
    raise UnterminatedCodeFenceError


def parse(comment: str, *, prefix: str = DEFAULT_PREFIX) -> Command | None:
    """Extract the bot command from ``comment``.

    Parameters
    ----------
    comment
        Raw issue comment or chat message text.
    prefix
        Case-sensitive invocation prefix that marks the command line.

    Returns
    -------
    Command | None
        The parsed command, or ``None`` when no line starts with ``prefix``.

    Raises
    ------
    ParseError
        If the first invocation line or its code block is malformed.

    """
    lines = iter(comment.replace("\r\n", "\n").split("\n"))
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith(prefix):
            continue

        remainder = stripped.removeprefix(prefix).strip()
        tokens = remainder.split(" ") if remainder else []
        if not tokens or tokens[0] != BISECT_SUBCOMMAND:
            raise UnknownCommandError(tokens[0] if tokens else "")

        start, end = _parse_arguments(tokens[1:])
        code = _read_code_block(lines)
        return Bisect(start=start, end=end, code=code)
    return None


__all__ = [
    "BISECT_SUBCOMMAND",
    "DEFAULT_PREFIX",
    "FENCE_CLOSE",
    "FENCE_OPEN",
    "Bisect",
    "Command",
    "DuplicateKeyError",
    "MissingCodeFenceError",
    "MissingEndError",
    "ParseError",
    "UnknownArgumentError",
    "UnknownCommandError",
    "UnterminatedCodeFenceError",
    "parse",
]
