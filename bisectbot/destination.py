"""Reply destinations and their one-line commit message encoding.

A destination says where the result of a bisection job must be posted. It is
the only state carried from the request to the completion event, so it is
serialized into the job commit message as a single header line::

    Bisect-Reply-To: issue rust-lang/rust#12345
    Bisect-Reply-To: channel 131828|bisection%20%7C%20nightly
    Bisect-Reply-To: user 4242

Free-text fields are percent-encoded, so an encoded line never contains a
space, ``#``, ``|`` or line break inside a field and can be recovered from
arbitrary surrounding text.
"""

from __future__ import annotations

import re
import typing as typ
from urllib.parse import quote, unquote

import msgspec

HEADER = "Bisect-Reply-To:"

_DIGITS = re.compile(r"[0-9]+")


def _require_non_negative(field: str, value: int) -> None:
    if value < 0:
        msg = f"{field} must be non-negative, got {value}"
        raise ValueError(msg)


class IssueComment(msgspec.Struct, frozen=True, tag="issue", tag_field="kind"):
    """Reply as a comment on a GitHub issue or pull request."""

    repo: str
    issue_number: int

    def __post_init__(self) -> None:
        """Reject an empty repository or a negative issue number."""
        if not self.repo:
            msg = "repo must not be empty"
            raise ValueError(msg)
        _require_non_negative("issue_number", self.issue_number)


class ChannelMessage(msgspec.Struct, frozen=True, tag="channel", tag_field="kind"):
    """Reply in a Zulip stream under a topic."""

    channel_id: int
    topic: str

    def __post_init__(self) -> None:
        """Reject a negative channel id."""
        _require_non_negative("channel_id", self.channel_id)


class DirectMessage(msgspec.Struct, frozen=True, tag="user", tag_field="kind"):
    """Reply privately to a Zulip user."""

    user_id: int

    def __post_init__(self) -> None:
        """Reject a negative user id."""
        _require_non_negative("user_id", self.user_id)


type Destination = IssueComment | ChannelMessage | DirectMessage


class DecodeError(Exception):
    """Raised when no destination can be recovered from a text block."""


class NoHeaderFoundError(DecodeError):
    """Raised when the text holds no ``Bisect-Reply-To:`` line."""

    def __init__(self) -> None:
        """Initialise with a fixed message naming the header."""
        super().__init__(f"no line starting with {HEADER!r} found")


class MalformedPayloadError(DecodeError):
    """Raised when a header line's payload does not fit its kind."""

    def __init__(self, kind: str, payload: str) -> None:
        """Record the offending kind and payload."""
        self.kind = kind
        self.payload = payload
        super().__init__(f"malformed {kind!r} payload: {payload!r}")


class UnknownKindError(DecodeError):
    """Raised when a header line names a destination kind we do not know."""

    def __init__(self, kind: str) -> None:
        """Record the unrecognised kind."""
        self.kind = kind
        super().__init__(f"unknown destination kind: {kind!r}")


def _quote_field(value: str, *, safe: str = "") -> str:
    return quote(value, safe=safe)


def _unquote_field(kind: str, payload: str, value: str) -> str:
    try:
        return unquote(value, errors="strict")
    except UnicodeDecodeError as exc:
        raise MalformedPayloadError(kind, payload) from exc


def _parse_uint(kind: str, payload: str, value: str) -> int:
    if not _DIGITS.fullmatch(value):
        raise MalformedPayloadError(kind, payload)
    return int(value)


def encode(destination: Destination) -> str:
    """Return the single header line describing ``destination``.

    Examples
    --------
    >>> encode(IssueComment(repo="octo/reef", issue_number=7))
    'Bisect-Reply-To: issue octo/reef#7'
    >>> encode(ChannelMessage(channel_id=3, topic="a|b"))
    'Bisect-Reply-To: channel 3|a%7Cb'

    """
    match destination:
        case IssueComment(repo=repo, issue_number=issue_number):
            kind = "issue"
            payload = f"{_quote_field(repo, safe='/')}#{issue_number}"
        case ChannelMessage(channel_id=channel_id, topic=topic):
            kind = "channel"
            payload = f"{channel_id}|{_quote_field(topic)}"
        case DirectMessage(user_id=user_id):
            kind = "user"
            payload = str(user_id)
        case _:
            typ.assert_never(destination)
    return f"{HEADER} {kind} {payload}"


def _decode_issue(payload: str) -> IssueComment:
    repo, sep, number = payload.partition("#")
    if not sep or not repo:
        raise MalformedPayloadError("issue", payload)
    return IssueComment(
        repo=_unquote_field("issue", payload, repo),
        issue_number=_parse_uint("issue", payload, number),
    )


def _decode_channel(payload: str) -> ChannelMessage:
    channel_id, sep, topic = payload.partition("|")
    if not sep:
        raise MalformedPayloadError("channel", payload)
    return ChannelMessage(
        channel_id=_parse_uint("channel", payload, channel_id),
        topic=_unquote_field("channel", payload, topic),
    )


def _decode_user(payload: str) -> DirectMessage:
    return DirectMessage(user_id=_parse_uint("user", payload, payload))


_DECODERS: dict[str, typ.Callable[[str], Destination]] = {
    "issue": _decode_issue,
    "channel": _decode_channel,
    "user": _decode_user,
}


def _decode_line(remainder: str) -> Destination:
    fields = remainder.strip().split(" ")
    kind = fields[0]
    decoder = _DECODERS.get(kind)
    if decoder is None:
        raise UnknownKindError(kind)
    if len(fields) != 2:  # noqa: PLR2004 - exactly "<kind> <payload>"
        raise MalformedPayloadError(kind, " ".join(fields[1:]))
    return decoder(fields[1])


def decode(text: str) -> Destination:
    """Recover the destination from the first header line in ``text``.

    Parameters
    ----------
    text
        Arbitrary text, usually a full commit message.

    Returns
    -------
    Destination
        The decoded destination.

    Raises
    ------
    NoHeaderFoundError
        If no line starts with the header token.
    UnknownKindError
        If the header line names an unknown kind.
    MalformedPayloadError
        If the payload does not match the shape required by its kind.

    """
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith(HEADER):
            return _decode_line(stripped.removeprefix(HEADER))
    raise NoHeaderFoundError


__all__ = [
    "HEADER",
    "ChannelMessage",
    "DecodeError",
    "Destination",
    "DirectMessage",
    "IssueComment",
    "MalformedPayloadError",
    "NoHeaderFoundError",
    "UnknownKindError",
    "decode",
    "encode",
]
