"""bisectbot: run compiler regression bisections from issue and chat commands.

The core pieces are importable from the package root::

    from bisectbot import decode, encode, parse

"""

from __future__ import annotations

from .commands import Bisect, Command, ParseError, parse
from .destination import (
    ChannelMessage,
    DecodeError,
    Destination,
    DirectMessage,
    IssueComment,
    decode,
    encode,
)

__all__ = [
    "Bisect",
    "ChannelMessage",
    "Command",
    "DecodeError",
    "Destination",
    "DirectMessage",
    "IssueComment",
    "ParseError",
    "decode",
    "encode",
    "parse",
]
