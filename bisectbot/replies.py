"""Deliver replies to whichever channel a destination names."""

from __future__ import annotations

import typing as typ

from bisectbot.destination import ChannelMessage, DirectMessage, IssueComment

if typ.TYPE_CHECKING:
    from bisectbot.destination import Destination
    from bisectbot.github.client import IssueCommenter
    from bisectbot.zulip.client import ChatMessenger


class ChatDisabledError(RuntimeError):
    """Raised when a chat destination is used without a configured chat client."""

    def __init__(self, destination: Destination) -> None:
        """Record the undeliverable destination."""
        self.destination = destination
        super().__init__(f"chat is not configured; cannot reply to {destination!r}")


class ReplySender:
    """Send one message to a destination; no retries, no queuing."""

    def __init__(
        self,
        github: IssueCommenter,
        chat: ChatMessenger | None = None,
    ) -> None:
        """Configure the sender with its outbound clients."""
        self._github = github
        self._chat = chat

    def _require_chat(self, destination: Destination) -> ChatMessenger:
        if self._chat is None:
            raise ChatDisabledError(destination)
        return self._chat

    async def send(self, destination: Destination, body: str) -> None:
        """Deliver ``body`` to ``destination``.

        Raises
        ------
        GitHubAPIError
            If posting the issue comment fails.
        ZulipAPIError
            If sending the chat message fails.
        ChatDisabledError
            If a chat destination is given but chat is not configured.

        """
        match destination:
            case IssueComment(repo=repo, issue_number=issue_number):
                await self._github.post_issue_comment(repo, issue_number, body)
            case ChannelMessage(channel_id=channel_id, topic=topic):
                chat = self._require_chat(destination)
                await chat.send_stream_message(channel_id, topic, body)
            case DirectMessage(user_id=user_id):
                chat = self._require_chat(destination)
                await chat.send_private_message(user_id, body)
            case _:
                typ.assert_never(destination)


__all__ = ["ChatDisabledError", "ReplySender"]
