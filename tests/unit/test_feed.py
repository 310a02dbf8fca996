"""Unit tests for the chat feed loop."""

from __future__ import annotations

import asyncio
import collections.abc as cabc

import pytest

from bisectbot.dispatcher import Dispatcher
from bisectbot.feed import ChatFeed
from bisectbot.jobs import JobTreeBuilder
from bisectbot.replies import ReplySender
from bisectbot.zulip import ZulipAPIError, ZulipEventPoller
from bisectbot.zulip.models import PollItem, ZulipMessage
from tests.helpers.fakes import (
    JOBS_REPOSITORY,
    FakeCommenter,
    FakeEventSource,
    FakeMessenger,
    FakeObjectStore,
    heartbeat,
)

COMMAND_TEXT = "bisect-bot bisect end=nightly\n```rust\nfn main(){}\n```"


def _message(
    event_id: int,
    *,
    content: str = COMMAND_TEXT,
    stream_id: int | None = 3,
    sender_email: str = "ada@example.test",
) -> PollItem:
    return PollItem(
        id=event_id,
        type="message",
        message=ZulipMessage(
            id=900 + event_id,
            content=content,
            sender_id=12,
            type="stream" if stream_id is not None else "private",
            sender_email=sender_email,
            stream_id=stream_id,
            subject="regressions",
        ),
    )


def _feed(
    source: FakeEventSource,
    store: FakeObjectStore,
    messenger: FakeMessenger,
    *,
    own_email: str | None = None,
    poll_interval_s: float = 1.0,
    sleep: cabc.Callable[[float], cabc.Awaitable[None]] = asyncio.sleep,
) -> ChatFeed:
    dispatcher = Dispatcher(
        builder=JobTreeBuilder(store, repository=JOBS_REPOSITORY),
        replies=ReplySender(FakeCommenter(), messenger),
    )
    return ChatFeed(
        ZulipEventPoller(source),
        dispatcher,
        own_email=own_email,
        poll_interval_s=poll_interval_s,
        sleep=sleep,
    )


class TestRunOnce:
    """Tests for ChatFeed.run_once."""

    @pytest.mark.asyncio
    async def test_messages_are_dispatched(
        self, object_store: FakeObjectStore, messenger: FakeMessenger
    ) -> None:
        """Commands from the chat publish jobs and reply in place."""
        source = FakeEventSource(
            [[heartbeat(1), _message(2), _message(3, stream_id=None)]]
        )
        feed = _feed(source, object_store, messenger)

        count = await feed.run_once()

        assert count == 3, "Expected every item to be consumed."
        assert object_store.calls.count("create_commit") == 2, (
            "Expected one job per command message."
        )
        assert [m[:2] for m in messenger.stream_messages] == [(3, "regressions")], (
            "Expected the stream message to be acknowledged in its topic."
        )
        assert [m[0] for m in messenger.private_messages] == [12], (
            "Expected the private message to be acknowledged privately."
        )
        commits = object_store.commits.values()
        destinations = {commit.message.splitlines()[-1] for commit in commits}
        assert destinations == {
            "Bisect-Reply-To: channel 3|regressions",
            "Bisect-Reply-To: user 12",
        }, "Expected each job to route back to its origin."

    @pytest.mark.asyncio
    async def test_own_messages_are_skipped(
        self, object_store: FakeObjectStore, messenger: FakeMessenger
    ) -> None:
        """The bot's own replies never start jobs."""
        source = FakeEventSource([[_message(1, sender_email="bot@example.test")]])
        feed = _feed(source, object_store, messenger, own_email="bot@example.test")

        await feed.run_once()

        assert object_store.calls == [], "Expected no job for the bot's message."

    @pytest.mark.asyncio
    async def test_poll_failure_is_absorbed(
        self, object_store: FakeObjectStore, messenger: FakeMessenger
    ) -> None:
        """A failed poll is logged and reported as zero items."""
        source = FakeEventSource([ZulipAPIError("Zulip /events failed: reset")])
        feed = _feed(source, object_store, messenger)

        assert await feed.run_once() == 0, "Expected no items after a failure."

    @pytest.mark.asyncio
    async def test_dispatch_failure_does_not_stop_batch(
        self, messenger: FakeMessenger
    ) -> None:
        """A failing message does not prevent later messages from running."""
        store = FakeObjectStore(fail_on="update_ref")
        source = FakeEventSource([[_message(1), _message(2, content="hi")]])
        feed = _feed(source, store, messenger)

        assert await feed.run_once() == 2, "Expected both items to be consumed."
        assert messenger.stream_messages == [], "Expected no acknowledgement."

    @pytest.mark.asyncio
    async def test_unroutable_message_does_not_stop_batch(
        self, object_store: FakeObjectStore, messenger: FakeMessenger
    ) -> None:
        """A message with an invalid stream id is skipped, not fatal."""
        source = FakeEventSource([[_message(1, stream_id=-1), _message(2)]])
        feed = _feed(source, object_store, messenger)

        assert await feed.run_once() == 2, "Expected both items to be consumed."
        assert [m[0] for m in messenger.stream_messages] == [3], (
            "Expected only the valid message to be acknowledged."
        )


class TestRun:
    """Tests for ChatFeed.run."""

    @pytest.mark.asyncio
    async def test_sleeps_between_polls(
        self, object_store: FakeObjectStore, messenger: FakeMessenger
    ) -> None:
        """The loop waits poll_interval_s after each poll until cancelled."""
        source = FakeEventSource([[heartbeat(1)], [heartbeat(2)]])
        sleeps: list[float] = []

        async def _sleep(seconds: float) -> None:
            sleeps.append(seconds)
            if len(sleeps) == 2:
                raise asyncio.CancelledError

        feed = _feed(
            source, object_store, messenger, poll_interval_s=0.25, sleep=_sleep
        )

        with pytest.raises(asyncio.CancelledError):
            await feed.run()

        assert sleeps == [0.25, 0.25], "Expected the configured interval."
        assert len(source.polls) == 2, "Expected one poll per iteration."
