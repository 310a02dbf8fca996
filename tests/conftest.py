"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import pytest

from bisectbot.destination import ChannelMessage, DirectMessage, IssueComment
from tests.helpers.fakes import (
    ALLOWED_REPOSITORY,
    FakeCommenter,
    FakeMessenger,
    FakeObjectStore,
)


@pytest.fixture
def object_store() -> FakeObjectStore:
    """Provide an empty in-memory Git object store."""
    return FakeObjectStore()


@pytest.fixture
def commenter() -> FakeCommenter:
    """Provide an issue commenter that records comments."""
    return FakeCommenter()


@pytest.fixture
def messenger() -> FakeMessenger:
    """Provide a chat messenger that records messages."""
    return FakeMessenger()


@pytest.fixture
def issue_destination() -> IssueComment:
    """Provide an issue comment destination in the allowed repository."""
    return IssueComment(repo=ALLOWED_REPOSITORY, issue_number=42)


@pytest.fixture
def channel_destination() -> ChannelMessage:
    """Provide a stream destination whose topic needs escaping."""
    return ChannelMessage(channel_id=131828, topic="nightly | regressions #3")


@pytest.fixture
def user_destination() -> DirectMessage:
    """Provide a private message destination."""
    return DirectMessage(user_id=4242)
