"""Tests for the conversation session: trimming, replies and failures."""

import asyncio

import pytest

from chatrelay.core.api import MalformedResponseError, OpenRouterError, Role, Turn
from chatrelay.core.models import ModelSelector
from chatrelay.core.session import (
    GENERIC_FAILURE_MESSAGE,
    MAX_HISTORY,
    AssistantUnavailableError,
    ConversationSession,
)

from .conftest import FakeCompletionClient


def test_new_session_is_empty(session):
    assert len(session) == 0
    assert session.get_log() == ()


def test_append_user_turn(session):
    session.append_user_turn("hello")

    assert session.get_log() == (Turn(Role.USER, "hello"),)


def test_log_never_exceeds_max_history(session):
    for i in range(MAX_HISTORY * 3):
        session.append_user_turn(f"m{i}")
        assert len(session) <= MAX_HISTORY


def test_trimming_keeps_most_recent_turns_in_order(session):
    for i in range(25):
        session.append_user_turn(f"m{i}")

    contents = [turn.content for turn in session.get_log()]
    assert contents == [f"m{i}" for i in range(15, 25)]


def test_full_log_drops_single_oldest_turn(session):
    for i in range(MAX_HISTORY):
        session.append_user_turn(f"m{i}")
    assert len(session) == MAX_HISTORY

    session.append_user_turn("newest")

    log = session.get_log()
    assert len(log) == MAX_HISTORY
    assert log[0].content == "m1"
    assert log[-1].content == "newest"


def test_custom_max_history(config, fake_client):
    session = ConversationSession(fake_client, ModelSelector(config), max_history=3)
    for i in range(5):
        session.append_user_turn(str(i))

    assert [t.content for t in session.get_log()] == ["2", "3", "4"]


def test_max_history_must_be_positive(config, fake_client):
    with pytest.raises(ValueError):
        ConversationSession(fake_client, ModelSelector(config), max_history=0)


def test_clear_empties_log(session):
    for i in range(7):
        session.append_user_turn(str(i))

    session.clear()

    assert len(session) == 0
    assert session.get_log() == ()


def test_clear_on_empty_log(session):
    session.clear()
    assert len(session) == 0


def test_get_log_is_a_snapshot(session):
    session.append_user_turn("one")
    snapshot = session.get_log()

    session.append_user_turn("two")

    assert len(snapshot) == 1
    assert isinstance(snapshot, tuple)
    assert len(session) == 2


def test_turns_are_immutable(session):
    session.append_user_turn("one")
    turn = session.get_log()[0]

    with pytest.raises(AttributeError):
        turn.content = "changed"


@pytest.mark.asyncio
async def test_request_reply_appends_exchange(config):
    client = FakeCompletionClient(["hi"])
    session = ConversationSession(client, ModelSelector(config), sampling=config.sampling)

    reply = await session.request_reply("hello")

    assert reply == Turn(Role.ASSISTANT, "hi")
    assert session.get_log() == (
        Turn(Role.USER, "hello"),
        Turn(Role.ASSISTANT, "hi"),
    )


@pytest.mark.asyncio
async def test_request_reply_sends_log_model_and_sampling(config):
    client = FakeCompletionClient(["first", "second"])
    session = ConversationSession(client, ModelSelector(config), sampling=config.sampling)

    await session.request_reply("hello")
    await session.request_reply("def foo(): pass")

    assert client.calls[0]["model"] == "test/fast"
    assert client.calls[0]["turns"] == (Turn(Role.USER, "hello"),)
    assert client.calls[0]["sampling"] is config.sampling

    assert client.calls[1]["model"] == "test/code"
    assert [t.content for t in client.calls[1]["turns"]] == ["hello", "first", "def foo(): pass"]


@pytest.mark.asyncio
async def test_request_reply_trims_after_each_append(config):
    client = FakeCompletionClient()
    session = ConversationSession(client, ModelSelector(config))
    for i in range(MAX_HISTORY):
        session.append_user_turn(f"m{i}")

    await session.request_reply("question")

    # The upstream call already saw a trimmed log.
    assert len(client.calls[0]["turns"]) == MAX_HISTORY
    log = session.get_log()
    assert len(log) == MAX_HISTORY
    assert [t.content for t in log[-2:]] == ["question", "ok"]
    assert log[0].content == "m2"


@pytest.mark.asyncio
async def test_failed_reply_keeps_user_turn_only(session, fake_client, upstream_error):
    session.append_user_turn("earlier")
    fake_client.replies = [upstream_error]

    with pytest.raises(AssistantUnavailableError):
        await session.request_reply("hello")

    assert session.get_log() == (
        Turn(Role.USER, "earlier"),
        Turn(Role.USER, "hello"),
    )


@pytest.mark.asyncio
async def test_failure_hides_upstream_detail(session, fake_client, upstream_error):
    fake_client.replies = [upstream_error]

    with pytest.raises(AssistantUnavailableError) as excinfo:
        await session.request_reply("hello")

    assert str(excinfo.value) == GENERIC_FAILURE_MESSAGE
    assert "secret" not in str(excinfo.value)
    assert excinfo.value.__cause__ is None
    assert excinfo.value.__suppress_context__


@pytest.mark.asyncio
async def test_malformed_response_is_a_failure(session, fake_client):
    fake_client.replies = [MalformedResponseError("no choices")]

    with pytest.raises(AssistantUnavailableError):
        await session.request_reply("hello")

    assert len(session) == 1


@pytest.mark.asyncio
async def test_failure_is_not_retried(session, fake_client):
    fake_client.replies = [OpenRouterError("down"), "never used"]

    with pytest.raises(AssistantUnavailableError):
        await session.request_reply("hello")

    assert len(fake_client.calls) == 1


class SlowClient(FakeCompletionClient):
    async def complete(self, model, turns, sampling=None):
        await asyncio.sleep(0.01)
        return await super().complete(model, turns, sampling)


@pytest.mark.asyncio
async def test_concurrent_exchanges_do_not_interleave(config):
    client = SlowClient(["reply-a", "reply-b"])
    session = ConversationSession(client, ModelSelector(config))

    await asyncio.gather(session.request_reply("a"), session.request_reply("b"))

    contents = [t.content for t in session.get_log()]
    assert contents == ["a", "reply-a", "b", "reply-b"]
    assert [len(call["turns"]) for call in client.calls] == [1, 3]


@pytest.mark.asyncio
async def test_clear_during_pending_reply(config):
    client = SlowClient(["reply-a"])
    session = ConversationSession(client, ModelSelector(config))

    pending = asyncio.create_task(session.request_reply("a"))
    await asyncio.sleep(0)  # let the request reach the upstream call
    assert session._exchange_lock.locked()
    assert len(session) == 1

    session.clear()  # must not wait for the in-flight exchange
    assert len(session) == 0
    assert not pending.done()

    reply = await pending

    assert reply == Turn(Role.ASSISTANT, "reply-a")
    assert [t.content for t in session.get_log()] == ["reply-a"]
    assert client.calls[0]["turns"] == (Turn(Role.USER, "a"),)
