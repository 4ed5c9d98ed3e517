"""Shared fixtures: an isolated Config and a fake completion client."""

import pytest

from chatrelay.core.api import OpenRouterError
from chatrelay.core.config import Config
from chatrelay.core.models import ModelSelector
from chatrelay.core.session import ConversationSession


ENV_VARS = [
    "OPENROUTER_API_KEY",
    "OPENROUTER_API_URL",
    "OPENROUTER_MODEL",
    "OPENROUTER_CODE_MODEL",
    "OPENROUTER_FAST_MODEL",
    "CHATRELAY_REFERER",
    "CHATRELAY_APP_TITLE",
    "CHATRELAY_TIMEOUT",
    "CHATRELAY_LOG_LEVEL",
    "HOST",
    "PORT",
]


class FakeCompletionClient:
    """Stands in for OpenRouterClient; replies are consumed in order."""

    def __init__(self, replies=None):
        self.replies = list(replies or [])
        self.calls = []
        self.closed = False

    async def complete(self, model, turns, sampling=None):
        self.calls.append({"model": model, "turns": tuple(turns), "sampling": sampling})
        reply = self.replies.pop(0) if self.replies else "ok"
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def close(self):
        self.closed = True


@pytest.fixture
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def config(clean_env):
    clean_env.setenv("OPENROUTER_API_KEY", "sk-test-1234567890")
    clean_env.setenv("OPENROUTER_MODEL", "test/default")
    clean_env.setenv("OPENROUTER_CODE_MODEL", "test/code")
    clean_env.setenv("OPENROUTER_FAST_MODEL", "test/fast")
    return Config(load_env_file=False)


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def session(config, fake_client):
    return ConversationSession(fake_client, ModelSelector(config), sampling=config.sampling)


@pytest.fixture
def upstream_error():
    return OpenRouterError("HTTP 502: {\"error\": \"secret upstream detail\"}")
