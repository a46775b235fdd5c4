"""Pytest configuration and shared fixtures for chat-console tests.

This module provides common fixtures used across all test modules,
including a scripted fake chat client, in-memory consoles, and isolated
settings.
"""

import io

import pytest

from chat_console.config import ChatConsoleSettings
from chat_console.console import Console
from chat_console.ollama import ChatClientRegistry
from chat_console.sessions import ConversationStore, SessionState


class FakeChatClient:
    """Chat client returning scripted replies.

    Each queued reply is either a list of fragments or an exception. A
    fragment list may itself contain an exception, which is raised after
    the fragments before it have been yielded.
    """

    def __init__(self, host: str = "http://localhost:11434", model: str = "test-model"):
        self.host = host
        self.model = model
        self.connected = True
        self.replies: list = []
        self.requests: list[list[dict]] = []

    def queue(self, *replies) -> None:
        self.replies.extend(replies)

    def _next_reply(self, messages):
        self.requests.append([dict(m) for m in messages])
        reply = self.replies.pop(0) if self.replies else [""]
        if isinstance(reply, Exception):
            raise reply
        return reply

    async def check_connection(self) -> bool:
        return self.connected

    async def stream(self, messages):
        for fragment in self._next_reply(messages):
            if isinstance(fragment, Exception):
                raise fragment
            yield fragment

    async def send(self, messages) -> str:
        return "".join(self._next_reply(messages))


class StubEstimator:
    """Token estimator returning a fixed count."""

    def __init__(self, count: int = 0, available: bool = True):
        self.count = count
        self._available = available
        self.texts: list[str] = []

    @property
    def available(self) -> bool:
        return self._available

    def estimate(self, text: str) -> int:
        self.texts.append(text)
        return self.count if self._available else 0


@pytest.fixture
def make_console():
    """Factory for consoles reading the given lines from an in-memory stdin."""

    def _make(*lines: str) -> Console:
        stdin = io.StringIO("".join(f"{line}\n" for line in lines))
        return Console(stdin=stdin, stdout=io.StringIO())

    return _make


@pytest.fixture
def console(make_console):
    """A console with no input."""
    return make_console()


@pytest.fixture
def fake_client():
    return FakeChatClient()


@pytest.fixture
def clients(fake_client):
    """Client registry that hands out the fake client for every model."""
    return ChatClientRegistry(
        host="http://localhost:11434",
        client_factory=lambda host, model: fake_client,
    )


@pytest.fixture
def state():
    return SessionState(model_name="test-model", endpoint="http://localhost:11434")


@pytest.fixture
def store():
    return ConversationStore(system_prompt="You are helpful.", agent_prompt="You are curious.")


@pytest.fixture
def test_settings(tmp_path, monkeypatch):
    """Create test settings isolated from the environment and working directory.

    Args:
        tmp_path: Pytest fixture providing a temporary directory.
        monkeypatch: Pytest fixture used to change the working directory.

    Returns:
        ChatConsoleSettings: Settings instance configured for testing.
    """
    monkeypatch.chdir(tmp_path)
    return ChatConsoleSettings(
        ollama_host="http://localhost:11434",
        model="test-model",
        system_prompt="You are helpful.",
        agent_prompt="You are curious.",
        autonomous_mode=False,
        step_mode=True,
        check_connection=True,
        data_dir=str(tmp_path),
        log_level="DEBUG",
    )


@pytest.fixture
def make_fake_client():
    """Factory for additional fake clients."""
    return FakeChatClient


@pytest.fixture
def make_estimator():
    """Factory for stub token estimators."""
    return StubEstimator
