"""Per-model cache of chat clients."""

import logging
from typing import Any, AsyncIterator, Callable, Protocol

from chat_console.ollama.client import OllamaChatClient
from chat_console.sessions.state import SessionState

logger = logging.getLogger(__name__)


class ChatClient(Protocol):
    """What the engines need from an inference client."""

    async def check_connection(self) -> bool: ...

    def stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]: ...

    async def send(self, messages: list[dict[str, Any]]) -> str: ...


ClientFactory = Callable[[str, str], ChatClient]


class ChatClientRegistry:
    """Builds one chat client per model name and reuses it.

    Entries are created on first use and never evicted, so a session
    that touches many models keeps one client per model for its lifetime.

    Attributes:
        host: The Ollama server URL every client is bound to
        client_factory: Callable building a client from (host, model)
    """

    def __init__(self, host: str, client_factory: ClientFactory | None = None) -> None:
        self.host = host
        self.client_factory: ClientFactory = client_factory or OllamaChatClient
        self._clients: dict[str, ChatClient] = {}

    def get_or_create(self, model_name: str) -> ChatClient:
        """Return the cached client for a model, building it on first use.

        Args:
            model_name: The model to get a client for

        Returns:
            The same client instance for every call with this model name
        """
        client = self._clients.get(model_name)
        if client is None:
            client = self.client_factory(self.host, model_name)
            self._clients[model_name] = client
            logger.info(f"Built chat client for model {model_name}")
        return client

    def current(self, state: SessionState) -> ChatClient:
        """Return the client for the session's current model."""
        return self.get_or_create(state.model_name)
