"""Ollama client wrapper and integration layer.

This package provides the async chat client used to talk to the Ollama API
and the per-model client cache. All chat interactions use streaming.
"""

from chat_console.ollama.client import IncompleteResponseError, OllamaChatClient
from chat_console.ollama.registry import ChatClient, ChatClientRegistry

__all__ = [
    "ChatClient",
    "ChatClientRegistry",
    "IncompleteResponseError",
    "OllamaChatClient",
]
