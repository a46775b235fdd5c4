"""Async Ollama chat client bound to one model.

This module provides an async wrapper around the ollama.AsyncClient for
chatting with a single model. Constructing a client performs no I/O; the
first connection error surfaces when send() or stream() is awaited.
"""

import logging
from typing import Any, AsyncIterator

import ollama

logger = logging.getLogger(__name__)


class IncompleteResponseError(RuntimeError):
    """Raised when a chat stream ends without its completion marker."""


def _chunk_to_dict(chunk: Any) -> dict[str, Any]:
    """Convert a streamed chat chunk to a plain dict."""
    if hasattr(chunk, "model_dump"):
        return chunk.model_dump()
    if isinstance(chunk, dict):
        return chunk
    return vars(chunk)


def _chunk_content(chunk: dict[str, Any]) -> str:
    """Get the text fragment carried by a chunk ("" when it has none)."""
    message = chunk.get("message") or {}
    return message.get("content") or ""


class OllamaChatClient:
    """Async client for chatting with one Ollama model.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
        model: The model every request is sent to (e.g., "gemma3:12b")
        _client: The underlying ollama.AsyncClient instance
    """

    def __init__(self, host: str, model: str) -> None:
        """Initialize the chat client.

        Args:
            host: The Ollama server URL
            model: The model name requests are bound to
        """
        self.host = host
        self.model = model
        self._client = ollama.AsyncClient(host=host)
        logger.info(f"OllamaChatClient initialized for model {model} at {host}")

    async def check_connection(self) -> bool:
        """Check if the Ollama server is reachable.

        Returns:
            bool: True if connection is successful, False otherwise
        """
        try:
            await self._client.list()
            logger.debug("Ollama connection check: successful")
            return True
        except Exception as e:
            logger.warning(f"Ollama connection check failed: {e}")
            return False

    async def stream(self, messages: list[dict[str, Any]]) -> AsyncIterator[str]:
        """Stream the text fragments of a chat response.

        Fragments are yielded in the order Ollama produces them; empty
        fragments (such as the final done chunk) are skipped.

        Args:
            messages: List of message dicts in Ollama format:
                      [{"role": "user", "content": "..."}, ...]

        Yields:
            str: Each non-empty content fragment

        Raises:
            Exception: If the Ollama API request fails

        Example:
            >>> async for fragment in client.stream(
            ...     [{"role": "user", "content": "Hello"}]
            ... ):
            ...     print(fragment, end="")
        """
        async for chunk in self._chat_chunks(messages):
            content = _chunk_content(chunk)
            if content:
                yield content

    async def send(self, messages: list[dict[str, Any]]) -> str:
        """Get a complete chat response.

        The response is collected from the streaming API, matching the way
        interactive rounds talk to the model.

        Args:
            messages: List of message dicts in Ollama format

        Returns:
            str: The complete response text

        Raises:
            IncompleteResponseError: If the stream ends without a done marker
            Exception: If the Ollama API request fails
        """
        content_parts = []
        final_chunk = None

        async for chunk in self._chat_chunks(messages):
            content = _chunk_content(chunk)
            if content:
                content_parts.append(content)
            if chunk.get("done"):
                final_chunk = chunk

        if final_chunk is None:
            raise IncompleteResponseError("Stream ended without completion marker")

        return "".join(content_parts)

    async def _chat_chunks(
        self, messages: list[dict[str, Any]]
    ) -> AsyncIterator[dict[str, Any]]:
        try:
            logger.debug(f"Starting chat stream with model: {self.model}")
            logger.debug(f"Message count: {len(messages)}")

            async for chunk in await self._client.chat(
                model=self.model,
                messages=messages,
                stream=True,
            ):
                chunk_dict = _chunk_to_dict(chunk)

                logger.debug(
                    f"Received chunk: done={chunk_dict.get('done')}, "
                    f"content_length={len(_chunk_content(chunk_dict))}"
                )

                yield chunk_dict

            logger.debug("Chat stream completed")

        except Exception as e:
            logger.error(f"Chat stream failed: {e}")
            raise
