"""Streaming response accumulation and failure reporting.

Shared by the interactive and autonomous rounds.
"""

import logging

import httpx
import ollama

from chat_console.console import Console
from chat_console.ollama.registry import ChatClient
from chat_console.sessions.history import ConversationHistory

logger = logging.getLogger(__name__)

ROLLBACK_NOTICE = "Your last message was not sent due to the error. Please try again."


async def stream_reply(
    client: ChatClient, history: ConversationHistory, console: Console
) -> str:
    """Stream a reply to a history, echoing fragments as they arrive.

    Args:
        client: The client of the current model
        history: The full history to send
        console: Where fragments are written, unbuffered

    Returns:
        The concatenation of all fragments in arrival order

    Raises:
        Exception: Whatever the client raises; nothing is appended to history
    """
    content_parts = []

    async for fragment in client.stream(history.to_dicts()):
        console.write(fragment)
        content_parts.append(fragment)

    reply = "".join(content_parts)
    logger.debug(f"Received complete response: {len(reply)} characters")
    return reply


def report_failure(console: Console, error: Exception, model_name: str, host: str) -> None:
    """Tell the user why a request failed and what to do about it."""
    logger.error(f"Request to model {model_name} at {host} failed: {error!r}")
    console.line()

    if isinstance(error, ollama.ResponseError) and error.status_code == 404:
        console.line(f"Error: Model '{model_name}' was not found on the Ollama server. Details: {error.error}")
        console.line(f"Pull it with 'ollama pull {model_name}' or switch models with '/model <name>'.")
    elif isinstance(error, (ConnectionError, httpx.TransportError)):
        console.line(f"Error: Could not connect to Ollama at {host}. Details: {error}")
        console.line("Please ensure Ollama is running and reachable at that address.")
    else:
        console.line(f"Error: Could not connect to Ollama or process the request. Details: {error}")
        console.line("Please ensure Ollama is running and the model name is correct.")


def rollback_user_message(console: Console, history: ConversationHistory) -> bool:
    """Drop an unanswered trailing user message after a failed request."""
    if history.rollback_user():
        console.line(ROLLBACK_NOTICE)
        return True
    return False
