"""chat-console: interactive terminal chat client for Ollama models.

This package provides a line-oriented chat loop with conversation history,
streamed responses, slash-commands, and an autonomous mode in which the
model holds a dialogue with itself.
"""

from chat_console.app import ChatApp, create_app

__version__ = "0.1.0"

__all__ = ["ChatApp", "create_app", "__version__"]
