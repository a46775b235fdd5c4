"""Conversation state for chat-console.

This package provides the message types, the conversation histories with
their JSON persistence, and the per-run session state.
"""

from chat_console.sessions.history import ConversationHistory
from chat_console.sessions.state import SessionState
from chat_console.sessions.store import ConversationStore
from chat_console.sessions.types import (
    AssistantMessage,
    Message,
    SystemMessage,
    UserMessage,
)

__all__ = [
    # Core classes
    "ConversationHistory",
    "ConversationStore",
    "SessionState",
    # Message types
    "Message",
    "UserMessage",
    "SystemMessage",
    "AssistantMessage",
]
