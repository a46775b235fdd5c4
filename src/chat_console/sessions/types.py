"""Data types for conversation histories.

This module defines the role-tagged message types exchanged with the model.
Messages are immutable; editing a message means constructing a new one.
"""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class SystemMessage:
    """A system prompt message."""

    role: str = field(default="system", init=False)
    content: str = ""


@dataclass(frozen=True)
class UserMessage:
    """A message from the user (or from the other persona in autonomous mode)."""

    role: str = field(default="user", init=False)
    content: str = ""


@dataclass(frozen=True)
class AssistantMessage:
    """A response from the model."""

    role: str = field(default="assistant", init=False)
    content: str = ""


# Union type for all message types
Message = SystemMessage | UserMessage | AssistantMessage

MESSAGE_TYPES: dict[str, type[Message]] = {
    "system": SystemMessage,
    "user": UserMessage,
    "assistant": AssistantMessage,
}
