"""ConversationHistory class for managing an ordered message history.

This module provides the ConversationHistory class which handles:
- Appending user and assistant messages
- Rolling back an unanswered user message after a failed request
- Replacing or inserting the system prompt at index 0
- Converting messages to the Ollama wire format
- Saving and loading histories as JSON arrays of {role, content} objects
"""

import json
import logging
from collections.abc import Iterable, Iterator
from dataclasses import asdict
from pathlib import Path
from typing import Any

from chat_console.sessions.types import (
    MESSAGE_TYPES,
    AssistantMessage,
    Message,
    SystemMessage,
    UserMessage,
)

logger = logging.getLogger(__name__)


def _message_from_dict(data: Any) -> Message:
    """Convert a dictionary to the appropriate Message type.

    Args:
        data: Message data as a dictionary

    Returns:
        Appropriate Message dataclass instance

    Raises:
        ValueError: If the entry is not an object, the role is unknown,
            or the content is not a string
    """
    if not isinstance(data, dict):
        raise ValueError(f"Expected a message object, got {type(data).__name__}")

    role = data.get("role")
    message_type = MESSAGE_TYPES.get(role) if isinstance(role, str) else None
    if message_type is None:
        raise ValueError(f"Unknown message role: {role}")

    content = data.get("content", "")
    if not isinstance(content, str):
        raise ValueError(f"Message content must be a string, got {type(content).__name__}")

    return message_type(content=content)


class ConversationHistory:
    """An ordered sequence of role-tagged messages.

    The order is exactly what gets sent to the model. By convention index 0
    holds a system message; this class does not enforce it, callers restore
    it explicitly (see ConversationStore.forget).
    """

    def __init__(self, messages: Iterable[Message] | None = None):
        self._messages: list[Message] = list(messages or [])

    @classmethod
    def seeded(cls, system_prompt: str) -> "ConversationHistory":
        """Create a history holding only a system message."""
        return cls([SystemMessage(content=system_prompt)])

    @property
    def messages(self) -> list[Message]:
        """Return a snapshot of the messages."""
        return list(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(list(self._messages))

    def __getitem__(self, index: int) -> Message:
        return self._messages[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConversationHistory):
            return NotImplemented
        return self._messages == other._messages

    def __repr__(self) -> str:
        return f"ConversationHistory({self._messages!r})"

    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def add_user(self, content: str) -> UserMessage:
        message = UserMessage(content=content)
        self._messages.append(message)
        return message

    def add_assistant(self, content: str) -> AssistantMessage:
        message = AssistantMessage(content=content)
        self._messages.append(message)
        return message

    def rollback_user(self) -> bool:
        """Remove the last message if it is an unanswered user message.

        Returns:
            True if a message was removed, False otherwise
        """
        if self._messages and isinstance(self._messages[-1], UserMessage):
            self._messages.pop()
            return True
        return False

    def replace(self, messages: Iterable[Message]) -> None:
        """Replace the whole history in place."""
        self._messages = list(messages)

    def has_system_prompt(self) -> bool:
        """Check if the first message is a system message."""
        return len(self._messages) > 0 and isinstance(self._messages[0], SystemMessage)

    def set_system_prompt(self, content: str) -> None:
        """Set or update the system prompt.

        If a system prompt already exists (at index 0), it will be replaced.
        If no system prompt exists, a new one will be added at index 0.
        The rest of the history is kept.

        Args:
            content: The content of the system prompt
        """
        system_message = SystemMessage(content=content)

        if self.has_system_prompt():
            self._messages[0] = system_message
            logger.debug("Replaced system prompt")
        else:
            self._messages.insert(0, system_message)
            logger.debug("Added system prompt")

    def user_turn_count(self) -> int:
        """Count the user messages in the history."""
        return sum(1 for message in self._messages if isinstance(message, UserMessage))

    def to_dicts(self) -> list[dict[str, str]]:
        """Convert messages to Ollama API format.

        Returns:
            List of message dicts: [{"role": "...", "content": "..."}, ...]
        """
        return [asdict(message) for message in self._messages]

    def to_json(self, indent: int | None = None) -> str:
        """Serialize the history to a JSON array.

        Args:
            indent: Indentation for pretty output; compact output when None

        Returns:
            JSON text
        """
        if indent is None:
            return json.dumps(self.to_dicts(), ensure_ascii=False, separators=(",", ":"))
        return json.dumps(self.to_dicts(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_dicts(cls, data: Any) -> "ConversationHistory":
        """Build a history from a parsed JSON array.

        Raises:
            ValueError: If data is not a non-empty list of valid messages
        """
        if data is None:
            raise ValueError("Conversation data is empty")
        if not isinstance(data, list):
            raise ValueError(f"Expected a JSON array of messages, got {type(data).__name__}")
        if not data:
            raise ValueError("Conversation contains no messages")

        return cls(_message_from_dict(item) for item in data)

    def save(self, file_path: Path) -> Path:
        """Save the history to a pretty-printed JSON file.

        Args:
            file_path: Destination path

        Returns:
            The absolute path written to
        """
        file_path = file_path.resolve()
        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, "w", encoding="utf-8") as f:
            f.write(self.to_json(indent=2))

        logger.debug(f"Saved {len(self._messages)} messages to {file_path}")
        return file_path

    @classmethod
    def load(cls, file_path: Path) -> "ConversationHistory":
        """Load a history from a JSON file.

        Args:
            file_path: Path to a file written by save()

        Returns:
            Loaded ConversationHistory instance

        Raises:
            FileNotFoundError: If the file doesn't exist
            json.JSONDecodeError: If the file is not valid JSON
            ValueError: If the JSON is not a non-empty list of messages
        """
        if not file_path.is_file():
            raise FileNotFoundError(f"File not found: {file_path}")

        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        history = cls.from_dicts(data)
        logger.debug(f"Loaded {len(history)} messages from {file_path}")
        return history
