"""Slash-commands of the chat console."""

from chat_console.commands.handlers import (
    EXIT_COMMAND,
    HELP_COMMAND,
    ChatCommands,
    build_command_registry,
)
from chat_console.commands.registry import (
    COMMAND_PREFIX,
    Command,
    CommandRegistry,
    parse_command,
)

__all__ = [
    "COMMAND_PREFIX",
    "EXIT_COMMAND",
    "HELP_COMMAND",
    "ChatCommands",
    "Command",
    "CommandRegistry",
    "build_command_registry",
    "parse_command",
]
