"""Slash-command parsing and dispatch."""

import logging
import re
from dataclasses import dataclass
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

COMMAND_PREFIX = "/"

CommandHandler = Callable[[str | None], Awaitable[None]]

_FIRST_WHITESPACE = re.compile(r"\s")


def parse_command(line: str) -> tuple[str, str | None]:
    """Split a command line into its name and raw argument.

    The name runs from after the prefix to the first whitespace character;
    everything after that character is the argument, spaces included.

    Examples:
        >>> parse_command("/save notes.json")
        ('save', 'notes.json')
        >>> parse_command("/system You are a pirate.")
        ('system', 'You are a pirate.')
        >>> parse_command("/stats")
        ('stats', None)
    """
    body = line[len(COMMAND_PREFIX) :] if line.startswith(COMMAND_PREFIX) else line
    parts = _FIRST_WHITESPACE.split(body, maxsplit=1)
    name = parts[0]
    argument = parts[1] if len(parts) > 1 else None
    return name, argument


@dataclass(frozen=True)
class Command:
    """A registered command."""

    name: str
    handler: CommandHandler
    usage: str = ""


class CommandRegistry:
    """Fixed table from command name to handler.

    Lookups are exact matches; an unknown name resolves to the default
    handler, which must leave all state untouched.
    """

    def __init__(self, default: CommandHandler) -> None:
        self.default = default
        self._commands: dict[str, Command] = {}

    def register(self, name: str, handler: CommandHandler, usage: str = "") -> None:
        if name in self._commands:
            raise ValueError(f"Command '{name}' is already registered")
        self._commands[name] = Command(name=name, handler=handler, usage=usage)

    def get(self, name: str) -> CommandHandler:
        command = self._commands.get(name)
        return command.handler if command is not None else self.default

    @property
    def commands(self) -> list[Command]:
        """Registered commands in registration order."""
        return list(self._commands.values())

    async def dispatch(self, line: str) -> None:
        """Parse a command line and run its handler."""
        name, argument = parse_command(line)
        if name not in self._commands:
            logger.debug(f"Unknown command: {name!r}")
        else:
            logger.debug(f"Dispatching command: {name}")
        await self.get(name)(argument)
