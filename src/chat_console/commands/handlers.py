"""Handlers for the slash-commands.

Each handler reports its own failures to the console and leaves the
conversation state unchanged when it cannot complete.
"""

import json
import logging
from datetime import datetime
from pathlib import Path

from chat_console.commands.registry import COMMAND_PREFIX, CommandRegistry
from chat_console.console import Console
from chat_console.engine.streaming import report_failure
from chat_console.ollama.registry import ChatClientRegistry
from chat_console.services.stats import StatsComputer
from chat_console.services.summary import SummaryCompactor
from chat_console.sessions.history import ConversationHistory
from chat_console.sessions.state import SessionState
from chat_console.sessions.store import ConversationStore

logger = logging.getLogger(__name__)

EXIT_COMMAND = "bye"
HELP_COMMAND = "help"


def default_save_name(now: datetime | None = None) -> str:
    """Timestamped file name used by /save without an argument."""
    return f"chat_{(now or datetime.now()):%Y%m%d_%H%M%S}.json"


class ChatCommands:
    """The command handlers of one chat run.

    Attributes:
        store: The conversation histories
        state: The session state
        clients: The per-model client cache
        stats: Computes /stats output
        compactor: Performs /summarize
        console: Where results and errors are reported
    """

    def __init__(
        self,
        store: ConversationStore,
        state: SessionState,
        clients: ChatClientRegistry,
        stats: StatsComputer,
        compactor: SummaryCompactor,
        console: Console,
    ) -> None:
        self.store = store
        self.state = state
        self.clients = clients
        self.stats = stats
        self.compactor = compactor
        self.console = console
        self.registry: CommandRegistry | None = None

    async def save(self, file_name: str | None) -> None:
        """Serialize the primary history to a JSON file."""
        if file_name is None or not file_name.strip():
            file_path = Path.cwd() / default_save_name()
        else:
            file_path = Path(file_name)

        try:
            saved_path = self.store.primary.save(file_path)
        except OSError as e:
            logger.error(f"Failed to save conversation to {file_path}: {e}")
            self.console.line(f"Failed to save conversation to {file_path}: {e}")
            return

        self.console.line(f"Conversation saved to {saved_path}")

    async def load(self, file_name: str | None) -> None:
        """Replace the primary history with one loaded from a JSON file."""
        if file_name is None or not file_name.strip():
            self.console.line("File name is required for loading a conversation.")
            return

        file_path = Path(file_name).resolve()

        try:
            loaded = ConversationHistory.load(file_path)
        except FileNotFoundError:
            self.console.line(f"File not found: {file_name}")
            return
        except json.JSONDecodeError as e:
            self.console.line(f"Error deserializing file: {e}")
            return
        except ValueError as e:
            self.console.line(f"Failed to load conversation from {file_path}. Invalid file format: {e}")
            return
        except OSError as e:
            self.console.line(f"Failed to read {file_path}: {e}")
            return

        self.store.primary.replace(loaded)
        logger.info(f"Loaded {len(loaded)} messages from {file_path}")

        last = self.store.primary.last()
        self.console.line(f"Conversation loaded from {file_path}")
        if last is not None:
            self.console.line(f"Last message ({last.role}):")
            self.console.line(last.content)

    async def show_stats(self, _: str | None) -> None:
        """Print byte, turn and token counts of the primary history."""
        stats = self.stats.compute(self.store.primary, self.state.model_name)
        if not stats.estimator_available:
            self.console.warning(
                f"The token estimator for model {self.state.model_name} is not initialized. "
                "Token estimate reported as 0."
            )
        self.console.line(stats.model_dump_json(indent=2))

    async def change_model(self, model_name: str | None) -> None:
        """Switch the current model, building or reusing its client."""
        if model_name is None or not model_name.strip():
            self.console.line("New model name is required.")
            return

        self.state.model_name = model_name.strip()
        self.clients.get_or_create(self.state.model_name)

        self.console.line(f"Model changed to: {self.state.model_name}")

    async def forget(self, _: str | None) -> None:
        """Reset the primary history to the original system prompt."""
        self.store.forget()
        self.console.line("Conversation history cleared.")

    async def summarize(self, _: str | None) -> None:
        """Compact the primary history into a model-generated summary."""
        try:
            summary = await self.compactor.summarize(self.clients.current(self.state))
        except Exception as e:
            report_failure(self.console, e, self.state.model_name, self.state.endpoint)
            self.console.separator()
            return

        if summary is None:
            self.console.line("Failed to generate summary.")
        else:
            self.console.line(summary)
        self.console.separator()

    async def replace_system_prompt(self, prompt: str | None) -> None:
        """Replace (or insert) the system message at index 0."""
        if prompt is None or not prompt.strip():
            self.console.line("New system prompt is required.")
            return

        self.store.primary.set_system_prompt(prompt)
        self.console.line("System prompt replaced.")

    async def enable_autonomous(self, _: str | None) -> None:
        self.console.line("Activating autonomous mode.")
        self.state.autonomous_mode = True

    async def exit(self, _: str | None) -> None:
        self.console.line("Exiting chat.")
        self.state.request_cancellation()

    async def help(self, _: str | None) -> None:
        self.console.line("Available commands:")
        if self.registry is not None:
            for command in self.registry.commands:
                self.console.line(f"\t{COMMAND_PREFIX}{command.usage}")

    async def unknown(self, _: str | None) -> None:
        self.console.line(
            f"Unknown command. Type '{COMMAND_PREFIX}{HELP_COMMAND}' for a list of commands "
            f"or '{COMMAND_PREFIX}{EXIT_COMMAND}' to end the conversation."
        )


def build_command_registry(commands: ChatCommands) -> CommandRegistry:
    """Create the fixed command table for a set of handlers."""
    registry = CommandRegistry(default=commands.unknown)

    registry.register(
        "save",
        commands.save,
        "save [filename] - Save the current conversation to a file. "
        "If no filename is provided, a default name will be used.",
    )
    registry.register("load", commands.load, "load <filename> - Load a conversation from a file.")
    registry.register("stats", commands.show_stats, "stats - Display conversation statistics.")
    registry.register("model", commands.change_model, "model <modelname> - Change the current model.")
    registry.register("forget", commands.forget, "forget - Clear the conversation history.")
    registry.register(
        "summarize",
        commands.summarize,
        "summarize - Summarize and truncate the conversation history.",
    )
    registry.register("system", commands.replace_system_prompt, "system <prompt> - Replace the system prompt.")
    registry.register("auto", commands.enable_autonomous, "auto - Enter autonomous mode.")
    registry.register(EXIT_COMMAND, commands.exit, f"{EXIT_COMMAND} - Exit the application.")
    registry.register(HELP_COMMAND, commands.help, f"{HELP_COMMAND} - Show this help message.")

    commands.registry = registry
    return registry
