"""Chat application factory and main loop.

This module contains the create_app() factory function that builds every
component of a chat run from settings, and the ChatApp main loop that
performs one interactive or autonomous round per iteration until
cancellation is requested.
"""

import logging

from chat_console.commands import (
    COMMAND_PREFIX,
    EXIT_COMMAND,
    HELP_COMMAND,
    ChatCommands,
    CommandRegistry,
    build_command_registry,
)
from chat_console.config import ChatConsoleSettings
from chat_console.console import SEPARATOR, Console
from chat_console.engine import AutonomousEngine, RoundEngine
from chat_console.ollama import ChatClientRegistry
from chat_console.ollama.registry import ClientFactory
from chat_console.services import StatsComputer, SummaryCompactor, build_estimator_registry
from chat_console.services.tokens import TokenEstimatorRegistry
from chat_console.sessions import ConversationStore, SessionState

logger = logging.getLogger(__name__)

AUTO_COMMAND = "auto"
DIRECT_COMMAND = "direct"


class ChatApp:
    """A chat run: the conversation state plus the engines that drive it.

    Attributes:
        settings: The configuration the run was built from
        state: Session state shared by every component
        store: The primary and agent histories
        clients: Per-model client cache
        commands: The slash-command table
        rounds: Interactive round engine
        autonomous: Autonomous round engine
        console: Terminal I/O
    """

    def __init__(
        self,
        settings: ChatConsoleSettings,
        state: SessionState,
        store: ConversationStore,
        clients: ChatClientRegistry,
        commands: CommandRegistry,
        rounds: RoundEngine,
        autonomous: AutonomousEngine,
        console: Console,
    ) -> None:
        self.settings = settings
        self.state = state
        self.store = store
        self.clients = clients
        self.commands = commands
        self.rounds = rounds
        self.autonomous = autonomous
        self.console = console

    def print_banner(self) -> None:
        self.console.line(f"Starting chat with Ollama compatible model: {self.state.model_name}")
        self.console.line(f"Type '{COMMAND_PREFIX}{EXIT_COMMAND}' to end the conversation.")
        self.console.line(
            "Ensure Ollama is running and the specified model is available "
            f"at {self.state.endpoint}."
        )
        self.console.line(f"Type '{COMMAND_PREFIX}{HELP_COMMAND}' for a list of available commands.")
        self.console.line(SEPARATOR)

    async def check_connection(self) -> bool:
        """Check once that the endpoint is reachable; never aborts startup."""
        connected = await self.clients.current(self.state).check_connection()
        if connected:
            logger.info("Successfully connected to Ollama")
        else:
            logger.warning("Could not connect to Ollama - check if server is running")
            self.console.warning(
                f"Could not reach Ollama at {self.state.endpoint}. "
                "Requests will fail until it is running."
            )
        return connected

    async def step_prompt(self) -> tuple[bool, str | None]:
        """Ask the operator what to do before the next autonomous round.

        Returns:
            (run_round, direction): whether an autonomous round should run
            now, and the direction to give it
        """
        self.console.line(f"Type '{COMMAND_PREFIX}{AUTO_COMMAND}' to exit autonomous mode")
        self.console.line(f"Type '{COMMAND_PREFIX}{DIRECT_COMMAND}' followed by a prompt to direct the agent")

        user_input = self.console.read_line()

        if user_input is None:
            self.state.request_cancellation()
            return False, None

        if not user_input.strip():
            return True, None

        lowered = user_input.lower()

        if lowered.startswith(COMMAND_PREFIX + AUTO_COMMAND):
            self.state.autonomous_mode = False
            self.console.line("Exiting autonomous mode.")
            return False, None

        if lowered.startswith(COMMAND_PREFIX + DIRECT_COMMAND):
            direction = user_input[len(COMMAND_PREFIX + DIRECT_COMMAND) :].strip()
            return True, direction or None

        if user_input.startswith(COMMAND_PREFIX):
            await self.commands.dispatch(user_input)
            return False, None

        return True, None

    async def run_iteration(self) -> bool:
        """Perform one loop iteration.

        Returns:
            False if the loop should stop
        """
        direction = None

        if self.state.autonomous_mode and self.state.step_mode:
            run_round, direction = await self.step_prompt()
            if not run_round:
                return True

        if self.state.autonomous_mode:
            return await self.autonomous.run_round(direction)
        return await self.rounds.run_round()

    async def run(self) -> None:
        """Run rounds until cancellation is requested."""
        self.print_banner()

        if self.settings.check_connection:
            await self.check_connection()

        while not self.state.cancellation_requested:
            if not await self.run_iteration():
                break

        logger.info("Chat loop finished")


def create_app(
    settings: ChatConsoleSettings | None = None,
    console: Console | None = None,
    client_factory: ClientFactory | None = None,
    estimators: TokenEstimatorRegistry | None = None,
) -> ChatApp:
    """Create and wire a ChatApp.

    Args:
        settings: Optional settings. If not provided, settings are loaded
                  from the environment and appsettings.json.
        console: Optional console; defaults to stdin/stdout
        client_factory: Optional factory building a chat client from
                  (host, model); defaults to OllamaChatClient
        estimators: Optional token estimator registry; defaults to the
                  Llama 3 file estimator plus a cl100k_base fallback

    Returns:
        ChatApp: The wired application
    """
    if settings is None:
        settings = ChatConsoleSettings()
    if console is None:
        console = Console()
    if estimators is None:
        estimators = build_estimator_registry(settings.resolved_tokenizer_path)

    state = SessionState(
        model_name=settings.model,
        endpoint=settings.ollama_host,
        autonomous_mode=settings.autonomous_mode,
        step_mode=settings.step_mode,
    )
    store = ConversationStore(
        system_prompt=settings.system_prompt,
        agent_prompt=settings.agent_prompt,
    )
    clients = ChatClientRegistry(host=settings.ollama_host, client_factory=client_factory)
    clients.get_or_create(state.model_name)

    handlers = ChatCommands(
        store=store,
        state=state,
        clients=clients,
        stats=StatsComputer(estimators),
        compactor=SummaryCompactor(store),
        console=console,
    )
    commands = build_command_registry(handlers)

    return ChatApp(
        settings=settings,
        state=state,
        store=store,
        clients=clients,
        commands=commands,
        rounds=RoundEngine(store, state, clients, commands, console),
        autonomous=AutonomousEngine(store, state, clients, console),
        console=console,
    )
