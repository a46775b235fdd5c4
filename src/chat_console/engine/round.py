"""Interactive round: one line of user input and its response."""

import logging

from chat_console.commands.registry import COMMAND_PREFIX, CommandRegistry
from chat_console.console import Console
from chat_console.engine.streaming import report_failure, rollback_user_message, stream_reply
from chat_console.ollama.registry import ChatClientRegistry
from chat_console.sessions.state import SessionState
from chat_console.sessions.store import ConversationStore

logger = logging.getLogger(__name__)


class RoundEngine:
    """Executes one interactive round per call to run_round().

    A round reads a line; commands are dispatched, anything else is sent
    to the current model as a user message and the reply is streamed back.
    A failed request leaves no trace in the primary history.
    """

    def __init__(
        self,
        store: ConversationStore,
        state: SessionState,
        clients: ChatClientRegistry,
        commands: CommandRegistry,
        console: Console,
    ) -> None:
        self.store = store
        self.state = state
        self.clients = clients
        self.commands = commands
        self.console = console

    async def run_round(self) -> bool:
        """Run one interactive round.

        Returns:
            True to keep the main loop going. Failures are reported and
            still return True; only cancellation stops the loop.
        """
        self.console.line("You:")
        user_input = self.console.read_line()

        if user_input is None:
            logger.info("End of input")
            self.state.request_cancellation()
            return True

        if not user_input.strip():
            return True

        if user_input.startswith(COMMAND_PREFIX):
            await self.commands.dispatch(user_input)
            return True

        await self.converse(user_input)
        return True

    async def converse(self, user_input: str) -> str | None:
        """Send a user message and stream the reply into the primary history.

        Returns:
            The reply, or None if the request failed
        """
        history = self.store.primary
        history.add_user(user_input)
        logger.info(f"Sending {len(history)} messages to model {self.state.model_name}")

        try:
            self.console.line(f"{self.state.model_name}:")
            client = self.clients.current(self.state)
            reply = await stream_reply(client, history, self.console)
            history.add_assistant(reply)
            self.console.line()
        except Exception as e:
            report_failure(self.console, e, self.state.model_name, self.state.endpoint)
            rollback_user_message(self.console, history)
            return None

        self.console.separator()
        return reply
