"""Autonomous round: the model talks to itself as two personas.

The primary history is the user-facing transcript; the agent history is
the other persona's view of the same dialogue with user and assistant
roles inverted. Each round feeds the latest reply of one side into the
other, so the dialogue continues until the operator leaves autonomous
mode or cancels.
"""

import logging

from chat_console.console import Console
from chat_console.engine.streaming import report_failure, rollback_user_message, stream_reply
from chat_console.ollama.registry import ChatClientRegistry
from chat_console.sessions.state import SessionState
from chat_console.sessions.store import ConversationStore

logger = logging.getLogger(__name__)

DEFAULT_GREETING = "Hello."
DIRECTION_LABEL = "direction: "


class AutonomousEngine:
    """Executes one autonomous round per call to run_round()."""

    def __init__(
        self,
        store: ConversationStore,
        state: SessionState,
        clients: ChatClientRegistry,
        console: Console,
    ) -> None:
        self.store = store
        self.state = state
        self.clients = clients
        self.console = console

    def seed(self, direction: str | None) -> str:
        """Open the dialogue on a fresh primary history.

        The opening line is what the primary side receives as user input
        and what the agent side considers its own first utterance.

        Returns:
            The opening message
        """
        opening = direction or DEFAULT_GREETING
        self.store.primary.add_user(opening)
        self.store.agent.add_assistant(opening)
        logger.info("Seeded autonomous dialogue")

        self.console.line(f"Agent:\n{opening}\n")
        return opening

    async def run_round(self, direction: str | None = None) -> bool:
        """Run one autonomous round.

        Args:
            direction: Operator-supplied steer. On a fresh history it
                becomes the opening message; later it is injected into the
                agent side as a labeled message and the primary side is
                not queried this round.

        Returns:
            True to keep the main loop going, including after failures
        """
        primary = self.store.primary
        agent = self.store.agent
        agent_before = agent.messages

        if self.store.is_fresh():
            self.seed(direction)
            direction = None

        primary_before = primary.messages

        model_name = self.state.model_name
        self.console.line(f"{model_name}:")

        try:
            client = self.clients.current(self.state)

            if direction is None:
                response = await stream_reply(client, primary, self.console)
                primary.add_assistant(response)
            else:
                response = DIRECTION_LABEL + direction
                logger.info("Injecting operator direction into the agent history")

            agent.add_user(response)

            self.console.line(f"\n\nAgent ({model_name}):")
            reply = await stream_reply(client, agent, self.console)

            agent.add_assistant(reply)
            primary.add_user(reply)
            self.console.line()
        except Exception as e:
            report_failure(self.console, e, model_name, self.state.endpoint)
            # Primary drops its latest user message; agent returns to its state at round start
            primary.replace(primary_before)
            rollback_user_message(self.console, primary)
            agent.replace(agent_before)
            return True

        self.console.separator()
        return True
