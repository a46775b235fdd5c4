"""ConversationStore holding the primary and agent histories."""

import logging

from chat_console.sessions.history import ConversationHistory
from chat_console.sessions.types import SystemMessage

logger = logging.getLogger(__name__)

SUMMARY_HEADER = "\n\nSummary of the conversation so far:\n"


class ConversationStore:
    """The two conversation histories of one chat run.

    ``primary`` is the user-facing transcript sent to the model in every
    round. ``agent`` is only used in autonomous mode, where it mirrors the
    primary history with user and assistant roles inverted.

    Attributes:
        system_prompt: The configured system prompt, restored by forget()
        agent_prompt: The configured agent prompt seeding the agent history
        primary: The primary conversation history
        agent: The agent-side conversation history
    """

    def __init__(self, system_prompt: str = "", agent_prompt: str = ""):
        self.system_prompt = system_prompt
        self.agent_prompt = agent_prompt
        self.primary = ConversationHistory.seeded(system_prompt)
        self.agent = ConversationHistory.seeded(agent_prompt)

    def is_fresh(self) -> bool:
        """True when the primary history holds only its seed message."""
        return len(self.primary) == 1

    def forget(self) -> None:
        """Reset the primary history to the original system prompt.

        The agent history mirrors the primary one, so it is reset as well
        and the next autonomous round seeds both sides again.
        """
        self.primary.replace([SystemMessage(content=self.system_prompt)])
        self.reset_agent()
        logger.info("Primary history reset to the original system prompt")

    def reset_agent(self) -> None:
        """Reset the agent history to the agent prompt."""
        self.agent.replace([SystemMessage(content=self.agent_prompt)])
        logger.debug("Agent history reset")

    def compact(self, summary: str) -> None:
        """Collapse the primary history into one system message carrying a summary.

        Args:
            summary: Model-generated summary of the conversation so far
        """
        content = f"{self.system_prompt}{SUMMARY_HEADER}{summary}"
        self.primary.replace([SystemMessage(content=content)])
        logger.info(f"Primary history compacted into a {len(content)} character system prompt")
