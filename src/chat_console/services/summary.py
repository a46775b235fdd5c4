"""Conversation compaction through a model-generated summary."""

import logging

from chat_console.ollama.registry import ChatClient
from chat_console.sessions.history import ConversationHistory
from chat_console.sessions.store import ConversationStore
from chat_console.sessions.types import SystemMessage, UserMessage

logger = logging.getLogger(__name__)

SUMMARY_PROMPT = (
    "You are an AI agent dedicated to summarizing conversation histories provided to you. "
    "You generate detailed summaries that capture the full context of the\n"
    "conversation. You respond in plain text."
)


class SummaryCompactor:
    """Replaces the primary history with a summary of itself.

    The compaction is destructive: once it succeeds the turn-by-turn
    history is gone and only the original system prompt plus the summary
    remain.
    """

    def __init__(self, store: ConversationStore, summary_prompt: str = SUMMARY_PROMPT) -> None:
        self.store = store
        self.summary_prompt = summary_prompt

    def build_request(self) -> ConversationHistory:
        """Build the one-shot summarization history."""
        return ConversationHistory(
            [
                SystemMessage(content=self.summary_prompt),
                UserMessage(content=self.store.primary.to_json()),
            ]
        )

    async def summarize(self, client: ChatClient) -> str | None:
        """Summarize the primary history and compact it on success.

        Args:
            client: The client of the current model

        Returns:
            The summary text, or None if the model returned nothing (in
            which case the history is unchanged)

        Raises:
            Exception: If the request fails; the history is unchanged
        """
        request = self.build_request()
        logger.info(f"Summarizing {len(self.store.primary)} messages")

        summary = await client.send(request.to_dicts())

        if not summary or not summary.strip():
            logger.warning("Model returned an empty summary")
            return None

        self.store.compact(summary)
        return summary
