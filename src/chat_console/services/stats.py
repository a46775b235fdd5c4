"""Conversation statistics."""

import logging

from pydantic import BaseModel, Field

from chat_console.services.tokens import TokenEstimatorRegistry
from chat_console.sessions.history import ConversationHistory

logger = logging.getLogger(__name__)


class ConversationStats(BaseModel):
    """Size statistics of a conversation history."""

    byte_count: int = Field(description="UTF-8 length of the compact JSON history")
    turn_count: int = Field(description="Number of user messages")
    estimated_token_count: int = Field(
        default=0, description="Estimated tokens of the compact JSON history"
    )
    estimator_available: bool = Field(
        default=True,
        exclude=True,
        description="False when the estimate fell back to 0",
    )


class StatsComputer:
    """Derives statistics from a history without mutating it."""

    def __init__(self, estimators: TokenEstimatorRegistry) -> None:
        self.estimators = estimators

    def compute(self, history: ConversationHistory, model_name: str) -> ConversationStats:
        """Compute byte, turn and token counts.

        Args:
            history: The history to measure
            model_name: Model whose tokenizer estimates the token count

        Returns:
            ConversationStats; the token estimate is 0 when no estimator
            is available for the model
        """
        serialized = history.to_json()
        estimator = self.estimators.resolve(model_name)

        stats = ConversationStats(
            byte_count=len(serialized.encode("utf-8")),
            turn_count=history.user_turn_count(),
            estimated_token_count=estimator.estimate(serialized),
            estimator_available=estimator.available,
        )
        logger.debug(f"Computed stats for model {model_name}: {stats}")
        return stats
