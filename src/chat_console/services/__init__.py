"""Services operating on the conversation histories.

This package contains the statistics, summarization and token estimation
services used by the chat commands.
"""

from chat_console.services.stats import ConversationStats, StatsComputer
from chat_console.services.summary import SUMMARY_PROMPT, SummaryCompactor
from chat_console.services.tokens import (
    TiktokenEstimator,
    TokenEstimator,
    TokenEstimatorRegistry,
    build_estimator_registry,
)

__all__ = [
    "ConversationStats",
    "StatsComputer",
    "SUMMARY_PROMPT",
    "SummaryCompactor",
    "TiktokenEstimator",
    "TokenEstimator",
    "TokenEstimatorRegistry",
    "build_estimator_registry",
]
