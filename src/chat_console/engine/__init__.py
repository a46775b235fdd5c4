"""Round engines driving the conversation.

This package contains the interactive and autonomous round engines and
the streaming helpers they share.
"""

from chat_console.engine.autonomous import AutonomousEngine
from chat_console.engine.round import RoundEngine
from chat_console.engine.streaming import report_failure, stream_reply

__all__ = [
    "AutonomousEngine",
    "RoundEngine",
    "report_failure",
    "stream_reply",
]
