"""Process-wide session state for one chat run."""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class SessionState:
    """Mutable settings of the running session.

    Attributes:
        model_name: Model used for every request; changed by /model
        endpoint: Ollama server URL
        autonomous_mode: Whether the main loop runs autonomous rounds
        step_mode: Whether the operator is prompted between autonomous rounds
        cancellation_requested: Set by /bye or end of input; checked at loop top
    """

    model_name: str
    endpoint: str
    autonomous_mode: bool = False
    step_mode: bool = True
    cancellation_requested: bool = False

    def request_cancellation(self) -> None:
        self.cancellation_requested = True
        logger.debug("Cancellation requested")
