"""
Session Management for chatrelay

Holds the bounded, ordered conversation log that is replayed to the model on
every request. Nothing is persisted; the log lives as long as the process.
"""

import asyncio
from typing import List, Optional, Tuple

import structlog

from .api import OpenRouterClient, OpenRouterError, Role, Turn
from .config import SamplingConfig
from .models import ModelSelector

logger = structlog.get_logger(__name__)


MAX_HISTORY = 10

GENERIC_FAILURE_MESSAGE = "Failed to get a response from the assistant"


class AssistantUnavailableError(Exception):
    """The assistant could not produce a reply. Carries no upstream detail."""

    def __init__(self, message: str = GENERIC_FAILURE_MESSAGE):
        super().__init__(message)


class ConversationSession:
    """
    Owns the conversation log and the only operations that mutate it.

    The log never holds more than ``max_history`` turns after an append
    completes; the oldest turns are dropped first.
    """

    def __init__(
        self,
        client: OpenRouterClient,
        selector: ModelSelector,
        sampling: Optional[SamplingConfig] = None,
        max_history: int = MAX_HISTORY,
    ):
        if max_history < 1:
            raise ValueError("max_history must be at least 1")
        self.client = client
        self.selector = selector
        self.sampling = sampling
        self.max_history = max_history

        self._turns: List[Turn] = []
        self._exchange_lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self._turns)

    def _append(self, turn: Turn):
        self._turns.append(turn)
        self._trim()

    def _trim(self):
        if len(self._turns) > self.max_history:
            dropped = max(1, len(self._turns) - self.max_history)
            del self._turns[:dropped]
            logger.debug("History trimmed", dropped=dropped, remaining=len(self._turns))

    def append_user_turn(self, text: str):
        """Append a user turn, trimming the oldest turns if over the cap"""
        self._append(Turn(role=Role.USER, content=text))

    async def request_reply(self, text: str) -> Turn:
        """
        Append ``text`` as a user turn, ask the model for a reply and append
        it as an assistant turn.

        On failure the user turn stays in the log, no assistant turn is added
        and AssistantUnavailableError is raised.
        """
        async with self._exchange_lock:
            self.append_user_turn(text)
            model = self.selector.select_model(text)

            try:
                content = await self.client.complete(model, self.get_log(), self.sampling)
            except OpenRouterError as e:
                logger.error(
                    "OpenRouter API error",
                    model=model,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                raise AssistantUnavailableError() from None

            reply = Turn(role=Role.ASSISTANT, content=content)
            self._append(reply)
            logger.info("Reply received", model=model, history_length=len(self._turns))
            return reply

    def clear(self):
        """Empty the log in place"""
        self._turns.clear()
        logger.info("Conversation history cleared")

    def get_log(self) -> Tuple[Turn, ...]:
        """Snapshot of the log, oldest first"""
        return tuple(self._turns)
