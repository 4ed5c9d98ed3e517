"""
Model Selection for chatrelay

Picks which upstream model answers a message: messages that look like code,
or long messages, go to the code model; everything else goes to the fast one.
"""

import re
from enum import Enum

import structlog

from .config import Config

logger = structlog.get_logger(__name__)


LONG_MESSAGE_THRESHOLD = 300

CODE_HINTS = re.compile(
    r"```"
    r"|</?\w+>"
    r"|\bfunction\b|\bclass\b|\bdef\b|\bimport\b"
    r"|console\.log"
    r"|\bcode\b|\bкод\b"
    r"|\bscript\b",
    re.IGNORECASE,
)


class ModelKind(Enum):
    """Which configured model a message should be sent to"""
    CODE = "code"
    FAST = "fast"


def classify_message(message: str) -> ModelKind:
    """Classify a message. Total and deterministic; empty text is FAST."""
    if CODE_HINTS.search(message):
        return ModelKind.CODE
    if len(message) > LONG_MESSAGE_THRESHOLD:
        return ModelKind.CODE
    return ModelKind.FAST


class ModelSelector:
    """
    Maps message text to a configured model identifier
    """

    def __init__(self, config: Config):
        self.models = {
            ModelKind.CODE: config.code_model,
            ModelKind.FAST: config.fast_model,
        }

    def select_model(self, message: str) -> str:
        kind = classify_message(message)
        model = self.models[kind]
        logger.debug("Model selected", kind=kind.value, model=model, length=len(message))
        return model
