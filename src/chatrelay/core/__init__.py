"""
Core module for chatrelay

Contains configuration, model selection, the OpenRouter client and the
conversation session.
"""

from .api import OpenRouterClient, Turn, Role
from .models import ModelSelector
from .session import ConversationSession
from .config import Config

__all__ = [
    "OpenRouterClient",
    "Turn",
    "Role",
    "ModelSelector",
    "ConversationSession",
    "Config",
]
