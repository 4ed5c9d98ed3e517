"""
chatrelay - OpenRouter chat relay

A small chat front-end that relays messages to OpenRouter and renders the
reply, either in an interactive terminal loop or in a browser UI served by a
FastAPI app.
"""

__version__ = "1.0.0"

from .core.api import OpenRouterClient
from .core.models import ModelSelector
from .core.session import ConversationSession
from .core.config import Config

__all__ = [
    "OpenRouterClient",
    "ModelSelector",
    "ConversationSession",
    "Config",
]
