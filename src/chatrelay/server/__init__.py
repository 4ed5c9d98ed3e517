"""
Server module for chatrelay

FastAPI app exposing the conversation session over HTTP.
"""

from .app import create_app

__all__ = [
    "create_app",
]
