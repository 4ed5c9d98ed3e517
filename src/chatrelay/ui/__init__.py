"""
UI module for chatrelay

Contains the interactive terminal mode and rich formatting components.
"""

from .interactive import InteractiveMode
from .formatting import RichFormatter

__all__ = [
    "InteractiveMode",
    "RichFormatter",
]
