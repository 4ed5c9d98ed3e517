"""
Rich Formatting for chatrelay

Renders assistant replies, errors and notices in the terminal.
"""

import re
from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.markdown import Markdown
import structlog

from ..core.config import Config

logger = structlog.get_logger(__name__)


MARKDOWN_PATTERNS = [
    r"```",
    r"^#{1,6}\s",
    r"^\s*[-*+]\s",
    r"^\s*\d+\.\s",
    r"\*\*[^*]+\*\*",
    r"`[^`]+`",
    r"\[[^\]]+\]\([^)]+\)",
]


class RichFormatter:
    """
    Rich terminal formatter for chatrelay
    """

    def __init__(self, config: Config, console: Optional[Console] = None):
        self.config = config
        self.console = console or Console()

    def display_assistant_message(self, content: str):
        """Display an assistant reply, rendered as markdown when it looks like markdown"""
        body = content
        if self.config.ui.rich_formatting and self._contains_markdown(content):
            body = Markdown(content)

        self.console.print(Panel(
            body,
            title="[bold green]AI[/bold green]",
            border_style="green",
            padding=(0, 1),
        ))

    def display_error(self, message: str):
        """Display error message"""
        self.console.print(Panel(
            f"[red]{message}[/red]",
            title="[bold red]Error[/bold red]",
            border_style="red",
            padding=(0, 1),
        ))

    def display_info(self, message: str):
        self.console.print(f"[dim]{message}[/dim]")

    def display_success(self, message: str):
        self.console.print(f"[green]✓ {message}[/green]")

    @staticmethod
    def _contains_markdown(content: str) -> bool:
        return any(re.search(pattern, content, re.MULTILINE) for pattern in MARKDOWN_PATTERNS)
