"""
Interactive Mode for chatrelay

Line-based terminal chat. One question is pending at a time.
"""

from typing import Callable, Optional

from rich.console import Console
from rich.prompt import Prompt
import structlog

from ..core.config import Config
from ..core.session import AssistantUnavailableError, ConversationSession
from .formatting import RichFormatter

logger = structlog.get_logger(__name__)


EXIT_COMMAND = "exit"
CLEAR_COMMAND = "clear"


class InteractiveMode:
    """
    Interactive terminal interface for chatrelay
    """

    def __init__(
        self,
        config: Config,
        session: ConversationSession,
        console: Optional[Console] = None,
        read_line: Optional[Callable[[], str]] = None,
    ):
        self.config = config
        self.session = session

        self.console = console or Console()
        self.formatter = RichFormatter(config, self.console)
        self.read_line = read_line or self._prompt

        self.running = True

    def _prompt(self) -> str:
        self.console.print()
        return Prompt.ask("[bold blue]You[/bold blue]", console=self.console, default="", show_default=False)

    async def start(self):
        """Run the read-reply loop until 'exit', EOF or Ctrl+C"""
        while self.running:
            try:
                user_input = self.read_line()
            except (KeyboardInterrupt, EOFError):
                self.console.print()
                break

            try:
                await self.handle_input(user_input)
            except Exception as e:
                self.formatter.display_error(f"Error: {e}")
                logger.error("Interactive mode error", error=str(e), exc_info=True)

        self.console.print("👋 Goodbye!")

    async def handle_input(self, raw: str):
        """Dispatch one line of input"""
        user_input = raw.strip()
        command = user_input.lower()

        if command == EXIT_COMMAND:
            self.running = False
            return

        if command == CLEAR_COMMAND:
            self.session.clear()
            self.formatter.display_success("Conversation history cleared")
            return

        if not user_input:
            return

        self.formatter.display_info("⏳ Waiting for response...")
        try:
            reply = await self.session.request_reply(user_input)
        except AssistantUnavailableError as e:
            self.formatter.display_error(str(e))
            return

        self.formatter.display_assistant_message(reply.content)
