"""
Banner display for chatrelay

Welcome text shown when the terminal chat or the web server starts.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.align import Align

from ..core.config import Config


def display_welcome_banner(config: Config, version: str, console: Optional[Console] = None):
    """Display the CLI welcome banner"""
    console = console or Console()

    info_text = (
        "[bold blue]🤖 AI Chat Application (CLI Mode)[/bold blue]\n"
        f"[blue]Fast model:[/blue] {config.fast_model}  "
        f"[blue]Code model:[/blue] {config.code_model}  "
        f"[blue]Version:[/blue] v{version}"
    )
    console.print(Panel(Align.center(info_text), border_style="blue", padding=(0, 2)))
    console.print(
        '[dim]Type your message and press Enter. '
        'Type "clear" to clear history, "exit" to quit.[/dim]'
    )
    console.print("[dim]" + "─" * 50 + "[/dim]")


def display_server_banner(host: str, port: int, console: Optional[Console] = None):
    """Display the web server start-up summary"""
    console = console or Console()

    shown_host = "localhost" if host in ("127.0.0.1", "0.0.0.0") else host
    console.print(f"🌐 Web server is running at [bold]http://{shown_host}:{port}[/bold]")
    console.print("📝 API endpoint: POST /api/chat")
    console.print("📚 Get history: GET /api/history")
    console.print("🗑️  Clear history: POST /api/clear")
