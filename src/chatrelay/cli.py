"""
Main CLI interface for chatrelay

Starts either the interactive terminal chat or the web server, using the
Click framework with rich terminal output.
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
import uvicorn
from rich.console import Console
from rich.table import Table

from . import __version__
from .core.config import Config, ConfigError
from .core.api import OpenRouterClient
from .core.models import ModelSelector
from .core.session import ConversationSession
from .server.app import create_app
from .ui.banner import display_server_banner, display_welcome_banner
from .ui.interactive import InteractiveMode
from .utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger(__name__)


def build_session(config: Config) -> ConversationSession:
    """Wire the client, selector and session from one Config"""
    client = OpenRouterClient(config)
    selector = ModelSelector(config)
    return ConversationSession(client, selector, sampling=config.sampling)


def load_config(config_path: Optional[str]) -> Config:
    try:
        return Config(Path(config_path) if config_path else None)
    except ConfigError as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


@click.group(invoke_without_command=True)
@click.option('--web', '-w', is_flag=True, help='Run the web server instead of the terminal chat')
@click.option('--host', help='Interface for the web server to bind')
@click.option('--port', '-p', type=int, help='Port for the web server')
@click.option('--config', '-c', type=click.Path(), help='YAML configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.version_option(__version__, prog_name="chatrelay")
@click.pass_context
def main(ctx, web: bool, host: Optional[str], port: Optional[int],
         config: Optional[str], verbose: bool, debug: bool):
    """AI chat relay for OpenRouter

    Chats in the terminal by default; with --web serves a browser UI and
    a small JSON API instead.
    """
    flag_level = "DEBUG" if debug else ("INFO" if verbose else None)
    setup_logging(flag_level or "WARNING")

    app_config = load_config(config)
    if flag_level:
        app_config.logging.level = flag_level
    elif app_config.logging.level.upper() != "WARNING":
        setup_logging(app_config.logging.level)

    if host:
        app_config.server.host = host
    if port:
        app_config.server.port = port

    ctx.ensure_object(dict)
    ctx.obj['config'] = app_config

    if ctx.invoked_subcommand is not None:
        return

    if web:
        run_web_server(app_config)
    else:
        asyncio.run(start_interactive_mode(app_config))


@main.command()
@click.pass_context
def config_info(ctx):
    """Show the resolved configuration"""
    config: Config = ctx.obj['config']

    table = Table(title="chatrelay configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("API URL", config.api.base_url)
    table.add_row("API key", config.masked_api_key())
    table.add_row("Default model", config.default_model)
    table.add_row("Code model", config.code_model)
    table.add_row("Fast model", config.fast_model)
    for name, value in config.sampling.as_payload().items():
        table.add_row(name, str(value))
    table.add_row("Server", f"{config.server.host}:{config.server.port}")

    console.print(table)


async def start_interactive_mode(config: Config):
    """Start interactive mode"""
    display_welcome_banner(config, __version__, console)

    session = build_session(config)
    try:
        await InteractiveMode(config, session, console).start()
    finally:
        await session.client.close()


def run_web_server(config: Config):
    """Serve the browser UI and JSON API until interrupted"""
    session = build_session(config)
    app = create_app(session)

    display_server_banner(config.server.host, config.server.port, console)
    logger.info("Starting web server", host=config.server.host, port=config.server.port)

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    main()
