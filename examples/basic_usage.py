#!/usr/bin/env python3
"""
Basic usage example for chatrelay

Sends two messages through a ConversationSession programmatically and prints
the resulting history.
"""

import asyncio
import sys
from pathlib import Path

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from chatrelay.core.config import Config, ConfigError
from chatrelay.core.api import OpenRouterClient
from chatrelay.core.models import ModelSelector
from chatrelay.core.session import AssistantUnavailableError, ConversationSession


async def main():
    """Basic usage example"""
    print("chatrelay - Basic Usage Example")
    print("=" * 40)

    try:
        config = Config()
    except ConfigError as e:
        print(f"✗ {e}")
        return

    print("✓ Configuration loaded")
    print(f"  Fast model: {config.fast_model}")
    print(f"  Code model: {config.code_model}")

    async with OpenRouterClient(config) as client:
        session = ConversationSession(client, ModelSelector(config), sampling=config.sampling)

        for message in ("Hello! Who are you?", "Write a Python function that reverses a string."):
            print(f"\nYou: {message}")
            try:
                reply = await session.request_reply(message)
            except AssistantUnavailableError as e:
                print(f"✗ {e}")
                continue
            print(f"AI: {reply.content}")

        print(f"\nHistory length: {len(session)}")
        for turn in session.get_log():
            print(f"  [{turn.role.value}] {turn.content[:60]}")


if __name__ == "__main__":
    asyncio.run(main())
