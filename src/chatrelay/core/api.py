"""
OpenRouter API Client for chatrelay

Sends the conversation log to the OpenRouter chat-completions endpoint and
returns the assistant's reply text.
"""

import json
from typing import Dict, List, Optional, Any, Sequence
from dataclasses import dataclass
from enum import Enum

import httpx
import structlog

from .config import Config, SamplingConfig

logger = structlog.get_logger(__name__)


class Role(str, Enum):
    """Roles a turn can have"""
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    """One message unit of the conversation"""
    role: Role
    content: str

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role.value, "content": self.content}


class OpenRouterError(Exception):
    """Base exception for OpenRouter API errors"""
    pass


class AuthenticationError(OpenRouterError):
    """Authentication failed"""
    pass


class RateLimitError(OpenRouterError):
    """Rate limit exceeded"""
    pass


class ModelNotFoundError(OpenRouterError):
    """Model not found or not available"""
    pass


class MalformedResponseError(OpenRouterError):
    """Response body is not a usable completion"""
    pass


class OpenRouterClient:
    """
    OpenRouter API client. One request per call: no retries, no throttling.
    """

    def __init__(self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.sampling = config.sampling

        self.client = httpx.AsyncClient(
            base_url=config.api.base_url,
            headers={
                "Authorization": f"Bearer {config.openrouter_api_key}",
                "HTTP-Referer": config.api.referer,
                "X-Title": config.api.app_title,
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(config.api_timeout),
            transport=transport,
        )

        logger.info("OpenRouter client initialized", base_url=config.api.base_url)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the HTTP client"""
        await self.client.aclose()

    def _build_payload(
        self, model: str, turns: Sequence[Turn], sampling: SamplingConfig
    ) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": self.serialize_turns(turns),
            **sampling.as_payload(),
        }

    async def complete(
        self,
        model: str,
        turns: Sequence[Turn],
        sampling: Optional[SamplingConfig] = None,
    ) -> str:
        """
        Request a completion for ``turns`` from ``model`` and return the
        assistant text. Raises an OpenRouterError subclass on any failure.
        """
        if not turns:
            raise ValueError("Turns cannot be empty")

        payload = self._build_payload(model, turns, sampling or self.sampling)

        try:
            response = await self.client.post(
                "/chat/completions",
                json=payload,
                headers={"X-Model-Used": model},
            )
        except httpx.HTTPError as e:
            raise OpenRouterError(f"Request failed: {e}") from e

        if response.status_code == 401:
            raise AuthenticationError(f"Invalid API key: {response.text}")
        if response.status_code == 429:
            raise RateLimitError(f"Rate limit exceeded: {response.text}")
        if response.status_code == 404:
            raise ModelNotFoundError(f"Model not found or not available: {model}: {response.text}")
        if not response.is_success:
            raise OpenRouterError(f"HTTP {response.status_code}: {response.text}")

        content = self._extract_content(response)
        logger.debug("Completion received", model=model, length=len(content))
        return content

    @staticmethod
    def _extract_content(response: httpx.Response) -> str:
        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise MalformedResponseError(f"Response is not JSON: {response.text[:200]}") from e

        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise MalformedResponseError(f"Response has no choices[0].message.content: {data}") from e

        if not isinstance(content, str):
            raise MalformedResponseError(f"Completion content is not text: {content!r}")
        return content

    @staticmethod
    def serialize_turns(turns: Sequence[Turn]) -> List[Dict[str, str]]:
        return [turn.to_dict() for turn in turns]
