"""
Configuration Management for chatrelay

Loads settings once at startup from a .env file, an optional YAML file and the
process environment, then validates them.
"""

import os
from pathlib import Path
from typing import Dict, List, Optional, Any
from dataclasses import dataclass
import yaml
from dotenv import load_dotenv

import structlog

logger = structlog.get_logger(__name__)

# Levels understood by both stdlib logging and uvicorn.
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ConfigError(ValueError):
    """Configuration is missing or invalid"""
    pass


@dataclass
class APIConfig:
    """API configuration"""
    openrouter_key: str = ""
    base_url: str = "https://openrouter.ai/api/v1"
    referer: str = "http://localhost:3000"
    app_title: str = "AI Chat App"
    timeout: float = 30.0


@dataclass
class ModelConfig:
    """Model identifiers used by the selector"""
    default: str = "gpt-4o-mini"
    code: str = "gpt-4"
    fast: str = ""  # empty means "same as default"


@dataclass
class SamplingConfig:
    """Decoding parameters sent unchanged with every completion request"""
    temperature: float = 0.7
    top_p: float = 1.0
    top_k: int = 0
    repetition_penalty: float = 1.0
    max_tokens: int = 1024

    def as_payload(self) -> Dict[str, Any]:
        return {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "repetition_penalty": self.repetition_penalty,
            "max_tokens": self.max_tokens,
        }


@dataclass
class ServerConfig:
    """HTTP server configuration"""
    host: str = "127.0.0.1"
    port: int = 3000


@dataclass
class UIConfig:
    """UI configuration"""
    rich_formatting: bool = True


@dataclass
class LoggingConfig:
    """Logging configuration"""
    level: str = "WARNING"


class Config:
    """
    Main configuration class. Built once by the entry point and passed
    explicitly to the client, the selector and the delivery surfaces.
    """

    def __init__(self, config_path: Optional[Path] = None, load_env_file: bool = True):
        self.config_path = config_path

        if load_env_file:
            load_dotenv()

        self.api = APIConfig()
        self.models = ModelConfig()
        self.sampling = SamplingConfig()
        self.server = ServerConfig()
        self.ui = UIConfig()
        self.logging = LoggingConfig()

        self._load_config()
        self._validate_config()

        logger.info(
            "Configuration loaded",
            config_path=str(self.config_path) if self.config_path else None,
            default_model=self.default_model,
            code_model=self.code_model,
            fast_model=self.fast_model,
        )

    def _load_config(self):
        """Load configuration from file and environment variables"""
        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigError(f"Configuration file not found: {self.config_path}")
            try:
                with open(self.config_path, 'r', encoding='utf-8') as f:
                    config_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid configuration file {self.config_path}: {e}") from e
            if not isinstance(config_data, dict):
                raise ConfigError(f"Configuration file {self.config_path} must contain a mapping")
            self._apply_config_data(config_data)
            logger.debug("Configuration loaded from file")

        self._load_from_environment()

    def _apply_config_data(self, config_data: Dict[str, Any]):
        """Apply configuration data to config objects"""
        sections = {
            "api": self.api,
            "models": self.models,
            "sampling": self.sampling,
            "server": self.server,
            "ui": self.ui,
            "logging": self.logging,
        }
        for name, section in sections.items():
            values = config_data.get(name) or {}
            if not isinstance(values, dict):
                raise ConfigError(
                    f"Section '{name}' in {self.config_path} must be a mapping, got {type(values).__name__}"
                )
            for key, value in values.items():
                if hasattr(section, key):
                    setattr(section, key, value)
                else:
                    logger.warning("Unknown configuration key ignored", section=name, key=key)

    def _load_from_environment(self):
        """Load configuration from environment variables"""
        env_key = os.getenv("OPENROUTER_API_KEY")
        if env_key:
            self.api.openrouter_key = env_key

        if os.getenv("OPENROUTER_API_URL"):
            self.api.base_url = os.getenv("OPENROUTER_API_URL")
        if os.getenv("CHATRELAY_REFERER"):
            self.api.referer = os.getenv("CHATRELAY_REFERER")
        if os.getenv("CHATRELAY_APP_TITLE"):
            self.api.app_title = os.getenv("CHATRELAY_APP_TITLE")
        if os.getenv("CHATRELAY_TIMEOUT"):
            self.api.timeout = self._parse_number("CHATRELAY_TIMEOUT", float)

        if os.getenv("OPENROUTER_MODEL"):
            self.models.default = os.getenv("OPENROUTER_MODEL")
        if os.getenv("OPENROUTER_CODE_MODEL"):
            self.models.code = os.getenv("OPENROUTER_CODE_MODEL")
        if os.getenv("OPENROUTER_FAST_MODEL"):
            self.models.fast = os.getenv("OPENROUTER_FAST_MODEL")

        if os.getenv("HOST"):
            self.server.host = os.getenv("HOST")
        if os.getenv("PORT"):
            self.server.port = self._parse_number("PORT", int)

        if os.getenv("CHATRELAY_LOG_LEVEL"):
            self.logging.level = os.getenv("CHATRELAY_LOG_LEVEL")

    @staticmethod
    def _parse_number(name: str, kind):
        raw = os.getenv(name, "")
        try:
            return kind(raw)
        except ValueError:
            raise ConfigError(f"{name} must be a number, got {raw!r}") from None

    def _validate_config(self):
        """Validate configuration settings"""
        errors: List[str] = []

        if not self.api.openrouter_key:
            errors.append(
                "OPENROUTER_API_KEY is not set "
                "(create a .env file with OPENROUTER_API_KEY=your_api_key_here)"
            )

        # Accept either the API base or the full completions URL.
        base_url = str(self.api.base_url).rstrip("/")
        if base_url.endswith("/chat/completions"):
            base_url = base_url[: -len("/chat/completions")]
        if not base_url.startswith(("http://", "https://")):
            errors.append(f"API URL must be http(s): {self.api.base_url}")
        self.api.base_url = base_url

        if not self.models.default:
            errors.append("Default model must not be empty")
        if not self.models.code:
            errors.append("Code model must not be empty")

        numeric_fields = [
            (self.api, "timeout", float),
            (self.server, "port", int),
            (self.sampling, "temperature", float),
            (self.sampling, "top_p", float),
            (self.sampling, "top_k", int),
            (self.sampling, "repetition_penalty", float),
            (self.sampling, "max_tokens", int),
        ]
        for section, name, kind in numeric_fields:
            self._coerce_number(section, name, kind, errors)

        if isinstance(self.api.timeout, float) and self.api.timeout <= 0:
            errors.append("API timeout must be positive")

        if isinstance(self.server.port, int) and not 0 < self.server.port < 65536:
            errors.append(f"Port out of range: {self.server.port}")

        if isinstance(self.sampling.max_tokens, int) and self.sampling.max_tokens <= 0:
            errors.append("max_tokens must be positive")

        level = str(self.logging.level).upper()
        if level not in LOG_LEVELS:
            errors.append(f"Unknown log level {self.logging.level!r} (expected one of {', '.join(LOG_LEVELS)})")
        else:
            self.logging.level = level

        if errors:
            error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {error}" for error in errors)
            logger.error("Configuration validation failed", errors=errors)
            raise ConfigError(error_msg)

    @staticmethod
    def _coerce_number(section, name: str, kind, errors: List[str]):
        """Convert a numeric setting in place, recording an error if it is not a number"""
        value = getattr(section, name)
        if isinstance(value, bool):
            errors.append(f"{name} must be a number, got {value!r}")
            return
        try:
            setattr(section, name, kind(value))
        except (TypeError, ValueError):
            errors.append(f"{name} must be a number, got {value!r}")

    @property
    def openrouter_api_key(self) -> str:
        """Get OpenRouter API key"""
        return self.api.openrouter_key

    @property
    def default_model(self) -> str:
        return self.models.default

    @property
    def code_model(self) -> str:
        return self.models.code

    @property
    def fast_model(self) -> str:
        """Fast model, falling back to the default model when unset"""
        return self.models.fast or self.models.default

    @property
    def api_timeout(self) -> float:
        return self.api.timeout

    def masked_api_key(self) -> str:
        key = self.api.openrouter_key
        if len(key) <= 8:
            return "*" * len(key)
        return f"{key[:4]}...{key[-4:]}"
