"""Configuration loader with YAML parsing, env-var interpolation, and Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field

APP_VERSION = "1.0.0"

DEFAULT_PERSONA = "ครูเพ็ญศรวย"
DEFAULT_FALLBACK_TEXT = "ครูเพ็ญศรวยสมองแตกแล้วจ้า"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class ServerConfig(_Frozen):
    host: str = "0.0.0.0"
    port: int = 3000
    environment: str = "development"
    cors_origin: str = "*"


class LineConfig(_Frozen):
    channel_access_token: str = ""
    api_base: str = "https://api.line.me"
    data_api_base: str = "https://api-data.line.me"
    timeout: float = 30.0
    # Use the content response's Content-Type header as the MIME hint
    use_response_content_type: bool = False


class AIConfig(_Frozen):
    backend: str = "openai"  # "openai" | "anthropic"
    model: str = "gpt-5-mini"
    persona_name: str = DEFAULT_PERSONA
    fallback_text: str = DEFAULT_FALLBACK_TEXT


class OpenAIConfig(_Frozen):
    api_key: str = ""
    base_url: Optional[str] = None
    max_retries: int = 2
    timeout: float = 60.0


class AnthropicConfig(_Frozen):
    api_key: str = ""
    base_url: Optional[str] = None
    max_retries: int = 2
    timeout: float = 60.0


class DispatchConfig(_Frozen):
    dedupe_redeliveries: bool = False
    dedupe_max_entries: int = 10000
    max_concurrent_workflows: Optional[int] = Field(default=None, ge=1)


class AppConfig(_Frozen):
    log_level: str = "INFO"
    log_json: bool = False
    server: ServerConfig = Field(default_factory=ServerConfig)
    line: LineConfig = Field(default_factory=LineConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    openai: OpenAIConfig = Field(default_factory=OpenAIConfig)
    anthropic: AnthropicConfig = Field(default_factory=AnthropicConfig)
    dispatch: DispatchConfig = Field(default_factory=DispatchConfig)

    @property
    def is_development(self) -> bool:
        return self.server.environment == "development"


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values."""

    def _replace(match: re.Match) -> str:
        value = os.environ.get(match.group(1))
        if value is None:
            return match.group(0)
        return value

    return _ENV_VAR_PATTERN.sub(_replace, text)


def config_from_env(environ: dict[str, str] | None = None) -> AppConfig:
    """Build configuration from environment variables alone.

    Every option has a default, so an empty environment yields a usable
    (if unauthenticated) configuration.
    """
    env = os.environ if environ is None else environ
    data: dict = {
        "log_level": env.get("LOG_LEVEL", "INFO"),
        "server": {
            "port": int(env.get("PORT", "3000")),
            "environment": env.get("NODE_ENV") or env.get("APP_ENV") or "development",
            "cors_origin": env.get("CORS_ORIGIN", "*"),
        },
        "line": {
            "channel_access_token": env.get("MESSAGING_API_CHANNEL_ACCESS_TOKEN", ""),
        },
        "ai": {"backend": env.get("AI_BACKEND", "openai")},
        "openai": {"api_key": env.get("OPENAI_API_KEY", "")},
        "anthropic": {"api_key": env.get("ANTHROPIC_API_KEY", "")},
    }
    if env.get("HOST"):
        data["server"]["host"] = env["HOST"]
    if env.get("AI_MODEL"):
        data["ai"]["model"] = env["AI_MODEL"]
    return AppConfig(**data)


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load and validate configuration.

    The YAML file is optional: when it is missing, configuration comes from
    environment variables (see :func:`config_from_env`).
    """
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if not config_file.exists():
        return config_from_env()

    raw_text = config_file.read_text(encoding="utf-8")
    data = yaml.safe_load(_interpolate_env_vars(raw_text)) or {}
    return AppConfig(**data)


def _is_unset(value: str) -> bool:
    # Uninterpolated placeholders count as missing
    return not value or _ENV_VAR_PATTERN.fullmatch(value) is not None


def validate_config(config: AppConfig) -> list[str]:
    """Return warnings for settings that degrade the service without stopping it."""
    warnings: list[str] = []
    if _is_unset(config.line.channel_access_token):
        warnings.append(
            "Missing MESSAGING_API_CHANNEL_ACCESS_TOKEN: content fetch and replies will fail"
        )
    backend = config.ai.backend
    if backend == "openai" and _is_unset(config.openai.api_key):
        warnings.append("Missing OPENAI_API_KEY: AI completions will fail")
    elif backend == "anthropic" and _is_unset(config.anthropic.api_key):
        warnings.append("Missing ANTHROPIC_API_KEY: AI completions will fail")
    return warnings
