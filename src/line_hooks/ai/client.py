"""Completion client abstraction with OpenAI and Anthropic backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

import httpx

from line_hooks.ai.conversation import (
    AnalysisRequest,
    build_anthropic_messages,
    build_openai_messages,
)
from line_hooks.config import AIConfig, AnthropicConfig, OpenAIConfig
from line_hooks.core.errors import CompletionError
from line_hooks.log import get_logger

logger = get_logger(__name__)


class CompletionClient(ABC):
    """Abstract base class for AI backends."""

    def __init__(self, ai_config: AIConfig):
        self._model = ai_config.model
        self._fallback_text = ai_config.fallback_text

    @property
    def model_name(self) -> str:
        return self._model

    @abstractmethod
    async def _create(self, request: AnalysisRequest) -> str | None:
        """Call the provider and return the generated text, if any."""
        ...

    async def complete(self, request: AnalysisRequest) -> str:
        """Run one completion.

        An empty or missing response yields the configured fallback text.

        Raises:
            CompletionError: The provider call failed.
        """
        logger.debug(
            "completion_request",
            model=self._model,
            has_image=request.image_data_uri is not None,
            max_output_tokens=request.max_output_tokens,
        )
        text = await self._create(request)
        if not text:
            logger.warning("completion_empty", model=self._model)
            return self._fallback_text
        return text


class OpenAICompletionClient(CompletionClient):
    """OpenAI chat-completions backend using the official SDK."""

    def __init__(self, ai_config: AIConfig, config: OpenAIConfig, client: Any = None):
        super().__init__(ai_config)
        if client is None:
            import openai

            client = openai.AsyncOpenAI(
                api_key=config.api_key,
                base_url=config.base_url,
                max_retries=config.max_retries,
                timeout=config.timeout,
            )
        self._client = client

    async def _create(self, request: AnalysisRequest) -> str | None:
        import openai

        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=build_openai_messages(request),
                max_completion_tokens=request.max_output_tokens,
            )
        except (openai.APIError, httpx.HTTPError) as e:
            logger.error("completion_failed", model=self._model, error=str(e))
            raise CompletionError(f"Failed to get completion from OpenAI: {e}") from e

        if not response.choices:
            return None
        usage = getattr(response, "usage", None)
        if usage is not None:
            logger.debug(
                "completion_response",
                model=self._model,
                input_tokens=usage.prompt_tokens,
                output_tokens=usage.completion_tokens,
            )
        return response.choices[0].message.content


class AnthropicCompletionClient(CompletionClient):
    """Anthropic Messages API backend using the official SDK."""

    def __init__(self, ai_config: AIConfig, config: AnthropicConfig, client: Any = None):
        super().__init__(ai_config)
        if client is None:
            import anthropic

            client = anthropic.AsyncAnthropic(
                api_key=config.api_key,
                base_url=config.base_url,
                max_retries=config.max_retries,
                timeout=config.timeout,
            )
        self._client = client

    async def _create(self, request: AnalysisRequest) -> str | None:
        import anthropic

        kwargs: dict[str, Any] = {
            "model": self._model,
            "max_tokens": request.max_output_tokens,
            "messages": build_anthropic_messages(request),
        }
        if request.system_instruction:
            kwargs["system"] = request.system_instruction

        try:
            response = await self._client.messages.create(**kwargs)
        except (anthropic.APIError, httpx.HTTPError) as e:
            logger.error("completion_failed", model=self._model, error=str(e))
            raise CompletionError(f"Failed to get completion from Anthropic: {e}") from e

        logger.debug(
            "completion_response",
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            stop_reason=response.stop_reason,
        )
        texts = [block.text for block in response.content if block.type == "text"]
        return "\n".join(texts)


def create_completion_client(
    ai_config: AIConfig,
    openai_config: OpenAIConfig,
    anthropic_config: AnthropicConfig,
) -> CompletionClient:
    """Create a completion client for the configured backend."""
    match ai_config.backend:
        case "openai":
            return OpenAICompletionClient(ai_config, openai_config)
        case "anthropic":
            return AnthropicCompletionClient(ai_config, anthropic_config)
        case _:
            raise ValueError(f"Unknown AI backend: {ai_config.backend}")
