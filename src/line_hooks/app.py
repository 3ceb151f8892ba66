"""Application orchestrator - wires all components and manages lifecycle."""

from __future__ import annotations

import httpx
from fastapi import FastAPI

from line_hooks.ai.client import CompletionClient, create_completion_client
from line_hooks.ai.orchestrator import AnalysisOrchestrator
from line_hooks.api.factory import create_app
from line_hooks.config import AppConfig, validate_config
from line_hooks.content.fetcher import ContentFetcher, LineContentFetcher
from line_hooks.dispatch.dedupe import InMemoryDedupePolicy, ProcessAllPolicy, RedeliveryPolicy
from line_hooks.dispatch.dispatcher import EventDispatcher
from line_hooks.log import get_logger
from line_hooks.messenger.base import Messenger
from line_hooks.messenger.line import LineMessenger

logger = get_logger(__name__)


class LineHooksApp:
    """Top-level application: owns the transports and exposes the HTTP app.

    Collaborators can be passed in to replace the platform and AI transports
    (tests do this); by default they are built from *config*.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        fetcher: ContentFetcher | None = None,
        messenger: Messenger | None = None,
        completion: CompletionClient | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.config = config
        self._owns_http_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(config.line.timeout))
        self.fetcher = fetcher or LineContentFetcher(config.line, self.http_client)
        self.messenger = messenger or LineMessenger(config.line, self.http_client)
        self.completion = completion or create_completion_client(
            config.ai, config.openai, config.anthropic
        )
        self.orchestrator = AnalysisOrchestrator(
            self.fetcher, self.completion, self.messenger, config.ai
        )
        self.dispatcher = EventDispatcher(
            self.orchestrator,
            redelivery_policy=self._create_redelivery_policy(),
            max_concurrent_workflows=config.dispatch.max_concurrent_workflows,
        )
        self.api: FastAPI = create_app(config, self.dispatcher, on_shutdown=self.stop)

        for warning in validate_config(config):
            logger.warning("config_warning", detail=warning)
        logger.info(
            "line_hooks_configured",
            environment=config.server.environment,
            ai_backend=config.ai.backend,
            model=self.completion.model_name,
            dedupe_redeliveries=config.dispatch.dedupe_redeliveries,
            max_concurrent_workflows=config.dispatch.max_concurrent_workflows,
        )

    def _create_redelivery_policy(self) -> RedeliveryPolicy:
        if self.config.dispatch.dedupe_redeliveries:
            return InMemoryDedupePolicy(self.config.dispatch.dedupe_max_entries)
        return ProcessAllPolicy()

    async def stop(self) -> None:
        """Drain in-flight workflows and close owned transports."""
        await self.dispatcher.wait_idle()
        if self._owns_http_client:
            await self.http_client.aclose()
        logger.info("line_hooks_stopped")
