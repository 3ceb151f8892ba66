"""Shared pytest fixtures for line-hooks tests."""

import pytest

from helpers import FakeCompletion, FakeFetcher, FakeMessenger
from line_hooks.ai.orchestrator import AnalysisOrchestrator
from line_hooks.config import AIConfig


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture
def messenger() -> FakeMessenger:
    return FakeMessenger()


@pytest.fixture
def orchestrator(fetcher, completion, messenger) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(fetcher, completion, messenger, AIConfig())
