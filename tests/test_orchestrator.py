"""Workflow tests: every run ends in exactly one message to the user."""

import pytest
from structlog.testing import capture_logs

from helpers import FakeCompletion, FakeFetcher, FakeMessenger
from line_hooks.ai.orchestrator import (
    CUSTOM_IMAGE_MAX_TOKENS,
    IMAGE_APOLOGY,
    IMAGE_MAX_TOKENS,
    MESSAGE_APOLOGY,
    QUERY_MAX_TOKENS,
    TEXT_APOLOGY,
    AnalysisOrchestrator,
    Failure,
    Success,
)
from line_hooks.config import AIConfig
from line_hooks.core.types import TextMessageKind
from line_hooks.messenger.base import ERROR_MARKER


def _terminal_messages(messenger: FakeMessenger) -> int:
    return len(messenger.sent) + len(messenger.errors)


class TestImageWorkflows:
    @pytest.mark.asyncio
    async def test_analyze_image(self, orchestrator, fetcher, completion, messenger):
        outcome = await orchestrator.analyze_image("c-1", "U1")

        assert outcome == Success(text="analysis")
        assert fetcher.calls == ["c-1"]
        (request,) = completion.requests
        assert request.image_data_uri.startswith("data:image/jpeg;base64,")
        assert request.max_output_tokens == IMAGE_MAX_TOKENS
        assert request.system_instruction is None
        assert request.prompt.startswith(AIConfig().persona_name)
        assert messenger.sent == [("U1", "analysis")]
        assert messenger.errors == []

    @pytest.mark.asyncio
    async def test_analyze_image_custom_prompt(self, orchestrator, completion):
        await orchestrator.analyze_image("c-1", "U1", prompt="count the apples")
        assert completion.requests[0].prompt == "count the apples"

    @pytest.mark.asyncio
    async def test_with_instructions_is_labelled(self, orchestrator, completion, messenger):
        outcome = await orchestrator.analyze_image_with_instructions(
            "c-1", "U1", "read the sign", system_instruction="you read signs"
        )

        assert outcome == Success(text="🤖 Custom Analysis:\n\nanalysis")
        assert completion.requests[0].max_output_tokens == CUSTOM_IMAGE_MAX_TOKENS
        assert completion.requests[0].system_instruction == "you read signs"
        assert messenger.sent == [("U1", "🤖 Custom Analysis:\n\nanalysis")]

    @pytest.mark.asyncio
    async def test_for_use_case(self, orchestrator, completion, messenger):
        await orchestrator.analyze_image_for_use_case("c-1", "U1", "safety")

        assert "hazards" in completion.requests[0].prompt
        assert messenger.sent[0][1].startswith("🤖 Safety Analysis:")

    @pytest.mark.asyncio
    async def test_not_an_image(self, completion, messenger):
        orchestrator = AnalysisOrchestrator(FakeFetcher(file_name="doc.pdf"), completion, messenger)

        outcome = await orchestrator.analyze_image("c-1", "U1")

        assert isinstance(outcome, Failure)
        assert outcome.kind == "NotAnImage"
        assert completion.requests == []
        assert messenger.sent == []
        assert messenger.errors == [("U1", IMAGE_APOLOGY)]

    @pytest.mark.asyncio
    async def test_fetch_failure(self, completion, messenger):
        orchestrator = AnalysisOrchestrator(FakeFetcher(fail=True), completion, messenger)

        outcome = await orchestrator.analyze_image("c-1", "U1")

        assert outcome.kind == "ContentFetchError"
        assert completion.requests == []
        assert messenger.errors == [("U1", IMAGE_APOLOGY)]

    @pytest.mark.asyncio
    async def test_completion_failure_sends_one_apology(self, fetcher, messenger):
        orchestrator = AnalysisOrchestrator(fetcher, FakeCompletion(fail_on={"*"}), messenger)

        outcome = await orchestrator.analyze_image("c-1", "U1")

        assert outcome == Failure(kind="CompletionError", detail="provider down")
        assert messenger.sent == []
        assert messenger.pushed == [("U1", f"{ERROR_MARKER} {IMAGE_APOLOGY}")]


class TestTextWorkflows:
    @pytest.mark.asyncio
    async def test_analyze_text_uses_prompt_as_system_instruction(self, orchestrator, completion, messenger):
        await orchestrator.analyze_text("2 + 2 = ?", "U1", prompt="answer briefly")

        (request,) = completion.requests
        assert request.prompt == "2 + 2 = ?"
        assert request.system_instruction == "answer briefly"
        assert request.image_data_uri is None
        assert messenger.sent == [("U1", "analysis")]

    @pytest.mark.asyncio
    async def test_analyze_text_failure_apology(self, fetcher, messenger):
        orchestrator = AnalysisOrchestrator(fetcher, FakeCompletion(fail_on={"*"}), messenger)
        await orchestrator.analyze_text("hi", "U1")
        assert messenger.errors == [("U1", TEXT_APOLOGY)]

    @pytest.mark.asyncio
    async def test_handle_message_intelligently(self, orchestrator, completion, messenger):
        outcome = await orchestrator.handle_message_intelligently("I am so tired", "U1")

        assert isinstance(outcome, Success)
        (request,) = completion.requests
        assert request.max_output_tokens == QUERY_MAX_TOKENS
        assert "supportive and encouraging" in request.system_instruction
        assert '"I am so tired"' in request.prompt
        assert _terminal_messages(messenger) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "kind,expected_fragment,max_tokens",
        [
            (TextMessageKind.PROBLEM, "specializes in general problems", 1500),
            (TextMessageKind.QUESTION, "expert general teacher", 1500),
            (TextMessageKind.ENCOURAGEMENT, "supportive and encouraging", 1200),
            (TextMessageKind.GENERAL, "helpful and knowledgeable teacher", 1200),
        ],
    )
    async def test_process_text_message_routing(
        self, orchestrator, completion, messenger, kind, expected_fragment, max_tokens
    ):
        await orchestrator.process_text_message("good morning", "U1", kind)

        (request,) = completion.requests
        assert expected_fragment in request.system_instruction
        assert request.max_output_tokens == max_tokens
        assert _terminal_messages(messenger) == 1

    @pytest.mark.asyncio
    async def test_persona_is_configurable(self, fetcher, completion, messenger):
        orchestrator = AnalysisOrchestrator(fetcher, completion, messenger, AIConfig(persona_name="Teacher Ann"))
        await orchestrator.solve_problem("my bike is broken", "U1")
        assert completion.requests[0].system_instruction.startswith("You are Teacher Ann")


class TestDeliveryFailures:
    @pytest.mark.asyncio
    async def test_send_failure_triggers_apology(self, fetcher, completion):
        messenger = FakeMessenger(fail_sends=True)
        orchestrator = AnalysisOrchestrator(fetcher, completion, messenger)

        outcome = await orchestrator.handle_message_intelligently("hello", "U1")

        assert outcome.kind == "DeliveryError"
        assert messenger.errors == [("U1", MESSAGE_APOLOGY)]

    @pytest.mark.asyncio
    async def test_apology_failure_is_swallowed(self, fetcher):
        messenger = FakeMessenger(fail_sends=True, fail_errors=True)
        orchestrator = AnalysisOrchestrator(fetcher, FakeCompletion(), messenger)

        outcome = await orchestrator.analyze_image("c-1", "U1")

        assert isinstance(outcome, Failure)
        assert messenger.pushed == []


class TestErrorBoundary:
    @pytest.mark.asyncio
    async def test_classification_failure_sends_apology(self, orchestrator, completion, messenger):
        outcome = await orchestrator.handle_message_intelligently(42, "U1")

        assert outcome.kind == "AttributeError"
        assert completion.requests == []
        assert messenger.errors == [("U1", MESSAGE_APOLOGY)]

    @pytest.mark.asyncio
    async def test_unknown_response_type_sends_apology(self, orchestrator, messenger):
        outcome = await orchestrator.analyze_query("hi", "U1", "sarcastic")

        assert outcome.kind == "ValueError"
        assert messenger.errors == [("U1", MESSAGE_APOLOGY)]

    @pytest.mark.asyncio
    async def test_unknown_text_kind_is_answered_as_general(self, orchestrator, completion, messenger):
        outcome = await orchestrator.process_text_message("good morning", "U1", "poem")

        assert isinstance(outcome, Success)
        assert "helpful and knowledgeable teacher" in completion.requests[0].system_instruction
        assert _terminal_messages(messenger) == 1

    @pytest.mark.asyncio
    async def test_workflow_logs_carry_platform(self, orchestrator):
        with capture_logs() as logs:
            await orchestrator.analyze_text("hi", "U1")

        (completed,) = [entry for entry in logs if entry["event"] == "workflow_completed"]
        assert completed["platform"] == "fake"
        assert completed["workflow"] == "analyze_text"
