"""Analysis workflows: fetch -> complete -> reply, with one terminal message each.

Every public workflow follows the same template:

1. For image workflows, fetch the attachment and require an ``image/*`` type.
2. Build an :class:`AnalysisRequest` and run the completion client.
3. Send the (optionally labelled) result to the user.
4. On any failure in 1-3, send a fixed apology instead. A failure of that
   apology send is logged and swallowed.

A workflow therefore always returns a :data:`WorkflowOutcome` and never
raises, which makes it safe to run as a detached background task.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Union

from line_hooks.ai.client import CompletionClient
from line_hooks.ai.conversation import AnalysisRequest
from line_hooks.ai.prompts import (
    classify_intent,
    default_prompt,
    educational_help_pair,
    problem_solving_pair,
    query_pair,
    use_case_label,
    use_case_prompt,
)
from line_hooks.config import AIConfig
from line_hooks.content.fetcher import DEFAULT_IMAGE_FILE_NAME, ContentFetcher
from line_hooks.content.mime import ContentResult
from line_hooks.core.errors import DeliveryError, LineHooksError, NotAnImage
from line_hooks.core.types import ResponseType, TextMessageKind
from line_hooks.log import get_logger
from line_hooks.messenger.base import Messenger

logger = get_logger(__name__)

# Output token ceilings per workflow family
IMAGE_MAX_TOKENS = 1000
CUSTOM_IMAGE_MAX_TOKENS = 1500
TEXT_MAX_TOKENS = 1000
PROBLEM_MAX_TOKENS = 1500
EDUCATIONAL_MAX_TOKENS = 1500
QUERY_MAX_TOKENS = 1200

IMAGE_APOLOGY = "Sorry, I encountered an error while analyzing your image. Please try again."
TEXT_APOLOGY = "Sorry, I encountered an error while analyzing your text. Please try again."
MESSAGE_APOLOGY = "Sorry, I encountered an error while processing your message. Please try again."


@dataclass(frozen=True, slots=True)
class Success:
    text: str


@dataclass(frozen=True, slots=True)
class Failure:
    kind: str
    detail: str


WorkflowOutcome = Union[Success, Failure]


class AnalysisOrchestrator:
    """Composes content fetch, completion and delivery into named workflows."""

    def __init__(
        self,
        fetcher: ContentFetcher,
        completion: CompletionClient,
        messenger: Messenger,
        ai_config: Optional[AIConfig] = None,
    ):
        self._fetcher = fetcher
        self._completion = completion
        self._messenger = messenger
        self._persona = (ai_config or AIConfig()).persona_name

    # --- template ---

    async def _run(
        self,
        workflow: str,
        user_id: str,
        apology: str,
        produce: Callable[[], Awaitable[str]],
    ) -> WorkflowOutcome:
        log = logger.bind(
            workflow=workflow, user_id=user_id, platform=self._messenger.platform_name
        )
        try:
            text = await produce()
            await self._messenger.send(user_id, text)
        except Exception as e:
            kind = e.kind if isinstance(e, LineHooksError) else type(e).__name__
            log.error("workflow_failed", error_kind=kind, error=str(e))
            await self._send_apology(user_id, apology)
            return Failure(kind=kind, detail=str(e))

        log.info("workflow_completed", response_length=len(text))
        return Success(text=text)

    async def _send_apology(self, user_id: str, apology: str) -> None:
        try:
            await self._messenger.send_error(user_id, apology)
        except DeliveryError as e:
            logger.error("apology_delivery_failed", user_id=user_id, error=str(e))

    async def _fetch_image(self, content_id: str) -> ContentResult:
        content = await self._fetcher.fetch(content_id, DEFAULT_IMAGE_FILE_NAME)
        if not content.is_image:
            raise NotAnImage(f"Content {content_id} is {content.mime_type}, not an image")
        return content

    async def _analyze_image(
        self,
        content_id: str,
        prompt: str,
        system_instruction: Optional[str],
        max_output_tokens: int,
        label: Optional[str] = None,
    ) -> str:
        content = await self._fetch_image(content_id)
        analysis = await self._completion.complete(
            AnalysisRequest(
                prompt=prompt,
                system_instruction=system_instruction,
                image_data_uri=content.data_uri,
                max_output_tokens=max_output_tokens,
            )
        )
        if label:
            return f"🤖 {label}:\n\n{analysis}"
        return analysis

    # --- image workflows ---

    async def analyze_image(
        self, content_id: str, user_id: str, prompt: Optional[str] = None
    ) -> WorkflowOutcome:
        """Default image workflow: the tutor persona's "please solve this" prompt."""
        return await self._run(
            "analyze_image",
            user_id,
            IMAGE_APOLOGY,
            lambda: self._analyze_image(
                content_id,
                prompt or default_prompt(self._persona),
                None,
                IMAGE_MAX_TOKENS,
            ),
        )

    async def analyze_image_with_instructions(
        self,
        content_id: str,
        user_id: str,
        instructions: str,
        system_instruction: Optional[str] = None,
    ) -> WorkflowOutcome:
        return await self._run(
            "analyze_image_with_instructions",
            user_id,
            IMAGE_APOLOGY,
            lambda: self._analyze_image(
                content_id,
                instructions,
                system_instruction,
                CUSTOM_IMAGE_MAX_TOKENS,
                label="Custom Analysis",
            ),
        )

    async def analyze_image_for_use_case(
        self, content_id: str, user_id: str, use_case: str
    ) -> WorkflowOutcome:
        async def produce() -> str:
            pair = use_case_prompt(use_case)
            return await self._analyze_image(
                content_id,
                pair.prompt,
                pair.system_instruction,
                CUSTOM_IMAGE_MAX_TOKENS,
                label=use_case_label(use_case),
            )

        return await self._run("analyze_image_for_use_case", user_id, IMAGE_APOLOGY, produce)

    # --- text workflows ---

    async def _complete_text(self, prompt: str, system_instruction: str, max_output_tokens: int) -> str:
        return await self._completion.complete(
            AnalysisRequest(
                prompt=prompt,
                system_instruction=system_instruction,
                max_output_tokens=max_output_tokens,
            )
        )

    async def analyze_text(
        self, text: str, user_id: str, prompt: Optional[str] = None
    ) -> WorkflowOutcome:
        # The prompt is the system instruction here; the user's text is the turn.
        return await self._run(
            "analyze_text",
            user_id,
            TEXT_APOLOGY,
            lambda: self._complete_text(
                text, prompt or default_prompt(self._persona), TEXT_MAX_TOKENS
            ),
        )

    async def solve_problem(
        self, problem_text: str, user_id: str, context: str = "general"
    ) -> WorkflowOutcome:
        async def produce() -> str:
            pair = problem_solving_pair(problem_text, context, self._persona)
            return await self._complete_text(pair.prompt, pair.system_instruction, PROBLEM_MAX_TOKENS)

        return await self._run("solve_problem", user_id, MESSAGE_APOLOGY, produce)

    async def provide_educational_help(
        self,
        question: str,
        user_id: str,
        subject: str = "general",
        grade_level: Optional[str] = None,
    ) -> WorkflowOutcome:
        async def produce() -> str:
            pair = educational_help_pair(question, subject, grade_level, self._persona)
            return await self._complete_text(
                pair.prompt, pair.system_instruction, EDUCATIONAL_MAX_TOKENS
            )

        return await self._run("provide_educational_help", user_id, MESSAGE_APOLOGY, produce)

    async def _answer_query(self, query: str, response_type: ResponseType | str) -> str:
        pair = query_pair(query, ResponseType(response_type), self._persona)
        return await self._complete_text(pair.prompt, pair.system_instruction, QUERY_MAX_TOKENS)

    async def analyze_query(
        self,
        query: str,
        user_id: str,
        response_type: ResponseType = ResponseType.HELPFUL,
    ) -> WorkflowOutcome:
        return await self._run(
            f"analyze_query:{response_type}",
            user_id,
            MESSAGE_APOLOGY,
            lambda: self._answer_query(query, response_type),
        )

    async def handle_message_intelligently(self, text: str, user_id: str) -> WorkflowOutcome:
        """Pick a response type with :func:`classify_intent` and answer the query."""

        async def produce() -> str:
            response_type = classify_intent(text)
            logger.info("intent_classified", user_id=user_id, response_type=str(response_type))
            return await self._answer_query(text, response_type)

        return await self._run("handle_message_intelligently", user_id, MESSAGE_APOLOGY, produce)

    async def process_text_message(
        self,
        text: str,
        user_id: str,
        message_kind: TextMessageKind = TextMessageKind.GENERAL,
    ) -> WorkflowOutcome:
        try:
            kind = TextMessageKind(message_kind)
        except ValueError:
            logger.warning("unknown_text_message_kind", user_id=user_id, message_kind=str(message_kind))
            kind = TextMessageKind.GENERAL

        match kind:
            case TextMessageKind.PROBLEM:
                return await self.solve_problem(text, user_id)
            case TextMessageKind.QUESTION:
                return await self.provide_educational_help(text, user_id)
            case TextMessageKind.ENCOURAGEMENT:
                return await self.analyze_query(text, user_id, ResponseType.ENCOURAGING)
            case TextMessageKind.GENERAL:
                return await self.handle_message_intelligently(text, user_id)
