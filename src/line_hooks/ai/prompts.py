"""Fixed prompt tables and the keyword intent classifier.

Everything here is plain data plus pure functions; the orchestrator picks a
row and sends it to the completion client.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from line_hooks.config import DEFAULT_PERSONA
from line_hooks.core.types import ResponseType


@dataclass(frozen=True, slots=True)
class PromptPair:
    prompt: str
    system_instruction: str


# --- Image use cases ---

USE_CASE_PROMPTS: dict[str, PromptPair] = {
    "accessibility": PromptPair(
        prompt=(
            "Describe this image in detail to help visually impaired users understand "
            "what is shown. Be comprehensive and descriptive."
        ),
        system_instruction=(
            "You are an accessibility expert helping to make images accessible to "
            "visually impaired users."
        ),
    ),
    "education": PromptPair(
        prompt=(
            "Analyze this image for educational purposes. What concepts could be taught "
            "using this image? What questions could be asked about it?"
        ),
        system_instruction=(
            "You are an educational expert who helps teachers use images effectively "
            "in the classroom."
        ),
    ),
    "business": PromptPair(
        prompt=(
            "Analyze this image from a business perspective. What business insights can "
            "be derived? What opportunities or challenges does it represent?"
        ),
        system_instruction=(
            "You are a business analyst who helps identify business opportunities and "
            "insights from visual content."
        ),
    ),
    "safety": PromptPair(
        prompt=(
            "Analyze this image for safety concerns. Are there any potential hazards, "
            "unsafe practices, or safety violations visible?"
        ),
        system_instruction=(
            "You are a safety expert who identifies potential hazards and safety "
            "concerns in images."
        ),
    ),
    "technical": PromptPair(
        prompt=(
            "Analyze this image from a technical perspective. Consider composition, "
            "lighting, colors, and any technical details."
        ),
        system_instruction="You are a professional photographer and image analyst.",
    ),
    "creative": PromptPair(
        prompt=(
            "Provide a creative and artistic interpretation of this image. What emotions "
            "does it evoke? What story might it tell?"
        ),
        system_instruction="You are a creative writer and art critic with a poetic sensibility.",
    ),
}

DEFAULT_USE_CASE_PROMPT = PromptPair(
    prompt="Please describe what you see in this image.",
    system_instruction="You are a helpful image analyst.",
)


def use_case_prompt(use_case: str) -> PromptPair:
    """Prompt pair for *use_case*; unknown keys get the generic description."""
    return USE_CASE_PROMPTS.get(use_case, DEFAULT_USE_CASE_PROMPT)


def use_case_label(use_case: str) -> str:
    return f"{use_case[:1].upper()}{use_case[1:]} Analysis"


# --- Persona text prompts ---


def default_prompt(persona: str = DEFAULT_PERSONA) -> str:
    """The tutor's generic "please help the student solve this" request."""
    return f"{persona}ช่วยแก้ปัญหานี้ให้กับนักเรียนด้วยจ้า"


def problem_solving_pair(text: str, context: str = "general", persona: str = DEFAULT_PERSONA) -> PromptPair:
    return PromptPair(
        prompt=f'นักเรียนมีปัญหานี้: "{text}"\n\nช่วยแก้ปัญหานี้ให้กับนักเรียนด้วยจ้า',
        system_instruction=(
            f"You are {persona}, a helpful and knowledgeable teacher who specializes in "
            f"{context} problems. You help students understand and solve their problems "
            "step by step. Be encouraging, clear, and provide practical solutions."
        ),
    )


def educational_help_pair(
    question: str,
    subject: str = "general",
    grade_level: Optional[str] = None,
    persona: str = DEFAULT_PERSONA,
) -> PromptPair:
    grade_context = f" for {grade_level} level" if grade_level else ""
    return PromptPair(
        prompt=f'นักเรียนมีคำถามเกี่ยวกับ {subject}: "{question}"\n\nช่วยอธิบายให้เข้าใจง่ายๆ จ้า',
        system_instruction=(
            f"You are {persona}, an expert {subject} teacher{grade_context}. You help "
            "students understand concepts clearly and provide step-by-step explanations. "
            "Use examples when helpful and encourage learning."
        ),
    )


# Keyed by response type: (system instruction role, user prompt template)
_RESPONSE_TYPE_TEMPLATES: dict[ResponseType, tuple[str, str]] = {
    ResponseType.HELPFUL: (
        "a helpful and knowledgeable teacher. Provide useful information and guidance.",
        'นักเรียนถามว่า: "{query}"\n\nช่วยตอบคำถามนี้ให้กับนักเรียนด้วยจ้า',
    ),
    ResponseType.EDUCATIONAL: (
        "a knowledgeable and patient teacher. Provide educational insights and explanations.",
        'นักเรียนถามว่า: "{query}"\n\nช่วยอธิบายให้เข้าใจง่ายๆ จ้า',
    ),
    ResponseType.PROBLEM_SOLVING: (
        "a problem-solving expert. Help students work through their challenges step by step.",
        'นักเรียนมีปัญหานี้: "{query}"\n\nช่วยแก้ปัญหานี้ให้กับนักเรียนด้วยจ้า',
    ),
    ResponseType.ENCOURAGING: (
        "a supportive and encouraging teacher. Provide motivation and positive guidance.",
        'นักเรียนพูดว่า: "{query}"\n\nให้กำลังใจและคำแนะนำที่เป็นประโยชน์จ้า',
    ),
}


def query_pair(query: str, response_type: ResponseType, persona: str = DEFAULT_PERSONA) -> PromptPair:
    role, template = _RESPONSE_TYPE_TEMPLATES[response_type]
    return PromptPair(
        prompt=template.format(query=query),
        system_instruction=f"You are {persona}, {role}",
    )


# --- Intent classification ---

# Checked in order; the first table whose keywords appear in the text wins.
INTENT_KEYWORDS: tuple[tuple[ResponseType, tuple[str, ...]], ...] = (
    (ResponseType.PROBLEM_SOLVING, ("ปัญหา", "แก้", "ช่วย", "problem", "fix", "help")),
    (ResponseType.EDUCATIONAL, ("เรียน", "สอน", "อธิบาย", "study", "teach", "explain")),
    (ResponseType.ENCOURAGING, ("เหนื่อย", "ท้อ", "กำลังใจ", "tired", "discouraged", "encourage")),
)


def classify_intent(text: str) -> ResponseType:
    """Map message text to a response type by ordered substring keyword match."""
    lowered = text.lower()
    for response_type, keywords in INTENT_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return response_type
    return ResponseType.HELPFUL
