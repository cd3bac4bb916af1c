from __future__ import annotations

import logging
import os
import re
from typing import Any, Dict, Optional, Protocol, Type, TypeVar

from pydantic import BaseModel, ValidationError

from genai import GeminiError
from grading import num_to_clean_str
from schemas.math_problem import FeedbackPayload, ProblemPayload

logger = logging.getLogger("math-problems")

DEFAULT_GRADE_LEVEL = "Primary 5"

# Gemini responseSchema (OpenAPI subset)
PROBLEM_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "problem_text": {"type": "STRING"},
        "correct_answer": {"type": "NUMBER"},
    },
    "required": ["problem_text", "correct_answer"],
}

FEEDBACK_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "feedback": {"type": "STRING"},
        "correct_answer": {"type": "NUMBER"},
        "is_correct": {"type": "BOOLEAN"},
    },
    "required": ["feedback", "correct_answer", "is_correct"],
}

_FENCE_RE = re.compile(r"^\s*```[a-zA-Z]*\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL)

T = TypeVar("T", bound=BaseModel)


class JsonTextModel(Protocol):
    def generate_json(
        self, prompt: str, *, response_schema: Dict[str, Any], temperature: float = ...
    ) -> str: ...


def _strip_code_fence(text: str) -> str:
    m = _FENCE_RE.match(text)
    return m.group(1) if m else text


def parse_shaped(text: str, shape: Type[T]) -> Optional[T]:
    """Validate model text against ``shape``; None when it doesn't fit."""
    if not isinstance(text, str):
        return None
    try:
        return shape.model_validate_json(_strip_code_fence(text).strip())
    except ValidationError as e:
        logger.warning("model output does not match %s: %s", shape.__name__, e.errors()[:3])
        return None


def build_problem_prompt(grade_level: str) -> str:
    return (
        f"Generate a math problem suitable for a {grade_level} student.\n"
        "The problem must have a single numeric answer.\n"
        "Return ONLY a JSON object with keys: problem_text (string), correct_answer (number)."
    )


def build_feedback_prompt(problem_text: str, user_answer: float) -> str:
    return (
        "Check if the student's answer to this math problem is correct and write short, "
        "encouraging feedback a primary school student can follow. If the answer is wrong, "
        "explain the working that leads to the correct answer.\n"
        "Return ONLY a JSON object with keys: feedback (string), correct_answer (number), "
        "is_correct (boolean).\n\n"
        f"Problem: {problem_text}\n"
        f"Student's answer: {num_to_clean_str(user_answer)}"
    )


class ProblemGenerator:
    """
    Problem and feedback generation on top of a JSON-capable text model.

    Both operations make exactly one call and never raise: a service error or
    a reply that doesn't fit the requested shape comes back as None.
    """

    def __init__(self, model: JsonTextModel, *, grade_level: Optional[str] = None) -> None:
        self.model = model
        self.grade_level = grade_level or os.getenv("GRADE_LEVEL", DEFAULT_GRADE_LEVEL)

    def _ask(self, prompt: str, schema: Dict[str, Any], shape: Type[T]) -> Optional[T]:
        try:
            text = self.model.generate_json(prompt, response_schema=schema)
        except GeminiError as e:
            logger.warning("generation call failed: %s", e)
            return None
        return parse_shaped(text, shape)

    def generate(self) -> Optional[ProblemPayload]:
        return self._ask(build_problem_prompt(self.grade_level), PROBLEM_SCHEMA, ProblemPayload)

    def evaluate(self, problem_text: str, user_answer: float) -> Optional[FeedbackPayload]:
        return self._ask(
            build_feedback_prompt(problem_text, user_answer), FEEDBACK_SCHEMA, FeedbackPayload
        )
