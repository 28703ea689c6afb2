"""
Source material submitted by an administrator, and answer extraction.

When no answer is supplied, the answer is pulled out of the question text by
an ordered list of patterns; the first hit wins and the sentinel is the last
resort, so the resolved answer is never empty.
"""

import base64
import re
from typing import Callable, List, Optional
from pydantic import BaseModel, ConfigDict, Field

from controllers.config import (
    SOURCE_ANSWER_MAX_LENGTH,
    SOURCE_QUESTION_MAX_LENGTH,
    SOURCE_QUESTION_MIN_LENGTH,
)
from utils.generation_errors import SourceMaterialError


ANSWER_SENTINEL = "See question text"

# Connecting words that follow "answer"/"solution" in prose, never an answer themselves
_NOT_AN_ANSWER = r"(?!(?:is|are|was|to|for|of|the|in|on|with|as|and|or)\b)"

# "answer: 42", "Correct answer: B", "solution 3.5"
_LABELLED_ANSWER = re.compile(
    r"(?:correct answer|answer|solution)[:\s]+" + _NOT_AN_ANSWER + r"([A-Z0-9]+(?:\.[0-9]+)?)",
    re.IGNORECASE,
)
# "A) ... B) ... Correct: C"
_CHOICE_ANSWER = re.compile(
    r"(?:answer|correct|solution)[:\s]+" + _NOT_AN_ANSWER + r"([A-D])\b", re.IGNORECASE
)
# "The answer is 42"
_SENTENCE_ANSWER = re.compile(
    r"(?:answer|correct|solution)\s+(?:is|are)[:\s]+([A-Z0-9]+(?:\.[0-9]+)?)",
    re.IGNORECASE,
)


def _pattern_strategy(pattern: re.Pattern) -> Callable[[str], Optional[str]]:
    def strategy(text: str) -> Optional[str]:
        match = pattern.search(text)
        if match:
            return match.group(1).strip() or None
        return None

    return strategy


ANSWER_STRATEGIES: List[Callable[[str], Optional[str]]] = [
    _pattern_strategy(_LABELLED_ANSWER),
    _pattern_strategy(_CHOICE_ANSWER),
    _pattern_strategy(_SENTENCE_ANSWER),
]


def extract_answer(question_text: str) -> str:
    """Return the first answer the strategies find, or the sentinel."""
    for strategy in ANSWER_STRATEGIES:
        answer = strategy(question_text or "")
        if answer:
            return answer
    return ANSWER_SENTINEL


class SourceMaterial(BaseModel):
    """The admin's seed question for one generation run."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str = ANSWER_SENTINEL
    explanation: Optional[str] = None
    image_data: Optional[bytes] = Field(default=None, repr=False)
    image_mime_type: str = "image/png"

    @property
    def has_image(self) -> bool:
        return bool(self.image_data)

    @property
    def has_extracted_answer(self) -> bool:
        return self.answer != ANSWER_SENTINEL

    def image_data_url(self) -> Optional[str]:
        if not self.image_data:
            return None
        encoded = base64.b64encode(self.image_data).decode("ascii")
        return f"data:{self.image_mime_type};base64,{encoded}"

    @classmethod
    def create(
        cls,
        question: Optional[str],
        answer: Optional[str] = None,
        explanation: Optional[str] = None,
        image_data: Optional[bytes] = None,
        image_mime_type: Optional[str] = None,
    ) -> "SourceMaterial":
        """
        Validate raw input and resolve the answer.

        Raises:
            SourceMaterialError: question outside [10, 10000] characters or
                answer longer than 500 characters.
        """
        question = question or ""
        if len(question.strip()) < SOURCE_QUESTION_MIN_LENGTH:
            raise SourceMaterialError(
                f"Source question must be at least {SOURCE_QUESTION_MIN_LENGTH} characters long"
            )
        if len(question) > SOURCE_QUESTION_MAX_LENGTH:
            raise SourceMaterialError(
                f"Source question is too long (max {SOURCE_QUESTION_MAX_LENGTH} characters)"
            )

        resolved_answer = (answer or "").strip() or extract_answer(question)
        if len(resolved_answer) > SOURCE_ANSWER_MAX_LENGTH:
            raise SourceMaterialError(
                f"Source answer is too long (max {SOURCE_ANSWER_MAX_LENGTH} characters)"
            )

        return cls(
            question=question,
            answer=resolved_answer,
            explanation=(explanation or "").strip() or None,
            image_data=image_data or None,
            image_mime_type=image_mime_type or "image/png",
        )
