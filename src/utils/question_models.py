"""
Pydantic models for practice-question generation.

RawQuestion is the shape the model returns (field names vary between runs),
GeneratedQuestion is the canonical, validated record handed back to callers.
"""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


QUESTIONS_PER_TEST = 10

# Field names models use interchangeably, canonical first
_FIELD_ALTERNATES = (("question_text", "question"), ("correct_answer", "answer"))


class QuestionType(str, Enum):
    GEOMETRY_WITH_DIAGRAM = "geometry_with_diagram"
    ALGEBRA = "algebra"
    GRAPH = "graph"
    TABLE = "table"
    FRACTIONS = "fractions"
    EXPONENTS = "exponents"
    EQUATIONS = "equations"
    PERCENTAGE = "percentage"
    NUMBER_OPERATIONS = "number_operations"
    MIXED = "mixed"


class DifficultyBand(str, Enum):
    VERY_EASY = "very_easy"
    MEDIUM = "medium"
    TOUGH = "tough"
    MORE_TOUGH = "more_tough"


def difficulty_band_for(question_number: int) -> DifficultyBand:
    """Map a 1-based ordinal to its fixed band: 1-2, 3-4, 5-7, 8-10."""
    if not 1 <= question_number <= QUESTIONS_PER_TEST:
        raise ValueError(f"Question number out of range: {question_number}")
    if question_number <= 2:
        return DifficultyBand.VERY_EASY
    if question_number <= 4:
        return DifficultyBand.MEDIUM
    if question_number <= 7:
        return DifficultyBand.TOUGH
    return DifficultyBand.MORE_TOUGH


def difficulty_level_for(question_number: int) -> int:
    """Stored difficulty level. It is the ordinal itself, inside its band."""
    difficulty_band_for(question_number)
    return question_number


class QuestionTypeAnalysis(BaseModel):
    """Classifier output, consumed by the prompt composer and diagram synthesizer."""

    type: QuestionType
    has_visual: bool
    concept: str
    keywords: List[str] = Field(default_factory=list)


class RawQuestion(BaseModel):
    """One question as returned by the model, before cleanup."""

    model_config = ConfigDict(extra="ignore")

    question_text: str = ""
    correct_answer: str = ""
    explanation: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _pick_first_filled(cls, data):
        """Canonical key first, alternate key when the canonical one is missing, null or blank."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for field, alternate in _FIELD_ALTERNATES:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                data[field] = data.get(alternate)
        return data

    @field_validator("question_text", "correct_answer", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        # Models sometimes return numeric answers, or null
        if value is None:
            return ""
        return str(value)

    @field_validator("explanation", mode="before")
    @classmethod
    def _coerce_explanation(cls, value):
        if value is None or value == "":
            return None
        return str(value)


class GeneratedQuestion(BaseModel):
    question_number: int = Field(ge=1, le=QUESTIONS_PER_TEST)
    question_text: str
    correct_answer: str
    difficulty_level: int = Field(ge=1, le=QUESTIONS_PER_TEST)
    difficulty_band: DifficultyBand
    explanation: Optional[str] = None
    question_image_url: Optional[str] = Field(
        default=None, description="Embedded data URL of a generated diagram"
    )


class GenerationResult(BaseModel):
    """One generation run: the ordered batch plus non-fatal quality warnings."""

    questions: List[GeneratedQuestion]
    warnings: List[str] = Field(default_factory=list)
