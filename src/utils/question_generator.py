"""
EQAO Practice-Test Generation Service

Turns one admin-supplied source question into exactly ten practice questions
at escalating difficulty. Classification and prompt composition are local;
the question set comes from one OpenAI chat completion (retried on upstream
errors), and geometry questions get best-effort DALL-E diagrams generated
concurrently.
"""

import asyncio
import json
import re
from typing import Any, List, Optional

import openai
from openai import AsyncOpenAI
from pydantic import ValidationError

from controllers.config import (
    logger,
    OPENAI_MODEL,
    GENERATION_TEMPERATURE,
    MODEL_MAX_ATTEMPTS,
    MODEL_RETRY_BASE_DELAY,
    ENABLE_DIAGRAMS,
)
from utils.generation_errors import (
    GenerationError,
    InvalidCountError,
    MalformedQuestionError,
)
from utils.image_generator import DiagramSynthesizer, GEOMETRY_SHAPE_PATTERN
from utils.math_text import clean_latex
from utils.prompt_templates import build_user_prompt, get_system_prompt_for_type
from utils.question_models import (
    GeneratedQuestion,
    GenerationResult,
    QuestionType,
    QuestionTypeAnalysis,
    RawQuestion,
    QUESTIONS_PER_TEST,
    difficulty_band_for,
    difficulty_level_for,
)
from utils.question_type_detector import detect_question_type
from utils.retry import retry_async
from utils.source_material import SourceMaterial


MIN_DISTINCT_ANSWERS = 5

# Upstream failures worth another attempt; auth and bad-request errors are not.
# GenerationError covers an empty completion.
TRANSIENT_MODEL_ERRORS = (
    openai.APIConnectionError,
    openai.APITimeoutError,
    openai.RateLimitError,
    openai.InternalServerError,
    GenerationError,
)

# Questions past this ordinal only get a diagram when the whole test is geometry/visual
MAX_KEYWORD_DIAGRAM_ORDINAL = 7

_CODE_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def _load_json(content: str) -> Any:
    """json.loads with repairs for fenced output and leading/trailing chatter."""
    text = _CODE_FENCE.sub("", content.strip())
    try:
        return json.loads(text)
    except json.JSONDecodeError as first_error:
        starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
        if not starts:
            raise GenerationError(f"Invalid JSON from model: {first_error}") from first_error
        start = min(starts)
        end = text.rfind("}" if text[start] == "{" else "]")
        if end <= start:
            raise GenerationError(f"Invalid JSON from model: {first_error}") from first_error
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError as e:
            raise GenerationError(f"Invalid JSON from model: {e}") from e


def parse_model_output(content: str) -> List[Any]:
    """
    Extract the raw question list from a model response.

    Accepts a bare JSON array or an object with a "questions" array; anything
    else counts as zero questions.
    """
    parsed = _load_json(content)
    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("questions"), list):
        return parsed["questions"]
    return []


def count_distinct_answers(questions: List[GeneratedQuestion]) -> int:
    return len({q.correct_answer.strip().lower() for q in questions})


def check_answer_diversity(questions: List[GeneratedQuestion]) -> Optional[str]:
    """Return a warning message when fewer than 5 distinct answers exist, else None."""
    distinct = count_distinct_answers(questions)
    if distinct >= MIN_DISTINCT_ANSWERS:
        return None
    answers = sorted({q.correct_answer.strip().lower() for q in questions})
    warning = (
        f"Only {distinct} unique answers out of {len(questions)} questions. "
        f"Answers may be too similar: {answers}"
    )
    logger.warning(warning)
    return warning


class QuestionGenerator:
    """AI-powered practice-test generation service"""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        diagram_synthesizer: Optional[DiagramSynthesizer] = None,
        model: str = OPENAI_MODEL,
        temperature: float = GENERATION_TEMPERATURE,
        max_attempts: int = MODEL_MAX_ATTEMPTS,
        retry_base_delay: float = MODEL_RETRY_BASE_DELAY,
        enable_diagrams: bool = ENABLE_DIAGRAMS,
    ):
        self.client = client or AsyncOpenAI()
        self.diagram_synthesizer = diagram_synthesizer
        self.model = model
        self.temperature = temperature
        self.max_attempts = max_attempts
        self.retry_base_delay = retry_base_delay
        self.enable_diagrams = enable_diagrams

    def _get_diagram_synthesizer(self) -> DiagramSynthesizer:
        if self.diagram_synthesizer is None:
            self.diagram_synthesizer = DiagramSynthesizer(client=self.client)
        return self.diagram_synthesizer

    async def generate(self, source: SourceMaterial) -> List[GeneratedQuestion]:
        """Generate the ten practice questions for a source question, ordered by question_number."""
        result = await self.generate_batch(source)
        return result.questions

    async def generate_batch(self, source: SourceMaterial) -> GenerationResult:
        """
        Generate the ten practice questions along with any quality warnings.

        Args:
            source: Validated source material

        Returns:
            GenerationResult with ten questions ordered by question_number

        Raises:
            InvalidCountError: the model did not return exactly 10 questions
            MalformedQuestionError: a question lacks text or an answer
            GenerationError: the model call failed after retries or returned invalid JSON
        """
        warnings: List[str] = []

        # Step 1: Detect question type
        analysis = detect_question_type(source.question, source.has_image)
        logger.info(
            f"Detected question type: {analysis.type.value} Concept: {analysis.concept}"
        )

        # Step 2: Compose prompts
        system_prompt = get_system_prompt_for_type(analysis.type, analysis.has_visual)
        user_prompt = build_user_prompt(source, analysis)
        logger.debug(f"System prompt:\n{system_prompt}")
        logger.debug(f"User prompt:\n{user_prompt}")

        # Step 3: Model call and parsing
        content = await self._call_model(system_prompt, user_prompt, source)
        raw_items = parse_model_output(content)
        if len(raw_items) != QUESTIONS_PER_TEST:
            raise InvalidCountError(QUESTIONS_PER_TEST, len(raw_items))

        # Step 4: Normalise, clean and force difficulty
        questions = [
            self._format_question(item, index) for index, item in enumerate(raw_items)
        ]
        for question in questions:
            if not question.question_text:
                raise MalformedQuestionError(question.question_number, "question_text")
            if not question.correct_answer:
                raise MalformedQuestionError(question.question_number, "correct_answer")

        # Step 5: Diagrams, concurrently and time-boxed per question
        if self.enable_diagrams:
            questions = await self._attach_diagrams(questions, analysis)

        # Step 6: Quality check, never fatal
        warning = check_answer_diversity(questions)
        if warning:
            warnings.append(warning)

        logger.info(
            f"Generated {len(questions)} questions, "
            f"{sum(1 for q in questions if q.question_image_url)} with diagrams"
        )
        return GenerationResult(questions=questions, warnings=warnings)

    async def _call_model(
        self, system_prompt: str, user_prompt: str, source: SourceMaterial
    ) -> str:
        user_content: Any = user_prompt
        image_url = source.image_data_url()
        if image_url:
            user_content = [
                {"type": "text", "text": user_prompt},
                {"type": "image_url", "image_url": {"url": image_url}},
            ]

        async def _complete() -> str:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_content},
                ],
                temperature=self.temperature,
                response_format={"type": "json_object"},
            )
            content = completion.choices[0].message.content if completion.choices else None
            if not content:
                raise GenerationError("No response from OpenAI")
            return content

        try:
            return await retry_async(
                _complete,
                max_attempts=self.max_attempts,
                base_delay=self.retry_base_delay,
                retry_on=TRANSIENT_MODEL_ERRORS,
                description="Question generation model call",
            )
        except GenerationError:
            raise
        except Exception as e:
            raise GenerationError(f"Failed to generate questions: {e}") from e

    def _format_question(self, item: Any, index: int) -> GeneratedQuestion:
        question_number = index + 1
        if not isinstance(item, dict):
            raise MalformedQuestionError(question_number, "question object")
        try:
            raw = RawQuestion.model_validate(item)
        except ValidationError as e:
            raise MalformedQuestionError(question_number, "valid fields") from e

        if item.get("difficulty_level") not in (None, question_number):
            logger.debug(
                f"Ignoring model difficulty {item.get('difficulty_level')!r} for question {question_number}"
            )

        return GeneratedQuestion(
            question_number=question_number,
            question_text=clean_latex(raw.question_text) or "",
            correct_answer=clean_latex(raw.correct_answer) or "",
            difficulty_level=difficulty_level_for(question_number),
            difficulty_band=difficulty_band_for(question_number),
            explanation=clean_latex(raw.explanation) or None,
        )

    def _wants_diagram(
        self, question: GeneratedQuestion, analysis: QuestionTypeAnalysis
    ) -> bool:
        if analysis.type == QuestionType.GEOMETRY_WITH_DIAGRAM or analysis.has_visual:
            return True
        return bool(
            GEOMETRY_SHAPE_PATTERN.search(question.question_text)
            and question.question_number <= MAX_KEYWORD_DIAGRAM_ORDINAL
        )

    async def _attach_diagrams(
        self, questions: List[GeneratedQuestion], analysis: QuestionTypeAnalysis
    ) -> List[GeneratedQuestion]:
        synthesizer = self._get_diagram_synthesizer()
        budget = synthesizer.generation_timeout + synthesizer.download_timeout

        async def diagram_slot(question: GeneratedQuestion) -> Optional[str]:
            if not self._wants_diagram(question, analysis):
                logger.info(
                    f"Skipping image generation for question {question.question_number} - "
                    f"type: {analysis.type.value}, hasVisual: {analysis.has_visual}"
                )
                return None
            try:
                return await asyncio.wait_for(
                    synthesizer.synthesize(
                        question.question_number,
                        question.question_text,
                        analysis.concept,
                        analysis.type,
                    ),
                    timeout=budget,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    f"Image generation timeout for question {question.question_number} - skipping"
                )
                return None
            except Exception as e:
                logger.error(
                    f"Error generating image for question {question.question_number}: {e}"
                )
                return None

        images = await asyncio.gather(*(diagram_slot(q) for q in questions))
        return [
            q.model_copy(update={"question_image_url": image}) if image else q
            for q, image in zip(questions, images)
        ]
