"""
Prompt composition tests: system prompt selection and user prompt contents
"""

import sys
from pathlib import Path

# Add src directory to Python path
src_dir = Path(__file__).parent.parent
sys.path.insert(0, str(src_dir))

from utils.prompt_templates import (
    BASE_PROMPT,
    GENERAL_PROMPT,
    GEOMETRY_PROMPT,
    GEOMETRY_VARIETY_PROMPT,
    IMAGE_CONTEXT_PROMPT,
    NUMBER_OPERATIONS_PROMPT,
    VISUAL_PROMPT,
    build_user_prompt,
    get_system_prompt_for_type,
)
from utils.question_models import QuestionType
from utils.question_type_detector import detect_question_type
from utils.source_material import SourceMaterial


def test_geometry_system_prompt():
    prompt = get_system_prompt_for_type(QuestionType.GEOMETRY_WITH_DIAGRAM, False)
    assert prompt.startswith(BASE_PROMPT)
    assert GEOMETRY_PROMPT in prompt
    assert VISUAL_PROMPT not in prompt


def test_base_prompt_fixes_the_difficulty_bands():
    for band in ("VERY EASY", "MEDIUM", "TOUGH", "MORE TOUGH"):
        assert band in BASE_PROMPT
    assert "exactly 10" in BASE_PROMPT


def test_visual_prompt_is_appended():
    prompt = get_system_prompt_for_type(QuestionType.TABLE, True)
    assert prompt.endswith(VISUAL_PROMPT)


def test_number_categories_share_one_template():
    for question_type in (
        QuestionType.FRACTIONS,
        QuestionType.EXPONENTS,
        QuestionType.PERCENTAGE,
        QuestionType.EQUATIONS,
        QuestionType.NUMBER_OPERATIONS,
    ):
        assert NUMBER_OPERATIONS_PROMPT in get_system_prompt_for_type(question_type, False)


def test_unknown_type_falls_back_to_general():
    prompt = get_system_prompt_for_type("trigonometry", False)
    assert GENERAL_PROMPT in prompt
    assert prompt == get_system_prompt_for_type(QuestionType.MIXED, False)


def test_type_accepts_plain_string_value():
    assert get_system_prompt_for_type("algebra", False) == get_system_prompt_for_type(
        QuestionType.ALGEBRA, False
    )


def test_user_prompt_carries_source_and_answer():
    source = SourceMaterial.create("What is (-7/4)^2?", answer="49/16")
    analysis = detect_question_type(source.question, source.has_image)
    prompt = build_user_prompt(source, analysis)

    assert "What is (-7/4)^2?" in prompt
    assert "SOURCE ANSWER:\n49/16" in prompt
    assert "DETECTED QUESTION TYPE: EXPONENTS" in prompt
    assert "CORE CONCEPT: exponent operations" in prompt
    assert GEOMETRY_VARIETY_PROMPT not in prompt
    assert IMAGE_CONTEXT_PROMPT not in prompt


def test_user_prompt_without_answer_asks_for_extraction():
    source = SourceMaterial.create("Which number is the largest of 3, 8, 5 and 1?")
    analysis = detect_question_type(source.question, source.has_image)
    prompt = build_user_prompt(source, analysis)

    assert "SOURCE ANSWER" not in prompt
    assert "correct answer should be extracted from the source question" in prompt


def test_user_prompt_includes_explanation():
    source = SourceMaterial.create(
        "What is 25% of 80? Answer: 20", explanation="25% is one quarter."
    )
    analysis = detect_question_type(source.question, source.has_image)
    assert "SOURCE EXPLANATION:\n25% is one quarter." in build_user_prompt(source, analysis)


def test_geometry_with_image_adds_variety_and_image_directives():
    source = SourceMaterial.create(
        "Find angle x in the triangle inscribed in the semicircle.",
        image_data=b"\x89PNG fake",
    )
    analysis = detect_question_type(source.question, source.has_image)
    prompt = build_user_prompt(source, analysis)

    assert analysis.type == QuestionType.GEOMETRY_WITH_DIAGRAM
    assert IMAGE_CONTEXT_PROMPT in prompt
    assert GEOMETRY_VARIETY_PROMPT in prompt
