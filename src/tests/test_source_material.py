"""
Source material validation and answer extraction tests
"""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent
sys.path.insert(0, str(src_dir))

from utils.generation_errors import SourceMaterialError
from utils.source_material import ANSWER_SENTINEL, SourceMaterial, extract_answer


@pytest.mark.parametrize(
    "text, expected",
    [
        ("What is 6 x 7? Answer: 42", "42"),
        ("Correct answer: 3.5", "3.5"),
        ("A) 2  B) 4  C) 6  D) 8\nCorrect: C", "C"),
        ("What is 12 divided by 4? The answer is 3", "3"),
        ("Solution: 18", "18"),
        ("What is 7 x 8 plus 2?", ANSWER_SENTINEL),
        ("Find the answer to the nearest tenth: 3.14 x 2", ANSWER_SENTINEL),
        ("Write your solution in the box. What is 9 x 9?", ANSWER_SENTINEL),
        ("Round the answer to the nearest tenth.\nAnswer: 6.3", "6.3"),
    ],
)
def test_extract_answer(text, expected):
    assert extract_answer(text) == expected


def test_explicit_answer_wins_over_text():
    source = SourceMaterial.create("What is 6 x 7? Answer: 42", answer="  forty-two ")
    assert source.answer == "forty-two"
    assert source.has_extracted_answer


def test_missing_answer_is_extracted():
    source = SourceMaterial.create("What is (2/3)^2?\nA) 4/9\nB) 2/3\nAnswer: A")
    assert source.answer == "A"


def test_answer_falls_back_to_sentinel():
    source = SourceMaterial.create("What is the value of (2/3)^2?", answer="   ")
    assert source.answer == ANSWER_SENTINEL
    assert not source.has_extracted_answer


@pytest.mark.parametrize("question", [None, "", "too short", "     abc         "])
def test_short_question_is_rejected(question):
    with pytest.raises(SourceMaterialError, match="at least 10"):
        SourceMaterial.create(question)


def test_question_length_bounds():
    SourceMaterial.create("q" * 10000)
    with pytest.raises(SourceMaterialError, match="too long"):
        SourceMaterial.create("q" * 10001)


def test_long_answer_is_rejected():
    with pytest.raises(SourceMaterialError, match="answer is too long"):
        SourceMaterial.create("What is 6 x 7?", answer="4" * 501)


def test_source_material_error_is_a_value_error():
    assert issubclass(SourceMaterialError, ValueError)


def test_image_data_url():
    source = SourceMaterial.create(
        "Find angle x in the diagram.", image_data=b"abc", image_mime_type="image/jpeg"
    )
    assert source.has_image
    assert source.image_data_url() == "data:image/jpeg;base64,YWJj"


def test_text_only_source_has_no_image():
    source = SourceMaterial.create("What is 25% of 80?", explanation="   ")
    assert not source.has_image
    assert source.image_data_url() is None
    assert source.explanation is None
