"""
Image-to-question extraction tests with a mocked OpenAI client
"""

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src directory to Python path
src_dir = Path(__file__).parent.parent
sys.path.insert(0, str(src_dir))

from utils.generation_errors import GenerationError, SourceMaterialError
from utils.vision_extractor import EXTRACTION_PROMPT, extract_question_from_image


def _vision_client(content=None, error=None):
    client = MagicMock()
    if error:
        client.chat.completions.create = AsyncMock(side_effect=error)
    else:
        client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(
                choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
            )
        )
    return client


def test_extracts_question_text():
    client = _vision_client("  Question: What is (2/3)^2?\nA) 4/9\nB) 2/3\nAnswer: A  ")

    text = asyncio.run(
        extract_question_from_image(b"jpeg-bytes", "image/jpeg", client=client, model="gpt-4o")
    )

    assert text.startswith("Question: What is (2/3)^2?")
    assert text.endswith("Answer: A")
    kwargs = client.chat.completions.create.await_args.kwargs
    assert kwargs["model"] == "gpt-4o"
    content = kwargs["messages"][0]["content"]
    assert content[0]["text"] == EXTRACTION_PROMPT
    assert content[1]["image_url"]["url"].startswith("data:image/jpeg;base64,")


@pytest.mark.parametrize("content", [None, "", "  blurry  "])
def test_too_little_text_is_a_source_error(content):
    client = _vision_client(content)
    with pytest.raises(SourceMaterialError, match="clearer image"):
        asyncio.run(extract_question_from_image(b"png", client=client))


def test_empty_image_is_a_source_error():
    client = _vision_client("unused")
    with pytest.raises(SourceMaterialError, match="Missing image"):
        asyncio.run(extract_question_from_image(b"", client=client))
    client.chat.completions.create.assert_not_awaited()


def test_upstream_failure_is_a_generation_error():
    client = _vision_client(error=RuntimeError("service unavailable"))
    with pytest.raises(GenerationError) as exc_info:
        asyncio.run(extract_question_from_image(b"png", client=client))
    assert isinstance(exc_info.value.__cause__, RuntimeError)
