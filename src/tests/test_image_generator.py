"""
Diagram synthesis tests. OpenAI is mocked, downloads go through httpx.MockTransport.
"""

import asyncio
import base64
import io
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
from PIL import Image

# Add src directory to Python path
src_dir = Path(__file__).parent.parent
sys.path.insert(0, str(src_dir))

from utils.image_generator import (
    DiagramSynthesizer,
    build_diagram_prompt,
    extract_diagram_facts,
    needs_diagram,
)
from utils.math_text import clean_latex
from utils.question_models import QuestionType


SEMICIRCLE_QUESTION = (
    "A triangle is inscribed in a semicircle with diameter 14 cm. "
    "One base angle is 35 degrees. Find angle x."
)
IMAGE_URL = "https://images.example.com/diagram.png"


def _png_bytes(size=(1024, 1024), mode="RGBA"):
    buf = io.BytesIO()
    Image.new(mode, size, (255, 255, 255, 255) if mode == "RGBA" else "white").save(
        buf, format="PNG"
    )
    return buf.getvalue()


def _image_client(url=IMAGE_URL, b64_json=None):
    client = MagicMock()
    client.images.generate = AsyncMock(
        return_value=SimpleNamespace(data=[SimpleNamespace(url=url, b64_json=b64_json)])
    )
    return client


def _decode_data_url(data_url):
    assert data_url.startswith("data:image/png;base64,")
    raw = base64.b64decode(data_url.split(",", 1)[1])
    return Image.open(io.BytesIO(raw))


def test_semicircle_facts():
    facts = extract_diagram_facts(SEMICIRCLE_QUESTION)
    assert facts.diameter == "14"
    assert facts.unit == "cm"
    assert facts.diameter_label == "14 cm"
    assert facts.angles == ["35°", "x"]
    assert facts.has_semicircle and facts.has_triangle


def test_radius_is_doubled():
    facts = extract_diagram_facts("A circle has a radius of 5 m. Find its area.")
    assert facts.diameter == "10"
    assert facts.unit == "m"


def test_out_of_range_angles_are_dropped():
    facts = extract_diagram_facts("One angle is 200 degrees and another is 45 degrees.")
    assert facts.angles == ["45°"]


def test_degree_sign_angles_from_cleaned_text():
    text = clean_latex(
        r"A triangle is inscribed in a semicircle with diameter 14 cm. "
        r"Angle A is 35^\circ. Find angle x."
    )
    facts = extract_diagram_facts(text)
    assert facts.angles == ["35°", "x"]
    assert "35°" in build_diagram_prompt(facts, "geometry")


def test_degree_sign_and_word_forms_are_not_duplicated():
    facts = extract_diagram_facts("One base angle is 40°. The other angle is 40 degrees, and one is 100 °.")
    assert facts.angles == ["40°", "100°"]


def test_prompt_carries_exact_labels():
    prompt = build_diagram_prompt(extract_diagram_facts(SEMICIRCLE_QUESTION), "geometry")
    assert '"14 cm"' in prompt
    assert "35°" in prompt
    assert "NO 3D" in prompt
    assert "inscribed" in prompt


def test_prompt_without_measurements_asks_for_angle_x():
    prompt = build_diagram_prompt(extract_diagram_facts("Draw a triangle."), "geometry")
    assert 'One angle labeled "x"' in prompt
    assert "Diameter MUST" not in prompt


def test_needs_diagram_gate():
    assert needs_diagram("What is 3 + 4?", QuestionType.GEOMETRY_WITH_DIAGRAM)
    assert needs_diagram("Find the radius of the circle.", QuestionType.MIXED)
    assert not needs_diagram("What is (2/3)^2?", QuestionType.EXPONENTS)


def test_synthesize_downloads_and_reencodes():
    client = _image_client()
    requested = []

    def handler(request):
        requested.append(str(request.url))
        return httpx.Response(200, content=_png_bytes())

    async def run():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http_client:
            synthesizer = DiagramSynthesizer(client=client, http_client=http_client)
            return await synthesizer.synthesize(
                1, SEMICIRCLE_QUESTION, "geometry", QuestionType.GEOMETRY_WITH_DIAGRAM
            )

    data_url = asyncio.run(run())

    assert requested == [IMAGE_URL]
    image = _decode_data_url(data_url)
    assert image.mode == "RGB"
    assert max(image.size) <= 512
    kwargs = client.images.generate.await_args.kwargs
    assert kwargs["size"] == "1024x1024"
    assert '"14 cm"' in kwargs["prompt"]


def test_synthesize_uses_inline_base64_payload():
    encoded = base64.b64encode(_png_bytes(size=(64, 64), mode="RGB")).decode("ascii")
    client = _image_client(url=None, b64_json=encoded)
    synthesizer = DiagramSynthesizer(client=client)

    data_url = asyncio.run(
        synthesizer.synthesize(2, SEMICIRCLE_QUESTION, "geometry", QuestionType.GEOMETRY_WITH_DIAGRAM)
    )
    assert _decode_data_url(data_url).size == (64, 64)


def test_synthesize_skips_non_geometry_questions():
    client = _image_client()
    synthesizer = DiagramSynthesizer(client=client)

    result = asyncio.run(
        synthesizer.synthesize(1, "What is (2/3)^2?", "exponent operations", QuestionType.EXPONENTS)
    )
    assert result is None
    client.images.generate.assert_not_awaited()


def test_generation_timeout_returns_none():
    async def slow_generate(**kwargs):
        await asyncio.sleep(1)

    client = MagicMock()
    client.images.generate = slow_generate
    synthesizer = DiagramSynthesizer(client=client, generation_timeout=0.01)

    result = asyncio.run(
        synthesizer.synthesize(3, SEMICIRCLE_QUESTION, "geometry", QuestionType.GEOMETRY_WITH_DIAGRAM)
    )
    assert result is None


def test_upstream_error_returns_none():
    client = MagicMock()
    client.images.generate = AsyncMock(side_effect=RuntimeError("content policy"))
    synthesizer = DiagramSynthesizer(client=client)

    result = asyncio.run(
        synthesizer.synthesize(4, SEMICIRCLE_QUESTION, "geometry", QuestionType.GEOMETRY_WITH_DIAGRAM)
    )
    assert result is None


def test_empty_image_response_returns_none():
    client = MagicMock()
    client.images.generate = AsyncMock(return_value=SimpleNamespace(data=[]))
    synthesizer = DiagramSynthesizer(client=client)

    result = asyncio.run(
        synthesizer.synthesize(5, SEMICIRCLE_QUESTION, "geometry", QuestionType.GEOMETRY_WITH_DIAGRAM)
    )
    assert result is None


def test_failed_download_returns_none():
    client = _image_client()

    async def run():
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        async with httpx.AsyncClient(transport=transport) as http_client:
            synthesizer = DiagramSynthesizer(client=client, http_client=http_client)
            return await synthesizer.synthesize(
                6, SEMICIRCLE_QUESTION, "geometry", QuestionType.GEOMETRY_WITH_DIAGRAM
            )

    assert asyncio.run(run()) is None


def test_undecodable_image_returns_none():
    client = _image_client()

    async def run():
        transport = httpx.MockTransport(lambda request: httpx.Response(200, content=b"not a png"))
        async with httpx.AsyncClient(transport=transport) as http_client:
            synthesizer = DiagramSynthesizer(client=client, http_client=http_client)
            return await synthesizer.synthesize(
                7, SEMICIRCLE_QUESTION, "geometry", QuestionType.GEOMETRY_WITH_DIAGRAM
            )

    assert asyncio.run(run()) is None
