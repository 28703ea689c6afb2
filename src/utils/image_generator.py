"""
Diagram synthesis for generated geometry questions.

Pipeline:
    question text -> extract exact labels (diameter, angles) -> DALL-E prompt
    -> image URL -> download -> Pillow PNG re-encode -> data URL

Best-effort: every failure (upstream error, no image, timeout, bad bytes)
degrades to None so the question is kept without a figure.
"""

import asyncio
import base64
import io
import re
from dataclasses import dataclass, field
from typing import List, Optional

import httpx
from openai import AsyncOpenAI
from PIL import Image

from controllers.config import (
    logger,
    OPENAI_IMAGE_MODEL,
    DIAGRAM_GENERATION_TIMEOUT,
    DIAGRAM_DOWNLOAD_TIMEOUT,
    DIAGRAM_MAX_SIZE,
)
from utils.question_models import QuestionType


GEOMETRY_SHAPE_PATTERN = re.compile(
    r"(semicircle|triangle|circle|angle|diameter|radius|inscribed)", re.IGNORECASE
)

_UNIT = r"(cm|mm|meters?|metres?|m|units?|feet|foot|ft|inches|inch)\b"
_DIAMETER_PATTERN = re.compile(r"diameter\s+(?:of\s+)?(\d+)\s*" + _UNIT, re.IGNORECASE)
_RADIUS_PATTERN = re.compile(r"radius\s+(?:of\s+)?(\d+)\s*" + _UNIT, re.IGNORECASE)
_DEGREE_PATTERN = re.compile(r"(\d+)\s*(?:degrees?|°)", re.IGNORECASE)
_BASE_ANGLE_PATTERN = re.compile(
    r"(?:base\s+angle|one\s+(?:base\s+)?angle|angle|one\s+of\s+the\s+angles?)\s+"
    r"(?:is\s+|of\s+|measuring\s+)?(\d+)\s*(?:degrees?|°)",
    re.IGNORECASE,
)


def needs_diagram(question_text: str, question_type) -> bool:
    """Gate for synthesis: geometry questions, or text naming a shape or measurement."""
    if question_type == QuestionType.GEOMETRY_WITH_DIAGRAM:
        return True
    return bool(GEOMETRY_SHAPE_PATTERN.search(question_text or ""))


@dataclass
class DiagramFacts:
    """Exact labels pulled from a question so the figure matches its text."""

    diameter: Optional[str] = None
    unit: str = "cm"
    angles: List[str] = field(default_factory=list)
    has_semicircle: bool = False
    has_triangle: bool = False
    has_circle: bool = False

    @property
    def diameter_label(self) -> Optional[str]:
        if not self.diameter:
            return None
        return f"{self.diameter} {self.unit}"


def extract_diagram_facts(question_text: str) -> DiagramFacts:
    text = question_text or ""
    lower = text.lower()
    facts = DiagramFacts(
        has_semicircle="semicircle" in lower,
        has_triangle="triangle" in lower,
        has_circle="circle" in lower,
    )

    # Diameter wins over radius; a radius is doubled
    diameter_match = _DIAMETER_PATTERN.search(text)
    radius_match = _RADIUS_PATTERN.search(text)
    if diameter_match:
        facts.diameter = diameter_match.group(1)
        facts.unit = diameter_match.group(2)
    elif radius_match:
        facts.diameter = str(int(radius_match.group(1)) * 2)
        facts.unit = radius_match.group(2)

    seen = set()
    candidates = [int(m) for m in _DEGREE_PATTERN.findall(text)]
    base_angle = _BASE_ANGLE_PATTERN.search(text)
    if base_angle:
        candidates.append(int(base_angle.group(1)))
    for value in candidates:
        if 0 < value <= 180 and value not in seen:
            seen.add(value)
            facts.angles.append(f"{value}°")

    if "angle x" in lower or "angle labeled x" in lower:
        facts.angles.append("x")

    return facts


def build_diagram_prompt(facts: DiagramFacts, concept: str = "") -> str:
    """Build a tightly constrained DALL-E prompt carrying the exact labels."""
    shapes = []
    if facts.has_semicircle:
        shapes.append("a semicircle")
    elif facts.has_circle:
        shapes.append("a circle")
    if facts.has_triangle:
        shapes.append("a triangle" if not shapes else "with a triangle inside")
    shape_text = " ".join(shapes) or f"the figure for {concept or 'the question'}"

    diameter_label = facts.diameter_label
    angle_labels = ", ".join(facts.angles)

    lines = [
        "A very simple, small 2D line drawing geometry diagram for a Grade 9 math textbook question.",
        "",
        "CRITICAL REQUIREMENTS - MUST FOLLOW EXACTLY:",
        "- Extremely simple 2D line drawing - flat, NO 3D, NO perspective, NO depth, NO shading, NO texture",
        "- Black thin lines ONLY on pure white background",
        "- Small size - should fit in a small box next to text, NOT full screen",
        f"- Simple geometric shapes: {shape_text}",
    ]
    if diameter_label:
        lines.append(f'- Diameter MUST be labeled exactly: "{diameter_label}"')
    if facts.angles:
        lines.append(f"- Angles MUST be labeled exactly: {angle_labels}")
    else:
        lines.append('- One angle labeled "x"')
    lines += [
        "- Style: Like a tiny simple diagram in a math book - minimal, clean, educational",
        "- NO decorative elements, NO tools, NO objects, NO background, NO grid, NO protractor markings",
        "- NO complex patterns, NO technical drawings, NO blueprints",
        "- Just the basic shape with labels matching the question text EXACTLY",
        "",
        "The diagram must show EXACTLY what the question describes:",
    ]
    if facts.has_semicircle and facts.has_triangle:
        lines.append(
            "A semicircle"
            + (f' with diameter labeled "{diameter_label}"' if diameter_label else "")
            + ". A triangle is inscribed with its base as the diameter."
        )
    lines.append(f"Angles labeled: {angle_labels}" if facts.angles else "One angle labeled x")
    if diameter_label:
        lines.append(
            f'The diameter measurement "{diameter_label}" MUST be clearly visible in the diagram.'
        )
    lines += [
        "",
        "Make it SMALL and SIMPLE - like a 2-inch square diagram that fits next to text in a textbook.",
        "",
        "CRITICAL: The numbers and labels in the diagram MUST match the question text EXACTLY.",
    ]
    return "\n".join(lines)


class DiagramSynthesizer:
    """Generate small 2-D figures for geometry questions with DALL-E."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        model: str = OPENAI_IMAGE_MODEL,
        generation_timeout: float = DIAGRAM_GENERATION_TIMEOUT,
        download_timeout: float = DIAGRAM_DOWNLOAD_TIMEOUT,
        max_size: int = DIAGRAM_MAX_SIZE,
    ):
        self.client = client or AsyncOpenAI()
        self.http_client = http_client
        self.model = model
        self.generation_timeout = generation_timeout
        self.download_timeout = download_timeout
        self.max_size = max_size

    async def synthesize(
        self,
        question_number: int,
        question_text: str,
        concept: str,
        question_type,
    ) -> Optional[str]:
        """
        Generate a diagram for one question.

        Returns:
            A data:image/png;base64 URL, or None when skipped or on any failure
        """
        if not needs_diagram(question_text, question_type):
            return None

        try:
            facts = extract_diagram_facts(question_text)
            prompt = build_diagram_prompt(facts, concept)
            logger.debug(f"Diagram prompt for question {question_number}: {prompt}")

            logger.info(f"Generating image for question {question_number}...")
            image = await asyncio.wait_for(
                self._generate_image(prompt), timeout=self.generation_timeout
            )
            if image is None:
                logger.warning(f"No image returned for question {question_number}")
                return None

            image_bytes = image
            if isinstance(image, str):
                logger.info(f"Image generated for question {question_number}, downloading...")
                image_bytes = await asyncio.wait_for(
                    self._download(image), timeout=self.download_timeout
                )

            data_url = self._to_data_url(image_bytes)
            logger.info(f"Image embedded for question {question_number}")
            return data_url

        except asyncio.TimeoutError:
            logger.warning(f"Diagram timeout for question {question_number} - skipping")
            return None
        except Exception as e:
            logger.error(f"Error generating diagram for question {question_number}: {e}")
            return None

    async def _generate_image(self, prompt: str):
        """Returns the image URL, raw bytes for inline payloads, or None."""
        response = await self.client.images.generate(
            model=self.model,
            prompt=prompt,
            size="1024x1024",
            quality="standard",
            n=1,
        )
        if not response.data:
            return None
        item = response.data[0]
        if getattr(item, "b64_json", None):
            return base64.b64decode(item.b64_json)
        return getattr(item, "url", None) or None

    async def _download(self, image_url: str) -> bytes:
        if self.http_client is not None:
            resp = await self.http_client.get(image_url)
            resp.raise_for_status()
            return resp.content
        async with httpx.AsyncClient(follow_redirects=True) as client:
            resp = await client.get(image_url)
            resp.raise_for_status()
            return resp.content

    def _to_data_url(self, image_bytes: bytes) -> str:
        image = Image.open(io.BytesIO(image_bytes))

        # Convert to RGB if necessary
        if image.mode != "RGB":
            image = image.convert("RGB")

        # Inset size, keeps the stored data URL small
        image.thumbnail((self.max_size, self.max_size), Image.Resampling.LANCZOS)

        img_byte_arr = io.BytesIO()
        image.save(img_byte_arr, format="PNG", optimize=True)
        encoded = base64.b64encode(img_byte_arr.getvalue()).decode("ascii")
        return f"data:image/png;base64,{encoded}"
