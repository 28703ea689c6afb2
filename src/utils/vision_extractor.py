"""
Read an uploaded question image into question text with an OpenAI vision model.
"""

import base64
from typing import Optional

from openai import AsyncOpenAI

from controllers.config import logger, OPENAI_VISION_MODEL, SOURCE_QUESTION_MIN_LENGTH
from utils.generation_errors import GenerationError, SourceMaterialError


EXTRACTION_PROMPT = """Extract the COMPLETE question text and all multiple choice answers from this image.

IMPORTANT:
1. Extract ALL text visible in the image, including the question statement, all answer choices (A, B, C, D, etc.), and any diagrams/figures descriptions
2. If there is a diagram, graph, table, or visual element, describe it in detail in your response
3. Include the question exactly as it appears, preserving all mathematical notation
4. If the correct answer is indicated, include that as well
5. Describe any geometric shapes, angles, measurements, or visual elements that are part of the question

Format your response as:
Question: [full question text]
A) [answer choice A]
B) [answer choice B]
C) [answer choice C]
D) [answer choice D]
Answer: [correct answer if visible]

If there are diagrams or visual elements, describe them clearly in the question text."""


async def extract_question_from_image(
    image_data: bytes,
    mime_type: str = "image/png",
    client: Optional[AsyncOpenAI] = None,
    model: str = OPENAI_VISION_MODEL,
) -> str:
    """
    Transcribe a photographed or scanned question.

    Raises:
        SourceMaterialError: the image is empty or too little text was read from it
        GenerationError: the vision call itself failed
    """
    if not image_data:
        raise SourceMaterialError("Missing image file")

    client = client or AsyncOpenAI()
    encoded = base64.b64encode(image_data).decode("ascii")
    image_url = f"data:{mime_type};base64,{encoded}"

    try:
        response = await client.chat.completions.create(
            model=model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": EXTRACTION_PROMPT},
                        {"type": "image_url", "image_url": {"url": image_url}},
                    ],
                }
            ],
            max_tokens=2000,
        )
    except Exception as e:
        logger.error(f"Vision extraction failed: {e}")
        raise GenerationError(f"Failed to read question image: {e}") from e

    text = (response.choices[0].message.content if response.choices else None) or ""
    if len(text.strip()) < SOURCE_QUESTION_MIN_LENGTH:
        raise SourceMaterialError(
            "Could not extract sufficient text from image. "
            "Please try a clearer image or use text input."
        )

    logger.info(f"Extracted {len(text)} characters of question text from image")
    return text.strip()
