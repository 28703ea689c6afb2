from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from controllers.config import logger
from controllers.db_helpers import get_test_with_questions, save_generated_test
from models import User
from schemas import (
    GenerateTestRequest,
    GenerateTestResponse,
    QuestionOut,
    QuestionSummaryOut,
    TestOut,
    TestSummaryOut,
)
from utils.db import get_db
from utils.firebase_auth import require_admin
from utils.generation_errors import GenerationError, SourceMaterialError
from utils.question_generator import QuestionGenerator
from utils.source_material import SourceMaterial
from utils.vision_extractor import extract_question_from_image


router = APIRouter(prefix="/api/tests", tags=["Tests"])


def get_question_generator() -> QuestionGenerator:
    return QuestionGenerator()


async def _read_source_material(request: Request) -> SourceMaterial:
    """Build SourceMaterial from a JSON body or a multipart form (text or image input)."""
    content_type = request.headers.get("content-type", "")
    image_data: Optional[bytes] = None
    image_mime_type: Optional[str] = None
    source_answer: Optional[str] = None

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        input_type = form.get("input_type") or "text"
        if input_type == "image":
            upload = form.get("image")
            if upload is None or isinstance(upload, str):
                raise HTTPException(status_code=400, detail="Missing image file")
            image_data = await upload.read()
            image_mime_type = upload.content_type or "image/png"
            source_question = await extract_question_from_image(
                image_data, image_mime_type
            )
        else:
            source_question = form.get("source_question") or ""
        explanation = form.get("explanation") or None
    else:
        try:
            body = GenerateTestRequest.model_validate(await request.json())
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid request body")
        source_question = body.source_question
        source_answer = body.source_answer
        explanation = body.explanation

    return SourceMaterial.create(
        question=source_question,
        answer=source_answer,
        explanation=explanation,
        image_data=image_data,
        image_mime_type=image_mime_type,
    )


@router.post("/generate", response_model=GenerateTestResponse)
async def generate_test(
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
    generator: QuestionGenerator = Depends(get_question_generator),
):
    try:
        source = await _read_source_material(request)
        logger.info(
            f"Generating test for admin {admin.id} "
            f"(image: {source.has_image}, answer extracted: {source.has_extracted_answer})"
        )

        result = await generator.generate_batch(source)

        test, stored = save_generated_test(
            db,
            source_question=source.question,
            source_answer=source.answer,
            questions=result.questions,
            source_explanation=source.explanation,
            source_image_url=source.image_data_url(),
            created_by=admin.id,
        )

        return GenerateTestResponse(
            success=True,
            test=TestSummaryOut.model_validate(test),
            questions=[QuestionSummaryOut.model_validate(q) for q in stored],
            warnings=result.warnings,
        )
    except HTTPException:
        raise
    except SourceMaterialError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except GenerationError as e:
        logger.error(f"Test generation failed: {e}")
        raise HTTPException(
            status_code=500, detail=f"Failed to generate test: {str(e)}"
        )
    except Exception as e:
        logger.error(f"Error generating test: {e}")
        raise HTTPException(
            status_code=500, detail=f"Failed to generate test: {str(e)}"
        )


@router.get("/{test_id}", response_model=TestOut)
async def get_test_detail(
    test_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    try:
        result = get_test_with_questions(db, test_id)
        if not result:
            raise HTTPException(status_code=404, detail="Test not found")
        test = result["test"]
        return TestOut(
            id=test.id,
            source_question=test.source_question,
            source_answer=test.source_answer,
            source_explanation=test.source_explanation,
            source_image_url=test.source_image_url,
            created_by=test.created_by,
            created_at=test.created_at,
            questions=[QuestionOut.model_validate(q) for q in result["questions"]],
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error fetching test {test_id}: {e}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch test: {str(e)}")
