from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class GenerateTestRequest(BaseModel):
    source_question: str = ""
    source_answer: Optional[str] = None
    explanation: Optional[str] = None


class TestSummaryOut(BaseModel):
    id: str
    created_at: datetime

    class Config:
        from_attributes = True


class QuestionSummaryOut(BaseModel):
    id: str
    question_number: int
    difficulty_level: int

    class Config:
        from_attributes = True


class GenerateTestResponse(BaseModel):
    success: bool = True
    test: TestSummaryOut
    questions: List[QuestionSummaryOut]
    warnings: List[str] = []


class QuestionOut(BaseModel):
    id: str
    test_id: str
    question_number: int
    question_text: str
    correct_answer: str
    difficulty_level: int
    explanation: Optional[str] = None
    question_image_url: Optional[str] = None

    class Config:
        from_attributes = True


class TestOut(BaseModel):
    id: str
    source_question: str
    source_answer: str
    source_explanation: Optional[str] = None
    source_image_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: datetime
    questions: List[QuestionOut] = []

    class Config:
        from_attributes = True
