import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship
from utils.db import Base


class UserRoleEnum(str):
    ADMIN = "ADMIN"
    CANDIDATE = "CANDIDATE"


def generate_uuid() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_uuid)
    firebase_uid = Column(String, unique=True, nullable=False, index=True)
    email = Column(String, nullable=True)
    role = Column(String, nullable=False, default=UserRoleEnum.CANDIDATE)  # "ADMIN" or "CANDIDATE"
    created_at = Column(DateTime, default=utc_now, nullable=False)

    tests = relationship("Test", back_populates="creator")


class Test(Base):
    __tablename__ = "tests"

    id = Column(String, primary_key=True, default=generate_uuid)
    source_question = Column(Text, nullable=False)
    source_answer = Column(Text, nullable=False)
    source_explanation = Column(Text, nullable=True)
    # data:<mime>;base64,... when the admin uploaded an image
    source_image_url = Column(Text, nullable=True)
    created_by = Column(String, ForeignKey("users.id"), nullable=True, index=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    creator = relationship("User", back_populates="tests")
    questions = relationship(
        "Question",
        back_populates="test",
        order_by="Question.question_number",
        cascade="all, delete-orphan",
    )


class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (
        UniqueConstraint("test_id", "question_number", name="uq_questions_test_number"),
    )

    id = Column(String, primary_key=True, default=generate_uuid)
    test_id = Column(String, ForeignKey("tests.id"), nullable=False, index=True)
    question_number = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=False)
    correct_answer = Column(Text, nullable=False)
    difficulty_level = Column(Integer, nullable=False)
    explanation = Column(Text, nullable=True)
    question_image_url = Column(Text, nullable=True)
    created_at = Column(DateTime, default=utc_now, nullable=False)

    test = relationship("Test", back_populates="questions")
