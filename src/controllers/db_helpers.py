from typing import List, Optional, Tuple
from sqlalchemy.orm import Session
from models import Question, Test, User
from utils.question_models import GeneratedQuestion, QUESTIONS_PER_TEST
from .config import logger


def get_user_by_firebase_uid(db: Session, firebase_uid: str) -> Optional[User]:
    return db.query(User).filter(User.firebase_uid == firebase_uid).first()


def create_test(
    db: Session,
    source_question: str,
    source_answer: str,
    source_explanation: Optional[str] = None,
    source_image_url: Optional[str] = None,
    created_by: Optional[str] = None,
    commit: bool = True,
) -> Test:
    """With commit=False the row is only flushed, so test.id is set inside the caller's transaction."""
    try:
        test = Test(
            source_question=source_question,
            source_answer=source_answer,
            source_explanation=source_explanation,
            source_image_url=source_image_url,
            created_by=created_by,
        )
        db.add(test)
        if not commit:
            db.flush()
            return test
        db.commit()
        db.refresh(test)
        logger.info(f"Created test {test.id}")
        return test
    except Exception:
        db.rollback()
        raise


def create_questions(
    db: Session,
    test_id: str,
    questions: List[GeneratedQuestion],
    commit: bool = True,
) -> List[Question]:
    """Store the generated questions of a test, returned ordered by question_number."""
    try:
        rows = [
            Question(
                test_id=test_id,
                question_number=q.question_number,
                question_text=q.question_text,
                correct_answer=q.correct_answer,
                difficulty_level=q.difficulty_level,
                explanation=q.explanation,
                question_image_url=q.question_image_url,
            )
            for q in questions
        ]
        db.add_all(rows)
        if not commit:
            db.flush()
            return sorted(rows, key=lambda row: row.question_number)
        db.commit()
        for row in rows:
            db.refresh(row)
        logger.info(f"Stored {len(rows)} questions for test {test_id}")
        return sorted(rows, key=lambda row: row.question_number)
    except Exception:
        db.rollback()
        raise


def save_generated_test(
    db: Session,
    source_question: str,
    source_answer: str,
    questions: List[GeneratedQuestion],
    source_explanation: Optional[str] = None,
    source_image_url: Optional[str] = None,
    created_by: Optional[str] = None,
) -> Tuple[Test, List[Question]]:
    """Store a test and its questions in one transaction; nothing is kept if any part fails."""
    try:
        test = create_test(
            db,
            source_question=source_question,
            source_answer=source_answer,
            source_explanation=source_explanation,
            source_image_url=source_image_url,
            created_by=created_by,
            commit=False,
        )
        rows = create_questions(db, test.id, questions, commit=False)
        if len(rows) != QUESTIONS_PER_TEST:
            raise ValueError("Failed to save all questions to database")
        db.commit()
        db.refresh(test)
        for row in rows:
            db.refresh(row)
        logger.info(f"Created test {test.id} with {len(rows)} questions")
        return test, rows
    except Exception:
        db.rollback()
        raise


def get_test(db: Session, test_id: str) -> Optional[Test]:
    return db.query(Test).filter(Test.id == test_id).first()


def get_test_questions(db: Session, test_id: str) -> List[Question]:
    return (
        db.query(Question)
        .filter(Question.test_id == test_id)
        .order_by(Question.question_number.asc())
        .all()
    )


def get_test_with_questions(db: Session, test_id: str) -> Optional[dict]:
    test = get_test(db, test_id)
    if not test:
        return None
    return {"test": test, "questions": get_test_questions(db, test_id)}
