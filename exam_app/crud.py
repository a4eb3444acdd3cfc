from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from exam_app import models, schemas

PLACEHOLDER_TEST_CASE = {"input": "", "expected": "Output yang diharapkan"}


# --- Students ---
def get_students(db: Session):
    return db.query(models.Student).order_by(models.Student.id).all()


def get_student(db: Session, student_id: int) -> Optional[models.Student]:
    return db.query(models.Student).filter(models.Student.id == student_id).first()


def create_student(db: Session, student: schemas.StudentCreate):
    db_student = models.Student(**student.model_dump())
    db.add(db_student)
    db.commit()
    db.refresh(db_student)
    return db_student


def update_student(db: Session, db_student: models.Student, student: schemas.StudentCreate):
    for key, value in student.model_dump().items():
        setattr(db_student, key, value)
    db_student.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(db_student)
    return db_student


def delete_student(db: Session, db_student: models.Student):
    db.delete(db_student)
    db.commit()


# --- Questions ---
def _type_specific_fields(question_type: str, payload) -> dict:
    """
    유형별 필드만 채우고 다른 유형의 필드는 None 으로 비운다.
    """
    if question_type == "coding":
        test_cases = payload.test_cases
        return {
            "code_template": payload.code_template or "",
            "test_cases": [tc.model_dump() for tc in test_cases] if test_cases is not None else [],
            "answer_key": None,
        }
    return {
        "code_template": None,
        "test_cases": None,
        "answer_key": list(payload.answer_key or []),
    }


def get_all_questions(db: Session):
    return db.query(models.Question).order_by(models.Question.subject, models.Question.id).all()


def get_questions_by_subject(db: Session, subject: str):
    return (
        db.query(models.Question)
        .filter(models.Question.subject == subject)
        .order_by(models.Question.id)
        .all()
    )


def get_question(db: Session, subject: str, question_id: int) -> Optional[models.Question]:
    return (
        db.query(models.Question)
        .filter(models.Question.subject == subject, models.Question.id == question_id)
        .first()
    )


def create_question(db: Session, question: schemas.QuestionCreate):
    fields = _type_specific_fields(question.question_type, question)
    if question.question_type == "coding" and question.test_cases is None:
        fields["test_cases"] = [dict(PLACEHOLDER_TEST_CASE)]

    db_question = models.Question(
        subject=question.subject,
        question_type=question.question_type,
        question=question.question,
        points=question.points,
        **fields,
    )
    db.add(db_question)
    db.commit()
    db.refresh(db_question)
    return db_question


def update_question(db: Session, db_question: models.Question, question: schemas.QuestionUpdate):
    db_question.question_type = question.question_type
    db_question.question = question.question
    db_question.points = question.points
    for key, value in _type_specific_fields(question.question_type, question).items():
        setattr(db_question, key, value)
    db_question.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(db_question)
    return db_question


def delete_question(db: Session, db_question: models.Question):
    db.delete(db_question)
    db.commit()


# --- Results (append-only) ---
def create_result(
    db: Session,
    student: models.Student,
    subject: str,
    question_scores: List[schemas.QuestionScore],
    total_score: float,
    max_score: float,
    final_score: float,
    time_used: int,
):
    db_result = models.Result(
        student_id=student.id,
        student_name=student.name,
        student_class=student.class_name,
        student_nis=student.nis,
        subject=subject,
        final_score=final_score,
        total_score=total_score,
        max_score=max_score,
        time_used=time_used,
        question_scores=[qs.model_dump() for qs in question_scores],
    )
    db.add(db_result)
    db.commit()
    db.refresh(db_result)
    return db_result


def get_results(db: Session, subject: Optional[str] = None):
    query = db.query(models.Result)
    if subject and subject != "all":
        query = query.filter(models.Result.subject == subject)
    return query.order_by(models.Result.timestamp.desc(), models.Result.id.desc()).all()


def get_results_by_student(db: Session, student_id: int):
    return (
        db.query(models.Result)
        .filter(models.Result.student_id == student_id)
        .order_by(models.Result.timestamp.desc(), models.Result.id.desc())
        .all()
    )
