import logging
from typing import List

from sqlalchemy import func
from sqlalchemy.orm import Session

from exam_app import models
from exam_app.config import QUESTION_TYPES, SUBJECTS
from exam_app.database import SessionLocal, init_tables

# 저장소(students/questions/results) 전체를 검증하는 간단한 QA 스크립트
logger = logging.getLogger("exam_db")


def _check_unique_ids(db: Session, model) -> List[str]:
    count, distinct = db.query(func.count(model.id), func.count(func.distinct(model.id))).one()
    if count != distinct:
        return [f"{model.__tablename__}: duplicate id (COUNT != COUNT(DISTINCT id))"]
    return []


def _check_question(q: models.Question) -> List[str]:
    problems = []
    if q.subject not in SUBJECTS:
        problems.append(f"question id={q.id}: unknown subject '{q.subject}'")
    if q.question_type not in QUESTION_TYPES:
        problems.append(f"question id={q.id}: invalid question_type '{q.question_type}'")
    if not isinstance(q.points, int) or not 1 <= q.points <= 100:
        problems.append(f"question id={q.id}: points out of range ({q.points})")
    if q.question_type == "coding" and not isinstance(q.test_cases, list):
        problems.append(f"question id={q.id}: test_cases is not a list")
    if q.question_type == "essay" and not isinstance(q.answer_key, list):
        problems.append(f"question id={q.id}: answer_key is not a list")
    elif q.question_type == "essay" and not all(isinstance(k, str) for k in q.answer_key):
        problems.append(f"question id={q.id}: answer_key contains non-string keywords")
    return problems


def _check_result(r: models.Result) -> List[str]:
    problems = []
    if not 0 <= r.final_score <= 100:
        problems.append(f"result id={r.id}: final_score out of range ({r.final_score})")
    if r.total_score < 0 or r.max_score < 0:
        problems.append(f"result id={r.id}: negative total/max score")
    if r.time_used < 0:
        problems.append(f"result id={r.id}: negative time_used")
    if not isinstance(r.question_scores, list):
        problems.append(f"result id={r.id}: question_scores is not a list")
    return problems


def collect_problems(db: Session) -> List[str]:
    problems: List[str] = []
    for model in (models.Student, models.Question, models.Result):
        problems.extend(_check_unique_ids(db, model))

    for q in db.query(models.Question).all():
        problems.extend(_check_question(q))
    for r in db.query(models.Result).all():
        problems.extend(_check_result(r))
    return problems


def validate_db(db: Session):
    """
    문제가 하나라도 있으면 ValueError.
    """
    problems = collect_problems(db)
    if problems:
        raise ValueError("\n".join(f"- {p}" for p in problems))
    logger.info("[validate] store OK")


def main():
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    init_tables()
    db = SessionLocal()
    try:
        validate_db(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
