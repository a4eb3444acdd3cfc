import json
import logging
from pathlib import Path

from sqlalchemy.orm import Session

from exam_app import models
from exam_app.config import DATA_DIR, QUESTION_TYPES, SUBJECTS
from exam_app.database import SessionLocal, init_tables

logger = logging.getLogger("exam_db")


def load_json_file(path: Path):
    """
    Load JSON with utf-8-sig to tolerate BOM
    """
    with path.open("r", encoding="utf-8-sig") as f:
        return json.load(f)


def validate_question(q: dict, subject: str):
    """
    Minimal validation for required fields, types, and ranges.
    """
    if subject not in SUBJECTS:
        raise ValueError(f"[{subject}] id={q.get('id')} unknown subject")

    qt = q.get("question_type") or q.get("type")
    if qt not in QUESTION_TYPES:
        raise ValueError(f"[{subject}] id={q.get('id')} invalid question_type: {qt}")

    text = q.get("question")
    if not isinstance(text, str) or len(text.strip()) < 10:
        raise ValueError(f"[{subject}] id={q.get('id')} question must be at least 10 characters")

    points = q.get("points")
    if not isinstance(points, int) or isinstance(points, bool) or not 1 <= points <= 100:
        raise ValueError(f"[{subject}] id={q.get('id')} points must be between 1-100")

    if qt == "coding" and not isinstance(q.get("test_cases", []), list):
        raise ValueError(f"[{subject}] id={q.get('id')} test_cases must be a list")
    answer_key = q.get("answer_key", [])
    if qt == "essay" and not isinstance(answer_key, list):
        raise ValueError(f"[{subject}] id={q.get('id')} answer_key must be a list")
    if qt == "essay" and not all(isinstance(k, str) for k in answer_key):
        raise ValueError(f"[{subject}] id={q.get('id')} answer_key must contain only strings")

    return True


def validate_student(s: dict):
    name = s.get("name")
    if not isinstance(name, str) or len(name.strip()) < 2:
        raise ValueError(f"student id={s.get('id')} name must be at least 2 characters")
    for field in ("class", "nis"):
        value = s.get(field)
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"student id={s.get('id')} missing field: {field}")
    return True


def _question_row(q: dict, subject: str) -> models.Question:
    qt = q.get("question_type") or q.get("type")
    row = models.Question(
        subject=subject,
        question_type=qt,
        question=q["question"].strip(),
        points=q["points"],
    )
    if qt == "coding":
        row.code_template = q.get("code_template", "")
        row.test_cases = q.get("test_cases", [])
    else:
        row.answer_key = q.get("answer_key", [])
    return row


def seed_students(db: Session, items) -> int:
    count = 0
    for s in items:
        try:
            validate_student(s)
        except ValueError as e:
            logger.error(f"[seed] skip invalid student: {e}")
            continue
        db.add(models.Student(
            name=s["name"].strip(),
            class_name=s["class"].strip(),
            nis=s["nis"].strip(),
        ))
        count += 1
    return count


def seed_questions(db: Session, by_subject: dict) -> int:
    rows = []
    used: set[int] = set()
    for subject, items in by_subject.items():
        if not isinstance(items, list):
            logger.warning(f"[seed] {subject} is not a list; skipping")
            continue
        for q in items:
            try:
                validate_question(q, subject)
            except ValueError as e:
                logger.error(f"[seed] skip invalid question: {e}")
                continue
            row = _question_row(q, subject)
            # Assign IDs (preserve valid ids when non-colliding)
            vid = q.get("id")
            if isinstance(vid, int) and not isinstance(vid, bool) and vid > 0 and vid not in used:
                row.id = vid
                used.add(vid)
            rows.append(row)

    next_id = 1
    for row in rows:
        if row.id is None:
            while next_id in used:
                next_id += 1
            logger.warning(f"[seed] {row.subject} question id collides; stored as id={next_id}")
            row.id = next_id
            used.add(next_id)

    db.add_all(rows)
    return len(rows)


def is_empty(db: Session) -> bool:
    return db.query(models.Student).count() == 0 and db.query(models.Question).count() == 0


def seed_database(db: Session, data_dir: Path = DATA_DIR) -> bool:
    """
    - 학생/문항이 하나도 없을 때만 data/*.json 으로 채운다
    - 이미 데이터가 있으면 아무것도 하지 않고 False
    """
    if not is_empty(db):
        logger.info("[seed] store already has data. skipping")
        return False

    students_path = data_dir / "students.json"
    questions_path = data_dir / "questions.json"

    n_students = 0
    if students_path.exists():
        n_students = seed_students(db, load_json_file(students_path).get("students", []))
    else:
        logger.warning(f"[seed] {students_path} not found")

    n_questions = 0
    if questions_path.exists():
        n_questions = seed_questions(db, load_json_file(questions_path))
    else:
        logger.warning(f"[seed] {questions_path} not found")

    db.commit()
    logger.info(f"[seed] loaded {n_students} students, {n_questions} questions from {data_dir}")
    return True


def main():
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    init_tables()
    db = SessionLocal()
    try:
        seed_database(db)
    finally:
        db.close()


if __name__ == "__main__":
    main()
