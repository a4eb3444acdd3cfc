from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, Integer, JSON, String, Text

from exam_app.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Student(Base):
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    class_name = Column(String, nullable=False)
    nis = Column(String, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    subject = Column(String, index=True, nullable=False)
    question_type = Column(String, index=True, nullable=False)  # 'coding', 'essay'
    question = Column(Text, nullable=False)
    points = Column(Integer, nullable=False)
    code_template = Column(Text, nullable=True)  # coding only
    test_cases = Column(JSON, nullable=True)  # coding only
    answer_key = Column(JSON, nullable=True)  # essay only
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=True)


class Result(Base):
    """
    한 번의 응시 결과. 생성 후 수정하지 않는다 (append-only).
    학생 정보는 응시 시점 스냅샷으로 같이 저장한다.
    """
    __tablename__ = "results"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, index=True, nullable=False)
    student_name = Column(String, nullable=False)
    student_class = Column(String, nullable=False)
    student_nis = Column(String, nullable=False)
    subject = Column(String, index=True, nullable=False)
    final_score = Column(Float, nullable=False)
    total_score = Column(Float, nullable=False)
    max_score = Column(Float, nullable=False)
    time_used = Column(Integer, nullable=False, default=0)
    question_scores = Column(JSON, nullable=False)
    timestamp = Column(DateTime(timezone=True), default=_utcnow, index=True)
