import os

# 테스트는 항상 메모리 DB 사용 (storage/ 에 파일을 만들지 않도록 import 전에 설정)
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from exam_app import config, models
from exam_app.database import get_db, init_tables
from exam_app.main import app


@pytest.fixture
def db_session():
    """Fresh in-memory database per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_tables(bind=engine)
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture
def client(db_session):
    """TestClient wired to the per-test session (startup hooks are not run)."""
    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": f"Bearer {config.ADMIN_TOKEN}"}


@pytest.fixture
def student(db_session):
    s = models.Student(name="Andi Wijaya", class_name="XII RPL 1", nis="2024001")
    db_session.add(s)
    db_session.commit()
    db_session.refresh(s)
    return s


@pytest.fixture
def questions(db_session):
    """One coding and one essay question for basis_data."""
    coding = models.Question(
        subject="basis_data",
        question_type="coding",
        question="Tampilkan semua data dari tabel mahasiswa",
        points=20,
        code_template="",
        test_cases=[{"input": "", "expected": "rows"}],
    )
    essay = models.Question(
        subject="basis_data",
        question_type="essay",
        question="Jelaskan perbedaan INNER JOIN dan LEFT JOIN",
        points=30,
        answer_key=["select", "join"],
    )
    db_session.add_all([coding, essay])
    db_session.commit()
    db_session.refresh(coding)
    db_session.refresh(essay)
    return coding, essay
