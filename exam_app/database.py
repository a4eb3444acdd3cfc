from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from exam_app.config import DATABASE_URL, STORAGE_DIR

Base = declarative_base()


def _make_engine(url: str):
    connect_args = {}
    if url.startswith("sqlite"):
        # sqlite 파일은 storage/ 아래에 생성되므로 폴더가 먼저 있어야 함
        if url.startswith(f"sqlite:///{STORAGE_DIR}"):
            STORAGE_DIR.mkdir(parents=True, exist_ok=True)
        connect_args = {"check_same_thread": False}
    return create_engine(url, connect_args=connect_args)


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_tables(bind=None):
    # models 를 import 해야 Base.metadata 에 테이블이 등록됨
    from exam_app import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    FastAPI dependency: 요청마다 세션 하나를 열고 끝나면 닫는다.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
