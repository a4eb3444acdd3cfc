import os
from pathlib import Path

# 프로젝트 루트 (exam_app/config.py 기준으로 ..)
BASE_DIR = Path(__file__).resolve().parents[1]

STORAGE_DIR = Path(os.getenv("STORAGE_DIR", BASE_DIR / "storage"))
DATA_DIR = Path(os.getenv("DATA_DIR", BASE_DIR / "data"))
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{STORAGE_DIR / 'exam.db'}")

ADMIN_TOKEN = os.getenv("ADMIN_TOKEN", "admin-token")
APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

_DEFAULT_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173"
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", _DEFAULT_ORIGINS).split(",") if o.strip()
]

SUBJECTS = {
    "basis_data": "Basis Data",
    "ppl": "PPL",
    "pwpb": "PWPB",
    "pbo": "PBO",
}
QUESTION_TYPES = {"coding", "essay"}


def subject_display_name(subject: str) -> str:
    return SUBJECTS.get(subject, subject)
