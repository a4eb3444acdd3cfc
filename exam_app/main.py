import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from exam_app import config, crud, schemas, scoring
from exam_app.auth import require_admin
from exam_app.database import SessionLocal, get_db, init_tables
from exam_app.export import build_results_workbook, export_filename
from exam_db.seed import seed_database
from exam_db.validator import collect_problems


# -------------------------------------------------
# Logger 설정
# -------------------------------------------------
for _name in ("exam_app", "exam_db"):
    _logger = logging.getLogger(_name)
    if not _logger.handlers:
        _h = logging.StreamHandler()
        _h.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))
        _logger.addHandler(_h)
    _logger.setLevel(config.LOG_LEVEL)

logger = logging.getLogger("exam_app")


# -------------------------------------------------
# FastAPI 앱 / CORS / UTF-8 미들웨어
# -------------------------------------------------
app = FastAPI(title="Latihan Soal Coding & Esai")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def ensure_utf8_json(request: Request, call_next):
    """
    모든 JSON 응답에 charset=utf-8을 붙여서 브라우저가 Latin-1로 잘못 디코딩하지 않게 방지
    """
    response = await call_next(request)
    ct = response.headers.get("content-type", "")
    if ct.startswith("application/json") and "charset" not in ct.lower():
        response.headers["content-type"] = "application/json; charset=utf-8"
    return response


# 모든 에러 응답은 {"error": ...} 형식 (검증 에러는 details 포함)
@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = "Endpoint not found"
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={"error": "Data tidak valid", "details": jsonable_encoder(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception(f"Server error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def _check_subject(subject: str):
    if subject not in config.SUBJECTS:
        raise HTTPException(status_code=400, detail="Mata pelajaran tidak valid")


# -------------------------------------------------
# 기동 시 처리
# -------------------------------------------------
def _prepare_db_on_startup():
    """
    1. 테이블 생성
    2. 비어 있으면 data/*.json 으로 seed
    3. 저장소 검증, 문제가 있으면 예외를 던져서 서버 기동을 중단
    """
    init_tables()
    db = SessionLocal()
    try:
        seed_database(db)
        problems = collect_problems(db)
    finally:
        db.close()

    if problems:
        details = "\n".join(f"- {p}" for p in problems)
        raise RuntimeError("Store validation failed on startup:\n" + details)
    logger.info("[startup] store validated OK")


@app.on_event("startup")
def on_startup():
    _prepare_db_on_startup()


# -------------------------------------------------
# API 라우팅
# -------------------------------------------------
@app.get("/api/health", response_model=schemas.Health)
def health():
    return schemas.Health(
        status="OK",
        message="Server is running",
        timestamp=datetime.now(timezone.utc),
        environment=config.APP_ENV,
    )


# --- Students ---
@app.get("/api/students", response_model=schemas.StudentList)
def list_students(db: Session = Depends(get_db)):
    return schemas.StudentList(students=crud.get_students(db))


@app.get("/api/students/{student_id}", response_model=schemas.Student)
def read_student(student_id: int, db: Session = Depends(get_db)):
    student = crud.get_student(db, student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Siswa tidak ditemukan")
    return student


@app.post(
    "/api/students",
    response_model=schemas.StudentMessage,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_student(payload: schemas.StudentCreate, db: Session = Depends(get_db)):
    student = crud.create_student(db, payload)
    logger.info(f"student created id={student.id}")
    return schemas.StudentMessage(message="Siswa berhasil ditambahkan", student=student)


@app.put(
    "/api/students/{student_id}",
    response_model=schemas.StudentMessage,
    dependencies=[Depends(require_admin)],
)
def update_student(student_id: int, payload: schemas.StudentCreate, db: Session = Depends(get_db)):
    student = crud.get_student(db, student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Siswa tidak ditemukan")
    student = crud.update_student(db, student, payload)
    return schemas.StudentMessage(message="Siswa berhasil diperbarui", student=student)


@app.delete(
    "/api/students/{student_id}",
    response_model=schemas.StudentMessage,
    dependencies=[Depends(require_admin)],
)
def delete_student(student_id: int, db: Session = Depends(get_db)):
    student = crud.get_student(db, student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Siswa tidak ditemukan")
    deleted = schemas.Student.model_validate(student)
    crud.delete_student(db, student)
    logger.info(f"student deleted id={student_id}")
    return schemas.StudentMessage(message="Siswa berhasil dihapus", student=deleted)


# --- Questions ---
@app.get("/api/questions", response_model=Dict[str, List[schemas.Question]])
def list_all_questions(db: Session = Depends(get_db)):
    """
    관리 화면용: 과목별로 묶은 전체 문항. 문항이 없는 과목도 빈 리스트로 포함.
    """
    grouped: Dict[str, list] = {subject: [] for subject in config.SUBJECTS}
    for q in crud.get_all_questions(db):
        grouped.setdefault(q.subject, []).append(q)
    return grouped


@app.get("/api/questions/{subject}", response_model=schemas.SubjectQuestions)
def read_questions(subject: str, db: Session = Depends(get_db)):
    _check_subject(subject)
    return schemas.SubjectQuestions(
        subject=subject,
        questions=crud.get_questions_by_subject(db, subject),
    )


@app.get("/api/questions/{subject}/{question_id}", response_model=schemas.Question)
def read_question(subject: str, question_id: int, db: Session = Depends(get_db)):
    _check_subject(subject)
    question = crud.get_question(db, subject, question_id)
    if not question:
        raise HTTPException(status_code=404, detail="Soal tidak ditemukan")
    return question


@app.post(
    "/api/questions",
    response_model=schemas.QuestionMessage,
    status_code=201,
    dependencies=[Depends(require_admin)],
)
def create_question(payload: schemas.QuestionCreate, db: Session = Depends(get_db)):
    question = crud.create_question(db, payload)
    logger.info(f"question created id={question.id} subject={question.subject}")
    return schemas.QuestionMessage(message="Soal berhasil ditambahkan", question=question)


@app.put(
    "/api/questions/{subject}/{question_id}",
    response_model=schemas.QuestionMessage,
    dependencies=[Depends(require_admin)],
)
def update_question(
    subject: str,
    question_id: int,
    payload: schemas.QuestionUpdate,
    db: Session = Depends(get_db),
):
    _check_subject(subject)
    question = crud.get_question(db, subject, question_id)
    if not question:
        raise HTTPException(status_code=404, detail="Soal tidak ditemukan")
    question = crud.update_question(db, question, payload)
    return schemas.QuestionMessage(message="Soal berhasil diperbarui", question=question)


@app.delete(
    "/api/questions/{subject}/{question_id}",
    response_model=schemas.QuestionMessage,
    dependencies=[Depends(require_admin)],
)
def delete_question(subject: str, question_id: int, db: Session = Depends(get_db)):
    _check_subject(subject)
    question = crud.get_question(db, subject, question_id)
    if not question:
        raise HTTPException(status_code=404, detail="Soal tidak ditemukan")
    deleted = schemas.Question.model_validate(question)
    crud.delete_question(db, question)
    logger.info(f"question deleted id={question_id} subject={subject}")
    return schemas.QuestionMessage(message="Soal berhasil dihapus", question=deleted)


# --- Scores ---
@app.post("/api/scores/calculate", response_model=schemas.ScoreResponse)
def calculate_score(payload: schemas.ScoreRequest, db: Session = Depends(get_db)):
    """
    답안 채점 후 결과를 저장하고 문항별 점수를 반환.
    questions 를 보내지 않으면 저장된 해당 과목 문항으로 채점.
    """
    student = crud.get_student(db, payload.student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Siswa tidak ditemukan")

    questions = payload.questions
    if questions is None:
        questions = crud.get_questions_by_subject(db, payload.subject)

    question_scores, total_score, max_score, final_score = scoring.score_answers(
        questions, payload.answers
    )

    result = crud.create_result(
        db,
        student,
        payload.subject,
        question_scores,
        total_score,
        max_score,
        final_score,
        payload.time_used,
    )
    logger.info(
        f"result saved id={result.id} student={student.id} subject={payload.subject} "
        f"score={final_score:.2f}"
    )

    return schemas.ScoreResponse(
        final_score=final_score,
        total_score=total_score,
        max_score=max_score,
        time_used=payload.time_used,
        question_scores=question_scores,
        student=schemas.StudentSnapshot(
            name=student.name,
            class_name=student.class_name,
            nis=student.nis,
        ),
    )


@app.get("/api/scores/results", response_model=schemas.ResultList)
def list_results(subject: Optional[str] = None, db: Session = Depends(get_db)):
    results = crud.get_results(db, subject)
    return schemas.ResultList(results=results, total=len(results))


@app.get("/api/scores/results/{student_id}", response_model=schemas.ResultList)
def list_student_results(student_id: int, db: Session = Depends(get_db)):
    results = crud.get_results_by_student(db, student_id)
    return schemas.ResultList(results=results, total=len(results))


@app.get("/api/scores/export", dependencies=[Depends(require_admin)])
def export_results(db: Session = Depends(get_db)):
    results = crud.get_results(db)
    if not results:
        raise HTTPException(status_code=404, detail="Tidak ada data hasil untuk diexport")

    content = build_results_workbook(results)
    return Response(
        content=content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("exam_app.main:app", host="0.0.0.0", port=8000, reload=True)
