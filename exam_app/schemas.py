from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Subject = Literal["basis_data", "ppl", "pwpb", "pbo"]
QuestionType = Literal["coding", "essay"]


# --- Students ---
class StudentBase(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2)
    class_name: str = Field(min_length=1)
    nis: str = Field(min_length=1)


class StudentCreate(StudentBase):
    pass


class Student(StudentBase):
    model_config = ConfigDict(from_attributes=True)

    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class StudentList(BaseModel):
    students: List[Student]


class StudentMessage(BaseModel):
    message: str
    student: Student


# --- Questions ---
class CodingTestCase(BaseModel):
    input: str = ""
    expected: str = ""


class QuestionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    subject: Subject
    question_type: QuestionType
    question: str = Field(min_length=10)
    points: int = Field(ge=1, le=100)
    code_template: Optional[str] = None
    test_cases: Optional[List[CodingTestCase]] = None
    answer_key: Optional[List[str]] = None


class QuestionUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    question_type: QuestionType
    question: str = Field(min_length=10)
    points: int = Field(ge=1, le=100)
    code_template: Optional[str] = None
    test_cases: Optional[List[CodingTestCase]] = None
    answer_key: Optional[List[str]] = None


class Question(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    subject: str
    question_type: str
    question: str
    points: int
    code_template: Optional[str] = None
    test_cases: Optional[List[CodingTestCase]] = None
    answer_key: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SubjectQuestions(BaseModel):
    subject: str
    questions: List[Question]


class QuestionMessage(BaseModel):
    message: str
    question: Question


# --- Scoring ---
class ScoringQuestion(BaseModel):
    """
    채점 요청에 같이 실려 오는 문항. 채점에 필요한 필드만 본다.
    """
    id: int
    question_type: QuestionType
    points: int = Field(ge=1, le=100)
    test_cases: Optional[List[Any]] = None
    answer_key: Optional[List[str]] = None


class ScoreRequest(BaseModel):
    student_id: int = Field(ge=1)
    subject: Subject
    answers: Dict[str, Any] = Field(default_factory=dict)
    questions: Optional[List[ScoringQuestion]] = None
    time_used: int = Field(default=0, ge=0)


class QuestionScore(BaseModel):
    question_id: int
    question_type: str
    score: float
    max_score: float
    student_answer: str


class StudentSnapshot(BaseModel):
    name: str
    class_name: str
    nis: str


class ScoreResponse(BaseModel):
    final_score: float
    total_score: float
    max_score: float
    time_used: int
    question_scores: List[QuestionScore]
    student: StudentSnapshot


class Result(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    student_id: int
    student_name: str
    student_class: str
    student_nis: str
    subject: str
    final_score: float
    total_score: float
    max_score: float
    time_used: int
    question_scores: List[QuestionScore]
    timestamp: Optional[datetime] = None


class ResultList(BaseModel):
    results: List[Result]
    total: int


class Health(BaseModel):
    status: str
    message: str
    timestamp: datetime
    environment: str
