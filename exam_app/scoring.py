from typing import Any, List, Mapping, Tuple

from exam_app import schemas

CODING_KEYWORDS = ("function", "return", "if", "for", "while", "select", "from", "where")


def _lookup_answer(answers: Mapping[Any, Any], question_id: int) -> str:
    """
    answers 키는 JSON 에서 오면 str, 파이썬에서 직접 넘기면 int 일 수 있음.
    문자열이 아닌 값은 빈 답안으로 취급.
    """
    if not answers:
        return ""
    value = answers.get(str(question_id))
    if value is None:
        value = answers.get(question_id)
    return value if isinstance(value, str) else ""


def _as_list(value) -> list:
    return value if isinstance(value, list) else []


def _clamp(score: float, points: float) -> float:
    return max(0.0, min(float(points), score))


def grade_coding_question(question, answer: str) -> float:
    """
    코딩 문항 채점:
    - 빈 답안: 0
    - test case 있음: 시도 점수 50% + 키워드가 하나라도 있으면 나머지 50%
    - test case 없음: 10자 초과면 70%, 아니면 30%
    """
    if not answer or not answer.strip():
        return 0.0

    points = question.points
    if _as_list(question.test_cases):
        score = points * 0.5
        lowered = answer.lower()
        if any(kw in lowered for kw in CODING_KEYWORDS):
            score += points * 0.5
    else:
        score = points * 0.7 if len(answer.strip()) > 10 else points * 0.3

    return _clamp(score, points)


def grade_essay_question(question, answer: str) -> float:
    """
    서술형 채점:
    - 빈 답안: 0
    - answer_key 없음: 단어 수 기준 (<10: 30%, <50: 60%, 그 외 80%)
    - answer_key 있음: 포함된 키워드 비율 × 배점
    """
    if not answer or not answer.strip():
        return 0.0

    points = question.points
    # 문자열이 아닌 키워드는 분모에는 포함하고 매칭은 안 된 것으로 본다
    answer_key = _as_list(question.answer_key)

    if not answer_key:
        word_count = len(answer.split())
        if word_count < 10:
            return _clamp(points * 0.3, points)
        if word_count < 50:
            return _clamp(points * 0.6, points)
        return _clamp(points * 0.8, points)

    answer_lower = answer.lower()
    matched = sum(
        1 for kw in answer_key if isinstance(kw, str) and kw.lower() in answer_lower
    )
    return _clamp(matched / len(answer_key) * points, points)


def score_answers(
    questions, answers: Mapping[Any, Any]
) -> Tuple[List[schemas.QuestionScore], float, float, float]:
    """
    문항 목록 + 답안 → (문항별 점수, total_score, max_score, final_score)
    final_score 는 0~100 퍼센트, 반올림하지 않음.
    """
    question_scores: List[schemas.QuestionScore] = []
    total_score = 0.0
    max_score = 0.0

    for q in questions:
        answer = _lookup_answer(answers, q.id)

        if q.question_type == "coding":
            score = grade_coding_question(q, answer)
        elif q.question_type == "essay":
            score = grade_essay_question(q, answer)
        else:
            score = 0.0

        question_scores.append(schemas.QuestionScore(
            question_id=q.id,
            question_type=q.question_type,
            score=score,
            max_score=q.points,
            student_answer=answer,
        ))
        total_score += score
        max_score += q.points

    final_score = (total_score / max_score) * 100 if max_score > 0 else 0.0
    return question_scores, total_score, max_score, final_score
