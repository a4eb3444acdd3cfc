"""
API tests through FastAPI's TestClient.
"""

import pytest

from exam_app import models


class TestHealth:
    def test_health(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "OK"
        assert "timestamp" in body

    def test_json_charset(self, client):
        """JSON responses carry an explicit utf-8 charset."""
        resp = client.get("/api/health")
        assert "charset=utf-8" in resp.headers["content-type"]


class TestAdminAuth:
    """Admin-only routes check the bearer token."""

    def test_missing_header_is_401(self, client):
        resp = client.post("/api/students", json={"name": "Cici", "class_name": "X", "nis": "1"})
        assert resp.status_code == 401

    def test_wrong_token_is_403(self, client):
        resp = client.post(
            "/api/students",
            json={"name": "Cici", "class_name": "X", "nis": "1"},
            headers={"Authorization": "Bearer nope"},
        )
        assert resp.status_code == 403

    def test_export_requires_admin(self, client):
        assert client.get("/api/scores/export").status_code == 401


class TestStudents:
    def test_create_and_list(self, client, admin_headers):
        resp = client.post(
            "/api/students",
            json={"name": "  Cici Lestari ", "class_name": "XII RPL 2", "nis": "2024003"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        assert resp.json()["student"]["name"] == "Cici Lestari"

        students = client.get("/api/students").json()["students"]
        assert [s["nis"] for s in students] == ["2024003"]

    def test_name_too_short_is_rejected(self, client, admin_headers):
        resp = client.post(
            "/api/students",
            json={"name": "A", "class_name": "X", "nis": "1"},
            headers=admin_headers,
        )
        assert resp.status_code == 422

    def test_update(self, client, admin_headers, student):
        resp = client.put(
            f"/api/students/{student.id}",
            json={"name": "Andi W", "class_name": "XII RPL 2", "nis": "2024001"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["student"]["class_name"] == "XII RPL 2"

    def test_delete(self, client, admin_headers, student):
        student_id = student.id
        resp = client.delete(f"/api/students/{student_id}", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["student"]["id"] == student_id
        assert client.get(f"/api/students/{student_id}").status_code == 404

    def test_missing_student_is_404(self, client, admin_headers):
        assert client.get("/api/students/99").status_code == 404
        assert client.delete("/api/students/99", headers=admin_headers).status_code == 404


class TestQuestions:
    def test_invalid_subject_is_400(self, client):
        assert client.get("/api/questions/kimia").status_code == 400

    def test_list_by_subject(self, client, questions):
        body = client.get("/api/questions/basis_data").json()
        assert body["subject"] == "basis_data"
        assert len(body["questions"]) == 2

    def test_all_questions_grouped(self, client, questions):
        body = client.get("/api/questions").json()
        assert set(body) == {"basis_data", "ppl", "pwpb", "pbo"}
        assert len(body["basis_data"]) == 2
        assert body["ppl"] == []

    def test_get_single(self, client, questions):
        coding, _ = questions
        resp = client.get(f"/api/questions/basis_data/{coding.id}")
        assert resp.status_code == 200
        assert resp.json()["question_type"] == "coding"
        assert client.get("/api/questions/basis_data/999").status_code == 404

    def test_create_coding_gets_placeholder_test_case(self, client, admin_headers):
        resp = client.post(
            "/api/questions",
            json={
                "subject": "pbo",
                "question_type": "coding",
                "question": "Buat class Mahasiswa dengan atribut nama",
                "points": 25,
            },
            headers=admin_headers,
        )
        assert resp.status_code == 201
        q = resp.json()["question"]
        assert len(q["test_cases"]) == 1
        assert q["answer_key"] is None

    def test_create_rejects_out_of_range_points(self, client, admin_headers):
        resp = client.post(
            "/api/questions",
            json={
                "subject": "pbo",
                "question_type": "essay",
                "question": "Jelaskan konsep pewarisan",
                "points": 101,
            },
            headers=admin_headers,
        )
        assert resp.status_code == 422

    def test_update_switches_type_specific_fields(self, client, admin_headers, questions):
        coding, _ = questions
        resp = client.put(
            f"/api/questions/basis_data/{coding.id}",
            json={
                "question_type": "essay",
                "question": "Jelaskan fungsi klausa WHERE",
                "points": 15,
                "answer_key": ["filter"],
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        q = resp.json()["question"]
        assert q["question_type"] == "essay"
        assert q["answer_key"] == ["filter"]
        assert q["test_cases"] is None
        assert q["code_template"] is None

    def test_delete(self, client, admin_headers, questions):
        _, essay = questions
        resp = client.delete(f"/api/questions/basis_data/{essay.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert len(client.get("/api/questions/basis_data").json()["questions"]) == 1


class TestScores:
    def test_calculate_with_stored_questions(self, client, db_session, student, questions):
        coding, essay = questions
        resp = client.post(
            "/api/scores/calculate",
            json={
                "student_id": student.id,
                "subject": "basis_data",
                "answers": {
                    str(coding.id): "SELECT * FROM mahasiswa",
                    str(essay.id): "Use a SELECT with a JOIN clause",
                },
                "time_used": 125,
            },
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_score"] == pytest.approx(50)
        assert body["max_score"] == pytest.approx(50)
        assert body["final_score"] == pytest.approx(100)
        assert body["student"]["nis"] == "2024001"
        assert [qs["question_id"] for qs in body["question_scores"]] == [coding.id, essay.id]

        saved = db_session.query(models.Result).all()
        assert len(saved) == 1
        assert saved[0].student_name == "Andi Wijaya"
        assert saved[0].time_used == 125

    def test_calculate_with_inline_questions(self, client, student):
        resp = client.post(
            "/api/scores/calculate",
            json={
                "student_id": student.id,
                "subject": "ppl",
                "answers": {"1": "xyz"},
                "questions": [
                    {"id": 1, "question_type": "coding", "points": 10, "test_cases": [{}]},
                ],
            },
        )
        assert resp.status_code == 200
        assert resp.json()["final_score"] == pytest.approx(50)

    def test_calculate_without_questions_scores_zero(self, client, student):
        resp = client.post(
            "/api/scores/calculate",
            json={"student_id": student.id, "subject": "pwpb", "answers": {}},
        )
        assert resp.status_code == 200
        assert resp.json()["final_score"] == 0

    def test_calculate_rejects_non_string_answer_key(self, client, student):
        resp = client.post(
            "/api/scores/calculate",
            json={
                "student_id": student.id,
                "subject": "ppl",
                "answers": {"1": "hello there"},
                "questions": [
                    {"id": 1, "question_type": "essay", "points": 10, "answer_key": [1, 2]},
                ],
            },
        )
        assert resp.status_code == 422
        assert resp.json()["error"] == "Data tidak valid"

    def test_calculate_unknown_student_is_404(self, client):
        resp = client.post(
            "/api/scores/calculate",
            json={"student_id": 42, "subject": "pbo", "answers": {}},
        )
        assert resp.status_code == 404

    def test_calculate_invalid_subject_is_rejected(self, client, student):
        resp = client.post(
            "/api/scores/calculate",
            json={"student_id": student.id, "subject": "kimia", "answers": {}},
        )
        assert resp.status_code == 422

    def test_results_filter_and_student(self, client, student):
        for subject in ("ppl", "pbo", "pbo"):
            client.post(
                "/api/scores/calculate",
                json={"student_id": student.id, "subject": subject, "answers": {}},
            )

        assert client.get("/api/scores/results").json()["total"] == 3
        assert client.get("/api/scores/results?subject=all").json()["total"] == 3
        pbo = client.get("/api/scores/results?subject=pbo").json()
        assert pbo["total"] == 2
        assert {r["subject"] for r in pbo["results"]} == {"pbo"}

        mine = client.get(f"/api/scores/results/{student.id}").json()
        assert mine["total"] == 3
        ids = [r["id"] for r in mine["results"]]
        assert ids == sorted(ids, reverse=True)
        assert client.get("/api/scores/results/999").json()["total"] == 0

    def test_export_empty_is_404(self, client, admin_headers):
        assert client.get("/api/scores/export", headers=admin_headers).status_code == 404

    def test_export_xlsx(self, client, admin_headers, student, questions):
        client.post(
            "/api/scores/calculate",
            json={"student_id": student.id, "subject": "basis_data", "answers": {}},
        )
        resp = client.get("/api/scores/export", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith(
            "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
        )
        assert "hasil-test-" in resp.headers["content-disposition"]
        assert resp.content[:2] == b"PK"


class TestErrorFormat:
    """Every error response carries an "error" message."""

    def test_not_found_record(self, client):
        resp = client.get("/api/students/99")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Siswa tidak ditemukan"}

    def test_unknown_endpoint(self, client):
        resp = client.get("/api/nothing-here")
        assert resp.status_code == 404
        assert resp.json() == {"error": "Endpoint not found"}

    def test_auth_and_subject_errors(self, client):
        assert client.get("/api/scores/export").json() == {
            "error": "Akses ditolak. Diperlukan autentikasi untuk operasi ini."
        }
        assert client.get("/api/questions/kimia").json() == {"error": "Mata pelajaran tidak valid"}

    def test_validation_error_lists_details(self, client, admin_headers):
        resp = client.post(
            "/api/students",
            json={"name": "A", "class_name": "X", "nis": "1"},
            headers=admin_headers,
        )
        assert resp.status_code == 422
        body = resp.json()
        assert body["error"] == "Data tidak valid"
        assert body["details"]
        assert "detail" not in body
