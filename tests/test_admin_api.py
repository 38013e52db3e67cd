"""Tests for the administrative back-office endpoints."""

from conftest import ADMIN, STUDENT
from test_question_import import SAMPLE

EXAM = {
    "title": "Grammar Mock",
    "description": "Two questions",
    "duration_minutes": 5,
    "passing_score": 4,
    "questions": [
        {"question_text": "Q1", "options": ["a", "b"], "correct_answer_index": 0},
        {"question_text": "Q2", "options": ["a", "b", "c"], "correct_answer_index": 2, "explanation": "c"},
    ],
}


def create(client, payload=EXAM):
    return client.post("/admin/exams", json=payload, headers=ADMIN)


def test_admin_routes_require_admin_role(client):
    assert client.get("/admin/exams", headers=STUDENT).status_code == 403
    assert client.get("/admin/exams").status_code == 401


def test_exam_crud(client):
    response = create(client)
    assert response.status_code == 200
    exam = response.json()
    assert exam["total_questions"] == 2
    assert [q["order_index"] for q in exam["questions"]] == [0, 1]

    listed = client.get("/admin/exams", headers=ADMIN).json()
    assert [e["id"] for e in listed] == [exam["id"]]

    updated = client.put(f"/admin/exams/{exam['id']}", json={"title": "Renamed"}, headers=ADMIN).json()
    assert updated["title"] == "Renamed"
    assert updated["duration_minutes"] == 5

    assert client.delete(f"/admin/exams/{exam['id']}", headers=ADMIN).status_code == 200
    assert client.get(f"/admin/exams/{exam['id']}", headers=ADMIN).status_code == 404


def test_invalid_questions_are_rejected(client):
    bad = dict(EXAM, questions=[{"question_text": "Q", "options": ["only"], "correct_answer_index": 0}])
    assert create(client, bad).status_code == 400

    exam_id = create(client).json()["id"]
    response = client.post(
        f"/admin/exams/{exam_id}/questions",
        json={"question_text": "Q3", "options": ["a", "b"], "correct_answer_index": 5},
        headers=ADMIN,
    )
    assert response.status_code == 400


def test_question_add_update_delete(client):
    exam_id = create(client).json()["id"]
    added = client.post(
        f"/admin/exams/{exam_id}/questions",
        json={"question_text": "Q3", "options": ["x", "y"], "correct_answer_index": 1},
        headers=ADMIN,
    ).json()
    assert added["order_index"] == 2

    changed = client.put(
        f"/admin/questions/{added['id']}",
        json={"question_text": "Q3 edited", "options": ["x", "y", "z"], "correct_answer_index": 2},
        headers=ADMIN,
    ).json()
    assert changed["question_text"] == "Q3 edited"
    assert changed["options"] == ["x", "y", "z"]

    assert client.delete(f"/admin/questions/{added['id']}", headers=ADMIN).status_code == 200
    assert client.get(f"/admin/exams/{exam_id}", headers=ADMIN).json()["total_questions"] == 2
    assert client.post(
        "/admin/exams/999/questions",
        json={"question_text": "Q", "options": ["x", "y"], "correct_answer_index": 0},
        headers=ADMIN,
    ).status_code == 404


def test_admin_exams_are_playable_by_students(client):
    exam_id = create(client).json()["id"]
    assessment_id = f"exam-{exam_id}"

    listed = [a["id"] for a in client.get("/assessments", headers=STUDENT).json()]
    assert assessment_id in listed

    session = client.post(f"/assessments/{assessment_id}/session", headers=STUDENT).json()
    assert session["remaining_seconds"] == 300
    first_question = session["current_question"]["id"]
    client.post("/session/answers", json={"question_id": first_question, "option_index": 0}, headers=STUDENT)
    result = client.post("/session/submit", headers=STUDENT).json()["result"]
    assert result["score"] == 4
    assert result["passed"] is True

    students = client.get("/admin/students", headers=ADMIN).json()
    assert students[0]["user_id"] == "student-1"
    assert students[0]["attempts"] == 1
    assert students[0]["best_score"] == 4


def test_inactive_exams_are_hidden_from_students(client):
    exam_id = create(client).json()["id"]
    client.put(f"/admin/exams/{exam_id}", json={"is_active": False}, headers=ADMIN)
    assert client.post(f"/assessments/exam-{exam_id}/session", headers=STUDENT).status_code == 404


def test_import_preview_and_save(client):
    preview = client.post("/admin/import/preview", json={"raw_text": SAMPLE + "\n4. broken\n"}, headers=ADMIN).json()
    assert len(preview["questions"]) == 3
    assert preview["skipped_blocks"] == [4]

    saved = client.post(
        "/admin/import",
        json={"title": "Imported", "duration_minutes": 15, "raw_text": SAMPLE},
        headers=ADMIN,
    ).json()
    assert saved["imported"] == 3
    exam = client.get(f"/admin/exams/{saved['exam_id']}", headers=ADMIN).json()
    assert exam["title"] == "Imported"
    assert [q["correct_answer_index"] for q in exam["questions"]] == [2, 0, 3]

    assert client.post(
        "/admin/import", json={"title": "Nothing", "raw_text": "no questions"}, headers=ADMIN
    ).status_code == 400


def test_bulk_upload_endpoint(client):
    exam_id = create(client).json()["id"]
    csv = b"question_text,option1,option2,option3,option4,correct_answer\nNew,a,b,c,d,3\n"
    response = client.post(
        f"/admin/exams/{exam_id}/bulk-upload",
        files={"file": ("questions.csv", csv, "text/csv")},
        headers=ADMIN,
    )
    assert response.status_code == 200
    assert response.json() == {"total_rows": 1, "inserted": 1, "failed": 0, "errors": []}
    assert client.get(f"/admin/exams/{exam_id}", headers=ADMIN).json()["total_questions"] == 3

    missing = client.post(
        "/admin/exams/999/bulk-upload",
        files={"file": ("questions.csv", csv, "text/csv")},
        headers=ADMIN,
    )
    assert missing.status_code == 404
