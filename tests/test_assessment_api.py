"""End-to-end tests for the learner-facing assessment API."""

from main import app
from ydsprep.application.assessment.errors import PersistenceError
from ydsprep.application.assessment.recorder import InMemoryAttemptRecorder
from ydsprep.application.assessment.session_service import AssessmentSessionService
from ydsprep.presentation.dependencies import get_session_service

from conftest import STUDENT

OTHER_STUDENT = {"X-User-Id": "student-2"}


def start(client, assessment_id="three-q", headers=STUDENT):
    return client.post(f"/assessments/{assessment_id}/session", headers=headers)


def answer(client, question_id, option_index, headers=STUDENT):
    return client.post(
        "/session/answers",
        json={"question_id": question_id, "option_index": option_index},
        headers=headers,
    )


def test_requests_without_identity_are_rejected(client):
    assert client.get("/assessments").status_code == 401


def test_listing_contains_only_playable_assessments(client):
    response = client.get("/assessments", headers=STUDENT)
    assert response.status_code == 200
    body = response.json()
    assert [a["id"] for a in body] == ["three-q"]
    assert body[0]["max_score"] == 12
    assert body[0]["time_limit_seconds"] == 60


def test_assessment_detail_hides_answers(client):
    response = client.get("/assessments/three-q", headers=STUDENT)
    assert response.status_code == 200
    question = response.json()["questions"][0]
    assert set(question) == {"id", "text", "options"}


def test_unknown_assessment_never_starts_a_session(client):
    response = start(client, "does-not-exist")
    assert response.status_code == 404
    assert client.get("/session", headers=STUDENT).status_code == 404


def test_malformed_assessment_is_unprocessable(client):
    assert start(client, "broken").status_code == 422


def test_full_attempt_flow(client):
    response = start(client)
    assert response.status_code == 201
    session = response.json()
    assert session["status"] == "in_progress"
    assert session["current_question_index"] == 0
    assert session["remaining_seconds"] == 60
    assert session["answers"] == {}

    assert answer(client, 1, 1).json()["accepted"] is True
    assert answer(client, 2, 0).json()["accepted"] is True
    response = answer(client, "3", 1)
    assert response.json()["accepted"] is True
    assert response.json()["session"]["answered_count"] == 3

    nav = client.post("/session/navigate", json={"action": "goto", "index": 2}, headers=STUDENT)
    assert nav.json()["current_question_index"] == 2
    nav = client.post("/session/navigate", json={"action": "next"}, headers=STUDENT)
    assert nav.status_code == 200
    assert nav.json()["current_question_index"] == 2

    result = client.post("/session/submit", headers=STUDENT).json()
    assert result["status"] == "submitted"
    attempt = result["result"]
    assert (attempt["correct_count"], attempt["wrong_count"], attempt["empty_count"]) == (2, 1, 0)
    assert attempt["score"] == 8
    assert attempt["percentage"] == 67
    assert attempt["passed"] is True
    assert result["review"][0]["explanation"] == "b"
    assert result["warning"] is None

    history = client.get("/assessments/three-q/attempts", headers=STUDENT).json()
    assert [h["attempt_id"] for h in history] == [attempt["attempt_id"]]


def test_submit_twice_returns_the_same_attempt(client):
    start(client)
    answer(client, 1, 1)
    first = client.post("/session/submit", headers=STUDENT).json()["result"]
    second = client.post("/session/submit", headers=STUDENT).json()["result"]
    assert first == second
    assert len(client.get("/attempts", headers=STUDENT).json()) == 1


def test_answers_after_submission_are_ignored(client):
    start(client)
    answer(client, 1, 1)
    client.post("/session/submit", headers=STUDENT)

    response = answer(client, 2, 0)
    assert response.status_code == 200
    assert response.json()["accepted"] is False
    assert response.json()["session"]["answers"] == {"1": 1}


def test_out_of_range_answer_is_ignored(client):
    start(client)
    response = answer(client, 1, 7)
    assert response.json()["accepted"] is False
    assert response.json()["session"]["answers"] == {}


def test_timer_expiry_records_exactly_one_attempt(client, fake_clock):
    start(client)
    answer(client, 1, 1)

    fake_clock.advance(61)
    session = client.get("/session", headers=STUDENT).json()
    assert session["status"] == "submitted"
    assert session["remaining_seconds"] == 0
    assert session["result"]["auto_submitted"] is True
    assert session["result"]["empty_count"] == 2

    fake_clock.advance(10)
    client.get("/session", headers=STUDENT)
    client.post("/session/submit", headers=STUDENT)
    assert len(client.get("/attempts", headers=STUDENT).json()) == 1


def test_remaining_time_counts_down(client, fake_clock):
    start(client)
    fake_clock.advance(12.5)
    assert client.get("/session", headers=STUDENT).json()["remaining_seconds"] == 48


def test_leaving_discards_the_session_without_a_record(client):
    start(client)
    answer(client, 1, 1)
    assert client.delete("/session", headers=STUDENT).status_code == 204
    assert client.get("/session", headers=STUDENT).status_code == 404
    assert client.get("/attempts", headers=STUDENT).json() == []
    assert client.delete("/session", headers=STUDENT).status_code == 404


def test_restarting_replaces_the_live_session(client):
    start(client)
    answer(client, 1, 1)
    session = start(client).json()
    assert session["answers"] == {}
    assert client.get("/attempts", headers=STUDENT).json() == []


def test_restart_after_time_ran_out_keeps_the_timed_out_attempt(client, fake_clock):
    start(client)
    answer(client, 1, 1)
    fake_clock.advance(120)

    session = start(client).json()
    assert session["status"] == "in_progress"
    assert session["answers"] == {}

    attempts = client.get("/attempts", headers=STUDENT).json()
    assert len(attempts) == 1
    assert attempts[0]["auto_submitted"] is True
    assert attempts[0]["score"] == 4


def test_leaving_after_time_ran_out_keeps_the_timed_out_attempt(client, fake_clock):
    start(client)
    answer(client, 1, 1)
    fake_clock.advance(120)

    assert client.delete("/session", headers=STUDENT).status_code == 204
    attempts = client.get("/attempts", headers=STUDENT).json()
    assert len(attempts) == 1
    assert attempts[0]["auto_submitted"] is True


def test_finished_sessions_are_pruned_after_the_retention_window(client, fake_clock, registry):
    start(client)
    client.post("/session/submit", headers=STUDENT)

    fake_clock.advance(60)
    start(client, headers=OTHER_STUDENT)
    assert client.get("/session", headers=STUDENT).json()["status"] == "submitted"

    fake_clock.advance(registry.retention_seconds)
    start(client, headers=OTHER_STUDENT)
    assert client.get("/session", headers=STUDENT).status_code == 404
    assert len(client.get("/attempts", headers=STUDENT).json()) == 1


def test_sessions_are_per_learner(client):
    start(client)
    answer(client, 1, 1)
    start(client, headers=OTHER_STUDENT)
    assert client.get("/session", headers=OTHER_STUDENT).json()["answers"] == {}
    assert client.get("/session", headers=STUDENT).json()["answers"] == {"1": 1}


def test_flags(client):
    start(client)
    response = client.post("/session/flags/2", headers=STUDENT)
    assert response.json() == {"question_id": "2", "flagged": True}
    session = client.get("/session", headers=STUDENT).json()
    assert session["flagged"] == ["2"]
    assert session["flagged_count"] == 1
    assert client.post("/session/flags/99", headers=STUDENT).status_code == 400


def test_progress_summarizes_history(client):
    for answers in ([(1, 1)], [(1, 1), (2, 0), (3, 2)]):
        start(client)
        for question_id, option in answers:
            answer(client, question_id, option)
        client.post("/session/submit", headers=STUDENT)

    progress = client.get("/progress", headers=STUDENT).json()
    assert progress["total_attempts"] == 2
    assert progress["correct_answers"] == 4
    assert progress["questions_answered"] == 6
    assert progress["accuracy"] == 67
    entry = progress["assessments"][0]
    assert entry["assessment_id"] == "three-q"
    assert entry["best_score"] == 12
    assert entry["average_score"] == 8
    assert entry["trend"] == "improving"


class FailingRecorder(InMemoryAttemptRecorder):
    def record(self, user_id, attempt):
        raise PersistenceError("storage quota exceeded")


def test_persistence_failure_still_returns_the_score(client, registry, catalog_loader):
    service = AssessmentSessionService(registry=registry, loader=catalog_loader, recorder=FailingRecorder())
    app.dependency_overrides[get_session_service] = lambda: service

    start(client)
    answer(client, 1, 1)
    response = client.post("/session/submit", headers=STUDENT)

    assert response.status_code == 200
    body = response.json()
    assert body["result"]["score"] == 4
    assert "could not be saved" in body["warning"]
