import copy

from sqlalchemy import func, select

from studydesk import models
from studydesk.settings import settings

from conftest import SAMPLE_TEST, register


def count(db, model):
	return db.execute(select(func.count()).select_from(model)).scalar_one()


def test_create_test(client, instructor, db):
	user, headers = instructor
	resp = client.post("/tests", json=SAMPLE_TEST, headers=headers)
	assert resp.status_code == 201
	body = resp.json()
	assert body["instructorId"] == user["id"]
	assert body["totalPoints"] == 5
	assert [q["questionText"] for q in body["questions"]] == ["Pick B", "Capital of France?"]
	assert [q["position"] for q in body["questions"]] == [0, 1]
	assert body["questions"][1]["options"] == []
	assert count(db, models.Question) == 2


def test_create_test_accepts_legacy_question_keys(client, instructor):
	_, headers = instructor
	payload = {
		"title": "Legacy",
		"description": "",
		"showAnswersAfterAttempt": False,
		"questions": [{"type": "SHORT_ANSWER", "question": "2+2?", "correct_answer": "4", "points": 1}],
	}
	resp = client.post("/tests", json=payload, headers=headers)
	assert resp.status_code == 201
	assert resp.json()["questions"][0]["correctAnswer"] == "4"


def test_empty_questions_rejected_without_side_effect(client, instructor, db):
	_, headers = instructor
	payload = dict(SAMPLE_TEST, questions=[])
	resp = client.post("/tests", json=payload, headers=headers)
	assert resp.status_code == 422
	assert count(db, models.Test) == 0


def test_points_must_be_positive(client, instructor, db):
	_, headers = instructor
	payload = copy.deepcopy(SAMPLE_TEST)
	payload["questions"][0]["points"] = 0
	resp = client.post("/tests", json=payload, headers=headers)
	assert resp.status_code == 422
	assert count(db, models.Test) == 0


def test_mcq_correct_answer_must_be_an_option(client, instructor, db):
	_, headers = instructor
	payload = copy.deepcopy(SAMPLE_TEST)
	payload["questions"][0]["correctAnswer"] = "D"
	resp = client.post("/tests", json=payload, headers=headers)
	assert resp.status_code == 400
	assert resp.json()["code"] == "VALIDATION_FAILED"
	assert count(db, models.Test) == 0
	assert count(db, models.Question) == 0


def test_mcq_without_options_rejected(client, instructor):
	_, headers = instructor
	payload = copy.deepcopy(SAMPLE_TEST)
	payload["questions"][0]["options"] = []
	resp = client.post("/tests", json=payload, headers=headers)
	assert resp.status_code == 422


def test_student_cannot_create_test(client, student, db):
	_, headers = student
	resp = client.post("/tests", json=SAMPLE_TEST, headers=headers)
	assert resp.status_code == 403
	assert resp.json()["code"] == "AUTHORIZATION_DENIED"
	assert count(db, models.Test) == 0


def test_list_tests_is_scoped_to_author(client, instructor, sample_test):
	_, headers = instructor
	_, other_headers = register(client, "other@example.com", role="INSTRUCTOR")
	client.post("/tests", json=dict(SAMPLE_TEST, title="Other's"), headers=other_headers)

	resp = client.get("/tests", headers=headers)
	assert resp.status_code == 200
	tests = resp.json()
	assert [t["id"] for t in tests] == [sample_test["id"]]
	assert tests[0]["attemptCount"] == 0
	assert tests[0]["assignmentCount"] == 0


def test_list_tests_counts(client, instructor, student, sample_test):
	_, headers = instructor
	student_user, student_headers = student
	client.post(
		"/test-assignments", json={"testId": sample_test["id"], "studentIds": [student_user["id"]]}, headers=headers
	)
	client.post("/test-attempts", json={"testId": sample_test["id"], "answers": []}, headers=student_headers)

	tests = client.get("/tests", headers=headers).json()
	assert tests[0]["attemptCount"] == 1
	assert tests[0]["assignmentCount"] == 1


def test_student_cannot_list_tests(client, student):
	_, headers = student
	assert client.get("/tests", headers=headers).status_code == 403


def test_get_test(client, student, sample_test):
	_, headers = student
	resp = client.get(f"/tests/{sample_test['id']}", headers=headers)
	assert resp.status_code == 200
	body = resp.json()
	assert body["instructor"]["name"] == "Ms Teacher"
	assert len(body["questions"]) == 2


def test_get_missing_test(client, student):
	_, headers = student
	resp = client.get("/tests/does-not-exist", headers=headers)
	assert resp.status_code == 404
	assert resp.json()["code"] == "NOT_FOUND"


def test_mcq_option_check_can_be_disabled(client, instructor, db, monkeypatch):
	monkeypatch.setattr(settings, "enforce_mcq_options", False)
	_, headers = instructor
	payload = copy.deepcopy(SAMPLE_TEST)
	payload["questions"][0]["correctAnswer"] = "D"
	resp = client.post("/tests", json=payload, headers=headers)
	assert resp.status_code == 201
	assert resp.json()["questions"][0]["correctAnswer"] == "D"
	assert count(db, models.Test) == 1


def test_blank_title_rejected_without_side_effect(client, instructor, db):
	_, headers = instructor
	payload = dict(SAMPLE_TEST, title="   ")
	resp = client.post("/tests", json=payload, headers=headers)
	assert resp.status_code == 422
	assert resp.json()["code"] == "VALIDATION_FAILED"
	assert count(db, models.Test) == 0


def test_title_is_stored_stripped(client, instructor):
	_, headers = instructor
	resp = client.post("/tests", json=dict(SAMPLE_TEST, title="  Geography  "), headers=headers)
	assert resp.status_code == 201
	assert resp.json()["title"] == "Geography"
