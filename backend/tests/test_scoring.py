from types import SimpleNamespace

import pytest

from studydesk.scoring import DuplicateAnswerError, UnknownQuestionError, grade_answer, score_submission


def question(qid, correct, points):
	return SimpleNamespace(id=qid, correct_answer=correct, points=points)


def answer(qid, text):
	return SimpleNamespace(question_id=qid, answer_text=text)


QUESTIONS = [question("q1", "B", 2), question("q2", "Paris", 3)]


def test_case_mismatch_is_wrong():
	sheet = score_submission(QUESTIONS, [answer("q1", "B"), answer("q2", "paris")])
	assert sheet.score == 2
	assert sheet.total_points == 5
	assert [a.is_correct for a in sheet.answers] == [True, False]
	assert [a.points_awarded for a in sheet.answers] == [2, 0]


def test_no_whitespace_normalisation():
	graded = grade_answer(question("q2", "Paris", 3), " Paris")
	assert graded.is_correct is False
	assert graded.points_awarded == 0


def test_total_points_ignores_unanswered_questions():
	sheet = score_submission(QUESTIONS, [answer("q2", "Paris")])
	assert sheet.score == 3
	assert sheet.total_points == 5
	assert len(sheet.answers) == 1


def test_empty_submission_scores_zero_out_of_full_total():
	sheet = score_submission(QUESTIONS, [])
	assert sheet.score == 0
	assert sheet.total_points == 5


def test_score_is_sum_of_awarded_points():
	sheet = score_submission(QUESTIONS, [answer("q1", "B"), answer("q2", "Paris")])
	assert sheet.score == sum(a.points_awarded for a in sheet.answers) == 5


def test_unknown_question_rejects_submission():
	with pytest.raises(UnknownQuestionError) as exc:
		score_submission(QUESTIONS, [answer("q1", "B"), answer("nope", "x")])
	assert exc.value.question_id == "nope"


def test_duplicate_answer_rejects_submission():
	with pytest.raises(DuplicateAnswerError):
		score_submission(QUESTIONS, [answer("q1", "B"), answer("q1", "B")])
