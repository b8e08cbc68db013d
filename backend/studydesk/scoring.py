"""
Attempt grading.

Answers are compared to the stored correct answer with exact, case-sensitive
string equality. No trimming or normalisation happens, so "paris" does not
match "Paris". ``total_points`` always covers every question of the test,
answered or not.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Protocol, Sequence


class GradableQuestion(Protocol):
	id: str
	correct_answer: str
	points: int


class SubmittedAnswer(Protocol):
	question_id: str
	answer_text: str


class ScoringError(ValueError):
	pass


class UnknownQuestionError(ScoringError):
	def __init__(self, question_id: str) -> None:
		super().__init__(f"question {question_id} is not part of this test")
		self.question_id = question_id


class DuplicateAnswerError(ScoringError):
	def __init__(self, question_id: str) -> None:
		super().__init__(f"question {question_id} was answered more than once")
		self.question_id = question_id


@dataclass
class GradedAnswer:
	question_id: str
	answer_text: str
	is_correct: bool
	points_awarded: int


@dataclass
class ScoreSheet:
	total_points: int
	answers: List[GradedAnswer] = field(default_factory=list)

	@property
	def score(self) -> int:
		return sum(a.points_awarded for a in self.answers)


def grade_answer(question: GradableQuestion, answer_text: str) -> GradedAnswer:
	is_correct = question.correct_answer == answer_text
	return GradedAnswer(
		question_id=question.id,
		answer_text=answer_text,
		is_correct=is_correct,
		points_awarded=question.points if is_correct else 0,
	)


def total_points(questions: Iterable[GradableQuestion]) -> int:
	return sum(q.points for q in questions)


def score_submission(questions: Sequence[GradableQuestion], answers: Iterable[SubmittedAnswer]) -> ScoreSheet:
	"""Grade ``answers`` against the questions of one test.

	Raises UnknownQuestionError if an answer names a question outside
	``questions`` and DuplicateAnswerError if a question is answered twice;
	either rejects the whole submission.
	"""
	by_id = {q.id: q for q in questions}
	sheet = ScoreSheet(total_points=total_points(questions))
	seen: set[str] = set()
	for answer in answers:
		question = by_id.get(answer.question_id)
		if question is None:
			raise UnknownQuestionError(answer.question_id)
		if answer.question_id in seen:
			raise DuplicateAnswerError(answer.question_id)
		seen.add(answer.question_id)
		sheet.answers.append(grade_answer(question, answer.answer_text))
	return sheet
