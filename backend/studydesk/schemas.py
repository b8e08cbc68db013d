from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .models import EvaluationStatus, QuestionType, Role


class CamelModel(BaseModel):
	"""Wire models use camelCase keys; python attributes stay snake_case."""

	model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


def _stripped_text(value: str) -> str:
	value = value.strip()
	if not value:
		raise ValueError("must not be blank")
	return value


# ---- auth ----

class RegisterRequest(CamelModel):
	email: str = Field(..., min_length=3, max_length=256)
	password: str = Field(..., min_length=1)
	name: str = Field(..., min_length=1, max_length=256)
	role: Role = Role.STUDENT

	name_not_blank = field_validator("name")(_stripped_text)

	@field_validator("email")
	@classmethod
	def normalize_email(cls, value: str) -> str:
		value = value.strip().lower()
		if "@" not in value:
			raise ValueError("email must contain '@'")
		return value


class LoginRequest(CamelModel):
	email: str
	password: str

	@field_validator("email")
	@classmethod
	def normalize_email(cls, value: str) -> str:
		return value.strip().lower()


class UserOut(CamelModel):
	id: str
	email: str
	name: str
	role: Role


class AuthResponse(CamelModel):
	token: str
	user: UserOut


class UserSummary(CamelModel):
	id: str
	name: str
	email: str


class StudentOut(UserSummary):
	created_at: datetime


class SelfStudyRegisterRequest(CamelModel):
	name: str = Field(..., min_length=1, max_length=256)
	email: str = Field(..., min_length=3, max_length=256)
	preferences: Optional[Any] = None

	name_not_blank = field_validator("name")(_stripped_text)

	@field_validator("email")
	@classmethod
	def normalize_email(cls, value: str) -> str:
		return value.strip().lower()


class SelfStudyProfileOut(CamelModel):
	id: str
	name: str
	email: str
	preferences: Optional[Any] = None
	created_at: datetime


# ---- tests ----

class QuestionCreate(CamelModel):
	type: QuestionType
	# The legacy client sends `question` / `correct_answer`
	question_text: str = Field(
		..., min_length=1, validation_alias=AliasChoices("questionText", "question", "question_text")
	)
	options: List[str] = Field(default_factory=list)
	correct_answer: str = Field(
		..., validation_alias=AliasChoices("correctAnswer", "correct_answer")
	)
	points: int = Field(default=1, ge=1)

	@model_validator(mode="after")
	def check_options(self) -> "QuestionCreate":
		if self.type == QuestionType.SHORT_ANSWER and self.options:
			raise ValueError("SHORT_ANSWER questions do not take options")
		if self.type == QuestionType.MCQ and not self.options:
			raise ValueError("MCQ questions need at least one option")
		return self


class TestCreate(CamelModel):
	title: str = Field(..., min_length=1, max_length=256)
	description: Optional[str] = None
	show_answers_after_attempt: bool = False
	questions: List[QuestionCreate] = Field(..., min_length=1)

	title_not_blank = field_validator("title")(_stripped_text)


class QuestionOut(CamelModel):
	id: str
	type: QuestionType
	question_text: str
	options: List[str]
	correct_answer: str
	points: int
	position: int


class TestOut(CamelModel):
	id: str
	title: str
	description: Optional[str] = None
	show_answers_after_attempt: bool
	instructor_id: str
	created_at: datetime
	total_points: int
	questions: List[QuestionOut]


class TestListItem(TestOut):
	attempt_count: int
	assignment_count: int


class TestDetail(TestOut):
	instructor: UserSummary


class TestSummary(CamelModel):
	id: str
	title: str
	description: Optional[str] = None
	show_answers_after_attempt: bool
	instructor_id: str


# ---- roster & assignments ----

class RelationCreate(CamelModel):
	student_id: str


class RelationOut(CamelModel):
	id: str
	student_id: str
	instructor_id: str
	created_at: datetime


class AssignmentCreate(CamelModel):
	test_id: str
	student_ids: List[str] = Field(..., min_length=1)
	due_date: Optional[datetime] = None

	@field_validator("due_date")
	@classmethod
	def due_date_in_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
		# Offset-less input is taken as UTC
		if value is None:
			return value
		if value.tzinfo is None:
			return value.replace(tzinfo=timezone.utc)
		return value.astimezone(timezone.utc)


class AssignmentOut(CamelModel):
	id: str
	test_id: str
	student_id: str
	assigned_by: str
	due_date: Optional[datetime] = None
	created_at: datetime


class InstructorName(CamelModel):
	name: str


class AssignedTest(TestOut):
	instructor: InstructorName


class AssignedTestOut(AssignmentOut):
	test: AssignedTest


# ---- attempts ----

class AnswerSubmit(CamelModel):
	question_id: str
	answer_text: str = ""


class AttemptCreate(CamelModel):
	test_id: str
	answers: List[AnswerSubmit] = Field(default_factory=list)
	is_self_study: bool = False


class AnswerOut(CamelModel):
	id: str
	question_id: str
	answer_text: str
	is_correct: bool
	points_awarded: int
	question: QuestionOut


class AttemptOut(CamelModel):
	id: str
	test_id: str
	student_id: Optional[str] = None
	self_study_user_id: Optional[str] = None
	score: int
	total_points: int
	ai_evaluation: Optional[Any] = None
	instructor_feedback: Optional[str] = None
	evaluation_status: EvaluationStatus
	created_at: datetime
	test: TestSummary
	answers: List[AnswerOut]


class InstructorAttemptOut(AttemptOut):
	student: Optional[UserSummary] = None


class AiEvaluationRequest(CamelModel):
	ai_evaluation: Any = Field(...)

	@field_validator("ai_evaluation")
	@classmethod
	def not_empty(cls, value: Any) -> Any:
		if value is None or value == "" or value == {}:
			raise ValueError("aiEvaluation must not be empty")
		return value


class FeedbackRequest(CamelModel):
	feedback: str = Field(..., min_length=1)
