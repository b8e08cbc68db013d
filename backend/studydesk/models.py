from __future__ import annotations
import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import (
	JSON,
	Boolean,
	Column,
	DateTime,
	Enum,
	ForeignKey,
	Integer,
	String,
	Text,
	UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.types import TypeDecorator
from .db import Base


def now_utc() -> datetime:
	return datetime.now(timezone.utc)


def new_id() -> str:
	return uuid.uuid4().hex


class UTCDateTime(TypeDecorator):
	"""Timestamp stored as naive UTC and read back as an aware UTC datetime.

	SQLite keeps no offset, so aware values are shifted to UTC on the way in
	and naive values are taken to be UTC already.
	"""

	impl = DateTime
	cache_ok = True

	def process_bind_param(self, value, dialect):
		if value is not None and value.tzinfo is not None:
			value = value.astimezone(timezone.utc).replace(tzinfo=None)
		return value

	def process_result_value(self, value, dialect):
		if value is not None and value.tzinfo is None:
			value = value.replace(tzinfo=timezone.utc)
		return value


class Role(str, enum.Enum):
	STUDENT = "STUDENT"
	INSTRUCTOR = "INSTRUCTOR"


class QuestionType(str, enum.Enum):
	MCQ = "MCQ"
	SHORT_ANSWER = "SHORT_ANSWER"


class EvaluationStatus(str, enum.Enum):
	UNEVALUATED = "UNEVALUATED"
	AI_EVALUATED = "AI_EVALUATED"
	INSTRUCTOR_EVALUATED = "INSTRUCTOR_EVALUATED"


class User(Base):
	__tablename__ = "users"
	id = Column(String(32), primary_key=True, default=new_id)
	email = Column(String(256), unique=True, index=True, nullable=False)
	password_hash = Column(String(256), nullable=False)
	name = Column(String(256), nullable=False)
	# Fixed at registration; there is no promotion path
	role = Column(Enum(Role, native_enum=False, length=16), nullable=False, default=Role.STUDENT)
	created_at = Column(UTCDateTime(), default=now_utc, nullable=False)

	tests = relationship("Test", back_populates="instructor")


class SelfStudyProfile(Base):
	__tablename__ = "self_study_profiles"
	id = Column(String(32), primary_key=True, default=new_id)
	email = Column(String(256), unique=True, index=True, nullable=False)
	name = Column(String(256), nullable=False)
	preferences = Column(JSON, nullable=True)
	created_at = Column(UTCDateTime(), default=now_utc, nullable=False)


class Test(Base):
	__tablename__ = "tests"
	id = Column(String(32), primary_key=True, default=new_id)
	title = Column(String(256), nullable=False)
	description = Column(Text, nullable=True)
	show_answers_after_attempt = Column(Boolean, default=False, nullable=False)
	instructor_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
	created_at = Column(UTCDateTime(), default=now_utc, nullable=False)

	instructor = relationship("User", back_populates="tests")
	questions = relationship(
		"Question",
		back_populates="test",
		order_by="Question.position",
		cascade="all, delete-orphan",
	)
	assignments = relationship("TestAssignment", back_populates="test")
	attempts = relationship("TestAttempt", back_populates="test")

	@property
	def total_points(self) -> int:
		return sum(q.points for q in self.questions)

	@property
	def attempt_count(self) -> int:
		return len(self.attempts)

	@property
	def assignment_count(self) -> int:
		return len(self.assignments)


class Question(Base):
	__tablename__ = "questions"
	id = Column(String(32), primary_key=True, default=new_id)
	test_id = Column(String(32), ForeignKey("tests.id"), nullable=False, index=True)
	position = Column(Integer, nullable=False, default=0)
	type = Column(Enum(QuestionType, native_enum=False, length=16), nullable=False)
	question_text = Column(Text, nullable=False)
	# Empty for SHORT_ANSWER
	options = Column(JSON, nullable=False, default=list)
	correct_answer = Column(Text, nullable=False)
	points = Column(Integer, nullable=False, default=1)

	test = relationship("Test", back_populates="questions")


class StudentTeacherRelation(Base):
	__tablename__ = "student_teacher_relations"
	id = Column(String(32), primary_key=True, default=new_id)
	student_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
	instructor_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
	created_at = Column(UTCDateTime(), default=now_utc, nullable=False)

	__table_args__ = (
		UniqueConstraint("student_id", "instructor_id", name="uq_student_instructor"),
	)


class TestAssignment(Base):
	__tablename__ = "test_assignments"
	# No uniqueness on (test_id, student_id): a test may be assigned twice
	id = Column(String(32), primary_key=True, default=new_id)
	test_id = Column(String(32), ForeignKey("tests.id"), nullable=False, index=True)
	student_id = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
	assigned_by = Column(String(32), ForeignKey("users.id"), nullable=False)
	due_date = Column(UTCDateTime(), nullable=True)
	created_at = Column(UTCDateTime(), default=now_utc, nullable=False)

	test = relationship("Test", back_populates="assignments")
	student = relationship("User", foreign_keys=[student_id])
	assigner = relationship("User", foreign_keys=[assigned_by])


class TestAttempt(Base):
	__tablename__ = "test_attempts"
	id = Column(String(32), primary_key=True, default=new_id)
	test_id = Column(String(32), ForeignKey("tests.id"), nullable=False, index=True)
	# Exactly one of student_id / self_study_user_id is set; submitted_by is always the caller
	student_id = Column(String(32), ForeignKey("users.id"), nullable=True, index=True)
	self_study_user_id = Column(String(32), ForeignKey("users.id"), nullable=True, index=True)
	submitted_by = Column(String(32), ForeignKey("users.id"), nullable=False, index=True)
	score = Column(Integer, nullable=False, default=0)
	total_points = Column(Integer, nullable=False, default=0)
	ai_evaluation = Column(JSON, nullable=True)
	instructor_feedback = Column(Text, nullable=True)
	evaluation_status = Column(
		Enum(EvaluationStatus, native_enum=False, length=32),
		nullable=False,
		default=EvaluationStatus.UNEVALUATED,
	)
	idempotency_key = Column(String(128), nullable=True)
	created_at = Column(UTCDateTime(), default=now_utc, nullable=False)
	updated_at = Column(UTCDateTime(), default=now_utc, onupdate=now_utc, nullable=False)

	# NULL keys never collide, so only keyed submissions are deduplicated
	__table_args__ = (
		UniqueConstraint("submitted_by", "idempotency_key", name="uq_attempt_idempotency_key"),
	)

	test = relationship("Test", back_populates="attempts")
	student = relationship("User", foreign_keys=[student_id])
	self_study_user = relationship("User", foreign_keys=[self_study_user_id])
	answers = relationship(
		"Answer", back_populates="attempt", order_by="Answer.position", cascade="all, delete-orphan"
	)


class Answer(Base):
	__tablename__ = "answers"
	id = Column(String(32), primary_key=True, default=new_id)
	attempt_id = Column(String(32), ForeignKey("test_attempts.id"), nullable=False, index=True)
	# Order of the answer within the submission
	position = Column(Integer, nullable=False, default=0)
	question_id = Column(String(32), ForeignKey("questions.id"), nullable=False)
	answer_text = Column(Text, nullable=False, default="")
	is_correct = Column(Boolean, nullable=False, default=False)
	points_awarded = Column(Integer, nullable=False, default=0)

	attempt = relationship("TestAttempt", back_populates="answers")
	question = relationship("Question")
