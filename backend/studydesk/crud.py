from __future__ import annotations
import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, selectinload

from . import models
from .scoring import ScoreSheet

logger = logging.getLogger(__name__)


# ---- users ----

def get_user(db: Session, user_id: str) -> Optional[models.User]:
	return db.get(models.User, user_id)


def get_user_by_email(db: Session, email: str) -> Optional[models.User]:
	result = db.execute(select(models.User).where(models.User.email == email))
	return result.scalar_one_or_none()


def create_user(db: Session, *, email: str, password_hash: str, name: str, role: models.Role) -> models.User:
	user = models.User(email=email, password_hash=password_hash, name=name, role=role)
	db.add(user)
	db.commit()
	db.refresh(user)
	return user


def get_users(db: Session, user_ids: Iterable[str]) -> dict[str, models.User]:
	ids = set(user_ids)
	if not ids:
		return {}
	result = db.execute(select(models.User).where(models.User.id.in_(ids)))
	return {u.id: u for u in result.scalars().all()}


def get_self_study_profile_by_email(db: Session, email: str) -> Optional[models.SelfStudyProfile]:
	result = db.execute(select(models.SelfStudyProfile).where(models.SelfStudyProfile.email == email))
	return result.scalar_one_or_none()


def create_self_study_profile(db: Session, *, name: str, email: str, preferences=None) -> models.SelfStudyProfile:
	profile = models.SelfStudyProfile(name=name, email=email, preferences=preferences)
	db.add(profile)
	db.commit()
	db.refresh(profile)
	return profile


# ---- tests ----

def get_test(db: Session, test_id: str) -> Optional[models.Test]:
	result = db.execute(
		select(models.Test)
		.where(models.Test.id == test_id)
		.options(selectinload(models.Test.questions), selectinload(models.Test.instructor))
	)
	return result.scalar_one_or_none()


def get_tests_by_instructor(db: Session, instructor_id: str) -> Sequence[models.Test]:
	result = db.execute(
		select(models.Test)
		.where(models.Test.instructor_id == instructor_id)
		.options(
			selectinload(models.Test.questions),
			selectinload(models.Test.attempts),
			selectinload(models.Test.assignments),
		)
		.order_by(models.Test.created_at)
	)
	return result.scalars().all()


def create_test(
	db: Session,
	*,
	instructor_id: str,
	title: str,
	description: Optional[str],
	show_answers_after_attempt: bool,
	questions: List[dict],
) -> models.Test:
	test = models.Test(
		instructor_id=instructor_id,
		title=title,
		description=description,
		show_answers_after_attempt=show_answers_after_attempt,
	)
	for position, q in enumerate(questions):
		test.questions.append(models.Question(position=position, **q))
	db.add(test)
	try:
		db.commit()
	except Exception:
		db.rollback()
		raise
	db.refresh(test)
	logger.info("Test %s created by %s with %d questions", test.id, instructor_id, len(questions))
	return test


# ---- roster ----

def get_relation(db: Session, student_id: str, instructor_id: str) -> Optional[models.StudentTeacherRelation]:
	result = db.execute(
		select(models.StudentTeacherRelation).where(
			models.StudentTeacherRelation.student_id == student_id,
			models.StudentTeacherRelation.instructor_id == instructor_id,
		)
	)
	return result.scalar_one_or_none()


def create_relation(db: Session, student_id: str, instructor_id: str) -> models.StudentTeacherRelation:
	relation = models.StudentTeacherRelation(student_id=student_id, instructor_id=instructor_id)
	db.add(relation)
	db.commit()
	db.refresh(relation)
	return relation


def get_students_of(db: Session, instructor_id: str) -> Sequence[models.User]:
	result = db.execute(
		select(models.User)
		.join(models.StudentTeacherRelation, models.StudentTeacherRelation.student_id == models.User.id)
		.where(models.StudentTeacherRelation.instructor_id == instructor_id)
		.order_by(models.User.name)
	)
	return result.scalars().all()


# ---- assignments ----

def create_assignments(
	db: Session,
	*,
	test_id: str,
	student_ids: List[str],
	assigned_by: str,
	due_date=None,
) -> List[models.TestAssignment]:
	"""Insert one assignment per student id in a single transaction."""
	rows = [
		models.TestAssignment(test_id=test_id, student_id=sid, assigned_by=assigned_by, due_date=due_date)
		for sid in student_ids
	]
	db.add_all(rows)
	try:
		db.commit()
	except Exception:
		db.rollback()
		raise
	for row in rows:
		db.refresh(row)
	logger.info("Test %s assigned to %d students by %s", test_id, len(rows), assigned_by)
	return rows


def get_assignments_for_student(db: Session, student_id: str) -> Sequence[models.TestAssignment]:
	result = db.execute(
		select(models.TestAssignment)
		.where(models.TestAssignment.student_id == student_id)
		.options(
			selectinload(models.TestAssignment.test).selectinload(models.Test.questions),
			selectinload(models.TestAssignment.test).selectinload(models.Test.instructor),
		)
		.order_by(models.TestAssignment.created_at)
	)
	return result.scalars().all()


# ---- attempts ----

def _attempt_options():
	return (
		selectinload(models.TestAttempt.test),
		selectinload(models.TestAttempt.student),
		selectinload(models.TestAttempt.answers).selectinload(models.Answer.question),
	)


def get_attempt(db: Session, attempt_id: str) -> Optional[models.TestAttempt]:
	result = db.execute(
		select(models.TestAttempt).where(models.TestAttempt.id == attempt_id).options(*_attempt_options())
	)
	return result.scalar_one_or_none()


def find_attempt_by_key(db: Session, submitter_id: str, idempotency_key: str) -> Optional[models.TestAttempt]:
	result = db.execute(
		select(models.TestAttempt)
		.where(
			models.TestAttempt.submitted_by == submitter_id,
			models.TestAttempt.idempotency_key == idempotency_key,
		)
		.options(*_attempt_options())
	)
	return result.scalar_one_or_none()


def create_attempt(
	db: Session,
	*,
	test_id: str,
	submitter_id: str,
	is_self_study: bool,
	sheet: ScoreSheet,
	idempotency_key: Optional[str] = None,
) -> models.TestAttempt:
	attempt = models.TestAttempt(
		test_id=test_id,
		student_id=None if is_self_study else submitter_id,
		self_study_user_id=submitter_id if is_self_study else None,
		submitted_by=submitter_id,
		score=sheet.score,
		total_points=sheet.total_points,
		evaluation_status=models.EvaluationStatus.UNEVALUATED,
		idempotency_key=idempotency_key,
	)
	for position, graded in enumerate(sheet.answers):
		attempt.answers.append(
			models.Answer(
				position=position,
				question_id=graded.question_id,
				answer_text=graded.answer_text,
				is_correct=graded.is_correct,
				points_awarded=graded.points_awarded,
			)
		)
	db.add(attempt)
	try:
		db.commit()
	except Exception:
		db.rollback()
		raise
	logger.info("Attempt %s on test %s scored %d/%d", attempt.id, test_id, sheet.score, sheet.total_points)
	return get_attempt(db, attempt.id)


def get_attempts_for_instructor(db: Session, instructor_id: str) -> Sequence[models.TestAttempt]:
	result = db.execute(
		select(models.TestAttempt)
		.join(models.Test, models.Test.id == models.TestAttempt.test_id)
		.where(models.Test.instructor_id == instructor_id)
		.options(*_attempt_options())
		.order_by(models.TestAttempt.created_at)
	)
	return result.scalars().all()


def get_attempts_for_submitter(db: Session, user_id: str) -> Sequence[models.TestAttempt]:
	result = db.execute(
		select(models.TestAttempt)
		.where(
			or_(
				models.TestAttempt.student_id == user_id,
				models.TestAttempt.self_study_user_id == user_id,
			)
		)
		.options(*_attempt_options())
		.order_by(models.TestAttempt.created_at)
	)
	return result.scalars().all()


def update_attempt_evaluation(db: Session, attempt: models.TestAttempt, **fields) -> models.TestAttempt:
	for key, value in fields.items():
		setattr(attempt, key, value)
	db.add(attempt)
	try:
		db.commit()
	except Exception:
		db.rollback()
		raise
	return get_attempt(db, attempt.id)
