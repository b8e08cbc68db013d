"""
Test attempts: submission, grading and instructor annotation.

A submission is graded once, when it is stored. The two annotation
endpoints only touch ``aiEvaluation`` / ``instructorFeedback`` and the
evaluation status; they never re-score.
"""
from __future__ import annotations
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_db
from ..errors import AuthorizationDenied, Conflict, NotFound, ValidationFailure
from ..models import EvaluationStatus, Role, TestAttempt
from ..schemas import AiEvaluationRequest, AttemptCreate, AttemptOut, FeedbackRequest, InstructorAttemptOut
from ..scoring import ScoringError, score_submission
from .auth import CurrentUser, get_current_user, require_instructor

router = APIRouter(prefix="/test-attempts", tags=["attempts"])

logger = logging.getLogger(__name__)


@router.post("", response_model=AttemptOut, status_code=201)
async def submit_attempt(
	req: AttemptCreate,
	response: Response,
	user: CurrentUser = Depends(get_current_user),
	db: Session = Depends(get_db),
	idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key", max_length=128),
):
	if idempotency_key:
		previous = crud.find_attempt_by_key(db, user.id, idempotency_key)
		if previous is not None:
			return _replay(previous, req, response)

	test = crud.get_test(db, req.test_id)
	if not test:
		raise NotFound("Test not found")
	try:
		sheet = score_submission(test.questions, req.answers)
	except ScoringError as e:
		raise ValidationFailure(str(e))

	try:
		attempt = crud.create_attempt(
			db,
			test_id=test.id,
			submitter_id=user.id,
			is_self_study=req.is_self_study,
			sheet=sheet,
			idempotency_key=idempotency_key,
		)
	except IntegrityError:
		# A concurrent retry with the same key committed first
		if not idempotency_key:
			raise
		previous = crud.find_attempt_by_key(db, user.id, idempotency_key)
		if previous is None:
			raise
		return _replay(previous, req, response)
	return AttemptOut.model_validate(attempt)


def _replay(previous: TestAttempt, req: AttemptCreate, response: Response) -> AttemptOut:
	if previous.test_id != req.test_id:
		raise Conflict("Idempotency-Key was already used for another test")
	response.status_code = 200
	return AttemptOut.model_validate(previous)


@router.get("", response_model=List[InstructorAttemptOut])
async def list_attempts(user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
	if user.role == Role.INSTRUCTOR:
		attempts = crud.get_attempts_for_instructor(db, user.id)
	else:
		attempts = crud.get_attempts_for_submitter(db, user.id)
	return [InstructorAttemptOut.model_validate(a) for a in attempts]


def _owned_attempt(db: Session, attempt_id: str, user: CurrentUser) -> TestAttempt:
	attempt = crud.get_attempt(db, attempt_id)
	if not attempt:
		raise NotFound("Test attempt not found")
	if attempt.test.instructor_id != user.id:
		raise AuthorizationDenied("Only the author of the test can evaluate its attempts")
	return attempt


@router.post("/{attempt_id}/ai-evaluate", response_model=AttemptOut)
async def record_ai_evaluation(
	attempt_id: str,
	req: AiEvaluationRequest,
	user: CurrentUser = Depends(require_instructor),
	db: Session = Depends(get_db),
):
	attempt = _owned_attempt(db, attempt_id, user)
	# An instructor's verdict is final; the status never moves backwards
	if attempt.evaluation_status == EvaluationStatus.INSTRUCTOR_EVALUATED:
		raise Conflict("Attempt already has instructor feedback")
	attempt = crud.update_attempt_evaluation(
		db,
		attempt,
		ai_evaluation=req.ai_evaluation,
		evaluation_status=EvaluationStatus.AI_EVALUATED,
	)
	logger.info("AI evaluation stored for attempt %s", attempt.id)
	return AttemptOut.model_validate(attempt)


@router.post("/{attempt_id}/instructor-feedback", response_model=AttemptOut)
async def record_instructor_feedback(
	attempt_id: str,
	req: FeedbackRequest,
	user: CurrentUser = Depends(require_instructor),
	db: Session = Depends(get_db),
):
	attempt = _owned_attempt(db, attempt_id, user)
	attempt = crud.update_attempt_evaluation(
		db,
		attempt,
		instructor_feedback=req.feedback,
		evaluation_status=EvaluationStatus.INSTRUCTOR_EVALUATED,
	)
	logger.info("Instructor feedback stored for attempt %s", attempt.id)
	return AttemptOut.model_validate(attempt)
