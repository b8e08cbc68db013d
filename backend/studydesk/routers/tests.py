from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_db
from ..errors import NotFound, ValidationFailure
from ..models import QuestionType
from ..schemas import TestCreate, TestDetail, TestListItem, TestOut
from ..settings import settings
from .auth import CurrentUser, get_current_user, require_instructor

router = APIRouter(prefix="/tests", tags=["tests"])


def _check_mcq_answers(req: TestCreate) -> None:
	for number, q in enumerate(req.questions, start=1):
		if q.type == QuestionType.MCQ and q.correct_answer not in q.options:
			raise ValidationFailure(f"Question {number}: correct answer must be one of its options")


@router.post("", response_model=TestOut, status_code=201)
async def create_test(
	req: TestCreate,
	user: CurrentUser = Depends(require_instructor),
	db: Session = Depends(get_db),
):
	if settings.enforce_mcq_options:
		_check_mcq_answers(req)
	test = crud.create_test(
		db,
		instructor_id=user.id,
		title=req.title,
		description=req.description,
		show_answers_after_attempt=req.show_answers_after_attempt,
		questions=[q.model_dump() for q in req.questions],
	)
	return TestOut.model_validate(test)


@router.get("", response_model=List[TestListItem])
async def list_tests(user: CurrentUser = Depends(require_instructor), db: Session = Depends(get_db)):
	return [TestListItem.model_validate(t) for t in crud.get_tests_by_instructor(db, user.id)]


@router.get("/{test_id}", response_model=TestDetail)
async def get_test(test_id: str, user: CurrentUser = Depends(get_current_user), db: Session = Depends(get_db)):
	test = crud.get_test(db, test_id)
	if not test:
		raise NotFound("Test not found")
	return TestDetail.model_validate(test)
