from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_db
from ..errors import AuthorizationDenied, NotFound, ValidationFailure
from ..models import Role
from ..schemas import AssignedTestOut, AssignmentCreate, AssignmentOut
from .auth import CurrentUser, require_instructor, require_student

router = APIRouter(tags=["assignments"])


@router.post("/test-assignments", response_model=List[AssignmentOut], status_code=201)
async def assign_test(
	req: AssignmentCreate,
	user: CurrentUser = Depends(require_instructor),
	db: Session = Depends(get_db),
):
	"""Assign a test to every listed student, all or nothing.

	Every id is checked before anything is written; duplicate ids (or a
	student who already has this test) each get their own row.
	"""
	test = crud.get_test(db, req.test_id)
	if not test:
		raise NotFound("Test not found")
	if test.instructor_id != user.id:
		raise AuthorizationDenied("Only the author of a test can assign it")
	students = crud.get_users(db, req.student_ids)
	unknown = [sid for sid in req.student_ids if sid not in students]
	if unknown:
		raise ValidationFailure(f"Unknown student ids: {', '.join(sorted(set(unknown)))}")
	not_students = sorted({sid for sid, u in students.items() if u.role != Role.STUDENT})
	if not_students:
		raise ValidationFailure(f"Not students: {', '.join(not_students)}")
	rows = crud.create_assignments(
		db,
		test_id=test.id,
		student_ids=req.student_ids,
		assigned_by=user.id,
		due_date=req.due_date,
	)
	return [AssignmentOut.model_validate(r) for r in rows]


@router.get("/assigned-tests", response_model=List[AssignedTestOut])
async def assigned_tests(user: CurrentUser = Depends(require_student), db: Session = Depends(get_db)):
	return [AssignedTestOut.model_validate(a) for a in crud.get_assignments_for_student(db, user.id)]
