from __future__ import annotations
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import crud
from ..db import get_db
from ..errors import Conflict, NotFound, ValidationFailure
from ..models import Role
from ..schemas import RelationCreate, RelationOut, StudentOut
from .auth import CurrentUser, require_instructor

router = APIRouter(tags=["students"])


@router.post("/student-teacher-relations", response_model=RelationOut, status_code=201)
async def add_student(
	req: RelationCreate,
	user: CurrentUser = Depends(require_instructor),
	db: Session = Depends(get_db),
):
	student = crud.get_user(db, req.student_id)
	if not student:
		raise NotFound("Student not found")
	if student.role != Role.STUDENT:
		raise ValidationFailure("Only students can be added to a roster")
	if crud.get_relation(db, student.id, user.id):
		raise Conflict("Student is already on your roster")
	relation = crud.create_relation(db, student.id, user.id)
	return RelationOut.model_validate(relation)


@router.get("/my-students", response_model=List[StudentOut])
async def my_students(user: CurrentUser = Depends(require_instructor), db: Session = Depends(get_db)):
	return [StudentOut.model_validate(s) for s in crud.get_students_of(db, user.id)]
