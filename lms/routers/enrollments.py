from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.enrollment import EnrollmentCheckOut
from ..security import verify_internal_token
from ..services.enrollments import get_active_course_enrollment


router = APIRouter(prefix="/internal/enrollments", tags=["internal"])


@router.get("/check", response_model=EnrollmentCheckOut, dependencies=[Depends(verify_internal_token)])
async def check_enrollment(user_id: int, course_id: int, db: AsyncSession = Depends(get_db)) -> EnrollmentCheckOut:
	enrollment = await get_active_course_enrollment(db, user_id, course_id)
	return EnrollmentCheckOut(
		user_id=user_id,
		course_id=course_id,
		enrolled=enrollment is not None,
		enrollment_id=enrollment.id if enrollment else None,
	)
