from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Enrollment, active_enrollment_clause


async def get_active_course_enrollment(db: AsyncSession, user_id: int, course_id: int) -> Enrollment | None:
	stmt = (
		select(Enrollment)
		.where(
			Enrollment.user_id == user_id,
			Enrollment.course_id == course_id,
			active_enrollment_clause(),
		)
		.order_by(Enrollment.id)
	)
	return await db.scalar(stmt)


async def active_batch_ids(db: AsyncSession, user_id: int) -> list[int]:
	stmt = select(Enrollment.batch_id).where(
		Enrollment.user_id == user_id,
		Enrollment.batch_id.is_not(None),
		active_enrollment_clause(),
	)
	return [batch_id for batch_id in (await db.scalars(stmt)).all() if batch_id is not None]
