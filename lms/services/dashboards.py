from __future__ import annotations

from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..models import (
	Assignment,
	Batch,
	BatchStatus,
	Course,
	Enrollment,
	Order,
	OrderStatusEnum,
	Role,
	Submission,
	SubmissionStatus,
	User,
	active_enrollment_clause,
	user_roles,
)
from ..permissions import ROLE_INSTRUCTOR, ROLE_STUDENT
from ..utils import utcnow
from .batches import teaches_clause
from .enrollments import active_batch_ids

RECENT_ORDERS = 5
RECENT_COURSES = 5
UPCOMING_ASSIGNMENTS = 3


class DashboardService:
	def __init__(self, db: AsyncSession):
		self.db = db

	def _role_members(self, role_name: str):
		return (
			select(user_roles.c.user_id)
			.join(Role, Role.id == user_roles.c.role_id)
			.where(Role.name == role_name)
		)

	async def _count(self, stmt) -> int:
		return int(await self.db.scalar(stmt) or 0)

	async def admin(self) -> dict:
		paid = Order.status == OrderStatusEnum.PAID.value
		recent_orders = (
			await self.db.scalars(
				select(Order)
				.where(paid)
				.options(selectinload(Order.items), selectinload(Order.payments))
				.order_by(Order.paid_at.desc(), Order.id.desc())
				.limit(RECENT_ORDERS)
			)
		).all()
		return {
			"total_users": await self._count(select(func.count(User.id))),
			"total_instructors": await self._count(
				select(func.count(User.id)).where(User.id.in_(self._role_members(ROLE_INSTRUCTOR)))
			),
			"total_students": await self._count(
				select(func.count(User.id)).where(User.id.in_(self._role_members(ROLE_STUDENT)))
			),
			"total_revenue": await self.db.scalar(select(func.coalesce(func.sum(Order.total), 0)).where(paid))
			or Decimal("0"),
			"pending_instructors": await self._count(
				select(func.count(User.id)).where(
					User.id.in_(self._role_members(ROLE_INSTRUCTOR)), User.email_verified_at.is_(None)
				)
			),
			"recent_orders": list(recent_orders),
		}

	async def instructor(self, user: User) -> dict:
		own_courses = select(Course).where(Course.instructor_id == user.id, Course.deleted_at.is_(None))
		taught = select(Batch.id).where(teaches_clause(user.id))
		recent = (
			await self.db.scalars(own_courses.order_by(Course.created_at.desc(), Course.id.desc()).limit(RECENT_COURSES))
		).all()
		return {
			"total_courses": await self._count(
				select(func.count(Course.id)).where(Course.instructor_id == user.id, Course.deleted_at.is_(None))
			),
			"active_batches": await self._count(
				select(func.count(Batch.id)).where(Batch.id.in_(taught), Batch.status == BatchStatus.IN_PROGRESS.value)
			),
			"pending_grading": await self._count(
				select(func.count(Submission.id))
				.join(Assignment, Assignment.id == Submission.assignment_id)
				.where(Assignment.batch_id.in_(taught), Submission.status == SubmissionStatus.SUBMITTED.value)
			),
			"recent_courses": list(recent),
		}

	async def student(self, user: User) -> dict:
		batch_ids = await active_batch_ids(self.db, user.id)
		upcoming = []
		if batch_ids:
			upcoming = (
				await self.db.scalars(
					select(Assignment)
					.where(
						Assignment.batch_id.in_(batch_ids),
						Assignment.is_published.is_(True),
						Assignment.due_date > utcnow(),
					)
					.order_by(Assignment.due_date.asc())
					.limit(UPCOMING_ASSIGNMENTS)
				)
			).all()
		return {
			"active_enrollments": await self._count(
				select(func.count(Enrollment.id)).where(Enrollment.user_id == user.id, active_enrollment_clause())
			),
			"completed_courses": await self._count(
				select(func.count(Enrollment.id)).where(
					Enrollment.user_id == user.id, Enrollment.is_completed.is_(True)
				)
			),
			"upcoming_assignments": list(upcoming),
		}
