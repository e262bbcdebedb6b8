from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel

from .assignment import AssignmentOut
from .course import CourseSummary
from .order import OrderOut


class AdminDashboard(BaseModel):
	total_users: int
	total_instructors: int
	total_students: int
	total_revenue: Decimal
	pending_instructors: int
	recent_orders: list[OrderOut]


class InstructorDashboard(BaseModel):
	total_courses: int
	active_batches: int
	pending_grading: int
	recent_courses: list[CourseSummary]


class StudentDashboard(BaseModel):
	active_enrollments: int
	completed_courses: int
	upcoming_assignments: list[AssignmentOut]


class RecommendationsOut(BaseModel):
	source: str
	data: list[CourseSummary]
