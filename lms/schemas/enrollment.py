from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class EnrollmentOut(BaseModel):
	id: int
	user_id: int
	course_id: int | None = None
	batch_id: int | None = None
	order_item_id: int | None = None
	enrolled_at: datetime | None = None
	expires_at: datetime | None = None
	is_completed: bool
	progress_percentage: Decimal
	is_active: bool

	model_config = {"from_attributes": True}


class EnrollmentCheckOut(BaseModel):
	user_id: int
	course_id: int
	enrolled: bool
	enrollment_id: int | None = None
