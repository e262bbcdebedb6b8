"""Unit tests for model-level rules: pricing, seats, enrollment windows and grading."""
from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

import pytest

from lms.models import (
	Batch,
	BatchStatus,
	Cart,
	CartItem,
	Course,
	Enrollment,
	Submission,
	SubmissionStatus,
	letter_grade,
)
from lms.utils import utcnow


def _batch(**overrides) -> Batch:
	values = {
		"name": "Evening cohort",
		"slug": "evening-cohort",
		"status": BatchStatus.OPEN.value,
		"max_students": 2,
		"current_students": 0,
	}
	values.update(overrides)
	return Batch(**values)


class TestCoursePricing:
	def test_discount_price_wins_when_set(self):
		course = Course(price=Decimal("200"), discount_price=Decimal("150"))

		assert course.effective_price == Decimal("150")
		assert course.is_on_sale is True
		assert course.is_free is False

	def test_zero_price_is_free(self):
		course = Course(price=Decimal("0"), discount_price=None)

		assert course.effective_price == Decimal("0")
		assert course.is_free is True
		assert course.is_on_sale is False

	def test_soft_deleted_course_is_not_published(self):
		course = Course(status="published", deleted_at=utcnow())

		assert course.is_published is False


class TestBatchSeats:
	def test_full_when_counter_reaches_capacity(self):
		batch = _batch(current_students=2)

		assert batch.is_full is True
		assert batch.available_seats == 0
		assert batch.is_open_for_enrollment is False

	def test_unlimited_capacity_is_never_full(self):
		batch = _batch(max_students=None, current_students=500)

		assert batch.is_full is False
		assert batch.available_seats is None

	@pytest.mark.parametrize("status", ["draft", "in_progress", "completed", "cancelled"])
	def test_only_open_batches_accept_enrollment(self, status):
		assert _batch(status=status).is_open_for_enrollment is False

	def test_enrollment_window_is_respected(self):
		now = utcnow()

		assert _batch(enrollment_start_date=now + timedelta(days=1)).is_open_for_enrollment is False
		assert _batch(enrollment_end_date=now - timedelta(days=1)).is_open_for_enrollment is False
		assert _batch(
			enrollment_start_date=now - timedelta(days=1),
			enrollment_end_date=now + timedelta(days=1),
		).is_open_for_enrollment is True

	def test_naive_dates_are_treated_as_utc(self):
		naive_past = (utcnow() - timedelta(days=2)).replace(tzinfo=None)

		assert _batch(start_date=naive_past).has_started is True
		assert _batch(end_date=naive_past).has_ended is True


class TestBatchTransitions:
	@pytest.mark.parametrize(
		"current,target,allowed",
		[
			("draft", "open", True),
			("open", "in_progress", True),
			("open", "draft", True),
			("in_progress", "completed", True),
			("draft", "completed", False),
			("completed", "open", False),
			("cancelled", "open", False),
			("open", "open", True),
		],
	)
	def test_can_transition_to(self, current, target, allowed):
		assert _batch(status=current).can_transition_to(target) is allowed


class TestEnrollmentState:
	def test_pending_enrollment_is_not_active(self):
		assert Enrollment(enrolled_at=None, is_completed=False).is_active is False

	def test_expired_enrollment_is_not_active(self):
		enrollment = Enrollment(
			enrolled_at=utcnow() - timedelta(days=10),
			expires_at=utcnow() - timedelta(days=1),
			is_completed=False,
		)

		assert enrollment.is_expired is True
		assert enrollment.is_active is False

	def test_completed_enrollment_is_not_active(self):
		assert Enrollment(enrolled_at=utcnow(), is_completed=True).is_active is False

	def test_enrolled_enrollment_is_active(self):
		assert Enrollment(enrolled_at=utcnow(), is_completed=False).is_active is True


class TestGrading:
	@pytest.mark.parametrize(
		"score,letter",
		[
			(100, "A"),
			(90, "A"),
			(89.99, "A-"),
			(85, "A-"),
			(80, "B+"),
			(75, "B"),
			(70, "B-"),
			(65, "C+"),
			(60, "C"),
			(55, "C-"),
			(50, "D"),
			(49.99, "F"),
			(0, "F"),
		],
	)
	def test_letter_grade_thresholds(self, score, letter):
		assert letter_grade(score) == letter

	def test_submission_percentage(self):
		submission = Submission(points_awarded=Decimal("42.5"), status=SubmissionStatus.GRADED.value)

		assert submission.is_graded is True
		assert submission.percentage_score(50) == 85.0
		assert submission.percentage_score(0) is None

	def test_ungraded_submission_has_no_percentage(self):
		submission = Submission(points_awarded=None, status=SubmissionStatus.SUBMITTED.value)

		assert submission.is_graded is False
		assert submission.percentage_score(100) is None


class TestCartTotals:
	def test_recalculate_sums_item_prices_minus_discount(self):
		cart = Cart(discount=Decimal("10"), items=[])
		cart.items.append(CartItem(course_id=1, price=Decimal("100")))
		cart.items.append(CartItem(course_id=2, price=Decimal("50.50")))

		cart.recalculate()

		assert cart.subtotal == Decimal("150.50")
		assert cart.total == Decimal("140.50")
