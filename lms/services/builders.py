from __future__ import annotations

from typing import Sequence

from ..models import Assignment, Batch, Cart, Course, Discussion, Role, Section, Submission
from ..schemas.assignment import StudentAssignmentOut, SubmissionOut
from ..schemas.batch import BatchCourseOut, BatchDetail, BatchInstructorOut, BatchOut
from ..schemas.cart import CartItemOut, CartOut
from ..schemas.course import CatalogCourseDetail, CourseDetail, SectionDetail
from ..schemas.discussion import DiscussionDetail, DiscussionOut
from ..schemas.roles import RoleOut


def build_batch_detail(batch: Batch) -> BatchDetail:
	data = BatchOut.model_validate(batch).model_dump()
	data["courses"] = [BatchCourseOut.model_validate(link) for link in batch.course_links]
	data["instructors"] = [BatchInstructorOut.model_validate(link) for link in batch.instructor_links]
	return BatchDetail(**data)


def build_cart(cart: Cart) -> CartOut:
	return CartOut(
		id=cart.id,
		items=[CartItemOut.model_validate(item) for item in cart.items],
		subtotal=cart.subtotal,
		discount=cart.discount,
		total=cart.total,
		items_count=len(cart.items),
	)


def build_course_detail(course: Course, *, published_lessons_only: bool = False) -> CourseDetail:
	detail = CourseDetail.model_validate(course)
	if published_lessons_only:
		detail.sections = [
			section.model_copy(update={"lessons": [lesson for lesson in section.lessons if lesson.is_published]})
			for section in detail.sections
		]
	return detail


def build_catalog_detail(course: Course, *, views: int) -> CatalogCourseDetail:
	detail = build_course_detail(course, published_lessons_only=True)
	return CatalogCourseDetail(**detail.model_dump(), views=views)


def build_section(section: Section) -> SectionDetail:
	return SectionDetail.model_validate(section)


def build_submission(submission: Submission, max_points: int) -> SubmissionOut:
	return SubmissionOut(
		id=submission.id,
		assignment_id=submission.assignment_id,
		user_id=submission.user_id,
		content=submission.content,
		files=submission.files,
		status=submission.status,
		points_awarded=submission.points_awarded,
		percentage_score=submission.percentage_score(max_points),
		feedback=submission.feedback,
		submitted_at=submission.submitted_at,
		graded_at=submission.graded_at,
		graded_by=submission.graded_by,
	)


def build_student_assignment(assignment: Assignment, submission: Submission | None) -> StudentAssignmentOut:
	return StudentAssignmentOut.model_validate(assignment).model_copy(
		update={"my_submission": build_submission(submission, assignment.max_points) if submission else None}
	)


def build_role(role: Role, users_count: int = 0) -> RoleOut:
	return RoleOut(
		id=role.id,
		name=role.name,
		permissions=sorted(perm.name for perm in role.permissions),
		users_count=users_count,
	)


def build_discussion_detail(discussion: Discussion, replies: Sequence[Discussion]) -> DiscussionDetail:
	data = DiscussionOut.model_validate(discussion).model_dump()
	return DiscussionDetail(**data, replies=[DiscussionOut.model_validate(reply) for reply in replies])
