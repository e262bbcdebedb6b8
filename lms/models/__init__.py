from .role import Permission, Role, role_permissions, user_roles
from .user import Profile, RefreshToken, User
from .category import Category
from .course import Attachment, Course, CourseLevel, CourseStatus, CourseType, Lesson, LessonType, Section
from .batch import (
	BATCH_STATUS_TRANSITIONS,
	Batch,
	BatchCourse,
	BatchInstructor,
	BatchStatus,
	BatchType,
	InstructorRole,
)
from .order import (
	FAILED_PAYMENT_STATUSES,
	REFUND_PAYMENT_STATUSES,
	SUCCESSFUL_PAYMENT_STATUSES,
	Order,
	OrderItem,
	OrderStatusEnum,
	Payment,
	PaymentStatusEnum,
)
from .enrollment import Enrollment, active_enrollment_clause
from .cart import Cart, CartItem
from .assignment import Assignment, AssignmentType, Submission, SubmissionStatus
from .grade import Grade, GradeStatus, letter_grade
from .discussion import Discussion, DiscussionType
from .learning_path import LearningPath, LearningPathItem, PathLevel

__all__ = [
	"Permission",
	"Role",
	"role_permissions",
	"user_roles",
	"Profile",
	"RefreshToken",
	"User",
	"Category",
	"Attachment",
	"Course",
	"CourseLevel",
	"CourseStatus",
	"CourseType",
	"Lesson",
	"LessonType",
	"Section",
	"BATCH_STATUS_TRANSITIONS",
	"Batch",
	"BatchCourse",
	"BatchInstructor",
	"BatchStatus",
	"BatchType",
	"InstructorRole",
	"FAILED_PAYMENT_STATUSES",
	"REFUND_PAYMENT_STATUSES",
	"SUCCESSFUL_PAYMENT_STATUSES",
	"Order",
	"OrderItem",
	"OrderStatusEnum",
	"Payment",
	"PaymentStatusEnum",
	"Enrollment",
	"active_enrollment_clause",
	"Cart",
	"CartItem",
	"Assignment",
	"AssignmentType",
	"Submission",
	"SubmissionStatus",
	"Grade",
	"GradeStatus",
	"letter_grade",
	"Discussion",
	"DiscussionType",
	"LearningPath",
	"LearningPathItem",
	"PathLevel",
]
