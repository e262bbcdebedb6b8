from .admin import router as admin_router
from .admin_batches import router as admin_batches_router
from .admin_roles import router as admin_roles_router
from .auth import router as auth_router
from .cart import router as cart_router
from .checkout import router as checkout_router
from .classes import router as classes_router
from .discussions import router as discussions_router
from .enrollments import router as enrollments_router
from .instructor import router as instructor_router
from .instructor_courses import router as instructor_courses_router
from .public import router as public_router
from .student import router as student_router
from .webhooks import router as webhooks_router

__all__ = [
	"admin_router",
	"admin_batches_router",
	"admin_roles_router",
	"auth_router",
	"cart_router",
	"checkout_router",
	"classes_router",
	"discussions_router",
	"enrollments_router",
	"instructor_router",
	"instructor_courses_router",
	"public_router",
	"student_router",
	"webhooks_router",
]
