"""Default roles and permissions seeded on startup."""
from __future__ import annotations

from logging import getLogger

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Permission, Role


logger = getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "super-admin"
ROLE_INSTRUCTOR = "instructor"
ROLE_STUDENT = "student"

PROTECTED_ROLES = frozenset({ROLE_ADMIN, ROLE_SUPER_ADMIN})

USER_PERMISSIONS = ("view own profile", "edit own profile")
COURSE_PERMISSIONS = (
	"create courses",
	"edit own courses",
	"delete own courses",
	"publish courses",
	"view course analytics",
)
BATCH_PERMISSIONS = (
	"create batches",
	"edit own batches",
	"delete own batches",
	"grade submissions",
	"manage assignments",
)
STUDENT_PERMISSIONS = (
	"enroll courses",
	"view enrolled courses",
	"submit assignments",
	"view own grades",
	"post discussions",
	"write reviews",
)
ADMIN_PERMISSIONS = (
	"manage users",
	"verify instructors",
	"manage roles",
	"manage all courses",
	"manage categories",
	"feature courses",
	"manage transactions",
	"process payouts",
	"view platform analytics",
	"manage settings",
	"view all batches",
	"assign instructors",
	"remove instructors",
)

ALL_PERMISSIONS: tuple[str, ...] = tuple(
	dict.fromkeys(
		USER_PERMISSIONS + COURSE_PERMISSIONS + BATCH_PERMISSIONS + STUDENT_PERMISSIONS + ADMIN_PERMISSIONS
	)
)

DEFAULT_ROLES: dict[str, tuple[str, ...]] = {
	ROLE_ADMIN: ALL_PERMISSIONS,
	ROLE_INSTRUCTOR: USER_PERMISSIONS + STUDENT_PERMISSIONS + COURSE_PERMISSIONS + BATCH_PERMISSIONS,
	ROLE_STUDENT: USER_PERMISSIONS + STUDENT_PERMISSIONS,
}


async def ensure_default_roles(db: AsyncSession) -> None:
	"""Create missing permissions and default roles; existing grants are kept."""
	existing = {perm.name: perm for perm in (await db.scalars(select(Permission))).all()}
	for name in ALL_PERMISSIONS:
		if name not in existing:
			perm = Permission(name=name)
			db.add(perm)
			existing[name] = perm

	roles = {role.name: role for role in (await db.scalars(select(Role))).all()}
	for role_name, perm_names in DEFAULT_ROLES.items():
		role = roles.get(role_name)
		if role is None:
			role = Role(name=role_name, permissions=[])
			db.add(role)
			logger.info("Seeded role %s", role_name)
		granted = {perm.name for perm in role.permissions}
		for perm_name in perm_names:
			if perm_name not in granted:
				role.permissions.append(existing[perm_name])
	await db.commit()
