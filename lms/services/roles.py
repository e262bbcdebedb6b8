from __future__ import annotations

from logging import getLogger

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import Permission, Role, User, user_roles
from ..permissions import PROTECTED_ROLES, ROLE_INSTRUCTOR
from ..schemas.roles import RoleCreate, RoleUpdate
from ..utils import paginate, utcnow
from .errors import ConflictError, NotFoundError, ValidationFailedError


logger = getLogger(__name__)


class RoleService:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def _permissions(self, names: list[str]) -> list[Permission]:
		if not names:
			return []
		found = {p.name: p for p in (await self.db.scalars(select(Permission).where(Permission.name.in_(names)))).all()}
		missing = sorted(set(names) - set(found))
		if missing:
			raise ValidationFailedError("The selected permissions are invalid.", errors={"permissions": missing})
		return [found[name] for name in dict.fromkeys(names)]

	async def _role(self, role_id: int) -> Role:
		role = await self.db.get(Role, role_id)
		if not role:
			raise NotFoundError("Role not found")
		return role

	async def _role_by_name(self, name: str) -> Role:
		role = await self.db.scalar(select(Role).where(Role.name == name))
		if not role:
			raise ValidationFailedError("The selected role is invalid.", errors={"role": [name]})
		return role

	async def _user(self, user_id: int) -> User:
		user = await self.db.get(User, user_id)
		if not user:
			raise NotFoundError("User not found")
		return user

	async def users_count(self, role_id: int) -> int:
		total = await self.db.scalar(select(func.count()).select_from(user_roles).where(user_roles.c.role_id == role_id))
		return int(total or 0)

	async def list_roles(self) -> list[tuple[Role, int]]:
		rows = (
			await self.db.execute(
				select(Role, func.count(user_roles.c.user_id))
				.outerjoin(user_roles, user_roles.c.role_id == Role.id)
				.group_by(Role.id)
				.order_by(Role.id)
			)
		).all()
		return [(role, int(users)) for role, users in rows]

	async def list_permissions(self) -> list[Permission]:
		return list((await self.db.scalars(select(Permission).order_by(Permission.name))).all())

	async def create(self, payload: RoleCreate) -> Role:
		if await self.db.scalar(select(Role.id).where(Role.name == payload.name)):
			raise ValidationFailedError("The name has already been taken.", errors={"name": [payload.name]})
		role = Role(name=payload.name, permissions=await self._permissions(payload.permissions))
		self.db.add(role)
		await self.db.commit()
		logger.info("Role %s created", role.name)
		return role

	async def update(self, role_id: int, payload: RoleUpdate) -> Role:
		role = await self._role(role_id)
		if payload.name and payload.name != role.name:
			if role.name in PROTECTED_ROLES:
				raise ValidationFailedError("Cannot rename a system role.")
			if await self.db.scalar(select(Role.id).where(Role.name == payload.name, Role.id != role.id)):
				raise ValidationFailedError("The name has already been taken.", errors={"name": [payload.name]})
			role.name = payload.name
		if payload.permissions is not None:
			role.permissions = await self._permissions(payload.permissions)
		role.updated_at = utcnow()
		await self.db.commit()
		return role

	async def delete(self, role_id: int) -> None:
		role = await self._role(role_id)
		if role.name in PROTECTED_ROLES:
			raise ValidationFailedError("Cannot delete system role.")
		await self.db.execute(delete(user_roles).where(user_roles.c.role_id == role.id))
		await self.db.delete(role)
		await self.db.commit()

	async def assign(self, user_id: int, role_name: str) -> User:
		user = await self._user(user_id)
		role = await self._role_by_name(role_name)
		if user.has_role(role.name):
			raise ConflictError(f"User already has the {role.name} role.")
		user.roles.append(role)
		await self.db.commit()
		logger.info("Role %s assigned to user %s", role.name, user.id)
		return user

	async def remove(self, user_id: int, role_name: str) -> User:
		user = await self._user(user_id)
		role = next((r for r in user.roles if r.name == role_name), None)
		if role is None:
			raise NotFoundError(f"User does not have the {role_name} role.")
		user.roles.remove(role)
		await self.db.commit()
		logger.info("Role %s removed from user %s", role.name, user.id)
		return user

	async def users_by_role(
		self, role_name: str | None = None, *, search: str | None = None, page: int = 1, per_page: int = 20
	) -> tuple[list[User], int]:
		stmt = select(User)
		if role_name:
			stmt = stmt.join(user_roles, user_roles.c.user_id == User.id).join(Role, Role.id == user_roles.c.role_id)
			stmt = stmt.where(Role.name == role_name)
		if search:
			stmt = stmt.where(User.name.ilike(f"%{search}%") | User.email.ilike(f"%{search}%"))
		return await paginate(self.db, stmt.order_by(User.id), page=page, per_page=per_page)

	async def verify_instructor(self, user_id: int) -> User:
		user = await self._user(user_id)
		if not user.has_role(ROLE_INSTRUCTOR):
			raise ValidationFailedError("User is not an instructor.")
		if user.email_verified_at is None:
			user.email_verified_at = utcnow()
			await self.db.commit()
			logger.info("Instructor %s verified", user.id)
		return user
