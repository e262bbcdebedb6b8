from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..schemas.auth import UserOut
from ..schemas.common import MessageOut, Page
from ..schemas.roles import AssignRoleInput, PermissionOut, RoleCreate, RoleOut, RoleUpdate
from ..services.builders import build_role
from ..services.errors import ServiceError, to_http_exception
from ..services.roles import RoleService
from .admin import admin_only


router = APIRouter(prefix="/admin", tags=["admin-roles"], dependencies=[Depends(admin_only)])


def _handle_error(exc: ServiceError) -> HTTPException:
	return to_http_exception(exc)


@router.get("/roles", response_model=list[RoleOut])
async def list_roles(db: AsyncSession = Depends(get_db)) -> list[RoleOut]:
	return [build_role(role, users) for role, users in await RoleService(db).list_roles()]


@router.post("/roles", response_model=RoleOut, status_code=status.HTTP_201_CREATED)
async def create_role(data: RoleCreate, db: AsyncSession = Depends(get_db)) -> RoleOut:
	try:
		role = await RoleService(db).create(data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_role(role)


@router.put("/roles/{role_id}", response_model=RoleOut)
async def update_role(role_id: int, data: RoleUpdate, db: AsyncSession = Depends(get_db)) -> RoleOut:
	service = RoleService(db)
	try:
		role = await service.update(role_id, data)
	except ServiceError as exc:
		raise _handle_error(exc)
	return build_role(role, await service.users_count(role.id))


@router.delete("/roles/{role_id}", response_model=MessageOut)
async def delete_role(role_id: int, db: AsyncSession = Depends(get_db)) -> MessageOut:
	try:
		await RoleService(db).delete(role_id)
	except ServiceError as exc:
		raise _handle_error(exc)
	return MessageOut(message="Role deleted successfully")


@router.get("/permissions", response_model=list[PermissionOut])
async def list_permissions(db: AsyncSession = Depends(get_db)) -> list[PermissionOut]:
	return await RoleService(db).list_permissions()


@router.get("/users", response_model=Page[UserOut])
async def list_users(
	role: str | None = None,
	search: str | None = None,
	page: Annotated[int, Query(ge=1)] = 1,
	per_page: Annotated[int, Query(ge=1, le=100)] = 20,
	db: AsyncSession = Depends(get_db),
) -> Page[UserOut]:
	users, total = await RoleService(db).users_by_role(role, search=search, page=page, per_page=per_page)
	return Page[UserOut].build([UserOut.model_validate(user) for user in users], page=page, per_page=per_page, total=total)


@router.post("/users/{user_id}/roles", response_model=UserOut)
async def assign_role(user_id: int, data: AssignRoleInput, db: AsyncSession = Depends(get_db)) -> UserOut:
	try:
		return await RoleService(db).assign(user_id, data.role)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.delete("/users/{user_id}/roles/{role_name}", response_model=UserOut)
async def remove_role(user_id: int, role_name: str, db: AsyncSession = Depends(get_db)) -> UserOut:
	try:
		return await RoleService(db).remove(user_id, role_name)
	except ServiceError as exc:
		raise _handle_error(exc)


@router.post("/instructors/{user_id}/verify", response_model=UserOut)
async def verify_instructor(user_id: int, db: AsyncSession = Depends(get_db)) -> UserOut:
	try:
		return await RoleService(db).verify_instructor(user_id)
	except ServiceError as exc:
		raise _handle_error(exc)
