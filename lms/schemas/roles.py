from __future__ import annotations

from pydantic import BaseModel, Field


class PermissionOut(BaseModel):
	id: int
	name: str

	model_config = {"from_attributes": True}


class RoleOut(BaseModel):
	id: int
	name: str
	permissions: list[str]
	users_count: int = 0


class RoleCreate(BaseModel):
	name: str = Field(min_length=1, max_length=64)
	permissions: list[str] = Field(default_factory=list)


class RoleUpdate(BaseModel):
	name: str | None = Field(default=None, min_length=1, max_length=64)
	permissions: list[str] | None = None


class AssignRoleInput(BaseModel):
	role: str
