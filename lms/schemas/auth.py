from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, model_validator


class RegisterInput(BaseModel):
	name: str = Field(min_length=1, max_length=255)
	email: EmailStr
	password: str = Field(min_length=8, max_length=128)
	password_confirmation: str

	@model_validator(mode="after")
	def _passwords_match(self) -> "RegisterInput":
		if self.password != self.password_confirmation:
			raise ValueError("The password confirmation does not match.")
		return self


class LoginInput(BaseModel):
	email: EmailStr
	password: str


class RefreshInput(BaseModel):
	refresh_token: str


class ProfileOut(BaseModel):
	avatar: str | None = None
	bio: str | None = None
	phone: str | None = None
	headline: str | None = None
	website: str | None = None
	linkedin: str | None = None
	twitter: str | None = None
	youtube: str | None = None
	expertise: list[str] | None = None

	model_config = {"from_attributes": True}


class ProfileUpdate(BaseModel):
	avatar: str | None = Field(default=None, max_length=512)
	bio: str | None = None
	phone: str | None = Field(default=None, max_length=32)
	headline: str | None = Field(default=None, max_length=255)
	website: str | None = Field(default=None, max_length=255)
	linkedin: str | None = Field(default=None, max_length=255)
	twitter: str | None = Field(default=None, max_length=255)
	youtube: str | None = Field(default=None, max_length=255)
	expertise: list[str] | None = None


class UserOut(BaseModel):
	id: int
	name: str
	email: EmailStr
	is_active: bool
	email_verified_at: datetime | None = None
	role_names: list[str] = Field(default_factory=list, serialization_alias="roles")
	permission_names: list[str] = Field(default_factory=list, serialization_alias="permissions")
	profile: ProfileOut | None = None
	created_at: datetime

	model_config = {"from_attributes": True}


class UserBrief(BaseModel):
	id: int
	name: str
	email: EmailStr

	model_config = {"from_attributes": True}


class Token(BaseModel):
	access_token: str
	refresh_token: str
	token_type: str = "bearer"


class AuthResponse(Token):
	user: UserOut
