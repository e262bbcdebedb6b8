from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..database import Base
from ..utils import utcnow
from .role import user_roles

if TYPE_CHECKING:
	from .role import Role


class User(Base):
	__tablename__ = "users"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	name: Mapped[str] = mapped_column(String(255), nullable=False)
	email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
	hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
	is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
	email_verified_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	roles: Mapped[list["Role"]] = relationship(secondary=user_roles, lazy="selectin")
	profile: Mapped["Profile | None"] = relationship(back_populates="user", uselist=False, lazy="selectin")

	@property
	def role_names(self) -> list[str]:
		return sorted(role.name for role in self.roles)

	@property
	def permission_names(self) -> list[str]:
		return sorted({perm.name for role in self.roles for perm in role.permissions})

	def has_role(self, *names: str) -> bool:
		return any(role.name in names for role in self.roles)

	def has_permission(self, name: str) -> bool:
		return name in self.permission_names


class Profile(Base):
	__tablename__ = "profiles"

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
	avatar: Mapped[str | None] = mapped_column(String(512))
	bio: Mapped[str | None] = mapped_column(Text)
	phone: Mapped[str | None] = mapped_column(String(32))
	headline: Mapped[str | None] = mapped_column(String(255))
	website: Mapped[str | None] = mapped_column(String(255))
	linkedin: Mapped[str | None] = mapped_column(String(255))
	twitter: Mapped[str | None] = mapped_column(String(255))
	youtube: Mapped[str | None] = mapped_column(String(255))
	expertise: Mapped[list | None] = mapped_column(JSON)
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

	user: Mapped[User] = relationship(back_populates="profile")


class RefreshToken(Base):
	__tablename__ = "refresh_tokens"
	__table_args__ = (
		UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
	)

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	token_id: Mapped[UUID] = mapped_column(Uuid, nullable=False, unique=True)
	user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
	token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
	expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
	revoked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
	revoked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
	created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
