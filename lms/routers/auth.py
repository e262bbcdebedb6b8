from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..models import Profile, Role, User
from ..permissions import ROLE_STUDENT
from ..schemas.auth import AuthResponse, LoginInput, ProfileOut, ProfileUpdate, RefreshInput, RegisterInput, Token, UserOut
from ..schemas.common import MessageOut
from ..security import (
	RefreshTokenError,
	create_access_token,
	create_refresh_token,
	get_current_user,
	get_password_hash,
	revoke_refresh_tokens,
	validate_refresh_token,
	verify_password,
)


router = APIRouter(prefix="/auth", tags=["auth"])


async def _issue_tokens(db: AsyncSession, user: User) -> Token:
	access = create_access_token(user.id)
	refresh = await create_refresh_token(db, user.id)
	return Token(access_token=access, refresh_token=refresh)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterInput, db: AsyncSession = Depends(get_db)) -> AuthResponse:
	email = data.email.lower()
	existing = await db.scalar(select(User.id).where(User.email == email))
	if existing:
		raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")

	student_role = await db.scalar(select(Role).where(Role.name == ROLE_STUDENT))
	user = User(
		name=data.name.strip(),
		email=email,
		hashed_password=get_password_hash(data.password),
		roles=[student_role] if student_role else [],
		profile=None,
	)
	db.add(user)
	await db.commit()

	tokens = await _issue_tokens(db, user)
	return AuthResponse(**tokens.model_dump(), user=UserOut.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginInput, db: AsyncSession = Depends(get_db)) -> AuthResponse:
	user = await db.scalar(select(User).where(User.email == data.email.lower()))
	if not user or not verify_password(data.password, user.hashed_password):
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
	if not user.is_active:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

	await revoke_refresh_tokens(db, user.id)
	tokens = await _issue_tokens(db, user)
	return AuthResponse(**tokens.model_dump(), user=UserOut.model_validate(user))


@router.post("/refresh", response_model=Token)
async def refresh(data: RefreshInput, db: AsyncSession = Depends(get_db)) -> Token:
	try:
		token_record = await validate_refresh_token(db, data.refresh_token)
	except RefreshTokenError as exc:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.detail)

	user = await db.get(User, token_record.user_id)
	if not user or not user.is_active:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found or inactive")

	token_record.revoked = True
	token_record.revoked_at = datetime.now(timezone.utc)
	return await _issue_tokens(db, user)


@router.post("/logout", response_model=MessageOut)
async def logout(current_user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)) -> MessageOut:
	await revoke_refresh_tokens(db, current_user.id)
	await db.commit()
	return MessageOut(message="Logged out successfully")


@router.get("/user", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)) -> UserOut:
	return current_user


@router.get("/profile", response_model=ProfileOut)
async def get_profile(current_user: User = Depends(get_current_user)) -> ProfileOut:
	return current_user.profile or ProfileOut()


@router.put("/profile", response_model=UserOut)
async def update_profile(
	data: ProfileUpdate,
	current_user: User = Depends(get_current_user),
	db: AsyncSession = Depends(get_db),
) -> UserOut:
	profile = current_user.profile
	if profile is None:
		profile = Profile(user_id=current_user.id)
		current_user.profile = profile
	for field, value in data.model_dump(exclude_unset=True).items():
		setattr(profile, field, value)
	await db.commit()
	return current_user
