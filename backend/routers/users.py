import logging
import uuid
from typing import Dict

from fastapi import APIRouter, Depends, status
from fastapi_users import exceptions as user_exceptions
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import UserManager, current_active_user, get_user_manager, require_roles
from core.permissions import ROLE_ADMIN, Principal
from core.responses import success, success_list
from db.database import get_async_session
from db.location import Location as LocationModel
from db.users import User
from schemas.users import UserCreate, UserRead, UserUpdate
from services.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter()


def _user_out(user: User) -> Dict:
    return UserRead.model_validate(user).model_dump()


async def _ensure_base_exists(db: AsyncSession, location_id):
    if location_id is not None and not await db.get(LocationModel, location_id):
        raise ValidationError("Base not found")


async def _ensure_username_free(db: AsyncSession, username: str, user_id=None):
    stmt = select(User.id).where(User.username == username)
    if user_id is not None:
        stmt = stmt.where(User.id != user_id)
    if (await db.execute(stmt)).first():
        raise ValidationError("Username already taken")


async def _get_user(user_manager: UserManager, user_id: uuid.UUID) -> User:
    try:
        return await user_manager.get(user_id)
    except user_exceptions.UserNotExists:
        raise NotFoundError("User", user_id)


@router.get("/me", response_model=Dict)
async def read_me(user: User = Depends(current_active_user)):
    return success(_user_out(user))


@router.get("/", response_model=Dict)
async def list_users(
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    db: AsyncSession = Depends(get_async_session),
):
    res = await db.execute(select(User).order_by(User.username.asc()))
    return success_list([_user_out(u) for u in res.scalars().all()])


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_user(
    payload: UserCreate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    user_manager: UserManager = Depends(get_user_manager),
    db: AsyncSession = Depends(get_async_session),
):
    """Admin-only account creation. Non-admin roles must name an existing home base."""
    await _ensure_base_exists(db, payload.location_id)
    await _ensure_username_free(db, payload.username)

    payload.is_superuser = payload.role == ROLE_ADMIN
    try:
        user = await user_manager.create(payload, safe=False)
    except user_exceptions.UserAlreadyExists:
        raise ValidationError("A user with this email already exists")
    except user_exceptions.InvalidPasswordException as e:
        raise ValidationError(f"Invalid password: {e.reason}")

    logger.info("User %s created by %s with role %s", user.username, principal.id, user.role)
    return success(_user_out(user))


@router.get("/{user_id}", response_model=Dict)
async def get_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    user_manager: UserManager = Depends(get_user_manager),
):
    return success(_user_out(await _get_user(user_manager, user_id)))


@router.patch("/{user_id}", response_model=Dict)
@router.put("/{user_id}", response_model=Dict)
async def update_user(
    user_id: uuid.UUID,
    payload: UserUpdate,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    user_manager: UserManager = Depends(get_user_manager),
    db: AsyncSession = Depends(get_async_session),
):
    """Profile, role and home-base changes. Passwords are not changed here."""
    user = await _get_user(user_manager, user_id)
    data = payload.model_dump(exclude_unset=True)
    if "password" in data:
        raise ValidationError("Password updates are not allowed through this endpoint")
    for field in ("email", "username", "role"):
        if field in data and data[field] is None:
            raise ValidationError(f"{field} cannot be empty")

    role = data.get("role") or user.role
    location_id = data["location_id"] if "location_id" in data else user.location_id
    if role != ROLE_ADMIN and location_id is None:
        raise ValidationError(f"location_id is required for role {role}")
    await _ensure_base_exists(db, location_id)
    if data.get("username"):
        await _ensure_username_free(db, data["username"], user.id)
    if "role" in data:
        payload.is_superuser = role == ROLE_ADMIN

    try:
        user = await user_manager.update(payload, user, safe=False)
    except user_exceptions.UserAlreadyExists:
        raise ValidationError("A user with this email already exists")

    logger.info("User %s updated by %s (role=%s)", user.username, principal.id, user.role)
    return success(_user_out(user))


@router.patch("/{user_id}/toggle-status", response_model=Dict)
async def toggle_user_status(
    user_id: uuid.UUID,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    user_manager: UserManager = Depends(get_user_manager),
    db: AsyncSession = Depends(get_async_session),
):
    user = await _get_user(user_manager, user_id)
    if user.role == ROLE_ADMIN and user.is_active:
        raise ValidationError("Admin users cannot be deactivated")

    user.is_active = not user.is_active
    await db.commit()
    state = "activated" if user.is_active else "deactivated"
    logger.info("User %s %s by %s", user.username, state, principal.id)
    body = success(_user_out(user))
    body["message"] = f"User {state} successfully"
    return body


@router.delete("/{user_id}", response_model=Dict)
async def delete_user(
    user_id: uuid.UUID,
    principal: Principal = Depends(require_roles(ROLE_ADMIN)),
    user_manager: UserManager = Depends(get_user_manager),
):
    user = await _get_user(user_manager, user_id)
    if user.role == ROLE_ADMIN:
        raise ValidationError("Admin users cannot be deleted")

    username = user.username
    await user_manager.delete(user)
    logger.info("User %s deleted by %s", username, principal.id)
    return success(None)
