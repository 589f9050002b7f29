"""User endpoints"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ...core.models import User, UserRole
from ...core.permissions import USER_CREATE, USER_ROLE_MANAGE, USER_VIEW, has_permission
from ...core.schemas.user import UserCreate, UserResponse, UserRoleUpdate
from ...core.storage.repositories import UserRepository
from ..dependencies import get_current_user, get_session, require_permission, resolve_user

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    x_user_id: Optional[str] = Header(None),
    session: AsyncSession = Depends(get_session),
):
    """Register a user.

    The first user of an empty installation needs no caller and is always
    an admin. After that only admins may register users.
    """
    try:
        user_count = (await session.execute(select(func.count(User.id)))).scalar_one()
        role = data.role
        if user_count == 0:
            role = UserRole.ADMIN.value
        else:
            caller = await resolve_user(session, x_user_id)
            if not has_permission(caller.role, USER_CREATE):
                raise HTTPException(status_code=403, detail=f"Missing permission: {USER_CREATE}")

        repo = UserRepository(session)
        if await repo.get_by_email(data.email):
            raise HTTPException(status_code=409, detail="A user with this email already exists")

        user = await repo.create(User(
            email=data.email,
            name=data.name,
            role=role,
            department=data.department,
        ))
        await session.commit()
        logger.info(f"User {user.id} registered as {user.role}")
        return user

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error creating user: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get("/users/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.get("/users", response_model=list[UserResponse])
async def list_users(
    role: Optional[str] = Query(None, description="Filter by role"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user: User = Depends(require_permission(USER_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    repo = UserRepository(session)
    if role:
        return await repo.list_by_roles([role])
    return await repo.list(limit=limit, offset=offset)


@router.get("/users/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    user: User = Depends(require_permission(USER_VIEW)),
    session: AsyncSession = Depends(get_session),
):
    found = await UserRepository(session).get(user_id)
    if not found:
        raise HTTPException(status_code=404, detail="User not found")
    return found


@router.patch("/users/{user_id}/role", response_model=UserResponse)
async def update_role(
    user_id: int,
    data: UserRoleUpdate,
    user: User = Depends(require_permission(USER_ROLE_MANAGE)),
    session: AsyncSession = Depends(get_session),
):
    """Change a user's role. Admins cannot demote themselves."""
    try:
        if user_id == user.id and data.role != UserRole.ADMIN.value:
            raise HTTPException(status_code=400, detail="You cannot change your own role")

        target = await UserRepository(session).update(user_id, role=data.role)
        if not target:
            raise HTTPException(status_code=404, detail="User not found")
        await session.commit()
        await session.refresh(target)
        logger.info(f"User {user_id} role changed to {target.role}")
        return target

    except HTTPException:
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"Error updating role of user {user_id}: {e}")
        raise HTTPException(status_code=500, detail=str(e))
