"""User lookup endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import CurrentUser, get_current_user, get_user_store
from app.schemas import PublicUser, UserProfile, UserSearchResult
from app.services import UserStore

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=UserProfile)
async def read_me(
    current_user: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
) -> UserProfile:
    user = await users.get_user_by_id(current_user.id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Could not validate credentials")
    return UserProfile(
        id=user.id,
        username=user.username,
        avatar=user.avatar,
        email=user.email,
        created_at=user.created_at,
    )


@router.get("/search", response_model=UserSearchResult)
async def search_users(
    username: str = Query(..., min_length=1),
    current_user: CurrentUser = Depends(get_current_user),
    users: UserStore = Depends(get_user_store),
) -> UserSearchResult:
    """Exact, case-insensitive username lookup returning zero or one user."""

    if username.lower() == current_user.username.lower():
        return UserSearchResult(users=[])
    user = await users.get_user_by_username(username)
    if user is None:
        return UserSearchResult(users=[])
    return UserSearchResult(users=[PublicUser.from_user(user)])
