"""Account creation and sign-in endpoints."""

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status

from app.api.deps import get_user_store
from app.config import get_settings
from app.core import new_id, now_ms
from app.core.security import create_access_token, get_password_hash, verify_password
from app.models import User
from app.schemas import LoginRequest, SignupRequest, SignupResponse, Token
from app.services import DuplicateEmailError, DuplicateUsernameError, IdentityConflictError, UserStore

router = APIRouter()
settings = get_settings()


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(payload: SignupRequest, users: UserStore = Depends(get_user_store)) -> SignupResponse:
    """Register a new account; email and username must both be unused."""

    if await users.email_exists(payload.email):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    if await users.username_exists(payload.username):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    user = User(
        id=new_id(),
        username=payload.username,
        email=payload.email.lower(),
        password_hash=get_password_hash(payload.password),
        created_at=now_ms(),
    )
    try:
        await users.create_user(user)
    except DuplicateEmailError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc
    except DuplicateUsernameError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken") from exc
    except IdentityConflictError as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail="Email or username already taken"
        ) from exc
    return SignupResponse(user_id=user.id)


@router.post("/login", response_model=Token)
async def login(credentials: LoginRequest, users: UserStore = Depends(get_user_store)) -> Token:
    """Authenticate with email and password and return a bearer token."""

    user = await users.get_user_by_email(credentials.email)
    if user is None or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    expires = timedelta(minutes=settings.access_token_expire_minutes)
    access_token = create_access_token({"sub": user.id, "username": user.username}, expires_delta=expires)
    return Token(access_token=access_token, token_type="bearer", expires_in=int(expires.total_seconds()))
