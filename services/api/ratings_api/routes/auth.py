"""Auth endpoints.

POST  /v1/auth/register  - self-registration (normal users only)
POST  /v1/auth/login     - exchange credentials for a JWT
GET   /v1/auth/profile   - caller profile (+ owned store for store owners)
PATCH /v1/auth/password  - change own password
GET   /v1/auth/verify    - token check for clients
POST  /v1/auth/logout    - revoke the presented token

Routers are thin: call services for business logic.
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from ratings_api.models import Store, User, UserRole
from ratings_api.routes.deps import db_session, get_current_user, get_token_claims
from ratings_api.schemas.auth import (
    AuthResponse,
    LoginRequest,
    PasswordUpdateRequest,
    ProfileResponse,
    ProfileStore,
    RegisterRequest,
    VerifyResponse,
)
from ratings_api.schemas.common import MessageResponse
from ratings_api.services.tokens import TokenClaims, create_access_token
from ratings_api.services.users import authenticate, change_password, create_user, get_owned_store, to_user_out
from ratings_api.stores.redis import revoke_token

router = APIRouter()
logger = logging.getLogger("uvicorn.error")


async def _owned_store_id(session: AsyncSession, user: User) -> int | None:
    if user.role != UserRole.STORE_OWNER:
        return None
    store = await get_owned_store(session, user.id)
    return store.id if store else None


def _profile_store(store: Store) -> ProfileStore:
    return ProfileStore(
        id=store.id,
        name=store.name,
        email=store.email,
        address=store.address,
        average_rating=store.average_rating,
    )


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(
    request: RegisterRequest,
    session: AsyncSession = Depends(db_session),
) -> AuthResponse:
    """Register a normal user and return a token."""
    user = await create_user(
        session,
        name=request.name,
        email=request.email,
        password=request.password,
        address=request.address,
        role=UserRole.USER,
    )
    return AuthResponse(
        message="User registered successfully",
        token=create_access_token(user.id, user.role.value),
        user=to_user_out(user),
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    request: LoginRequest,
    session: AsyncSession = Depends(db_session),
) -> AuthResponse:
    user = await authenticate(session, request.email, request.password)
    return AuthResponse(
        message="Login successful",
        token=create_access_token(user.id, user.role.value),
        user=to_user_out(user, await _owned_store_id(session, user)),
    )


@router.get("/profile", response_model=ProfileResponse)
async def profile(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> ProfileResponse:
    store = await get_owned_store(session, user.id) if user.role == UserRole.STORE_OWNER else None
    return ProfileResponse(
        message="Profile retrieved successfully",
        user=to_user_out(user, store.id if store else None),
        store=_profile_store(store) if store else None,
    )


@router.patch("/password", response_model=MessageResponse)
async def update_password(
    request: PasswordUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> MessageResponse:
    await change_password(session, user, request.current_password, request.new_password)
    return MessageResponse(message="Password updated successfully")


@router.get("/verify", response_model=VerifyResponse)
async def verify(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(db_session),
) -> VerifyResponse:
    return VerifyResponse(
        message="Token is valid",
        user=to_user_out(user, await _owned_store_id(session, user)),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(
    user: User = Depends(get_current_user),
    claims: TokenClaims = Depends(get_token_claims),
) -> MessageResponse:
    """Revoke the presented token until it would have expired anyway."""
    revoked = await revoke_token(claims.jti, claims.seconds_left())
    logger.info("[auth] logout user_id=%s revoked=%s", user.id, revoked)
    return MessageResponse(message="Logout successful")
