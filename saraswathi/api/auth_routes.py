"""Account routes: register, login and profile.

# Endpoint                 Method  Description
# ─────────────────────────────────────────────────────────────────
# /api/auth/register       POST    Create an account → token
# /api/auth/login          POST    Check credentials → token
# /api/auth/profile        GET     Current user (JWT only)
# /api/auth/profile        PUT     Update name / bio / avatar (JWT only)
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException

from saraswathi.api.dependencies import (
    AuthDep,
    AuthServiceDep,
    UserProviderDep,
    require_user_id,
)
from saraswathi.api.schemas import (
    AuthResponse,
    ErrorResponse,
    LoginRequest,
    ProfileUpdateRequest,
    ProfileUpdateResponse,
    RegisterRequest,
    UserResponse,
)
from saraswathi.utils.errors import AccountExistsError, AuthenticationError
from saraswathi.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
    summary="Create an account",
)
async def register(body: RegisterRequest, auth_service: AuthServiceDep) -> AuthResponse:
    email = body.email.strip()
    name = body.name.strip()
    if not email or not body.password or not name:
        raise HTTPException(status_code=400, detail="Email, password, and name are required")

    try:
        user, token = await auth_service.register(email, body.password, name)
    except AccountExistsError as exc:
        raise HTTPException(status_code=409, detail=exc.message) from exc

    return AuthResponse(
        message="User registered successfully",
        token=token,
        user=UserResponse.from_user(user),
    )


@router.post(
    "/login",
    response_model=AuthResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Exchange credentials for a token",
)
async def login(body: LoginRequest, auth_service: AuthServiceDep) -> AuthResponse:
    email = body.email.strip()
    if not email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password are required")

    try:
        user, token = await auth_service.login(email, body.password)
    except AuthenticationError as exc:
        raise HTTPException(status_code=401, detail=exc.message) from exc

    return AuthResponse(message="Login successful", token=token, user=UserResponse.from_user(user))


@router.get(
    "/profile",
    response_model=UserResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def get_profile(auth: AuthDep, users: UserProviderDep) -> UserResponse:
    user = await users.get_user_by_id(require_user_id(auth))
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return UserResponse.from_user(user)


@router.put(
    "/profile",
    response_model=ProfileUpdateResponse,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_profile(
    body: ProfileUpdateRequest,
    auth: AuthDep,
    users: UserProviderDep,
) -> ProfileUpdateResponse:
    user_id = require_user_id(auth)
    user = await users.update_profile(user_id, body.model_dump(exclude_none=True))
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    _logger.info("profile_updated", user_id=user_id)
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=UserResponse.from_user(user),
    )
