"""
Authentication endpoints.

- Email/password registration and login
- JWT session issue, logout (revocation) and "who am I"
"""

from __future__ import annotations

import jwt
import structlog
from fastapi import APIRouter, Depends, Request, Response
from pydantic import BaseModel

from app.core.auth import (
    SESSION_COOKIE,
    authorization_header,
    create_jwt,
    decode_jwt,
    extract_token,
    get_entity_store,
    require_user,
    revoke_jwt,
)
from app.core.config import get_settings
from app.core.context import AccessContext
from app.core.errors import AuthenticationError, NotFoundError
from app.services import users as user_service
from app.store import EntityStore
from accessdesk_shared.schemas.profiles import LoginRequest, ProfileRead, RegisterRequest

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

# Cookie config
COOKIE_KWARGS = {
    "httponly": True,
    "secure": not settings.debug,  # allow non-HTTPS in dev
    "samesite": "lax",
    "path": "/",
    "max_age": settings.jwt_expire_minutes * 60,
}


class AuthResponse(BaseModel):
    user_id: str
    email: str
    access_token: str
    message: str


def _issue_session(response: Response, profile) -> str:
    token, _jti = create_jwt(profile.id)
    response.set_cookie(key=SESSION_COOKIE, value=token, **COOKIE_KWARGS)
    return token


@router.post("/register", response_model=AuthResponse, status_code=201)
async def register(
    body: RegisterRequest,
    response: Response,
    store: EntityStore = Depends(get_entity_store),
):
    """Register a member profile with email/password and start a session."""
    profile = await user_service.register_profile(store, body)
    token = _issue_session(response, profile)
    return AuthResponse(
        user_id=str(profile.id),
        email=profile.email,
        access_token=token,
        message="Registration successful",
    )


@router.post("/login", response_model=AuthResponse)
async def login(
    body: LoginRequest,
    response: Response,
    store: EntityStore = Depends(get_entity_store),
):
    """Authenticate with email/password and receive a JWT session."""
    try:
        profile = await user_service.authenticate(store, body.email, body.password)
    except AuthenticationError:
        log.warning("auth.login_failure", email=body.email)
        raise
    token = _issue_session(response, profile)
    log.info("auth.login_success", user_id=str(profile.id))
    return AuthResponse(
        user_id=str(profile.id),
        email=profile.email,
        access_token=token,
        message="Login successful",
    )


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    authorization: str | None = Depends(authorization_header),
):
    """Invalidate the current session."""
    token = extract_token(request, authorization)
    if token:
        try:
            jti = decode_jwt(token).get("jti")
        except jwt.PyJWTError:
            jti = None  # already invalid, just clear the cookie
        if jti:
            await revoke_jwt(jti, ttl_seconds=settings.jwt_expire_minutes * 60)

    response.delete_cookie(SESSION_COOKIE, path="/")
    return {"message": "Logged out"}


@router.get("/me", response_model=ProfileRead)
async def me(
    context: AccessContext = Depends(require_user),
    store: EntityStore = Depends(get_entity_store),
):
    """The signed-in profile, including its current role."""
    profile = await user_service.get_profile(store, context.user_id)
    if profile is None:
        raise NotFoundError("User not found")
    return ProfileRead.model_validate(profile, from_attributes=True)
