"""
Authentication and authorization for AccessDesk.

Supports:
- Email/password credentials (bcrypt)
- JWT sessions, carried as an httponly cookie or an ``Authorization: Bearer``
  header, with a Redis revocation list for logout
- Per-request ``AccessContext`` built from the stored profile, so role changes
  take effect on the next request
- Store-view dependencies: members get a ``ScopedStore``, admins a
  ``PrivilegedStore``
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.context import AccessContext
from app.core.database import get_session
from app.core.errors import AuthenticationError, PermissionDeniedError
from app.core.redis import is_revoked, mark_revoked
from app.store import EntityStore, PrivilegedStore, ScopedStore, store_for

log = structlog.get_logger()
settings = get_settings()

SESSION_COOKIE = "ad_session"

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# JWT
# ---------------------------------------------------------------------------

def create_jwt(
    user_id: uuid.UUID,
    *,
    expires_delta: timedelta | None = None,
) -> tuple[str, str]:
    """Create a signed session token. Returns (token, jti).

    Only the subject is embedded; the role is read from the profile on every
    request.
    """
    jti = str(uuid.uuid4())
    now = datetime.now(timezone.utc)
    exp = now + (expires_delta or timedelta(minutes=settings.jwt_expire_minutes))
    payload = {
        "sub": str(user_id),
        "iat": now,
        "exp": exp,
        "jti": jti,
    }
    token = jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)
    return token, jti


def decode_jwt(token: str) -> dict:
    """Decode and verify a JWT. Raises jwt.PyJWTError on failure."""
    return jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])


# ---------------------------------------------------------------------------
# JWT Revocation (Redis)
# ---------------------------------------------------------------------------

async def revoke_jwt(jti: str, ttl_seconds: int = 3600) -> None:
    """Add a JWT ID to the revocation list."""
    await mark_revoked(jti, ttl_seconds)


async def is_jwt_revoked(jti: str) -> bool:
    """Check if a JWT ID has been revoked."""
    return await is_revoked(jti)


def extract_token(request: Request, authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[7:].strip()
    return request.cookies.get(SESSION_COOKIE)


# ---------------------------------------------------------------------------
# Context dependencies
# ---------------------------------------------------------------------------

async def get_entity_store(session: AsyncSession = Depends(get_session)) -> EntityStore:
    return EntityStore(session)


async def get_access_context(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
    store: EntityStore = Depends(get_entity_store),
) -> AccessContext:
    """Resolve the caller. No token means an anonymous context, not an error."""
    token = extract_token(request, authorization)
    if not token:
        return AccessContext.anonymous()

    try:
        payload = decode_jwt(token)
    except jwt.PyJWTError:
        raise AuthenticationError("Invalid or expired session")

    jti = payload.get("jti")
    if jti and await is_jwt_revoked(jti):
        raise AuthenticationError("Session has been revoked")

    profile = await store.profiles.get_by_id(uuid.UUID(payload["sub"]))
    if profile is None:
        raise AuthenticationError("User not found")

    context = AccessContext.for_profile(profile)
    request.state.access = context
    return context


async def require_user(
    context: AccessContext = Depends(get_access_context),
) -> AccessContext:
    """Any signed-in profile."""
    if not context.is_authenticated:
        raise AuthenticationError("Authentication required")
    return context


async def require_admin(
    context: AccessContext = Depends(require_user),
) -> AccessContext:
    """Requires the admin role."""
    if not context.is_admin:
        log.warning("auth.admin_required", user_id=str(context.user_id))
        raise PermissionDeniedError("Administrator access required")
    return context


async def get_store_view(
    context: AccessContext = Depends(get_access_context),
    store: EntityStore = Depends(get_entity_store),
) -> ScopedStore:
    """The store view matching the caller's role."""
    return store_for(context, store)


async def get_privileged_store(
    context: AccessContext = Depends(require_admin),
    store: EntityStore = Depends(get_entity_store),
) -> PrivilegedStore:
    return PrivilegedStore(store, context.user_id)
