"""
JWT-based authentication and authorization for the practice gateway.

This module implements identity binding and role-based access control.
All tenant context is derived from authenticated identity, never from client input.

Security Principles:
1. All tenant-scoped requests must be authenticated with a valid JWT
2. Tenant ID is extracted from JWT claims, never from headers/body/query
3. Role-based access controls which operations can be performed
4. JWT signature and expiration are enforced
5. Requests for a suspended tenant are refused

Roles:
- owner: Practice owner, always allowed everywhere in their tenant
- admin: Manages users, roles, permissions and settings
- practitioner: Works with clients, sessions and notes
- <custom>: Tenant-defined roles; gated by page permissions
- platform_admin: Operates the tenant registry across practices
"""

import base64
import logging
import os
import secrets
from datetime import datetime, timezone
from typing import Optional

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

logger = logging.getLogger(__name__)

# JWT Configuration
JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")

PLATFORM_ADMIN_ROLE = "platform_admin"
MANAGER_ROLES = ("owner", "admin")

EMAIL_VERIFICATION_PURPOSE = "email_verification"

PBKDF2_ITERATIONS = 240_000

# auto_error=False so a missing header is a 401 rather than FastAPI's 403
security = HTTPBearer(auto_error=False)


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


class Identity(BaseModel):
    """
    Authenticated identity extracted from JWT.

    This is the source of truth for tenant context and user identity.
    """

    sub: str  # User ID (subject)
    tenant_id: str  # Tenant ID (from JWT claim)
    role: str  # Tenant role (owner, admin, practitioner, custom)
    email: Optional[str] = None
    exp: Optional[int] = None  # Expiration timestamp

    def has_role(self, required_role: str) -> bool:
        """Check if identity has the required role (owner satisfies any)."""
        return self.role == required_role or self.role == "owner"

    def has_any_role(self, *roles: str) -> bool:
        return any(self.has_role(role) for role in roles)

    @property
    def is_platform_admin(self) -> bool:
        return self.role == PLATFORM_ADMIN_ROLE


def decode_jwt(token: str) -> dict:
    """
    Decode and validate JWT token.

    Raises:
        HTTPException: 401 if the token is invalid, expired, or malformed.
            The underlying error is logged, not returned.
    """
    try:
        return jwt.decode(
            token,
            JWT_SECRET_KEY,
            algorithms=[JWT_ALGORITHM],
            options={
                "verify_signature": True,
                "verify_exp": True,
                "require_exp": True,
                "require_sub": True,
            },
        )
    except JWTError as e:
        logger.info("Token rejected: %s", type(e).__name__)
        raise _unauthorized("invalid_token", "Token validation failed")


async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Identity:
    """
    Extract and validate identity from the bearer token.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or lacks claims
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("missing_token", "Authentication required")

    payload = decode_jwt(credentials.credentials)

    if payload.get("purpose"):
        # Single-purpose tokens (e.g. email verification) are not sessions
        raise _unauthorized("invalid_token", "Token validation failed")

    for claim in ("sub", "tenant_id", "role"):
        if not payload.get(claim):
            raise _unauthorized("missing_claim", f"Token missing '{claim}' claim")

    return Identity(
        sub=payload["sub"],
        tenant_id=payload["tenant_id"],
        role=payload["role"],
        email=payload.get("email"),
        exp=payload.get("exp"),
    )


async def get_tenant_identity(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    """
    Identity for tenant-scoped routes: refuses suspended tenants.

    A tenant that is not in the registry is treated as active.
    """
    from clinic_gateway.app.db.migrate import get_connection
    from clinic_gateway.app.db.tenant_operations import get_tenant

    conn = get_connection()
    try:
        tenant = get_tenant(conn, identity.tenant_id)
    finally:
        conn.close()

    if tenant and tenant["status"] == "suspended":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "tenant_suspended",
                "message": "This practice has been suspended",
            },
        )
    return identity


def require_role(required_role: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.post("/roles")
        async def add_role(identity: Identity = Depends(require_role("admin"))):
            ...
    """
    return require_any_role(required_role)


def require_any_role(*roles: str):
    """Dependency factory accepting any of ``roles`` (owner always passes)."""

    async def role_checker(
        identity: Identity = Depends(get_tenant_identity),
    ) -> Identity:
        if not identity.has_any_role(*roles):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "insufficient_permissions",
                    "message": f"One of roles {list(roles)} required. You have: '{identity.role}'",
                },
            )
        return identity

    return role_checker


def require_page(page_path: str):
    """
    Dependency factory gating a route on the practice's page permissions.

    Default-deny: without a permission row for the page only owner passes.
    """

    async def page_checker(
        identity: Identity = Depends(get_tenant_identity),
    ) -> Identity:
        from clinic_gateway.app.services.role_service import (
            is_page_allowed,
            list_page_permissions,
        )

        if identity.role != "owner":
            permissions = list_page_permissions(identity.tenant_id)
            if not is_page_allowed(permissions, page_path, identity.role):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail={
                        "error": "insufficient_permissions",
                        "message": f"Role '{identity.role}' may not access {page_path}",
                    },
                )
        return identity

    return page_checker


async def require_platform_admin(
    identity: Identity = Depends(get_current_identity),
) -> Identity:
    if not identity.is_platform_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "insufficient_permissions",
                "message": "Platform administrator role required",
            },
        )
    return identity


def create_jwt_token(
    sub: str,
    tenant_id: str,
    role: str,
    expires_in_seconds: Optional[int] = None,
    email: Optional[str] = None,
) -> str:
    """
    Create a signed session token.

    Args:
        sub: User ID
        tenant_id: Tenant ID
        role: Tenant role
        expires_in_seconds: Lifetime (default ACCESS_TOKEN_TTL_SECONDS or 1 hour)
        email: Optional email claim
    """
    if expires_in_seconds is None:
        expires_in_seconds = int(os.getenv("ACCESS_TOKEN_TTL_SECONDS", "3600"))

    now = int(datetime.now(timezone.utc).timestamp())
    payload = {
        "sub": sub,
        "tenant_id": tenant_id,
        "role": role,
        "exp": now + expires_in_seconds,
        "iat": now,
    }
    if email:
        payload["email"] = email

    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_email_verification_token(user_id: str, email: str, expires_in_seconds: int = 86400) -> str:
    """Token mailed to a new user to confirm their address."""
    now = int(datetime.now(timezone.utc).timestamp())
    payload = {
        "sub": user_id,
        "email": email,
        "purpose": EMAIL_VERIFICATION_PURPOSE,
        "exp": now + expires_in_seconds,
        "iat": now,
    }
    return jwt.encode(payload, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_email_verification_token(token: str) -> dict:
    """
    Validate an email verification token.

    Raises:
        HTTPException: 401 if invalid, expired, or not a verification token
    """
    payload = decode_jwt(token)
    if payload.get("purpose") != EMAIL_VERIFICATION_PURPOSE:
        raise _unauthorized("invalid_token", "Token validation failed")
    return payload


def _kdf(salt: bytes, iterations: int) -> PBKDF2HMAC:
    return PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=iterations)


def hash_password(password: str) -> str:
    """PBKDF2-SHA256 hash encoded as ``pbkdf2_sha256$iterations$salt$hash``."""
    salt = secrets.token_bytes(16)
    digest = _kdf(salt, PBKDF2_ITERATIONS).derive(password.encode("utf-8"))
    return "pbkdf2_sha256${}${}${}".format(
        PBKDF2_ITERATIONS,
        base64.b64encode(salt).decode("ascii"),
        base64.b64encode(digest).decode("ascii"),
    )


def verify_password(password: str, encoded: Optional[str]) -> bool:
    if not encoded:
        return False
    try:
        algorithm, iterations, salt_b64, digest_b64 = encoded.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    kdf = _kdf(base64.b64decode(salt_b64), int(iterations))
    try:
        kdf.verify(password.encode("utf-8"), base64.b64decode(digest_b64))
    except InvalidKey:
        return False
    return True
