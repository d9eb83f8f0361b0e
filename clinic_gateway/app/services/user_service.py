"""
User identity and tenant-assignment service.

A user identity is global (one row per email); the user's role is held per
tenant in tenant_users. Adding a user to a practice reuses an existing
identity when the email is already known, then upserts the association, so
repeating the call only updates the role.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from clinic_gateway.app.db import role_operations, tenant_operations
from clinic_gateway.app.db.migrate import get_connection
from clinic_gateway.app.errors import AuthError, ConflictError, NotFoundError, ValidationError
from clinic_gateway.app.security.auth import (
    create_email_verification_token,
    create_jwt_token,
    hash_password,
    verify_password,
)
from clinic_gateway.app.services import role_service

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def _require(value: Optional[str], label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"{label} is required")
    return cleaned


def _validate_email(email: Optional[str]) -> str:
    email = _require(email, "Email")
    if "@" not in email:
        raise ValidationError("Email address is not valid")
    return email.lower()


def add_user(
    email: str,
    first_name: str,
    last_name: str,
    role: str,
    tenant_id: str,
    created_by: Optional[str],
) -> Dict[str, Any]:
    """
    Assign a user to a tenant with a role, registering the identity if needed.

    Raises:
        ValidationError: missing name/email/role or malformed email, raised
            before the database is touched; or a role the practice cannot
            assign (owner, platform roles, names with no role definition)
    """
    email = _validate_email(email)
    first_name = _require(first_name, "First name")
    last_name = _require(last_name, "Last name")
    role = _require(role, "Role")

    conn = get_connection()
    try:
        custom_roles = role_operations.list_roles(conn, tenant_id)
        if role not in role_service.get_user_dropdown_roles(custom_roles):
            raise ValidationError(f"Role '{role}' cannot be assigned in this practice")

        user = tenant_operations.get_user_by_email(conn, email)
        if user:
            user_id = user["user_id"]
        else:
            user_id = tenant_operations.create_user(conn, email, first_name, last_name)
            logger.info("Registered user %s", user_id)

        tenant_operations.upsert_tenant_user(conn, user_id, tenant_id, role, created_by)
        assigned = tenant_operations.get_tenant_user(conn, user_id, tenant_id)
    finally:
        conn.close()

    logger.info("User %s assigned role %s in tenant %s", user_id, role, tenant_id)
    return assigned


def list_tenant_users(tenant_id: str) -> List[Dict[str, Any]]:
    conn = get_connection()
    try:
        return tenant_operations.get_tenant_users(conn, tenant_id)
    finally:
        conn.close()


def get_user_profile(user_id: str, tenant_id: str) -> Dict[str, Any]:
    """The caller's profile and role in their tenant."""
    conn = get_connection()
    try:
        profile = tenant_operations.get_tenant_user(conn, user_id, tenant_id)
        if profile is None:
            user = tenant_operations.get_user(conn, user_id)
            if user is None:
                raise NotFoundError("User not found")
            profile = {
                "user_id": user["user_id"],
                "email": user["email"],
                "first_name": user["first_name"],
                "last_name": user["last_name"],
                "email_verified": user["email_verified"],
                "role": None,
                "tenant_id": tenant_id,
                "created_at_utc": user["created_at_utc"],
            }
    finally:
        conn.close()
    return profile


def register_practice(
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    practice_name: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Sign up a new practice owner.

    Creates the tenant, the owner's identity with a password, the owner
    association and the default page permissions. Returns the new ids, a
    session token and the email verification token.
    """
    email = _validate_email(email)
    first_name = _require(first_name, "First name")
    last_name = _require(last_name, "Last name")
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    practice_name = (practice_name or "").strip() or f"{first_name} {last_name} Practice"

    password_hash = hash_password(password)

    conn = get_connection()
    try:
        if tenant_operations.get_user_by_email(conn, email):
            raise ConflictError("An account with this email already exists")

        # One transaction: seed_page_permissions commits the whole sign-up
        tenant_id = tenant_operations.create_tenant(conn, practice_name, commit=False)
        try:
            user_id = tenant_operations.create_user(
                conn, email, first_name, last_name, password_hash=password_hash, commit=False
            )
        except sqlite3.IntegrityError:
            conn.rollback()
            raise ConflictError("An account with this email already exists")
        tenant_operations.upsert_tenant_user(
            conn, user_id, tenant_id, "owner", user_id, commit=False
        )
        role_service.seed_page_permissions(conn, tenant_id, user_id)
    finally:
        conn.close()

    logger.info("Registered practice %s with owner %s", tenant_id, user_id)
    return {
        "user": {"id": user_id, "email": email},
        "tenant_id": tenant_id,
        "access_token": create_jwt_token(user_id, tenant_id, "owner", email=email),
        "verification_token": create_email_verification_token(user_id, email),
    }


def authenticate(email: str, password: str) -> Dict[str, Any]:
    """
    Check credentials and issue a session token for the user's first tenant.

    Raises:
        AuthError: unknown email, wrong password, or no tenant association.
            The message never says which.
    """
    email = _validate_email(email)
    if not password:
        raise ValidationError("Password is required")

    conn = get_connection()
    try:
        user = tenant_operations.get_user_by_email(conn, email)
        memberships = tenant_operations.get_memberships(conn, user["user_id"]) if user else []
    finally:
        conn.close()

    if not user or not verify_password(password, user.get("password_hash")) or not memberships:
        raise AuthError("Invalid email or password")

    membership = memberships[0]
    token = create_jwt_token(
        user["user_id"], membership["tenant_id"], membership["role"], email=user["email"]
    )
    return {
        "user": {"id": user["user_id"], "email": user["email"]},
        "tenant_id": membership["tenant_id"],
        "role": membership["role"],
        "access_token": token,
        "token_type": "bearer",
    }


def verify_email(user_id: str, email: str) -> Dict[str, Any]:
    """Mark a user's email as verified (claims come from a checked token)."""
    conn = get_connection()
    try:
        user = tenant_operations.get_user(conn, user_id)
        if not user or user["email"] != (email or "").lower():
            raise NotFoundError("User not found")
        tenant_operations.mark_email_verified(conn, user_id)
    finally:
        conn.close()

    logger.info("Email verified for user %s", user_id)
    return {"user_id": user_id, "email_verified": True}
