"""
Registration, login and email verification endpoints.

These are the only data routes that do not require a bearer token, and they
only accept POST.
"""

import os
import uuid

from fastapi import APIRouter, Request, status
from slowapi import Limiter
from slowapi.util import get_remote_address

from clinic_gateway.app.models.accounts import LoginRequest, RegisterRequest, VerifyEmailRequest
from clinic_gateway.app.security.auth import decode_email_verification_token
from clinic_gateway.app.services import user_service

router = APIRouter(prefix="/auth", tags=["auth"])


def get_auth_limiter():
    """Create rate limiter that respects test mode environment variables."""
    disable_limits = (
        os.environ.get("ENV") == "TEST" or os.environ.get("DISABLE_RATE_LIMITS") == "1"
    )

    if disable_limits:
        return Limiter(key_func=lambda: str(uuid.uuid4()), enabled=False)
    else:
        return Limiter(key_func=get_remote_address)


limiter = get_auth_limiter()


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
async def register(request: Request, body: RegisterRequest):
    """
    Register a practice and its owner.

    Email delivery is not part of this service; the verification token is
    returned so the caller can deliver it.
    """
    return user_service.register_practice(
        body.email,
        body.password,
        body.first_name,
        body.last_name,
        practice_name=body.practice_name,
    )


@router.post("/login")
@limiter.limit("20/minute")
async def login(request: Request, body: LoginRequest):
    return user_service.authenticate(body.email, body.password)


@router.post("/verify-email")
@limiter.limit("20/minute")
async def verify_email(request: Request, body: VerifyEmailRequest):
    claims = decode_email_verification_token(body.token)
    return user_service.verify_email(claims["sub"], claims.get("email"))
