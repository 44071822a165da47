"""Authentication endpoint for the single back-office admin account."""

import hmac
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from storefront.core.config import settings
from storefront.core.deps import require_admin
from storefront.core.security import ADMIN_ROLE, create_access_token, verify_password
from storefront.schemas.auth import CurrentAdmin, LoginRequest, TokenResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenResponse)
async def login(body: LoginRequest):
    """Authenticate via email + password, return JWT."""
    email_ok = hmac.compare_digest(body.email.lower(), settings.ADMIN_EMAIL.lower())
    password_ok = verify_password(body.password, settings.ADMIN_PASSWORD_HASH)
    if not (email_ok and password_ok):
        logger.warning("Failed admin login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    token = create_access_token(subject=body.email.lower(), role=ADMIN_ROLE)
    return TokenResponse(access_token=token, role=ADMIN_ROLE)


@router.get("/me", response_model=CurrentAdmin)
async def get_me(current_admin: CurrentAdmin = Depends(require_admin)):
    return current_admin
