"""Dependency injection: admin authentication for back-office routes."""

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError

from storefront.core.security import ADMIN_ROLE, decode_access_token
from storefront.schemas.auth import CurrentAdmin

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")


async def require_admin(token: str = Depends(oauth2_scheme)) -> CurrentAdmin:
    """Decode JWT and return CurrentAdmin. Raises 401 on invalid/expired token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_access_token(token)
        email = payload.get("sub")
        if email is None:
            raise credentials_exception
        role = payload["role"]
    except (JWTError, KeyError):
        raise credentials_exception

    if role != ADMIN_ROLE:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Role '{role}' not allowed. Required: {ADMIN_ROLE}",
        )
    return CurrentAdmin(email=email, role=role)
