"""
Authentication dependencies for JWT bearer tokens
"""

from typing import Optional
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session
from fanchat.core.database import get_db
from fanchat.services.auth import AuthService
from fanchat.models.auth import User

# HTTP Bearer token scheme; missing credentials are reported as 401 below
security = HTTPBearer(auto_error=False)


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def user_from_token(db: Session, token: Optional[str]) -> Optional[User]:
    """Resolve an active user from an access token, or None"""
    if not token:
        return None
    user = AuthService.get_current_user(db, token)
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """
    Dependency to get current authenticated user
    Raises HTTPException if authentication fails
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise _credentials_exception()

    user = user_from_token(db, credentials.credentials)
    if user is None:
        raise _credentials_exception()
    return user


async def get_current_operator(
    current_user: User = Depends(get_current_user)
) -> User:
    """
    Dependency for operator-only endpoints
    """
    if not current_user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin only."
        )
    return current_user
