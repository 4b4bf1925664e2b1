"""
Authentication API routes
"""

import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from fanchat.core.database import get_db
from fanchat.schemas.auth import (
    UserRegistrationRequest,
    UserLoginRequest,
    RefreshTokenRequest,
    AuthResponse,
    UserResponse,
    TokenResponse
)
from fanchat.services.auth import AuthService
from fanchat.middleware.auth import get_current_user
from fanchat.models.auth import User

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=AuthResponse)
def register_user(
    user_data: UserRegistrationRequest,
    db: Session = Depends(get_db)
):
    """
    Register a new end-user account with email and password
    """
    try:
        result = AuthService.register_user(
            db=db,
            email=user_data.email,
            password=user_data.password
        )
    except Exception as e:
        logger.error(f"Registration failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )

    if result["success"]:
        logger.info(f"User registered: user_id={result['user_id']}")
        return AuthResponse(
            success=True,
            user_id=result["user_id"],
            email=result["email"],
            role=result["role"]
        )
    return AuthResponse(
        success=False,
        error=result["error"],
        errors=result.get("errors")
    )


@router.post("/login", response_model=AuthResponse)
def login_user(
    user_data: UserLoginRequest,
    db: Session = Depends(get_db)
):
    """
    Login user with email and password
    """
    try:
        result = AuthService.login_user(
            db=db,
            email=user_data.email,
            password=user_data.password
        )
    except Exception as e:
        logger.error(f"Login failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Login failed"
        )

    if result["success"]:
        return AuthResponse(
            success=True,
            access_token=result["access_token"],
            refresh_token=result["refresh_token"],
            user_id=result["user_id"],
            email=result["email"],
            role=result["role"]
        )
    return AuthResponse(
        success=False,
        error=result["error"]
    )


@router.post("/logout", response_model=AuthResponse)
def logout_user(
    current_user: User = Depends(get_current_user)
):
    """
    Logout user (token invalidation handled client-side)
    """
    return AuthResponse(
        success=True,
        message="Logged out successfully"
    )


@router.get("/me", response_model=UserResponse)
def get_current_user_info(
    current_user: User = Depends(get_current_user)
):
    """
    Get the caller's account profile
    """
    return UserResponse.model_validate(current_user)


@router.post("/refresh", response_model=TokenResponse)
def refresh_token(
    payload: RefreshTokenRequest,
    db: Session = Depends(get_db)
):
    """
    Refresh access token using refresh token
    """
    result = AuthService.refresh_access_token(db, payload.refresh_token)
    if result["success"]:
        return TokenResponse(success=True, access_token=result["access_token"])
    return TokenResponse(success=False, error=result["error"])
