"""
Account management API routes
"""

import logging
from fastapi import APIRouter, Depends, File, UploadFile
from fanchat.api.dependencies import get_account_service
from fanchat.middleware.auth import get_current_user
from fanchat.models.auth import User
from fanchat.schemas.account import (
    AccountActionResponse,
    AvatarResponse,
    ChangePasswordRequest,
    DeleteAccountRequest,
)
from fanchat.services.account import AccountService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/password", response_model=AccountActionResponse)
def change_password(
    payload: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service)
):
    """
    Change the caller's password; requires the current password
    """
    account_service.change_password(current_user, payload.current_password, payload.new_password)
    return AccountActionResponse(success=True, message="Password updated successfully")


@router.post("/delete", response_model=AccountActionResponse)
def delete_account(
    payload: DeleteAccountRequest,
    current_user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service)
):
    """
    Delete the caller's account profile and profile picture
    """
    account_service.delete_account(current_user, payload.password)
    return AccountActionResponse(success=True, message="Account deleted")


@router.post("/avatar", response_model=AvatarResponse)
def upload_avatar(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    account_service: AccountService = Depends(get_account_service)
):
    """
    Replace the caller's profile picture

    - **file**: image file, at most 5MB by default
    """
    # Size from the spooled upload, checked before the body is read into memory
    file.file.seek(0, 2)
    size = file.file.tell()
    file.file.seek(0)
    account_service.validate_avatar(file.content_type, size)

    url = account_service.replace_avatar(current_user, file.content_type, file.file.read())
    return AvatarResponse(success=True, profile_picture=url)
