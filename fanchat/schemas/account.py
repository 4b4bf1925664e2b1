"""
Account management schemas
"""

from typing import Optional
from pydantic import BaseModel, validator


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str
    confirm_new_password: str

    @validator('confirm_new_password')
    def passwords_match(cls, v, values, **kwargs):
        if 'new_password' in values and v != values['new_password']:
            raise ValueError('Passwords do not match')
        return v


class DeleteAccountRequest(BaseModel):
    password: str


class AccountActionResponse(BaseModel):
    success: bool
    message: str


class AvatarResponse(BaseModel):
    success: bool
    profile_picture: Optional[str] = None
