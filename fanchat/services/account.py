"""
Account management: password change, avatar replacement, account deletion
"""

import logging

from sqlalchemy.orm import Session

from fanchat.core.config import settings
from fanchat.deps.exceptions import (
    AvatarTooLargeError,
    AvatarValidationError,
    PasswordPolicyError,
    ReauthenticationRequiredError,
)
from fanchat.models.auth import User
from fanchat.services.auth import PasswordService
from fanchat.services.storage import ObjectStore, profile_picture_key

logger = logging.getLogger(__name__)


class AccountService:
    """Sensitive account operations; each one reauthenticates first"""

    def __init__(self, db: Session, store: ObjectStore):
        self.db = db
        self.store = store

    def reauthenticate(self, user: User, password: str) -> None:
        if not password or not PasswordService.verify_password(password, user.password_hash):
            raise ReauthenticationRequiredError()

    def change_password(self, user: User, current_password: str, new_password: str) -> None:
        self.reauthenticate(user, current_password)

        validation = PasswordService.validate_password_strength(new_password)
        if not validation["valid"]:
            raise PasswordPolicyError(validation["errors"])

        user.password_hash = PasswordService.hash_password(new_password)
        self.db.commit()
        logger.info(f"Password updated for user {user.id}")

    @staticmethod
    def validate_avatar(content_type: str, size: int) -> None:
        """Reject oversized or non-image uploads before touching storage"""
        max_bytes = settings.max_avatar_mb * 1024 * 1024
        if size > max_bytes:
            raise AvatarTooLargeError(f"Profile picture must be less than {settings.max_avatar_mb}MB")
        if not content_type or not content_type.startswith("image/"):
            raise AvatarValidationError()

    def _remove_current_avatar(self, user: User) -> None:
        """Best-effort delete of the stored picture the profile points at"""
        if not user.profile_picture:
            return
        try:
            old_key = self.store.key_for_url(user.profile_picture)
            if old_key:
                self.store.delete(old_key)
        except Exception as e:
            logger.info(f"Old profile picture for user {user.id} not removed: {str(e)}")

    def replace_avatar(self, user: User, content_type: str, data: bytes) -> str:
        """
        Store a new profile picture and point the profile at it

        Failing to delete the previous picture is not fatal.
        """
        self.validate_avatar(content_type, len(data))

        self._remove_current_avatar(user)

        url = self.store.put(profile_picture_key(user.id, content_type), data, content_type)
        user.profile_picture = url
        self.db.commit()
        self.db.refresh(user)
        logger.info(f"Profile picture updated for user {user.id}")
        return url

    def delete_account(self, user: User, password: str) -> None:
        """Remove the profile and avatar; chats are kept"""
        self.reauthenticate(user, password)

        self._remove_current_avatar(user)

        user_id = user.id
        self.db.delete(user)
        self.db.commit()
        logger.info(f"Account deleted: user_id={user_id}")
