"""
Account profile database model
"""

import uuid
from sqlalchemy import Column, String, DateTime, Boolean
from fanchat.core.database import Base
from fanchat.models.clock import utcnow


ROLE_USER = "user"
ROLE_ADMIN = "admin"


class User(Base):
    """Account profile, one row per registered email"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=ROLE_USER)  # "user" or "admin"
    is_active = Column(Boolean, nullable=False, default=True)
    profile_picture = Column(String(1024), nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN
