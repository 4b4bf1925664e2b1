"""
Authentication services for password hashing and validation
"""

import re
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from passlib.context import CryptContext
from jose import JWTError, jwt
from sqlalchemy.orm import Session
from fanchat.core.config import settings
from fanchat.models.auth import User, ROLE_ADMIN, ROLE_USER


# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class PasswordService:
    """Service for password hashing and validation"""

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using bcrypt"""
        return pwd_context.hash(password)

    @staticmethod
    def verify_password(plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash"""
        return pwd_context.verify(plain_password, hashed_password)

    @staticmethod
    def validate_password_strength(password: str) -> Dict[str, Any]:
        """
        Validate password rules: minimum length, a number and a symbol
        Returns dict with 'valid' boolean and 'errors' list
        """
        errors = []

        if len(password) < settings.password_min_length:
            errors.append(f"Password must be at least {settings.password_min_length} characters")

        if not re.search(r'[^a-zA-Z0-9]', password):
            errors.append("Password must contain at least one symbol")

        if not re.search(r'[0-9]', password):
            errors.append("Password must contain at least one number")

        return {
            "valid": len(errors) == 0,
            "errors": errors
        }


class JWTService:
    """Signed access and refresh tokens; the ``type`` claim keeps them apart"""

    @staticmethod
    def _encode(data: Dict[str, Any], lifetime: timedelta, token_type: str) -> str:
        claims = dict(data, exp=datetime.now(timezone.utc) + lifetime, type=token_type)
        return jwt.encode(claims, settings.secret_key, algorithm=settings.algorithm)

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        lifetime = expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
        return JWTService._encode(data, lifetime, "access")

    @staticmethod
    def create_refresh_token(data: Dict[str, Any]) -> str:
        return JWTService._encode(data, timedelta(days=settings.refresh_token_expire_days), "refresh")

    @staticmethod
    def verify_token(token: str, token_type: str = "access") -> Optional[Dict[str, Any]]:
        """Decoded claims, or None for a bad signature, expiry or the wrong token type"""
        try:
            payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        except JWTError:
            return None
        return payload if payload.get("type") == token_type else None


def normalize_email(email: str) -> str:
    """Accounts are keyed by email case-insensitively"""
    return email.strip().lower()


def _token_claims(user: User) -> Dict[str, Any]:
    return {"user_id": user.id, "email": user.email, "role": user.role}


class AuthService:
    """Main authentication service"""

    @staticmethod
    def create_user(db: Session, email: str, password: str, role: str = ROLE_USER) -> User:
        """Create a new account profile with hashed password"""
        user = User(
            email=normalize_email(email),
            password_hash=PasswordService.hash_password(password),
            role=role
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == normalize_email(email)).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> Optional[User]:
        """Authenticate user with email and password"""
        user = AuthService.get_user_by_email(db, email)
        if not user:
            return None
        if not PasswordService.verify_password(password, user.password_hash):
            return None
        return user

    @staticmethod
    def register_user(db: Session, email: str, password: str) -> Dict[str, Any]:
        """Register a new end-user account"""
        existing_user = AuthService.get_user_by_email(db, email)
        if existing_user:
            return {"success": False, "error": "User with this email already exists"}

        password_validation = PasswordService.validate_password_strength(password)
        if not password_validation["valid"]:
            return {"success": False, "error": "Password validation failed", "errors": password_validation["errors"]}

        user = AuthService.create_user(db, email, password)

        return {
            "success": True,
            "user_id": user.id,
            "email": user.email,
            "role": user.role
        }

    @staticmethod
    def login_user(db: Session, email: str, password: str) -> Dict[str, Any]:
        """Login user and return tokens"""
        user = AuthService.authenticate_user(db, email, password)
        if not user:
            return {"success": False, "error": "Invalid email or password"}

        if not user.is_active:
            return {"success": False, "error": "User account is disabled"}

        return {
            "success": True,
            "access_token": JWTService.create_access_token(_token_claims(user)),
            "refresh_token": JWTService.create_refresh_token(_token_claims(user)),
            "user_id": user.id,
            "email": user.email,
            "role": user.role
        }

    @staticmethod
    def refresh_access_token(db: Session, refresh_token: str) -> Dict[str, Any]:
        """Issue a new access token from a refresh token"""
        payload = JWTService.verify_token(refresh_token, "refresh")
        if not payload:
            return {"success": False, "error": "Invalid refresh token"}

        user = AuthService.get_user_by_id(db, payload.get("user_id"))
        if not user or not user.is_active:
            return {"success": False, "error": "User not found or inactive"}

        return {
            "success": True,
            "access_token": JWTService.create_access_token(_token_claims(user))
        }

    @staticmethod
    def get_current_user(db: Session, token: str) -> Optional[User]:
        """Get current user from JWT token"""
        payload = JWTService.verify_token(token, "access")
        if not payload:
            return None

        user_id = payload.get("user_id")
        if not user_id:
            return None

        return AuthService.get_user_by_id(db, user_id)

    @staticmethod
    def promote_to_operator(db: Session, email: str) -> Optional[User]:
        """Grant the operator role to an existing account"""
        user = AuthService.get_user_by_email(db, email)
        if not user:
            return None
        user.role = ROLE_ADMIN
        db.commit()
        db.refresh(user)
        return user
