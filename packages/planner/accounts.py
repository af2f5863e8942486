"""Credential-based accounts: registration and password verification."""

from __future__ import annotations

from typing import Optional

import structlog
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from . import schemas
from .errors import ConflictError, ValidationError
from .models import User
from .service import normalize_email

__all__ = ["AccountService", "MIN_PASSWORD_LENGTH", "pwd_context"]

logger = structlog.get_logger(__name__)

MIN_PASSWORD_LENGTH = 8

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class AccountService:
    def __init__(self, session: Session):
        self.session = session

    def register(self, request: schemas.RegisterRequest) -> User:
        email = normalize_email(request.email)
        password = request.password or ""
        name = (request.name or "").strip() or None

        if not email or not password:
            raise ValidationError("Email and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters"
            )

        existing = self.session.execute(
            select(User.id).where(User.email == email)
        ).scalar_one_or_none()
        if existing is not None:
            raise ConflictError("User already exists")

        user = User(email=email, name=name, password_hash=pwd_context.hash(password))
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ConflictError("User already exists") from None

        logger.info("user_registered", user_id=user.id)
        return user

    def authenticate(self, email: Optional[str], password: Optional[str]) -> Optional[User]:
        """Return the user when the password verifies, otherwise ``None``."""
        email = normalize_email(email)
        if not email or not password:
            return None
        user = self.session.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()
        if user is None or not user.password_hash:
            return None
        if not pwd_context.verify(password, user.password_hash):
            logger.info("login_rejected", user_id=user.id)
            return None
        return user
