"""
PlaceShare Backend - User Service
===================================

What:  User listing, signup and login.
How:   Passwords are hashed with auth_service.hash_password; successful
       signup/login returns a freshly issued bearer token.
Who:   Called by the user route handlers.

A new user starts with no places. Their places collection only changes
through the place service (see link_manager).
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.exceptions import (
    AuthenticationError,
    DatabaseError,
    PlaceShareError,
    ValidationError,
)
from app.models.user import User
from app.schemas.user import MIN_PASSWORD_LENGTH, AuthResponse, UserResponse
from app.services.auth_service import credential_gate, hash_password, verify_password

logger = logging.getLogger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:

    async def list_users(self, db: AsyncSession) -> List[UserResponse]:
        try:
            result = await db.execute(
                select(User).options(selectinload(User.places)).order_by(User.created_at)
            )
            users = result.scalars().all()
        except Exception as e:
            logger.error("Database error listing users: %s", str(e), exc_info=True)
            raise DatabaseError(message="Fetching users failed, please try again later.")
        return [UserResponse.from_model(user) for user in users]

    async def signup(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
        image_path: str,
    ) -> AuthResponse:
        """
        Register a new user and log them in.

        Raises:
            ValidationError: bad input, or the email is already registered
            DatabaseError: the insert failed for another reason
        """
        email = _normalize_email(email)
        if not name.strip() or "@" not in email or len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(message="Invalid inputs passed, please check your data.")

        try:
            existing = await db.execute(select(User.id).where(User.email == email))
            if existing.scalar_one_or_none() is not None:
                raise ValidationError(
                    message="User exists already, please login instead.",
                    field="email",
                )

            user = User(
                name=name.strip(),
                email=email,
                password_hash=hash_password(password),
                image_path=image_path,
            )
            db.add(user)
            await db.flush()
            await db.commit()

        except PlaceShareError:
            raise
        except IntegrityError:
            # Lost a race against a concurrent signup with the same email
            await db.rollback()
            raise ValidationError(
                message="User exists already, please login instead.",
                field="email",
            )
        except Exception as e:
            logger.error("Signing up failed: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Signing up failed, please try again later.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User %s signed up", user.id)
        token = credential_gate.issue_token(user.id, user.email)
        return AuthResponse(user_id=user.id, email=user.email, token=token)

    async def login(self, db: AsyncSession, email: str, password: str) -> AuthResponse:
        """
        Check credentials and issue a token.

        Unknown email and wrong password produce the same 403 response.
        """
        try:
            result = await db.execute(select(User).where(User.email == _normalize_email(email)))
            user = result.scalar_one_or_none()
        except Exception as e:
            logger.error("Database error during login: %s", str(e), exc_info=True)
            raise DatabaseError(message="Logging in failed, please try again later.")

        if user is None or not verify_password(password, user.password_hash):
            raise AuthenticationError(
                status_code=AuthenticationError.FORBIDDEN,
                message="Invalid credentials, could not log you in.",
                context={"reason": "invalid credentials"},
            )

        token = credential_gate.issue_token(user.id, user.email)
        return AuthResponse(user_id=user.id, email=user.email, token=token)


user_service = UserService()
