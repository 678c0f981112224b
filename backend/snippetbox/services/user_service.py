"""
Snippetbox — User Service
==========================

What:  Account creation and credential verification.
Who:   Called by the signup and login handlers.

Login Flow:
    authenticate(email, password)
      → SELECT id, hashed_password WHERE email = :email
      → bcrypt verify (thread pool)
      → user id, or InvalidCredentialsError for BOTH unknown email and wrong
        password (the caller cannot tell which, and neither can an attacker)
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    InvalidCredentialsError,
)
from snippetbox.models.user import User
from snippetbox.services.passwords import PasswordHasher

logger = logging.getLogger(__name__)


class UserService:
    """Business logic for user accounts. Stateless apart from the hasher."""

    def __init__(self, hasher: PasswordHasher):
        self.hasher = hasher

    async def insert(self, db: AsyncSession, name: str, email: str, password: str) -> int:
        """
        Create an account and return its id.

        Raises:
            DuplicateEmailError: The email is already registered
            DatabaseError:       Any other database failure
        """
        hashed = await self.hasher.hash(password)
        user = User(name=name, email=email, hashed_password=hashed)
        try:
            db.add(user)
            await db.flush()
        except IntegrityError as e:
            # The failed flush leaves the transaction unusable; rolling back
            # lets get_db_session commit cleanly after the form is re-rendered.
            await db.rollback()
            if "email" in str(e.orig).lower():
                raise DuplicateEmailError(email) from e
            logger.error("Integrity error inserting user: %s", str(e))
            raise DatabaseError(message="Could not create the account") from e
        except SQLAlchemyError as e:
            logger.error("Database error inserting user: %s", str(e))
            raise DatabaseError(message="Could not create the account") from e

        logger.info("User %d signed up", user.id)
        return user.id

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> int:
        """
        Verify credentials and return the user's id.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password
            DatabaseError:           Query execution failed
        """
        try:
            result = await db.execute(
                select(User.id, User.hashed_password).where(User.email == email)
            )
            row = result.one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error authenticating user: %s", str(e))
            raise DatabaseError(message="Could not verify credentials") from e

        if row is None:
            raise InvalidCredentialsError()

        user_id, hashed = row
        if not await self.hasher.verify(password, hashed):
            raise InvalidCredentialsError()
        return user_id
