"""
User DAO

Purpose
-------
Thin data-access layer for the `User` ORM entity. Provides:
- Creation with password hashing
- Lookup by email or by id

Design
------
- The DAO expects an active SQLAlchemy `Session` supplied by the caller.
- Business logic (validation, authorization, transactions) lives in
  `mediator.database.core.funcs`; the DAO focuses on persistence operations.
- Passwords are hashed using `EncryptionDec.hash_password(...)` before insert.

Error Handling
--------------
- Each method logs the failure and re-raises.
"""

from sqlalchemy.orm import Session
from mediator.database.entities.user import User
from mediator.crypt.encrypt_decrypt import EncryptionDec
from uuid import UUID
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class UserDao:
    """
    Data Access Object (DAO) for managing User entities.
    """

    def createUser(self, session: Session, user_data: User) -> User:
        """
        Create a new user in the database with a hashed password.

        Parameters
        ----------
        session : Session
            Active SQLAlchemy session.
        user_data : User
            User entity object holding the plaintext password.

        Returns
        -------
        User
            The staged user.
        """
        try:
            enc = EncryptionDec()
            user_data.password = enc.hash_password(text=user_data.password)
            session.add(user_data)
            return user_data
        except Exception as e:
            logger.error(f"Error in UserDao.createUser. Error Message: {e}")
            raise e

    def fetchUserByEmail(self, session: Session, email: str) -> Optional[User]:
        """
        Fetch a user by email.

        Returns
        -------
        User | None
            The matching user, if any.
        """
        try:
            return session.query(User).filter(User.email == email).one_or_none()
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserByEmail. Error Message: {e}")
            raise e

    def fetchUserById(self, session: Session, user_id: UUID) -> Optional[User]:
        """Fetch a user by primary key."""
        try:
            return session.get(User, user_id)
        except Exception as e:
            logger.error(f"Error in UserDao.fetchUserById. Error Message: {e}")
            raise e
