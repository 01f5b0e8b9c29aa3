"""
User ORM Model
==============

The ``User`` ORM model represents a registered user (profile). It maps to the
``app_user`` table and contains the credentials and the display name used when
a participant signs an agreement.

Key features
~~~~~~~~~~~~
- UUID primary key (``id``)
- Unique email address and bcrypt-hashed password
- Optional full name; the display name falls back to the email
"""

from mediator.database.config.connection_engine import declarativeBase
from sqlalchemy import VARCHAR, TEXT, DateTime, Uuid
from sqlalchemy.orm import Mapped, mapped_column
from uuid import UUID
import uuid
from datetime import datetime, timezone
from typing import Optional


class User(declarativeBase):
    """
    ORM model for the `app_user` table.

    Attributes
    ----------
    id : UUID
        Primary key. Unique identifier for the user.
    email : str
        Email address of the user (unique, used to log in).
    full_name : str | None
        Name the user types to confirm a signature.
    password : str
        Hashed password of the user.
    created_on : datetime
        Registration timestamp (UTC).
    """

    __tablename__ = "app_user"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True)
    """Primary key. UUID of the user."""

    email: Mapped[str] = mapped_column(VARCHAR(255), nullable=False, unique=True)
    """Email address of the user (max length 255)."""

    full_name: Mapped[Optional[str]] = mapped_column(VARCHAR(255), nullable=True)
    """Full name of the user, if provided at registration."""

    password: Mapped[str] = mapped_column(TEXT, nullable=False)
    """Hashed password of the user."""

    created_on: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    """Registration timestamp."""

    def __init__(self, email: str, password: str, full_name: Optional[str], created_on):
        """
        Initialize a new User object.

        Parameters
        ----------
        email : str
            Email address of the user.
        password : str
            Plaintext password; hashed by `UserDao.createUser`.
        full_name : str | None
            Full name of the user.
        created_on : datetime | str
            Registration timestamp. Accepts datetime or ISO8601 string.
        """
        self.id = uuid.uuid4()
        self.email = email
        self.password = password
        self.full_name = full_name
        if isinstance(created_on, str):
            self.created_on = datetime.fromisoformat(created_on)
        else:
            self.created_on = created_on

    @property
    def display_name(self) -> str:
        """Full name when present, otherwise the email address."""
        return self.full_name or self.email

    def __str__(self) -> str:
        return f"User: id:{self.id}, email: {self.email}, full_name: {self.full_name}"
