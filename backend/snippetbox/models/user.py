"""
Snippetbox — User SQLAlchemy Model
===================================

What:  ORM model representing the `users` table.
Who:   Used by UserService (signup, login) and by Alembic.

Security:
    Only the bcrypt hash of the password is stored. The unique constraint
    `users_uc_email` is what turns a second signup with the same address into
    DuplicateEmailError.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class User(Base):
    """A registered account. Created by signup, never mutated afterwards."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # bcrypt output is 60 characters
    hashed_password: Mapped[str] = mapped_column(String(60), nullable=False)

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("email", name="users_uc_email"),
    )

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}')>"
