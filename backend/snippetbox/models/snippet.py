"""
Snippetbox — Snippet SQLAlchemy Model
======================================

What:  ORM model representing the `snippets` table.
Who:   Used by SnippetService for insert/get/latest and by Alembic.

Table Design Rationale:
    - Integer primary key: ids appear in URLs (/snippet/view/{id})
    - title: VARCHAR(100), matching the form's length rule
    - created / expires: UTC timestamps; expired snippets are never shown

Index on created:
    Supports the "latest snippets" query on the home page.
"""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from snippetbox.database import Base


class Snippet(Base):
    """
    A stored text snippet.

    Lifecycle:
        1. Created by an authenticated user (POST /snippet/create)
        2. Readable by anyone until `expires`
        3. Never updated in place
    """

    __tablename__ = "snippets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    title: Mapped[str] = mapped_column(String(100), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    expires: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("idx_snippets_created", "created"),
    )

    def __repr__(self) -> str:
        return f"<Snippet(id={self.id}, title='{self.title}', expires='{self.expires}')>"
