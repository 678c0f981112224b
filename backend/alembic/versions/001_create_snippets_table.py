"""Create snippets table

Revision ID: 001
Revises: None
Create Date: 2024-01-15 00:00:00.000000+00:00

What:  Creates the `snippets` table holding every stored snippet.
How:   Integer identity key (ids appear in URLs), UTC timestamps for
       creation and expiry.

Rollback: downgrade() drops the table entirely (destructive: all data lost).
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "snippets",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(100), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column(
            "created",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
        ),
        # Expired snippets are filtered out by every query
        sa.Column("expires", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # Supports the home page's "latest snippets" listing
    op.create_index("idx_snippets_created", "snippets", ["created"])


def downgrade() -> None:
    op.drop_index("idx_snippets_created", table_name="snippets")
    op.drop_table("snippets")
