"""Add series-keyed persistent-login token table."""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

revision = "0002_auth_token_series"
down_revision = "0001_users_and_auth_events"
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Create auth_tokens with one row per series and lookup indexes."""

    op.create_table(
        "auth_tokens",
        sa.Column("series", sa.Text(), primary_key=True, nullable=False),
        sa.Column(
            "user_id",
            sa.Uuid(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("token_hash", sa.Text(), nullable=False),
        sa.Column(
            "issued_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_auth_tokens_user_id", "auth_tokens", ["user_id"])
    op.create_index("ix_auth_tokens_expires_at", "auth_tokens", ["expires_at"])


def downgrade() -> None:
    """Drop auth_tokens and its indexes."""

    op.drop_index("ix_auth_tokens_expires_at", table_name="auth_tokens")
    op.drop_index("ix_auth_tokens_user_id", table_name="auth_tokens")
    op.drop_table("auth_tokens")
