"""init

Revision ID: 5c1e0d7a9b42
Revises:
Create Date: 2026-10-17 10:12:41.518203

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "5c1e0d7a9b42"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("guid", sa.String(512), primary_key=True),
        sa.Column("name", sa.String(512), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )

    op.create_table(
        "oauth_identities",
        sa.Column("guid", sa.String(512), primary_key=True),
        sa.Column("uid", sa.String(512), nullable=False),
        sa.Column("provider", sa.String(64), nullable=False),
        sa.Column("access_token", sa.String(1024), nullable=True),
        sa.Column("refresh_token", sa.String(1024), nullable=True),
        sa.Column("token", sa.String(1024), nullable=True),
        sa.Column("token_secret", sa.String(1024), nullable=True),
        sa.Column("profile_json", sa.JSON, nullable=True),
        sa.Column(
            "user_guid", sa.String(512), sa.ForeignKey("users.guid"), nullable=True
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    )
    # Unique per provider; the same uid may be issued by different providers.
    op.create_index(
        "idx_oauth_identities_provider_uid",
        "oauth_identities",
        ["provider", "uid"],
        unique=True,
    )
    op.create_index(
        "idx_oauth_identities_user_guid", "oauth_identities", ["user_guid"]
    )


def downgrade() -> None:
    op.drop_index("idx_oauth_identities_user_guid", "oauth_identities")
    op.drop_index("idx_oauth_identities_provider_uid", "oauth_identities")
    op.drop_table("oauth_identities")
    op.drop_table("users")
