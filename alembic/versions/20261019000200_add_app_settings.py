"""add app settings"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019000200"
down_revision = "20261019000100"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "app_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("sports_api_key_enc", sa.Text(), nullable=True),
        sa.Column("default_sport", sa.String(), nullable=False, server_default="soccer"),
        sa.Column("cache_ttl_hours", sa.Integer(), nullable=False, server_default="24"),
        sa.Column("fetch_window_days", sa.Integer(), nullable=False, server_default="7"),
        sa.Column("default_radius_km", sa.Float(), nullable=False, server_default="10"),
        sa.Column(
            "request_timeout_seconds",
            sa.Float(),
            nullable=False,
            server_default="10",
        ),
        sa.Column("cache_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("updated_at_utc", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("app_settings")
