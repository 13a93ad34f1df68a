"""bars and screenings

Revision ID: 20261019000100
Revises: 
Create Date: 2026-10-19 00:01:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20261019000100"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "bars",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("address", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("latitude", sa.Float(), nullable=True),
        sa.Column("longitude", sa.Float(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bars_id"), "bars", ["id"], unique=False)

    op.create_table(
        "screenings",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("bar_id", sa.Integer(), sa.ForeignKey("bars.id"), nullable=False),
        sa.Column("external_game_id", sa.String(), nullable=True),
        sa.Column("screening_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "bar_id",
            "external_game_id",
            "screening_time",
            name="uq_screenings_bar_game_time",
        ),
    )
    op.create_index(op.f("ix_screenings_id"), "screenings", ["id"], unique=False)
    op.create_index(
        op.f("ix_screenings_external_game_id"),
        "screenings",
        ["external_game_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_screenings_external_game_id"), table_name="screenings")
    op.drop_index(op.f("ix_screenings_id"), table_name="screenings")
    op.drop_table("screenings")
    op.drop_index(op.f("ix_bars_id"), table_name="bars")
    op.drop_table("bars")
