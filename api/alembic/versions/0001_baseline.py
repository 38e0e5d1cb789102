"""baseline: participants and activities

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19
"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_baseline"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Participants - id is the identity provider's subject
    op.create_table(
        "users",
        sa.Column("id", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("eco_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("check_in_streak", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_check_in_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )

    # Activities - impact and points_earned are frozen at creation
    op.create_table(
        "activities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(255), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("impact", sa.JSON(), nullable=False),
        sa.Column("points_earned", sa.Float(), nullable=False, server_default="0"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("location", sa.String(255), nullable=True),
        sa.Column("activity_date", sa.Date(), nullable=True),
        sa.Column(
            "activity_type", sa.String(50), nullable=False, server_default="Personal"
        ),
        sa.Column("status", sa.String(50), nullable=False, server_default="Pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_activities_user_created", "activities", ["user_id", "created_at"]
    )
    op.create_index(
        "ix_activities_user_points", "activities", ["user_id", "points_earned"]
    )


def downgrade() -> None:
    op.drop_index("ix_activities_user_points", table_name="activities")
    op.drop_index("ix_activities_user_created", table_name="activities")
    op.drop_table("activities")
    op.drop_table("users")
