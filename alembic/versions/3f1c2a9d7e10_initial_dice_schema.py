"""initial_dice_schema

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-19 10:12:41.508213

"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3f1c2a9d7e10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ts = sa.text("(CURRENT_TIMESTAMP)")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=_ts, nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=_ts, nullable=False),
    ]


def upgrade() -> None:
    """Create users, campaigns, campaign_members and dice_rolls."""
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )
    op.create_table(
        "campaigns",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_table(
        "campaign_members",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column(
            "role",
            sa.Enum("game_master", "player", name="memberrole", native_enum=False),
            nullable=False,
        ),
        *_timestamps(),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("campaign_id", "user_id", name="uq_campaign_member"),
    )
    op.create_table(
        "dice_rolls",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("campaign_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("dice_type", sa.String(length=10), nullable=False),
        sa.Column("number_of_dice", sa.Integer(), nullable=False),
        sa.Column("modifier", sa.Integer(), nullable=False),
        sa.Column("results_json", sa.Text(), nullable=False),
        sa.Column("total", sa.Integer(), nullable=False),
        sa.Column("notation", sa.String(length=20), nullable=False),
        sa.Column("formatted_result", sa.Text(), nullable=False),
        sa.Column("quality", sa.String(length=20), nullable=True),
        sa.Column("purpose", sa.String(length=200), nullable=True),
        sa.Column(
            "visibility",
            sa.Enum("public", "private", "gm_only", name="rollvisibility", native_enum=False),
            nullable=False,
            server_default="public",
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "number_of_dice >= 1 AND number_of_dice <= 20", name="ck_dice_roll_number_of_dice"
        ),
        sa.CheckConstraint("modifier >= -100 AND modifier <= 100", name="ck_dice_roll_modifier"),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_dice_rolls_campaign_id", "dice_rolls", ["campaign_id"])


def downgrade() -> None:
    """Drop all dice tables."""
    op.drop_index("ix_dice_rolls_campaign_id", table_name="dice_rolls")
    op.drop_table("dice_rolls")
    op.drop_table("campaign_members")
    op.drop_table("campaigns")
    op.drop_table("users")
