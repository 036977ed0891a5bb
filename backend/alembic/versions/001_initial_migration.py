"""Initial migration: create player, match, roundlock tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "player",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("department_id", sa.Integer(), nullable=False),
        sa.Column("points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("wins", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("losses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("wins >= 0", name="ck_player_wins_nonneg"),
        sa.CheckConstraint("losses >= 0", name="ck_player_losses_nonneg"),
        sa.CheckConstraint("points >= 0", name="ck_player_points_nonneg"),
    )
    op.create_index("ix_player_department_id", "player", ["department_id"])

    op.create_table(
        "match",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("phase", sa.String(), nullable=False),
        sa.Column("player1_id", sa.Integer(), nullable=False),
        sa.Column("player2_id", sa.Integer(), nullable=True),
        sa.Column("winner_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["player1_id"], ["player.id"]),
        sa.ForeignKeyConstraint(["player2_id"], ["player.id"]),
        sa.ForeignKeyConstraint(["winner_id"], ["player.id"]),
        sa.CheckConstraint("round_number >= 1", name="ck_match_round_positive"),
        sa.CheckConstraint(
            "winner_id IS NULL OR winner_id = player1_id OR winner_id = player2_id",
            name="ck_match_winner_seated",
        ),
    )
    op.create_index("ix_match_round_number", "match", ["round_number"])
    op.create_index("ix_match_phase", "match", ["phase"])
    op.create_index("ix_match_player1_id", "match", ["player1_id"])
    op.create_index("ix_match_player2_id", "match", ["player2_id"])

    op.create_table(
        "roundlock",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("phase", sa.String(), nullable=False),
        sa.Column("round_number", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("phase", "round_number", name="uq_roundlock_phase_round"),
    )


def downgrade() -> None:
    op.drop_table("roundlock")
    op.drop_index("ix_match_player2_id", table_name="match")
    op.drop_index("ix_match_player1_id", table_name="match")
    op.drop_index("ix_match_phase", table_name="match")
    op.drop_index("ix_match_round_number", table_name="match")
    op.drop_table("match")
    op.drop_index("ix_player_department_id", table_name="player")
    op.drop_table("player")
