"""Initial progression schema."""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "20261019_01_progression_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "player_progress",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("energy", sa.Float(), nullable=False, server_default="180"),
        sa.Column("last_energy_update_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("max_energy", sa.Float(), nullable=False, server_default="180"),
        sa.Column("permanent_energy_bonus", sa.Float(), nullable=False, server_default="0"),
        sa.Column("energy_regen_bonus_percent", sa.Float(), nullable=False, server_default="0"),
        sa.Column("xp", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("level", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("strength", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stamina", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("mobility", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cash", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("proficiency_points", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_reps", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("luck_boost_percent", sa.Float(), nullable=False, server_default="0"),
        sa.Column("xp_boost_remaining_uses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("xp_boost_multiplier", sa.Float(), nullable=False, server_default="1"),
        sa.Column("proficiency_boost_remaining_uses", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("proficiency_boost_multiplier", sa.Float(), nullable=False, server_default="1"),
        sa.Column("permanent_xp_gain_percent", sa.Float(), nullable=False, server_default="0"),
        sa.Column("adventure_bonus_percent", sa.Float(), nullable=False, server_default="0"),
        sa.Column("daily_adventure_attempts_used", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("daily_adventure_limit", sa.Integer(), nullable=False, server_default="2"),
        sa.Column("last_daily_reset_date", sa.Date(), nullable=True),
        sa.Column("shop_rotation_seed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("adventure_rotation_seed", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("version_id", sa.Integer(), nullable=False),
    )
    op.create_index("ix_player_progress_user_id", "player_progress", ["user_id"], unique=True)

    op.create_table(
        "exercise_proficiencies",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("player_progress.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("exercise_id", sa.String(length=64), nullable=False),
        sa.Column("proficiency", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("daily_energy_spent", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("daily_stat_gain_events", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_daily_reset_date", sa.Date(), nullable=True),
        sa.Column("total_reps_lifetime", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("player_id", "exercise_id", name="uq_exercise_proficiency_player_exercise"),
    )
    op.create_index("ix_exercise_proficiencies_player_id", "exercise_proficiencies", ["player_id"])

    op.create_table(
        "research_upgrades",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("player_progress.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("exercise_id", sa.String(length=64), nullable=False),
        sa.Column("tier", sa.Integer(), nullable=False),
        sa.UniqueConstraint("player_id", "exercise_id", name="uq_research_upgrade_player_exercise"),
    )
    op.create_index("ix_research_upgrades_player_id", "research_upgrades", ["player_id"])

    op.create_table(
        "adventure_attempts",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("player_progress.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("adventure_id", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="in_progress"),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("energy_spent", sa.Integer(), nullable=False),
        sa.Column("xp_gained", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("cash_gained", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("stat_gains", sa.JSON(), nullable=False),
        sa.Column("attempted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("game_day", sa.Date(), nullable=False),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("bonus_reward_triggered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("xp_paid", sa.Integer(), nullable=True),
        sa.Column("cash_paid", sa.Integer(), nullable=True),
    )
    op.create_index("ix_adventure_attempts_player_status", "adventure_attempts", ["player_id", "status"])
    op.create_index("ix_adventure_attempts_player_day", "adventure_attempts", ["player_id", "game_day"])

    op.create_table(
        "daily_purchases",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("player_progress.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("item_id", sa.String(length=64), nullable=False),
        sa.Column("game_day", sa.Date(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="0"),
        sa.UniqueConstraint("player_id", "item_id", "game_day", name="uq_daily_purchase_player_item_day"),
    )
    op.create_index("ix_daily_purchases_player_id", "daily_purchases", ["player_id"])

    op.create_table(
        "progression_events",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True, nullable=False),
        sa.Column(
            "player_id",
            sa.Integer(),
            sa.ForeignKey("player_progress.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("event_type", sa.String(length=64), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("actor", sa.String(length=128), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    )
    op.create_index("ix_progression_events_player_id", "progression_events", ["player_id"])


def downgrade() -> None:
    op.drop_index("ix_progression_events_player_id", table_name="progression_events")
    op.drop_table("progression_events")
    op.drop_index("ix_daily_purchases_player_id", table_name="daily_purchases")
    op.drop_table("daily_purchases")
    op.drop_index("ix_adventure_attempts_player_day", table_name="adventure_attempts")
    op.drop_index("ix_adventure_attempts_player_status", table_name="adventure_attempts")
    op.drop_table("adventure_attempts")
    op.drop_index("ix_research_upgrades_player_id", table_name="research_upgrades")
    op.drop_table("research_upgrades")
    op.drop_index("ix_exercise_proficiencies_player_id", table_name="exercise_proficiencies")
    op.drop_table("exercise_proficiencies")
    op.drop_index("ix_player_progress_user_id", table_name="player_progress")
    op.drop_table("player_progress")
