"""ORM models backing the progression persistence layer."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from .base import Base, TimestampMixin, utcnow

JSONType = JSON


class PlayerProgressModel(TimestampMixin, Base):
    __tablename__ = "player_progress"
    __table_args__ = (Index("ix_player_progress_user_id", "user_id", unique=True),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    energy: Mapped[float] = mapped_column(Float, default=180.0, nullable=False)
    last_energy_update_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    max_energy: Mapped[float] = mapped_column(Float, default=180.0, nullable=False)
    permanent_energy_bonus: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    energy_regen_bonus_percent: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)

    xp: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    level: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    strength: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stamina: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    mobility: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cash: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    proficiency_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_reps: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    luck_boost_percent: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    xp_boost_remaining_uses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    xp_boost_multiplier: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)
    proficiency_boost_remaining_uses: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    proficiency_boost_multiplier: Mapped[float] = mapped_column(Float, default=1.0, nullable=False)

    permanent_xp_gain_percent: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    adventure_bonus_percent: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    daily_adventure_attempts_used: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    daily_adventure_limit: Mapped[int] = mapped_column(Integer, default=2, nullable=False)

    last_daily_reset_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    shop_rotation_seed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    adventure_rotation_seed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    version_id: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version_id}

    proficiencies: Mapped[list["ExerciseProficiencyModel"]] = relationship(
        back_populates="player", cascade="all, delete-orphan"
    )
    research_upgrades: Mapped[list["ResearchUpgradeModel"]] = relationship(
        back_populates="player", cascade="all, delete-orphan"
    )
    adventure_attempts: Mapped[list["AdventureAttemptModel"]] = relationship(
        back_populates="player", cascade="all, delete-orphan"
    )


class ExerciseProficiencyModel(Base):
    __tablename__ = "exercise_proficiencies"
    __table_args__ = (UniqueConstraint("player_id", "exercise_id", name="uq_exercise_proficiency_player_exercise"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("player_progress.id", ondelete="CASCADE"), nullable=False, index=True
    )
    exercise_id: Mapped[str] = mapped_column(String(64), nullable=False)
    proficiency: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    daily_energy_spent: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    daily_stat_gain_events: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_daily_reset_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    total_reps_lifetime: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    player: Mapped[PlayerProgressModel] = relationship(back_populates="proficiencies")


class ResearchUpgradeModel(TimestampMixin, Base):
    __tablename__ = "research_upgrades"
    __table_args__ = (UniqueConstraint("player_id", "exercise_id", name="uq_research_upgrade_player_exercise"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("player_progress.id", ondelete="CASCADE"), nullable=False, index=True
    )
    exercise_id: Mapped[str] = mapped_column(String(64), nullable=False)
    tier: Mapped[int] = mapped_column(Integer, nullable=False)

    player: Mapped[PlayerProgressModel] = relationship(back_populates="research_upgrades")


class AdventureAttemptModel(Base):
    __tablename__ = "adventure_attempts"
    __table_args__ = (
        Index("ix_adventure_attempts_player_status", "player_id", "status"),
        Index("ix_adventure_attempts_player_day", "player_id", "game_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("player_progress.id", ondelete="CASCADE"), nullable=False
    )
    adventure_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="in_progress")
    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    energy_spent: Mapped[int] = mapped_column(Integer, nullable=False)
    xp_gained: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cash_gained: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    stat_gains: Mapped[dict[str, int]] = mapped_column(JSONType, default=dict, nullable=False)
    attempted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    game_day: Mapped[date] = mapped_column(Date, nullable=False)
    claimed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    bonus_reward_triggered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    xp_paid: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    cash_paid: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    player: Mapped[PlayerProgressModel] = relationship(back_populates="adventure_attempts")


class DailyPurchaseModel(Base):
    __tablename__ = "daily_purchases"
    __table_args__ = (
        UniqueConstraint("player_id", "item_id", "game_day", name="uq_daily_purchase_player_item_day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("player_progress.id", ondelete="CASCADE"), nullable=False, index=True
    )
    item_id: Mapped[str] = mapped_column(String(64), nullable=False)
    game_day: Mapped[date] = mapped_column(Date, nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)


class ProgressionEventModel(Base):
    __tablename__ = "progression_events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    player_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("player_progress.id", ondelete="SET NULL"), nullable=True, index=True
    )
    event_type: Mapped[str] = mapped_column(String(64), nullable=False)
    payload: Mapped[dict] = mapped_column(JSONType, default=dict, nullable=False)
    actor: Mapped[str | None] = mapped_column(String(128))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


__all__ = [
    "AdventureAttemptModel",
    "DailyPurchaseModel",
    "ExerciseProficiencyModel",
    "PlayerProgressModel",
    "ProgressionEventModel",
    "ResearchUpgradeModel",
]
