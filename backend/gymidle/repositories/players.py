"""Database-backed player progression repository."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..adventures import AttemptStatus
from ..db.models import (
    AdventureAttemptModel,
    DailyPurchaseModel,
    ExerciseProficiencyModel,
    PlayerProgressModel,
    ProgressionEventModel,
    ResearchUpgradeModel,
)


def _normalize_user_id(user_id: str) -> str:
    normalized = (user_id or "").strip()
    if not normalized:
        raise ValueError("User id cannot be empty.")
    return normalized


class PlayerRepository:
    """Row access for one player's aggregate. Callers own the transaction."""

    def get(self, session: Session, user_id: str) -> PlayerProgressModel | None:
        stmt = select(PlayerProgressModel).where(PlayerProgressModel.user_id == _normalize_user_id(user_id))
        return session.execute(stmt).scalar_one_or_none()

    def lock(self, session: Session, user_id: str) -> PlayerProgressModel | None:
        """Load the player row with ``SELECT ... FOR UPDATE`` (ignored by SQLite)."""
        stmt = (
            select(PlayerProgressModel)
            .where(PlayerProgressModel.user_id == _normalize_user_id(user_id))
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return session.execute(stmt).scalar_one_or_none()

    def create(self, session: Session, user_id: str, **fields: Any) -> PlayerProgressModel:
        model = PlayerProgressModel(user_id=_normalize_user_id(user_id), **fields)
        session.add(model)
        session.flush()
        self._record_audit(session, model.id, "player_created", {"user_id": model.user_id}, at=fields.get("created_at"))
        return model

    # Proficiency -----------------------------------------------------------------

    def proficiencies(self, session: Session, player: PlayerProgressModel) -> List[ExerciseProficiencyModel]:
        stmt = (
            select(ExerciseProficiencyModel)
            .where(ExerciseProficiencyModel.player_id == player.id)
            .order_by(ExerciseProficiencyModel.exercise_id)
        )
        return list(session.execute(stmt).scalars())

    def get_proficiency(
        self,
        session: Session,
        player: PlayerProgressModel,
        exercise_id: str,
        *,
        create_if_missing: bool = False,
        today: Optional[date] = None,
    ) -> ExerciseProficiencyModel | None:
        stmt = select(ExerciseProficiencyModel).where(
            ExerciseProficiencyModel.player_id == player.id,
            ExerciseProficiencyModel.exercise_id == exercise_id,
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is None and create_if_missing:
            model = ExerciseProficiencyModel(
                player_id=player.id,
                exercise_id=exercise_id,
                proficiency=0,
                daily_energy_spent=0,
                daily_stat_gain_events=0,
                last_daily_reset_date=today,
                total_reps_lifetime=0,
            )
            session.add(model)
            # A racing insert of the same (player, exercise) surfaces here as IntegrityError.
            session.flush()
        return model

    # Research --------------------------------------------------------------------

    def upgrades(self, session: Session, player: PlayerProgressModel) -> Dict[str, int]:
        stmt = select(ResearchUpgradeModel).where(ResearchUpgradeModel.player_id == player.id)
        return {model.exercise_id: model.tier for model in session.execute(stmt).scalars()}

    def set_upgrade(
        self, session: Session, player: PlayerProgressModel, exercise_id: str, tier: int, *, at: datetime
    ) -> ResearchUpgradeModel:
        stmt = select(ResearchUpgradeModel).where(
            ResearchUpgradeModel.player_id == player.id,
            ResearchUpgradeModel.exercise_id == exercise_id,
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is None:
            model = ResearchUpgradeModel(player_id=player.id, exercise_id=exercise_id, tier=tier, created_at=at)
            session.add(model)
        if tier < model.tier:
            raise ValueError(f"Research tier for {exercise_id} cannot decrease ({model.tier} -> {tier}).")
        model.tier = tier
        model.updated_at = at
        session.flush()
        return model

    # Adventures ------------------------------------------------------------------

    def open_attempts(self, session: Session, player: PlayerProgressModel) -> List[AdventureAttemptModel]:
        """Attempts not yet claimed (in progress or ready), oldest first."""
        stmt = (
            select(AdventureAttemptModel)
            .where(
                AdventureAttemptModel.player_id == player.id,
                AdventureAttemptModel.status.in_(
                    [AttemptStatus.IN_PROGRESS.value, AttemptStatus.READY_TO_CLAIM.value]
                ),
            )
            .order_by(AdventureAttemptModel.attempted_at, AdventureAttemptModel.id)
        )
        return list(session.execute(stmt).scalars())

    def attempts_on_day(self, session: Session, player: PlayerProgressModel, day: date) -> List[AdventureAttemptModel]:
        stmt = select(AdventureAttemptModel).where(
            AdventureAttemptModel.player_id == player.id,
            AdventureAttemptModel.game_day == day,
        )
        return list(session.execute(stmt).scalars())

    def recent_attempts(
        self, session: Session, player: PlayerProgressModel, *, limit: int
    ) -> List[AdventureAttemptModel]:
        stmt = (
            select(AdventureAttemptModel)
            .where(AdventureAttemptModel.player_id == player.id)
            .order_by(AdventureAttemptModel.attempted_at.desc(), AdventureAttemptModel.id.desc())
            .limit(limit)
        )
        return list(session.execute(stmt).scalars())

    def add_attempt(self, session: Session, attempt: AdventureAttemptModel) -> AdventureAttemptModel:
        session.add(attempt)
        session.flush()
        return attempt

    # Shop ------------------------------------------------------------------------

    def purchases_on_day(self, session: Session, player: PlayerProgressModel, day: date) -> Dict[str, int]:
        stmt = select(DailyPurchaseModel).where(
            DailyPurchaseModel.player_id == player.id,
            DailyPurchaseModel.game_day == day,
        )
        return {model.item_id: model.quantity for model in session.execute(stmt).scalars()}

    def record_purchase(self, session: Session, player: PlayerProgressModel, item_id: str, day: date) -> int:
        stmt = select(DailyPurchaseModel).where(
            DailyPurchaseModel.player_id == player.id,
            DailyPurchaseModel.item_id == item_id,
            DailyPurchaseModel.game_day == day,
        )
        model = session.execute(stmt).scalar_one_or_none()
        if model is None:
            model = DailyPurchaseModel(player_id=player.id, item_id=item_id, game_day=day, quantity=0)
            session.add(model)
        model.quantity += 1
        session.flush()
        return model.quantity

    def delete_purchases_before(self, session: Session, player: PlayerProgressModel, day: date) -> int:
        stmt = delete(DailyPurchaseModel).where(
            DailyPurchaseModel.player_id == player.id,
            DailyPurchaseModel.game_day < day,
        )
        result = session.execute(stmt)
        return result.rowcount or 0

    def delete_all_purchases(self, session: Session, player: PlayerProgressModel) -> int:
        stmt = delete(DailyPurchaseModel).where(DailyPurchaseModel.player_id == player.id)
        result = session.execute(stmt)
        return result.rowcount or 0

    # Audit -----------------------------------------------------------------------

    def events(self, session: Session, player: PlayerProgressModel) -> List[ProgressionEventModel]:
        stmt = (
            select(ProgressionEventModel)
            .where(ProgressionEventModel.player_id == player.id)
            .order_by(ProgressionEventModel.id)
        )
        return list(session.execute(stmt).scalars())

    def record_event(
        self,
        session: Session,
        player: PlayerProgressModel,
        event_type: str,
        payload: Dict[str, Any],
        *,
        at: Optional[datetime] = None,
    ) -> None:
        self._record_audit(session, player.id, event_type, payload, at=at)

    def _record_audit(
        self,
        session: Session,
        player_id: Optional[int],
        event_type: str,
        payload: Dict[str, Any],
        *,
        at: Optional[datetime] = None,
    ) -> None:
        event = ProgressionEventModel(
            player_id=player_id,
            event_type=event_type,
            payload=payload,
            actor="system",
        )
        if at is not None:
            event.created_at = at
        session.add(event)


players = PlayerRepository()

__all__ = ["PlayerRepository", "players"]
