"""Progression orchestrator.

Every public method runs one transaction against one player: lock the row,
catch up lazy state (energy regen, the daily boundary, finished adventures),
apply the action through the pure models, then write everything back. Stale
writes and racing inserts are retried a bounded number of times.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from . import adventures as adventure_model
from . import energy as energy_model
from . import progress
from .catalog import STAT_NAMES, Adventure, Exercise, GameCatalog, ShopItem, get_catalog
from .config import get_settings
from .daily_cycle import (
    apply_daily_reset,
    as_utc,
    game_day,
    needs_reset,
    new_rotation_seed,
    next_reset_at,
    select_daily_adventures,
    select_daily_shop_items,
)
from .db.models import AdventureAttemptModel, PlayerProgressModel
from .db.session import SessionManager, session_scope
from .errors import ConcurrencyConflictError, GameError, InternalError, NotFoundError, PreconditionError
from .game_models import (
    ActionResult,
    AdventureAttemptPayload,
    AdventureAttemptRequest,
    AdventureOfferPayload,
    ExercisePayload,
    PlayerSnapshotPayload,
    ProficiencyPayload,
    PurchaseRequest,
    ResearchExercisePayload,
    ResearchTierPayload,
    ResearchUnlockRequest,
    ShopItemPayload,
    StatsPayload,
    WorkoutRequest,
    parse_action,
)
from .mathutil import round_half_up
from .proficiency import MAX_DAILY_STAT_GAIN_EVENTS, apply_workout
from .repositories.players import PlayerRepository, players
from .research import (
    REQUIRED_PROFICIENCY,
    ResearchAggregates,
    check_unlock,
    compute_aggregates,
    discounted_energy_cost,
    exercise_modifiers,
    soft_reset_proficiency,
    tier_cost,
)
from .shop import apply_purchase, check_purchase
from .telemetry import emit_event
from .xp_curve import level_progress

logger = logging.getLogger(__name__)

T = TypeVar("T")
Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ActionContext:
    session: Session
    player: PlayerProgressModel
    now: datetime
    today: date
    daily_reset_occurred: bool = False
    events: List[Tuple[str, Dict[str, Any]]] = field(default_factory=list)

    def emit(self, name: str, **fields: Any) -> None:
        """Queue a telemetry event; it is only emitted once the transaction commits."""
        self.events.append((name, fields))


class GameService:
    def __init__(
        self,
        *,
        catalog: Optional[GameCatalog] = None,
        session_factory: Optional[SessionManager] = None,
        clock: Optional[Clock] = None,
        rng: Optional[random.Random] = None,
        repository: Optional[PlayerRepository] = None,
        daily_reset_hour_utc: Optional[int] = None,
        max_conflict_retries: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        self.catalog = catalog or get_catalog()
        self._session_factory = session_factory
        self._clock = clock or _utcnow
        self._rng = rng or random.Random()
        self._repo = repository or players
        self.daily_reset_hour_utc = (
            settings.daily_reset_hour_utc if daily_reset_hour_utc is None else daily_reset_hour_utc
        )
        self.max_conflict_retries = (
            settings.max_conflict_retries if max_conflict_retries is None else max_conflict_retries
        )

    # Transaction plumbing --------------------------------------------------------

    def _now(self) -> datetime:
        return as_utc(self._clock())

    def _transaction(self, action: str, work: Callable[[Session], T]) -> T:
        attempt = 0
        while True:
            try:
                with session_scope(factory=self._session_factory) as session:
                    return work(session)
            except GameError:
                raise
            except (StaleDataError, IntegrityError) as exc:
                attempt += 1
                if attempt > self.max_conflict_retries:
                    logger.warning("Giving up on %s after %d conflicting attempts", action, attempt)
                    emit_event("concurrency_conflict", action=action, attempts=attempt)
                    raise ConcurrencyConflictError(
                        "The player was modified concurrently; please retry.",
                        details={"action": action, "attempts": attempt},
                    ) from exc
                logger.info("Concurrent update during %s; retrying (%d/%d)", action, attempt, self.max_conflict_retries)
                emit_event("concurrency_retry", action=action, attempt=attempt)
            except SQLAlchemyError as exc:
                logger.exception("Database failure during %s", action)
                raise InternalError("A storage error occurred.", details={"action": action}) from exc

    def _with_player(self, action: str, user_id: str, fn: Callable[[ActionContext], T]) -> T:
        def work(session: Session) -> Tuple[T, List[Tuple[str, Dict[str, Any]]]]:
            player = self._repo.lock(session, user_id)
            if player is None:
                raise NotFoundError(f"No player found for user {user_id}.", details={"user_id": user_id})
            now = self._now()
            ctx = ActionContext(
                session=session,
                player=player,
                now=now,
                today=game_day(now, self.daily_reset_hour_utc),
            )
            self._sync(ctx)
            result = fn(ctx)
            session.flush()
            return result, ctx.events

        result, events = self._transaction(action, work)
        for name, fields in events:
            emit_event(name, user_id=user_id, **fields)
        return result

    def _sync(self, ctx: ActionContext) -> None:
        """Catch up energy, the daily boundary and finished adventures."""
        progress.tick_energy(ctx.player, ctx.now)
        if needs_reset(ctx.player.last_daily_reset_date, ctx.today):
            self._daily_reset(ctx, forced=False)
        for attempt in self._repo.open_attempts(ctx.session, ctx.player):
            if attempt.status == adventure_model.AttemptStatus.IN_PROGRESS.value and as_utc(attempt.completed_at) <= ctx.now:
                attempt.status = adventure_model.AttemptStatus.READY_TO_CLAIM.value

    def _daily_reset(self, ctx: ActionContext, *, forced: bool) -> None:
        player = ctx.player
        previous_day = player.last_daily_reset_date
        records = self._repo.proficiencies(ctx.session, player)
        outcome = apply_daily_reset(player, records, ctx.today, self._rng)
        if forced:
            purchases_cleared = self._repo.delete_all_purchases(ctx.session, player)
        else:
            purchases_cleared = self._repo.delete_purchases_before(ctx.session, player, ctx.today)
        ctx.daily_reset_occurred = True
        payload = {
            "game_day": ctx.today.isoformat(),
            "previous_day": previous_day.isoformat() if previous_day else None,
            "forced": forced,
            "proficiencies_reset": outcome.proficiencies_reset,
            "purchases_cleared": purchases_cleared,
        }
        self._repo.record_event(ctx.session, player, "daily_reset", payload, at=ctx.now)
        ctx.emit("daily_reset", **payload)
        logger.info("Daily reset for %s (game day %s, forced=%s)", player.user_id, ctx.today, forced)

    # Snapshots -------------------------------------------------------------------

    def _snapshot(self, ctx: ActionContext) -> PlayerSnapshotPayload:
        player = ctx.player
        cap = progress.energy_cap(player)
        rate = progress.regen_rate(player)
        level = level_progress(player.xp)
        return PlayerSnapshotPayload(
            user_id=player.user_id,
            energy=round(float(player.energy), 4),
            energy_display=math.floor(energy_model.soft_capped(player.energy, cap)),
            energy_cap=cap,
            energy_regen_per_hour=rate,
            minutes_to_next_energy=energy_model.minutes_to_next_energy(player.energy, rate),
            xp=player.xp,
            level=player.level,
            xp_into_level=level.xp_into_level,
            xp_for_level=level.xp_for_level,
            level_progress=level.fraction,
            is_max_level=level.is_max_level,
            stats=StatsPayload(strength=player.strength, stamina=player.stamina, mobility=player.mobility),
            cash=player.cash,
            proficiency_points=player.proficiency_points,
            luck_boost_percent=player.luck_boost_percent,
            xp_boost_remaining_uses=player.xp_boost_remaining_uses,
            proficiency_boost_remaining_uses=player.proficiency_boost_remaining_uses,
            permanent_xp_gain_percent=player.permanent_xp_gain_percent,
            adventure_bonus_percent=player.adventure_bonus_percent,
            daily_adventure_attempts_used=player.daily_adventure_attempts_used,
            daily_adventure_limit=player.daily_adventure_limit,
            game_day=ctx.today,
            next_daily_reset_at=next_reset_at(ctx.now, self.daily_reset_hour_utc),
        )

    def _result(self, ctx: ActionContext, action: str, **fields: Any) -> ActionResult:
        return ActionResult(
            action=action,
            player=self._snapshot(ctx),
            daily_reset_occurred=ctx.daily_reset_occurred,
            **fields,
        )

    def _offered_adventures(self, player: PlayerProgressModel) -> List[Adventure]:
        return select_daily_adventures(self.catalog.active_adventures(), player.adventure_rotation_seed)

    def _offered_shop_items(self, player: PlayerProgressModel) -> Dict[str, List[ShopItem]]:
        return select_daily_shop_items(self.catalog.active_shop_items(), player.shop_rotation_seed)

    def _require_exercise(self, exercise_id: str) -> Exercise:
        exercise = self.catalog.exercise(exercise_id)
        if exercise is None or not exercise.is_active:
            raise NotFoundError(f"Unknown exercise {exercise_id}.", details={"exercise_id": exercise_id})
        return exercise

    def _apply_aggregates(self, player: PlayerProgressModel, aggregates: ResearchAggregates) -> None:
        player.permanent_xp_gain_percent = aggregates.permanent_xp_gain_percent
        player.daily_adventure_limit = aggregates.daily_adventure_limit
        player.permanent_energy_bonus = aggregates.permanent_energy_bonus
        player.energy_regen_bonus_percent = aggregates.energy_regen_bonus_percent
        player.adventure_bonus_percent = aggregates.adventure_bonus_percent

    # Players ---------------------------------------------------------------------

    def create_player(self, user_id: str) -> ActionResult:
        def work(session: Session) -> Tuple[ActionResult, List[Tuple[str, Dict[str, Any]]]]:
            if self._repo.get(session, user_id) is not None:
                raise PreconditionError("player_exists", f"A player already exists for user {user_id}.")
            now = self._now()
            today = game_day(now, self.daily_reset_hour_utc)
            player = self._repo.create(
                session,
                user_id,
                energy=energy_model.ENERGY_CAP,
                last_energy_update_at=now,
                max_energy=energy_model.ENERGY_CAP,
                xp=0,
                level=1,
                strength=0,
                stamina=0,
                mobility=0,
                cash=0,
                proficiency_points=0,
                total_reps=0,
                luck_boost_percent=0.0,
                xp_boost_remaining_uses=0,
                xp_boost_multiplier=1.0,
                proficiency_boost_remaining_uses=0,
                proficiency_boost_multiplier=1.0,
                daily_adventure_attempts_used=0,
                last_daily_reset_date=today,
                shop_rotation_seed=new_rotation_seed(self._rng),
                adventure_rotation_seed=new_rotation_seed(self._rng),
                created_at=now,
                updated_at=now,
            )
            self._apply_aggregates(player, ResearchAggregates())
            ctx = ActionContext(session=session, player=player, now=now, today=today)
            ctx.emit("player_created", game_day=today.isoformat())
            return self._result(ctx, "create_player"), ctx.events

        result, events = self._transaction("create_player", work)
        for name, fields in events:
            emit_event(name, user_id=user_id, **fields)
        logger.info("Created player %s", user_id)
        return result

    def get_progress(self, user_id: str) -> ActionResult:
        return self._with_player("get_progress", user_id, lambda ctx: self._result(ctx, "get_progress"))

    # Workouts --------------------------------------------------------------------

    def perform_workout(self, user_id: str, payload: Any) -> ActionResult:
        request = parse_action(WorkoutRequest, payload)
        exercise = self._require_exercise(request.exercise_id)

        def fn(ctx: ActionContext) -> ActionResult:
            player = ctx.player
            tier = self._repo.upgrades(ctx.session, player).get(exercise.id, 0)
            modifiers = exercise_modifiers(exercise, tier)
            cost = discounted_energy_cost(exercise.base_energy, modifiers.energy_discount_percent)
            cap = progress.energy_cap(player)
            if not energy_model.can_spend(player.energy, cost, cap):
                raise PreconditionError(
                    "insufficient_energy",
                    "Not enough energy.",
                    details={"required": cost, "available": math.floor(energy_model.soft_capped(player.energy, cap))},
                )

            record = self._repo.get_proficiency(
                ctx.session, player, exercise.id, create_if_missing=True, today=ctx.today
            )
            new_day = record.last_daily_reset_date != ctx.today
            if new_day:
                record.daily_stat_gain_events = 0
                record.last_daily_reset_date = ctx.today

            boost = 1.0
            if player.proficiency_boost_remaining_uses > 0:
                boost = player.proficiency_boost_multiplier
                player.proficiency_boost_remaining_uses -= 1
            update = apply_workout(
                record.proficiency,
                record.daily_energy_spent,
                cost,
                intensity=request.intensity,
                grade=request.grade,
                new_day=new_day,
                boost_multiplier=boost,
            )
            record.proficiency = update.proficiency
            record.daily_energy_spent = update.daily_energy_spent

            reps = request.reps or exercise.base_reps
            record.total_reps_lifetime += reps
            player.total_reps += reps
            progress.spend_energy(player, cost)

            stat_gains: Dict[str, int] = {}
            if record.daily_stat_gain_events < MAX_DAILY_STAT_GAIN_EVENTS:
                amount = progress.add_stat(player, exercise.stat_type, exercise.stat_gain_amount + modifiers.stat_bonus)
                if amount:
                    stat_gains[exercise.stat_type] = amount
                    record.daily_stat_gain_events += 1

            xp = scale_workout_xp(
                exercise.base_xp,
                permanent_percent=player.permanent_xp_gain_percent,
                boost_multiplier=player.xp_boost_multiplier if player.xp_boost_remaining_uses > 0 else 1.0,
            )
            if player.xp_boost_remaining_uses > 0:
                player.xp_boost_remaining_uses -= 1
            award = progress.award_xp(player, xp)
            player.cash += modifiers.cash_per_workout

            self._repo.record_event(
                ctx.session,
                player,
                "workout",
                {
                    "exercise_id": exercise.id,
                    "energy_spent": cost,
                    "xp_gained": award.xp_gained,
                    "proficiency_gained": update.gained,
                },
                at=ctx.now,
            )
            ctx.emit(
                "workout_completed",
                exercise_id=exercise.id,
                intensity=request.intensity,
                grade=request.grade,
                energy_spent=cost,
                xp_gained=award.xp_gained,
                proficiency=update.proficiency,
            )
            if award.leveled_up:
                ctx.emit(
                    "level_up",
                    previous_level=award.previous_level,
                    level=award.level,
                    proficiency_points_gained=award.proficiency_points_gained,
                )
            return self._result(
                ctx,
                "workout",
                xp_gained=award.xp_gained,
                proficiency_gained=update.gained,
                proficiency_points_gained=award.proficiency_points_gained,
                cash_gained=modifiers.cash_per_workout,
                energy_spent=cost,
                stat_gains=StatsPayload(**stat_gains),
                leveled_up=award.leveled_up,
                levels_gained=award.level - award.previous_level,
                details={
                    "exercise_id": exercise.id,
                    "reps": reps,
                    "proficiency": update.proficiency,
                    "daily_energy_spent": update.daily_energy_spent,
                    "daily_stat_gain_events": record.daily_stat_gain_events,
                    "research_tier": tier,
                },
            )

        return self._with_player("perform_workout", user_id, fn)

    # Adventures ------------------------------------------------------------------

    def attempt_adventure(self, user_id: str, payload: Any) -> ActionResult:
        request = parse_action(AdventureAttemptRequest, payload)
        adventure = self.catalog.adventure(request.adventure_id)
        if adventure is None or not adventure.is_active:
            raise NotFoundError(
                f"Unknown adventure {request.adventure_id}.", details={"adventure_id": request.adventure_id}
            )

        def fn(ctx: ActionContext) -> ActionResult:
            player = ctx.player
            open_attempts = self._repo.open_attempts(ctx.session, player)
            todays = self._repo.attempts_on_day(ctx.session, player, ctx.today)
            offered = {entry.id for entry in self._offered_adventures(player)}
            stats = _stats(player)
            adventure_model.check_attempt(
                adventure,
                adventure_model.AttemptContext(
                    stats=stats,
                    energy=player.energy,
                    energy_cap=progress.energy_cap(player),
                    attempts_used=player.daily_adventure_attempts_used,
                    daily_limit=player.daily_adventure_limit,
                    has_in_progress=any(
                        entry.status == adventure_model.AttemptStatus.IN_PROGRESS.value for entry in open_attempts
                    ),
                    attempted_today=any(entry.adventure_id == adventure.id for entry in todays),
                    offered_today=adventure.id in offered,
                    now=ctx.now,
                    next_reset=next_reset_at(ctx.now, self.daily_reset_hour_utc),
                ),
            )

            chance = adventure_model.success_probability(stats, adventure)
            success = adventure_model.roll_success(chance, self._rng)
            rewards = adventure_model.base_rewards(adventure, success)
            progress.spend_energy(player, adventure.energy_cost)
            player.daily_adventure_attempts_used += 1
            attempt = self._repo.add_attempt(
                ctx.session,
                AdventureAttemptModel(
                    player_id=player.id,
                    adventure_id=adventure.id,
                    status=adventure_model.AttemptStatus.IN_PROGRESS.value,
                    success=success,
                    energy_spent=adventure.energy_cost,
                    xp_gained=rewards.xp,
                    cash_gained=rewards.cash,
                    stat_gains=dict(rewards.stats),
                    attempted_at=ctx.now,
                    completed_at=adventure_model.completion_time(adventure, ctx.now),
                    game_day=ctx.today,
                ),
            )
            self._repo.record_event(
                ctx.session,
                player,
                "adventure_started",
                {"adventure_id": adventure.id, "attempt_id": attempt.id, "success": success},
                at=ctx.now,
            )
            ctx.emit(
                "adventure_started",
                adventure_id=adventure.id,
                success_chance=round(chance, 4),
                success=success,
                completes_at=attempt.completed_at,
            )
            return self._result(
                ctx,
                "attempt_adventure",
                energy_spent=adventure.energy_cost,
                details={
                    "attempt": _attempt_payload(attempt).model_dump(mode="json"),
                    "success_chance": round(chance, 4),
                },
            )

        return self._with_player("attempt_adventure", user_id, fn)

    def claim_adventures(self, user_id: str) -> ActionResult:
        def fn(ctx: ActionContext) -> ActionResult:
            player = ctx.player
            starting_level = player.level
            totals = {"xp": 0, "cash": 0, "pp": 0}
            stat_totals = {stat: 0 for stat in STAT_NAMES}
            claimed: List[Dict[str, Any]] = []
            any_bonus = False

            for attempt in self._repo.open_attempts(ctx.session, player):
                if attempt.status != adventure_model.AttemptStatus.READY_TO_CLAIM.value:
                    continue
                earned = adventure_model.apply_research_bonus(
                    adventure_model.RewardBundle(
                        xp=attempt.xp_gained, cash=attempt.cash_gained, stats=dict(attempt.stat_gains or {})
                    ),
                    float(player.adventure_bonus_percent or 0.0),
                )
                rewards, triggered = adventure_model.apply_luck(
                    earned,
                    float(player.luck_boost_percent),
                    self._rng,
                )
                award = progress.award_xp(player, rewards.xp)
                player.cash += rewards.cash
                for stat in STAT_NAMES:
                    stat_totals[stat] += progress.add_stat(player, stat, rewards.stats.get(stat, 0))
                if player.luck_boost_percent > 0:
                    player.luck_boost_percent = 0.0

                attempt.status = adventure_model.AttemptStatus.COMPLETED.value
                attempt.claimed_at = ctx.now
                attempt.bonus_reward_triggered = triggered
                attempt.xp_paid = award.xp_gained
                attempt.cash_paid = rewards.cash

                totals["xp"] += award.xp_gained
                totals["cash"] += rewards.cash
                totals["pp"] += award.proficiency_points_gained
                any_bonus = any_bonus or triggered
                claimed.append(_attempt_payload(attempt).model_dump(mode="json"))
                self._repo.record_event(
                    ctx.session,
                    player,
                    "adventure_claimed",
                    {"attempt_id": attempt.id, "xp_paid": award.xp_gained, "cash_paid": rewards.cash},
                    at=ctx.now,
                )
                ctx.emit(
                    "adventure_claimed",
                    adventure_id=attempt.adventure_id,
                    success=attempt.success,
                    bonus_reward_triggered=triggered,
                    xp_paid=award.xp_gained,
                    cash_paid=rewards.cash,
                )

            leveled_up = player.level > starting_level
            if leveled_up:
                ctx.emit(
                    "level_up",
                    previous_level=starting_level,
                    level=player.level,
                    proficiency_points_gained=totals["pp"],
                )
            return self._result(
                ctx,
                "claim_adventures",
                xp_gained=totals["xp"],
                cash_gained=totals["cash"],
                proficiency_points_gained=totals["pp"],
                stat_gains=StatsPayload(**stat_totals),
                leveled_up=leveled_up,
                levels_gained=player.level - starting_level,
                bonus_reward_triggered=any_bonus,
                details={"claimed": claimed},
            )

        return self._with_player("claim_adventures", user_id, fn)

    def offered_adventures(self, user_id: str) -> List[AdventureOfferPayload]:
        def fn(ctx: ActionContext) -> List[AdventureOfferPayload]:
            stats = _stats(ctx.player)
            attempted = {entry.adventure_id for entry in self._repo.attempts_on_day(ctx.session, ctx.player, ctx.today)}
            return [
                AdventureOfferPayload(
                    adventure_id=adventure.id,
                    name=adventure.name,
                    description=adventure.description,
                    difficulty=adventure.difficulty,
                    energy_cost=adventure.energy_cost,
                    xp_reward=adventure.xp_reward,
                    cash_reward=adventure.cash_reward,
                    stat_reward=StatsPayload(**adventure.stat_reward.model_dump()),
                    strength_req=adventure.strength_req,
                    stamina_req=adventure.stamina_req,
                    mobility_req=adventure.mobility_req,
                    duration_minutes=adventure.duration_minutes,
                    success_chance=round(adventure_model.success_probability(stats, adventure), 4),
                    meets_requirements=adventure_model.meets_requirements(stats, adventure),
                    attempted_today=adventure.id in attempted,
                )
                for adventure in self._offered_adventures(ctx.player)
            ]

        return self._with_player("offered_adventures", user_id, fn)

    def adventure_history(self, user_id: str) -> List[AdventureAttemptPayload]:
        def fn(ctx: ActionContext) -> List[AdventureAttemptPayload]:
            attempts = self._repo.recent_attempts(ctx.session, ctx.player, limit=adventure_model.HISTORY_LIMIT)
            return [_attempt_payload(attempt) for attempt in attempts]

        return self._with_player("adventure_history", user_id, fn)

    # Research --------------------------------------------------------------------

    def unlock_research_tier(self, user_id: str, payload: Any) -> ActionResult:
        request = parse_action(ResearchUnlockRequest, payload)
        exercise = self._require_exercise(request.exercise_id)

        def fn(ctx: ActionContext) -> ActionResult:
            player = ctx.player
            upgrades = self._repo.upgrades(ctx.session, player)
            current_tier = upgrades.get(exercise.id, 0)
            record = self._repo.get_proficiency(ctx.session, player, exercise.id)
            cost = check_unlock(
                exercise,
                current_tier=current_tier,
                requested_tier=request.tier,
                proficiency=record.proficiency if record else 0,
                proficiency_points=player.proficiency_points,
            )
            player.proficiency_points -= cost
            self._repo.set_upgrade(ctx.session, player, exercise.id, request.tier, at=ctx.now)
            previous_proficiency = record.proficiency
            record.proficiency = soft_reset_proficiency(record.proficiency)
            upgrades[exercise.id] = request.tier
            self._apply_aggregates(player, compute_aggregates(upgrades, self.catalog))

            definition = exercise.tier_definition(request.tier)
            self._repo.record_event(
                ctx.session,
                player,
                "research_unlocked",
                {"exercise_id": exercise.id, "tier": request.tier, "cost": cost},
                at=ctx.now,
            )
            ctx.emit(
                "research_unlocked",
                exercise_id=exercise.id,
                tier=request.tier,
                cost=cost,
                benefit_type=definition.benefit_type if definition else None,
            )
            return self._result(
                ctx,
                "unlock_research_tier",
                proficiency_points_gained=-cost,
                details={
                    "exercise_id": exercise.id,
                    "tier": request.tier,
                    "cost": cost,
                    "previous_proficiency": previous_proficiency,
                    "proficiency": record.proficiency,
                    "benefit": definition.model_dump(mode="json") if definition else None,
                },
            )

        return self._with_player("unlock_research_tier", user_id, fn)

    def list_exercises(self, user_id: str) -> List[ExercisePayload]:
        """Active exercises with the energy cost and rewards at the player's current tier."""

        def fn(ctx: ActionContext) -> List[ExercisePayload]:
            player = ctx.player
            upgrades = self._repo.upgrades(ctx.session, player)
            cap = progress.energy_cap(player)
            payloads = []
            for exercise in self.catalog.exercises.values():
                if not exercise.is_active:
                    continue
                tier = upgrades.get(exercise.id, 0)
                modifiers = exercise_modifiers(exercise, tier)
                cost = discounted_energy_cost(exercise.base_energy, modifiers.energy_discount_percent)
                payloads.append(
                    ExercisePayload(
                        exercise_id=exercise.id,
                        name=exercise.name,
                        category=exercise.category,
                        stat_type=exercise.stat_type,
                        base_reps=exercise.base_reps,
                        base_xp=exercise.base_xp,
                        base_energy=exercise.base_energy,
                        energy_cost=cost,
                        stat_gain_amount=exercise.stat_gain_amount + modifiers.stat_bonus,
                        cash_per_workout=modifiers.cash_per_workout,
                        research_tier=tier,
                        can_afford=energy_model.can_spend(player.energy, cost, cap),
                    )
                )
            return payloads

        return self._with_player("list_exercises", user_id, fn)

    def list_proficiencies(self, user_id: str) -> List[ProficiencyPayload]:
        def fn(ctx: ActionContext) -> List[ProficiencyPayload]:
            records = {record.exercise_id: record for record in self._repo.proficiencies(ctx.session, ctx.player)}
            upgrades = self._repo.upgrades(ctx.session, ctx.player)
            payloads = []
            for exercise in self.catalog.exercises.values():
                if not exercise.is_active:
                    continue
                record = records.get(exercise.id)
                payloads.append(
                    ProficiencyPayload(
                        exercise_id=exercise.id,
                        name=exercise.name,
                        proficiency=record.proficiency if record else 0,
                        daily_energy_spent=record.daily_energy_spent if record else 0,
                        daily_stat_gain_events=record.daily_stat_gain_events if record else 0,
                        total_reps_lifetime=record.total_reps_lifetime if record else 0,
                        research_tier=upgrades.get(exercise.id, 0),
                    )
                )
            return payloads

        return self._with_player("list_proficiencies", user_id, fn)

    def research_overview(self, user_id: str) -> List[ResearchExercisePayload]:
        def fn(ctx: ActionContext) -> List[ResearchExercisePayload]:
            records = {record.exercise_id: record for record in self._repo.proficiencies(ctx.session, ctx.player)}
            upgrades = self._repo.upgrades(ctx.session, ctx.player)
            points = ctx.player.proficiency_points
            overview = []
            for exercise in self.catalog.exercises.values():
                if not exercise.is_active:
                    continue
                proficiency = records[exercise.id].proficiency if exercise.id in records else 0
                current = upgrades.get(exercise.id, 0)
                tiers = [
                    ResearchTierPayload(
                        tier=definition.tier,
                        name=definition.name,
                        benefit_type=definition.benefit_type.value,
                        value=definition.value,
                        is_percentage=definition.is_percentage,
                        cost=tier_cost(definition.tier),
                        unlocked=definition.tier <= current,
                        can_unlock=(
                            definition.tier == current + 1
                            and proficiency >= REQUIRED_PROFICIENCY
                            and points >= tier_cost(definition.tier)
                        ),
                    )
                    for definition in exercise.research_tiers
                ]
                overview.append(
                    ResearchExercisePayload(
                        exercise_id=exercise.id,
                        name=exercise.name,
                        proficiency=proficiency,
                        current_tier=current,
                        tiers=tiers,
                    )
                )
            return overview

        return self._with_player("research_overview", user_id, fn)

    # Shop ------------------------------------------------------------------------

    def purchase_item(self, user_id: str, payload: Any) -> ActionResult:
        request = parse_action(PurchaseRequest, payload)
        item = self.catalog.shop_item(request.item_id)
        if item is None:
            raise NotFoundError(f"Unknown shop item {request.item_id}.", details={"item_id": request.item_id})

        def fn(ctx: ActionContext) -> ActionResult:
            player = ctx.player
            purchased = self._repo.purchases_on_day(ctx.session, player, ctx.today)
            offered = {entry.id for entries in self._offered_shop_items(player).values() for entry in entries}
            check_purchase(
                item,
                cash=player.cash,
                purchased_today=purchased.get(item.id, 0),
                offered_today=item.id in offered,
            )
            records = self._repo.proficiencies(ctx.session, player)
            outcome = apply_purchase(player, item, records)
            quantity = self._repo.record_purchase(ctx.session, player, item.id, ctx.today)

            award = outcome.xp_award
            self._repo.record_event(
                ctx.session,
                player,
                "shop_purchase",
                {"item_id": item.id, "cost": item.cost, "effect": item.effect_type.value},
                at=ctx.now,
            )
            ctx.emit("shop_purchase", item_id=item.id, cost=item.cost, effect=item.effect_type, quantity_today=quantity)
            if award is not None and award.leveled_up:
                ctx.emit(
                    "level_up",
                    previous_level=award.previous_level,
                    level=award.level,
                    proficiency_points_gained=award.proficiency_points_gained,
                )
            return self._result(
                ctx,
                "purchase_item",
                xp_gained=award.xp_gained if award else 0,
                proficiency_points_gained=award.proficiency_points_gained if award else 0,
                cash_gained=-item.cost,
                energy_restored=outcome.energy_restored,
                stat_gains=StatsPayload(**outcome.stat_gains),
                leveled_up=bool(award and award.leveled_up),
                levels_gained=(award.level - award.previous_level) if award else 0,
                details={
                    "item_id": item.id,
                    "effect": item.effect_type.value,
                    "purchased_today": quantity,
                    "boost_uses_added": outcome.boost_uses_added,
                    "max_energy_gained": outcome.max_energy_gained,
                    "stat_counters_reset": outcome.stat_counters_reset,
                },
            )

        return self._with_player("purchase_item", user_id, fn)

    def offered_shop_items(self, user_id: str) -> Dict[str, List[ShopItemPayload]]:
        def fn(ctx: ActionContext) -> Dict[str, List[ShopItemPayload]]:
            purchased = self._repo.purchases_on_day(ctx.session, ctx.player, ctx.today)
            return {
                category: [
                    ShopItemPayload(
                        item_id=item.id,
                        name=item.name,
                        description=item.description,
                        category=item.category,
                        cost=item.cost,
                        effect_type=item.effect_type.value,
                        effect_value=item.effect_value,
                        stat_type=item.stat_type,
                        daily_limit=item.daily_limit,
                        purchased_today=purchased.get(item.id, 0),
                    )
                    for item in items
                ]
                for category, items in self._offered_shop_items(ctx.player).items()
            }

        return self._with_player("offered_shop_items", user_id, fn)

    # Daily cycle -----------------------------------------------------------------

    def force_daily_reset(self, user_id: str) -> ActionResult:
        """Run the daily reset now, whether or not the boundary has passed."""

        def fn(ctx: ActionContext) -> ActionResult:
            self._daily_reset(ctx, forced=True)
            return self._result(ctx, "force_daily_reset")

        return self._with_player("force_daily_reset", user_id, fn)


def scale_workout_xp(base_xp: int, *, permanent_percent: float = 0.0, boost_multiplier: float = 1.0) -> int:
    """Paced base XP, then research XP percent, then any active shop boost."""
    xp = energy_model.scale_xp_reward(base_xp)
    if permanent_percent:
        xp = round_half_up(xp * (1 + permanent_percent / 100))
    if boost_multiplier != 1.0:
        xp = round_half_up(xp * boost_multiplier)
    return xp


def _stats(player: PlayerProgressModel) -> adventure_model.PlayerStats:
    return adventure_model.PlayerStats(strength=player.strength, stamina=player.stamina, mobility=player.mobility)


def _attempt_payload(attempt: AdventureAttemptModel) -> AdventureAttemptPayload:
    stats = attempt.stat_gains or {}
    return AdventureAttemptPayload(
        attempt_id=attempt.id,
        adventure_id=attempt.adventure_id,
        status=attempt.status,
        success=attempt.success,
        energy_spent=attempt.energy_spent,
        attempted_at=as_utc(attempt.attempted_at),
        completed_at=as_utc(attempt.completed_at),
        claimed_at=as_utc(attempt.claimed_at) if attempt.claimed_at else None,
        xp_gained=attempt.xp_gained,
        cash_gained=attempt.cash_gained,
        stat_gains=StatsPayload(**{stat: stats.get(stat, 0) for stat in STAT_NAMES}),
        bonus_reward_triggered=attempt.bonus_reward_triggered,
        xp_paid=attempt.xp_paid,
        cash_paid=attempt.cash_paid,
    )


__all__ = ["ActionContext", "GameService", "scale_workout_xp"]
