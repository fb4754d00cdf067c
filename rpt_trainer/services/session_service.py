import math
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timedelta
from enum import Enum

import structlog

from ..config import get_settings
from ..exceptions import (
    ExerciseNotFoundException,
    InvalidSetDataException,
    SessionClosedException,
    SetNotFoundException,
    StorageException,
    ValidationException,
    WorkoutAppException,
)
from ..repositories.workouts_repository import WorkoutRepository
from ..schemas.exercise import Exercise
from ..schemas.workout import ExerciseSet, Workout, utcnow
from ..workout_calculation import drop_percentage_for, round_to_nearest_increment
from .feedback import FeedbackSink, LoggingFeedbackSink, notify
from .rest_timer import RestTimer
from .settings_service import SettingsProvider
from .workout_state_service import WorkoutStateService

logger = structlog.get_logger(__name__)

NEW_SET_REPS = 8
MAX_SUGGESTED_REPS = 15


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    DISCARDED = "discarded"


def project_sets(
    sets: Iterable[ExerciseSet],
    keep_order: Sequence[Exercise] | None = None,
) -> tuple[list[Exercise], dict[str, list[ExerciseSet]]]:
    """Group sets by exercise and decide the exercise order.

    Without ``keep_order`` exercises are ordered by their earliest
    ``completed_at``, ties going to whichever appears first in ``sets``.
    With ``keep_order`` that order is kept, exercises that no longer have
    sets are dropped and new ones are appended in the same earliest-first
    order. Sets without an exercise are left out.
    """
    groups: dict[str, list[ExerciseSet]] = {}
    exercises: dict[str, Exercise] = {}
    earliest: dict[str, datetime] = {}
    for workout_set in sets:
        if workout_set.exercise is None:
            continue
        exercise_id = workout_set.exercise.id
        groups.setdefault(exercise_id, []).append(workout_set)
        exercises.setdefault(exercise_id, workout_set.exercise)
        if exercise_id not in earliest or workout_set.completed_at < earliest[exercise_id]:
            earliest[exercise_id] = workout_set.completed_at

    for exercise_sets in groups.values():
        exercise_sets.sort(key=lambda s: s.completed_at)

    chronological = sorted(exercises, key=lambda exercise_id: earliest[exercise_id])
    if keep_order is None:
        order_ids = chronological
    else:
        order_ids = []
        for exercise in keep_order:
            if exercise.id in groups and exercise.id not in order_ids:
                order_ids.append(exercise.id)
        kept = set(order_ids)
        order_ids.extend(exercise_id for exercise_id in chronological if exercise_id not in kept)

    return [exercises[exercise_id] for exercise_id in order_ids], {
        exercise_id: groups[exercise_id] for exercise_id in order_ids
    }


class SessionService:
    """Live editing of one workout.

    Every mutation updates ``workout.sets``, re-derives the exercise
    grouping without reshuffling the current order and then saves through
    the repository. A failed save is recorded in ``last_error`` and the
    in-memory edit is kept; calling ``save()`` again retries it.

    Strict operations raise ``WorkoutAppException`` subclasses. Their
    ``*_safely`` twins record the error instead and return ``False``, also
    when the edit itself worked but could not be saved.
    """

    def __init__(
        self,
        workout: Workout,
        repository: WorkoutRepository,
        state: WorkoutStateService,
        settings: SettingsProvider,
        *,
        feedback: FeedbackSink | None = None,
        rest_timer: RestTimer | None = None,
        clock: Callable[[], datetime] | None = None,
        weight_increment: int | None = None,
    ):
        self.workout = workout
        self.repository = repository
        self.state = state
        self.settings = settings
        self.feedback = feedback if feedback is not None else LoggingFeedbackSink()
        self.rest_timer = rest_timer or RestTimer(on_finished=lambda: notify(self.feedback, "rest_timer_finished"))
        self.weight_increment = weight_increment or get_settings().WEIGHT_INCREMENT
        self._clock = clock or utcnow
        self._last_stamp: datetime | None = None

        self.status = SessionStatus.ACTIVE
        self.last_error: WorkoutAppException | None = None
        self.current_rest_duration = settings.rest_timer_duration
        self.completed_exercises: set[str] = set()
        self._last_persist_ok = True
        self._delete_pending = False
        self.logger = logger.bind(workout_id=workout.id)

        self.exercise_order, self.exercise_groups = project_sets(workout.sets)
        self.expanded_exercises: set[str] = {exercise.id for exercise in self.exercise_order}

        self._prefill_from_history()

    # -- derived state ---------------------------------------------------

    @property
    def is_closed(self) -> bool:
        return self.status != SessionStatus.ACTIVE

    @property
    def has_sets(self) -> bool:
        return bool(self.workout.sets)

    @property
    def rest_timer_active(self) -> bool:
        return self.rest_timer.active

    @property
    def all_exercises_completed(self) -> bool:
        if not self.exercise_order:
            return False
        return all(exercise.id in self.completed_exercises for exercise in self.exercise_order)

    @property
    def error_message(self) -> str | None:
        return self.last_error.detail if self.last_error is not None else None

    def sets_for(self, exercise: Exercise) -> list[ExerciseSet]:
        return list(self.exercise_groups.get(exercise.id, []))

    def is_completed(self, exercise: Exercise) -> bool:
        return exercise.id in self.completed_exercises

    def is_expanded(self, exercise: Exercise) -> bool:
        return exercise.id in self.expanded_exercises

    def recompute(self, maintain_order: bool = True) -> None:
        keep_order = self.exercise_order if maintain_order else None
        self.exercise_order, self.exercise_groups = project_sets(self.workout.sets, keep_order)
        present = set(self.exercise_groups)
        self.expanded_exercises &= present
        self.completed_exercises &= present

    # -- internals ---------------------------------------------------------

    def _now(self) -> datetime:
        # Strictly increasing so sets stamped in one call never tie
        now = self._clock()
        if self._last_stamp is not None and now <= self._last_stamp:
            now = self._last_stamp + timedelta(microseconds=1)
        self._last_stamp = now
        return now

    def _ensure_open(self) -> None:
        if self.is_closed:
            raise SessionClosedException(self.workout.id)

    def _record(self, exc: WorkoutAppException) -> None:
        self.last_error = exc
        self.logger.warning("session_error", error=exc.detail, error_type=type(exc).__name__)

    def _persist(self, action: str) -> bool:
        try:
            self.repository.save(self.workout)
        except StorageException as exc:
            self._last_persist_ok = False
            self._record(exc)
            return False
        self.logger.debug("session_persisted", action=action, sets=len(self.workout.sets))
        return True

    def _find_set(self, workout_set: ExerciseSet) -> ExerciseSet:
        for candidate in self.workout.sets:
            if candidate.id == workout_set.id:
                return candidate
        raise SetNotFoundException(workout_set.id)

    def _slots(self, exercise: Exercise) -> list[ExerciseSet]:
        # Slot order is insertion order; completed_at moves when a set first gets a weight
        return [s for s in self.workout.sets if s.exercise_id == exercise.id]

    def _safely(self, operation: Callable[..., object], *args, **kwargs) -> bool:
        self._last_persist_ok = True
        try:
            operation(*args, **kwargs)
        except WorkoutAppException as exc:
            self._record(exc)
            return False
        return self._last_persist_ok

    def _update_state(self, update: Callable[..., None]) -> bool:
        try:
            update(self.workout.id)
        except StorageException as exc:
            self._record(exc)
            return False
        return True

    def _prefill_from_history(self) -> None:
        """Copy weights of the last real session into a freshly started template workout."""
        if self.workout.started_from_template is None:
            return
        if not any(workout_set.weight == 0 for workout_set in self.workout.sets):
            return

        changed = False
        for exercise in self.exercise_order:
            try:
                history = self.repository.history(exercise)
            except StorageException as exc:
                self._record(exc)
                return
            previous_sets = next(
                (
                    exercise_sets
                    for past_workout, exercise_sets in history
                    if past_workout.id != self.workout.id and any(s.weight > 0 for s in exercise_sets)
                ),
                None,
            )
            if previous_sets is None:
                continue
            for current, previous in zip(self._slots(exercise), previous_sets):
                if current.weight != 0:
                    continue
                current.weight = previous.weight
                if current.reps == 0:
                    current.reps = previous.reps
                current.rpe = previous.rpe
                changed = True

        if changed:
            self.logger.info("session_prefilled_from_history", template=self.workout.started_from_template)
            self._persist("prefill")

    # -- set and exercise editing --------------------------------------------

    def add_exercise(self, exercise: Exercise) -> ExerciseSet:
        self._ensure_open()
        is_new = exercise.id not in self.exercise_groups
        new_set = self.workout.add_set(exercise, weight=0, reps=NEW_SET_REPS, completed_at=self._now())
        self.recompute()
        if is_new:
            self.expanded_exercises.add(exercise.id)
        self._persist("add_exercise")
        return new_set

    def add_set(self, exercise: Exercise) -> ExerciseSet:
        """Append the next RPT set, dropping weight from the first set by the configured table.

        The drop is looked up with the number of sets that already exist, so
        the second set uses ``drops[1]``. Slot 1 is the exercise's first set
        in insertion order.
        """
        self._ensure_open()
        existing = self._slots(exercise)
        weight: float = 0
        reps = NEW_SET_REPS
        if existing:
            drop = drop_percentage_for(len(existing), self.settings.default_rpt_percentage_drops)
            weight = round_to_nearest_increment(existing[0].weight * (1.0 - drop), self.weight_increment)
            reps = min(existing[-1].reps + 2, MAX_SUGGESTED_REPS)

        new_set = self.workout.add_set(exercise, weight=weight, reps=reps, completed_at=self._now())
        self.recompute()
        if not existing:
            self.expanded_exercises.add(exercise.id)
        self._persist("add_set")
        return new_set

    def update_set(self, workout_set: ExerciseSet, weight: float, reps: int, rpe: int | None = None) -> ExerciseSet:
        self._ensure_open()
        if weight is None or math.isnan(weight) or weight < 0:
            raise InvalidSetDataException(f"Weight must be zero or more, got {weight}")
        if reps is None or reps < 0 or int(reps) != reps:
            raise InvalidSetDataException(f"Reps must be a whole number of zero or more, got {reps}")
        if rpe is not None and not 1 <= rpe <= 10:
            raise InvalidSetDataException(f"RPE must be between 1 and 10, got {rpe}")

        live = self._find_set(workout_set)
        first_weighted = live.weight == 0 and weight > 0
        live.weight = weight
        live.reps = int(reps)
        live.rpe = rpe
        if first_weighted:
            live.completed_at = self._now()

        self._persist("update_set")
        self.recompute()
        if weight > 0:
            notify(self.feedback, "set_completed")
        return live

    def delete_set(self, workout_set: ExerciseSet) -> None:
        self._ensure_open()
        if workout_set.exercise is None:
            raise ExerciseNotFoundException()
        live = self._find_set(workout_set)
        self.workout.sets.remove(live)
        self.recompute()
        self._persist("delete_set")

    def delete_exercise(self, exercise: Exercise) -> None:
        self._ensure_open()
        if exercise.id not in self.exercise_groups:
            raise ExerciseNotFoundException(exercise.name)
        self.workout.sets[:] = [s for s in self.workout.sets if s.exercise_id != exercise.id]
        self.recompute()
        self._persist("delete_exercise")

    def propagate_drop_sets(
        self,
        exercise: Exercise,
        first_set_weight: float,
        first_set: ExerciseSet | None = None,
    ) -> list[ExerciseSet]:
        """Recompute every later slot of ``exercise`` from the first set's weight.

        ``first_set`` names the set that was edited; without it the first set
        added for the exercise is slot 1, even after ``update_set`` re-stamped
        it. Reps and RPE are kept.
        """
        self._ensure_open()
        if exercise.id not in self.exercise_groups:
            raise ExerciseNotFoundException(exercise.name)
        exercise_sets = self._slots(exercise)
        if first_set_weight <= 0 or len(exercise_sets) < 2:
            return []

        first_id = first_set.id if first_set is not None else exercise_sets[0].id
        later_sets = [s for s in exercise_sets if s.id != first_id]
        drops = self.settings.default_rpt_percentage_drops
        updated = []
        for slot_index, workout_set in enumerate(later_sets, start=1):
            drop = drop_percentage_for(slot_index, drops)
            weight = round_to_nearest_increment(first_set_weight * (1.0 - drop), self.weight_increment)
            updated.append(self.update_set(workout_set, weight, workout_set.reps, workout_set.rpe))
        return updated

    def toggle_completion(self, exercise: Exercise) -> bool:
        if exercise.id not in self.exercise_groups:
            raise ExerciseNotFoundException(exercise.name)
        if exercise.id in self.completed_exercises:
            self.completed_exercises.discard(exercise.id)
            return False
        self.completed_exercises.add(exercise.id)
        return True

    def toggle_expansion(self, exercise: Exercise) -> bool:
        if exercise.id not in self.exercise_groups:
            raise ExerciseNotFoundException(exercise.name)
        if exercise.id in self.expanded_exercises:
            self.expanded_exercises.discard(exercise.id)
            return False
        self.expanded_exercises.add(exercise.id)
        return True

    def rename(self, name: str) -> None:
        self._ensure_open()
        name = name.strip()
        if not name or len(name) > 255:
            raise ValidationException("Workout name must be between 1 and 255 characters")
        self.workout.name = name
        self._persist("rename")

    def add_exercise_safely(self, exercise: Exercise) -> bool:
        return self._safely(self.add_exercise, exercise)

    def add_set_safely(self, exercise: Exercise) -> bool:
        return self._safely(self.add_set, exercise)

    def update_set_safely(self, workout_set: ExerciseSet, weight: float, reps: int, rpe: int | None = None) -> bool:
        return self._safely(self.update_set, workout_set, weight, reps, rpe)

    def delete_set_safely(self, workout_set: ExerciseSet) -> bool:
        return self._safely(self.delete_set, workout_set)

    def delete_exercise_safely(self, exercise: Exercise) -> bool:
        return self._safely(self.delete_exercise, exercise)

    def propagate_drop_sets_safely(
        self,
        exercise: Exercise,
        first_set_weight: float,
        first_set: ExerciseSet | None = None,
    ) -> bool:
        return self._safely(self.propagate_drop_sets, exercise, first_set_weight, first_set)

    def rename_safely(self, name: str) -> bool:
        return self._safely(self.rename, name)

    # -- rest timer ------------------------------------------------------------

    def start_rest_timer(self) -> None:
        self._ensure_open()
        # Read at start time so a settings change applies to the next rest
        self.current_rest_duration = self.settings.rest_timer_duration
        self.rest_timer.start(self.current_rest_duration)

    def cancel_rest_timer(self) -> None:
        self.rest_timer.cancel()

    # -- lifecycle -------------------------------------------------------------

    def save(self) -> bool:
        if self.status == SessionStatus.DISCARDED:
            self._record(SessionClosedException(self.workout.id))
            return False
        try:
            self.repository.save(self.workout)
        except StorageException as exc:
            self._record(exc)
            return False
        self.last_error = None
        return self._update_state(self.state.mark_saved)

    def complete(self) -> bool:
        if self.status == SessionStatus.COMPLETED:
            return True
        if self.status == SessionStatus.DISCARDED:
            self._record(SessionClosedException(self.workout.id))
            return False

        self.rest_timer.cancel()
        try:
            self.repository.complete(self.workout)
        except StorageException as exc:
            self._record(exc)
            return False
        self.status = SessionStatus.COMPLETED
        self.last_error = None
        self.logger.info("session_completed", sets=len(self.workout.sets), volume=self.workout.total_volume)
        notify(self.feedback, "workout_completed")
        return self._update_state(self.state.mark_saved)

    def discard(self) -> bool:
        if self.status == SessionStatus.COMPLETED:
            self._record(SessionClosedException(self.workout.id))
            return False
        if self.status == SessionStatus.DISCARDED and not self._delete_pending:
            return True

        state_ok = True
        if self.status == SessionStatus.ACTIVE:
            self.rest_timer.cancel()
            self.status = SessionStatus.DISCARDED
            # Recorded before the delete so other screens stop offering it even if the delete fails
            state_ok = self._update_state(self.state.mark_discarded)

        try:
            self.repository.delete(self.workout)
        except StorageException as exc:
            self._delete_pending = True
            self._record(exc)
            return False
        self._delete_pending = False
        self.logger.info("session_discarded")
        return state_ok

    def clear_error(self) -> None:
        self.last_error = None
