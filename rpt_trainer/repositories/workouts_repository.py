from datetime import datetime
from typing import Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from .. import models
from ..schemas.exercise import Exercise
from ..schemas.workout import ExerciseSet, Workout
from .base import SqlAlchemyRepository

logger = structlog.get_logger(__name__)


class WorkoutRepository(Protocol):
    def create_workout(self, name: str = "Workout", from_template: str | None = None) -> Workout: ...

    def add_workout(self, workout: Workout) -> Workout: ...

    def save(self, workout: Workout) -> None: ...

    def delete(self, workout: Workout) -> None: ...

    def complete(self, workout: Workout) -> None: ...

    def get_workout(self, workout_id: str) -> Workout | None: ...

    def recent_workouts(self, limit: int = 10) -> list[Workout]: ...

    def incomplete_workouts(self) -> list[Workout]: ...

    def workouts_between(self, start: datetime, end: datetime) -> list[Workout]: ...

    def history(self, exercise: Exercise) -> list[tuple[Workout, list[ExerciseSet]]]: ...


class SqlAlchemyWorkoutRepository(SqlAlchemyRepository):
    """Workouts stored as ORM rows; callers only ever see detached pydantic copies."""

    def _query(self):
        return select(models.Workout).options(selectinload(models.Workout.sets))

    def _write(self, workout: Workout) -> None:
        db_workout = self.db.get(models.Workout, workout.id)
        if db_workout is None:
            db_workout = models.Workout(id=workout.id)
            self.db.add(db_workout)

        db_workout.date = workout.date
        db_workout.name = workout.name
        db_workout.notes = workout.notes
        db_workout.duration = workout.duration
        db_workout.is_completed = workout.is_completed
        db_workout.started_from_template = workout.started_from_template

        existing = {db_set.id: db_set for db_set in db_workout.sets}
        db_sets = []
        for position, workout_set in enumerate(workout.sets):
            db_set = existing.pop(workout_set.id, None) or models.ExerciseSet(id=workout_set.id)
            db_set.position = position
            db_set.weight = workout_set.weight
            db_set.reps = workout_set.reps
            db_set.completed_at = workout_set.completed_at
            db_set.is_warmup = workout_set.is_warmup
            db_set.rpe = workout_set.rpe
            db_set.notes = workout_set.notes
            db_set.exercise_id = workout_set.exercise_id
            db_sets.append(db_set)
        # Sets missing from the list are orphans and get deleted on flush
        db_workout.sets = db_sets

    def create_workout(self, name: str = "Workout", from_template: str | None = None) -> Workout:
        workout = Workout(name=name, started_from_template=from_template)
        return self.add_workout(workout)

    def add_workout(self, workout: Workout) -> Workout:
        with self._transaction("create workout"):
            self._write(workout)
        logger.info("workout_created", workout_id=workout.id, template=workout.started_from_template)
        return workout

    def save(self, workout: Workout) -> None:
        with self._transaction("save workout"):
            self._write(workout)

    def delete(self, workout: Workout) -> None:
        with self._transaction("delete workout") as db:
            db_workout = db.get(models.Workout, workout.id)
            if db_workout is not None:
                db.delete(db_workout)

    def complete(self, workout: Workout) -> None:
        workout.complete()
        self.save(workout)
        logger.info("workout_completed", workout_id=workout.id, duration=workout.duration)

    def get_workout(self, workout_id: str) -> Workout | None:
        with self._transaction("load workout") as db:
            db_workout = db.execute(self._query().where(models.Workout.id == workout_id)).scalars().first()
            return Workout.model_validate(db_workout) if db_workout is not None else None

    def recent_workouts(self, limit: int = 10) -> list[Workout]:
        query = self._query().order_by(models.Workout.date.desc()).limit(limit)
        with self._transaction("load recent workouts") as db:
            return [Workout.model_validate(row) for row in db.execute(query).scalars().all()]

    def incomplete_workouts(self) -> list[Workout]:
        query = self._query().where(models.Workout.is_completed.is_(False)).order_by(models.Workout.date.desc())
        with self._transaction("load incomplete workouts") as db:
            return [Workout.model_validate(row) for row in db.execute(query).scalars().all()]

    def workouts_between(self, start: datetime, end: datetime) -> list[Workout]:
        query = (
            self._query()
            .where(models.Workout.date >= start, models.Workout.date <= end)
            .order_by(models.Workout.date.asc())
        )
        with self._transaction("load workouts") as db:
            return [Workout.model_validate(row) for row in db.execute(query).scalars().all()]

    def history(self, exercise: Exercise) -> list[tuple[Workout, list[ExerciseSet]]]:
        query = (
            self._query()
            .where(models.Workout.sets.any(models.ExerciseSet.exercise_id == exercise.id))
            .order_by(models.Workout.date.desc())
        )
        with self._transaction("load exercise history") as db:
            workouts = [Workout.model_validate(row) for row in db.execute(query).scalars().all()]

        entries = []
        for workout in workouts:
            exercise_sets = sorted(
                (s for s in workout.sets if s.exercise_id == exercise.id),
                key=lambda s: s.completed_at,
            )
            entries.append((workout, exercise_sets))
        return entries
