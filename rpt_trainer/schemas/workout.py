import math
from datetime import UTC, datetime, timedelta

from pydantic import BaseModel, ConfigDict, Field

from ..workout_calculation import round_to_nearest_increment
from .exercise import Exercise, new_id


def utcnow() -> datetime:
    # Stored naive; the SQLite DateTime column drops tzinfo anyway
    return datetime.now(UTC).replace(tzinfo=None)


class ExerciseSet(BaseModel):
    id: str = Field(default_factory=new_id)
    weight: float = Field(0.0, ge=0)
    reps: int = Field(0, ge=0)
    completed_at: datetime = Field(default_factory=utcnow)
    is_warmup: bool = False
    rpe: int | None = Field(None, ge=1, le=10)
    notes: str = ""
    exercise: Exercise | None = None

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    @property
    def exercise_id(self) -> str | None:
        return self.exercise.id if self.exercise is not None else None

    @property
    def volume(self) -> float:
        return self.weight * self.reps

    def __repr__(self):
        return f"<ExerciseSet(id={self.id}, exercise_id={self.exercise_id}, weight={self.weight}, reps={self.reps})>"


class Workout(BaseModel):
    id: str = Field(default_factory=new_id)
    date: datetime = Field(default_factory=utcnow)
    name: str = Field("Workout", max_length=255)
    notes: str = ""
    duration: float = Field(0.0, ge=0)
    is_completed: bool = False
    started_from_template: str | None = None
    sets: list[ExerciseSet] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    @property
    def exercises(self) -> dict[str, Exercise]:
        """Distinct exercises referenced by the sets, keyed by id in first-seen order."""
        result: dict[str, Exercise] = {}
        for workout_set in self.sets:
            if workout_set.exercise is not None:
                result.setdefault(workout_set.exercise.id, workout_set.exercise)
        return result

    @property
    def exercise_count(self) -> int:
        return len(self.exercises)

    @property
    def total_volume(self) -> float:
        # Warmups are counted here but not in working_sets_count
        return sum(workout_set.weight * workout_set.reps for workout_set in self.sets)

    @property
    def working_sets_count(self) -> int:
        return sum(1 for workout_set in self.sets if not workout_set.is_warmup)

    @property
    def exercise_groups(self) -> dict[str, list[ExerciseSet]]:
        ordered = sorted(self.sets, key=lambda s: s.completed_at)
        groups: dict[str, list[ExerciseSet]] = {}
        for workout_set in ordered:
            if workout_set.exercise is None:
                continue
            groups.setdefault(workout_set.exercise.id, []).append(workout_set)
        return groups

    @property
    def best_sets(self) -> dict[str, ExerciseSet]:
        """Heaviest set per exercise; the earliest one wins a tie."""
        result: dict[str, ExerciseSet] = {}
        for exercise_id, exercise_sets in self.exercise_groups.items():
            best = exercise_sets[0]
            for workout_set in exercise_sets[1:]:
                if workout_set.weight > best.weight:
                    best = workout_set
            result[exercise_id] = best
        return result

    def add_set(
        self,
        exercise: Exercise,
        weight: float,
        reps: int,
        *,
        is_warmup: bool = False,
        rpe: int | None = None,
        completed_at: datetime | None = None,
    ) -> ExerciseSet:
        new_set = ExerciseSet(
            weight=weight,
            reps=reps,
            exercise=exercise,
            is_warmup=is_warmup,
            rpe=rpe,
            completed_at=completed_at or utcnow(),
        )
        self.sets.append(new_set)
        return new_set

    def complete(self, now: datetime | None = None) -> None:
        self.is_completed = True
        if self.duration == 0:
            elapsed = ((now or utcnow()) - self.date).total_seconds()
            self.duration = max(elapsed, 0.0)

    def create_follow_up_workout(self, percentage_increase: float = 0.025, increment: int = 5) -> "Workout":
        """Build an unsaved workout with the same exercises and progressed weights.

        Only the first slot of each exercise is increased by
        ``percentage_increase``. Later slots keep the relative drop they had
        from the original first slot, re-applied to the new first-slot weight.
        Sets sharing a ``completed_at`` timestamp count as one slot.
        """
        follow_up = Workout(
            name=f"Follow-up: {self.name}",
            started_from_template=self.started_from_template,
        )
        base_time = utcnow()
        offset = 0
        for exercise_id, exercise_sets in self.exercise_groups.items():
            working_sets = [s for s in exercise_sets if not s.is_warmup]
            if not working_sets:
                continue

            slots: list[ExerciseSet] = []
            seen_times: set[datetime] = set()
            for workout_set in working_sets:
                if workout_set.completed_at in seen_times:
                    continue
                seen_times.add(workout_set.completed_at)
                slots.append(workout_set)

            original_first = slots[0].weight
            new_first = round_to_nearest_increment(original_first * (1.0 + percentage_increase), increment)
            for index, previous in enumerate(slots):
                if index == 0:
                    weight = new_first
                else:
                    if original_first <= 0:
                        continue
                    ratio = previous.weight / original_first
                    weight = round_to_nearest_increment(new_first * ratio, increment)
                follow_up.add_set(
                    previous.exercise,
                    weight=weight,
                    reps=previous.reps,
                    rpe=previous.rpe,
                    completed_at=base_time + timedelta(milliseconds=offset),
                )
                offset += 1
        return follow_up

    def formatted_total_volume(self, unit: str = "lb") -> str:
        volume = self.total_volume
        if math.isclose(volume, round(volume)):
            return f"{int(round(volume))} {unit}"
        return f"{volume:.1f} {unit}"

    def generate_summary(self, unit: str = "lb") -> str:
        exercise_names = sorted(exercise.name for exercise in self.exercises.values())
        lines = [
            f"{self.name} - {self.date.strftime('%b %d, %Y %H:%M')}",
            f"Exercises: {', '.join(exercise_names)}",
            f"Sets: {self.working_sets_count}",
            f"Total Volume: {self.formatted_total_volume(unit)}",
        ]
        if self.notes:
            lines.append(f"Notes: {self.notes}")
        return "\n".join(lines)

    def __repr__(self):
        return f"<Workout(id={self.id}, name='{self.name}', sets={len(self.sets)}, completed={self.is_completed})>"
