import structlog

from ..exceptions import ExerciseNotEditableException, NotFoundException, ValidationException
from ..repositories.exercise_repository import SqlAlchemyExerciseRepository
from ..schemas.exercise import Exercise, ExerciseCategory, ExerciseCreate, MuscleGroup

logger = structlog.get_logger(__name__)

C = ExerciseCategory
M = MuscleGroup

BUILTIN_EXERCISES: list[ExerciseCreate] = [
    ExerciseCreate(
        name="Barbell Bench Press",
        category=C.COMPOUND,
        primary_muscle_groups=[M.CHEST],
        secondary_muscle_groups=[M.TRICEPS, M.SHOULDERS],
        instructions="Lie on a bench and press the barbell from chest to full extension.",
    ),
    ExerciseCreate(
        name="Barbell Squat",
        category=C.COMPOUND,
        primary_muscle_groups=[M.QUADRICEPS],
        secondary_muscle_groups=[M.GLUTES, M.HAMSTRINGS, M.LOWER_BACK],
        instructions="Place bar on upper back, squat down until thighs are parallel to floor, then stand up.",
    ),
    ExerciseCreate(
        name="Deadlift",
        category=C.COMPOUND,
        primary_muscle_groups=[M.BACK, M.HAMSTRINGS],
        secondary_muscle_groups=[M.GLUTES, M.QUADRICEPS, M.TRAPS, M.FOREARMS],
        instructions="Bend at hips and knees to grab bar, then stand up straight while keeping back flat.",
    ),
    ExerciseCreate(
        name="Overhead Press",
        category=C.COMPOUND,
        primary_muscle_groups=[M.SHOULDERS],
        secondary_muscle_groups=[M.TRICEPS, M.TRAPS],
        instructions="Press barbell from shoulders to overhead with straight arms.",
    ),
    ExerciseCreate(
        name="Pull-up",
        category=C.COMPOUND,
        primary_muscle_groups=[M.BACK],
        secondary_muscle_groups=[M.BICEPS, M.SHOULDERS],
        instructions="Hang from bar and pull yourself up until chin is over the bar.",
    ),
    ExerciseCreate(
        name="Barbell Row",
        category=C.COMPOUND,
        primary_muscle_groups=[M.BACK],
        secondary_muscle_groups=[M.BICEPS, M.SHOULDERS, M.TRAPS],
        instructions="Bend at hips with back flat, pull barbell to lower chest.",
    ),
    ExerciseCreate(
        name="Dip",
        category=C.COMPOUND,
        primary_muscle_groups=[M.CHEST, M.TRICEPS],
        secondary_muscle_groups=[M.SHOULDERS],
        instructions="Support yourself on parallel bars, lower body until upper arms are parallel to floor, then push up.",
    ),
    ExerciseCreate(
        name="Bicep Curl",
        category=C.ISOLATION,
        primary_muscle_groups=[M.BICEPS],
        secondary_muscle_groups=[M.FOREARMS],
        instructions="Curl weight from full extension to full flexion.",
    ),
    ExerciseCreate(
        name="Tricep Extension",
        category=C.ISOLATION,
        primary_muscle_groups=[M.TRICEPS],
        instructions="Extend arms from flexed position to straight position.",
    ),
    ExerciseCreate(
        name="Leg Extension",
        category=C.ISOLATION,
        primary_muscle_groups=[M.QUADRICEPS],
        instructions="Extend knees from 90 degrees to full extension.",
    ),
    ExerciseCreate(
        name="Leg Curl",
        category=C.ISOLATION,
        primary_muscle_groups=[M.HAMSTRINGS],
        instructions="Curl legs from straight position to full flexion.",
    ),
    ExerciseCreate(
        name="Lateral Raise",
        category=C.ISOLATION,
        primary_muscle_groups=[M.SHOULDERS],
        instructions="Raise arms out to sides until parallel with floor.",
    ),
    ExerciseCreate(
        name="Calf Raise",
        category=C.ISOLATION,
        primary_muscle_groups=[M.CALVES],
        instructions="Raise heels off ground by extending ankles.",
    ),
    ExerciseCreate(
        name="Push-up",
        category=C.BODYWEIGHT,
        primary_muscle_groups=[M.CHEST],
        secondary_muscle_groups=[M.TRICEPS, M.SHOULDERS],
        instructions="Lower body to ground and push back up with arms.",
    ),
    ExerciseCreate(
        name="Body Weight Squat",
        category=C.BODYWEIGHT,
        primary_muscle_groups=[M.QUADRICEPS],
        secondary_muscle_groups=[M.GLUTES, M.HAMSTRINGS],
        instructions="Squat down until thighs are parallel to floor, then stand up.",
    ),
    ExerciseCreate(
        name="Lunge",
        category=C.BODYWEIGHT,
        primary_muscle_groups=[M.QUADRICEPS],
        secondary_muscle_groups=[M.GLUTES, M.HAMSTRINGS],
        instructions="Step forward and lower body until both knees are at 90 degrees, then push back up.",
    ),
]


class ExerciseService:
    def __init__(self, repository: SqlAlchemyExerciseRepository):
        self.repository = repository

    def ensure_builtin_exercises(self) -> int:
        """Insert the builtin catalog into an empty exercise table. Returns how many were added."""
        if self.repository.count() > 0:
            return 0
        exercises = [Exercise(**data.model_dump(), is_custom=False) for data in BUILTIN_EXERCISES]
        self.repository.add_many(exercises)
        logger.info("builtin_exercises_seeded", count=len(exercises))
        return len(exercises)

    def fetch_all(self) -> list[Exercise]:
        return self.repository.list_exercises()

    def fetch_by_name(self, name: str) -> Exercise | None:
        return self.repository.get_by_name(name)

    def get_exercise(self, exercise_id: str) -> Exercise:
        exercise = self.repository.get_exercise(exercise_id)
        if exercise is None:
            raise NotFoundException(f"Exercise with id={exercise_id} not found")
        return exercise

    def fetch_by_category(self, category: ExerciseCategory) -> list[Exercise]:
        return [exercise for exercise in self.fetch_all() if exercise.category == category]

    def fetch_by_muscle_group(self, muscle_group: MuscleGroup) -> list[Exercise]:
        return [exercise for exercise in self.fetch_all() if exercise.targets(muscle_group)]

    def add_custom_exercise(self, data: ExerciseCreate) -> Exercise:
        if self.repository.get_by_name(data.name) is not None:
            raise ValidationException(f"Exercise '{data.name}' already exists")
        exercise = Exercise(**data.model_dump(), is_custom=True)
        self.repository.add(exercise)
        logger.info("custom_exercise_created", exercise_id=exercise.id, name=exercise.name)
        return exercise

    def update_exercise(self, exercise_id: str, data: ExerciseCreate) -> Exercise:
        exercise = self.get_exercise(exercise_id)
        if not exercise.is_custom:
            raise ExerciseNotEditableException(exercise.name)
        clash = self.repository.get_by_name(data.name)
        if clash is not None and clash.id != exercise.id:
            raise ValidationException(f"Exercise '{data.name}' already exists")
        updated = exercise.model_copy(update=data.model_dump())
        return self.repository.update(updated)

    def delete_exercise(self, exercise_id: str) -> None:
        """Delete a custom exercise. Sets that used it keep existing without an exercise."""
        exercise = self.get_exercise(exercise_id)
        if not exercise.is_custom:
            raise ExerciseNotEditableException(exercise.name)
        self.repository.delete(exercise.id)
        logger.info("custom_exercise_deleted", exercise_id=exercise.id, name=exercise.name)

    def most_used_exercises(self, limit: int = 5) -> list[Exercise]:
        usage = self.repository.usage_counts()
        used = [exercise for exercise in self.fetch_all() if usage.get(exercise.id, 0) > 0]
        # fetch_all is name-sorted, so equal counts stay alphabetical
        used.sort(key=lambda exercise: usage[exercise.id], reverse=True)
        return used[:limit]
