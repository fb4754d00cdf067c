from datetime import datetime, timedelta

import pytest

from rpt_trainer.exceptions import ExerciseNotEditableException, NotFoundException, ValidationException
from rpt_trainer.repositories.exercise_repository import SqlAlchemyExerciseRepository
from rpt_trainer.schemas import ExerciseCategory, ExerciseCreate, MuscleGroup, Workout
from rpt_trainer.services.exercise_service import ExerciseService


@pytest.fixture()
def exercise_service(db):
    return ExerciseService(SqlAlchemyExerciseRepository(db))


def test_builtin_catalog_is_seeded_once(exercise_service):
    assert exercise_service.ensure_builtin_exercises() == 16
    assert exercise_service.ensure_builtin_exercises() == 0

    exercises = exercise_service.fetch_all()
    assert len(exercises) == 16
    assert not any(exercise.is_custom for exercise in exercises)


def test_fetch_all_is_sorted_by_name(exercise_service, exercises):
    names = [exercise.name for exercise in exercise_service.fetch_all()]

    assert names == sorted(names)


def test_fetch_by_category_and_muscle_group(exercise_service, exercises):
    bodyweight = exercise_service.fetch_by_category(ExerciseCategory.BODYWEIGHT)
    lower_back = exercise_service.fetch_by_muscle_group(MuscleGroup.LOWER_BACK)

    assert [e.name for e in bodyweight] == ["Body Weight Squat", "Lunge", "Push-up"]
    assert [e.name for e in lower_back] == ["Barbell Squat"]


def test_fetch_by_name(exercise_service, exercises):
    deadlift = exercise_service.fetch_by_name("Deadlift")

    assert deadlift.primary_muscle_groups == [MuscleGroup.BACK, MuscleGroup.HAMSTRINGS]
    assert exercise_service.fetch_by_name("Nope") is None


def test_add_custom_exercise(exercise_service, exercises):
    created = exercise_service.add_custom_exercise(
        ExerciseCreate(
            name="Landmine Press",
            category=ExerciseCategory.COMPOUND,
            primary_muscle_groups=[MuscleGroup.SHOULDERS],
        )
    )

    assert created.is_custom
    assert exercise_service.get_exercise(created.id).name == "Landmine Press"


def test_duplicate_names_are_rejected(exercise_service, exercises):
    with pytest.raises(ValidationException):
        exercise_service.add_custom_exercise(ExerciseCreate(name="Deadlift", category=ExerciseCategory.COMPOUND))


def test_builtin_exercises_are_read_only(exercise_service, bench):
    with pytest.raises(ExerciseNotEditableException):
        exercise_service.update_exercise(bench.id, ExerciseCreate(name="Bench", category=ExerciseCategory.COMPOUND))
    with pytest.raises(ExerciseNotEditableException):
        exercise_service.delete_exercise(bench.id)
    assert exercise_service.fetch_by_name("Barbell Bench Press") is not None


def test_update_custom_exercise(exercise_service, exercises):
    created = exercise_service.add_custom_exercise(ExerciseCreate(name="Zercher", category=ExerciseCategory.OTHER))

    exercise_service.update_exercise(
        created.id,
        ExerciseCreate(name="Zercher Squat", category=ExerciseCategory.COMPOUND, instructions="Bar in elbows."),
    )

    updated = exercise_service.get_exercise(created.id)
    assert updated.name == "Zercher Squat"
    assert updated.category == ExerciseCategory.COMPOUND
    assert updated.is_custom


def test_update_to_taken_name_is_rejected(exercise_service, exercises):
    created = exercise_service.add_custom_exercise(ExerciseCreate(name="Zercher", category=ExerciseCategory.OTHER))

    with pytest.raises(ValidationException):
        exercise_service.update_exercise(created.id, ExerciseCreate(name="Deadlift", category=ExerciseCategory.OTHER))


def test_missing_exercise(exercise_service):
    with pytest.raises(NotFoundException):
        exercise_service.get_exercise("missing")
    with pytest.raises(NotFoundException):
        exercise_service.delete_exercise("missing")


def test_most_used_exercises(exercise_service, workout_repository, bench, squat, deadlift):
    start = datetime(2026, 2, 1, 9, 0)
    workout = Workout(name="Mixed", date=start)
    for offset, exercise in enumerate([bench, squat, bench, bench, squat, deadlift]):
        workout.add_set(exercise, weight=100, reps=5, completed_at=start + timedelta(minutes=offset))
    workout_repository.add_workout(workout)

    assert [e.name for e in exercise_service.most_used_exercises()] == [
        "Barbell Bench Press",
        "Barbell Squat",
        "Deadlift",
    ]
    assert [e.name for e in exercise_service.most_used_exercises(limit=1)] == ["Barbell Bench Press"]
