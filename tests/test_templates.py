from datetime import datetime, timedelta

import pytest

from rpt_trainer.exceptions import TemplateNotFoundException, ValidationException
from rpt_trainer.repositories.exercise_repository import SqlAlchemyExerciseRepository
from rpt_trainer.repositories.template_repository import SqlAlchemyTemplateRepository
from rpt_trainer.schemas import TemplateExercise, TemplateRepRange, WorkoutTemplateCreate
from rpt_trainer.services.template_service import TemplateService
from rpt_trainer.services.workout_service import WorkoutService


@pytest.fixture()
def template_service(db, exercises):
    return TemplateService(SqlAlchemyTemplateRepository(db), SqlAlchemyExerciseRepository(db))


@pytest.fixture()
def upper_body(template_service):
    template_service.ensure_default_templates()
    return template_service.fetch_by_name("Upper Body RPT")


def test_default_rep_range_rule():
    first = TemplateRepRange.default_for(1)
    tenth = TemplateRepRange.default_for(10)

    assert (first.min_reps, first.max_reps, first.percentage_of_first_set) == (6, 8, 1.0)
    assert (tenth.min_reps, tenth.max_reps, tenth.percentage_of_first_set) == (15, 20, 0.5)


def test_growing_suggested_sets_keeps_existing_ranges():
    exercise = TemplateExercise(
        exercise_name="Barbell Bench Press",
        suggested_sets=3,
        rep_ranges=[
            TemplateRepRange(set_number=1, min_reps=4, max_reps=6, percentage_of_first_set=1.0),
            TemplateRepRange(set_number=2, min_reps=6, max_reps=8, percentage_of_first_set=0.9),
            TemplateRepRange(set_number=3, min_reps=8, max_reps=10, percentage_of_first_set=0.8),
        ],
    )

    exercise.resize(5)

    ranges = exercise.rep_ranges
    assert [r.set_number for r in ranges] == [1, 2, 3, 4, 5]
    assert [(r.min_reps, r.max_reps) for r in ranges[:3]] == [(4, 6), (6, 8), (8, 10)]
    assert [(r.min_reps, r.max_reps) for r in ranges[3:]] == [(12, 14), (14, 16)]
    assert ranges[3].percentage_of_first_set == pytest.approx(0.7)
    assert ranges[4].percentage_of_first_set == pytest.approx(0.6)


def test_shrinking_suggested_sets_drops_ranges():
    exercise = TemplateExercise(exercise_name="Dip", suggested_sets=5)

    exercise.resize(2)

    assert [r.set_number for r in exercise.rep_ranges] == [1, 2]


def test_ranges_are_synced_on_construction():
    exercise = TemplateExercise(
        exercise_name="Dip",
        suggested_sets=2,
        rep_ranges=[
            TemplateRepRange(set_number=4, min_reps=1, max_reps=2),
            TemplateRepRange(set_number=2, min_reps=10, max_reps=12),
            TemplateRepRange(set_number=2, min_reps=3, max_reps=4),
        ],
    )

    assert [(r.set_number, r.min_reps, r.max_reps) for r in exercise.rep_ranges] == [(1, 6, 8), (2, 10, 12)]


def test_resize_below_one_is_rejected():
    with pytest.raises(ValueError):
        TemplateExercise(exercise_name="Dip", suggested_sets=3).resize(0)


def test_default_template_seeded_once(template_service, upper_body):
    assert template_service.ensure_default_templates() == 0
    assert upper_body.notes == "Rest 2-3 minutes between exercises"
    assert [e.exercise_name for e in upper_body.exercises] == ["Barbell Bench Press", "Pull-up"]
    assert upper_body.exercises[0].notes == "Focus on chest contraction"
    assert [(r.min_reps, r.max_reps) for r in upper_body.exercises[1].rep_ranges] == [(6, 8), (8, 10), (10, 12)]


def test_build_workout_from_template(template_service, upper_body):
    now = datetime(2026, 4, 1, 7, 0)

    workout = template_service.build_workout_from_template(upper_body, now=now)

    assert workout.name == "Upper Body RPT"
    assert workout.started_from_template == "Upper Body RPT"
    assert [s.exercise.name for s in workout.sets] == ["Barbell Bench Press"] * 3 + ["Pull-up"] * 3
    assert [s.reps for s in workout.sets] == [5, 7, 9, 7, 9, 11]
    assert all(s.weight == 0 for s in workout.sets)
    offsets = [(s.completed_at - now).total_seconds() for s in workout.sets]
    assert offsets == pytest.approx([0, 0.1, 0.2, 1.0, 1.1, 1.2])


def test_unknown_template_exercises_are_skipped(template_service, upper_body):
    template_service.add_exercise_to_template(upper_body.id, "Zercher Squat")
    template = template_service.get_template(upper_body.id)

    workout = template_service.build_workout_from_template(template)

    assert len(template.exercises) == 3
    assert len(workout.sets) == 6


def test_add_exercise_to_template_uses_rpt_defaults(template_service, upper_body):
    added = template_service.add_exercise_to_template(upper_body.id, "Dip")

    assert added.suggested_sets == 3
    assert [(r.min_reps, r.max_reps, r.percentage_of_first_set) for r in added.rep_ranges] == [
        (6, 8, 1.0),
        (8, 10, 0.9),
        (10, 12, 0.8),
    ]


def test_resize_is_persisted(template_service, upper_body):
    pull_up = upper_body.exercises[1]

    template_service.resize_template_exercise(upper_body.id, pull_up.id, 5)

    stored = template_service.get_template(upper_body.id).find_exercise(pull_up.id)
    assert len(stored.rep_ranges) == 5
    assert (stored.rep_ranges[2].min_reps, stored.rep_ranges[2].max_reps) == (10, 12)


def test_update_and_remove_template_exercise(template_service, upper_body):
    bench = upper_body.exercises[0]
    changed = bench.model_copy(update={"suggested_sets": 4, "notes": "Pause reps"})

    template_service.update_template_exercise(upper_body.id, changed)
    stored = template_service.get_template(upper_body.id)
    assert stored.exercises[0].notes == "Pause reps"
    assert len(stored.exercises[0].rep_ranges) == 4

    template_service.remove_exercise_from_template(upper_body.id, bench.id)
    assert [e.exercise_name for e in template_service.get_template(upper_body.id).exercises] == ["Pull-up"]


def test_template_crud(template_service):
    created = template_service.create_template(WorkoutTemplateCreate(name="Legs", notes="Go deep"))

    with pytest.raises(ValidationException):
        template_service.create_template(WorkoutTemplateCreate(name="Legs"))

    template_service.update_template(created.id, WorkoutTemplateCreate(name="Leg Day", notes="Go deeper"))
    assert template_service.get_template(created.id).name == "Leg Day"
    assert [t.name for t in template_service.fetch_all()] == ["Leg Day"]

    template_service.delete_template(created.id)
    with pytest.raises(TemplateNotFoundException):
        template_service.get_template(created.id)


def test_start_workout_from_template(template_service, upper_body, workout_repository, state):
    state.mark_discarded("old")
    service = WorkoutService(workout_repository, state, template_service)

    workout = service.start_workout_from_template(upper_body)

    assert state.was_any_discarded() is False
    stored = workout_repository.get_workout(workout.id)
    assert len(stored.sets) == 6
    assert stored.started_from_template == "Upper Body RPT"
    assert stored.sets[0].completed_at < stored.sets[3].completed_at - timedelta(milliseconds=500)
