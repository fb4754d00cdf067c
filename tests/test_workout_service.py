from datetime import datetime, timedelta

import pytest

from rpt_trainer.exceptions import WorkoutNotFoundException
from rpt_trainer.schemas import TimeFrame, Workout
from rpt_trainer.services.session_service import SessionService
from rpt_trainer.services.workout_service import WorkoutService, time_frame_start

NOW = datetime(2026, 6, 15, 12, 0)


@pytest.fixture()
def workout_service(workout_repository, state):
    return WorkoutService(workout_repository, state)


def _logged_workout(exercise, date, weight, reps, duration) -> Workout:
    workout = Workout(name=f"Workout {date:%Y-%m-%d}", date=date, duration=duration)
    workout.add_set(exercise, weight=weight, reps=reps, completed_at=date)
    workout.complete()
    return workout


def test_time_frame_start():
    assert time_frame_start(TimeFrame.WEEK, NOW) == datetime(2026, 6, 8, 12, 0)
    assert time_frame_start(TimeFrame.MONTH, NOW) == datetime(2026, 5, 15, 12, 0)
    assert time_frame_start(TimeFrame.YEAR, NOW) == datetime(2025, 6, 15, 12, 0)
    assert time_frame_start(TimeFrame.ALL_TIME, NOW) == datetime.min
    assert time_frame_start(TimeFrame.MONTH, datetime(2026, 3, 31)) == datetime(2026, 2, 28)
    assert time_frame_start(TimeFrame.MONTH, datetime(2026, 1, 10)) == datetime(2025, 12, 10)
    assert time_frame_start(TimeFrame.YEAR, datetime(2028, 2, 29)) == datetime(2027, 2, 28)


def test_stats_without_workouts(workout_service):
    for time_frame in (TimeFrame.WEEK, TimeFrame.ALL_TIME):
        formatted = workout_service.calculate_workout_stats_formatted(time_frame, now=NOW)
        assert formatted.count == 0
        assert formatted.total_volume == "0.0 lb"
        assert formatted.average_duration == "0:00"


def test_stats_by_time_frame(workout_service, workout_repository, bench):
    workout_repository.add_workout(_logged_workout(bench, NOW - timedelta(days=2), 200, 5, 3600))
    workout_repository.add_workout(_logged_workout(bench, NOW - timedelta(days=20), 200, 10, 1800))
    workout_repository.add_workout(_logged_workout(bench, NOW - timedelta(days=200), 100, 10, 600))
    workout_repository.add_workout(_logged_workout(bench, NOW + timedelta(days=1), 100, 10, 600))

    week = workout_service.calculate_workout_stats(TimeFrame.WEEK, now=NOW)
    month = workout_service.calculate_workout_stats_formatted(TimeFrame.MONTH, now=NOW)
    year = workout_service.calculate_workout_stats(TimeFrame.YEAR, now=NOW)

    assert (week.count, week.total_volume, week.average_duration) == (1, 1000, 3600)
    assert (month.count, month.total_volume, month.average_duration) == (2, "3.0k lb", "45:00")
    assert year.count == 3
    assert workout_service.calculate_workout_stats(TimeFrame.ALL_TIME, now=NOW).count == 3


def test_create_follow_up_workout_is_persisted(workout_service, workout_repository, state, bench):
    original = Workout(name="Bench Day", date=datetime(2026, 1, 5, 9, 0))
    original.add_set(bench, weight=225, reps=5, completed_at=datetime(2026, 1, 5, 9, 10))
    original.add_set(bench, weight=185, reps=8, completed_at=datetime(2026, 1, 5, 9, 15))
    workout_repository.add_workout(original)
    state.mark_discarded("old")

    follow_up = workout_service.create_follow_up_workout(original)

    stored = workout_repository.get_workout(follow_up.id)
    assert stored.name == "Follow-up: Bench Day"
    assert [s.weight for s in stored.sets] == [230, 190]
    assert state.was_any_discarded() is False


def test_start_new_workout(workout_service, workout_repository, state):
    state.mark_discarded("old")

    workout = workout_service.start_new_workout("Morning")

    assert workout_repository.get_workout(workout.id).name == "Morning"
    assert state.was_any_discarded() is False
    assert workout_service.resumable_workout().id == workout.id


def test_get_workout_missing(workout_service):
    with pytest.raises(WorkoutNotFoundException):
        workout_service.get_workout("missing")


def test_recent_workouts_and_history(workout_service, workout_repository, bench):
    for day in (1, 2):
        workout_repository.add_workout(_logged_workout(bench, datetime(2026, 1, day), 100 + day, 5, 60))

    assert [w.date.day for w in workout_service.recent_workouts(limit=1)] == [2]
    assert [sets[0].weight for _, sets in workout_service.workout_history(bench)] == [102, 101]


def test_open_session(workout_service, make_settings, bench):
    workout = workout_service.start_new_workout()

    session = workout_service.open_session(workout, make_settings())

    assert isinstance(session, SessionService)
    assert session.workout is workout
    session.add_exercise(bench)
    assert len(workout_service.get_workout(workout.id).sets) == 1
