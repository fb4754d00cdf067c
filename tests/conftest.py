import os
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config

from rpt_trainer.database import Base, create_engine_and_session
from rpt_trainer.exceptions import StorageException
from rpt_trainer.repositories.exercise_repository import SqlAlchemyExerciseRepository
from rpt_trainer.repositories.settings_repository import SqlAlchemyKeyValueStore
from rpt_trainer.repositories.workouts_repository import SqlAlchemyWorkoutRepository
from rpt_trainer.services.exercise_service import ExerciseService
from rpt_trainer.services.session_service import SessionService
from rpt_trainer.services.workout_state_service import WorkoutStateService

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _alembic_upgrade_head(db_url: str) -> None:
    os.environ["RPT_DATABASE_URL"] = db_url
    cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    # Pin script_location so running pytest from another directory still finds the migrations
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    command.upgrade(cfg, "head")


@pytest.fixture(scope="session")
def test_db_url(tmp_path_factory) -> str:
    tmp_dir = tmp_path_factory.mktemp("rpt_db")
    db_path = tmp_dir / "test_rpt_trainer.db"
    return f"sqlite:///{db_path}"


@pytest.fixture(scope="session")
def migrated_db(test_db_url: str):
    _alembic_upgrade_head(test_db_url)
    yield test_db_url


@pytest.fixture(scope="session")
def session_factory(migrated_db: str):
    engine, factory = create_engine_and_session(migrated_db)
    yield factory
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()
        with session_factory() as cleanup:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup.execute(table.delete())
            cleanup.commit()


@pytest.fixture()
def exercises(db) -> dict:
    ExerciseService(SqlAlchemyExerciseRepository(db)).ensure_builtin_exercises()
    return {exercise.name: exercise for exercise in SqlAlchemyExerciseRepository(db).list_exercises()}


@pytest.fixture()
def bench(exercises):
    return exercises["Barbell Bench Press"]


@pytest.fixture()
def squat(exercises):
    return exercises["Barbell Squat"]


@pytest.fixture()
def deadlift(exercises):
    return exercises["Deadlift"]


@pytest.fixture()
def workout_repository(db):
    return SqlAlchemyWorkoutRepository(db)


@pytest.fixture()
def state(db):
    return WorkoutStateService(SqlAlchemyKeyValueStore(db))


class StaticSettings:
    def __init__(self, rest_timer_duration=90, default_rpt_percentage_drops=None, show_rpe=True):
        self.rest_timer_duration = rest_timer_duration
        self.default_rpt_percentage_drops = (
            list(default_rpt_percentage_drops) if default_rpt_percentage_drops is not None else [0.0, 0.10, 0.20]
        )
        self.show_rpe = show_rpe


class FakeClock:
    def __init__(self, start: datetime = datetime(2030, 1, 1, 9, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


class RecordingFeedback:
    def __init__(self):
        self.events: list[str] = []

    def set_completed(self):
        self.events.append("set_completed")

    def rest_timer_finished(self):
        self.events.append("rest_timer_finished")

    def workout_completed(self):
        self.events.append("workout_completed")


class FlakyWorkoutRepository:
    """Wraps a real repository and fails chosen writes with StorageException."""

    def __init__(self, repository):
        self.repository = repository
        self.fail_saves = False
        self.fail_deletes = False
        self.fail_completes = False

    def __getattr__(self, name):
        return getattr(self.repository, name)

    def save(self, workout):
        if self.fail_saves:
            raise StorageException("disk full")
        self.repository.save(workout)

    def delete(self, workout):
        if self.fail_deletes:
            raise StorageException("disk full")
        self.repository.delete(workout)

    def complete(self, workout):
        if self.fail_completes:
            raise StorageException("disk full")
        self.repository.complete(workout)


@pytest.fixture()
def make_settings():
    return StaticSettings


@pytest.fixture()
def settings(make_settings):
    return make_settings()


@pytest.fixture()
def feedback():
    return RecordingFeedback()


@pytest.fixture()
def flaky_repository(workout_repository):
    return FlakyWorkoutRepository(workout_repository)


@pytest.fixture()
def make_session(workout_repository, state, settings, feedback):
    sessions = []

    def _make(workout, repository=None, **kwargs):
        kwargs.setdefault("feedback", feedback)
        kwargs.setdefault("clock", FakeClock())
        session = SessionService(workout, repository or workout_repository, state, kwargs.pop("settings", settings), **kwargs)
        sessions.append(session)
        return session

    yield _make

    for session in sessions:
        session.cancel_rest_timer()
