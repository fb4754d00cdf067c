from rpt_trainer.repositories.exercise_repository import SqlAlchemyExerciseRepository
from rpt_trainer.repositories.settings_repository import SqlAlchemySettingsRepository
from rpt_trainer.repositories.template_repository import SqlAlchemyTemplateRepository
from rpt_trainer.scripts.seed_exercises import seed


def test_seed_is_idempotent(db):
    assert seed(db) == {"exercises": 16, "templates": 1}
    assert seed(db) == {"exercises": 0, "templates": 0}

    assert SqlAlchemyExerciseRepository(db).count() == 16
    assert [t.name for t in SqlAlchemyTemplateRepository(db).list_templates()] == ["Upper Body RPT"]
    assert SqlAlchemySettingsRepository(db).load().rest_timer_duration == 90


def test_seed_without_templates(db):
    assert seed(db, with_templates=False) == {"exercises": 16, "templates": 0}
    assert SqlAlchemyTemplateRepository(db).list_templates() == []
