import argparse

import structlog
from sqlalchemy.orm import Session

from ..database import get_session_factory
from ..logging_config import configure_logging
from ..repositories.exercise_repository import SqlAlchemyExerciseRepository
from ..repositories.settings_repository import SqlAlchemySettingsRepository
from ..repositories.template_repository import SqlAlchemyTemplateRepository
from ..services.exercise_service import ExerciseService
from ..services.template_service import TemplateService

logger = structlog.get_logger(__name__)


def seed(db: Session, with_templates: bool = True) -> dict[str, int]:
    """First-launch data: builtin exercises, default template and a settings row.

    Each part is only written when its table is still empty, so running
    this twice changes nothing.
    """
    exercise_repository = SqlAlchemyExerciseRepository(db)
    created = {"exercises": ExerciseService(exercise_repository).ensure_builtin_exercises(), "templates": 0}
    if with_templates:
        template_service = TemplateService(SqlAlchemyTemplateRepository(db), exercise_repository)
        created["templates"] = template_service.ensure_default_templates()

    settings_repository = SqlAlchemySettingsRepository(db)
    settings_repository.save(settings_repository.load())
    return created


def main() -> None:
    parser = argparse.ArgumentParser(description="Seed the builtin exercise catalog and default templates")
    parser.add_argument(
        "--no-templates",
        action="store_true",
        help="Only seed exercises, leave the template table alone",
    )
    args = parser.parse_args()

    configure_logging()
    db = get_session_factory()()
    try:
        created = seed(db, with_templates=not args.no_templates)
    finally:
        db.close()
    logger.info("seeding_finished", **created)


if __name__ == "__main__":
    main()
