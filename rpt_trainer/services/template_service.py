from datetime import datetime, timedelta

import structlog

from ..exceptions import NotFoundException, TemplateNotFoundException, ValidationException
from ..repositories.exercise_repository import SqlAlchemyExerciseRepository
from ..repositories.template_repository import SqlAlchemyTemplateRepository
from ..schemas.template import TemplateExercise, TemplateRepRange, WorkoutTemplate, WorkoutTemplateCreate
from ..schemas.workout import Workout, utcnow

logger = structlog.get_logger(__name__)

DEFAULT_TEMPLATES: list[WorkoutTemplateCreate] = [
    WorkoutTemplateCreate(
        name="Upper Body RPT",
        exercises=[
            TemplateExercise(
                exercise_name="Barbell Bench Press",
                suggested_sets=3,
                rep_ranges=[
                    TemplateRepRange(set_number=1, min_reps=4, max_reps=6, percentage_of_first_set=1.0),
                    TemplateRepRange(set_number=2, min_reps=6, max_reps=8, percentage_of_first_set=0.9),
                    TemplateRepRange(set_number=3, min_reps=8, max_reps=10, percentage_of_first_set=0.8),
                ],
                notes="Focus on chest contraction",
            ),
            TemplateExercise(
                exercise_name="Pull-up",
                suggested_sets=3,
                rep_ranges=[
                    TemplateRepRange(set_number=1, min_reps=6, max_reps=8, percentage_of_first_set=1.0),
                    TemplateRepRange(set_number=2, min_reps=8, max_reps=10, percentage_of_first_set=0.9),
                    TemplateRepRange(set_number=3, min_reps=10, max_reps=12, percentage_of_first_set=0.8),
                ],
                notes="Add weight if needed",
            ),
        ],
        notes="Rest 2-3 minutes between exercises",
    ),
]


def new_template_exercise(exercise_name: str) -> TemplateExercise:
    return TemplateExercise(
        exercise_name=exercise_name,
        suggested_sets=3,
        rep_ranges=[
            TemplateRepRange(set_number=1, min_reps=6, max_reps=8, percentage_of_first_set=1.0),
            TemplateRepRange(set_number=2, min_reps=8, max_reps=10, percentage_of_first_set=0.9),
            TemplateRepRange(set_number=3, min_reps=10, max_reps=12, percentage_of_first_set=0.8),
        ],
    )


class TemplateService:
    def __init__(self, repository: SqlAlchemyTemplateRepository, exercise_repository: SqlAlchemyExerciseRepository):
        self.repository = repository
        self.exercise_repository = exercise_repository

    def ensure_default_templates(self) -> int:
        if self.repository.list_templates():
            return 0
        for data in DEFAULT_TEMPLATES:
            self.repository.save(WorkoutTemplate(**data.model_dump()))
        logger.info("default_templates_seeded", count=len(DEFAULT_TEMPLATES))
        return len(DEFAULT_TEMPLATES)

    def fetch_all(self) -> list[WorkoutTemplate]:
        return self.repository.list_templates()

    def fetch_by_name(self, name: str) -> WorkoutTemplate | None:
        return self.repository.get_by_name(name)

    def get_template(self, template_id: str) -> WorkoutTemplate:
        template = self.repository.get_template(template_id)
        if template is None:
            raise TemplateNotFoundException(template_id)
        return template

    def _check_name_free(self, name: str, template_id: str | None = None) -> None:
        clash = self.repository.get_by_name(name)
        if clash is not None and clash.id != template_id:
            raise ValidationException(f"Template '{name}' already exists")

    def create_template(self, data: WorkoutTemplateCreate) -> WorkoutTemplate:
        self._check_name_free(data.name)
        template = WorkoutTemplate(**data.model_dump())
        self.repository.save(template)
        logger.info("template_created", template_id=template.id, name=template.name)
        return template

    def update_template(self, template_id: str, data: WorkoutTemplateCreate) -> WorkoutTemplate:
        template = self.get_template(template_id)
        self._check_name_free(data.name, template.id)
        updated = WorkoutTemplate(id=template.id, **data.model_dump())
        return self.repository.save(updated)

    def delete_template(self, template_id: str) -> None:
        self.repository.delete(template_id)

    def add_exercise_to_template(self, template_id: str, exercise_name: str) -> TemplateExercise:
        template = self.get_template(template_id)
        template_exercise = new_template_exercise(exercise_name)
        template.exercises.append(template_exercise)
        self.repository.save(template)
        return template_exercise

    def update_template_exercise(self, template_id: str, updated: TemplateExercise) -> WorkoutTemplate:
        template = self.get_template(template_id)
        for index, template_exercise in enumerate(template.exercises):
            if template_exercise.id == updated.id:
                # Re-validate so the rep ranges follow suggested_sets
                template.exercises[index] = TemplateExercise.model_validate(updated.model_dump())
                return self.repository.save(template)
        raise NotFoundException(f"Template exercise with id={updated.id} not found")

    def resize_template_exercise(
        self,
        template_id: str,
        template_exercise_id: str,
        suggested_sets: int,
    ) -> TemplateExercise:
        template = self.get_template(template_id)
        template_exercise = template.find_exercise(template_exercise_id)
        if template_exercise is None:
            raise NotFoundException(f"Template exercise with id={template_exercise_id} not found")
        try:
            template_exercise.resize(suggested_sets)
        except ValueError as exc:
            raise ValidationException(str(exc)) from exc
        self.repository.save(template)
        return template_exercise

    def remove_exercise_from_template(self, template_id: str, template_exercise_id: str) -> WorkoutTemplate:
        template = self.get_template(template_id)
        template.exercises = [item for item in template.exercises if item.id != template_exercise_id]
        return self.repository.save(template)

    def build_workout_from_template(self, template: WorkoutTemplate, now: datetime | None = None) -> Workout:
        """Unsaved workout with one zero-weight set per rep range.

        ``completed_at`` is staggered by one second per exercise and a tenth
        of a second per set so the template order survives sorting.
        Exercises missing from the catalog are skipped.
        """
        now = now or utcnow()
        workout = Workout(name=template.name, started_from_template=template.name)
        for index, template_exercise in enumerate(template.exercises):
            exercise = self.exercise_repository.get_by_name(template_exercise.exercise_name)
            if exercise is None:
                logger.warning(
                    "template_exercise_missing",
                    template=template.name,
                    exercise=template_exercise.exercise_name,
                )
                continue
            rep_ranges = sorted(template_exercise.rep_ranges, key=lambda r: r.set_number)
            for set_index, rep_range in enumerate(rep_ranges):
                workout.add_set(
                    exercise,
                    weight=0,
                    reps=rep_range.target_reps,
                    completed_at=now + timedelta(seconds=index + set_index / 10),
                )
        return workout
