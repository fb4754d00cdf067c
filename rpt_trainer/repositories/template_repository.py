from sqlalchemy import select

from .. import models
from ..schemas.template import WorkoutTemplate
from .base import SqlAlchemyRepository


class SqlAlchemyTemplateRepository(SqlAlchemyRepository):
    def list_templates(self) -> list[WorkoutTemplate]:
        query = select(models.WorkoutTemplate).order_by(models.WorkoutTemplate.name)
        with self._transaction("load templates") as db:
            return [WorkoutTemplate.model_validate(row) for row in db.execute(query).scalars().all()]

    def get_template(self, template_id: str) -> WorkoutTemplate | None:
        with self._transaction("load template") as db:
            db_template = db.get(models.WorkoutTemplate, template_id)
            return WorkoutTemplate.model_validate(db_template) if db_template is not None else None

    def get_by_name(self, name: str) -> WorkoutTemplate | None:
        query = select(models.WorkoutTemplate).where(models.WorkoutTemplate.name == name)
        with self._transaction("load template") as db:
            db_template = db.execute(query).scalars().first()
            return WorkoutTemplate.model_validate(db_template) if db_template is not None else None

    def save(self, template: WorkoutTemplate) -> WorkoutTemplate:
        data = template.model_dump(mode="json")
        with self._transaction("save template") as db:
            db_template = db.get(models.WorkoutTemplate, template.id)
            if db_template is None:
                db.add(models.WorkoutTemplate(**data))
            else:
                db_template.name = data["name"]
                db_template.exercises = data["exercises"]
                db_template.notes = data["notes"]
        return template

    def delete(self, template_id: str) -> None:
        with self._transaction("delete template") as db:
            db_template = db.get(models.WorkoutTemplate, template_id)
            if db_template is not None:
                db.delete(db_template)
