from sqlalchemy import func, select

from .. import models
from ..schemas.exercise import Exercise
from .base import SqlAlchemyRepository


class SqlAlchemyExerciseRepository(SqlAlchemyRepository):
    def list_exercises(self) -> list[Exercise]:
        query = select(models.Exercise).order_by(models.Exercise.name)
        with self._transaction("load exercises") as db:
            return [Exercise.model_validate(row) for row in db.execute(query).scalars().all()]

    def get_exercise(self, exercise_id: str) -> Exercise | None:
        with self._transaction("load exercise") as db:
            db_exercise = db.get(models.Exercise, exercise_id)
            return Exercise.model_validate(db_exercise) if db_exercise is not None else None

    def get_by_name(self, name: str) -> Exercise | None:
        query = select(models.Exercise).where(models.Exercise.name == name)
        with self._transaction("load exercise") as db:
            db_exercise = db.execute(query).scalars().first()
            return Exercise.model_validate(db_exercise) if db_exercise is not None else None

    def count(self) -> int:
        with self._transaction("count exercises") as db:
            return db.execute(select(func.count()).select_from(models.Exercise)).scalar_one()

    def add(self, exercise: Exercise) -> Exercise:
        with self._transaction("create exercise") as db:
            db.add(models.Exercise(**exercise.model_dump(mode="json")))
        return exercise

    def add_many(self, exercises: list[Exercise]) -> None:
        with self._transaction("create exercises") as db:
            db.add_all([models.Exercise(**exercise.model_dump(mode="json")) for exercise in exercises])

    def update(self, exercise: Exercise) -> Exercise:
        with self._transaction("update exercise") as db:
            db_exercise = db.get(models.Exercise, exercise.id)
            if db_exercise is not None:
                for field, value in exercise.model_dump(mode="json", exclude={"id"}).items():
                    setattr(db_exercise, field, value)
        return exercise

    def delete(self, exercise_id: str) -> None:
        # exercise_sets.exercise_id is ON DELETE SET NULL
        with self._transaction("delete exercise") as db:
            db_exercise = db.get(models.Exercise, exercise_id)
            if db_exercise is not None:
                db.delete(db_exercise)

    def usage_counts(self) -> dict[str, int]:
        query = (
            select(models.ExerciseSet.exercise_id, func.count(models.ExerciseSet.id))
            .where(models.ExerciseSet.exercise_id.is_not(None))
            .group_by(models.ExerciseSet.exercise_id)
        )
        with self._transaction("count exercise usage") as db:
            return {exercise_id: count for exercise_id, count in db.execute(query).all()}
