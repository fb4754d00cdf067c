from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def new_id() -> str:
    return str(uuid4())


class ExerciseCategory(str, Enum):
    COMPOUND = "compound"
    ISOLATION = "isolation"
    BODYWEIGHT = "bodyweight"
    CARDIO = "cardio"
    OTHER = "other"


class MuscleGroup(str, Enum):
    CHEST = "chest"
    BACK = "back"
    SHOULDERS = "shoulders"
    BICEPS = "biceps"
    TRICEPS = "triceps"
    QUADRICEPS = "quadriceps"
    HAMSTRINGS = "hamstrings"
    GLUTES = "glutes"
    CALVES = "calves"
    FOREARMS = "forearms"
    ABS = "abs"
    OBLIQUES = "obliques"
    TRAPS = "traps"
    LOWER_BACK = "lowerBack"
    OTHER = "other"


class ExerciseBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: ExerciseCategory
    primary_muscle_groups: list[MuscleGroup] = Field(default_factory=list)
    secondary_muscle_groups: list[MuscleGroup] = Field(default_factory=list)
    instructions: str = ""


class ExerciseCreate(ExerciseBase):
    pass


class Exercise(ExerciseBase):
    id: str = Field(default_factory=new_id)
    is_custom: bool = False

    model_config = ConfigDict(from_attributes=True)

    def targets(self, muscle_group: MuscleGroup) -> bool:
        return muscle_group in self.primary_muscle_groups or muscle_group in self.secondary_muscle_groups

    def __repr__(self):
        return f"<Exercise(id={self.id}, name='{self.name}', custom={self.is_custom})>"
