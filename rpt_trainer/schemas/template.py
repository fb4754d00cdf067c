from pydantic import BaseModel, ConfigDict, Field, model_validator

from .exercise import new_id

MAX_DEFAULT_MIN_REPS = 15
MAX_DEFAULT_MAX_REPS = 20
MIN_DEFAULT_PERCENTAGE = 0.5


class TemplateRepRange(BaseModel):
    set_number: int = Field(..., ge=1)
    min_reps: int = Field(..., ge=0)
    max_reps: int = Field(..., ge=0)
    percentage_of_first_set: float | None = Field(None, ge=0, le=1)

    @property
    def target_reps(self) -> int:
        return (self.min_reps + self.max_reps) // 2

    @classmethod
    def default_for(cls, set_number: int) -> "TemplateRepRange":
        """Default RPT range: -10 points per set (floor 50%), +2 reps per set."""
        if set_number == 1:
            percentage = 1.0
        else:
            percentage = max(1.0 - (set_number - 1) * 0.1, MIN_DEFAULT_PERCENTAGE)
        return cls(
            set_number=set_number,
            min_reps=min(6 + (set_number - 1) * 2, MAX_DEFAULT_MIN_REPS),
            max_reps=min(8 + (set_number - 1) * 2, MAX_DEFAULT_MAX_REPS),
            percentage_of_first_set=percentage,
        )


def sync_rep_ranges(rep_ranges: list[TemplateRepRange], suggested_sets: int) -> list[TemplateRepRange]:
    by_number: dict[int, TemplateRepRange] = {}
    for rep_range in rep_ranges:
        if rep_range.set_number <= suggested_sets:
            by_number.setdefault(rep_range.set_number, rep_range)
    for set_number in range(1, suggested_sets + 1):
        if set_number not in by_number:
            by_number[set_number] = TemplateRepRange.default_for(set_number)
    return [by_number[number] for number in sorted(by_number)]


class TemplateExercise(BaseModel):
    id: str = Field(default_factory=new_id)
    exercise_name: str = Field(..., min_length=1, max_length=255)
    suggested_sets: int = Field(..., ge=1)
    rep_ranges: list[TemplateRepRange] = Field(default_factory=list)
    notes: str = ""

    @model_validator(mode="after")
    def _sync_rep_ranges(self) -> "TemplateExercise":
        self.rep_ranges = sync_rep_ranges(self.rep_ranges, self.suggested_sets)
        return self

    def resize(self, suggested_sets: int) -> None:
        if suggested_sets < 1:
            raise ValueError("suggested_sets must be at least 1")
        self.suggested_sets = suggested_sets
        self.rep_ranges = sync_rep_ranges(self.rep_ranges, suggested_sets)


class WorkoutTemplateBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    exercises: list[TemplateExercise] = Field(default_factory=list)
    notes: str = ""


class WorkoutTemplateCreate(WorkoutTemplateBase):
    pass


class WorkoutTemplate(WorkoutTemplateBase):
    id: str = Field(default_factory=new_id)

    model_config = ConfigDict(from_attributes=True)

    def find_exercise(self, exercise_id: str) -> TemplateExercise | None:
        return next((item for item in self.exercises if item.id == exercise_id), None)

    def __repr__(self):
        return f"<WorkoutTemplate(id={self.id}, name='{self.name}', exercises={len(self.exercises)})>"
