from .exercise import Exercise, ExerciseCategory, ExerciseCreate, MuscleGroup
from .settings import DarkModePreference, UserSettings
from .stats import FormattedWorkoutStats, TimeFrame, WorkoutStats
from .template import TemplateExercise, TemplateRepRange, WorkoutTemplate, WorkoutTemplateCreate
from .workout import ExerciseSet, Workout, utcnow

__all__ = [
    "Exercise",
    "ExerciseCategory",
    "ExerciseCreate",
    "MuscleGroup",
    "DarkModePreference",
    "UserSettings",
    "FormattedWorkoutStats",
    "TimeFrame",
    "WorkoutStats",
    "TemplateExercise",
    "TemplateRepRange",
    "WorkoutTemplate",
    "WorkoutTemplateCreate",
    "ExerciseSet",
    "Workout",
    "utcnow",
]
