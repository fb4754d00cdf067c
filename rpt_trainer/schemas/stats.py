from enum import Enum

from pydantic import BaseModel


class TimeFrame(str, Enum):
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"
    ALL_TIME = "all_time"


class WorkoutStats(BaseModel):
    count: int = 0
    total_volume: float = 0.0
    average_duration: float = 0.0


class FormattedWorkoutStats(BaseModel):
    count: int
    total_volume: str
    average_duration: str
