from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_REST_TIMER_DURATION = 90
DEFAULT_RPT_PERCENTAGE_DROPS = (0.0, 0.10, 0.15)
MAX_REST_TIMER_DURATION = 3600


class DarkModePreference(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class UserSettings(BaseModel):
    rest_timer_duration: int = Field(DEFAULT_REST_TIMER_DURATION, ge=1, le=MAX_REST_TIMER_DURATION)
    default_rpt_percentage_drops: list[float] = Field(default_factory=lambda: list(DEFAULT_RPT_PERCENTAGE_DROPS))
    show_rpe: bool = True
    dark_mode_preference: DarkModePreference = DarkModePreference.SYSTEM

    model_config = ConfigDict(from_attributes=True)

    @field_validator("default_rpt_percentage_drops")
    @classmethod
    def validate_percentage_drops(cls, drops: list[float]) -> list[float]:
        if not drops:
            raise ValueError("at least one percentage drop is required")
        if drops[0] != 0.0:
            raise ValueError("the first set must have a 0.0 drop")
        if any(drop < 0.0 or drop > 1.0 for drop in drops):
            raise ValueError("percentage drops must be between 0.0 and 1.0")
        return drops
