from collections.abc import Sequence
from typing import Protocol

import structlog
from pydantic import ValidationError

from ..config import get_settings
from ..exceptions import SettingsValidationException
from ..repositories.settings_repository import SqlAlchemySettingsRepository
from ..schemas.settings import DarkModePreference, UserSettings
from ..workout_calculation import format_rpt_example, format_weight

logger = structlog.get_logger(__name__)


class SettingsProvider(Protocol):
    @property
    def rest_timer_duration(self) -> int: ...

    @property
    def default_rpt_percentage_drops(self) -> list[float]: ...

    @property
    def show_rpe(self) -> bool: ...


class SettingsService:
    def __init__(self, repository: SqlAlchemySettingsRepository):
        self.repository = repository
        self.settings = repository.load()

    @property
    def rest_timer_duration(self) -> int:
        return self.settings.rest_timer_duration

    @property
    def default_rpt_percentage_drops(self) -> list[float]:
        return list(self.settings.default_rpt_percentage_drops)

    @property
    def show_rpe(self) -> bool:
        return self.settings.show_rpe

    @property
    def dark_mode_preference(self) -> DarkModePreference:
        return self.settings.dark_mode_preference

    def _update(self, **changes) -> UserSettings:
        try:
            updated = UserSettings.model_validate({**self.settings.model_dump(), **changes})
        except ValidationError as exc:
            logger.warning("settings_rejected", changes=changes, errors=exc.error_count())
            raise SettingsValidationException(f"Invalid setting value: {', '.join(changes)}") from exc
        self.settings = updated
        self.repository.save(updated)
        logger.info("settings_updated", fields=sorted(changes))
        return updated

    def update_rest_timer_duration(self, seconds: int) -> UserSettings:
        return self._update(rest_timer_duration=seconds)

    def update_rpt_percentage_drops(self, drops: Sequence[float]) -> UserSettings:
        return self._update(default_rpt_percentage_drops=list(drops))

    def update_show_rpe(self, show: bool) -> UserSettings:
        return self._update(show_rpe=show)

    def update_dark_mode_preference(self, preference: DarkModePreference | str) -> UserSettings:
        return self._update(dark_mode_preference=preference)

    def reset_to_defaults(self) -> UserSettings:
        self.settings = UserSettings()
        self.repository.save(self.settings)
        logger.info("settings_reset")
        return self.settings

    def calculate_rpt_example(self, first_set_weight: float = 100) -> str:
        app_settings = get_settings()
        return format_rpt_example(
            first_set_weight,
            self.settings.default_rpt_percentage_drops,
            unit=app_settings.WEIGHT_UNIT,
            increment=app_settings.WEIGHT_INCREMENT,
        )

    def format_weight(self, weight: float) -> str:
        return format_weight(weight, unit=get_settings().WEIGHT_UNIT)
