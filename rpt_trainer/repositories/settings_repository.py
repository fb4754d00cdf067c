from collections.abc import Iterable
from typing import Protocol

from sqlalchemy import delete, select

from .. import models
from ..schemas.settings import UserSettings
from ..schemas.workout import utcnow
from .base import SqlAlchemyRepository

SETTINGS_ROW_ID = 1


class SqlAlchemySettingsRepository(SqlAlchemyRepository):
    """Single-row settings table; a missing row reads as defaults."""

    def load(self) -> UserSettings:
        with self._transaction("load settings") as db:
            db_settings = db.get(models.UserSettings, SETTINGS_ROW_ID)
            if db_settings is None:
                return UserSettings()
            return UserSettings.model_validate(db_settings)

    def save(self, settings: UserSettings) -> None:
        data = settings.model_dump(mode="json")
        with self._transaction("save settings") as db:
            db_settings = db.get(models.UserSettings, SETTINGS_ROW_ID)
            if db_settings is None:
                db_settings = models.UserSettings(id=SETTINGS_ROW_ID)
                db.add(db_settings)
            for field, value in data.items():
                setattr(db_settings, field, value)


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set_many(self, values: dict[str, str]) -> None: ...

    def remove_many(self, keys: list[str]) -> None: ...

    def update(self, values: dict[str, str], removed: Iterable[str] = ()) -> None:
        """Write ``values`` and drop ``removed`` as one change."""
        ...


class InMemoryKeyValueStore:
    def __init__(self, values: dict[str, str] | None = None):
        self.values: dict[str, str] = dict(values or {})

    def get(self, key: str) -> str | None:
        return self.values.get(key)

    def set_many(self, values: dict[str, str]) -> None:
        self.update(values)

    def remove_many(self, keys: list[str]) -> None:
        self.update({}, keys)

    def update(self, values: dict[str, str], removed: Iterable[str] = ()) -> None:
        for key in removed:
            self.values.pop(key, None)
        self.values.update(values)


class SqlAlchemyKeyValueStore(SqlAlchemyRepository):
    def get(self, key: str) -> str | None:
        with self._transaction("load app state") as db:
            return db.execute(select(models.AppState.value).where(models.AppState.key == key)).scalar_one_or_none()

    def set_many(self, values: dict[str, str]) -> None:
        self.update(values)

    def remove_many(self, keys: list[str]) -> None:
        self.update({}, keys)

    def update(self, values: dict[str, str], removed: Iterable[str] = ()) -> None:
        removed = [key for key in removed if key not in values]
        with self._transaction("save app state") as db:
            if removed:
                db.execute(delete(models.AppState).where(models.AppState.key.in_(removed)))
            for key, value in values.items():
                db_state = db.get(models.AppState, key)
                if db_state is None:
                    db.add(models.AppState(key=key, value=value, updated_at=utcnow()))
                else:
                    db_state.value = value
