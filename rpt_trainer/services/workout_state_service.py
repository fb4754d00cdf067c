from datetime import datetime

import structlog

from ..repositories.settings_repository import KeyValueStore
from ..repositories.workouts_repository import WorkoutRepository
from ..schemas.workout import Workout, utcnow

logger = structlog.get_logger(__name__)

DISCARDED_FLAG_KEY = "workout_discarded_flag"
DISCARDED_ID_KEY = "workout_discarded_id"
DISCARDED_TIME_KEY = "workout_discarded_time"


class WorkoutStateService:
    """Remembers whether the most recent session was discarded.

    Every screen that could auto-resume an incomplete workout asks this
    service first. The flag is mirrored to a durable key-value store so a
    discarded workout is not offered again after a restart.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store
        self._loaded = False
        self._was_discarded = False
        self._discarded_workout_id: str | None = None
        self._discard_timestamp: datetime | None = None

    def _load(self) -> None:
        if self._loaded:
            return
        self._was_discarded = self.store.get(DISCARDED_FLAG_KEY) == "1"
        self._discarded_workout_id = self.store.get(DISCARDED_ID_KEY) or None
        raw_time = self.store.get(DISCARDED_TIME_KEY)
        self._discard_timestamp = datetime.fromisoformat(raw_time) if raw_time else None
        self._loaded = True

    @property
    def discarded_workout_id(self) -> str | None:
        self._load()
        return self._discarded_workout_id

    @property
    def discard_timestamp(self) -> datetime | None:
        self._load()
        return self._discard_timestamp

    def was_any_discarded(self) -> bool:
        self._load()
        return self._was_discarded

    def mark_discarded(self, workout_id: str | None = None) -> None:
        now = utcnow()
        self._was_discarded = True
        self._discarded_workout_id = workout_id
        self._discard_timestamp = now
        self._loaded = True
        values = {DISCARDED_FLAG_KEY: "1", DISCARDED_TIME_KEY: now.isoformat()}
        removed = []
        if workout_id is not None:
            values[DISCARDED_ID_KEY] = workout_id
        else:
            removed.append(DISCARDED_ID_KEY)
        self.store.update(values, removed)
        logger.info("workout_marked_discarded", workout_id=workout_id)

    def mark_saved(self, workout_id: str | None = None) -> None:
        self.clear()
        logger.debug("workout_marked_saved", workout_id=workout_id)

    def clear(self) -> None:
        self._was_discarded = False
        self._discarded_workout_id = None
        self._discard_timestamp = None
        self._loaded = True
        self.store.update({}, [DISCARDED_FLAG_KEY, DISCARDED_ID_KEY, DISCARDED_TIME_KEY])

    @staticmethod
    def should_offer_resume(has_active_workout: bool, was_discarded: bool) -> bool:
        return has_active_workout and not was_discarded

    def resumable_workout(self, repository: WorkoutRepository) -> Workout | None:
        was_discarded = self.was_any_discarded()
        incomplete = [] if was_discarded else repository.incomplete_workouts()
        if not self.should_offer_resume(bool(incomplete), was_discarded):
            return None
        return incomplete[0]
