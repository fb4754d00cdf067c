import calendar
from datetime import datetime, timedelta

import structlog

from ..config import get_settings
from ..exceptions import WorkoutNotFoundException
from ..repositories.workouts_repository import WorkoutRepository
from ..schemas.exercise import Exercise
from ..schemas.stats import FormattedWorkoutStats, TimeFrame, WorkoutStats
from ..schemas.template import WorkoutTemplate
from ..schemas.workout import ExerciseSet, Workout, utcnow
from ..workout_calculation import format_duration, format_volume
from .feedback import FeedbackSink
from .session_service import SessionService
from .settings_service import SettingsProvider
from .template_service import TemplateService
from .workout_state_service import WorkoutStateService

logger = structlog.get_logger(__name__)


def _months_before(moment: datetime, months: int) -> datetime:
    month_index = moment.year * 12 + moment.month - 1 - months
    year, month = divmod(month_index, 12)
    day = min(moment.day, calendar.monthrange(year, month + 1)[1])
    return moment.replace(year=year, month=month + 1, day=day)


def time_frame_start(time_frame: TimeFrame, now: datetime) -> datetime:
    if time_frame == TimeFrame.WEEK:
        return now - timedelta(days=7)
    if time_frame == TimeFrame.MONTH:
        return _months_before(now, 1)
    if time_frame == TimeFrame.YEAR:
        return _months_before(now, 12)
    return datetime.min


class WorkoutService:
    """Starting, resuming and summarising workouts.

    Anything that begins a brand-new session clears the discarded-workout
    flag; resuming goes through ``WorkoutStateService`` so a discarded
    workout is never offered again.
    """

    def __init__(
        self,
        repository: WorkoutRepository,
        state: WorkoutStateService,
        templates: TemplateService | None = None,
    ):
        self.repository = repository
        self.state = state
        self.templates = templates

    def start_new_workout(self, name: str = "Workout") -> Workout:
        workout = self.repository.create_workout(name=name)
        self.state.clear()
        logger.info("workout_started", workout_id=workout.id)
        return workout

    def start_workout_from_template(self, template: WorkoutTemplate) -> Workout:
        if self.templates is None:
            raise RuntimeError("WorkoutService was created without a TemplateService")
        workout = self.templates.build_workout_from_template(template)
        self.repository.add_workout(workout)
        self.state.clear()
        logger.info("workout_started", workout_id=workout.id, template=template.name, sets=len(workout.sets))
        return workout

    def create_follow_up_workout(self, workout: Workout, percentage_increase: float = 0.025) -> Workout:
        follow_up = workout.create_follow_up_workout(
            percentage_increase=percentage_increase,
            increment=get_settings().WEIGHT_INCREMENT,
        )
        self.repository.add_workout(follow_up)
        self.state.clear()
        logger.info("follow_up_workout_created", workout_id=follow_up.id, source_workout_id=workout.id)
        return follow_up

    def open_session(
        self,
        workout: Workout,
        settings: SettingsProvider,
        feedback: FeedbackSink | None = None,
    ) -> SessionService:
        return SessionService(workout, self.repository, self.state, settings, feedback=feedback)

    def resumable_workout(self) -> Workout | None:
        return self.state.resumable_workout(self.repository)

    def get_workout(self, workout_id: str) -> Workout:
        workout = self.repository.get_workout(workout_id)
        if workout is None:
            raise WorkoutNotFoundException(workout_id)
        return workout

    def recent_workouts(self, limit: int = 10) -> list[Workout]:
        return self.repository.recent_workouts(limit=limit)

    def workout_history(self, exercise: Exercise) -> list[tuple[Workout, list[ExerciseSet]]]:
        return self.repository.history(exercise)

    def calculate_workout_stats(self, time_frame: TimeFrame, now: datetime | None = None) -> WorkoutStats:
        now = now or utcnow()
        workouts = self.repository.workouts_between(time_frame_start(time_frame, now), now)
        if not workouts:
            return WorkoutStats()
        return WorkoutStats(
            count=len(workouts),
            total_volume=sum(workout.total_volume for workout in workouts),
            average_duration=sum(workout.duration for workout in workouts) / len(workouts),
        )

    def calculate_workout_stats_formatted(
        self,
        time_frame: TimeFrame,
        now: datetime | None = None,
    ) -> FormattedWorkoutStats:
        stats = self.calculate_workout_stats(time_frame, now)
        return FormattedWorkoutStats(
            count=stats.count,
            total_volume=format_volume(stats.total_volume, unit=get_settings().WEIGHT_UNIT),
            average_duration=format_duration(stats.average_duration),
        )
