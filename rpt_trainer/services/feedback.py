from typing import Protocol

import structlog

logger = structlog.get_logger(__name__)


class FeedbackSink(Protocol):
    """Fire-and-forget notifications (haptics, sounds). Failures must never reach the caller."""

    def set_completed(self) -> None: ...

    def rest_timer_finished(self) -> None: ...

    def workout_completed(self) -> None: ...


class LoggingFeedbackSink:
    def set_completed(self) -> None:
        logger.debug("feedback_set_completed")

    def rest_timer_finished(self) -> None:
        logger.info("feedback_rest_timer_finished")

    def workout_completed(self) -> None:
        logger.info("feedback_workout_completed")


def notify(sink: FeedbackSink | None, event: str) -> None:
    if sink is None:
        return
    try:
        getattr(sink, event)()
    except Exception:
        logger.exception("feedback_failed", event=event)
