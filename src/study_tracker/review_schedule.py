"""Spaced-repetition review generation for completed study sessions."""
import logging
from datetime import timedelta

from study_tracker.models import ReviewTask, StudySession, Task

logger = logging.getLogger(__name__)


def on_session_completed(session: StudySession, task: Task, intervals: list[int]) -> list[ReviewTask]:
    """Build the review occurrences produced by a finished session.

    Review ``i`` (1-based) lands ``intervals[i-1]`` days after the day the
    session ended. Nothing is produced when the task has reviews disabled.
    Rows already stored for earlier sessions are never touched here, so a tier
    downgrade only affects future generations.
    """
    if not task.review_enabled:
        return []
    if session.ended_at is None:
        raise ValueError(f"session {session.id} has not ended")

    finished_on = session.ended_at.date()
    reviews = [
        ReviewTask(
            id=None,
            study_session_id=session.id,
            task_id=task.id,
            scheduled_date=finished_on + timedelta(days=offset),
            review_number=i + 1,
        )
        for i, offset in enumerate(intervals)
    ]
    logger.debug("Generated %d review tasks for task %s (session %s)", len(reviews), task.id, session.id)
    return reviews
