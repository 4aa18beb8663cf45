"""
Decides whether feedback for a scheduled class may be submitted right now.

A class occurrence accepts feedback from its start time until its end time
plus a grace period, both bounds inclusive, on the date of ``now``. All times
are naive local times of the host clock.
"""
import logging
from datetime import datetime, timedelta

from config import FEEDBACK_GRACE_PERIOD_MINUTES
from utils import parse_time

logger = logging.getLogger(__name__)


class UnsupportedSessionError(ValueError):
    """Raised for sessions whose end is not after their start (e.g. crossing midnight)."""


def feedback_window(now, start_time, end_time, grace_minutes=FEEDBACK_GRACE_PERIOD_MINUTES):
    """Return the (opens, closes) datetimes of the window on ``now``'s date."""
    if grace_minutes < 0:
        raise ValueError("grace_minutes cannot be negative")

    start = datetime.combine(now.date(), parse_time(start_time))
    end = datetime.combine(now.date(), parse_time(end_time))
    if end <= start:
        raise UnsupportedSessionError(
            f"Session {start_time}-{end_time} does not end after it starts; "
            "sessions crossing midnight are not supported"
        )
    return start, end + timedelta(minutes=grace_minutes)


def is_within_feedback_window(now, start_time, end_time, grace_minutes=FEEDBACK_GRACE_PERIOD_MINUTES):
    opens, closes = feedback_window(now, start_time, end_time, grace_minutes)
    return opens <= now <= closes
