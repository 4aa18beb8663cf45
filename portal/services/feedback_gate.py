"""
Feedback submission gate.

Combines the daily schedule with the time window check and exposes a single
value: the subject whose feedback window is open now, and whether the
student already submitted feedback for it. The gate re-evaluates on a fixed
polling interval and whenever refresh() is called.

If the schedule cannot be fetched the gate reports no active subject instead
of raising, so the feedback form is simply hidden during an outage.
"""
import logging
import threading

from config import FEEDBACK_GRACE_PERIOD_MINUTES, POLL_INTERVAL_SECONDS
from portal.schemas import GateState
from portal.services.feedback_window import UnsupportedSessionError, is_within_feedback_window
from utils import local_now

logger = logging.getLogger(__name__)


def select_active_subject(daily_subjects, now, grace_minutes=FEEDBACK_GRACE_PERIOD_MINUTES):
    """
    Pick the first subject, in schedule order, whose window contains ``now``.

    Sessions of one batch/semester are not expected to overlap, so the first
    match wins without further tie-breaking.
    """
    for subject in daily_subjects:
        try:
            open_now = is_within_feedback_window(now, subject.start_time, subject.end_time, grace_minutes)
        except UnsupportedSessionError as e:
            logger.warning(f"Skipping subject {subject.id}: {e}")
            continue
        if open_now:
            return GateState(active_subject=subject, already_submitted=subject.already_submitted)
    return GateState()


class FeedbackGate:
    """
    Polls a schedule fetcher and keeps the current GateState.

    ``fetch_subjects`` is a zero-argument callable returning today's
    DailySubject list for one student; ``clock`` returns the current naive
    local datetime.
    """

    def __init__(self, fetch_subjects, clock=local_now,
                 grace_minutes=FEEDBACK_GRACE_PERIOD_MINUTES,
                 poll_interval=POLL_INTERVAL_SECONDS,
                 on_change=None):
        self.fetch_subjects = fetch_subjects
        self.clock = clock
        self.grace_minutes = grace_minutes
        self.poll_interval = poll_interval
        self.on_change = on_change
        self.daily_subjects = []
        self.state = GateState()
        self._stopped = threading.Event()

    def refresh(self):
        """Refetch the schedule and re-evaluate the gate."""
        try:
            self.daily_subjects = list(self.fetch_subjects())
        except Exception as e:
            logger.warning(f"Could not load today's subjects, hiding feedback form: {e}")
            self.daily_subjects = []

        new_state = select_active_subject(self.daily_subjects, self.clock(), self.grace_minutes)
        changed = new_state != self.state
        self.state = new_state
        if changed and self.on_change:
            self.on_change(new_state)
        return new_state

    def run(self, max_polls=None):
        """
        Evaluate immediately, then every poll_interval seconds until stop().

        A stop() issued before run() makes it return without polling; call
        reset() to run the same gate again.
        """
        polls = 0
        while not self._stopped.is_set():
            self.refresh()
            polls += 1
            if max_polls is not None and polls >= max_polls:
                break
            self._stopped.wait(self.poll_interval)
        return self.state

    def stop(self):
        self._stopped.set()

    def reset(self):
        self._stopped.clear()
