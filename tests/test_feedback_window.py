from datetime import datetime, time

import pytest

from portal.services.feedback_window import (
    UnsupportedSessionError,
    feedback_window,
    is_within_feedback_window,
)


def at(hour, minute, second=0):
    return datetime(2024, 1, 1, hour, minute, second)


class TestFeedbackWindow:
    """A 09:00-09:50 session with the default 15 minute grace period."""

    def test_window_bounds(self):
        opens, closes = feedback_window(at(9, 30), '09:00', '09:50')
        assert opens == at(9, 0)
        assert closes == at(10, 5)

    @pytest.mark.parametrize('now, expected', [
        (at(8, 59), False),
        (at(9, 0), True),
        (at(9, 25), True),
        (at(9, 50), True),
        (at(10, 4), True),
        (at(10, 5), True),
        (at(10, 5, 1), False),
        (at(10, 6), False),
    ])
    def test_inclusive_bounds(self, now, expected):
        assert is_within_feedback_window(now, '09:00', '09:50', 15) is expected

    def test_zero_grace_closes_at_end(self):
        assert is_within_feedback_window(at(9, 50), '09:00', '09:50', 0)
        assert not is_within_feedback_window(at(9, 51), '09:00', '09:50', 0)

    def test_accepts_seconds_and_time_objects(self):
        assert is_within_feedback_window(at(9, 10), '09:00:00', '09:50:00')
        assert is_within_feedback_window(at(9, 10), time(9, 0), time(9, 50))

    def test_window_uses_the_date_of_now(self):
        now = datetime(2024, 3, 15, 9, 10)
        opens, _ = feedback_window(now, '09:00', '09:50')
        assert opens.date() == now.date()

    def test_midnight_crossing_session_is_unsupported(self):
        with pytest.raises(UnsupportedSessionError):
            is_within_feedback_window(at(23, 30), '23:00', '01:00')

    def test_zero_length_session_is_unsupported(self):
        with pytest.raises(UnsupportedSessionError):
            feedback_window(at(9, 0), '09:00', '09:00')

    def test_negative_grace_rejected(self):
        with pytest.raises(ValueError):
            feedback_window(at(9, 0), '09:00', '09:50', -1)

    def test_malformed_time_rejected(self):
        with pytest.raises(ValueError):
            is_within_feedback_window(at(9, 0), '9am', '09:50')
