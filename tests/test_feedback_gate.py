from datetime import datetime

from portal.schemas import DailySubject
from portal.services.feedback_gate import FeedbackGate, select_active_subject


def at(hour, minute):
    return datetime(2024, 1, 1, hour, minute)


def subject(id, start, end, submitted=False):
    return DailySubject(id=id, name=f"Subject {id}", start_time=start, end_time=end,
                        batch_id=1, semester_number=2, already_submitted=submitted)


MONDAY = [
    subject(1, '09:00', '09:50'),
    subject(2, '10:00', '10:50'),
]


class TestSelectActiveSubject:

    def test_inside_first_session(self):
        state = select_active_subject(MONDAY, at(9, 10))
        assert state.active_subject.id == 1
        assert state.already_submitted is False

    def test_before_any_session(self):
        state = select_active_subject(MONDAY, at(8, 30))
        assert state.active_subject is None
        assert state.already_submitted is False

    def test_overlapping_grace_prefers_earlier_session(self):
        # 10:05 is both in A's grace period and in B's session
        assert select_active_subject(MONDAY, at(10, 5)).active_subject.id == 1

    def test_after_grace_next_session_wins(self):
        assert select_active_subject(MONDAY, at(10, 6)).active_subject.id == 2

    def test_after_last_session(self):
        assert select_active_subject(MONDAY, at(11, 6)).active_subject is None

    def test_already_submitted_is_reported(self):
        subjects = [subject(1, '09:00', '09:50', submitted=True)]
        state = select_active_subject(subjects, at(9, 10))
        assert state.active_subject.id == 1
        assert state.already_submitted is True

    def test_unsupported_session_is_skipped(self):
        subjects = [subject(3, '23:00', '01:00'), subject(1, '09:00', '09:50')]
        assert select_active_subject(subjects, at(9, 10)).active_subject.id == 1

    def test_custom_grace(self):
        assert select_active_subject(MONDAY, at(9, 55), grace_minutes=0).active_subject is None


class TestFeedbackGate:

    def test_refresh_selects_active_subject(self):
        gate = FeedbackGate(lambda: MONDAY, clock=lambda: at(9, 10))
        state = gate.refresh()
        assert state.active_subject.id == 1
        assert gate.state == state

    def test_fetch_failure_degrades_to_no_subject(self):
        def failing():
            raise ConnectionError("backend down")

        gate = FeedbackGate(failing, clock=lambda: at(9, 10))
        state = gate.refresh()
        assert state.active_subject is None
        assert state.already_submitted is False
        assert gate.daily_subjects == []

    def test_on_change_only_fires_on_change(self):
        changes = []
        now = [at(8, 30)]
        gate = FeedbackGate(lambda: MONDAY, clock=lambda: now[0], on_change=changes.append)

        gate.refresh()
        assert changes == []

        now[0] = at(9, 10)
        gate.refresh()
        gate.refresh()
        assert len(changes) == 1
        assert changes[0].active_subject.id == 1

        now[0] = at(10, 6)
        gate.refresh()
        assert [c.active_subject.id for c in changes] == [1, 2]

    def test_run_polls_until_limit(self):
        fetches = []

        def fetch():
            fetches.append(1)
            return MONDAY

        gate = FeedbackGate(fetch, clock=lambda: at(10, 30), poll_interval=0)
        state = gate.run(max_polls=3)
        assert len(fetches) == 3
        assert state.active_subject.id == 2

    def test_stop_ends_run(self):
        gate = FeedbackGate(lambda: MONDAY, clock=lambda: at(9, 10), poll_interval=0)
        gate.on_change = lambda state: gate.stop()
        state = gate.run()
        assert state.active_subject.id == 1

    def test_stop_before_run_is_kept(self):
        fetches = []
        gate = FeedbackGate(lambda: fetches.append(1) or MONDAY, clock=lambda: at(9, 10), poll_interval=0)
        gate.stop()
        gate.run()
        assert fetches == []

        gate.reset()
        assert gate.run(max_polls=1).active_subject.id == 1
        assert fetches == [1]

    def test_submission_reflected_on_next_refresh(self):
        subjects = [subject(1, '09:00', '09:50')]
        gate = FeedbackGate(lambda: subjects, clock=lambda: at(9, 10))
        assert gate.refresh().already_submitted is False

        subjects[0] = subject(1, '09:00', '09:50', submitted=True)
        assert gate.refresh().already_submitted is True
