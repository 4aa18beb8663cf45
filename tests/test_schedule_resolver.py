import pytest

from portal.services.schedule_resolver import DatabaseScheduleSource, resolve_todays_subjects


class FakeSource:
    def __init__(self, sessions, submitted=()):
        self.sessions = sessions
        self.submitted = set(submitted)
        self.calls = []

    def list_sessions(self, day_of_week, batch_id, semester_number):
        self.calls.append((day_of_week, batch_id, semester_number))
        return self.sessions

    def submitted_subject_ids(self, student_id, batch_id, semester_number):
        return self.submitted


def session(class_id, start, end, name=None, period=None, id=None):
    return {
        'id': id,
        'class_id': class_id,
        'subject_name': name or f"Subject {class_id}",
        'period': period,
        'start_time': start,
        'end_time': end,
    }


class TestResolveTodaysSubjects:

    def test_orders_by_start_time(self):
        source = FakeSource([
            session(2, '10:00', '10:50'),
            session(1, '09:00', '09:50'),
        ])
        subjects = resolve_todays_subjects(1, 7, 2, 99, source)
        assert [s.id for s in subjects] == [1, 2]
        assert source.calls == [(1, 7, 2)]

    def test_marks_submitted_subjects(self):
        source = FakeSource([
            session(1, '09:00', '09:50'),
            session(2, '10:00', '10:50'),
        ], submitted={2})
        subjects = resolve_todays_subjects(1, 7, 2, 99, source)
        assert [s.already_submitted for s in subjects] == [False, True]

    def test_drops_sessions_without_subject(self):
        source = FakeSource([
            session(None, '08:00', '08:50'),
            session(1, '09:00', '09:50'),
        ])
        subjects = resolve_todays_subjects(1, 7, 2, 99, source)
        assert [s.id for s in subjects] == [1]

    def test_same_subject_at_two_periods_kept_separately(self):
        source = FakeSource([
            session(1, '09:00', '09:50', period=1, id=10),
            session(1, '14:00', '14:50', period=5, id=11),
        ])
        subjects = resolve_todays_subjects(1, 7, 2, 99, source)
        assert [s.timetable_id for s in subjects] == [10, 11]

    def test_times_normalised(self):
        source = FakeSource([session(1, '09:00:00', '09:50:00')])
        subject = resolve_todays_subjects(1, 7, 2, 99, source)[0]
        assert (subject.start_time, subject.end_time) == ('09:00', '09:50')
        assert (subject.batch_id, subject.semester_number) == (7, 2)

    def test_no_sessions(self):
        assert resolve_todays_subjects(6, 7, 2, 99, FakeSource([])) == []

    def test_source_errors_propagate(self):
        class BrokenSource(FakeSource):
            def list_sessions(self, *args):
                raise ConnectionError("backend down")

        with pytest.raises(ConnectionError):
            resolve_todays_subjects(1, 7, 2, 99, BrokenSource([]))


class TestDatabaseScheduleSource:

    def test_resolves_seeded_monday(self, seed):
        subjects = resolve_todays_subjects(
            1, seed['batch']['id'], 2, seed['student']['id'], DatabaseScheduleSource()
        )
        assert [s.name for s in subjects] == ['Data Structures', 'Operating Systems']
        assert not any(s.already_submitted for s in subjects)

    def test_other_day_is_empty(self, seed):
        subjects = resolve_todays_subjects(
            2, seed['batch']['id'], 2, seed['student']['id'], DatabaseScheduleSource()
        )
        assert subjects == []
