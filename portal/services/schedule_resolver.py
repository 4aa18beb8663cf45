"""
Resolves the subjects a student has on a given weekday, marking the ones
they already gave feedback for.

The resolver only needs two queries from its data source, so the same logic
runs against the database (server side) and against the REST API (student
watcher side):

- ``list_sessions(day_of_week, batch_id, semester_number)``: timetable rows
  with ``class_id``, ``subject_name``, ``period``, ``start_time``, ``end_time``.
- ``submitted_subject_ids(student_id, batch_id, semester_number)``: ids of
  subjects with an existing feedback record.
"""
import logging

from portal.models import Feedback, Timetable
from portal.schemas import DailySubject
from utils import format_time, parse_time

logger = logging.getLogger(__name__)


def resolve_todays_subjects(day_of_week, batch_id, semester_number, student_id, source):
    """
    Return today's sessions as DailySubject objects ordered by start time.

    Sessions of the same subject at different periods are kept as separate
    entries. Errors from the source propagate to the caller.
    """
    sessions = [
        session for session in source.list_sessions(day_of_week, batch_id, semester_number)
        if session.get('class_id') is not None
    ]
    sessions.sort(key=lambda session: parse_time(session['start_time']))

    submitted = set(source.submitted_subject_ids(student_id, batch_id, semester_number))

    daily_subjects = []
    for session in sessions:
        daily_subjects.append(DailySubject(
            timetable_id=session.get('id'),
            id=session['class_id'],
            name=session.get('subject_name') or '',
            period=session.get('period'),
            start_time=format_time(session['start_time']),
            end_time=format_time(session['end_time']),
            batch_id=batch_id,
            semester_number=semester_number,
            already_submitted=session['class_id'] in submitted,
        ))

    logger.info(
        f"Resolved {len(daily_subjects)} sessions for student {student_id} "
        f"(day {day_of_week}, batch {batch_id}, semester {semester_number}), "
        f"{sum(1 for s in daily_subjects if s.already_submitted)} already submitted"
    )
    return daily_subjects


class DatabaseScheduleSource:
    """Schedule source backed by the portal database."""

    def list_sessions(self, day_of_week, batch_id, semester_number):
        return Timetable.list(day_of_week=day_of_week, batch_id=batch_id, semester_number=semester_number)

    def submitted_subject_ids(self, student_id, batch_id, semester_number):
        return Feedback.submitted_subject_ids(student_id, batch_id, semester_number)
