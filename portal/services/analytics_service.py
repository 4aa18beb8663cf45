"""
Feedback analytics for the admin dashboard and reports.
"""
import logging
from datetime import datetime, timedelta

from config import DEFAULT_TRENDS_DAYS
from portal.models import Feedback, Student, Subject, get_db
from utils import local_now

logger = logging.getLogger(__name__)


def _filters(batch_id=None, semester_number=None, alias='f'):
    clauses = []
    params = []
    if batch_id is not None:
        clauses.append(f'{alias}.batch_id = ?')
        params.append(batch_id)
    if semester_number is not None:
        clauses.append(f'{alias}.semester_number = ?')
        params.append(semester_number)
    return clauses, params


def dashboard_stats(now=None):
    now = now or local_now()
    start_of_day = datetime(now.year, now.month, now.day)
    return {
        'studentCount': Student.count(),
        'subjectCount': Subject.count(),
        'totalFeedbackCount': Feedback.count(),
        'feedbackTodayCount': Feedback.count(since=start_of_day),
    }


def subject_stats():
    """Average rating and feedback count per subject with at least one feedback."""
    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute('''
            SELECT s.id AS subject_id,
                   s.name AS subject_name,
                   COUNT(f.id) AS feedback_count,
                   COALESCE(AVG(f.rating), 0) AS average_rating
            FROM subjects s
            LEFT JOIN feedback f ON s.id = f.class_id
            GROUP BY s.id, s.name
            HAVING COUNT(f.id) > 0
            ORDER BY average_rating DESC
        ''')
        return [dict(row) for row in cursor.fetchall()]


def feedback_analytics(batch_id=None, semester_number=None):
    """
    Per-subject rating summary including the count of each rating 1-5.
    """
    clauses, params = _filters(batch_id, semester_number)
    where = ('WHERE ' + ' AND '.join(clauses)) if clauses else ''

    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(f'''
            SELECT s.id AS subject_id,
                   s.name AS subject_name,
                   s.period AS period,
                   COUNT(f.id) AS feedback_count,
                   AVG(f.rating) AS average_rating,
                   MIN(f.rating) AS min_rating,
                   MAX(f.rating) AS max_rating,
                   SUM(CASE WHEN f.rating = 1 THEN 1 ELSE 0 END) AS r1,
                   SUM(CASE WHEN f.rating = 2 THEN 1 ELSE 0 END) AS r2,
                   SUM(CASE WHEN f.rating = 3 THEN 1 ELSE 0 END) AS r3,
                   SUM(CASE WHEN f.rating = 4 THEN 1 ELSE 0 END) AS r4,
                   SUM(CASE WHEN f.rating = 5 THEN 1 ELSE 0 END) AS r5
            FROM subjects s
            JOIN feedback f ON s.id = f.class_id
            {where}
            GROUP BY s.id, s.name, s.period
            ORDER BY average_rating DESC
        ''', params)

        analytics = []
        for row in cursor.fetchall():
            record = dict(row)
            record['rating_counts'] = {str(i): record.pop(f'r{i}') for i in range(1, 6)}
            analytics.append(record)
        return analytics


def feedback_trends(timeframe_days=DEFAULT_TRENDS_DAYS, batch_id=None, semester_number=None, now=None):
    """Daily submission counts and average rating over the last ``timeframe_days`` days."""
    now = now or local_now()
    start = now - timedelta(days=timeframe_days)
    clauses, params = _filters(batch_id, semester_number)
    clauses = ['f.created_at >= ?', 'f.created_at <= ?'] + clauses
    params = [start.strftime('%Y-%m-%d %H:%M:%S'), now.strftime('%Y-%m-%d %H:%M:%S')] + params

    with get_db() as conn:
        cursor = conn.cursor()
        cursor.execute(f'''
            SELECT DATE(f.created_at) AS date,
                   COUNT(*) AS submission_count,
                   AVG(f.rating) AS average_rating
            FROM feedback f
            WHERE {' AND '.join(clauses)}
            GROUP BY DATE(f.created_at)
            ORDER BY date ASC
        ''', params)
        return [dict(row) for row in cursor.fetchall()]


def recent_feedback(limit=5):
    return Feedback.get_all(limit=limit)
