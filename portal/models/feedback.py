import json
import logging
from .database import get_db

logger = logging.getLogger(__name__)

FEEDBACK_SELECT = '''
    SELECT f.*, s.name AS subject_name, s.period AS subject_period,
           p.first_name, p.last_name, p.avatar_url, b.name AS batch_name
    FROM feedback f
    LEFT JOIN subjects s ON f.class_id = s.id
    LEFT JOIN profiles p ON f.student_id = p.id
    LEFT JOIN batches b ON f.batch_id = b.id
'''


def _feedback(row):
    if row is None:
        return None
    record = dict(row)
    record['is_response_seen_by_student'] = bool(record['is_response_seen_by_student'])
    extra = record.get('additional_feedback')
    record['additional_feedback'] = json.loads(extra) if extra else []
    return record


class Feedback:
    @staticmethod
    def add(student_id, class_id, batch_id, semester_number, rating, comment, additional_feedback):
        """
        Insert a feedback record.

        Raises sqlite3.IntegrityError when the student already has feedback
        for this subject.
        """
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO feedback
                (student_id, class_id, batch_id, semester_number, rating, comment, additional_feedback)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            ''', (student_id, class_id, batch_id, semester_number, rating, comment,
                  json.dumps(additional_feedback or [])))
            return cursor.lastrowid

    @staticmethod
    def get(feedback_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(FEEDBACK_SELECT + ' WHERE f.id = ?', (feedback_id,))
            return _feedback(cursor.fetchone())

    @staticmethod
    def get_all(limit=None):
        query = FEEDBACK_SELECT + ' ORDER BY f.created_at DESC, f.id DESC'
        params = ()
        if limit:
            query += ' LIMIT ?'
            params = (limit,)
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [_feedback(row) for row in cursor.fetchall()]

    @staticmethod
    def get_for_student(student_id):
        """Feedback history of one student, newest first."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(FEEDBACK_SELECT + '''
                WHERE f.student_id = ?
                ORDER BY f.created_at DESC, f.id DESC
            ''', (student_id,))
            return [_feedback(row) for row in cursor.fetchall()]

    @staticmethod
    def exists(student_id, class_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT 1 FROM feedback
                WHERE student_id = ? AND class_id = ?
            ''', (student_id, class_id))
            return cursor.fetchone() is not None

    @staticmethod
    def submitted_subject_ids(student_id, batch_id, semester_number):
        """Ids of subjects the student already gave feedback for in this batch/semester."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT class_id FROM feedback
                WHERE student_id = ? AND batch_id = ? AND semester_number = ?
            ''', (student_id, batch_id, semester_number))
            return {row[0] for row in cursor.fetchall()}

    @staticmethod
    def set_admin_response(feedback_id, admin_response):
        """Store the admin response; a new response is unseen by the student."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE feedback
                SET admin_response = ?, is_response_seen_by_student = 0
                WHERE id = ?
            ''', (admin_response, feedback_id))
            if cursor.rowcount == 0:
                return None
        return Feedback.get(feedback_id)

    @staticmethod
    def unseen_responses(student_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(FEEDBACK_SELECT + '''
                WHERE f.student_id = ?
                  AND f.admin_response IS NOT NULL
                  AND f.is_response_seen_by_student = 0
                ORDER BY f.created_at DESC, f.id DESC
            ''', (student_id,))
            return [_feedback(row) for row in cursor.fetchall()]

    @staticmethod
    def mark_seen(feedback_id, student_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE feedback SET is_response_seen_by_student = 1
                WHERE id = ? AND student_id = ?
            ''', (feedback_id, student_id))
            return cursor.rowcount > 0

    @staticmethod
    def mark_all_seen(student_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE feedback SET is_response_seen_by_student = 1
                WHERE student_id = ? AND admin_response IS NOT NULL
                  AND is_response_seen_by_student = 0
            ''', (student_id,))
            return cursor.rowcount

    @staticmethod
    def count(since=None):
        """Count feedback records, optionally only those created at or after ``since``."""
        with get_db() as conn:
            cursor = conn.cursor()
            if since is None:
                cursor.execute('SELECT COUNT(*) FROM feedback')
            else:
                cursor.execute('SELECT COUNT(*) FROM feedback WHERE created_at >= ?',
                               (since.strftime('%Y-%m-%d %H:%M:%S'),))
            return cursor.fetchone()[0]
