import json
import logging
from .database import get_db

logger = logging.getLogger(__name__)

QUESTION_SELECT = '''
    SELECT q.*, b.name AS batch_name
    FROM feedback_questions q
    LEFT JOIN batches b ON q.batch_id = b.id
'''


def _question(row):
    if row is None:
        return None
    question = dict(row)
    question['options'] = json.loads(question['options']) if question['options'] else None
    return question


class FeedbackQuestionStore:
    """Persistence for feedback questions; rows are validated by portal.schemas.parse_question."""

    @staticmethod
    def add(question):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO feedback_questions
                (question_text, question_type, options, batch_id, semester_number)
                VALUES (?, ?, ?, ?, ?)
            ''', (question.question_text, question.question_type,
                  json.dumps(question.options) if question.options else None,
                  question.batch_id, question.semester_number))
            return cursor.lastrowid

    @staticmethod
    def get(question_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(QUESTION_SELECT + ' WHERE q.id = ?', (question_id,))
            return _question(cursor.fetchone())

    @staticmethod
    def get_all():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(QUESTION_SELECT + ' ORDER BY q.created_at DESC, q.id DESC')
            return [_question(row) for row in cursor.fetchall()]

    @staticmethod
    def get_for(batch_id, semester_number):
        """Questions asked to one batch/semester, in creation order."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(QUESTION_SELECT + '''
                WHERE q.batch_id = ? AND q.semester_number = ?
                ORDER BY q.id ASC
            ''', (batch_id, semester_number))
            return [_question(row) for row in cursor.fetchall()]

    @staticmethod
    def update(question_id, question):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE feedback_questions
                SET question_text = ?, question_type = ?, options = ?, batch_id = ?, semester_number = ?
                WHERE id = ?
            ''', (question.question_text, question.question_type,
                  json.dumps(question.options) if question.options else None,
                  question.batch_id, question.semester_number, question_id))
            if cursor.rowcount == 0:
                return None
        return FeedbackQuestionStore.get(question_id)

    @staticmethod
    def delete(question_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM feedback_questions WHERE id = ?', (question_id,))
            return cursor.rowcount > 0
