import logging
from .database import get_db, row_to_dict

logger = logging.getLogger(__name__)

SUBJECT_SELECT = '''
    SELECT s.*, b.name AS batch_name
    FROM subjects s
    LEFT JOIN batches b ON s.batch_id = b.id
'''


class Subject:
    @staticmethod
    def add(name, period, batch_id, semester_number):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO subjects (name, period, batch_id, semester_number)
                VALUES (?, ?, ?, ?)
            ''', (name, period, batch_id, semester_number))
            return cursor.lastrowid

    @staticmethod
    def get(subject_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(SUBJECT_SELECT + ' WHERE s.id = ?', (subject_id,))
            return row_to_dict(cursor.fetchone())

    @staticmethod
    def get_all():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(SUBJECT_SELECT + ' ORDER BY s.name ASC, s.period ASC')
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def lookup_map():
        """
        Map subject keys to ids for timetable imports.

        The key is (name, period, batch_id, semester_number); period, batch
        and semester are None when the subject has none.
        """
        lookup = {}
        for subject in Subject.get_all():
            key = (subject['name'], subject['period'] or None, subject['batch_id'],
                   subject['semester_number'] if subject['batch_id'] is not None else None)
            lookup[key] = subject['id']
        return lookup

    @staticmethod
    def update(subject_id, name, period, batch_id, semester_number):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE subjects
                SET name = ?, period = ?, batch_id = ?, semester_number = ?
                WHERE id = ?
            ''', (name, period, batch_id, semester_number, subject_id))
        return Subject.get(subject_id)

    @staticmethod
    def delete(subject_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM subjects WHERE id = ?', (subject_id,))
            return cursor.rowcount > 0

    @staticmethod
    def count():
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM subjects')
            return cursor.fetchone()[0]
