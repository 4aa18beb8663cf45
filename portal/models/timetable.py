import logging
from .database import get_db, row_to_dict

logger = logging.getLogger(__name__)

TIMETABLE_SELECT = '''
    SELECT t.*, s.name AS subject_name, s.period AS period, b.name AS batch_name
    FROM timetables t
    LEFT JOIN subjects s ON t.class_id = s.id
    LEFT JOIN batches b ON t.batch_id = b.id
'''


class Timetable:
    """Scheduled sessions. Times are stored as HH:MM strings, so they sort lexically."""

    @staticmethod
    def add(day_of_week, class_id, batch_id, semester_number, start_time, end_time):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO timetables
                (day_of_week, class_id, batch_id, semester_number, start_time, end_time)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', (day_of_week, class_id, batch_id, semester_number, start_time, end_time))
            return cursor.lastrowid

    @staticmethod
    def bulk_add(entries):
        """
        Insert many sessions in one transaction.
        entries: list of tuples (day_of_week, class_id, batch_id, semester_number, start_time, end_time)
        """
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.executemany('''
                INSERT INTO timetables
                (day_of_week, class_id, batch_id, semester_number, start_time, end_time)
                VALUES (?, ?, ?, ?, ?, ?)
            ''', entries)
            return cursor.rowcount

    @staticmethod
    def get(entry_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(TIMETABLE_SELECT + ' WHERE t.id = ?', (entry_id,))
            return row_to_dict(cursor.fetchone())

    @staticmethod
    def list(day_of_week=None, batch_id=None, semester_number=None):
        """List sessions, optionally filtered, by day then start time."""
        clauses = []
        params = []
        if day_of_week is not None:
            clauses.append('t.day_of_week = ?')
            params.append(day_of_week)
        if batch_id is not None:
            clauses.append('t.batch_id = ?')
            params.append(batch_id)
        if semester_number is not None:
            clauses.append('t.semester_number = ?')
            params.append(semester_number)

        query = TIMETABLE_SELECT
        if clauses:
            query += ' WHERE ' + ' AND '.join(clauses)
        query += ' ORDER BY t.day_of_week ASC, t.start_time ASC'

        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [dict(row) for row in cursor.fetchall()]

    @staticmethod
    def find_overlap(day_of_week, batch_id, semester_number, start_time, end_time, exclude_id=None):
        """Return an existing session of the same batch/semester/day that overlaps [start, end)."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(TIMETABLE_SELECT + '''
                WHERE t.day_of_week = ? AND t.batch_id = ? AND t.semester_number = ?
                  AND t.start_time < ? AND t.end_time > ?
                  AND (? IS NULL OR t.id != ?)
                ORDER BY t.start_time ASC
                LIMIT 1
            ''', (day_of_week, batch_id, semester_number, end_time, start_time, exclude_id, exclude_id))
            return row_to_dict(cursor.fetchone())

    @staticmethod
    def update(entry_id, day_of_week, class_id, batch_id, semester_number, start_time, end_time):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE timetables
                SET day_of_week = ?, class_id = ?, batch_id = ?, semester_number = ?,
                    start_time = ?, end_time = ?
                WHERE id = ?
            ''', (day_of_week, class_id, batch_id, semester_number, start_time, end_time, entry_id))
        return Timetable.get(entry_id)

    @staticmethod
    def delete(entry_id):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM timetables WHERE id = ?', (entry_id,))
            return cursor.rowcount > 0
