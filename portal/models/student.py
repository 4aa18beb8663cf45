import logging
from .database import get_db, row_to_dict

logger = logging.getLogger(__name__)

PROFILE_COLUMNS = '''
    p.id, p.email, p.first_name, p.last_name, p.avatar_url, p.is_admin,
    p.batch_id, p.semester_number, p.created_at, p.updated_at,
    b.name AS batch_name
'''


def _profile(row):
    profile = row_to_dict(row)
    if profile is not None:
        profile['is_admin'] = bool(profile['is_admin'])
    return profile


class Student:
    """Users of the portal. Students are profiles with is_admin = 0."""

    @staticmethod
    def add(email, password_hash, first_name=None, last_name=None,
            batch_id=None, semester_number=None, is_admin=False):
        """Add a new user. Raises sqlite3.IntegrityError when the email exists."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO profiles
                (email, password_hash, first_name, last_name, is_admin, batch_id, semester_number)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            ''', (email, password_hash, first_name, last_name, int(is_admin), batch_id, semester_number))
            return cursor.lastrowid

    @staticmethod
    def get_by_id(profile_id):
        """Get a profile with its batch name."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                SELECT {PROFILE_COLUMNS}
                FROM profiles p
                LEFT JOIN batches b ON p.batch_id = b.id
                WHERE p.id = ?
            ''', (profile_id,))
            return _profile(cursor.fetchone())

    @staticmethod
    def get_credentials(email):
        """Get id, email, password hash and admin flag for a login attempt."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                SELECT id, email, password_hash, is_admin
                FROM profiles
                WHERE email = ?
            ''', (email,))
            return row_to_dict(cursor.fetchone())

    @staticmethod
    def get_all():
        """Get all students (non-admin profiles)."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                SELECT {PROFILE_COLUMNS}
                FROM profiles p
                LEFT JOIN batches b ON p.batch_id = b.id
                WHERE p.is_admin = 0
                ORDER BY p.first_name ASC, p.last_name ASC
            ''')
            return [_profile(row) for row in cursor.fetchall()]

    @staticmethod
    def get_by_batch_sem(batch_id, semester_number):
        """Get all students for a batch and semester."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute(f'''
                SELECT {PROFILE_COLUMNS}
                FROM profiles p
                LEFT JOIN batches b ON p.batch_id = b.id
                WHERE p.is_admin = 0 AND p.batch_id = ? AND p.semester_number = ?
                ORDER BY p.first_name ASC, p.last_name ASC
            ''', (batch_id, semester_number))
            return [_profile(row) for row in cursor.fetchall()]

    @staticmethod
    def update(profile_id, first_name, last_name, batch_id, semester_number):
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                UPDATE profiles
                SET first_name = ?, last_name = ?, batch_id = ?, semester_number = ?,
                    updated_at = datetime('now', 'localtime')
                WHERE id = ? AND is_admin = 0
            ''', (first_name, last_name, batch_id, semester_number, profile_id))
            if cursor.rowcount == 0:
                return None
        return Student.get_by_id(profile_id)

    @staticmethod
    def delete(profile_id):
        """Delete a student together with their feedback."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('DELETE FROM profiles WHERE id = ? AND is_admin = 0', (profile_id,))
            return cursor.rowcount > 0

    @staticmethod
    def count():
        """Get total number of students."""
        with get_db() as conn:
            cursor = conn.cursor()
            cursor.execute('SELECT COUNT(*) FROM profiles WHERE is_admin = 0')
            return cursor.fetchone()[0]
