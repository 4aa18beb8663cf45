import sqlite3
import os
from contextlib import contextmanager
import logging

from flask import current_app, has_app_context

from config import DATABASE_PATH

logger = logging.getLogger(__name__)


def get_db_path(db_path=None):
    """Resolve the database path and ensure its directory exists.

    An explicit path wins, then the running app's DATABASE_PATH, then the
    configured default.
    """
    if db_path is None:
        if has_app_context():
            db_path = current_app.config.get('DATABASE_PATH', DATABASE_PATH)
        else:
            db_path = DATABASE_PATH
    db_dir = os.path.dirname(db_path)
    if db_dir and not os.path.exists(db_dir):
        os.makedirs(db_dir)
    return db_path


@contextmanager
def get_db(db_path=None):
    """Context manager for database connections."""
    conn = None
    try:
        conn = sqlite3.connect(get_db_path(db_path))
        conn.row_factory = sqlite3.Row
        conn.execute('PRAGMA foreign_keys = ON')
        yield conn
        conn.commit()
    except Exception as e:
        if conn:
            conn.rollback()
        logger.error(f"Database error: {e}")
        raise
    finally:
        if conn:
            conn.close()


def row_to_dict(row):
    return dict(row) if row is not None else None


def init_db(db_path=None):
    """Initialize the database with all required tables."""
    with get_db(db_path) as conn:
        cursor = conn.cursor()

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS batches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL UNIQUE,
                created_at TIMESTAMP DEFAULT (datetime('now', 'localtime'))
            )
        ''')

        # Users and their profiles share one row
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS profiles (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                email TEXT NOT NULL UNIQUE,
                password_hash TEXT NOT NULL,
                first_name TEXT,
                last_name TEXT,
                avatar_url TEXT,
                is_admin INTEGER NOT NULL DEFAULT 0,
                batch_id INTEGER REFERENCES batches(id) ON DELETE SET NULL,
                semester_number INTEGER,
                created_at TIMESTAMP DEFAULT (datetime('now', 'localtime')),
                updated_at TIMESTAMP DEFAULT (datetime('now', 'localtime'))
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_profiles_batch_sem
            ON profiles(batch_id, semester_number)
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS subjects (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                period INTEGER,
                batch_id INTEGER REFERENCES batches(id) ON DELETE CASCADE,
                semester_number INTEGER,
                created_at TIMESTAMP DEFAULT (datetime('now', 'localtime'))
            )
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS timetables (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                day_of_week INTEGER NOT NULL,
                class_id INTEGER NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
                batch_id INTEGER REFERENCES batches(id) ON DELETE CASCADE,
                semester_number INTEGER,
                start_time TEXT NOT NULL,
                end_time TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT (datetime('now', 'localtime')),
                UNIQUE(day_of_week, class_id, batch_id, semester_number, start_time)
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_timetables_day_batch_sem
            ON timetables(day_of_week, batch_id, semester_number)
        ''')

        # One feedback per student per subject
        cursor.execute('''
            CREATE TABLE IF NOT EXISTS feedback (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                student_id INTEGER NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
                class_id INTEGER NOT NULL REFERENCES subjects(id) ON DELETE CASCADE,
                batch_id INTEGER REFERENCES batches(id) ON DELETE SET NULL,
                semester_number INTEGER,
                rating INTEGER NOT NULL CHECK (rating BETWEEN 1 AND 5),
                comment TEXT,
                additional_feedback TEXT,
                admin_response TEXT,
                is_response_seen_by_student INTEGER NOT NULL DEFAULT 0,
                created_at TIMESTAMP DEFAULT (datetime('now', 'localtime')),
                UNIQUE(student_id, class_id)
            )
        ''')

        cursor.execute('''
            CREATE INDEX IF NOT EXISTS idx_feedback_student_batch_sem
            ON feedback(student_id, batch_id, semester_number)
        ''')

        cursor.execute('''
            CREATE TABLE IF NOT EXISTS feedback_questions (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                question_text TEXT NOT NULL,
                question_type TEXT NOT NULL CHECK (question_type IN ('text', 'multiple_choice')),
                options TEXT,
                batch_id INTEGER REFERENCES batches(id) ON DELETE CASCADE,
                semester_number INTEGER,
                created_at TIMESTAMP DEFAULT (datetime('now', 'localtime'))
            )
        ''')

        conn.commit()
        logger.info("Database initialized successfully")
