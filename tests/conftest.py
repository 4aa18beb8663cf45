"""
Shared fixtures: a Flask app on a temporary SQLite database, seeded with one
batch, two Monday sessions and one admin and one student account.
"""
import pytest

from app import create_app
from portal.models import Batch, Subject, Timetable, init_db
from portal.services.student_service import create_admin, create_student

ADMIN_EMAIL = 'admin@example.com'
STUDENT_EMAIL = 'student@example.com'
PASSWORD = 'secret123'


@pytest.fixture
def app(tmp_path):
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key-with-at-least-32-bytes',
        'DATABASE_PATH': str(tmp_path / 'portal.db'),
        'UPLOAD_FOLDER': str(tmp_path / 'uploads'),
    })
    init_db(app.config['DATABASE_PATH'])
    with app.app_context():
        yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seed(app):
    """Batch 2024-2028, semester 2: A on Monday 09:00-09:50, B on Monday 10:00-10:50."""
    batch = Batch.create('2024-2028')
    subject_a = Subject.add('Data Structures', 1, batch['id'], 2)
    subject_b = Subject.add('Operating Systems', None, batch['id'], 2)
    Timetable.add(1, subject_a, batch['id'], 2, '09:00', '09:50')
    Timetable.add(1, subject_b, batch['id'], 2, '10:00', '10:50')

    admin = create_admin(ADMIN_EMAIL, PASSWORD, 'Ada', 'Admin')
    student = create_student({
        'email': STUDENT_EMAIL,
        'password': PASSWORD,
        'firstName': 'Sam',
        'lastName': 'Student',
        'batchId': batch['id'],
        'semesterNumber': 2,
    })
    return {
        'batch': batch,
        'subject_a': subject_a,
        'subject_b': subject_b,
        'admin': admin,
        'student': student,
    }


def _login(client, email):
    response = client.post('/api/auth/login', json={'email': email, 'password': PASSWORD})
    assert response.status_code == 200
    return {'Authorization': f"Bearer {response.get_json()['token']}"}


@pytest.fixture
def admin_headers(client, seed):
    return _login(client, ADMIN_EMAIL)


@pytest.fixture
def student_headers(client, seed):
    return _login(client, STUDENT_EMAIL)
