"""
Student and batch management used by the admin routes and bulk imports.
"""
import sqlite3
import logging

from portal.errors import DuplicateRecord, RecordNotFound, ValidationFailed
from portal.models import Batch, Student
from portal.services.auth_service import hash_password
from utils import first_present, normalize_batch_name, parse_int, parse_semester

logger = logging.getLogger(__name__)


def _normalize_email(email):
    email = (email or '').strip().lower()
    if '@' not in email or email.startswith('@') or email.endswith('@'):
        raise ValidationFailed("Invalid email address")
    return email


def _enrolment(data):
    batch_id = parse_int(first_present(data, 'batchId', 'batch_id'), 'batchId')
    if not Batch.get(batch_id):
        raise ValidationFailed(f"Batch {batch_id} does not exist")
    semester_number = parse_semester(first_present(data, 'semesterNumber', 'semester_number'))
    return batch_id, semester_number


def _name(data, camel, snake, label):
    value = (first_present(data, camel, snake) or '').strip()
    if not value:
        raise ValidationFailed(f"{label} is required")
    return value


def register_user(data):
    """Self-registration: a student account without batch assignment."""
    email = _normalize_email(data.get('email'))
    password_hash = hash_password(data.get('password'))
    try:
        profile_id = Student.add(
            email, password_hash,
            first_name=(first_present(data, 'firstName', 'first_name') or '').strip() or None,
            last_name=(first_present(data, 'lastName', 'last_name') or '').strip() or None,
        )
    except sqlite3.IntegrityError:
        raise DuplicateRecord("User with this email already exists")
    logger.info(f"Registered user {email}")
    return Student.get_by_id(profile_id)


def create_student(data):
    """Create a student enrolled in a batch and semester."""
    email = _normalize_email(data.get('email'))
    first_name = _name(data, 'firstName', 'first_name', 'First name')
    last_name = _name(data, 'lastName', 'last_name', 'Last name')
    batch_id, semester_number = _enrolment(data)
    password_hash = hash_password(data.get('password'))

    try:
        profile_id = Student.add(email, password_hash, first_name, last_name, batch_id, semester_number)
    except sqlite3.IntegrityError:
        raise DuplicateRecord("User with this email already exists")
    logger.info(f"Created student {email} (batch {batch_id}, semester {semester_number})")
    return Student.get_by_id(profile_id)


def update_student(profile_id, data):
    first_name = _name(data, 'firstName', 'first_name', 'First name')
    last_name = _name(data, 'lastName', 'last_name', 'Last name')
    batch_id, semester_number = _enrolment(data)
    student = Student.update(profile_id, first_name, last_name, batch_id, semester_number)
    if not student:
        raise RecordNotFound("Student")
    return student


def create_admin(email, password, first_name=None, last_name=None):
    """Create an administrator account (used by the server bootstrap)."""
    email = _normalize_email(email)
    try:
        profile_id = Student.add(email, hash_password(password), first_name, last_name, is_admin=True)
    except sqlite3.IntegrityError:
        raise DuplicateRecord("User with this email already exists")
    logger.info(f"Created admin {email}")
    return Student.get_by_id(profile_id)


def create_batch(name):
    name = normalize_batch_name(name)
    try:
        return Batch.create(name)
    except sqlite3.IntegrityError:
        raise DuplicateRecord("Batch with this name already exists")


def rename_batch(batch_id, name):
    name = normalize_batch_name(name)
    if not Batch.get(batch_id):
        raise RecordNotFound("Batch")
    try:
        return Batch.update(batch_id, name)
    except sqlite3.IntegrityError:
        raise DuplicateRecord("Batch with this name already exists")
