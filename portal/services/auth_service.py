"""
Token authentication for the REST API.

Tokens are HS256 JWTs carrying the profile id; the signing key is the app's
SECRET_KEY. Route decorators load the current profile into ``g.current_user``.
"""
import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request
from werkzeug.security import check_password_hash, generate_password_hash

from config import MIN_PASSWORD_LENGTH, TOKEN_EXPIRY_DAYS
from portal.errors import AdminRequired, AuthenticationRequired, ValidationFailed
from portal.models import Student

logger = logging.getLogger(__name__)


def hash_password(password):
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    return generate_password_hash(password)


def generate_token(profile_id, email):
    payload = {
        'user_id': profile_id,
        'email': email,
        'exp': datetime.now(timezone.utc) + timedelta(days=TOKEN_EXPIRY_DAYS),
    }
    return jwt.encode(payload, current_app.config['SECRET_KEY'], algorithm='HS256')


def authenticate(email, password):
    """Return (token, profile) for valid credentials, raise AuthenticationRequired otherwise."""
    credentials = Student.get_credentials((email or '').strip().lower())
    if not credentials or not check_password_hash(credentials['password_hash'], password or ''):
        logger.info(f"Login failed for {email}")
        raise AuthenticationRequired("Invalid email or password")

    logger.info(f"Login OK for {email}")
    token = generate_token(credentials['id'], credentials['email'])
    return token, Student.get_by_id(credentials['id'])


def _current_profile():
    header = request.headers.get('Authorization', '')
    token = header.split(' ', 1)[1].strip() if header.startswith('Bearer ') else None
    if not token:
        raise AuthenticationRequired()

    try:
        payload = jwt.decode(token, current_app.config['SECRET_KEY'], algorithms=['HS256'])
    except jwt.ExpiredSignatureError:
        raise AuthenticationRequired("Token has expired")
    except jwt.InvalidTokenError:
        raise AuthenticationRequired("Invalid token")

    profile = Student.get_by_id(payload.get('user_id'))
    if not profile:
        raise AuthenticationRequired("User not found")
    return profile


def login_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        g.current_user = _current_profile()
        return f(*args, **kwargs)
    return decorated


def admin_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        g.current_user = _current_profile()
        if not g.current_user['is_admin']:
            raise AdminRequired()
        return f(*args, **kwargs)
    return decorated


def student_required(f):
    """Routes that only make sense for a student enrolled in a batch/semester."""
    @wraps(f)
    def decorated(*args, **kwargs):
        g.current_user = _current_profile()
        profile = g.current_user
        if profile['is_admin']:
            raise AdminRequired("Only students can use this endpoint")
        if not profile['batch_id'] or not profile['semester_number']:
            raise ValidationFailed("Your profile has no batch or semester assigned")
        return f(*args, **kwargs)
    return decorated
