"""
Shared helpers for time handling and input normalisation.
"""
import re
import logging
from datetime import datetime, time

from config import (
    ALLOWED_EXTENSIONS,
    MIN_SEMESTER,
    MAX_SEMESTER,
)
from portal.errors import ValidationFailed

logger = logging.getLogger(__name__)

BATCH_NAME_PATTERN = re.compile(r'^(\d{4})\s*-\s*(\d{4})$')


def local_now():
    """Current local (naive) time of the host clock."""
    return datetime.now()


def parse_time(value):
    """
    Parse a class time into a datetime.time.

    Accepts "HH:MM", "HH:MM:SS" (as returned by TIME columns), time and
    datetime objects.
    """
    if isinstance(value, datetime):
        return value.time().replace(microsecond=0)
    if isinstance(value, time):
        return value.replace(microsecond=0)
    if not isinstance(value, str):
        raise ValueError(f"Invalid time value: {value!r}")

    text = value.strip()
    for fmt in ('%H:%M', '%H:%M:%S'):
        try:
            return datetime.strptime(text, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"Invalid time '{value}'. Expected HH:MM")


def format_time(value):
    """Normalise any accepted time value to the stored HH:MM form."""
    return parse_time(value).strftime('%H:%M')


def iso_day_of_week(moment):
    """Day of week as stored in timetables: 1 = Monday ... 7 = Sunday."""
    return moment.isoweekday()


def parse_int(value, field, minimum=None, maximum=None, required=True):
    """Coerce a request value to int, raising ValidationFailed when it does not fit."""
    if value is None or (isinstance(value, str) and not value.strip()):
        if required:
            raise ValidationFailed(f"{field} is required")
        return None
    if isinstance(value, bool):
        raise ValidationFailed(f"{field} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationFailed(f"{field} must be a whole number")
    if isinstance(value, float) and value != number:
        raise ValidationFailed(f"{field} must be a whole number")
    if minimum is not None and number < minimum:
        raise ValidationFailed(f"{field} must be between {minimum} and {maximum}")
    if maximum is not None and number > maximum:
        raise ValidationFailed(f"{field} must be between {minimum} and {maximum}")
    return number


def parse_semester(value, required=True):
    return parse_int(value, 'semesterNumber', MIN_SEMESTER, MAX_SEMESTER, required=required)


def normalize_batch_name(name):
    """Return a batch name in YYYY-YYYY form or raise ValidationFailed."""
    if not name or not str(name).strip():
        raise ValidationFailed("Batch name is required")
    match = BATCH_NAME_PATTERN.match(str(name).strip())
    if not match:
        raise ValidationFailed("Batch name must be formatted as YYYY-YYYY")
    start, end = match.groups()
    if int(end) <= int(start):
        raise ValidationFailed("Batch end year must be after its start year")
    return f"{start}-{end}"


def allowed_file(filename):
    """Check if file has an allowed extension."""
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in ALLOWED_EXTENSIONS


def first_present(data, *keys):
    """Return the first non-None value among camelCase/snake_case aliases."""
    for key in keys:
        if data.get(key) is not None:
            return data.get(key)
    return None
