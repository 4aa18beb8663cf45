import os
from dotenv import load_dotenv

load_dotenv()

# Database configuration
DATABASE_PATH = os.environ.get(
    'PORTAL_DATABASE_PATH',
    os.path.join(os.path.dirname(os.path.abspath(__file__)), 'data', 'portal.db')
)

# Security
SECRET_KEY = os.environ.get('SECRET_KEY', 'your_secret_key_change_in_production')
TOKEN_EXPIRY_DAYS = 7
MIN_PASSWORD_LENGTH = 6

# CORS origins for the browser front-end
CORS_ORIGINS = ['http://localhost:8080', 'http://localhost:8081', 'http://localhost:3000']

# Feedback window
FEEDBACK_GRACE_PERIOD_MINUTES = 15
POLL_INTERVAL_SECONDS = 60

# Validation limits
MIN_RATING = 1
MAX_RATING = 5
MIN_SEMESTER = 1
MAX_SEMESTER = 8
MAX_COMMENT_LENGTH = 500
MAX_QUESTION_LENGTH = 500

# Upload configuration
UPLOAD_FOLDER = os.environ.get('PORTAL_UPLOAD_FOLDER', 'uploads')
ALLOWED_EXTENSIONS = {'xlsx', 'xls'}
MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

# Required Excel headers
STUDENT_UPLOAD_HEADERS = ['email', 'password', 'first_name', 'last_name', 'batch_name', 'semester_number']
TIMETABLE_UPLOAD_HEADERS = ['day_of_week', 'subject_name', 'batch_name', 'semester_number', 'start_time', 'end_time']

# Days of week as stored in timetables (ISO numbering)
DAY_NAMES = {
    1: 'Monday',
    2: 'Tuesday',
    3: 'Wednesday',
    4: 'Thursday',
    5: 'Friday',
    6: 'Saturday',
    7: 'Sunday',
}

# Trends default lookback
DEFAULT_TRENDS_DAYS = 30

# Student watcher (client side)
PORTAL_API_URL = os.environ.get('PORTAL_API_URL', 'http://localhost:5000/api')
REQUEST_TIMEOUT_SECONDS = 10
