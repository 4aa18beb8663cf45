"""
HTTP client for the portal REST API, used by the student feedback watcher.

Each client owns its session and token; nothing is shared between
instances.
"""
import logging

import requests

from config import PORTAL_API_URL, REQUEST_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


class PortalAPIError(Exception):
    """Raised when the API answers with an error status."""

    def __init__(self, status_code, message):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


class FeedbackPortalClient:
    def __init__(self, base_url=PORTAL_API_URL, token=None, session=None, timeout=REQUEST_TIMEOUT_SECONDS):
        self.base_url = base_url.rstrip('/')
        self.token = token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method, path, **kwargs):
        headers = kwargs.pop('headers', {})
        if self.token:
            headers['Authorization'] = f"Bearer {self.token}"

        r = self.session.request(method, f"{self.base_url}{path}", headers=headers,
                                 timeout=self.timeout, **kwargs)
        if r.status_code >= 400:
            try:
                message = r.json().get('error', r.reason)
            except ValueError:
                message = r.reason
            raise PortalAPIError(r.status_code, message)
        return r.json()

    def login(self, email, password):
        data = self._request('POST', '/auth/login', json={'email': email, 'password': password})
        self.token = data['token']
        logger.info(f"Logged in as {email}")
        return data['user']

    def get_profile(self):
        return self._request('GET', '/profile')

    def list_timetables(self, day_of_week=None, batch_id=None, semester_number=None):
        params = {
            'day_of_week': day_of_week,
            'batch_id': batch_id,
            'semester_number': semester_number,
        }
        return self._request('GET', '/timetables', params={k: v for k, v in params.items() if v is not None})

    def list_feedback(self):
        """The logged-in student's own feedback history."""
        return self._request('GET', '/feedback')

    def submit_feedback(self, class_id, rating, comment=None, additional_feedback=None,
                        batch_id=None, semester_number=None):
        payload = {
            'classId': class_id,
            'batchId': batch_id,
            'semesterNumber': semester_number,
            'rating': rating,
            'comment': comment,
            'additionalFeedback': additional_feedback or [],
        }
        return self._request('POST', '/feedback', json=payload)


class ApiScheduleSource:
    """Schedule source for resolve_todays_subjects backed by the REST API."""

    def __init__(self, client):
        self.client = client

    def list_sessions(self, day_of_week, batch_id, semester_number):
        return self.client.list_timetables(day_of_week, batch_id, semester_number)

    def submitted_subject_ids(self, student_id, batch_id, semester_number):
        return {
            record['class_id'] for record in self.client.list_feedback()
            if record['student_id'] == student_id
            and record['batch_id'] == batch_id
            and record['semester_number'] == semester_number
        }
