"""
Feedback submission and admin responses.

A student may submit at most one feedback record per subject. The check runs
before the insert and is backed by a UNIQUE(student_id, class_id) constraint,
so a concurrent duplicate from a second tab still fails with
DuplicateSubmission instead of creating a second record.
"""
import sqlite3
import logging

from pydantic import ValidationError

from portal.errors import DuplicateSubmission, RecordNotFound, ValidationFailed
from portal.models import Feedback, FeedbackQuestionStore, Subject
from portal.schemas import FeedbackSubmission, describe_errors, parse_question, validate_answers

logger = logging.getLogger(__name__)


def questions_for(batch_id, semester_number):
    """Feedback questions of a batch/semester as validated question variants."""
    return [parse_question(row) for row in FeedbackQuestionStore.get_for(batch_id, semester_number)]


def submit_feedback(student, payload):
    """Validate and store one feedback record for ``student``. Returns the stored record."""
    try:
        submission = FeedbackSubmission.model_validate(payload or {})
    except ValidationError as e:
        raise ValidationFailed("Invalid feedback submission", details=describe_errors(e))

    batch_id = student['batch_id']
    semester_number = student['semester_number']
    if submission.batch_id is not None and submission.batch_id != batch_id:
        raise ValidationFailed("batchId does not match your profile")
    if submission.semester_number is not None and submission.semester_number != semester_number:
        raise ValidationFailed("semesterNumber does not match your profile")

    subject = Subject.get(submission.class_id)
    if not subject:
        raise ValidationFailed(f"Subject {submission.class_id} does not exist")
    if subject['batch_id'] is not None and (subject['batch_id'], subject['semester_number']) != (batch_id, semester_number):
        raise ValidationFailed("This subject is not part of your batch and semester")

    answers, errors = validate_answers(questions_for(batch_id, semester_number), submission.additional_feedback)
    if errors:
        raise ValidationFailed("Please answer all feedback questions correctly", details=errors)

    if Feedback.exists(student['id'], subject['id']):
        logger.info(f"Rejected duplicate feedback from student {student['id']} for subject {subject['id']}")
        raise DuplicateSubmission()

    try:
        feedback_id = Feedback.add(
            student['id'], subject['id'], batch_id, semester_number,
            submission.rating, submission.comment, answers,
        )
    except sqlite3.IntegrityError as e:
        if 'UNIQUE' not in str(e):
            raise
        logger.info(f"Concurrent duplicate feedback from student {student['id']} for subject {subject['id']}")
        raise DuplicateSubmission()

    logger.info(f"Stored feedback {feedback_id} from student {student['id']} for subject {subject['name']}")
    return Feedback.get(feedback_id)


def respond_to_feedback(feedback_id, admin_response):
    if admin_response is not None:
        admin_response = str(admin_response).strip() or None
    record = Feedback.set_admin_response(feedback_id, admin_response)
    if not record:
        raise RecordNotFound("Feedback")
    logger.info(f"Admin response stored for feedback {feedback_id}")
    return record
