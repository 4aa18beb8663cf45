from flask import Blueprint, request, jsonify, g
import logging

from portal.errors import RecordNotFound
from portal.models import Feedback, Timetable
from portal.services.auth_service import login_required, student_required
from portal.services.feedback_gate import select_active_subject
from portal.services.feedback_service import questions_for, submit_feedback
from portal.services.schedule_resolver import DatabaseScheduleSource, resolve_todays_subjects
from config import DAY_NAMES
from utils import iso_day_of_week, local_now

logger = logging.getLogger(__name__)

student_bp = Blueprint('student', __name__)


@student_bp.route('/feedback', methods=['GET'])
@login_required
def list_feedback():
    """Admins see every feedback record, students their own history."""
    if g.current_user['is_admin']:
        return jsonify(Feedback.get_all())
    return jsonify(Feedback.get_for_student(g.current_user['id']))


@student_bp.route('/feedback', methods=['POST'])
@student_required
def feedback():
    record = submit_feedback(g.current_user, request.get_json(silent=True))
    return jsonify({'message': 'Feedback submitted successfully. Thank you!', 'feedback': record}), 201


@student_bp.route('/student/feedback-questions', methods=['GET'])
@student_required
def student_questions():
    student = g.current_user
    questions = questions_for(student['batch_id'], student['semester_number'])
    return jsonify([question.model_dump() | {'options': question.options} for question in questions])


@student_bp.route('/student/daily-subjects', methods=['GET'])
@student_required
def daily_subjects():
    """
    Today's sessions for the logged-in student, with the subject whose
    feedback window is open right now.
    """
    student = g.current_user
    now = local_now()
    day_of_week = iso_day_of_week(now)

    subjects = resolve_todays_subjects(
        day_of_week, student['batch_id'], student['semester_number'],
        student['id'], DatabaseScheduleSource(),
    )
    state = select_active_subject(subjects, now)

    return jsonify({
        'dayOfWeek': day_of_week,
        'subjects': [subject.model_dump() for subject in subjects],
        'activeSubject': state.active_subject.model_dump() if state.active_subject else None,
        'alreadySubmitted': state.already_submitted,
    })


@student_bp.route('/timetables/weekly', methods=['GET'])
@student_required
def weekly_timetable():
    student = g.current_user
    sessions = Timetable.list(batch_id=student['batch_id'], semester_number=student['semester_number'])

    week = {name: [] for name in DAY_NAMES.values()}
    for session in sessions:
        week[DAY_NAMES[session['day_of_week']]].append(session)
    return jsonify(week)


@student_bp.route('/notifications', methods=['GET'])
@student_required
def notifications():
    """Admin responses the student has not seen yet."""
    return jsonify(Feedback.unseen_responses(g.current_user['id']))


@student_bp.route('/notifications/<int:feedback_id>/read', methods=['POST'])
@student_required
def mark_notification_read(feedback_id):
    if not Feedback.mark_seen(feedback_id, g.current_user['id']):
        raise RecordNotFound("Notification")
    return jsonify({'message': 'Notification marked as read'})


@student_bp.route('/notifications/read-all', methods=['POST'])
@student_required
def mark_all_notifications_read():
    updated = Feedback.mark_all_seen(g.current_user['id'])
    return jsonify({'message': f'{updated} notifications marked as read', 'updated': updated})
