from flask import Blueprint, current_app, request, jsonify, send_file
from werkzeug.utils import secure_filename
from pydantic import ValidationError
import os
import logging

from portal.errors import RecordNotFound, ValidationFailed
from portal.models import Batch, Student, Subject, Timetable, FeedbackQuestionStore
from portal.schemas import describe_errors, parse_question
from portal.services.auth_service import admin_required, login_required
from portal.services.excel_service import process_student_excel, create_sample_excel
from portal.services.feedback_service import respond_to_feedback
from portal.services.student_service import create_batch, create_student, rename_batch, update_student
from portal.services.timetable_service import (
    create_entry, update_entry, validate_subject, bulk_add_subjects,
    process_timetable_excel, create_sample_timetable_excel
)
from config import MAX_FILE_SIZE
from utils import allowed_file, first_present, parse_int, parse_semester

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


def _json_body():
    return request.get_json(silent=True) or {}


def _handle_excel_upload(process):
    """Save the uploaded Excel file, run ``process`` on it and remove it again."""
    if 'file' not in request.files:
        raise ValidationFailed("No file uploaded")

    file = request.files['file']

    if file.filename == '':
        raise ValidationFailed("No file selected")

    if not allowed_file(file.filename):
        raise ValidationFailed("Invalid file type. Please upload an Excel file (.xlsx or .xls)")

    # Check file size
    file.seek(0, os.SEEK_END)
    file_size = file.tell()
    file.seek(0)

    if file_size > MAX_FILE_SIZE:
        raise ValidationFailed(f"File too large. Maximum size is {MAX_FILE_SIZE / (1024*1024):.0f}MB")

    upload_folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(upload_folder, exist_ok=True)
    filename = secure_filename(file.filename)
    filepath = os.path.join(upload_folder, filename)
    file.save(filepath)

    try:
        success, message, stats = process(filepath)
    finally:
        if os.path.exists(filepath):
            os.remove(filepath)

    body = {
        'success': success,
        'message': message,
        'stats': stats
    }
    if not success:
        body['error'] = message
    return jsonify(body), 200 if success else 400


def _send_sample(create, filename):
    upload_folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(upload_folder, exist_ok=True)
    sample_path = os.path.abspath(os.path.join(upload_folder, filename))
    create(sample_path)
    return send_file(sample_path, as_attachment=True, download_name=filename)


# Batches

@admin_bp.route('/batches', methods=['GET'])
@login_required
def list_batches():
    return jsonify(Batch.get_all())


@admin_bp.route('/batches', methods=['POST'])
@admin_required
def add_batch():
    batch = create_batch(_json_body().get('name'))
    return jsonify(batch), 201


@admin_bp.route('/batches/<int:batch_id>', methods=['PUT'])
@admin_required
def edit_batch(batch_id):
    return jsonify(rename_batch(batch_id, _json_body().get('name')))


@admin_bp.route('/batches/<int:batch_id>', methods=['DELETE'])
@admin_required
def delete_batch(batch_id):
    if not Batch.delete(batch_id):
        raise RecordNotFound("Batch")
    logger.info(f"Deleted batch {batch_id}")
    return jsonify({'message': 'Batch deleted successfully'})


# Students

@admin_bp.route('/students', methods=['GET'])
@admin_required
def list_students():
    """List students, optionally for one batch and semester."""
    batch_id = parse_int(request.args.get('batch_id'), 'batch_id', required=False)
    semester_number = parse_semester(request.args.get('semester_number'), required=False)

    if batch_id is not None and semester_number is not None:
        return jsonify(Student.get_by_batch_sem(batch_id, semester_number))
    return jsonify(Student.get_all())


@admin_bp.route('/students', methods=['POST'])
@admin_required
def add_student():
    student = create_student(_json_body())
    return jsonify(student), 201


@admin_bp.route('/students/<int:student_id>', methods=['PUT'])
@admin_required
def edit_student(student_id):
    return jsonify(update_student(student_id, _json_body()))


@admin_bp.route('/students/<int:student_id>', methods=['DELETE'])
@admin_required
def delete_student(student_id):
    if not Student.delete(student_id):
        raise RecordNotFound("Student")
    logger.info(f"Deleted student {student_id}")
    return jsonify({'message': 'Student deleted successfully'})


@admin_bp.route('/students/upload', methods=['POST'])
@admin_required
def upload_students_excel():
    """Upload students via Excel file."""
    return _handle_excel_upload(process_student_excel)


@admin_bp.route('/students/sample', methods=['GET'])
@admin_required
def download_student_sample():
    return _send_sample(create_sample_excel, 'sample_students.xlsx')


# Subjects

@admin_bp.route('/subjects', methods=['GET'])
@login_required
def list_subjects():
    return jsonify(Subject.get_all())


@admin_bp.route('/subjects', methods=['POST'])
@admin_required
def add_subject():
    subject = validate_subject(_json_body())
    subject_id = Subject.add(**subject)
    logger.info(f"Created subject {subject['name']}")
    return jsonify(Subject.get(subject_id)), 201


@admin_bp.route('/subjects/bulk', methods=['POST'])
@admin_required
def bulk_subjects():
    subjects = _json_body().get('subjects')
    if not isinstance(subjects, list) or not subjects:
        raise ValidationFailed("subjects must be a non-empty list")

    results = bulk_add_subjects(subjects)
    body = {
        'success': bool(results['success']),
        'message': f"Added {len(results['success'])} subjects, {len(results['failed'])} failed",
        'results': results
    }
    if not results['success']:
        body['error'] = "No subjects were added"
        return jsonify(body), 400
    return jsonify(body), 201


@admin_bp.route('/subjects/<int:subject_id>', methods=['PUT'])
@admin_required
def edit_subject(subject_id):
    if not Subject.get(subject_id):
        raise RecordNotFound("Subject")
    subject = validate_subject(_json_body())
    return jsonify(Subject.update(subject_id, **subject))


@admin_bp.route('/subjects/<int:subject_id>', methods=['DELETE'])
@admin_required
def delete_subject(subject_id):
    if not Subject.delete(subject_id):
        raise RecordNotFound("Subject")
    logger.info(f"Deleted subject {subject_id}")
    return jsonify({'message': 'Subject deleted successfully'})


# Timetables

@admin_bp.route('/timetables', methods=['GET'])
@login_required
def list_timetables():
    """List timetable sessions, filtered by day_of_week, batch_id and semester_number."""
    return jsonify(Timetable.list(
        day_of_week=parse_int(request.args.get('day_of_week'), 'day_of_week', 1, 7, required=False),
        batch_id=parse_int(request.args.get('batch_id'), 'batch_id', required=False),
        semester_number=parse_semester(request.args.get('semester_number'), required=False),
    ))


@admin_bp.route('/timetables', methods=['POST'])
@admin_required
def add_timetable():
    return jsonify(create_entry(_json_body())), 201


@admin_bp.route('/timetables/<int:entry_id>', methods=['PUT'])
@admin_required
def edit_timetable(entry_id):
    return jsonify(update_entry(entry_id, _json_body()))


@admin_bp.route('/timetables/<int:entry_id>', methods=['DELETE'])
@admin_required
def delete_timetable(entry_id):
    if not Timetable.delete(entry_id):
        raise RecordNotFound("Timetable entry")
    logger.info(f"Deleted timetable entry {entry_id}")
    return jsonify({'message': 'Timetable entry deleted successfully'})


@admin_bp.route('/timetables/upload', methods=['POST'])
@admin_required
def upload_timetable_excel():
    """Upload timetable entries via Excel file."""
    return _handle_excel_upload(process_timetable_excel)


@admin_bp.route('/timetables/sample', methods=['GET'])
@admin_required
def download_timetable_sample():
    return _send_sample(create_sample_timetable_excel, 'sample_timetable.xlsx')


# Feedback questions

def _question_payload(data):
    payload = {
        'question_text': first_present(data, 'questionText', 'question_text'),
        'question_type': first_present(data, 'questionType', 'question_type'),
        'batch_id': first_present(data, 'batchId', 'batch_id'),
        'semester_number': first_present(data, 'semesterNumber', 'semester_number'),
    }
    if payload['question_type'] == 'multiple_choice':
        payload['options'] = data.get('options')
    try:
        question = parse_question(payload)
    except ValidationError as e:
        raise ValidationFailed("Invalid feedback question", details=describe_errors(e))
    if not Batch.get(question.batch_id):
        raise ValidationFailed(f"Batch {question.batch_id} does not exist")
    return question


@admin_bp.route('/feedback-questions', methods=['GET'])
@admin_required
def list_questions():
    return jsonify(FeedbackQuestionStore.get_all())


@admin_bp.route('/feedback-questions', methods=['POST'])
@admin_required
def add_question():
    question = _question_payload(_json_body())
    question_id = FeedbackQuestionStore.add(question)
    logger.info(f"Created {question.question_type} question {question_id}")
    return jsonify(FeedbackQuestionStore.get(question_id)), 201


@admin_bp.route('/feedback-questions/<int:question_id>', methods=['PUT'])
@admin_required
def edit_question(question_id):
    question = _question_payload(_json_body())
    updated = FeedbackQuestionStore.update(question_id, question)
    if not updated:
        raise RecordNotFound("Feedback question")
    return jsonify(updated)


@admin_bp.route('/feedback-questions/<int:question_id>', methods=['DELETE'])
@admin_required
def delete_question(question_id):
    if not FeedbackQuestionStore.delete(question_id):
        raise RecordNotFound("Feedback question")
    return jsonify({'message': 'Feedback question deleted successfully'})


# Feedback responses

@admin_bp.route('/feedback/<int:feedback_id>', methods=['PUT'])
@admin_required
def respond(feedback_id):
    data = _json_body()
    return jsonify(respond_to_feedback(feedback_id, first_present(data, 'adminResponse', 'admin_response')))
