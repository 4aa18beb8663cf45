from flask import Blueprint, request, jsonify, make_response
import logging

from portal.errors import RecordNotFound
from portal.models import Batch
from portal.services.analytics_service import (
    dashboard_stats, feedback_analytics, feedback_trends, recent_feedback, subject_stats
)
from portal.services.auth_service import admin_required
from config import DEFAULT_TRENDS_DAYS
from report_generator import generate_feedback_report
from utils import parse_int, parse_semester

logger = logging.getLogger(__name__)

report_bp = Blueprint('report', __name__)


def _batch_semester_filters():
    return (
        parse_int(request.args.get('batch_id'), 'batch_id', required=False),
        parse_semester(request.args.get('semester_number'), required=False),
    )


@report_bp.route('/dashboard/stats', methods=['GET'])
@admin_required
def dashboard():
    return jsonify(dashboard_stats())


@report_bp.route('/subjects/stats', methods=['GET'])
@admin_required
def subjects_stats():
    return jsonify(subject_stats())


@report_bp.route('/feedback/recent', methods=['GET'])
@admin_required
def recent():
    return jsonify(recent_feedback())


@report_bp.route('/feedback/trends', methods=['GET'])
@admin_required
def trends():
    batch_id, semester_number = _batch_semester_filters()
    timeframe = parse_int(request.args.get('timeframe'), 'timeframe', 1, 365, required=False)
    return jsonify(feedback_trends(timeframe or DEFAULT_TRENDS_DAYS, batch_id, semester_number))


@report_bp.route('/feedback/analytics', methods=['GET'])
@admin_required
def analytics():
    batch_id, semester_number = _batch_semester_filters()
    return jsonify(feedback_analytics(batch_id, semester_number))


@report_bp.route('/reports/feedback', methods=['GET'])
@admin_required
def feedback_report():
    """PDF report of one batch/semester; ``download=1`` forces an attachment."""
    batch_id = parse_int(request.args.get('batch_id'), 'batch_id')
    semester_number = parse_semester(request.args.get('semester_number'))
    batch = Batch.get(batch_id)
    if not batch:
        raise RecordNotFound("Batch")

    pdf_content = generate_feedback_report(
        batch_name=batch['name'],
        semester_number=semester_number,
        analytics=feedback_analytics(batch_id, semester_number),
    )

    filename = f"feedback_report_{batch['name']}_semester_{semester_number}.pdf"
    disposition = 'attachment' if request.args.get('download') == '1' else 'inline'

    response = make_response(pdf_content)
    response.headers['Content-Type'] = 'application/pdf'
    response.headers['Content-Disposition'] = f'{disposition}; filename={filename}'
    return response
