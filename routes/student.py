"""
Student portal routes for the School Result Portal
Approved results and report cards
"""

from flask import Blueprint, request, jsonify, session, send_file, current_app
from io import BytesIO

from routes.auth import login_required
from services.auth_service import ROLE_STUDENT
from services.reporting_service import ReportingService
from services.result_service import ResultService

student_bp = Blueprint('student', __name__)

@student_bp.route('/results')
@login_required(ROLE_STUDENT)
def results():
    """Approved results of the logged-in student"""
    results_list = ResultService.get_student_results(
        session.get('user_id'),
        session_name=request.args.get('session'),
        term=request.args.get('term')
    )
    return jsonify([result.to_dict() for result in results_list])

@student_bp.route('/results/<int:result_id>/report-card')
@login_required(ROLE_STUDENT)
def report_card(result_id):
    result = ResultService.get_student_result(session.get('user_id'), result_id)
    return jsonify(ResultService.build_report_card(result))

@student_bp.route('/results/<int:result_id>/report-card.pdf')
@login_required(ROLE_STUDENT)
def report_card_pdf(result_id):
    """Download the report card as PDF"""
    result = ResultService.get_student_result(session.get('user_id'), result_id)
    card = ResultService.build_report_card(result)
    pdf_bytes = ReportingService.generate_report_card_pdf(card, current_app.config['SCHOOL_NAME'])

    filename = f"report_card_{card['student_number']}_{card['term']}_{card['session'].replace('/', '-')}.pdf"
    return send_file(
        BytesIO(pdf_bytes),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=filename
    )
