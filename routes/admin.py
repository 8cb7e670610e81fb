"""
Admin portal routes for the School Result Portal
Handles school setup and result review
"""

from flask import Blueprint, request, jsonify, session, send_file, current_app
from io import BytesIO

from database import db
from models.academic import SchoolClass, AcademicSession
from models.result import Result
from routes.auth import login_required
from services.auth_service import ROLE_ADMIN
from services.excel_export_service import ExcelExportService
from services.management_service import ManagementService
from services.result_engine import ResultEngine
from services.result_service import ResultService, REVIEW_REMARK_FIELDS

admin_bp = Blueprint('admin', __name__)

def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

def _created(obj, message):
    return jsonify({'message': message, 'data': obj.to_dict()}), 201

def _failed(message, status=400):
    return jsonify({'error': message}), status

def _not_found_or_bad(message):
    return _failed(message, 404 if message.endswith('not found') else 400)

@admin_bp.route('/dashboard')
@login_required(ROLE_ADMIN)
def dashboard():
    """Admin dashboard with overview statistics"""
    return jsonify(ManagementService.get_dashboard_stats())

@admin_bp.route('/settings')
@login_required(ROLE_ADMIN)
def settings():
    """School name, grading bands and the current session"""
    active_session = AcademicSession.get_active_session()
    return jsonify({
        'school_name': current_app.config['SCHOOL_NAME'],
        'grading_system': ResultEngine.grading_system(),
        'active_session': active_session.to_dict() if active_session else None
    })

# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------

@admin_bp.route('/classes')
@login_required(ROLE_ADMIN)
def classes():
    return jsonify([school_class.to_dict() for school_class in ManagementService.get_classes()])

@admin_bp.route('/classes', methods=['POST'])
@login_required(ROLE_ADMIN)
def add_class():
    data = _json_body()
    success, school_class, message = ManagementService.add_class(data.get('name'), data.get('arms'))
    if not success:
        return _failed(message)
    return _created(school_class, message)

@admin_bp.route('/classes/<int:class_id>', methods=['PUT'])
@login_required(ROLE_ADMIN)
def update_class(class_id):
    data = _json_body()
    success, school_class, message = ManagementService.update_class(class_id, data.get('name'), data.get('arms'))
    if not success:
        return _not_found_or_bad(message)
    return jsonify({'message': message, 'data': school_class.to_dict()})

@admin_bp.route('/classes/<int:class_id>', methods=['DELETE'])
@login_required(ROLE_ADMIN)
def delete_class(class_id):
    success, message = ManagementService.delete_class(class_id)
    if not success:
        return _not_found_or_bad(message)
    return jsonify({'message': message})

# ---------------------------------------------------------------------------
# Subjects
# ---------------------------------------------------------------------------

@admin_bp.route('/subjects')
@login_required(ROLE_ADMIN)
def subjects():
    class_id = request.args.get('class_id', type=int)
    return jsonify([subject.to_dict() for subject in ManagementService.get_subjects(class_id)])

@admin_bp.route('/subjects', methods=['POST'])
@login_required(ROLE_ADMIN)
def add_subject():
    data = _json_body()
    success, subject, message = ManagementService.add_subject(
        data.get('name'), data.get('code'), data.get('class_id')
    )
    if not success:
        return _not_found_or_bad(message)
    return _created(subject, message)

@admin_bp.route('/subjects/<int:subject_id>', methods=['DELETE'])
@login_required(ROLE_ADMIN)
def delete_subject(subject_id):
    success, message = ManagementService.delete_subject(subject_id)
    if not success:
        return _not_found_or_bad(message)
    return jsonify({'message': message})

# ---------------------------------------------------------------------------
# Teachers
# ---------------------------------------------------------------------------

@admin_bp.route('/teachers')
@login_required(ROLE_ADMIN)
def teachers():
    return jsonify([teacher.to_dict() for teacher in ManagementService.get_teachers()])

@admin_bp.route('/teachers', methods=['POST'])
@login_required(ROLE_ADMIN)
def add_teacher():
    data = _json_body()
    success, teacher, password, message = ManagementService.add_teacher(
        data.get('teacher_number'), data.get('name'), data.get('email'), data.get('class_ids')
    )
    if not success:
        return _not_found_or_bad(message)

    payload = teacher.to_dict()
    payload['default_password'] = password
    return jsonify({'message': message, 'data': payload}), 201

@admin_bp.route('/teachers/<int:teacher_id>', methods=['PUT'])
@login_required(ROLE_ADMIN)
def update_teacher(teacher_id):
    data = _json_body()
    success, teacher, message = ManagementService.update_teacher(
        teacher_id, data.get('teacher_number'), data.get('name'), data.get('email'), data.get('class_ids')
    )
    if not success:
        return _not_found_or_bad(message)
    return jsonify({'message': message, 'data': teacher.to_dict()})

@admin_bp.route('/teachers/<int:teacher_id>', methods=['DELETE'])
@login_required(ROLE_ADMIN)
def delete_teacher(teacher_id):
    success, message = ManagementService.delete_teacher(teacher_id)
    if not success:
        return _not_found_or_bad(message)
    return jsonify({'message': message})

# ---------------------------------------------------------------------------
# Students
# ---------------------------------------------------------------------------

@admin_bp.route('/students')
@login_required(ROLE_ADMIN)
def students():
    students_list = ManagementService.get_students(
        request.args.get('class_id', type=int), request.args.get('arm')
    )
    return jsonify([student.to_dict() for student in students_list])

@admin_bp.route('/students', methods=['POST'])
@login_required(ROLE_ADMIN)
def add_student():
    data = _json_body()
    success, student, message = ManagementService.add_student(
        data.get('student_number'), data.get('name'), data.get('date_of_birth'),
        data.get('class_id'), data.get('arm'), data.get('email')
    )
    if not success:
        return _not_found_or_bad(message)
    return _created(student, message)

@admin_bp.route('/students/<int:student_id>', methods=['PUT'])
@login_required(ROLE_ADMIN)
def update_student(student_id):
    data = _json_body()
    success, student, message = ManagementService.update_student(
        student_id, data.get('student_number'), data.get('name'), data.get('date_of_birth'),
        data.get('class_id'), data.get('arm'), data.get('email')
    )
    if not success:
        return _not_found_or_bad(message)
    return jsonify({'message': message, 'data': student.to_dict()})

@admin_bp.route('/students/<int:student_id>', methods=['DELETE'])
@login_required(ROLE_ADMIN)
def delete_student(student_id):
    success, message = ManagementService.delete_student(student_id)
    if not success:
        return _not_found_or_bad(message)
    return jsonify({'message': message})

# ---------------------------------------------------------------------------
# Sessions and terms
# ---------------------------------------------------------------------------

@admin_bp.route('/sessions')
@login_required(ROLE_ADMIN)
def sessions():
    return jsonify([academic_session.to_dict() for academic_session in ManagementService.get_sessions()])

@admin_bp.route('/sessions', methods=['POST'])
@login_required(ROLE_ADMIN)
def add_session():
    data = _json_body()
    success, academic_session, message = ManagementService.add_session(
        data.get('name'), bool(data.get('is_active'))
    )
    if not success:
        return _failed(message)
    return _created(academic_session, message)

@admin_bp.route('/sessions/<int:session_id>/activate', methods=['POST'])
@login_required(ROLE_ADMIN)
def activate_session(session_id):
    success, academic_session, message = ManagementService.activate_session(session_id)
    if not success:
        return _not_found_or_bad(message)
    return jsonify({'message': message, 'data': academic_session.to_dict()})

@admin_bp.route('/terms/<int:term_id>', methods=['PUT'])
@login_required(ROLE_ADMIN)
def update_term(term_id):
    data = _json_body()
    success, term, message = ManagementService.set_term_active(term_id, bool(data.get('is_active')))
    if not success:
        return _not_found_or_bad(message)
    return jsonify({'message': message, 'data': term.to_dict()})

# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@admin_bp.route('/results')
@login_required(ROLE_ADMIN)
def results():
    """All submitted results, optionally by status"""
    status = request.args.get('status')
    return jsonify([result.to_dict() for result in ResultService.list_results(status)])

@admin_bp.route('/results/<int:result_id>')
@login_required(ROLE_ADMIN)
def result_detail(result_id):
    """One result with the live standings of its class"""
    return jsonify(ResultService.get_result_detail(result_id))

@admin_bp.route('/results/<int:result_id>', methods=['PATCH'])
@login_required(ROLE_ADMIN)
def review_result(result_id):
    """Approve or reject a pending result"""
    data = _json_body()
    status = str(data.get('status') or '').strip().upper()
    remarks = {field: data.get(field) for field in REVIEW_REMARK_FIELDS}

    result = ResultService.review_result(result_id, session.get('user_id'), status, remarks)
    return jsonify({
        'message': f'Result {result.status.lower()} successfully',
        'result': result.to_dict()
    })

@admin_bp.route('/results/positions/refresh', methods=['POST'])
@login_required(ROLE_ADMIN)
def refresh_positions():
    """Recompute stored positions for a class, term and session"""
    data = _json_body()
    try:
        class_id = int(data.get('class_id'))
    except (TypeError, ValueError):
        return _failed('Class ID is required')
    if not db.session.get(SchoolClass, class_id):
        return _failed('Class not found', 404)

    count = ResultService.refresh_positions(class_id, data.get('term'), data.get('session'))
    return jsonify({'message': f'Positions refreshed for {count} results', 'total_students': count})

@admin_bp.route('/results/broadsheet')
@login_required(ROLE_ADMIN)
def broadsheet():
    """Excel broadsheet of the approved results of a class, term and session"""
    class_id = request.args.get('class_id', type=int)
    term = request.args.get('term')
    session_name = request.args.get('session')
    if not class_id or not term or not session_name:
        return _failed('Class ID, term and session are required')

    school_class = db.session.get(SchoolClass, class_id)
    if not school_class:
        return _failed('Class not found', 404)

    scope = Result.ranking_scope_query(class_id, term, session_name).all()
    content = ExcelExportService.export_broadsheet(
        school_class, term, session_name, ResultEngine.rank_scope(scope)
    )

    filename = f"broadsheet_{school_class.name}_{term}_{session_name}".replace(' ', '_').replace('/', '-')
    return send_file(
        BytesIO(content),
        mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
        as_attachment=True,
        download_name=f"{filename}.xlsx"
    )
