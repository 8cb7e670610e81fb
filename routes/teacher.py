"""
Teacher portal routes for the School Result Portal
Assigned classes, class lists and result submission
"""

from flask import Blueprint, request, jsonify, session

from database import db
from models.user import Teacher
from routes.auth import login_required
from services.auth_service import ROLE_TEACHER
from services.management_service import ManagementService
from services.result_service import ResultService

teacher_bp = Blueprint('teacher', __name__)

def _current_teacher():
    return db.session.get(Teacher, session.get('user_id'))

@teacher_bp.route('/assignments')
@login_required(ROLE_TEACHER)
def assignments():
    """Classes the teacher is assigned to, with arms and subjects"""
    teacher = _current_teacher()
    if not teacher:
        return jsonify({'error': 'Teacher not found'}), 404

    classes = []
    for school_class in teacher.get_assigned_classes():
        classes.append({
            'id': school_class.id,
            'name': school_class.name,
            'arms': list(school_class.arms or []),
            'subjects': [subject.to_dict() for subject in ManagementService.get_subjects(school_class.id)]
        })
    return jsonify(classes)

@teacher_bp.route('/students')
@login_required(ROLE_TEACHER)
def students():
    """Students of an assigned class and arm"""
    class_id = request.args.get('class_id', type=int)
    arm = request.args.get('arm')
    if not class_id or not arm:
        return jsonify({'error': 'Class ID and arm are required'}), 400

    teacher = _current_teacher()
    if not teacher or not teacher.is_assigned_to_class(class_id):
        return jsonify({'error': 'Access denied to this class'}), 403

    return jsonify([student.to_dict() for student in ManagementService.get_students(class_id, arm)])

@teacher_bp.route('/results', methods=['POST'])
@login_required(ROLE_TEACHER)
def submit_result():
    """Submit a student's result for review"""
    result = ResultService.submit_result(session.get('user_id'), request.get_json(silent=True))
    return jsonify({
        'message': 'Result submitted successfully',
        'result': result.to_dict()
    }), 201

@teacher_bp.route('/results')
@login_required(ROLE_TEACHER)
def results():
    """Results submitted by the logged-in teacher"""
    status = request.args.get('status')
    return jsonify([
        result.to_dict()
        for result in ResultService.get_teacher_results(session.get('user_id'), status)
    ])
