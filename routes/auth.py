"""
Authentication routes for the School Result Portal
Handles login and logout for admins, teachers and students
"""

from functools import wraps

from flask import Blueprint, request, jsonify, session
from flask_wtf.csrf import generate_csrf

from services.auth_service import AuthService, SessionManager, ROLE_ADMIN, ROLE_TEACHER, ROLE_STUDENT
from utils.validators import validate_username, validate_password

auth_bp = Blueprint('auth', __name__)

def _json_body():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}

@auth_bp.route('/csrf-token')
def csrf_token():
    """Token for clients that post JSON with CSRF protection enabled"""
    return jsonify({'csrf_token': generate_csrf()})

@auth_bp.route('/login/admin', methods=['POST'])
def admin_login():
    """Admin login handler"""
    data = _json_body()
    username = str(data.get('username') or '').strip()
    password = str(data.get('password') or '')

    # Validate input
    if not username or not password:
        return jsonify({'error': 'Username and password are required'}), 400

    is_valid, message = validate_username(username)
    if not is_valid:
        return jsonify({'error': message}), 400

    success, user, message = AuthService.authenticate_admin(username, password)
    if not success:
        return jsonify({'error': message}), 401

    SessionManager.create_session(session, ROLE_ADMIN, user.id, user.username)
    return jsonify({'message': message, 'user': user.to_dict()})

@auth_bp.route('/login/teacher', methods=['POST'])
def teacher_login():
    """Teacher login handler"""
    data = _json_body()
    email = str(data.get('email') or '').strip()
    password = str(data.get('password') or '')

    if not email or not password:
        return jsonify({'error': 'Email and password are required'}), 400

    success, user, message = AuthService.authenticate_teacher(email, password)
    if not success:
        return jsonify({'error': message}), 401

    SessionManager.create_session(session, ROLE_TEACHER, user.id, user.email)
    return jsonify({'message': message, 'user': user.to_dict()})

@auth_bp.route('/login/student', methods=['POST'])
def student_login():
    """Student login with school number and date of birth"""
    data = _json_body()

    success, student, message = AuthService.authenticate_student(
        data.get('student_number'), data.get('date_of_birth')
    )
    if not success:
        return jsonify({'error': message}), 401

    SessionManager.create_session(session, ROLE_STUDENT, student.id, student.student_number)
    return jsonify({'message': message, 'student': student.to_dict()})

@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Logout handler for every user type"""
    SessionManager.clear_session(session)
    return jsonify({'message': 'You have been logged out successfully'})

@auth_bp.route('/me')
def me():
    info = SessionManager.get_session_info(session)
    if not info:
        return jsonify({'error': 'Not logged in'}), 401
    return jsonify(info)

@auth_bp.route('/change-password', methods=['POST'])
def change_password():
    """Change password for authenticated admins and teachers"""
    if not SessionManager.is_authenticated(session):
        return jsonify({'error': 'Please log in to change your password'}), 401

    data = _json_body()
    current_password = str(data.get('current_password') or '')
    new_password = str(data.get('new_password') or '')

    is_valid, message = validate_password(new_password)
    if not is_valid:
        return jsonify({'error': message}), 400

    success, message = AuthService.change_password(
        session.get('user_type'), session.get('user_id'), current_password, new_password
    )
    if not success:
        return jsonify({'error': message}), 400
    return jsonify({'message': message})

# Authentication decorator
def login_required(user_type=None):
    """Decorator to require authentication, optionally for one role"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not SessionManager.is_authenticated(session):
                return jsonify({'error': 'Please log in to access this resource'}), 401

            if user_type and not SessionManager.has_role(session, user_type):
                return jsonify({'error': f'Access denied. {user_type.title()} login required.'}), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
