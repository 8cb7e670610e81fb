"""
Authentication service for the School Result Portal
Handles login for each role and session utilities
"""

import logging
from datetime import datetime

from sqlalchemy import func

from database import db
from models.user import Admin, Teacher
from models.student import Student
from utils.validators import parse_date

logger = logging.getLogger(__name__)

ROLE_ADMIN = 'admin'
ROLE_TEACHER = 'teacher'
ROLE_STUDENT = 'student'

class AuthService:
    """Authentication service class"""

    @staticmethod
    def authenticate_admin(username, password):
        """Authenticate admin user"""
        normalized = str(username or '').strip()
        user = (
            Admin.query
            .filter(func.lower(Admin.username) == func.lower(normalized))
            .filter_by(is_active=True)
            .first()
        )

        if user and user.check_password(str(password or '')):
            user.update_last_login()
            return True, user, "Login successful"

        logger.warning("Failed admin login for %s", normalized)
        return False, None, "Invalid username or password"

    @staticmethod
    def authenticate_teacher(email, password):
        """Authenticate teacher by email"""
        normalized = str(email or '').strip()
        user = (
            Teacher.query
            .filter(func.lower(Teacher.email) == func.lower(normalized))
            .filter_by(is_active=True)
            .first()
        )

        if user and user.check_password(str(password or '')):
            user.update_last_login()
            return True, user, "Login successful"

        logger.warning("Failed teacher login for %s", normalized)
        return False, None, "Invalid email or password"

    @staticmethod
    def authenticate_student(student_number, date_of_birth):
        """Authenticate student by school number and date of birth"""
        normalized = str(student_number or '').strip()
        dob = parse_date(date_of_birth)
        if not normalized or dob is None:
            return False, None, "Student number and date of birth are required"

        student = (
            Student.query
            .filter(func.lower(Student.student_number) == func.lower(normalized))
            .filter_by(date_of_birth=dob, is_active=True)
            .first()
        )

        if student:
            return True, student, "Login successful"

        logger.warning("Failed student login for %s", normalized)
        return False, None, "Invalid credentials"

    @staticmethod
    def change_password(user_type, user_id, old_password, new_password):
        """Change admin or teacher password"""
        if user_type == ROLE_ADMIN:
            user = db.session.get(Admin, user_id)
        elif user_type == ROLE_TEACHER:
            user = db.session.get(Teacher, user_id)
        else:
            return False, "Invalid user type"

        if not user:
            return False, "User not found"

        if not user.check_password(str(old_password or '')):
            return False, "Current password is incorrect"

        user.set_password(new_password)
        db.session.commit()

        return True, "Password changed successfully"

class SessionManager:
    """Session management utilities"""

    @staticmethod
    def create_session(session, user_type, user_id, username):
        """Create user session"""
        session.clear()
        session['user_type'] = user_type
        session['user_id'] = user_id
        session['username'] = username
        session['login_time'] = datetime.utcnow().isoformat()
        session.permanent = True

    @staticmethod
    def clear_session(session):
        """Clear user session"""
        session.clear()

    @staticmethod
    def is_authenticated(session):
        """Check if user is authenticated"""
        return 'user_type' in session and 'user_id' in session

    @staticmethod
    def has_role(session, user_type):
        return session.get('user_type') == user_type

    @staticmethod
    def get_session_info(session):
        """Get complete session information"""
        if not SessionManager.is_authenticated(session):
            return None

        return {
            'user_type': session.get('user_type'),
            'user_id': session.get('user_id'),
            'username': session.get('username'),
            'login_time': session.get('login_time')
        }
