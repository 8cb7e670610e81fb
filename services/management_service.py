"""
Management service for the School Result Portal
Business logic for the admin portal: classes, subjects, teachers, students,
academic sessions and terms
"""

import logging

from database import db
from models.user import Teacher
from models.academic import SchoolClass, Subject, AcademicSession, Term, TERM_NAMES
from models.student import Student
from models.assignments import ClassAssignment
from models.result import Result
from utils.db_helpers import safe_add_and_commit, safe_delete_and_commit, safe_update_and_commit
from utils.validators import (
    validate_identifier, validate_name, validate_email, validate_class_name,
    validate_arms, validate_subject_code, validate_session_name, parse_date
)

logger = logging.getLogger(__name__)

def _find_class(class_id):
    """Class by id, or None when the id is missing or not a number"""
    try:
        return db.session.get(SchoolClass, int(class_id))
    except (TypeError, ValueError):
        return None

class ManagementService:
    """Management service class"""

    @staticmethod
    def get_dashboard_stats():
        """Get dashboard statistics"""
        return {
            'total_classes': SchoolClass.query.count(),
            'total_teachers': Teacher.query.filter_by(is_active=True).count(),
            'total_students': Student.query.filter_by(is_active=True).count(),
            'total_subjects': Subject.query.count(),
            'pending_results': Result.query.filter_by(status=Result.STATUS_PENDING).count(),
            'approved_results': Result.query.filter_by(status=Result.STATUS_APPROVED).count(),
            'rejected_results': Result.query.filter_by(status=Result.STATUS_REJECTED).count()
        }

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    @staticmethod
    def get_classes():
        return SchoolClass.query.order_by(SchoolClass.name.asc()).all()

    @staticmethod
    def add_class(name, arms):
        """Add new class"""
        name = str(name or '').strip()
        for is_valid, message in (validate_class_name(name), validate_arms(arms)):
            if not is_valid:
                return False, None, message

        if SchoolClass.query.filter_by(name=name).first():
            return False, None, "Class already exists"

        school_class = SchoolClass(name=name, arms=list(arms))
        success, message = safe_add_and_commit(school_class)
        if success:
            logger.info("Class %s created", name)
            return True, school_class, "Class added successfully"
        return False, None, message

    @staticmethod
    def update_class(class_id, name, arms):
        """Rename a class or change its arms"""
        school_class = db.session.get(SchoolClass, class_id)
        if not school_class:
            return False, None, "Class not found"

        name = str(name or '').strip()
        for is_valid, message in (validate_class_name(name), validate_arms(arms)):
            if not is_valid:
                return False, None, message

        removed_arms = set(school_class.arms or []) - set(arms)
        if removed_arms and school_class.students.filter(Student.arm.in_(removed_arms)).count():
            return False, None, "Cannot remove an arm that still has students"

        school_class.name = name
        school_class.arms = list(arms)
        success, message = safe_update_and_commit()
        if success:
            return True, school_class, "Class updated successfully"
        return False, None, message

    @staticmethod
    def delete_class(class_id):
        """Delete a class that has no students or subjects"""
        school_class = db.session.get(SchoolClass, class_id)
        if not school_class:
            return False, "Class not found"

        if school_class.get_student_count() or school_class.get_subject_count():
            return False, "Cannot delete class with students or subjects. Remove them first."
        if Result.query.filter_by(class_id=class_id).count():
            return False, "Cannot delete class with submitted results"

        return safe_delete_and_commit(school_class)

    # ------------------------------------------------------------------
    # Subjects
    # ------------------------------------------------------------------

    @staticmethod
    def get_subjects(class_id=None):
        query = Subject.query
        if class_id:
            query = query.filter_by(class_id=class_id)
        return query.order_by(Subject.class_id.asc(), Subject.name.asc()).all()

    @staticmethod
    def add_subject(name, code, class_id):
        """Add new subject to a class"""
        name = ' '.join(str(name or '').split())
        code = str(code or '').strip().upper()
        if not name:
            return False, None, "Subject name is required"
        is_valid, message = validate_subject_code(code)
        if not is_valid:
            return False, None, message
        school_class = _find_class(class_id)
        if not school_class:
            return False, None, "Class not found"
        if Subject.query.filter_by(code=code).first():
            return False, None, "Subject code already exists"

        subject = Subject(name=name, code=code, class_id=school_class.id)
        success, message = safe_add_and_commit(subject)
        if success:
            return True, subject, "Subject added successfully"
        return False, None, message

    @staticmethod
    def delete_subject(subject_id):
        subject = db.session.get(Subject, subject_id)
        if not subject:
            return False, "Subject not found"
        return safe_delete_and_commit(subject)

    # ------------------------------------------------------------------
    # Teachers
    # ------------------------------------------------------------------

    @staticmethod
    def get_teachers():
        return Teacher.query.order_by(Teacher.name.asc()).all()

    @staticmethod
    def _validate_teacher_fields(teacher_number, name, email):
        for is_valid, message in (
            validate_identifier(teacher_number, "Teacher number"),
            validate_name(name),
            validate_email(email)
        ):
            if not is_valid:
                return False, message
        return True, "Valid teacher"

    @staticmethod
    def _set_teacher_classes(teacher, class_ids):
        """Replace the classes a teacher is assigned to"""
        if class_ids is not None and not isinstance(class_ids, (list, tuple)):
            return False, "Class IDs must be a list"

        wanted = set()
        for class_id in class_ids or []:
            school_class = _find_class(class_id)
            if not school_class:
                return False, f"Class {class_id} not found"
            wanted.add(school_class.id)

        for assignment in teacher.class_assignments.all():
            if assignment.class_id not in wanted:
                db.session.delete(assignment)
            else:
                wanted.discard(assignment.class_id)

        for class_id in sorted(wanted):
            db.session.add(ClassAssignment(teacher=teacher, class_id=class_id))
        return True, "Classes assigned"

    @staticmethod
    def add_teacher(teacher_number, name, email, class_ids=None):
        """Add new teacher; returns the default password for first login"""
        teacher_number = str(teacher_number or '').strip()
        name = str(name or '').strip()
        email = str(email or '').strip().lower()

        is_valid, message = ManagementService._validate_teacher_fields(teacher_number, name, email)
        if not is_valid:
            return False, None, None, message

        if Teacher.query.filter_by(teacher_number=teacher_number).first():
            return False, None, None, "Teacher number already exists"
        if Teacher.query.filter_by(email=email).first():
            return False, None, None, "Email already exists"

        password = Teacher.default_password(teacher_number)
        teacher = Teacher(teacher_number=teacher_number, name=name, email=email)
        teacher.set_password(password)
        db.session.add(teacher)

        success, message = ManagementService._set_teacher_classes(teacher, class_ids)
        if not success:
            db.session.rollback()
            return False, None, None, message

        success, message = safe_update_and_commit()
        if success:
            logger.info("Teacher %s created", teacher_number)
            return True, teacher, password, "Teacher added successfully"
        return False, None, None, message

    @staticmethod
    def update_teacher(teacher_id, teacher_number, name, email, class_ids=None):
        """Update teacher details and class assignments"""
        teacher = db.session.get(Teacher, teacher_id)
        if not teacher:
            return False, None, "Teacher not found"

        teacher_number = str(teacher_number or '').strip()
        name = str(name or '').strip()
        email = str(email or '').strip().lower()

        is_valid, message = ManagementService._validate_teacher_fields(teacher_number, name, email)
        if not is_valid:
            return False, None, message

        clash = Teacher.query.filter(Teacher.id != teacher_id).filter(
            db.or_(Teacher.teacher_number == teacher_number, Teacher.email == email)
        ).first()
        if clash:
            return False, None, "Teacher number or email already in use"

        teacher.teacher_number = teacher_number
        teacher.name = name
        teacher.email = email

        if class_ids is not None:
            success, message = ManagementService._set_teacher_classes(teacher, class_ids)
            if not success:
                db.session.rollback()
                return False, None, message

        success, message = safe_update_and_commit()
        if success:
            return True, teacher, "Teacher updated successfully"
        return False, None, message

    @staticmethod
    def delete_teacher(teacher_id):
        """Deactivate a teacher who has submitted results, delete otherwise"""
        teacher = db.session.get(Teacher, teacher_id)
        if not teacher:
            return False, "Teacher not found"

        if teacher.submitted_results.count():
            teacher.is_active = False
            success, message = safe_update_and_commit()
            return success, "Teacher deactivated (has submitted results)" if success else message

        return safe_delete_and_commit(teacher)

    # ------------------------------------------------------------------
    # Students
    # ------------------------------------------------------------------

    @staticmethod
    def get_students(class_id=None, arm=None):
        query = Student.query.filter_by(is_active=True)
        if class_id:
            query = query.filter_by(class_id=class_id)
        if arm:
            query = query.filter_by(arm=arm)
        return query.order_by(Student.name.asc()).all()

    @staticmethod
    def _validate_student_fields(student_number, name, email, date_of_birth, class_id, arm):
        for is_valid, message in (
            validate_identifier(student_number, "Student number"),
            validate_name(name)
        ):
            if not is_valid:
                return False, message, None

        if email:
            is_valid, message = validate_email(email)
            if not is_valid:
                return False, message, None

        if parse_date(date_of_birth) is None:
            return False, "Date of birth must be in YYYY-MM-DD format", None

        school_class = _find_class(class_id)
        if not school_class:
            return False, "Class not found", None
        if not school_class.has_arm(arm):
            return False, f"Arm {arm} does not exist in {school_class.name}", None

        return True, "Valid student", school_class

    @staticmethod
    def add_student(student_number, name, date_of_birth, class_id, arm, email=None):
        """Add new student"""
        student_number = str(student_number or '').strip().upper()
        name = str(name or '').strip()
        email = str(email or '').strip().lower() or None

        is_valid, message, _ = ManagementService._validate_student_fields(
            student_number, name, email, date_of_birth, class_id, arm
        )
        if not is_valid:
            return False, None, message

        if Student.query.filter_by(student_number=student_number).first():
            return False, None, "Student number already exists"
        if email and Student.query.filter_by(email=email).first():
            return False, None, "Email already exists"

        student = Student(
            student_number=student_number,
            name=name,
            email=email,
            date_of_birth=parse_date(date_of_birth),
            class_id=int(class_id),
            arm=arm
        )
        success, message = safe_add_and_commit(student)
        if success:
            logger.info("Student %s created", student_number)
            return True, student, "Student added successfully"
        return False, None, message

    @staticmethod
    def update_student(student_id, student_number, name, date_of_birth, class_id, arm, email=None):
        """Update student details; results keep the placement they were submitted with"""
        student = db.session.get(Student, student_id)
        if not student:
            return False, None, "Student not found"

        student_number = str(student_number or '').strip().upper()
        name = str(name or '').strip()
        email = str(email or '').strip().lower() or None

        is_valid, message, _ = ManagementService._validate_student_fields(
            student_number, name, email, date_of_birth, class_id, arm
        )
        if not is_valid:
            return False, None, message

        clash = Student.query.filter(Student.id != student_id, Student.student_number == student_number).first()
        if clash:
            return False, None, "Student number already exists"

        student.student_number = student_number
        student.name = name
        student.email = email
        student.date_of_birth = parse_date(date_of_birth)
        student.class_id = int(class_id)
        student.arm = arm

        success, message = safe_update_and_commit()
        if success:
            return True, student, "Student updated successfully"
        return False, None, message

    @staticmethod
    def delete_student(student_id):
        """Deactivate a student who has results, delete otherwise"""
        student = db.session.get(Student, student_id)
        if not student:
            return False, "Student not found"

        if student.results.count():
            student.is_active = False
            success, message = safe_update_and_commit()
            return success, "Student deactivated (has results)" if success else message

        return safe_delete_and_commit(student)

    # ------------------------------------------------------------------
    # Academic sessions and terms
    # ------------------------------------------------------------------

    @staticmethod
    def get_sessions():
        return AcademicSession.query.order_by(AcademicSession.name.desc()).all()

    @staticmethod
    def add_session(name, is_active=False):
        """Add academic session together with its three terms"""
        name = str(name or '').strip()
        is_valid, message = validate_session_name(name)
        if not is_valid:
            return False, None, message

        if AcademicSession.query.filter_by(name=name).first():
            return False, None, "Session already exists"

        if is_active:
            AcademicSession.query.filter_by(is_active=True).update({'is_active': False})

        academic_session = AcademicSession(name=name, is_active=bool(is_active))
        for term_name in TERM_NAMES:
            academic_session.terms.append(Term(name=term_name))

        success, message = safe_add_and_commit(academic_session)
        if success:
            return True, academic_session, "Session added successfully"
        return False, None, message

    @staticmethod
    def activate_session(session_id):
        """Make a session the only active one"""
        academic_session = db.session.get(AcademicSession, session_id)
        if not academic_session:
            return False, None, "Session not found"

        AcademicSession.query.filter(AcademicSession.id != session_id).update(
            {'is_active': False}, synchronize_session=False
        )
        # Terms of other sessions cannot stay active
        Term.query.filter(Term.session_id != session_id).update(
            {'is_active': False}, synchronize_session=False
        )
        academic_session.is_active = True

        success, message = safe_update_and_commit()
        if success:
            return True, academic_session, "Session activated successfully"
        return False, None, message

    @staticmethod
    def set_term_active(term_id, is_active):
        """Activate or deactivate a term; only terms of the active session can be active"""
        term = db.session.get(Term, term_id)
        if not term:
            return False, None, "Term not found"

        if is_active:
            if not term.session.is_active:
                return False, None, ("Cannot activate term because its session is not active. "
                                     "Please activate the session first.")
            Term.query.filter(Term.session_id == term.session_id, Term.id != term.id).update(
                {'is_active': False}, synchronize_session=False
            )

        term.is_active = bool(is_active)
        success, message = safe_update_and_commit()
        if success:
            return True, term, "Term updated successfully"
        return False, None, message
