"""
Result service for the School Result Portal
Submission, review (approve/reject) and retrieval of student results
"""

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from database import db
from models.academic import SchoolClass
from models.result import Result
from models.student import Student
from models.user import Teacher
from services.result_engine import (
    ResultEngine, RankEntry, ScoreValidationError, AccessDeniedError,
    ResultNotFoundError, DuplicateResultError, InvalidTransitionError
)
from utils.validators import validate_term, validate_session_name

logger = logging.getLogger(__name__)

REVIEW_REMARK_FIELDS = ('class_teacher_remark', 'principal_remark', 'recommendation')

def _clean_text(value):
    if value is None:
        return None
    text = str(value).strip()
    return text or None

def _parse_id(value, field_name):
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ScoreValidationError(f"{field_name} is required")

class ResultService:
    """Result workflow service class"""

    @staticmethod
    def submit_result(teacher_id, data):
        """Create a PENDING result from a teacher submission.

        ``data`` carries student_id, class_id, arm, term, session and subjects.
        A rejected result for the same student, term and session is edited in
        place back to PENDING; any other existing result is a conflict.
        """
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ScoreValidationError("Request body must be a JSON object")
        student_id = _parse_id(data.get('student_id'), 'Student')
        class_id = _parse_id(data.get('class_id'), 'Class')
        arm = _clean_text(data.get('arm'))
        term = _clean_text(data.get('term'))
        session_name = _clean_text(data.get('session'))

        if not arm:
            raise ScoreValidationError("Arm is required")
        is_valid, message = validate_term(term)
        if not is_valid:
            raise ScoreValidationError(message)
        is_valid, message = validate_session_name(session_name)
        if not is_valid:
            raise ScoreValidationError(message)

        teacher = db.session.get(Teacher, teacher_id)
        if not teacher or not teacher.is_active:
            raise ResultNotFoundError("Teacher not found")

        school_class = db.session.get(SchoolClass, class_id)
        if not school_class:
            raise ResultNotFoundError("Class not found")
        if not school_class.has_arm(arm):
            raise ScoreValidationError(f"Arm {arm} does not exist in {school_class.name}")
        if not teacher.is_assigned_to_class(class_id):
            raise AccessDeniedError("Access denied to this class")

        student = db.session.get(Student, student_id)
        if not student:
            raise ResultNotFoundError("Student not found")
        if student.class_id != class_id or student.arm != arm:
            raise ScoreValidationError("Student is not in the selected class and arm")

        subjects = ResultEngine.build_subject_scores(data.get('subjects'))

        # Status is re-read under the row lock, not taken from the identity map
        existing = (Result.query
                    .filter_by(student_id=student_id, term=term, session=session_name)
                    .with_for_update()
                    .populate_existing()
                    .first())

        if existing and not existing.is_rejected():
            logger.warning(
                "Duplicate result submission for student %s, %s term %s by teacher %s",
                student.student_number, term, session_name, teacher_id
            )
            raise DuplicateResultError("Result already exists for this student, term and session")

        if existing:
            result = existing
            result.clear_review()
            result.status = Result.STATUS_PENDING
        else:
            result = Result(student_id=student_id, term=term, session=session_name)
            db.session.add(result)

        result.class_id = class_id
        result.arm = arm
        result.subjects = [subject._asdict() for subject in subjects]
        result.refresh_totals()
        result.submitted_by = teacher.id
        result.submitted_at = datetime.utcnow()

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateResultError("Result already exists for this student, term and session")

        logger.info(
            "Result %s %s for student %s (%s term %s)",
            result.id, 'resubmitted' if existing else 'submitted',
            student.student_number, term, session_name
        )
        return result

    @staticmethod
    def review_result(result_id, admin_id, status, remarks=None):
        """Approve or reject a PENDING result.

        Approval computes the class position over the APPROVED results of the
        same class, term and session and freezes it on this result only.
        """
        if status not in (Result.STATUS_APPROVED, Result.STATUS_REJECTED):
            raise ScoreValidationError("Status must be APPROVED or REJECTED")

        remarks = remarks or {}
        result = db.session.get(Result, result_id, with_for_update=True)
        if not result:
            raise ResultNotFoundError("Result not found")
        if not result.is_pending():
            raise InvalidTransitionError(f"Result has already been {result.status.lower()}")

        for field in REVIEW_REMARK_FIELDS:
            setattr(result, field, _clean_text(remarks.get(field)))

        result.status = status
        if status == Result.STATUS_APPROVED:
            result.approved_by = admin_id
            result.approved_at = datetime.utcnow()
            db.session.flush()

            # Scope is read after the flush so it includes this result
            scope = (Result.ranking_scope_query(result.class_id, result.term, result.session)
                     .with_for_update()
                     .all())
            try:
                result.position, result.total_students = ResultEngine.compute_class_rank(
                    result.id, [RankEntry(r.id, r.student_id, r.total_score) for r in scope]
                )
            except Exception:
                db.session.rollback()
                raise

        db.session.commit()
        logger.info(
            "Result %s %s by admin %s (position %s of %s)",
            result.id, status.lower(), admin_id, result.position, result.total_students
        )
        return result

    @staticmethod
    def refresh_positions(class_id, term, session_name):
        """Rewrite stored positions of every approved result in a scope"""
        is_valid, message = validate_term(term)
        if not is_valid:
            raise ScoreValidationError(message)
        is_valid, message = validate_session_name(session_name)
        if not is_valid:
            raise ScoreValidationError(message)

        scope = (Result.ranking_scope_query(class_id, term, session_name)
                 .with_for_update()
                 .all())
        total_students = len(scope)
        for position, result in ResultEngine.rank_scope(scope):
            result.position = position
            result.total_students = total_students

        db.session.commit()
        logger.info("Refreshed %d positions for class %s, %s term %s",
                    total_students, class_id, term, session_name)
        return total_students

    @staticmethod
    def get_result(result_id):
        result = db.session.get(Result, result_id)
        if not result:
            raise ResultNotFoundError("Result not found")
        return result

    @staticmethod
    def get_class_standings(class_id, term, session_name):
        """Live ordering of the approved scope, independent of stored positions"""
        scope = Result.ranking_scope_query(class_id, term, session_name).all()
        return [
            {
                'id': result.id,
                'student_id': result.student_id,
                'student_name': result.student.name if result.student else None,
                'total_score': result.total_score,
                'average_score': round(result.average_score, 2),
                'position': position
            }
            for position, result in ResultEngine.rank_scope(scope)
        ]

    @staticmethod
    def get_result_detail(result_id):
        """Result with the live standings of its ranking scope"""
        result = ResultService.get_result(result_id)
        standings = ResultService.get_class_standings(result.class_id, result.term, result.session)

        detail = result.to_dict()
        detail['standings'] = standings
        detail['current_position'] = next(
            (row['position'] for row in standings if row['id'] == result.id), None
        )
        return detail

    @staticmethod
    def list_results(status=None):
        """All results for the admin review queue"""
        query = Result.query
        if status:
            if status not in Result.STATUSES:
                raise ScoreValidationError(f"Status must be one of: {', '.join(Result.STATUSES)}")
            query = query.filter_by(status=status)
        return query.order_by(Result.submitted_at.desc(), Result.id.desc()).all()

    @staticmethod
    def get_teacher_results(teacher_id, status=None):
        """Results submitted by a teacher, newest first"""
        query = Result.query.filter_by(submitted_by=teacher_id)
        if status:
            query = query.filter_by(status=status)
        return query.order_by(Result.submitted_at.desc(), Result.id.desc()).all()

    @staticmethod
    def get_student_results(student_id, session_name=None, term=None):
        """Approved results of a student, newest session first then term order"""
        query = Result.query.filter_by(student_id=student_id, status=Result.STATUS_APPROVED)
        if session_name:
            query = query.filter_by(session=session_name)
        if term:
            query = query.filter_by(term=term)

        results = query.all()
        results.sort(key=lambda r: Result.term_sort_value(r.term))
        results.sort(key=lambda r: r.session, reverse=True)
        return results

    @staticmethod
    def get_student_result(student_id, result_id):
        """One approved result, only if it belongs to the student"""
        result = db.session.get(Result, result_id)
        if not result or result.student_id != student_id or not result.is_approved():
            raise ResultNotFoundError("Result not found")
        return result

    @staticmethod
    def build_report_card(result):
        """Report card view of an approved result"""
        card = result.to_dict()
        suggestions = ResultEngine.suggest_remarks(result.average_score, result.position)
        for field in REVIEW_REMARK_FIELDS:
            if not card.get(field):
                card[field] = suggestions[field]
        card['position_in_words'] = ResultEngine.position_in_words(result.position)
        card['subject_count'] = len(result.subjects or [])
        card['date_of_birth'] = (result.student.date_of_birth.isoformat()
                                 if result.student and result.student.date_of_birth else None)
        return card
