"""
Result engine for the School Result Portal
Pure scoring, grading and class-ranking logic shared by the result workflow
"""

import logging
from collections import namedtuple

logger = logging.getLogger(__name__)

CA_MAX_SCORE = 20
EXAM_MAX_SCORE = 60
MAX_TOTAL_SCORE = CA_MAX_SCORE * 2 + EXAM_MAX_SCORE

# (grade, min total, max total, remark), best band first
GRADING_SYSTEM = (
    ('A', 75, 100, 'Excellent'),
    ('B', 65, 74, 'Very Good'),
    ('C', 55, 64, 'Good'),
    ('D', 45, 54, 'Pass'),
    ('F', 0, 44, 'Fail'),
)

# Minimal shape of a ranking candidate; Result rows satisfy it as well
RankEntry = namedtuple('RankEntry', ['id', 'student_id', 'total_score'])

class SubjectScore(namedtuple('SubjectScore', ['name', 'ca1', 'ca2', 'exam', 'total', 'grade', 'remark'])):
    """One subject line of a result; stored in Result.subjects via _asdict()"""
    __slots__ = ()

    @classmethod
    def from_record(cls, record):
        """Rebuild from a stored mapping; missing fields become None"""
        if isinstance(record, cls):
            return record
        return cls(*(record.get(field) for field in cls._fields))

class ResultError(Exception):
    """Base class for errors raised by the result workflow"""
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self):
        return {'error': self.message}

class ScoreValidationError(ResultError):
    """Marks or placement fields outside their allowed values"""
    status_code = 400

class EmptyResultError(ResultError):
    """A result without any subject cannot be averaged"""
    status_code = 400

class AccessDeniedError(ResultError):
    status_code = 403

class ResultNotFoundError(ResultError):
    status_code = 404

class DuplicateResultError(ResultError):
    """A result already exists for the student, term and session"""
    status_code = 409

class InvalidTransitionError(ResultError):
    status_code = 409

class ScopeConsistencyError(ResultError):
    """Ranking candidate is missing from its own scope; a caller bug"""
    status_code = 500

class ResultEngine:
    """Scoring, grading and ranking helpers. Stateless; safe to call concurrently."""

    @staticmethod
    def validate_score(value, max_score, field_name):
        """Coerce a submitted mark to int and check it lies in [0, max_score]"""
        if isinstance(value, bool):
            raise ScoreValidationError(f"{field_name} must be a whole number")
        if isinstance(value, str):
            text = value.strip()
            if not text.lstrip('-').isdigit():
                raise ScoreValidationError(f"{field_name} must be a whole number")
            value = int(text)
        elif isinstance(value, float):
            if not value.is_integer():
                raise ScoreValidationError(f"{field_name} must be a whole number")
            value = int(value)
        elif not isinstance(value, int):
            raise ScoreValidationError(f"{field_name} must be a whole number")

        if value < 0 or value > max_score:
            raise ScoreValidationError(f"{field_name} must be between 0 and {max_score}")
        return value

    @staticmethod
    def compute_subject_total(ca1, ca2, exam):
        """Total of a subject. Inputs are expected to be validated already."""
        return ca1 + ca2 + exam

    @staticmethod
    def compute_grade(total):
        """Map a subject total (0-100) to its letter grade"""
        if total < 0 or total > MAX_TOTAL_SCORE:
            raise ScoreValidationError(f"Total must be between 0 and {MAX_TOTAL_SCORE}")
        for grade, minimum, _maximum, _remark in GRADING_SYSTEM:
            if total >= minimum:
                return grade
        return 'F'

    @staticmethod
    def grade_remark(grade):
        """Default remark for a letter grade"""
        for band_grade, _minimum, _maximum, remark in GRADING_SYSTEM:
            if band_grade == grade:
                return remark
        return ''

    @staticmethod
    def grading_system():
        """Grading table in the shape served to clients"""
        return {
            grade: {'min': minimum, 'max': maximum, 'remark': remark}
            for grade, minimum, maximum, remark in GRADING_SYSTEM
        }

    @staticmethod
    def build_subject_score(entry):
        """Validate one submitted subject and return it as a SubjectScore.

        ``entry`` is a mapping with ``name``, ``ca1``, ``ca2``, ``exam`` and an
        optional ``remark``. Any client-sent total or grade is ignored and
        derived again here.
        """
        if not isinstance(entry, dict):
            raise ScoreValidationError("Each subject must be an object")

        name = ' '.join(str(entry.get('name') or '').split())
        if not name:
            raise ScoreValidationError("Subject name is required")
        if len(name) > 100:
            raise ScoreValidationError("Subject name must be 100 characters or less")

        ca1 = ResultEngine.validate_score(entry.get('ca1'), CA_MAX_SCORE, f"{name} CA1")
        ca2 = ResultEngine.validate_score(entry.get('ca2'), CA_MAX_SCORE, f"{name} CA2")
        exam = ResultEngine.validate_score(entry.get('exam'), EXAM_MAX_SCORE, f"{name} exam")

        total = ResultEngine.compute_subject_total(ca1, ca2, exam)
        grade = ResultEngine.compute_grade(total)
        remark = ' '.join(str(entry.get('remark') or '').split()) or ResultEngine.grade_remark(grade)

        return SubjectScore(name, ca1, ca2, exam, total, grade, remark)

    @staticmethod
    def build_subject_scores(entries):
        """Validate a whole submission; keeps the submitted order"""
        if entries is None:
            raise EmptyResultError("At least one subject is required")
        if not isinstance(entries, (list, tuple)):
            raise ScoreValidationError("Subjects must be a list")
        if len(entries) == 0:
            raise EmptyResultError("At least one subject is required")

        subjects = []
        seen = set()
        for entry in entries:
            subject = ResultEngine.build_subject_score(entry)
            key = subject.name.lower()
            if key in seen:
                raise ScoreValidationError(f"Subject {subject.name} was entered more than once")
            seen.add(key)
            subjects.append(subject)
        return subjects

    @staticmethod
    def compute_result_totals(subjects):
        """Return (total_score, average_score) recomputed from the subject entries"""
        if not subjects:
            raise EmptyResultError("Cannot average zero subjects")

        total_score = 0
        for subject in map(SubjectScore.from_record, subjects):
            if subject.ca1 is not None and subject.ca2 is not None and subject.exam is not None:
                total_score += ResultEngine.compute_subject_total(subject.ca1, subject.ca2, subject.exam)
            else:
                total_score += subject.total

        return total_score, total_score / len(subjects)

    @staticmethod
    def _rank_key(entry):
        # total descending, then student and result id ascending
        return (-entry.total_score, entry.student_id, entry.id)

    @staticmethod
    def rank_scope(scope):
        """Order a ranking scope; returns a list of (position, entry)"""
        ordered = sorted(scope, key=ResultEngine._rank_key)
        return [(index, entry) for index, entry in enumerate(ordered, 1)]

    @staticmethod
    def compute_class_rank(candidate_id, scope):
        """Return (position, total_students) of ``candidate_id`` within ``scope``.

        ``scope`` holds every APPROVED result sharing the candidate's class,
        term and session, the candidate included.
        """
        entries = list(scope)
        for position, entry in ResultEngine.rank_scope(entries):
            if entry.id == candidate_id:
                return position, len(entries)

        logger.error("Result %s missing from its ranking scope of %d entries", candidate_id, len(entries))
        raise ScopeConsistencyError("Result not found in its ranking scope")

    @staticmethod
    def position_in_words(position):
        """Ordinal form of a position, e.g. 1 -> 1st, 12 -> 12th, 22 -> 22nd"""
        if position is None:
            return ''
        n = int(position)
        if 10 <= (abs(n) % 100) <= 20:
            suffix = 'th'
        else:
            suffix = {1: 'st', 2: 'nd', 3: 'rd'}.get(abs(n) % 10, 'th')
        return f"{n}{suffix}"

    @staticmethod
    def suggest_remarks(average_score, position):
        """Default report-card remarks derived from average and class position"""
        average = average_score or 0

        if position == 1:
            return {
                'class_teacher_remark': "Excellent performance! You're the best. Keep it up.",
                'principal_remark': "Promoted to next class with distinction. Excellent!",
                'recommendation': "Highly Recommended for Academic Scholarship",
            }
        if position == 2:
            return {
                'class_teacher_remark': "Very good work. Aim for the top next time.",
                'principal_remark': "Promoted to next class with merit. Very good.",
                'recommendation': "Recommended for Science/Arts Stream",
            }
        if position == 3:
            return {
                'class_teacher_remark': "Good effort. You can move higher.",
                'principal_remark': "Promoted to next class. Good performance.",
                'recommendation': "Recommended for Competitive Exams",
            }

        if average >= 65:
            teacher_remark = "Very good work. Can do even better."
        elif average >= 55:
            teacher_remark = "Good result. Put in more effort."
        elif average >= 45:
            teacher_remark = "Fair result. Needs improvement."
        elif average >= 40:
            teacher_remark = "Below average. Work harder."
        else:
            teacher_remark = "Poor performance. See me immediately."

        if average >= 60:
            principal_remark = "Promoted. Very good performance."
        elif average >= 50:
            principal_remark = "Promoted. Can improve."
        elif average >= 45:
            principal_remark = "Promoted on trial. Work harder."
        else:
            principal_remark = "Not promoted. Repeat class."

        if average >= 65:
            recommendation = "Recommended for Science/Arts"
        elif average >= 55:
            recommendation = "Recommended for Technical/Vocational"
        elif average >= 45:
            recommendation = "Recommended with Monitoring"
        else:
            recommendation = "Needs Remedial Classes"

        return {
            'class_teacher_remark': teacher_remark,
            'principal_remark': principal_remark,
            'recommendation': recommendation,
        }
