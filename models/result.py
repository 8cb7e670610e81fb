"""
Result model for the School Result Portal
One student's report for a class, arm, term and session
"""

from database import db
from datetime import datetime
from models.academic import TERM_NAMES
from services.result_engine import ResultEngine

class Result(db.Model):
    """Student result submitted by a teacher and reviewed by an admin"""
    __tablename__ = 'result'

    STATUS_PENDING = 'PENDING'
    STATUS_APPROVED = 'APPROVED'
    STATUS_REJECTED = 'REJECTED'
    STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey('student.id'), nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    arm = db.Column(db.String(5), nullable=False)
    term = db.Column(db.String(10), nullable=False)
    session = db.Column(db.String(9), nullable=False)
    subjects = db.Column(db.JSON, nullable=False, default=list)
    total_score = db.Column(db.Integer, nullable=False, default=0)
    average_score = db.Column(db.Float, nullable=False, default=0.0)
    status = db.Column(db.String(10), nullable=False, default=STATUS_PENDING, index=True)
    position = db.Column(db.Integer, nullable=True)
    total_students = db.Column(db.Integer, nullable=True)
    class_teacher_remark = db.Column(db.Text, nullable=True)
    principal_remark = db.Column(db.Text, nullable=True)
    recommendation = db.Column(db.Text, nullable=True)
    submitted_by = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=False)
    submitted_at = db.Column(db.DateTime, default=datetime.utcnow)
    approved_by = db.Column(db.Integer, db.ForeignKey('admin.id'), nullable=True)
    approved_at = db.Column(db.DateTime, nullable=True)

    school_class = db.relationship('SchoolClass')

    # At most one result per student per term per session
    __table_args__ = (
        db.UniqueConstraint('student_id', 'term', 'session', name='unique_student_term_session'),
        db.Index('ix_result_rank_scope', 'class_id', 'term', 'session', 'status'),
    )

    def refresh_totals(self):
        """Recalculate total and average from the current subject entries"""
        self.total_score, self.average_score = ResultEngine.compute_result_totals(self.subjects)

    def is_pending(self):
        return self.status == Result.STATUS_PENDING

    def is_approved(self):
        return self.status == Result.STATUS_APPROVED

    def is_rejected(self):
        return self.status == Result.STATUS_REJECTED

    def clear_review(self):
        """Drop everything attached by a previous review"""
        self.position = None
        self.total_students = None
        self.class_teacher_remark = None
        self.principal_remark = None
        self.recommendation = None
        self.approved_by = None
        self.approved_at = None

    @staticmethod
    def ranking_scope_query(class_id, term, session):
        """Approved results competing for position in a class, term and session"""
        return Result.query.filter_by(
            class_id=class_id,
            term=term,
            session=session,
            status=Result.STATUS_APPROVED
        )

    @staticmethod
    def term_sort_value(term):
        try:
            return TERM_NAMES.index(term)
        except ValueError:
            return len(TERM_NAMES)

    def to_dict(self):
        """Convert result to dictionary"""
        return {
            'id': self.id,
            'student_id': self.student_id,
            'student_name': self.student.name if self.student else None,
            'student_number': self.student.student_number if self.student else None,
            'class_id': self.class_id,
            'class_name': self.school_class.name if self.school_class else None,
            'arm': self.arm,
            'term': self.term,
            'session': self.session,
            'subjects': list(self.subjects or []),
            'total_score': self.total_score,
            'average_score': round(self.average_score, 2) if self.average_score is not None else None,
            'status': self.status,
            'position': self.position,
            'total_students': self.total_students,
            'class_teacher_remark': self.class_teacher_remark,
            'principal_remark': self.principal_remark,
            'recommendation': self.recommendation,
            'submitted_by': self.submitted_by,
            'submitted_at': self.submitted_at.isoformat() if self.submitted_at else None,
            'approved_by': self.approved_by,
            'approved_at': self.approved_at.isoformat() if self.approved_at else None
        }

    def __repr__(self):
        student_number = self.student.student_number if self.student else "Unknown"
        return f'<Result {student_number} {self.term} {self.session}: {self.status}>'
