"""
Academic structure models for the School Result Portal
SchoolClass, Subject, AcademicSession and Term models
"""

from database import db
from datetime import datetime

TERM_NAMES = ('first', 'second', 'third')

class SchoolClass(db.Model):
    """Class (grade level) model, subdivided into arms"""
    __tablename__ = 'school_class'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), unique=True, nullable=False, index=True)
    arms = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    students = db.relationship('Student', backref='school_class', lazy='dynamic')
    subjects = db.relationship('Subject', backref='school_class', lazy='dynamic')
    assignments = db.relationship('ClassAssignment', backref='school_class', lazy='dynamic',
                                  cascade='all, delete-orphan')

    def has_arm(self, arm):
        """Check if the class is subdivided into the given arm"""
        return arm in (self.arms or [])

    def get_student_count(self):
        return self.students.count()

    def get_subject_count(self):
        return self.subjects.count()

    def to_dict(self):
        """Convert class to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'arms': list(self.arms or []),
            'student_count': self.get_student_count(),
            'subject_count': self.get_subject_count()
        }

    def __repr__(self):
        return f'<SchoolClass {self.name}>'

class Subject(db.Model):
    """Subject offered to a class"""
    __tablename__ = 'subject'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    code = db.Column(db.String(20), unique=True, nullable=False, index=True)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        """Convert subject to dictionary"""
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
            'class_id': self.class_id,
            'class_name': self.school_class.name if self.school_class else None
        }

    def __repr__(self):
        return f'<Subject {self.code}: {self.name}>'

class AcademicSession(db.Model):
    """Academic session (school year) such as 2024/2025"""
    __tablename__ = 'academic_session'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(9), unique=True, nullable=False, index=True)
    is_active = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    terms = db.relationship('Term', backref='session', lazy='dynamic',
                            cascade='all, delete-orphan', order_by='Term.id')

    @staticmethod
    def get_active_session():
        """Get the active academic session"""
        return AcademicSession.query.filter_by(is_active=True).first()

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'is_active': self.is_active,
            'terms': [term.to_dict() for term in self.terms]
        }

    def __repr__(self):
        return f'<AcademicSession {self.name}>'

class Term(db.Model):
    """One of the three terms of an academic session"""
    __tablename__ = 'term'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(10), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey('academic_session.id'), nullable=False)
    is_active = db.Column(db.Boolean, default=False)

    __table_args__ = (db.UniqueConstraint('session_id', 'name', name='unique_term_per_session'),)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'session_id': self.session_id,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<Term {self.name}>'
