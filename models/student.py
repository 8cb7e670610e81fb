"""
Student model for the School Result Portal
"""

from database import db
from datetime import datetime

class Student(db.Model):
    """Student model"""
    __tablename__ = 'student'

    id = db.Column(db.Integer, primary_key=True)
    student_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=True)
    date_of_birth = db.Column(db.Date, nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    arm = db.Column(db.String(5), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    results = db.relationship('Result', backref='student', lazy='dynamic')

    def get_approved_results(self):
        """Get the results this student is allowed to see"""
        from models.result import Result
        return self.results.filter_by(status=Result.STATUS_APPROVED).all()

    def to_dict(self):
        """Convert student to dictionary"""
        return {
            'id': self.id,
            'student_number': self.student_number,
            'name': self.name,
            'email': self.email,
            'date_of_birth': self.date_of_birth.isoformat() if self.date_of_birth else None,
            'class_id': self.class_id,
            'class_name': self.school_class.name if self.school_class else None,
            'arm': self.arm,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<Student {self.student_number}: {self.name}>'
