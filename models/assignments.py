"""
Assignment models for the School Result Portal
ClassAssignment model for teacher-class relationships
"""

from database import db
from datetime import datetime

class ClassAssignment(db.Model):
    """Class assignment to teachers"""
    __tablename__ = 'class_assignment'

    id = db.Column(db.Integer, primary_key=True)
    teacher_id = db.Column(db.Integer, db.ForeignKey('teacher.id'), nullable=False)
    class_id = db.Column(db.Integer, db.ForeignKey('school_class.id'), nullable=False)
    assigned_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Unique constraint to prevent duplicate assignments
    __table_args__ = (db.UniqueConstraint('teacher_id', 'class_id', name='unique_teacher_class'),)

    def to_dict(self):
        """Convert assignment to dictionary"""
        return {
            'id': self.id,
            'teacher_id': self.teacher_id,
            'teacher_name': self.teacher.name if self.teacher else None,
            'class_id': self.class_id,
            'class_name': self.school_class.name if self.school_class else None,
            'assigned_at': self.assigned_at.isoformat() if self.assigned_at else None
        }

    def __repr__(self):
        teacher_name = self.teacher.name if self.teacher else "Unknown"
        class_name = self.school_class.name if self.school_class else "Unknown"
        return f'<ClassAssignment {teacher_name} -> {class_name}>'
