"""
User models for the School Result Portal
Admin and Teacher user models
"""

from database import db
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

class Admin(db.Model):
    """Admin user model for administrative access"""
    __tablename__ = 'admin'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    approved_results = db.relationship('Result', backref='approver', lazy='dynamic')

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password against hash"""
        return check_password_hash(self.password_hash, password)

    def update_last_login(self):
        """Update last login timestamp"""
        self.last_login = datetime.utcnow()
        db.session.commit()

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'name': self.name,
            'last_login': self.last_login.isoformat() if self.last_login else None,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<Admin {self.username}>'

class Teacher(db.Model):
    """Teacher user model"""
    __tablename__ = 'teacher'

    id = db.Column(db.Integer, primary_key=True)
    teacher_number = db.Column(db.String(20), unique=True, nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    last_login = db.Column(db.DateTime)
    is_active = db.Column(db.Boolean, default=True)

    # Relationships
    class_assignments = db.relationship('ClassAssignment', backref='teacher', lazy='dynamic',
                                        cascade='all, delete-orphan')
    submitted_results = db.relationship('Result', backref='submitter', lazy='dynamic')

    def set_password(self, password):
        """Set password hash"""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        """Check password against hash"""
        return check_password_hash(self.password_hash, password)

    def update_last_login(self):
        """Update last login timestamp"""
        self.last_login = datetime.utcnow()
        db.session.commit()

    def get_assigned_classes(self):
        """Get all classes assigned to this teacher"""
        return [assignment.school_class for assignment in self.class_assignments]

    def get_assigned_class_ids(self):
        return [assignment.class_id for assignment in self.class_assignments]

    def is_assigned_to_class(self, class_id):
        """Check if teacher is assigned to a specific class"""
        return self.class_assignments.filter_by(class_id=class_id).first() is not None

    @staticmethod
    def default_password(teacher_number):
        """Initial password handed out when an admin creates a teacher"""
        return (teacher_number or '').strip().lower()

    def to_dict(self):
        """Convert teacher to dictionary for JSON serialization"""
        return {
            'id': self.id,
            'teacher_number': self.teacher_number,
            'name': self.name,
            'email': self.email,
            'class_ids': self.get_assigned_class_ids(),
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'last_login': self.last_login.isoformat() if self.last_login else None,
            'is_active': self.is_active
        }

    def __repr__(self):
        return f'<Teacher {self.teacher_number}: {self.name}>'
