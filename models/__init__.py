"""
Database models package for the School Result Portal
"""

from .user import Admin, Teacher
from .academic import SchoolClass, Subject, AcademicSession, Term
from .student import Student
from .assignments import ClassAssignment
from .result import Result

__all__ = [
    'Admin', 'Teacher', 'SchoolClass', 'Subject', 'AcademicSession', 'Term',
    'Student', 'ClassAssignment', 'Result'
]
