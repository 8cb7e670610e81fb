#!/usr/bin/env python3
"""
Sample data generator for the School Result Portal
Creates a demo class, teacher, students and academic session
"""

import logging

from app import create_app
from services.management_service import ManagementService

logger = logging.getLogger(__name__)

def create_sample_data():
    """Create sample data for the system"""
    app = create_app()

    with app.app_context():
        logger.info("Creating sample data...")

        success, school_class, message = ManagementService.add_class('JSS 1', ['A', 'B', 'C'])
        if not success:
            logger.error("Sample class not created: %s", message)
            return

        for name, code in (('Mathematics', 'MTH-JSS1'), ('English', 'ENG-JSS1'), ('Physics', 'PHY-JSS1')):
            ManagementService.add_subject(name, code, school_class.id)

        success, session_obj, message = ManagementService.add_session('2024/2025', is_active=True)
        if success:
            first_term = session_obj.terms.filter_by(name='first').first()
            ManagementService.set_term_active(first_term.id, True)

        success, teacher, password, message = ManagementService.add_teacher(
            'TCH001', 'John Okonkwo', 'john.okonkwo@school.com', [school_class.id]
        )
        if success:
            logger.info("Teacher: %s / %s", teacher.email, password)

        students_data = [
            ('STU001', 'Chidi Obi', '2010-05-15', 'A'),
            ('STU002', 'Amina Suleiman', '2011-08-22', 'A'),
        ]
        for student_number, name, dob, arm in students_data:
            success, student, message = ManagementService.add_student(
                student_number, name, dob, school_class.id, arm
            )
            if success:
                logger.info("Student: %s / %s", student.student_number, dob)

        logger.info("Sample data created. Admin login: %s / %s",
                    app.config['DEFAULT_ADMIN_USERNAME'], app.config['DEFAULT_ADMIN_PASSWORD'])

if __name__ == '__main__':
    create_sample_data()
