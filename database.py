"""
Database configuration and initialization for the School Result Portal
"""

import logging
import sqlite3
from functools import wraps

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import event
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

# Initialize SQLAlchemy instance
db = SQLAlchemy()

@event.listens_for(Engine, "connect")
def set_sqlite_pragma(dbapi_connection, connection_record):
    """Enable foreign key constraints for SQLite"""
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

def init_db(app):
    """Initialize database with application context"""
    with app.app_context():
        # Import all models to ensure they are registered
        from models import (
            Admin, Teacher, SchoolClass, Subject, AcademicSession, Term,
            Student, ClassAssignment, Result
        )

        # Create all tables
        db.create_all()

        if app.config.get('SEED_DEFAULT_ADMIN'):
            create_default_admin_user(
                app.config['DEFAULT_ADMIN_USERNAME'],
                app.config['DEFAULT_ADMIN_PASSWORD']
            )

        logger.info("Database initialized")

def create_default_admin_user(username, password):
    """Create default admin user for initial access"""
    from models.user import Admin

    # Check if admin user already exists
    existing_user = Admin.query.filter_by(username=username).first()

    if not existing_user:
        default_user = Admin(username=username, name='Administrator')
        default_user.set_password(password)

        try:
            db.session.add(default_user)
            db.session.commit()
            logger.info("Default admin user created: %s", username)
        except Exception:
            db.session.rollback()
            logger.exception("Error creating default admin user")
            raise

def reset_database(app):
    """Reset database - WARNING: This will delete all data"""
    with app.app_context():
        db.drop_all()
        db.create_all()

        create_default_admin_user(
            app.config['DEFAULT_ADMIN_USERNAME'],
            app.config['DEFAULT_ADMIN_PASSWORD']
        )
        logger.warning("Database reset completed")

class DatabaseError(Exception):
    """Custom exception for database operations"""
    pass

def handle_db_error(func):
    """Decorator to handle database errors gracefully"""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except Exception as e:
            db.session.rollback()
            logger.exception("Database operation %s failed", func.__name__)
            raise DatabaseError(f"Database operation failed: {str(e)}") from e
    return wrapper
