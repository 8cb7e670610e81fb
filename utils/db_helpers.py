"""
Database helper utilities for the School Result Portal
"""

import logging

from database import db, handle_db_error
from sqlalchemy.exc import IntegrityError

logger = logging.getLogger(__name__)

def _is_unique_violation(error):
    text = str(error.orig) if getattr(error, 'orig', None) is not None else str(error)
    return 'UNIQUE constraint failed' in text or 'duplicate key' in text

@handle_db_error
def safe_add_and_commit(obj):
    """Safely add object to database with error handling"""
    try:
        db.session.add(obj)
        db.session.commit()
        return True, "Record added successfully"
    except IntegrityError as e:
        db.session.rollback()
        logger.warning("Integrity error adding %r: %s", obj, e.orig)
        if _is_unique_violation(e):
            return False, "Record with this identifier already exists"
        return False, "Database constraint violation"

@handle_db_error
def safe_delete_and_commit(obj):
    """Safely delete object from database with error handling"""
    try:
        db.session.delete(obj)
        db.session.commit()
        return True, "Record deleted successfully"
    except IntegrityError as e:
        db.session.rollback()
        logger.warning("Integrity error deleting %r: %s", obj, e.orig)
        return False, "Record is still referenced by other records"

@handle_db_error
def safe_update_and_commit():
    """Safely commit database changes with error handling"""
    try:
        db.session.commit()
        return True, "Records updated successfully"
    except IntegrityError as e:
        db.session.rollback()
        logger.warning("Integrity error on update: %s", e.orig)
        if _is_unique_violation(e):
            return False, "Duplicate entry found"
        return False, "Database constraint violation"
