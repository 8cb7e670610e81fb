"""
Validation utilities for the School Result Portal
"""

import re
from datetime import datetime, date

from models.academic import TERM_NAMES

def validate_identifier(value, field_name="Identifier"):
    """Validate a school-issued number such as a student or teacher number"""
    if not isinstance(value, str) or len(value.strip()) == 0:
        return False, f"{field_name} is required"

    if len(value) > 20:
        return False, f"{field_name} must be 20 characters or less"

    # Allow alphanumeric and some special characters
    if not re.match(r'^[A-Za-z0-9_/-]+$', value):
        return False, f"{field_name} can only contain letters, numbers, slashes, hyphens, and underscores"

    return True, f"Valid {field_name.lower()}"

def validate_name(name, field_name="Name"):
    """Validate person name"""
    if not isinstance(name, str) or len(name.strip()) == 0:
        return False, f"{field_name} is required"

    if len(name) > 100:
        return False, f"{field_name} must be 100 characters or less"

    # Allow letters, spaces, and common name characters
    if not re.match(r'^[A-Za-z\s\.\-\']+$', name):
        return False, f"{field_name} can only contain letters, spaces, periods, hyphens, and apostrophes"

    return True, f"Valid {field_name.lower()}"

def validate_email(email):
    """Validate email address format"""
    if not isinstance(email, str) or len(email.strip()) == 0:
        return False, "Email is required"

    if len(email) > 120:
        return False, "Email must be 120 characters or less"

    if not re.fullmatch(r'[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}', email.strip()):
        return False, "Email address is not valid"

    return True, "Valid email"

def validate_username(username):
    """Validate username format"""
    if not isinstance(username, str) or len(username.strip()) == 0:
        return False, "Username is required"

    if len(username) < 3:
        return False, "Username must be at least 3 characters long"

    if len(username) > 80:
        return False, "Username must be 80 characters or less"

    # Allow alphanumeric and underscore
    if not re.match(r'^[A-Za-z0-9_]+$', username):
        return False, "Username can only contain letters, numbers, and underscores"

    return True, "Valid username"

def validate_password(password):
    """Validate password strength"""
    if not password:
        return False, "Password is required"

    if len(password) < 6:
        return False, "Password must be at least 6 characters long"

    if len(password) > 128:
        return False, "Password must be 128 characters or less"

    return True, "Valid password"

def validate_class_name(name):
    """Validate class name such as 'JSS 1' or 'SS 2'"""
    if not isinstance(name, str) or len(name.strip()) == 0:
        return False, "Class name is required"

    if len(name) > 50:
        return False, "Class name must be 50 characters or less"

    return True, "Valid class name"

def validate_arms(arms):
    """Validate the list of arms a class is divided into"""
    if not isinstance(arms, (list, tuple)) or len(arms) == 0:
        return False, "At least one arm is required"

    for arm in arms:
        if not isinstance(arm, str) or not re.match(r'^[A-Za-z0-9]{1,5}$', arm):
            return False, "Arms must be short alphanumeric labels such as A, B or C"

    if len(set(arms)) != len(arms):
        return False, "Arms must not repeat"

    return True, "Valid arms"

def validate_subject_code(subject_code):
    """Validate subject code format"""
    if not isinstance(subject_code, str) or len(subject_code.strip()) == 0:
        return False, "Subject code is required"

    if len(subject_code) > 20:
        return False, "Subject code must be 20 characters or less"

    # Allow alphanumeric and some special characters
    if not re.match(r'^[A-Za-z0-9_-]+$', subject_code):
        return False, "Subject code can only contain letters, numbers, hyphens, and underscores"

    return True, "Valid subject code"

def validate_session_name(session_name):
    """Validate academic session name in YYYY/YYYY format with consecutive years"""
    if not session_name or not isinstance(session_name, str):
        return False, "Session is required"

    match = re.fullmatch(r'(\d{4})/(\d{4})', session_name.strip())
    if not match:
        return False, "Session must be in YYYY/YYYY format"

    start_year, end_year = int(match.group(1)), int(match.group(2))
    if end_year != start_year + 1:
        return False, "Session years must be consecutive"

    return True, "Valid session"

def validate_term(term):
    """Validate term name"""
    if term not in TERM_NAMES:
        return False, f"Term must be one of: {', '.join(TERM_NAMES)}"

    return True, "Valid term"

def parse_date(value):
    """Parse a YYYY-MM-DD string (or date) into a date; returns None when invalid"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), '%Y-%m-%d').date()
        except ValueError:
            return None
    return None
