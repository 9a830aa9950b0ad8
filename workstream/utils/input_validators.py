"""
Input validation and sanitization utilities
"""
import re
from workstream.utils.timezone_utils import is_valid_timezone


MAX_EMAIL_LENGTH = 255
MAX_MESSAGE_LENGTH = 1000

EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
CLOCK_TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):[0-5]\d$')


def normalize_email(email):
    """Trim and lower-case an email address"""
    return (email or '').strip().lower()


def validate_email(email):
    """
    Validate an email address
    Returns: (is_valid, error_message)
    """
    if not email:
        return False, "Email is required"

    if len(email) > MAX_EMAIL_LENGTH:
        return False, f"Email too long (max {MAX_EMAIL_LENGTH} characters)"

    if not EMAIL_PATTERN.match(email):
        return False, "Please enter a valid email address"

    return True, None


def validate_message(message):
    """
    Validate an optional invitation message
    Returns: (is_valid, error_message)
    """
    if message and len(message) > MAX_MESSAGE_LENGTH:
        return False, f"Message too long (max {MAX_MESSAGE_LENGTH} characters)"
    return True, None


def validate_reminder_days(days, allowed):
    """
    Validate a list of reminder lead times against the allowed set
    Returns: (is_valid, error_message)
    """
    if not isinstance(days, (list, tuple)):
        return False, "Reminder days must be a list"

    for day in days:
        if isinstance(day, bool) or not isinstance(day, int) or day not in allowed:
            allowed_text = ', '.join(str(d) for d in allowed)
            return False, f"Reminder days must be chosen from {allowed_text}"

    return True, None


def validate_clock_time(value):
    """
    Validate an "HH:MM" time string
    Returns: (is_valid, error_message)
    """
    if not isinstance(value, str) or not CLOCK_TIME_PATTERN.match(value):
        return False, "Time must use the HH:MM format"
    return True, None


def validate_timezone(tz_name):
    """
    Validate an IANA timezone name
    Returns: (is_valid, error_message)
    """
    if not isinstance(tz_name, str) or not is_valid_timezone(tz_name):
        return False, f"Unknown timezone: {tz_name}"
    return True, None
