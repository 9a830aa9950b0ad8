"""
Helpers for turning identity provider claims into profile fields
"""
import re

DEFAULT_DISPLAY_NAME = 'New User'

# Names left behind by earlier fallbacks; safe to replace with a better guess
PLACEHOLDER_NAMES = ('', 'New User', 'Unknown User')


def name_from_email(email):
    """
    Turn the local part of an email into a readable name

    john.doe@example.com -> "John Doe", mary_ann-lee@x.com -> "Mary Ann Lee"

    Returns None when nothing usable is left.
    """
    if not email or '@' not in email:
        return None

    local_part = email.split('@')[0]
    parts = [part for part in re.split(r'[._-]', local_part) if part]
    if not parts:
        return None

    return ' '.join(part[:1].upper() + part[1:].lower() for part in parts)


def _claim(claims, *keys):
    for key in keys:
        value = claims.get(key)
        if value and str(value).strip():
            return str(value).strip()
    return None


def derive_display_name(claims, fallback_email=None):
    """
    Pick a display name from partial identity claims

    Fallback chain: full name, then first + last name, then the title-cased
    local part of the claims email (or fallback_email), then "New User".

    Args:
        claims: Mapping of identity claims ('name', 'given_name', 'family_name', 'email')
        fallback_email: Email to use when the claims carry none (e.g. the invited address)

    Returns:
        str: A non-empty display name
    """
    claims = claims or {}

    full_name = _claim(claims, 'name', 'display_name')
    if full_name:
        return full_name

    first = _claim(claims, 'given_name', 'first_name')
    last = _claim(claims, 'family_name', 'last_name')
    if first or last:
        return ' '.join(part for part in (first, last) if part)

    for email in (_claim(claims, 'email'), fallback_email):
        name = name_from_email(email)
        if name:
            return name

    return DEFAULT_DISPLAY_NAME
