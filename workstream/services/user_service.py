"""
Directory records for identities coming from the identity provider
"""
from datetime import datetime
from flask import current_app
from workstream import db
from workstream.models.user import User
from workstream.utils.identity_utils import derive_display_name, name_from_email, PLACEHOLDER_NAMES
from workstream.utils.input_validators import normalize_email


def get_or_create_user(identity, fallback_email=None):
    """
    Resolve the directory record for an identity, creating it on first sight

    Args:
        identity: The signed-in Identity
        fallback_email: Address to use when the identity carries no email

    Returns:
        User: The (possibly new, unflushed) user record
    """
    user = User.get_by_subject(identity.subject_id)
    if user:
        return user

    email = identity.email or fallback_email
    user = User(
        subject_id=identity.subject_id,
        email=normalize_email(email),
        name=derive_display_name(identity.claims, fallback_email),
        avatar_url=identity.picture_url
    )
    db.session.add(user)
    db.session.flush()
    current_app.logger.info(f"Created directory record for {identity.subject_id}")
    return user


def refresh_user_from_identity(user, identity):
    """
    Bring stale denormalized profile fields in line with the identity claims

    Returns:
        bool: True if anything changed
    """
    name = (identity.display_name or '').strip()
    email = normalize_email(identity.email)
    changed = (
        (name and name != user.name)
        or (email and email != user.email)
        or (identity.picture_url and identity.picture_url != user.avatar_url)
    )
    if not changed:
        return False

    if name:
        user.name = name
    elif identity.email and (user.name or '') in PLACEHOLDER_NAMES:
        user.name = name_from_email(identity.email) or user.name

    user.email = email or user.email
    user.avatar_url = identity.picture_url or user.avatar_url
    user.updated_at = datetime.utcnow()
    return True


def get_display_name(subject_id, identity=None, default='Someone'):
    """Best available name for a subject: directory record, then identity claims"""
    user = User.get_by_subject(subject_id)
    if user and user.name:
        return user.name
    if identity is not None and identity.display_name:
        return identity.display_name
    return default
