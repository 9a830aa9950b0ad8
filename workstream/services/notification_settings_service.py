"""
Notification settings
Per-user email toggles, reminder cadence and quiet hours
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError
from workstream import db
from workstream.exceptions import InvalidInput, NotAuthenticated
from workstream.models.notification_settings import UserNotificationSettings
from workstream.utils.input_validators import (
    validate_clock_time, validate_reminder_days, validate_timezone
)


def get_settings_for_user(user_id):
    """Settings row for a subject id, or None if the user never saved any"""
    return UserNotificationSettings.query.filter_by(user_id=user_id).first()


def get_or_create_settings(user_id):
    """Get the settings row for a user, inserting the defaults on first use"""
    settings = get_settings_for_user(user_id)
    if settings:
        return settings

    settings = UserNotificationSettings(user_id=user_id)
    db.session.add(settings)
    try:
        db.session.commit()
    except IntegrityError:
        # Created concurrently by another request
        db.session.rollback()
        settings = get_settings_for_user(user_id)
    return settings


def get_settings(identity):
    if identity is None:
        raise NotAuthenticated("Not authenticated")
    return get_or_create_settings(identity.subject_id)


def _bool(section, key, value):
    if not isinstance(value, bool):
        raise InvalidInput(f"{section}.{key} must be true or false")
    return value


def _validate_updates(email_notifications=None, due_date_reminders=None,
                      digest_frequency=None, quiet_hours=None):
    """Translate the nested settings payload into column updates"""
    updates = {}

    if email_notifications is not None:
        if not isinstance(email_notifications, dict):
            raise InvalidInput("email_notifications must be an object")
        for toggle, value in email_notifications.items():
            if toggle not in UserNotificationSettings.EMAIL_TOGGLES:
                raise InvalidInput(f"Unknown email notification: {toggle}")
            updates[f'email_{toggle}'] = _bool('email_notifications', toggle, value)

    if due_date_reminders is not None:
        if not isinstance(due_date_reminders, dict):
            raise InvalidInput("due_date_reminders must be an object")
        if 'enabled' in due_date_reminders:
            updates['due_date_reminders_enabled'] = _bool('due_date_reminders', 'enabled',
                                                          due_date_reminders['enabled'])
        if 'reminder_days' in due_date_reminders:
            days = due_date_reminders['reminder_days']
            is_valid, error = validate_reminder_days(days, current_app.config['REMINDER_LEAD_DAYS'])
            if not is_valid:
                raise InvalidInput(error)
            updates['reminder_days'] = sorted(set(days))

    if digest_frequency is not None:
        if digest_frequency not in UserNotificationSettings.DIGEST_FREQUENCIES:
            raise InvalidInput(f"Unknown digest frequency: {digest_frequency}")
        updates['digest_frequency'] = digest_frequency

    if quiet_hours is not None:
        if not isinstance(quiet_hours, dict):
            raise InvalidInput("quiet_hours must be an object")
        if 'enabled' in quiet_hours:
            updates['quiet_hours_enabled'] = _bool('quiet_hours', 'enabled', quiet_hours['enabled'])
        for key, column in (('start_time', 'quiet_hours_start'), ('end_time', 'quiet_hours_end')):
            if key in quiet_hours:
                is_valid, error = validate_clock_time(quiet_hours[key])
                if not is_valid:
                    raise InvalidInput(error)
                updates[column] = quiet_hours[key]
        if 'timezone' in quiet_hours:
            is_valid, error = validate_timezone(quiet_hours['timezone'])
            if not is_valid:
                raise InvalidInput(error)
            updates['quiet_hours_timezone'] = quiet_hours['timezone']

    return updates


def update_settings(identity, email_notifications=None, due_date_reminders=None,
                    digest_frequency=None, quiet_hours=None):
    """
    Apply a partial settings update for the caller

    Every section is validated before anything is written.

    Returns:
        UserNotificationSettings: The updated settings
    """
    if identity is None:
        raise NotAuthenticated("Not authenticated")

    updates = _validate_updates(
        email_notifications=email_notifications,
        due_date_reminders=due_date_reminders,
        digest_frequency=digest_frequency,
        quiet_hours=quiet_hours
    )

    settings = get_or_create_settings(identity.subject_id)
    for column, value in updates.items():
        setattr(settings, column, value)
    db.session.commit()

    current_app.logger.info(f"Updated notification settings for {identity.subject_id}: {sorted(updates)}")
    return settings
