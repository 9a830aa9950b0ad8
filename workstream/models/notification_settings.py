from datetime import datetime
from workstream import db


class UserNotificationSettings(db.Model):
    """Per-user email toggles, due date reminder cadence and quiet hours"""
    __tablename__ = 'user_notification_settings'

    DIGEST_FREQUENCIES = ('daily', 'weekly', 'never')
    EMAIL_TOGGLES = ('task_assigned', 'task_due_soon', 'task_completed', 'project_invitation', 'weekly_digest')

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(255), unique=True, nullable=False, index=True)  # Subject id

    # Email notifications
    email_task_assigned = db.Column(db.Boolean, default=True, nullable=False)
    email_task_due_soon = db.Column(db.Boolean, default=True, nullable=False)
    email_task_completed = db.Column(db.Boolean, default=False, nullable=False)
    email_project_invitation = db.Column(db.Boolean, default=True, nullable=False)
    email_weekly_digest = db.Column(db.Boolean, default=True, nullable=False)

    # Due date reminders
    due_date_reminders_enabled = db.Column(db.Boolean, default=True, nullable=False)
    reminder_days = db.Column(db.JSON, default=lambda: [1, 3], nullable=False)

    digest_frequency = db.Column(db.String(10), default='weekly', nullable=False)

    # Quiet hours ("HH:MM" in the user's timezone, may wrap midnight)
    quiet_hours_enabled = db.Column(db.Boolean, default=False, nullable=False)
    quiet_hours_start = db.Column(db.String(5), default='22:00', nullable=False)
    quiet_hours_end = db.Column(db.String(5), default='08:00', nullable=False)
    quiet_hours_timezone = db.Column(db.String(64), default='America/New_York', nullable=False)

    # Timestamps
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f'<UserNotificationSettings {self.user_id}>'

    def wants_reminder(self, days):
        """Check if the user wants a due date reminder this many days ahead"""
        return (
            self.due_date_reminders_enabled
            and self.email_task_due_soon
            and days in (self.reminder_days or [])
        )

    def to_dict(self):
        """Nested settings shape used by the settings page"""
        return {
            'user_id': self.user_id,
            'email_notifications': {
                toggle: getattr(self, f'email_{toggle}') for toggle in self.EMAIL_TOGGLES
            },
            'due_date_reminders': {
                'enabled': self.due_date_reminders_enabled,
                'reminder_days': list(self.reminder_days or []),
            },
            'digest_frequency': self.digest_frequency,
            'quiet_hours': {
                'enabled': self.quiet_hours_enabled,
                'start_time': self.quiet_hours_start,
                'end_time': self.quiet_hours_end,
                'timezone': self.quiet_hours_timezone,
            },
            'updated_at': self.updated_at.isoformat() if self.updated_at else None
        }
