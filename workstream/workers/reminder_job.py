"""
Due Date Reminder Job
Daily sweep that reminds assignees of upcoming task due dates

Runs once a day from clock.py (13:00 UTC on the platform scheduler). Each
lead time is processed on its own so one failing bucket never stops the rest.
"""
from datetime import datetime
from typing import Dict, Any, List
from flask import current_app
from workstream import db
from workstream.models.notification import Notification
from workstream.models.notification_settings import UserNotificationSettings
from workstream.models.project import Project
from workstream.models.task import Task
from workstream.models.user import User
from workstream.services.email_service import enqueue_email
from workstream.services.notification_service import create_notification
from workstream.utils.timezone_utils import get_day_window, is_within_quiet_hours, start_of_day


def _due_text(days):
    return 'tomorrow' if days == 1 else f"in {days} days"


def get_tasks_due_in_days(days: int, now: datetime, tz_name: str = 'UTC') -> List[Task]:
    """Open, assigned tasks whose due date falls on the calendar day `days` ahead"""
    window_start, window_end = get_day_window(days, now, tz_name)

    return Task.query.filter(
        Task.status.notin_(Task.CLOSED_STATUSES),
        Task.assigned_to.isnot(None),
        Task.due_date.isnot(None),
        Task.due_date >= window_start,
        Task.due_date < window_end
    ).order_by(Task.due_date, Task.id).all()


def get_users_for_due_date_reminders(days: int) -> Dict[str, UserNotificationSettings]:
    """Settings of every user who wants a reminder `days` before a due date, keyed by subject id"""
    all_settings = UserNotificationSettings.query.filter_by(
        due_date_reminders_enabled=True,
        email_task_due_soon=True
    ).all()
    return {settings.user_id: settings for settings in all_settings if settings.wants_reminder(days)}


def create_due_date_reminder_notification(user_id: str, task: Task, project_name: str,
                                          days_until_due: int, now: datetime, tz_name: str = 'UTC'):
    """
    Write the reminder notification unless one was already written today

    Returns:
        Notification or None when deduplicated
    """
    existing = Notification.query.filter(
        Notification.user_id == user_id,
        Notification.type == 'task_due_reminder',
        Notification.related_id == str(task.id),
        Notification.created_at >= start_of_day(now, tz_name)
    ).first()
    if existing:
        return None

    due_text = _due_text(days_until_due)
    return create_notification(
        user_id=user_id,
        notification_type='task_due_reminder',
        title=f"Task due {due_text}: {task.title}",
        message=f"Your task \"{task.title}\" in {project_name} is due {due_text} ({task.due_date.strftime('%m/%d/%Y')})",
        action_url='/dashboard/tasks',
        related_id=task.id,
        related_type='task',
        created_at=now
    )


def _send_reminder_email(settings: UserNotificationSettings, task: Task, project_name: str,
                         days_until_due: int, now: datetime) -> bool:
    """Enqueue the reminder email unless the user is inside their quiet hours"""
    if settings.quiet_hours_enabled and is_within_quiet_hours(
        now, settings.quiet_hours_start, settings.quiet_hours_end, settings.quiet_hours_timezone
    ):
        return False

    user = User.get_by_subject(settings.user_id)
    if not user or not user.email:
        return False

    enqueue_email('due_date_reminder', user.email, {
        'recipient_name': user.name or 'there',
        'task_title': task.title,
        'project_name': project_name,
        'due_date': task.due_date.isoformat(),
        'days_until_due': days_until_due,
    })
    return True


def process_due_date_reminders(now: datetime = None) -> Dict[str, Any]:
    """
    Run one reminder sweep over every configured lead time

    Args:
        now: Sweep instant as naive UTC (defaults to the current time)

    Returns:
        Stats: notifications created, emails enqueued, emails held back by
        quiet hours, duplicates skipped and per-bucket errors
    """
    now = now or datetime.utcnow()
    tz_name = current_app.config.get('REMINDER_TIMEZONE', 'UTC')
    lead_days = current_app.config.get('REMINDER_LEAD_DAYS', (1, 2, 3, 7, 14))

    stats = {
        'notifications_created': 0,
        'emails_enqueued': 0,
        'emails_suppressed': 0,
        'duplicates_skipped': 0,
        'buckets_processed': 0,
        'errors': []
    }

    current_app.logger.info(f"[REMINDERS] Starting due date sweep at {now.isoformat()}")

    for days in lead_days:
        try:
            users_to_notify = get_users_for_due_date_reminders(days)
            if not users_to_notify:
                stats['buckets_processed'] += 1
                continue

            for task in get_tasks_due_in_days(days, now, tz_name):
                settings = users_to_notify.get(task.assigned_to)
                if settings is None:
                    continue

                project = db.session.get(Project, task.project_id)
                project_name = project.name if project else 'Unknown Project'

                notification = create_due_date_reminder_notification(
                    task.assigned_to, task, project_name, days, now, tz_name
                )
                if notification is None:
                    stats['duplicates_skipped'] += 1
                    continue

                stats['notifications_created'] += 1
                if _send_reminder_email(settings, task, project_name, days, now):
                    stats['emails_enqueued'] += 1
                else:
                    stats['emails_suppressed'] += 1

            stats['buckets_processed'] += 1

        except Exception as e:
            db.session.rollback()
            current_app.logger.exception(f"[REMINDERS] Error processing reminders for {days} days")
            stats['errors'].append({'days': days, 'error': str(e)})

    current_app.logger.info(
        f"[REMINDERS] Sweep complete: {stats['notifications_created']} notifications, "
        f"{stats['emails_enqueued']} emails, {len(stats['errors'])} errors"
    )
    return stats
