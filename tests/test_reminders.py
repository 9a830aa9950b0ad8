"""
Tests for the due date reminder sweep and the invitation expiry sweep
"""
import pytest
from datetime import datetime, timedelta
from workstream.models.invitation import Invitation
from workstream.models.notification import Notification
from workstream.models.notification_settings import UserNotificationSettings
from workstream.models.task import Task
from workstream.models.user import User
from workstream.workers import reminder_job
from workstream.workers.invitation_expiry_job import expire_overdue_invitations
from workstream.workers.reminder_job import process_due_date_reminders

NOW = datetime(2026, 3, 10, 13, 0)


@pytest.fixture
def assignee(db_session):
    user = User(subject_id='auth0|assignee', email='assignee@example.com', name='Sam Assignee')
    db_session.add(user)
    db_session.add(UserNotificationSettings(user_id=user.subject_id, reminder_days=[1, 3]))
    db_session.commit()
    return user


def make_task(db_session, project, assignee, due_in_days, title='Ship it', status='todo', hour=17):
    due = datetime(NOW.year, NOW.month, NOW.day, hour) + timedelta(days=due_in_days)
    task = Task(
        project_id=project.id,
        title=title,
        status=status,
        assigned_to=assignee.subject_id if assignee else None,
        due_date=due,
        created_by=project.created_by
    )
    db_session.add(task)
    db_session.commit()
    return task


class TestDueDateReminders:
    """Test suite for the daily reminder sweep"""

    def test_reminder_written_and_emailed(self, project, assignee, dispatcher, db_session):
        task = make_task(db_session, project, assignee, 1)

        stats = process_due_date_reminders(NOW)

        assert stats['notifications_created'] == 1
        assert stats['emails_enqueued'] == 1
        assert stats['errors'] == []
        notification = Notification.query.filter_by(user_id=assignee.subject_id).one()
        assert notification.type == 'task_due_reminder'
        assert notification.title == 'Task due tomorrow: Ship it'
        assert notification.message == 'Your task "Ship it" in Apollo is due tomorrow (03/11/2026)'
        assert notification.related_id == str(task.id)
        assert notification.related_type == 'task'
        assert notification.action_url == '/dashboard/tasks'

        template, recipient, params = dispatcher.emails()[0]
        assert template == 'due_date_reminder'
        assert recipient == 'assignee@example.com'
        assert params['days_until_due'] == 1

    def test_lead_time_text(self, project, assignee, db_session):
        make_task(db_session, project, assignee, 3, title='Later')

        process_due_date_reminders(NOW)

        notification = Notification.query.one()
        assert notification.title == 'Task due in 3 days: Later'

    def test_reminders_are_deduplicated_per_day(self, project, assignee, db_session):
        make_task(db_session, project, assignee, 1)

        process_due_date_reminders(NOW)
        stats = process_due_date_reminders(NOW + timedelta(hours=2))

        assert stats['notifications_created'] == 0
        assert stats['duplicates_skipped'] == 1
        assert Notification.query.count() == 1

    def test_next_day_is_a_new_reminder_window(self, project, assignee, db_session):
        make_task(db_session, project, assignee, 3)

        process_due_date_reminders(NOW)
        process_due_date_reminders(NOW + timedelta(days=2))

        assert Notification.query.count() == 2

    def test_unwanted_lead_times_and_closed_tasks_skipped(self, project, assignee, db_session):
        make_task(db_session, project, assignee, 2, title='Two days')
        make_task(db_session, project, assignee, 1, title='Done', status='completed')
        make_task(db_session, project, assignee, 1, title='Dropped', status='cancelled')
        make_task(db_session, project, None, 1, title='Nobody')

        stats = process_due_date_reminders(NOW)

        assert stats['notifications_created'] == 0
        assert Notification.query.count() == 0

    def test_users_without_settings_or_opted_out_skipped(self, project, assignee, db_session):
        settings = UserNotificationSettings.query.filter_by(user_id=assignee.subject_id).one()
        settings.email_task_due_soon = False
        db_session.commit()
        make_task(db_session, project, assignee, 1)

        lonely = User(subject_id='auth0|lonely', email='lonely@example.com', name='Lonely')
        db_session.add(lonely)
        db_session.commit()
        make_task(db_session, project, lonely, 1)

        assert process_due_date_reminders(NOW)['notifications_created'] == 0

    def test_quiet_hours_suppress_email_only(self, project, assignee, dispatcher, db_session):
        settings = UserNotificationSettings.query.filter_by(user_id=assignee.subject_id).one()
        settings.quiet_hours_enabled = True
        settings.quiet_hours_start = '12:00'
        settings.quiet_hours_end = '14:00'
        settings.quiet_hours_timezone = 'UTC'
        db_session.commit()
        make_task(db_session, project, assignee, 1)

        stats = process_due_date_reminders(NOW)

        assert stats['notifications_created'] == 1
        assert stats['emails_suppressed'] == 1
        assert dispatcher.emails() == []

    def test_failing_bucket_does_not_stop_the_sweep(self, project, assignee, db_session, monkeypatch):
        make_task(db_session, project, assignee, 3)
        original = reminder_job.get_tasks_due_in_days

        def flaky(days, now, tz_name='UTC'):
            if days == 1:
                raise RuntimeError('database hiccup')
            return original(days, now, tz_name)

        monkeypatch.setattr(reminder_job, 'get_tasks_due_in_days', flaky)

        stats = process_due_date_reminders(NOW)

        assert stats['errors'] == [{'days': 1, 'error': 'database hiccup'}]
        assert stats['notifications_created'] == 1
        assert stats['buckets_processed'] == 4

    def test_reminder_timezone_shifts_the_day_window(self, app, project, assignee, db_session):
        # 02:00 UTC on the 12th is still the 11th in New York
        make_task(db_session, project, assignee, 2, hour=2)
        app.config['REMINDER_TIMEZONE'] = 'America/New_York'
        try:
            stats = process_due_date_reminders(NOW)
        finally:
            app.config['REMINDER_TIMEZONE'] = 'UTC'

        assert stats['notifications_created'] == 1
        assert Notification.query.one().title == 'Task due tomorrow: Ship it'


class TestInvitationExpirySweep:
    """Test suite for the proactive expiry sweep"""

    def test_overdue_pending_invitations_expire(self, owner_identity, owner_user, dispatcher, db_session):
        from workstream.services import invitation_service

        overdue = invitation_service.send_invitation(owner_identity, 'late@example.com')
        fresh = invitation_service.send_invitation(owner_identity, 'fresh@example.com')
        overdue.expires_at = datetime.utcnow() - timedelta(hours=1)
        db_session.commit()

        result = expire_overdue_invitations()

        assert result == {'expired': 1, 'invitation_ids': [overdue.id]}
        assert db_session.get(Invitation, overdue.id).status == 'expired'
        assert db_session.get(Invitation, fresh.id).status == 'pending'
        assert Notification.query.filter_by(type='invitation_expired').count() == 1
