"""
Scheduler for periodic jobs
Run with: python clock.py

For Heroku Scheduler, use individual commands:
- python clock.py due_date_reminders   (daily at 13:00 UTC)
- python clock.py expire_invitations   (hourly)
- python clock.py maintenance          (both)
"""
import sys
import os
from dotenv import load_dotenv

# Ensure the application is in the path
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from workstream import create_app  # noqa: E402

load_dotenv()

# Create Flask application
app = create_app(os.getenv('FLASK_ENV', 'production'))


def run_due_date_reminders():
    """Send due date reminders for every configured lead time"""
    with app.app_context():
        from workstream.workers.reminder_job import process_due_date_reminders
        result = process_due_date_reminders()
        print(f"\n[SCHEDULER] Due Date Reminders Result: {result}")
        return result


def run_invitation_expiry():
    """Expire lapsed pending invitations"""
    with app.app_context():
        from workstream.workers.invitation_expiry_job import expire_overdue_invitations
        result = expire_overdue_invitations()
        print(f"\n[SCHEDULER] Invitation Expiry Result: {result}")
        return result


def run_maintenance():
    """Run full maintenance (expiry sweep, then reminders)"""
    return {
        'expiry': run_invitation_expiry(),
        'reminders': run_due_date_reminders()
    }


if __name__ == '__main__':
    command = sys.argv[1] if len(sys.argv) > 1 else 'maintenance'

    if command == 'due_date_reminders':
        print("[SCHEDULER] Running due date reminders...")
        run_due_date_reminders()
    elif command == 'expire_invitations':
        print("[SCHEDULER] Running invitation expiry...")
        run_invitation_expiry()
    elif command == 'maintenance':
        print("[SCHEDULER] Running full maintenance...")
        run_maintenance()
    else:
        print(f"Unknown command: {command}")
        print("Available commands: due_date_reminders, expire_invitations, maintenance")
        sys.exit(1)

    print("[SCHEDULER] Job completed successfully")
