"""
Background jobs using RQ (Redis Queue)

Jobs run inside the app context pushed by worker.py (or inline in
development and tests), so they can use the database session directly.
"""
from flask import current_app


def send_email_job(template, recipient, params):
    """
    Render and send one transactional email

    Raises DownstreamDeliveryFailure when SendGrid rejects the message; the
    worker records the failed job and nothing retries it.
    """
    from workstream.services.email_service import EmailService

    current_app.logger.info(f"[EMAIL] Sending {template} email to {recipient}")
    return EmailService().send(template, recipient, params)


def notify_invitation_status_job(invitation_id, status):
    """Write the inviter's notification for an invitation status change"""
    from workstream.services.notification_service import notify_invitation_status

    notification = notify_invitation_status(invitation_id, status)
    return {
        'status': status,
        'invitation_id': invitation_id,
        'notification_id': notification.id if notification else None
    }
