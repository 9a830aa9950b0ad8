"""
Notification Service
In-app notifications and the inviter fanout for invitation status changes
"""
from datetime import datetime
from flask import current_app
from workstream import db
from workstream.exceptions import InvalidInput, NotAuthenticated, NotAuthorized, NotFound
from workstream.models.invitation import Invitation
from workstream.models.notification import Notification
from workstream.models.project import Project
from workstream.models.task import Task
from workstream.models.user import User

# Title, message and link for each status the inviter hears about
STATUS_TEMPLATES = {
    'accepted': {
        'title': 'Invitation Accepted',
        'message': '{email} accepted your {type} invitation',
    },
    'declined': {
        'title': 'Invitation Declined',
        'message': '{email} declined your {type} invitation',
    },
    'expired': {
        'title': 'Invitation Expired',
        'message': 'Your {type} invitation to {email} has expired',
    },
    'cancelled': {
        'title': 'Invitation Cancelled',
        'message': 'Your {type} invitation to {email} was cancelled',
    },
}

# Statuses that also get a confirmation email
EMAILED_STATUSES = ('accepted', 'declined')


def _require_identity(identity):
    if identity is None:
        raise NotAuthenticated("Not authenticated")


def create_notification(user_id, notification_type, title, message, action_url=None,
                        related_id=None, related_type=None, created_at=None, commit=True):
    """
    Insert one in-app notification

    Args:
        user_id: Recipient subject id
        notification_type: One of Notification.TYPES
        related_id: Id of the invitation/project/task it is about
        commit: Commit immediately (False when batching)
    """
    if notification_type not in Notification.TYPES:
        raise InvalidInput(f"Unknown notification type: {notification_type}")
    if related_type is not None and related_type not in Notification.RELATED_TYPES:
        raise InvalidInput(f"Unknown related type: {related_type}")

    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        message=message,
        action_url=action_url,
        related_id=str(related_id) if related_id is not None else None,
        related_type=related_type,
        created_at=created_at or datetime.utcnow()
    )
    db.session.add(notification)
    if commit:
        db.session.commit()
    return notification


def _status_action_url(invitation, status):
    if status == 'accepted':
        if invitation.type == 'project' and invitation.project_id:
            return f"/dashboard/projects/{invitation.project_id}"
        return '/dashboard/team'
    return '/dashboard/invitations'


def _invitation_context(invitation):
    """Project name and task title for status emails"""
    task = db.session.get(Task, invitation.task_id) if invitation.task_id else None
    project_id = invitation.project_id or (task.project_id if task else None)
    project = db.session.get(Project, project_id) if project_id else None
    return (project.name if project else None), (task.title if task else None)


def send_invitation_status_email(invitation, status):
    """
    Enqueue the accepted/declined confirmation to the inviter

    Failures are logged and never propagate to the caller.
    """
    from workstream.services.email_service import enqueue_email

    try:
        inviter = User.get_by_subject(invitation.invited_by)
        if not inviter or not inviter.email:
            current_app.logger.warning(
                f"No email on file for inviter {invitation.invited_by}, skipping {status} email"
            )
            return None

        project_name, task_title = _invitation_context(invitation)
        params = {
            'inviter_name': inviter.name or 'there',
            'invitation_type': invitation.type,
            'project_name': project_name,
            'task_title': task_title,
        }
        if status == 'accepted':
            params['accepted_by_email'] = invitation.email
        else:
            params['declined_by_email'] = invitation.email

        return enqueue_email(f'invitation_{status}', inviter.email, params)

    except Exception:
        current_app.logger.exception(f"Failed to enqueue {status} email for invitation {invitation.id}")
        return None


def notify_invitation_status(invitation_id, status):
    """
    Tell the inviter that their invitation changed status

    Returns:
        Notification: The inviter's notification, or None if the
        invitation no longer exists
    """
    template = STATUS_TEMPLATES.get(status)
    if template is None:
        raise InvalidInput(f"No notification for invitation status: {status}")

    invitation = db.session.get(Invitation, invitation_id)
    if not invitation:
        current_app.logger.warning(f"Invitation {invitation_id} vanished before its {status} fanout")
        return None

    notification = create_notification(
        user_id=invitation.invited_by,
        notification_type=f'invitation_{status}',
        title=template['title'],
        message=template['message'].format(email=invitation.email, type=invitation.type),
        action_url=_status_action_url(invitation, status),
        related_id=invitation.id,
        related_type='invitation'
    )
    current_app.logger.info(f"Notified {invitation.invited_by} that invitation {invitation.id} was {status}")

    if status in EMAILED_STATUSES:
        send_invitation_status_email(invitation, status)

    return notification


def schedule_invitation_status_notification(invitation_id, status):
    """Hand the status fanout to the job dispatcher"""
    from workstream.jobs import notify_invitation_status_job
    from workstream.services.dispatch import dispatch

    return dispatch(notify_invitation_status_job, invitation_id, status)


def list_notifications(identity, limit=50, unread_only=False):
    """The caller's notifications, newest first"""
    _require_identity(identity)

    query = Notification.query.filter_by(user_id=identity.subject_id)
    if unread_only:
        query = query.filter_by(read=False)

    return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()


def unread_count(identity):
    if identity is None:
        return 0
    return Notification.query.filter_by(user_id=identity.subject_id, read=False).count()


def _get_owned_notification(identity, notification_id):
    _require_identity(identity)
    notification = db.session.get(Notification, notification_id)
    if not notification:
        raise NotFound("Notification not found")
    if notification.user_id != identity.subject_id:
        raise NotAuthorized("Not authorized to modify this notification")
    return notification


def mark_as_read(identity, notification_id):
    notification = _get_owned_notification(identity, notification_id)
    if not notification.read:
        notification.mark_as_read()
        db.session.commit()
    return notification


def mark_all_as_read(identity):
    """
    Mark every unread notification of the caller as read

    Returns:
        int: Number of notifications updated
    """
    _require_identity(identity)
    unread = Notification.query.filter_by(user_id=identity.subject_id, read=False).all()
    for notification in unread:
        notification.mark_as_read()
    db.session.commit()
    return len(unread)


def delete_notification(identity, notification_id):
    notification = _get_owned_notification(identity, notification_id)
    db.session.delete(notification)
    db.session.commit()
    return True
