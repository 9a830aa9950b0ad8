"""
Invitation Service
State machine for workspace, project and task invitations

    pending -> accepted | declined | expired | cancelled

All four targets are terminal. Expiry is detected lazily: a pending
invitation whose expiry has passed is persisted as expired the moment it is
read or acted upon.
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError
from workstream import db
from workstream.exceptions import (
    AlreadyExists, Expired, InvalidInput, InvalidState, NotAuthenticated, NotAuthorized, NotFound
)
from workstream.models.invitation import Invitation
from workstream.models.project import Project
from workstream.models.task import Task
from workstream.models.user import User
from workstream.services.email_service import build_invitation_url, enqueue_email
from workstream.services.membership_service import (
    assign_task, ensure_membership, get_membership, has_project_role
)
from workstream.services.notification_service import schedule_invitation_status_notification
from workstream.services.user_service import get_display_name, get_or_create_user, refresh_user_from_identity
from workstream.utils.input_validators import normalize_email, validate_email, validate_message

MANAGER_ROLES = ('owner', 'admin')


def _require_identity(identity):
    if identity is None:
        raise NotAuthenticated("Not authenticated")


def _expiry_days():
    return current_app.config.get('INVITATION_EXPIRY_DAYS', 7)


def expire_if_lapsed(invitation, now=None):
    """
    Persist a lapsed pending invitation as expired and notify its sender

    Returns:
        bool: True if the invitation was just expired
    """
    if invitation.status != 'pending' or not invitation.is_expired(now):
        return False

    invitation.mark_as_expired()
    db.session.commit()
    current_app.logger.info(f"Invitation {invitation.id} for {invitation.email} expired")

    schedule_invitation_status_notification(invitation.id, 'expired')
    return True


def _validate_scope(invitation_type, project_id, task_id):
    if invitation_type == 'task':
        if not task_id:
            raise InvalidInput("Task invitations require a task")
        if project_id:
            raise InvalidInput("Task invitations take the project from the task")
    elif invitation_type == 'project':
        if not project_id:
            raise InvalidInput("Project invitations require a project")
        if task_id:
            raise InvalidInput("Project invitations cannot reference a task")
    elif invitation_type == 'workspace':
        if project_id or task_id:
            raise InvalidInput("Workspace invitations cannot reference a project or task")
    else:
        raise InvalidInput(f"Unknown invitation type: {invitation_type}")


def _authorize_scope(identity, invitation_type, project_id, task_id):
    """Check the referenced project/task exists and the caller manages it"""
    if invitation_type == 'task':
        task = db.session.get(Task, task_id)
        if not task:
            raise NotFound("Task not found")
        if not db.session.get(Project, task.project_id):
            raise NotFound("Project not found")
        if not has_project_role(task.project_id, identity.subject_id, MANAGER_ROLES):
            raise NotAuthorized("Not authorized to assign tasks in this project")

    elif invitation_type == 'project':
        if not db.session.get(Project, project_id):
            raise NotFound("Project not found")
        if not has_project_role(project_id, identity.subject_id, MANAGER_ROLES):
            raise NotAuthorized("Not authorized to invite users to this project")


def _commit_new_invitation(invitation):
    db.session.add(invitation)
    try:
        db.session.commit()
    except IntegrityError:
        # Lost a race with another send for the same email
        db.session.rollback()
        raise AlreadyExists("Invitation already sent to this email")


def send_invitation_email(invitation, inviter_name):
    """Enqueue the invitee email matching the invitation type"""
    invitation_url = build_invitation_url(invitation.token)

    if invitation.type == 'task' and invitation.task_id:
        task = db.session.get(Task, invitation.task_id)
        project = db.session.get(Project, task.project_id) if task else None
        return enqueue_email('task_assignment', invitation.email, {
            'inviter_name': inviter_name,
            'task_title': task.title if task else 'Untitled Task',
            'project_name': project.name if project else 'Unknown Project',
            'invitation_url': invitation_url,
            'due_date': task.due_date.isoformat() if task and task.due_date else None,
            'message': invitation.message,
        })

    project = db.session.get(Project, invitation.project_id) if invitation.project_id else None
    return enqueue_email('workspace_invitation', invitation.email, {
        'inviter_name': inviter_name,
        'invitation_url': invitation_url,
        'invitation_type': invitation.type,
        'role': invitation.role,
        'project_name': project.name if project else None,
        'message': invitation.message,
    })


def send_invitation(identity, email, role='member', invitation_type='workspace',
                    project_id=None, task_id=None, message=None):
    """
    Invite an email address to the workspace, a project, or a task

    Args:
        identity: The signed-in sender
        email: Address to invite (normalized to lower case)
        role: 'admin', 'member' or 'viewer'
        invitation_type: 'workspace', 'project' or 'task'
        project_id: Required for project invitations
        task_id: Required for task invitations
        message: Optional note shown to the invitee

    Returns:
        Invitation: The new pending invitation

    Raises:
        NotAuthenticated, InvalidInput, AlreadyExists, NotFound, NotAuthorized
    """
    _require_identity(identity)

    email = normalize_email(email)
    is_valid, error = validate_email(email)
    if not is_valid:
        raise InvalidInput(error)
    if role not in Invitation.ROLES:
        raise InvalidInput(f"Unknown role: {role}")
    is_valid, error = validate_message(message)
    if not is_valid:
        raise InvalidInput(error)
    _validate_scope(invitation_type, project_id, task_id)

    if User.get_by_email(email):
        raise AlreadyExists("User already exists in the system")

    _authorize_scope(identity, invitation_type, project_id, task_id)

    existing = Invitation.get_pending_for_email(email)
    if existing and not expire_if_lapsed(existing):
        raise AlreadyExists("Invitation already sent to this email")

    invitation = Invitation.create_invitation(
        email=email,
        invited_by=identity.subject_id,
        invitation_type=invitation_type,
        role=role,
        project_id=project_id,
        task_id=task_id,
        message=message or None,
        expires_in_days=_expiry_days()
    )
    _commit_new_invitation(invitation)
    current_app.logger.info(
        f"Invitation {invitation.id} ({invitation_type}) sent to {email} by {identity.subject_id}"
    )

    send_invitation_email(invitation, get_display_name(identity.subject_id, identity))
    return invitation


def get_invitation_by_token(token):
    """
    Public lookup for the invitee landing page

    Unknown tokens return None rather than an error.
    """
    invitation = Invitation.get_by_token(token)
    if invitation is not None:
        expire_if_lapsed(invitation)
    return invitation


def _get_pending_by_token(token):
    invitation = Invitation.get_by_token(token)
    if not invitation:
        raise NotFound("Invalid invitation token")
    if invitation.status != 'pending':
        raise InvalidState("Invitation is no longer valid")
    if expire_if_lapsed(invitation):
        raise Expired("Invitation has expired")
    return invitation


def accept_invitation(identity, token):
    """
    Accept an invitation as the signed-in identity

    The signed-in email does not have to match the invited address. Task
    invitations assign the task and add the user to its project as a member;
    project invitations add the user with the invited role; workspace
    invitations have no extra effect. Membership and assignment writes are
    checked-then-written so a retried accept never duplicates them.

    Returns:
        Invitation: The accepted invitation

    Raises:
        NotAuthenticated, NotFound, InvalidState, Expired
    """
    _require_identity(identity)
    invitation = _get_pending_by_token(token)

    user = get_or_create_user(identity, invitation.email)
    refresh_user_from_identity(user, identity)

    if invitation.type == 'task':
        task = db.session.get(Task, invitation.task_id) if invitation.task_id else None
        if task:
            ensure_membership(task.project_id, user, role='member')
            assign_task(task, user)
        else:
            current_app.logger.warning(f"Task {invitation.task_id} for invitation {invitation.id} no longer exists")
    elif invitation.type == 'project':
        if invitation.project_id and db.session.get(Project, invitation.project_id):
            ensure_membership(invitation.project_id, user, role=invitation.role)
        else:
            current_app.logger.warning(
                f"Project {invitation.project_id} for invitation {invitation.id} no longer exists"
            )

    invitation.mark_as_accepted()
    db.session.commit()
    current_app.logger.info(f"Invitation {invitation.id} accepted by {identity.subject_id}")

    schedule_invitation_status_notification(invitation.id, 'accepted')
    return invitation


def decline_invitation(token):
    """
    Decline an invitation; no sign-in needed

    Raises:
        NotFound, InvalidState, Expired
    """
    invitation = _get_pending_by_token(token)

    invitation.mark_as_declined()
    db.session.commit()
    current_app.logger.info(f"Invitation {invitation.id} declined")

    schedule_invitation_status_notification(invitation.id, 'declined')
    return invitation


def _get_owned_invitation(identity, invitation_id, action):
    _require_identity(identity)
    invitation = db.session.get(Invitation, invitation_id)
    if not invitation:
        raise NotFound("Invitation not found")
    if invitation.invited_by != identity.subject_id:
        raise NotAuthorized(f"Not authorized to {action} this invitation")
    return invitation


def cancel_invitation(identity, invitation_id):
    """
    Withdraw a pending invitation (sender only)

    The row is kept with status 'cancelled'.
    """
    invitation = _get_owned_invitation(identity, invitation_id, 'cancel')
    if invitation.status != 'pending':
        raise InvalidState("Can only cancel pending invitations")
    if expire_if_lapsed(invitation):
        raise Expired("Invitation has expired")

    invitation.mark_as_cancelled()
    db.session.commit()
    current_app.logger.info(f"Invitation {invitation.id} cancelled by {identity.subject_id}")
    return invitation


def reissue_invitation(original, inviter_identity=None):
    """
    Replace an invitation with a fresh pending copy

    A pending original is cancelled; terminal originals keep their status.
    The copy gets a new token and expiry and the invitee email is re-sent.
    """
    if original.status == 'pending':
        original.mark_as_cancelled()
        db.session.flush()
    else:
        existing = Invitation.get_pending_for_email(original.email)
        if existing and not expire_if_lapsed(existing):
            raise AlreadyExists("Invitation already sent to this email")

    invitation = Invitation.create_invitation(
        email=original.email,
        invited_by=original.invited_by,
        invitation_type=original.type,
        role=original.role,
        project_id=original.project_id,
        task_id=original.task_id,
        message=original.message,
        expires_in_days=_expiry_days()
    )
    _commit_new_invitation(invitation)
    current_app.logger.info(f"Invitation {original.id} re-issued as {invitation.id}")

    send_invitation_email(invitation, get_display_name(original.invited_by, inviter_identity))
    return invitation


def resend_invitation(identity, invitation_id):
    """
    Re-send an invitation with a new token and expiry (sender only)

    Returns:
        Invitation: The new pending invitation
    """
    original = _get_owned_invitation(identity, invitation_id, 'resend')
    if original.status == 'accepted':
        raise InvalidState("Cannot resend an accepted invitation")
    return reissue_invitation(original, identity)


def present_invitation(invitation):
    """Invitation DTO enriched with inviter name and project/task titles"""
    data = invitation.to_dict()
    data['inviter_name'] = get_display_name(invitation.invited_by, default='Unknown')

    task = db.session.get(Task, invitation.task_id) if invitation.task_id else None
    project_id = invitation.project_id or (task.project_id if task else None)
    project = db.session.get(Project, project_id) if project_id else None

    data['task_title'] = task.title if task else None
    data['project_name'] = project.name if project else None
    data['is_expired'] = invitation.status == 'expired' or (
        invitation.status == 'pending' and invitation.is_expired()
    )
    return data


def list_sent_invitations(identity):
    """Invitations sent by the caller, newest first"""
    _require_identity(identity)
    invitations = Invitation.query.filter_by(
        invited_by=identity.subject_id
    ).order_by(Invitation.created_at.desc(), Invitation.id.desc()).all()
    return [present_invitation(invitation) for invitation in invitations]


def list_project_invitations(identity, project_id):
    """Invitations for a project, visible to its members, newest first"""
    _require_identity(identity)
    if not db.session.get(Project, project_id):
        raise NotFound("Project not found")
    if not get_membership(project_id, identity.subject_id):
        raise NotAuthorized("Not authorized to view invitations for this project")

    invitations = Invitation.query.filter_by(
        project_id=project_id
    ).order_by(Invitation.created_at.desc(), Invitation.id.desc()).all()
    return [present_invitation(invitation) for invitation in invitations]
